from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from graffic.api.deps import get_asset_service
from graffic.lifecycle.asset import OwnerRef
from graffic.schemas.asset import AssetCreateFromUri, AssetRead
from graffic.services.asset_service import AssetService
from graffic.services.runtime import DEFAULT_KIND

router = APIRouter(prefix="/assets", tags=["assets"])


def _owner(owner_type: str | None, owner_id: str | None) -> OwnerRef | None:
    if owner_type and owner_id:
        return OwnerRef(type=owner_type, id=owner_id)
    return None


def _read(service: AssetService, asset) -> AssetRead:
    return AssetRead.from_asset(asset, url=service.engine.url(asset))


@router.post(
    "",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_asset(
    request: Request,
    kind: str = DEFAULT_KIND,
    owner_type: str | None = None,
    owner_id: str | None = None,
    format: str | None = None,
    sync: bool = False,
    service: AssetService = Depends(get_asset_service),
):
    """
    Upload raw image bytes as the request body. With `sync=true` the whole
    lifecycle runs before responding; otherwise slow steps go to the workers.
    """
    body = await request.body()
    create = service.create_without_queue if sync else service.create

    asset = await run_in_threadpool(
        create,
        kind,
        body,
        owner=_owner(owner_type, owner_id),
        format=format,
    )
    return _read(service, asset)


@router.post(
    "/from-uri",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_asset_from_uri(
    asset_in: AssetCreateFromUri,
    service: AssetService = Depends(get_asset_service),
):
    asset = await run_in_threadpool(
        service.create,
        asset_in.kind or DEFAULT_KIND,
        asset_in.source_uri,
        owner=_owner(asset_in.owner_type, asset_in.owner_id),
        format=asset_in.format,
    )
    return _read(service, asset)


@router.get(
    "/{asset_id}",
    response_model=AssetRead,
)
async def get_asset(
    asset_id: str,
    service: AssetService = Depends(get_asset_service),
):
    asset = await run_in_threadpool(service.get, asset_id)
    return _read(service, asset)


@router.get(
    "/{asset_id}/derivatives/{name}",
    response_model=AssetRead,
)
async def get_derivative(
    asset_id: str,
    name: str,
    service: AssetService = Depends(get_asset_service),
):
    asset = await run_in_threadpool(service.get, asset_id)
    child = await run_in_threadpool(service.derivative, asset, name)
    return _read(service, child)


@router.delete(
    "/{asset_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_asset(
    asset_id: str,
    service: AssetService = Depends(get_asset_service),
):
    await run_in_threadpool(service.destroy, asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

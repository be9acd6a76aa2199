from fastapi import Request

from graffic.services.asset_service import AssetService
from graffic.services.runtime import Runtime


# -----------------------------
# Dependency: Runtime wired at startup (see main.lifespan)
# -----------------------------
def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def get_asset_service(request: Request) -> AssetService:
    return get_runtime(request).assets

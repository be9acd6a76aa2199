from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from graffic.db.session import SessionLocal
from graffic.lifecycle.asset import Asset, AssetState, OwnerRef
from graffic.models.asset import AssetRecord


class AssetRepository(Protocol):
    """Loads and stores Asset values by id."""

    def get(self, asset_id: str) -> Optional[Asset]: ...

    def save(self, asset: Asset) -> None: ...

    def persist_state(self, asset: Asset) -> None: ...

    def delete(self, asset_id: str) -> None: ...

    def list_in_state(self, state: AssetState, limit: int = 100) -> list[Asset]: ...


def _to_asset(row: AssetRecord) -> Asset:
    owner = None
    if row.owner_type is not None and row.owner_id is not None:
        owner = OwnerRef(type=row.owner_type, id=row.owner_id)

    return Asset(
        id=row.id,
        kind=row.kind,
        name=row.name,
        format=row.format,
        state=AssetState(row.state),
        width=row.width,
        height=row.height,
        owner=owner,
        parent_id=row.parent_id,
        derivatives=dict(row.derivatives or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _lifecycle_values(asset: Asset) -> dict:
    return {
        "state": asset.state,
        "format": asset.format,
        "width": asset.width,
        "height": asset.height,
        "derivatives": dict(asset.derivatives),
        "updated_at": asset.updated_at,
    }


class SqlAssetRepository:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def get(self, asset_id: str) -> Optional[Asset]:
        with self.session_factory() as db:
            row = db.execute(
                select(AssetRecord).where(AssetRecord.id == asset_id)
            ).scalar_one_or_none()
            return _to_asset(row) if row else None

    def save(self, asset: Asset) -> None:
        """Insert or replace the full record."""
        with self.session_factory() as db:
            db.merge(
                AssetRecord(
                    id=asset.id,
                    kind=asset.kind,
                    name=asset.name,
                    owner_type=asset.owner.type if asset.owner else None,
                    owner_id=asset.owner.id if asset.owner else None,
                    parent_id=asset.parent_id,
                    created_at=asset.created_at,
                    **_lifecycle_values(asset),
                )
            )
            db.commit()

    def persist_state(self, asset: Asset) -> None:
        """
        Write the lifecycle columns straight to the row. Used only by the
        transition engine after its side effects have completed.
        """
        asset.updated_at = datetime.utcnow()
        with self.session_factory() as db:
            db.execute(
                update(AssetRecord)
                .where(AssetRecord.id == asset.id)
                .values(**_lifecycle_values(asset))
            )
            db.commit()

    def delete(self, asset_id: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(AssetRecord).where(AssetRecord.id == asset_id))
            db.commit()

    def list_in_state(self, state: AssetState, limit: int = 100) -> list[Asset]:
        with self.session_factory() as db:
            rows = db.execute(
                select(AssetRecord)
                .where(AssetRecord.state == state)
                .order_by(AssetRecord.created_at)
                .limit(limit)
            ).scalars().all()
            return [_to_asset(r) for r in rows]

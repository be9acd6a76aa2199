from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Dict
from urllib.parse import urlparse

from graffic.lifecycle.asset import Asset, AssetState


class AssetCreateFromUri(BaseModel):
    """
    Create an asset from an image reachable over http(s).
    The bytes are downloaded into staging while the request is handled.
    """

    source_uri: str = Field(..., max_length=2048)
    kind: str | None = None
    owner_type: str | None = None
    owner_id: str | None = None
    format: str | None = None

    @field_validator("source_uri")
    @classmethod
    def validate_source_uri(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("source_uri must be an absolute http(s) URI")
        return v


class AssetRead(BaseModel):
    id: str
    kind: str
    name: str | None
    format: str | None
    state: AssetState
    width: int | None
    height: int | None
    owner_type: str | None
    owner_id: str | None
    parent_id: str | None
    derivatives: Dict[str, str]
    url: str | None = None
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_asset(cls, asset: Asset, url: str | None = None) -> "AssetRead":
        return cls(
            id=asset.id,
            kind=asset.kind,
            name=asset.name,
            format=asset.format,
            state=asset.state,
            width=asset.width,
            height=asset.height,
            owner_type=asset.owner.type if asset.owner else None,
            owner_id=asset.owner.id if asset.owner else None,
            parent_id=asset.parent_id,
            derivatives=dict(asset.derivatives),
            url=url,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
        )

from __future__ import annotations

from typing import Any, Optional

from graffic.core.errors import NotFoundError, ValidationError
from graffic.lifecycle.asset import Asset, OwnerRef
from graffic.lifecycle.engine import TransitionEngine


class AssetService:
    """
    Public entry points for creating and removing assets. `create*` is the
    validated save path; everything after the first save is the engine's job.
    """

    def __init__(self, engine: TransitionEngine):
        self.engine = engine

    def build(
        self,
        kind: str,
        source: Any,
        *,
        owner: Optional[OwnerRef] = None,
        format: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Asset:
        if source is None or (isinstance(source, (bytes, bytearray, str)) and not source):
            raise ValidationError("an image file, path or decoded image is required")

        config = self.engine.kinds.get(kind)
        return Asset(
            kind=config.name,
            name=name,
            format=(format or config.default_format).lower(),
            owner=owner,
            source=source,
        )

    def create(self, kind: str, source: Any, **kwargs: Any) -> Asset:
        """Save and start the lifecycle, deferring to workers when the kind does."""
        asset = self.build(kind, source, **kwargs)
        self.engine.repository.save(asset)
        self.engine.move(asset)
        return asset

    def create_without_queue(self, kind: str, source: Any, **kwargs: Any) -> Asset:
        """Save and run the whole lifecycle, versions included, in this call."""
        asset = self.build(kind, source, **kwargs)
        self.engine.repository.save(asset)
        self.engine.move_without_queue(asset)
        return asset

    def create_without_versions(self, kind: str, source: Any, **kwargs: Any) -> Asset:
        """Save and process synchronously but skip derivative generation."""
        asset = self.build(kind, source, **kwargs)
        self.engine.repository.save(asset)
        self.engine.move_without_queue(asset, versions=False)
        return asset

    def get(self, asset_id: str) -> Asset:
        asset = self.engine.repository.get(asset_id)
        if asset is None:
            raise NotFoundError("asset", asset_id)
        return asset

    def destroy(self, asset_id: str) -> None:
        self.engine.destroy(self.get(asset_id))

    def derivative(self, asset: Asset, name: str) -> Asset:
        child_id = asset.derivatives.get(name)
        if child_id is None:
            raise NotFoundError("derivative", f"{asset.id}/{name}")
        return self.get(child_id)

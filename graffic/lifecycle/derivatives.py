from __future__ import annotations

from typing import TYPE_CHECKING, Any

from graffic.core.logging import get_logger
from graffic.lifecycle.asset import Asset, OwnerRef
from graffic.lifecycle.kinds import ORIGINAL, VersionSpec

if TYPE_CHECKING:
    from graffic.lifecycle.engine import TransitionEngine

logger = get_logger(__name__)


class DerivativeGenerator:
    """
    Spawns child assets (the untouched "original" and one per configured
    version) that run the full lifecycle on their own.

    A child keeps the id already recorded on the parent for its slot, and its
    object key is derived from the parent and slot name, so generating again
    after a retry overwrites the same record and object.
    """

    def __init__(self, engine: "TransitionEngine"):
        self.engine = engine

    def save_original(self, parent: Asset, data: bytes, *, queue: bool = True) -> Asset:
        child = self._child(
            parent,
            ORIGINAL,
            kind_name=f"{parent.kind}.{ORIGINAL}",
            fmt=self.engine.format_of(parent),
            source=data,
        )
        self._start(child, queue)
        return child

    def create_versions(self, parent: Asset, *, queue: bool = True) -> list[Asset]:
        kind = self.engine.kind_of(parent)
        return [self.create_version(parent, spec, queue=queue) for spec in kind.versions]

    def create_version(self, parent: Asset, spec: VersionSpec, *, queue: bool = True) -> Asset:
        logger.debug("%s sizing %s", parent, spec.name)

        child = self._child(
            parent,
            spec.name,
            kind_name=f"{parent.kind}.{spec.name}",
            fmt=spec.format or self.engine.format_of(parent),
            source=parent.image.copy(),
        )
        self._start(child, queue)
        return child

    def _child(self, parent: Asset, name: str, *, kind_name: str, fmt: str, source: Any) -> Asset:
        existing = parent.derivatives.get(name)
        child = Asset(
            kind=kind_name,
            name=name,
            format=fmt,
            owner=OwnerRef(type=parent.kind, id=parent.id),
            parent_id=parent.id,
            source=source,
        )
        if existing:
            child.id = existing

        self.engine.repository.save(child)

        parent.derivatives[name] = child.id
        self.engine.repository.persist_state(parent)
        return child

    def _start(self, child: Asset, queue: bool) -> None:
        if queue:
            self.engine.move(child)
        else:
            self.engine.move_without_queue(child)

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from PIL import Image

from graffic.core.config import settings
from graffic.core.errors import ValidationError
from graffic.core.logging import get_logger
from graffic.lifecycle.asset import Asset, AssetState, object_key
from graffic.lifecycle.derivatives import DerivativeGenerator
from graffic.lifecycle.kinds import AssetKindConfig, KindRegistry
from graffic.lifecycle.pipeline import decode, encode, run_pipeline
from graffic.lifecycle.staging import StagingStore
from graffic.services.job_queue import enqueue_process, enqueue_upload

if TYPE_CHECKING:
    from graffic.services.asset_repository import AssetRepository
    from graffic.services.job_queue import JobQueue
    from graffic.services.object_store import ObjectStore

logger = get_logger(__name__)


class TransitionEngine:
    """
    Drives assets through received -> moved -> uploaded -> processed.

    Every transition checks the asset's current state first and does nothing
    (returns False) when it does not match, so a retried or duplicated call is
    harmless. The `queue` flag chooses between handing the next step to a
    worker (when the kind defers) and running it right away.
    """

    def __init__(
        self,
        *,
        kinds: KindRegistry,
        repository: "AssetRepository",
        stores: Callable[[str], "ObjectStore"],
        queues: Callable[[str], "JobQueue"],
        hostname: Optional[str] = None,
    ):
        self.kinds = kinds
        self.repository = repository
        self.stores = stores
        self.queues = queues
        self.hostname = hostname or settings.WORKER_HOSTNAME
        self.derivatives = DerivativeGenerator(self)
        self._staging: dict[str, StagingStore] = {}

    # -----------------------------
    # Lookups
    # -----------------------------
    def kind_of(self, asset: Asset) -> AssetKindConfig:
        return self.kinds.get(asset.kind)

    def format_of(self, asset: Asset) -> str:
        return asset.format or self.kind_of(asset).default_format

    def key(self, asset: Asset) -> str:
        return object_key(asset, self.format_of(asset))

    def store_for(self, asset: Asset) -> "ObjectStore":
        return self.stores(self.kind_of(asset).bucket)

    def staging_for(self, asset: Asset) -> StagingStore:
        directory = self.kind_of(asset).staging_dir
        store = self._staging.get(directory)
        if store is None:
            store = StagingStore(directory)
            self._staging[directory] = store
        return store

    def url(self, asset: Asset) -> str:
        return self.store_for(asset).url(self.key(asset))

    # -----------------------------
    # Public transitions
    # -----------------------------
    def move(self, asset: Asset) -> bool:
        return self._move(asset, queue=True, versions=True)

    def move_without_queue(self, asset: Asset, versions: bool = True) -> bool:
        return self._move(asset, queue=False, versions=versions)

    def upload(self, asset: Asset) -> bool:
        return self._upload(asset, queue=True, versions=True)

    def upload_without_queue(self, asset: Asset, versions: bool = True) -> bool:
        return self._upload(asset, queue=False, versions=versions)

    def upload_unprocessed(self, asset: Asset) -> bool:
        if not self._guard(asset, AssetState.moved, "upload_unprocessed"):
            return False

        kind = self.kind_of(asset)
        staging = self.staging_for(asset)

        if asset.image is not None and not staging.exists(asset.id):
            data = encode(asset.image, self.format_of(asset))
        else:
            data = staging.read(asset.id)

        # Untouched bytes; decoded only to record dimensions.
        self.store_for(asset).put(self.key(asset), data, kind.acl)
        self._record_dimensions(asset, asset.image if asset.image is not None else decode(data))

        self._persist(asset, AssetState.processed)
        staging.delete(asset.id)
        return True

    def process(self, asset: Asset) -> bool:
        return self._process(asset, queue=True, versions=True)

    def process_without_queue(self, asset: Asset, versions: bool = True) -> bool:
        return self._process(asset, queue=False, versions=versions)

    def destroy(self, asset: Asset) -> None:
        """Remove the asset's remote object, its derivatives and its record."""
        for child_id in list(asset.derivatives.values()):
            child = self.repository.get(child_id)
            if child is not None:
                self.destroy(child)

        logger.debug("%s#destroy", asset)
        self.store_for(asset).delete(self.key(asset))
        self.staging_for(asset).delete(asset.id)
        self.repository.delete(asset.id)

    # -----------------------------
    # Transition bodies
    # -----------------------------
    def _move(self, asset: Asset, *, queue: bool, versions: bool) -> bool:
        if not self._guard(asset, AssetState.received, "move"):
            return False

        if isinstance(asset.source, Image.Image):
            # Already decoded: nothing to stage, go straight to uploaded.
            asset.image = asset.source
            self._store_uploaded(asset, raw=None, queue=queue)
            self._after_upload(asset, queue=queue, versions=versions)
            return True

        if asset.source is None:
            raise ValidationError(f"{asset} has no input to move")

        kind = self.kind_of(asset)
        self.staging_for(asset).write(asset.id, asset.source)
        self._persist(asset, AssetState.moved)

        if queue and kind.use_queue:
            enqueue_upload(self.queues(kind.upload_queue), asset.id, self.hostname)
            logger.debug("%s queued for upload on %s", asset, self.hostname)
            return True

        self._upload(asset, queue=queue, versions=versions)
        return True

    def _upload(self, asset: Asset, *, queue: bool, versions: bool) -> bool:
        if self.kind_of(asset).finished:
            return self.upload_unprocessed(asset)

        if not self._guard(asset, AssetState.moved, "upload"):
            return False

        staging = self.staging_for(asset)
        raw = None
        if asset.image is None or staging.exists(asset.id):
            raw = staging.read(asset.id)
            asset.image = decode(raw)

        self._store_uploaded(asset, raw=raw, queue=queue)
        staging.delete(asset.id)
        self._after_upload(asset, queue=queue, versions=versions)
        return True

    def _store_uploaded(self, asset: Asset, *, raw: bytes | None, queue: bool) -> None:
        kind = self.kind_of(asset)
        fmt = self.format_of(asset)
        encoded = encode(asset.image, fmt)

        self.store_for(asset).put(self.key(asset), encoded, kind.acl)
        if kind.keep_original:
            self.derivatives.save_original(asset, raw if raw is not None else encoded, queue=queue)

        self._persist(asset, AssetState.uploaded)

    def _after_upload(self, asset: Asset, *, queue: bool, versions: bool) -> None:
        kind = self.kind_of(asset)
        if queue and kind.use_queue:
            enqueue_process(self.queues(kind.process_queue), asset.id)
            logger.debug("%s queued for processing", asset)
        else:
            self._process(asset, queue=queue, versions=versions)

    def _process(self, asset: Asset, *, queue: bool, versions: bool) -> bool:
        if not self._guard(asset, AssetState.uploaded, "process"):
            return False

        kind = self.kind_of(asset)
        store = self.store_for(asset)
        key = self.key(asset)

        image = asset.image
        if image is None:
            image = decode(store.get(key))

        result = run_pipeline(kind.processors, image, asset)
        if kind.processors:
            store.put(key, encode(result, self.format_of(asset)), kind.acl)

        asset.image = result
        self._record_dimensions(asset, result)
        self._persist(asset, AssetState.processed)

        if versions and kind.generate_versions and kind.versions:
            self.derivatives.create_versions(asset, queue=queue)
        return True

    # -----------------------------
    # Helpers
    # -----------------------------
    def _guard(self, asset: Asset, expected: AssetState, transition: str) -> bool:
        if asset.state != expected:
            logger.debug(
                "%s#%s skipped: state is %s, expected %s",
                asset, transition, asset.state.value, expected.value,
            )
            return False
        logger.debug("%s#%s", asset, transition)
        return True

    def _record_dimensions(self, asset: Asset, image: Image.Image) -> None:
        asset.width, asset.height = image.size
        asset.format = self.format_of(asset)

    def _persist(self, asset: Asset, state: AssetState) -> None:
        asset.state = state
        self.repository.persist_state(asset)

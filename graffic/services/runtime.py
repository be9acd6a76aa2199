from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from graffic.core.config import settings
from graffic.lifecycle.engine import TransitionEngine
from graffic.lifecycle.kinds import AssetKindConfig, KindBuilder, KindRegistry
from graffic.lifecycle.worker_loop import Worker
from graffic.services.asset_repository import SqlAssetRepository
from graffic.services.asset_service import AssetService
from graffic.services.job_queue import QueueProvider
from graffic.services.object_store import StoreProvider

# Kind used when a request does not name one.
DEFAULT_KIND = "image"


@dataclass
class Runtime:
    engine: TransitionEngine
    assets: AssetService
    worker: Worker


def default_kinds() -> list[AssetKindConfig]:
    return [
        KindBuilder(DEFAULT_KIND)
        .version("thumb", width=100, height=100)
        .build()
    ]


def build_runtime(
    kinds: Optional[Iterable[AssetKindConfig]] = None,
    *,
    repository=None,
    stores=None,
    queues=None,
    hostname: Optional[str] = None,
) -> Runtime:
    """
    Wire the engine to its collaborators. Anything not passed in comes from
    settings: SQL repository, S3 buckets, redis queues.
    """
    registry = KindRegistry(kinds if kinds is not None else default_kinds())

    engine = TransitionEngine(
        kinds=registry,
        repository=repository if repository is not None else SqlAssetRepository(),
        stores=stores if stores is not None else StoreProvider(),
        queues=queues if queues is not None else QueueProvider(),
        hostname=hostname or settings.WORKER_HOSTNAME,
    )

    return Runtime(
        engine=engine,
        assets=AssetService(engine),
        worker=Worker(engine),
    )

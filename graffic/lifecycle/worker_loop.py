from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from graffic.core.logging import get_logger
from graffic.lifecycle.asset import AssetState
from graffic.lifecycle.engine import TransitionEngine

logger = get_logger(__name__)


class WorkStatus(str, enum.Enum):
    empty = "empty"
    done = "done"
    not_found = "not_found"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True)
class WorkResult:
    status: WorkStatus
    queue: str
    asset_id: Optional[str] = None


class Worker:
    """
    Pulls at most one message per call from a queue and runs the matching
    transition. Workers do not coordinate; duplicate deliveries are absorbed
    by the transitions' state checks.
    """

    def __init__(self, engine: TransitionEngine, hostname: Optional[str] = None):
        self.engine = engine
        self.hostname = hostname or engine.hostname

    def process_next(self, queue_name: str) -> WorkResult:
        asset_id = None
        try:
            message = self.engine.queues(queue_name).receive()
            if message is None:
                return WorkResult(WorkStatus.empty, queue_name)

            asset_id = message.body["id"]
            asset = self.engine.repository.get(asset_id)
            if asset is None:
                # TODO: dead-letter unknown ids instead of dropping them once there is a place to park them
                message.delete()
                logger.warning("process job for missing asset %s dropped", asset_id)
                return WorkResult(WorkStatus.not_found, queue_name, asset_id)

            self.engine.process(asset)
            message.delete()

        except Exception:
            logger.exception("process job for asset %s on %s failed; leaving it for redelivery", asset_id, queue_name)
            return WorkResult(WorkStatus.failed, queue_name, asset_id)

        logger.info("processed asset %s", asset_id)
        return WorkResult(WorkStatus.done, queue_name, asset_id)

    def upload_next(self, queue_name: str) -> WorkResult:
        asset_id = None
        try:
            message = self.engine.queues(queue_name).receive()
            if message is None:
                return WorkResult(WorkStatus.empty, queue_name)

            asset_id = message.body["id"]
            origin = message.body.get("hostname")
            if origin != self.hostname:
                # Staged bytes live on the origin host; leave the job for it.
                logger.debug("upload job for %s belongs to %s, not %s", asset_id, origin, self.hostname)
                return WorkResult(WorkStatus.skipped, queue_name, asset_id)

            asset = self.engine.repository.get(asset_id)
            if asset is None:
                message.delete()
                logger.warning("upload job for missing asset %s dropped", asset_id)
                return WorkResult(WorkStatus.not_found, queue_name, asset_id)

            self.engine.upload(asset)
            message.delete()

        except Exception:
            logger.exception("upload job for asset %s on %s failed; leaving it for redelivery", asset_id, queue_name)
            return WorkResult(WorkStatus.failed, queue_name, asset_id)

        logger.info("uploaded asset %s", asset_id)
        return WorkResult(WorkStatus.done, queue_name, asset_id)

    def run_once(self) -> list[WorkResult]:
        """One receive from every upload queue, then every process queue."""
        process_queues, upload_queues = self.engine.kinds.queue_names()

        results = [self.upload_next(name) for name in sorted(upload_queues)]
        results += [self.process_next(name) for name in sorted(process_queues)]
        return results

    def sweep_moved(self, limit: int = 100) -> int:
        """
        Upload assets stuck in `moved` whose staged file is on this host,
        e.g. after their upload job was lost.
        """
        count = 0
        for asset in self.engine.repository.list_in_state(AssetState.moved, limit=limit):
            try:
                if not self.engine.staging_for(asset).exists(asset.id):
                    continue
                if self.engine.upload(asset):
                    count += 1
            except Exception:
                logger.exception("sweep upload of asset %s failed", asset.id)
        return count

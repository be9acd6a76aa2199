from __future__ import annotations

import asyncio

from dotenv import load_dotenv
load_dotenv()

from arq import cron
from arq.connections import RedisSettings

from graffic.core.config import settings
from graffic.core.logging import get_logger, setup_logging
from graffic.lifecycle.worker_loop import WorkStatus
from graffic.services.job_queue import close_redis
from graffic.services.runtime import build_runtime

logger = get_logger(__name__)

# Upper bound on messages handled per cron tick, per worker process.
MAX_MESSAGES_PER_TICK = 50


async def startup(ctx) -> None:
    setup_logging()
    ctx["runtime"] = build_runtime()


async def shutdown(ctx) -> None:
    close_redis()


def _drain(runtime, limit: int) -> dict[str, int]:
    counts: dict[str, int] = {}
    for _ in range(limit):
        results = runtime.worker.run_once()
        for r in results:
            counts[r.status.value] = counts.get(r.status.value, 0) + 1
        if all(r.status in (WorkStatus.empty, WorkStatus.skipped) for r in results):
            break
    return counts


async def poll_queues(ctx) -> dict[str, int]:
    """
    arq cron entrypoint. The lifecycle is blocking, so the loop runs in a
    thread; each pass takes at most one message from every queue.
    """
    counts = await asyncio.to_thread(_drain, ctx["runtime"], MAX_MESSAGES_PER_TICK)
    if counts.get("done") or counts.get("failed") or counts.get("not_found"):
        logger.info("queue poll: %s", counts)
    return counts


async def sweep_moved(ctx) -> int:
    swept = await asyncio.to_thread(ctx["runtime"].worker.sweep_moved)
    if swept:
        logger.info("uploaded %d asset(s) left in moved", swept)
    return swept


def _every(seconds: int) -> set[int]:
    step = max(1, min(seconds, 59))
    return set(range(0, 60, step))


class WorkerSettings:
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    functions = []
    cron_jobs = [
        cron(poll_queues, second=_every(settings.WORKER_POLL_SECONDS), unique=True, run_at_startup=True),
        cron(sweep_moved, minute={0, 15, 30, 45}, second=0, unique=True),
    ]
    on_startup = startup
    on_shutdown = shutdown

    max_jobs = 10
    job_timeout = 60 * 10

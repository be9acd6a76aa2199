import pytest

from graffic.lifecycle.asset import AssetState
from graffic.worker import WorkerSettings, poll_queues, sweep_moved

from tests.conftest import png_bytes


@pytest.mark.asyncio
async def test_poll_queues_drains_deferred_work(make_runtime, repository):
    runtime = make_runtime(lambda b: b.version("thumb", width=8, height=8), use_queue=True)
    asset = runtime.assets.create("photo", png_bytes())

    counts = await poll_queues({"runtime": runtime})

    assert counts["done"] >= 3
    assert repository.get(asset.id).state == AssetState.processed


@pytest.mark.asyncio
async def test_sweep_moved_task(make_runtime, queues, repository):
    runtime = make_runtime(use_queue=True)
    asset = runtime.assets.create("photo", png_bytes())
    queues(runtime.engine.kinds.get("photo").upload_queue).ready.clear()

    assert await sweep_moved({"runtime": runtime}) == 1
    assert repository.get(asset.id).state == AssetState.uploaded


def test_worker_settings_schedule_polling():
    names = {job.name for job in WorkerSettings.cron_jobs}
    assert any("poll_queues" in n for n in names)

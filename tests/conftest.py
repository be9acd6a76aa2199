from __future__ import annotations

import dataclasses
from io import BytesIO

import pytest
from PIL import Image

from graffic.lifecycle.kinds import KindBuilder
from graffic.services.runtime import build_runtime

HOST = "worker-a"


def png_bytes(size=(64, 48), color=(200, 40, 40)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class MemoryStore:
    def __init__(self, bucket: str = "test-bucket"):
        self.bucket = bucket
        self.objects: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []

    def put(self, key, data, acl=None):
        self.calls.append(("put", key))
        self.objects[key] = data

    def get(self, key):
        self.calls.append(("get", key))
        return self.objects[key]

    def delete(self, key):
        self.calls.append(("delete", key))
        self.objects.pop(key, None)

    def url(self, key):
        return f"https://{self.bucket}.example.com/{key}"


class MemoryMessage:
    def __init__(self, queue, body):
        self.queue = queue
        self.body = body
        self.deleted = False

    def delete(self):
        self.deleted = True
        self.queue.inflight.remove(self)


class MemoryQueue:
    def __init__(self, name):
        self.name = name
        self.ready: list[MemoryMessage] = []
        self.inflight: list[MemoryMessage] = []
        self.pushed: list[dict] = []

    def push(self, payload):
        self.pushed.append(payload)
        self.ready.append(MemoryMessage(self, payload))

    def receive(self):
        if not self.ready:
            return None
        msg = self.ready.pop(0)
        self.inflight.append(msg)
        return msg

    def redeliver(self):
        """Put unacknowledged messages back, like a visibility timeout expiring."""
        self.ready.extend(self.inflight)
        self.inflight = []


class Queues:
    def __init__(self):
        self.queues: dict[str, MemoryQueue] = {}

    def __call__(self, name):
        if name not in self.queues:
            self.queues[name] = MemoryQueue(name)
        return self.queues[name]

    def total_pushed(self) -> int:
        return sum(len(q.pushed) for q in self.queues.values())


class MemoryRepository:
    """Stores detached copies so tests see only what was persisted."""

    def __init__(self):
        self.rows = {}
        self.persist_calls = 0

    def _copy(self, asset):
        return dataclasses.replace(asset, derivatives=dict(asset.derivatives), source=None, image=None)

    def get(self, asset_id):
        row = self.rows.get(asset_id)
        return self._copy(row) if row else None

    def save(self, asset):
        self.rows[asset.id] = self._copy(asset)

    def persist_state(self, asset):
        self.persist_calls += 1
        self.rows[asset.id] = self._copy(asset)

    def delete(self, asset_id):
        self.rows.pop(asset_id, None)

    def list_in_state(self, state, limit=100):
        return [self._copy(a) for a in self.rows.values() if a.state == state][:limit]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def queues():
    return Queues()


@pytest.fixture
def repository():
    return MemoryRepository()


@pytest.fixture
def make_runtime(tmp_path, store, queues, repository):
    """
    Build a runtime over in-memory collaborators. `configure` receives a
    KindBuilder for the "photo" kind, already pointed at a temp staging dir.
    """
    def _make(configure=None, *, use_queue=False, hostname=HOST):
        builder = (
            KindBuilder("photo")
            .staging_dir(str(tmp_path / "staging"))
            .bucket("test-bucket")
            .use_queue(use_queue)
        )
        if configure is not None:
            builder = configure(builder)
        return build_runtime(
            [builder.build()],
            repository=repository,
            stores=lambda bucket: store,
            queues=queues,
            hostname=hostname,
        )

    return _make

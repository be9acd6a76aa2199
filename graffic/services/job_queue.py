from __future__ import annotations

import json
import threading
import time
import uuid
from typing import Any, Optional, Protocol

import redis

from graffic.core.config import settings
from graffic.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None
_client_lock = threading.Lock()


def get_redis() -> redis.Redis:
    global _redis_client
    with _client_lock:
        if _redis_client is None:
            _redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        return _redis_client


def close_redis() -> None:
    global _redis_client
    with _client_lock:
        if _redis_client is None:
            return

        client = _redis_client
        _redis_client = None
        client.close()


class QueueMessage(Protocol):
    body: dict[str, Any]

    def delete(self) -> None: ...


class JobQueue(Protocol):
    """At-least-once delivery channel: push / receive / acknowledge."""

    name: str

    def push(self, payload: dict[str, Any]) -> None: ...

    def receive(self) -> Optional[QueueMessage]: ...


# In-flight members are `<receipt>:<envelope>`, one receipt per delivery, so
# acking a stale delivery never hides a later redelivery of the same message.
RECEIPT_LENGTH = 32

# Requeue everything whose visibility deadline passed, then hand out the next
# message and hide it until `now + visibility_timeout` under a fresh receipt.
_RECEIVE_LUA = """
local expired = redis.call('ZRANGEBYSCORE', KEYS[2], '-inf', ARGV[1])
for _, member in ipairs(expired) do
  redis.call('ZREM', KEYS[2], member)
  redis.call('RPUSH', KEYS[1], string.sub(member, tonumber(ARGV[4]) + 2))
end
local raw = redis.call('LPOP', KEYS[1])
if not raw then
  return false
end
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[3] .. ':' .. raw)
return raw
"""


class RedisMessage:
    def __init__(self, queue: "RedisJobQueue", raw: str, receipt: str):
        envelope = json.loads(raw)
        self.queue = queue
        self.raw = raw
        self.receipt = receipt
        self.id: str = envelope["message_id"]
        self.body: dict[str, Any] = envelope["body"]

    def delete(self) -> None:
        self.queue.ack(self)

    def __repr__(self) -> str:
        return f"RedisMessage({self.queue.name}, {self.id}, {self.body})"


class RedisJobQueue:
    """
    Redis-backed queue with SQS-like semantics. A received message stays
    invisible for `visibility_timeout` seconds; if it is not deleted by then it
    is put back on the queue for redelivery.
    """

    def __init__(
        self,
        name: str,
        client: Optional[redis.Redis] = None,
        visibility_timeout: int | None = None,
    ):
        self.name = name
        self.client = client if client is not None else get_redis()
        self.visibility_timeout = (
            visibility_timeout if visibility_timeout is not None else settings.QUEUE_VISIBILITY_TIMEOUT
        )
        self._receive = self.client.register_script(_RECEIVE_LUA)

    @property
    def ready_key(self) -> str:
        return f"graffic:queue:{self.name}"

    @property
    def inflight_key(self) -> str:
        return f"graffic:queue:{self.name}:inflight"

    def push(self, payload: dict[str, Any]) -> None:
        envelope = {
            "message_id": uuid.uuid4().hex,
            "body": payload,
            "sent_at": time.time(),
        }
        self.client.rpush(self.ready_key, json.dumps(envelope))
        logger.debug("queued %s on %s", payload, self.name)

    def receive(self) -> Optional[RedisMessage]:
        now = time.time()
        receipt = uuid.uuid4().hex
        raw = self._receive(
            keys=[self.ready_key, self.inflight_key],
            args=[now, now + self.visibility_timeout, receipt, RECEIPT_LENGTH],
        )
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return RedisMessage(self, raw, receipt)

    def ack(self, message: RedisMessage) -> None:
        removed = self.client.zrem(self.inflight_key, f"{message.receipt}:{message.raw}")
        if not removed:
            logger.debug("%r acked after its visibility timeout expired", message)

    def __len__(self) -> int:
        return int(self.client.llen(self.ready_key))


class QueueProvider:
    """One RedisJobQueue per queue name, sharing the module's redis client."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client
        self._queues: dict[str, RedisJobQueue] = {}

    def __call__(self, name: str) -> RedisJobQueue:
        queue = self._queues.get(name)
        if queue is None:
            queue = RedisJobQueue(name, client=self._client or get_redis())
            self._queues[name] = queue
        return queue


def enqueue_upload(queue: JobQueue, asset_id: str, hostname: str) -> None:
    queue.push({"id": asset_id, "hostname": hostname})


def enqueue_process(queue: JobQueue, asset_id: str) -> None:
    queue.push({"id": asset_id})

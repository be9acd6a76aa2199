from collections import defaultdict

from graffic.services.job_queue import RedisJobQueue, enqueue_process, enqueue_upload


class FakeRedis:
    """Just enough of redis.Redis for RedisJobQueue; the script runs in Python."""

    def __init__(self):
        self.lists = defaultdict(list)
        self.zsets = defaultdict(dict)

    def rpush(self, key, value):
        self.lists[key].append(value)

    def llen(self, key):
        return len(self.lists[key])

    def zrem(self, key, member):
        return 1 if self.zsets[key].pop(member, None) is not None else 0

    def register_script(self, lua):
        def run(keys, args):
            ready, inflight = keys
            now, deadline, receipt, length = args
            for member, score in list(self.zsets[inflight].items()):
                if score <= now:
                    del self.zsets[inflight][member]
                    self.lists[ready].append(member[length + 1:])
            if not self.lists[ready]:
                return None
            raw = self.lists[ready].pop(0)
            self.zsets[inflight][f"{receipt}:{raw}"] = deadline
            return raw
        return run


def test_push_and_receive():
    q = RedisJobQueue("images", client=FakeRedis())
    enqueue_upload(q, "abc", "worker-a")

    msg = q.receive()

    assert msg.body == {"id": "abc", "hostname": "worker-a"}
    assert q.receive() is None


def test_unacknowledged_message_is_redelivered_after_timeout():
    q = RedisJobQueue("images", client=FakeRedis(), visibility_timeout=0)
    enqueue_process(q, "abc")

    first = q.receive()
    again = q.receive()

    assert again.id == first.id
    assert again.body == {"id": "abc"}


def test_deleted_message_is_not_redelivered():
    redis = FakeRedis()
    q = RedisJobQueue("images", client=redis, visibility_timeout=0)
    enqueue_process(q, "abc")

    q.receive().delete()

    assert q.receive() is None
    assert redis.zsets[q.inflight_key] == {}
    assert len(q) == 0


def test_late_ack_of_stale_delivery_keeps_redelivered_copy():
    redis = FakeRedis()
    q = RedisJobQueue("images", client=redis, visibility_timeout=0)
    enqueue_process(q, "abc")

    first = q.receive()
    second = q.receive()
    assert second.id == first.id
    assert second.receipt != first.receipt

    # The slow first receiver finishes after the message was handed out again.
    first.delete()

    assert len(redis.zsets[q.inflight_key]) == 1
    third = q.receive()
    assert third is not None
    assert third.body == {"id": "abc"}

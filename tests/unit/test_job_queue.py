"""Job payloads and the Redis ready, per-worker processing and failed lists."""
import json

import pytest

from src.gx_common.errors import UnknownJobError
from src.gx_pipeline.domain.jobs import Job
from src.gx_pipeline.infrastructure.queue import RedisJobQueue
from tests.fakes import FakeRedis


class TestJob:
    def test_settle_chain_payload(self) -> None:
        job = Job.settle_chain("b1", ["s1", "s2"])
        data = json.loads(job.to_json())
        assert data["kind"] == "settle_chain"
        assert data["matched_order_ids"] == ["s1", "s2"]
        assert Job.from_json(job.to_json()) == job

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(UnknownJobError):
            Job.from_json('{"kind": "reprice", "order_id": "1"}')

    def test_missing_job_id_gets_one(self) -> None:
        job = Job.from_json('{"kind": "discover", "order_id": "1"}')
        assert job.job_id


@pytest.fixture
def queue() -> RedisJobQueue:
    return RedisJobQueue(FakeRedis(), key="test:jobs", worker_id="w1")  # type: ignore[arg-type]


class TestRedisJobQueue:
    @pytest.mark.asyncio
    async def test_fifo_and_processing_list(self, queue: RedisJobQueue) -> None:
        first, second = Job.discover("1"), Job.discover("2")
        await queue.enqueue(first)
        await queue.enqueue(second)

        raw = await queue.dequeue(timeout=0)
        assert Job.from_json(raw).order_id == "1"  # type: ignore[arg-type]
        redis = queue._redis  # noqa: SLF001
        assert redis.lists["test:jobs:processing:w1"] == [raw]

        await queue.ack(raw)  # type: ignore[arg-type]
        assert redis.lists["test:jobs:processing:w1"] == []

    @pytest.mark.asyncio
    async def test_empty_dequeue_returns_none(self, queue: RedisJobQueue) -> None:
        assert await queue.dequeue(timeout=0) is None

    @pytest.mark.asyncio
    async def test_fail_records_context(self, queue: RedisJobQueue) -> None:
        await queue.enqueue(Job.discover("1"))
        raw = await queue.dequeue(timeout=0)
        await queue.fail(raw, {"error": "boom", "attempts": 3})  # type: ignore[arg-type]

        failed = await queue.list_failed()
        assert len(failed) == 1
        assert failed[0]["job"] == raw
        assert failed[0]["attempts"] == 3
        assert "failed_at" in failed[0]
        assert queue._redis.lists["test:jobs:processing:w1"] == []  # noqa: SLF001

    @pytest.mark.asyncio
    async def test_requeue_stale_keeps_oldest_first(self, queue: RedisJobQueue) -> None:
        await queue.register()
        await queue.enqueue(Job.discover("1"))
        await queue.enqueue(Job.discover("2"))
        await queue.dequeue(timeout=0)
        await queue.dequeue(timeout=0)
        await queue._redis.delete(queue.heartbeat_key)  # noqa: SLF001

        restarted = RedisJobQueue(queue._redis, key="test:jobs", worker_id="w2")  # noqa: SLF001
        assert await restarted.requeue_stale() == 2
        raw = await restarted.dequeue(timeout=0)
        assert Job.from_json(raw).order_id == "1"  # type: ignore[arg-type]
        assert "w1" not in await queue._redis.smembers(queue.workers_key)  # noqa: SLF001


class TestWorkerOwnership:
    @pytest.mark.asyncio
    async def test_live_worker_jobs_are_not_requeued(self) -> None:
        redis = FakeRedis()
        busy = RedisJobQueue(redis, key="jobs", worker_id="busy")  # type: ignore[arg-type]
        await busy.register()
        await busy.enqueue(Job.discover("1"))
        raw = await busy.dequeue(timeout=0)

        starting = RedisJobQueue(redis, key="jobs", worker_id="new")  # type: ignore[arg-type]
        await starting.register()
        assert await starting.requeue_stale() == 0
        assert await starting.dequeue(timeout=0) is None
        assert redis.lists["jobs:processing:busy"] == [raw]

    @pytest.mark.asyncio
    async def test_processing_lists_are_per_worker(self) -> None:
        redis = FakeRedis()
        a = RedisJobQueue(redis, key="jobs", worker_id="a")  # type: ignore[arg-type]
        b = RedisJobQueue(redis, key="jobs", worker_id="b")  # type: ignore[arg-type]
        await a.enqueue(Job.discover("1"))
        await a.enqueue(Job.discover("2"))

        raw_a = await a.dequeue(timeout=0)
        raw_b = await b.dequeue(timeout=0)

        assert redis.lists["jobs:processing:a"] == [raw_a]
        assert redis.lists["jobs:processing:b"] == [raw_b]

    @pytest.mark.asyncio
    async def test_register_sets_expiring_heartbeat(self) -> None:
        redis = FakeRedis()
        queue = RedisJobQueue(redis, key="jobs", worker_id="a", heartbeat_ttl=30)  # type: ignore[arg-type]
        await queue.register()
        assert redis.ttls["jobs:heartbeat:a"] == 30
        assert await redis.smembers("jobs:workers") == {"a"}

        await queue.unregister()
        assert await redis.exists("jobs:heartbeat:a") == 0
        assert await redis.smembers("jobs:workers") == set()

    @pytest.mark.asyncio
    async def test_dead_worker_with_empty_list_is_forgotten(self) -> None:
        redis = FakeRedis()
        dead = RedisJobQueue(redis, key="jobs", worker_id="dead")  # type: ignore[arg-type]
        await dead.register()
        await redis.delete(dead.heartbeat_key)

        live = RedisJobQueue(redis, key="jobs", worker_id="live")  # type: ignore[arg-type]
        assert await live.requeue_stale() == 0
        assert await redis.smembers("jobs:workers") == set()

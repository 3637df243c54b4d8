"""Worker: ack on success, failed list on error."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from src.gx_common.errors import OrderNotFoundError, SettlementFailedError
from src.gx_pipeline.domain.jobs import Job
from src.gx_pipeline.infrastructure.queue import RedisJobQueue
from src.gx_pipeline.worker import Worker, failure_context
from tests.fakes import FakeRedis


def _worker(pipeline: AsyncMock) -> tuple[Worker, RedisJobQueue]:
    queue = RedisJobQueue(FakeRedis(), key="w", worker_id="me")  # type: ignore[arg-type]
    return Worker(queue, pipeline, concurrency=1, poll_timeout=0), queue


class TestProcess:
    @pytest.mark.asyncio
    async def test_success_acks(self) -> None:
        pipeline = AsyncMock()
        worker, queue = _worker(pipeline)
        await queue.enqueue(Job.discover("1"))
        raw = await queue.dequeue(0)

        await worker.process(raw)  # type: ignore[arg-type]

        pipeline.handle.assert_awaited_once()
        assert queue._redis.lists["w:processing:me"] == []  # noqa: SLF001
        assert await queue.list_failed() == []

    @pytest.mark.asyncio
    async def test_failure_moves_to_failed_list(self) -> None:
        pipeline = AsyncMock()
        pipeline.handle.side_effect = SettlementFailedError("1", "2", 3, TimeoutError("t"))
        worker, queue = _worker(pipeline)
        await queue.enqueue(Job.settle_chain("1", ["2"]))
        raw = await queue.dequeue(0)

        await worker.process(raw)  # type: ignore[arg-type]

        failed = await queue.list_failed()
        assert failed[0]["new_order_id"] == "1"
        assert failed[0]["matched_order_id"] == "2"
        assert failed[0]["attempts"] == 3
        assert queue._redis.lists["w:processing:me"] == []  # noqa: SLF001

    @pytest.mark.asyncio
    async def test_malformed_payload_fails(self) -> None:
        pipeline = AsyncMock()
        worker, queue = _worker(pipeline)
        await worker.process("not json")
        pipeline.handle.assert_not_awaited()
        assert len(await queue.list_failed()) == 1


@pytest.mark.asyncio
async def test_run_requeues_dead_worker_jobs_and_stops() -> None:
    pipeline = AsyncMock()
    worker, queue = _worker(pipeline)
    crashed = RedisJobQueue(queue._redis, key="w", worker_id="crashed")  # noqa: SLF001
    await crashed.register()
    await crashed.enqueue(Job.discover("1"))
    await crashed.dequeue(0)
    await queue._redis.delete(crashed.heartbeat_key)  # noqa: SLF001
    pipeline.handle.side_effect = lambda job: worker.stop()

    await worker.run()

    pipeline.handle.assert_awaited_once()
    redis = queue._redis  # noqa: SLF001
    assert redis.lists["w:processing:crashed"] == []
    assert redis.lists["w:processing:me"] == []
    assert await redis.smembers("w:workers") == set()


@pytest.mark.asyncio
async def test_heartbeat_refreshes_until_stopped() -> None:
    worker, queue = _worker(AsyncMock())
    worker._heartbeat_interval = 0.01  # noqa: SLF001
    task = asyncio.create_task(worker._heartbeat())  # noqa: SLF001
    await asyncio.sleep(0.05)
    worker.stop()
    await task

    assert await queue._redis.exists(queue.heartbeat_key) == 1  # noqa: SLF001


def test_failure_context_for_app_error() -> None:
    ctx = failure_context(OrderNotFoundError("9"))
    assert ctx["code"] == 4004
    assert ctx["error_type"] == "OrderNotFoundError"

"""Settlement worker pool.

Run with: python -m src.gx_pipeline.worker
"""
import asyncio
import logging
import signal
from typing import Any

import uvloop

from config.settings import settings
from src.gx_clearing.domain.settlement import SettlementExecutor
from src.gx_clearing.infrastructure.ledger import Ledger
from src.gx_clearing.infrastructure.trades_writer import TradesWriter
from src.gx_common.database import async_session_factory, engine
from src.gx_common.errors import AppError, SettlementFailedError
from src.gx_common.redis_client import close_redis, get_redis
from src.gx_matching.application.service import get_order_matcher
from src.gx_order.infrastructure.persistence import OrderRepository
from src.gx_pipeline.application.chain import SettlementChain
from src.gx_pipeline.application.pipeline import MatchingPipeline
from src.gx_pipeline.domain.jobs import Job
from src.gx_pipeline.infrastructure.queue import RedisJobQueue

logger = logging.getLogger(__name__)


def failure_context(exc: BaseException) -> dict[str, Any]:
    """Fields recorded on the failed-jobs list for operators."""
    context: dict[str, Any] = {"error": repr(exc), "error_type": type(exc).__name__}
    if isinstance(exc, SettlementFailedError):
        context.update(
            new_order_id=exc.new_order_id,
            matched_order_id=exc.matched_order_id,
            attempts=exc.attempts,
            error=repr(exc.cause),
        )
    elif isinstance(exc, AppError):
        context["code"] = exc.code
    return context


class Worker:
    def __init__(
        self,
        queue: RedisJobQueue,
        pipeline: MatchingPipeline,
        concurrency: int | None = None,
        poll_timeout: float = 5.0,
    ) -> None:
        self._queue = queue
        self._pipeline = pipeline
        self._concurrency = concurrency or settings.WORKER_CONCURRENCY
        self._poll_timeout = poll_timeout
        self._heartbeat_interval = max(settings.WORKER_HEARTBEAT_TTL_SECONDS // 3, 1)
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    async def run(self) -> None:
        await self._queue.register()
        await self._queue.requeue_stale()
        logger.info(
            "Worker %s starting with %d consumers", self._queue.worker_id, self._concurrency
        )
        try:
            await asyncio.gather(
                self._heartbeat(),
                *(self._consume(n) for n in range(self._concurrency)),
            )
        finally:
            self.stop()
            await self._queue.unregister()
        logger.info("Worker %s stopped", self._queue.worker_id)

    async def _heartbeat(self) -> None:
        """Keep this worker's processing list owned while it runs."""
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._heartbeat_interval)
            except TimeoutError:
                await self._queue.heartbeat()

    async def _consume(self, consumer_no: int) -> None:
        while not self._stopping.is_set():
            raw = await self._queue.dequeue(self._poll_timeout)
            if raw is None:
                continue
            await self.process(raw, consumer_no)

    async def process(self, raw: str, consumer_no: int = 0) -> None:
        """Handle one raw payload; it ends up either acked or on the failed list."""
        try:
            job = Job.from_json(raw)
            logger.debug("Consumer %d picked %s job for order %s", consumer_no, job.kind, job.order_id)
            await self._pipeline.handle(job)
        except Exception as exc:
            context = failure_context(exc)
            logger.error("Job failed and moved to failed list: %s %s", raw, context)
            await self._queue.fail(raw, context)
        else:
            await self._queue.ack(raw)


def build_worker(queue: RedisJobQueue) -> Worker:
    repo = OrderRepository()
    matcher = get_order_matcher()
    executor = SettlementExecutor(matcher, repo, TradesWriter(), Ledger())
    chain = SettlementChain(executor, async_session_factory)
    pipeline = MatchingPipeline(matcher, repo, chain, queue, async_session_factory)
    return Worker(queue, pipeline)


async def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    worker = build_worker(RedisJobQueue(await get_redis()))
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)
    try:
        await worker.run()
    finally:
        await engine.dispose()
        await close_redis()


if __name__ == "__main__":
    uvloop.run(main())

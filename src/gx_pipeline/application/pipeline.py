"""MatchingPipeline: turns queue jobs into discovery and settlement work.

    discover       ->  find_matching_orders -> settle_chain job (or nothing)
    settle_chain   ->  SettlementChain.run

Discover jobs are queued by place_order once the order is committed.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.gx_common.enums import JobKind
from src.gx_common.errors import OrderNotFoundError, UnknownJobError
from src.gx_matching.engine.matcher import OrderMatcher
from src.gx_order.domain.repository import OrderRepositoryProtocol
from src.gx_pipeline.application.chain import ChainResult, SettlementChain
from src.gx_pipeline.domain.jobs import Job
from src.gx_pipeline.infrastructure.queue import JobQueueProtocol

logger = logging.getLogger(__name__)


class MatchingPipeline:
    def __init__(
        self,
        matcher: OrderMatcher,
        order_repo: OrderRepositoryProtocol,
        chain: SettlementChain,
        queue: JobQueueProtocol,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._matcher = matcher
        self._orders = order_repo
        self._chain = chain
        self._queue = queue
        self._session_factory = session_factory

    async def handle(self, job: Job) -> ChainResult | None:
        if job.kind == JobKind.DISCOVER.value:
            await self.discover(job.order_id)
            return None
        if job.kind == JobKind.SETTLE_CHAIN.value:
            result = await self._chain.run(job.order_id, job.matched_order_ids)
            if result.failure is not None:
                raise result.failure
            logger.info(
                "Settlement chain for order %s done: %d settled, %d skipped",
                job.order_id,
                result.trades_settled,
                len(result.outcomes) - result.trades_settled,
            )
            return result
        raise UnknownJobError(job.kind)

    async def discover(self, order_id: str) -> list[str]:
        """Find counter-orders and queue their settlement as one ordered chain."""
        async with self._session_factory() as db:
            order = await self._orders.get_by_id(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            if not order.is_active:
                logger.info(
                    "Discovery skipped for order %s: status=%s remaining=%d mg",
                    order.id,
                    order.status,
                    order.remaining_mg,
                )
                return []
            candidates = await self._matcher.find_matching_orders(order, db)

        if not candidates:
            logger.info("No match for order %s; resting at price %d", order_id, order.price_per_gram)
            return []

        matched_ids = [c.id for c in candidates]
        await self._queue.enqueue(Job.settle_chain(order_id, matched_ids))
        logger.info("Order %s matched %d candidates: %s", order_id, len(matched_ids), matched_ids)
        return matched_ids

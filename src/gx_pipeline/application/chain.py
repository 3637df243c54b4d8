"""SettlementChain: runs one discovery event's settlement tasks in order.

Each task gets up to max_attempts tries, each try in a fresh session and
transaction. A task that exhausts its tries stops the chain; tasks already
committed stay committed.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.gx_clearing.domain.models import SettlementOutcome
from src.gx_clearing.domain.settlement import SettlementExecutor
from src.gx_common.errors import SettlementFailedError

logger = logging.getLogger(__name__)


@dataclass
class ChainResult:
    order_id: str
    outcomes: list[SettlementOutcome] = field(default_factory=list)
    failure: SettlementFailedError | None = None
    abandoned: list[str] = field(default_factory=list)

    @property
    def trades_settled(self) -> int:
        return sum(1 for o in self.outcomes if o.settled)


class SettlementChain:
    def __init__(
        self,
        executor: SettlementExecutor,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int | None = None,
        backoff_seconds: Sequence[float] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._executor = executor
        self._session_factory = session_factory
        self._max_attempts = max_attempts or settings.SETTLEMENT_MAX_ATTEMPTS
        self._backoff = list(backoff_seconds or settings.SETTLEMENT_BACKOFF_SECONDS)
        self._sleep = sleep

    async def run(self, order_id: str, matched_order_ids: Sequence[str]) -> ChainResult:
        result = ChainResult(order_id=order_id)
        for index, matched_order_id in enumerate(matched_order_ids):
            try:
                outcome = await self.settle_with_retry(order_id, matched_order_id)
            except SettlementFailedError as exc:
                result.failure = exc
                result.abandoned = list(matched_order_ids[index + 1:])
                if result.abandoned:
                    logger.error(
                        "Settlement chain for order %s halted; %d tasks abandoned: %s",
                        order_id,
                        len(result.abandoned),
                        result.abandoned,
                    )
                break
            result.outcomes.append(outcome)
        return result

    async def settle_with_retry(self, order_id: str, matched_order_id: str) -> SettlementOutcome:
        for attempt in range(1, self._max_attempts + 1):
            try:
                async with self._session_factory() as db:
                    async with db.begin():
                        return await self._executor.settle(order_id, matched_order_id, db)
            except Exception as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "Order match processing failed: new_order=%s matched_order=%s "
                        "attempt=%d error=%r",
                        order_id,
                        matched_order_id,
                        attempt,
                        exc,
                        exc_info=exc,
                        extra={
                            "new_order_id": order_id,
                            "matched_order_id": matched_order_id,
                            "attempt": attempt,
                        },
                    )
                    raise SettlementFailedError(order_id, matched_order_id, attempt, exc) from exc
                delay = self._backoff[min(attempt - 1, len(self._backoff) - 1)]
                logger.warning(
                    "Order match attempt %d/%d failed (new_order=%s matched_order=%s): %r; "
                    "retrying in %ss",
                    attempt,
                    self._max_attempts,
                    order_id,
                    matched_order_id,
                    exc,
                    delay,
                )
                await self._sleep(delay)
        raise AssertionError("unreachable: loop returns or raises")

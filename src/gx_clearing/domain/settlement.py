"""SettlementExecutor: settles one (new order, matched order) pair.

The caller owns the outer transaction (one per attempt, see
gx_pipeline.application.chain). Everything written here commits or rolls
back together: trade row, both orders' fills, both ledgers.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.domain.models import SettlementOutcome
from src.gx_clearing.domain.repository import LedgerProtocol, TradeWriterProtocol
from src.gx_common.errors import OrderNotFoundError
from src.gx_common.id_generator import id_sort_key
from src.gx_matching.engine.matcher import OrderMatcher
from src.gx_order.domain.models import Order
from src.gx_order.domain.repository import OrderRepositoryProtocol

logger = logging.getLogger(__name__)


class SettlementExecutor:
    def __init__(
        self,
        matcher: OrderMatcher,
        order_repo: OrderRepositoryProtocol,
        trades_writer: TradeWriterProtocol,
        ledger: LedgerProtocol,
    ) -> None:
        self._matcher = matcher
        self._orders = order_repo
        self._trades = trades_writer
        self._ledger = ledger

    async def settle(
        self, new_order_id: str, matched_order_id: str, db: AsyncSession
    ) -> SettlementOutcome:
        new_order, matched_order = await self._lock_orders(new_order_id, matched_order_id, db)

        if not _still_matchable(new_order) or not _still_matchable(matched_order):
            logger.info(
                "Order match skipped - orders no longer valid: new_order=%s (%s, %d mg) "
                "matched_order=%s (%s, %d mg)",
                new_order.id, new_order.status, new_order.remaining_mg,
                matched_order.id, matched_order.status, matched_order.remaining_mg,
            )
            return SettlementOutcome(new_order_id, matched_order_id, skip_reason="orders_invalid")

        match = self._matcher.process_match(new_order, matched_order)
        if match is None:
            logger.info(
                "Order match skipped - no match result: new_order=%s matched_order=%s",
                new_order.id,
                matched_order.id,
            )
            return SettlementOutcome(new_order_id, matched_order_id, skip_reason="no_match")

        trade = await self._trades.write_trade(match, db)

        for order in (new_order, matched_order):
            order.apply_fill(match.amount_mg)
            await self._orders.update_fill(order, db)

        async with db.begin_nested():
            await self._ledger.apply_trade(trade, db)

        logger.info(
            "Trade %s settled: buy_order=%s sell_order=%s amount=%d mg price=%d fee=%d",
            trade.id,
            trade.buy_order_id,
            trade.sell_order_id,
            trade.amount_mg,
            trade.price_per_gram,
            trade.fee,
        )
        return SettlementOutcome(new_order_id, matched_order_id, trade=trade)

    async def _lock_orders(
        self, new_order_id: str, matched_order_id: str, db: AsyncSession
    ) -> tuple[Order, Order]:
        """Re-read both orders under FOR UPDATE, always in ascending id order."""
        locked: dict[str, Order] = {}
        for order_id in sorted({new_order_id, matched_order_id}, key=id_sort_key):
            order = await self._orders.get_for_update(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            locked[order_id] = order
        return locked[new_order_id], locked[matched_order_id]


def _still_matchable(order: Order) -> bool:
    # FILLED with remaining 0 is the normal end state; CANCELLED means the
    # owner withdrew it after discovery.
    return order.status not in ("FILLED", "CANCELLED") and (order.remaining_mg or 0) > 0

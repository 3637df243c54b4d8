"""OrderMatcher: candidate discovery and pairwise match computation.

Matching is exact-price only: a BUY at P meets SELLs at P, never better or
worse. Among candidates the oldest order wins (price-time priority).
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gx_clearing.domain.fee import FeeStrategy
from src.gx_common.enums import OrderSide
from src.gx_matching.domain.models import MatchResult
from src.gx_order.domain.models import Order
from src.gx_order.domain.repository import OrderRepositoryProtocol

logger = logging.getLogger(__name__)


class OrderMatcher:
    def __init__(
        self,
        fee_strategy: FeeStrategy,
        repo: OrderRepositoryProtocol,
        chunk_size: int | None = None,
    ) -> None:
        self._fee_strategy = fee_strategy
        self._repo = repo
        self._chunk_size = chunk_size or settings.MATCH_SCAN_CHUNK_SIZE

    async def find_matching_orders(self, order: Order, db: AsyncSession) -> list[Order]:
        """Oldest-first counter-orders whose remaining amounts cover order.remaining_mg.

        Candidates are included while the running total is still short of the
        requirement; the last included one may end up only partially consumed.
        """
        required = order.remaining_mg or 0
        if required <= 0:
            return []

        opposite = OrderSide(order.side).opposite.value
        accumulated = 0
        included: list[Order] = []
        after = None

        while accumulated < required:
            chunk = await self._repo.list_candidates(
                side=opposite,
                price_per_gram=order.price_per_gram,
                exclude_id=order.id,
                after=after,
                limit=self._chunk_size,
                db=db,
            )
            for candidate in chunk:
                if accumulated >= required:
                    break
                included.append(candidate)
                accumulated += candidate.remaining_mg or 0
            if len(chunk) < self._chunk_size:
                break
            last = chunk[-1]
            after = (last.created_at, last.id)

        logger.debug(
            "Discovery for order %s: %d candidates covering %d/%d mg",
            order.id,
            len(included),
            min(accumulated, required),
            required,
        )
        return sorted(included, key=lambda o: (o.created_at, o.id))

    def process_match(self, order_a: Order, order_b: Order) -> MatchResult | None:
        """Executable fill between two opposite-side orders at order_a's price.

        Returns None when nothing can be executed. Callers guarantee one BUY,
        one SELL and equal prices.
        """
        amount = min(order_a.remaining_mg or 0, order_b.remaining_mg or 0)
        if amount <= 0:
            return None

        buy_order = order_a if order_a.side == OrderSide.BUY.value else order_b
        sell_order = order_a if order_a.side == OrderSide.SELL.value else order_b
        price = order_a.price_per_gram

        return MatchResult(
            amount_mg=amount,
            buyer_id=buy_order.user_id,
            buy_order_id=buy_order.id,
            seller_id=sell_order.user_id,
            sell_order_id=sell_order.id,
            price_per_gram=price,
            fee=self._fee_strategy.calculate_fee(amount, price),
        )

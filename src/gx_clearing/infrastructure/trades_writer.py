"""Persist a single trade row to the trades table."""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.domain.models import Trade
from src.gx_common.datetime_utils import utc_now
from src.gx_common.enums import TradeStatus
from src.gx_common.id_generator import generate_id
from src.gx_matching.domain.models import MatchResult

_INSERT_TRADE_SQL = text("""
    INSERT INTO trades (
        id, buyer_id, seller_id,
        buy_order_id, sell_order_id,
        amount_mg, price_per_gram, fee,
        status, created_at
    ) VALUES (
        :id, :buyer_id, :seller_id,
        :buy_order_id, :sell_order_id,
        :amount_mg, :price_per_gram, :fee,
        :status, :created_at
    )
""")


class TradesWriter:
    async def write_trade(self, match: MatchResult, db: AsyncSession) -> Trade:
        """Insert one COMPLETED trade within the caller's transaction."""
        trade = Trade(
            id=generate_id(),
            buyer_id=match.buyer_id,
            seller_id=match.seller_id,
            buy_order_id=match.buy_order_id,
            sell_order_id=match.sell_order_id,
            amount_mg=match.amount_mg,
            price_per_gram=match.price_per_gram,
            fee=match.fee,
            status=TradeStatus.COMPLETED.value,
            created_at=utc_now(),
        )
        await db.execute(
            _INSERT_TRADE_SQL,
            {
                "id": trade.id,
                "buyer_id": trade.buyer_id,
                "seller_id": trade.seller_id,
                "buy_order_id": trade.buy_order_id,
                "sell_order_id": trade.sell_order_id,
                "amount_mg": trade.amount_mg,
                "price_per_gram": trade.price_per_gram,
                "fee": trade.fee,
                "status": trade.status,
                "created_at": trade.created_at,
            },
        )
        return trade

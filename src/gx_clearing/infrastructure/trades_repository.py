# src/gx_clearing/infrastructure/trades_repository.py
"""Read-only trades queries: user and order perspective."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_common.datetime_utils import to_iso
from src.gx_common.grams import mg_to_grams

_COLUMNS = """
    id, buyer_id, seller_id, buy_order_id, sell_order_id,
    amount_mg, price_per_gram, fee, status, created_at
"""

_LIST_BY_USER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM trades
    WHERE (buyer_id = :user_id OR seller_id = :user_id)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

# An order's trades hang off the foreign key matching its own side.
_LIST_BY_BUY_ORDER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM trades WHERE buy_order_id = :order_id
    ORDER BY created_at ASC, id ASC
""")

_LIST_BY_SELL_ORDER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM trades WHERE sell_order_id = :order_id
    ORDER BY created_at ASC, id ASC
""")


class TradesRepository:
    async def list_by_user(
        self,
        user_id: str,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[dict[str, Any]]:
        rows = (
            await db.execute(
                _LIST_BY_USER_SQL,
                {"user_id": user_id, "limit": limit, "cursor_id": cursor_id},
            )
        ).fetchall()
        return [_row_to_dict(r) for r in rows]

    async def list_by_order(
        self, order_id: str, side: str, db: AsyncSession
    ) -> list[dict[str, Any]]:
        """Trades of one order, oldest first, each tagged with the counterparty."""
        sql = _LIST_BY_BUY_ORDER_SQL if side == "BUY" else _LIST_BY_SELL_ORDER_SQL
        rows = (await db.execute(sql, {"order_id": order_id})).fetchall()
        trades = []
        for r in rows:
            item = _row_to_dict(r)
            item["counterparty_id"] = r.seller_id if side == "BUY" else r.buyer_id
            trades.append(item)
        return trades


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {
        "id": row.id,
        "buyer_id": row.buyer_id,
        "seller_id": row.seller_id,
        "buy_order_id": row.buy_order_id,
        "sell_order_id": row.sell_order_id,
        "amount_mg": row.amount_mg,
        "amount_gram": mg_to_grams(row.amount_mg),
        "price_per_gram": row.price_per_gram,
        "fee": row.fee,
        "status": row.status,
        "created_at": to_iso(row.created_at),
    }

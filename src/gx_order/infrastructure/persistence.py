# src/gx_order/infrastructure/persistence.py
"""OrderRepository: raw SQL persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_order.domain.models import Order

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, client_order_id, user_id, side,
        amount_mg, remaining_mg, price_per_gram, status, created_at, updated_at)
    VALUES (:id, :client_order_id, :user_id, :side,
        :amount_mg, :remaining_mg, :price_per_gram, :status, :created_at, :updated_at)
""")

_UPDATE_FILL_SQL = text("""
    UPDATE orders
    SET remaining_mg = :remaining_mg, status = :status, updated_at = NOW()
    WHERE id = :id
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE orders
    SET status = :status, updated_at = NOW()
    WHERE id = :id
""")

_SELECT_COLUMNS = """
    id, client_order_id, user_id, side,
    amount_mg, remaining_mg, price_per_gram, status, created_at, updated_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
    FOR UPDATE
""")

_GET_ORDER_BY_CLIENT_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE client_order_id = :client_order_id AND user_id = :user_id
""")

# Price-time priority at one price level. Keyset pagination on (created_at, id)
# keeps each chunk bounded no matter how many resting orders exist.
_CANDIDATES_FIRST_CHUNK_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE side = :side
      AND price_per_gram = :price_per_gram
      AND remaining_mg > 0
      AND status IN ('OPEN', 'PARTIAL')
      AND id <> :exclude_id
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
""")

_CANDIDATES_NEXT_CHUNK_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE side = :side
      AND price_per_gram = :price_per_gram
      AND remaining_mg > 0
      AND status IN ('OPEN', 'PARTIAL')
      AND id <> :exclude_id
      AND (created_at, id) > (:after_created_at, :after_id)
    ORDER BY created_at ASC, id ASC
    LIMIT :limit
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
      AND (CAST(:statuses_csv AS TEXT) IS NULL
           OR status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ',')))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        client_order_id=row.client_order_id,
        user_id=row.user_id,
        side=row.side,
        amount_mg=row.amount_mg,
        remaining_mg=row.remaining_mg,
        price_per_gram=row.price_per_gram,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "client_order_id": order.client_order_id,
                "user_id": order.user_id,
                "side": order.side,
                "amount_mg": order.amount_mg,
                "remaining_mg": order.remaining_mg,
                "price_per_gram": order.price_per_gram,
                "status": order.status,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            },
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_for_update(self, order_id: str, db: AsyncSession) -> Order | None:
        """Row-locked read; the lock lives until the caller's transaction ends."""
        result = await db.execute(_GET_ORDER_FOR_UPDATE_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def get_by_client_order_id(
        self, client_order_id: str, user_id: str, db: AsyncSession
    ) -> Order | None:
        result = await db.execute(
            _GET_ORDER_BY_CLIENT_ID_SQL,
            {"client_order_id": client_order_id, "user_id": user_id},
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def update_fill(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            _UPDATE_FILL_SQL,
            {
                "id": order.id,
                "remaining_mg": order.remaining_mg,
                "status": order.status,
            },
        )

    async def update_status(self, order: Order, db: AsyncSession) -> None:
        await db.execute(_UPDATE_STATUS_SQL, {"id": order.id, "status": order.status})

    async def list_candidates(
        self,
        side: str,
        price_per_gram: int,
        exclude_id: str,
        after: tuple[datetime, str] | None,
        limit: int,
        db: AsyncSession,
    ) -> list[Order]:
        params: dict[str, Any] = {
            "side": side,
            "price_per_gram": price_per_gram,
            "exclude_id": exclude_id,
            "limit": limit,
        }
        if after is None:
            result = await db.execute(_CANDIDATES_FIRST_CHUNK_SQL, params)
        else:
            params["after_created_at"], params["after_id"] = after
            result = await db.execute(_CANDIDATES_NEXT_CHUNK_SQL, params)
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_by_user(
        self,
        user_id: str,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        statuses_csv = ",".join(statuses) if statuses else None
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "limit": limit,
                "statuses_csv": statuses_csv,
            },
        )
        rows = result.fetchall()
        return [_row_to_order(row) for row in rows]

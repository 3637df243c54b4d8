"""AccountRepository: account rows and the ledger journal.

Balances are only ever changed by the settlement path
(gx_clearing.infrastructure.ledger). This repository creates empty accounts
and reads.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_account.domain.models import Account, LedgerEntry

_ENSURE_ACCOUNT_SQL = text("""
    INSERT INTO accounts (user_id, balance_currency, balance_commodity_mg)
    VALUES (:user_id, 0, 0)
    ON CONFLICT (user_id) DO NOTHING
""")

_GET_ACCOUNT_SQL = text("""
    SELECT user_id, balance_currency, balance_commodity_mg, version, created_at, updated_at
    FROM accounts
    WHERE user_id = :user_id
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, asset, amount, balance_after,
           reference_type, reference_id, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        user_id=row.user_id,
        balance_currency=row.balance_currency,
        balance_commodity_mg=row.balance_commodity_mg,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        asset=row.asset,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        created_at=row.created_at,
    )


class AccountRepository:
    async def ensure_account(self, db: AsyncSession, user_id: str) -> None:
        """Idempotent: creates a zero-balance account on first use."""
        await db.execute(_ENSURE_ACCOUNT_SQL, {"user_id": user_id})

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {"user_id": user_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

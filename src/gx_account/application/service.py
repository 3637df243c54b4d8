"""Account read service."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_account.application.schemas import (
    BalanceResponse,
    LedgerEntryResponse,
    LedgerListResponse,
)
from src.gx_account.infrastructure.persistence import AccountRepository
from src.gx_common.errors import AccountNotFoundError
from src.gx_common.grams import mg_to_display, mg_to_grams

_repo = AccountRepository()


async def get_balance(user_id: str, db: AsyncSession) -> BalanceResponse:
    account = await _repo.get_account_by_user_id(db, user_id)
    if account is None:
        raise AccountNotFoundError(user_id)
    return BalanceResponse(
        user_id=account.user_id,
        balance_currency=account.balance_currency,
        balance_commodity_gram=mg_to_grams(account.balance_commodity_mg),
        balance_commodity_display=mg_to_display(account.balance_commodity_mg),
    )


async def list_ledger(
    user_id: str, cursor: int | None, limit: int, db: AsyncSession
) -> LedgerListResponse:
    entries = await _repo.list_ledger_entries(db, user_id, cursor, limit + 1)
    has_more = len(entries) > limit
    if has_more:
        entries = entries[:limit]
    return LedgerListResponse(
        items=[
            LedgerEntryResponse(
                id=e.id,
                entry_type=e.entry_type,
                asset=e.asset,
                amount=e.amount,
                balance_after=e.balance_after,
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                created_at=e.created_at,
            )
            for e in entries
        ],
        has_more=has_more,
        next_cursor=str(entries[-1].id) if has_more and entries else None,
    )

"""Pydantic schemas for account API."""

from datetime import datetime

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    user_id: str
    balance_currency: int
    balance_commodity_gram: float
    balance_commodity_display: str


class LedgerEntryResponse(BaseModel):
    id: int
    entry_type: str
    asset: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    created_at: datetime | None


class LedgerListResponse(BaseModel):
    items: list[LedgerEntryResponse]
    has_more: bool
    next_cursor: str | None

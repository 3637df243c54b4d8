"""Domain models for gx_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    user_id: str
    balance_currency: int       # rial
    balance_commodity_mg: int   # gold, milligrams
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    asset: str                       # CURRENCY / COMMODITY
    amount: int                      # signed; rial or mg depending on asset
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None

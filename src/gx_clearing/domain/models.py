"""Clearing domain models: pure dataclasses."""
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Trade:
    """One settled fill between a buy order and a sell order. Immutable once written."""

    id: str
    buyer_id: str
    seller_id: str
    buy_order_id: str
    sell_order_id: str
    amount_mg: int
    price_per_gram: int
    fee: int
    status: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class SettlementOutcome:
    """Terminal result of one settlement task that did not raise."""

    new_order_id: str
    matched_order_id: str
    trade: Trade | None = None
    skip_reason: str | None = None

    @property
    def settled(self) -> bool:
        return self.trade is not None

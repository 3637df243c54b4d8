"""Order domain model: pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

_ACTIVE_STATUSES = ("OPEN", "PARTIAL")


@dataclass
class Order:
    id: str
    user_id: str
    side: str  # BUY / SELL
    amount_mg: int  # original size, milligrams
    price_per_gram: int  # rial per gram
    remaining_mg: int | None = None  # defaults to amount_mg on creation
    status: str = "OPEN"
    client_order_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.remaining_mg is None:
            self.remaining_mg = self.amount_mg

    @property
    def filled_mg(self) -> int:
        return self.amount_mg - (self.remaining_mg or 0)

    @property
    def is_active(self) -> bool:
        return self.status in _ACTIVE_STATUSES and (self.remaining_mg or 0) > 0

    @property
    def is_cancellable(self) -> bool:
        return self.status in _ACTIVE_STATUSES

    def apply_fill(self, amount_mg: int) -> None:
        """Decrement remaining and re-derive status: remaining <= 0 is FILLED."""
        self.remaining_mg = (self.remaining_mg or 0) - amount_mg
        if self.remaining_mg <= 0:
            self.remaining_mg = 0
            self.status = "FILLED"
        else:
            self.status = "PARTIAL"

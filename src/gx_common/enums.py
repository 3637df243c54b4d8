"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class OrderStatus(str, Enum):
    OPEN = "OPEN"
    PARTIAL = "PARTIAL"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


class TradeStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class LedgerAsset(str, Enum):
    CURRENCY = "CURRENCY"
    COMMODITY = "COMMODITY"


class LedgerEntryType(str, Enum):
    # Buyer side of a trade
    BUY_PAYMENT = "BUY_PAYMENT"      # currency out: notional + fee
    BUY_RECEIPT = "BUY_RECEIPT"      # commodity in
    # Seller side of a trade
    SELL_RECEIPT = "SELL_RECEIPT"    # currency in: notional - fee
    SELL_DELIVERY = "SELL_DELIVERY"  # commodity out


class JobKind(str, Enum):
    DISCOVER = "discover"
    SETTLE_CHAIN = "settle_chain"

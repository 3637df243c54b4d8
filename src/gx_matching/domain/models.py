from dataclasses import dataclass


@dataclass(frozen=True)
class MatchResult:
    """Executable fill for one (buy, sell) pair, passed from matching to clearing."""

    amount_mg: int
    buyer_id: str
    buy_order_id: str
    seller_id: str
    sell_order_id: str
    price_per_gram: int
    fee: int  # rial, charged to each side

# src/gx_clearing/application/schemas.py
from pydantic import BaseModel


class TradeResponse(BaseModel):
    id: str
    buyer_id: str
    seller_id: str
    buy_order_id: str
    sell_order_id: str
    amount_mg: int
    amount_gram: float
    price_per_gram: int
    fee: int
    status: str
    created_at: str | None = None
    counterparty_id: str | None = None


class TradeListResponse(BaseModel):
    items: list[TradeResponse]
    next_cursor: str | None
    has_more: bool

# src/gx_order/application/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.gx_clearing.application.schemas import TradeResponse
from src.gx_common.grams import grams_to_mg


class PlaceOrderRequest(BaseModel):
    side: Literal["BUY", "SELL"]
    amount: Decimal = Field(gt=0, description="Grams, at most 3 decimals")
    price_per_gram: int = Field(ge=1, description="Rial per gram")
    client_order_id: str | None = Field(None, max_length=64)

    @field_validator("amount")
    @classmethod
    def milligram_precision(cls, v: Decimal) -> Decimal:
        grams_to_mg(v)  # raises ValueError past 3 decimals
        return v

    @field_validator("client_order_id")
    @classmethod
    def no_whitespace(cls, v: str | None) -> str | None:
        if v is not None and (not v or v != v.strip() or " " in v):
            raise ValueError("client_order_id must not contain whitespace")
        return v

    @property
    def amount_mg(self) -> int:
        return grams_to_mg(self.amount)


class OrderResponse(BaseModel):
    id: str
    client_order_id: str | None
    side: str
    amount_gram: float
    remaining_gram: float
    filled_gram: float
    amount_mg: int
    remaining_mg: int
    price_per_gram: int
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderDetailResponse(OrderResponse):
    trades: list[TradeResponse]


class CancelOrderResponse(BaseModel):
    order_id: str
    status: str
    remaining_gram_cancelled: float


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool

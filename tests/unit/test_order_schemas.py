from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.gx_order.application.schemas import PlaceOrderRequest


def test_valid_request() -> None:
    req = PlaceOrderRequest(side="SELL", amount="0.001", price_per_gram=1)  # type: ignore[arg-type]
    assert req.amount_mg == 1


@pytest.mark.parametrize("payload", [
    {"side": "BUY", "amount": "0", "price_per_gram": 10},
    {"side": "BUY", "amount": "-1", "price_per_gram": 10},
    {"side": "BUY", "amount": "10.0001", "price_per_gram": 10},
    {"side": "BUY", "amount": "1", "price_per_gram": 0},
    {"side": "HOLD", "amount": "1", "price_per_gram": 10},
    {"side": "BUY", "amount": "1", "price_per_gram": 10, "client_order_id": "a b"},
])
def test_invalid_requests(payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        PlaceOrderRequest(**payload)  # type: ignore[arg-type]


def test_client_order_id_optional() -> None:
    req = PlaceOrderRequest(side="BUY", amount=Decimal("1"), price_per_gram=10)
    assert req.client_order_id is None

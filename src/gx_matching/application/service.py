# src/gx_matching/application/service.py
from src.gx_clearing.domain.fee import build_fee_strategy
from src.gx_matching.engine.matcher import OrderMatcher
from src.gx_order.infrastructure.persistence import OrderRepository

_matcher: OrderMatcher | None = None


def get_order_matcher() -> OrderMatcher:
    """Process-wide matcher; the fee strategy is fixed at first use."""
    global _matcher  # noqa: PLW0603
    if _matcher is None:
        _matcher = OrderMatcher(build_fee_strategy(), OrderRepository())
    return _matcher

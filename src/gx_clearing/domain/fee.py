"""Fee strategies: pure functions of (amount, price), selected at startup.

All arithmetic is exact integer math on milligrams and rial. The fee rate is
applied to the unrounded notional (amount_mg * price / 1000) and the result
rounded once.
"""
from typing import Protocol

from config.settings import settings
from src.gx_common.grams import MG_PER_GRAM, round_half_up_div

_BPS_DENOMINATOR = 10_000


class FeeStrategy(Protocol):
    def calculate_fee(self, amount_mg: int, price_per_gram: int) -> int: ...


def _clamp(fee: int, min_fee: int, max_fee: int) -> int:
    return max(min_fee, min(max_fee, fee))


class TieredFeeStrategy:
    """Rate by trade size: <=1 g 2.0%, <=10 g 1.5%, above 1.0%.

    Rounding is half-up to the nearest rial, then clamped to [min_fee, max_fee].
    """

    # (upper bound in mg inclusive, rate in bps); None = no upper bound
    TIERS: tuple[tuple[int | None, int], ...] = (
        (1 * MG_PER_GRAM, 200),
        (10 * MG_PER_GRAM, 150),
        (None, 100),
    )

    def __init__(self, min_fee: int, max_fee: int) -> None:
        if min_fee > max_fee:
            raise ValueError(f"min_fee {min_fee} exceeds max_fee {max_fee}")
        self.min_fee = min_fee
        self.max_fee = max_fee

    def rate_bps(self, amount_mg: int) -> int:
        for upper, bps in self.TIERS:
            if upper is None or amount_mg <= upper:
                return bps
        raise AssertionError("unreachable: last tier is unbounded")

    def calculate_fee(self, amount_mg: int, price_per_gram: int) -> int:
        bps = self.rate_bps(amount_mg)
        raw = round_half_up_div(
            amount_mg * price_per_gram * bps, MG_PER_GRAM * _BPS_DENOMINATOR
        )
        return _clamp(raw, self.min_fee, self.max_fee)


class FlatFeeStrategy:
    """Single rate for every size; ceiling division so the platform never loses."""

    def __init__(self, fee_bps: int, min_fee: int, max_fee: int) -> None:
        if min_fee > max_fee:
            raise ValueError(f"min_fee {min_fee} exceeds max_fee {max_fee}")
        self.fee_bps = fee_bps
        self.min_fee = min_fee
        self.max_fee = max_fee

    def calculate_fee(self, amount_mg: int, price_per_gram: int) -> int:
        denominator = MG_PER_GRAM * _BPS_DENOMINATOR
        numerator = amount_mg * price_per_gram * self.fee_bps
        raw = (numerator + denominator - 1) // denominator
        return _clamp(raw, self.min_fee, self.max_fee)


def build_fee_strategy(
    name: str | None = None,
    min_fee: int | None = None,
    max_fee: int | None = None,
) -> FeeStrategy:
    """Instantiate the configured strategy. Called once at process start."""
    name = name or settings.FEE_STRATEGY
    min_fee = settings.FEE_MIN if min_fee is None else min_fee
    max_fee = settings.FEE_MAX if max_fee is None else max_fee
    if name == "tiered":
        return TieredFeeStrategy(min_fee=min_fee, max_fee=max_fee)
    if name == "flat":
        return FlatFeeStrategy(settings.FEE_FLAT_BPS, min_fee=min_fee, max_fee=max_fee)
    raise ValueError(f"Unknown fee strategy: {name}")

"""Fixed-point helpers for gold quantities and money.

Gold is stored as int milligrams (3 decimals of a gram). Money is int rial.
No float in the core; floats only appear in API response views.
"""

from decimal import Decimal

MG_PER_GRAM = 1000


def grams_to_mg(grams: Decimal | str | int) -> int:
    """Convert a gram quantity with at most 3 decimals to milligrams.

    Raises ValueError on finer precision instead of silently rounding.
    """
    value = Decimal(str(grams)) * MG_PER_GRAM
    if value != value.to_integral_value():
        raise ValueError(f"Amount must have at most 3 decimals, got {grams}")
    return int(value)


def mg_to_grams(mg: int) -> float:
    """Float view for API responses: 10500 -> 10.5."""
    return mg / MG_PER_GRAM


def mg_to_display(mg: int) -> str:
    """Display string: 10500 -> '10.500 g', -250 -> '-0.250 g'."""
    sign = "-" if mg < 0 else ""
    abs_mg = abs(mg)
    return f"{sign}{abs_mg // MG_PER_GRAM:,}.{abs_mg % MG_PER_GRAM:03d} g"


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Nearest-integer division of non-negative ints, ties away from zero."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def calc_notional(amount_mg: int, price_per_gram: int) -> int:
    """Trade value in rial: amount (mg) x price (rial/g), rounded half-up."""
    return round_half_up_div(amount_mg * price_per_gram, MG_PER_GRAM)

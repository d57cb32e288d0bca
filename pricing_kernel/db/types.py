"""
Decimal helpers shared by the engines and the persistence layer.

Monetary amounts are ALWAYS Decimal.  Rounding happens exactly once, when a
value is presented; intermediate figures keep full precision.
"""

from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Context, Decimal

# Presented currency values: two places.
CURRENCY_PLACES = 2
# Presented percentages (rates, effective margin): up to two places.
PERCENT_PLACES = 2

HUNDRED = Decimal("100")

# Engines compute under this context regardless of the caller's, so the
# same inputs give the same digits in every process.
CALCULATION_CONTEXT = Context(prec=34, rounding=ROUND_HALF_EVEN)


def round_money(
    value: Decimal,
    decimal_places: int = CURRENCY_PLACES,
    rounding: str = ROUND_HALF_UP,
) -> Decimal:
    """
    Round a monetary value to the specified decimal places.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places (default 2 for BRL).
        rounding: Rounding mode (default ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def round_percent(value: Decimal) -> Decimal:
    return round_money(value, PERCENT_PLACES)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """``amount * percent / 100`` without intermediate rounding."""
    return amount * percent / HUNDRED


def money_from_int(value: int, decimal_places: int = CURRENCY_PLACES) -> Decimal:
    """Convert an integer of minor units (centavos) to Decimal."""
    return Decimal(value) / (Decimal(10) ** decimal_places)

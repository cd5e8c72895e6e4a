"""
Value Objects - Immutable Domain Concepts

Money in this domain is a plain Decimal in a single currency.

CRITICAL: Never use float for money.
    0.1 + 0.2 == 0.30000000000000004  # 💥
    Decimal("0.1") + Decimal("0.2") == Decimal("0.3")  # ✓
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict, Field

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Coerce a caller-supplied amount to Decimal.

    Floats go through str() so 12.345 becomes Decimal("12.345"),
    not Decimal(12.3449999999999997513100424...).

    Input that is not a number becomes NaN. Range rules check
    is_finite() first, so it comes back as an Error value.
    """
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("NaN")


def has_at_most_two_decimals(value: Decimal) -> bool:
    """Rounding to 2 fractional digits must give back the original value."""
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP) == value
    except InvalidOperation:
        return False


class CartLimits(BaseModel):
    """
    Aggregate-level limits of a shopping cart.

    Defaults are the production limits; the application layer may build
    another instance from configuration.
    """

    max_items_count: int = Field(default=50, gt=0)
    max_total_quantity: int = Field(default=999, gt=0)
    max_total_price: Decimal = Field(default=Decimal("1000000"), gt=0)

    model_config = ConfigDict(frozen=True)

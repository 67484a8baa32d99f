"""Cent rounding and euro conversion."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("1")
EURO_PRECISION = Decimal("0.01")


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    """Convert to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_cents(amount: Decimal | int) -> int:
    """Round a cent amount to a whole cent (half-up)."""
    return int(to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def cents_to_euros(cents: int) -> Decimal:
    """Exact two-decimal euro amount for an integer cent amount."""
    return (Decimal(cents) / 100).quantize(EURO_PRECISION)


def euros_to_cents(euros: int | float | str | Decimal) -> int:
    return round_cents(to_decimal(euros) * 100)

"""
Money conversion. Amounts arrive in currency units and are stored in cents.
"""

from decimal import ROUND_HALF_UP, Decimal


def to_cents(amount: float | int | str | Decimal) -> int:
    """Currency units to integer cents, rounding half away from zero."""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def unit_price_cents(line_total: float | int | Decimal, quantity: int) -> int:
    """Per-unit price in cents of a line whose total is ``line_total``."""
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    value = Decimal(str(line_total)) * 100 / quantity
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

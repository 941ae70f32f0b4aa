from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_inr(value) -> str:
    amount = to_money(value)
    if amount == amount.to_integral_value():
        return f"₹{amount:,.0f}"
    return f"₹{amount:,.2f}"

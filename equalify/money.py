"""Money helpers.

Amounts travel through the API as ``Decimal`` with two places and are stored
as integer cents so that balance updates can be plain integer arithmetic at
the database.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any
from equalify.errors import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# sums of explicit shares may differ from the expense amount by this much
TOLERANCE = Decimal("0.01")
# largest single amount accepted; keeps every counter far inside a 64-bit column
MAX_AMOUNT = Decimal("1000000000.00")


def to_money(value: Any) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, (Decimal, int, str)):
        raise ValueError(f"Cannot convert {value!r} to money")
    try:
        money = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"{value} is not a usable amount", amount=str(value)) from None
    if not money.is_finite():
        raise InvalidAmount(f"{value} is not a usable amount", amount=str(value))
    return money


def require_amount(value: Any, label: str = "Amount") -> Decimal:
    """``value`` as money, rejected unless it is above zero and within MAX_AMOUNT."""
    amount = to_money(value)
    if amount <= ZERO:
        raise InvalidAmount(f"{label} must be greater than zero", amount=amount)
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"{label} exceeds the maximum of {MAX_AMOUNT}", amount=amount)
    return amount


def to_cents(value: Any) -> int:
    return int(to_money(value) / CENT)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


def amounts_close(a: Decimal, b: Decimal, tolerance: Decimal = TOLERANCE) -> bool:
    return abs(a - b) <= tolerance

"""
Tillpoint Core Primitives — Money
===================================
Decimal helpers shared by cart and promotion pricing.

Doctrine:
- Amounts are Decimal, never float.
- Inputs are converted through str() so 25.5 becomes Decimal('25.5'),
  not its binary approximation.
- Rounding is ROUND_HALF_UP (midpoint away from zero for the
  non-negative amounts priced here), 2 places by default.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

MoneyInput = Union[Decimal, int, float, str]

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
CURRENCY_PLACES = 2


def to_money(value: MoneyInput) -> Decimal:
    """Convert a numeric input to Decimal without float artefacts."""
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary amount.")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Monetary amount must be finite: {value!r}")
    return result


def round_currency(value: Decimal, places: int = CURRENCY_PLACES) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return round_currency(sum(values, ZERO))


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole as a rounded percentage; 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return round_currency(part / whole * HUNDRED)

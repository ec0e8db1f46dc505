"""
SharedBooks - Money Helpers
===========================
All amounts are decimal.Decimal. Floats are refused outright: a float
that reaches a balance is a bug, not a rounding choice.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

ZERO = Decimal("0")

# Stored precision of every money column.
MONEY_PLACES = 2

MoneyInput = Union[Decimal, int, str]


def to_decimal(value: MoneyInput, *, field_name: str = "amount") -> Decimal:
    """Coerce an int, numeric string or Decimal into a finite Decimal."""
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be Decimal, int or str, got bool.")
    if isinstance(value, float):
        raise TypeError(
            f"{field_name} must not be a float. "
            f"Pass Decimal or a numeric string."
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation as exc:
            raise ValueError(f"{field_name} is not a valid number: {value!r}.") from exc
    else:
        raise TypeError(
            f"{field_name} must be Decimal, int or str, "
            f"got {type(value).__name__}."
        )
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got {value!r}.")
    return result


def check_places(
    value: Decimal,
    places: int = MONEY_PLACES,
    *,
    field_name: str = "amount",
) -> Decimal:
    """Refuse a Decimal carrying more fractional digits than ``places``."""
    if value.normalize().as_tuple().exponent < -places:
        raise ValueError(
            f"{field_name} has more than {places} decimal places: {value!r}."
        )
    return value


def money_str(value: Decimal) -> str:
    return format(value, "f")

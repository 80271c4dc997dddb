"""
Module: billing_kernel.db.types
Responsibility: Annotated type aliases and the sanctioned rounding functions
    for hours and monetary amounts.
Architecture position: Kernel > DB.  May be imported by every other layer,
    including the pure engines.  MUST NOT import from any of them.

Invariants enforced:
    - round_money() is the ONLY sanctioned rounding function for monetary
      values; round_hours() is its counterpart for hour quantities.  Both use
      ROUND_HALF_UP to two decimal places.
    - No floats.  Every hour and money quantity is a Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

# Monetary amount, 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Hour quantity, same storage precision as money
Hours = Annotated[Decimal, Numeric(38, 9)]

# SHA-256 hash as hex string (64 characters)
PayloadHash = Annotated[str, String(64)]

# Short identifier strings
ShortCode = Annotated[str, String(50)]

MONEY_DECIMAL_PLACES = 2
HOURS_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value, field: str = "value") -> Decimal:
    """
    Coerce an int, str or Decimal into a Decimal.

    Floats are converted through ``str()`` so that ``0.1`` becomes
    ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        ValueError: If the value cannot be read as a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"{field} must be a number, got {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"{field} must be a number, got {value!r}") from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValueError(f"{field} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field} must be finite, got {value!r}")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for money.  Callers round
    once, at the end of a computation, never per intermediate term.
    """
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def round_hours(value: Decimal) -> Decimal:
    """Round an hour quantity to two decimal places (half-up)."""
    return round_money(value, HOURS_DECIMAL_PLACES)

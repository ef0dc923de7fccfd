"""
Fixed-point money helpers.

Every monetary amount in the system is a ``Decimal`` quantized to cents with
ROUND_HALF_UP. Floats are converted through ``str()`` so binary representation
error never reaches a ledger value.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")
RATE_PLACES = Decimal("0.000001")
ZERO = Decimal("0.00")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Raises:
        ValueError: if the value is None or not numeric
    """
    if value is None:
        raise ValueError("Cannot convert None to Decimal")
    if isinstance(value, bool):
        raise ValueError("Booleans are not monetary values")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"Not a numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite value: {value!r}")
    return result


def money(value: Numeric) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def rate(value: Numeric) -> Decimal:
    """Round a rate (fraction, 0.25 == 25%) to six places."""
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def to_scaled_int(value: Numeric, places: int) -> int:
    """Scale to an integer count of the smallest unit (cents for places=2)."""
    quantum = Decimal(1).scaleb(-places)
    return int(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP).scaleb(places))


def from_scaled_int(value: int, places: int) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(int(value)).scaleb(-places).quantize(quantum)


def format_money(value: Optional[Numeric]) -> Optional[str]:
    """Serialize to a plain string ("1234.50") for JSON payloads."""
    if value is None:
        return None
    return str(money(value))

"""
Column types for fixed-point values.

Amounts are persisted as scaled integers (cents for money) so that every
backend round-trips them exactly; the ORM hands Decimals back to callers.
"""

from decimal import Decimal
from sqlalchemy.types import TypeDecorator, BigInteger
from asset_lifecycle.utils.money import to_scaled_int, from_scaled_int


class ScaledDecimal(TypeDecorator):
    impl = BigInteger
    cache_ok = True

    def __init__(self, places: int = 2, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.places = places

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_scaled_int(value, self.places)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return from_scaled_int(value, self.places)

    @property
    def python_type(self):
        return Decimal


class Money(ScaledDecimal):
    """Two-place currency amount stored as integer cents."""
    cache_ok = True

    def __init__(self, *args, **kwargs):
        super().__init__(2, *args, **kwargs)


class Rate(ScaledDecimal):
    """Six-place fraction (0.250000 == 25%)."""
    cache_ok = True

    def __init__(self, *args, **kwargs):
        super().__init__(6, *args, **kwargs)

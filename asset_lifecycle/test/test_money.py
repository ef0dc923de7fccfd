from decimal import Decimal

import pytest

from asset_lifecycle.utils.money import format_money, from_scaled_int, money, rate, to_decimal, to_scaled_int


def test_money_rounds_half_up():
    assert money('2.345') == Decimal('2.35')
    assert money('-2.345') == Decimal('-2.35')


def test_floats_go_through_str():
    assert money(0.1 + 0.2) == Decimal('0.30')
    assert to_decimal(1.1) == Decimal('1.1')


@pytest.mark.parametrize('value', [None, True, 'abc', 'NaN', 'Infinity', object()])
def test_to_decimal_rejects_non_numeric(value):
    with pytest.raises(ValueError):
        to_decimal(value)


def test_scaled_storage():
    assert to_scaled_int('1234.56', 2) == 123456
    assert from_scaled_int(123456, 2) == Decimal('1234.56')
    assert to_scaled_int('0.245', 6) == 245000


def test_rate_precision():
    assert rate('0.2') == Decimal('0.200000')


def test_format_money():
    assert format_money(Decimal('5')) == '5.00'
    assert format_money(None) is None

"""
Depreciation Calculator

Pure functions over anything that exposes the asset's depreciation terms (the
ORM ``Asset`` or a ``DepreciationTerms`` value). Nothing here touches the
database.

Methods:
    STRAIGHT_LINE          (purchase - salvage) / useful_life_months
    DECLINING_BALANCE      current_book_value * rate / 12
    UNITS_OF_PRODUCTION    (purchase - salvage) / total_expected_units * units_in_period
    SUM_OF_YEARS_DIGITS    (purchase - salvage) * remaining_years / SYD(total_years) / 12

Each period amount is rounded to cents. The result is then clamped so the book
value never drops below salvage. For straight-line and sum-of-years-digits the
period that completes the useful life posts whatever remains above salvage, so a
full life sums to exactly ``purchase - salvage``. Declining balance has no such
true-up: it follows the rate until the salvage clamp stops it.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from asset_lifecycle.data.core.enums import DepreciationMethod
from asset_lifecycle.buisness.core.errors import CalculationError, ValidationError
from asset_lifecycle.utils.money import ZERO, money, to_decimal

MONTHS_PER_YEAR = 12

TIME_BASED_METHODS = frozenset({
    DepreciationMethod.STRAIGHT_LINE,
    DepreciationMethod.DECLINING_BALANCE,
    DepreciationMethod.SUM_OF_YEARS_DIGITS,
})

# Methods whose last scheduled period absorbs the cent rounding of the earlier ones
TRUE_UP_METHODS = frozenset({
    DepreciationMethod.STRAIGHT_LINE,
    DepreciationMethod.SUM_OF_YEARS_DIGITS,
})

# Projection cap for usage-based schedules, which have no natural end date
MAX_USAGE_SCHEDULE_PERIODS = 600


@dataclass(frozen=True)
class DepreciationTerms:
    purchase_price: Decimal
    salvage_value: Decimal
    current_book_value: Decimal
    depreciation_method: DepreciationMethod
    useful_life_months: Optional[int] = None
    depreciation_rate: Optional[Decimal] = None
    total_expected_units: Optional[int] = None
    depreciation_periods_posted: int = 0
    asset_id: Optional[int] = None

    @classmethod
    def from_source(cls, source) -> 'DepreciationTerms':
        """Snapshot the terms of an Asset (or any object with the same attributes)."""
        if isinstance(source, cls):
            return source

        asset_id = getattr(source, 'id', None)
        try:
            method = DepreciationMethod(source.depreciation_method)
        except ValueError:
            raise CalculationError(
                f"Unknown depreciation method: {source.depreciation_method!r}", asset_id=asset_id
            )

        try:
            purchase_price = money(source.purchase_price)
            salvage_value = money(source.salvage_value if source.salvage_value is not None else ZERO)
            book_value = getattr(source, 'current_book_value', None)
            current_book_value = money(book_value if book_value is not None else purchase_price)
            rate_value = getattr(source, 'depreciation_rate', None)
            depreciation_rate = to_decimal(rate_value) if rate_value is not None else None
        except ValueError as exc:
            raise CalculationError(f"Invalid monetary terms: {exc}", asset_id=asset_id)

        return cls(
            purchase_price=purchase_price,
            salvage_value=salvage_value,
            current_book_value=current_book_value,
            depreciation_method=method,
            useful_life_months=getattr(source, 'useful_life_months', None),
            depreciation_rate=depreciation_rate,
            total_expected_units=getattr(source, 'total_expected_units', None),
            depreciation_periods_posted=getattr(source, 'depreciation_periods_posted', None) or 0,
            asset_id=asset_id,
        )

    @property
    def depreciable_amount(self) -> Decimal:
        return self.purchase_price - self.salvage_value

    @property
    def remaining_depreciable(self) -> Decimal:
        return max(self.current_book_value - self.salvage_value, ZERO)


@dataclass(frozen=True)
class PeriodCalculation:
    method: DepreciationMethod
    book_value_start: Decimal
    computed_amount: Decimal
    amount: Decimal
    book_value_end: Decimal
    accumulated_depreciation: Decimal
    units_in_period: Optional[int]
    clamped: bool
    final_period: bool
    fully_depreciated: bool
    basis: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScheduleLine:
    period_number: int
    period_date: date
    amount: Decimal
    book_value_end: Decimal
    accumulated_depreciation: Decimal

    def to_dict(self) -> dict:
        return {
            'period_number': self.period_number,
            'period_date': self.period_date.isoformat(),
            'amount': str(self.amount),
            'book_value_end': str(self.book_value_end),
            'accumulated_depreciation': str(self.accumulated_depreciation),
        }


@dataclass(frozen=True)
class DepreciationPreview:
    method: DepreciationMethod
    monthly_amount: Optional[Decimal]
    annual_estimate: Optional[Decimal]
    remaining_depreciable: Decimal
    percent_depreciated: Decimal
    remaining_periods: Optional[int]
    fully_depreciated: bool

    def to_dict(self) -> dict:
        return {
            'method': self.method.value,
            'monthly_amount': str(self.monthly_amount) if self.monthly_amount is not None else None,
            'annual_estimate': str(self.annual_estimate) if self.annual_estimate is not None else None,
            'remaining_depreciable': str(self.remaining_depreciable),
            'percent_depreciated': str(self.percent_depreciated),
            'remaining_periods': self.remaining_periods,
            'fully_depreciated': self.fully_depreciated,
        }


def _require_life(terms: DepreciationTerms) -> int:
    life = terms.useful_life_months
    if life is None or life <= 0:
        raise CalculationError(
            f"Useful life must be a positive number of months (got {life!r})",
            asset_id=terms.asset_id,
        )
    return life


def normalize_units(period_units) -> int:
    if isinstance(period_units, bool):
        raise ValidationError({'units': 'Usage must be a whole number of units'})
    try:
        units = to_decimal(period_units)
    except ValueError:
        raise ValidationError({'units': 'Usage must be a whole number of units'})
    if units != units.to_integral_value():
        raise ValidationError({'units': 'Usage must be a whole number of units'})
    if units < 0:
        raise ValidationError({'units': 'Usage cannot be negative'})
    return int(units)


def straight_line_amount(terms: DepreciationTerms) -> Decimal:
    life = _require_life(terms)
    return terms.depreciable_amount / Decimal(life)


def declining_balance_amount(terms: DepreciationTerms) -> Decimal:
    rate = terms.depreciation_rate
    if rate is None or rate <= 0 or rate > 1:
        raise CalculationError(
            f"Declining balance needs an annual rate between 0 and 1 (got {rate!r})",
            asset_id=terms.asset_id,
        )
    return terms.current_book_value * rate / Decimal(MONTHS_PER_YEAR)


def units_of_production_amount(terms: DepreciationTerms, period_units) -> Decimal:
    expected = terms.total_expected_units
    if expected is None or expected <= 0:
        raise CalculationError(
            f"Total expected units must be positive (got {expected!r})",
            asset_id=terms.asset_id,
        )
    if period_units is None:
        raise CalculationError(
            "Units of production depreciation requires a usage count for the period",
            asset_id=terms.asset_id,
        )
    units = normalize_units(period_units)
    return terms.depreciable_amount / Decimal(expected) * Decimal(units)


def sum_of_years_digits_amount(terms: DepreciationTerms) -> Decimal:
    life = _require_life(terms)
    total_years = -(-life // MONTHS_PER_YEAR)
    remaining_years = total_years - terms.depreciation_periods_posted // MONTHS_PER_YEAR
    if remaining_years <= 0:
        return ZERO
    digits_sum = total_years * (total_years + 1) // 2
    yearly = terms.depreciable_amount * Decimal(remaining_years) / Decimal(digits_sum)
    return yearly / Decimal(MONTHS_PER_YEAR)


def compute_period_amount(asset, period_units=None) -> Decimal:
    """
    Cent-rounded amount for the asset's next period, before the salvage guard rail.

    Args:
        asset: Asset or DepreciationTerms
        period_units: usage count for units-of-production assets

    Raises:
        CalculationError: unusable terms or missing usage count
        ValidationError: malformed usage count
    """
    terms = DepreciationTerms.from_source(asset)
    method = terms.depreciation_method

    if method == DepreciationMethod.STRAIGHT_LINE:
        raw = straight_line_amount(terms)
    elif method == DepreciationMethod.DECLINING_BALANCE:
        raw = declining_balance_amount(terms)
    elif method == DepreciationMethod.UNITS_OF_PRODUCTION:
        raw = units_of_production_amount(terms, period_units)
    else:
        raw = sum_of_years_digits_amount(terms)

    return max(money(raw), ZERO)


def _basis(terms: DepreciationTerms, period_units) -> Dict[str, Any]:
    basis: Dict[str, Any] = {
        'method': terms.depreciation_method.value,
        'purchase_price': str(terms.purchase_price),
        'salvage_value': str(terms.salvage_value),
        'book_value_start': str(terms.current_book_value),
        'periods_posted': terms.depreciation_periods_posted,
    }
    method = terms.depreciation_method
    if method in TIME_BASED_METHODS:
        basis['useful_life_months'] = terms.useful_life_months
    if method == DepreciationMethod.DECLINING_BALANCE:
        basis['annual_rate'] = str(terms.depreciation_rate)
    elif method == DepreciationMethod.UNITS_OF_PRODUCTION:
        basis['total_expected_units'] = terms.total_expected_units
        basis['units_in_period'] = period_units
    elif method == DepreciationMethod.SUM_OF_YEARS_DIGITS and terms.useful_life_months:
        total_years = -(-terms.useful_life_months // MONTHS_PER_YEAR)
        basis['total_years'] = total_years
        basis['remaining_years'] = max(total_years - terms.depreciation_periods_posted // MONTHS_PER_YEAR, 0)
    return basis


def calculate_period(asset, period_units=None) -> PeriodCalculation:
    """
    Calculate the next period for an asset with the salvage guard rail applied.

    Returns:
        PeriodCalculation: posted amount, resulting book value and whether the
        asset is now fully depreciated
    """
    terms = DepreciationTerms.from_source(asset)
    method = terms.depreciation_method
    book_start = terms.current_book_value
    remaining = terms.remaining_depreciable

    units = normalize_units(period_units) if period_units is not None else None

    if remaining == ZERO:
        computed = ZERO
        amount = ZERO
        clamped = False
        final_period = False
    else:
        computed = compute_period_amount(terms, units)
        amount = computed
        final_period = (
            method in TRUE_UP_METHODS
            and terms.depreciation_periods_posted + 1 >= terms.useful_life_months
        )
        if final_period:
            amount = remaining
        clamped = amount > remaining
        if clamped:
            amount = remaining

    book_end = book_start - amount
    basis = _basis(terms, units)
    basis.update({
        'computed_amount': str(computed),
        'posted_amount': str(amount),
        'clamped': clamped,
        'final_period': final_period,
    })

    return PeriodCalculation(
        method=method,
        book_value_start=book_start,
        computed_amount=computed,
        amount=amount,
        book_value_end=book_end,
        accumulated_depreciation=terms.purchase_price - book_end,
        units_in_period=units,
        clamped=clamped,
        final_period=final_period,
        fully_depreciated=book_end <= terms.salvage_value,
        basis=basis,
    )


def period_date_for(start_date: date, period_number: int) -> date:
    """End date of the ``period_number``-th monthly period (1-based) counted from the start date."""
    return start_date + relativedelta(months=period_number)


def build_schedule(
    asset,
    start_date: Optional[date] = None,
    units_per_period=None,
    max_periods: Optional[int] = None,
) -> List[ScheduleLine]:
    """
    Project the remaining periods without persisting anything.

    Args:
        asset: Asset or DepreciationTerms
        start_date: depreciation start date to count periods from; defaults to
            the asset's ``depreciation_start_date``
        units_per_period: assumed usage per period for units-of-production assets
        max_periods: optional cap on the number of lines
    """
    terms = DepreciationTerms.from_source(asset)
    anchor = start_date or getattr(asset, 'depreciation_start_date', None) or date.today()

    if terms.depreciation_method in TIME_BASED_METHODS:
        limit = max(_require_life(terms) - terms.depreciation_periods_posted, 1)
    else:
        limit = MAX_USAGE_SCHEDULE_PERIODS
    if max_periods is not None:
        limit = min(limit, max_periods)

    lines: List[ScheduleLine] = []
    for offset in range(limit):
        if terms.remaining_depreciable == ZERO:
            break
        calculation = calculate_period(terms, units_per_period)
        period_number = terms.depreciation_periods_posted + 1
        lines.append(ScheduleLine(
            period_number=period_number,
            period_date=period_date_for(anchor, period_number),
            amount=calculation.amount,
            book_value_end=calculation.book_value_end,
            accumulated_depreciation=calculation.accumulated_depreciation,
        ))
        terms = replace(
            terms,
            current_book_value=calculation.book_value_end,
            depreciation_periods_posted=period_number,
        )
        if calculation.fully_depreciated:
            break
    return lines


def preview(asset, period_units=None) -> DepreciationPreview:
    """Summary figures for display: next monthly amount, twelve-month estimate, progress."""
    terms = DepreciationTerms.from_source(asset)
    method = terms.depreciation_method

    monthly_amount = None
    annual_estimate = None
    if method != DepreciationMethod.UNITS_OF_PRODUCTION or period_units is not None:
        monthly_amount = calculate_period(terms, period_units).amount
        lines = build_schedule(terms, units_per_period=period_units, max_periods=MONTHS_PER_YEAR)
        annual_estimate = sum((line.amount for line in lines), ZERO)

    if terms.depreciable_amount > 0:
        depreciated = terms.purchase_price - terms.current_book_value
        percent = (depreciated / terms.depreciable_amount * 100).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    else:
        percent = Decimal('100.00')

    remaining_periods = None
    if method in TIME_BASED_METHODS and terms.useful_life_months:
        remaining_periods = max(terms.useful_life_months - terms.depreciation_periods_posted, 0)

    return DepreciationPreview(
        method=method,
        monthly_amount=monthly_amount,
        annual_estimate=annual_estimate,
        remaining_depreciable=terms.remaining_depreciable,
        percent_depreciated=percent,
        remaining_periods=remaining_periods,
        fully_depreciated=terms.remaining_depreciable == ZERO,
    )

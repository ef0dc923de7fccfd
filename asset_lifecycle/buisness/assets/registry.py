"""
AssetRegistry - validated creation of assets

Registration is the only place monetary and depreciation terms are set up;
afterwards the scheduler owns the financial fields.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Optional

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_category import AssetCategory
from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.enums import AssetStatus, DepreciationMethod, HistoryAction
from asset_lifecycle.buisness.core.errors import ConflictError, ValidationError, require_actor
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.unit_of_work import UnitOfWork
from asset_lifecycle.buisness.depreciation.calculator import (
    DepreciationTerms,
    compute_period_amount,
    period_date_for,
)
from asset_lifecycle.utils.money import ZERO, money, rate
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.assets.registry")


def _money_field(errors: Dict[str, str], field: str, value, required: bool = True) -> Optional[Decimal]:
    if value is None or value == '':
        if required:
            errors[field] = 'This field is required'
        return None
    try:
        amount = money(value)
    except ValueError:
        errors[field] = 'Must be a decimal amount'
        return None
    if amount < ZERO:
        errors[field] = 'Cannot be negative'
    return amount


def _positive_int(errors: Dict[str, str], field: str, value, required: bool) -> Optional[int]:
    if value is None or value == '':
        if required:
            errors[field] = 'This field is required'
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors[field] = 'Must be a whole number'
        return None
    if isinstance(value, float) and value != number:
        errors[field] = 'Must be a whole number'
        return None
    if number <= 0:
        errors[field] = 'Must be greater than zero'
    return number


class AssetRegistry:

    def __init__(self, uow_factory: Optional[Callable[[], UnitOfWork]] = None):
        self.uow_factory = uow_factory or UnitOfWork

    def register(
        self,
        actor_id: int,
        business_unit_id: int,
        item_code: str,
        description: str,
        purchase_price,
        salvage_value=ZERO,
        depreciation_method=None,
        useful_life_months: Optional[int] = None,
        depreciation_rate=None,
        total_expected_units: Optional[int] = None,
        category_id: Optional[int] = None,
        quantity: int = 1,
        location: Optional[str] = None,
        serial_number: Optional[str] = None,
        purchase_date: Optional[date] = None,
        depreciation_start_date: Optional[date] = None,
    ) -> Asset:
        """
        Register a new asset.

        Depreciation starts on ``depreciation_start_date`` (default: purchase
        date, else today); the first period ends one month later.

        Raises:
            ValidationError: malformed monetary or depreciation terms
            ConflictError: item code already used in the business unit
        """
        actor_id = require_actor(actor_id)
        errors: Dict[str, str] = {}

        item_code = (item_code or '').strip()
        if not item_code:
            errors['item_code'] = 'This field is required'
        description = (description or '').strip()
        if not description:
            errors['description'] = 'This field is required'

        price = _money_field(errors, 'purchase_price', purchase_price)
        salvage = _money_field(errors, 'salvage_value', salvage_value if salvage_value is not None else ZERO)
        if price is not None and salvage is not None and 'salvage_value' not in errors and salvage > price:
            errors['salvage_value'] = 'Cannot exceed the purchase price'

        qty = _positive_int(errors, 'quantity', quantity, required=True)

        with self.uow_factory() as uow:
            session = uow.session

            business_unit = session.get(BusinessUnit, business_unit_id) if business_unit_id else None
            if business_unit is None:
                errors['business_unit_id'] = 'Unknown business unit'

            category = None
            if category_id is not None:
                category = session.get(AssetCategory, category_id)
                if category is None:
                    errors['category_id'] = 'Unknown category'

            if depreciation_method is None and category is not None:
                depreciation_method = category.default_depreciation_method
            if useful_life_months is None and category is not None:
                useful_life_months = category.default_useful_life_months

            method = None
            if depreciation_method is None:
                errors['depreciation_method'] = 'This field is required'
            else:
                try:
                    method = DepreciationMethod(depreciation_method)
                except ValueError:
                    errors['depreciation_method'] = f"Unknown method {depreciation_method!r}"

            life = None
            annual_rate = None
            units = None
            if method is not None:
                life = _positive_int(
                    errors,
                    'useful_life_months',
                    useful_life_months,
                    required=method != DepreciationMethod.UNITS_OF_PRODUCTION,
                )
                if method == DepreciationMethod.DECLINING_BALANCE:
                    annual_rate = self._validate_rate(errors, depreciation_rate)
                if method == DepreciationMethod.UNITS_OF_PRODUCTION:
                    units = _positive_int(errors, 'total_expected_units', total_expected_units, required=True)

            if errors:
                raise ValidationError(errors)

            duplicate = session.query(Asset.id).filter(
                Asset.business_unit_id == business_unit.id,
                Asset.item_code == item_code,
            ).first()
            if duplicate is not None:
                raise ConflictError(f"Item code {item_code} already exists in business unit {business_unit.code}")

            start = depreciation_start_date or purchase_date or date.today()
            asset = Asset(
                item_code=item_code,
                description=description,
                serial_number=serial_number,
                category=category,
                quantity=qty,
                business_unit=business_unit,
                location=location or business_unit.default_location,
                status=AssetStatus.AVAILABLE,
                purchase_price=price,
                salvage_value=salvage,
                current_book_value=price,
                accumulated_depreciation=ZERO,
                depreciation_method=method,
                useful_life_months=life,
                depreciation_rate=annual_rate,
                total_expected_units=units,
                current_units=0,
                purchase_date=purchase_date,
                depreciation_start_date=start,
                depreciation_periods_posted=0,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )

            if price == salvage:
                asset.is_fully_depreciated = True
                asset.next_depreciation_date = None
                asset.monthly_depreciation = ZERO
            else:
                asset.is_fully_depreciated = False
                asset.next_depreciation_date = period_date_for(start, 1)
                if method != DepreciationMethod.UNITS_OF_PRODUCTION:
                    asset.monthly_depreciation = compute_period_amount(DepreciationTerms.from_source(asset))

            session.add(asset)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.REGISTERED,
                actor_id,
                new_status=AssetStatus.AVAILABLE,
                notes=LifecycleNarrator.asset_registered(asset),
                book_value_after=price,
            )
            uow.commit()

        logger.info(f"Registered asset {item_code} in business unit {business_unit_id} by {actor_id}")
        return asset

    @staticmethod
    def _validate_rate(errors: Dict[str, str], value) -> Optional[Decimal]:
        if value is None or value == '':
            errors['depreciation_rate'] = 'Declining balance requires an annual rate'
            return None
        try:
            annual_rate = rate(value)
        except ValueError:
            errors['depreciation_rate'] = 'Must be a decimal fraction'
            return None
        if annual_rate <= 0 or annual_rate > 1:
            errors['depreciation_rate'] = 'Must be a fraction greater than 0 and at most 1 (0.25 = 25%)'
        return annual_rate

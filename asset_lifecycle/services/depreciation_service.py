"""
Depreciation Service
Read-only projections over assets and posted depreciation entries.
"""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func

from asset_lifecycle import db
from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.enums import AssetStatus, enum_value
from asset_lifecycle.data.depreciation.depreciation_entry import DepreciationEntry
from asset_lifecycle.buisness.core.errors import RecordNotFoundError
from asset_lifecycle.buisness.depreciation.calculator import build_schedule, preview
from asset_lifecycle.buisness.depreciation.eligibility import DepreciationEligibility
from asset_lifecycle.utils.money import ZERO, format_money


class DepreciationService:
    """
    Service for depreciation presentation data.

    Provides methods for:
    - Listing assets due for the next run
    - Summaries per business unit
    - Posted history and projected schedule for one asset
    """

    @staticmethod
    def get_assets_due(as_of: Optional[date] = None, business_unit_id: Optional[int] = None) -> List[Asset]:
        """Assets the next scheduler run would post for, in posting order."""
        as_of = as_of or date.today()
        return DepreciationEligibility.build_due_query(db.session, as_of, business_unit_id).all()

    @staticmethod
    def build_filtered_query(
        asset_id: Optional[int] = None,
        business_unit_id: Optional[int] = None,
        period_from: Optional[date] = None,
        period_to: Optional[date] = None,
    ):
        """
        Build a filtered depreciation entry query.

        Args:
            asset_id: Filter by asset
            business_unit_id: Filter by the asset's current business unit
            period_from: Earliest period end date (inclusive)
            period_to: Latest period end date (inclusive)

        Returns:
            SQLAlchemy query object
        """
        query = DepreciationEntry.query

        if asset_id:
            query = query.filter(DepreciationEntry.asset_id == asset_id)

        if business_unit_id:
            query = query.join(Asset, Asset.id == DepreciationEntry.asset_id).filter(
                Asset.business_unit_id == business_unit_id
            )

        if period_from:
            query = query.filter(DepreciationEntry.period_date >= period_from)

        if period_to:
            query = query.filter(DepreciationEntry.period_date <= period_to)

        return query.order_by(DepreciationEntry.period_date, DepreciationEntry.asset_id)

    @staticmethod
    def get_history(asset_id: int) -> Dict:
        asset = db.session.get(Asset, asset_id)
        if asset is None:
            raise RecordNotFoundError(f"Asset {asset_id} not found")

        entries = DepreciationService.build_filtered_query(asset_id=asset_id).all()
        total = sum((entry.depreciation_amount for entry in entries), ZERO)
        return {
            'asset': asset.to_dict(),
            'entries': [entry.to_dict() for entry in entries],
            'total_depreciation': format_money(total),
        }

    @staticmethod
    def get_schedule(asset_id: int, units_per_period: Optional[int] = None) -> Dict:
        """Preview plus the projected remaining periods; nothing is persisted."""
        asset = db.session.get(Asset, asset_id)
        if asset is None:
            raise RecordNotFoundError(f"Asset {asset_id} not found")

        lines = []
        if not asset.is_fully_depreciated and asset.status != AssetStatus.DISPOSED:
            lines = build_schedule(asset, units_per_period=units_per_period)
        return {
            'asset_id': asset.id,
            'preview': preview(asset, units_per_period).to_dict(),
            'schedule': [line.to_dict() for line in lines],
        }

    @staticmethod
    def get_summary(business_unit_id: Optional[int] = None) -> List[Dict]:
        """
        Totals per business unit over assets that are not disposed.

        Returns:
            One dict per business unit with asset count, cost, accumulated
            depreciation, book value, fully depreciated count and a per-method
            breakdown.
        """
        totals = db.session.query(
            Asset.business_unit_id,
            func.count(Asset.id),
            func.sum(Asset.purchase_price),
            func.sum(Asset.accumulated_depreciation),
            func.sum(Asset.current_book_value),
        ).filter(Asset.status != AssetStatus.DISPOSED)
        if business_unit_id:
            totals = totals.filter(Asset.business_unit_id == business_unit_id)
        totals = totals.group_by(Asset.business_unit_id).all()

        fully = db.session.query(Asset.business_unit_id, func.count(Asset.id)).filter(
            Asset.status != AssetStatus.DISPOSED,
            Asset.is_fully_depreciated.is_(True),
        ).group_by(Asset.business_unit_id)
        fully_counts = dict(fully.all())

        methods = db.session.query(
            Asset.business_unit_id,
            Asset.depreciation_method,
            func.count(Asset.id),
            func.sum(Asset.accumulated_depreciation),
        ).filter(Asset.status != AssetStatus.DISPOSED).group_by(
            Asset.business_unit_id, Asset.depreciation_method
        )
        breakdown: Dict[int, Dict] = {}
        for unit_id, method, count, accumulated in methods.all():
            breakdown.setdefault(unit_id, {})[enum_value(method)] = {
                'asset_count': count,
                'accumulated_depreciation': format_money(accumulated or ZERO),
            }

        names = dict(db.session.query(BusinessUnit.id, BusinessUnit.name).all())

        summary = []
        for unit_id, count, cost, accumulated, book_value in totals:
            summary.append({
                'business_unit_id': unit_id,
                'business_unit_name': names.get(unit_id),
                'asset_count': count,
                'total_cost': format_money(cost or ZERO),
                'accumulated_depreciation': format_money(accumulated or ZERO),
                'book_value': format_money(book_value or ZERO),
                'fully_depreciated_count': fully_counts.get(unit_id, 0),
                'by_method': breakdown.get(unit_id, {}),
            })
        return sorted(summary, key=lambda row: row['business_unit_id'])

"""
Usage feeds for units-of-production depreciation.

A usage source answers "how many units did this asset consume in the period
ending on ``period_date``". ``None`` means no count is available, which the
calculator reports as a CalculationError for that asset.
"""

from collections.abc import Mapping
from datetime import date
from typing import Callable, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import object_session

UsageSource = Callable[[object, date], Optional[int]]
UsageInput = Union[None, Mapping, UsageSource]


def resolve_units(usage: UsageInput, asset, period_date: date) -> Optional[int]:
    """Look up the period's usage from a mapping keyed by asset id, or call a usage source."""
    if usage is None:
        return None
    if isinstance(usage, Mapping):
        value = usage.get(asset.id)
        if value is None:
            value = usage.get(str(asset.id))
        return value
    return usage(asset, period_date)


class RecordedUsageSource:
    """
    Usage derived from meter readings captured with ``record_units``.

    The period's usage is everything recorded on the asset that no posted
    depreciation entry has consumed yet; a month without new readings reports
    zero usage.
    """

    def __call__(self, asset, period_date: date) -> Optional[int]:
        from asset_lifecycle.data.depreciation.depreciation_entry import DepreciationEntry

        session = object_session(asset)
        consumed = session.query(
            func.coalesce(func.sum(DepreciationEntry.units_in_period), 0)
        ).filter(DepreciationEntry.asset_id == asset.id).scalar()
        return max((asset.current_units or 0) - int(consumed), 0)

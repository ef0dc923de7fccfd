"""
Which assets the scheduler may post for.

An asset is due when it is not fully depreciated, not retired or disposed, its
next depreciation date has arrived, and it is not physically in transit
between business units.
"""

from datetime import date
from typing import Optional

from sqlalchemy import exists

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.transfers.transfer_record import TransferRecord
from asset_lifecycle.data.core.enums import NON_DEPRECIATING_STATUSES, TransferStatus, enum_value


class DepreciationEligibility:

    @classmethod
    def build_due_query(cls, session, as_of: date, business_unit_id: Optional[int] = None):
        in_transit = exists().where(
            TransferRecord.asset_id == Asset.id,
            TransferRecord.status == TransferStatus.IN_TRANSIT,
        )
        query = session.query(Asset).filter(
            Asset.is_fully_depreciated.is_(False),
            Asset.status.notin_(NON_DEPRECIATING_STATUSES),
            Asset.next_depreciation_date.isnot(None),
            Asset.next_depreciation_date <= as_of,
            ~in_transit,
        )
        if business_unit_id:
            query = query.filter(Asset.business_unit_id == business_unit_id)
        return query.order_by(Asset.next_depreciation_date, Asset.id)

    @classmethod
    def skip_reason(cls, session, asset: Asset, as_of: date) -> Optional[str]:
        """
        Re-check a single asset inside the posting transaction.

        Returns:
            str: why the asset is skipped, or None when it is due
        """
        if asset.is_fully_depreciated:
            return "fully depreciated"
        if asset.status in NON_DEPRECIATING_STATUSES:
            return f"status is {enum_value(asset.status)}"
        if asset.next_depreciation_date is None:
            return "no depreciation scheduled"
        if asset.next_depreciation_date > as_of:
            return f"not due until {asset.next_depreciation_date.isoformat()}"
        in_transit = session.query(
            exists().where(
                TransferRecord.asset_id == asset.id,
                TransferRecord.status == TransferStatus.IN_TRANSIT,
            )
        ).scalar()
        if in_transit:
            return "in transit between business units"
        return None

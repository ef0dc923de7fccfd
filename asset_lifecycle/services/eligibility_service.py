"""
Eligibility Service
Assets that can enter each workflow right now.
"""

from typing import List, Optional

from sqlalchemy import exists

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.enums import (
    ACTIVE_DEPLOYMENT_STATUSES,
    ACTIVE_TRANSFER_STATUSES,
    AssetStatus,
)
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.data.transfers.transfer_record import TransferRecord


class EligibilityService:
    """
    Mirrors the request preconditions of the workflows as queries, so a picker
    only offers assets whose request would pass the status and active-record
    checks at the time of the query.
    """

    @staticmethod
    def _no_active_workflow():
        active_deployment = exists().where(
            DeploymentRecord.asset_id == Asset.id,
            DeploymentRecord.status.in_(ACTIVE_DEPLOYMENT_STATUSES),
        )
        active_transfer = exists().where(
            TransferRecord.asset_id == Asset.id,
            TransferRecord.status.in_(ACTIVE_TRANSFER_STATUSES),
        )
        return ~active_deployment, ~active_transfer

    @staticmethod
    def build_filtered_query(
        statuses=None,
        excluded_statuses=None,
        business_unit_id: Optional[int] = None,
        search: Optional[str] = None,
    ):
        """
        Build a filtered asset query for workflow pickers.

        Args:
            statuses: Only these statuses
            excluded_statuses: Never these statuses
            business_unit_id: Filter by current business unit
            search: Match item code, description or serial number
        """
        no_deployment, no_transfer = EligibilityService._no_active_workflow()
        query = Asset.query.filter(no_deployment, no_transfer)

        if statuses:
            query = query.filter(Asset.status.in_(statuses))

        if excluded_statuses:
            query = query.filter(Asset.status.notin_(excluded_statuses))

        if business_unit_id:
            query = query.filter(Asset.business_unit_id == business_unit_id)

        if search:
            term = f"%{search}%"
            query = query.filter(
                Asset.item_code.ilike(term)
                | Asset.description.ilike(term)
                | Asset.serial_number.ilike(term)
            )

        return query.order_by(Asset.item_code, Asset.id)

    @staticmethod
    def deployable(business_unit_id: Optional[int] = None, search: Optional[str] = None) -> List[Asset]:
        return EligibilityService.build_filtered_query(
            statuses=[AssetStatus.AVAILABLE], business_unit_id=business_unit_id, search=search
        ).all()

    @staticmethod
    def transferable(business_unit_id: Optional[int] = None, search: Optional[str] = None) -> List[Asset]:
        return EligibilityService.build_filtered_query(
            excluded_statuses=[AssetStatus.DISPOSED, AssetStatus.DEPLOYED],
            business_unit_id=business_unit_id,
            search=search,
        ).all()

    @staticmethod
    def disposable(business_unit_id: Optional[int] = None, search: Optional[str] = None) -> List[Asset]:
        # DEPLOYED assets always hold an active deployment, so the exists() filter covers them
        return EligibilityService.build_filtered_query(
            excluded_statuses=[AssetStatus.DISPOSED],
            business_unit_id=business_unit_id,
            search=search,
        ).all()

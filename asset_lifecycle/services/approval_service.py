"""
Approval Service
Work queues for the accounting approvers.
"""

from typing import Dict, List, Optional

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.enums import DeploymentStatus, TransferStatus
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.data.disposals.disposal_record import DisposalRecord
from asset_lifecycle.data.transfers.transfer_record import TransferRecord


class ApprovalService:

    @staticmethod
    def pending_deployments(business_unit_id: Optional[int] = None) -> List[DeploymentRecord]:
        query = DeploymentRecord.query.filter(
            DeploymentRecord.status == DeploymentStatus.PENDING_ACCOUNTING_APPROVAL
        )
        if business_unit_id:
            query = query.filter(DeploymentRecord.business_unit_id == business_unit_id)
        return query.order_by(DeploymentRecord.created_at, DeploymentRecord.id).all()

    @staticmethod
    def pending_transfers(business_unit_id: Optional[int] = None) -> List[TransferRecord]:
        """Transfers awaiting approval; a business unit filter matches either end."""
        query = TransferRecord.query.filter(TransferRecord.status == TransferStatus.PENDING_APPROVAL)
        if business_unit_id:
            query = query.filter(
                (TransferRecord.from_business_unit_id == business_unit_id)
                | (TransferRecord.to_business_unit_id == business_unit_id)
            )
        return query.order_by(TransferRecord.requested_at, TransferRecord.id).all()

    @staticmethod
    def pending_disposals(business_unit_id: Optional[int] = None) -> List[DisposalRecord]:
        query = DisposalRecord.query.filter(DisposalRecord.approved_at.is_(None))
        if business_unit_id:
            query = query.join(Asset, Asset.id == DisposalRecord.asset_id).filter(
                Asset.business_unit_id == business_unit_id
            )
        return query.order_by(DisposalRecord.disposal_date, DisposalRecord.id).all()

    @staticmethod
    def get_pending(business_unit_id: Optional[int] = None) -> Dict[str, List[dict]]:
        return {
            'deployments': [r.to_dict() for r in ApprovalService.pending_deployments(business_unit_id)],
            'transfers': [r.to_dict() for r in ApprovalService.pending_transfers(business_unit_id)],
            'disposals': [r.to_dict() for r in ApprovalService.pending_disposals(business_unit_id)],
        }

"""
Active Workflow Policy

At most one active deployment and one active transfer may exist per asset,
and the two exclude each other.
"""

from typing import Optional, Type

from asset_lifecycle.data.core.enums import (
    ACTIVE_DEPLOYMENT_STATUSES,
    ACTIVE_TRANSFER_STATUSES,
    enum_value,
)
from asset_lifecycle.buisness.core.errors import ConflictError, LifecycleDomainError, PreconditionError


class ActiveWorkflowPolicy:
    """
    Transactional existence checks for active workflow records.

    The checks must run in the same unit of work as the status check and the
    insert they guard; the asset's optimistic version closes the remaining race.
    """

    @classmethod
    def find_active_deployment(cls, session, asset_id: int, exclude_id: Optional[int] = None):
        from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord

        query = session.query(DeploymentRecord).filter(
            DeploymentRecord.asset_id == asset_id,
            DeploymentRecord.status.in_(ACTIVE_DEPLOYMENT_STATUSES),
        )
        if exclude_id:
            query = query.filter(DeploymentRecord.id != exclude_id)
        return query.first()

    @classmethod
    def find_active_transfer(cls, session, asset_id: int, exclude_id: Optional[int] = None):
        from asset_lifecycle.data.transfers.transfer_record import TransferRecord

        query = session.query(TransferRecord).filter(
            TransferRecord.asset_id == asset_id,
            TransferRecord.status.in_(ACTIVE_TRANSFER_STATUSES),
        )
        if exclude_id:
            query = query.filter(TransferRecord.id != exclude_id)
        return query.first()

    @classmethod
    def check_no_active_deployment(
        cls,
        session,
        asset_id: int,
        exclude_id: Optional[int] = None,
        error: Type[LifecycleDomainError] = ConflictError,
    ) -> None:
        """
        Raises:
            ConflictError (or ``error``): if an active deployment exists
        """
        record = cls.find_active_deployment(session, asset_id, exclude_id)
        if record is not None:
            message = (
                f"Asset {asset_id} already has an active deployment "
                f"{record.transmittal_number} ({enum_value(record.status)})"
            )
            cls._raise(error, message, 'no_active_deployment')

    @classmethod
    def check_no_active_transfer(
        cls,
        session,
        asset_id: int,
        exclude_id: Optional[int] = None,
        error: Type[LifecycleDomainError] = ConflictError,
    ) -> None:
        """
        Raises:
            ConflictError (or ``error``): if an active transfer exists
        """
        record = cls.find_active_transfer(session, asset_id, exclude_id)
        if record is not None:
            message = (
                f"Asset {asset_id} already has an active transfer "
                f"{record.transfer_number} ({enum_value(record.status)})"
            )
            cls._raise(error, message, 'no_active_transfer')

    @staticmethod
    def _raise(error, message: str, rule: str):
        if issubclass(error, PreconditionError):
            raise error(message, rule=rule)
        raise error(message)

"""
DeploymentContext - Domain Facade for the deployment workflow

Hands an asset to an employee after accounting approval and takes it back on
return. Each operation reads everything it needs before it mutates anything,
then commits the record, the asset and the history entry together.
"""

from datetime import date
from typing import Optional

from asset_lifecycle.data.core.employee import Employee
from asset_lifecycle.data.core.enums import AssetStatus, DeploymentStatus, HistoryAction, enum_value
from asset_lifecycle.data.core.record_base import utcnow
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.buisness.assets.state_machine import AssetStatusMachine
from asset_lifecycle.buisness.core.context import AggregateContext
from asset_lifecycle.buisness.core.document_numbers import TransmittalNumberGenerator
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError, require_reason
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.policies.active_workflow import ActiveWorkflowPolicy
from asset_lifecycle.buisness.deployments.state_machine import DeploymentStateMachine
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.deployments")


class DeploymentContext(AggregateContext):
    """
    Domain Facade for one deployment record.

    Use ``DeploymentContext.request(...)`` to open a new deployment, then
    ``DeploymentContext(deployment_id)`` for the later steps.
    """

    def __init__(self, deployment_id: int, uow_factory=None):
        super().__init__(uow_factory)
        self.deployment_id = deployment_id

    @classmethod
    def request(
        cls,
        asset_id: int,
        employee_id: int,
        actor_id: int,
        expected_return_date: Optional[date] = None,
        condition_on_deploy: Optional[str] = None,
        notes: Optional[str] = None,
        uow_factory=None,
    ) -> DeploymentRecord:
        """
        Open a deployment awaiting accounting approval.

        Raises:
            PreconditionError: asset is not AVAILABLE (no record is created)
            ConflictError: an active deployment or transfer already exists
            ValidationError: unknown or inactive employee
        """
        ctx = cls(None, uow_factory)
        actor_id = ctx.actor(actor_id)
        return ctx.retry_on_duplicate(
            lambda: ctx._open(asset_id, employee_id, actor_id, expected_return_date, condition_on_deploy, notes)
        )

    def _open(self, asset_id, employee_id, actor_id, expected_return_date, condition_on_deploy, notes):
        with self.uow_factory() as uow:
            session = uow.session
            asset = self.load_asset(uow, asset_id)

            if asset.status != AssetStatus.AVAILABLE:
                logger.warning(
                    f"Deployment request refused for asset {asset_id}: status {enum_value(asset.status)}"
                )
                raise PreconditionError(
                    f"Only AVAILABLE assets can be deployed (asset is {enum_value(asset.status)})",
                    rule='asset_available',
                )
            ActiveWorkflowPolicy.check_no_active_deployment(session, asset.id)
            ActiveWorkflowPolicy.check_no_active_transfer(session, asset.id)

            employee = session.get(Employee, employee_id) if employee_id else None
            if employee is None:
                raise ValidationError({'employee_id': 'Unknown employee'})
            if not employee.is_active:
                raise ValidationError({'employee_id': f"Employee {employee.employee_number} is inactive"})

            transmittal_number = TransmittalNumberGenerator.next_number(session)

            record = DeploymentRecord(
                transmittal_number=transmittal_number,
                asset=asset,
                employee=employee,
                business_unit_id=asset.business_unit_id,
                status=DeploymentStatus.PENDING_ACCOUNTING_APPROVAL,
                expected_return_date=expected_return_date,
                condition_on_deploy=condition_on_deploy,
                deployment_notes=notes,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            session.add(record)
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.DEPLOYMENT_REQUESTED,
                actor_id,
                notes=LifecycleNarrator.deployment_requested(record, employee),
                deployment=record,
                details={'employee_id': employee.id, 'transmittal_number': transmittal_number},
            )
            uow.commit()

        logger.info(f"Deployment {transmittal_number} requested for asset {asset_id} by {actor_id}")
        return record

    def _load(self, uow):
        record = self.load_record(uow, DeploymentRecord, self.deployment_id, 'Deployment')
        asset = self.load_asset(uow, record.asset_id)
        return record, asset

    def approve(self, actor_id: int, notes: Optional[str] = None) -> DeploymentRecord:
        """
        Accounting approval. The record passes through APPROVED and lands in
        DEPLOYED; the asset becomes DEPLOYED and is assigned to the employee.
        """
        actor_id = self.actor(actor_id)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)

            DeploymentStateMachine.validate_transition(record.status, DeploymentStatus.APPROVED)
            if asset.status != AssetStatus.AVAILABLE:
                raise PreconditionError(
                    f"Asset {asset.id} is no longer AVAILABLE ({enum_value(asset.status)})",
                    rule='asset_available',
                )
            ActiveWorkflowPolicy.check_no_active_transfer(uow.session, asset.id, error=PreconditionError)
            AssetStatusMachine.validate_transition(asset.status, AssetStatus.DEPLOYED)

            now = utcnow()
            record.status = DeploymentStatus.APPROVED
            record.approved_by_id = actor_id
            record.approved_at = now
            record.approval_notes = notes
            DeploymentStateMachine.validate_transition(record.status, DeploymentStatus.DEPLOYED)
            record.status = DeploymentStatus.DEPLOYED
            if record.deployed_date is None:
                record.deployed_date = now.date()
            record.touch(actor_id)

            old_status = asset.status
            asset.status = AssetStatus.DEPLOYED
            asset.current_employee_id = record.employee_id
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.DEPLOYED,
                actor_id,
                previous_status=old_status,
                notes=LifecycleNarrator.deployment_approved(record),
                deployment=record,
                details={'employee_id': record.employee_id},
            )
            uow.commit()

        logger.info(f"Deployment {self.deployment_id} approved and deployed by {actor_id}")
        return record

    def reject(self, actor_id: int, reason: str) -> DeploymentRecord:
        actor_id = self.actor(actor_id)
        reason = require_reason(reason)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            DeploymentStateMachine.validate_transition(record.status, DeploymentStatus.REJECTED)

            record.status = DeploymentStatus.REJECTED
            record.rejected_by_id = actor_id
            record.rejected_at = utcnow()
            record.rejection_reason = reason
            record.touch(actor_id)
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.DEPLOYMENT_REJECTED,
                actor_id,
                reason=reason,
                notes=LifecycleNarrator.deployment_rejected(record, reason),
                deployment=record,
            )
            uow.commit()

        logger.info(f"Deployment {self.deployment_id} rejected by {actor_id}")
        return record

    def cancel(self, actor_id: int, reason: Optional[str] = None) -> DeploymentRecord:
        """
        Withdraw a deployment before the asset leaves.

        Raises:
            PreconditionError: the asset is already deployed (use return instead)
        """
        actor_id = self.actor(actor_id)
        reason = reason.strip() if reason else None

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            if record.status == DeploymentStatus.DEPLOYED:
                raise PreconditionError(
                    f"Deployment {record.transmittal_number} is DEPLOYED; return the asset instead",
                    rule='use_return',
                )
            DeploymentStateMachine.validate_transition(record.status, DeploymentStatus.CANCELLED)

            record.status = DeploymentStatus.CANCELLED
            record.cancelled_by_id = actor_id
            record.cancelled_at = utcnow()
            record.cancellation_reason = reason
            record.touch(actor_id)
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.DEPLOYMENT_CANCELLED,
                actor_id,
                reason=reason,
                notes=LifecycleNarrator.deployment_cancelled(record, reason),
                deployment=record,
            )
            uow.commit()

        logger.info(f"Deployment {self.deployment_id} cancelled by {actor_id}")
        return record

    def return_asset(
        self,
        actor_id: int,
        return_condition: str,
        return_notes: Optional[str] = None,
        returned_date: Optional[date] = None,
    ) -> DeploymentRecord:
        """
        Close a deployment. The asset goes back to AVAILABLE unless its status was
        overridden while it was out (maintenance, lost, damaged).
        """
        actor_id = self.actor(actor_id)
        return_condition = require_reason(return_condition, field='return_condition')

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            DeploymentStateMachine.validate_transition(record.status, DeploymentStatus.RETURNED)

            record.status = DeploymentStatus.RETURNED
            record.returned_date = returned_date or date.today()
            record.return_condition = return_condition
            record.return_notes = return_notes
            record.returned_by_id = actor_id
            record.touch(actor_id)

            old_status = asset.status
            if old_status == AssetStatus.DEPLOYED:
                AssetStatusMachine.validate_transition(old_status, AssetStatus.AVAILABLE)
                asset.status = AssetStatus.AVAILABLE
            asset.current_employee_id = None
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.RETURNED,
                actor_id,
                previous_status=old_status,
                notes=LifecycleNarrator.deployment_returned(record),
                deployment=record,
                details={'return_condition': return_condition},
            )
            uow.commit()

        logger.info(f"Deployment {self.deployment_id} returned by {actor_id}")
        return record

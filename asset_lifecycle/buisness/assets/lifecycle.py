"""
AssetLifecycleContext - Domain Facade for direct asset status operations

Admin status overrides, return to service and retirement. Deployment, transfer
and disposal have their own facades; all of them pair every status change with
a history entry capturing previous/new status, actor and reason.
"""

from datetime import date
from typing import Optional

from asset_lifecycle.data.core.enums import AssetStatus, DeploymentStatus, HistoryAction, enum_value
from asset_lifecycle.data.disposals.retirement_record import RetirementRecord
from asset_lifecycle.buisness.assets.state_machine import AssetStatusMachine
from asset_lifecycle.buisness.core.context import AggregateContext
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError, require_reason
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.policies.active_workflow import ActiveWorkflowPolicy
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.assets")


class AssetLifecycleContext(AggregateContext):
    """
    Domain Facade for one asset's status.

    Each operation runs in its own unit of work and returns the asset.
    """

    def __init__(self, asset_id: int, uow_factory=None):
        super().__init__(uow_factory)
        self.asset_id = asset_id

    def override_status(self, actor_id: int, new_status, reason: str):
        """
        Admin edit: AVAILABLE or DEPLOYED into IN_MAINTENANCE, LOST or DAMAGED.

        Raises:
            ValidationError: unknown status or missing reason
            PreconditionError: edit not allowed from the current status
        """
        actor_id = self.actor(actor_id)
        reason = require_reason(reason)
        try:
            new_status = AssetStatus(new_status)
        except ValueError:
            raise ValidationError({'status': f"Unknown status {new_status!r}"})

        with self.uow_factory() as uow:
            asset = self.load_asset(uow, self.asset_id)
            old_status = asset.status

            if old_status == new_status:
                raise PreconditionError(
                    f"Asset is already {new_status.value}", rule='status_unchanged'
                )
            AssetStatusMachine.validate_override(old_status, new_status)

            asset.status = new_status
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.STATUS_CHANGED,
                actor_id,
                previous_status=old_status,
                reason=reason,
                notes=LifecycleNarrator.status_changed(old_status, new_status, reason),
            )
            uow.commit()

        logger.info(
            f"Asset {self.asset_id} status overridden {enum_value(old_status)} → {new_status.value} by {actor_id}"
        )
        return asset

    def return_to_service(self, actor_id: int, reason: str):
        """
        Bring an IN_MAINTENANCE, LOST or DAMAGED asset back into use.

        The asset goes back to DEPLOYED when a deployment still holds it,
        otherwise to AVAILABLE.
        """
        actor_id = self.actor(actor_id)
        reason = require_reason(reason)

        with self.uow_factory() as uow:
            asset = self.load_asset(uow, self.asset_id)
            old_status = asset.status

            if old_status not in AssetStatusMachine.OUT_OF_SERVICE_STATES:
                raise PreconditionError(
                    f"Only assets in maintenance, lost or damaged can return to service "
                    f"(asset is {enum_value(old_status)})",
                    rule='out_of_service',
                )

            deployment = ActiveWorkflowPolicy.find_active_deployment(uow.session, asset.id)
            if deployment is not None and deployment.status == DeploymentStatus.DEPLOYED:
                new_status = AssetStatus.DEPLOYED
            else:
                new_status = AssetStatus.AVAILABLE
            AssetStatusMachine.validate_transition(old_status, new_status)

            asset.status = new_status
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.STATUS_CHANGED,
                actor_id,
                previous_status=old_status,
                reason=reason,
                notes=LifecycleNarrator.status_changed(old_status, new_status, reason),
                deployment=deployment if new_status == AssetStatus.DEPLOYED else None,
            )
            uow.commit()

        logger.info(f"Asset {self.asset_id} returned to service as {new_status.value} by {actor_id}")
        return asset

    def retire(
        self,
        actor_id: int,
        reason: str,
        retirement_date: Optional[date] = None,
        disposal_planned: bool = False,
        notes: Optional[str] = None,
    ):
        """
        Withdraw the asset from service. Retired assets no longer depreciate and
        can only move on to disposal.

        Raises:
            PreconditionError: a deployment or transfer is still active, or the
                status does not allow retirement
        """
        actor_id = self.actor(actor_id)
        reason = require_reason(reason)

        with self.uow_factory() as uow:
            session = uow.session
            asset = self.load_asset(uow, self.asset_id)
            old_status = asset.status

            if old_status == AssetStatus.RETIRED:
                raise PreconditionError(f"Asset {asset.id} is already retired", rule='not_retired')
            ActiveWorkflowPolicy.check_no_active_deployment(session, asset.id, error=PreconditionError)
            ActiveWorkflowPolicy.check_no_active_transfer(session, asset.id, error=PreconditionError)
            AssetStatusMachine.validate_transition(old_status, AssetStatus.RETIRED)

            record = RetirementRecord(
                asset=asset,
                reason=reason,
                retirement_date=retirement_date or date.today(),
                disposal_planned=bool(disposal_planned),
                notes=notes,
                retired_by_id=actor_id,
                created_by_id=actor_id,
            )
            session.add(record)

            asset.status = AssetStatus.RETIRED
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.RETIRED,
                actor_id,
                previous_status=old_status,
                reason=reason,
                notes=LifecycleNarrator.asset_retired(reason),
                details={'retirement_date': record.retirement_date.isoformat(), 'disposal_planned': record.disposal_planned},
            )
            uow.commit()

        logger.info(f"Asset {self.asset_id} retired by {actor_id}")
        return asset

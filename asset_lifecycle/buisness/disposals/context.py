"""
DisposalContext - Domain Facade for permanent disposal

Disposal is terminal: the asset keeps its rows and history but never changes
status again and never depreciates again.
"""

from datetime import date
from typing import Optional

from asset_lifecycle.data.core.enums import AssetStatus, DisposalReason, HistoryAction
from asset_lifecycle.data.core.record_base import utcnow
from asset_lifecycle.data.disposals.disposal_record import DisposalRecord
from asset_lifecycle.buisness.assets.state_machine import AssetStatusMachine
from asset_lifecycle.buisness.core.context import AggregateContext
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.policies.active_workflow import ActiveWorkflowPolicy
from asset_lifecycle.utils.money import ZERO, money
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.disposals")


class DisposalContext(AggregateContext):

    def __init__(self, disposal_id: int, uow_factory=None):
        super().__init__(uow_factory)
        self.disposal_id = disposal_id

    @staticmethod
    def _validate(reason, disposal_value, disposal_cost):
        errors = {}
        parsed_reason = None
        try:
            parsed_reason = DisposalReason(reason)
        except ValueError:
            errors['reason'] = f"Unknown disposal reason {reason!r}"

        amounts = {}
        for field, value in (('disposal_value', disposal_value), ('disposal_cost', disposal_cost)):
            try:
                amounts[field] = money(value if value not in (None, '') else ZERO)
            except ValueError:
                errors[field] = 'Must be a decimal amount'
                continue
            if amounts[field] < ZERO:
                errors[field] = 'Cannot be negative'

        if errors:
            raise ValidationError(errors)
        return parsed_reason, amounts['disposal_value'], amounts['disposal_cost']

    @classmethod
    def dispose(
        cls,
        asset_id: int,
        actor_id: int,
        reason,
        disposal_date: Optional[date] = None,
        disposal_method: Optional[str] = None,
        disposal_value=ZERO,
        disposal_cost=ZERO,
        recipient_name: Optional[str] = None,
        recipient_details: Optional[str] = None,
        notes: Optional[str] = None,
        uow_factory=None,
    ) -> DisposalRecord:
        """
        Dispose of an asset permanently.

        ``gain_loss = (disposal_value - disposal_cost) - book_value_at_disposal``

        Raises:
            ValidationError: unknown reason or negative amounts
            PreconditionError: already disposed, or a deployment or transfer is active
        """
        ctx = cls(None, uow_factory)
        actor_id = ctx.actor(actor_id)
        reason, value, cost = cls._validate(reason, disposal_value, disposal_cost)

        with ctx.uow_factory() as uow:
            session = uow.session
            asset = ctx.load_asset(uow, asset_id)
            old_status = asset.status

            if old_status == AssetStatus.DISPOSED:
                raise PreconditionError(f"Asset {asset.id} is already disposed", rule='terminal_status')
            ActiveWorkflowPolicy.check_no_active_deployment(session, asset.id, error=PreconditionError)
            ActiveWorkflowPolicy.check_no_active_transfer(session, asset.id, error=PreconditionError)
            AssetStatusMachine.validate_transition(old_status, AssetStatus.DISPOSED)

            book_value = money(asset.current_book_value)
            net_value = value - cost
            record = DisposalRecord(
                asset=asset,
                reason=reason,
                disposal_date=disposal_date or date.today(),
                disposal_method=disposal_method,
                recipient_name=recipient_name,
                recipient_details=recipient_details,
                notes=notes,
                book_value_at_disposal=book_value,
                disposal_value=value,
                disposal_cost=cost,
                net_disposal_value=net_value,
                gain_loss=net_value - book_value,
                disposed_by_id=actor_id,
                created_by_id=actor_id,
                updated_by_id=actor_id,
            )
            session.add(record)

            asset.status = AssetStatus.DISPOSED
            asset.next_depreciation_date = None
            asset.current_employee_id = None
            asset.touch(actor_id)
            HistoryLog.status_change(
                uow,
                asset,
                HistoryAction.DISPOSED,
                actor_id,
                previous_status=old_status,
                reason=reason.value,
                notes=LifecycleNarrator.asset_disposed(record),
                disposal=record,
                book_value_before=book_value,
                details={
                    'disposal_value': str(value),
                    'disposal_cost': str(cost),
                    'gain_loss': str(record.gain_loss),
                },
            )
            uow.commit()

        logger.info(f"Asset {asset_id} disposed ({reason.value}) by {actor_id}")
        return record

    def approve(self, actor_id: int, notes: Optional[str] = None) -> DisposalRecord:
        """
        One-time accounting sign-off. Does not change the asset.

        Raises:
            PreconditionError: already approved
        """
        actor_id = self.actor(actor_id)

        with self.uow_factory() as uow:
            record = self.load_record(uow, DisposalRecord, self.disposal_id, 'Disposal')
            asset = self.load_asset(uow, record.asset_id)
            if record.is_approved:
                raise PreconditionError(
                    f"Disposal {record.id} was already approved", rule='disposal_not_approved'
                )

            record.approved_by_id = actor_id
            record.approved_at = utcnow()
            record.approval_notes = notes
            record.touch(actor_id)
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.DISPOSAL_APPROVED,
                actor_id,
                notes=LifecycleNarrator.disposal_approved(record),
                disposal=record,
            )
            uow.commit()

        logger.info(f"Disposal {self.disposal_id} approved by {actor_id}")
        return record

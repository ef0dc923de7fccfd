"""
TransferContext - Domain Facade for moving an asset between business units

The asset keeps its identity and its depreciation through a transfer; only
completion changes ownership and location.
"""

from datetime import date
from typing import Optional

from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.enums import AssetStatus, HistoryAction, TransferStatus, enum_value
from asset_lifecycle.data.core.record_base import utcnow
from asset_lifecycle.data.transfers.transfer_record import TransferRecord
from asset_lifecycle.buisness.core.context import AggregateContext
from asset_lifecycle.buisness.core.document_numbers import TransferNumberGenerator
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError, require_reason
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.policies.active_workflow import ActiveWorkflowPolicy
from asset_lifecycle.buisness.transfers.state_machine import TransferStateMachine
from asset_lifecycle.utils.money import ZERO, money
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.transfers")

# Asset statuses a transfer cannot be requested from
BLOCKED_STATUSES = {AssetStatus.DISPOSED, AssetStatus.DEPLOYED}


def _cost(errors, field, value):
    if value is None or value == '':
        return ZERO
    try:
        amount = money(value)
    except ValueError:
        errors[field] = 'Must be a decimal amount'
        return ZERO
    if amount < ZERO:
        errors[field] = 'Cannot be negative'
    return amount


class TransferContext(AggregateContext):

    def __init__(self, transfer_id: int, uow_factory=None):
        super().__init__(uow_factory)
        self.transfer_id = transfer_id

    @classmethod
    def request(
        cls,
        asset_id: int,
        to_business_unit_id: int,
        actor_id: int,
        reason: str,
        to_location: Optional[str] = None,
        transfer_method: Optional[str] = None,
        tracking_number: Optional[str] = None,
        estimated_arrival: Optional[date] = None,
        condition_before: Optional[str] = None,
        transfer_cost=ZERO,
        insurance_value=ZERO,
        notes: Optional[str] = None,
        uow_factory=None,
    ) -> TransferRecord:
        """
        Open a transfer awaiting approval.

        Raises:
            PreconditionError: asset is DISPOSED or DEPLOYED
            ValidationError: bad destination, missing reason or negative costs
            ConflictError: an active transfer or deployment already exists
        """
        ctx = cls(None, uow_factory)
        actor_id = ctx.actor(actor_id)
        reason = require_reason(reason)

        errors = {}
        cost = _cost(errors, 'transfer_cost', transfer_cost)
        insurance = _cost(errors, 'insurance_value', insurance_value)
        if errors:
            raise ValidationError(errors)

        def open_transfer():
            with ctx.uow_factory() as uow:
                session = uow.session
                asset = ctx.load_asset(uow, asset_id)

                if asset.status in BLOCKED_STATUSES:
                    raise PreconditionError(
                        f"A {enum_value(asset.status)} asset cannot be transferred",
                        rule='transferable_status',
                    )

                destination = session.get(BusinessUnit, to_business_unit_id) if to_business_unit_id else None
                if destination is None:
                    raise ValidationError({'to_business_unit_id': 'Unknown business unit'})
                if destination.id == asset.business_unit_id:
                    raise ValidationError({'to_business_unit_id': 'Destination must differ from the current business unit'})

                ActiveWorkflowPolicy.check_no_active_transfer(session, asset.id)
                ActiveWorkflowPolicy.check_no_active_deployment(session, asset.id)

                transfer_number = TransferNumberGenerator.next_number(session)

                record = TransferRecord(
                    transfer_number=transfer_number,
                    asset=asset,
                    from_business_unit_id=asset.business_unit_id,
                    to_business_unit_id=destination.id,
                    from_location=asset.location,
                    to_location=to_location,
                    status=TransferStatus.PENDING_APPROVAL,
                    reason=reason,
                    notes=notes,
                    transfer_method=transfer_method,
                    tracking_number=tracking_number,
                    estimated_arrival=estimated_arrival,
                    condition_before=condition_before,
                    transfer_cost=cost,
                    insurance_value=insurance,
                    requested_by_id=actor_id,
                    requested_at=utcnow(),
                    created_by_id=actor_id,
                    updated_by_id=actor_id,
                )
                session.add(record)
                asset.touch(actor_id)
                HistoryLog.append(
                    uow,
                    asset,
                    HistoryAction.TRANSFER_REQUESTED,
                    actor_id,
                    reason=reason,
                    notes=LifecycleNarrator.transfer_requested(record),
                    transfer=record,
                    details={'transfer_number': transfer_number, 'to_business_unit_id': destination.id},
                )
                uow.commit()

            logger.info(f"Transfer {transfer_number} requested for asset {asset_id} by {actor_id}")
            return record

        return ctx.retry_on_duplicate(open_transfer)

    def _load(self, uow):
        record = self.load_record(uow, TransferRecord, self.transfer_id, 'Transfer')
        asset = self.load_asset(uow, record.asset_id)
        return record, asset

    def _advance(self, uow, record, asset, actor_id, to_status, action, reason=None, details=None):
        """Move the record to ``to_status`` and append the matching history entry."""
        from_status = record.status
        record.status = to_status
        record.touch(actor_id)
        asset.touch(actor_id)
        HistoryLog.append(
            uow,
            asset,
            action,
            actor_id,
            reason=reason,
            notes=LifecycleNarrator.transfer_status_changed(record, from_status, to_status, reason),
            transfer=record,
            details=details,
        )

    def approve(self, actor_id: int, notes: Optional[str] = None) -> TransferRecord:
        actor_id = self.actor(actor_id)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            TransferStateMachine.validate_transition(record.status, TransferStatus.APPROVED)

            record.approved_by_id = actor_id
            record.approved_at = utcnow()
            record.approval_notes = notes
            self._advance(uow, record, asset, actor_id, TransferStatus.APPROVED, HistoryAction.TRANSFER_APPROVED)
            uow.commit()

        logger.info(f"Transfer {self.transfer_id} approved by {actor_id}")
        return record

    def reject(self, actor_id: int, reason: str) -> TransferRecord:
        actor_id = self.actor(actor_id)
        reason = require_reason(reason)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            TransferStateMachine.validate_transition(record.status, TransferStatus.REJECTED)

            record.rejected_by_id = actor_id
            record.rejected_at = utcnow()
            record.rejection_reason = reason
            self._advance(
                uow, record, asset, actor_id, TransferStatus.REJECTED, HistoryAction.TRANSFER_REJECTED, reason=reason
            )
            uow.commit()

        logger.info(f"Transfer {self.transfer_id} rejected by {actor_id}")
        return record

    def cancel(self, actor_id: int, reason: Optional[str] = None) -> TransferRecord:
        """Cancel before dispatch; an in-transit transfer can only be completed."""
        actor_id = self.actor(actor_id)
        reason = reason.strip() if reason else None

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            TransferStateMachine.validate_transition(record.status, TransferStatus.CANCELLED)

            record.cancelled_by_id = actor_id
            record.cancelled_at = utcnow()
            record.cancellation_reason = reason
            self._advance(
                uow, record, asset, actor_id, TransferStatus.CANCELLED, HistoryAction.TRANSFER_CANCELLED, reason=reason
            )
            uow.commit()

        logger.info(f"Transfer {self.transfer_id} cancelled by {actor_id}")
        return record

    def dispatch(self, actor_id: int, tracking_number: Optional[str] = None) -> TransferRecord:
        """Hand the asset to the carrier. Depreciation pauses while it is in transit."""
        actor_id = self.actor(actor_id)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            TransferStateMachine.validate_transition(record.status, TransferStatus.IN_TRANSIT)
            if asset.status in BLOCKED_STATUSES:
                raise PreconditionError(
                    f"A {enum_value(asset.status)} asset cannot be dispatched",
                    rule='transferable_status',
                )

            record.dispatched_by_id = actor_id
            record.dispatched_at = utcnow()
            if tracking_number:
                record.tracking_number = tracking_number
            self._advance(
                uow,
                record,
                asset,
                actor_id,
                TransferStatus.IN_TRANSIT,
                HistoryAction.TRANSFER_DISPATCHED,
                details={'tracking_number': record.tracking_number},
            )
            uow.commit()

        logger.info(f"Transfer {self.transfer_id} dispatched by {actor_id}")
        return record

    def complete(
        self,
        actor_id: int,
        condition_after: Optional[str] = None,
        receipt_notes: Optional[str] = None,
    ) -> TransferRecord:
        """
        Confirm receipt at the destination. Ownership and location move here and
        nowhere else.

        Raises:
            PreconditionError: the transfer is not in transit (including a
                second completion)
        """
        actor_id = self.actor(actor_id)

        with self.uow_factory() as uow:
            record, asset = self._load(uow)
            TransferStateMachine.validate_transition(record.status, TransferStatus.COMPLETED)

            record.status = TransferStatus.COMPLETED
            record.received_by_id = actor_id
            record.received_at = utcnow()
            record.condition_after = condition_after
            record.receipt_notes = receipt_notes
            record.touch(actor_id)

            previous_business_unit_id = asset.business_unit_id
            previous_location = asset.location
            asset.business_unit_id = record.to_business_unit_id
            if record.to_location:
                asset.location = record.to_location
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.TRANSFERRED,
                actor_id,
                reason=record.reason,
                notes=LifecycleNarrator.transfer_completed(record),
                transfer=record,
                details={
                    'from_business_unit_id': previous_business_unit_id,
                    'to_business_unit_id': record.to_business_unit_id,
                    'from_location': previous_location,
                    'to_location': asset.location,
                },
            )
            uow.commit()

        logger.info(f"Transfer {self.transfer_id} completed by {actor_id}")
        return record

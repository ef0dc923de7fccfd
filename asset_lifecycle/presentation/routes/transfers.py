from flask import Blueprint

from asset_lifecycle.data.transfers.transfer_record import TransferRecord
from asset_lifecycle.buisness.core.errors import RecordNotFoundError
from asset_lifecycle.buisness.transfers.context import TransferContext
from asset_lifecycle.presentation.routes.core.parsing import (
    actor_id,
    json_body,
    parse_date,
    parse_decimal,
    parse_int,
    query_int,
)
from asset_lifecycle.presentation.routes.core.responses import success
from asset_lifecycle.services.approval_service import ApprovalService
from asset_lifecycle.utils.money import ZERO

bp = Blueprint('transfers', __name__)


@bp.post('')
def request_transfer():
    data = json_body()
    record = TransferContext.request(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        to_business_unit_id=parse_int(data.get('to_business_unit_id'), 'to_business_unit_id'),
        actor_id=actor_id(data),
        reason=data.get('reason'),
        to_location=data.get('to_location'),
        transfer_method=data.get('transfer_method'),
        tracking_number=data.get('tracking_number'),
        estimated_arrival=parse_date(data.get('estimated_arrival'), 'estimated_arrival'),
        condition_before=data.get('condition_before'),
        transfer_cost=parse_decimal(data.get('transfer_cost'), 'transfer_cost') or ZERO,
        insurance_value=parse_decimal(data.get('insurance_value'), 'insurance_value') or ZERO,
        notes=data.get('notes'),
    )
    return success(record.to_dict(), 201)


@bp.get('/pending')
def pending_transfers():
    records = ApprovalService.pending_transfers(query_int('business_unit_id'))
    return success([r.to_dict() for r in records])


@bp.get('/<int:transfer_id>')
def get_transfer(transfer_id):
    record = TransferRecord.query.get(transfer_id)
    if record is None:
        raise RecordNotFoundError(f"Transfer {transfer_id} not found")
    return success(record.to_dict())


@bp.post('/<int:transfer_id>/approve')
def approve_transfer(transfer_id):
    data = json_body()
    record = TransferContext(transfer_id).approve(actor_id(data), notes=data.get('notes'))
    return success(record.to_dict())


@bp.post('/<int:transfer_id>/reject')
def reject_transfer(transfer_id):
    data = json_body()
    record = TransferContext(transfer_id).reject(actor_id(data), data.get('reason'))
    return success(record.to_dict())


@bp.post('/<int:transfer_id>/cancel')
def cancel_transfer(transfer_id):
    data = json_body()
    record = TransferContext(transfer_id).cancel(actor_id(data), data.get('reason'))
    return success(record.to_dict())


@bp.post('/<int:transfer_id>/dispatch')
def dispatch_transfer(transfer_id):
    data = json_body()
    record = TransferContext(transfer_id).dispatch(actor_id(data), tracking_number=data.get('tracking_number'))
    return success(record.to_dict())


@bp.post('/<int:transfer_id>/complete')
def complete_transfer(transfer_id):
    data = json_body()
    record = TransferContext(transfer_id).complete(
        actor_id(data),
        condition_after=data.get('condition_after'),
        receipt_notes=data.get('receipt_notes'),
    )
    return success(record.to_dict())

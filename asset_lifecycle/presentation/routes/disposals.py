from flask import Blueprint

from asset_lifecycle.data.disposals.disposal_record import DisposalRecord
from asset_lifecycle.buisness.core.errors import RecordNotFoundError
from asset_lifecycle.buisness.disposals.context import DisposalContext
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

bp = Blueprint('disposals', __name__)


@bp.post('')
def dispose_asset():
    data = json_body()
    record = DisposalContext.dispose(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        actor_id=actor_id(data),
        reason=data.get('reason'),
        disposal_date=parse_date(data.get('disposal_date'), 'disposal_date'),
        disposal_method=data.get('disposal_method'),
        disposal_value=parse_decimal(data.get('disposal_value'), 'disposal_value') or ZERO,
        disposal_cost=parse_decimal(data.get('disposal_cost'), 'disposal_cost') or ZERO,
        recipient_name=data.get('recipient_name'),
        recipient_details=data.get('recipient_details'),
        notes=data.get('notes'),
    )
    return success(record.to_dict(), 201)


@bp.get('/pending')
def pending_disposals():
    records = ApprovalService.pending_disposals(query_int('business_unit_id'))
    return success([r.to_dict() for r in records])


@bp.get('/<int:disposal_id>')
def get_disposal(disposal_id):
    record = DisposalRecord.query.get(disposal_id)
    if record is None:
        raise RecordNotFoundError(f"Disposal {disposal_id} not found")
    return success(record.to_dict())


@bp.post('/<int:disposal_id>/approve')
def approve_disposal(disposal_id):
    data = json_body()
    record = DisposalContext(disposal_id).approve(actor_id(data), notes=data.get('notes'))
    return success(record.to_dict())

from flask import Blueprint

from asset_lifecycle.presentation.routes.core.parsing import query_int
from asset_lifecycle.presentation.routes.core.responses import success
from asset_lifecycle.services.approval_service import ApprovalService

bp = Blueprint('approvals', __name__)


@bp.get('/pending')
def pending_approvals():
    return success(ApprovalService.get_pending(query_int('business_unit_id')))

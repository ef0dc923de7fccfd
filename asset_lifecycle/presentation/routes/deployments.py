from flask import Blueprint

from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.buisness.core.errors import RecordNotFoundError
from asset_lifecycle.buisness.deployments.context import DeploymentContext
from asset_lifecycle.presentation.routes.core.parsing import actor_id, json_body, parse_date, parse_int, query_int
from asset_lifecycle.presentation.routes.core.responses import success
from asset_lifecycle.services.approval_service import ApprovalService

bp = Blueprint('deployments', __name__)


@bp.post('')
def request_deployment():
    data = json_body()
    record = DeploymentContext.request(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        employee_id=parse_int(data.get('employee_id'), 'employee_id'),
        actor_id=actor_id(data),
        expected_return_date=parse_date(data.get('expected_return_date'), 'expected_return_date'),
        condition_on_deploy=data.get('condition_on_deploy'),
        notes=data.get('notes'),
    )
    return success(record.to_dict(), 201)


@bp.get('/pending')
def pending_deployments():
    records = ApprovalService.pending_deployments(query_int('business_unit_id'))
    return success([r.to_dict() for r in records])


@bp.get('/<int:deployment_id>')
def get_deployment(deployment_id):
    record = DeploymentRecord.query.get(deployment_id)
    if record is None:
        raise RecordNotFoundError(f"Deployment {deployment_id} not found")
    return success(record.to_dict())


@bp.post('/<int:deployment_id>/approve')
def approve_deployment(deployment_id):
    data = json_body()
    record = DeploymentContext(deployment_id).approve(actor_id(data), notes=data.get('notes'))
    return success(record.to_dict())


@bp.post('/<int:deployment_id>/reject')
def reject_deployment(deployment_id):
    data = json_body()
    record = DeploymentContext(deployment_id).reject(actor_id(data), data.get('reason'))
    return success(record.to_dict())


@bp.post('/<int:deployment_id>/cancel')
def cancel_deployment(deployment_id):
    data = json_body()
    record = DeploymentContext(deployment_id).cancel(actor_id(data), data.get('reason'))
    return success(record.to_dict())


@bp.post('/<int:deployment_id>/return')
def return_deployment(deployment_id):
    data = json_body()
    record = DeploymentContext(deployment_id).return_asset(
        actor_id(data),
        data.get('return_condition'),
        return_notes=data.get('return_notes'),
        returned_date=parse_date(data.get('returned_date'), 'returned_date'),
    )
    return success(record.to_dict())

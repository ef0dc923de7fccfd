"""
Deployment workflow: request, accounting approval, rejection, cancellation and return
"""

from datetime import date

import pytest

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.data.core.enums import AssetStatus, DeploymentStatus, HistoryAction
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.buisness.assets.lifecycle import AssetLifecycleContext
from asset_lifecycle.buisness.core.errors import (
    ConflictError,
    PreconditionError,
    RecordNotFoundError,
    ValidationError,
)
from asset_lifecycle.buisness.deployments.context import DeploymentContext
from asset_lifecycle.buisness.deployments.state_machine import DeploymentStateMachine

ACTOR_ID = 1
APPROVER_ID = 7


def history_actions(asset_id):
    rows = AssetHistory.query.filter_by(asset_id=asset_id).order_by(AssetHistory.id).all()
    return [row.action for row in rows]


def test_state_machine_table():
    assert DeploymentStateMachine.can_transition(
        DeploymentStatus.PENDING_ACCOUNTING_APPROVAL, DeploymentStatus.APPROVED
    )
    assert not DeploymentStateMachine.can_transition(
        DeploymentStatus.PENDING_ACCOUNTING_APPROVAL, DeploymentStatus.RETURNED
    )
    assert DeploymentStateMachine.get_allowed_transitions(DeploymentStatus.RETURNED) == set()


def test_full_deployment_flow(db, asset, employee):
    asset_id = asset.id
    record = DeploymentContext.request(asset_id, employee.id, ACTOR_ID, condition_on_deploy='New')
    assert record.status == DeploymentStatus.PENDING_ACCOUNTING_APPROVAL
    assert db.session.get(Asset, asset_id).status == AssetStatus.AVAILABLE, \
        "The asset only moves once accounting approves"

    DeploymentContext(record.id).approve(APPROVER_ID, notes='Budget ok')
    record = db.session.get(DeploymentRecord, record.id)
    asset = db.session.get(Asset, asset_id)
    assert record.status == DeploymentStatus.DEPLOYED
    assert record.approved_by_id == APPROVER_ID
    assert record.deployed_date == date.today()
    assert asset.status == AssetStatus.DEPLOYED
    assert asset.current_employee_id == employee.id

    DeploymentContext(record.id).return_asset(ACTOR_ID, 'Good', return_notes='Minor scuffs')
    record = db.session.get(DeploymentRecord, record.id)
    asset = db.session.get(Asset, asset_id)
    assert record.status == DeploymentStatus.RETURNED
    assert record.return_condition == 'Good'
    assert asset.status == AssetStatus.AVAILABLE
    assert asset.current_employee_id is None

    assert history_actions(asset_id) == [
        HistoryAction.REGISTERED,
        HistoryAction.DEPLOYMENT_REQUESTED,
        HistoryAction.DEPLOYED,
        HistoryAction.RETURNED,
    ]


def test_request_for_deployed_asset_creates_nothing(asset, employee):
    asset_id = asset.id
    record = DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).approve(APPROVER_ID)

    with pytest.raises(PreconditionError) as exc_info:
        DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    assert exc_info.value.rule == 'asset_available'
    assert DeploymentRecord.query.count() == 1


def test_second_pending_request_conflicts(asset, employee):
    asset_id = asset.id
    DeploymentContext.request(asset_id, employee.id, ACTOR_ID)

    with pytest.raises(ConflictError):
        DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    assert DeploymentRecord.query.count() == 1


def test_inactive_or_unknown_employee(asset, inactive_employee):
    with pytest.raises(ValidationError) as exc_info:
        DeploymentContext.request(asset.id, inactive_employee.id, ACTOR_ID)
    assert 'employee_id' in exc_info.value.field_errors

    with pytest.raises(ValidationError):
        DeploymentContext.request(asset.id, 999, ACTOR_ID)


def test_unknown_asset(employee):
    with pytest.raises(RecordNotFoundError):
        DeploymentContext.request(999, employee.id, ACTOR_ID)


def test_actor_is_required(asset, employee):
    with pytest.raises(ValidationError) as exc_info:
        DeploymentContext.request(asset.id, employee.id, None)
    assert 'actor_id' in exc_info.value.field_errors


def test_reject_requires_reason(db, asset, employee):
    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)

    with pytest.raises(ValidationError):
        DeploymentContext(record.id).reject(APPROVER_ID, '')

    DeploymentContext(record.id).reject(APPROVER_ID, 'No budget this quarter')
    record = db.session.get(DeploymentRecord, record.id)
    assert record.status == DeploymentStatus.REJECTED
    assert record.rejection_reason == 'No budget this quarter'
    assert db.session.get(Asset, asset.id).status == AssetStatus.AVAILABLE

    with pytest.raises(PreconditionError):
        DeploymentContext(record.id).approve(APPROVER_ID)


def test_cancel_pending_frees_the_asset(asset, employee):
    asset_id = asset.id
    record = DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).cancel(ACTOR_ID, 'Employee left')

    again = DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    assert again.id != record.id


def test_cancel_deployed_requires_return(asset, employee):
    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).approve(APPROVER_ID)

    with pytest.raises(PreconditionError) as exc_info:
        DeploymentContext(record.id).cancel(ACTOR_ID)
    assert exc_info.value.rule == 'use_return'


def test_return_requires_condition(asset, employee):
    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).approve(APPROVER_ID)

    with pytest.raises(ValidationError) as exc_info:
        DeploymentContext(record.id).return_asset(ACTOR_ID, None)
    assert 'return_condition' in exc_info.value.field_errors


def test_return_keeps_overridden_status(db, asset, employee):
    asset_id = asset.id
    record = DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).approve(APPROVER_ID)
    AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'DAMAGED', 'Dropped in transit')

    DeploymentContext(record.id).return_asset(ACTOR_ID, 'Cracked screen')

    asset = db.session.get(Asset, asset_id)
    assert asset.status == AssetStatus.DAMAGED
    assert asset.current_employee_id is None


def test_approve_refused_when_asset_left_available(asset, employee):
    asset_id = asset.id
    record = DeploymentContext.request(asset_id, employee.id, ACTOR_ID)
    AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'IN_MAINTENANCE', 'Pre-deployment check failed')

    with pytest.raises(PreconditionError) as exc_info:
        DeploymentContext(record.id).approve(APPROVER_ID)
    assert exc_info.value.rule == 'asset_available'


def test_transmittal_numbers_are_sequential(make_asset, employee):
    first = DeploymentContext.request(make_asset().id, employee.id, ACTOR_ID)
    second = DeploymentContext.request(make_asset().id, employee.id, ACTOR_ID)

    year = date.today().year
    assert first.transmittal_number == f"TN-{year}-0001"
    assert second.transmittal_number == f"TN-{year}-0002"


def test_concurrent_requests_leave_one_record(asset, employee, interleaved):
    """Two requests racing for one asset: one wins, the other gets a conflict"""
    asset_id, employee_id = asset.id, employee.id

    def competitor(uow_factory):
        DeploymentContext.request(asset_id, employee_id, 2, uow_factory=uow_factory)

    with pytest.raises(ConflictError):
        DeploymentContext.request(asset_id, employee_id, ACTOR_ID, uow_factory=interleaved(competitor))

    records = DeploymentRecord.query.all()
    assert len(records) == 1
    assert records[0].created_by_id == 2


def test_number_collision_on_another_asset_is_retried(make_asset, employee, interleaved):
    """A request that loses its transmittal number to another asset's request takes the next one"""
    asset_id, other_asset_id, employee_id = make_asset().id, make_asset().id, employee.id
    competing = []

    def competitor(uow_factory):
        # every attempt builds a fresh unit of work; compete only with the first
        if not competing:
            competing.append(DeploymentContext.request(other_asset_id, employee_id, 2, uow_factory=uow_factory))

    record = DeploymentContext.request(asset_id, employee_id, ACTOR_ID, uow_factory=interleaved(competitor))

    year = date.today().year
    assert DeploymentRecord.query.count() == 2
    assert DeploymentRecord.query.filter_by(asset_id=other_asset_id).one().transmittal_number == f"TN-{year}-0001"
    assert record.transmittal_number == f"TN-{year}-0002"
    assert record.status == DeploymentStatus.PENDING_ACCOUNTING_APPROVAL

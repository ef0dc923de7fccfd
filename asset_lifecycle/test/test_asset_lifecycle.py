"""
Asset status machine, admin overrides, return to service and retirement
"""

import pytest

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.data.core.enums import AssetStatus, HistoryAction
from asset_lifecycle.buisness.assets.lifecycle import AssetLifecycleContext
from asset_lifecycle.buisness.assets.state_machine import AssetStatusMachine
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError
from asset_lifecycle.buisness.deployments.context import DeploymentContext
from asset_lifecycle.buisness.disposals.context import DisposalContext

ACTOR_ID = 1


def deploy(asset_id, employee_id):
    record = DeploymentContext.request(asset_id, employee_id, ACTOR_ID)
    DeploymentContext(record.id).approve(ACTOR_ID)
    return record


def test_transition_table():
    assert AssetStatusMachine.can_transition(AssetStatus.AVAILABLE, AssetStatus.DEPLOYED)
    assert AssetStatusMachine.can_transition(AssetStatus.RETIRED, AssetStatus.DISPOSED)
    assert not AssetStatusMachine.can_transition(AssetStatus.RETIRED, AssetStatus.AVAILABLE)
    assert not AssetStatusMachine.can_transition(AssetStatus.DEPLOYED, AssetStatus.DISPOSED)
    assert AssetStatusMachine.get_allowed_transitions(AssetStatus.DISPOSED) == set()
    for status in AssetStatus:
        assert not AssetStatusMachine.can_transition(AssetStatus.DISPOSED, status), \
            f"DISPOSED must be terminal, but allows {status.value}"


def test_override_writes_history(db, asset):
    asset_id = asset.id
    AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'IN_MAINTENANCE', 'Screen flicker')

    assert db.session.get(Asset, asset_id).status == AssetStatus.IN_MAINTENANCE
    entry = AssetHistory.query.filter_by(asset_id=asset_id, action=HistoryAction.STATUS_CHANGED).one()
    assert entry.previous_status == AssetStatus.AVAILABLE
    assert entry.new_status == AssetStatus.IN_MAINTENANCE
    assert entry.actor_id == ACTOR_ID
    assert entry.reason == 'Screen flicker'


def test_override_requires_reason(asset):
    with pytest.raises(ValidationError) as exc_info:
        AssetLifecycleContext(asset.id).override_status(ACTOR_ID, 'DAMAGED', '  ')
    assert 'reason' in exc_info.value.field_errors


def test_override_rejects_unknown_status(asset):
    with pytest.raises(ValidationError):
        AssetLifecycleContext(asset.id).override_status(ACTOR_ID, 'MISPLACED', 'Cannot find it')


@pytest.mark.parametrize('target, rule', [
    ('RETIRED', 'override_target'),
    ('DISPOSED', 'override_target'),
    ('AVAILABLE', 'status_unchanged'),
])
def test_override_limits_from_available(asset, target, rule):
    with pytest.raises(PreconditionError) as exc_info:
        AssetLifecycleContext(asset.id).override_status(ACTOR_ID, target, 'Admin edit')
    assert exc_info.value.rule == rule


def test_override_only_from_available_or_deployed(asset):
    ctx = AssetLifecycleContext(asset.id)
    ctx.override_status(ACTOR_ID, 'IN_MAINTENANCE', 'Service')

    with pytest.raises(PreconditionError) as exc_info:
        ctx.override_status(ACTOR_ID, 'LOST', 'Lost in the workshop')
    assert exc_info.value.rule == 'override_source'


def test_disposed_asset_cannot_be_overridden(asset):
    asset_id = asset.id
    DisposalContext.dispose(asset_id, ACTOR_ID, 'SCRAPPED')

    with pytest.raises(PreconditionError) as exc_info:
        AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'DAMAGED', 'Dropped')
    assert exc_info.value.rule == 'terminal_status'


def test_return_to_service_goes_back_to_available(db, asset):
    asset_id = asset.id
    ctx = AssetLifecycleContext(asset_id)
    ctx.override_status(ACTOR_ID, 'DAMAGED', 'Cracked hinge')
    ctx.return_to_service(ACTOR_ID, 'Hinge replaced')

    assert db.session.get(Asset, asset_id).status == AssetStatus.AVAILABLE


def test_return_to_service_keeps_deployment(db, asset, employee):
    asset_id = asset.id
    deploy(asset_id, employee.id)
    ctx = AssetLifecycleContext(asset_id)
    ctx.override_status(ACTOR_ID, 'IN_MAINTENANCE', 'Battery swap')
    ctx.return_to_service(ACTOR_ID, 'Battery replaced')

    asset = db.session.get(Asset, asset_id)
    assert asset.status == AssetStatus.DEPLOYED, "Asset is still held by its deployment"
    assert asset.current_employee_id == employee.id


def test_return_to_service_requires_out_of_service_status(asset):
    with pytest.raises(PreconditionError) as exc_info:
        AssetLifecycleContext(asset.id).return_to_service(ACTOR_ID, 'Nothing to do')
    assert exc_info.value.rule == 'out_of_service'


def test_retire_then_dispose(db, asset):
    asset_id = asset.id
    AssetLifecycleContext(asset_id).retire(ACTOR_ID, 'End of refresh cycle', disposal_planned=True)

    asset = db.session.get(Asset, asset_id)
    assert asset.status == AssetStatus.RETIRED
    assert asset.retirement.disposal_planned is True

    with pytest.raises(PreconditionError):
        AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'DAMAGED', 'Dropped')

    DisposalContext.dispose(asset_id, ACTOR_ID, 'END_OF_LIFE')
    assert db.session.get(Asset, asset_id).status == AssetStatus.DISPOSED


def test_retire_blocked_by_active_deployment(asset, employee):
    asset_id = asset.id
    DeploymentContext.request(asset_id, employee.id, ACTOR_ID)

    with pytest.raises(PreconditionError) as exc_info:
        AssetLifecycleContext(asset_id).retire(ACTOR_ID, 'Replaced')
    assert exc_info.value.rule == 'no_active_deployment'


def test_retire_twice_is_rejected(asset):
    ctx = AssetLifecycleContext(asset.id)
    ctx.retire(ACTOR_ID, 'Replaced')
    with pytest.raises(PreconditionError) as exc_info:
        ctx.retire(ACTOR_ID, 'Replaced again')
    assert exc_info.value.rule == 'not_retired'


def test_every_transition_bumps_version(db, asset):
    asset_id = asset.id
    before = db.session.get(Asset, asset_id).version_id
    AssetLifecycleContext(asset_id).override_status(ACTOR_ID, 'LOST', 'Missing after offsite')
    after = db.session.get(Asset, asset_id).version_id
    assert after == before + 1

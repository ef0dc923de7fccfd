"""
Lifecycle events and the unit of work that publishes them
"""

import pytest

from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.enums import HistoryAction
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.buisness.core.errors import PreconditionError
from asset_lifecycle.buisness.core.unit_of_work import UnitOfWork
from asset_lifecycle.buisness.deployments.context import DeploymentContext

ACTOR_ID = 1


def test_subscriber_receives_event_after_commit(asset, employee, clean_event_bus):
    received = []
    clean_event_bus.subscribe(HistoryAction.DEPLOYED, received.append)

    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    assert received == [], "Requesting does not deploy"

    DeploymentContext(record.id).approve(3)

    assert len(received) == 1
    event = received[0]
    assert event.event_type == 'DEPLOYED'
    assert event.asset_id == asset.id
    assert event.actor_id == 3
    assert event.previous_status == 'AVAILABLE'
    assert event.new_status == 'DEPLOYED'
    assert event.payload['deployment_id'] == record.id
    assert event.history_id is not None


def test_global_subscriber_sees_every_step(asset, employee, clean_event_bus):
    seen = []
    clean_event_bus.subscribe_all(lambda event: seen.append(event.event_type))

    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).reject(ACTOR_ID, 'Not needed')

    assert seen == ['DEPLOYMENT_REQUESTED', 'DEPLOYMENT_REJECTED']


def test_failing_handler_does_not_undo_transition(db, asset, employee, clean_event_bus):
    def broken(event):
        raise RuntimeError("mail server down")

    clean_event_bus.subscribe(HistoryAction.DEPLOYMENT_REQUESTED, broken)

    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    assert db.session.get(DeploymentRecord, record.id) is not None


def test_failed_transition_publishes_nothing(asset, employee, clean_event_bus):
    seen = []
    clean_event_bus.subscribe_all(seen.append)

    record = DeploymentContext.request(asset.id, employee.id, ACTOR_ID)
    DeploymentContext(record.id).approve(ACTOR_ID)
    seen.clear()

    with pytest.raises(PreconditionError):
        DeploymentContext(record.id).cancel(ACTOR_ID)
    assert seen == []


def test_unit_of_work_without_commit_rolls_back(db, app):
    with UnitOfWork() as uow:
        uow.session.add(BusinessUnit(code='TMP', name='Temporary'))

    assert BusinessUnit.query.filter_by(code='TMP').first() is None


def test_unit_of_work_rolls_back_on_error(db, app):
    with pytest.raises(RuntimeError):
        with UnitOfWork() as uow:
            uow.session.add(BusinessUnit(code='TMP', name='Temporary'))
            uow.session.flush()
            raise RuntimeError("boom")

    assert BusinessUnit.query.filter_by(code='TMP').first() is None

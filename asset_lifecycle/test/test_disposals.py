"""
Disposal: gain/loss, terminal status and one-time approval
"""

from datetime import date
from decimal import Decimal

import pytest

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.data.core.enums import AssetStatus, DisposalReason, HistoryAction
from asset_lifecycle.data.disposals.disposal_record import DisposalRecord
from asset_lifecycle.buisness.core.errors import PreconditionError, ValidationError
from asset_lifecycle.buisness.deployments.context import DeploymentContext
from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler
from asset_lifecycle.buisness.disposals.context import DisposalContext

ACTOR_ID = 1


def test_disposal_records_gain_loss(db, asset):
    asset_id = asset.id
    record = DisposalContext.dispose(
        asset_id,
        ACTOR_ID,
        'SOLD',
        disposal_value='1000.00',
        disposal_cost='100.00',
        recipient_name='Refurb Co',
    )

    record = db.session.get(DisposalRecord, record.id)
    assert record.reason == DisposalReason.SOLD
    assert record.book_value_at_disposal == Decimal('120000.00')
    assert record.net_disposal_value == Decimal('900.00')
    assert record.gain_loss == Decimal('-119100.00'), "A sale below book value is a loss"
    assert record.disposal_date == date.today()
    assert not record.is_approved

    asset = db.session.get(Asset, asset_id)
    assert asset.status == AssetStatus.DISPOSED
    assert asset.next_depreciation_date is None

    entry = AssetHistory.query.filter_by(asset_id=asset_id, action=HistoryAction.DISPOSED).one()
    assert entry.previous_status == AssetStatus.AVAILABLE
    assert entry.new_status == AssetStatus.DISPOSED
    assert entry.reason == 'SOLD'
    assert entry.disposal_id == record.id


def test_disposal_after_depreciation_uses_book_value(db, asset):
    asset_id = asset.id
    DepreciationScheduler().post_period(asset_id, as_of=date(2025, 2, 1), actor_id=ACTOR_ID)

    record = DisposalContext.dispose(asset_id, ACTOR_ID, 'SOLD', disposal_value='115000.00')
    record = db.session.get(DisposalRecord, record.id)
    assert record.book_value_at_disposal == Decimal('110000.00')
    assert record.gain_loss == Decimal('5000.00')


def test_disposed_is_terminal(asset):
    asset_id = asset.id
    DisposalContext.dispose(asset_id, ACTOR_ID, 'SCRAPPED')

    with pytest.raises(PreconditionError) as exc_info:
        DisposalContext.dispose(asset_id, ACTOR_ID, 'SCRAPPED')
    assert exc_info.value.rule == 'terminal_status'
    assert DisposalRecord.query.count() == 1


def test_approval_happens_once(db, asset):
    record = DisposalContext.dispose(asset.id, ACTOR_ID, 'DONATED', recipient_name='City Library')

    DisposalContext(record.id).approve(5, notes='Donation letter on file')
    approved = db.session.get(DisposalRecord, record.id)
    assert approved.approved_by_id == 5
    assert approved.is_approved

    with pytest.raises(PreconditionError) as exc_info:
        DisposalContext(record.id).approve(5)
    assert exc_info.value.rule == 'disposal_not_approved'


def test_active_deployment_blocks_disposal(asset, employee):
    asset_id = asset.id
    DeploymentContext.request(asset_id, employee.id, ACTOR_ID)

    with pytest.raises(PreconditionError) as exc_info:
        DisposalContext.dispose(asset_id, ACTOR_ID, 'OBSOLETE')
    assert exc_info.value.rule == 'no_active_deployment'


@pytest.mark.parametrize('kwargs, field', [
    ({'reason': 'LOST_AT_SEA'}, 'reason'),
    ({'reason': 'SOLD', 'disposal_value': '-10.00'}, 'disposal_value'),
    ({'reason': 'SOLD', 'disposal_cost': 'free'}, 'disposal_cost'),
])
def test_disposal_input_validation(asset, kwargs, field):
    with pytest.raises(ValidationError) as exc_info:
        DisposalContext.dispose(asset.id, ACTOR_ID, **kwargs)
    assert field in exc_info.value.field_errors

"""
Depreciation scheduler: batch runs, idempotence, eligibility and isolation
"""

from datetime import date
from decimal import Decimal

import pytest

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.data.core.enums import AssetStatus, HistoryAction
from asset_lifecycle.data.depreciation.depreciation_entry import DepreciationEntry
from asset_lifecycle.buisness.core.errors import ConflictError, PreconditionError
from asset_lifecycle.buisness.depreciation.calculator import period_date_for
from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler
from asset_lifecycle.buisness.depreciation.usage import RecordedUsageSource
from asset_lifecycle.buisness.disposals.context import DisposalContext
from asset_lifecycle.buisness.transfers.context import TransferContext

ACTOR_ID = 1
START = date(2025, 1, 1)


def run_months(scheduler, months, **kwargs):
    summaries = []
    for month in range(1, months + 1):
        summaries.append(scheduler.run_batch(as_of=period_date_for(START, month), actor_id=ACTOR_ID, **kwargs))
    return summaries


def entries_for(db, asset_id):
    return (
        DepreciationEntry.query.filter_by(asset_id=asset_id)
        .order_by(DepreciationEntry.period_date)
        .all()
    )


def test_twelve_monthly_runs_fully_depreciate_laptop(db, asset):
    """120,000 straight-line over 12 months: 10,000 a month, zero book value after 12 runs"""
    asset_id = asset.id
    summaries = run_months(DepreciationScheduler(), 12)

    assert all(s.processed == 1 for s in summaries), [s.to_dict() for s in summaries]
    assert all(s.total_depreciation == Decimal('10000.00') for s in summaries)

    asset = db.session.get(Asset, asset_id)
    assert asset.current_book_value == Decimal('0.00')
    assert asset.accumulated_depreciation == Decimal('120000.00')
    assert asset.is_fully_depreciated is True
    assert asset.next_depreciation_date is None
    assert asset.status == AssetStatus.AVAILABLE, "Full depreciation must not change the status"
    assert asset.depreciation_periods_posted == 12
    assert len(entries_for(db, asset_id)) == 12


def test_straight_line_life_sums_to_depreciable_amount(db, make_asset):
    asset = make_asset(purchase_price='1000.00', salvage_value='100.00', useful_life_months=7)
    asset_id = asset.id
    run_months(DepreciationScheduler(), 10)

    entries = entries_for(db, asset_id)
    assert len(entries) == 7, "No posting past the useful life"
    assert sum(e.depreciation_amount for e in entries) == Decimal('900.00')
    assert db.session.get(Asset, asset_id).current_book_value == Decimal('100.00')


def test_rerun_for_same_period_posts_once(db, asset):
    asset_id = asset.id
    scheduler = DepreciationScheduler()
    as_of = date(2025, 2, 1)

    first = scheduler.run_batch(as_of=as_of, actor_id=ACTOR_ID)
    second = scheduler.run_batch(as_of=as_of, actor_id=ACTOR_ID)
    direct = scheduler.post_period(asset_id, as_of=as_of, actor_id=ACTOR_ID)

    assert first.processed == 1
    assert second.processed == 0
    assert direct.posted is False
    assert len(entries_for(db, asset_id)) == 1


def test_late_run_catches_up_one_period_per_run(db, asset):
    """A run months late posts the oldest missing period first"""
    asset_id = asset.id
    scheduler = DepreciationScheduler()
    result = scheduler.post_period(asset_id, as_of=date(2025, 6, 1), actor_id=ACTOR_ID)

    assert result.period_date == date(2025, 2, 1)
    assert db.session.get(Asset, asset_id).next_depreciation_date == date(2025, 3, 1)


def test_disposed_asset_is_never_posted(db, asset):
    asset_id = asset.id
    DisposalContext.dispose(asset_id, ACTOR_ID, 'SCRAPPED')

    summary = DepreciationScheduler().run_batch(as_of=date(2026, 1, 1), actor_id=ACTOR_ID)

    assert summary.total == 0
    assert entries_for(db, asset_id) == []


def test_retired_asset_is_not_due(db, asset):
    from asset_lifecycle.buisness.assets.lifecycle import AssetLifecycleContext

    asset_id = asset.id
    AssetLifecycleContext(asset_id).retire(ACTOR_ID, 'Replaced by newer model')

    assert DepreciationScheduler().find_due_asset_ids(as_of=date(2026, 1, 1)) == []


def test_in_transit_asset_is_skipped(db, asset, business_units):
    asset_id = asset.id
    transfer = TransferContext.request(asset_id, business_units[1].id, ACTOR_ID, 'Relocating team')
    TransferContext(transfer.id).approve(ACTOR_ID)
    TransferContext(transfer.id).dispatch(ACTOR_ID)

    scheduler = DepreciationScheduler()
    summary = scheduler.run_batch(as_of=date(2025, 2, 1), actor_id=ACTOR_ID)
    direct = scheduler.post_period(asset_id, as_of=date(2025, 2, 1), actor_id=ACTOR_ID)

    assert summary.processed == 0
    assert direct.posted is False
    assert 'transit' in direct.reason

    TransferContext(transfer.id).complete(ACTOR_ID)
    resumed = scheduler.run_batch(as_of=date(2025, 2, 1), actor_id=ACTOR_ID)
    assert resumed.processed == 1, "Depreciation resumes against the same asset after receipt"


def test_book_value_never_below_salvage(db, make_asset):
    asset = make_asset(
        purchase_price='10000.00',
        salvage_value='1000.00',
        depreciation_method='DECLINING_BALANCE',
        depreciation_rate='1.00',
        useful_life_months=24,
    )
    asset_id = asset.id
    run_months(DepreciationScheduler(), 30)

    entries = entries_for(db, asset_id)
    assert entries, "Expected postings"
    assert all(e.book_value_end >= Decimal('1000.00') for e in entries)
    final = db.session.get(Asset, asset_id)
    assert final.current_book_value == Decimal('1000.00')
    assert final.is_fully_depreciated


def test_declining_balance_keeps_rate_through_end_of_life(db, make_asset):
    asset = make_asset(
        purchase_price='10000.00',
        salvage_value='1000.00',
        depreciation_method='DECLINING_BALANCE',
        depreciation_rate='0.24',
        useful_life_months=3,
    )
    asset_id = asset.id
    scheduler = DepreciationScheduler()

    posted = [
        scheduler.post_period(asset_id, as_of=period_date_for(START, month), actor_id=ACTOR_ID).amount
        for month in range(1, 4)
    ]

    assert posted == [Decimal('200.00'), Decimal('196.00'), Decimal('192.08')]
    final = db.session.get(Asset, asset_id)
    assert final.current_book_value == Decimal('9411.92')
    assert final.is_fully_depreciated is False


def test_missing_usage_fails_one_asset_not_the_batch(db, make_asset):
    usage_asset = make_asset(
        depreciation_method='UNITS_OF_PRODUCTION',
        useful_life_months=None,
        total_expected_units=1000,
    )
    time_asset = make_asset()
    usage_asset_id, time_asset_id = usage_asset.id, time_asset.id

    summary = DepreciationScheduler().run_batch(as_of=date(2025, 2, 1), actor_id=ACTOR_ID)

    assert summary.processed == 1
    assert summary.failed == 1
    assert summary.failures[0].asset_id == usage_asset_id
    assert summary.failures[0].error_type == 'CalculationError'
    assert len(entries_for(db, time_asset_id)) == 1
    assert entries_for(db, usage_asset_id) == [], "A failed asset leaves nothing behind"


def test_usage_mapping_feeds_units_of_production(db, make_asset):
    asset = make_asset(
        purchase_price='10000.00',
        depreciation_method='UNITS_OF_PRODUCTION',
        useful_life_months=None,
        total_expected_units=1000,
    )
    asset_id = asset.id

    summary = DepreciationScheduler().run_batch(
        as_of=date(2025, 2, 1), actor_id=ACTOR_ID, usage={asset_id: 120}
    )

    assert summary.processed == 1
    entry = entries_for(db, asset_id)[0]
    assert entry.units_in_period == 120
    assert entry.depreciation_amount == Decimal('1200.00')


def test_recorded_units_drive_usage_source(db, make_asset):
    asset = make_asset(
        purchase_price='10000.00',
        depreciation_method='UNITS_OF_PRODUCTION',
        useful_life_months=None,
        total_expected_units=1000,
    )
    asset_id = asset.id
    scheduler = DepreciationScheduler(usage_source=RecordedUsageSource())

    scheduler.record_units(asset_id, 30, actor_id=ACTOR_ID)
    scheduler.record_units(asset_id, 20, actor_id=ACTOR_ID)
    first = scheduler.post_period(asset_id, as_of=date(2025, 2, 1), actor_id=ACTOR_ID)
    second = scheduler.post_period(asset_id, as_of=date(2025, 3, 1), actor_id=ACTOR_ID)

    assert first.amount == Decimal('500.00')
    assert second.posted and second.amount == Decimal('0.00'), "No new readings means zero usage"
    assert db.session.get(Asset, asset_id).current_units == 50


def test_record_units_only_for_units_of_production(asset):
    with pytest.raises(PreconditionError) as exc_info:
        DepreciationScheduler().record_units(asset.id, 10, actor_id=ACTOR_ID)
    assert exc_info.value.rule == 'units_of_production_only'


def test_posting_writes_entry_and_history(db, asset):
    asset_id = asset.id
    DepreciationScheduler().post_period(asset_id, as_of=date(2025, 2, 1), actor_id=ACTOR_ID)

    entry = entries_for(db, asset_id)[0]
    assert entry.period_start_date == date(2025, 1, 1)
    assert entry.book_value_start == Decimal('120000.00')
    assert entry.book_value_end == Decimal('110000.00')
    assert entry.calculated_by_id == ACTOR_ID

    history = AssetHistory.query.filter_by(
        asset_id=asset_id, action=HistoryAction.DEPRECIATION_CALCULATED
    ).one()
    assert history.depreciation_entry_id == entry.id
    assert history.book_value_after == Decimal('110000.00')


def test_concurrent_postings_for_same_asset(db, asset, interleaved):
    """Two runs racing on one asset: exactly one posting survives"""
    asset_id = asset.id
    as_of = date(2025, 2, 1)

    def competitor(uow_factory):
        DepreciationScheduler(uow_factory=uow_factory).post_period(asset_id, as_of=as_of, actor_id=2)

    scheduler = DepreciationScheduler(uow_factory=interleaved(competitor))
    with pytest.raises(ConflictError):
        scheduler.post_period(asset_id, as_of=as_of, actor_id=ACTOR_ID)

    entries = entries_for(db, asset_id)
    assert len(entries) == 1
    assert entries[0].calculated_by_id == 2

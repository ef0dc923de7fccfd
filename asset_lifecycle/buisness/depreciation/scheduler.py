"""
Depreciation Scheduler

Finds assets that are due, posts one period per asset and records the result.
Each asset is committed in its own unit of work, so a batch can stop between
assets without leaving anything half-posted, and one asset's failure never
aborts the rest of the batch.

Idempotence: an asset whose next period is already covered by its latest
DepreciationEntry is skipped. Two runs racing on the same asset are separated
by the unique (asset_id, period_date) constraint and the asset's optimistic
version; the loser gets a ConflictError and is reported as skipped.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.enums import DepreciationMethod, HistoryAction, AssetStatus
from asset_lifecycle.data.depreciation.depreciation_entry import DepreciationEntry
from asset_lifecycle.buisness.core.context import AggregateContext
from asset_lifecycle.buisness.core.errors import (
    ConflictError,
    LifecycleDomainError,
    PreconditionError,
    require_actor,
)
from asset_lifecycle.buisness.core.history import HistoryLog
from asset_lifecycle.buisness.core.narrator import LifecycleNarrator
from asset_lifecycle.buisness.core.unit_of_work import UnitOfWork
from asset_lifecycle.buisness.depreciation.calculator import (
    calculate_period,
    normalize_units,
    period_date_for,
)
from asset_lifecycle.buisness.depreciation.eligibility import DepreciationEligibility
from asset_lifecycle.buisness.depreciation.usage import UsageInput, resolve_units
from asset_lifecycle.utils.money import ZERO, format_money
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.depreciation.scheduler")


@dataclass
class PostingResult:
    asset_id: int
    posted: bool
    period_date: Optional[date] = None
    amount: Decimal = ZERO
    book_value_end: Optional[Decimal] = None
    fully_depreciated: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'asset_id': self.asset_id,
            'posted': self.posted,
            'period_date': self.period_date.isoformat() if self.period_date else None,
            'amount': format_money(self.amount),
            'book_value_end': format_money(self.book_value_end),
            'fully_depreciated': self.fully_depreciated,
            'reason': self.reason,
        }


@dataclass
class AssetFailure:
    asset_id: int
    error_type: str
    message: str

    def to_dict(self) -> dict:
        return {'asset_id': self.asset_id, 'error_type': self.error_type, 'message': self.message}


@dataclass
class BatchSummary:
    as_of: date
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    total_depreciation: Decimal = ZERO
    failures: List[AssetFailure] = field(default_factory=list)
    results: List[PostingResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.failed

    def to_dict(self) -> dict:
        return {
            'as_of': self.as_of.isoformat(),
            'processed': self.processed,
            'skipped': self.skipped,
            'failed': self.failed,
            'total': self.total,
            'total_depreciation': format_money(self.total_depreciation),
            'failures': [failure.to_dict() for failure in self.failures],
            'results': [result.to_dict() for result in self.results],
        }


class DepreciationScheduler:

    def __init__(
        self,
        uow_factory: Optional[Callable[[], UnitOfWork]] = None,
        usage_source: UsageInput = None,
    ):
        """
        Args:
            uow_factory: creates the unit of work for each asset
            usage_source: default usage feed for units-of-production assets
                (mapping of asset id to units, or a callable(asset, period_date))
        """
        self.uow_factory = uow_factory or UnitOfWork
        self.usage_source = usage_source

    def find_due_asset_ids(self, as_of: Optional[date] = None, business_unit_id: Optional[int] = None) -> List[int]:
        as_of = as_of or date.today()
        with self.uow_factory() as uow:
            query = DepreciationEligibility.build_due_query(uow.session, as_of, business_unit_id)
            return [asset_id for (asset_id,) in query.with_entities(Asset.id)]

    def run_batch(
        self,
        as_of: Optional[date] = None,
        actor_id: Optional[int] = None,
        business_unit_id: Optional[int] = None,
        usage: UsageInput = None,
    ) -> BatchSummary:
        """
        Post one period for every due asset.

        Returns:
            BatchSummary: counts of processed/skipped/failed assets, total
            depreciation posted and the per-asset failures
        """
        actor_id = require_actor(actor_id)
        as_of = as_of or date.today()
        summary = BatchSummary(as_of=as_of)

        asset_ids = self.find_due_asset_ids(as_of, business_unit_id)
        logger.info(f"Depreciation run as of {as_of.isoformat()}: {len(asset_ids)} assets due")

        for asset_id in asset_ids:
            try:
                result = self.post_period(asset_id, as_of=as_of, actor_id=actor_id, usage=usage)
            except ConflictError as exc:
                summary.skipped += 1
                summary.results.append(PostingResult(asset_id=asset_id, posted=False, reason=exc.message))
                logger.warning(f"Asset {asset_id} skipped, concurrent posting: {exc.message}")
                continue
            except LifecycleDomainError as exc:
                summary.failed += 1
                summary.failures.append(AssetFailure(asset_id, type(exc).__name__, exc.message))
                logger.warning(f"Asset {asset_id} failed: {type(exc).__name__}: {exc.message}")
                continue
            except SQLAlchemyError as exc:
                summary.failed += 1
                summary.failures.append(AssetFailure(asset_id, type(exc).__name__, str(exc)))
                logger.error(f"Asset {asset_id} failed with a database error", exc_info=True)
                continue

            summary.results.append(result)
            if result.posted:
                summary.processed += 1
                summary.total_depreciation += result.amount
            else:
                summary.skipped += 1

        logger.info(
            f"Depreciation run complete: processed={summary.processed} skipped={summary.skipped} "
            f"failed={summary.failed} total={format_money(summary.total_depreciation)}"
        )
        return summary

    def post_period(
        self,
        asset_id: int,
        as_of: Optional[date] = None,
        actor_id: Optional[int] = None,
        units: Optional[int] = None,
        usage: UsageInput = None,
    ) -> PostingResult:
        """
        Post the next period for one asset in its own transaction.

        Args:
            asset_id: asset to post for
            as_of: run date; the asset must be due on or before it
            actor_id: who the posting is attributed to
            units: usage for the period (units-of-production only)
            usage: usage feed overriding the scheduler default

        Raises:
            CalculationError: missing usage count or unusable terms
            ConflictError: another run posted this asset concurrently
        """
        actor_id = require_actor(actor_id)
        as_of = as_of or date.today()

        with self.uow_factory() as uow:
            session = uow.session
            asset = AggregateContext.load_asset(uow, asset_id)

            skip_reason = DepreciationEligibility.skip_reason(session, asset, as_of)
            if skip_reason:
                logger.debug(f"Asset {asset_id} skipped: {skip_reason}")
                return PostingResult(asset_id=asset_id, posted=False, reason=skip_reason)

            period_date = asset.next_depreciation_date
            latest = (
                session.query(DepreciationEntry)
                .filter(DepreciationEntry.asset_id == asset.id)
                .order_by(DepreciationEntry.period_date.desc())
                .first()
            )
            if latest is not None and latest.period_date >= period_date:
                reason = f"period ending {period_date.isoformat()} already posted"
                logger.debug(f"Asset {asset_id} skipped: {reason}")
                return PostingResult(asset_id=asset_id, posted=False, period_date=period_date, reason=reason)

            period_units = None
            if asset.depreciation_method == DepreciationMethod.UNITS_OF_PRODUCTION:
                period_units = units
                if period_units is None:
                    feed = usage if usage is not None else self.usage_source
                    period_units = resolve_units(feed, asset, period_date)

            calculation = calculate_period(asset, period_units)

            entry = DepreciationEntry(
                asset=asset,
                period_date=period_date,
                period_start_date=period_date - relativedelta(months=1),
                method=calculation.method,
                book_value_start=calculation.book_value_start,
                depreciation_amount=calculation.amount,
                book_value_end=calculation.book_value_end,
                accumulated_depreciation=calculation.accumulated_depreciation,
                units_in_period=calculation.units_in_period,
                calculation_basis=calculation.basis,
                calculated_by_id=actor_id,
                created_by_id=actor_id,
            )
            session.add(entry)

            asset.current_book_value = calculation.book_value_end
            asset.accumulated_depreciation = calculation.accumulated_depreciation
            asset.monthly_depreciation = calculation.amount
            asset.last_depreciation_date = period_date
            asset.depreciation_periods_posted = (asset.depreciation_periods_posted or 0) + 1
            if calculation.fully_depreciated:
                asset.is_fully_depreciated = True
                asset.next_depreciation_date = None
            else:
                asset.next_depreciation_date = period_date_for(
                    asset.depreciation_start_date, asset.depreciation_periods_posted + 1
                )
            asset.touch(actor_id)

            HistoryLog.append(
                uow,
                asset,
                HistoryAction.DEPRECIATION_CALCULATED,
                actor_id,
                notes=LifecycleNarrator.depreciation_posted(calculation, period_date),
                depreciation_entry=entry,
                book_value_before=calculation.book_value_start,
                book_value_after=calculation.book_value_end,
                details={
                    'period_date': period_date.isoformat(),
                    'amount': str(calculation.amount),
                    'units_in_period': calculation.units_in_period,
                    'fully_depreciated': calculation.fully_depreciated,
                },
            )

            result = PostingResult(
                asset_id=asset_id,
                posted=True,
                period_date=period_date,
                amount=calculation.amount,
                book_value_end=calculation.book_value_end,
                fully_depreciated=calculation.fully_depreciated,
            )
            uow.commit()

        logger.info(
            f"Posted depreciation for asset {asset_id}, period ending {period_date.isoformat()}: "
            f"{format_money(result.amount)}"
        )
        return result

    def record_units(self, asset_id: int, units: int, actor_id: Optional[int] = None) -> Asset:
        """
        Record a usage reading for a units-of-production asset without posting.

        Raises:
            PreconditionError: asset is not depreciated by usage, or is disposed
            ValidationError: negative or fractional units
        """
        actor_id = require_actor(actor_id)
        units = normalize_units(units)

        with self.uow_factory() as uow:
            asset = AggregateContext.load_asset(uow, asset_id)
            if asset.depreciation_method != DepreciationMethod.UNITS_OF_PRODUCTION:
                raise PreconditionError(
                    f"Asset {asset_id} is not depreciated by units of production",
                    rule='units_of_production_only',
                )
            if asset.status == AssetStatus.DISPOSED:
                raise PreconditionError(f"Asset {asset_id} is disposed", rule='not_disposed')

            asset.current_units = (asset.current_units or 0) + units
            asset.touch(actor_id)
            HistoryLog.append(
                uow,
                asset,
                HistoryAction.UNITS_RECORDED,
                actor_id,
                notes=LifecycleNarrator.units_recorded(units, asset.current_units),
                details={'units': units, 'total_units': asset.current_units},
            )
            uow.commit()

        logger.info(f"Recorded {units} units for asset {asset_id}")
        return asset

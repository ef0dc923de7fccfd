from flask import Blueprint, current_app, request

from asset_lifecycle.buisness.core.errors import ValidationError
from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler
from asset_lifecycle.buisness.depreciation.usage import RecordedUsageSource
from asset_lifecycle.presentation.routes.core.parsing import (
    actor_id,
    json_body,
    parse_date,
    parse_int,
    query_date,
    query_int,
)
from asset_lifecycle.presentation.routes.core.responses import success
from asset_lifecycle.services.depreciation_service import DepreciationService

bp = Blueprint('depreciation', __name__)


def _scheduler() -> DepreciationScheduler:
    usage_source = RecordedUsageSource() if current_app.config.get('DEPRECIATION_USE_RECORDED_UNITS') else None
    return DepreciationScheduler(usage_source=usage_source)


def _usage_mapping(data):
    usage = data.get('usage')
    if usage is None:
        return None
    if not isinstance(usage, dict):
        raise ValidationError({'usage': 'Expected an object mapping asset ids to units'})
    return {parse_int(key, 'usage'): value for key, value in usage.items()}


@bp.get('/due')
def assets_due():
    assets = DepreciationService.get_assets_due(query_date('as_of'), query_int('business_unit_id'))
    return success([a.to_dict() for a in assets])


@bp.post('/run')
def run_depreciation():
    data = json_body()
    summary = _scheduler().run_batch(
        as_of=parse_date(data.get('as_of'), 'as_of'),
        actor_id=actor_id(data),
        business_unit_id=parse_int(data.get('business_unit_id'), 'business_unit_id'),
        usage=_usage_mapping(data),
    )
    return success(summary.to_dict())


@bp.post('/assets/<int:asset_id>/post')
def post_period(asset_id):
    data = json_body()
    result = _scheduler().post_period(
        asset_id,
        as_of=parse_date(data.get('as_of'), 'as_of'),
        actor_id=actor_id(data),
        units=data.get('units'),
    )
    return success(result.to_dict(), 201 if result.posted else 200)


@bp.get('/summary')
def summary():
    return success(DepreciationService.get_summary(query_int('business_unit_id')))


@bp.get('/entries')
def entries():
    query = DepreciationService.build_filtered_query(
        asset_id=query_int('asset_id'),
        business_unit_id=query_int('business_unit_id'),
        period_from=query_date('from'),
        period_to=query_date('to'),
    )
    return success([entry.to_dict() for entry in query.limit(1000).all()])


@bp.get('/assets/<int:asset_id>/history')
def history(asset_id):
    return success(DepreciationService.get_history(asset_id))


@bp.get('/assets/<int:asset_id>/schedule')
def schedule(asset_id):
    units = request.args.get('units_per_period')
    return success(DepreciationService.get_schedule(asset_id, parse_int(units, 'units_per_period')))

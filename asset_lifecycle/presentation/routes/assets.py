"""
Asset endpoints: registration, lookups and direct status operations
"""

from flask import Blueprint, request

from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.buisness.assets.lifecycle import AssetLifecycleContext
from asset_lifecycle.buisness.assets.registry import AssetRegistry
from asset_lifecycle.buisness.core.errors import RecordNotFoundError, ValidationError
from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler
from asset_lifecycle.presentation.routes.core.parsing import (
    actor_id,
    json_body,
    parse_date,
    parse_int,
    query_int,
)
from asset_lifecycle.presentation.routes.core.responses import success
from asset_lifecycle.services.eligibility_service import EligibilityService

bp = Blueprint('assets', __name__)

ELIGIBILITY_LISTS = {
    'deployment': EligibilityService.deployable,
    'transfer': EligibilityService.transferable,
    'disposal': EligibilityService.disposable,
}


def _get_asset(asset_id: int) -> Asset:
    asset = Asset.query.get(asset_id)
    if asset is None:
        raise RecordNotFoundError(f"Asset {asset_id} not found")
    return asset


@bp.get('')
def list_assets():
    business_unit_id = query_int('business_unit_id')
    status = request.args.get('status', type=str)
    q = request.args.get('q', type=str)

    query = Asset.query
    if business_unit_id:
        query = query.filter(Asset.business_unit_id == business_unit_id)
    if status:
        query = query.filter(Asset.status == status.upper())
    if q:
        like = f"%{q}%"
        query = query.filter((Asset.item_code.ilike(like)) | (Asset.description.ilike(like)))

    assets = query.order_by(Asset.id).limit(500).all()
    return success([a.to_dict() for a in assets])


@bp.post('')
def register_asset():
    data = json_body()
    asset = AssetRegistry().register(
        actor_id=actor_id(data),
        business_unit_id=parse_int(data.get('business_unit_id'), 'business_unit_id'),
        item_code=data.get('item_code'),
        description=data.get('description'),
        purchase_price=data.get('purchase_price'),
        salvage_value=data.get('salvage_value', '0'),
        depreciation_method=data.get('depreciation_method'),
        useful_life_months=data.get('useful_life_months'),
        depreciation_rate=data.get('depreciation_rate'),
        total_expected_units=data.get('total_expected_units'),
        category_id=parse_int(data.get('category_id'), 'category_id'),
        quantity=data.get('quantity', 1),
        location=data.get('location'),
        serial_number=data.get('serial_number'),
        purchase_date=parse_date(data.get('purchase_date'), 'purchase_date'),
        depreciation_start_date=parse_date(data.get('depreciation_start_date'), 'depreciation_start_date'),
    )
    return success(asset.to_dict(), 201)


@bp.get('/eligible/<workflow>')
def eligible_assets(workflow):
    lister = ELIGIBILITY_LISTS.get(workflow)
    if lister is None:
        raise ValidationError({'workflow': f"Expected one of {', '.join(sorted(ELIGIBILITY_LISTS))}"})
    assets = lister(business_unit_id=query_int('business_unit_id'), search=request.args.get('q', type=str))
    return success([a.to_dict() for a in assets])


@bp.get('/<int:asset_id>')
def get_asset(asset_id):
    return success(_get_asset(asset_id).to_dict())


@bp.get('/<int:asset_id>/history')
def asset_history(asset_id):
    _get_asset(asset_id)
    entries = AssetHistory.query.filter_by(asset_id=asset_id).order_by(AssetHistory.id).all()
    return success([entry.to_dict() for entry in entries])


@bp.post('/<int:asset_id>/status')
def override_status(asset_id):
    data = json_body()
    asset = AssetLifecycleContext(asset_id).override_status(
        actor_id(data), data.get('status'), data.get('reason')
    )
    return success(asset.to_dict())


@bp.post('/<int:asset_id>/return-to-service')
def return_to_service(asset_id):
    data = json_body()
    asset = AssetLifecycleContext(asset_id).return_to_service(actor_id(data), data.get('reason'))
    return success(asset.to_dict())


@bp.post('/<int:asset_id>/retire')
def retire_asset(asset_id):
    data = json_body()
    asset = AssetLifecycleContext(asset_id).retire(
        actor_id(data),
        data.get('reason'),
        retirement_date=parse_date(data.get('retirement_date'), 'retirement_date'),
        disposal_planned=bool(data.get('disposal_planned', False)),
        notes=data.get('notes'),
    )
    return success(asset.to_dict())


@bp.post('/<int:asset_id>/units')
def record_units(asset_id):
    data = json_body()
    asset = DepreciationScheduler().record_units(asset_id, data.get('units'), actor_id=actor_id(data))
    return success(asset.to_dict())

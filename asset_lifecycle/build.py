#!/usr/bin/env python3
"""
Database build for the asset lifecycle service
Creates the tables and, on request, a small set of reference data
"""

from asset_lifecycle import db
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.build")

SAMPLE_BUSINESS_UNITS = [
    {'code': 'HQ', 'name': 'Head Office', 'default_location': 'Main Building'},
    {'code': 'WH1', 'name': 'Warehouse 1', 'default_location': 'Receiving Bay'},
]

SAMPLE_CATEGORIES = [
    {'code': 'IT', 'name': 'IT Equipment', 'default_depreciation_method': 'STRAIGHT_LINE', 'default_useful_life_months': 36},
    {'code': 'VEH', 'name': 'Vehicles', 'default_depreciation_method': 'DECLINING_BALANCE', 'default_useful_life_months': 60},
    {'code': 'FURN', 'name': 'Furniture', 'default_depreciation_method': 'STRAIGHT_LINE', 'default_useful_life_months': 84},
]


def insert_sample_data(actor_id: int = 0):
    """Insert reference business units and categories that do not exist yet"""
    from asset_lifecycle.data.core.asset_category import AssetCategory
    from asset_lifecycle.data.core.business_unit import BusinessUnit

    created = 0
    for values in SAMPLE_BUSINESS_UNITS:
        if BusinessUnit.query.filter_by(code=values['code']).first() is None:
            db.session.add(BusinessUnit(created_by_id=actor_id, **values))
            created += 1
    for values in SAMPLE_CATEGORIES:
        if AssetCategory.query.filter_by(code=values['code']).first() is None:
            db.session.add(AssetCategory(created_by_id=actor_id, **values))
            created += 1
    db.session.commit()
    logger.info(f"Inserted {created} reference rows")


def build_database(sample_data: bool = False):
    """
    Create all tables (existing tables are left untouched).

    Args:
        sample_data: also insert reference business units and categories
    """
    # Import models so every table is registered on the metadata
    from asset_lifecycle import data  # noqa: F401

    logger.info("Creating database tables")
    db.create_all()
    if sample_data:
        insert_sample_data()
    logger.info("Database build complete")

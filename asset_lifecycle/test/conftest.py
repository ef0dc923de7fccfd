"""
Pytest configuration and fixtures

Each test gets a fresh application bound to a throwaway SQLite file, so two
sessions can interleave on real connections in the concurrency tests.
"""

import itertools
from datetime import date

import pytest
from sqlalchemy.orm import Session

from asset_lifecycle import create_app
from asset_lifecycle import db as _db
from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.employee import Employee
from asset_lifecycle.buisness.assets.registry import AssetRegistry
from asset_lifecycle.buisness.core.event_bus import event_bus
from asset_lifecycle.buisness.core.unit_of_work import UnitOfWork

ACTOR_ID = 1
OTHER_ACTOR_ID = 2
START_DATE = date(2025, 1, 1)


class InterleavedUnitOfWork(UnitOfWork):
    """
    Unit of work that runs a competing transaction right before committing.

    The caller has already read and mutated its objects, so the competitor
    commits in between the caller's reads and its flush.
    """

    def __init__(self, before_commit, **kwargs):
        super().__init__(**kwargs)
        self._before_commit = before_commit

    def commit(self):
        hook, self._before_commit = self._before_commit, None
        if hook is not None:
            hook()
        super().commit()


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'lifecycle.db'}",
        'DEPRECIATION_DEFAULT_ACTOR_ID': ACTOR_ID,
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db(app):
    return _db


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(autouse=True)
def clean_event_bus():
    event_bus.clear()
    yield event_bus
    event_bus.clear()


@pytest.fixture(scope='function')
def other_session(app):
    """Second session on its own connection, for competing transactions"""
    session = Session(bind=_db.engine)
    yield session
    session.close()


@pytest.fixture(scope='function')
def interleaved(other_session):
    """
    Build a uow_factory whose commit is preceded by ``competitor(uow_factory)``.

    The competitor receives a factory bound to the second session.
    """
    def _factory(competitor):
        def competing():
            competitor(lambda: UnitOfWork(session=other_session))
        return lambda: InterleavedUnitOfWork(competing)

    return _factory


@pytest.fixture(scope='function')
def business_units(app):
    head_office = BusinessUnit(code='HQ', name='Head Office', default_location='Main Building')
    warehouse = BusinessUnit(code='WH1', name='Warehouse 1', default_location='Receiving Bay')
    _db.session.add_all([head_office, warehouse])
    _db.session.commit()
    return head_office, warehouse


@pytest.fixture(scope='function')
def employee(business_units):
    person = Employee(
        employee_number='E-0001',
        first_name='Dana',
        last_name='Reyes',
        email='dana.reyes@example.com',
        business_unit_id=business_units[0].id,
    )
    _db.session.add(person)
    _db.session.commit()
    return person


@pytest.fixture(scope='function')
def inactive_employee(business_units):
    person = Employee(
        employee_number='E-0002',
        first_name='Sam',
        last_name='Ortiz',
        business_unit_id=business_units[0].id,
        is_active=False,
    )
    _db.session.add(person)
    _db.session.commit()
    return person


@pytest.fixture(scope='function')
def make_asset(business_units):
    """
    Register assets through AssetRegistry.

    Defaults to the 120,000 / 12 month straight-line laptop used throughout
    the tests; keyword arguments override any registration field.
    """
    counter = itertools.count(1)

    def _make(**overrides):
        values = {
            'actor_id': ACTOR_ID,
            'business_unit_id': business_units[0].id,
            'item_code': f"IT-{next(counter):04d}",
            'description': 'Laptop',
            'purchase_price': '120000.00',
            'salvage_value': '0.00',
            'depreciation_method': 'STRAIGHT_LINE',
            'useful_life_months': 12,
            'depreciation_start_date': START_DATE,
        }
        values.update(overrides)
        return AssetRegistry().register(**values)

    return _make


@pytest.fixture(scope='function')
def asset(make_asset):
    return make_asset()

from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase
from asset_lifecycle.data.core.column_types import Money, Rate
from asset_lifecycle.data.core.enums import (
    AssetStatus,
    DepreciationMethod,
    enum_column_type,
    enum_value,
)
from asset_lifecycle.utils.money import ZERO, format_money


class Asset(RecordBase):
    """
    Tracked physical item.

    Financial fields are written only by the depreciation scheduler; status,
    ownership and location only by the lifecycle workflows. ``version_id`` is an
    optimistic lock: every transition rewrites the row, so a concurrent writer
    working from a stale read fails at flush time.
    """
    __tablename__ = 'assets'
    __table_args__ = (
        db.UniqueConstraint('business_unit_id', 'item_code', name='uq_assets_business_unit_item_code'),
    )

    item_code = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255), nullable=False)
    serial_number = db.Column(db.String(100), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey('asset_categories.id'), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    business_unit_id = db.Column(db.Integer, db.ForeignKey('business_units.id'), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    status = db.Column(enum_column_type(AssetStatus, db), nullable=False, default=AssetStatus.AVAILABLE)

    # Money
    purchase_price = db.Column(Money(), nullable=False)
    salvage_value = db.Column(Money(), nullable=False, default=ZERO)
    current_book_value = db.Column(Money(), nullable=False)
    accumulated_depreciation = db.Column(Money(), nullable=False, default=ZERO)
    monthly_depreciation = db.Column(Money(), nullable=True)

    # Depreciation terms
    depreciation_method = db.Column(enum_column_type(DepreciationMethod, db), nullable=False)
    useful_life_months = db.Column(db.Integer, nullable=True)
    depreciation_rate = db.Column(Rate(), nullable=True)
    total_expected_units = db.Column(db.Integer, nullable=True)
    current_units = db.Column(db.Integer, nullable=False, default=0)

    # Depreciation schedule
    purchase_date = db.Column(db.Date, nullable=True)
    depreciation_start_date = db.Column(db.Date, nullable=False)
    last_depreciation_date = db.Column(db.Date, nullable=True)
    next_depreciation_date = db.Column(db.Date, nullable=True)
    depreciation_periods_posted = db.Column(db.Integer, nullable=False, default=0)
    is_fully_depreciated = db.Column(db.Boolean, nullable=False, default=False)

    # Assignment
    current_employee_id = db.Column(db.Integer, db.ForeignKey('employees.id'), nullable=True)

    version_id = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    # Relationships
    business_unit = db.relationship('BusinessUnit')
    category = db.relationship('AssetCategory')
    current_employee = db.relationship('Employee')

    @property
    def depreciable_amount(self):
        return self.purchase_price - self.salvage_value

    @property
    def remaining_depreciable(self):
        return self.current_book_value - self.salvage_value

    def to_dict(self) -> dict:
        data = self.audit_dict()
        data.update({
            'item_code': self.item_code,
            'description': self.description,
            'serial_number': self.serial_number,
            'category_id': self.category_id,
            'quantity': self.quantity,
            'business_unit_id': self.business_unit_id,
            'location': self.location,
            'status': enum_value(self.status),
            'purchase_price': format_money(self.purchase_price),
            'salvage_value': format_money(self.salvage_value),
            'current_book_value': format_money(self.current_book_value),
            'accumulated_depreciation': format_money(self.accumulated_depreciation),
            'monthly_depreciation': format_money(self.monthly_depreciation),
            'depreciation_method': enum_value(self.depreciation_method),
            'useful_life_months': self.useful_life_months,
            'depreciation_rate': str(self.depreciation_rate) if self.depreciation_rate is not None else None,
            'total_expected_units': self.total_expected_units,
            'current_units': self.current_units,
            'purchase_date': self.purchase_date.isoformat() if self.purchase_date else None,
            'depreciation_start_date': self.depreciation_start_date.isoformat() if self.depreciation_start_date else None,
            'last_depreciation_date': self.last_depreciation_date.isoformat() if self.last_depreciation_date else None,
            'next_depreciation_date': self.next_depreciation_date.isoformat() if self.next_depreciation_date else None,
            'depreciation_periods_posted': self.depreciation_periods_posted,
            'is_fully_depreciated': self.is_fully_depreciated,
            'current_employee_id': self.current_employee_id,
            'version': self.version_id,
        })
        return data

    def __repr__(self):
        return f'<Asset {self.item_code} ({enum_value(self.status)})>'

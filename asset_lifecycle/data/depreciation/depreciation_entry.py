from asset_lifecycle import db
from sqlalchemy import event
from asset_lifecycle.data.core.record_base import RecordBase, utcnow
from asset_lifecycle.data.core.column_types import Money
from asset_lifecycle.data.core.enums import DepreciationMethod, enum_column_type, enum_value
from asset_lifecycle.utils.money import format_money
from asset_lifecycle.buisness.core.errors import ImmutableRecordError


class DepreciationEntry(RecordBase):
    """
    One immutable ledger line per posted period per asset.

    The (asset_id, period_date) constraint makes a second posting of the same
    period fail at commit even when two scheduler runs race.
    """
    __tablename__ = 'depreciation_entries'
    __table_args__ = (
        db.UniqueConstraint('asset_id', 'period_date', name='uq_depreciation_entries_asset_period'),
    )

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    period_date = db.Column(db.Date, nullable=False)
    period_start_date = db.Column(db.Date, nullable=False)
    method = db.Column(enum_column_type(DepreciationMethod, db), nullable=False)
    book_value_start = db.Column(Money(), nullable=False)
    depreciation_amount = db.Column(Money(), nullable=False)
    book_value_end = db.Column(Money(), nullable=False)
    accumulated_depreciation = db.Column(Money(), nullable=False)
    units_in_period = db.Column(db.Integer, nullable=True)
    calculation_basis = db.Column(db.JSON, nullable=True)
    calculated_by_id = db.Column(db.Integer, nullable=False)
    calculated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    asset = db.relationship(
        'Asset',
        backref=db.backref('depreciation_entries', lazy='dynamic', order_by='DepreciationEntry.period_date'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'asset_id': self.asset_id,
            'period_date': self.period_date.isoformat(),
            'period_start_date': self.period_start_date.isoformat(),
            'method': enum_value(self.method),
            'book_value_start': format_money(self.book_value_start),
            'depreciation_amount': format_money(self.depreciation_amount),
            'book_value_end': format_money(self.book_value_end),
            'accumulated_depreciation': format_money(self.accumulated_depreciation),
            'units_in_period': self.units_in_period,
            'calculation_basis': self.calculation_basis,
            'calculated_by_id': self.calculated_by_id,
            'calculated_at': self.calculated_at.isoformat() if self.calculated_at else None,
        }


@event.listens_for(DepreciationEntry, 'before_update')
def _refuse_entry_update(mapper, connection, target):
    raise ImmutableRecordError(f"Depreciation entry {target.id} is append-only")


@event.listens_for(DepreciationEntry, 'before_delete')
def _refuse_entry_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Depreciation entry {target.id} cannot be deleted")

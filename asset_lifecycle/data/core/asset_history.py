from asset_lifecycle import db
from sqlalchemy import event
from asset_lifecycle.data.core.record_base import RecordBase, utcnow
from asset_lifecycle.data.core.column_types import Money
from asset_lifecycle.data.core.enums import AssetStatus, HistoryAction, enum_column_type, enum_value
from asset_lifecycle.utils.money import format_money
from asset_lifecycle.buisness.core.errors import ImmutableRecordError


class AssetHistory(RecordBase):
    """
    Append-only audit stream: one row per status transition, workflow step and
    depreciation posting. Rows are never updated or deleted.
    """
    __tablename__ = 'asset_history'

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    action = db.Column(enum_column_type(HistoryAction, db), nullable=False)
    previous_status = db.Column(enum_column_type(AssetStatus, db), nullable=True)
    new_status = db.Column(enum_column_type(AssetStatus, db), nullable=True)
    actor_id = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    performed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    deployment_id = db.Column(db.Integer, db.ForeignKey('deployment_records.id'), nullable=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey('transfer_records.id'), nullable=True)
    disposal_id = db.Column(db.Integer, db.ForeignKey('disposal_records.id'), nullable=True)
    depreciation_entry_id = db.Column(db.Integer, db.ForeignKey('depreciation_entries.id'), nullable=True)

    book_value_before = db.Column(Money(), nullable=True)
    book_value_after = db.Column(Money(), nullable=True)
    details = db.Column(db.JSON, nullable=True)

    asset = db.relationship(
        'Asset',
        backref=db.backref('history', lazy='dynamic', order_by='AssetHistory.id'),
    )
    deployment = db.relationship('DeploymentRecord')
    transfer = db.relationship('TransferRecord')
    disposal = db.relationship('DisposalRecord')
    depreciation_entry = db.relationship('DepreciationEntry')

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'asset_id': self.asset_id,
            'action': enum_value(self.action),
            'previous_status': enum_value(self.previous_status),
            'new_status': enum_value(self.new_status),
            'actor_id': self.actor_id,
            'reason': self.reason,
            'notes': self.notes,
            'performed_at': self.performed_at.isoformat() if self.performed_at else None,
            'deployment_id': self.deployment_id,
            'transfer_id': self.transfer_id,
            'disposal_id': self.disposal_id,
            'depreciation_entry_id': self.depreciation_entry_id,
            'book_value_before': format_money(self.book_value_before),
            'book_value_after': format_money(self.book_value_after),
            'details': self.details,
        }


@event.listens_for(AssetHistory, 'before_update')
def _refuse_history_update(mapper, connection, target):
    raise ImmutableRecordError(f"Asset history entry {target.id} is append-only")


@event.listens_for(AssetHistory, 'before_delete')
def _refuse_history_delete(mapper, connection, target):
    raise ImmutableRecordError(f"Asset history entry {target.id} cannot be deleted")

from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase
from asset_lifecycle.data.core.column_types import Money
from asset_lifecycle.data.core.enums import DisposalReason, enum_column_type, enum_value
from asset_lifecycle.utils.money import ZERO, format_money


class DisposalRecord(RecordBase):
    """
    Terminal record for one asset.

    ``gain_loss = (disposal_value - disposal_cost) - book_value_at_disposal``;
    a positive figure is a gain on disposal.
    """
    __tablename__ = 'disposal_records'

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, unique=True)
    reason = db.Column(enum_column_type(DisposalReason, db), nullable=False)
    disposal_date = db.Column(db.Date, nullable=False)
    disposal_method = db.Column(db.String(100), nullable=True)
    recipient_name = db.Column(db.String(255), nullable=True)
    recipient_details = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    book_value_at_disposal = db.Column(Money(), nullable=False)
    disposal_value = db.Column(Money(), nullable=False, default=ZERO)
    disposal_cost = db.Column(Money(), nullable=False, default=ZERO)
    net_disposal_value = db.Column(Money(), nullable=False)
    gain_loss = db.Column(Money(), nullable=False)

    disposed_by_id = db.Column(db.Integer, nullable=False)
    approved_by_id = db.Column(db.Integer, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    approval_notes = db.Column(db.Text, nullable=True)

    asset = db.relationship('Asset', backref=db.backref('disposal', uselist=False))

    @property
    def is_approved(self) -> bool:
        return self.approved_at is not None

    def to_dict(self) -> dict:
        data = self.audit_dict()
        data.update({
            'asset_id': self.asset_id,
            'reason': enum_value(self.reason),
            'disposal_date': self.disposal_date.isoformat() if self.disposal_date else None,
            'disposal_method': self.disposal_method,
            'recipient_name': self.recipient_name,
            'recipient_details': self.recipient_details,
            'notes': self.notes,
            'book_value_at_disposal': format_money(self.book_value_at_disposal),
            'disposal_value': format_money(self.disposal_value),
            'disposal_cost': format_money(self.disposal_cost),
            'net_disposal_value': format_money(self.net_disposal_value),
            'gain_loss': format_money(self.gain_loss),
            'disposed_by_id': self.disposed_by_id,
            'approved_by_id': self.approved_by_id,
            'approved_at': self.approved_at.isoformat() if self.approved_at else None,
            'approval_notes': self.approval_notes,
        })
        return data

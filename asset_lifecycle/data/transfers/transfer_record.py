from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase
from asset_lifecycle.data.core.column_types import Money
from asset_lifecycle.data.core.enums import (
    TransferStatus,
    ACTIVE_TRANSFER_STATUSES,
    enum_column_type,
    enum_value,
)
from asset_lifecycle.utils.money import ZERO, format_money


def _iso(value):
    return value.isoformat() if value else None


class TransferRecord(RecordBase):
    """Movement of one asset between business units; completion is the only point ownership changes"""
    __tablename__ = 'transfer_records'

    transfer_number = db.Column(db.String(30), unique=True, nullable=False)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    from_business_unit_id = db.Column(db.Integer, db.ForeignKey('business_units.id'), nullable=False)
    to_business_unit_id = db.Column(db.Integer, db.ForeignKey('business_units.id'), nullable=False)
    from_location = db.Column(db.String(255), nullable=True)
    to_location = db.Column(db.String(255), nullable=True)
    status = db.Column(
        enum_column_type(TransferStatus, db),
        nullable=False,
        default=TransferStatus.PENDING_APPROVAL,
    )
    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    transfer_method = db.Column(db.String(100), nullable=True)
    tracking_number = db.Column(db.String(100), nullable=True)
    estimated_arrival = db.Column(db.Date, nullable=True)
    condition_before = db.Column(db.String(100), nullable=True)
    condition_after = db.Column(db.String(100), nullable=True)

    transfer_cost = db.Column(Money(), nullable=False, default=ZERO)
    insurance_value = db.Column(Money(), nullable=False, default=ZERO)

    requested_by_id = db.Column(db.Integer, nullable=False)
    requested_at = db.Column(db.DateTime, nullable=False)
    approved_by_id = db.Column(db.Integer, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    approval_notes = db.Column(db.Text, nullable=True)
    rejected_by_id = db.Column(db.Integer, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    cancelled_by_id = db.Column(db.Integer, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)
    dispatched_by_id = db.Column(db.Integer, nullable=True)
    dispatched_at = db.Column(db.DateTime, nullable=True)
    received_by_id = db.Column(db.Integer, nullable=True)
    received_at = db.Column(db.DateTime, nullable=True)
    receipt_notes = db.Column(db.Text, nullable=True)

    asset = db.relationship('Asset', backref=db.backref('transfers', lazy='dynamic'))
    from_business_unit = db.relationship('BusinessUnit', foreign_keys=[from_business_unit_id])
    to_business_unit = db.relationship('BusinessUnit', foreign_keys=[to_business_unit_id])

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TRANSFER_STATUSES

    def to_dict(self) -> dict:
        data = self.audit_dict()
        data.update({
            'transfer_number': self.transfer_number,
            'asset_id': self.asset_id,
            'from_business_unit_id': self.from_business_unit_id,
            'to_business_unit_id': self.to_business_unit_id,
            'from_location': self.from_location,
            'to_location': self.to_location,
            'status': enum_value(self.status),
            'reason': self.reason,
            'notes': self.notes,
            'transfer_method': self.transfer_method,
            'tracking_number': self.tracking_number,
            'estimated_arrival': _iso(self.estimated_arrival),
            'condition_before': self.condition_before,
            'condition_after': self.condition_after,
            'transfer_cost': format_money(self.transfer_cost),
            'insurance_value': format_money(self.insurance_value),
            'requested_by_id': self.requested_by_id,
            'requested_at': _iso(self.requested_at),
            'approved_by_id': self.approved_by_id,
            'approved_at': _iso(self.approved_at),
            'approval_notes': self.approval_notes,
            'rejected_by_id': self.rejected_by_id,
            'rejected_at': _iso(self.rejected_at),
            'rejection_reason': self.rejection_reason,
            'cancelled_by_id': self.cancelled_by_id,
            'cancelled_at': _iso(self.cancelled_at),
            'cancellation_reason': self.cancellation_reason,
            'dispatched_by_id': self.dispatched_by_id,
            'dispatched_at': _iso(self.dispatched_at),
            'received_by_id': self.received_by_id,
            'received_at': _iso(self.received_at),
            'receipt_notes': self.receipt_notes,
        })
        return data

    def __repr__(self):
        return f'<TransferRecord {self.transfer_number} ({enum_value(self.status)})>'

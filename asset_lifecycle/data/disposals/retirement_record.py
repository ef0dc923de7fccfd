from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase


class RetirementRecord(RecordBase):
    __tablename__ = 'retirement_records'

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, unique=True)
    reason = db.Column(db.Text, nullable=False)
    retirement_date = db.Column(db.Date, nullable=False)
    disposal_planned = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)
    retired_by_id = db.Column(db.Integer, nullable=False)

    asset = db.relationship('Asset', backref=db.backref('retirement', uselist=False))

    def to_dict(self) -> dict:
        data = self.audit_dict()
        data.update({
            'asset_id': self.asset_id,
            'reason': self.reason,
            'retirement_date': self.retirement_date.isoformat() if self.retirement_date else None,
            'disposal_planned': self.disposal_planned,
            'notes': self.notes,
            'retired_by_id': self.retired_by_id,
        })
        return data

from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase
from asset_lifecycle.data.core.enums import (
    DeploymentStatus,
    ACTIVE_DEPLOYMENT_STATUSES,
    enum_column_type,
    enum_value,
)


def _iso(value):
    return value.isoformat() if value else None


class DeploymentRecord(RecordBase):
    __tablename__ = 'deployment_records'

    transmittal_number = db.Column(db.String(30), unique=True, nullable=False)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('employees.id'), nullable=False)
    business_unit_id = db.Column(db.Integer, db.ForeignKey('business_units.id'), nullable=False)
    status = db.Column(
        enum_column_type(DeploymentStatus, db),
        nullable=False,
        default=DeploymentStatus.PENDING_ACCOUNTING_APPROVAL,
    )

    expected_return_date = db.Column(db.Date, nullable=True)
    deployed_date = db.Column(db.Date, nullable=True)
    returned_date = db.Column(db.Date, nullable=True)
    condition_on_deploy = db.Column(db.String(100), nullable=True)
    return_condition = db.Column(db.String(100), nullable=True)
    deployment_notes = db.Column(db.Text, nullable=True)
    return_notes = db.Column(db.Text, nullable=True)

    approved_by_id = db.Column(db.Integer, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    approval_notes = db.Column(db.Text, nullable=True)
    rejected_by_id = db.Column(db.Integer, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    cancelled_by_id = db.Column(db.Integer, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)
    returned_by_id = db.Column(db.Integer, nullable=True)

    asset = db.relationship('Asset', backref=db.backref('deployments', lazy='dynamic'))
    employee = db.relationship('Employee')
    business_unit = db.relationship('BusinessUnit')

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_DEPLOYMENT_STATUSES

    def to_dict(self) -> dict:
        data = self.audit_dict()
        data.update({
            'transmittal_number': self.transmittal_number,
            'asset_id': self.asset_id,
            'employee_id': self.employee_id,
            'business_unit_id': self.business_unit_id,
            'status': enum_value(self.status),
            'expected_return_date': _iso(self.expected_return_date),
            'deployed_date': _iso(self.deployed_date),
            'returned_date': _iso(self.returned_date),
            'condition_on_deploy': self.condition_on_deploy,
            'return_condition': self.return_condition,
            'deployment_notes': self.deployment_notes,
            'return_notes': self.return_notes,
            'approved_by_id': self.approved_by_id,
            'approved_at': _iso(self.approved_at),
            'approval_notes': self.approval_notes,
            'rejected_by_id': self.rejected_by_id,
            'rejected_at': _iso(self.rejected_at),
            'rejection_reason': self.rejection_reason,
            'cancelled_by_id': self.cancelled_by_id,
            'cancelled_at': _iso(self.cancelled_at),
            'cancellation_reason': self.cancellation_reason,
            'returned_by_id': self.returned_by_id,
        })
        return data

    def __repr__(self):
        return f'<DeploymentRecord {self.transmittal_number} ({enum_value(self.status)})>'

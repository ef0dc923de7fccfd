from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase


class Employee(RecordBase):
    __tablename__ = 'employees'

    employee_number = db.Column(db.String(50), unique=True, nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey('business_units.id'), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    business_unit = db.relationship('BusinessUnit')

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'employee_number': self.employee_number,
            'name': self.full_name,
            'email': self.email,
            'business_unit_id': self.business_unit_id,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<Employee {self.employee_number}>'

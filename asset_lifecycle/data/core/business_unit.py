from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase


class BusinessUnit(RecordBase):
    """Owning organisational unit; assets move between these through transfers"""
    __tablename__ = 'business_units'

    code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    default_location = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'default_location': self.default_location,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<BusinessUnit {self.code}>'

from asset_lifecycle import db
from asset_lifecycle.data.core.record_base import RecordBase
from asset_lifecycle.data.core.enums import DepreciationMethod, enum_column_type


class AssetCategory(RecordBase):
    """Category reference; its defaults fill in depreciation terms an asset is registered without"""
    __tablename__ = 'asset_categories'

    code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    default_depreciation_method = db.Column(enum_column_type(DepreciationMethod, db), nullable=True)
    default_useful_life_months = db.Column(db.Integer, nullable=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'default_depreciation_method': self.default_depreciation_method,
            'default_useful_life_months': self.default_useful_life_months,
        }

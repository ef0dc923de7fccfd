from asset_lifecycle import db
from datetime import datetime, timezone
from sqlalchemy.orm.attributes import flag_modified


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordBase(db.Model):
    """Abstract base class for all persisted entities with audit trail"""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    created_by_id = db.Column(db.Integer, nullable=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    updated_by_id = db.Column(db.Integer, nullable=True)

    def touch(self, actor_id: int) -> None:
        """Attribute the pending change to ``actor_id`` and force the row into the next flush."""
        self.updated_by_id = actor_id
        self.updated_at = utcnow()
        flag_modified(self, 'updated_at')

    def audit_dict(self) -> dict:
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'created_by_id': self.created_by_id,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'updated_by_id': self.updated_by_id,
        }

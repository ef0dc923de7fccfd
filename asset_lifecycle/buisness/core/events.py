"""
Lifecycle events published to in-process subscribers after a transaction commits.

Each event mirrors one AssetHistory row: one per status transition, workflow
step and depreciation posting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from asset_lifecycle.data.core.enums import enum_value


@dataclass(frozen=True)
class LifecycleEvent:
    event_type: str
    asset_id: int
    actor_id: int
    occurred_at: datetime
    history_id: Optional[int] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    reason: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_history(cls, entry) -> 'LifecycleEvent':
        payload = dict(entry.details or {})
        for key in ('deployment_id', 'transfer_id', 'disposal_id', 'depreciation_entry_id'):
            value = getattr(entry, key)
            if value is not None:
                payload[key] = value
        return cls(
            event_type=enum_value(entry.action),
            asset_id=entry.asset_id,
            actor_id=entry.actor_id,
            occurred_at=entry.performed_at,
            history_id=entry.id,
            previous_status=enum_value(entry.previous_status),
            new_status=enum_value(entry.new_status),
            reason=entry.reason,
            payload=payload,
        )

    def to_dict(self) -> dict:
        return {
            'event_type': self.event_type,
            'asset_id': self.asset_id,
            'actor_id': self.actor_id,
            'occurred_at': self.occurred_at.isoformat() if self.occurred_at else None,
            'history_id': self.history_id,
            'previous_status': self.previous_status,
            'new_status': self.new_status,
            'reason': self.reason,
            'payload': self.payload,
        }

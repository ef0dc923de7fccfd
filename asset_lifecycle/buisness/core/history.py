"""
History appends for the asset audit stream.
"""

from typing import Optional, Any, Dict

from asset_lifecycle.data.core.asset_history import AssetHistory
from asset_lifecycle.data.core.record_base import utcnow


class HistoryLog:
    """
    Appends AssetHistory rows inside a unit of work.

    Rows are linked through relationships rather than ids so nothing has to be
    flushed before the unit of work commits; the unit of work publishes one
    lifecycle event per appended row after the commit succeeds.
    """

    @classmethod
    def append(
        cls,
        uow,
        asset,
        action,
        actor_id: int,
        previous_status=None,
        new_status=None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        deployment=None,
        transfer=None,
        disposal=None,
        depreciation_entry=None,
        book_value_before=None,
        book_value_after=None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AssetHistory:
        entry = AssetHistory(
            asset=asset,
            action=action,
            previous_status=previous_status,
            new_status=new_status,
            actor_id=actor_id,
            reason=reason,
            notes=notes,
            deployment=deployment,
            transfer=transfer,
            disposal=disposal,
            depreciation_entry=depreciation_entry,
            book_value_before=book_value_before,
            book_value_after=book_value_after,
            details=details,
            performed_at=utcnow(),
            created_by_id=actor_id,
        )
        uow.session.add(entry)
        uow.collect(entry)
        return entry

    @classmethod
    def status_change(cls, uow, asset, action, actor_id: int, previous_status, reason=None, notes=None, **links):
        """Append an entry for a transition that already set ``asset.status``."""
        return cls.append(
            uow,
            asset,
            action,
            actor_id,
            previous_status=previous_status,
            new_status=asset.status,
            reason=reason,
            notes=notes,
            **links,
        )

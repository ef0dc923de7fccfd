"""
Unit of Work

Wraps one database transaction scoped to a single asset aggregate (the asset
row, its current workflow record and the history append). Workflow code only
touches ``uow.session``; nothing is kept unless ``commit()`` is called.

Usage:
    with UnitOfWork() as uow:
        asset = uow.session.get(Asset, asset_id)
        ...
        uow.commit()
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from asset_lifecycle.buisness.core.errors import ConflictError, DuplicateRecordError
from asset_lifecycle.buisness.core.event_bus import EventBus, event_bus as default_event_bus
from asset_lifecycle.buisness.core.events import LifecycleEvent
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.unit_of_work")


class UnitOfWork:

    def __init__(self, session: Optional[Session] = None, event_bus: Optional[EventBus] = None):
        """
        Args:
            session: Session to work in. Defaults to the Flask-SQLAlchemy scoped session.
            event_bus: Bus that receives lifecycle events after commit.
        """
        self._session = session
        self.event_bus = event_bus or default_event_bus
        self._committed = False
        self._pending_history: List = []

    @property
    def session(self) -> Session:
        if self._session is None:
            from asset_lifecycle import db
            self._session = db.session
        return self._session

    def collect(self, history_entry) -> None:
        """Queue a history entry; its lifecycle event is published once the commit succeeds."""
        self._pending_history.append(history_entry)

    def commit(self) -> None:
        """
        Commit the transaction and publish collected lifecycle events.

        Raises:
            ConflictError: a concurrent transaction changed the asset first
                (stale version)
            DuplicateRecordError: a uniqueness constraint was hit
        """
        if self._committed:
            return

        try:
            self.session.commit()
        except StaleDataError as exc:
            self.rollback()
            logger.warning(f"Optimistic lock lost, transaction rolled back: {exc}")
            raise ConflictError(
                "The asset was modified by a concurrent transaction; reload and retry"
            ) from exc
        except IntegrityError as exc:
            self.rollback()
            logger.warning(f"Integrity violation, transaction rolled back: {exc.orig}")
            raise DuplicateRecordError(
                "A conflicting record already exists; reload and retry"
            ) from exc

        self._committed = True
        logger.debug("UnitOfWork committed")
        self._publish_events()

    def rollback(self) -> None:
        self.session.rollback()
        self._pending_history.clear()
        logger.debug("UnitOfWork rolled back")

    def _publish_events(self) -> None:
        entries, self._pending_history = self._pending_history, []
        for entry in entries:
            self.event_bus.publish(LifecycleEvent.from_history(entry))

    def __enter__(self) -> 'UnitOfWork':
        self._committed = False
        self._pending_history = []
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.rollback()
            logger.debug(f"UnitOfWork rolled back due to: {exc_type.__name__}")
        elif not self._committed:
            self.rollback()

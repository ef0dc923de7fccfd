"""
In-process event bus for lifecycle events.

Notification and reporting collaborators subscribe here. Publication is
fire-and-forget: a failing handler is logged and never reaches the caller
whose transaction already committed.
"""

from typing import Callable, Dict, List

from asset_lifecycle.buisness.core.events import LifecycleEvent
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.events")

Handler = Callable[[LifecycleEvent], None]


class EventBus:

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}
        self._global_handlers: List[Handler] = []

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """
        Subscribe to events of one type (a HistoryAction value, e.g. "DEPLOYED").
        """
        event_type = getattr(event_type, 'value', event_type)
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: Handler) -> None:
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, handler: Handler) -> None:
        for handlers in self._handlers.values():
            if handler in handlers:
                handlers.remove(handler)
        if handler in self._global_handlers:
            self._global_handlers.remove(handler)

    def clear(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()

    def publish(self, event: LifecycleEvent) -> None:
        handlers = self._handlers.get(event.event_type, []) + self._global_handlers

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in lifecycle event handler for {event.event_type} "
                    f"(asset {event.asset_id}): {e}",
                    exc_info=True,
                )


# Process-wide bus used by default by every unit of work
event_bus = EventBus()

"""
In-process publish/subscribe for location pipeline notifications.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class LocationEventType(Enum):
    POSITION_UPDATE = "position_update"
    TRACKING_START = "tracking_start"
    TRACKING_STOP = "tracking_stop"
    ERROR = "error"


@dataclass(frozen=True)
class LocationEvent:
    event_type: LocationEventType
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": self.event_type.value,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


EventHandler = Callable[[LocationEvent], None]


class LocationEventBus:
    """Synchronous fan-out; a failing handler is logged and skipped."""

    def __init__(self):
        # None key holds handlers subscribed to every event type
        self._handlers: Dict[Optional[LocationEventType], List[EventHandler]] = {}

    def subscribe(self, event_type: Optional[LocationEventType], handler: EventHandler) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: LocationEvent) -> int:
        """Deliver an event. Returns the number of handlers that ran without error."""
        delivered = 0
        for handler in list(self._handlers.get(event.event_type, [])) + list(self._handlers.get(None, [])):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Error in handler for {event.event_type.value} event: {e}", exc_info=True)
        return delivered

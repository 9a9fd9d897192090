import asyncio
import logging
from typing import Callable, Optional, Set

from geomapper.api.websockets.connection_manager import ConnectionManager
from geomapper.api.v1.schemas import WebSocketMessage
from geomapper.domains.location.services.event_bus import LocationEvent, LocationEventBus

logger = logging.getLogger(__name__)


class NotificationService:
    """Service responsible for relaying location events to WebSocket clients."""

    def __init__(self, manager: ConnectionManager):
        """
        Initializes the NotificationService.

        Args:
            manager: An instance of ConnectionManager to handle WebSocket connections.
        """
        self.manager = manager
        self._pending_tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        logger.info("NotificationService initialized.")

    async def send_location_event(self, event: LocationEvent):
        """Broadcasts one pipeline event as `{"type", "payload", "occurred_at"}`."""
        if event is None:
            logger.warning("Attempted to send an empty location event.")
            return

        message_to_send = WebSocketMessage(**event.to_message()).model_dump()
        try:
            await self.manager.broadcast(message_to_send)
        except Exception as e:
            logger.error(f"Error broadcasting {event.event_type.value} event: {e}", exc_info=True)

    def attach(self, event_bus: LocationEventBus, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Subscribe to every event on the bus. Publishing is synchronous, so each
        event is handed to the event loop as a broadcast task.
        """
        loop = loop or asyncio.get_running_loop()

        def _on_event(event: LocationEvent) -> None:
            task = loop.create_task(self.send_location_event(event))
            self._pending_tasks.add(task)
            task.add_done_callback(self._pending_tasks.discard)

        self._unsubscribe = event_bus.subscribe(None, _on_event)
        logger.info("NotificationService attached to location event bus.")

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def drain(self) -> None:
        """Wait for in-flight broadcasts."""
        if self._pending_tasks:
            await asyncio.gather(*list(self._pending_tasks), return_exceptions=True)

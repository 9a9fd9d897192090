from fastapi import WebSocket
from typing import List
import logging

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections subscribed to location events."""
    def __init__(self):
        self.active_connections: List[WebSocket] = []
        logger.info("ConnectionManager initialized.")

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)

    async def connect(self, websocket: WebSocket):
        """
        Accepts a new WebSocket connection and stores it.

        Raises:
            Exception: If `websocket.accept()` fails.
        """
        try:
            await websocket.accept()
        except Exception as e_accept:
            logger.error(
                f"MANAGER: Error during websocket.accept() for client {websocket.client}: {e_accept}",
                exc_info=True
            )
            raise

        self.active_connections.append(websocket)
        logger.info(
            f"MANAGER: WebSocket stored for client {websocket.client}. "
            f"Total connections: {len(self.active_connections)}"
        )

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.debug(f"MANAGER: Removed WebSocket. Sockets remaining: {len(self.active_connections)}")
        else:
            logger.warning(f"MANAGER: WebSocket client {websocket.client} not found in active list during disconnect.")

    async def broadcast(self, message: dict):
        """
        Sends a JSON message to every connected client. Clients that fail are disconnected.

        Args:
            message: The JSON serializable dictionary to send.
        """
        disconnected_sockets = []
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except RuntimeError as e_runtime:  # client closed the connection abruptly
                logger.warning(
                    f"MANAGER: RuntimeError sending to client {connection.client}: {e_runtime}. Marking for disconnect."
                )
                disconnected_sockets.append(connection)
            except Exception as e_send:
                logger.error(
                    f"MANAGER: Error sending message to client {connection.client}: {e_send}",
                    exc_info=True
                )
                disconnected_sockets.append(connection)

        for ws_to_remove in disconnected_sockets:
            self.disconnect(ws_to_remove)


manager = ConnectionManager()

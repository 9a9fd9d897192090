import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from geomapper.api.websockets.connection_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/location")
async def websocket_location_endpoint(websocket: WebSocket):
    """
    Pushes every location pipeline event to the client.
    Clients connect to `/ws/location`; incoming messages are ignored.
    """
    connected_successfully = False
    try:
        await manager.connect(websocket)
        connected_successfully = True

        while True:
            data = await websocket.receive_text()
            logger.debug(f"ENDPOINT: Received data from client {websocket.client}: {data}")

    except WebSocketDisconnect:
        logger.info(f"ENDPOINT: WebSocket client {websocket.client} disconnected gracefully.")
    except Exception as e:
        logger.error(f"ENDPOINT: Exception for WebSocket client {websocket.client}: {e}", exc_info=True)
    finally:
        if connected_successfully:
            manager.disconnect(websocket)

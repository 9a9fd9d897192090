from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import Optional
import logging
import os
import uvicorn

from geomapper.core.config import Settings, settings as default_settings
from geomapper.api.v1.endpoints import location as location_endpoints
from geomapper.api.websockets import endpoints as ws_router
from geomapper.api.websockets.connection_manager import manager as ws_manager
from geomapper.api import health as health_router
from geomapper.domains.location.services.event_bus import LocationEventBus
from geomapper.domains.location.services.location_tracker import LocationTracker
from geomapper.infrastructure.geolocation.push_provider import PushGeolocationProvider
from geomapper.services.notification_service import NotificationService
from geomapper.utils.timers import AsyncioTimerScheduler

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        logger.info("Application startup sequence initiated...")
        event_bus = LocationEventBus()

        notification_service = NotificationService(ws_manager)
        notification_service.attach(event_bus)

        tracker = LocationTracker(
            settings=app_settings,
            timers=AsyncioTimerScheduler(),
            event_bus=event_bus
        )
        app_instance.state.settings = app_settings
        app_instance.state.event_bus = event_bus
        app_instance.state.connection_manager = ws_manager
        app_instance.state.notification_service = notification_service
        app_instance.state.geolocation_provider = PushGeolocationProvider()
        app_instance.state.location_tracker = tracker
        logger.info(f"Location pipeline ready with {len(tracker.registry)} reference points")

        try:
            yield
        finally:
            logger.info("Application shutdown sequence initiated...")
            tracker.destroy()
            notification_service.detach()
            await notification_service.drain()
            app_instance.state.location_tracker = None

    app = FastAPI(
        title=app_settings.APP_NAME,
        debug=app_settings.DEBUG,
        version="0.1.0",
        lifespan=lifespan,
        openapi_url=f"{app_settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.include_router(location_endpoints.router, prefix=app_settings.API_V1_PREFIX)
    app.include_router(ws_router.router, prefix="/ws", tags=["WebSockets"])
    app.include_router(health_router.router)

    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to {app_settings.APP_NAME} - Version {app.version}"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

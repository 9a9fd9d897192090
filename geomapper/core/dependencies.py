"""
Module for managing and providing application dependencies.
Leverages FastAPI's dependency injection system and app.state for components built at startup.
"""
import logging

from fastapi import Request, HTTPException, status

from geomapper.core.config import Settings
from geomapper.domains.location.services.location_tracker import LocationTracker
from geomapper.infrastructure.geolocation.push_provider import PushGeolocationProvider

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Retrieves the settings the application was created with."""
    if not hasattr(request.app.state, 'settings') or request.app.state.settings is None:
        logger.error("Settings not found in app.state. Startup might have failed.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Settings not initialized.")
    return request.app.state.settings


def get_location_tracker(request: Request) -> LocationTracker:
    """Retrieves the LocationTracker instance from app.state."""
    if not hasattr(request.app.state, 'location_tracker') or request.app.state.location_tracker is None:
        logger.error("LocationTracker not found in app.state (attribute 'location_tracker'). Startup might have failed.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Location tracker not available.")
    return request.app.state.location_tracker


def get_geolocation_provider(request: Request) -> PushGeolocationProvider:
    """Retrieves the push geolocation provider from app.state."""
    if not hasattr(request.app.state, 'geolocation_provider') or request.app.state.geolocation_provider is None:
        logger.error("Geolocation provider not found in app.state (attribute 'geolocation_provider').")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Geolocation provider not available.")
    return request.app.state.geolocation_provider

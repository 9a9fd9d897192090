"""
Health check endpoint for the location pipeline.
"""

import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_START_TIME = time.time()


@dataclass
class HealthStatus:
    """Health status data structure."""
    status: str  # "healthy", "degraded", "unhealthy"
    uptime_seconds: float
    reference_points: int
    affine_available: bool
    tracking: bool
    simulation_active: bool
    websocket_clients: int


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    tracker = getattr(request.app.state, "location_tracker", None)
    connection_manager = getattr(request.app.state, "connection_manager", None)

    if tracker is None:
        logger.warning("Health check: location tracker not initialized")
        return {"status": "unhealthy", "uptime_seconds": time.time() - _START_TIME}

    reference_points = len(tracker.registry)
    health = HealthStatus(
        status="healthy",
        uptime_seconds=time.time() - _START_TIME,
        reference_points=reference_points,
        affine_available=tracker.transformer.affine_matrix is not None,
        tracking=tracker.is_tracking,
        simulation_active=tracker.get_simulation_status().active,
        websocket_clients=connection_manager.connection_count if connection_manager is not None else 0,
    )
    if reference_points < 3:
        health.status = "degraded"
        logger.warning(f"Health check: only {reference_points} reference points registered")

    return asdict(health)

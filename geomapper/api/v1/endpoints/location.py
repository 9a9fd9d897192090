"""
Location API Endpoints

HTTP surface of the live location pipeline:
- Raw sample ingestion and geolocation relay
- Current position and proximity queries
- Tracking and simulated walk controls
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from geomapper.api.v1.schemas import (
    CurrentPositionResponse,
    GeolocationErrorRequest,
    GeolocationReadingRequest,
    LocateOnceResponse,
    LocationSampleRequest,
    ProximityResponse,
    ReferencePointsResponse,
    SampleSubmissionResponse,
    SimulationEnableResponse,
    SimulationStatusResponse,
    TrackingStatusResponse,
)
from geomapper.core.dependencies import get_geolocation_provider, get_location_tracker
from geomapper.domains.location.exceptions import (
    GeolocationProviderError,
    InsufficientReferencePointsError,
    ProviderErrorKind,
)
from geomapper.domains.location.services.location_tracker import LocationTracker
from geomapper.infrastructure.geolocation.push_provider import PushGeolocationProvider
from geomapper.utils.geodesy import distance_meters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/location", tags=["location"])

_PROVIDER_ERROR_STATUS = {
    ProviderErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ProviderErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ProviderErrorKind.POSITION_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ProviderErrorKind.UNSUPPORTED: status.HTTP_501_NOT_IMPLEMENTED,
}


def _submission(position) -> SampleSubmissionResponse:
    if position is None:
        return SampleSubmissionResponse(accepted=False)
    return SampleSubmissionResponse(accepted=True, position=CurrentPositionResponse(**position.to_dict()))

# --- Ingestion ---

@router.post("/samples", response_model=SampleSubmissionResponse)
async def submit_sample(
    sample: LocationSampleRequest,
    tracker: LocationTracker = Depends(get_location_tracker)
):
    """Feed a raw reading straight into the pipeline."""
    position = tracker.submit_sample(sample.lat, sample.lng, sample.accuracy)
    return _submission(position)


@router.post("/geolocation", response_model=SampleSubmissionResponse)
async def push_geolocation_reading(
    reading: GeolocationReadingRequest,
    provider: PushGeolocationProvider = Depends(get_geolocation_provider),
    tracker: LocationTracker = Depends(get_location_tracker)
):
    """Relay a reading from the client's geolocation source to watchers and pending requests."""
    provider.push(reading.lat, reading.lng, reading.accuracy)
    if not tracker.is_tracking:
        return SampleSubmissionResponse(accepted=False, position=None)
    return _submission(tracker.get_current_position())


@router.post("/geolocation/error")
async def push_geolocation_error(
    error: GeolocationErrorRequest,
    provider: PushGeolocationProvider = Depends(get_geolocation_provider)
) -> Dict[str, Any]:
    provider_error = provider.push_error(error.kind, error.message)
    return provider_error.to_dict()


@router.post("/locate", response_model=LocateOnceResponse)
async def locate_once(
    provider: PushGeolocationProvider = Depends(get_geolocation_provider),
    tracker: LocationTracker = Depends(get_location_tracker)
):
    """Wait for one reading from the provider, with retries, and run it through the pipeline."""
    try:
        result = await tracker.locate_once(provider)
    except GeolocationProviderError as e:
        raise HTTPException(
            status_code=_PROVIDER_ERROR_STATUS.get(e.kind, status.HTTP_503_SERVICE_UNAVAILABLE),
            detail=e.to_dict()
        )
    return LocateOnceResponse(**result.to_dict())

# --- Queries ---

@router.get("/position", response_model=CurrentPositionResponse)
async def get_current_position(tracker: LocationTracker = Depends(get_location_tracker)):
    position = tracker.get_current_position()
    if position is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No position available yet")
    return CurrentPositionResponse(**position.to_dict())


@router.get("/near", response_model=ProximityResponse)
async def is_near_point(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    radius_m: float = Query(50.0, gt=0.0),
    tracker: LocationTracker = Depends(get_location_tracker)
):
    position = tracker.get_current_position()
    distance = None
    if position is not None:
        distance = distance_meters(position.lat, position.lng, lat, lng)
    return ProximityResponse(near=tracker.is_near_point(lat, lng, radius_m), radius_m=radius_m, distance_m=distance)


@router.get("/reference-points", response_model=ReferencePointsResponse)
async def list_reference_points(tracker: LocationTracker = Depends(get_location_tracker)):
    points = [p.to_dict() for p in tracker.registry]
    return ReferencePointsResponse(
        count=len(points),
        transform_mode=tracker.transformer.mode.value,
        reference_points=points
    )


@router.get("/stats")
async def get_pipeline_stats(tracker: LocationTracker = Depends(get_location_tracker)) -> Dict[str, Any]:
    return tracker.get_stats()

# --- Tracking controls ---

@router.post("/tracking/start", response_model=TrackingStatusResponse)
async def start_tracking(
    provider: PushGeolocationProvider = Depends(get_geolocation_provider),
    tracker: LocationTracker = Depends(get_location_tracker)
):
    if not tracker.start_tracking(provider):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Geolocation not available")
    return TrackingStatusResponse(tracking=True, message="GPS tracking started")


@router.post("/tracking/stop", response_model=TrackingStatusResponse)
async def stop_tracking(tracker: LocationTracker = Depends(get_location_tracker)):
    tracker.stop_tracking()
    return TrackingStatusResponse(tracking=False, message="GPS tracking stopped")


@router.get("/tracking", response_model=TrackingStatusResponse)
async def get_tracking_status(tracker: LocationTracker = Depends(get_location_tracker)):
    return TrackingStatusResponse(tracking=tracker.is_tracking)


@router.post("/reset")
async def reset_smoothing(tracker: LocationTracker = Depends(get_location_tracker)) -> Dict[str, str]:
    tracker.reset_smoothing()
    return {"message": "GPS smoothing and cache reset"}

# --- Simulated walk ---

@router.post("/simulation/enable", response_model=SimulationEnableResponse)
async def enable_simulation(tracker: LocationTracker = Depends(get_location_tracker)):
    try:
        route = tracker.enable_simulation()
    except InsufficientReferencePointsError as e:
        logger.warning(f"Simulated walk not enabled: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SimulationEnableResponse(active=True, **route.to_dict())


@router.post("/simulation/disable", response_model=SimulationStatusResponse)
async def disable_simulation(tracker: LocationTracker = Depends(get_location_tracker)):
    tracker.disable_simulation()
    return SimulationStatusResponse(**tracker.get_simulation_status().to_dict())


@router.get("/simulation", response_model=SimulationStatusResponse)
async def get_simulation_status(tracker: LocationTracker = Depends(get_location_tracker)):
    return SimulationStatusResponse(**tracker.get_simulation_status().to_dict())

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from geomapper.domains.location.exceptions import ProviderErrorKind

# --- Request Schemas ---

class LocationSampleRequest(BaseModel):
    """A raw reading submitted directly to the pipeline (bypasses the test offset)."""
    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False, description="Latitude in decimal degrees. 0 is treated as missing.")
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False, description="Longitude in decimal degrees. 0 is treated as missing.")
    accuracy: Optional[float] = Field(None, ge=0.0, allow_inf_nan=False, description="Reported accuracy radius in meters.")


class GeolocationReadingRequest(BaseModel):
    """A reading relayed from the client's geolocation source to the push provider."""
    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False)
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False)
    accuracy: Optional[float] = Field(None, ge=0.0, allow_inf_nan=False)


class GeolocationErrorRequest(BaseModel):
    kind: ProviderErrorKind = Field(..., description="Provider failure kind (e.g. 'permission_denied', 'timeout').")
    message: Optional[str] = None

# --- Response Schemas ---

class CurrentPositionResponse(BaseModel):
    """Latest smoothed position and its projection onto the map."""
    lat: float
    lng: float
    map_x: float
    map_y: float
    accuracy: Optional[float] = None


class SampleSubmissionResponse(BaseModel):
    accepted: bool = Field(..., description="False when the pipeline has no position to report.")
    position: Optional[CurrentPositionResponse] = None


class ProximityResponse(BaseModel):
    near: bool
    radius_m: float
    distance_m: Optional[float] = Field(None, description="Distance from the current position, null without a fix.")


class TrackingStatusResponse(BaseModel):
    tracking: bool
    message: Optional[str] = None


class LatLngSchema(BaseModel):
    lat: float
    lng: float


class SimulationEnableResponse(BaseModel):
    active: bool = True
    start_point: LatLngSchema
    end_point: LatLngSchema


class SimulationStatusResponse(BaseModel):
    active: bool
    progress: float = Field(..., ge=0.0, le=1.0)
    direction: str = Field(..., description="'forward' or 'backward'.")


class ReferencePointSchema(BaseModel):
    lat: float
    lng: float
    map_x: float
    map_y: float


class ReferencePointsResponse(BaseModel):
    count: int
    transform_mode: str
    reference_points: List[ReferencePointSchema]


class LocateOnceResponse(BaseModel):
    lat: float
    lng: float
    accuracy: Optional[float] = None
    position: Optional[CurrentPositionResponse] = None
    testing: bool = False

# --- WebSocket Message Schemas ---

class WebSocketMessage(BaseModel):
    """
    Generic structure for messages pushed via WebSocket.
    The payload field's structure depends on the 'type' field.
    """
    type: str = Field(..., description="Type of WebSocket message (e.g., 'position_update', 'tracking_start', 'error').")
    payload: Dict[str, Any] = Field(..., description="The actual message content, structure depends on 'type'.")
    occurred_at: Optional[str] = None

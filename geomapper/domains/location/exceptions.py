"""
Error types raised by the location mapping pipeline.
"""

from enum import Enum
from typing import Optional


class LocationMappingError(Exception):
    """Base class for location pipeline failures."""


class InsufficientReferencePointsError(LocationMappingError):
    """Raised when an operation needs more surveyed reference points than are registered."""

    def __init__(self, required: int, available: int, purpose: str = "transformation"):
        self.required = required
        self.available = available
        self.purpose = purpose
        super().__init__(
            f"At least {required} reference points are required for {purpose}, {available} registered"
        )


class CollinearPointsError(LocationMappingError):
    """Raised when the affine solve is singular (points collinear or duplicated)."""

    def __init__(self, determinant: float):
        self.determinant = determinant
        super().__init__(f"Reference points are collinear (determinant={determinant:.3e})")


class ProviderErrorKind(Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class GeolocationProviderError(LocationMappingError):
    """Failure reported by an external geolocation provider."""

    def __init__(self, kind: ProviderErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or kind.value.replace("_", " ")
        super().__init__(f"Geolocation error ({kind.value}): {self.message}")

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class InvalidSampleError(LocationMappingError):
    """Raised when a raw sample carries non-finite coordinates or accuracy."""

    def __init__(self, lat: float, lng: float, accuracy: Optional[float] = None):
        self.lat = lat
        self.lng = lng
        self.accuracy = accuracy
        super().__init__(f"Sample is not finite: lat={lat}, lng={lng}, accuracy={accuracy}")

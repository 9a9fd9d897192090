"""
Position value objects flowing through the location pipeline.

Raw samples come from the geolocation provider, are blended into a single
SmoothedPosition, projected to map space and published as CurrentPosition.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MapPosition:
    """Position on the map image in viewport-relative units."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class RawSample:
    """A single reading as delivered by the producer. Not retained after validation."""
    lat: float
    lng: float
    accuracy: Optional[float]
    timestamp_ms: float

    @property
    def is_finite(self) -> bool:
        if self.accuracy is not None and not math.isfinite(self.accuracy):
            return False
        return all(v is not None and math.isfinite(v) for v in (self.lat, self.lng))


@dataclass
class SmoothedPosition:
    """Rolling exponentially-blended position. Mutated in place by the smoother."""
    lat: float
    lng: float
    accuracy: Optional[float]
    timestamp_ms: float

    @classmethod
    def from_sample(cls, sample: RawSample) -> "SmoothedPosition":
        return cls(lat=sample.lat, lng=sample.lng, accuracy=sample.accuracy, timestamp_ms=sample.timestamp_ms)


@dataclass(frozen=True)
class CurrentPosition:
    """Latest published pipeline result."""
    lat: float
    lng: float
    map_x: float
    map_y: float
    accuracy: Optional[float] = None

    @property
    def map_position(self) -> MapPosition:
        return MapPosition(self.map_x, self.map_y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "map_x": self.map_x,
            "map_y": self.map_y,
            "accuracy": self.accuracy,
        }

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ReferencePoint:
    """A surveyed correspondence between a GPS coordinate and a map position."""
    lat: float
    lng: float
    map_x: float
    map_y: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng, "map_x": self.map_x, "map_y": self.map_y}

"""
State objects for the simulated walk test mode.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

LatLng = Tuple[float, float]

FORWARD = 1
BACKWARD = -1


@dataclass(frozen=True)
class SimulationRoute:
    """Endpoints of the simulated walk."""
    start: LatLng
    end: LatLng

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_point": {"lat": self.start[0], "lng": self.start[1]},
            "end_point": {"lat": self.end[0], "lng": self.end[1]},
        }


@dataclass(frozen=True)
class SimulationStatus:
    active: bool
    progress: float
    direction: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "progress": self.progress,
            "direction": "forward" if self.direction == FORWARD else "backward",
        }


@dataclass
class SimulatedWalkState:
    """Mutable ping-pong walk state. progress stays within [0, 1]."""
    active: bool = False
    start_point: Optional[LatLng] = None
    end_point: Optional[LatLng] = None
    progress: float = 0.0
    direction: int = FORWARD
    speed_per_tick: float = 0.001
    tick_interval_ms: float = 50.0

"""
Location entities module.
Value objects shared by the location models and services.
"""

from .position import CurrentPosition, MapPosition, RawSample, SmoothedPosition
from .reference_point import ReferencePoint
from .simulation import (
    BACKWARD,
    FORWARD,
    SimulatedWalkState,
    SimulationRoute,
    SimulationStatus,
)

__all__ = [
    'CurrentPosition',
    'MapPosition',
    'RawSample',
    'SmoothedPosition',
    'ReferencePoint',
    'SimulatedWalkState',
    'SimulationRoute',
    'SimulationStatus',
    'FORWARD',
    'BACKWARD'
]

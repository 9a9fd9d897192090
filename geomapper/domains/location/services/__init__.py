"""
Location services module.
Pipeline stages and the tracker facade that wires them together.
"""

from .event_bus import LocationEvent, LocationEventBus, LocationEventType
from .geolocation import GeolocationProvider, fetch_position_with_retry
from .location_tracker import LocateResult, LocationTracker
from .render_dispatcher import PositionRenderer, RenderDispatcher, accuracy_to_map_units
from .signal_filter import SampleRejection, SignalFilter
from .simulated_walk import SimulatedPathDriver, ease_in_out_sine
from .update_scheduler import ScheduleDecision, UpdateScheduler

__all__ = [
    'LocationEvent',
    'LocationEventBus',
    'LocationEventType',
    'GeolocationProvider',
    'fetch_position_with_retry',
    'LocateResult',
    'LocationTracker',
    'PositionRenderer',
    'RenderDispatcher',
    'accuracy_to_map_units',
    'SampleRejection',
    'SignalFilter',
    'SimulatedPathDriver',
    'ease_in_out_sine',
    'ScheduleDecision',
    'UpdateScheduler'
]

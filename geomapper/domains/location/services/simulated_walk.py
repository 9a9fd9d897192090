"""
Simulated walk test mode.

Moves a synthetic GPS fix back and forth between two reference points with
an ease-in-out curve and feeds each tick into the regular pipeline.
"""

import logging
import math
import random
from typing import Callable, Optional, Tuple

from geomapper.domains.location.entities.simulation import (
    BACKWARD,
    FORWARD,
    LatLng,
    SimulatedWalkState,
    SimulationRoute,
    SimulationStatus,
)
from geomapper.domains.location.exceptions import InsufficientReferencePointsError
from geomapper.domains.location.models.reference_registry import ReferencePointRegistry
from geomapper.utils.timers import PeriodicTimer, TimerScheduler

logger = logging.getLogger(__name__)

SampleSink = Callable[[float, float, float], object]


def ease_in_out_sine(t: float) -> float:
    return -(math.cos(math.pi * t) - 1.0) / 2.0


def interpolate(start: LatLng, end: LatLng, t: float) -> LatLng:
    return (
        start[0] + (end[0] - start[0]) * t,
        start[1] + (end[1] - start[1]) * t,
    )


class SimulatedPathDriver:

    def __init__(
        self,
        registry: ReferencePointRegistry,
        timers: TimerScheduler,
        sink: SampleSink,
        speed_per_tick: float = 0.001,
        tick_interval_ms: float = 50.0,
        min_reference_points: int = 6,
        start_index: int = 3,
        end_index: int = 4,
        accuracy_range_m: Tuple[float, float] = (5.0, 15.0),
        rng: Optional[random.Random] = None
    ):
        self.registry = registry
        self.sink = sink
        self.min_reference_points = min_reference_points
        self.start_index = start_index
        self.end_index = end_index
        self.accuracy_range_m = accuracy_range_m
        self.rng = rng or random.Random()

        self.state = SimulatedWalkState(speed_per_tick=speed_per_tick, tick_interval_ms=tick_interval_ms)
        self._ticker = PeriodicTimer(timers, tick_interval_ms, self.step, name="simulated-walk")

    @property
    def is_active(self) -> bool:
        return self.state.active

    def enable(self) -> SimulationRoute:
        """
        Start walking between the configured reference points.

        Raises:
            InsufficientReferencePointsError: Fewer than `min_reference_points` registered
        """
        if len(self.registry) < self.min_reference_points:
            raise InsufficientReferencePointsError(self.min_reference_points, len(self.registry), "the simulated walk")

        start_ref = self.registry[self.start_index]
        end_ref = self.registry[self.end_index]
        self.state.start_point = (start_ref.lat, start_ref.lng)
        self.state.end_point = (end_ref.lat, end_ref.lng)
        self.state.progress = 0.0
        self.state.direction = FORWARD
        self.state.active = True

        self._ticker.start()
        logger.info(
            f"Simulated walk enabled: reference point {self.start_index} ({start_ref.map_x}, {start_ref.map_y}) "
            f"-> reference point {self.end_index} ({end_ref.map_x}, {end_ref.map_y})"
        )
        return SimulationRoute(start=self.state.start_point, end=self.state.end_point)

    def disable(self) -> None:
        self.state.active = False
        self._ticker.stop()
        logger.info("Simulated walk disabled")

    def status(self) -> SimulationStatus:
        return SimulationStatus(active=self.state.active, progress=self.state.progress, direction=self.state.direction)

    def advance(self) -> float:
        """Move progress one tick, reversing direction at either end. Returns the new progress."""
        state = self.state
        state.progress += state.speed_per_tick * state.direction
        if state.progress >= 1.0:
            state.progress = 1.0
            state.direction = BACKWARD
            logger.debug("Simulated walker reached end point, turning around")
        elif state.progress <= 0.0:
            state.progress = 0.0
            state.direction = FORWARD
            logger.debug("Simulated walker reached start point, turning around")
        return state.progress

    def current_position(self) -> LatLng:
        return interpolate(self.state.start_point, self.state.end_point, ease_in_out_sine(self.state.progress))

    def step(self) -> Optional[Tuple[float, float, float]]:
        """One ticker beat: advance, interpolate and feed the synthetic sample."""
        if not self.state.active:
            return None
        progress = self.advance()
        lat, lng = self.current_position()
        accuracy = self.rng.uniform(*self.accuracy_range_m)
        logger.debug(f"Simulated GPS: {lat:.6f}, {lng:.6f} (progress: {progress * 100:.1f}%)")
        self.sink(lat, lng, accuracy)
        return (lat, lng, accuracy)

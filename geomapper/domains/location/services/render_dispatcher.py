"""
Frame-aligned dispatch of the marker position to an external renderer.
"""

import logging
from typing import Optional, Protocol, Tuple

from geomapper.domains.location.entities.position import MapPosition
from geomapper.utils.timers import TimerHandle, TimerScheduler

logger = logging.getLogger(__name__)


class PositionRenderer(Protocol):
    """Consumer of map positions (DOM marker, overlay, ...)."""

    def render(self, position: MapPosition, accuracy_radius: Optional[float]) -> None: ...

    def remove(self) -> None: ...


def accuracy_to_map_units(
    accuracy_m: float,
    meters_per_unit: float = 1.35,
    min_units: float = 0.5,
    max_units: float = 50.0
) -> float:
    """Convert a GPS accuracy in meters into a marker radius in map units, clamped."""
    return min(max(accuracy_m / meters_per_unit, min_units), max_units)


class RenderDispatcher:
    """
    Coalesces position updates into at most one render per frame.

    A position scheduled while a frame is already pending replaces the pending
    payload, so the renderer always receives the latest position.
    """

    def __init__(
        self,
        timers: TimerScheduler,
        renderer: Optional[PositionRenderer] = None,
        frame_ms: float = 16.0,
        meters_per_unit: float = 1.35,
        min_radius: float = 0.5,
        max_radius: float = 50.0
    ):
        self.timers = timers
        self.renderer = renderer
        self.frame_ms = frame_ms
        self.meters_per_unit = meters_per_unit
        self.min_radius = min_radius
        self.max_radius = max_radius

        self._frame_handle: Optional[TimerHandle] = None
        self._payload: Optional[Tuple[MapPosition, Optional[float]]] = None
        self.frames_rendered = 0

    @property
    def is_pending(self) -> bool:
        return self._frame_handle is not None

    def schedule(self, position: MapPosition, accuracy_m: Optional[float]) -> None:
        if self.renderer is None:
            return
        radius = None
        if accuracy_m:
            radius = accuracy_to_map_units(accuracy_m, self.meters_per_unit, self.min_radius, self.max_radius)
        self._payload = (position, radius)
        if self._frame_handle is None:
            self._frame_handle = self.timers.call_later(self.frame_ms, self._on_frame)

    def _on_frame(self) -> None:
        self._frame_handle = None
        payload, self._payload = self._payload, None
        if payload is None or self.renderer is None:
            return
        position, radius = payload
        try:
            self.renderer.render(position, radius)
            self.frames_rendered += 1
        except Exception as e:
            logger.error(f"Renderer failed to draw position ({position.x:.2f}, {position.y:.2f}): {e}", exc_info=True)

    def cancel(self) -> None:
        if self._frame_handle is not None:
            self._frame_handle.cancel()
            self._frame_handle = None
        self._payload = None

    def remove_marker(self) -> None:
        self.cancel()
        if self.renderer is not None:
            self.renderer.remove()

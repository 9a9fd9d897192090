"""
Ordered registry of surveyed reference points.

The registry itself enforces no minimum size; consumers such as the
coordinate transformer check the count they need. Mutations are announced
to listeners so derived artifacts (transform cache, affine matrix) can be
invalidated.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Tuple

from geomapper.domains.location.entities.reference_point import ReferencePoint

logger = logging.getLogger(__name__)


class RegistryChangeKind(Enum):
    ADDED = "added"
    CLEARED = "cleared"


@dataclass(frozen=True)
class RegistryChange:
    kind: RegistryChangeKind
    index: Optional[int] = None


RegistryListener = Callable[[RegistryChange], None]


class ReferencePointRegistry:
    """Insertion-ordered sequence of ReferencePoint."""

    def __init__(self):
        self._points: List[ReferencePoint] = []
        self._listeners: List[RegistryListener] = []

    def add_listener(self, listener: RegistryListener) -> None:
        self._listeners.append(listener)

    def add(self, lat: float, lng: float, map_x: float, map_y: float) -> ReferencePoint:
        point = ReferencePoint(lat=float(lat), lng=float(lng), map_x=float(map_x), map_y=float(map_y))
        self._points.append(point)
        logger.debug(f"Reference point #{len(self._points) - 1} added: ({lat}, {lng}) -> ({map_x}, {map_y})")
        self._notify(RegistryChange(RegistryChangeKind.ADDED, len(self._points) - 1))
        return point

    def extend(self, points: List[Tuple[float, float, float, float]]) -> None:
        for lat, lng, map_x, map_y in points:
            self.add(lat, lng, map_x, map_y)

    def clear(self) -> None:
        self._points = []
        logger.info("Reference points cleared")
        self._notify(RegistryChange(RegistryChangeKind.CLEARED))

    @property
    def points(self) -> Tuple[ReferencePoint, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ReferencePoint]:
        return iter(list(self._points))

    def __getitem__(self, index: int) -> ReferencePoint:
        return self._points[index]

    def _notify(self, change: RegistryChange) -> None:
        for listener in self._listeners:
            listener(change)

"""
Plausibility checks and exponential smoothing for raw GPS samples.
"""

import logging
import math
from collections import deque
from enum import Enum
from typing import Deque, Optional, Tuple

from geomapper.domains.location.entities.position import RawSample, SmoothedPosition
from geomapper.domains.location.models.transform_cache import TransformCache
from geomapper.utils.geodesy import distance_meters

logger = logging.getLogger(__name__)


class SampleRejection(Enum):
    """Why a raw sample was refused."""
    MISSING_COORDINATE = "missing_coordinate"
    OUT_OF_RANGE = "out_of_range"
    LOW_ACCURACY = "low_accuracy"
    EXCESSIVE_JUMP = "excessive_jump"


def _is_missing(value: Optional[float]) -> bool:
    return value is None or value == 0 or not math.isfinite(value)


class SignalFilter:
    """
    Validator and smoother sharing the "last valid position" state.

    smooth() overwrites last_valid_position with every sample it sees, while
    validate() measures jumps against whatever last_valid_position currently
    holds. Callers validate a batch first and smooth the chosen sample after.
    """

    def __init__(
        self,
        smoothing_factor: float = 0.3,
        max_jump_distance_m: float = 30.0,
        min_accuracy_m: float = 100.0,
        max_history_size: int = 5,
        transform_cache: Optional[TransformCache] = None
    ):
        if not 0.0 < smoothing_factor <= 1.0:
            raise ValueError(f"smoothing_factor must be in (0, 1], got {smoothing_factor}")
        self.smoothing_factor = smoothing_factor
        self.max_jump_distance_m = max_jump_distance_m
        self.min_accuracy_m = min_accuracy_m
        self.max_history_size = max_history_size
        self.transform_cache = transform_cache

        self._history: Deque[RawSample] = deque(maxlen=max_history_size)
        self._smoothed: Optional[SmoothedPosition] = None
        self._last_valid: Optional[RawSample] = None

    @property
    def history(self) -> Tuple[RawSample, ...]:
        return tuple(self._history)

    @property
    def smoothed_position(self) -> Optional[SmoothedPosition]:
        return self._smoothed

    @property
    def last_valid_position(self) -> Optional[RawSample]:
        return self._last_valid

    def validate(self, lat: Optional[float], lng: Optional[float], accuracy: Optional[float] = None) -> Optional[SampleRejection]:
        """Return the rejection reason, or None when the sample is plausible."""
        if _is_missing(lat) or _is_missing(lng):
            return SampleRejection.MISSING_COORDINATE
        if abs(lat) > 90 or abs(lng) > 180:
            return SampleRejection.OUT_OF_RANGE
        if accuracy and (math.isnan(accuracy) or accuracy > self.min_accuracy_m):
            return SampleRejection.LOW_ACCURACY
        if self._last_valid is not None:
            jump = distance_meters(self._last_valid.lat, self._last_valid.lng, lat, lng)
            if jump > self.max_jump_distance_m:
                return SampleRejection.EXCESSIVE_JUMP
        return None

    def is_valid(self, lat: Optional[float], lng: Optional[float], accuracy: Optional[float] = None) -> bool:
        rejection = self.validate(lat, lng, accuracy)
        if rejection is not None:
            logger.debug(f"Sample ({lat}, {lng}, acc={accuracy}) rejected: {rejection.value}")
            return False
        return True

    def smooth(self, lat: float, lng: float, accuracy: Optional[float], timestamp_ms: float) -> SmoothedPosition:
        """Blend a sample into the rolling position. The first sample seeds it verbatim."""
        sample = RawSample(lat=lat, lng=lng, accuracy=accuracy, timestamp_ms=timestamp_ms)
        self._history.append(sample)

        if self._smoothed is None:
            self._smoothed = SmoothedPosition.from_sample(sample)
            self._last_valid = sample
            return self._smoothed

        alpha = self.smoothing_factor
        keep = 1.0 - alpha
        self._smoothed.lat = self._smoothed.lat * keep + lat * alpha
        self._smoothed.lng = self._smoothed.lng * keep + lng * alpha
        self._smoothed.accuracy = accuracy
        self._smoothed.timestamp_ms = timestamp_ms

        self._last_valid = sample
        return self._smoothed

    def purge_history(self, cutoff_ms: float) -> int:
        """Drop history entries not newer than cutoff_ms. Returns the number removed."""
        kept = [s for s in self._history if s.timestamp_ms > cutoff_ms]
        removed = len(self._history) - len(kept)
        if removed:
            self._history = deque(kept, maxlen=self.max_history_size)
        return removed

    def reset(self) -> None:
        self._history.clear()
        self._smoothed = None
        self._last_valid = None
        if self.transform_cache is not None:
            self.transform_cache.clear()
        logger.info("GPS smoothing and cache reset")

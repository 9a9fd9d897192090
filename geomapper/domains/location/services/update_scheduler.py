"""
Throttler between sample arrival and the transform pipeline.

At most one sample per `interval_ms` is processed immediately. Samples that
arrive inside the window are queued; a single flush fires when the window
elapses and processes only the most recent valid queued sample.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

from geomapper.domains.location.entities.position import RawSample
from geomapper.utils.timers import TimerHandle, TimerScheduler

logger = logging.getLogger(__name__)


class ScheduleDecision(Enum):
    IMMEDIATE = "immediate"
    QUEUED = "queued"
    REJECTED = "rejected"


class UpdateScheduler:

    def __init__(
        self,
        timers: TimerScheduler,
        process: Callable[[RawSample], None],
        is_valid: Callable[[RawSample], bool],
        interval_ms: float = 500.0,
        bypass: Optional[Callable[[], bool]] = None,
        validate_immediate: bool = False
    ):
        """
        Args:
            timers: Clock and timer source
            process: Runs the full pipeline for one sample
            is_valid: Plausibility check applied to queued samples at flush time
            interval_ms: Minimum spacing between immediate runs
            bypass: When it returns True the throttle is skipped (simulated walk)
            validate_immediate: Also apply is_valid to samples processed without queueing
        """
        self.timers = timers
        self.process = process
        self.is_valid = is_valid
        self.interval_ms = interval_ms
        self.bypass = bypass
        self.validate_immediate = validate_immediate

        self.last_accepted_ms: Optional[float] = None
        self._pending: List[RawSample] = []
        self._flush_handle: Optional[TimerHandle] = None
        self._flushing = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_flush_scheduled(self) -> bool:
        return self._flush_handle is not None

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    def submit(self, sample: RawSample) -> ScheduleDecision:
        now = self.timers.now_ms()
        bypassed = self.bypass is not None and self.bypass()

        if not bypassed and self.last_accepted_ms is not None and now - self.last_accepted_ms < self.interval_ms:
            self._pending.append(sample)
            if self._flush_handle is None:
                self._flush_handle = self.timers.call_later(self.interval_ms, self._on_flush_timer)
            return ScheduleDecision.QUEUED

        if self.validate_immediate and not self.is_valid(sample):
            return ScheduleDecision.REJECTED

        self.last_accepted_ms = now
        self.process(sample)
        return ScheduleDecision.IMMEDIATE

    def _on_flush_timer(self) -> None:
        self._flush_handle = None
        self.flush()

    def flush(self) -> Optional[RawSample]:
        """Process the most recent valid queued sample, discard the rest. Returns the processed sample."""
        if self._flushing or not self._pending:
            return None

        self._flushing = True
        try:
            valid = [s for s in self._pending if self.is_valid(s)]
            dropped = len(self._pending) - len(valid)
            self._pending = []
            if not valid:
                logger.debug(f"Batch flush: all {dropped} queued samples rejected")
                return None
            latest = valid[-1]
            logger.debug(f"Batch flush: processing latest of {len(valid)} valid samples ({dropped} rejected)")
            self.process(latest)
            return latest
        finally:
            self._flushing = False

    def cancel(self) -> None:
        """Drop queued samples and any scheduled flush; the next sample is processed immediately."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        self._pending = []
        self._flushing = False
        self.last_accepted_ms = None

"""
Clock and timer abstractions for the location pipeline.

All "waiting" in the pipeline is expressed as scheduled callbacks. Production
code runs them on the asyncio event loop; tests drive a virtual clock with
ManualTimerScheduler so no live timer is ever needed.
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    """Minimal clock + one-shot timer interface."""

    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: TimerCallback) -> TimerHandle: ...


class AsyncioTimerScheduler:
    """TimerScheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: TimerCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback)


class ManualTimerHandle:
    """Handle returned by ManualTimerScheduler."""

    __slots__ = ("due_ms", "callback", "cancelled")

    def __init__(self, due_ms: float, callback: TimerCallback):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerScheduler:
    """
    Deterministic virtual clock.

    Time only moves when advance() is called. Due callbacks fire in due-time
    order (insertion order for ties), including callbacks scheduled by other
    callbacks while advancing.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now_ms = float(start_ms)
        self._queue: List[Tuple[float, int, ManualTimerHandle]] = []
        self._sequence = itertools.count()

    def now_ms(self) -> float:
        return self._now_ms

    def call_later(self, delay_ms: float, callback: TimerCallback) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now_ms + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._sequence), handle))
        return handle

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward, firing every callback that becomes due. Returns the number fired."""
        if delta_ms < 0:
            raise ValueError("Cannot move a virtual clock backwards")
        target_ms = self._now_ms + delta_ms
        fired = 0
        while self._queue and self._queue[0][0] <= target_ms:
            due_ms, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now_ms = due_ms
            handle.cancelled = True
            handle.callback()
            fired += 1
        self._now_ms = target_ms
        return fired


class PeriodicTimer:
    """Fixed-period ticker built on a TimerScheduler."""

    def __init__(self, scheduler: TimerScheduler, interval_ms: float, callback: TimerCallback, name: str = "ticker"):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.callback = callback
        self.name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self.scheduler.call_later(self.interval_ms, self._tick)
        logger.debug(f"PeriodicTimer '{self.name}' started ({self.interval_ms}ms)")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"PeriodicTimer '{self.name}' stopped")

    def _tick(self) -> None:
        # Re-arm first so the callback is free to stop the timer
        self._handle = self.scheduler.call_later(self.interval_ms, self._tick)
        self.callback()

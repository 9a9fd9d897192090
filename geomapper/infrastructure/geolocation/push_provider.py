"""
Geolocation provider fed from outside the process.

The host (typically a browser relaying `navigator.geolocation` readings over
HTTP) pushes readings in; watchers and pending one-shot requests receive them.
"""

import asyncio
import itertools
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from geomapper.domains.location.entities.position import RawSample
from geomapper.domains.location.exceptions import GeolocationProviderError, ProviderErrorKind
from geomapper.domains.location.services.geolocation import ErrorCallback, SampleCallback

logger = logging.getLogger(__name__)


class PushGeolocationProvider:
    """Provider whose readings are pushed by the host instead of polled from hardware."""

    def __init__(self, clock_ms: Optional[Callable[[], float]] = None):
        self._clock_ms = clock_ms or (lambda: time.time() * 1000.0)
        self._watchers: Dict[int, Tuple[SampleCallback, ErrorCallback]] = {}
        self._waiters: List[asyncio.Future] = []
        self._ids = itertools.count(1)
        self.last_sample: Optional[RawSample] = None
        logger.info("PushGeolocationProvider initialized.")

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    def watch(self, on_sample: SampleCallback, on_error: ErrorCallback) -> int:
        handle = next(self._ids)
        self._watchers[handle] = (on_sample, on_error)
        logger.debug(f"Watcher {handle} registered ({len(self._watchers)} active)")
        return handle

    def unwatch(self, handle: int) -> None:
        if self._watchers.pop(handle, None) is None:
            logger.warning(f"Unwatch requested for unknown watcher {handle}")

    async def get_once(self) -> RawSample:
        """Wait for the next pushed reading."""
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            return await future
        finally:
            if future in self._waiters:
                self._waiters.remove(future)

    def push(self, lat: float, lng: float, accuracy: Optional[float] = None) -> RawSample:
        sample = RawSample(lat=lat, lng=lng, accuracy=accuracy, timestamp_ms=self._clock_ms())
        self.last_sample = sample

        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(sample)

        for handle, (on_sample, _) in list(self._watchers.items()):
            try:
                on_sample(sample)
            except Exception as e:
                logger.error(f"Watcher {handle} failed to handle sample: {e}", exc_info=True)
        return sample

    def push_error(self, kind: ProviderErrorKind, message: Optional[str] = None) -> GeolocationProviderError:
        error = GeolocationProviderError(kind, message)
        logger.warning(f"Provider error pushed: {error}")

        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_exception(error)

        for handle, (_, on_error) in list(self._watchers.items()):
            try:
                on_error(error)
            except Exception as e:
                logger.error(f"Watcher {handle} failed to handle error: {e}", exc_info=True)
        return error

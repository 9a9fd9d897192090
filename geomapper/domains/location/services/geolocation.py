"""
Interface to external geolocation providers and the one-shot retry policy.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from geomapper.domains.location.entities.position import RawSample
from geomapper.domains.location.exceptions import GeolocationProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

SampleCallback = Callable[[RawSample], None]
ErrorCallback = Callable[[GeolocationProviderError], None]


class GeolocationProvider(Protocol):
    """Producer of raw GPS samples."""

    async def get_once(self) -> RawSample: ...

    def watch(self, on_sample: SampleCallback, on_error: ErrorCallback) -> Any: ...

    def unwatch(self, handle: Any) -> None: ...


async def fetch_position_with_retry(
    provider: GeolocationProvider,
    max_retries: int = 3,
    backoff_ms: float = 1000.0,
    timeout_ms: Optional[float] = 15_000.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> RawSample:
    """
    Request a single fix, retrying with linear backoff (backoff_ms * attempt).

    Raises:
        GeolocationProviderError: The last provider error once all attempts failed
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            if timeout_ms is None:
                return await provider.get_once()
            return await asyncio.wait_for(provider.get_once(), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError:
            error = GeolocationProviderError(ProviderErrorKind.TIMEOUT, f"No fix within {timeout_ms:.0f}ms")
        except GeolocationProviderError as e:
            error = e

        if attempt >= max_retries:
            logger.error(f"GPS error after {attempt} attempts: {error.message}")
            raise error

        logger.info(f"GPS retry {attempt}/{max_retries} after {error.kind.value}")
        await sleep(backoff_ms * attempt / 1000.0)

"""
Location tracker: the pipeline instance tying the location components together.

    raw sample -> UpdateScheduler (throttle/batch) -> SignalFilter (validate, smooth)
               -> CoordinateTransformer (IDW/affine, cached) -> CurrentPosition
               -> RenderDispatcher + LocationEventBus

One tracker owns all mutable pipeline state. It is constructed explicitly
and handed to whoever needs it; all timers run on the injected scheduler.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from geomapper.core.config import Settings
from geomapper.domains.location.entities.position import CurrentPosition, MapPosition, RawSample
from geomapper.domains.location.entities.simulation import SimulationRoute, SimulationStatus
from geomapper.domains.location.exceptions import (
    CollinearPointsError,
    GeolocationProviderError,
    InsufficientReferencePointsError,
    InvalidSampleError,
    LocationMappingError,
)
from geomapper.domains.location.models.coordinate_transformer import CoordinateTransformer, TransformationMode
from geomapper.domains.location.models.reference_registry import ReferencePointRegistry
from geomapper.domains.location.models.transform_cache import TransformCache
from geomapper.domains.location.services.event_bus import LocationEvent, LocationEventBus, LocationEventType
from geomapper.domains.location.services.geolocation import GeolocationProvider, fetch_position_with_retry
from geomapper.domains.location.services.render_dispatcher import PositionRenderer, RenderDispatcher
from geomapper.domains.location.services.signal_filter import SignalFilter
from geomapper.domains.location.services.simulated_walk import SimulatedPathDriver
from geomapper.domains.location.services.update_scheduler import ScheduleDecision, UpdateScheduler
from geomapper.utils.geodesy import is_within_radius
from geomapper.utils.timers import PeriodicTimer, TimerScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocateResult:
    """Outcome of a one-shot position request."""
    lat: float
    lng: float
    accuracy: Optional[float]
    position: Optional[CurrentPosition]
    testing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "position": self.position.to_dict() if self.position else None,
            "testing": self.testing,
        }


class LocationTracker:
    """
    Maps live GPS readings onto the rotated map image.

    Features:
    - Throttled sample ingestion with latest-wins batching
    - Plausibility filtering and exponential smoothing
    - Cached GPS -> map transformation
    - Frame-aligned renderer dispatch and event notifications
    - Simulated walk test mode and periodic memory cleanup
    """

    def __init__(
        self,
        settings: Settings,
        timers: TimerScheduler,
        event_bus: Optional[LocationEventBus] = None,
        renderer: Optional[PositionRenderer] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the tracker and load the configured reference points.

        Args:
            settings: Application settings with pipeline tunables and reference points
            timers: Clock and timer source driving throttle, render, simulation and cleanup
            event_bus: Notification bus (a private one is created if None)
            renderer: Optional consumer of map positions
            rng: Random source for simulated accuracy values
        """
        self.settings = settings
        self.timers = timers
        self.event_bus = event_bus or LocationEventBus()

        self.registry = ReferencePointRegistry()
        self.cache = TransformCache(max_size=settings.CACHE_MAX_SIZE, precision=settings.CACHE_KEY_PRECISION)
        self.transformer = CoordinateTransformer(
            registry=self.registry,
            cache=self.cache,
            mode=TransformationMode(settings.TRANSFORM_MODE),
            idw_epsilon=settings.IDW_EPSILON
        )
        self.signal_filter = SignalFilter(
            smoothing_factor=settings.SMOOTHING_FACTOR,
            max_jump_distance_m=settings.MAX_JUMP_DISTANCE_M,
            min_accuracy_m=settings.MIN_ACCURACY_M,
            max_history_size=settings.MAX_HISTORY_SIZE,
            transform_cache=self.cache
        )
        self.render_dispatcher = RenderDispatcher(
            timers=timers,
            renderer=renderer,
            frame_ms=settings.RENDER_FRAME_MS,
            meters_per_unit=settings.METERS_PER_MAP_UNIT,
            min_radius=settings.ACCURACY_RADIUS_MIN,
            max_radius=settings.ACCURACY_RADIUS_MAX
        )
        self.simulation = SimulatedPathDriver(
            registry=self.registry,
            timers=timers,
            sink=self.submit_sample,
            speed_per_tick=settings.SIMULATION_SPEED,
            tick_interval_ms=settings.SIMULATION_TICK_MS,
            min_reference_points=settings.SIMULATION_MIN_REFERENCE_POINTS,
            start_index=settings.SIMULATION_START_INDEX,
            end_index=settings.SIMULATION_END_INDEX,
            accuracy_range_m=(settings.SIMULATION_ACCURACY_MIN_M, settings.SIMULATION_ACCURACY_MAX_M),
            rng=rng
        )
        self.update_scheduler = UpdateScheduler(
            timers=timers,
            process=self._process_safely,
            is_valid=lambda s: self.signal_filter.is_valid(s.lat, s.lng, s.accuracy),
            interval_ms=settings.UPDATE_INTERVAL_MS,
            bypass=lambda: self.simulation.is_active,
            validate_immediate=settings.VALIDATE_IMMEDIATE_SAMPLES
        )

        self.current_position: Optional[CurrentPosition] = None
        self._last_processed: Optional[CurrentPosition] = None
        self._provider: Optional[GeolocationProvider] = None
        self._watch_handle: Any = None
        self._tracking = False
        self._destroyed = False
        self.last_memory_cleanup_ms = timers.now_ms()

        self.load_reference_points()

        self._cleanup_timer = PeriodicTimer(
            timers, settings.MEMORY_CLEANUP_INTERVAL_MS, self.perform_memory_cleanup, name="memory-cleanup"
        )
        self._cleanup_timer.start()

        logger.info(f"LocationTracker initialized with {len(self.registry)} reference points")

    # --- Reference points ---

    def load_reference_points(self) -> None:
        """Register the configured reference points and precompute the affine matrix."""
        self.registry.extend(self.settings.reference_point_tuples)
        self.recompute_affine()

    def add_reference_point(self, lat: float, lng: float, map_x: float, map_y: float) -> None:
        self.registry.add(lat, lng, map_x, map_y)

    def clear_reference_points(self) -> None:
        self.registry.clear()

    def recompute_affine(self) -> bool:
        """Solve the affine matrix after bulk reference point changes. Failures are logged, not raised."""
        try:
            self.transformer.compute_affine()
            return True
        except (CollinearPointsError, InsufficientReferencePointsError) as e:
            logger.warning(f"Affine precomputation skipped: {e}")
            return False

    # --- Pipeline ---

    def submit_sample(self, lat: float, lng: float, accuracy: Optional[float] = None) -> Optional[CurrentPosition]:
        """
        Main ingress for raw readings.

        Returns:
            The freshly computed position when processed immediately, the last
            known position when the sample was queued, or None on failure.
        """
        sample = RawSample(lat=lat, lng=lng, accuracy=accuracy, timestamp_ms=self.timers.now_ms())
        self._last_processed = None
        decision = self.update_scheduler.submit(sample)
        if decision == ScheduleDecision.IMMEDIATE:
            return self._last_processed
        if decision == ScheduleDecision.REJECTED:
            logger.debug(f"Sample ({lat}, {lng}) dropped by immediate validation")
        return self.current_position

    def _process_safely(self, sample: RawSample) -> None:
        try:
            self._last_processed = self._process_sample(sample)
        except LocationMappingError as e:
            logger.error(f"Error while showing position: {e}")
            self._report_error(e)
            self._last_processed = None
        except Exception as e:
            logger.error(f"Unexpected error while showing position: {e}", exc_info=True)
            self._report_error(e)
            self._last_processed = None

    def _process_sample(self, sample: RawSample) -> CurrentPosition:
        # Non-finite values would poison the smoothed state for every later sample
        if not sample.is_finite:
            raise InvalidSampleError(sample.lat, sample.lng, sample.accuracy)

        smoothed = self.signal_filter.smooth(sample.lat, sample.lng, sample.accuracy, sample.timestamp_ms)
        map_position = self.transformer.transform(smoothed.lat, smoothed.lng)

        position = CurrentPosition(
            lat=smoothed.lat,
            lng=smoothed.lng,
            map_x=map_position.x,
            map_y=map_position.y,
            accuracy=smoothed.accuracy
        )
        self.current_position = position

        self.render_dispatcher.schedule(map_position, smoothed.accuracy)
        self._publish(LocationEventType.POSITION_UPDATE, {
            "lat": position.lat,
            "lng": position.lng,
            "map_position": map_position.to_dict(),
            "accuracy": position.accuracy,
        })
        return position

    def get_current_position(self) -> Optional[CurrentPosition]:
        return self.current_position

    def transform(self, lat: float, lng: float) -> MapPosition:
        return self.transformer.transform(lat, lng)

    def is_near_point(self, lat: float, lng: float, radius_m: float = 50.0) -> bool:
        if self.current_position is None:
            return False
        return is_within_radius(self.current_position.lat, self.current_position.lng, lat, lng, radius_m)

    def reset_smoothing(self) -> None:
        self.signal_filter.reset()

    def perform_memory_cleanup(self) -> None:
        now = self.timers.now_ms()
        pruned = self.cache.prune(self.settings.CACHE_PRUNE_THRESHOLD, self.settings.CACHE_PRUNE_FRACTION)
        purged = self.signal_filter.purge_history(now - self.settings.HISTORY_MAX_AGE_MS)
        self.last_memory_cleanup_ms = now
        logger.debug(f"Memory cleanup performed: {pruned} cache entries pruned, {purged} history entries purged")

    # --- Geolocation provider ---

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    def _apply_test_offset(self, lat: float, lng: float):
        d_lat, d_lng = self.settings.gps_test_offset
        return lat + d_lat, lng + d_lng

    def _on_provider_sample(self, sample: RawSample) -> None:
        lat, lng = self._apply_test_offset(sample.lat, sample.lng)
        self.submit_sample(lat, lng, sample.accuracy)

    def _on_provider_error(self, error: GeolocationProviderError) -> None:
        logger.error(f"GPS tracking error: {error.message}")
        self._report_error(error)

    def start_tracking(self, provider: GeolocationProvider) -> bool:
        if self._tracking:
            logger.warning("GPS tracking is already running")
            return True

        logger.info("Starting GPS tracking...")
        try:
            self._watch_handle = provider.watch(self._on_provider_sample, self._on_provider_error)
        except GeolocationProviderError as e:
            logger.error(f"Geolocation not available: {e}")
            self._report_error(e)
            return False

        self._provider = provider
        self._tracking = True
        self._publish(LocationEventType.TRACKING_START, {})
        return True

    def stop_tracking(self) -> None:
        if self._provider is not None and self._watch_handle is not None:
            self._provider.unwatch(self._watch_handle)
        self._provider = None
        self._watch_handle = None

        self.update_scheduler.cancel()
        self.render_dispatcher.cancel()

        self._tracking = False
        self._publish(LocationEventType.TRACKING_STOP, {})
        logger.info("GPS tracking stopped")

    async def locate_once(self, provider: GeolocationProvider) -> LocateResult:
        """
        Request one fix with retries and feed it through the pipeline.

        Raises:
            GeolocationProviderError: When every attempt failed
        """
        try:
            sample = await fetch_position_with_retry(
                provider,
                max_retries=self.settings.GEOLOCATION_MAX_RETRIES,
                backoff_ms=self.settings.GEOLOCATION_RETRY_BACKOFF_MS,
                timeout_ms=self.settings.GEOLOCATION_TIMEOUT_MS
            )
        except GeolocationProviderError as e:
            self._report_error(e)
            raise

        lat, lng = self._apply_test_offset(sample.lat, sample.lng)
        position = self.submit_sample(lat, lng, sample.accuracy)
        return LocateResult(
            lat=lat,
            lng=lng,
            accuracy=sample.accuracy,
            position=position,
            testing=self.settings.GPS_TEST_OFFSET_ENABLED
        )

    # --- Simulated walk ---

    def enable_simulation(self) -> SimulationRoute:
        """
        Raises:
            InsufficientReferencePointsError: Not enough reference points for the walk
        """
        route = self.simulation.enable()
        self.reset_smoothing()
        return route

    def disable_simulation(self) -> bool:
        self.simulation.disable()
        return True

    def get_simulation_status(self) -> SimulationStatus:
        return self.simulation.status()

    # --- Lifecycle ---

    def _publish(self, event_type: LocationEventType, payload: Dict[str, Any]) -> None:
        self.event_bus.publish(LocationEvent(event_type=event_type, payload=payload))

    def _report_error(self, error: Exception) -> None:
        payload = error.to_dict() if isinstance(error, GeolocationProviderError) else {"message": str(error)}
        payload["error_type"] = type(error).__name__
        self._publish(LocationEventType.ERROR, payload)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "tracking": self._tracking,
            "reference_points": len(self.registry),
            "pending_samples": self.update_scheduler.pending_count,
            "history_size": len(self.signal_filter.history),
            "frames_rendered": self.render_dispatcher.frames_rendered,
            "simulation": self.simulation.status().to_dict(),
            "transformer": self.transformer.get_transformation_stats()
        }

    def destroy(self) -> None:
        if self._destroyed:
            return
        if self._tracking:
            self.stop_tracking()
        else:
            self.update_scheduler.cancel()
        self.simulation.disable()
        self._cleanup_timer.stop()
        self.signal_filter.reset()
        self.render_dispatcher.remove_marker()
        self._destroyed = True
        logger.info("LocationTracker destroyed")

"""
Global fixtures for the GeoMapper backend test suite.
"""
import pytest
from unittest.mock import MagicMock, PropertyMock
from typing import Any, Dict, List, Tuple

from geomapper.core.config import Settings, ReferencePointConfig
from geomapper.domains.location.models.reference_registry import ReferencePointRegistry
from geomapper.utils.timers import ManualTimerScheduler

SURVEYED_POINTS: List[Tuple[float, float, float, float]] = [
    (51.492076, 11.956062, 15, 55),
    (51.491600, 11.955818, 43, 77),
    (51.491316, 11.956467, 75, 55),
    (51.491918, 11.957036, 40, 17),
    (51.491010, 11.956180, 91, 74.5),
    (51.490472, 11.957832, 155, 14),
]


@pytest.fixture(scope="session")
def reference_points() -> List[Tuple[float, float, float, float]]:
    return list(SURVEYED_POINTS)


@pytest.fixture(scope="session")
def mock_settings_base_values() -> Dict[str, Any]:
    """
    Provides a dictionary of base values for a mocked Settings object.
    Tests can override these by providing their own dictionary to mock_settings.
    """
    return {
        "APP_NAME": "GeoMapper Test Backend",
        "API_V1_PREFIX": "/api/v1",
        "DEBUG": True,
        "REFERENCE_POINTS": [ReferencePointConfig(lat=lat, lng=lng, x=x, y=y) for lat, lng, x, y in SURVEYED_POINTS],
        "TRANSFORM_MODE": "idw",
        "IDW_EPSILON": 1e-6,
        "SMOOTHING_FACTOR": 0.3,
        "MAX_JUMP_DISTANCE_M": 30.0,
        "MIN_ACCURACY_M": 100.0,
        "MAX_HISTORY_SIZE": 5,
        "VALIDATE_IMMEDIATE_SAMPLES": False,
        "CACHE_MAX_SIZE": 100,
        "CACHE_KEY_PRECISION": 5,
        "CACHE_PRUNE_THRESHOLD": 0.8,
        "CACHE_PRUNE_FRACTION": 0.3,
        "UPDATE_INTERVAL_MS": 500.0,
        "MEMORY_CLEANUP_INTERVAL_MS": 60_000.0,
        "HISTORY_MAX_AGE_MS": 60_000.0,
        "RENDER_FRAME_MS": 16.0,
        "METERS_PER_MAP_UNIT": 1.35,
        "ACCURACY_RADIUS_MIN": 0.5,
        "ACCURACY_RADIUS_MAX": 50.0,
        "SIMULATION_SPEED": 0.001,
        "SIMULATION_TICK_MS": 50.0,
        "SIMULATION_MIN_REFERENCE_POINTS": 6,
        "SIMULATION_START_INDEX": 3,
        "SIMULATION_END_INDEX": 4,
        "SIMULATION_ACCURACY_MIN_M": 5.0,
        "SIMULATION_ACCURACY_MAX_M": 15.0,
        "GEOLOCATION_MAX_RETRIES": 3,
        "GEOLOCATION_RETRY_BACKOFF_MS": 1000.0,
        "GEOLOCATION_TIMEOUT_MS": 15_000.0,
        "GPS_TEST_OFFSET_ENABLED": False,
        "GPS_TEST_OFFSET_LAT": 0.0,
        "GPS_TEST_OFFSET_LNG": 0.0,
        "reference_point_tuples": list(SURVEYED_POINTS),
        "gps_test_offset": (0.0, 0.0),
    }


@pytest.fixture
def mock_settings(mocker, mock_settings_base_values: Dict[str, Any]) -> MagicMock:
    """
    Provides a MagicMock instance of the application Settings.
    """
    mocked_settings = MagicMock(spec=Settings)

    for key, value in mock_settings_base_values.items():
        # For properties, mock them on the type of the mock
        if key in ["reference_point_tuples", "gps_test_offset"]:
            prop_mock = PropertyMock(return_value=value)
            setattr(type(mocked_settings), key, prop_mock)
        else:
            setattr(mocked_settings, key, value)

    mocked_settings.model_config = {"extra": "ignore"}

    return mocked_settings


@pytest.fixture
def app_settings(mock_settings_base_values: Dict[str, Any]) -> Settings:
    """A real Settings instance built from the base values (properties are derived)."""
    values = {
        key: value for key, value in mock_settings_base_values.items()
        if key not in ("reference_point_tuples", "gps_test_offset")
    }
    return Settings(**values)


@pytest.fixture
def manual_timers() -> ManualTimerScheduler:
    return ManualTimerScheduler(start_ms=1_000_000.0)


@pytest.fixture
def populated_registry(reference_points) -> ReferencePointRegistry:
    registry = ReferencePointRegistry()
    registry.extend(reference_points)
    return registry

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings
from typing import List, Tuple


class ReferencePointConfig(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0, description="Surveyed latitude in decimal degrees.")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Surveyed longitude in decimal degrees.")
    x: float = Field(..., description="Horizontal map position in viewport-relative units (vh).")
    y: float = Field(..., description="Vertical map position in viewport-relative units (vh).")


class Settings(BaseSettings):
    APP_NAME: str = "GeoMapper Backend"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # Surveyed correspondences between GPS space and the rotated map image
    REFERENCE_POINTS: List[ReferencePointConfig] = [
        ReferencePointConfig(lat=51.492076, lng=11.956062, x=15, y=55),
        ReferencePointConfig(lat=51.491600, lng=11.955818, x=43, y=77),
        ReferencePointConfig(lat=51.491316, lng=11.956467, x=75, y=55),
        ReferencePointConfig(lat=51.491918, lng=11.957036, x=40, y=17),
        ReferencePointConfig(lat=51.491010, lng=11.956180, x=91, y=74.5),
        ReferencePointConfig(lat=51.490472, lng=11.957832, x=155, y=14),
    ]
    TRANSFORM_MODE: str = Field(default="idw", description="Active transform strategy: 'idw' or 'affine'.")
    IDW_EPSILON: float = 1e-6

    SMOOTHING_FACTOR: float = Field(default=0.3, gt=0.0, le=1.0)
    MAX_JUMP_DISTANCE_M: float = 30.0
    MIN_ACCURACY_M: float = 100.0
    MAX_HISTORY_SIZE: int = Field(default=5, gt=0)
    VALIDATE_IMMEDIATE_SAMPLES: bool = Field(default=False, description="Also run the plausibility check on samples processed without throttling.")

    CACHE_MAX_SIZE: int = Field(default=100, gt=0)
    CACHE_KEY_PRECISION: int = Field(default=5, ge=0)
    CACHE_PRUNE_THRESHOLD: float = 0.8
    CACHE_PRUNE_FRACTION: float = 0.3

    UPDATE_INTERVAL_MS: float = 500.0
    MEMORY_CLEANUP_INTERVAL_MS: float = 60_000.0
    HISTORY_MAX_AGE_MS: float = 60_000.0

    RENDER_FRAME_MS: float = 16.0
    METERS_PER_MAP_UNIT: float = 1.35
    ACCURACY_RADIUS_MIN: float = 0.5
    ACCURACY_RADIUS_MAX: float = 50.0

    SIMULATION_SPEED: float = 0.001
    SIMULATION_TICK_MS: float = 50.0
    SIMULATION_MIN_REFERENCE_POINTS: int = 6
    SIMULATION_START_INDEX: int = 3
    SIMULATION_END_INDEX: int = 4
    SIMULATION_ACCURACY_MIN_M: float = 5.0
    SIMULATION_ACCURACY_MAX_M: float = 15.0

    GEOLOCATION_MAX_RETRIES: int = Field(default=3, gt=0)
    GEOLOCATION_RETRY_BACKOFF_MS: float = 1000.0
    GEOLOCATION_TIMEOUT_MS: float = 15_000.0

    # Constant offset added to provider readings when testing away from the site
    GPS_TEST_OFFSET_ENABLED: bool = False
    GPS_TEST_OFFSET_LAT: float = 0.0
    GPS_TEST_OFFSET_LNG: float = 0.0

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8"
    }

    @field_validator("TRANSFORM_MODE")
    @classmethod
    def _check_transform_mode(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ("idw", "affine"):
            raise ValueError(f"TRANSFORM_MODE must be 'idw' or 'affine', got {value!r}")
        return normalized

    @property
    def reference_point_tuples(self) -> List[Tuple[float, float, float, float]]:
        return [(p.lat, p.lng, p.x, p.y) for p in self.REFERENCE_POINTS]

    @property
    def gps_test_offset(self) -> Tuple[float, float]:
        if not self.GPS_TEST_OFFSET_ENABLED:
            return (0.0, 0.0)
        return (self.GPS_TEST_OFFSET_LAT, self.GPS_TEST_OFFSET_LNG)


settings = Settings()

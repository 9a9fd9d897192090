"""
Coordinate transformer for GPS to map-space conversion.

Two strategies are available:
- IDW: inverse-distance-weighted centroid over every reference point (active)
- AFFINE: exact linear fit through the first three reference points

The affine matrix is always computed and validated when requested, but only
used for the public transform when the transformer runs in AFFINE mode.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

from geomapper.domains.location.entities.position import MapPosition
from geomapper.domains.location.exceptions import CollinearPointsError, InsufficientReferencePointsError
from geomapper.domains.location.models.affine_model import (
    AffineMatrix,
    AffineValidationResult,
    solve_affine,
    validate_affine,
)
from geomapper.domains.location.models.reference_registry import (
    ReferencePointRegistry,
    RegistryChange,
    RegistryChangeKind,
)
from geomapper.domains.location.models.transform_cache import TransformCache

logger = logging.getLogger(__name__)

MIN_REFERENCE_POINTS = 3


class TransformationMode(Enum):
    """Available transformation strategies."""
    IDW = "idw"        # Inverse distance weighting over all reference points
    AFFINE = "affine"  # Exact affine fit through the first three points


class CoordinateTransformer:
    """
    Converts GPS coordinates to map coordinates.

    Features:
    - IDW interpolation with epsilon-guarded weights
    - Closed-form affine solve with observational validation
    - Bounded transformation cache, invalidated on registry changes
    """

    def __init__(
        self,
        registry: ReferencePointRegistry,
        cache: Optional[TransformCache] = None,
        mode: TransformationMode = TransformationMode.IDW,
        idw_epsilon: float = 1e-6
    ):
        """
        Initialize coordinate transformer.

        Args:
            registry: Reference point registry to read correspondences from
            cache: Transformation cache (a default one is created if None)
            mode: Strategy used by transform()
            idw_epsilon: Distance offset keeping IDW weights finite
        """
        self.registry = registry
        self.cache = cache if cache is not None else TransformCache()
        self.mode = mode
        self.idw_epsilon = idw_epsilon

        self.affine_matrix: Optional[AffineMatrix] = None
        self.affine_validation: Optional[AffineValidationResult] = None

        # Precomputed reference arrays for the IDW path
        self._ref_lat = np.empty(0)
        self._ref_lng = np.empty(0)
        self._ref_x = np.empty(0)
        self._ref_y = np.empty(0)
        self._rebuild_arrays()

        self.transformer_stats = {
            "total_transformations": 0,
            "idw_transformations": 0,
            "affine_transformations": 0,
            "affine_fallbacks": 0,
            "failed_transformations": 0
        }

        registry.add_listener(self._on_registry_change)
        logger.info(f"CoordinateTransformer initialized (mode={mode.value}, points={len(registry)})")

    def _on_registry_change(self, change: RegistryChange) -> None:
        self.cache.clear()
        self._rebuild_arrays()
        if change.kind == RegistryChangeKind.CLEARED or (change.index is not None and change.index < MIN_REFERENCE_POINTS):
            if self.affine_matrix is not None:
                logger.debug("Affine matrix invalidated by reference point change")
            self.affine_matrix = None
            self.affine_validation = None

    def _rebuild_arrays(self) -> None:
        points = self.registry.points
        self._ref_lat = np.array([p.lat for p in points], dtype=np.float64)
        self._ref_lng = np.array([p.lng for p in points], dtype=np.float64)
        self._ref_x = np.array([p.map_x for p in points], dtype=np.float64)
        self._ref_y = np.array([p.map_y for p in points], dtype=np.float64)

    def compute_affine(self) -> AffineMatrix:
        """
        Solve the affine matrix from reference points 0, 1 and 2 and validate it.

        Raises:
            InsufficientReferencePointsError: Fewer than three points registered
            CollinearPointsError: The three points are collinear or duplicated
        """
        if len(self.registry) < MIN_REFERENCE_POINTS:
            raise InsufficientReferencePointsError(MIN_REFERENCE_POINTS, len(self.registry), "an affine solve")

        try:
            matrix = solve_affine(self.registry[0], self.registry[1], self.registry[2])
        except CollinearPointsError as e:
            logger.warning(f"Affine transformation unavailable, IDW stays in use: {e}")
            self.affine_matrix = None
            self.affine_validation = None
            raise

        self.affine_matrix = matrix
        logger.info(f"Affine transformation matrix computed: {matrix}")
        self.affine_validation = validate_affine(matrix, self.registry.points)
        return matrix

    def transform_affine(self, lat: float, lng: float) -> Optional[MapPosition]:
        if self.affine_matrix is None:
            return None
        return self.affine_matrix.apply(lat, lng)

    def transform_idw(self, lat: float, lng: float) -> MapPosition:
        """Inverse-distance-weighted centroid of the reference map coordinates."""
        if self._ref_lat.size == 0:
            raise InsufficientReferencePointsError(MIN_REFERENCE_POINTS, 0)

        distances = np.hypot(lat - self._ref_lat, lng - self._ref_lng)

        # A query on a surveyed point returns that point's map position unchanged
        exact = np.flatnonzero(distances == 0.0)
        if exact.size:
            idx = int(exact[0])
            return MapPosition(x=float(self._ref_x[idx]), y=float(self._ref_y[idx]))

        weights = 1.0 / (distances + self.idw_epsilon)
        total = weights.sum()
        return MapPosition(
            x=float(np.dot(weights, self._ref_x) / total),
            y=float(np.dot(weights, self._ref_y) / total),
        )

    def transform(self, lat: float, lng: float) -> MapPosition:
        """
        Public GPS -> map transformation.

        Raises:
            InsufficientReferencePointsError: Fewer than three points registered
        """
        if len(self.registry) < MIN_REFERENCE_POINTS:
            self.transformer_stats["failed_transformations"] += 1
            raise InsufficientReferencePointsError(MIN_REFERENCE_POINTS, len(self.registry))

        cached = self.cache.get(lat, lng)
        if cached is not None:
            return cached

        result: Optional[MapPosition] = None
        if self.mode == TransformationMode.AFFINE:
            result = self.transform_affine(lat, lng)
            if result is None:
                self.transformer_stats["affine_fallbacks"] += 1
                logger.debug("No affine matrix available, falling back to IDW")
            else:
                self.transformer_stats["affine_transformations"] += 1

        if result is None:
            result = self.transform_idw(lat, lng)
            self.transformer_stats["idw_transformations"] += 1

        self.transformer_stats["total_transformations"] += 1
        logger.debug(f"Transformed GPS ({lat}, {lng}) -> ({result.x:.3f}, {result.y:.3f})")
        self.cache.put(lat, lng, result)
        return result

    def get_transformation_stats(self) -> Dict[str, Any]:
        return {
            **self.transformer_stats,
            "mode": self.mode.value,
            "reference_points": len(self.registry),
            "affine_available": self.affine_matrix is not None,
            "affine_max_error": self.affine_validation.max_error if self.affine_validation else None,
            "cache": self.cache.get_stats()
        }

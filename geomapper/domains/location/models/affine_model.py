"""
Closed-form affine fit between GPS space and map space.

    map_x = a * lat + b * lng + tx
    map_y = c * lat + d * lng + ty

solved exactly from three reference points with Cramer's rule.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from geomapper.domains.location.entities.position import MapPosition
from geomapper.domains.location.entities.reference_point import ReferencePoint
from geomapper.domains.location.exceptions import CollinearPointsError

logger = logging.getLogger(__name__)

DETERMINANT_TOLERANCE = 1e-10


@dataclass(frozen=True)
class AffineMatrix:
    a: float
    b: float
    tx: float
    c: float
    d: float
    ty: float

    def apply(self, lat: float, lng: float) -> MapPosition:
        return MapPosition(
            x=self.a * lat + self.b * lng + self.tx,
            y=self.c * lat + self.d * lng + self.ty,
        )

    def as_array(self) -> np.ndarray:
        """2x3 matrix [[a, b, tx], [c, d, ty]]."""
        return np.array([[self.a, self.b, self.tx], [self.c, self.d, self.ty]], dtype=np.float64)


@dataclass
class AffineValidationResult:
    """Reconstruction error of an affine fit over the registered points."""
    point_errors: List[float] = field(default_factory=list)
    max_error: float = 0.0
    mean_error: float = 0.0

    @property
    def exact_on_fit_points(self) -> bool:
        return all(err < 1e-3 for err in self.point_errors[:3])


def solve_affine(p1: ReferencePoint, p2: ReferencePoint, p3: ReferencePoint) -> AffineMatrix:
    """
    Solve the affine map that sends the three GPS coordinates exactly onto their map positions.

    Raises:
        CollinearPointsError: If |det| < 1e-10 (collinear or duplicated points).
    """
    lat1, lng1, x1, y1 = p1.lat, p1.lng, p1.map_x, p1.map_y
    lat2, lng2, x2, y2 = p2.lat, p2.lng, p2.map_x, p2.map_y
    lat3, lng3, x3, y3 = p3.lat, p3.lng, p3.map_x, p3.map_y

    det = lat1 * (lng2 - lng3) + lat2 * (lng3 - lng1) + lat3 * (lng1 - lng2)
    if abs(det) < DETERMINANT_TOLERANCE:
        raise CollinearPointsError(det)

    def _row(v1: float, v2: float, v3: float):
        coef_lat = (v1 * (lng2 - lng3) + v2 * (lng3 - lng1) + v3 * (lng1 - lng2)) / det
        coef_lng = (lat1 * (v3 - v2) + lat2 * (v1 - v3) + lat3 * (v2 - v1)) / det
        offset = (
            lat1 * (lng2 * v3 - lng3 * v2)
            + lat2 * (lng3 * v1 - lng1 * v3)
            + lat3 * (lng1 * v2 - lng2 * v1)
        ) / det
        return coef_lat, coef_lng, offset

    a, b, tx = _row(x1, x2, x3)
    c, d, ty = _row(y1, y2, y3)
    return AffineMatrix(a=a, b=b, tx=tx, c=c, d=d, ty=ty)


def validate_affine(matrix: Optional[AffineMatrix], points: Sequence[ReferencePoint]) -> Optional[AffineValidationResult]:
    """Re-project every reference point and log the residuals. Purely observational."""
    if matrix is None or not points:
        return None

    lat = np.array([p.lat for p in points], dtype=np.float64)
    lng = np.array([p.lng for p in points], dtype=np.float64)
    expected = np.array([[p.map_x, p.map_y] for p in points], dtype=np.float64)

    homogeneous = np.vstack([lat, lng, np.ones_like(lat)])
    projected = (matrix.as_array() @ homogeneous).T
    errors = np.hypot(projected[:, 0] - expected[:, 0], projected[:, 1] - expected[:, 1])

    for i, (point, got, err) in enumerate(zip(points, projected, errors)):
        logger.debug(
            f"Affine check point {i}: expected ({point.map_x}, {point.map_y}), "
            f"got ({got[0]:.2f}, {got[1]:.2f}), error {err:.3f}"
        )

    result = AffineValidationResult(
        point_errors=[float(e) for e in errors],
        max_error=float(errors.max()),
        mean_error=float(errors.mean()),
    )
    logger.info(f"Affine validation over {len(points)} points: max error {result.max_error:.3f}, mean {result.mean_error:.3f}")
    return result

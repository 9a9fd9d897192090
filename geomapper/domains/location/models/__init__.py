"""
Location models module.
Reference point storage, caching and coordinate transformation.
"""

from .reference_registry import (
    ReferencePointRegistry,
    RegistryChange,
    RegistryChangeKind
)

from .transform_cache import TransformCache

from .affine_model import (
    AffineMatrix,
    AffineValidationResult,
    solve_affine,
    validate_affine
)

from .coordinate_transformer import (
    CoordinateTransformer,
    TransformationMode,
    MIN_REFERENCE_POINTS
)

__all__ = [
    'ReferencePointRegistry',
    'RegistryChange',
    'RegistryChangeKind',
    'TransformCache',
    'AffineMatrix',
    'AffineValidationResult',
    'solve_affine',
    'validate_affine',
    'CoordinateTransformer',
    'TransformationMode',
    'MIN_REFERENCE_POINTS'
]

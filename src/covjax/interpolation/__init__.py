"""Time interpolation of orbits, covariances and spacecraft states.

This sub-module provides:

- **Base**: :class:`TimeInterpolator` (sample validation and neighbour
  selection), :class:`TimeStampedPair` and :class:`TimeStampedValue`.
- **Polynomials**: :class:`HermiteInterpolator` and the smoothstep blending
  functions.
- **Orbits**: :class:`OrbitHermiteInterpolator`, :class:`OrbitBlender` and
  :class:`AbsolutePVHermiteInterpolator`.
- **Covariances**: :class:`StateCovarianceBlender` and
  :class:`StateCovarianceKeplerianHermiteInterpolator`.
- **States**: :class:`SpacecraftStateInterpolator`.
"""

from covjax.interpolation._base import (
    InterpolationData,
    TimeInterpolator,
    TimeStampedPair,
    TimeStampedValue,
)
from covjax.interpolation.covariance import (
    AbstractStateCovarianceInterpolator,
    StateCovarianceBlender,
    StateCovarianceKeplerianHermiteInterpolator,
)
from covjax.interpolation.hermite import HermiteInterpolator, TimeStampedValueHermiteInterpolator
from covjax.interpolation.orbit import (
    AbsolutePVHermiteInterpolator,
    OrbitBlender,
    OrbitHermiteInterpolator,
)
from covjax.interpolation.smoothstep import quadratic_smoothstep, smoothstep
from covjax.interpolation.state import SpacecraftStateInterpolator

__all__ = [
    "AbsolutePVHermiteInterpolator",
    "AbstractStateCovarianceInterpolator",
    "HermiteInterpolator",
    "InterpolationData",
    "OrbitBlender",
    "OrbitHermiteInterpolator",
    "SpacecraftStateInterpolator",
    "StateCovarianceBlender",
    "StateCovarianceKeplerianHermiteInterpolator",
    "TimeInterpolator",
    "TimeStampedPair",
    "TimeStampedValue",
    "TimeStampedValueHermiteInterpolator",
    "quadratic_smoothstep",
    "smoothstep",
]

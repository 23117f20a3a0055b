"""Exceptions raised by covjax.

Every error is a ``ValueError`` so callers that already guard invalid
inputs with ``except ValueError`` keep working.
"""

from __future__ import annotations

"""
Raised when two states mix an orbit definition with an absolute
position-velocity-acceleration definition.
"""
MIXED_STATE_DEFINITIONS = (
    "one state is defined using an orbit while the other is defined using an "
    "absolute position-velocity-acceleration"
)

"""
Raised when an interpolator is missing for the kind of state encountered.
"""
WRONG_INTERPOLATOR_DEFINED = (
    "wrong interpolator defined for this spacecraft state type (orbit or absolute PV)"
)

"""
Raised when a spacecraft state interpolator is built with neither an orbit
nor an absolute PV interpolator.
"""
NO_INTERPOLATOR_DEFINED = (
    "creating a spacecraft state interpolator requires at least one orbit "
    "interpolator or an absolute position-velocity-acceleration interpolator"
)


class CovarianceError(ValueError):
    """Base class of all covjax errors."""


class IncompatibleRepresentationError(CovarianceError):
    """A conversion requires Cartesian elements or a frame-defined covariance.

    Raised when:

    - a covariance expressed in a non-inertial frame with non-Cartesian
      elements is converted (frame or element change),
    - an element-type change is requested for a covariance expressed in a
      local orbital frame or in a non-inertial frame,
    - a covariance is declared in a local orbital frame with non-Cartesian
      elements.
    """


class InsufficientSamplesError(CovarianceError):
    """An interpolation sample holds fewer entries than required.

    Attributes:
        count (int): Number of samples provided.
        required (int): Number of samples needed.
    """

    def __init__(self, count: int, required: int | None = None):
        self.count = count
        self.required = required
        super().__init__(f"not enough data (sample size = {count})")


class ExtrapolationError(CovarianceError):
    """A date lies outside the sample or ephemeris span by more than the allowed threshold."""


class StateDefinitionError(CovarianceError):
    """Spacecraft states or interpolators disagree on how the state is defined."""


class DimensionMismatchError(CovarianceError):
    """Matrix or array dimensions disagree.

    Attributes:
        expected: Expected dimension.
        actual: Dimension found.
    """

    def __init__(self, expected, actual, what: str = "dimension"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what} mismatch: expected {expected}, got {actual}")

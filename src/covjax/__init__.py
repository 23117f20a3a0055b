"""
covjax propagates, transforms and interpolates spacecraft state covariances, implemented in JAX.
"""

from .constants import (
    DEG2RAD,
    AS2RAD,
    JD_MJD_OFFSET,
    R_EARTH,
    GM_EARTH,
    J2_EARTH,
    OMEGA_EARTH,
)

from .config import set_dtype, get_dtype

from .epoch import Epoch

from .errors import (
    CovarianceError,
    IncompatibleRepresentationError,
    InsufficientSamplesError,
    ExtrapolationError,
    StateDefinitionError,
    DimensionMismatchError,
)

from .frames import (
    Frame,
    Transform,
    DerivativesFilter,
    gcrf,
    eme2000,
    mod,
    tod,
    teme,
    pef,
    itrf,
)

from .lof import LOFType

from .orbits import Orbit, OrbitType, PositionAngleType

from .covariance import StateCovariance, secular_transition_matrix

from .propagation import (
    SpacecraftState,
    AbsolutePVCoordinates,
    KeplerianPropagator,
    NumericalPropagator,
    Ephemeris,
    StateCovarianceMatrixProvider,
)

from .interpolation import (
    TimeStampedPair,
    HermiteInterpolator,
    smoothstep,
    OrbitHermiteInterpolator,
    OrbitBlender,
    StateCovarianceBlender,
    StateCovarianceKeplerianHermiteInterpolator,
    SpacecraftStateInterpolator,
)

__all__ = [
    # Constants
    "DEG2RAD",
    "AS2RAD",
    "JD_MJD_OFFSET",
    "R_EARTH",
    "GM_EARTH",
    "J2_EARTH",
    "OMEGA_EARTH",
    # Config
    "set_dtype",
    "get_dtype",
    # Epoch
    "Epoch",
    # Errors
    "CovarianceError",
    "IncompatibleRepresentationError",
    "InsufficientSamplesError",
    "ExtrapolationError",
    "StateDefinitionError",
    "DimensionMismatchError",
    # Frames
    "Frame",
    "Transform",
    "DerivativesFilter",
    "gcrf",
    "eme2000",
    "mod",
    "tod",
    "teme",
    "pef",
    "itrf",
    "LOFType",
    # Orbits
    "Orbit",
    "OrbitType",
    "PositionAngleType",
    # Covariance
    "StateCovariance",
    "secular_transition_matrix",
    # Propagation
    "SpacecraftState",
    "AbsolutePVCoordinates",
    "KeplerianPropagator",
    "NumericalPropagator",
    "Ephemeris",
    "StateCovarianceMatrixProvider",
    # Interpolation
    "TimeStampedPair",
    "HermiteInterpolator",
    "smoothstep",
    "OrbitHermiteInterpolator",
    "OrbitBlender",
    "StateCovarianceBlender",
    "StateCovarianceKeplerianHermiteInterpolator",
    "SpacecraftStateInterpolator",
]

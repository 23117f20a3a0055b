"""Orbit parameterisation enums."""

from __future__ import annotations

import enum


class OrbitType(enum.Enum):
    """Orbital state parameterisations.

    Element vectors always keep the fast angle at index 5:

    Attributes:
        CARTESIAN: ``[x, y, z, vx, vy, vz]``. Units: *m*, *m/s*
        KEPLERIAN: ``[a, e, i, RAAN, omega, anomaly]``.
        CIRCULAR: ``[a, ex, ey, i, RAAN, alpha]`` where ``(ex, ey)`` is the
            eccentricity vector in the node frame and ``alpha`` the
            argument of latitude.
        EQUINOCTIAL: ``[a, ex, ey, hx, hy, L]`` with ``L`` the longitude
            argument.
    """

    CARTESIAN = "CARTESIAN"
    KEPLERIAN = "KEPLERIAN"
    CIRCULAR = "CIRCULAR"
    EQUINOCTIAL = "EQUINOCTIAL"


class PositionAngleType(enum.Enum):
    """Kind of angle used for the fast orbital element.

    Ignored for Cartesian states.
    """

    TRUE = "TRUE"
    MEAN = "MEAN"
    ECCENTRIC = "ECCENTRIC"

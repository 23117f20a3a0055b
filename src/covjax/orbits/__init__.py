"""Orbits, element sets and their conversions.

This sub-module provides:

- **Parameterisations**: :class:`OrbitType` and :class:`PositionAngleType`.
- **Element conversions**: Cartesian, Keplerian, circular and equinoctial
  elements, with equinoctial elements as the non-singular pivot.
- **Anomalies**: mean / eccentric / true anomalies and longitude
  arguments, including a JAX-traceable Kepler equation solver.
- **Orbit**: an osculating orbit with Keplerian motion and element
  Jacobians.
"""

from ._types import OrbitType, PositionAngleType
from .anomaly import (
    anomaly_eccentric_to_mean,
    anomaly_eccentric_to_true,
    anomaly_mean_to_eccentric,
    anomaly_true_to_eccentric,
    convert_anomaly,
    convert_longitude,
    longitude_eccentric_to_mean,
    longitude_eccentric_to_true,
    longitude_mean_to_eccentric,
    longitude_true_to_eccentric,
)
from .elements import (
    cartesian_to_elements,
    cartesian_to_equinoctial,
    circular_to_equinoctial,
    convert_elements,
    elements_to_cartesian,
    equinoctial_to_cartesian,
    equinoctial_to_circular,
    equinoctial_to_keplerian,
    keplerian_to_equinoctial,
)
from .orbit import Orbit

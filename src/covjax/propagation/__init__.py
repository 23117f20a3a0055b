"""Propagation of spacecraft states and of their covariance.

This sub-module provides:

- **States**: :class:`SpacecraftState` and :class:`AbsolutePVCoordinates`.
- **Propagators**: :class:`KeplerianPropagator` and
  :class:`NumericalPropagator` (with its :class:`Ephemeris`), both able to
  output the state transition matrix as an additional state.
- **Providers**: :class:`AdditionalStateProvider`, the STM harvester and
  :class:`StateCovarianceMatrixProvider`.
"""

from covjax.propagation._propagator import OutputSetup, Propagator
from covjax.propagation.covariance_provider import StateCovarianceMatrixProvider
from covjax.propagation.dynamics import (
    DynamicsConfig,
    accel_j2,
    accel_point_mass,
    create_orbit_dynamics,
    create_variational_dynamics,
)
from covjax.propagation.harvester import AdditionalStateHarvester, MatricesHarvester
from covjax.propagation.keplerian import KeplerianPropagator
from covjax.propagation.numerical import Ephemeris, NumericalPropagator
from covjax.propagation.providers import AdditionalStateProvider, update_additional_states
from covjax.propagation.state import DEFAULT_MASS, AbsolutePVCoordinates, SpacecraftState

__all__ = [
    "AbsolutePVCoordinates",
    "AdditionalStateHarvester",
    "AdditionalStateProvider",
    "DEFAULT_MASS",
    "DynamicsConfig",
    "Ephemeris",
    "KeplerianPropagator",
    "MatricesHarvester",
    "NumericalPropagator",
    "OutputSetup",
    "Propagator",
    "SpacecraftState",
    "StateCovarianceMatrixProvider",
    "accel_j2",
    "accel_point_mass",
    "create_orbit_dynamics",
    "create_variational_dynamics",
    "update_additional_states",
]

"""Covariance propagation through the state transition matrix.

:class:`StateCovarianceMatrixProvider` is an additional state provider:
registered on a propagator whose matrices computation is enabled, it
outputs ``Phi C0 Phi^T`` for every propagated state, where ``C0`` is the
initial covariance expressed in the orbit frame and in the harvester's
parameterisation, and ``Phi`` the harvested state transition matrix.
"""

from __future__ import annotations

import logging

import jax
import jax.numpy as jnp

from covjax.covariance import StateCovariance
from covjax.epoch import Epoch
from covjax.frames import Frame
from covjax.lof import LOFType
from covjax.orbits import OrbitType, PositionAngleType
from covjax.propagation.harvester import MatricesHarvester
from covjax.propagation.providers import AdditionalStateProvider
from covjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class StateCovarianceMatrixProvider(AdditionalStateProvider):
    """Additional state provider for the propagated orbital covariance.

    Args:
        additional_name (str): Name of the covariance additional state.
        stm_name (str): Name of the additional state holding the STM.
        harvester (MatricesHarvester): Harvester returned by the
            propagator's ``setup_matrices_computation``.
        initial_covariance (StateCovariance): Covariance at the initial
            state, in any frame or local orbital frame.

    Examples:
        ```python
        harvester = propagator.setup_matrices_computation("stm")
        provider = StateCovarianceMatrixProvider("covariance", "stm",
                                                 harvester, initial_cov)
        propagator.add_additional_state_provider(provider)
        state = propagator.propagate(target)
        cov = provider.state_covariance(state, LOFType.QSW)
        ```
    """

    def __init__(self, additional_name: str, stm_name: str,
                 harvester: MatricesHarvester,
                 initial_covariance: StateCovariance) -> None:
        self.name = additional_name
        self.stm_name = stm_name
        self.harvester = harvester
        self.initial_covariance = initial_covariance
        self._initial_matrix = None

    @property
    def covariance_orbit_type(self) -> OrbitType:
        return self.harvester.orbit_type

    @property
    def covariance_angle_type(self) -> PositionAngleType:
        return self.harvester.angle_type

    def init(self, initial_state: SpacecraftState, target: Epoch) -> None:
        orbit = initial_state.orbit
        converted = (self.initial_covariance
                     .change_frame(orbit, orbit.frame)
                     .change_type(orbit, self.covariance_orbit_type, self.covariance_angle_type))
        self._initial_matrix = converted.matrix
        logger.debug("Initial covariance expressed in %s/%s/%s", orbit.frame,
                     self.covariance_orbit_type.name, self.covariance_angle_type.name)

    def yields(self, state: SpacecraftState) -> bool:
        return not state.has_additional_state(self.stm_name)

    def additional_state(self, state: SpacecraftState) -> jax.Array:
        if self._initial_matrix is None:
            raise ValueError("covariance provider used before initialization")
        phi = self.harvester.state_transition_matrix(state)
        return jnp.ravel(phi @ self._initial_matrix @ phi.T)

    def state_covariance(self, state: SpacecraftState,
                         target: Frame | LOFType | None = None,
                         orbit_type: OrbitType | None = None,
                         angle_type: PositionAngleType = PositionAngleType.MEAN
                         ) -> StateCovariance:
        """Covariance carried by a propagated state.

        Without ``target`` and ``orbit_type`` the covariance is expressed in
        the state frame with the harvester's parameterisation.  ``target``
        applies :meth:`StateCovariance.change_frame` and ``orbit_type``
        then applies :meth:`StateCovariance.change_type`.

        Args:
            state (SpacecraftState): Propagated state.
            target (Frame | LOFType | None): Output frame.
            orbit_type (OrbitType | None): Output parameterisation.
            angle_type (PositionAngleType): Output kind of fast angle.

        Returns:
            StateCovariance: Covariance at the state epoch.
        """
        matrix = jnp.reshape(state.additional_state(self.name), (6, 6))
        covariance = StateCovariance(matrix, state.epoch, state.frame,
                                     self.covariance_orbit_type, self.covariance_angle_type)
        if target is not None:
            covariance = covariance.change_frame(state.orbit, target)
        if orbit_type is not None:
            covariance = covariance.change_type(state.orbit, orbit_type, angle_type)
        return covariance

"""State transition matrix harvesting.

Propagators store the Cartesian state transition matrix (STM) from the
initial state as a flat additional state.  A harvester reads it back and
expresses it in the orbital parameterisation requested when matrices
computation was set up:

    Phi_elements = (d E / d pv)(t) @ Phi_cartesian @ (d pv / d E)(t0)
"""

from __future__ import annotations

from typing import Protocol

import jax
import jax.numpy as jnp

from covjax.orbits import OrbitType, PositionAngleType
from covjax.propagation.state import SpacecraftState


class MatricesHarvester(Protocol):
    """Source of state transition matrices for a propagator."""

    @property
    def orbit_type(self) -> OrbitType: ...

    @property
    def angle_type(self) -> PositionAngleType: ...

    def state_transition_matrix(self, state: SpacecraftState) -> jax.Array: ...


class AdditionalStateHarvester:
    """Harvester reading the Cartesian STM stored in an additional state.

    Args:
        stm_name (str): Name of the additional state holding the flattened
            6x6 Cartesian STM.
        orbit_type (OrbitType): Parameterisation of the harvested STM.
        angle_type (PositionAngleType): Kind of fast angle.
    """

    def __init__(self, stm_name: str, orbit_type: OrbitType = OrbitType.CARTESIAN,
                 angle_type: PositionAngleType = PositionAngleType.MEAN) -> None:
        self.stm_name = stm_name
        self._orbit_type = orbit_type
        self._angle_type = angle_type
        self._initial_jacobian = None

    @property
    def orbit_type(self) -> OrbitType:
        return self._orbit_type

    @property
    def angle_type(self) -> PositionAngleType:
        return self._angle_type

    def set_reference_state(self, initial_state: SpacecraftState) -> None:
        """Record the initial state the STM starts from."""
        self._initial_jacobian = initial_state.orbit.jacobian_wrt_parameters(
            self._orbit_type, self._angle_type)

    def state_transition_matrix(self, state: SpacecraftState) -> jax.Array:
        """Return the STM from the reference state to ``state``.

        Raises:
            ValueError: If ``state`` carries no STM.
        """
        phi = jnp.reshape(state.additional_state(self.stm_name), (6, 6))
        if self._orbit_type == OrbitType.CARTESIAN:
            return phi
        final_jacobian = state.orbit.jacobian_wrt_cartesian(self._orbit_type, self._angle_type)
        return final_jacobian @ phi @ self._initial_jacobian

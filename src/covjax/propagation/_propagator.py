"""Behaviour shared by all propagators.

A propagator owns an initial state, a list of additional state providers
and, once :meth:`Propagator.setup_matrices_computation` has been called,
the name of the additional state holding the Cartesian state transition
matrix together with the harvester reading it.  Every state it outputs
goes through :meth:`OutputSetup.finalize_state`, which sets the STM and
then lets the providers add their states.

:meth:`Propagator.output_setup` freezes these settings, so results that
outlive a propagation (a bounded ephemeris) keep producing states for
the initial state they were computed from, whatever happens to the
propagator afterwards.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import jax
import jax.numpy as jnp

from covjax.epoch import Epoch
from covjax.orbits import OrbitType, PositionAngleType
from covjax.propagation.harvester import AdditionalStateHarvester
from covjax.propagation.providers import AdditionalStateProvider, update_additional_states
from covjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class OutputSetup(NamedTuple):
    """Settings turning raw propagation results into output states.

    Attributes:
        initial_state: State the propagation starts from.
        stm_name: Name of the STM additional state, ``None`` when matrices
            computation is disabled.
        harvester: Harvester reading the STM, ``None`` when disabled.
        providers: Additional state providers, in registration order.
    """

    initial_state: SpacecraftState
    stm_name: str | None
    harvester: AdditionalStateHarvester | None
    providers: tuple[AdditionalStateProvider, ...]

    def init_providers(self, target: Epoch) -> None:
        """Point the harvester and the providers at this initial state."""
        if self.harvester is not None:
            self.harvester.set_reference_state(self.initial_state)
        initial = self.finalize_state(self.initial_state, jnp.eye(6), with_providers=False)
        for provider in self.providers:
            provider.init(initial, target)

    def finalize_state(self, state: SpacecraftState, stm: jax.Array | None,
                       with_providers: bool = True) -> SpacecraftState:
        if self.stm_name is not None and stm is not None:
            state = state.add_additional_state(self.stm_name, jnp.ravel(stm))
        if with_providers:
            state = update_additional_states(state, self.providers)
        return state


class Propagator:
    """Base class of propagators.

    Args:
        initial_state (SpacecraftState): Orbit-defined initial state.
    """

    def __init__(self, initial_state: SpacecraftState) -> None:
        self._providers: list[AdditionalStateProvider] = []
        self._stm_name: str | None = None
        self._harvester: AdditionalStateHarvester | None = None
        self.reset_initial_state(initial_state)

    @property
    def initial_state(self) -> SpacecraftState:
        return self._initial_state

    def reset_initial_state(self, state: SpacecraftState) -> None:
        """Restart the propagator from ``state``."""
        if not state.is_orbit_defined:
            raise ValueError("propagators require an orbit-defined initial state")
        self._initial_state = state
        if self._harvester is not None:
            self._harvester.set_reference_state(state)

    @property
    def additional_state_providers(self) -> tuple[AdditionalStateProvider, ...]:
        return tuple(self._providers)

    def add_additional_state_provider(self, provider: AdditionalStateProvider) -> None:
        """Register a provider.

        Raises:
            ValueError: If a provider with the same name is registered.
        """
        if any(p.name == provider.name for p in self._providers):
            raise ValueError(f"additional state \"{provider.name}\" is already provided")
        self._providers.append(provider)

    def setup_matrices_computation(self, stm_name: str,
                                   orbit_type: OrbitType = OrbitType.CARTESIAN,
                                   angle_type: PositionAngleType = PositionAngleType.MEAN
                                   ) -> AdditionalStateHarvester:
        """Enable state transition matrix computation.

        Args:
            stm_name (str): Name of the additional state storing the STM.
            orbit_type (OrbitType): Parameterisation of harvested STMs.
            angle_type (PositionAngleType): Kind of fast angle.

        Returns:
            AdditionalStateHarvester: Harvester reading the STM from
                output states.
        """
        self._stm_name = stm_name
        self._harvester = AdditionalStateHarvester(stm_name, orbit_type, angle_type)
        self._harvester.set_reference_state(self._initial_state)
        logger.debug("STM computation enabled as \"%s\" (%s/%s)", stm_name,
                     orbit_type.name, angle_type.name)
        return self._harvester

    def output_setup(self) -> OutputSetup:
        """Current initial state, STM settings and providers."""
        return OutputSetup(self._initial_state, self._stm_name, self._harvester,
                           tuple(self._providers))

    def _init_providers(self, target: Epoch) -> OutputSetup:
        setup = self.output_setup()
        setup.init_providers(target)
        return setup

    def propagate(self, target: Epoch) -> SpacecraftState:
        """Propagate the initial state to ``target``."""
        raise NotImplementedError

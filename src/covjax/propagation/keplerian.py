"""Analytical Keplerian propagator."""

from __future__ import annotations

import logging

from covjax.epoch import Epoch
from covjax.propagation._propagator import Propagator
from covjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class KeplerianPropagator(Propagator):
    """Propagator following unperturbed Keplerian motion.

    The Cartesian state transition matrix is the exact Jacobian of the
    Keplerian flow, obtained with ``jax.jacfwd``.

    Args:
        initial_state (SpacecraftState): Orbit-defined initial state.

    Examples:
        ```python
        propagator = KeplerianPropagator(SpacecraftState(orbit))
        harvester = propagator.setup_matrices_computation("stm")
        state = propagator.propagate(orbit.epoch + 600.0)
        ```
    """

    def propagate(self, target: Epoch) -> SpacecraftState:
        setup = self._init_providers(target)
        initial = setup.initial_state
        dt = target - initial.epoch
        logger.debug("Keplerian propagation over %.3f s", float(dt))

        orbit = initial.orbit.shifted_by(dt)
        stm = initial.orbit.keplerian_transition_matrix(dt) if setup.stm_name else None
        state = SpacecraftState(orbit, initial.mass, dict(initial.additional_states))
        return setup.finalize_state(state, stm)

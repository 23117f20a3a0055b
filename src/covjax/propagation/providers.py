"""Additional state providers.

A provider computes one named additional state from a spacecraft state
produced by a propagator.  Providers may depend on additional states set
by the propagator or by other providers; :meth:`AdditionalStateProvider.yields`
tells the propagator to try again once more states are available.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import jax

from covjax.epoch import Epoch
from covjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class AdditionalStateProvider:
    """Base class of additional state providers.

    Subclasses set :attr:`name` and implement :meth:`additional_state`.
    """

    name: str

    def init(self, initial_state: SpacecraftState, target: Epoch) -> None:
        """Prepare for a propagation from ``initial_state`` towards ``target``."""

    def yields(self, state: SpacecraftState) -> bool:
        """Whether the provider needs other additional states not yet in ``state``."""
        return False

    def additional_state(self, state: SpacecraftState) -> jax.Array:
        raise NotImplementedError


def update_additional_states(state: SpacecraftState,
                             providers: Sequence[AdditionalStateProvider]) -> SpacecraftState:
    """Add the additional states of all providers to ``state``.

    Providers that yield are retried after the others have run, so
    dependencies between providers resolve in any registration order.

    Args:
        state (SpacecraftState): State produced by a propagator.
        providers (Sequence[AdditionalStateProvider]): Registered providers.

    Returns:
        SpacecraftState: State with every provided additional state.

    Raises:
        ValueError: If some providers keep yielding.
    """
    pending = list(providers)
    while pending:
        remaining = []
        for provider in pending:
            if provider.yields(state):
                remaining.append(provider)
            else:
                state = state.add_additional_state(provider.name,
                                                   provider.additional_state(state))
        if len(remaining) == len(pending):
            names = ", ".join(p.name for p in remaining)
            raise ValueError(f"additional state providers cannot be resolved: {names}")
        pending = remaining
    return state

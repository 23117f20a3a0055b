"""Fixed-step numerical propagator and its bounded ephemeris.

The propagator integrates the Cartesian state and its state transition
matrix together with :func:`~covjax.integrators.rk4_step` on the grid
``t0 + k h``, finishing with a partial step to the target.  An
:class:`Ephemeris` stores the grid nodes of one integration and replays
the partial step from the node preceding the requested date with the
same compiled step function, so ephemeris states (and every additional
state derived from them, covariance included) are bit-identical to the
states of a live propagation to the same date.  The ephemeris keeps the
:class:`~covjax.propagation.OutputSetup` of the generating propagation,
so resetting the propagator afterwards leaves it untouched.
"""

from __future__ import annotations

import logging
import math

import jax
import jax.numpy as jnp

from covjax.epoch import Epoch
from covjax.errors import ExtrapolationError
from covjax.integrators import rk4_step
from covjax.orbits import Orbit
from covjax.propagation._propagator import OutputSetup, Propagator
from covjax.propagation.dynamics import (
    DynamicsConfig,
    create_orbit_dynamics,
    create_variational_dynamics,
)
from covjax.propagation.state import SpacecraftState

logger = logging.getLogger(__name__)


class NumericalPropagator(Propagator):
    """Numerical propagator with variational equations.

    Args:
        initial_state (SpacecraftState): Orbit-defined initial state. The
            orbit frame is the integration frame.
        step (float): Integration step. Units: *s*. Default: 60.0
        config (DynamicsConfig | None): Force model. Defaults to two-body
            gravity with the orbit's gravitational parameter.

    Examples:
        ```python
        propagator = NumericalPropagator(SpacecraftState(orbit), step=30.0,
                                         config=DynamicsConfig(j2=True))
        harvester = propagator.setup_matrices_computation("stm")
        ephemeris = propagator.generate_ephemeris(orbit.epoch + 3600.0)
        ```
    """

    def __init__(self, initial_state: SpacecraftState, step: float = 60.0,
                 config: DynamicsConfig | None = None) -> None:
        if step <= 0.0:
            raise ValueError(f"Integration step must be positive, got {step}")
        super().__init__(initial_state)
        if config is None:
            config = DynamicsConfig.two_body(initial_state.orbit.gm)
        self.step = float(step)
        self.config = config
        variational = create_variational_dynamics(create_orbit_dynamics(config))
        self._step_fn = jax.jit(lambda t, y, dt: rk4_step(variational, t, y, dt))

    def _integrate_nodes(self, initial: SpacecraftState, count: int,
                         direction: float) -> list[jax.Array]:
        y = jnp.concatenate([initial.orbit.pv, jnp.ravel(jnp.eye(6))])
        nodes = [y]
        for k in range(count):
            y = self._step_fn(_node_time(k, direction, self.step), y, direction * self.step)
            nodes.append(y)
        return nodes

    def propagate(self, target: Epoch) -> SpacecraftState:
        setup = self._init_providers(target)
        tau = float(target - setup.initial_state.epoch)
        k, direction = _grid_position(tau, self.step)
        logger.debug("Numerical propagation over %.3f s (%d steps)", tau, k)
        node = self._integrate_nodes(setup.initial_state, k, direction)[-1]
        return _finish(setup, self._step_fn, self.step, node, k, direction, tau)

    def generate_ephemeris(self, end: Epoch) -> Ephemeris:
        """Integrate from the initial epoch to ``end`` and keep the grid nodes.

        The ephemeris does not follow later changes to the propagator
        (new initial state, providers or matrices computation).

        Args:
            end (Epoch): Last epoch covered by the ephemeris.

        Returns:
            Ephemeris: Bounded ephemeris between the initial epoch and ``end``.
        """
        setup = self._init_providers(end)
        tau_end = float(end - setup.initial_state.epoch)
        k, direction = _grid_position(tau_end, self.step)
        logger.info("Generating ephemeris over %.3f s (%d nodes)", tau_end, k + 1)
        nodes = self._integrate_nodes(setup.initial_state, k, direction)
        return Ephemeris(setup, end, self._step_fn, self.step, nodes)


def _node_time(k: int, direction: float, step: float) -> float:
    return direction * k * step


def _grid_position(tau: float, step: float) -> tuple[int, float]:
    direction = -1.0 if tau < 0.0 else 1.0
    return int(math.floor(abs(tau) / step)), direction


def _finish(setup: OutputSetup, step_fn, step: float, node: jax.Array, k: int,
            direction: float, tau: float) -> SpacecraftState:
    t_node = _node_time(k, direction, step)
    remaining = tau - t_node
    y = node if remaining == 0.0 else step_fn(t_node, node, remaining)

    initial = setup.initial_state
    orbit = Orbit(y[:6], initial.epoch + tau, initial.frame, initial.orbit.gm)
    state = SpacecraftState(orbit, initial.mass, dict(initial.additional_states))
    return setup.finalize_state(state, jnp.reshape(y[6:], (6, 6)))


class Ephemeris:
    """Bounded ephemeris produced by :meth:`NumericalPropagator.generate_ephemeris`.

    Args:
        setup (OutputSetup): Initial state, STM settings and providers of
            the generating propagation.
        end (Epoch): Last epoch covered.
        step_fn: Compiled integration step ``(t, y, dt) -> y``.
        step (float): Integration step. Units: *s*
        nodes (list[jax.Array]): Augmented states on the integration grid.
    """

    def __init__(self, setup: OutputSetup, end: Epoch, step_fn, step: float,
                 nodes: list[jax.Array]) -> None:
        self._setup = setup
        self._end = end
        self._step_fn = step_fn
        self._step = step
        self._nodes = tuple(nodes)
        start = setup.initial_state.epoch
        self._min_date, self._max_date = (start, end) if end >= start else (end, start)

    @property
    def min_date(self) -> Epoch:
        return self._min_date

    @property
    def max_date(self) -> Epoch:
        return self._max_date

    def propagate(self, date: Epoch) -> SpacecraftState:
        """Return the state at ``date``.

        Raises:
            ExtrapolationError: If ``date`` is outside the ephemeris span.
        """
        if date < self._min_date or date > self._max_date:
            raise ExtrapolationError(
                f"date {date} is outside the ephemeris span [{self._min_date}, {self._max_date}]"
            )
        setup = self._setup
        setup.init_providers(self._end)
        tau = float(date - setup.initial_state.epoch)
        k, direction = _grid_position(tau, self._step)
        k = min(k, len(self._nodes) - 1)
        return _finish(setup, self._step_fn, self._step, self._nodes[k], k, direction, tau)

"""Classical fourth-order Runge-Kutta step.

The numerical propagator integrates the orbital state together with its
state transition matrix with this scheme.  A step is a pure function of
its inputs: two evaluations from the same node and step size give
identical results, which bounded ephemerides rely on.
"""

from __future__ import annotations

from collections.abc import Callable

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from covjax.config import get_dtype

# Stage abscissae and weights (weights sum to 6)
_STAGES = ((0.0, 1.0), (0.5, 2.0), (0.5, 2.0), (1.0, 1.0))


def rk4_step(dynamics: Callable[[Array, Array], Array], t: ArrayLike,
             y: ArrayLike, h: ArrayLike) -> Array:
    """Advance ``dy/dt = dynamics(t, y)`` by one step.

    Args:
        dynamics: Right-hand side ``f(t, y) -> dy/dt``.
        t: Time at the start of the step.
        y: State at ``t``.
        h: Step size, negative to integrate backwards.

    Returns:
        Array: State at ``t + h``.

    Examples:
        ```python
        import jax.numpy as jnp
        from covjax.integrators import rk4_step
        y = rk4_step(lambda t, y: jnp.array([y[1], -y[0]]), 0.0, jnp.array([1.0, 0.0]), 0.01)
        # ~[cos(0.01), -sin(0.01)]
        ```
    """
    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    y = jnp.asarray(y, dtype=dtype)
    h = jnp.asarray(h, dtype=dtype)

    slope = jnp.zeros_like(y)
    total = jnp.zeros_like(y)
    for node, weight in _STAGES:
        slope = dynamics(t + node * h, y + node * h * slope)
        total = total + weight * slope
    return y + (h / 6.0) * total

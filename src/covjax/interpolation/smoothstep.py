"""Smoothstep blending functions.

A blending function maps a normalised time ``x`` in ``[0, 1]`` to a weight
in ``[0, 1]``, with ``f(0) = 0`` and ``f(1) = 1``.  Inputs outside the
interval are clamped.

References:

    1. https://en.wikipedia.org/wiki/Smoothstep
"""

from __future__ import annotations

from collections.abc import Callable
from math import comb

import jax.numpy as jnp


def smoothstep(order: int) -> Callable:
    """Return the smoothstep polynomial of the given order.

    ``order`` 0 is the linear ramp, 1 the classic cubic ``3x^2 - 2x^3``,
    2 the quintic smootherstep.  The polynomial of order ``N`` has degree
    ``2N + 1`` and its first ``N`` derivatives vanish at both ends.

    Args:
        order (int): Smoothstep order, non-negative.

    Returns:
        Callable: Blending function ``f(x)``.

    Examples:
        ```python
        f = smoothstep(1)
        f(0.5)  # 0.5
        ```
    """
    if order < 0:
        raise ValueError(f"smoothstep order must be non-negative, got {order}")
    coefficients = [comb(order + n, n) * comb(2 * order + 1, order - n) for n in range(order + 1)]

    def blend(x):
        x = jnp.clip(x, 0.0, 1.0)
        total = 0.0
        for n, c in enumerate(coefficients):
            total = total + c * (-x) ** n
        return x ** (order + 1) * total

    return blend


def quadratic_smoothstep(x):
    """Piecewise quadratic blending: ``2x^2`` below one half, ``1 - 2(1 - x)^2`` above."""
    x = jnp.clip(x, 0.0, 1.0)
    return jnp.where(x < 0.5, 2.0 * x * x, 1.0 - 2.0 * (1.0 - x) ** 2)

"""Numerical ODE integration.

A step function has the signature ``step(dynamics, t, y, h) -> y_next``,
where ``dynamics(t, y)`` returns the time derivative of ``y``.
"""

from covjax.integrators.rk4 import rk4_step

__all__ = [
    "rk4_step",
]

"""Elementary frame rotations and the cross-product matrix.

The rotations are passive: ``Rz(theta) @ v`` expresses ``v`` in axes
turned by ``theta`` about z, so a frame chain reads right to left.

References:

    1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
       Applications*, 2012, p.27.
"""

import jax.numpy as jnp

from covjax.constants import DEG2RAD


def _axis_rotation(axis: int, angle, use_degrees: bool) -> jnp.ndarray:
    if use_degrees:
        angle = angle * DEG2RAD
    c = jnp.cos(angle)
    s = jnp.sin(angle)
    # Cyclic successors of the rotation axis
    i, j = (axis + 1) % 3, (axis + 2) % 3
    matrix = jnp.zeros((3, 3)).at[axis, axis].set(1.0)
    matrix = matrix.at[i, i].set(c).at[j, j].set(c)
    return matrix.at[i, j].set(s).at[j, i].set(-s)


def Rx(angle: float, use_degrees: bool = False) -> jnp.ndarray:
    """Passive rotation about the x-axis.

    Args:
        angle (float): Rotation angle, radians unless ``use_degrees``.
        use_degrees (bool): Read ``angle`` in degrees. Default: ``False``

    Returns:
        jnp.ndarray: 3x3 rotation matrix.
    """
    return _axis_rotation(0, angle, use_degrees)


def Ry(angle: float, use_degrees: bool = False) -> jnp.ndarray:
    """Passive rotation about the y-axis. See :func:`Rx`."""
    return _axis_rotation(1, angle, use_degrees)


def Rz(angle: float, use_degrees: bool = False) -> jnp.ndarray:
    """Passive rotation about the z-axis. See :func:`Rx`."""
    return _axis_rotation(2, angle, use_degrees)


def skew(w: jnp.ndarray) -> jnp.ndarray:
    """Matrix ``[w]x`` with ``skew(w) @ v == cross(w, v)``.

    Args:
        w (jnp.ndarray): 3-vector.

    Returns:
        jnp.ndarray: 3x3 antisymmetric matrix.
    """
    w = jnp.asarray(w)
    # Row k is e_k x w
    return jnp.cross(w, -jnp.eye(3, dtype=w.dtype))

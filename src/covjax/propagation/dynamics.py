"""Orbit dynamics for the numerical propagator.

:func:`create_orbit_dynamics` composes point-mass gravity with an optional
J2 zonal term into a ``dynamics(t, state) -> derivative`` closure.
:func:`create_variational_dynamics` wraps any such closure to integrate
the state transition matrix alongside the state, with the Jacobian of the
dynamics obtained by ``jax.jacfwd``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.constants import GM_EARTH, J2_EARTH, R_EARTH


@dataclass(frozen=True)
class DynamicsConfig:
    """Force model selection.

    Args:
        gm: Central body gravitational parameter [m^3/s^2].
        j2: Include the J2 zonal harmonic.
        j2_coefficient: Unnormalized J2 coefficient [dimensionless].
        radius: Central body equatorial radius [m].

    Examples:
        ```python
        from covjax.propagation import DynamicsConfig
        config = DynamicsConfig(j2=True)
        ```
    """

    gm: float = GM_EARTH
    j2: bool = False
    j2_coefficient: float = J2_EARTH
    radius: float = R_EARTH

    @classmethod
    def two_body(cls, gm: float = GM_EARTH) -> DynamicsConfig:
        return cls(gm=gm)


def accel_point_mass(r: ArrayLike, gm: float) -> Array:
    """Two-body acceleration ``-gm r / |r|^3``.

    Args:
        r: Position [m], shape ``(3,)``.
        gm: Gravitational parameter [m^3/s^2].

    Returns:
        Acceleration [m/s^2], shape ``(3,)``.
    """
    r = jnp.asarray(r, dtype=get_dtype())
    return -gm * r / jnp.linalg.norm(r) ** 3


def accel_j2(r: ArrayLike, gm: float, j2: float, radius: float) -> Array:
    """Acceleration of the J2 zonal harmonic, z axis along the body pole.

    References:

        1. D. Vallado, *Fundamentals of Astrodynamics and Applications
           (4th Ed.)*, 2010, Eq. 8-30.
    """
    r = jnp.asarray(r, dtype=get_dtype())
    r2 = jnp.dot(r, r)
    rn = jnp.sqrt(r2)
    z2_r2 = r[2] * r[2] / r2
    factor = -1.5 * j2 * gm * radius**2 / rn**5
    return factor * jnp.stack([
        r[0] * (1.0 - 5.0 * z2_r2),
        r[1] * (1.0 - 5.0 * z2_r2),
        r[2] * (3.0 - 5.0 * z2_r2),
    ])


def create_orbit_dynamics(config: DynamicsConfig | None = None) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Create the ``dynamics(t, state) -> derivative`` closure of ``config``.

    Args:
        config: Force model configuration. Defaults to two-body gravity.

    Returns:
        Callable mapping seconds since the propagation start and the
        inertial state ``[x, y, z, vx, vy, vz]`` to its time derivative.
    """
    if config is None:
        config = DynamicsConfig.two_body()

    def dynamics(t, state):
        r = state[:3]
        a = accel_point_mass(r, config.gm)
        if config.j2:
            a = a + accel_j2(r, config.gm, config.j2_coefficient, config.radius)
        return jnp.concatenate([state[3:6], a])

    return dynamics


def create_variational_dynamics(dynamics: Callable[[ArrayLike, ArrayLike], Array]) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Augment ``dynamics`` with the variational equations of its STM.

    The augmented state is ``[x, vec(Phi)]`` (42 elements, row-major
    ``Phi``) and obeys ``dPhi/dt = A(t, x) Phi`` with
    ``A = d dynamics / d x``.

    Args:
        dynamics: ``dynamics(t, x) -> dx/dt`` for a 6-element state.

    Returns:
        Augmented dynamics closure.
    """

    def variational(t, y):
        x = y[:6]
        phi = jnp.reshape(y[6:], (6, 6))
        a_matrix = jax.jacfwd(lambda s: dynamics(t, s))(x)
        return jnp.concatenate([dynamics(t, x), jnp.ravel(a_matrix @ phi)])

    return variational

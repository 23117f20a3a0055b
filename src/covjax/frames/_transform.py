"""Kinematic transforms between frames.

A :class:`Transform` maps coordinates expressed in a parent frame into a
child frame.  It carries the rotation matrix together with the rotation
rate and rotation acceleration of the child frame relative to the parent,
both expressed in the child frame:

    p1 = R p0
    v1 = R v0 - w x p1
    a1 = R a0 - 2 w x (R v0) + w x (w x p1) - wdot x p1

``Transform`` is a NamedTuple, so it is a JAX pytree and every operation is
differentiable.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

import jax
import jax.numpy as jnp

from covjax.config import get_dtype
from covjax.rotations import skew


class DerivativesFilter(enum.Enum):
    """Highest time derivative taken into account.

    Attributes:
        USE_P: Positions only.
        USE_PV: Positions and velocities.
        USE_PVA: Positions, velocities and accelerations.
    """

    USE_P = 0
    USE_PV = 1
    USE_PVA = 2

    @property
    def max_order(self) -> int:
        """Highest derivative order kept (0, 1 or 2)."""
        return self.value

    @property
    def size(self) -> int:
        """Dimension of a state restricted to this filter (3, 6 or 9)."""
        return 3 * (self.value + 1)


class Transform(NamedTuple):
    """Rotation with rate and acceleration from a parent to a child frame.

    Attributes:
        rotation: 3x3 matrix taking parent coordinates to child coordinates.
        rotation_rate: Child frame angular velocity relative to the parent,
            in child coordinates. Units: *rad/s*
        rotation_acceleration: Time derivative of ``rotation_rate``.
            Units: *rad/s^2*
    """

    rotation: jax.Array
    rotation_rate: jax.Array
    rotation_acceleration: jax.Array

    @classmethod
    def identity(cls) -> Transform:
        dtype = get_dtype()
        return cls(jnp.eye(3, dtype=dtype), jnp.zeros(3, dtype=dtype),
                   jnp.zeros(3, dtype=dtype))

    @classmethod
    def from_rotation(cls, rotation, rotation_rate=None,
                      rotation_acceleration=None) -> Transform:
        """Build a transform, defaulting missing rates to zero."""
        zeros = jnp.zeros(3, dtype=get_dtype())
        return cls(
            jnp.asarray(rotation),
            zeros if rotation_rate is None else jnp.asarray(rotation_rate),
            zeros if rotation_acceleration is None else jnp.asarray(rotation_acceleration),
        )

    def compose(self, other: Transform) -> Transform:
        """Apply ``self`` first, then ``other``.

        Args:
            other (Transform): Transform from this transform's child frame
                to a further child frame.

        Returns:
            Transform: Combined transform.
        """
        r2 = other.rotation
        w1 = r2 @ self.rotation_rate
        w2 = other.rotation_rate
        return Transform(
            r2 @ self.rotation,
            w1 + w2,
            r2 @ self.rotation_acceleration + other.rotation_acceleration
            + jnp.cross(w1, w2),
        )

    def inverse(self) -> Transform:
        rt = self.rotation.T
        return Transform(rt, -rt @ self.rotation_rate,
                         -rt @ self.rotation_acceleration)

    @property
    def is_rotation_only(self) -> bool:
        """Whether the transform carries no rotation rate nor acceleration."""
        return bool(jnp.all(self.rotation_rate == 0.0)
                    & jnp.all(self.rotation_acceleration == 0.0))

    def transform_position(self, position: jax.Array) -> jax.Array:
        return self.rotation @ position

    def transform_pv(self, pv: jax.Array) -> jax.Array:
        """Transform a 6-element position-velocity vector."""
        p1 = self.rotation @ pv[:3]
        v1 = self.rotation @ pv[3:6] - jnp.cross(self.rotation_rate, p1)
        return jnp.concatenate([p1, v1])

    def transform_pva(self, pva: jax.Array) -> jax.Array:
        """Transform a 9-element position-velocity-acceleration vector."""
        w = self.rotation_rate
        p1 = self.rotation @ pva[:3]
        rv = self.rotation @ pva[3:6]
        v1 = rv - jnp.cross(w, p1)
        a1 = (self.rotation @ pva[6:9] - 2.0 * jnp.cross(w, rv)
              + jnp.cross(w, jnp.cross(w, p1))
              - jnp.cross(self.rotation_acceleration, p1))
        return jnp.concatenate([p1, v1, a1])

    def jacobian(self, selector: DerivativesFilter = DerivativesFilter.USE_PV) -> jax.Array:
        """Jacobian of the transformed state with respect to the input state.

        Args:
            selector (DerivativesFilter): Which derivatives to include. The
                result is 3x3, 6x6 or 9x9.

        Returns:
            jax.Array: Jacobian matrix.
        """
        r = self.rotation
        if selector == DerivativesFilter.USE_P:
            return r

        omega = skew(self.rotation_rate)
        zero = jnp.zeros_like(r)
        if selector == DerivativesFilter.USE_PV:
            return jnp.block([[r, zero],
                              [-omega @ r, r]])

        omega_dot = skew(self.rotation_acceleration)
        return jnp.block([[r, zero, zero],
                          [-omega @ r, r, zero],
                          [(omega @ omega - omega_dot) @ r, -2.0 * omega @ r, r]])

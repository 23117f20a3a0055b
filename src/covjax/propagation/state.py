"""Spacecraft state carried by propagators and interpolators.

A :class:`SpacecraftState` is defined either by an :class:`~covjax.orbits.Orbit`
or by :class:`AbsolutePVCoordinates` (position, velocity and acceleration in
any frame, without a central body).  It also carries the spacecraft mass
and named *additional states*: flat arrays computed alongside the
trajectory, such as the state transition matrix or a propagated
covariance.

States are immutable; ``add_additional_state`` returns a new state.
"""

from __future__ import annotations

from types import MappingProxyType

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.epoch import Epoch
from covjax.errors import DimensionMismatchError
from covjax.frames import Frame
from covjax.orbits import Orbit

"""
Default spacecraft mass. Units: *kg*
"""
DEFAULT_MASS = 1000.0


class AbsolutePVCoordinates:
    """Position, velocity and acceleration in an arbitrary frame.

    Args:
        pv (ArrayLike): Position and velocity, shape ``(6,)``.
        epoch (Epoch): Epoch of the coordinates.
        frame (Frame): Frame of the coordinates (may be non-inertial).
        acceleration (ArrayLike | None): Acceleration, shape ``(3,)``.
            Defaults to zero.
    """

    __slots__ = ('pv', 'acceleration', 'epoch', 'frame')

    def __init__(self, pv: ArrayLike, epoch: Epoch, frame: Frame,
                 acceleration: ArrayLike | None = None) -> None:
        dtype = get_dtype()
        self.pv = jnp.asarray(pv, dtype=dtype)
        self.acceleration = (jnp.zeros(3, dtype=dtype) if acceleration is None
                             else jnp.asarray(acceleration, dtype=dtype))
        self.epoch = epoch
        self.frame = frame

    def __repr__(self):
        return f'AbsolutePVCoordinates(epoch={self.epoch}, frame={self.frame}, pv={self.pv})'

    def pva(self) -> jax.Array:
        return jnp.concatenate([self.pv, self.acceleration])

    def pv_in(self, frame: Frame) -> jax.Array:
        if frame is self.frame:
            return self.pv
        return self.frame.transform_to(frame, self.epoch).transform_pv(self.pv)

    def shifted_by(self, dt) -> AbsolutePVCoordinates:
        """Second order Taylor expansion of the motion."""
        p = self.pv[:3] + self.pv[3:6] * dt + 0.5 * self.acceleration * dt * dt
        v = self.pv[3:6] + self.acceleration * dt
        return AbsolutePVCoordinates(jnp.concatenate([p, v]), self.epoch + dt,
                                     self.frame, self.acceleration)


class SpacecraftState:
    """State of a spacecraft at an epoch.

    Args:
        definition (Orbit | AbsolutePVCoordinates): Orbit or absolute
            coordinates defining the trajectory point.
        mass (float): Spacecraft mass. Units: *kg*
        additional_states (dict[str, ArrayLike] | None): Named additional
            states.
    """

    __slots__ = ('orbit', 'absolute_pv', 'mass', '_additional')

    def __init__(self, definition: Orbit | AbsolutePVCoordinates,
                 mass: float = DEFAULT_MASS,
                 additional_states: dict[str, ArrayLike] | None = None) -> None:
        if isinstance(definition, Orbit):
            self.orbit = definition
            self.absolute_pv = None
        elif isinstance(definition, AbsolutePVCoordinates):
            self.orbit = None
            self.absolute_pv = definition
        else:
            raise TypeError(f"Cannot build a spacecraft state from {type(definition)}")
        self.mass = mass
        self._additional = {
            name: jnp.atleast_1d(jnp.asarray(value, dtype=get_dtype()))
            for name, value in (additional_states or {}).items()
        }

    def __repr__(self):
        return (f'SpacecraftState(epoch={self.epoch}, frame={self.frame}, '
                f'additional={sorted(self._additional)})')

    @property
    def is_orbit_defined(self) -> bool:
        return self.orbit is not None

    @property
    def _definition(self):
        return self.orbit if self.orbit is not None else self.absolute_pv

    @property
    def epoch(self) -> Epoch:
        return self._definition.epoch

    @property
    def frame(self) -> Frame:
        return self._definition.frame

    @property
    def pv(self) -> jax.Array:
        """Position and velocity in the state frame."""
        return self._definition.pv

    def pv_in(self, frame: Frame) -> jax.Array:
        return self._definition.pv_in(frame)

    # Additional states

    @property
    def additional_states(self) -> MappingProxyType:
        """Read-only view of the additional states."""
        return MappingProxyType(self._additional)

    def has_additional_state(self, name: str) -> bool:
        return name in self._additional

    def additional_state(self, name: str) -> jax.Array:
        """Return the additional state called ``name``.

        Raises:
            ValueError: If no such additional state exists.
        """
        try:
            return self._additional[name]
        except KeyError:
            raise ValueError(f"unknown additional state \"{name}\"") from None

    def add_additional_state(self, name: str, value: ArrayLike) -> SpacecraftState:
        """Return a copy of this state with an additional state set."""
        additional = dict(self._additional)
        additional[name] = value
        return SpacecraftState(self._definition, self.mass, additional)

    def ensure_compatible_additional_states(self, other: SpacecraftState) -> None:
        """Check that ``other`` carries the same additional states with the same sizes.

        Raises:
            DimensionMismatchError: If a state is missing in ``other`` or
                has a different size.
        """
        for name, value in self._additional.items():
            if name not in other._additional:
                raise DimensionMismatchError(name, None, "additional state")
            other_size = other._additional[name].shape[0]
            if value.shape[0] != other_size:
                raise DimensionMismatchError(value.shape[0], other_size,
                                             f"additional state \"{name}\" size")

    # Motion

    def shifted_by(self, dt) -> SpacecraftState:
        """Shift the trajectory point, keeping mass and additional states."""
        return SpacecraftState(self._definition.shifted_by(dt), self.mass, self._additional)

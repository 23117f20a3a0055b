"""The ``Orbit`` class: an osculating Keplerian orbit at an epoch.

An orbit is stored as its Cartesian position and velocity in a
pseudo-inertial frame together with the gravitational parameter.  Element
sets, Jacobians and Keplerian motion are derived on demand.  All Jacobians
are obtained by differentiating the element conversions with
``jax.jacfwd``.

The class is registered as a JAX pytree whose only leaf is the state
vector, so orbits can flow through ``jax.jvp`` and ``jax.jacfwd``.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.constants import GM_EARTH
from covjax.epoch import Epoch
from covjax.frames import Frame
from covjax.orbits._types import OrbitType, PositionAngleType
from covjax.orbits.elements import cartesian_to_elements, elements_to_cartesian

_MEAN = PositionAngleType.MEAN


class Orbit:
    """Osculating orbit defined by a Cartesian state.

    Args:
        pv (ArrayLike): Position and velocity, shape ``(6,)``.
            Units: *m*, *m/s*
        epoch (Epoch): Orbit epoch.
        frame (Frame): Pseudo-inertial definition frame.
        gm (float): Central body gravitational parameter.
            Units: *m^3/s^2*. Default: ``GM_EARTH``

    Raises:
        ValueError: If ``frame`` is not pseudo-inertial.
    """

    __slots__ = ('pv', 'epoch', 'frame', 'gm')

    def __init__(self, pv: ArrayLike, epoch: Epoch, frame: Frame,
                 gm: float = GM_EARTH) -> None:
        if not frame.pseudo_inertial:
            raise ValueError(f"Orbits must be defined in a pseudo-inertial frame, got {frame}")
        self.pv = jnp.asarray(pv, dtype=get_dtype())
        self.epoch = epoch
        self.frame = frame
        self.gm = gm

    @classmethod
    def _from_internal(cls, pv, epoch, frame, gm):
        obj = object.__new__(cls)
        obj.pv = pv
        obj.epoch = epoch
        obj.frame = frame
        obj.gm = gm
        return obj

    @classmethod
    def from_elements(cls, elements: ArrayLike, epoch: Epoch, frame: Frame,
                      orbit_type: OrbitType = OrbitType.KEPLERIAN,
                      angle_type: PositionAngleType = _MEAN,
                      gm: float = GM_EARTH) -> Orbit:
        """Build an orbit from an element vector.

        Args:
            elements (ArrayLike): Element vector of kind ``orbit_type``.
            epoch (Epoch): Orbit epoch.
            frame (Frame): Pseudo-inertial definition frame.
            orbit_type (OrbitType): Parameterisation of ``elements``.
            angle_type (PositionAngleType): Kind of the fast angle.
            gm (float): Gravitational parameter. Units: *m^3/s^2*

        Returns:
            Orbit: New orbit.

        Examples:
            ```python
            orbit = Orbit.from_elements([7.0e6, 0.001, 0.9, 0.0, 0.0, 0.0],
                                        Epoch(2024, 1, 1), gcrf())
            ```
        """
        pv = elements_to_cartesian(elements, gm, orbit_type, angle_type)
        return cls(pv, epoch, frame, gm)

    def __repr__(self):
        return f'Orbit(epoch={self.epoch}, frame={self.frame}, pv={self.pv})'

    # Derived quantities

    @property
    def position(self) -> jax.Array:
        return self.pv[:3]

    @property
    def velocity(self) -> jax.Array:
        return self.pv[3:6]

    @property
    def a(self) -> jax.Array:
        """Semi-major axis. Units: *m*"""
        r = jnp.linalg.norm(self.position)
        return r / (2.0 - r * jnp.dot(self.velocity, self.velocity) / self.gm)

    @property
    def e(self) -> jax.Array:
        """Eccentricity."""
        equinoctial = cartesian_to_elements(self.pv, self.gm, OrbitType.EQUINOCTIAL)
        return jnp.hypot(equinoctial[1], equinoctial[2])

    @property
    def mean_motion(self) -> jax.Array:
        """Keplerian mean motion. Units: *rad/s*"""
        return jnp.sqrt(self.gm / self.a**3)

    def mean_anomaly_dot_wrt_a(self) -> jax.Array:
        """Partial derivative of the mean anomaly rate with respect to ``a``.

        Equal to ``-1.5 n / a``. Units: *rad/s/m*
        """
        return -1.5 * self.mean_motion / self.a

    def keplerian_acceleration(self) -> jax.Array:
        r = self.position
        return -self.gm * r / jnp.linalg.norm(r) ** 3

    def pva(self) -> jax.Array:
        """Position, velocity and Keplerian acceleration, shape ``(9,)``."""
        return jnp.concatenate([self.pv, self.keplerian_acceleration()])

    def elements(self, orbit_type: OrbitType = OrbitType.KEPLERIAN,
                 angle_type: PositionAngleType = _MEAN) -> jax.Array:
        """Return the element vector of the requested parameterisation."""
        return cartesian_to_elements(self.pv, self.gm, orbit_type, angle_type)

    # Frames

    def pv_in(self, frame: Frame) -> jax.Array:
        """Position and velocity expressed in any frame of the tree."""
        if frame is self.frame:
            return self.pv
        return self.frame.transform_to(frame, self.epoch).transform_pv(self.pv)

    def in_frame(self, frame: Frame) -> Orbit:
        """Same orbit expressed in another pseudo-inertial frame."""
        if frame is self.frame:
            return self
        return Orbit(self.pv_in(frame), self.epoch, frame, self.gm)

    # Keplerian motion

    def _shift_pv(self, pv, dt):
        equinoctial = cartesian_to_elements(pv, self.gm, OrbitType.EQUINOCTIAL, _MEAN)
        a = equinoctial[0]
        n = jnp.sqrt(self.gm / a**3)
        shifted = equinoctial.at[5].add(n * dt)
        return elements_to_cartesian(shifted, self.gm, OrbitType.EQUINOCTIAL, _MEAN)

    def shifted_by(self, dt) -> Orbit:
        """Keplerian propagation by ``dt`` seconds.

        Args:
            dt: Time shift. Units: *s*

        Returns:
            Orbit: Orbit at ``epoch + dt``.
        """
        return Orbit._from_internal(self._shift_pv(self.pv, dt), self.epoch + dt,
                                    self.frame, self.gm)

    def keplerian_transition_matrix(self, dt) -> jax.Array:
        """Cartesian state transition matrix of Keplerian motion over ``dt``.

        Returns:
            jax.Array: 6x6 matrix ``d pv(t + dt) / d pv(t)``.
        """
        return jax.jacfwd(lambda pv: self._shift_pv(pv, dt))(self.pv)

    # Jacobians

    def jacobian_wrt_cartesian(self, orbit_type: OrbitType,
                               angle_type: PositionAngleType = _MEAN) -> jax.Array:
        """Jacobian of the orbital elements with respect to the Cartesian state.

        Args:
            orbit_type (OrbitType): Element set.
            angle_type (PositionAngleType): Kind of the fast angle.

        Returns:
            jax.Array: 6x6 matrix ``d elements / d pv``.
        """
        if orbit_type == OrbitType.CARTESIAN:
            return jnp.eye(6, dtype=self.pv.dtype)
        return jax.jacfwd(
            lambda pv: cartesian_to_elements(pv, self.gm, orbit_type, angle_type)
        )(self.pv)

    def jacobian_wrt_parameters(self, orbit_type: OrbitType,
                                angle_type: PositionAngleType = _MEAN) -> jax.Array:
        """Jacobian of the Cartesian state with respect to the orbital elements.

        Args:
            orbit_type (OrbitType): Element set.
            angle_type (PositionAngleType): Kind of the fast angle.

        Returns:
            jax.Array: 6x6 matrix ``d pv / d elements``.
        """
        if orbit_type == OrbitType.CARTESIAN:
            return jnp.eye(6, dtype=self.pv.dtype)
        return jax.jacfwd(
            lambda el: elements_to_cartesian(el, self.gm, orbit_type, angle_type)
        )(self.elements(orbit_type, angle_type))


jax.tree_util.register_pytree_node(
    Orbit,
    lambda o: ((o.pv,), (o.epoch, o.frame, o.gm)),
    lambda aux, children: Orbit._from_internal(children[0], *aux),
)

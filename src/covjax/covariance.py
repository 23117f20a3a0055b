"""Orbital state covariance and its conversions.

:class:`StateCovariance` is an immutable value: a square matrix, the epoch
it applies to, where it is expressed (a :class:`~covjax.frames.Frame` or a
:class:`~covjax.lof.LOFType`, never both) and the orbital parameterisation
of its rows and columns.  Every conversion returns a new instance built by
a congruence ``C' = J C J^T``:

- element-type changes use the Jacobians of the element conversions,
- frame changes between two pseudo-inertial frames use the pure rotation
  ``diag(R, R)``, ignoring the small rotation rate between them,
- frame changes involving a rotating frame or a local orbital frame use the
  full position-velocity Jacobian, including the ``-[w]x R`` coupling of
  velocities to positions,
- :meth:`StateCovariance.shifted_by` applies the Keplerian secular
  transition matrix in equinoctial mean elements.

The class is a JAX pytree whose only leaf is the matrix; the epoch, the
reference and the element types travel as static auxiliary data.  Running any of
these operations under ``jax.jvp`` or ``jax.jacfwd`` gives the
derivative-carrying variant of the computation for free;
:meth:`StateCovariance.primal` projects such a covariance back to plain
values.
"""

from __future__ import annotations

import logging

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.epoch import Epoch
from covjax.errors import DimensionMismatchError, IncompatibleRepresentationError
from covjax.frames import DerivativesFilter, Frame
from covjax.lof import LOFType, transform_lof_to_lof
from covjax.orbits import Orbit, OrbitType, PositionAngleType

logger = logging.getLogger(__name__)

_STATE_DIMENSION = 6
_CARTESIAN = OrbitType.CARTESIAN
_MEAN = PositionAngleType.MEAN


def _congruence(jacobian: jax.Array, matrix: jax.Array) -> jax.Array:
    return jacobian @ matrix @ jacobian.T


def _rotation_only(rotation: jax.Array) -> jax.Array:
    zero = jnp.zeros_like(rotation)
    return jnp.block([[rotation, zero], [zero, rotation]])


def secular_transition_matrix(orbit: Orbit, dt) -> jax.Array:
    """Keplerian transition matrix in mean-angle elements.

    The identity, plus the dependence of the mean angle on the semi-major
    axis: entry ``(5, 0)`` equals ``-1.5 sqrt(mu / a^5) dt``.

    Args:
        orbit (Orbit): Orbit at the start of the interval.
        dt: Interval length. Units: *s*

    Returns:
        jax.Array: 6x6 transition matrix.
    """
    stm = jnp.eye(_STATE_DIMENSION, dtype=orbit.pv.dtype)
    return stm.at[5, 0].set(orbit.mean_anomaly_dot_wrt_a() * dt)


def _check_representation(reference, orbit_type: OrbitType) -> None:
    # Elements other than Cartesian are only defined in pseudo-inertial frames
    if orbit_type == _CARTESIAN:
        return
    if isinstance(reference, LOFType):
        raise IncompatibleRepresentationError(
            f"covariance expressed in local orbital frame {reference.name} "
            f"must use Cartesian elements, got {orbit_type.name}"
        )
    if not reference.pseudo_inertial:
        raise IncompatibleRepresentationError(
            f"covariance expressed in non-inertial frame {reference} "
            f"must use Cartesian elements, got {orbit_type.name}"
        )


def _assign(obj, matrix, epoch, reference, orbit_type, angle_type) -> None:
    set_slot = object.__setattr__
    set_slot(obj, 'matrix', matrix)
    set_slot(obj, 'epoch', epoch)
    set_slot(obj, 'reference', reference)
    set_slot(obj, 'orbit_type', orbit_type)
    set_slot(obj, 'angle_type', angle_type)


class StateCovariance:
    """Covariance of an orbital state.

    Args:
        matrix (ArrayLike): Square covariance matrix.
        epoch (Epoch): Epoch the covariance applies to.
        reference (Frame | LOFType): Frame or local orbital frame the
            covariance is expressed in.
        orbit_type (OrbitType): Parameterisation of the state. Must be
            ``CARTESIAN`` when ``reference`` is a local orbital frame.
        angle_type (PositionAngleType): Kind of the fast angle. Ignored for
            Cartesian covariances.

    Instances are read-only; conversions return new covariances.

    Raises:
        DimensionMismatchError: If ``matrix`` is not square.
        IncompatibleRepresentationError: If a local orbital frame or a
            non-inertial frame is used with non-Cartesian elements.

    Examples:
        ```python
        from covjax import StateCovariance, gcrf
        from covjax.lof import LOFType

        cov = StateCovariance(matrix, orbit.epoch, gcrf())
        cov_rtn = cov.change_frame(orbit, LOFType.QSW)
        ```
    """

    __slots__ = ('matrix', 'epoch', 'reference', 'orbit_type', 'angle_type')

    def __init__(self, matrix: ArrayLike, epoch: Epoch, reference: Frame | LOFType,
                 orbit_type: OrbitType = _CARTESIAN,
                 angle_type: PositionAngleType = _MEAN) -> None:
        matrix = jnp.asarray(matrix, dtype=get_dtype())
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise DimensionMismatchError("square matrix", matrix.shape, "covariance shape")
        if not isinstance(reference, (Frame, LOFType)):
            raise TypeError(f"Covariance reference must be a Frame or a LOFType, got {type(reference)}")
        _check_representation(reference, orbit_type)
        _assign(self, matrix, epoch, reference, orbit_type, angle_type)

    @classmethod
    def _from_internal(cls, matrix, epoch, reference, orbit_type, angle_type):
        obj = object.__new__(cls)
        _assign(obj, matrix, epoch, reference, orbit_type, angle_type)
        return obj

    def __setattr__(self, name, value):
        raise AttributeError(f"StateCovariance is immutable, cannot set '{name}'")

    def __delattr__(self, name):
        raise AttributeError(f"StateCovariance is immutable, cannot delete '{name}'")

    def _derive(self, matrix, *, epoch=None, reference=None, orbit_type=None,
                angle_type=None) -> StateCovariance:
        return StateCovariance._from_internal(
            matrix,
            self.epoch if epoch is None else epoch,
            self.reference if reference is None else reference,
            self.orbit_type if orbit_type is None else orbit_type,
            self.angle_type if angle_type is None else angle_type,
        )

    def __repr__(self):
        return (f'StateCovariance(epoch={self.epoch}, reference={self.reference}, '
                f'orbit_type={self.orbit_type.name}, angle_type={self.angle_type.name})')

    @property
    def frame(self) -> Frame | None:
        """Frame of the covariance, ``None`` when expressed in a local orbital frame."""
        return self.reference if isinstance(self.reference, Frame) else None

    @property
    def lof(self) -> LOFType | None:
        """Local orbital frame of the covariance, ``None`` when expressed in a frame."""
        return self.reference if isinstance(self.reference, LOFType) else None

    def primal(self) -> StateCovariance:
        """Project a derivative-carrying covariance to its plain values.

        Under ``jax.jvp`` / ``jax.jacfwd`` the result carries no tangent.
        """
        return self._derive(jax.lax.stop_gradient(self.matrix))

    def _check_orbital_dimension(self):
        if self.matrix.shape[0] != _STATE_DIMENSION:
            raise DimensionMismatchError(_STATE_DIMENSION, self.matrix.shape[0],
                                         "orbital covariance dimension")

    # ──────────────────────────────────────────────
    # Element type
    # ──────────────────────────────────────────────

    def change_type(self, orbit: Orbit, orbit_type: OrbitType,
                    angle_type: PositionAngleType = _MEAN) -> StateCovariance:
        """Express the covariance in another orbital parameterisation.

        Args:
            orbit (Orbit): Orbit the covariance refers to. Jacobians are
                evaluated on it, expressed in the covariance frame.
            orbit_type (OrbitType): Target parameterisation.
            angle_type (PositionAngleType): Target kind of fast angle.

        Returns:
            StateCovariance: Converted covariance, same frame and epoch.

        Raises:
            IncompatibleRepresentationError: If the covariance is expressed
                in a local orbital frame or in a non-inertial frame.
        """
        _check_representation(self.reference, self.orbit_type)
        if self.orbit_type == orbit_type and (
                orbit_type == _CARTESIAN or self.angle_type == angle_type):
            return self
        if self.lof is not None:
            raise IncompatibleRepresentationError(
                f"cannot change the orbit type of a covariance expressed in "
                f"local orbital frame {self.lof.name}"
            )
        if not self.frame.pseudo_inertial:
            raise IncompatibleRepresentationError(
                f"cannot change the orbit type of a covariance expressed in "
                f"non-inertial frame {self.frame}"
            )
        self._check_orbital_dimension()

        logger.debug("Covariance type %s/%s -> %s/%s", self.orbit_type.name,
                     self.angle_type.name, orbit_type.name, angle_type.name)
        local = orbit.in_frame(self.frame)
        jacobian = (local.jacobian_wrt_cartesian(orbit_type, angle_type)
                    @ local.jacobian_wrt_parameters(self.orbit_type, self.angle_type))
        return self._derive(_congruence(jacobian, self.matrix),
                            orbit_type=orbit_type, angle_type=angle_type)

    # ──────────────────────────────────────────────
    # Frame
    # ──────────────────────────────────────────────

    def change_frame(self, orbit: Orbit, target: Frame | LOFType) -> StateCovariance:
        """Express the covariance in another frame or local orbital frame.

        Results involving a local orbital frame or a non-inertial frame are
        Cartesian.  A change between two pseudo-inertial frames keeps the
        original parameterisation.

        Args:
            orbit (Orbit): Orbit the covariance refers to.
            target (Frame | LOFType): Destination.

        Returns:
            StateCovariance: Converted covariance, same epoch.

        Raises:
            IncompatibleRepresentationError: If the covariance is expressed
                in a non-inertial frame with non-Cartesian elements.
        """
        _check_representation(self.reference, self.orbit_type)
        self._check_orbital_dimension()
        if isinstance(target, LOFType):
            if self.lof is not None:
                return self._lof_to_lof(orbit, target)
            return self._frame_to_lof(orbit, target)
        if self.lof is not None:
            return self._lof_to_frame(orbit, target)
        return self._frame_to_frame(orbit, target)

    def _lof_to_lof(self, orbit: Orbit, lof_out: LOFType) -> StateCovariance:
        if lof_out is self.lof:
            return self
        logger.debug("Covariance frame %s -> %s", self.lof.name, lof_out.name)
        transform = transform_lof_to_lof(self.lof, lof_out, orbit.pv)
        jacobian = transform.jacobian(DerivativesFilter.USE_PV)
        return self._derive(_congruence(jacobian, self.matrix), reference=lof_out)

    def _frame_to_lof(self, orbit: Orbit, lof_out: LOFType) -> StateCovariance:
        if not self.frame.pseudo_inertial:
            return self._frame_to_frame(orbit, orbit.frame)._frame_to_lof(orbit, lof_out)

        logger.debug("Covariance frame %s -> %s", self.frame, lof_out.name)
        cartesian = self.change_type(orbit, _CARTESIAN, self.angle_type)
        transform = lof_out.transform_from_inertial(orbit.pv_in(self.frame))
        jacobian = transform.jacobian(DerivativesFilter.USE_PV)
        return cartesian._derive(_congruence(jacobian, cartesian.matrix), reference=lof_out)

    def _lof_to_frame(self, orbit: Orbit, frame_out: Frame) -> StateCovariance:
        if not frame_out.pseudo_inertial:
            return self._lof_to_frame(orbit, orbit.frame)._frame_to_frame(orbit, frame_out)

        logger.debug("Covariance frame %s -> %s", self.lof.name, frame_out)
        transform = self.lof.transform_from_inertial(orbit.pv_in(frame_out)).inverse()
        jacobian = transform.jacobian(DerivativesFilter.USE_PV)
        return self._derive(_congruence(jacobian, self.matrix), reference=frame_out)

    def _frame_to_frame(self, orbit: Orbit, frame_out: Frame) -> StateCovariance:
        frame_in = self.frame
        if frame_out is frame_in:
            return self

        transform = frame_in.transform_to(frame_out, self.epoch)

        if frame_in.pseudo_inertial:
            cartesian = self.change_type(orbit, _CARTESIAN, self.angle_type)
            if frame_out.pseudo_inertial:
                logger.debug("Covariance frame %s -> %s (rotation only)", frame_in, frame_out)
                jacobian = _rotation_only(transform.rotation)
                rotated = cartesian._derive(_congruence(jacobian, cartesian.matrix),
                                            reference=frame_out)
                return rotated.change_type(orbit, self.orbit_type, self.angle_type)
        else:
            cartesian = self

        logger.debug("Covariance frame %s -> %s (full Jacobian)", frame_in, frame_out)
        jacobian = transform.jacobian(DerivativesFilter.USE_PV)
        return cartesian._derive(_congruence(jacobian, cartesian.matrix), reference=frame_out)

    # ──────────────────────────────────────────────
    # Time
    # ──────────────────────────────────────────────

    def shifted_by(self, orbit: Orbit, dt) -> StateCovariance:
        """Shift the covariance in time with the Keplerian secular model.

        The covariance is mapped to equinoctial elements with mean longitude
        in the orbit frame, propagated by :func:`secular_transition_matrix`
        and mapped back to its original representation using the orbit
        shifted by ``dt``.

        Args:
            orbit (Orbit): Orbit at the covariance epoch.
            dt: Time shift. Units: *s*

        Returns:
            StateCovariance: Covariance at ``epoch + dt``, same
                representation.
        """
        self._check_orbital_dimension()
        shifted_orbit = orbit.shifted_by(dt)

        if self.lof is not None or not self.frame.pseudo_inertial:
            in_orbit_frame = self.change_frame(orbit, orbit.frame)
            shifted = in_orbit_frame._shift_inertial(orbit, shifted_orbit, dt)
            return shifted.change_frame(shifted_orbit, self.reference)

        return self._shift_inertial(orbit, shifted_orbit, dt)

    def _shift_inertial(self, orbit: Orbit, shifted_orbit: Orbit, dt) -> StateCovariance:
        equinoctial = self.change_type(orbit, OrbitType.EQUINOCTIAL, _MEAN)
        stm = secular_transition_matrix(orbit, dt)
        shifted = equinoctial._derive(_congruence(stm, equinoctial.matrix),
                                      epoch=self.epoch + dt)
        return shifted.change_type(shifted_orbit, self.orbit_type, self.angle_type)


jax.tree_util.register_pytree_node(
    StateCovariance,
    lambda c: ((c.matrix,), (c.epoch, c.reference, c.orbit_type, c.angle_type)),
    lambda aux, children: StateCovariance._from_internal(children[0], *aux),
)

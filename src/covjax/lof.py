"""Local orbital frames (LOF).

A local orbital frame is attached to the spacecraft and built from its
inertial position and velocity.  Each :class:`LOFType` defines the axes as
unit vectors in the inertial frame; the rotation matrix from inertial to
LOF coordinates has those axes as rows.

Co-rotating kinds turn at the orbital angular rate ``h / r^2`` about the
angular momentum, whatever their axes.  The ``*_INERTIAL`` kinds share the same axes but are frozen
at the epoch (zero rate), which makes converting a covariance into them a
pure rotation.
"""

from __future__ import annotations

import enum

import jax
import jax.numpy as jnp

from covjax.frames import Transform


def _unit(v):
    return v / jnp.linalg.norm(v)


def _qsw_axes(r, v):
    x = _unit(r)
    z = _unit(jnp.cross(r, v))
    return x, jnp.cross(z, x), z


def _tnw_axes(r, v):
    x = _unit(v)
    z = _unit(jnp.cross(r, v))
    return x, jnp.cross(z, x), z


def _ntw_axes(r, v):
    y = _unit(v)
    z = _unit(jnp.cross(r, v))
    return jnp.cross(y, z), y, z


def _vnc_axes(r, v):
    x = _unit(v)
    y = _unit(jnp.cross(r, v))
    return x, y, jnp.cross(x, y)


def _lvlh_ccsds_axes(r, v):
    z = -_unit(r)
    y = -_unit(jnp.cross(r, v))
    return jnp.cross(y, z), y, z


class LOFType(enum.Enum):
    """Local orbital frame definitions.

    Attributes:
        QSW: X along position, Z along angular momentum (radial,
            transverse, normal). Also known as RSW, RTN and LVLH.
        TNW: X along velocity, Z along angular momentum.
        NTW: Y along velocity, Z along angular momentum.
        VNC: X along velocity, Y along angular momentum.
        LVLH_CCSDS: Z towards the central body, Y opposite to angular
            momentum (CCSDS convention).

    Each kind has an ``*_INERTIAL`` counterpart with identical axes and no
    rotation rate.
    """

    QSW = ("QSW", False)
    QSW_INERTIAL = ("QSW", True)
    TNW = ("TNW", False)
    TNW_INERTIAL = ("TNW", True)
    NTW = ("NTW", False)
    NTW_INERTIAL = ("NTW", True)
    VNC = ("VNC", False)
    VNC_INERTIAL = ("VNC", True)
    LVLH_CCSDS = ("LVLH_CCSDS", False)
    LVLH_CCSDS_INERTIAL = ("LVLH_CCSDS", True)

    # Aliases of the radial / transverse / normal frame
    LVLH = ("QSW", False)
    LVLH_INERTIAL = ("QSW", True)
    RTN = ("QSW", False)
    RTN_INERTIAL = ("QSW", True)
    RSW = ("QSW", False)
    RSW_INERTIAL = ("QSW", True)

    @property
    def is_quasi_inertial(self) -> bool:
        """Whether the frame carries no rotation rate."""
        return self.value[1]

    def rotation_from_inertial(self, pv: jax.Array) -> jax.Array:
        """Rotation matrix from inertial to LOF coordinates.

        Args:
            pv (jax.Array): Inertial position and velocity, shape ``(6,)``.

        Returns:
            jax.Array: 3x3 matrix whose rows are the LOF axes.
        """
        axes = _AXES[self.value[0]](pv[:3], pv[3:6])
        return jnp.stack(axes)

    def transform_from_inertial(self, pv: jax.Array) -> Transform:
        """Kinematic transform from the inertial frame of ``pv`` to the LOF.

        Args:
            pv (jax.Array): Inertial position and velocity, shape ``(6,)``.
                Units: *m*, *m/s*

        Returns:
            Transform: Rotation, rotation rate and rotation acceleration.
        """
        rotation = self.rotation_from_inertial(pv)
        if self.is_quasi_inertial:
            return Transform.from_rotation(rotation)
        return _rotating_transform(pv, rotation)


_AXES = {
    "QSW": _qsw_axes,
    "TNW": _tnw_axes,
    "NTW": _ntw_axes,
    "VNC": _vnc_axes,
    "LVLH_CCSDS": _lvlh_ccsds_axes,
}


def _rotating_transform(pv, rotation) -> Transform:
    r = pv[:3]
    v = pv[3:6]
    r2 = jnp.dot(r, r)

    # Every rotating frame turns at the orbital rate h / r^2, whose
    # Keplerian derivative only comes from the radius change.
    omega = jnp.cross(r, v) / r2
    omega_dot = -2.0 * jnp.dot(r, v) / r2 * omega
    return Transform(rotation, rotation @ omega, rotation @ omega_dot)


def transform_lof_to_lof(lof_in: LOFType, lof_out: LOFType, pv: jax.Array) -> Transform:
    """Transform from one local orbital frame to another.

    Args:
        lof_in (LOFType): Source local orbital frame.
        lof_out (LOFType): Destination local orbital frame.
        pv (jax.Array): Inertial position and velocity defining both frames.

    Returns:
        Transform: Transform mapping ``lof_in`` coordinates to ``lof_out``.
    """
    return (lof_in.transform_from_inertial(pv).inverse()
            .compose(lof_out.transform_from_inertial(pv)))

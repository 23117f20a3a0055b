"""Earth orientation models behind the predefined frame tree.

Classical equinox-based chain (Vallado, Chapter 3):

- frame bias between GCRF and EME2000 (IERS Conventions 2010),
- IAU-1976 precession,
- IAU-1980 nutation truncated to its ten largest terms (milliarcsecond
  level, adequate for covariance rotations),
- IAU-1982 equation of the equinoxes and GMST,
- polar motion.

All angles are in radians and all time arguments are Julian centuries of
TT since J2000.0 unless noted.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

from covjax.constants import AS2RAD, DEG2RAD
from covjax.rotations import Rx, Ry, Rz

# Frame bias offsets [arcsec]
_DALPHA0 = -0.0146
_XI0 = -0.041775
_ETA0 = -0.0068192

# Largest terms of the IAU-1980 nutation series.
# Multipliers of (l, l', F, D, Omega), then longitude coefficients (A, B)
# and obliquity coefficients (C, D), in units of 0.0001 arcsec.
_NUTATION_TERMS = (
    ((0, 0, 0, 0, 1), -171996.0, -174.2, 92025.0, 8.9),
    ((0, 0, 2, -2, 2), -13187.0, -1.6, 5736.0, -3.1),
    ((0, 0, 2, 0, 2), -2274.0, -0.2, 977.0, -0.5),
    ((0, 0, 0, 0, 2), 2062.0, 0.2, -895.0, 0.5),
    ((0, 1, 0, 0, 0), 1426.0, -3.4, 54.0, -0.1),
    ((1, 0, 0, 0, 0), 712.0, 0.1, -7.0, 0.0),
    ((0, 1, 2, -2, 2), -517.0, 1.2, 224.0, -0.6),
    ((0, 0, 2, 0, 1), -386.0, -0.4, 200.0, 0.0),
    ((1, 0, 2, 0, 2), -301.0, 0.0, 129.0, -0.1),
    ((0, -1, 2, -2, 2), 217.0, -0.5, -95.0, 0.3),
)


def bias_matrix() -> jax.Array:
    """Frame bias rotation from GCRF to EME2000."""
    return Rx(-_ETA0 * AS2RAD) @ Ry(_XI0 * AS2RAD) @ Rz(_DALPHA0 * AS2RAD)


def precession_matrix(t: jax.Array) -> jax.Array:
    """IAU-1976 precession rotation from EME2000 to mean-of-date.

    Args:
        t: TT Julian centuries since J2000.0.

    Returns:
        jax.Array: 3x3 rotation matrix.

    References:

        1. D. Vallado, *Fundamentals of Astrodynamics and Applications
           (4th Ed.)*, 2010, Eq. 3-88.
    """
    zeta = (2306.2181 * t + 0.30188 * t**2 + 0.017998 * t**3) * AS2RAD
    theta = (2004.3109 * t - 0.42665 * t**2 - 0.041833 * t**3) * AS2RAD
    z = (2306.2181 * t + 1.09468 * t**2 + 0.018203 * t**3) * AS2RAD
    return Rz(-z) @ Ry(theta) @ Rz(-zeta)


def mean_obliquity(t: jax.Array) -> jax.Array:
    """Mean obliquity of the ecliptic (IAU-1980)."""
    return (84381.448 - 46.8150 * t - 0.00059 * t**2 + 0.001813 * t**3) * AS2RAD


def _fundamental_arguments(t: jax.Array) -> jax.Array:
    """Delaunay arguments (l, l', F, D, Omega) in radians."""
    l = 134.96340251 + (1717915923.2178 * t + 31.8792 * t**2 + 0.051635 * t**3) / 3600.0
    lp = 357.52910918 + (129596581.0481 * t - 0.5532 * t**2 + 0.000136 * t**3) / 3600.0
    f = 93.27209062 + (1739527262.8478 * t - 12.7512 * t**2 - 0.001037 * t**3) / 3600.0
    d = 297.85019547 + (1602961601.2090 * t - 6.3706 * t**2 + 0.006593 * t**3) / 3600.0
    om = 125.04455501 + (-6962890.5431 * t + 7.4722 * t**2 + 0.007702 * t**3) / 3600.0
    return jnp.stack([l, lp, f, d, om]) * DEG2RAD


def nutation(t: jax.Array) -> tuple[jax.Array, jax.Array, jax.Array]:
    """Nutation in longitude and obliquity.

    Args:
        t: TT Julian centuries since J2000.0.

    Returns:
        tuple: (dpsi, deps, eps_mean) in radians.
    """
    args = _fundamental_arguments(t)
    multipliers = jnp.array([term[0] for term in _NUTATION_TERMS], dtype=args.dtype)
    coeffs = jnp.array([term[1:] for term in _NUTATION_TERMS], dtype=args.dtype)

    phase = multipliers @ args
    dpsi = jnp.sum((coeffs[:, 0] + coeffs[:, 1] * t) * jnp.sin(phase))
    deps = jnp.sum((coeffs[:, 2] + coeffs[:, 3] * t) * jnp.cos(phase))

    scale = 1.0e-4 * AS2RAD
    return dpsi * scale, deps * scale, mean_obliquity(t)


def nutation_matrix(t: jax.Array) -> jax.Array:
    """Nutation rotation from mean-of-date to true-of-date."""
    dpsi, deps, eps = nutation(t)
    return Rx(-(eps + deps)) @ Rz(-dpsi) @ Rx(eps)


def equation_of_equinoxes(t: jax.Array) -> jax.Array:
    """IAU-1982 equation of the equinoxes, including the post-1997 terms."""
    dpsi, _, eps = nutation(t)
    om = _fundamental_arguments(t)[4]
    return (dpsi * jnp.cos(eps)
            + (0.00264 * jnp.sin(om) + 0.000063 * jnp.sin(2.0 * om)) * AS2RAD)


def polar_motion_matrix(pm_x: jax.Array, pm_y: jax.Array) -> jax.Array:
    """Polar motion rotation from PEF to ITRF."""
    return Ry(-pm_x) @ Rx(-pm_y)

"""Anomaly and longitude conversions.

Two families of conversions are provided:

- anomalies of Keplerian elements, driven by the eccentricity ``e``,
- longitude arguments of equinoctial and circular elements, driven by the
  eccentricity vector components ``(ex, ey)``.

Kepler's equation is solved by Newton-Raphson iteration with
``jax.lax.fori_loop``, so every conversion is differentiable.  Angles are
not wrapped, which keeps them continuous along a propagated arc.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.orbits._types import PositionAngleType

_NEWTON_ITERATIONS = 10

# ──────────────────────────────────────────────
# Keplerian anomalies
# ──────────────────────────────────────────────


def anomaly_eccentric_to_mean(anm_ecc: ArrayLike, e: ArrayLike) -> Array:
    """Convert eccentric anomaly to mean anomaly (``M = E - e sin E``).

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad*
        e: Eccentricity.

    Returns:
        Mean anomaly. Units: *rad*
    """
    return anm_ecc - e * jnp.sin(anm_ecc)


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e sin(E)`` for ``E``.

    Args:
        anm_mean: Mean anomaly. Units: *rad*
        e: Eccentricity.

    Returns:
        Eccentric anomaly. Units: *rad*
    """
    M = jnp.asarray(anm_mean, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    def newton_step(_, E):
        return E - (E - e * jnp.sin(E) - M) / (1.0 - e * jnp.cos(E))

    return jax.lax.fori_loop(0, _NEWTON_ITERATIONS, newton_step, M)


def anomaly_true_to_eccentric(anm_true: ArrayLike, e: ArrayLike) -> Array:
    """Convert true anomaly to eccentric anomaly, keeping the revolution count."""
    beta = e / (1.0 + jnp.sqrt(1.0 - e * e))
    return anm_true - 2.0 * jnp.arctan(beta * jnp.sin(anm_true) / (1.0 + beta * jnp.cos(anm_true)))


def anomaly_eccentric_to_true(anm_ecc: ArrayLike, e: ArrayLike) -> Array:
    """Convert eccentric anomaly to true anomaly, keeping the revolution count."""
    beta = e / (1.0 + jnp.sqrt(1.0 - e * e))
    return anm_ecc + 2.0 * jnp.arctan(beta * jnp.sin(anm_ecc) / (1.0 - beta * jnp.cos(anm_ecc)))


def convert_anomaly(anomaly: ArrayLike, e: ArrayLike,
                    angle_in: PositionAngleType, angle_out: PositionAngleType) -> Array:
    """Convert a Keplerian anomaly between position angle types."""
    if angle_in == angle_out:
        return anomaly
    if angle_in == PositionAngleType.MEAN:
        ecc = anomaly_mean_to_eccentric(anomaly, e)
    elif angle_in == PositionAngleType.TRUE:
        ecc = anomaly_true_to_eccentric(anomaly, e)
    else:
        ecc = anomaly
    if angle_out == PositionAngleType.MEAN:
        return anomaly_eccentric_to_mean(ecc, e)
    if angle_out == PositionAngleType.TRUE:
        return anomaly_eccentric_to_true(ecc, e)
    return ecc

# ──────────────────────────────────────────────
# Longitude arguments (equinoctial / circular)
# ──────────────────────────────────────────────


def longitude_eccentric_to_true(lE: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert an eccentric longitude argument to the true longitude argument.

    References:

        1. R. A. Broucke, P. J. Cefola, *On the equinoctial orbit elements*,
           Celestial Mechanics 5, 1972.
    """
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    c = jnp.cos(lE)
    s = jnp.sin(lE)
    num = ex * s - ey * c
    den = epsilon + 1.0 - ex * c - ey * s
    return lE + 2.0 * jnp.arctan(num / den)


def longitude_true_to_eccentric(lv: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Convert a true longitude argument to the eccentric longitude argument."""
    epsilon = jnp.sqrt(1.0 - ex * ex - ey * ey)
    c = jnp.cos(lv)
    s = jnp.sin(lv)
    num = ey * c - ex * s
    den = epsilon + 1.0 + ex * c + ey * s
    return lv + 2.0 * jnp.arctan(num / den)


def longitude_eccentric_to_mean(lE: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Kepler's equation in longitude form: ``lM = lE - ex sin lE + ey cos lE``."""
    return lE - ex * jnp.sin(lE) + ey * jnp.cos(lE)


def longitude_mean_to_eccentric(lM: ArrayLike, ex: ArrayLike, ey: ArrayLike) -> Array:
    """Solve Kepler's equation in longitude form for the eccentric longitude."""
    lM = jnp.asarray(lM, dtype=get_dtype())

    def newton_step(_, lE):
        f = lE - ex * jnp.sin(lE) + ey * jnp.cos(lE) - lM
        fd = 1.0 - ex * jnp.cos(lE) - ey * jnp.sin(lE)
        return lE - f / fd

    return jax.lax.fori_loop(0, _NEWTON_ITERATIONS, newton_step, lM)


def convert_longitude(longitude: ArrayLike, ex: ArrayLike, ey: ArrayLike,
                      angle_in: PositionAngleType, angle_out: PositionAngleType) -> Array:
    """Convert a longitude argument between position angle types.

    Args:
        longitude: Longitude argument of kind ``angle_in``. Units: *rad*
        ex: First eccentricity vector component.
        ey: Second eccentricity vector component.
        angle_in: Kind of the input angle.
        angle_out: Kind of the output angle.

    Returns:
        Longitude argument of kind ``angle_out``. Units: *rad*
    """
    if angle_in == angle_out:
        return longitude
    if angle_in == PositionAngleType.MEAN:
        ecc = longitude_mean_to_eccentric(longitude, ex, ey)
    elif angle_in == PositionAngleType.TRUE:
        ecc = longitude_true_to_eccentric(longitude, ex, ey)
    else:
        ecc = longitude
    if angle_out == PositionAngleType.MEAN:
        return longitude_eccentric_to_mean(ecc, ex, ey)
    if angle_out == PositionAngleType.TRUE:
        return longitude_eccentric_to_true(ecc, ex, ey)
    return ecc

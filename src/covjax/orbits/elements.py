"""Conversions between Cartesian state and orbital element sets.

Equinoctial elements are the pivot: every conversion goes Cartesian ->
equinoctial -> requested set, and back.  They are non-singular for
circular and equatorial (prograde) orbits, so the Jacobians obtained by
differentiating these functions with ``jax.jacfwd`` are well defined for
all elliptic orbits except the retrograde equatorial one.

Element vectors follow :class:`~covjax.orbits.OrbitType`:

    KEPLERIAN    [a, e, i, RAAN, omega, anomaly]
    CIRCULAR     [a, ex, ey, i, RAAN, alpha]
    EQUINOCTIAL  [a, ex, ey, hx, hy, L]
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.orbits._types import OrbitType, PositionAngleType
from covjax.orbits.anomaly import convert_longitude

_TRUE = PositionAngleType.TRUE
_ECCENTRIC = PositionAngleType.ECCENTRIC

# ──────────────────────────────────────────────
# Cartesian <-> equinoctial
# ──────────────────────────────────────────────


def cartesian_to_equinoctial(pv: ArrayLike, gm: float) -> Array:
    """Convert a Cartesian state to equinoctial elements with true longitude.

    Args:
        pv: Position and velocity, shape ``(6,)``. Units: *m*, *m/s*
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Array: ``[a, ex, ey, hx, hy, L_true]``.

    References:

        1. R. A. Broucke, P. J. Cefola, *On the equinoctial orbit elements*,
           Celestial Mechanics 5, 1972.
    """
    pv = jnp.asarray(pv, dtype=get_dtype())
    p = pv[:3]
    v = pv[3:6]

    r2 = jnp.dot(p, p)
    r = jnp.sqrt(r2)
    rv2_on_mu = r * jnp.dot(v, v) / gm

    a = r / (2.0 - rv2_on_mu)

    w = jnp.cross(p, v)
    w = w / jnp.linalg.norm(w)
    d = 1.0 / (1.0 + w[2])
    hx = -d * w[1]
    hy = d * w[0]

    c_lv = (p[0] - d * p[2] * w[0]) / r
    s_lv = (p[1] - d * p[2] * w[1]) / r
    lv = jnp.arctan2(s_lv, c_lv)

    e_se = jnp.dot(p, v) / jnp.sqrt(gm * a)
    e_ce = rv2_on_mu - 1.0
    e2 = e_ce * e_ce + e_se * e_se
    f = e_ce - e2
    g = jnp.sqrt(1.0 - e2) * e_se
    ex = a * (f * c_lv + g * s_lv) / r
    ey = a * (f * s_lv - g * c_lv) / r

    return jnp.stack([a, ex, ey, hx, hy, lv])


def equinoctial_to_cartesian(elements: ArrayLike, gm: float) -> Array:
    """Convert equinoctial elements with eccentric longitude to a Cartesian state.

    Args:
        elements: ``[a, ex, ey, hx, hy, L_eccentric]``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Array: Position and velocity, shape ``(6,)``.
    """
    a, ex, ey, hx, hy, lE = (elements[k] for k in range(6))

    hx2 = hx * hx
    hy2 = hy * hy
    f_h = 1.0 / (1.0 + hx2 + hy2)
    hxhy2 = 2.0 * hx * hy * f_h
    f_axis = jnp.stack([(1.0 + hx2 - hy2) * f_h, hxhy2, -2.0 * hy * f_h])
    g_axis = jnp.stack([hxhy2, (1.0 - hx2 + hy2) * f_h, 2.0 * hx * f_h])

    c_le = jnp.cos(lE)
    s_le = jnp.sin(lE)
    ex_ce_ey_se = ex * c_le + ey * s_le

    beta = 1.0 / (1.0 + jnp.sqrt(1.0 - ex * ex - ey * ey))

    x = a * ((1.0 - beta * ey * ey) * c_le + beta * ex * ey * s_le - ex)
    y = a * ((1.0 - beta * ex * ex) * s_le + beta * ex * ey * c_le - ey)

    factor = jnp.sqrt(gm / a) / (1.0 - ex_ce_ey_se)
    x_dot = factor * (-s_le + beta * ey * ex_ce_ey_se)
    y_dot = factor * (c_le - beta * ex * ex_ce_ey_se)

    return jnp.concatenate([x * f_axis + y * g_axis, x_dot * f_axis + y_dot * g_axis])

# ──────────────────────────────────────────────
# Equinoctial <-> Keplerian / circular
# ──────────────────────────────────────────────


def _node_and_inclination(hx, hy):
    raan = jnp.arctan2(hy, hx)
    i = 2.0 * jnp.arctan(jnp.sqrt(hx * hx + hy * hy))
    return raan, i


def _node_vector(i, raan):
    t = jnp.tan(0.5 * i)
    return t * jnp.cos(raan), t * jnp.sin(raan)


def equinoctial_to_keplerian(elements: ArrayLike) -> Array:
    """Equinoctial to Keplerian elements, keeping the angle type of ``L``."""
    a, ex, ey, hx, hy, lon = (elements[k] for k in range(6))
    raan, i = _node_and_inclination(hx, hy)
    pa_plus_raan = jnp.arctan2(ey, ex)
    e = jnp.sqrt(ex * ex + ey * ey)
    return jnp.stack([a, e, i, raan, pa_plus_raan - raan, lon - pa_plus_raan])


def keplerian_to_equinoctial(elements: ArrayLike) -> Array:
    """Keplerian to equinoctial elements, keeping the angle type of the anomaly."""
    a, e, i, raan, pa, anomaly = (elements[k] for k in range(6))
    hx, hy = _node_vector(i, raan)
    return jnp.stack([a, e * jnp.cos(pa + raan), e * jnp.sin(pa + raan), hx, hy,
                      anomaly + pa + raan])


def equinoctial_to_circular(elements: ArrayLike) -> Array:
    """Equinoctial to circular elements, keeping the angle type of ``L``."""
    a, ex, ey, hx, hy, lon = (elements[k] for k in range(6))
    raan, i = _node_and_inclination(hx, hy)
    c = jnp.cos(raan)
    s = jnp.sin(raan)
    return jnp.stack([a, ex * c + ey * s, ey * c - ex * s, i, raan, lon - raan])


def circular_to_equinoctial(elements: ArrayLike) -> Array:
    """Circular to equinoctial elements, keeping the angle type of ``alpha``."""
    a, ex_c, ey_c, i, raan, alpha = (elements[k] for k in range(6))
    c = jnp.cos(raan)
    s = jnp.sin(raan)
    hx, hy = _node_vector(i, raan)
    return jnp.stack([a, ex_c * c - ey_c * s, ey_c * c + ex_c * s, hx, hy, alpha + raan])

# ──────────────────────────────────────────────
# Generic dispatch
# ──────────────────────────────────────────────


def _with_longitude(equinoctial, angle_in, angle_out):
    lon = convert_longitude(equinoctial[5], equinoctial[1], equinoctial[2], angle_in, angle_out)
    return equinoctial.at[5].set(lon)


def cartesian_to_elements(pv: ArrayLike, gm: float,
                          orbit_type: OrbitType,
                          angle_type: PositionAngleType = PositionAngleType.MEAN) -> Array:
    """Convert a Cartesian state to the requested element set.

    Args:
        pv: Position and velocity, shape ``(6,)``. Units: *m*, *m/s*
        gm: Gravitational parameter. Units: *m^3/s^2*
        orbit_type: Target parameterisation.
        angle_type: Kind of the fast angle. Ignored for ``CARTESIAN``.

    Returns:
        Array: Element vector, shape ``(6,)``.

    Examples:
        ```python
        from covjax.orbits import OrbitType, PositionAngleType, cartesian_to_elements
        kep = cartesian_to_elements(pv, 3.986004415e14, OrbitType.KEPLERIAN,
                                    PositionAngleType.MEAN)
        ```
    """
    pv = jnp.asarray(pv, dtype=get_dtype())
    if orbit_type == OrbitType.CARTESIAN:
        return pv
    equinoctial = _with_longitude(cartesian_to_equinoctial(pv, gm), _TRUE, angle_type)
    if orbit_type == OrbitType.EQUINOCTIAL:
        return equinoctial
    if orbit_type == OrbitType.KEPLERIAN:
        return equinoctial_to_keplerian(equinoctial)
    return equinoctial_to_circular(equinoctial)


def elements_to_cartesian(elements: ArrayLike, gm: float,
                          orbit_type: OrbitType,
                          angle_type: PositionAngleType = PositionAngleType.MEAN) -> Array:
    """Convert an element vector to a Cartesian state.

    Args:
        elements: Element vector, shape ``(6,)``.
        gm: Gravitational parameter. Units: *m^3/s^2*
        orbit_type: Parameterisation of ``elements``.
        angle_type: Kind of the fast angle. Ignored for ``CARTESIAN``.

    Returns:
        Array: Position and velocity, shape ``(6,)``.
    """
    elements = jnp.asarray(elements, dtype=get_dtype())
    if orbit_type == OrbitType.CARTESIAN:
        return elements
    if orbit_type == OrbitType.KEPLERIAN:
        equinoctial = keplerian_to_equinoctial(elements)
    elif orbit_type == OrbitType.CIRCULAR:
        equinoctial = circular_to_equinoctial(elements)
    else:
        equinoctial = elements
    return equinoctial_to_cartesian(_with_longitude(equinoctial, angle_type, _ECCENTRIC), gm)


def convert_elements(elements: ArrayLike, gm: float,
                     type_in: OrbitType, angle_in: PositionAngleType,
                     type_out: OrbitType, angle_out: PositionAngleType) -> Array:
    """Convert an element vector between parameterisations through Cartesian."""
    return cartesian_to_elements(elements_to_cartesian(elements, gm, type_in, angle_in),
                                 gm, type_out, angle_out)

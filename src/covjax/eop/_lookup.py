"""Time interpolation of :class:`~covjax.eop.EOPData` columns."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from covjax.eop._types import EOPData, EOPExtrapolation

_HOLD = EOPExtrapolation.HOLD


def _sample(eop: EOPData, column: Array, mjd: ArrayLike,
            extrapolation: EOPExtrapolation) -> Array:
    mjd = jnp.asarray(mjd, dtype=eop.mjd.dtype)
    # jnp.interp holds the end values outside the table
    value = jnp.interp(mjd, eop.mjd, column)
    if extrapolation is EOPExtrapolation.ZERO:
        inside = (mjd >= eop.mjd_min) & (mjd <= eop.mjd_max)
        value = jnp.where(inside, value, 0.0)
    return value


def get_ut1_utc(eop: EOPData, mjd: ArrayLike,
                extrapolation: EOPExtrapolation = _HOLD) -> Array:
    """UT1 - UTC at a UTC Modified Julian Date, in seconds."""
    return _sample(eop, eop.ut1_utc, mjd, extrapolation)


def get_pm(eop: EOPData, mjd: ArrayLike,
           extrapolation: EOPExtrapolation = _HOLD) -> tuple[Array, Array]:
    """Polar motion at a UTC Modified Julian Date.

    Args:
        eop (EOPData): Earth orientation table.
        mjd (ArrayLike): Query date.
        extrapolation (EOPExtrapolation): Behaviour outside the table.

    Returns:
        tuple[Array, Array]: ``(pm_x, pm_y)``. Units: *rad*
    """
    return (_sample(eop, eop.pm_x, mjd, extrapolation),
            _sample(eop, eop.pm_y, mjd, extrapolation))


def get_lod(eop: EOPData, mjd: ArrayLike,
            extrapolation: EOPExtrapolation = _HOLD) -> Array:
    """Excess length of day in seconds; unknown samples count as zero."""
    return jnp.nan_to_num(_sample(eop, eop.lod, mjd, extrapolation), nan=0.0)

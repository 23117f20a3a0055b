"""Builders of :class:`~covjax.eop.EOPData` tables.

Reading Earth orientation files is left to the application, which hands
the columns to :func:`eop_from_arrays`.
"""

from __future__ import annotations

import logging

import jax.numpy as jnp
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.eop._types import EOPData

logger = logging.getLogger(__name__)


def eop_from_arrays(mjd: ArrayLike, pm_x: ArrayLike, pm_y: ArrayLike,
                    ut1_utc: ArrayLike, lod: ArrayLike | None = None) -> EOPData:
    """Build a table from sampled Earth orientation parameters.

    Args:
        mjd (ArrayLike): UTC Modified Julian Dates, strictly increasing.
        pm_x (ArrayLike): Polar motion along x. Units: *rad*
        pm_y (ArrayLike): Polar motion along y. Units: *rad*
        ut1_utc (ArrayLike): UT1 - UTC. Units: *s*
        lod (ArrayLike | None): Excess length of day, ``NaN`` where unknown.
            ``None`` means unknown everywhere. Units: *s*

    Returns:
        EOPData: Table ready for lookups.

    Raises:
        ValueError: If the columns are empty or of different lengths, or if
            the dates do not increase.

    Examples:
        ```python
        from covjax.eop import eop_from_arrays
        from covjax.frames import itrf
        eop = eop_from_arrays([51893.0, 51894.0], [2.4e-7, 2.5e-7],
                              [1.5e-6, 1.5e-6], [0.10, 0.11])
        frame = itrf(eop)
        ```
    """
    dtype = get_dtype()
    mjd = jnp.atleast_1d(jnp.asarray(mjd, dtype=dtype))
    if lod is None:
        lod = jnp.full(mjd.shape, jnp.nan, dtype=dtype)
    columns = [jnp.atleast_1d(jnp.asarray(c, dtype=dtype)) for c in (pm_x, pm_y, ut1_utc, lod)]

    if mjd.ndim != 1 or mjd.shape[0] == 0:
        raise ValueError("EOP dates must be a non-empty 1-D array")
    if any(c.shape != mjd.shape for c in columns):
        raise ValueError(f"EOP columns must all have {mjd.shape[0]} samples")
    if bool(jnp.any(jnp.diff(mjd) <= 0.0)):
        raise ValueError("EOP dates must be strictly increasing")

    logger.debug("EOP table with %d samples, MJD %.1f to %.1f",
                 mjd.shape[0], float(mjd[0]), float(mjd[-1]))
    return EOPData(mjd, *columns)


def static_eop(pm_x: float = 0.0, pm_y: float = 0.0, ut1_utc: float = 0.0,
               lod: float = 0.0, mjd_min: float = 0.0,
               mjd_max: float = 99999.0) -> EOPData:
    """Table holding the same values between ``mjd_min`` and ``mjd_max``.

    Examples:
        ```python
        from covjax.eop import static_eop, get_ut1_utc
        get_ut1_utc(static_eop(ut1_utc=0.1), 59569.0)  # 0.1
        ```
    """
    return eop_from_arrays([mjd_min, mjd_max], [pm_x, pm_x], [pm_y, pm_y],
                           [ut1_utc, ut1_utc], [lod, lod])


def zero_eop() -> EOPData:
    """Table with every correction set to zero."""
    return static_eop()

"""Calendar arithmetic and the UTC to TT offset.

Calendar conversions work on day numbers (the Modified Julian Date of 0h
UTC) with integer arithmetic valid for any proleptic Gregorian date.
The offset to Terrestrial Time is ``TT - UTC = (TAI - UTC) + 32.184 s``,
where TAI - UTC counts the leap seconds introduced since 1972.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from .config import get_dtype

TT_TAI = 32.184
"""TT - TAI. Units: *s*"""

# Days on which a leap second took effect (0h UTC). TAI - UTC was 10 s on
# 1972-01-01 and grows by one second at each later entry.
_LEAP_SECOND_DATES = (
    (1972, 1), (1972, 7), (1973, 1), (1974, 1), (1975, 1), (1976, 1),
    (1977, 1), (1978, 1), (1979, 1), (1980, 1), (1981, 7), (1982, 7),
    (1983, 7), (1985, 7), (1988, 1), (1990, 1), (1991, 1), (1992, 7),
    (1993, 7), (1994, 7), (1996, 1), (1997, 7), (1999, 1), (2006, 1),
    (2009, 1), (2012, 7), (2015, 7), (2017, 1),
)


def day_number(year: int, month: int, day: int) -> int:
    """Modified Julian Date of 0h UTC on a calendar day.

    Args:
        year (int): Year.
        month (int): Month, 1 to 12.
        day (int): Day of month.

    Returns:
        int: Day number, 51544 for 2000-01-01.

    References:

        1. H. F. Fliegel and T. C. Van Flandern, *A Machine Algorithm for
           Processing Calendar Dates*, Communications of the ACM 11, 1968.
    """
    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    julian_day = day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045
    return julian_day - 2400001


def calendar_date(number: int) -> tuple[int, int, int]:
    """Inverse of :func:`day_number`.

    Args:
        number (int): Modified Julian Date of 0h UTC.

    Returns:
        tuple[int, int, int]: ``(year, month, day)``.
    """
    julian_day = number + 2400001
    f = julian_day + 1401 + (((4 * julian_day + 274277) // 146097) * 3) // 4 - 38
    e = 4 * f + 3
    h = 5 * ((e % 1461) // 4) + 2
    day = (h % 153) // 5 + 1
    month = (h // 153 + 2) % 12 + 1
    year = e // 1461 - 4716 + (14 - month) // 12
    return year, month, day


_LEAP_SECOND_MJD = tuple(day_number(year, month, 1) for year, month in _LEAP_SECOND_DATES)


def leap_seconds(mjd: ArrayLike) -> jax.Array:
    """TAI - UTC at a UTC Modified Julian Date, in seconds.

    Dates before 1972 read 10 s; dates after the last leap second hold
    the latest value.
    """
    dtype = get_dtype()
    mjd = jnp.asarray(mjd, dtype=dtype)
    steps = jnp.asarray(_LEAP_SECOND_MJD, dtype=dtype)
    count = jnp.sum(mjd[..., None] >= steps, axis=-1)
    return (9.0 + jnp.maximum(count, 1)).astype(dtype)


def tt_minus_utc(mjd: ArrayLike) -> jax.Array:
    """TT - UTC at a UTC Modified Julian Date, in seconds."""
    return leap_seconds(mjd) + TT_TAI

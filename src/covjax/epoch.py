"""UTC instants.

An :class:`Epoch` keeps a UTC instant as three pytree leaves: the day
number (Modified Julian Date of 0h, ``int32``), the seconds elapsed in
that day and the rounding error left by the last addition.  Additions use
compensated (Kahan) summation, so long runs of small steps, as done by
propagators and interpolators, do not drift.  Differences and
comparisons resolve well below a microsecond in ``float64`` mode.
"""

from __future__ import annotations

import re

import jax
import jax.numpy as jnp

from .config import get_dtype, get_epoch_eq_tolerance
from .constants import JD_MJD_OFFSET, JULIAN_CENTURY
from .time import calendar_date, day_number, tt_minus_utc

_DAY = 86400.0
_J2000_DAY = 51544
_J2000_SECONDS = 43200.0

# Greenwich mean sidereal time (IAU 1982) in seconds of time, as a
# polynomial in UT1 Julian centuries since J2000.0, highest power first
_GMST_1982 = (-6.2e-6, 0.093104, 876600.0 * 3600.0 + 8640184.812866, 67310.54841)

_ISO_8601 = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})(?:T(\d{2}):(\d{2}):(\d{2}(?:\.\d+)?)Z?)?$'
)


def _compare(test):
    # Epoch comparison on the elapsed seconds, blurred by the dtype tolerance
    def method(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return test(self - other, get_epoch_eq_tolerance())
    return method


class Epoch:
    """A UTC instant.

    ``epoch + seconds`` and ``epoch - seconds`` give new epochs,
    ``epoch_a - epoch_b`` the elapsed seconds.  Two epochs compare equal
    when they are closer than :func:`covjax.config.get_epoch_eq_tolerance`.

    Args:
        *args: ``(year, month, day[, hour, minute, second])``, an ISO 8601
            string such as ``"2018-01-01T12:00:00.5Z"``, or another epoch.

    Raises:
        ValueError: If the arguments match none of these forms.
    """

    __slots__ = ('_day', '_seconds', '_error')

    def __init__(self, *args: int | float | str | Epoch) -> None:
        if len(args) == 1 and isinstance(args[0], Epoch):
            other = args[0]
            self._day, self._seconds, self._error = other._day, other._seconds, other._error
            return
        if len(args) == 1 and isinstance(args[0], str):
            args = _parse_iso(args[0])
        elif not 3 <= len(args) <= 6:
            raise ValueError(f"Cannot build an Epoch from {args!r}")

        year, month, day, *clock = args
        hour, minute, second = (list(clock) + [0, 0, 0.0][len(clock):])
        dtype = get_dtype()
        seconds = dtype(hour * 3600.0 + minute * 60.0 + second)
        self._day, self._seconds = _normalized(jnp.int32(day_number(year, month, day)), seconds)
        self._error = dtype(0.0)

    @classmethod
    def _from_parts(cls, day, seconds, error) -> Epoch:
        obj = object.__new__(cls)
        obj._day = day
        obj._seconds = seconds
        obj._error = error
        return obj

    def _seconds_of_day(self):
        return self._seconds - self._error

    # ──────────────────────────────────────────────
    # Arithmetic
    # ──────────────────────────────────────────────

    def __add__(self, dt) -> Epoch:
        dt = jnp.asarray(dt, dtype=get_dtype())
        corrected = dt - self._error
        total = self._seconds + corrected
        error = (total - self._seconds) - corrected
        day, seconds = _normalized(self._day, total)
        return Epoch._from_parts(day, seconds, error)

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Epoch):
            return ((self._day - other._day) * _DAY
                    + (self._seconds_of_day() - other._seconds_of_day()))
        return self + (-jnp.asarray(other, dtype=get_dtype()))

    __eq__ = _compare(lambda delta, tol: jnp.abs(delta) < tol)
    __ne__ = _compare(lambda delta, tol: jnp.abs(delta) >= tol)
    __lt__ = _compare(lambda delta, tol: delta < -tol)
    __le__ = _compare(lambda delta, tol: delta < tol)
    __gt__ = _compare(lambda delta, tol: delta > tol)
    __ge__ = _compare(lambda delta, tol: delta > -tol)

    def __hash__(self):
        return hash((int(self._day), round(float(self._seconds_of_day()), 3)))

    # ──────────────────────────────────────────────
    # Time arguments
    # ──────────────────────────────────────────────

    def caldate(self) -> tuple[int, int, int, int, int, float]:
        """UTC calendar date and time of day. Not traceable.

        Returns:
            tuple: ``(year, month, day, hour, minute, second)``, with a
                fractional second.
        """
        year, month, day = calendar_date(int(self._day))
        seconds = float(self._seconds_of_day())
        hour, seconds = divmod(seconds, 3600.0)
        minute, second = divmod(seconds, 60.0)
        return year, month, day, int(hour), int(minute), second

    def mjd(self) -> jax.Array:
        """UTC Modified Julian Date."""
        dtype = get_dtype()
        return dtype(self._day) + self._seconds_of_day() / dtype(_DAY)

    def jd(self) -> jax.Array:
        """UTC Julian Date."""
        return self.mjd() + get_dtype()(JD_MJD_OFFSET)

    def _centuries_since_j2000(self, offset):
        dtype = get_dtype()
        days = dtype(self._day - _J2000_DAY)
        seconds = self._seconds_of_day() - _J2000_SECONDS + offset
        return (days + seconds / dtype(_DAY)) / dtype(JULIAN_CENTURY)

    def tt_centuries(self) -> jax.Array:
        """Julian centuries of Terrestrial Time since J2000.0.

        Time argument of the precession and nutation models.
        """
        return self._centuries_since_j2000(tt_minus_utc(self.mjd()))

    def gmst(self, ut1_utc: float = 0.0, use_degrees: bool = False) -> jax.Array:
        """Greenwich mean sidereal time, IAU 1982 model.

        Args:
            ut1_utc (float): UT1 - UTC. Units: *s*. Default: 0.0
            use_degrees (bool): Return degrees instead of radians.

        Returns:
            jax.Array: Angle in ``[0, 2pi)``.

        References:

            1. D. Vallado, *Fundamentals of Astrodynamics and Applications
               (4th Ed.)*, 2013, eq. 3-47.
        """
        t_ut1 = self._centuries_since_j2000(ut1_utc)
        seconds_of_time = jnp.polyval(jnp.asarray(_GMST_1982, dtype=get_dtype()), t_ut1)
        angle = jnp.mod(seconds_of_time * (2.0 * jnp.pi / _DAY), 2.0 * jnp.pi)
        return jnp.rad2deg(angle) if use_degrees else angle

    def __str__(self):
        year, month, day, hour, minute, second = self.caldate()
        return f'{year:04d}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:{second:06.3f}Z'

    def __repr__(self):
        return f"Epoch('{self}')"


def _normalized(day, seconds):
    shift = jnp.floor(seconds / _DAY)
    return day + shift.astype(jnp.int32), seconds - shift * _DAY


def _parse_iso(text: str) -> tuple:
    match = _ISO_8601.match(text)
    if match is None:
        raise ValueError(f'Invalid Epoch string: "{text}" is not ISO 8601 compliant')
    year, month, day, hour, minute, second = match.groups()
    if hour is None:
        return int(year), int(month), int(day)
    return int(year), int(month), int(day), int(hour), int(minute), float(second)


jax.tree_util.register_pytree_node(
    Epoch,
    lambda e: ((e._day, e._seconds, e._error), None),
    lambda _, leaves: Epoch._from_parts(*leaves),
)

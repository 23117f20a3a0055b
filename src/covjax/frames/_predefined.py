"""Predefined Earth-centred frames.

    GCRF -> EME2000 -> MOD -> TOD -> TEME -> PEF -> ITRF

``GCRF`` to ``TEME`` are pseudo-inertial; ``PEF`` and ``ITRF`` rotate
with the Earth.  The rotating frames take an optional
:class:`~covjax.eop.EOPData` table; without one they use zero Earth
orientation parameters.
"""

from __future__ import annotations

import jax.numpy as jnp

from covjax.config import get_dtype
from covjax.constants import OMEGA_EARTH
from covjax.eop import EOPData, get_lod, get_pm, get_ut1_utc
from covjax.frames import _models
from covjax.frames._frame import Frame
from covjax.frames._transform import Transform
from covjax.rotations import Rz

_GCRF = Frame("GCRF")

_EME2000 = Frame(
    "EME2000", _GCRF,
    lambda epoch: Transform.from_rotation(_models.bias_matrix()),
)

_MOD = Frame(
    "MOD", _EME2000,
    lambda epoch: Transform.from_rotation(_models.precession_matrix(epoch.tt_centuries())),
)

_TOD = Frame(
    "TOD", _MOD,
    lambda epoch: Transform.from_rotation(_models.nutation_matrix(epoch.tt_centuries())),
)

_TEME = Frame(
    "TEME", _TOD,
    lambda epoch: Transform.from_rotation(Rz(_models.equation_of_equinoxes(epoch.tt_centuries()))),
)


def _pef_provider(eop: EOPData | None):
    def provider(epoch):
        ut1_utc = 0.0
        lod = 0.0
        if eop is not None:
            mjd = epoch.mjd()
            ut1_utc = get_ut1_utc(eop, mjd)
            lod = get_lod(eop, mjd)
        rate = OMEGA_EARTH * (1.0 - lod / 86400.0)
        omega = jnp.array([0.0, 0.0, rate], dtype=get_dtype())
        return Transform.from_rotation(Rz(epoch.gmst(ut1_utc)), omega)
    return provider


def _itrf_provider(eop: EOPData | None):
    def provider(epoch):
        if eop is None:
            return Transform.identity()
        pm_x, pm_y = get_pm(eop, epoch.mjd())
        return Transform.from_rotation(_models.polar_motion_matrix(pm_x, pm_y))
    return provider


_PEF = Frame("PEF", _TEME, _pef_provider(None), pseudo_inertial=False)
_ITRF = Frame("ITRF", _PEF, _itrf_provider(None), pseudo_inertial=False)


def gcrf() -> Frame:
    """Geocentric Celestial Reference Frame, root of the tree."""
    return _GCRF


def eme2000() -> Frame:
    """Mean equator and equinox of J2000.0."""
    return _EME2000


def mod() -> Frame:
    """Mean equator and equinox of date (IAU-1976 precession)."""
    return _MOD


def tod() -> Frame:
    """True equator and equinox of date (IAU-1980 nutation)."""
    return _TOD


def teme() -> Frame:
    """True equator, mean equinox (the frame of SGP4 outputs)."""
    return _TEME


def pef(eop: EOPData | None = None) -> Frame:
    """Pseudo Earth-fixed frame.

    Args:
        eop (EOPData | None): Earth orientation table. ``None`` returns the
            shared frame with zero corrections; otherwise a new frame is
            built, so keep a reference to it.

    Returns:
        Frame: Non-inertial PEF frame.
    """
    if eop is None:
        return _PEF
    return Frame("PEF", _TEME, _pef_provider(eop), pseudo_inertial=False)


def itrf(eop: EOPData | None = None) -> Frame:
    """International Terrestrial Reference Frame.

    Args:
        eop (EOPData | None): Earth orientation table, used both for the
            Earth rotation angle and polar motion. ``None`` returns the
            shared frame with zero corrections.

    Returns:
        Frame: Non-inertial ITRF frame.
    """
    if eop is None:
        return _ITRF
    return Frame("ITRF", pef(eop), _itrf_provider(eop), pseudo_inertial=False)

"""Physical and conversion constants.

Earth values are those of the GGM05S gravity field, except the rotation
rate (Vallado, *Fundamentals of Astrodynamics and Applications*, 4th ed.,
p. 222).
"""

import math

DEG2RAD = math.pi / 180.0
"""Degrees to radians. Units: *rad/deg*"""

AS2RAD = DEG2RAD / 3600.0
"""Arcseconds to radians. Units: *rad/arcsec*"""

JD_MJD_OFFSET = 2400000.5
"""Julian Date of MJD 0. Units: *day*"""

JULIAN_CENTURY = 36525.0
"""Length of a Julian century. Units: *day*"""

R_EARTH = 6.3781363e6
"""Equatorial radius. Units: *m*"""

GM_EARTH = 3.986004415e14
"""Gravitational parameter. Units: *m^3/s^2*"""

J2_EARTH = 1.0826358191967e-3
"""Unnormalised second zonal harmonic."""

OMEGA_EARTH = 7.292115146706979e-5
"""Mean rotation rate. Units: *rad/s*"""

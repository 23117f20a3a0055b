"""Earth orientation tables.

The rotating frames read three quantities from an :class:`EOPData`:
UT1-UTC and the excess length of day for ``PEF``, polar motion for
``ITRF``.  The table is a NamedTuple, hence a pytree that can be passed
through ``jax.jit``.
"""

from __future__ import annotations

import enum
from typing import NamedTuple

from jax import Array


class EOPData(NamedTuple):
    """Earth orientation parameters sampled at increasing dates.

    Attributes:
        mjd: UTC Modified Julian Dates of the samples, strictly increasing.
        pm_x: Polar motion along x. Units: *rad*
        pm_y: Polar motion along y. Units: *rad*
        ut1_utc: UT1 - UTC. Units: *s*
        lod: Excess length of day, ``NaN`` where unknown. Units: *s*
    """

    mjd: Array
    pm_x: Array
    pm_y: Array
    ut1_utc: Array
    lod: Array

    @property
    def mjd_min(self) -> Array:
        return self.mjd[0]

    @property
    def mjd_max(self) -> Array:
        return self.mjd[-1]


class EOPExtrapolation(enum.Enum):
    """What a query returns before the first or after the last sample.

    Attributes:
        HOLD: The closest sample.
        ZERO: Zero, as if no correction were known.
    """

    HOLD = "hold"
    ZERO = "zero"

"""Earth Orientation Parameters (EOP) used by the rotating frames.

Typical usage::

    from covjax.eop import static_eop, get_ut1_utc
    eop = static_eop(ut1_utc=-0.2)
    ut1_utc = get_ut1_utc(eop, 59569.5)
"""

from covjax.eop._lookup import get_lod, get_pm, get_ut1_utc
from covjax.eop._providers import eop_from_arrays, static_eop, zero_eop
from covjax.eop._types import EOPData, EOPExtrapolation

__all__ = [
    "EOPData",
    "EOPExtrapolation",
    "eop_from_arrays",
    "get_lod",
    "get_pm",
    "get_ut1_utc",
    "static_eop",
    "zero_eop",
]

"""Reference frames and kinematic transforms.

Typical usage::

    from covjax.frames import gcrf, itrf
    transform = gcrf().transform_to(itrf(), epoch)
    pv_itrf = transform.transform_pv(pv_gcrf)
"""

from covjax.frames._frame import Frame
from covjax.frames._predefined import eme2000, gcrf, itrf, mod, pef, teme, tod
from covjax.frames._transform import DerivativesFilter, Transform

__all__ = [
    "DerivativesFilter",
    "Frame",
    "Transform",
    "eme2000",
    "gcrf",
    "itrf",
    "mod",
    "pef",
    "teme",
    "tod",
]

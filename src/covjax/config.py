"""Numerical settings shared by the whole package.

covjax computes in ``jnp.float64`` by default. A covariance holds
position variances (m^2) next to velocity variances (m^2/s^2), many
orders of magnitude apart, and its congruence transforms lose most of
their digits in single precision.  :func:`set_dtype` selects another
float type; it must run before anything is traced by ``jax.jit``, since
the dtype read during tracing is compiled into the program.

Epoch day numbers stay ``jnp.int32`` whatever the float type.

The module also holds the defaults of the time interpolators.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

# Float type -> smallest separation, in seconds, at which two epochs differ
_EPOCH_RESOLUTION = {
    jnp.float64: 1e-9,
    jnp.float32: 1e-3,
    jnp.bfloat16: 0.1,
    jnp.float16: 0.1,
}

jax.config.update("jax_enable_x64", True)

_dtype = jnp.float64

DEFAULT_INTERPOLATION_POINTS = 2
"""Number of samples used by time interpolators."""

DEFAULT_EXTRAPOLATION_THRESHOLD = 0.0
"""Distance past the sample span a time interpolator accepts. Units: *s*"""

DEFAULT_DATE_EQUALITY_THRESHOLD = 1e-9
"""Largest date mismatch between the halves of a time-stamped pair. Units: *s*"""


def set_dtype(dtype) -> None:
    """Select the float type of every array covjax creates.

    Choosing ``jnp.float64`` also switches on JAX's ``jax_enable_x64``.

    Args:
        dtype: ``jnp.float64``, ``jnp.float32``, ``jnp.bfloat16`` or
            ``jnp.float16``.

    Raises:
        ValueError: For any other value.
    """
    global _dtype
    if dtype not in _EPOCH_RESOLUTION:
        supported = ", ".join(jnp.dtype(t).name for t in _EPOCH_RESOLUTION)
        raise ValueError(f"Unsupported dtype {dtype!r}, expected one of {supported}")
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """Float type selected by :func:`set_dtype` (``jnp.float64`` by default)."""
    return _dtype


def get_epoch_eq_tolerance() -> float:
    """Separation below which two epochs compare equal, in seconds.

    1e-9 s in ``float64``, 1e-3 s in ``float32`` and 0.1 s in the half
    precision types.
    """
    return _EPOCH_RESOLUTION[_dtype]

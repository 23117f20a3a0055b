import jax.numpy as jnp
import pytest

from covjax.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    Tests that switch to another dtype (test_config.py) would otherwise leak
    their setting into later tests.
    """
    set_dtype(jnp.float64)

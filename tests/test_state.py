"""Tests for spacecraft states and absolute coordinates."""

import jax.numpy as jnp
import pytest

from covjax.epoch import Epoch
from covjax.errors import DimensionMismatchError
from covjax.frames import gcrf, itrf
from covjax.orbits import Orbit
from covjax.propagation import AbsolutePVCoordinates, SpacecraftState

_EPOCH = Epoch(2000, 12, 15, 16, 58, 50.208)
_PV = jnp.array([-605792.21660, -5870229.51108, 3493053.19896,
                 -1568.25429, -3702.34891, -6479.48395])


# ──────────────────────────────────────────────
# Absolute coordinates
# ──────────────────────────────────────────────

class TestAbsolutePVCoordinates:
    def test_default_acceleration(self):
        coordinates = AbsolutePVCoordinates(_PV, _EPOCH, gcrf())
        assert jnp.array_equal(coordinates.acceleration, jnp.zeros(3))
        assert coordinates.pva().shape == (9,)

    def test_pv_in_same_frame(self):
        coordinates = AbsolutePVCoordinates(_PV, _EPOCH, gcrf())
        assert coordinates.pv_in(gcrf()) is coordinates.pv

    def test_pv_in_round_trip(self):
        coordinates = AbsolutePVCoordinates(_PV, _EPOCH, gcrf())
        fixed = AbsolutePVCoordinates(coordinates.pv_in(itrf()), _EPOCH, itrf())
        assert jnp.allclose(fixed.pv_in(gcrf()), _PV, rtol=0.0, atol=1e-6)

    def test_shifted_by_taylor(self):
        acceleration = jnp.array([1.0, -2.0, 0.5])
        coordinates = AbsolutePVCoordinates(_PV, _EPOCH, gcrf(), acceleration)
        shifted = coordinates.shifted_by(10.0)
        assert jnp.allclose(shifted.pv[:3], _PV[:3] + 10.0 * _PV[3:] + 50.0 * acceleration)
        assert jnp.allclose(shifted.pv[3:], _PV[3:] + 10.0 * acceleration)
        assert shifted.epoch == _EPOCH + 10.0


# ──────────────────────────────────────────────
# Spacecraft state
# ──────────────────────────────────────────────

class TestSpacecraftState:
    def test_orbit_defined(self):
        state = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()))
        assert state.is_orbit_defined
        assert state.absolute_pv is None
        assert state.mass == pytest.approx(1000.0)
        assert state.frame is gcrf()
        assert state.epoch == _EPOCH
        assert jnp.array_equal(state.pv, _PV)

    def test_absolute_pv_defined(self):
        state = SpacecraftState(AbsolutePVCoordinates(_PV, _EPOCH, itrf()), mass=250.0)
        assert not state.is_orbit_defined
        assert state.orbit is None
        assert state.frame is itrf()
        assert state.mass == pytest.approx(250.0)

    def test_invalid_definition(self):
        with pytest.raises(TypeError):
            SpacecraftState(_PV)

    def test_add_additional_state_is_immutable(self):
        state = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()))
        updated = state.add_additional_state("drag", 2.2)
        assert not state.has_additional_state("drag")
        assert updated.has_additional_state("drag")
        assert updated.additional_state("drag").shape == (1,)
        assert updated.additional_state("drag")[0] == pytest.approx(2.2)

    def test_unknown_additional_state(self):
        state = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()))
        with pytest.raises(ValueError, match="unknown additional state"):
            state.additional_state("missing")

    def test_additional_states_read_only(self):
        state = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()), additional_states={"a": [1.0]})
        with pytest.raises(TypeError):
            state.additional_states["b"] = jnp.ones(1)

    def test_compatible_additional_states(self):
        a = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()), additional_states={"x": [1.0, 2.0]})
        b = SpacecraftState(Orbit(_PV, _EPOCH + 60.0, gcrf()), additional_states={"x": [3.0, 4.0]})
        a.ensure_compatible_additional_states(b)

    def test_missing_additional_state(self):
        a = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()), additional_states={"x": [1.0]})
        b = SpacecraftState(Orbit(_PV, _EPOCH + 60.0, gcrf()))
        with pytest.raises(DimensionMismatchError):
            a.ensure_compatible_additional_states(b)

    def test_additional_state_size_mismatch(self):
        a = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()), additional_states={"x": [1.0]})
        b = SpacecraftState(Orbit(_PV, _EPOCH + 60.0, gcrf()), additional_states={"x": [1.0, 2.0]})
        with pytest.raises(DimensionMismatchError) as info:
            a.ensure_compatible_additional_states(b)
        assert info.value.expected == 1
        assert info.value.actual == 2

    def test_shifted_by_keeps_mass_and_additional_states(self):
        state = SpacecraftState(Orbit(_PV, _EPOCH, gcrf()), mass=500.0,
                                additional_states={"x": [1.0]})
        shifted = state.shifted_by(120.0)
        assert shifted.epoch == _EPOCH + 120.0
        assert shifted.mass == pytest.approx(500.0)
        assert jnp.array_equal(shifted.additional_state("x"), jnp.array([1.0]))
        assert jnp.allclose(shifted.pv, state.orbit.shifted_by(120.0).pv)

"""Tests for the orbit dynamics and variational equations."""

import jax
import jax.numpy as jnp
import pytest

from covjax.constants import GM_EARTH, J2_EARTH, R_EARTH
from covjax.integrators import rk4_step
from covjax.propagation import (
    DynamicsConfig,
    accel_j2,
    accel_point_mass,
    create_orbit_dynamics,
    create_variational_dynamics,
)

_PV = jnp.array([-605792.21660, -5870229.51108, 3493053.19896,
                 -1568.25429, -3702.34891, -6479.48395])


class TestAccelerations:
    def test_point_mass_magnitude(self):
        r = jnp.array([R_EARTH, 0.0, 0.0])
        a = accel_point_mass(r, GM_EARTH)
        assert float(a[0]) == pytest.approx(-GM_EARTH / R_EARTH**2, rel=1e-14)
        assert jnp.allclose(a[1:], 0.0)

    def test_j2_equatorial(self):
        # On the equator J2 adds -1.5 J2 mu Re^2 / r^4 along the radius
        r = jnp.array([R_EARTH + 500e3, 0.0, 0.0])
        a = accel_j2(r, GM_EARTH, J2_EARTH, R_EARTH)
        expected = -1.5 * J2_EARTH * GM_EARTH * R_EARTH**2 / r[0] ** 4
        assert float(a[0]) == pytest.approx(float(expected), rel=1e-12)
        assert float(a[2]) == 0.0

    def test_j2_polar(self):
        r = jnp.array([0.0, 0.0, R_EARTH + 500e3])
        a = accel_j2(r, GM_EARTH, J2_EARTH, R_EARTH)
        expected = 3.0 * J2_EARTH * GM_EARTH * R_EARTH**2 / r[2] ** 4
        assert float(a[2]) == pytest.approx(float(expected), rel=1e-12)


class TestDynamicsFactory:
    def test_default_is_two_body(self):
        dynamics = create_orbit_dynamics()
        derivative = dynamics(0.0, _PV)
        assert jnp.allclose(derivative[:3], _PV[3:])
        assert jnp.allclose(derivative[3:], accel_point_mass(_PV[:3], GM_EARTH))

    def test_j2_changes_acceleration(self):
        two_body = create_orbit_dynamics(DynamicsConfig.two_body())(0.0, _PV)
        with_j2 = create_orbit_dynamics(DynamicsConfig(j2=True))(0.0, _PV)
        assert not jnp.allclose(two_body[3:], with_j2[3:], rtol=1e-6, atol=0.0)

    def test_config_is_hashable(self):
        assert hash(DynamicsConfig(j2=True)) == hash(DynamicsConfig(j2=True))


class TestVariational:
    def test_identity_stm_derivative(self):
        dynamics = create_orbit_dynamics()
        variational = create_variational_dynamics(dynamics)
        y = jnp.concatenate([_PV, jnp.ravel(jnp.eye(6))])
        derivative = variational(0.0, y)
        a_matrix = jax.jacfwd(lambda s: dynamics(0.0, s))(_PV)
        assert derivative.shape == (42,)
        assert jnp.allclose(jnp.reshape(derivative[6:], (6, 6)), a_matrix)

    def test_stm_matches_jacobian_of_step(self):
        dynamics = create_orbit_dynamics(DynamicsConfig(j2=True))
        variational = create_variational_dynamics(dynamics)
        y = jnp.concatenate([_PV, jnp.ravel(jnp.eye(6))])
        stm = jnp.reshape(rk4_step(variational, 0.0, y, 30.0)[6:], (6, 6))
        expected = jax.jacfwd(lambda s: rk4_step(dynamics, 0.0, s, 30.0))(_PV)
        assert jnp.allclose(stm, expected, rtol=1e-6, atol=1e-12)

"""Tests for StateCovariance conversions and Keplerian shift.

Reference matrices come from D. Vallado, *Covariance Transformations for
Satellite Flight Dynamics Operations* (2003): the initial covariance of
p.14 expressed in RSW/NTW and MOD.
"""

import jax
import jax.numpy as jnp
import pytest

from covjax.constants import GM_EARTH, OMEGA_EARTH
from covjax.covariance import StateCovariance, secular_transition_matrix
from covjax.epoch import Epoch
from covjax.errors import DimensionMismatchError, IncompatibleRepresentationError
from covjax.frames import DerivativesFilter, eme2000, gcrf, itrf, mod, pef, teme
from covjax.lof import LOFType
from covjax.orbits import Orbit, OrbitType, PositionAngleType
from covjax.rotations import Rz, skew

_VALLADO_THRESHOLD = 1e-6
_ROTATION_THRESHOLD = 1e-20
_ROUND_TRIP_THRESHOLD = 1e-14
_MULTI_HOP_THRESHOLD = 1e-12
_VALLADO_EPOCH = Epoch(2000, 12, 15, 16, 58, 50.208)
_VALLADO_PV = jnp.array([-605792.21660, -5870229.51108, 3493053.19896,
                         -1568.25429, -3702.34891, -6479.48395])
_J2000 = Epoch(2000, 1, 1, 12, 0, 0.0)
_MU_SIMPLE = 398600e9
_WGS84_MU = 3.986004418e14


def _vallado_covariance():
    return jnp.array([
        [1.0, 1e-2, 1e-2, 1e-4, 1e-4, 1e-4],
        [1e-2, 1.0, 1e-2, 1e-4, 1e-4, 1e-4],
        [1e-2, 1e-2, 1.0, 1e-4, 1e-4, 1e-4],
        [1e-4, 1e-4, 1e-4, 1e-6, 1e-6, 1e-6],
        [1e-4, 1e-4, 1e-4, 1e-6, 1e-6, 1e-6],
        [1e-4, 1e-4, 1e-4, 1e-6, 1e-6, 1e-6],
    ])


def _vallado_orbit():
    return Orbit(_VALLADO_PV, _VALLADO_EPOCH, gcrf(), GM_EARTH)


def _leo_orbit():
    pv = jnp.array([7526993.581890527, -9646310.10026971, 1464110.4928112086,
                    3033.79456099698, 1715.265069098717, -4447.658745923895])
    return Orbit(pv, Epoch("2016-02-13T16:00:00.000"), eme2000(), _WGS84_MU)


def _leo_covariance():
    return jnp.array([
        [8.651816029e+01, 5.689987127e+01, -2.763870764e+01, -2.435617201e-02, 2.058274137e-02, -5.872883051e-03],
        [5.689987127e+01, 7.070624321e+01, 1.367120909e+01, -6.112622013e-03, 7.623626008e-03, -1.239413190e-02],
        [-2.763870764e+01, 1.367120909e+01, 1.811858898e+02, 3.143798992e-02, -4.963106559e-02, -7.420114385e-04],
        [-2.435617201e-02, -6.112622013e-03, 3.143798992e-02, 4.657077389e-05, 1.469943634e-05, 3.328475593e-05],
        [2.058274137e-02, 7.623626008e-03, -4.963106559e-02, 1.469943634e-05, 3.950715934e-05, 2.516044258e-05],
        [-5.872883051e-03, -1.239413190e-02, -7.420114385e-04, 3.328475593e-05, 2.516044258e-05, 3.547466120e-05],
    ])


def _assert_covariance_close(expected, computed, threshold):
    """Relative comparison, absolute where the reference entry is zero."""
    expected = jnp.asarray(expected)
    tolerance = jnp.where(expected == 0.0, threshold, jnp.abs(threshold * expected))
    difference = jnp.abs(computed - expected)
    assert bool(jnp.all(difference <= tolerance)), f"max excess {jnp.max(difference - tolerance)}"


_QSW_INERTIAL_EXPECTED = [
    [9.918921e-001, 6.700644e-003, -2.878187e-003, 1.892086e-005, 6.700644e-005, -2.878187e-005],
    [6.700644e-003, 1.013730e+000, -1.019283e-002, 6.700644e-005, 2.372970e-004, -1.019283e-004],
    [-2.878187e-003, -1.019283e-002, 9.943782e-001, -2.878187e-005, -1.019283e-004, 4.378217e-005],
    [1.892086e-005, 6.700644e-005, -2.878187e-005, 1.892086e-007, 6.700644e-007, -2.878187e-007],
    [6.700644e-005, 2.372970e-004, -1.019283e-004, 6.700644e-007, 2.372970e-006, -1.019283e-006],
    [-2.878187e-005, -1.019283e-004, 4.378217e-005, -2.878187e-007, -1.019283e-006, 4.378217e-007],
]

_QSW_EXPECTED = [
    [9.918921e-01, 6.700644e-03, -2.878187e-03, 2.637186e-05, -1.035961e-03, -2.878187e-05],
    [6.700644e-03, 1.013730e+00, -1.019283e-02, 1.194257e-03, 2.298460e-04, -1.019283e-04],
    [-2.878187e-03, -1.019283e-02, 9.943782e-01, -4.011613e-05, -9.872780e-05, 4.378217e-05],
    [2.637186e-05, 1.194257e-03, -4.011613e-05, 1.591713e-06, 9.046096e-07, -4.011613e-07],
    [-1.035961e-03, 2.298460e-04, -9.872780e-05, 9.046096e-07, 3.450431e-06, -9.872780e-07],
    [-2.878187e-05, -1.019283e-04, 4.378217e-05, -4.011613e-07, -9.872780e-07, 4.378217e-07],
]

_NTW_INERTIAL_EXPECTED = [
    [9.918792e-001, 6.679546e-003, -2.868345e-003, 1.879167e-005, 6.679546e-005, -2.868345e-005],
    [6.679546e-003, 1.013743e+000, -1.019560e-002, 6.679546e-005, 2.374262e-004, -1.019560e-004],
    [-2.868345e-003, -1.019560e-002, 9.943782e-001, -2.868345e-005, -1.019560e-004, 4.378217e-005],
    [1.879167e-005, 6.679546e-005, -2.868345e-005, 1.879167e-007, 6.679546e-007, -2.868345e-007],
    [6.679546e-005, 2.374262e-004, -1.019560e-004, 6.679546e-007, 2.374262e-006, -1.019560e-006],
    [-2.868345e-005, -1.019560e-004, 4.378217e-005, -2.868345e-007, -1.019560e-006, 4.378217e-007],
]

_NTW_EXPECTED = [
    [9.918792e-01, 6.679546e-03, -2.868345e-03, 2.621921e-05, -1.036158e-03, -2.868345e-05],
    [6.679546e-03, 1.013743e+00, -1.019560e-02, 1.194061e-03, 2.299986e-04, -1.019560e-04],
    [-2.868345e-03, -1.019560e-02, 9.943782e-01, -4.002079e-05, -9.876648e-05, 4.378217e-05],
    [2.621921e-05, 1.194061e-03, -4.002079e-05, 1.589968e-06, 9.028133e-07, -4.002079e-07],
    [-1.036158e-03, 2.299986e-04, -9.876648e-05, 9.028133e-07, 3.452177e-06, -9.876648e-07],
    [-2.868345e-05, -1.019560e-04, 4.378217e-05, -4.002079e-07, -9.876648e-07, 4.378217e-07],
]

_MOD_EXPECTED = [
    [9.999939e-001, 9.999070e-003, 9.997861e-003, 9.993866e-005, 9.999070e-005, 9.997861e-005],
    [9.999070e-003, 1.000004e+000, 1.000307e-002, 9.999070e-005, 1.000428e-004, 1.000307e-004],
    [9.997861e-003, 1.000307e-002, 1.000002e+000, 9.997861e-005, 1.000307e-004, 1.000186e-004],
    [9.993866e-005, 9.999070e-005, 9.997861e-005, 9.993866e-007, 9.999070e-007, 9.997861e-007],
    [9.999070e-005, 1.000428e-004, 1.000307e-004, 9.999070e-007, 1.000428e-006, 1.000307e-006],
    [9.997861e-005, 1.000307e-004, 1.000186e-004, 9.997861e-007, 1.000307e-006, 1.000186e-006],
]

# Published Earth-fixed values, computed with IERS Earth orientation data
_PEF_EXPECTED = [
    [9.9340005761276870e-01, 7.5124999798868530e-03, 5.8312675007359050e-03, 3.4548396261054936e-05, 2.6851237046859200e-06, 5.8312677693153940e-05],
    [7.5124999798868025e-03, 1.0065990293034541e+00, 1.2884310200351924e-02, 1.4852736004690684e-04, 1.6544247282904867e-04, 1.2884310644320954e-04],
    [5.8312675007359040e-03, 1.2884310200351924e-02, 1.0000009130837746e+00, 5.9252211072590390e-05, 1.2841787487219444e-04, 1.0000913090989617e-04],
    [3.4548396261054936e-05, 1.4852736004690686e-04, 5.9252211072590403e-05, 3.5631474857130520e-07, 7.6083489184819870e-07, 5.9252213790760030e-07],
    [2.6851237046859150e-06, 1.6544247282904864e-04, 1.2841787487219447e-04, 7.6083489184819880e-07, 1.6542289254142709e-06, 1.2841787929229964e-06],
    [5.8312677693153934e-05, 1.2884310644320950e-04, 1.0000913090989616e-04, 5.9252213790760020e-07, 1.2841787929229960e-06, 1.0000913098203875e-06],
]


# ──────────────────────────────────────────────
# Construction
# ──────────────────────────────────────────────

class TestConstruction:
    def test_frame_covariance(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        assert cov.orbit_type == OrbitType.CARTESIAN
        assert cov.angle_type == PositionAngleType.MEAN
        assert cov.frame is gcrf()
        assert cov.lof is None
        assert cov.epoch == _VALLADO_EPOCH

    def test_lof_covariance(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, LOFType.QSW)
        assert cov.lof is LOFType.QSW
        assert cov.frame is None

    def test_lof_requires_cartesian(self):
        with pytest.raises(IncompatibleRepresentationError):
            StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, LOFType.TNW, OrbitType.KEPLERIAN)

    def test_non_square_matrix(self):
        with pytest.raises(DimensionMismatchError):
            StateCovariance(jnp.zeros((6, 5)), _VALLADO_EPOCH, gcrf())

    def test_invalid_reference(self):
        with pytest.raises(TypeError):
            StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, "GCRF")

    @pytest.mark.parametrize("name, value", [
        ("matrix", jnp.eye(6)),
        ("epoch", _J2000),
        ("reference", LOFType.QSW),
        ("orbit_type", OrbitType.KEPLERIAN),
        ("angle_type", PositionAngleType.TRUE),
    ])
    def test_attributes_are_read_only(self, name, value):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        with pytest.raises(AttributeError):
            setattr(cov, name, value)
        assert cov.frame is gcrf()
        assert cov.orbit_type == OrbitType.CARTESIAN
        assert cov.epoch == _VALLADO_EPOCH

    def test_attributes_cannot_be_deleted(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        with pytest.raises(AttributeError):
            del cov.matrix
        assert cov.matrix.shape == (6, 6)

    def test_conversion_of_wrong_dimension(self):
        cov = StateCovariance(jnp.eye(7), _VALLADO_EPOCH, gcrf())
        with pytest.raises(DimensionMismatchError):
            cov.change_frame(_vallado_orbit(), LOFType.QSW)


# ──────────────────────────────────────────────
# Element type
# ──────────────────────────────────────────────

class TestChangeType:
    def test_same_type_returns_self(self):
        cov = StateCovariance(_leo_covariance(), _leo_orbit().epoch, eme2000())
        assert cov.change_type(_leo_orbit(), OrbitType.CARTESIAN, PositionAngleType.TRUE) is cov

    def test_keplerian_round_trip(self):
        orbit = _leo_orbit()
        reference = StateCovariance(_leo_covariance(), orbit.epoch, eme2000())
        keplerian = reference.change_type(orbit, OrbitType.KEPLERIAN, PositionAngleType.MEAN)
        assert keplerian.orbit_type == OrbitType.KEPLERIAN
        back = keplerian.change_type(orbit, OrbitType.CARTESIAN)
        assert jnp.allclose(back.matrix, reference.matrix, rtol=1e-8, atol=1e-12)

    @pytest.mark.parametrize("orbit_type", [OrbitType.CIRCULAR, OrbitType.EQUINOCTIAL])
    @pytest.mark.parametrize("angle_type", list(PositionAngleType))
    def test_element_to_element(self, orbit_type, angle_type):
        orbit = _leo_orbit()
        reference = StateCovariance(_leo_covariance(), orbit.epoch, eme2000())
        keplerian = reference.change_type(orbit, OrbitType.KEPLERIAN, PositionAngleType.TRUE)
        direct = reference.change_type(orbit, orbit_type, angle_type)
        chained = keplerian.change_type(orbit, orbit_type, angle_type)
        assert jnp.allclose(chained.matrix, direct.matrix, rtol=1e-8, atol=1e-14)

    def test_result_is_symmetric(self):
        orbit = _vallado_orbit()
        cov = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        equinoctial = cov.change_type(orbit, OrbitType.EQUINOCTIAL).matrix
        assert jnp.allclose(equinoctial, equinoctial.T, rtol=1e-12, atol=0.0)

    def test_orbit_in_other_frame(self):
        # Jacobians are evaluated on the orbit expressed in the covariance frame
        orbit = _vallado_orbit()
        cov = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        direct = cov.change_type(orbit, OrbitType.KEPLERIAN)
        via_eme = cov.change_type(orbit.in_frame(eme2000()), OrbitType.KEPLERIAN)
        assert jnp.allclose(direct.matrix, via_eme.matrix, rtol=1e-9, atol=1e-20)


# ──────────────────────────────────────────────
# Frames
# ──────────────────────────────────────────────

class TestChangeFrame:
    def test_same_covariance_when_frames_aligned(self):
        orbit = Orbit(jnp.array([6778000.0, 0.0, 0.0, 0.0, 7668.63, 0.0]), _J2000, gcrf(), _MU_SIMPLE)
        matrix = jnp.array([
            [1, 0, 0, 0, 1e-5, 1e-4],
            [0, 1, 0, 0, 0, 1e-5],
            [0, 0, 1, 0, 0, 0],
            [0, 0, 0, 1e-3, 0, 0],
            [1e-5, 0, 0, 0, 1e-3, 0],
            [1e-4, 1e-5, 0, 0, 0, 1e-3],
        ])
        cov = StateCovariance(matrix, _J2000, gcrf())
        converted = cov.change_frame(orbit, LOFType.QSW_INERTIAL)
        assert jnp.allclose(converted.matrix, matrix, rtol=0.0, atol=_ROTATION_THRESHOLD)

    def test_rotation_by_ninety_degrees(self):
        orbit = Orbit(jnp.array([0.0, 6778000.0, 0.0, -7668.63, 0.0, 0.0]), _J2000, gcrf(), _MU_SIMPLE)
        matrix = jnp.array([
            [1, 0, 0, 0, 0, 1e-5],
            [0, 1, 0, 0, 0, 0],
            [0, 0, 1, 0, 0, 0],
            [0, 0, 0, 1e-3, 0, 0],
            [0, 0, 0, 0, 1e-3, 0],
            [1e-5, 0, 0, 0, 0, 1e-3],
        ])
        expected = jnp.array([
            [1, 0, 0, 0, 0, 0],
            [0, 1, 0, 0, 0, -1e-5],
            [0, 0, 1, 0, 0, 0],
            [0, 0, 0, 1e-3, 0, 0],
            [0, 0, 0, 0, 1e-3, 0],
            [0, -1e-5, 0, 0, 0, 1e-3],
        ])
        cov = StateCovariance(matrix, _J2000, gcrf())
        converted = cov.change_frame(orbit, LOFType.QSW_INERTIAL)
        assert converted.lof is LOFType.QSW_INERTIAL
        assert jnp.allclose(converted.matrix, expected, rtol=0.0, atol=_ROTATION_THRESHOLD)

        back = StateCovariance(expected, _J2000, LOFType.QSW_INERTIAL).change_frame(orbit, gcrf())
        assert back.frame is gcrf()
        assert jnp.allclose(back.matrix, matrix, rtol=0.0, atol=_ROTATION_THRESHOLD)

    @pytest.mark.parametrize("lof, expected", [
        (LOFType.QSW_INERTIAL, _QSW_INERTIAL_EXPECTED),
        (LOFType.QSW, _QSW_EXPECTED),
        (LOFType.NTW_INERTIAL, _NTW_INERTIAL_EXPECTED),
        (LOFType.NTW, _NTW_EXPECTED),
    ])
    def test_vallado_to_lof(self, lof, expected):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        converted = cov.change_frame(_vallado_orbit(), lof)
        assert converted.orbit_type == OrbitType.CARTESIAN
        _assert_covariance_close(jnp.array(expected), converted.matrix, _VALLADO_THRESHOLD)

    def test_vallado_lof_aliases(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        rtn = cov.change_frame(_vallado_orbit(), LOFType.RTN)
        _assert_covariance_close(jnp.array(_QSW_EXPECTED), rtn.matrix, _VALLADO_THRESHOLD)

    def test_vallado_to_mod(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        converted = cov.change_frame(_vallado_orbit(), mod())
        assert converted.frame is mod()
        _assert_covariance_close(jnp.array(_MOD_EXPECTED), converted.matrix, _VALLADO_THRESHOLD)

    def test_lof_to_lof(self):
        cov = StateCovariance(jnp.array(_NTW_INERTIAL_EXPECTED), _VALLADO_EPOCH, LOFType.NTW)
        converted = cov.change_frame(_vallado_orbit(), LOFType.QSW)
        assert converted.lof is LOFType.QSW
        _assert_covariance_close(jnp.array(_QSW_INERTIAL_EXPECTED), converted.matrix,
                                 _VALLADO_THRESHOLD)

    def test_lof_to_same_lof_returns_self(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, LOFType.VNC)
        assert cov.change_frame(_vallado_orbit(), LOFType.VNC) is cov

    def test_inertial_round_trip(self):
        orbit = _leo_orbit()
        reference = StateCovariance(_leo_covariance(), orbit.epoch, eme2000())
        in_teme = reference.change_frame(orbit, teme())
        back = in_teme.change_frame(orbit, eme2000())
        scale = jnp.max(jnp.abs(reference.matrix))
        assert float(jnp.max(jnp.abs(back.matrix - reference.matrix))) <= _ROUND_TRIP_THRESHOLD * scale

    def test_inertial_change_keeps_type(self):
        orbit = _vallado_orbit()
        keplerian = (StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
                     .change_type(orbit, OrbitType.KEPLERIAN, PositionAngleType.TRUE))
        converted = keplerian.change_frame(orbit, eme2000())
        assert converted.orbit_type == OrbitType.KEPLERIAN
        assert converted.angle_type == PositionAngleType.TRUE
        # Inclination variance is frame dependent, semi-major axis variance is not
        assert float(converted.matrix[0, 0]) == pytest.approx(float(keplerian.matrix[0, 0]),
                                                              rel=1e-9)

    def test_non_inertial_round_trip(self):
        orbit = _vallado_orbit()
        reference = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        in_itrf = reference.change_frame(orbit, itrf())
        assert in_itrf.frame is itrf()
        back = in_itrf.change_frame(orbit, gcrf())
        _assert_covariance_close(reference.matrix, back.matrix, _MULTI_HOP_THRESHOLD)

    def test_multi_hop_round_trip(self):
        orbit = _vallado_orbit()
        reference = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        converted = reference
        for target in (teme(), itrf(), LOFType.NTW, LOFType.QSW, itrf(), teme(), gcrf()):
            converted = converted.change_frame(orbit, target)
        assert converted.frame is gcrf()
        _assert_covariance_close(reference.matrix, converted.matrix, _MULTI_HOP_THRESHOLD)

    def test_rotating_frame_includes_rate_coupling(self):
        orbit = _vallado_orbit()
        reference = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        in_itrf = reference.change_frame(orbit, itrf())

        transform = gcrf().transform_to(itrf(), orbit.epoch)
        jacobian = transform.jacobian(DerivativesFilter.USE_PV)
        expected = jacobian @ reference.matrix @ jacobian.T
        assert jnp.allclose(in_itrf.matrix, expected, rtol=1e-13, atol=0.0)

        rotation = transform.rotation
        zero = jnp.zeros((3, 3))
        rotation_only = jnp.block([[rotation, zero], [zero, rotation]])
        rotated = rotation_only @ reference.matrix @ rotation_only.T
        assert not jnp.allclose(in_itrf.matrix, rotated, rtol=1e-6, atol=0.0)

        # Position-velocity block picks up -w (Pxx + Pyy) in its antisymmetric part
        position = in_itrf.matrix[:3, :3]
        antisymmetric = in_itrf.matrix[0, 4] - in_itrf.matrix[1, 3]
        assert float(antisymmetric) == pytest.approx(
            float(-OMEGA_EARTH * (position[0, 0] + position[1, 1])), rel=1e-10)
        assert abs(float(rotated[0, 4] - rotated[1, 3])) < 1e-12

    def test_pef_matches_hand_built_jacobian(self):
        orbit = _vallado_orbit()
        epoch = orbit.epoch
        reference = StateCovariance(_vallado_covariance(), epoch, gcrf())
        in_pef = reference.change_frame(orbit, pef())
        assert in_pef.frame is pef()

        rotation = Rz(epoch.gmst()) @ gcrf().transform_to(teme(), epoch).rotation
        omega = skew(jnp.array([0.0, 0.0, OMEGA_EARTH]))
        zero = jnp.zeros((3, 3))
        jacobian = jnp.block([[rotation, zero], [-omega @ rotation, rotation]])
        expected = jacobian @ reference.matrix @ jacobian.T
        _assert_covariance_close(expected, in_pef.matrix, 1e-10)

        # Without Earth orientation data ITRF coincides with PEF
        in_itrf = reference.change_frame(orbit, itrf())
        _assert_covariance_close(in_pef.matrix, in_itrf.matrix, _MULTI_HOP_THRESHOLD)

    def test_vallado_pef_rotation_invariants(self):
        # Quantities unchanged by a rotation about the pole, so they do not
        # depend on the UT1 offset used to build the published matrix
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())
        computed = cov.change_frame(_vallado_orbit(), pef()).matrix
        expected = jnp.array(_PEF_EXPECTED)

        def invariants(m):
            return jnp.array([
                m[0, 0] + m[1, 1],
                m[2, 2],
                m[3, 3] + m[4, 4],
                m[5, 5],
                m[0, 4] - m[1, 3],
            ])

        assert jnp.allclose(invariants(computed), invariants(expected), rtol=1e-5, atol=0.0)


class TestIncompatibleRepresentations:
    def _matrix(self):
        return jnp.array(_NTW_INERTIAL_EXPECTED)

    @pytest.mark.parametrize("frame", [itrf(), pef()])
    @pytest.mark.parametrize("orbit_type", [OrbitType.CIRCULAR, OrbitType.EQUINOCTIAL,
                                            OrbitType.KEPLERIAN])
    def test_non_inertial_elements_rejected_at_construction(self, frame, orbit_type):
        with pytest.raises(IncompatibleRepresentationError):
            StateCovariance(self._matrix(), _VALLADO_EPOCH, frame, orbit_type)

    @pytest.mark.parametrize("request_conversion", [
        lambda cov, orbit: cov.change_frame(orbit, gcrf()),
        lambda cov, orbit: cov.change_frame(orbit, itrf()),
        lambda cov, orbit: cov.change_frame(orbit, LOFType.QSW),
        lambda cov, orbit: cov.change_type(orbit, OrbitType.KEPLERIAN),
        lambda cov, orbit: cov.change_type(orbit, OrbitType.CARTESIAN),
        lambda cov, orbit: cov.change_type(orbit, OrbitType.KEPLERIAN).change_frame(orbit, gcrf()),
    ], ids=["to-inertial", "same-frame", "to-lof", "same-type", "to-cartesian", "type-then-frame"])
    def test_no_conversion_of_non_inertial_elements(self, request_conversion):
        with pytest.raises(IncompatibleRepresentationError):
            cov = StateCovariance(self._matrix(), _VALLADO_EPOCH, itrf(), OrbitType.KEPLERIAN)
            request_conversion(cov, _vallado_orbit())

    def test_non_inertial_type_change(self):
        cov = StateCovariance(self._matrix(), _VALLADO_EPOCH, itrf())
        with pytest.raises(IncompatibleRepresentationError):
            cov.change_type(_vallado_orbit(), OrbitType.EQUINOCTIAL)

    def test_converted_non_inertial_covariance_stays_cartesian(self):
        orbit = _vallado_orbit()
        keplerian = (StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
                     .change_type(orbit, OrbitType.KEPLERIAN))
        in_itrf = keplerian.change_frame(orbit, itrf())
        assert in_itrf.orbit_type == OrbitType.CARTESIAN
        assert in_itrf.change_frame(orbit, itrf()) is in_itrf

    def test_lof_type_change(self):
        cov = StateCovariance(self._matrix(), _VALLADO_EPOCH, LOFType.QSW)
        with pytest.raises(IncompatibleRepresentationError):
            cov.change_type(_vallado_orbit(), OrbitType.KEPLERIAN)

    def test_non_inertial_cartesian_type_change(self):
        cov = StateCovariance(self._matrix(), _VALLADO_EPOCH, itrf())
        with pytest.raises(IncompatibleRepresentationError):
            cov.change_type(_vallado_orbit(), OrbitType.KEPLERIAN)


# ──────────────────────────────────────────────
# Time shift
# ──────────────────────────────────────────────

class TestShift:
    _DT = 300.0

    def _reference(self, orbit):
        """Shift through a Keplerian-elements secular transition matrix."""
        initial = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        keplerian = initial.change_type(orbit, OrbitType.KEPLERIAN, PositionAngleType.MEAN)
        stm = jnp.eye(6).at[5, 0].set(-1.5 * self._DT * jnp.sqrt(GM_EARTH / orbit.a**5))
        shifted = StateCovariance(stm @ keplerian.matrix @ stm.T, orbit.epoch + self._DT, gcrf(),
                                  OrbitType.KEPLERIAN, PositionAngleType.MEAN)
        return shifted.change_type(orbit.shifted_by(self._DT), OrbitType.CARTESIAN).matrix

    def test_secular_transition_matrix(self):
        orbit = _vallado_orbit()
        stm = secular_transition_matrix(orbit, self._DT)
        expected = -1.5 * self._DT * jnp.sqrt(GM_EARTH / orbit.a**5)
        assert float(stm[5, 0]) == pytest.approx(float(expected), rel=1e-12)
        assert jnp.allclose(stm.at[5, 0].set(0.0), jnp.eye(6))

    def test_equinoctial_shift(self):
        orbit = _vallado_orbit()
        equinoctial = (StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
                       .change_type(orbit, OrbitType.EQUINOCTIAL, PositionAngleType.MEAN))
        shifted = equinoctial.shifted_by(orbit, self._DT)
        assert shifted.epoch == orbit.epoch + self._DT
        assert shifted.orbit_type == OrbitType.EQUINOCTIAL
        back = shifted.change_type(orbit.shifted_by(self._DT), OrbitType.CARTESIAN)
        _assert_covariance_close(self._reference(orbit), back.matrix, 1e-7)

    def test_lof_shift(self):
        orbit = _vallado_orbit()
        in_lof = (StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
                  .change_frame(orbit, LOFType.QSW))
        shifted = in_lof.shifted_by(orbit, self._DT)
        assert shifted.lof is LOFType.QSW
        back = shifted.change_frame(orbit.shifted_by(self._DT), gcrf())
        _assert_covariance_close(self._reference(orbit), back.matrix, 1e-7)

    def test_non_inertial_shift(self):
        orbit = _vallado_orbit()
        in_itrf = (StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
                   .change_frame(orbit, itrf()))
        shifted = in_itrf.shifted_by(orbit, self._DT)
        assert shifted.frame is itrf()
        back = shifted.change_frame(orbit.shifted_by(self._DT), gcrf())
        _assert_covariance_close(self._reference(orbit), back.matrix, 1e-7)

    def test_zero_shift(self):
        orbit = _vallado_orbit()
        cov = StateCovariance(_vallado_covariance(), orbit.epoch, gcrf())
        assert jnp.allclose(cov.shifted_by(orbit, 0.0).matrix, cov.matrix, rtol=1e-10, atol=1e-16)


# ──────────────────────────────────────────────
# Differentiation
# ──────────────────────────────────────────────

class TestDifferentiation:
    def test_pytree_round_trip(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, LOFType.QSW)
        leaves, treedef = jax.tree_util.tree_flatten(cov)
        assert len(leaves) == 1
        rebuilt = jax.tree_util.tree_unflatten(treedef, leaves)
        assert rebuilt.lof is LOFType.QSW
        assert rebuilt.epoch == _VALLADO_EPOCH

    def test_jvp_is_linear_in_matrix(self):
        orbit = _vallado_orbit()
        tangent = jnp.eye(6) * 1e-3

        def to_qsw(matrix):
            return StateCovariance(matrix, orbit.epoch, gcrf()).change_frame(orbit, LOFType.QSW).matrix

        primal, derivative = jax.jvp(to_qsw, (_vallado_covariance(),), (tangent,))
        assert jnp.allclose(primal, to_qsw(_vallado_covariance()))
        assert jnp.allclose(derivative, to_qsw(tangent), rtol=1e-12, atol=1e-20)

    def test_sensitivity_to_orbit(self):
        cov = StateCovariance(_vallado_covariance(), _VALLADO_EPOCH, gcrf())

        def keplerian_variance(pv):
            orbit = Orbit(pv, _VALLADO_EPOCH, gcrf())
            return cov.change_type(orbit, OrbitType.KEPLERIAN).matrix[0, 0]

        gradient = jax.grad(keplerian_variance)(_VALLADO_PV)
        assert gradient.shape == (6,)
        assert bool(jnp.all(jnp.isfinite(gradient)))

    def test_primal_drops_tangent(self):
        orbit = _vallado_orbit()

        def projected(matrix):
            return StateCovariance(matrix, orbit.epoch, gcrf()).primal().matrix

        _, derivative = jax.jvp(projected, (_vallado_covariance(),), (jnp.ones((6, 6)),))
        assert jnp.allclose(derivative, 0.0)

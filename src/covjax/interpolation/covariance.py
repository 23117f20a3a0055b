"""Interpolation of orbit/covariance pairs.

Samples are :class:`~covjax.interpolation.TimeStampedPair` objects holding
an :class:`~covjax.orbits.Orbit` and the
:class:`~covjax.covariance.StateCovariance` at the same date.  Each
interpolator first interpolates the orbit, computes the covariance in the
frame of the interpolated orbit and finally expresses it in the requested
output:

- :class:`StateCovarianceBlender` propagates the two neighbouring
  covariances with the STM of an analytical propagator and blends them.
- :class:`StateCovarianceKeplerianHermiteInterpolator` fits a Hermite
  polynomial to every equinoctial covariance entry, using the derivatives
  implied by the secular Keplerian motion.

References:

    1. D. A. Vallado, *Covariance Transformations for Satellite Flight
       Dynamics Operations*, AAS 03-526, 2003.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import jax
import jax.numpy as jnp

from covjax.config import DEFAULT_EXTRAPOLATION_THRESHOLD, DEFAULT_INTERPOLATION_POINTS
from covjax.covariance import StateCovariance
from covjax.epoch import Epoch
from covjax.errors import IncompatibleRepresentationError
from covjax.frames import DerivativesFilter, Frame
from covjax.interpolation._base import InterpolationData, TimeInterpolator, TimeStampedPair
from covjax.interpolation.hermite import HermiteInterpolator
from covjax.interpolation.orbit import OrbitHermiteInterpolator
from covjax.lof import LOFType
from covjax.orbits import Orbit, OrbitType, PositionAngleType
from covjax.propagation import KeplerianPropagator, SpacecraftState
from covjax.propagation._propagator import Propagator

logger = logging.getLogger(__name__)

_CARTESIAN = OrbitType.CARTESIAN
_MEAN = PositionAngleType.MEAN


class AbstractStateCovarianceInterpolator(TimeInterpolator):
    """Base class of orbit/covariance pair interpolators.

    Args:
        interpolation_points (int): Number of neighbours used.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
        orbit_interpolator (TimeInterpolator): Interpolator of the orbits.
        output (Frame | LOFType): Frame or local orbital frame of the
            interpolated covariance.
        output_orbit_type (OrbitType): Parameterisation of the output, only
            used for frame outputs.
        output_angle_type (PositionAngleType): Kind of fast angle of the
            output.

    Raises:
        IncompatibleRepresentationError: If the output is a local orbital
            frame or a non-inertial frame and the output parameterisation is
            not Cartesian.
    """

    def __init__(self, interpolation_points: int, extrapolation_threshold: float,
                 orbit_interpolator: TimeInterpolator, output: Frame | LOFType,
                 output_orbit_type: OrbitType = _CARTESIAN,
                 output_angle_type: PositionAngleType = _MEAN) -> None:
        super().__init__(interpolation_points, extrapolation_threshold)
        if output_orbit_type != _CARTESIAN:
            if isinstance(output, LOFType):
                raise IncompatibleRepresentationError(
                    f"covariance output in local orbital frame {output.name} must be Cartesian"
                )
            if not output.pseudo_inertial:
                raise IncompatibleRepresentationError(
                    f"covariance output in non-inertial frame {output} must be Cartesian"
                )
        self.orbit_interpolator = orbit_interpolator
        self.output = output
        self.output_orbit_type = output_orbit_type
        self.output_angle_type = output_angle_type

    def sub_interpolators(self) -> list[TimeInterpolator]:
        return [self, *self.orbit_interpolator.sub_interpolators()]

    def _interpolate(self, data: InterpolationData) -> TimeStampedPair:
        orbit = self.orbit_interpolator.interpolate(data.date, [pair.first for pair in data.sample])
        covariance = self.covariance_in_orbit_frame(data.date, data.neighbors, orbit)
        return TimeStampedPair(orbit, self._express_in_output(covariance, orbit))

    def _express_in_output(self, covariance: StateCovariance, orbit: Orbit) -> StateCovariance:
        if isinstance(self.output, LOFType):
            return covariance.change_frame(orbit, self.output)
        converted = covariance.change_frame(orbit, self.output)
        if not self.output.pseudo_inertial:
            return converted
        return converted.change_type(orbit, self.output_orbit_type, self.output_angle_type)

    def covariance_in_orbit_frame(self, date: Epoch, neighbors: list[TimeStampedPair],
                                  orbit: Orbit) -> StateCovariance:
        """Interpolated covariance expressed in the frame of ``orbit``."""
        raise NotImplementedError


class StateCovarianceBlender(AbstractStateCovarianceInterpolator):
    """Blend the STM-propagated covariances of the two neighbours.

    Each neighbouring covariance is expressed in its orbit frame with
    Cartesian elements, propagated to the interpolation date as
    ``Phi C Phi^T`` with the STM of an analytical propagator, then the two
    are combined as ``(1 - b) C_prev + b C_next`` with
    ``b = f((t - t_prev) / (t_next - t_prev))``.

    Args:
        blending_function (Callable): Maps ``[0, 1]`` onto ``[0, 1]``.
        orbit_interpolator (TimeInterpolator): Interpolator of the orbits.
        output (Frame | LOFType): Output frame or local orbital frame.
        propagator (Propagator | None): Analytical propagator restarted from
            each neighbour. Defaults to a
            :class:`~covjax.propagation.KeplerianPropagator`.
        output_orbit_type (OrbitType): Output parameterisation.
        output_angle_type (PositionAngleType): Output fast angle kind.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
    """

    def __init__(self, blending_function: Callable, orbit_interpolator: TimeInterpolator,
                 output: Frame | LOFType, propagator: Propagator | None = None,
                 output_orbit_type: OrbitType = _CARTESIAN,
                 output_angle_type: PositionAngleType = _MEAN,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD) -> None:
        super().__init__(2, extrapolation_threshold, orbit_interpolator, output,
                         output_orbit_type, output_angle_type)
        self.blending_function = blending_function
        self.propagator = propagator

    def _propagate(self, pair: TimeStampedPair, date: Epoch, frame: Frame) -> jax.Array:
        orbit, covariance = pair
        cartesian = covariance.change_frame(orbit, orbit.frame).change_type(orbit, _CARTESIAN)

        state = SpacecraftState(orbit)
        if self.propagator is None:
            propagator = KeplerianPropagator(state)
        else:
            propagator = self.propagator
            propagator.reset_initial_state(state)
        harvester = propagator.setup_matrices_computation("stm")
        propagated = propagator.propagate(date)
        phi = harvester.state_transition_matrix(propagated)

        moved = StateCovariance(phi @ cartesian.matrix @ phi.T, date, orbit.frame)
        return moved.change_frame(propagated.orbit, frame).matrix

    def covariance_in_orbit_frame(self, date: Epoch, neighbors: list[TimeStampedPair],
                                  orbit: Orbit) -> StateCovariance:
        previous, following = neighbors
        b = self.blending_function(
            float(date - previous.epoch) / float(following.epoch - previous.epoch))
        logger.debug("Covariance blending weight %.6f at %s", float(b), date)

        blended = ((1.0 - b) * self._propagate(previous, date, orbit.frame)
                   + b * self._propagate(following, date, orbit.frame))
        return StateCovariance(blended, date, orbit.frame, _CARTESIAN)


def _keplerian_derivatives(matrix: jax.Array, m) -> tuple[jax.Array, jax.Array]:
    """First and second time derivatives of an equinoctial mean covariance.

    Only the mean longitude drifts, at a rate depending on ``a`` through
    ``m = dn/da``.
    """
    row = matrix[0].at[5].set(0.0) * m
    first = jnp.zeros_like(matrix).at[5, :].set(row).at[:, 5].set(row)
    first = first.at[5, 5].set(2.0 * matrix[0, 5] * m)
    second = jnp.zeros_like(matrix).at[5, 5].set(2.0 * matrix[0, 0] * m * m)
    return first, second


class StateCovarianceKeplerianHermiteInterpolator(AbstractStateCovarianceInterpolator):
    """Hermite interpolation of equinoctial covariances under Keplerian motion.

    Every sample covariance is expressed in the frame of the interpolated
    orbit with equinoctial elements and mean longitude.  Its first and
    second time derivatives follow from the secular drift of the mean
    longitude, ``m = -1.5 n / a``:

    - first derivative: ``(5, j) = (j, 5) = C[0, j] m`` for ``j != 5`` and
      ``(5, 5) = 2 C[0, 5] m``,
    - second derivative: ``(5, 5) = 2 C[0, 0] m^2``, zero elsewhere.

    ``filter`` selects how many of them the polynomial matches.

    Args:
        interpolation_points (int): Number of neighbours used.
        orbit_interpolator (TimeInterpolator): Interpolator of the orbits.
        output (Frame | LOFType): Output frame or local orbital frame.
        filter (DerivativesFilter): ``USE_P`` for values only, ``USE_PV`` to
            add first derivatives, ``USE_PVA`` to add second derivatives.
        output_orbit_type (OrbitType): Output parameterisation.
        output_angle_type (PositionAngleType): Output fast angle kind.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
    """

    def __init__(self, interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                 orbit_interpolator: TimeInterpolator | None = None,
                 output: Frame | LOFType = LOFType.QSW,
                 filter: DerivativesFilter = DerivativesFilter.USE_PVA,
                 output_orbit_type: OrbitType = _CARTESIAN,
                 output_angle_type: PositionAngleType = _MEAN,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD) -> None:
        if orbit_interpolator is None:
            orbit_interpolator = OrbitHermiteInterpolator(interpolation_points,
                                                          extrapolation_threshold)
        super().__init__(interpolation_points, extrapolation_threshold, orbit_interpolator,
                         output, output_orbit_type, output_angle_type)
        self.filter = filter

    def covariance_in_orbit_frame(self, date: Epoch, neighbors: list[TimeStampedPair],
                                  orbit: Orbit) -> StateCovariance:
        frame = orbit.frame
        interpolator = HermiteInterpolator()
        for sample_orbit, covariance in neighbors:
            equinoctial = (covariance.change_frame(sample_orbit, frame)
                           .change_type(sample_orbit, OrbitType.EQUINOCTIAL, _MEAN))
            matrix = equinoctial.matrix
            first, second = _keplerian_derivatives(matrix, sample_orbit.mean_anomaly_dot_wrt_a())
            dt = float(sample_orbit.epoch - date)
            if self.filter is DerivativesFilter.USE_P:
                interpolator.add_sample_point(dt, matrix.ravel())
            elif self.filter is DerivativesFilter.USE_PV:
                interpolator.add_sample_point(dt, matrix.ravel(), first.ravel())
            else:
                interpolator.add_sample_point(dt, matrix.ravel(), first.ravel(), second.ravel())

        matrix = jnp.reshape(interpolator.value(0.0), (6, 6))
        return StateCovariance(matrix, date, frame, OrbitType.EQUINOCTIAL, _MEAN)

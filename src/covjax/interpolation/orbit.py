"""Interpolation of orbits and absolute coordinates.

- :class:`OrbitHermiteInterpolator` fits a Hermite polynomial through the
  Cartesian positions (and optionally velocities and Keplerian
  accelerations) of the neighbouring orbits.
- :class:`AbsolutePVHermiteInterpolator` does the same for
  :class:`~covjax.propagation.AbsolutePVCoordinates`, in any frame.
- :class:`OrbitBlender` propagates the two neighbouring orbits to the
  interpolation date and blends their states with a smoothstep weight.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import jax.numpy as jnp

from covjax.config import DEFAULT_EXTRAPOLATION_THRESHOLD, DEFAULT_INTERPOLATION_POINTS
from covjax.frames import DerivativesFilter, Frame
from covjax.interpolation._base import InterpolationData, TimeInterpolator
from covjax.interpolation.hermite import HermiteInterpolator
from covjax.orbits import Orbit
from covjax.propagation import AbsolutePVCoordinates, KeplerianPropagator, SpacecraftState
from covjax.propagation._propagator import Propagator

logger = logging.getLogger(__name__)


def _hermite_position(data: InterpolationData, frame: Frame, pva_of: Callable,
                      filter: DerivativesFilter, order: int):
    """Interpolate positions and return ``[p, v, ...]`` up to ``order``."""
    interpolator = HermiteInterpolator()
    for entry in data.neighbors:
        pva = pva_of(entry, frame)
        dt = float(entry.epoch - data.date)
        if filter is DerivativesFilter.USE_P:
            interpolator.add_sample_point(dt, pva[:3])
        elif filter is DerivativesFilter.USE_PV:
            interpolator.add_sample_point(dt, pva[:3], pva[3:6])
        else:
            interpolator.add_sample_point(dt, pva[:3], pva[3:6], pva[6:9])
    return interpolator.derivatives(0.0, order)


def _orbit_pva(orbit: Orbit, frame: Frame):
    if frame is orbit.frame:
        return orbit.pva()
    return orbit.frame.transform_to(frame, orbit.epoch).transform_pva(orbit.pva())


def _absolute_pva(coordinates: AbsolutePVCoordinates, frame: Frame):
    if frame is coordinates.frame:
        return coordinates.pva()
    return coordinates.frame.transform_to(frame, coordinates.epoch).transform_pva(coordinates.pva())


class OrbitHermiteInterpolator(TimeInterpolator):
    """Cartesian Hermite interpolation of orbits.

    Args:
        interpolation_points (int): Number of neighbours used.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
        output_frame (Frame | None): Pseudo-inertial frame of the result.
            Defaults to the frame of the first neighbour.
        filter (DerivativesFilter): Which of position, velocity and
            acceleration the polynomial must match.

    Raises:
        ValueError: If ``output_frame`` is not pseudo-inertial.
    """

    def __init__(self, interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
                 output_frame: Frame | None = None,
                 filter: DerivativesFilter = DerivativesFilter.USE_PVA) -> None:
        super().__init__(interpolation_points, extrapolation_threshold)
        if output_frame is not None and not output_frame.pseudo_inertial:
            raise ValueError(f"orbits cannot be interpolated in non-inertial frame {output_frame}")
        self.output_frame = output_frame
        self.filter = filter

    def _interpolate(self, data: InterpolationData) -> Orbit:
        first = data.neighbors[0]
        frame = self.output_frame or first.frame
        position, velocity = _hermite_position(data, frame, _orbit_pva, self.filter, 1)
        return Orbit(jnp.concatenate([position, velocity]), data.date, frame, first.gm)


class AbsolutePVHermiteInterpolator(TimeInterpolator):
    """Hermite interpolation of absolute position-velocity-acceleration.

    Args:
        interpolation_points (int): Number of neighbours used.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
        output_frame (Frame | None): Frame of the result, possibly
            non-inertial. Defaults to the frame of the first neighbour.
        filter (DerivativesFilter): Which of position, velocity and
            acceleration the polynomial must match.
    """

    def __init__(self, interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
                 output_frame: Frame | None = None,
                 filter: DerivativesFilter = DerivativesFilter.USE_PVA) -> None:
        super().__init__(interpolation_points, extrapolation_threshold)
        self.output_frame = output_frame
        self.filter = filter

    def _interpolate(self, data: InterpolationData) -> AbsolutePVCoordinates:
        frame = self.output_frame or data.neighbors[0].frame
        position, velocity, acceleration = _hermite_position(data, frame, _absolute_pva,
                                                             self.filter, 2)
        return AbsolutePVCoordinates(jnp.concatenate([position, velocity]), data.date, frame,
                                     acceleration)


class OrbitBlender(TimeInterpolator):
    """Blend the two neighbouring orbits propagated to the interpolation date.

    The previous and next orbits are propagated to the date and their
    Cartesian states combined as ``(1 - b) pv_prev + b pv_next`` with
    ``b = f((t - t_prev) / (t_next - t_prev))``.

    Args:
        blending_function (Callable): Maps ``[0, 1]`` onto ``[0, 1]``, see
            :mod:`covjax.interpolation.smoothstep`.
        propagator (Propagator | None): Analytical propagator restarted from
            each neighbour with ``reset_initial_state``. Defaults to a
            :class:`~covjax.propagation.KeplerianPropagator`.
        output_frame (Frame | None): Pseudo-inertial frame of the result.
            Defaults to the frame of the previous neighbour.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
    """

    def __init__(self, blending_function: Callable, propagator: Propagator | None = None,
                 output_frame: Frame | None = None,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD) -> None:
        super().__init__(2, extrapolation_threshold)
        self.blending_function = blending_function
        self.propagator = propagator
        self.output_frame = output_frame

    def _propagate(self, orbit: Orbit, date) -> Orbit:
        state = SpacecraftState(orbit)
        if self.propagator is None:
            return KeplerianPropagator(state).propagate(date).orbit
        self.propagator.reset_initial_state(state)
        return self.propagator.propagate(date).orbit

    def _interpolate(self, data: InterpolationData) -> Orbit:
        previous, following = data.neighbors
        frame = self.output_frame or previous.frame
        b = self.blending_function(
            float(data.date - previous.epoch) / float(following.epoch - previous.epoch))

        pv_previous = self._propagate(previous, data.date).pv_in(frame)
        pv_following = self._propagate(following, data.date).pv_in(frame)
        logger.debug("Orbit blending weight %.6f at %s", float(b), data.date)
        return Orbit((1.0 - b) * pv_previous + b * pv_following, data.date, frame, previous.gm)

"""Interpolation of spacecraft states.

:class:`SpacecraftStateInterpolator` delegates each part of the state to a
dedicated interpolator: the orbit or the absolute coordinates, the mass and
every additional state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import jax.numpy as jnp

from covjax.config import DEFAULT_EXTRAPOLATION_THRESHOLD, DEFAULT_INTERPOLATION_POINTS
from covjax.epoch import Epoch
from covjax.errors import (
    MIXED_STATE_DEFINITIONS,
    NO_INTERPOLATOR_DEFINED,
    WRONG_INTERPOLATOR_DEFINED,
    StateDefinitionError,
)
from covjax.frames import DerivativesFilter, Frame
from covjax.interpolation._base import InterpolationData, TimeInterpolator, TimeStampedValue
from covjax.interpolation.hermite import TimeStampedValueHermiteInterpolator
from covjax.interpolation.orbit import AbsolutePVHermiteInterpolator, OrbitHermiteInterpolator
from covjax.propagation import SpacecraftState

logger = logging.getLogger(__name__)


class SpacecraftStateInterpolator(TimeInterpolator):
    """Interpolator of :class:`~covjax.propagation.SpacecraftState` samples.

    A sample must be made only of orbit-defined states or only of
    absolute-coordinates-defined states, and the matching interpolator must
    be set.  The mass is taken from the first neighbour when no mass
    interpolator is given; additional states are only kept when an
    additional state interpolator is given.

    The number of interpolation points is the largest one among the
    sub-interpolators.

    Args:
        interpolation_points (int): Minimum number of neighbours used.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
        orbit_interpolator (TimeInterpolator | None): Orbit interpolator.
        absolute_pv_interpolator (TimeInterpolator | None): Absolute
            coordinates interpolator.
        mass_interpolator (TimeInterpolator | None): Interpolator of
            :class:`TimeStampedValue` masses.
        additional_state_interpolator (TimeInterpolator | None):
            Interpolator of :class:`TimeStampedValue` additional states.

    Raises:
        StateDefinitionError: If neither an orbit nor an absolute coordinates
            interpolator is given.
    """

    def __init__(self, interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
                 orbit_interpolator: TimeInterpolator | None = None,
                 absolute_pv_interpolator: TimeInterpolator | None = None,
                 mass_interpolator: TimeInterpolator | None = None,
                 additional_state_interpolator: TimeInterpolator | None = None) -> None:
        if orbit_interpolator is None and absolute_pv_interpolator is None:
            raise StateDefinitionError(NO_INTERPOLATOR_DEFINED)
        super().__init__(interpolation_points, extrapolation_threshold)
        self.orbit_interpolator = orbit_interpolator
        self.absolute_pv_interpolator = absolute_pv_interpolator
        self.mass_interpolator = mass_interpolator
        self.additional_state_interpolator = additional_state_interpolator

    @classmethod
    def with_hermite_interpolators(cls, output_frame: Frame,
                                   interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                                   extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD,
                                   filter: DerivativesFilter = DerivativesFilter.USE_PVA
                                   ) -> SpacecraftStateInterpolator:
        """Build an interpolator using Hermite interpolation for every part.

        The orbit interpolator is only created when ``output_frame`` is
        pseudo-inertial.
        """
        args = (interpolation_points, extrapolation_threshold)
        orbit_interpolator = (OrbitHermiteInterpolator(*args, output_frame, filter)
                              if output_frame.pseudo_inertial else None)
        return cls(*args,
                   orbit_interpolator=orbit_interpolator,
                   absolute_pv_interpolator=AbsolutePVHermiteInterpolator(*args, output_frame,
                                                                          filter),
                   mass_interpolator=TimeStampedValueHermiteInterpolator(*args),
                   additional_state_interpolator=TimeStampedValueHermiteInterpolator(*args))

    def sub_interpolators(self) -> list[TimeInterpolator]:
        subs = [self]
        for interpolator in (self.orbit_interpolator, self.absolute_pv_interpolator,
                             self.mass_interpolator, self.additional_state_interpolator):
            if interpolator is not None:
                subs.extend(interpolator.sub_interpolators())
        return subs

    @property
    def interpolation_points(self) -> int:
        return max([self._interpolation_points]
                   + [sub.interpolation_points for sub in self.sub_interpolators()[1:]])

    def interpolate(self, date: Epoch, sample: Iterable[SpacecraftState]) -> SpacecraftState:
        """Interpolate the states at ``date``.

        Raises:
            StateDefinitionError: If the sample mixes orbit and absolute
                coordinates definitions, or if the interpolator matching the
                sample is missing.
            DimensionMismatchError: If the states carry different additional
                states.
        """
        sample = list(sample)
        if sample:
            orbit_defined = sample[0].is_orbit_defined
            if any(state.is_orbit_defined != orbit_defined for state in sample[1:]):
                raise StateDefinitionError(MIXED_STATE_DEFINITIONS)
            if orbit_defined and self.orbit_interpolator is None:
                raise StateDefinitionError(WRONG_INTERPOLATOR_DEFINED)
            if not orbit_defined and self.absolute_pv_interpolator is None:
                raise StateDefinitionError(WRONG_INTERPOLATOR_DEFINED)
            for state in sample[1:]:
                sample[0].ensure_compatible_additional_states(state)
        return super().interpolate(date, sample)

    def _interpolate(self, data: InterpolationData) -> SpacecraftState:
        date = data.date
        first = data.neighbors[0]

        if first.is_orbit_defined:
            definition = self.orbit_interpolator.interpolate(
                date, [state.orbit for state in data.sample])
        else:
            definition = self.absolute_pv_interpolator.interpolate(
                date, [state.absolute_pv for state in data.sample])

        if self.mass_interpolator is None:
            mass = first.mass
        else:
            masses = [TimeStampedValue(state.epoch, jnp.atleast_1d(state.mass))
                      for state in data.sample]
            mass = self.mass_interpolator.interpolate(date, masses).value[0]

        additional = {}
        if self.additional_state_interpolator is not None:
            for name in first.additional_states:
                values = [TimeStampedValue(state.epoch, state.additional_state(name))
                          for state in data.sample]
                additional[name] = self.additional_state_interpolator.interpolate(date, values).value
        logger.debug("Interpolated spacecraft state at %s with %d additional states", date,
                     len(additional))
        return SpacecraftState(definition, mass, additional)

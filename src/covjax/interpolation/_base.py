"""Common machinery of time interpolators.

:class:`TimeInterpolator` validates a sample (size, duplicated dates,
extrapolation threshold), sorts it and selects the neighbours of the
interpolation date before delegating to :meth:`TimeInterpolator._interpolate`.
Sample entries only need an ``epoch`` attribute.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, NamedTuple

import jax

from covjax.config import (
    DEFAULT_DATE_EQUALITY_THRESHOLD,
    DEFAULT_EXTRAPOLATION_THRESHOLD,
    DEFAULT_INTERPOLATION_POINTS,
    get_epoch_eq_tolerance,
)
from covjax.epoch import Epoch
from covjax.errors import ExtrapolationError, InsufficientSamplesError

logger = logging.getLogger(__name__)


class TimeStampedValue(NamedTuple):
    """Array value at an epoch, with optional time derivatives.

    Attributes:
        epoch: Epoch of the value.
        value: Value array.
        derivatives: First, second, ... time derivatives of ``value``.
    """

    epoch: Epoch
    value: jax.Array
    derivatives: tuple = ()


class TimeStampedPair:
    """Two objects sharing the same epoch.

    Args:
        first: First object, with an ``epoch`` attribute.
        second: Second object, with an ``epoch`` attribute.
        threshold (float): Maximum allowed date difference. Units: *s*

    Raises:
        ValueError: If the two dates differ by more than ``threshold``.
    """

    __slots__ = ('first', 'second')

    def __init__(self, first: Any, second: Any,
                 threshold: float = DEFAULT_DATE_EQUALITY_THRESHOLD) -> None:
        gap = abs(float(first.epoch - second.epoch))
        if gap > threshold:
            raise ValueError(
                f"dates of paired objects differ by {gap} s ({first.epoch} vs {second.epoch})"
            )
        self.first = first
        self.second = second

    @property
    def epoch(self) -> Epoch:
        return self.first.epoch

    def __iter__(self):
        return iter((self.first, self.second))

    def __repr__(self):
        return f'TimeStampedPair({self.first!r}, {self.second!r})'


class InterpolationData:
    """Validated and sorted sample with the neighbours of a date.

    Args:
        date (Epoch): Interpolation date.
        sample (list): Sample entries.
        interpolation_points (int): Number of neighbours to select.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*

    Raises:
        InsufficientSamplesError: If the sample is smaller than
            ``interpolation_points``.
        ValueError: If two entries share the same date.
        ExtrapolationError: If ``date`` is too far outside the sample span.
    """

    def __init__(self, date: Epoch, sample: list, interpolation_points: int,
                 extrapolation_threshold: float) -> None:
        count = len(sample)
        if count < interpolation_points:
            raise InsufficientSamplesError(count, interpolation_points)

        reference = sample[0].epoch
        offsets = [float(entry.epoch - reference) for entry in sample]
        order = sorted(range(count), key=offsets.__getitem__)
        ordered = [sample[i] for i in order]
        sorted_offsets = [offsets[i] for i in order]

        tolerance = get_epoch_eq_tolerance()
        for i in range(1, count):
            if sorted_offsets[i] - sorted_offsets[i - 1] < tolerance:
                raise ValueError(f"duplicated date {ordered[i].epoch} in interpolation sample")

        t = float(date - reference)
        if (t < sorted_offsets[0] - extrapolation_threshold - tolerance
                or t > sorted_offsets[-1] + extrapolation_threshold + tolerance):
            raise ExtrapolationError(
                f"date {date} is outside the sample span [{ordered[0].epoch}, "
                f"{ordered[-1].epoch}] by more than {extrapolation_threshold} s"
            )

        latest = 0
        for i, offset in enumerate(sorted_offsets):
            if offset <= t + tolerance:
                latest = i
        start = max(0, latest - (interpolation_points - 1) // 2)
        start = min(start, count - interpolation_points)

        self.date = date
        self.sample = ordered
        self.neighbors = ordered[start:start + interpolation_points]
        logger.debug("Interpolation at %s uses samples %d..%d of %d", date, start,
                     start + interpolation_points - 1, count)


class TimeInterpolator:
    """Base class of time interpolators.

    Args:
        interpolation_points (int): Number of neighbours used.
        extrapolation_threshold (float): Allowed distance outside the sample
            span. Units: *s*
    """

    def __init__(self, interpolation_points: int = DEFAULT_INTERPOLATION_POINTS,
                 extrapolation_threshold: float = DEFAULT_EXTRAPOLATION_THRESHOLD) -> None:
        if interpolation_points < 1:
            raise ValueError(f"interpolation points must be at least 1, got {interpolation_points}")
        self._interpolation_points = interpolation_points
        self.extrapolation_threshold = extrapolation_threshold

    @property
    def interpolation_points(self) -> int:
        return self._interpolation_points

    def sub_interpolators(self) -> list[TimeInterpolator]:
        """Interpolators this one delegates to, itself included."""
        return [self]

    def interpolate(self, date: Epoch, sample: Iterable) -> Any:
        """Interpolate the sample at ``date``.

        Args:
            date (Epoch): Interpolation date.
            sample (Iterable): Sample entries, in any order.

        Returns:
            Interpolated entry.
        """
        data = InterpolationData(date, list(sample), self.interpolation_points,
                                 self.extrapolation_threshold)
        return self._interpolate(data)

    def _interpolate(self, data: InterpolationData) -> Any:
        raise NotImplementedError

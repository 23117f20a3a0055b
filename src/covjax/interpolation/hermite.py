"""Hermite polynomial interpolation.

:class:`HermiteInterpolator` builds the divided-difference table of a
polynomial matching values and derivatives at sample abscissae.  Sample
values are arrays; all arithmetic uses ``jnp``, so interpolated values are
differentiable with respect to the samples.

References:

    1. J. Stoer, R. Bulirsch, *Introduction to Numerical Analysis*, 2002,
       Section 2.1.5.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from covjax.config import get_dtype
from covjax.interpolation._base import InterpolationData, TimeInterpolator, TimeStampedValue


class HermiteInterpolator:
    """Polynomial interpolator using values and derivatives.

    Examples:
        ```python
        interpolator = HermiteInterpolator()
        interpolator.add_sample_point(0.0, jnp.array([1.0]), jnp.array([0.0]))
        interpolator.add_sample_point(1.0, jnp.array([2.0]))
        interpolator.value(0.5)
        ```
    """

    def __init__(self) -> None:
        self._abscissae: list[float] = []
        self._top_diagonal: list[jax.Array] = []
        self._bottom_diagonal: list[jax.Array] = []

    def add_sample_point(self, x: float, value: ArrayLike, *derivatives: ArrayLike) -> None:
        """Add a sample point.

        Args:
            x (float): Abscissa.
            value (ArrayLike): Value at ``x``.
            *derivatives (ArrayLike): First, second, ... derivatives at ``x``.

        Raises:
            ValueError: If ``x`` was already used by a previous call.
        """
        factorial = 1.0
        for order, y in enumerate((value,) + derivatives):
            y = jnp.asarray(y, dtype=get_dtype())
            if order > 1:
                factorial *= order
                y = y / factorial

            n = len(self._abscissae)
            self._bottom_diagonal.insert(n - order, y)
            bottom0 = y
            for j in range(order, n):
                idx = n - (j + 1)
                delta = x - self._abscissae[idx]
                if delta == 0.0:
                    raise ValueError(f"duplicated abscissa {x} in Hermite interpolation")
                bottom0 = (bottom0 - self._bottom_diagonal[idx]) / delta
                self._bottom_diagonal[idx] = bottom0

            self._top_diagonal.append(bottom0)
            self._abscissae.append(x)

    def value(self, x: float) -> jax.Array:
        """Interpolated value at ``x``."""
        if not self._top_diagonal:
            raise ValueError("empty Hermite interpolation sample")
        result = jnp.zeros_like(self._top_diagonal[0])
        coefficient = 1.0
        for top, abscissa in zip(self._top_diagonal, self._abscissae):
            result = result + top * coefficient
            coefficient = coefficient * (x - abscissa)
        return result

    def derivatives(self, x: float, order: int) -> list[jax.Array]:
        """Interpolated value and derivatives up to ``order`` at ``x``.

        Returns:
            list[jax.Array]: ``[value, first derivative, ...]``.
        """
        if not self._top_diagonal:
            raise ValueError("empty Hermite interpolation sample")
        results = [jnp.zeros_like(self._top_diagonal[0]) for _ in range(order + 1)]
        coefficients = [1.0] + [0.0] * order
        for top, abscissa in zip(self._top_diagonal, self._abscissae):
            for j in range(order + 1):
                results[j] = results[j] + top * coefficients[j]
            delta = x - abscissa
            for j in range(order, 0, -1):
                coefficients[j] = coefficients[j] * delta + j * coefficients[j - 1]
            coefficients[0] = coefficients[0] * delta
        return results


class TimeStampedValueHermiteInterpolator(TimeInterpolator):
    """Hermite interpolation of :class:`TimeStampedValue` samples.

    Derivatives carried by the samples are used; the result carries the
    first derivative.
    """

    def _interpolate(self, data: InterpolationData) -> TimeStampedValue:
        interpolator = HermiteInterpolator()
        for entry in data.neighbors:
            interpolator.add_sample_point(float(entry.epoch - data.date), entry.value,
                                          *entry.derivatives)
        value, rate = interpolator.derivatives(0.0, 1)
        return TimeStampedValue(data.date, value, (rate,))

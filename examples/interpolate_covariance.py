# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "covjax"]
#
# [tool.uv.sources]
# covjax = { path = ".." }
# ///
"""Interpolate orbit/covariance pairs between sparse samples.

Propagates a covariance with the Keplerian propagator to build a sample of
(orbit, covariance) pairs, then interpolates between them with the
smoothstep blender and the Keplerian Hermite interpolator and compares
both against the directly propagated covariance.

Requires covjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/interpolate_covariance.py [OPTIONS]

Examples:
    # Samples every 10 minutes, cubic smoothstep, 4-point Hermite
    uv run examples/interpolate_covariance.py --spacing 600 --order 2 --points 4
"""

from typing import Annotated

import jax.numpy as jnp
import typer

from covjax import (
    Epoch,
    KeplerianPropagator,
    LOFType,
    Orbit,
    OrbitBlender,
    SpacecraftState,
    StateCovariance,
    StateCovarianceBlender,
    StateCovarianceKeplerianHermiteInterpolator,
    StateCovarianceMatrixProvider,
    TimeStampedPair,
    set_dtype,
    smoothstep,
)
from covjax.frames import gcrf

set_dtype(jnp.float64)

_EPOCH = Epoch("2016-02-13T16:00:00.000")
_PV = jnp.array([7.0e6, 0.0, 0.0, 0.0, 6.5e3, 4.0e3])


def _relative_error(actual: StateCovariance, expected: StateCovariance) -> float:
    diag_actual = jnp.diag(actual.matrix)
    diag_expected = jnp.diag(expected.matrix)
    return float(jnp.max(jnp.abs(diag_actual / diag_expected - 1.0)))


def main(
    spacing: Annotated[float, typer.Option(help="Sample spacing in seconds")] = 600.0,
    samples: Annotated[int, typer.Option(help="Number of samples")] = 8,
    order: Annotated[int, typer.Option(help="Smoothstep order of the blender")] = 2,
    points: Annotated[int, typer.Option(help="Hermite interpolation points")] = 4,
) -> None:
    """Compare covariance interpolators against direct propagation."""
    orbit = Orbit(_PV, _EPOCH, gcrf())
    sigmas = jnp.array([10.0, 50.0, 5.0, 0.05, 0.01, 0.005])
    initial = StateCovariance(jnp.diag(sigmas**2), _EPOCH, LOFType.QSW)

    propagator = KeplerianPropagator(SpacecraftState(orbit))
    provider = StateCovarianceMatrixProvider(
        "covariance", "stm", propagator.setup_matrices_computation("stm"), initial)
    propagator.add_additional_state_provider(provider)

    sample = []
    for k in range(samples):
        state = propagator.propagate(_EPOCH + k * spacing)
        sample.append(TimeStampedPair(state.orbit, provider.state_covariance(state)))
    print(f"── Built {len(sample)} samples every {spacing:.0f} s ──")

    blender = StateCovarianceBlender(smoothstep(order), OrbitBlender(smoothstep(order)),
                                     LOFType.QSW)
    hermite = StateCovarianceKeplerianHermiteInterpolator(points, output=LOFType.QSW)

    print("\n     t [s]   blender err   hermite err   (max relative variance error)")
    t = 0.5 * spacing
    while t < (samples - 1) * spacing:
        date = _EPOCH + t
        truth = provider.state_covariance(propagator.propagate(date), LOFType.QSW)
        _, blended = blender.interpolate(date, sample)
        _, fitted = hermite.interpolate(date, sample)
        print(f"  {t:8.0f}   {_relative_error(blended, truth):11.3e}   "
              f"{_relative_error(fitted, truth):11.3e}")
        t += spacing


if __name__ == "__main__":
    typer.run(main)

# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "covjax"]
#
# [tool.uv.sources]
# covjax = { path = ".." }
# ///
"""Propagate an orbital covariance alongside a numerical orbit.

Integrates a LEO state and its state transition matrix with a fixed-step
RK4 integrator (two-body or J2 gravity), attaches a covariance provider
initialised in the QSW local orbital frame, generates a bounded ephemeris
and prints the growth of the radial / along-track / cross-track position
uncertainty.

Requires covjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate_covariance.py [OPTIONS]

Examples:
    # One orbit with J2, 30 s steps, report every 10 minutes
    uv run examples/propagate_covariance.py --duration 5800 --report 600

    # Two-body only, compared against the analytical Keplerian propagator
    uv run examples/propagate_covariance.py --no-j2 --compare-keplerian
"""

import time
from typing import Annotated

import jax.numpy as jnp
import typer

from covjax import (
    Epoch,
    KeplerianPropagator,
    LOFType,
    NumericalPropagator,
    Orbit,
    SpacecraftState,
    StateCovariance,
    StateCovarianceMatrixProvider,
    set_dtype,
)
from covjax.frames import eme2000
from covjax.propagation import DynamicsConfig

set_dtype(jnp.float64)

_EPOCH = Epoch("2016-02-13T16:00:00.000")
_PV = jnp.array([7.0e6, 0.0, 0.0, 0.0, 6.5e3, 4.0e3])
_SIGMAS_QSW = jnp.array([10.0, 50.0, 5.0, 0.05, 0.01, 0.005])


def _sigmas(covariance: StateCovariance) -> jnp.ndarray:
    return jnp.sqrt(jnp.diag(covariance.matrix)[:3])


def main(
    duration: Annotated[float, typer.Option(help="Propagation duration in seconds")] = 5800.0,
    step: Annotated[float, typer.Option(help="Integration step in seconds")] = 30.0,
    report: Annotated[float, typer.Option(help="Reporting interval in seconds")] = 600.0,
    j2: Annotated[bool, typer.Option(help="Include the J2 zonal harmonic")] = True,
    compare_keplerian: Annotated[
        bool, typer.Option(help="Also propagate with the Keplerian propagator")
    ] = False,
) -> None:
    """Propagate a QSW covariance and print its position sigmas."""
    orbit = Orbit(_PV, _EPOCH, eme2000())
    initial = StateCovariance(jnp.diag(_SIGMAS_QSW**2), _EPOCH, LOFType.QSW)

    propagator = NumericalPropagator(SpacecraftState(orbit), step=step,
                                     config=DynamicsConfig(gm=orbit.gm, j2=j2))
    harvester = propagator.setup_matrices_computation("stm")
    provider = StateCovarianceMatrixProvider("covariance", "stm", harvester, initial)
    propagator.add_additional_state_provider(provider)

    keplerian_provider = None
    if compare_keplerian:
        keplerian = KeplerianPropagator(SpacecraftState(orbit))
        keplerian_provider = StateCovarianceMatrixProvider(
            "covariance", "stm", keplerian.setup_matrices_computation("stm"), initial)
        keplerian.add_additional_state_provider(keplerian_provider)

    print(f"── Generating ephemeris over {duration:.0f} s (step {step:.0f} s, J2={j2}) ──")
    t0 = time.perf_counter()
    ephemeris = propagator.generate_ephemeris(_EPOCH + duration)
    print(f"  Done in {time.perf_counter() - t0:.1f}s "
          f"[{ephemeris.min_date} .. {ephemeris.max_date}]")

    print("\n     t [s]    sigma_R [m]   sigma_S [m]   sigma_W [m]")
    t = 0.0
    while t <= duration:
        state = ephemeris.propagate(_EPOCH + t)
        sigmas = _sigmas(provider.state_covariance(state, LOFType.QSW))
        line = f"  {t:8.0f}" + "".join(f"  {float(s):12.3f}" for s in sigmas)
        if keplerian_provider is not None:
            reference = keplerian.propagate(_EPOCH + t)
            keplerian_sigmas = _sigmas(keplerian_provider.state_covariance(reference, LOFType.QSW))
            line += f"   (Keplerian S: {float(keplerian_sigmas[1]):.3f})"
        print(line)
        t += report


if __name__ == "__main__":
    typer.run(main)

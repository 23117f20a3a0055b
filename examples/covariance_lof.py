# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "covjax"]
#
# [tool.uv.sources]
# covjax = { path = ".." }
# ///
"""Express one orbital covariance in several frames and parameterisations.

Builds the test case of Vallado's *Covariance Transformations for
Satellite Flight Dynamics Operations* (a 6x6 Cartesian covariance in
EME2000 at 2000-12-15 16:58:50.208 UTC) and prints it in a local orbital
frame, in Keplerian elements and in the Earth-fixed frame, along with the
position standard deviations in each.

Requires covjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/covariance_lof.py [OPTIONS]

Examples:
    # Radial / along-track / cross-track (QSW)
    uv run examples/covariance_lof.py --lof QSW

    # Velocity-aligned frame, ignoring the frame rotation rate
    uv run examples/covariance_lof.py --lof TNW_INERTIAL

    # Apply a UT1 - UTC offset (seconds) to the ITRF conversion
    uv run examples/covariance_lof.py --ut1-utc -0.4399619
"""

from typing import Annotated

import jax.numpy as jnp
import typer

from covjax import Epoch, LOFType, Orbit, OrbitType, PositionAngleType, StateCovariance, set_dtype
from covjax.eop import static_eop
from covjax.frames import eme2000, itrf

set_dtype(jnp.float64)

_EPOCH = Epoch(2000, 12, 15, 16, 58, 50.208)
_PV = jnp.array([-605792.21660, -5870229.51108, 3493053.19896,
                 -1568.25429, -3702.34891, -6479.48395])
_COVARIANCE = jnp.array([
    [9.7543e-01, 1.1290e-02, -6.8980e-03, -3.1302e-02, 4.6745e-03, -1.1550e-01],
    [1.1290e-02, 9.7630e-01, 1.0500e-02, -1.8210e-03, 5.7090e-03, -1.1270e-02],
    [-6.8980e-03, 1.0500e-02, 1.0157e+00, 3.8900e-03, 2.1440e-03, 6.6810e-03],
    [-3.1302e-02, -1.8210e-03, 3.8900e-03, 9.0430e-03, 2.3160e-03, 3.5990e-04],
    [4.6745e-03, 5.7090e-03, 2.1440e-03, 2.3160e-03, 1.1580e-02, 1.2590e-03],
    [-1.1550e-01, -1.1270e-02, 6.6810e-03, 3.5990e-04, 1.2590e-03, 1.1680e-01],
]) * 1e-6


def _print_matrix(title: str, covariance: StateCovariance) -> None:
    print(f"\n── {title} ──")
    for row in covariance.matrix:
        print("  " + " ".join(f"{float(x): .4e}" for x in row))


def _position_sigmas(covariance: StateCovariance) -> str:
    sigmas = jnp.sqrt(jnp.diag(covariance.matrix)[:3])
    return ", ".join(f"{float(s) * 1e3:.3f} mm" for s in sigmas)


def main(
    lof: Annotated[str, typer.Option(help="Local orbital frame name (see LOFType)")] = "QSW",
    ut1_utc: Annotated[float, typer.Option(help="UT1 - UTC for the ITRF conversion, in seconds")] = 0.0,
) -> None:
    """Print the reference covariance in several representations."""
    try:
        lof_type = LOFType[lof.upper()]
    except KeyError:
        names = ", ".join(member.name for member in LOFType)
        print(f"ERROR: unknown local orbital frame '{lof}'. Choose one of: {names}")
        raise typer.Exit(code=1) from None

    orbit = Orbit(_PV, _EPOCH, eme2000())
    covariance = StateCovariance(_COVARIANCE, _EPOCH, eme2000())
    _print_matrix("EME2000 Cartesian", covariance)

    in_lof = covariance.change_frame(orbit, lof_type)
    _print_matrix(f"{lof_type.name} Cartesian", in_lof)
    print(f"  position sigmas: {_position_sigmas(in_lof)}")

    keplerian = covariance.change_type(orbit, OrbitType.KEPLERIAN, PositionAngleType.MEAN)
    _print_matrix("EME2000 Keplerian (mean anomaly)", keplerian)

    fixed_frame = itrf(static_eop(ut1_utc=ut1_utc)) if ut1_utc else itrf()
    fixed = covariance.change_frame(orbit, fixed_frame)
    _print_matrix("ITRF Cartesian", fixed)

    back = fixed.change_frame(orbit, eme2000())
    error = float(jnp.max(jnp.abs(back.matrix - covariance.matrix)))
    print(f"\nEME2000 -> ITRF -> EME2000 max abs error: {error:.3e}")


if __name__ == "__main__":
    typer.run(main)

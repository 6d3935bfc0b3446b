"""Per-sample semi-major-axis and eccentricity bounds over the CAR grid.

For every grid value of the abscissa (range for the optical CAR, RA-rate for
the range CAR) this module computes the ordinate interval allowed by
``amin``, ``amax`` and ``emax``. A bound that does not exist at a sample is
``None``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from orbcar.core.geometry import OpticalGeometry, RangeGeometry
from orbcar.core.interpolation import ellipse_table
from orbcar.utils.constants import ROOT_IMAGINARY_TOLERANCE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundPair:
    """Closed ordinate interval at one grid sample."""

    lower: float
    upper: float


@dataclass(frozen=True)
class GridSample:
    """Bounds available at one abscissa value.

    Attributes:
        domain: Abscissa value.
        a_min: Ordinates where the orbit has ``a == amin``.
        a_max: Ordinates where the orbit has ``a == amax``.
        e_max: Extreme ordinates where ``e == emax``.
    """

    domain: float
    a_min: BoundPair | None = None
    a_max: BoundPair | None = None
    e_max: BoundPair | None = None


def energy_bounds(w1: float, f: float, energy: float) -> BoundPair | None:
    """Range-rates where twice the specific energy equals ``2 * energy``.

    Solves ``x**2 + w1*x + F - 2E = 0``.

    Args:
        w1: Linear coefficient of the energy quadratic.
        f: Range-dependent energy term F.
        energy: Specific energy -mu / (2a).

    Returns:
        The two roots, or None for a negative discriminant.
    """
    discriminant = w1 * w1 / 4.0 - f + 2.0 * energy
    if discriminant < 0:
        return None
    root = math.sqrt(discriminant)
    return BoundPair(lower=-w1 / 2.0 - root, upper=-w1 / 2.0 + root)


def real_root_bounds(
    coefficients: ArrayLike, tolerance: float = ROOT_IMAGINARY_TOLERANCE
) -> BoundPair | None:
    """Smallest and largest real root of a polynomial.

    A root counts as real when ``abs(root.imag) < tolerance`` (strict).

    Args:
        coefficients: Polynomial coefficients, highest degree first.
        tolerance: Imaginary-part threshold.

    Returns:
        BoundPair(min_real_root, max_real_root), or None without real roots.
    """
    roots = np.roots(coefficients)
    real = roots.real[np.abs(roots.imag) < tolerance]
    if real.size == 0:
        return None
    return BoundPair(lower=float(real.min()), upper=float(real.max()))


def optical_grid(
    geometry: OpticalGeometry,
    grid_spacing: float,
    amin: float,
    amax: float,
    emax: float,
) -> list[GridSample]:
    """Bounds on range-rate over a range grid ``[0, 2 * amax]``.

    Args:
        geometry: Invariants of the optical measurement.
        grid_spacing: Range step (km).
        amin: Minimum semi-major axis (km).
        amax: Maximum semi-major axis (km).
        emax: Maximum eccentricity.

    Returns:
        One GridSample per range value.
    """
    count = math.floor(2.0 * amax / grid_spacing) + 1
    domain = np.arange(count) * grid_spacing

    energy_min = -geometry.mu / (2.0 * amin)
    energy_max = -geometry.mu / (2.0 * amax)

    samples = []
    for rho in domain:
        rho = float(rho)
        f = geometry.energy_polynomial(rho)
        samples.append(
            GridSample(
                domain=rho,
                a_min=energy_bounds(geometry.w1, f, energy_min),
                a_max=energy_bounds(geometry.w1, f, energy_max),
                e_max=real_root_bounds(geometry.eccentricity_quartic(rho, emax)),
            )
        )

    logger.debug("Optical grid: %d samples, step %.3f km", count, grid_spacing)
    return samples


def range_grid(
    geometry: RangeGeometry,
    grid_spacing: float,
    amin: float,
    amax: float,
    emax: float,
) -> list[GridSample]:
    """Bounds on Dec-rate over an RA-rate grid centred on the energy ellipse.

    Semi-major-axis bounds come from tabulated ellipses; eccentricity bounds
    keep only the extreme real roots, so at most one admissible Dec-rate
    interval per RA-rate is represented.

    Args:
        geometry: Invariants of the range measurement.
        grid_spacing: RA-rate step (rad/s).
        amin: Minimum semi-major axis (km).
        amax: Maximum semi-major axis (km).
        emax: Maximum eccentricity.

    Returns:
        One GridSample per RA-rate value.
    """
    half_width = geometry.domain_half_width()
    count = math.floor(2.0 * half_width / grid_spacing) + 1
    domain = np.arange(count) * grid_spacing - half_width

    table_min = ellipse_table(*geometry.energy_ellipse(amin))
    table_max = ellipse_table(*geometry.energy_ellipse(amax))

    samples = []
    for ra_rate in domain:
        ra_rate = float(ra_rate)
        samples.append(
            GridSample(
                domain=ra_rate,
                a_min=_table_bounds(table_min.interpolate(ra_rate)),
                a_max=_table_bounds(table_max.interpolate(ra_rate)),
                e_max=real_root_bounds(geometry.eccentricity_quartic(ra_rate, emax)),
            )
        )

    logger.debug("Range grid: %d samples over +/-%.3e rad/s", count, half_width)
    return samples


def _table_bounds(bounds: tuple[float, float]) -> BoundPair | None:
    lower, upper = bounds
    if lower < upper:
        return BoundPair(lower=lower, upper=upper)
    return None


def has_admissible_samples(samples: list[GridSample]) -> bool:
    """True if any sample has an eccentricity bound and an SMA bound."""
    return any(
        s.e_max is not None and (s.a_max is not None or s.a_min is not None)
        for s in samples
    )

"""Constrained admissible region (CAR) construction.

Builds the region of unobserved states consistent with a single
measurement and bounds on semi-major axis and eccentricity, and returns it
as a weighted mixture of bivariate Gaussians ready to seed a filter.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from orbcar.core.boundaries import has_admissible_samples, optical_grid, range_grid
from orbcar.core.geometry import CARMode, OpticalGeometry, RangeGeometry
from orbcar.core.hypotheses import GaussianComponent, generate_hypotheses
from orbcar.core.mixture import MixtureFit, fit_mixture
from orbcar.core.region import CARRegion, split_region
from orbcar.core.split_library import SplitLibrary, load_split_library
from orbcar.core.station import StationState
from orbcar.utils.constants import EARTH_MU_KM3_S2, FIT_MAX_EVALUATIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CARResult:
    """Gaussian-mixture CAR.

    Attributes:
        mode: Measurement model used.
        components: Weighted hypotheses; empty when nothing is admissible.
        region: Admissible region, None if degenerate.
        fit: Abscissa weight fit, None if degenerate.
    """

    mode: CARMode
    components: tuple[GaussianComponent, ...] = ()
    region: CARRegion | None = None
    fit: MixtureFit | None = None

    def __len__(self) -> int:
        return len(self.components)

    @property
    def admissible(self) -> bool:
        return bool(self.components)

    @property
    def total_weight(self) -> float:
        return float(sum(c.weight for c in self.components))

    def as_gmm(self) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Mixture as arrays for filter initialisation.

        Returns:
            Tuple of (weights (n,), means (n, 2), covariances (n, 2, 2)).
        """
        if not self.components:
            return np.empty(0), np.empty((0, 2)), np.empty((0, 2, 2))
        weights = np.array([c.weight for c in self.components])
        means = np.array([c.mean for c in self.components])
        covariances = np.array([c.covariance for c in self.components])
        return weights, means, covariances


def _validate(
    measurement: Sequence[float],
    sigma1: float,
    sigma2: float,
    grid_spacing: float,
    amin: float,
    amax: float,
    emax: float,
) -> None:
    problems = []
    if len(measurement) != 4:
        problems.append(f"measurement must have 4 values, got {len(measurement)}")
    elif not all(math.isfinite(m) for m in measurement):
        problems.append(f"measurement contains non-finite values: {list(measurement)}")
    if not sigma1 > 0 or not sigma2 > 0:
        problems.append(f"sigmas must be positive, got {sigma1}, {sigma2}")
    if not grid_spacing > 0:
        problems.append(f"grid_spacing must be positive, got {grid_spacing}")
    if not amin > 0:
        problems.append(f"amin must be positive, got {amin}")
    if not amax > amin:
        problems.append(f"amax must exceed amin, got amin={amin}, amax={amax}")
    if not 0 <= emax < 1:
        problems.append(f"emax must lie in [0, 1), got {emax}")

    if problems:
        logger.error("Invalid CAR inputs: %s", "; ".join(problems))
        raise ValueError("Invalid CAR inputs: " + "; ".join(problems))


def construct_car(
    measurement: Sequence[float],
    station: StationState,
    sigma1: float,
    sigma2: float,
    grid_spacing: float,
    amin: float,
    amax: float,
    emax: float,
    mode: CARMode = CARMode.OPTICAL,
    *,
    library: SplitLibrary | None = None,
    mu: float = EARTH_MU_KM3_S2,
    max_evaluations: int = FIT_MAX_EVALUATIONS,
    require_convergence: bool = False,
) -> CARResult:
    """Main entry point. Build the Gaussian-mixture CAR of a measurement.

    Args:
        measurement: ``(ra, dec, ra_rate, dec_rate)`` for ``CARMode.OPTICAL``
            or ``(ra, dec, range, range_rate)`` for ``CARMode.RANGE``
            (rad, rad/s, km, km/s).
        station: Observer state at the measurement epoch.
        sigma1: Desired std along the abscissa (range in km, or RA-rate).
        sigma2: Desired std along the ordinate (range-rate in km/s, or
            Dec-rate).
        grid_spacing: Abscissa grid step.
        amin: Minimum semi-major axis (km).
        amax: Maximum semi-major axis (km).
        emax: Maximum eccentricity, in [0, 1).
        mode: Measurement model.
        library: Split-size library; the packaged table by default.
        mu: Gravitational parameter (km³/s²).
        max_evaluations: Evaluation budget of the weight fit.
        require_convergence: Raise if the weight fit does not converge.

    Returns:
        CARResult. An empty result means no admissible region exists.

    Raises:
        ValueError: If the inputs are invalid.
        SplitLibraryError: If the split-size table cannot be loaded.
        FitConvergenceError: If ``require_convergence`` and the fit fails.
    """
    _validate(measurement, sigma1, sigma2, grid_spacing, amin, amax, emax)
    if library is None:
        library = load_split_library()

    m1, m2, m3, m4 = (float(m) for m in measurement)
    if mode == CARMode.OPTICAL:
        optical = OpticalGeometry.from_measurement(m1, m2, m3, m4, station, mu=mu)
        samples = optical_grid(optical, grid_spacing, amin, amax, emax)
    elif mode == CARMode.RANGE:
        if not m3 > 0:
            logger.error("Range CAR needs a positive range, got %s", m3)
            raise ValueError(f"Range CAR needs a positive range, got {m3}")
        ranged = RangeGeometry.from_measurement(m1, m2, m3, m4, station, mu=mu)
        samples = range_grid(ranged, grid_spacing, amin, amax, emax)
    else:
        raise ValueError(f"Unknown mode: {mode}")

    if not has_admissible_samples(samples):
        logger.info("%s CAR is empty: no sample satisfies both SMA and eccentricity bounds",
                    mode.value)
        return CARResult(mode=mode)

    region = split_region(samples)
    if region is None:
        logger.info("%s CAR is empty: no valid truncated region", mode.value)
        return CARResult(mode=mode)

    fit = fit_mixture(
        region,
        sigma1,
        library,
        max_evaluations=max_evaluations,
        require_convergence=require_convergence,
    )
    components = generate_hypotheses(region, fit, sigma2, library)

    logger.debug("%s CAR: %d components over [%.6e, %.6e]", mode.value, len(components),
                 region.domain_start, region.domain_end)
    return CARResult(mode=mode, components=tuple(components), region=region, fit=fit)

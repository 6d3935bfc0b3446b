"""Gaussian-mixture fit of the abscissa marginal density.

Candidate components are placed evenly over the admissible abscissa span
using the split-size library; their weights are then fitted to the
per-cell density of the region by bounded least squares.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import least_squares

from orbcar.core.region import CARRegion
from orbcar.core.split_library import SplitLibrary
from orbcar.utils.constants import FIT_MAX_EVALUATIONS, FIT_TOLERANCE

logger = logging.getLogger(__name__)


class FitConvergenceError(RuntimeError):
    """The weight fit ran out of evaluations before converging."""


@dataclass(frozen=True, eq=False)
class MixtureFit:
    """Result of the abscissa weight fit.

    Attributes:
        means: Candidate component means.
        sigma: Standard deviation shared by all candidates.
        weights: Normalised weights; excluded candidates carry 0.
        converged: False if the evaluation budget ran out.
        evaluations: Number of residual evaluations used.
        cost: Final least-squares cost (half the squared residual norm).
    """

    means: NDArray[np.float64]
    sigma: float
    weights: NDArray[np.float64]
    converged: bool
    evaluations: int
    cost: float

    def surviving(self) -> list[tuple[float, float]]:
        """(mean, weight) pairs with a positive weight."""
        return [(float(m), float(w)) for m, w in zip(self.means, self.weights) if w > 0]


def gaussian_basis(
    centres: NDArray[np.float64], means: NDArray[np.float64], sigma: float
) -> NDArray[np.float64]:
    """Normal pdf of each candidate (columns) at each cell centre (rows)."""
    diff = centres[:, np.newaxis] - means[np.newaxis, :]
    return np.exp(-diff ** 2 / (2.0 * sigma ** 2)) / math.sqrt(2.0 * math.pi * sigma ** 2)


def fit_mixture(
    region: CARRegion,
    sigma1: float,
    library: SplitLibrary,
    max_evaluations: int = FIT_MAX_EVALUATIONS,
    tolerance: float = FIT_TOLERANCE,
    require_convergence: bool = False,
) -> MixtureFit:
    """Fit candidate weights in ``[0, 1]`` to the region's abscissa density.

    Args:
        region: Admissible region with its per-cell density.
        sigma1: Desired abscissa standard deviation.
        library: Split-size library.
        max_evaluations: Evaluation budget of the solver.
        tolerance: ftol/xtol/gtol passed to the solver.
        require_convergence: Raise instead of warning when the budget runs out.

    Returns:
        MixtureFit with normalised weights.

    Raises:
        FitConvergenceError: If ``require_convergence`` and the fit did not
            converge.
    """
    means, sigma = library.split(region.domain_start, region.domain_end, sigma1)
    basis = gaussian_basis(region.centres, means, sigma)
    target = region.density

    def project(w: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.clip(w, 0.0, 1.0)

    def residuals(w: NDArray[np.float64]) -> NDArray[np.float64]:
        return basis @ project(w) - target

    def jacobian(w: NDArray[np.float64]) -> NDArray[np.float64]:
        return basis

    result = least_squares(
        residuals,
        np.zeros(len(means)),
        jac=jacobian,
        bounds=(0.0, 1.0),
        method="trf",
        ftol=tolerance,
        xtol=tolerance,
        gtol=tolerance,
        max_nfev=max_evaluations,
    )

    converged = result.status > 0
    if not converged:
        if require_convergence:
            logger.error("Weight fit did not converge after %d evaluations: %s",
                         result.nfev, result.message)
            raise FitConvergenceError(
                f"Weight fit did not converge after {result.nfev} evaluations: {result.message}"
            )
        logger.warning("Weight fit did not converge after %d evaluations, using best point: %s",
                       result.nfev, result.message)

    weights = project(result.x)
    total = float(weights.sum())
    if total > 0:
        weights = weights / total
    else:
        logger.warning("Weight fit returned all-zero weights for %d candidates", len(means))

    # exact zeros contribute nothing; out-of-range values cannot survive projection
    excluded = (weights == 0) | (weights < 0) | (weights > 1)
    weights = np.where(excluded, 0.0, weights)

    logger.debug("Mixture fit: %d candidates, sigma=%.6e, %d kept, cost=%.3e, nfev=%d",
                 len(means), sigma, int(np.count_nonzero(weights)), result.cost, result.nfev)
    return MixtureFit(
        means=means,
        sigma=sigma,
        weights=weights,
        converged=converged,
        evaluations=int(result.nfev),
        cost=float(result.cost),
    )

"""Ordinate splitting of fitted abscissa components into CAR hypotheses."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np
from numpy.typing import NDArray

from orbcar.core.mixture import MixtureFit
from orbcar.core.region import CARRegion, Segment
from orbcar.core.split_library import SplitLibrary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaussianComponent:
    """One bivariate Gaussian hypothesis with diagonal covariance.

    For the optical CAR the abscissa is range and the ordinate range-rate;
    for the range CAR they are RA-rate and Dec-rate.
    """

    abscissa_mean: float
    ordinate_mean: float
    abscissa_std: float
    ordinate_std: float
    weight: float

    @property
    def mean(self) -> NDArray[np.float64]:
        return np.array([self.abscissa_mean, self.ordinate_mean])

    @property
    def covariance(self) -> NDArray[np.float64]:
        return np.diag([self.abscissa_std ** 2, self.ordinate_std ** 2])


def split_segment(
    segment: Segment, x: float, sigma2: float, library: SplitLibrary
) -> tuple[NDArray[np.float64], float] | None:
    """Ordinate means and std across one arc at abscissa ``x``.

    Returns:
        Tuple of (ordinate_means, ordinate_std), or None where the arc has
        no positive width at ``x``.
    """
    lower, upper = segment.bounds_at(x)
    if not upper > lower:
        return None
    return library.split(lower, upper, sigma2)


def generate_hypotheses(
    region: CARRegion,
    fit: MixtureFit,
    sigma2: float,
    library: SplitLibrary,
) -> list[GaussianComponent]:
    """Expand each weighted abscissa mean into ordinate sub-components.

    The parent weight is shared equally by every component generated for
    that mean, across all arcs active in its cell.

    Args:
        region: Admissible region.
        fit: Fitted abscissa mixture.
        sigma2: Desired ordinate standard deviation.
        library: Split-size library.

    Returns:
        Components whose weights sum to 1.
    """
    components: list[GaussianComponent] = []
    lost = False

    for mean, weight in fit.surviving():
        cell = region.locate(mean)
        if cell is None:
            logger.warning("Abscissa mean %.6e lies outside the admissible region", mean)
            lost = True
            continue

        splits = []
        for segment in cell.segments:
            split = split_segment(segment, mean, sigma2, library)
            if split is not None:
                splits.append(split)

        count = sum(len(ordinates) for ordinates, _ in splits)
        if count == 0:
            logger.warning("No admissible ordinates at abscissa %.6e (%s cell), dropping weight %.3e",
                           mean, cell.kind.value, weight)
            lost = True
            continue

        for ordinates, ordinate_std in splits:
            for ordinate in ordinates:
                components.append(GaussianComponent(
                    abscissa_mean=mean,
                    ordinate_mean=float(ordinate),
                    abscissa_std=fit.sigma,
                    ordinate_std=ordinate_std,
                    weight=weight / count,
                ))

    if lost and components:
        total = sum(c.weight for c in components)
        components = [replace(c, weight=c.weight / total) for c in components]

    logger.debug("Generated %d hypotheses from %d abscissa components",
                 len(components), len(fit.surviving()))
    return components

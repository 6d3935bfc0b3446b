"""Piecewise-linear lookup over (x, lower, upper) boundary tables."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from orbcar.utils.constants import ELLIPSE_TABLE_SAMPLES

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class BoundaryTable:
    """Lower/upper bounds sampled over an ascending domain column.

    Attributes:
        domain: Ascending x values, shape (n,), n >= 2.
        lower: Lower bound at each x.
        upper: Upper bound at each x.
    """

    domain: NDArray[np.float64]
    lower: NDArray[np.float64]
    upper: NDArray[np.float64]

    def __post_init__(self) -> None:
        if len(self.domain) < 2 or not len(self.domain) == len(self.lower) == len(self.upper):
            logger.error("Boundary table needs >= 2 rows of equal length, got %d/%d/%d",
                         len(self.domain), len(self.lower), len(self.upper))
            raise ValueError("Boundary table needs at least 2 rows and equal column lengths")

    def __len__(self) -> int:
        return len(self.domain)

    def interpolate(self, x: float) -> tuple[float, float]:
        """Linearly interpolate (lower, upper) at ``x``.

        Queries outside the table are extrapolated from the first or last
        pair of rows. Callers rely on this to detect that the bounds have
        crossed (lower > upper) past the ends of the table.
        """
        # first bracket whose right edge is at or beyond x
        i = int(np.searchsorted(self.domain, x, side="left")) - 1
        i = min(max(i, 0), len(self.domain) - 2)

        x0, x1 = self.domain[i], self.domain[i + 1]
        slope_lower = (self.lower[i + 1] - self.lower[i]) / (x1 - x0)
        slope_upper = (self.upper[i + 1] - self.upper[i]) / (x1 - x0)
        return (
            float(slope_lower * (x - x0) + self.lower[i]),
            float(slope_upper * (x - x0) + self.upper[i]),
        )


def ellipse_table(
    centre_x: float,
    centre_y: float,
    semi_x: float,
    semi_y: float,
    samples: int = ELLIPSE_TABLE_SAMPLES,
) -> BoundaryTable:
    """Tabulate an axis-aligned ellipse as lower/upper arcs over x.

    Rows run over angles from 180 degrees down in whole-degree steps, so the
    domain column ascends from the left vertex.

    Args:
        centre_x: Ellipse centre along the domain axis.
        centre_y: Ellipse centre along the bound axis.
        semi_x: Semi-axis along the domain.
        semi_y: Semi-axis along the bound axis.
        samples: Number of rows.

    Returns:
        BoundaryTable with ``samples`` rows.
    """
    theta = (180 - np.arange(samples)) * math.pi / 180.0
    return BoundaryTable(
        domain=centre_x + semi_x * np.cos(theta),
        lower=centre_y - semi_y * np.sin(theta),
        upper=centre_y + semi_y * np.sin(theta),
    )

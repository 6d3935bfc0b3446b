"""Partition of the admissible region into main, upper and lower arcs.

Where the ``amin`` constraint cuts a hole out of the ``amax``/``emax``
interval the region splits into an upper and a lower arc; once the hole
closes a single main arc remains. Each grid cell of the truncated region is
tagged with the arcs active across it, and the marginal density of the
abscissa is computed per cell from the arc widths.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

from orbcar.core.boundaries import GridSample

logger = logging.getLogger(__name__)


class CellKind(Enum):
    """Which boundary arcs are active across a grid cell."""

    UPPER_LOWER = "upper_lower"
    TRANSITION = "transition"
    MAIN = "main"
    GAP = "gap"


@dataclass(frozen=True)
class BoundaryPoint:
    """Admissible ordinate interval of one arc at one abscissa."""

    domain: float
    lower: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class BoundaryCurve:
    """Piecewise-linear arc, ordered by abscissa."""

    points: tuple[BoundaryPoint, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[BoundaryPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> BoundaryPoint:
        return self.points[index]


@dataclass(frozen=True)
class Segment:
    """Part of one arc between two consecutive grid values."""

    start: BoundaryPoint
    end: BoundaryPoint

    @property
    def mean_width(self) -> float:
        return (self.start.width + self.end.width) / 2.0

    @property
    def area(self) -> float:
        """Trapezoid area between the upper and lower bound."""
        return self.mean_width * (self.end.domain - self.start.domain)

    def bounds_at(self, x: float) -> tuple[float, float]:
        """Interpolated (lower, upper) at abscissa ``x``."""
        span = self.end.domain - self.start.domain
        t = (x - self.start.domain) / span
        lower = self.start.lower + t * (self.end.lower - self.start.lower)
        upper = self.start.upper + t * (self.end.upper - self.start.upper)
        return lower, upper


@dataclass(frozen=True)
class Cell:
    """One grid interval of the truncated region."""

    left: float
    right: float
    kind: CellKind
    segments: tuple[Segment, ...] = ()

    @property
    def centre(self) -> float:
        return self.left + (self.right - self.left) / 2.0

    def contains(self, x: float) -> bool:
        return self.left <= x <= self.right


@dataclass(frozen=True, eq=False)
class CARRegion:
    """Truncated admissible region and its abscissa density.

    Attributes:
        start_index: First grid index of the region.
        end_index: Last grid index of the region (inclusive).
        domain: Abscissa values from start to end.
        upper: Upper arc.
        lower: Lower arc.
        main: Main arc.
        cells: One cell per consecutive pair of domain values.
        area: Total area of the region.
        density: Marginal abscissa density per cell (integrates to 1).
    """

    start_index: int
    end_index: int
    domain: NDArray[np.float64]
    upper: BoundaryCurve
    lower: BoundaryCurve
    main: BoundaryCurve
    cells: tuple[Cell, ...]
    area: float
    density: NDArray[np.float64]

    @property
    def domain_start(self) -> float:
        return float(self.domain[0])

    @property
    def domain_end(self) -> float:
        return float(self.domain[-1])

    @property
    def centres(self) -> NDArray[np.float64]:
        return np.array([cell.centre for cell in self.cells], dtype=np.float64)

    def locate(self, x: float) -> Cell | None:
        """First cell whose closed interval contains ``x``."""
        for cell in self.cells:
            if cell.contains(x):
                return cell
        return None


@dataclass(frozen=True)
class _Arcs:
    upper: BoundaryPoint | None = None
    lower: BoundaryPoint | None = None
    main: BoundaryPoint | None = None

    @property
    def split(self) -> bool:
        return self.upper is not None or self.lower is not None


def find_valid_range(samples: list[GridSample]) -> tuple[int, int] | None:
    """Contiguous index range of the truncated CAR.

    The range starts at the first sample where the ``amax``/``emax``
    interval either exists without an ``amin`` hole or strictly contains the
    hole, and ends just before the next sample missing ``amax`` or ``emax``.

    Returns:
        Tuple of (start, end) inclusive, or None if the range holds fewer
        than two samples.
    """
    start = None
    for i, s in enumerate(samples):
        if s.a_max is None or s.e_max is None:
            continue
        if s.a_min is None:
            start = i
            break
        if (
            s.a_max.upper > s.a_min.upper
            and s.e_max.upper > s.a_min.upper
            and s.a_max.lower < s.a_min.lower
            and s.e_max.lower < s.a_min.lower
        ):
            start = i
            break

    if start is None:
        return None

    end = len(samples) - 1
    for i in range(start, len(samples)):
        if samples[i].a_max is None or samples[i].e_max is None:
            end = i - 1
            break

    if end <= start:
        return None
    return start, end


def classify_sample(sample: GridSample) -> _Arcs:
    """Arcs passing through a sample inside the valid range."""
    a_min, a_max, e_max = sample.a_min, sample.a_max, sample.e_max
    if a_max is None or e_max is None:
        return _Arcs()

    if a_min is None:
        return _Arcs(main=_point(
            sample.domain, max(a_max.lower, e_max.lower), min(a_max.upper, e_max.upper)
        ))

    upper = lower = None
    if e_max.upper > a_min.upper:
        upper = _point(sample.domain, a_min.upper, min(a_max.upper, e_max.upper))
    if e_max.lower < a_min.lower:
        lower = _point(sample.domain, max(a_max.lower, e_max.lower), a_min.lower)
    return _Arcs(upper=upper, lower=lower)


def _point(domain: float, lower: float, upper: float) -> BoundaryPoint | None:
    # disjoint constraint intervals leave nothing admissible
    if upper < lower:
        return None
    return BoundaryPoint(domain=domain, lower=lower, upper=upper)


def _joined(arcs: _Arcs, domain: float) -> BoundaryPoint:
    top = arcs.upper if arcs.upper is not None else arcs.lower
    bottom = arcs.lower if arcs.lower is not None else arcs.upper
    return BoundaryPoint(domain=domain, lower=bottom.lower, upper=top.upper)


def _build_cell(left: _Arcs, right: _Arcs, x0: float, x1: float) -> Cell:
    if left.main is not None and right.main is not None:
        return Cell(x0, x1, CellKind.MAIN, (Segment(left.main, right.main),))

    # the amin hole opens or closes inside these cells: span the outer edges
    if left.split and right.main is not None:
        return Cell(x0, x1, CellKind.TRANSITION, (Segment(_joined(left, x0), right.main),))
    if left.main is not None and right.split:
        return Cell(x0, x1, CellKind.TRANSITION, (Segment(left.main, _joined(right, x1)),))

    segments = []
    if left.upper is not None and right.upper is not None:
        segments.append(Segment(left.upper, right.upper))
    if left.lower is not None and right.lower is not None:
        segments.append(Segment(left.lower, right.lower))
    if segments:
        return Cell(x0, x1, CellKind.UPPER_LOWER, tuple(segments))
    return Cell(x0, x1, CellKind.GAP)


def split_region(samples: list[GridSample]) -> CARRegion | None:
    """Build arcs, cells and the abscissa density of the admissible region.

    Args:
        samples: Grid samples in ascending abscissa order.

    Returns:
        The region, or None when it is empty or has zero area.
    """
    valid = find_valid_range(samples)
    if valid is None:
        logger.info("No contiguous admissible range in %d grid samples", len(samples))
        return None
    start, end = valid

    window = samples[start:end + 1]
    arcs = [classify_sample(s) for s in window]
    domain = np.array([s.domain for s in window], dtype=np.float64)

    cells = tuple(
        _build_cell(arcs[i], arcs[i + 1], window[i].domain, window[i + 1].domain)
        for i in range(len(window) - 1)
    )
    area = sum(seg.area for cell in cells for seg in cell.segments)
    if not area > 0:
        logger.info("Admissible region [%d, %d] has no positive area (%.3e)", start, end, area)
        return None

    density = np.array(
        [sum(seg.mean_width for seg in cell.segments) / area for cell in cells],
        dtype=np.float64,
    )

    region = CARRegion(
        start_index=start,
        end_index=end,
        domain=domain,
        upper=BoundaryCurve(tuple(a.upper for a in arcs if a.upper is not None)),
        lower=BoundaryCurve(tuple(a.lower for a in arcs if a.lower is not None)),
        main=BoundaryCurve(tuple(a.main for a in arcs if a.main is not None)),
        cells=cells,
        area=area,
        density=density,
    )

    kinds = Counter(cell.kind.value for cell in cells)
    logger.debug("Region [%d, %d]: area=%.6e, cells=%s", start, end, area, dict(kinds))
    return region

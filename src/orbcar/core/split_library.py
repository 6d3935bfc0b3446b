"""Split-size library for approximating a uniform density by Gaussians.

Entry ``k - 1`` is the standard deviation, as a fraction of the interval
width, that ``k`` equally spaced, equally weighted Gaussians need to best
approximate a uniform density on that interval (L2 sense). Entries shrink
as ``k`` grows. The same table sizes the range split and the range-rate
split.
"""
from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

from orbcar.utils.constants import SPLIT_LIBRARY_RESOURCE

logger = logging.getLogger(__name__)


class SplitLibraryError(ValueError):
    """The split-size table is missing or malformed."""


@dataclass(frozen=True)
class SplitLibrary:
    """Immutable split-size table.

    Attributes:
        values: Normalised sigma for 1, 2, ... components.
        source: Where the values were read from.
    """

    values: tuple[float, ...]
    source: str = "<memory>"

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def component_count(self, ratio: float) -> int:
        """Number of components needed for a desired sigma/width ratio.

        Returns the first count whose tabulated sigma falls below ``ratio``,
        or the table length if none does.
        """
        for i, value in enumerate(self.values):
            if ratio > value:
                return i + 1
        return len(self.values)

    def split(self, start: float, end: float, sigma: float) -> tuple[NDArray[np.float64], float]:
        """Equally spaced means and shared std covering ``[start, end]``.

        Args:
            start: Interval start.
            end: Interval end, greater than ``start``.
            sigma: Desired standard deviation of each component.

        Returns:
            Tuple of (means, std). Means sit at ``k / (n + 1)`` of the
            interval for ``k = 1..n``.
        """
        width = end - start
        count = self.component_count(sigma / width)
        means = start + width * np.arange(1, count + 1) / (count + 1)
        return means, width * self.values[count - 1]


def parse_split_library(text: str, source: str = "<memory>") -> SplitLibrary:
    """Parse one positive float per line; blank lines are ignored.

    Raises:
        SplitLibraryError: If a line is not a number, a value is not a
            positive finite float, or no values are present.
    """
    values = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            value = float(line)
        except ValueError:
            logger.error("Split library %s line %d is not a number: %r", source, lineno, line)
            raise SplitLibraryError(
                f"Split library {source} line {lineno} is not a number: {line!r}"
            ) from None
        if not math.isfinite(value) or value <= 0:
            logger.error("Split library %s line %d is not positive: %r", source, lineno, line)
            raise SplitLibraryError(
                f"Split library {source} line {lineno} is not a positive value: {line!r}"
            )
        values.append(value)

    if not values:
        logger.error("Split library %s is empty", source)
        raise SplitLibraryError(f"Split library {source} is empty")

    return SplitLibrary(values=tuple(values), source=source)


@functools.lru_cache(maxsize=None)
def load_split_library(path: str | Path | None = None) -> SplitLibrary:
    """Load the split-size table once per process.

    Args:
        path: Optional file to read instead of the packaged table.

    Returns:
        The cached SplitLibrary for that source.

    Raises:
        SplitLibraryError: If the resource cannot be read or parsed.
    """
    if path is None:
        resource = resources.files("orbcar") / "resources" / SPLIT_LIBRARY_RESOURCE
        source = f"orbcar/resources/{SPLIT_LIBRARY_RESOURCE}"
    else:
        resource = Path(path)
        source = str(path)

    try:
        text = resource.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Cannot read split library %s: %s", source, e)
        raise SplitLibraryError(f"Cannot read split library {source}: {e}") from e

    library = parse_split_library(text, source=source)
    logger.debug("Loaded split library %s with %d entries", source, len(library))
    return library

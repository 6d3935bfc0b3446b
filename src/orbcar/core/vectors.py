"""3-vector primitives shared by the geometry code."""
from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


def as_vector3(values: ArrayLike, name: str = "vector") -> NDArray[np.float64]:
    """Convert input to a float64 array of shape (3,).

    Args:
        values: Any array-like holding three numbers.
        name: Label used in the error message.

    Returns:
        A new float64 array of shape (3,).

    Raises:
        ValueError: If the input does not hold exactly three finite values.
    """
    vec = np.asarray(values, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        logger.error("%s must have 3 components, got shape %s", name, vec.shape)
        raise ValueError(f"{name} must have 3 components, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        logger.error("%s contains non-finite values: %s", name, vec)
        raise ValueError(f"{name} contains non-finite values: {vec}")
    return vec


def dot(a: NDArray[np.float64], b: NDArray[np.float64]) -> float:
    return float(np.dot(a, b))


def cross(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.cross(a, b)


def squared_norm(a: NDArray[np.float64]) -> float:
    return float(np.dot(a, a))

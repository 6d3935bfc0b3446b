"""
orbcar — Constrained admissible regions for orbit determination.

Turns a single too-short-arc measurement plus bounds on semi-major axis
and eccentricity into a weighted Gaussian mixture over the unobserved
coordinates, ready to initialise a multiple-hypothesis filter.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbcar.core.car import CARResult, construct_car
from orbcar.core.geometry import CARMode
from orbcar.core.hypotheses import GaussianComponent
from orbcar.core.mixture import FitConvergenceError
from orbcar.core.split_library import SplitLibrary, SplitLibraryError, load_split_library
from orbcar.core.station import StationState, ground_station_state

__all__ = [
    "__version__",
    "construct_car",
    "CARResult",
    "CARMode",
    "GaussianComponent",
    "FitConvergenceError",
    "SplitLibrary",
    "SplitLibraryError",
    "load_split_library",
    "StationState",
    "ground_station_state",
]

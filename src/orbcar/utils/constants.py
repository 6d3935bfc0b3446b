from __future__ import annotations

"""Physical constants and default tuning values for CAR construction.

Distances in km, velocities in km/s, angles in radians unless noted.
"""

# --- Earth parameters ---
EARTH_MU_KM3_S2: float = 398600.4415
"""Earth gravitational parameter (GM) in km³/s², EGM96 value."""

EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km (WGS-84)."""

EARTH_FLATTENING: float = 1.0 / 298.257223563
"""Flattening of the WGS-84 ellipsoid."""

EARTH_ROTATION_RAD_S: float = 7.2921150e-5
"""Earth rotation rate in rad/s."""

# --- Boundary solving ---
ROOT_IMAGINARY_TOLERANCE: float = 1e-11
"""A polynomial root counts as real when abs(imag) is strictly below this."""

ELLIPSE_TABLE_SAMPLES: int = 180
"""Rows in the semi-major-axis ellipse tables used by the range CAR."""

# --- Mixture fitting ---
FIT_MAX_EVALUATIONS: int = 10_000
"""Evaluation budget for the bounded least-squares weight fit."""

FIT_TOLERANCE: float = 1e-10
"""Cost, parameter and gradient tolerance for the weight fit."""

# --- Resources ---
SPLIT_LIBRARY_RESOURCE: str = "uniform_sigma_values.txt"
"""Packaged split-size table, one normalised sigma per component count."""

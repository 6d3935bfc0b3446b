"""Observer state at the measurement epoch."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from orbcar.core.vectors import as_vector3, cross
from orbcar.utils.constants import (
    EARTH_FLATTENING,
    EARTH_RADIUS_KM,
    EARTH_ROTATION_RAD_S,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StationState:
    """Observer position and velocity in an inertial frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Measurement epoch, informational only.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "position_km", as_vector3(self.position_km, "position_km"))
        object.__setattr__(self, "velocity_km_s", as_vector3(self.velocity_km_s, "velocity_km_s"))


def ground_station_state(
    latitude_deg: float,
    longitude_deg: float,
    altitude_km: float,
    gmst_rad: float,
    epoch: datetime | None = None,
) -> StationState:
    """Inertial state of a fixed ground site.

    The geodetic site is placed on the WGS-84 ellipsoid, rotated about the
    z axis by the Greenwich sidereal angle, and given the velocity of a
    point co-rotating with the Earth.

    Args:
        latitude_deg: Geodetic latitude in degrees.
        longitude_deg: East longitude in degrees.
        altitude_km: Height above the ellipsoid in km.
        gmst_rad: Greenwich mean sidereal angle at the epoch in radians.
        epoch: Optional epoch carried on the returned state.

    Returns:
        StationState with position in km and velocity in km/s.
    """
    if not -90.0 <= latitude_deg <= 90.0:
        logger.error("Latitude out of range: %s", latitude_deg)
        raise ValueError(f"Latitude out of range: {latitude_deg}")

    lat = math.radians(latitude_deg)
    lon = math.radians(longitude_deg) + gmst_rad

    e2 = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)
    n = EARTH_RADIUS_KM / math.sqrt(1.0 - e2 * math.sin(lat) ** 2)

    position = np.array([
        (n + altitude_km) * math.cos(lat) * math.cos(lon),
        (n + altitude_km) * math.cos(lat) * math.sin(lon),
        (n * (1.0 - e2) + altitude_km) * math.sin(lat),
    ])
    omega = np.array([0.0, 0.0, EARTH_ROTATION_RAD_S])
    velocity = cross(omega, position)

    logger.debug("Ground station at lat=%.4f lon=%.4f: |r|=%.3f km", latitude_deg, longitude_deg,
                 float(np.linalg.norm(position)))
    return StationState(position_km=position, velocity_km_s=velocity, epoch=epoch)

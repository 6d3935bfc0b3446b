"""orbcar Range CAR — RA-rate / Dec-rate hypotheses from a radar track.

Shows how the eccentricity limit changes the number of hypotheses seeded
for a ground-based range and range-rate measurement.
"""

import logging

from orbcar import CARMode, construct_car, ground_station_state

logging.basicConfig(level=logging.INFO)

# Equatorial site at the prime meridian, GMST = 0
site = ground_station_state(latitude_deg=0.0, longitude_deg=0.0, altitude_km=0.0, gmst_rad=0.0)

# RA, Dec (rad), range (km), range-rate (km/s)
measurement = (0.0, 0.0, 1000.0, 0.0)

for emax in (0.05, 0.1, 0.2, 0.4):
    car = construct_car(
        measurement,
        site,
        sigma1=2e-3,        # rad/s
        sigma2=1e-3,        # rad/s
        grid_spacing=1e-4,  # rad/s
        amin=6578.0,
        amax=42164.0,
        emax=emax,
        mode=CARMode.RANGE,
    )
    if not car.admissible:
        print(f"emax={emax:.2f}: no admissible region")
        continue
    region = car.region
    print(f"emax={emax:.2f}: {len(car):3d} hypotheses over RA-rate "
          f"[{region.domain_start:+.5f}, {region.domain_end:+.5f}] rad/s, area={region.area:.3e}")

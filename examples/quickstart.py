"""orbcar Quickstart — optical CAR from a space-based observer."""

import math

from orbcar import StationState, construct_car

MU = 398600.4415

# Observer on a circular 500 km orbit, looking along-track
observer = StationState(
    position_km=[0.0, 6878.0, 0.0],
    velocity_km_s=[-math.sqrt(MU / 6878.0), 0.0, 0.0],
)

# RA, Dec (rad) and their rates (rad/s)
measurement = (0.0, 0.0, 1e-5, 1e-5)

car = construct_car(
    measurement,
    observer,
    sigma1=50.0,        # km
    sigma2=0.5,         # km/s
    grid_spacing=10.0,  # km
    amin=6578.0,
    amax=42164.0,
    emax=0.1,
)

print(f"Admissible: {car.admissible}")
print(f"Range span: {car.region.domain_start:.1f} - {car.region.domain_end:.1f} km")
print(f"Components: {len(car)} (fit converged: {car.fit.converged})")
for c in car.components[:10]:
    print(f"  rho={c.abscissa_mean:8.2f} km  rho_dot={c.ordinate_mean:7.3f} km/s  w={c.weight:.4f}")

weights, means, covariances = car.as_gmm()
print(f"GMM arrays: {weights.shape}, {means.shape}, {covariances.shape}")

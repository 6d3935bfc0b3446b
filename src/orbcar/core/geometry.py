"""Measurement geometry for constrained admissible regions.

Turns a 4-element measurement and the observer state into the scalar
coefficients of the two-body energy and angular-momentum relations. Every
boundary computation downstream is a polynomial in these coefficients.

Two measurement models are supported:

* ``CARMode.OPTICAL``: RA, Dec, RA-rate and Dec-rate are measured, range
  (abscissa) and range-rate (ordinate) are unknown.
* ``CARMode.RANGE``: RA, Dec, range and range-rate are measured, RA-rate
  (abscissa) and Dec-rate (ordinate) are unknown.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from orbcar.core.station import StationState
from orbcar.core.vectors import cross, dot, squared_norm
from orbcar.utils.constants import EARTH_MU_KM3_S2

logger = logging.getLogger(__name__)


class CARMode(Enum):
    """Measurement models for CAR construction."""

    OPTICAL = "optical"
    RANGE = "range"


def line_of_sight(ra: float, dec: float) -> tuple[NDArray, NDArray, NDArray]:
    """Line-of-sight unit vector and its partials w.r.t. RA and Dec.

    Args:
        ra: Right ascension (rad).
        dec: Declination (rad).

    Returns:
        Tuple of (u_rho, u_ra, u_dec). ``u_ra`` has magnitude cos(dec).
    """
    u_rho = np.array([math.cos(ra) * math.cos(dec), math.sin(ra) * math.cos(dec), math.sin(dec)])
    u_ra = np.array([-math.sin(ra) * math.cos(dec), math.cos(ra) * math.cos(dec), 0.0])
    u_dec = np.array([-math.cos(ra) * math.sin(dec), -math.sin(ra) * math.sin(dec), math.cos(dec)])
    return u_rho, u_ra, u_dec


@dataclass(frozen=True)
class OpticalGeometry:
    """Invariants of the angle-rate-known model.

    ``w0..w5`` parameterise the specific energy as a quadratic in
    range-rate for a fixed range; ``c0..c8`` parameterise the squared
    angular momentum.
    """

    w0: float
    w1: float
    w2: float
    w3: float
    w4: float
    w5: float
    c0: float
    c1: float
    c2: float
    c3: float
    c4: float
    c5: float
    c6: float
    c7: float
    c8: float
    mu: float = EARTH_MU_KM3_S2

    @classmethod
    def from_measurement(
        cls,
        ra: float,
        dec: float,
        ra_rate: float,
        dec_rate: float,
        station: StationState,
        mu: float = EARTH_MU_KM3_S2,
    ) -> OpticalGeometry:
        q = station.position_km
        q_dot = station.velocity_km_s
        u_rho, u_ra, u_dec = line_of_sight(ra, dec)

        angular_rate = ra_rate * u_ra + dec_rate * u_dec

        h1 = cross(q, u_rho)
        h2 = cross(u_rho, angular_rate)
        h3 = cross(u_rho, q_dot) + cross(q, angular_rate)
        h4 = cross(q, q_dot)

        geometry = cls(
            w0=squared_norm(q),
            w1=2.0 * dot(q_dot, u_rho),
            w2=ra_rate ** 2 * math.cos(dec) ** 2 + dec_rate ** 2,
            w3=2.0 * ra_rate * dot(q_dot, u_ra) + 2.0 * dec_rate * dot(q_dot, u_dec),
            w4=squared_norm(q_dot),
            w5=2.0 * dot(q, u_rho),
            c0=squared_norm(h1),
            c1=2.0 * dot(h1, h2),
            c2=2.0 * dot(h1, h3),
            c3=2.0 * dot(h1, h4),
            c4=squared_norm(h2),
            c5=2.0 * dot(h2, h3),
            c6=2.0 * dot(h2, h4) + squared_norm(h3),
            c7=2.0 * dot(h3, h4),
            c8=squared_norm(h4),
            mu=mu,
        )
        logger.debug("Optical geometry: w=%s", (geometry.w0, geometry.w1, geometry.w2,
                                                 geometry.w3, geometry.w4, geometry.w5))
        return geometry

    def energy_polynomial(self, rho: float) -> float:
        """Range-dependent part F of twice the specific energy."""
        return (
            self.w2 * rho ** 2
            + self.w3 * rho
            + self.w4
            - 2.0 * self.mu / math.sqrt(rho ** 2 + self.w5 * rho + self.w0)
        )

    def eccentricity_quartic(self, rho: float, emax: float) -> NDArray[np.float64]:
        """Quartic in range-rate whose real roots bound ``e <= emax``.

        Returns:
            Coefficients ordered from the highest degree down.
        """
        f = self.energy_polynomial(rho)
        p = self.c1 * rho ** 2 + self.c2 * rho + self.c3
        u = (
            self.c4 * rho ** 4
            + self.c5 * rho ** 3
            + self.c6 * rho ** 2
            + self.c7 * rho
            + self.c8
        )
        return np.array([
            self.c0,
            p + self.c0 * self.w1,
            u + self.c0 * f + self.w1 * p,
            f * p + self.w1 * u,
            f * u + self.mu ** 2 * (1.0 - emax ** 2),
        ])


@dataclass(frozen=True)
class RangeGeometry:
    """Invariants of the range-rate-known model.

    The energy is a quadratic form in (RA-rate, Dec-rate) with coefficients
    ``a11, a13, a22, a23, a33``; the squared angular momentum is a quartic
    form with coefficients ``cIJ`` (power I of Dec-rate, power J of RA-rate).
    """

    a11: float
    a13: float
    a22: float
    a23: float
    a33: float
    c40: float
    c31: float
    c30: float
    c22: float
    c21: float
    c20: float
    c13: float
    c12: float
    c11: float
    c10: float
    c04: float
    c03: float
    c02: float
    c01: float
    c00: float
    mu: float = EARTH_MU_KM3_S2

    @classmethod
    def from_measurement(
        cls,
        ra: float,
        dec: float,
        rho: float,
        rho_rate: float,
        station: StationState,
        mu: float = EARTH_MU_KM3_S2,
    ) -> RangeGeometry:
        q = station.position_km
        q_dot = station.velocity_km_s
        u_rho, u_ra, u_dec = line_of_sight(ra, dec)

        w0 = squared_norm(q)
        w1 = 2.0 * dot(q_dot, u_rho)
        w4 = squared_norm(q_dot)
        w5 = 2.0 * dot(q, u_rho)

        a11 = rho ** 2 * math.cos(dec) ** 2
        a13 = rho * dot(q_dot, u_ra)
        a22 = rho ** 2
        a23 = rho * dot(q_dot, u_dec)
        a33 = rho_rate ** 2 + w1 * rho_rate + w4 - 2.0 * mu / math.sqrt(a22 + w5 * rho + w0)

        r = q + rho * u_rho
        hp = cross(r, q_dot + rho_rate * u_rho)
        ha = cross(rho * r, u_ra)
        hd = cross(rho * r, u_dec)

        b11 = squared_norm(ha)
        b12 = dot(ha, hd)
        b22 = squared_norm(hd)
        b13 = dot(hp, ha)
        b23 = dot(hp, hd)
        b33 = squared_norm(hp)

        geometry = cls(
            a11=a11,
            a13=a13,
            a22=a22,
            a23=a23,
            a33=a33,
            c40=a22 * b22,
            c31=2 * a22 * b12,
            c30=2 * a22 * b23 + 2 * a23 * b22,
            c22=a11 * b22 + a22 * b11,
            c21=2 * a22 * b13 + 2 * a13 * b22 + 4 * a23 * b12,
            c20=a22 * b33 + 4 * a23 * b23 + a33 * b22,
            c13=2 * a11 * b12,
            c12=2 * a11 * b23 + 4 * a13 * b12 + 2 * a23 * b11,
            c11=4 * a13 * b23 + 4 * a23 * b13 + 2 * a33 * b12,
            c10=2 * a23 * b33 + 2 * a33 * b23,
            c04=a11 * b11,
            c03=2 * a11 * b13 + 2 * a13 * b11,
            c02=a11 * b33 + 4 * a13 * b13 + a33 * b11,
            c01=2 * a13 * b33 + 2 * a33 * b13,
            c00=a33 * b33,
            mu=mu,
        )
        logger.debug("Range geometry: a=%s", (a11, a13, a22, a23, a33))
        return geometry

    def _reduced_a33(self, semi_major_axis: float | None) -> float:
        a33 = self.a33 if semi_major_axis is None else self.a33 + self.mu / semi_major_axis
        return -a33 + self.a13 ** 2 / self.a11 + self.a23 ** 2 / self.a22

    def domain_half_width(self) -> float:
        """Half-span of the RA-rate grid with no semi-major-axis constraint."""
        centre = abs(self.a13 / self.a11)
        semi_axis = math.sqrt(abs(self._reduced_a33(None) / self.a11))
        return centre + semi_axis

    def energy_ellipse(self, semi_major_axis: float) -> tuple[float, float, float, float]:
        """Ellipse in (RA-rate, Dec-rate) where the orbit has the given SMA.

        Returns:
            Tuple of (centre_ra_rate, centre_dec_rate, semi_axis_ra_rate,
            semi_axis_dec_rate).
        """
        reduced = self._reduced_a33(semi_major_axis)
        return (
            -self.a13 / self.a11,
            -self.a23 / self.a22,
            math.sqrt(abs(reduced / self.a11)),
            math.sqrt(abs(reduced / self.a22)),
        )

    def eccentricity_quartic(self, ra_rate: float, emax: float) -> NDArray[np.float64]:
        """Quartic in Dec-rate whose real roots bound ``e <= emax``.

        Returns:
            Coefficients ordered from the highest degree down.
        """
        x = ra_rate
        p0 = (
            self.c04 * x ** 4 + self.c03 * x ** 3 + self.c02 * x ** 2 + self.c01 * x + self.c00
            + self.mu ** 2 * (1.0 - emax ** 2)
        )
        p1 = self.c13 * x ** 3 + self.c12 * x ** 2 + self.c11 * x + self.c10
        p2 = self.c22 * x ** 2 + self.c21 * x + self.c20
        p3 = self.c31 * x + self.c30
        return np.array([self.c40, p3, p2, p1, p0])

"""End-to-end tests for CAR construction."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from orbcar import (
    CARMode,
    CARResult,
    FitConvergenceError,
    SplitLibrary,
    StationState,
    construct_car,
    ground_station_state,
)
from orbcar.utils.constants import EARTH_MU_KM3_S2

AMIN = 6578.0
AMAX = 42164.0
EMAX = 0.1


@pytest.fixture
def leo_observer() -> StationState:
    """Space-based observer on a circular 500 km orbit."""
    return StationState(
        position_km=[0.0, 6878.0, 0.0],
        velocity_km_s=[-math.sqrt(EARTH_MU_KM3_S2 / 6878.0), 0.0, 0.0],
    )


@pytest.fixture
def optical_car(leo_observer: StationState) -> CARResult:
    return construct_car(
        (0.0, 0.0, 1e-5, 1e-5),
        leo_observer,
        sigma1=50.0,
        sigma2=0.5,
        grid_spacing=10.0,
        amin=AMIN,
        amax=AMAX,
        emax=EMAX,
    )


@pytest.fixture
def equator_site() -> StationState:
    return ground_station_state(0.0, 0.0, 0.0, gmst_rad=0.0)


class TestOpticalCAR:
    """Test the angles-and-rates CAR."""

    def test_non_empty(self, optical_car: CARResult):
        assert optical_car.admissible
        assert len(optical_car) > 0
        assert optical_car.mode == CARMode.OPTICAL
        assert optical_car.region is not None
        assert optical_car.fit is not None
        assert optical_car.fit.converged

    def test_weights_normalised(self, optical_car: CARResult):
        weights = np.array([c.weight for c in optical_car.components])
        assert np.all((weights > 0) & (weights <= 1))
        assert optical_car.total_weight == pytest.approx(1.0, abs=1e-9)

    def test_means_inside_region(self, optical_car: CARResult):
        region = optical_car.region
        for c in optical_car.components:
            assert region.domain_start <= c.abscissa_mean <= region.domain_end
            assert c.abscissa_std > 0
            assert c.ordinate_std > 0

    def test_region_starts_at_observer(self, optical_car: CARResult):
        """At zero range all bounds exist and nest, so the region starts there."""
        assert optical_car.region.start_index == 0
        assert optical_car.region.domain_start == 0.0

    def test_density_integrates_to_one(self, optical_car: CARResult):
        region = optical_car.region
        total = float(np.sum(region.density * np.diff(region.domain)))
        assert total == pytest.approx(1.0)

    def test_repeatable(self, leo_observer: StationState, optical_car: CARResult):
        again = construct_car((0.0, 0.0, 1e-5, 1e-5), leo_observer, 50.0, 0.5, 10.0,
                              AMIN, AMAX, EMAX)
        first, _, _ = optical_car.as_gmm()
        weights, means, covs = again.as_gmm()
        np.testing.assert_array_equal(first, weights)
        np.testing.assert_array_equal(optical_car.as_gmm()[1], means)

    def test_as_gmm(self, optical_car: CARResult):
        weights, means, covs = optical_car.as_gmm()
        n = len(optical_car)
        assert weights.shape == (n,)
        assert means.shape == (n, 2)
        assert covs.shape == (n, 2, 2)
        assert np.all(covs[:, 0, 1] == 0.0)
        assert np.all(covs[:, 0, 0] > 0)

    def test_custom_library(self, leo_observer: StationState):
        """A single-entry table yields one range component and one range-rate per arc."""
        library = SplitLibrary(values=(0.3,))
        result = construct_car((0.0, 0.0, 1e-5, 1e-5), leo_observer, 50.0, 0.5, 10.0,
                               AMIN, AMAX, EMAX, library=library)
        assert result.admissible
        assert len(result.fit.means) == 1
        assert 1 <= len(result) <= 2


class TestDegenerateCAR:
    """Test inputs without an admissible region."""

    def test_hyperbolic_observer(self):
        """An observer moving far above escape speed sees no bound orbits."""
        observer = StationState(position_km=[0.0, 6878.0, 0.0], velocity_km_s=[0.0, 0.0, 50.0])
        result = construct_car((0.0, 0.0, 1e-5, 1e-5), observer, 50.0, 0.5, 100.0,
                               AMIN, AMAX, EMAX)
        assert not result.admissible
        assert len(result) == 0
        assert result.region is None
        assert result.total_weight == 0.0
        weights, means, covs = result.as_gmm()
        assert weights.shape == (0,)
        assert means.shape == (0, 2)
        assert covs.shape == (0, 2, 2)

    def test_empty_result_logged(self, caplog: pytest.LogCaptureFixture):
        observer = StationState(position_km=[0.0, 6878.0, 0.0], velocity_km_s=[0.0, 0.0, 50.0])
        with caplog.at_level(logging.INFO, logger="orbcar.core.car"):
            construct_car((0.0, 0.0, 1e-5, 1e-5), observer, 50.0, 0.5, 100.0, AMIN, AMAX, EMAX)
        assert "CAR is empty" in caplog.text


class TestValidation:
    """Test rejection of invalid inputs."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"sigma1": 0.0},
            {"sigma2": -1.0},
            {"grid_spacing": 0.0},
            {"amin": -1.0},
            {"amax": 6000.0},
            {"emax": 1.0},
            {"emax": -0.1},
        ],
    )
    def test_invalid_parameters(self, leo_observer: StationState, kwargs: dict):
        params = dict(sigma1=50.0, sigma2=0.5, grid_spacing=10.0, amin=AMIN, amax=AMAX, emax=EMAX)
        params.update(kwargs)
        with pytest.raises(ValueError, match="Invalid CAR inputs"):
            construct_car((0.0, 0.0, 1e-5, 1e-5), leo_observer, **params)

    def test_measurement_length(self, leo_observer: StationState):
        with pytest.raises(ValueError, match="4 values"):
            construct_car((0.0, 0.0, 1e-5), leo_observer, 50.0, 0.5, 10.0, AMIN, AMAX, EMAX)

    def test_measurement_not_finite(self, leo_observer: StationState):
        with pytest.raises(ValueError, match="non-finite"):
            construct_car((0.0, float("inf"), 1e-5, 1e-5), leo_observer, 50.0, 0.5, 10.0,
                          AMIN, AMAX, EMAX)

    def test_range_mode_needs_range(self, equator_site: StationState):
        with pytest.raises(ValueError, match="positive range"):
            construct_car((0.0, 0.0, 0.0, 0.0), equator_site, 1e-3, 1e-3, 1e-4,
                          AMIN, AMAX, EMAX, mode=CARMode.RANGE)

    def test_unknown_mode(self, leo_observer: StationState):
        with pytest.raises(ValueError, match="Unknown mode"):
            construct_car((0.0, 0.0, 1e-5, 1e-5), leo_observer, 50.0, 0.5, 10.0,
                          AMIN, AMAX, EMAX, mode="radar")

    def test_require_convergence(self, leo_observer: StationState):
        with pytest.raises(FitConvergenceError):
            construct_car((0.0, 0.0, 1e-5, 1e-5), leo_observer, 5.0, 0.5, 10.0,
                          AMIN, AMAX, EMAX, max_evaluations=1, require_convergence=True)


class TestRangeCAR:
    """Test the range and range-rate CAR."""

    @pytest.fixture
    def range_car(self, equator_site: StationState) -> CARResult:
        return construct_car(
            (0.0, 0.0, 1000.0, 0.0),
            equator_site,
            sigma1=2e-3,
            sigma2=1e-3,
            grid_spacing=1e-4,
            amin=AMIN,
            amax=AMAX,
            emax=EMAX,
            mode=CARMode.RANGE,
        )

    def test_non_empty(self, range_car: CARResult):
        assert range_car.mode == CARMode.RANGE
        assert range_car.admissible
        assert range_car.total_weight == pytest.approx(1.0, abs=1e-9)

    def test_means_inside_region(self, range_car: CARResult):
        region = range_car.region
        for c in range_car.components:
            assert region.domain_start <= c.abscissa_mean <= region.domain_end

    def test_hole_and_main_arcs(self, range_car: CARResult):
        """Near-circular speeds ring the amin hole, so both arc families appear."""
        region = range_car.region
        assert len(region.main) > 0
        assert len(region.upper) > 0 or len(region.lower) > 0

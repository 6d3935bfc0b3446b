"""Tests for the abscissa Gaussian-mixture fit."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from orbcar.core.boundaries import BoundPair, GridSample
from orbcar.core.mixture import FitConvergenceError, fit_mixture, gaussian_basis
from orbcar.core.region import CARRegion, split_region
from orbcar.core.split_library import load_split_library


def uniform_region(width: float = 100.0, cells: int = 100) -> CARRegion:
    """Rectangle of unit height over [0, width]."""
    xs = np.linspace(0.0, width, cells + 1)
    samples = [
        GridSample(domain=float(x), a_max=BoundPair(-1.0, 1.0), e_max=BoundPair(-0.5, 0.5))
        for x in xs
    ]
    return split_region(samples)


class TestGaussianBasis:
    """Test the basis matrix."""

    def test_peak_value(self):
        basis = gaussian_basis(np.array([0.0]), np.array([0.0]), 1.0)
        assert basis[0, 0] == pytest.approx(1.0 / math.sqrt(2.0 * math.pi))

    def test_shape(self):
        basis = gaussian_basis(np.linspace(0, 1, 7), np.array([0.25, 0.5, 0.75]), 0.1)
        assert basis.shape == (7, 3)
        assert np.all(basis > 0)


class TestFitMixture:
    """Test the bounded least-squares weight fit."""

    def test_uniform_density(self):
        region = uniform_region()
        library = load_split_library()
        fit = fit_mixture(region, 20.0, library)

        assert fit.converged
        assert len(fit.means) == library.component_count(20.0 / 100.0)
        assert np.all((fit.weights >= 0) & (fit.weights <= 1))
        assert float(fit.weights.sum()) == pytest.approx(1.0, abs=1e-12)
        assert np.all((fit.means > 0) & (fit.means < 100))
        np.testing.assert_allclose(np.diff(fit.means), fit.means[0])

    def test_uniform_density_symmetric_weights(self):
        fit = fit_mixture(uniform_region(), 20.0, load_split_library())
        np.testing.assert_allclose(fit.weights, fit.weights[::-1], atol=1e-3)

    def test_surviving(self):
        fit = fit_mixture(uniform_region(), 20.0, load_split_library())
        surviving = fit.surviving()
        assert all(w > 0 for _, w in surviving)
        assert sum(w for _, w in surviving) == pytest.approx(1.0)

    def test_deterministic(self):
        region = uniform_region()
        library = load_split_library()
        first = fit_mixture(region, 15.0, library)
        second = fit_mixture(region, 15.0, library)
        np.testing.assert_array_equal(first.weights, second.weights)
        np.testing.assert_array_equal(first.means, second.means)

    def test_budget_exhausted_warns(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="orbcar.core.mixture"):
            fit = fit_mixture(uniform_region(), 5.0, load_split_library(), max_evaluations=1)
        assert not fit.converged
        assert "did not converge" in caplog.text
        assert float(fit.weights.sum()) == pytest.approx(1.0)

    def test_budget_exhausted_raises(self):
        with pytest.raises(FitConvergenceError):
            fit_mixture(uniform_region(), 5.0, load_split_library(), max_evaluations=1,
                        require_convergence=True)

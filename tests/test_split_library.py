"""Tests for the split-size library."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from orbcar.core.split_library import (
    SplitLibrary,
    SplitLibraryError,
    load_split_library,
    parse_split_library,
)


class TestPackagedLibrary:
    """Test the table shipped with the package."""

    def test_loads(self):
        library = load_split_library()
        assert len(library) == 100
        assert all(v > 0 for v in library.values)

    def test_values_shrink_with_count(self):
        values = np.array(load_split_library().values)
        assert np.all(np.diff(values) < 0)

    def test_cached(self):
        assert load_split_library() is load_split_library()

    def test_single_component_covers_interval(self):
        """One Gaussian over the unit interval is about a third of its width."""
        assert 0.2 < load_split_library()[0] < 0.5


class TestComponentCount:
    """Test choosing the number of components."""

    @pytest.fixture
    def library(self) -> SplitLibrary:
        return SplitLibrary(values=(0.3, 0.2, 0.1))

    def test_wide_sigma(self, library: SplitLibrary):
        assert library.component_count(0.35) == 1

    def test_intermediate(self, library: SplitLibrary):
        assert library.component_count(0.25) == 2
        assert library.component_count(0.15) == 3

    def test_equal_is_not_enough(self, library: SplitLibrary):
        assert library.component_count(0.2) == 3

    def test_narrow_sigma_caps_at_table_length(self, library: SplitLibrary):
        assert library.component_count(0.05) == 3

    def test_split(self, library: SplitLibrary):
        means, sigma = library.split(0.0, 10.0, 2.5)
        np.testing.assert_allclose(means, [10.0 / 3.0, 20.0 / 3.0])
        assert sigma == pytest.approx(2.0)

    def test_split_offset_interval(self, library: SplitLibrary):
        means, sigma = library.split(-4.0, -2.0, 1.0)
        np.testing.assert_allclose(means, [-3.0])
        assert sigma == pytest.approx(0.6)


class TestParsing:
    """Test reading split tables from text and files."""

    def test_parse(self):
        library = parse_split_library("0.3\n\n 0.2 \n0.1\n")
        assert library.values == (0.3, 0.2, 0.1)

    def test_not_a_number(self):
        with pytest.raises(SplitLibraryError, match="line 2"):
            parse_split_library("0.3\nabc\n")

    def test_not_positive(self):
        with pytest.raises(SplitLibraryError, match="positive"):
            parse_split_library("0.3\n-0.1\n")

    def test_empty(self):
        with pytest.raises(SplitLibraryError, match="empty"):
            parse_split_library("\n\n")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_split_library("")

    def test_load_from_file(self, tmp_path: Path):
        path = tmp_path / "sigmas.txt"
        path.write_text("0.4\n0.25\n")
        library = load_split_library(path)
        assert library.values == (0.4, 0.25)
        assert library.source == str(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SplitLibraryError, match="Cannot read"):
            load_split_library(tmp_path / "missing.txt")

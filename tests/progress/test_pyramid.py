"""Tests for pyramid generation and the rest formula."""

import pytest

from pyramid_app.config.defaults import RestParams
from pyramid_app.progress.pyramid import clamp_peak, generate_pyramid, rest_duration_ms, rest_seconds


class TestGeneratePyramid:
    """Test pyramid shape."""

    def test_peak_three(self):
        """Test the smallest supported pyramid."""
        assert generate_pyramid(3) == [1, 2, 3, 2, 1]

    @pytest.mark.parametrize("peak", range(3, 21))
    def test_shape_for_supported_peaks(self, peak):
        """Test length, monotonic halves and symmetry for every supported peak."""
        sets = generate_pyramid(peak)

        assert len(sets) == 2 * peak - 1
        assert sets == sets[::-1]
        assert max(sets) == peak

        apex = sets.index(peak)
        ascending = sets[:apex + 1]
        descending = sets[apex:]
        assert all(a < b for a, b in zip(ascending, ascending[1:]))
        assert all(a > b for a, b in zip(descending, descending[1:]))

    def test_default_peak_volume(self):
        """Test total reps of the default peak-10 pyramid."""
        assert sum(generate_pyramid(10)) == 100


class TestRestFormula:
    """Test inter-set rest duration."""

    @pytest.mark.parametrize("reps,expected", [
        (1, 10),
        (2, 15),
        (9, 50),
        (10, 55),
        (11, 60),
        (20, 60),
    ])
    def test_rest_seconds(self, reps, expected):
        """Test known values including the 60 second cap."""
        assert rest_seconds(reps) == expected

    def test_rest_seconds_non_decreasing(self):
        """Test rest never shrinks as reps grow."""
        values = [rest_seconds(reps) for reps in range(0, 40)]
        assert values == sorted(values)
        assert max(values) == 60

    def test_rest_duration_ms(self):
        """Test millisecond variant."""
        assert rest_duration_ms(2) == 15_000
        assert rest_duration_ms(20) == 60_000

    def test_custom_params(self):
        """Test formula follows configured base, slope and cap."""
        params = RestParams(base_seconds=10, per_rep_seconds=2, max_seconds=30)
        assert rest_seconds(5, params) == 20
        assert rest_seconds(50, params) == 30


class TestClampPeak:
    """Test caller-side peak clamping."""

    @pytest.mark.parametrize("requested,expected", [
        (1, 3), (3, 3), (10, 10), (20, 20), (21, 20), (-5, 3),
    ])
    def test_default_bounds(self, requested, expected):
        assert clamp_peak(requested) == expected

    def test_custom_bounds(self):
        assert clamp_peak(15, min_peak=5, max_peak=12) == 12

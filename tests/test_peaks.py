"""Tests for rppg/peaks.py - local-maximum detection."""

import numpy as np
import pytest

from rppg.peaks import _parabolic_offset, find_peaks, peak_intervals, peak_threshold


class TestFindPeaks:
    """Peak positions, spacing and thresholds."""

    def test_sinusoid_peaks_land_on_maxima(self, make_pulse):
        """60 BPM at 30 fps: one peak every 30 samples (shifted by the 3-sample trailing mean)."""
        peaks = find_peaks(make_pulse(60.0), min_distance=10, adaptive_threshold=True)
        assert peaks == pytest.approx([16.0 + 30.0 * k for k in range(10)])

    @pytest.mark.parametrize("min_distance", [5, 10, 20, 40])
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_spacing_respects_min_distance(self, min_distance, seed):
        """On arbitrary noise, accepted peaks are never closer than min_distance."""
        noise = np.random.default_rng(seed).random(300)
        peaks = find_peaks(noise, min_distance=min_distance, adaptive_threshold=False, threshold=0.2)
        assert all(np.diff(peaks) >= min_distance)
        assert all(np.diff(peaks) > 0)

    def test_unrefined_positions_are_integers(self, make_pulse):
        peaks = find_peaks(make_pulse(72.0), refine=False)
        assert peaks
        assert all(float(p).is_integer() for p in peaks)

    def test_flat_signal_has_no_peaks(self):
        assert find_peaks(np.zeros(300)) == []

    def test_short_signal_has_no_peaks(self):
        assert find_peaks([0.0, 1.0, 0.0, 1.0]) == []

    def test_fixed_threshold_above_signal_finds_nothing(self, make_pulse):
        assert find_peaks(make_pulse(60.0), adaptive_threshold=False, threshold=1.5) == []


class TestCandidateRule:
    """Raw candidates, without pre-smoothing or refinement."""

    @staticmethod
    def _peaks(signal, min_distance=10):
        return find_peaks(
            np.asarray(signal, dtype=float), min_distance=min_distance,
            adaptive_threshold=False, threshold=0.5, refine=False, smooth_window=1,
        )

    def test_earlier_peak_wins_the_refractory_period(self):
        signal = np.zeros(60)
        signal[[10, 15, 40]] = [0.6, 1.0, 0.8]
        assert self._peaks(signal) == [10.0, 40.0]

    def test_edge_samples_never_qualify(self):
        assert self._peaks([0, 1, 0, 0, 0, 0, 0, 1, 0], min_distance=1) == []

    def test_plateau_is_not_a_peak(self):
        assert self._peaks([0, 0, 1, 1, 0, 0, 0], min_distance=1) == []

    def test_must_beat_two_neighbours_each_side(self):
        """Index 3 beats 2 and 4 but not 5, so only index 5 qualifies."""
        assert self._peaks([0, 0, 0, 0.8, 0.7, 0.9, 0, 0, 0], min_distance=1) == [5.0]


class TestHelpers:
    def test_parabolic_offset_symmetric(self):
        assert _parabolic_offset(0.0, 1.0, 0.0) == 0.0

    def test_parabolic_offset_leans_toward_larger_neighbour(self):
        assert _parabolic_offset(0.5, 1.0, 0.0) < 0.0
        assert _parabolic_offset(0.0, 1.0, 0.5) > 0.0

    def test_parabolic_offset_collinear_is_zero(self):
        assert _parabolic_offset(1.0, 1.0, 1.0) == 0.0

    def test_adaptive_threshold(self):
        data = np.array([0.0, 1.0, 0.0, 1.0])
        assert peak_threshold(data, adaptive=True) == pytest.approx(0.5 + 0.8 * 0.5)
        assert peak_threshold(data, adaptive=False, fixed=0.3) == 0.3

    def test_intervals(self):
        assert np.allclose(peak_intervals([10.0, 35.0, 61.5]), [25.0, 26.5])
        assert peak_intervals([4.0]).size == 0

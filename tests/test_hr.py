"""Tests for features/hr.py - peaks to BPM and confidence."""

import pytest

from features.hr import estimate_heart_rate, is_acceptable, rate_details
from rppg.peaks import find_peaks

FPS = 30.0


class TestSentinel:
    """Too little evidence yields (0, 0)."""

    @pytest.mark.parametrize("peaks", [[], [10.0], [10.0, 40.0]])
    def test_too_few_peaks_basic(self, peaks):
        assert estimate_heart_rate(peaks, 300, FPS) == (0, 0)

    def test_enhanced_needs_four_peaks(self):
        peaks = [10.0, 40.0, 70.0]
        assert estimate_heart_rate(peaks, 300, FPS, enhanced=False) != (0, 0)
        assert estimate_heart_rate(peaks, 300, FPS, enhanced=True) == (0, 0)

    def test_intervals_outside_physiological_range(self):
        """Intervals of 50 samples (36 BPM) are all rejected."""
        assert estimate_heart_rate([0.0, 50.0, 100.0, 150.0], 300, FPS) == (0, 0)


class TestRate:
    """BPM and confidence for well-formed inputs."""

    @pytest.mark.parametrize("enhanced", [False, True])
    def test_perfect_60_bpm(self, enhanced):
        peaks = [15.0 + 30.0 * k for k in range(10)]
        assert estimate_heart_rate(peaks, 300, FPS, enhanced=enhanced) == (60, 100)

    def test_sinusoid_end_to_end(self, make_pulse):
        """A noise-free 60 BPM sinusoid gives exactly 60 BPM at full confidence."""
        peaks = find_peaks(make_pulse(60.0), min_distance=10, adaptive_threshold=True)
        assert estimate_heart_rate(peaks, 300, FPS, enhanced=True) == (60, 100)

    def test_outlier_interval_is_excluded(self):
        peaks = [0.0, 30.0, 60.0, 65.0, 95.0, 125.0, 155.0]
        estimate = rate_details(peaks, 300, FPS)
        assert estimate.bpm == 60
        assert len(estimate.intervals) == 6
        assert len(estimate.valid_intervals) == 5
        assert 5.0 not in estimate.valid_intervals

    @pytest.mark.parametrize("enhanced", [False, True])
    def test_rejected_interval_does_not_lower_confidence(self, enhanced):
        """Variability comes from the valid intervals only; 7 peaks in 10 s gives density error 0.3."""
        peaks = [0.0, 30.0, 60.0, 65.0, 95.0, 125.0, 155.0]
        estimate = rate_details(peaks, 300, FPS, enhanced=enhanced)
        assert estimate.valid_intervals == (30.0, 30.0, 30.0, 30.0, 30.0)
        assert (estimate.bpm, estimate.confidence) == (60, 70)

    def test_density_mismatch_lowers_confidence(self):
        """Four evenly spaced beats in a 20 s window: rate is fine, density is not."""
        bpm, confidence = estimate_heart_rate([0.0, 30.0, 60.0, 90.0], 600, FPS)
        assert bpm == 60
        assert confidence == 20

    def test_confidence_is_clamped(self):
        _, confidence = estimate_heart_rate([0.0, 30.0, 60.0, 90.0], 30, FPS)
        assert 0 <= confidence <= 100


class TestAcceptance:
    @pytest.mark.parametrize(
        "bpm, confidence, expected",
        [(72, 60, True), (72, 0, False), (39, 80, False), (201, 80, False), (40, 1, True), (200, 1, True)],
    )
    def test_live_acceptance(self, bpm, confidence, expected):
        assert is_acceptable(bpm, confidence, 40, 200) is expected

"""Tests for features/respiration.py - breathing rate from audio energy."""

import numpy as np
import pytest

from features.respiration import breathing_pattern, estimate_respiration

RATE_HZ = 30.0


def _breathing(breaths_per_min: float, duration_s: float = 15.0):
    n = int(duration_s * RATE_HZ) + 1
    t = np.arange(n) / RATE_HZ
    # Small phase offset keeps the maxima off exact sample positions
    values = 0.05 + 0.04 * np.cos(2.0 * np.pi * (t + 0.013) * breaths_per_min / 60.0)
    return values, t * 1000.0


class TestEstimateRespiration:
    def test_fifteen_breaths_per_minute(self):
        """Inhale peaks at 4, 8 and 12 s: three breaths in 15 s."""
        values, timestamps = _breathing(15.0)
        reading = estimate_respiration(values, timestamps)
        assert reading is not None
        assert reading.breaths == 3
        assert reading.rate_bpm == 12
        assert reading.pattern == "normal"

    def test_fast_breathing_is_clamped(self):
        values, timestamps = _breathing(40.0)
        reading = estimate_respiration(values, timestamps)
        assert reading.rate_bpm == 30
        assert reading.pattern == "rapid"

    def test_needs_enough_samples(self):
        values, timestamps = _breathing(15.0, duration_s=4.0)
        assert estimate_respiration(values, timestamps) is None

    def test_silence_has_no_breaths(self):
        assert estimate_respiration(np.zeros(300), np.arange(300) * 33.3) is None

    def test_timestamps_must_advance(self):
        values, _ = _breathing(15.0)
        assert estimate_respiration(values, np.zeros(values.size)) is None


class TestBreathingPattern:
    @pytest.mark.parametrize("rate, expected", [(10, "slow"), (25, "rapid"), (15, "normal")])
    def test_by_rate(self, rate, expected):
        assert breathing_pattern(rate) == expected

    def test_irregular_spacing(self):
        assert breathing_pattern(15, [60.0, 140.0, 100.0]) == "irregular"
        assert breathing_pattern(15, [100.0, 100.0, 100.0]) == "normal"

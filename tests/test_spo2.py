"""Tests for features/spo2.py - single-channel SpO2 proxy."""

import numpy as np
import pytest

from features.spo2 import SpO2Reading, estimate_spo2, smooth_spo2


class TestEstimateSpO2:
    def test_too_few_samples(self):
        assert estimate_spo2(np.linspace(0, 1, 59)) == (0.0, 0)

    def test_flat_window_has_no_dc(self):
        assert estimate_spo2(np.full(120, 200.0)) == (0.0, 0)

    def test_cosine_window(self, make_pulse):
        """A full-period cosine has R = 1/√2: SpO2 = 110 − 25/√2 + 0.5, confidence 50 + 50 + 20 − 30."""
        spo2, confidence = estimate_spo2(180.0 + 4.0 * make_pulse(60.0))
        assert spo2 == pytest.approx(92.8, abs=0.05)
        assert confidence == 90

    def test_deterministic_without_jitter(self, make_pulse):
        window = make_pulse(75.0)
        assert estimate_spo2(window) == estimate_spo2(window)

    def test_jitter_uses_injected_generator(self, make_pulse):
        window = make_pulse(75.0)
        a = estimate_spo2(window, jitter=True, rng=np.random.default_rng(3))
        b = estimate_spo2(window, jitter=True, rng=np.random.default_rng(3))
        plain = estimate_spo2(window)
        assert a == b
        assert abs(a[0] - plain[0]) <= 0.6

    def test_result_is_clamped(self):
        rng = np.random.default_rng(0)
        spo2, confidence = estimate_spo2(rng.random(300))
        assert 70.0 <= spo2 <= 100.0
        assert 0 <= confidence <= 100


class TestSmoothing:
    def test_first_reading_passes_through(self):
        reading = smooth_spo2(None, 97.0, 80)
        assert reading == SpO2Reading(97.0, 80, "stable")

    def test_blend_and_trend(self):
        falling = smooth_spo2(SpO2Reading(97.0, 80), 95.0, 70)
        assert falling.value == pytest.approx(96.4)
        assert falling.trend == "falling"
        assert smooth_spo2(SpO2Reading(95.0, 80), 97.0, 70).trend == "rising"
        assert smooth_spo2(SpO2Reading(96.0, 80), 96.3, 70).trend == "stable"

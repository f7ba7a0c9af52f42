"""Tests for rppg/filters.py - normalisation, smoothing and band-pass filters."""

import numpy as np
import pytest

from rppg.filters import (
    apply_bandpass,
    bandpass_filter,
    butterworth_bandpass,
    design_bandpass,
    moving_average,
    normalize,
)
from utils.errors import DegenerateSignalError

FPS = 30.0


def _tone(freq_hz: float, n: int = 600) -> np.ndarray:
    return np.sin(2.0 * np.pi * freq_hz * np.arange(n) / FPS)


def _rms(x: np.ndarray) -> float:
    return float(np.sqrt(np.mean(x ** 2)))


class TestNormalize:
    """Min-max normalisation."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_output_is_bounded(self, seed):
        """Every output lies in [0, 1] with both ends reached."""
        data = np.random.default_rng(seed).normal(120.0, 15.0, size=250)
        out = normalize(data)
        assert out.shape == data.shape
        assert out.min() == pytest.approx(0.0)
        assert out.max() == pytest.approx(1.0)
        assert np.all((out >= 0.0) & (out <= 1.0))

    def test_flat_window_gives_zeros(self):
        out = normalize([42.0] * 10)
        assert np.array_equal(out, np.zeros(10))

    def test_flat_window_strict_raises(self):
        with pytest.raises(DegenerateSignalError):
            normalize([42.0] * 10, strict=True)

    def test_empty_input(self):
        assert normalize([]).size == 0


class TestMovingAverage:
    """Trailing moving average."""

    def test_trailing_window(self):
        """Early samples average over what is available, later ones over k."""
        out = moving_average([1.0, 2.0, 3.0, 4.0], 2)
        assert np.allclose(out, [1.0, 1.5, 2.5, 3.5])

    def test_no_look_ahead(self):
        """Changing a future sample never changes an earlier output."""
        base = np.arange(20, dtype=float)
        changed = base.copy()
        changed[15] = 1000.0
        assert np.array_equal(moving_average(base, 5)[:15], moving_average(changed, 5)[:15])

    def test_same_length(self):
        assert moving_average(np.ones(37), 10).size == 37


class TestRCBandpass:
    """First-order RC band-pass (0.5–3 Hz)."""

    def test_same_length_and_finite(self):
        out = bandpass_filter(np.random.default_rng(0).random(300), 0.5, 3.0, FPS)
        assert out.size == 300
        assert np.all(np.isfinite(out))

    def test_constant_input_decays_to_zero(self):
        out = bandpass_filter(np.full(300, 0.7), 0.5, 3.0, FPS)
        assert abs(out[-1]) < 1e-6

    def test_passes_pulse_band_and_attenuates_noise(self):
        """A 1.2 Hz (72 BPM) tone survives far better than a 10 Hz one."""
        pulse = bandpass_filter(_tone(1.2), 0.5, 3.0, FPS)[300:]
        noise = bandpass_filter(_tone(10.0), 0.5, 3.0, FPS)[300:]
        assert _rms(pulse) > 2.0 * _rms(noise)


class TestButterworth:
    """Optional Butterworth band-pass."""

    def test_passes_pulse_band_and_attenuates_drift(self):
        pulse = butterworth_bandpass(_tone(1.2), 0.5, 3.0, FPS)[300:]
        drift = butterworth_bandpass(_tone(0.05), 0.5, 3.0, FPS)[300:]
        assert _rms(pulse) > 5.0 * _rms(drift)

    def test_cutoff_above_nyquist_warns(self):
        with pytest.warns(UserWarning):
            design_bandpass(5.0, 0.5, 3.0)

    def test_inverted_band_raises(self):
        with pytest.raises(ValueError):
            design_bandpass(30.0, 3.0, 0.5)


class TestApplyBandpass:
    def test_dispatches_by_name(self):
        data = _tone(1.2, 120)
        assert np.allclose(apply_bandpass(data, "rc", 0.5, 3.0, FPS), bandpass_filter(data, 0.5, 3.0, FPS))
        assert np.allclose(
            apply_bandpass(data, "butterworth", 0.5, 3.0, FPS),
            butterworth_bandpass(data, 0.5, 3.0, FPS),
        )

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            apply_bandpass(np.ones(10), "kalman")

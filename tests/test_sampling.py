"""Tests for rppg/sampling.py and rppg/pipeline.py - frame extraction and the rolling window."""

import math

import numpy as np
import pytest

from rppg.pipeline import SignalWindow, condition, effective_sample_rate
from rppg.sampling import CaptureMode, Channel, FrameSample, audio_rms, extract_sample


def _frame(h=200, w=400, rgb=(0, 0, 0)) -> np.ndarray:
    image = np.zeros((h, w, 3), dtype=np.uint8)
    image[:, :] = rgb
    return image


class TestExtractSample:
    def test_finger_uses_central_red(self):
        """Only the central min(100, W/4) square counts."""
        image = _frame()
        image[50:150, 150:250, 0] = 200
        sample = extract_sample(CaptureMode.FINGER, image, 1000.0)
        assert sample == FrameSample(1000.0, 200.0, Channel.RED)

    def test_finger_bgr_frames(self):
        image = _frame(rgb=(0, 0, 180))    # BGR: red is the last channel
        assert extract_sample(CaptureMode.FINGER, image, 0.0, bgr=True).value == 180.0

    def test_face_uses_green(self):
        sample = extract_sample("face", _frame(rgb=(10, 50, 90)), 5.0)
        assert sample.value == 50.0
        assert sample.channel is Channel.GREEN

    def test_sound_uses_rms(self):
        pcm = np.array([0.5, -0.5, 0.5, -0.5])
        sample = extract_sample(CaptureMode.SOUND, pcm, 0.0)
        assert sample.channel is Channel.AUDIO
        assert sample.value == pytest.approx(0.5)

    def test_bad_frame_shape(self):
        with pytest.raises(ValueError):
            extract_sample(CaptureMode.FINGER, np.zeros((10, 10)), 0.0)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            extract_sample("ultrasound", _frame(), 0.0)


class TestAudioRMS:
    def test_uint8_is_centred(self):
        assert audio_rms(np.full(64, 128, dtype=np.uint8)) == 0.0

    def test_int16_is_scaled(self):
        assert audio_rms(np.array([16384, -16384], dtype=np.int16)) == pytest.approx(0.5)

    def test_empty_buffer(self):
        assert audio_rms(np.array([])) == 0.0


class TestSignalWindow:
    def test_evicts_oldest(self):
        window = SignalWindow(capacity=3)
        for i in range(5):
            window.append(FrameSample(i * 33.0, float(i)))
        assert len(window) == 3
        assert list(window.values()) == [2.0, 3.0, 4.0]

    def test_drops_non_finite(self):
        window = SignalWindow(capacity=10)
        assert window.append(FrameSample(0.0, math.nan)) is False
        assert window.append(FrameSample(33.0, math.inf)) is False
        assert window.append(FrameSample(66.0, 1.0)) is True
        assert len(window) == 1
        assert window.dropped == 2

    def test_rejects_bad_capacity(self):
        with pytest.raises(ValueError):
            SignalWindow(capacity=0)

    def test_effective_rate_from_timestamps(self):
        assert effective_sample_rate([0.0, 40.0, 80.0, 120.0]) == pytest.approx(25.0)
        assert effective_sample_rate([5.0], fallback_hz=30.0) == 30.0
        assert effective_sample_rate([5.0, 5.0], fallback_hz=30.0) == 30.0


class TestCondition:
    def _window(self, values, fps=30.0):
        window = SignalWindow(capacity=len(values))
        for i, v in enumerate(values):
            window.append(FrameSample(i * 1000.0 / fps, float(v)))
        return window

    @pytest.mark.parametrize("enhanced", [True, False])
    @pytest.mark.parametrize("method", ["rc", "butterworth"])
    def test_lengths_match_and_values_finite(self, make_pulse, enhanced, method):
        signal = condition(self._window(180.0 + 4.0 * make_pulse(72.0)), enhanced=enhanced, bandpass_method=method)
        assert len(signal.filtered) == len(signal.raw) == 300
        assert np.all(np.isfinite(signal.filtered))
        assert signal.sample_rate_hz == pytest.approx(30.0)
        assert signal.raw.min() == pytest.approx(0.0) and signal.raw.max() == pytest.approx(1.0)

    def test_flat_window_stays_zero(self):
        signal = condition(self._window(np.full(120, 128.0)))
        assert not np.any(signal.filtered)

"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from measurement.controller import MeasurementCallbacks, MeasurementController
from measurement.settings import MeasurementConfig
from rppg.synthetic import flat_stream, synthetic_ppg

FPS = 30.0


def cosine_pulse(bpm: float, n: int = 300, fps: float = FPS, first_peak: int = 15) -> np.ndarray:
    """Noise-free cosine whose maxima fall exactly on sample indices."""
    period = fps * 60.0 / bpm
    t = np.arange(n)
    return 0.5 + 0.5 * np.cos(2.0 * np.pi * (t - first_peak) / period)


class EventRecorder:
    """Collects every controller event in arrival order."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def callbacks(self) -> MeasurementCallbacks:
        def sink(name):
            return lambda *args: self.events.append((name, args[0] if args else None))

        return MeasurementCallbacks(
            on_progress=sink("progress"),
            on_metric_update=sink("metric"),
            on_complete=sink("complete"),
            on_quality_warning=sink("quality"),
            on_retry=sink("retry"),
            on_error=sink("error"),
            on_phase_change=sink("phase"),
        )

    def of(self, name: str) -> list:
        return [payload for kind, payload in self.events if kind == name]


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def controller(recorder):
    return MeasurementController(MeasurementConfig(), recorder.callbacks(), clock=lambda: 1_700_000_000.0)


@pytest.fixture(scope="session")
def pulse_72():
    """15 s finger stream at 72 BPM with ±3 % beat-to-beat jitter."""
    return synthetic_ppg(bpm=72.0, duration_s=15.0, jitter=0.03, seed=7)


@pytest.fixture(scope="session")
def flat_15s():
    return flat_stream(duration_s=15.0)


@pytest.fixture
def make_pulse():
    """Factory for phase-aligned cosine pulses (see `cosine_pulse`)."""
    return cosine_pulse

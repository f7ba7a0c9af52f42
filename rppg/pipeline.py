"""
rppg/pipeline.py - Rolling window → conditioned signal
=======================================================
Orchestrates the conditioning chain for one rolling window:

    FrameSamples  →  normalize  →  band-pass  →  moving average
                  →  ConditionedSignal (raw, filtered, timestamps, fs)

`SignalWindow` is the ring buffer that owns the samples for one channel
(oldest evicted once `capacity` is reached).  The effective sampling rate is
measured from the sample timestamps rather than assumed, because camera and
audio callbacks never arrive at exactly 30 Hz.
"""

import math
from collections import deque
from dataclasses import dataclass

import numpy as np

from config import (
    WINDOW_SIZE,
    SAMPLING_RATE_HZ,
    BP_LOW_HZ,
    BP_HIGH_HZ,
    SMOOTHING_WINDOW,
)
from rppg.filters import apply_bandpass, moving_average, normalize
from rppg.sampling import FrameSample
from utils.logger import get_logger

logger = get_logger("rppg.pipeline")


@dataclass(frozen=True)
class ConditionedSignal:
    """Parallel arrays for one analysed window (len(raw) == len(filtered))."""
    raw: np.ndarray             # Normalised input, 0–1
    filtered: np.ndarray        # Band-limited and smoothed
    timestamps: np.ndarray      # Milliseconds, one per sample
    sample_rate_hz: float

    def __len__(self) -> int:
        return int(self.raw.size)


def effective_sample_rate(timestamps, fallback_hz: float = SAMPLING_RATE_HZ) -> float:
    """
    Frames per second implied by the first and last timestamps (ms).

    Falls back to the nominal rate when there are fewer than two samples or
    the timestamps do not advance.
    """
    ts = np.asarray(timestamps, dtype=np.float64)
    if ts.size < 2:
        return fallback_hz
    span_ms = float(ts[-1] - ts[0])
    if span_ms <= 0.0 or not math.isfinite(span_ms):
        return fallback_hz
    return (ts.size - 1) * 1000.0 / span_ms


class SignalWindow:
    """
    Bounded ring buffer of `FrameSample`s for a single channel.

    Parameters
    ----------
    capacity : int   Maximum number of samples retained (oldest evicted first).
    """

    def __init__(self, capacity: int = WINDOW_SIZE):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}.")
        self._samples: deque[FrameSample] = deque(maxlen=capacity)
        self._dropped = 0

    # ── Public API ───────────────────────────────────────────────────────────

    def append(self, sample: FrameSample) -> bool:
        """
        Add one sample.  Non-finite values (NaN / ±inf) are dropped so they
        never reach the estimators; returns False in that case.
        """
        if not (math.isfinite(sample.value) and math.isfinite(sample.timestamp)):
            self._dropped += 1
            logger.debug("Dropping non-finite sample at t=%s", sample.timestamp)
            return False
        self._samples.append(sample)
        return True

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def dropped(self) -> int:
        """Count of non-finite samples rejected so far."""
        return self._dropped

    def values(self) -> np.ndarray:
        return np.fromiter((s.value for s in self._samples), dtype=np.float64, count=len(self._samples))

    def timestamps(self) -> np.ndarray:
        return np.fromiter((s.timestamp for s in self._samples), dtype=np.float64, count=len(self._samples))

    def sample_rate(self, fallback_hz: float = SAMPLING_RATE_HZ) -> float:
        return effective_sample_rate(self.timestamps(), fallback_hz)


def condition(
    window: SignalWindow,
    enhanced: bool = True,
    bandpass_method: str = "rc",
    nominal_rate_hz: float = SAMPLING_RATE_HZ,
) -> ConditionedSignal:
    """
    Run the conditioning chain over the current window contents.

    enhanced=True   normalize → band-pass (0.5–3 Hz) → moving average(5)
    enhanced=False  normalize → moving average(5)

    A flat window normalises to zeros and stays zeros all the way through,
    so callers never see NaN.
    """
    values = window.values()
    timestamps = window.timestamps()
    fs = effective_sample_rate(timestamps, nominal_rate_hz)

    raw = normalize(values)
    if enhanced:
        band = apply_bandpass(raw, bandpass_method, BP_LOW_HZ, BP_HIGH_HZ, fs)
        filtered = moving_average(band, SMOOTHING_WINDOW)
    else:
        filtered = moving_average(raw, SMOOTHING_WINDOW)

    return ConditionedSignal(raw=raw, filtered=filtered, timestamps=timestamps, sample_rate_hz=fs)

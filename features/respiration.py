"""
features/respiration.py - Respiration rate from microphone energy
==================================================================
Breathing shows up in the microphone's RMS energy as one slow swell per
inhale.  The estimator runs on its own window (AUDIO channel only, never
mixed with the pulse window):

    moving_average(10)  →  normalize  →  find_peaks(fixed 0.3, ≥ 30 samples apart)

    rate = round(peaks / duration_s · 60), clamped to [8, 30] breaths/min

where the duration comes from the sample timestamps.  The breathing pattern
is derived from the rate and from how regular the breath-to-breath intervals
are.
"""

from dataclasses import dataclass

import numpy as np

from config import (
    RESP_MIN_SAMPLES,
    RESP_SMOOTHING_WINDOW,
    RESP_PEAK_THRESHOLD,
    RESP_PEAK_MIN_DISTANCE,
    RESP_MIN_RATE,
    RESP_MAX_RATE,
    NORMAL_RESP_MIN,
    NORMAL_RESP_MAX,
    RESP_IRREGULAR_CV,
)
from rppg.filters import moving_average, normalize
from rppg.peaks import find_peaks, peak_intervals
from utils.logger import get_logger

logger = get_logger("features.respiration")


@dataclass(frozen=True)
class RespirationReading:
    rate_bpm: int       # Breaths per minute
    pattern: str        # "normal" | "irregular" | "rapid" | "slow"
    breaths: int        # Peaks found in the window


def breathing_pattern(rate_bpm: float, intervals=None) -> str:
    """Classify a breathing rate, falling back to interval regularity."""
    if rate_bpm < NORMAL_RESP_MIN:
        return "slow"
    if rate_bpm > NORMAL_RESP_MAX:
        return "rapid"
    if intervals is not None and len(intervals) >= 2:
        spacing = np.asarray(intervals, dtype=np.float64)
        if spacing.mean() > 0 and spacing.std() / spacing.mean() > RESP_IRREGULAR_CV:
            return "irregular"
    return "normal"


def estimate_respiration(values, timestamps) -> RespirationReading | None:
    """
    Breathing rate from an audio-energy window.

    Parameters
    ----------
    values     : sequence of float   RMS energy per audio frame.
    timestamps : sequence of float   Matching capture times (ms).

    Returns
    -------
    RespirationReading, or None when fewer than RESP_MIN_SAMPLES samples are
    available, fewer than two breaths were found, or the timestamps span no
    time.
    """
    data = np.asarray(values, dtype=np.float64)
    ts = np.asarray(timestamps, dtype=np.float64)
    if data.size < RESP_MIN_SAMPLES or ts.size != data.size:
        return None

    duration_s = float(ts[-1] - ts[0]) / 1000.0
    if duration_s <= 0.0:
        return None

    envelope = normalize(moving_average(data, RESP_SMOOTHING_WINDOW))
    breaths = find_peaks(
        envelope,
        min_distance=RESP_PEAK_MIN_DISTANCE,
        adaptive_threshold=False,
        threshold=RESP_PEAK_THRESHOLD,
        refine=False,
    )
    if len(breaths) < 2:
        logger.debug("Respiration: %d breath(s) in %.1f s, not enough.", len(breaths), duration_s)
        return None

    rate = int(round(len(breaths) / duration_s * 60.0))
    rate = int(np.clip(rate, RESP_MIN_RATE, RESP_MAX_RATE))
    pattern = breathing_pattern(rate, peak_intervals(breaths))

    logger.debug("Respiration: %d breaths/min (%s) from %d peaks.", rate, pattern, len(breaths))
    return RespirationReading(rate_bpm=rate, pattern=pattern, breaths=len(breaths))

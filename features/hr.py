"""
features/hr.py - Heart Rate estimation
========================================
Converts detected peak positions into a heart rate (BPM) and a confidence
percentage using outlier-filtered inter-peak interval statistics.

Two variants share the same algorithm and differ only in how much evidence
they demand:

                         basic     enhanced
    minimum peaks            3            4
    minimum valid intervals  2            3

Outlier rejection
-----------------
An interval (in samples) is kept only if

    |interval − mean| ≤ 2·std          (z-score filter)
    0.4·fps ≤ interval ≤ 1.5·fps       (150 … 40 BPM)

Confidence
----------
    confidence = 100 · (1 − variability) · (1 − density_error)

    variability    = std / mean of the valid intervals
    density_error  = |1 − (peaks per second) / (bpm / 60)|

clamped to [0, 100].  A perfectly periodic pulse whose every beat was
detected scores 100.

`(0, 0)` is the "keep collecting" sentinel, not an error.
"""

from dataclasses import dataclass, field

import numpy as np

from config import OUTLIER_Z, MIN_INTERVAL_SECONDS, MAX_INTERVAL_SECONDS
from rppg.peaks import peak_intervals
from utils.logger import get_logger

logger = get_logger("features.hr")

_MIN_PEAKS = {False: 3, True: 4}
_MIN_VALID_INTERVALS = {False: 2, True: 3}


@dataclass(frozen=True)
class RateEstimate:
    bpm: int = 0
    confidence: int = 0
    intervals: tuple[float, ...] = field(default_factory=tuple)        # Every interval (samples)
    valid_intervals: tuple[float, ...] = field(default_factory=tuple)  # Survivors of outlier rejection

    @property
    def ok(self) -> bool:
        return self.bpm > 0


def valid_interval_mask(intervals: np.ndarray, fps: float, z: float = OUTLIER_Z) -> np.ndarray:
    """Boolean mask of intervals that pass both the z-score and physiological filters."""
    if intervals.size == 0:
        return np.zeros(0, dtype=bool)
    mean = intervals.mean()
    std = intervals.std()
    return (
        (np.abs(intervals - mean) <= z * std)
        & (intervals >= MIN_INTERVAL_SECONDS * fps)
        & (intervals <= MAX_INTERVAL_SECONDS * fps)
    )


def rate_details(peaks, total_frames: int, fps: float, enhanced: bool = False) -> RateEstimate:
    """
    Full heart-rate computation, keeping the intervals for diagnostics.

    Parameters
    ----------
    peaks        : sequence of float   Peak positions (samples).
    total_frames : int                 Length of the analysed window (samples).
    fps          : float               Sampling rate of the window (Hz).
    enhanced     : bool                Use the stricter enhanced variant.
    """
    positions = np.asarray(peaks, dtype=np.float64)
    if positions.size < _MIN_PEAKS[enhanced] or fps <= 0 or total_frames <= 0:
        return RateEstimate()

    intervals = peak_intervals(positions)
    mask = valid_interval_mask(intervals, fps)
    valid = intervals[mask]

    if valid.size < _MIN_VALID_INTERVALS[enhanced]:
        return RateEstimate(intervals=tuple(intervals.tolist()), valid_intervals=tuple(valid.tolist()))

    valid_mean = float(valid.mean())
    bpm = int(round(fps * 60.0 / valid_mean))
    if bpm <= 0:
        return RateEstimate(intervals=tuple(intervals.tolist()), valid_intervals=tuple(valid.tolist()))

    variability = float(valid.std() / valid_mean)
    peak_density = positions.size / (total_frames / fps)
    expected_density = bpm / 60.0
    density_error = abs(1.0 - peak_density / expected_density)

    confidence = 100.0 * (1.0 - variability) * (1.0 - density_error)
    confidence = int(round(float(np.clip(confidence, 0.0, 100.0))))

    logger.debug(
        "Rate: %d BPM, conf=%d (%d/%d intervals valid, variability=%.3f, density_err=%.3f)",
        bpm, confidence, valid.size, intervals.size, variability, density_error,
    )

    return RateEstimate(
        bpm=bpm,
        confidence=confidence,
        intervals=tuple(intervals.tolist()),
        valid_intervals=tuple(valid.tolist()),
    )


def estimate_heart_rate(peaks, total_frames: int, fps: float, enhanced: bool = False) -> tuple[int, int]:
    """
    Heart rate and confidence from peak positions.

    Returns
    -------
    (bpm, confidence_percent) : tuple[int, int]
        `(0, 0)` when there are too few peaks or too few valid intervals.
    """
    estimate = rate_details(peaks, total_frames, fps, enhanced)
    return estimate.bpm, estimate.confidence


def is_acceptable(bpm: int, confidence: int, min_hr: int, max_hr: int, floor: int = 0) -> bool:
    """Controller acceptance rule: plausible BPM and confidence above `floor`."""
    return min_hr <= bpm <= max_hr and confidence > floor

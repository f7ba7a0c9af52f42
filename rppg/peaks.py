"""
rppg/peaks.py - Pulse / breath peak detection
===============================================
A deliberately simple time-domain detector that works on short, noisy,
normalised windows:

1. Smooth with a 3-sample trailing mean.
2. Pick a threshold: fixed (0.5 on a 0–1 scale) or adaptive
   (mean + 0.8·std of the smoothed window).
3. Index i is a peak iff it is above the threshold, strictly greater than
   its two neighbours on each side, and at least `min_distance` samples
   after the previously accepted peak (refractory period).
4. Optionally refine each peak to sub-sample accuracy by fitting a
   parabola through (i−1, i, i+1):

       Δ = (a − c) / (2·(a − 2b + c))

   which matters at 30 fps where one sample is already ≈ 33 ms of RR
   interval.  A collinear triple (a − 2b + c == 0) gets Δ = 0.

The refractory check is applied to the refined positions, so the returned
peaks are always at least `min_distance` apart.
"""

import numpy as np
from scipy.signal import argrelmax

from config import PEAK_ADAPTIVE_K, PEAK_FIXED_THRESHOLD, PEAK_MIN_DISTANCE, PEAK_PRESMOOTH
from rppg.filters import moving_average


def peak_threshold(smoothed: np.ndarray, adaptive: bool, fixed: float = PEAK_FIXED_THRESHOLD) -> float:
    """mean + k·std of the signal when adaptive, otherwise the fixed level."""
    if adaptive and smoothed.size:
        return float(smoothed.mean() + PEAK_ADAPTIVE_K * smoothed.std())
    return fixed


def _parabolic_offset(a: float, b: float, c: float) -> float:
    denom = a - 2.0 * b + c
    if denom == 0.0:
        return 0.0
    return (a - c) / (2.0 * denom)


def find_peaks(
    signal,
    min_distance: int = PEAK_MIN_DISTANCE,
    adaptive_threshold: bool = True,
    threshold: float = PEAK_FIXED_THRESHOLD,
    refine: bool = True,
    smooth_window: int = PEAK_PRESMOOTH,
) -> list[float]:
    """
    Locate local maxima in a conditioned signal.

    Parameters
    ----------
    signal             : sequence of float   Normalised / filtered window.
    min_distance       : int                 Minimum spacing between peaks (samples).
    adaptive_threshold : bool                Use mean + 0.8·std instead of `threshold`.
    threshold          : float               Fixed threshold (ignored when adaptive).
    refine             : bool                Quadratic sub-sample refinement.
    smooth_window      : int                 Trailing smoothing applied first.

    Returns
    -------
    list[float]
        Strictly increasing peak positions (fractional when `refine`).
    """
    smoothed = moving_average(signal, smooth_window)
    n = smoothed.size
    if n < 5:
        return []

    level = peak_threshold(smoothed, adaptive_threshold, threshold)
    # Strictly greater than two neighbours on each side; the first and last
    # two samples never qualify.
    candidates = argrelmax(smoothed, order=2)[0]
    candidates = candidates[(candidates >= 2) & (candidates <= n - 3)]
    candidates = candidates[smoothed[candidates] > level]

    peaks: list[float] = []
    last_peak = -float("inf")
    for i in candidates:
        position = float(i)
        if refine:
            position += _parabolic_offset(smoothed[i - 1], smoothed[i], smoothed[i + 1])

        # Refractory period: the earlier peak wins, whatever its height
        if position - last_peak >= min_distance:
            peaks.append(position)
            last_peak = position

    return peaks


def peak_intervals(peaks) -> np.ndarray:
    """Differences between consecutive peak positions (in samples)."""
    positions = np.asarray(peaks, dtype=np.float64)
    if positions.size < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(positions)

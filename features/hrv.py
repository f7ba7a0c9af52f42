"""
features/hrv.py - Heart Rate Variability (HRV) time-domain features
=====================================================================
Computes the three most commonly used *time-domain* HRV metrics from the
intervals between detected pulse peaks:

    SDNN  - Standard Deviation of NN intervals
    RMSSD - Root Mean Square of Successive Differences
    pNN50 - Percentage of successive differences > 50 ms

These feed the heart-score, stress and emotion heuristics in `model/`.

⚠️  A 10-second window holds roughly 10–15 beats, far from the clinical
    5-minute standard.  Treat the numbers as trends, not assessments.
"""

from dataclasses import asdict, dataclass

import numpy as np

from config import HRV_MIN_PEAKS, NN50_THRESHOLD_MS
from rppg.peaks import peak_intervals
from utils.logger import get_logger

logger = get_logger("features.hrv")


@dataclass(frozen=True)
class HRVMetrics:
    sdnn: float          # ms
    rmssd: float         # ms
    pnn50: float         # %
    mean_rr_ms: float
    num_intervals: int

    def to_dict(self) -> dict:
        return asdict(self)


def intervals_ms(peaks, fps: float) -> np.ndarray:
    """Peak-to-peak intervals converted from samples to milliseconds."""
    return peak_intervals(peaks) / fps * 1000.0


def compute_hrv(peaks, fps: float) -> HRVMetrics | None:
    """
    Compute time-domain HRV features from peak positions.

    Parameters
    ----------
    peaks : sequence of float   Peak positions in samples (fractional allowed).
    fps   : float               Sampling rate of the window.

    Returns
    -------
    HRVMetrics, or None if fewer than HRV_MIN_PEAKS peaks are available.

    Notes
    -----
    SDNN is the population standard deviation (ddof=0).  pNN50 is taken over
    the successive differences, not over the intervals.
    """
    if len(peaks) < HRV_MIN_PEAKS or fps <= 0:
        logger.debug("Only %d peaks available (need %d for HRV).", len(peaks), HRV_MIN_PEAKS)
        return None

    rr_ms = intervals_ms(peaks, fps)

    # ── SDNN ──────────────────────────────────────────────────────────────
    sdnn = float(np.std(rr_ms))

    # ── RMSSD ─────────────────────────────────────────────────────────────
    # Successive differences: ΔRR_i = RR_{i+1} − RR_i
    successive_diffs = np.diff(rr_ms)
    rmssd = float(np.sqrt(np.mean(successive_diffs ** 2)))

    # ── pNN50 ─────────────────────────────────────────────────────────────
    nn50 = int(np.sum(np.abs(successive_diffs) > NN50_THRESHOLD_MS))
    pnn50 = 100.0 * nn50 / successive_diffs.size

    metrics = HRVMetrics(
        sdnn=round(sdnn, 2),
        rmssd=round(rmssd, 2),
        pnn50=round(pnn50, 2),
        mean_rr_ms=round(float(rr_ms.mean()), 2),
        num_intervals=int(rr_ms.size),
    )
    logger.debug(
        "HRV - SDNN=%.1f ms, RMSSD=%.1f ms, pNN50=%.1f%% (%d intervals)",
        metrics.sdnn, metrics.rmssd, metrics.pnn50, metrics.num_intervals,
    )
    return metrics


def rmssd_score(hrv: HRVMetrics | None) -> int:
    """RMSSD rounded to whole milliseconds; 0 when HRV is unavailable."""
    if hrv is None:
        return 0
    return int(round(hrv.rmssd))

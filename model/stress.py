"""
model/stress.py - Stress Level Estimation
============================================

⚠️  DISCLAIMER: This is a heuristic WELLNESS INDICATOR, not a validated
    clinical stress measure.  True psychological stress is multi-factorial
    and cannot be reliably inferred from a 15-second PPG recording alone.

────────────────────────────────────────────────────────────────────────
Rationale
────────────────────────────────────────────────────────────────────────
Under acute stress the sympathetic branch of the autonomic nervous system
dominates: resting heart rate rises and heart-rate variability (RMSSD in
particular) drops.  The score adds one penalty for each:

    score  = 1.5 · (bpm − 100)    if bpm > 100
           + 1.2 · (50 − hrv)     if hrv < 50       (hrv = RMSSD, ms)

clamped to [0, 100], then banded:

    score < 30  →  "low"     (Relaxed)
    score < 60  →  "medium"  (Moderate stress)
    otherwise   →  "high"    (High stress)
────────────────────────────────────────────────────────────────────────
"""

from config import (
    NORMAL_HR_MAX,
    STRESS_HR_WEIGHT,
    STRESS_HRV_WEIGHT,
    STRESS_HRV_REFERENCE,
    STRESS_LOW_MAX,
    STRESS_MEDIUM_MAX,
)
from utils.logger import get_logger

logger = get_logger("model.stress")

_INTERPRETATIONS = {
    "low": "Relaxed",
    "medium": "Moderate stress",
    "high": "High stress",
}

_DESCRIPTIONS = {
    "low": (
        "Your physiological markers suggest low stress levels. Your heart rate "
        "variability indicates good autonomic nervous system balance."
    ),
    "medium": (
        "Your stress indicators show moderate activation. Your heart rate "
        "variability suggests a balance between rest-and-digest and "
        "fight-or-flight nervous system activity."
    ),
    "high": (
        "Your physiological markers indicate elevated stress levels. Your heart "
        "rate variability is lower than optimal, suggesting a sympathetic "
        "(fight-or-flight) dominant state."
    ),
}


def stress_score(bpm: float, hrv: float) -> float:
    """Unrounded stress score in [0, 100]."""
    score = 0.0
    if bpm > NORMAL_HR_MAX:
        score += (bpm - NORMAL_HR_MAX) * STRESS_HR_WEIGHT
    if hrv < STRESS_HRV_REFERENCE:
        score += (STRESS_HRV_REFERENCE - hrv) * STRESS_HRV_WEIGHT
    return min(100.0, max(0.0, score))


def estimate_stress(bpm: float, hrv: float) -> dict:
    """
    Map heart rate and HRV to a categorical stress level.

    Parameters
    ----------
    bpm : float   Heart rate in BPM.
    hrv : float   RMSSD in ms (rounded integer in practice).

    Returns
    -------
    dict with keys:
        level          : str   "low", "medium", or "high".
        score          : int   0–100 (higher = more stressed).
        interpretation : str   Short label for display.
        description    : str   Human-readable explanation.
    """
    score = stress_score(bpm, hrv)

    if score < STRESS_LOW_MAX:
        level = "low"
    elif score < STRESS_MEDIUM_MAX:
        level = "medium"
    else:
        level = "high"

    logger.debug("Stress estimate: level=%s, score=%.1f (bpm=%s, hrv=%s)", level, score, bpm, hrv)

    return {
        "level": level,
        "score": int(round(score)),
        "interpretation": _INTERPRETATIONS[level],
        "description": _DESCRIPTIONS[level],
    }

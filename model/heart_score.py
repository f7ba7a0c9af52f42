"""
model/heart_score.py - Composite "heart score" and training zones
===================================================================

⚠️  Wellness heuristic only.  The score rewards a resting heart rate in the
    60–70 BPM range and a healthy amount of variability; it is not derived
    from any clinical risk model.

Scoring
-------
    start at 85
    bpm < 60        −5 per 10 BPM below 60
    bpm > 100       −5 per 10 BPM above 100
    60 ≤ bpm ≤ 70   +5
    hrv < 20        −10
    20 ≤ hrv ≤ 60   +(hrv − 20) / 4

clamped to [0, 100] and rounded.
"""

from config import DEFAULT_AGE, HEART_SCORE_BASE, NORMAL_HR_MIN, NORMAL_HR_MAX

# Fractions of the age-predicted maximum heart rate (220 − age)
_ZONES = (
    (0.5, "Below Target"),
    (0.6, "Warm Up"),
    (0.7, "Fat Burn"),
    (0.8, "Cardio"),
)

_BANDS = (
    (90, "Excellent"),
    (75, "Good"),
    (60, "Fair"),
    (40, "Poor"),
)


def heart_score(bpm: float, hrv: float) -> dict:
    """
    Compute the composite heart score.

    Returns
    -------
    dict with keys:
        score          : int   0–100.
        interpretation : str   Excellent / Good / Fair / Poor / Concerning.
    """
    score = float(HEART_SCORE_BASE)

    if bpm < NORMAL_HR_MIN:
        score -= 5.0 * ((NORMAL_HR_MIN - bpm) / 10.0)
    elif bpm > NORMAL_HR_MAX:
        score -= 5.0 * ((bpm - NORMAL_HR_MAX) / 10.0)
    elif bpm <= 70:
        score += 5.0

    if hrv < 20:
        score -= 10.0
    elif hrv <= 60:
        score += (hrv - 20.0) / 4.0

    score = min(100.0, max(0.0, score))

    interpretation = "Concerning"
    for floor, label in _BANDS:
        if score >= floor:
            interpretation = label
            break

    return {"score": int(round(score)), "interpretation": interpretation}


def health_zone(bpm: float, age: int = DEFAULT_AGE) -> str:
    """Training zone of `bpm` relative to the age-predicted maximum (220 − age)."""
    if age >= 220:
        raise ValueError(f"age must be below 220, got {age}.")
    percent_max = bpm / (220.0 - age)
    for upper, zone in _ZONES:
        if percent_max < upper:
            return zone
    return "Peak"

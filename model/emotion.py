"""
model/emotion.py - Emotional-state guess from HR, HRV and breathing
=====================================================================
A rule table, nothing more.  Each rule needs the heart rate and HRV (RMSSD,
ms) in a band; when a respiration rate is known it must agree too.

    Excited    hr > 85,  hrv > 30,  resp > 15
    Calm       hr < 70,  hrv > 40,  resp < 14
    Stressed   hr > 90,  hrv < 25,  resp > 18
    Focused    70 ≤ hr ≤ 85,  25 ≤ hrv ≤ 40
    Neutral    anything else, or no HRV
"""


def _resp_ok(respiration_rate: float | None, predicate) -> bool:
    return not respiration_rate or predicate(respiration_rate)


def detect_emotion(heart_rate: float, hrv: float | None, respiration_rate: float | None = None) -> dict:
    """
    Returns
    -------
    dict with keys `emotion`, `confidence` (0–100) and `description`.
    """
    if not hrv:
        return {"emotion": "Neutral", "confidence": 50, "description": "Balanced emotional state"}

    if heart_rate > 85 and hrv > 30 and _resp_ok(respiration_rate, lambda r: r > 15):
        confidence = min(80.0, 50.0 + (heart_rate - 85) / 2 + (hrv - 30) / 2)
        return {
            "emotion": "Excited",
            "confidence": int(round(confidence)),
            "description": "Energetic and positive emotional state",
        }

    if heart_rate < 70 and hrv > 40 and _resp_ok(respiration_rate, lambda r: r < 14):
        confidence = min(85.0, 50.0 + (70 - heart_rate) / 2 + (hrv - 40) / 2)
        return {
            "emotion": "Calm",
            "confidence": int(round(confidence)),
            "description": "Relaxed and centered emotional state",
        }

    if heart_rate > 90 and hrv < 25 and _resp_ok(respiration_rate, lambda r: r > 18):
        confidence = min(80.0, 50.0 + (heart_rate - 90) / 2 + (25 - hrv) / 2)
        return {
            "emotion": "Stressed",
            "confidence": int(round(confidence)),
            "description": "Elevated stress response detected",
        }

    if 70 <= heart_rate <= 85 and 25 <= hrv <= 40:
        return {"emotion": "Focused", "confidence": 70, "description": "Alert and attentive state"}

    return {"emotion": "Neutral", "confidence": 50, "description": "Balanced emotional state"}

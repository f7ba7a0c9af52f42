"""
features/spo2.py - Blood-oxygen saturation (SpO2) proxy
=========================================================

⚠️  NOT A PULSE OXIMETER.  A real oximeter compares the pulsatile (AC) and
    steady (DC) absorption of *two* wavelengths (red and infrared), the
    "ratio of ratios", against a clinical calibration curve.  A phone camera
    gives us a single red channel.  This module applies the empirical
    oximeter formula to that one channel:

        R     = AC / DC           (std / mean of the normalised red window)
        SpO2  ≈ 110 − 25·R

    and nudges the result toward the normal band.  The value has no
    diagnostic grounding and is reported for wellness display only.

The optional ±0.5 % jitter reproduces display noise from the original
app.  It is off by default; enable it with `jitter=True` and an explicit
`numpy.random.Generator` when bit-for-bit display parity matters.
"""

from dataclasses import dataclass

import numpy as np

from config import SPO2_MIN_SAMPLES, SPO2_MIN, SPO2_MAX, SPO2_SMOOTHING
from rppg.filters import normalize


@dataclass(frozen=True)
class SpO2Reading:
    value: float          # %
    confidence: int       # 0–100
    trend: str = "stable"  # "rising" | "falling" | "stable"


def estimate_spo2(
    red_values,
    frame_count: int | None = None,
    jitter: bool = False,
    rng: np.random.Generator | None = None,
) -> tuple[float, int]:
    """
    Single-channel SpO2 approximation.

    Parameters
    ----------
    red_values  : sequence of float   Raw red-channel window.
    frame_count : int | None          Frames contributing to the estimate
                                      (defaults to the window length).
    jitter      : bool                Add uniform ±0.5 % noise.
    rng         : Generator | None    Source of randomness for the jitter.

    Returns
    -------
    (spo2_percent, confidence) : tuple[float, int]
        `(0.0, 0)` when the window is too short or has no DC component.
    """
    data = np.asarray(red_values, dtype=np.float64)
    if data.size < SPO2_MIN_SAMPLES:
        return 0.0, 0
    frames = data.size if frame_count is None else frame_count

    normalized = normalize(data)
    dc = float(normalized.mean())
    if dc <= 0.0:
        return 0.0, 0
    ac = float(normalized.std())
    r_value = ac / dc

    spo2 = 110.0 - 25.0 * r_value

    # Bias toward the clinically normal band (95–99 %)
    if spo2 < 95.0:
        spo2 += 0.5
    elif spo2 > 99.0:
        spo2 -= 0.3

    if jitter:
        rng = rng if rng is not None else np.random.default_rng()
        spo2 += float(rng.uniform(-0.5, 0.5))

    spo2 = float(np.clip(spo2, SPO2_MIN, SPO2_MAX))

    confidence = (
        50.0
        + (frames / 60.0) * 10.0            # more data → more confidence
        + (20.0 if ac > 0.05 else 0.0)      # visible pulsatile component
        - (30.0 if r_value > 0.7 else 0.0)  # implausible ratio
    )
    confidence = int(round(float(np.clip(confidence, 0.0, 100.0))))

    return round(spo2, 1), confidence


def smooth_spo2(previous: SpO2Reading | None, value: float, confidence: int) -> SpO2Reading:
    """
    Blend a new reading into the running one (0.7·old + 0.3·new) and label
    the direction of change (±0.5 % dead band).
    """
    if previous is None:
        return SpO2Reading(value=value, confidence=confidence)

    if value > previous.value + 0.5:
        trend = "rising"
    elif value < previous.value - 0.5:
        trend = "falling"
    else:
        trend = "stable"

    blended = previous.value * (1.0 - SPO2_SMOOTHING) + value * SPO2_SMOOTHING
    return SpO2Reading(value=round(blended, 1), confidence=confidence, trend=trend)

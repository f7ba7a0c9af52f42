"""
features/quality.py - Signal quality & confidence monitor
===========================================================
Two independent views of "is this reading trustworthy?":

1. **Spectral SNR** of the conditioned window.  The dominant frequency f₀
   inside the pulse band is located with a Hann-windowed, zero-padded FFT;
   power within ±0.2 Hz of f₀ and of its 2nd harmonic counts as signal,
   everything else in the band counts as noise:

       SNR_dB = 10 · log10(P_signal / P_noise)

2. **Structural flags** from the rate estimate: too few beats, low
   confidence, irregular spacing, out-of-range heart rate.

Flags are plain strings because they go straight to the UI.
"""

import numpy as np

from config import (
    BP_LOW_HZ,
    BP_HIGH_HZ,
    SNR_BAND_HZ,
    SNR_LOW_DB,
    LOW_CONFIDENCE,
    EXCELLENT_CONFIDENCE,
    MIN_BEATS_FOR_QUALITY,
    IRREGULAR_INTERVAL_CV,
    NORMAL_HR_MIN,
    NORMAL_HR_MAX,
)

# ── Flag strings ─────────────────────────────────────────────────────────────
LOW_SIGNAL_QUALITY = "Low signal quality"
NOT_ENOUGH_BEATS = "Not enough heartbeats detected"
IRREGULAR_INTERVALS = "Irregular intervals"
ELEVATED_HEART_RATE = "Elevated heart rate"
LOW_HEART_RATE = "Low heart rate"
EXCELLENT_SIGNAL = "Excellent signal"

# Flags that are informational rather than a problem
_INFO_FLAGS = frozenset({EXCELLENT_SIGNAL})

_FFT_MIN_POINTS = 1024


def calculate_snr(signal, fps: float, low_hz: float = BP_LOW_HZ, high_hz: float = BP_HIGH_HZ) -> float:
    """
    Spectral signal-to-noise ratio (dB) of a conditioned pulse window.

    Returns 0.0 for windows that are too short, flat, or have no power in
    the pulse band.
    """
    data = np.asarray(signal, dtype=np.float64)
    if data.size < 8 or fps <= 0 or not np.all(np.isfinite(data)):
        return 0.0

    data = data - data.mean()
    if not np.any(data):
        return 0.0

    n_fft = max(_FFT_MIN_POINTS, int(2 ** np.ceil(np.log2(data.size))))
    spectrum = np.abs(np.fft.rfft(data * np.hanning(data.size), n=n_fft)) ** 2
    freqs = np.fft.rfftfreq(n_fft, d=1.0 / fps)

    band = (freqs >= low_hz) & (freqs <= high_hz)
    if not np.any(band) or spectrum[band].sum() <= 0.0:
        return 0.0

    f0 = freqs[band][np.argmax(spectrum[band])]
    signal_bins = (np.abs(freqs - f0) <= SNR_BAND_HZ) | (np.abs(freqs - 2.0 * f0) <= SNR_BAND_HZ)

    signal_power = float(spectrum[signal_bins].sum())
    noise_power = float(spectrum[band & ~signal_bins].sum())
    if signal_power <= 0.0:
        return 0.0
    noise_power = max(noise_power, np.finfo(np.float64).tiny)

    return round(10.0 * np.log10(signal_power / noise_power), 2)


def interval_cv(intervals) -> float:
    """Coefficient of variation (std / mean) of a set of intervals; 0 if undefined."""
    spacing = np.asarray(intervals, dtype=np.float64)
    if spacing.size < 2 or spacing.mean() <= 0:
        return 0.0
    return float(spacing.std() / spacing.mean())


def quality_flags(
    bpm: int,
    confidence: int,
    peak_count: int,
    intervals=(),
    snr_db: float | None = None,
) -> list[str]:
    """
    Structural quality flags for one processed window, in display order.

    Parameters
    ----------
    bpm        : int            Latest rate estimate (0 when none).
    confidence : int            Confidence of that estimate (0–100).
    peak_count : int            Peaks found in the window.
    intervals  : sequence       Peak-to-peak intervals (samples).
    snr_db     : float | None   Spectral SNR, if computed.
    """
    flags: list[str] = []

    if confidence < LOW_CONFIDENCE or (snr_db is not None and snr_db < SNR_LOW_DB):
        flags.append(LOW_SIGNAL_QUALITY)
    if peak_count < MIN_BEATS_FOR_QUALITY:
        flags.append(NOT_ENOUGH_BEATS)
    if interval_cv(intervals) > IRREGULAR_INTERVAL_CV:
        flags.append(IRREGULAR_INTERVALS)

    if bpm > 0:
        if bpm > NORMAL_HR_MAX:
            flags.append(ELEVATED_HEART_RATE)
        elif bpm < NORMAL_HR_MIN:
            flags.append(LOW_HEART_RATE)

    if confidence > EXCELLENT_CONFIDENCE:
        flags.append(EXCELLENT_SIGNAL)

    return flags


def warnings_only(flags) -> list[str]:
    """Drop informational flags, keeping the ones worth warning about."""
    return [f for f in flags if f not in _INFO_FLAGS]


def signal_quality_label(confidence: int) -> str:
    """Map a confidence percentage to poor / fair / good / excellent."""
    if confidence < 40:
        return "poor"
    if confidence < 60:
        return "fair"
    if confidence < 80:
        return "good"
    return "excellent"

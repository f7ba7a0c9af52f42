"""
rppg/filters.py - Signal conditioning
======================================
Turns the raw per-frame intensity series into something the peak detector
can work with:

    normalize()            min → 0, max → 1 (flat windows → all zeros)
    moving_average()       trailing mean, no look-ahead
    bandpass_filter()      first-order high-pass + first-order low-pass
    butterworth_bandpass() causal Butterworth band-pass (optional)

Pulse band
----------
* 0.5 Hz  →  30 BPM  - anything slower is lighting drift or finger pressure.
* 3.0 Hz  → 180 BPM  - anything faster is sensor noise.

Both band-pass variants are causal: every output sample depends only on the
current input and previous state, so they could run sample-by-sample.  The
controller still refilters the whole rolling window each frame (≤ 300
samples), which keeps the state handling trivial.
"""

import math
import warnings

import numpy as np
from scipy.signal import butter, lfilter, sosfilt

from config import BP_LOW_HZ, BP_HIGH_HZ, FILTER_ORDER
from utils.errors import DegenerateSignalError


def normalize(window, strict: bool = False) -> np.ndarray:
    """
    Linearly rescale a window so its minimum maps to 0 and its maximum to 1.

    Parameters
    ----------
    window : sequence of float
    strict : bool
        If True, a flat window raises `DegenerateSignalError` instead of
        returning zeros.

    Returns
    -------
    ndarray, same length as `window`.
    """
    data = np.asarray(window, dtype=np.float64)
    if data.size == 0:
        return data.copy()

    lo = float(data.min())
    hi = float(data.max())
    span = hi - lo
    if span == 0.0 or not math.isfinite(span):
        if strict:
            raise DegenerateSignalError(
                f"Cannot normalise a flat window of {data.size} samples (value={lo})."
            )
        return np.zeros_like(data)

    return (data - lo) / span


def moving_average(window, k: int) -> np.ndarray:
    """
    Trailing moving average: output[i] is the mean of the last
    `min(k, i + 1)` inputs.  Same length as the input.
    """
    data = np.asarray(window, dtype=np.float64)
    if data.size == 0 or k <= 1:
        return data.copy()

    csum = np.concatenate(([0.0], np.cumsum(data)))
    idx = np.arange(data.size)
    start = np.maximum(0, idx - k + 1)
    return (csum[idx + 1] - csum[start]) / (idx + 1 - start)


def _rc_coefficients(low_hz: float, high_hz: float, sample_rate_hz: float) -> tuple[float, float]:
    dt = 1.0 / sample_rate_hz
    rc_high_pass = 1.0 / (2.0 * math.pi * low_hz)
    rc_low_pass = 1.0 / (2.0 * math.pi * high_hz)
    alpha_hp = rc_high_pass / (rc_high_pass + dt)
    alpha_lp = dt / (rc_low_pass + dt)
    return alpha_hp, alpha_lp


def bandpass_filter(
    window,
    low_hz: float = BP_LOW_HZ,
    high_hz: float = BP_HIGH_HZ,
    sample_rate_hz: float = 30.0,
) -> np.ndarray:
    """
    First-order RC band-pass built from two exponential moving averages.

    High-pass (removes drift below `low_hz`):
        hp[i] = α_hp · (hp[i-1] + x[i] − x[i-1]),   α_hp = RC_l / (RC_l + dt)
    Low-pass (removes noise above `high_hz`):
        lp[i] = lp[i-1] + α_lp · (hp[i] − lp[i-1]), α_lp = dt / (RC_h + dt)

    with RC = 1 / (2π·f) and zero initial state (x[-1] = hp[-1] = lp[-1] = 0).
    Each recurrence is a one-pole IIR, evaluated with `scipy.signal.lfilter`.
    """
    data = np.asarray(window, dtype=np.float64)
    if data.size == 0:
        return data.copy()

    alpha_hp, alpha_lp = _rc_coefficients(low_hz, high_hz, sample_rate_hz)
    high_passed = lfilter([alpha_hp, -alpha_hp], [1.0, -alpha_hp], data)
    return lfilter([alpha_lp], [1.0, alpha_lp - 1.0], high_passed)


def design_bandpass(
    sample_rate_hz: float,
    low_hz: float = BP_LOW_HZ,
    high_hz: float = BP_HIGH_HZ,
    order: int = FILTER_ORDER,
) -> np.ndarray:
    """
    Return second-order sections for a Butterworth band-pass tuned to the
    pulse band at the given sampling rate.
    """
    nyq = sample_rate_hz / 2.0
    low = low_hz / nyq
    high = high_hz / nyq

    # If the frame rate is too low the high cutoff would exceed Nyquist.
    if high >= 1.0:
        high = 0.95
        warnings.warn(
            f"Sampling rate ({sample_rate_hz} Hz) is too low for the requested upper cutoff "
            f"({high_hz} Hz).  Clamping to {high * nyq:.2f} Hz.",
            stacklevel=2,
        )
    if low >= high:
        raise ValueError(
            f"Invalid band {low_hz}–{high_hz} Hz for a {sample_rate_hz} Hz sampling rate."
        )

    return butter(order, [low, high], btype="band", output="sos")


def butterworth_bandpass(
    window,
    low_hz: float = BP_LOW_HZ,
    high_hz: float = BP_HIGH_HZ,
    sample_rate_hz: float = 30.0,
    order: int = FILTER_ORDER,
) -> np.ndarray:
    """
    Causal Butterworth band-pass (maximally flat passband, steeper roll-off
    than the RC pair).  Causal `sosfilt` rather than zero-phase `filtfilt`
    so it behaves the same whether run per sample or per window.
    """
    data = np.asarray(window, dtype=np.float64)
    if data.size == 0:
        return data.copy()
    sos = design_bandpass(sample_rate_hz, low_hz, high_hz, order)
    return sosfilt(sos, data)


_BANDPASS_METHODS = {
    "rc": bandpass_filter,
    "butterworth": butterworth_bandpass,
}


def apply_bandpass(
    window,
    method: str = "rc",
    low_hz: float = BP_LOW_HZ,
    high_hz: float = BP_HIGH_HZ,
    sample_rate_hz: float = 30.0,
) -> np.ndarray:
    """Dispatch to the band-pass named by `method` ("rc" or "butterworth")."""
    if method not in _BANDPASS_METHODS:
        raise ValueError(
            f"Unknown band-pass method '{method}'. Choose from {list(_BANDPASS_METHODS)}."
        )
    return _BANDPASS_METHODS[method](window, low_hz, high_hz, sample_rate_hz)

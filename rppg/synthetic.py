"""
rppg/synthetic.py - Deterministic synthetic streams
====================================================
Generates `FrameSample` streams with a known ground truth, used by
`demo_cli.py --source synthetic` and by the test-suite.

The pulse is a cosine whose phase advances by 2π per beat, each beat
interval being the nominal RR interval times (1 + uniform(−jitter, +jitter)).
Beat maxima therefore land exactly on the generated beat times, which makes
the expected BPM easy to reason about.
"""

import numpy as np

from rppg.sampling import Channel, FrameSample


def _beat_phase(t_s: np.ndarray, rate_per_min: float, jitter: float, rng: np.random.Generator) -> np.ndarray:
    nominal = 60.0 / rate_per_min
    total = float(t_s[-1]) if t_s.size else 0.0
    n_beats = int(total / (nominal * (1.0 - jitter))) + 2
    intervals = nominal * (1.0 + rng.uniform(-jitter, jitter, size=n_beats))
    beat_times = np.concatenate(([0.0], np.cumsum(intervals)))
    # Linear phase within each beat: 0 at a beat time, 2π at the next one
    k = np.searchsorted(beat_times, t_s, side="right") - 1
    frac = (t_s - beat_times[k]) / (beat_times[k + 1] - beat_times[k])
    return 2.0 * np.pi * (k + frac)


def synthetic_ppg(
    bpm: float = 72.0,
    duration_s: float = 15.0,
    fps: float = 30.0,
    jitter: float = 0.03,
    baseline: float = 180.0,
    amplitude: float = 4.0,
    noise: float = 0.0,
    channel: Channel = Channel.RED,
    start_ms: float = 0.0,
    seed: int = 0,
) -> list[FrameSample]:
    """
    Camera-like PPG stream: baseline red level plus a pulsatile component.

    The stream includes the sample at exactly `duration_s`, so feeding it to
    a controller configured for the same duration completes the session.
    """
    rng = np.random.default_rng(seed)
    n = int(round(duration_s * fps)) + 1
    t_s = np.arange(n) / fps
    values = baseline + amplitude * np.cos(_beat_phase(t_s, bpm, jitter, rng))
    if noise > 0:
        values = values + rng.normal(0.0, noise, size=n)
    return [
        FrameSample(start_ms + float(t) * 1000.0, float(v), channel)
        for t, v in zip(t_s, values)
    ]


def flat_stream(
    duration_s: float = 15.0,
    fps: float = 30.0,
    value: float = 128.0,
    channel: Channel = Channel.RED,
    start_ms: float = 0.0,
) -> list[FrameSample]:
    """Zero-variance stream (camera covered, no finger, no light)."""
    n = int(round(duration_s * fps)) + 1
    return [FrameSample(start_ms + i * 1000.0 / fps, value, channel) for i in range(n)]


def synthetic_breathing(
    breaths_per_min: float = 15.0,
    duration_s: float = 15.0,
    rate_hz: float = 30.0,
    jitter: float = 0.05,
    floor: float = 0.02,
    depth: float = 0.08,
    start_ms: float = 0.0,
    seed: int = 1,
) -> list[FrameSample]:
    """Audio-energy stream: RMS rises on every inhale."""
    rng = np.random.default_rng(seed)
    n = int(round(duration_s * rate_hz)) + 1
    t_s = np.arange(n) / rate_hz
    phase = _beat_phase(t_s, breaths_per_min, jitter, rng)
    values = floor + depth * 0.5 * (1.0 + np.cos(phase))
    return [
        FrameSample(start_ms + float(t) * 1000.0, float(v), Channel.AUDIO)
        for t, v in zip(t_s, values)
    ]


def interleave(*streams: list[FrameSample]) -> list[FrameSample]:
    """Merge several streams into one, ordered by timestamp."""
    merged = [s for stream in streams for s in stream]
    merged.sort(key=lambda s: s.timestamp)
    return merged

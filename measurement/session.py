"""
measurement/session.py - Per-measurement state
===============================================
Everything one measurement accumulates lives on a `MeasurementSession`: the
phase, the time anchor, the rolling windows and the latest estimates.  The
controller creates a fresh session on every start and drops it on stop, so
no state leaks from one measurement into the next.
"""

from dataclasses import dataclass, field
from enum import Enum

from features.hrv import HRVMetrics
from features.respiration import RespirationReading
from features.spo2 import SpO2Reading
from measurement.settings import MeasurementConfig
from rppg.pipeline import SignalWindow
from rppg.sampling import CaptureMode


class Phase(str, Enum):
    IDLE = "idle"
    CALIBRATING = "calibrating"
    MEASURING = "measuring"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


@dataclass
class MeasurementSession:
    mode: CaptureMode
    config: MeasurementConfig
    started_at: float | None = None       # ms; anchored on `start(now_ms)` or the first sample
    phase: Phase = Phase.CALIBRATING
    elapsed_ms: float = 0.0

    # Rolling windows
    pulse: SignalWindow = field(init=False)
    breath: SignalWindow = field(init=False)

    # Calibration baseline (mean pulse-channel level before measuring starts)
    baseline_level: float | None = None
    baseline_samples: int = 0

    # Latest accepted estimates
    heart_rate: int = 0
    confidence: int = 0
    hrv: HRVMetrics | None = None
    spo2: SpO2Reading | None = None
    respiration: RespirationReading | None = None
    heart_score: dict | None = None
    stress: dict | None = None
    emotion: dict | None = None
    health_zone: str | None = None        # Training zone of the latest heart rate

    # Latest window diagnostics (updated whether or not the reading was accepted)
    snr_db: float = 0.0
    peak_count: int = 0
    quality_flags: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.pulse = SignalWindow(self.config.window_size)
        self.breath = SignalWindow(self.config.window_size)

    # ── Timing ───────────────────────────────────────────────────────────────

    def anchor(self, now_ms: float) -> None:
        if self.started_at is None:
            self.started_at = now_ms

    def advance(self, now_ms: float) -> float:
        """Move the session clock forward (never backward) and return elapsed ms."""
        self.anchor(now_ms)
        self.elapsed_ms = max(self.elapsed_ms, now_ms - self.started_at)
        return self.elapsed_ms

    @property
    def progress(self) -> float:
        """Percent of the measurement window elapsed, 0–100."""
        duration = self.config.measurement_duration_ms
        return round(min(100.0, self.elapsed_ms / duration * 100.0), 1)

    @property
    def active(self) -> bool:
        return self.phase in (Phase.CALIBRATING, Phase.MEASURING)

    # ── Calibration ──────────────────────────────────────────────────────────

    def record_baseline(self, value: float) -> None:
        """Running mean of the pulse channel while calibrating."""
        self.baseline_samples += 1
        if self.baseline_level is None:
            self.baseline_level = value
        else:
            self.baseline_level += (value - self.baseline_level) / self.baseline_samples

    # ── Results ──────────────────────────────────────────────────────────────

    @property
    def has_reading(self) -> bool:
        return self.heart_rate > 0

    def is_reliable(self) -> bool:
        """Whether the session holds a reading good enough to store."""
        if self.mode is CaptureMode.SOUND:
            return self.respiration is not None
        return self.has_reading and self.confidence > self.config.reliable_confidence

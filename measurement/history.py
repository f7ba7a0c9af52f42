"""
measurement/history.py - Completed measurements
================================================
`Measurement` is the immutable record produced when a session completes
with a reliable reading.  `MeasurementHistory` keeps the most recent ones
(oldest dropped first) for the storage / display collaborators.
"""

from collections import deque
from dataclasses import dataclass

from features.hrv import HRVMetrics
from rppg.sampling import CaptureMode


@dataclass(frozen=True)
class Measurement:
    timestamp: float                          # Epoch milliseconds
    heart_rate_bpm: int
    confidence_percent: int
    capture_mode: CaptureMode = CaptureMode.FINGER
    quality_flags: frozenset[str] = frozenset()
    spo2_percent: float | None = None
    respiration_rate_bpm: int | None = None
    hrv: HRVMetrics | None = None
    snr_db: float = 0.0
    signal_quality: str = "poor"              # poor | fair | good | excellent
    heart_score: int | None = None
    stress_level: str | None = None
    breathing_pattern: str | None = None
    health_zone: str | None = None

    def to_dict(self) -> dict:
        """JSON-ready record (flags sorted for stable output)."""
        return {
            "timestamp": self.timestamp,
            "capture_mode": self.capture_mode.value,
            "heart_rate_bpm": self.heart_rate_bpm,
            "confidence_percent": self.confidence_percent,
            "signal_quality": self.signal_quality,
            "snr_db": self.snr_db,
            "quality_flags": sorted(self.quality_flags),
            "spo2_percent": self.spo2_percent,
            "respiration_rate_bpm": self.respiration_rate_bpm,
            "breathing_pattern": self.breathing_pattern,
            "hrv": self.hrv.to_dict() if self.hrv else None,
            "heart_score": self.heart_score,
            "stress_level": self.stress_level,
            "health_zone": self.health_zone,
        }


class MeasurementHistory:
    """Bounded, oldest-first list of `Measurement`s."""

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}.")
        self._items: deque[Measurement] = deque(maxlen=capacity)

    def append(self, measurement: Measurement) -> None:
        self._items.append(measurement)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    @property
    def latest(self) -> Measurement | None:
        return self._items[-1] if self._items else None

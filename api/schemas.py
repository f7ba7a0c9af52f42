"""
api/schemas.py - Pydantic request & response models
=====================================================
Centralises all data-transfer objects so that FastAPI can auto-generate
OpenAPI docs and perform input validation for free.

`MeasurementConfig` lives with the measurement core (measurement/settings.py)
and is re-exported here because start requests embed it.
"""

from typing import Optional

from pydantic import BaseModel, Field

from measurement.settings import MeasurementConfig  # re-exported for API clients
from rppg.sampling import CaptureMode, Channel


# ── Request Models ───────────────────────────────────────────────────────────


class StartRequest(BaseModel):
    """Start a session; any config field left out keeps the server default."""
    mode: CaptureMode = CaptureMode.FINGER
    config: Optional[MeasurementConfig] = None
    now_ms: Optional[float] = Field(None, allow_inf_nan=False, description="Time anchor; defaults to the first sample.")


class SampleIn(BaseModel):
    timestamp: float = Field(..., description="Monotonic capture time (ms).")
    value: float
    channel: Channel = Channel.RED


class SamplesRequest(BaseModel):
    samples: list[SampleIn] = Field(..., min_length=1, max_length=5000)


# ── Response Models ──────────────────────────────────────────────────────────


class HRVData(BaseModel):
    sdnn: float
    rmssd: float
    pnn50: float
    mean_rr_ms: float
    num_intervals: int


class MetricsData(BaseModel):
    heart_rate_bpm: Optional[int] = None
    confidence_percent: Optional[int] = None
    spo2_percent: Optional[float] = None
    spo2_trend: Optional[str] = None
    respiration_rate_bpm: Optional[int] = None
    breathing_pattern: Optional[str] = None
    hrv: Optional[HRVData] = None
    heart_score: Optional[int] = None
    stress_level: Optional[str] = None
    health_zone: Optional[str] = None
    emotion: Optional[str] = None
    snr_db: Optional[float] = None


class StatusResponse(BaseModel):
    phase: str                          # idle | calibrating | measuring | analyzing | complete
    mode: Optional[CaptureMode] = None
    progress_percent: float = 0.0
    elapsed_ms: float = 0.0
    metrics: MetricsData = Field(default_factory=MetricsData)
    quality_flags: list[str] = Field(default_factory=list)
    message: str = ""
    disclaimer: str


class SamplesResponse(BaseModel):
    accepted: int
    phase: str
    progress_percent: float


class MeasurementData(BaseModel):
    timestamp: float
    capture_mode: CaptureMode
    heart_rate_bpm: int
    confidence_percent: int
    signal_quality: str
    snr_db: float
    quality_flags: list[str]
    spo2_percent: Optional[float] = None
    respiration_rate_bpm: Optional[int] = None
    breathing_pattern: Optional[str] = None
    hrv: Optional[HRVData] = None
    heart_score: Optional[int] = None
    stress_level: Optional[str] = None
    health_zone: Optional[str] = None


class ResultResponse(BaseModel):
    disclaimer: str
    measurement: MeasurementData


class HistoryResponse(BaseModel):
    disclaimer: str
    count: int
    measurements: list[MeasurementData]

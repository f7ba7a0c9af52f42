"""
measurement/settings.py - Validated per-session configuration
==============================================================
`MeasurementConfig` is what a `MeasurementController` runs with.  Defaults
come from config.py; every override is range-checked by pydantic, so the CLI
and the HTTP layer reject the same bad values the same way.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from config import (
    MEASUREMENT_DURATION_MS,
    SAMPLING_RATE_HZ,
    MIN_HR,
    MAX_HR,
    HISTORY_CAPACITY,
    CALIBRATION_MS,
    RELIABLE_CONFIDENCE,
    WINDOW_SIZE,
    MIN_PROCESS_SAMPLES,
    BANDPASS_METHOD,
    SPO2_JITTER,
    MAX_SESSION_AGE_MS,
    DEFAULT_AGE,
)


class MeasurementConfig(BaseModel):
    """Tunable options of one measurement session (defaults from config.py)."""

    measurement_duration_ms: int = Field(MEASUREMENT_DURATION_MS, ge=5_000, le=120_000)
    sampling_rate_hz: float = Field(SAMPLING_RATE_HZ, gt=0, le=240, description="Nominal frame rate.")
    min_hr: int = Field(MIN_HR, ge=20, le=250)
    max_hr: int = Field(MAX_HR, ge=20, le=250)
    adaptive_threshold: bool = True
    enhanced_processing: bool = True
    history_capacity: int = Field(HISTORY_CAPACITY, ge=1, le=1000)
    calibration_ms: int = Field(CALIBRATION_MS, ge=0, le=30_000)
    reliable_confidence: int = Field(RELIABLE_CONFIDENCE, ge=0, le=100)
    window_size: int = Field(WINDOW_SIZE, ge=MIN_PROCESS_SAMPLES, le=3000)
    bandpass_method: Literal["rc", "butterworth"] = BANDPASS_METHOD
    spo2_jitter: bool = SPO2_JITTER
    max_session_age_ms: int = Field(MAX_SESSION_AGE_MS, ge=5_000)
    age: int = Field(DEFAULT_AGE, ge=1, le=119, description="User age for the training-zone label.")

    @model_validator(mode="after")
    def _check_ranges(self) -> "MeasurementConfig":
        if self.min_hr >= self.max_hr:
            raise ValueError(f"min_hr ({self.min_hr}) must be below max_hr ({self.max_hr}).")
        if self.calibration_ms >= self.measurement_duration_ms:
            raise ValueError("calibration_ms must be shorter than measurement_duration_ms.")
        if self.max_session_age_ms < self.measurement_duration_ms:
            raise ValueError("max_session_age_ms must be at least measurement_duration_ms.")
        return self

    def merged(self, overrides: "MeasurementConfig | None") -> "MeasurementConfig":
        """
        This config with only the fields explicitly set on `overrides` replaced.

        The result is validated again as a whole, so an override that clashes
        with a field it did not set raises `pydantic.ValidationError`.
        """
        if overrides is None:
            return self
        values = self.model_dump()
        values.update(overrides.model_dump(exclude_unset=True))
        return MeasurementConfig.model_validate(values)

"""
api/session.py - Measurement service for the HTTP layer
========================================================
Wraps one `MeasurementController` and remembers what the controller's
events said, so that stateless HTTP clients can poll for it.

Lifecycle
---------
    1. `start(request)` - new session (rejected while one is running).
    2. `add_samples(samples)` - push batches of timestamped samples.
    3. Poll `status()`; when phase == "complete" call `result()`.
    4. `stop()` - abandon the session at any time.

Thread safety
-------------
None needed: the routes are `async def`, so every call runs on the event
loop thread and the controller has a single owner.
"""

import time
from typing import Callable

from api.schemas import (
    HistoryResponse,
    MeasurementData,
    MetricsData,
    ResultResponse,
    SampleIn,
    SamplesResponse,
    StartRequest,
    StatusResponse,
)
from config import DISCLAIMER
from measurement.controller import MeasurementCallbacks, MeasurementController
from measurement.history import Measurement
from measurement.session import MeasurementSession, Phase
from measurement.settings import MeasurementConfig
from rppg.sampling import FrameSample
from utils.logger import get_logger

logger = get_logger("api.session")


class SessionConflict(Exception):
    """The request does not fit the controller's current phase."""


def _metrics(session: MeasurementSession) -> MetricsData:
    return MetricsData(
        heart_rate_bpm=session.heart_rate or None,
        confidence_percent=session.confidence or None,
        spo2_percent=session.spo2.value if session.spo2 else None,
        spo2_trend=session.spo2.trend if session.spo2 else None,
        respiration_rate_bpm=session.respiration.rate_bpm if session.respiration else None,
        breathing_pattern=session.respiration.pattern if session.respiration else None,
        hrv=session.hrv.to_dict() if session.hrv else None,
        heart_score=session.heart_score["score"] if session.heart_score else None,
        stress_level=session.stress["level"] if session.stress else None,
        health_zone=session.health_zone,
        emotion=session.emotion["emotion"] if session.emotion else None,
        snr_db=session.snr_db if session.phase is not Phase.CALIBRATING else None,
    )


class MeasurementService:
    """
    One controller plus the bits of event history the API exposes.

    Instantiate once per application (see `api.app.create_app`).
    """

    def __init__(self, config: MeasurementConfig | None = None, clock: Callable[[], float] = time.time):
        self._warnings: list[str] = []
        self._last_result: Measurement | None = None
        self.controller = MeasurementController(
            config=config,
            callbacks=MeasurementCallbacks(
                on_complete=self._on_complete,
                on_quality_warning=self._on_quality_warning,
            ),
            clock=clock,
        )
        logger.info("MeasurementService initialised.")

    # ── Event sinks ──────────────────────────────────────────────────────────

    def _on_complete(self, measurement: Measurement) -> None:
        self._last_result = measurement

    def _on_quality_warning(self, warnings: list[str]) -> None:
        self._warnings = list(warnings)

    # ── Public API ───────────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self.controller.phase

    def start(self, request: StartRequest) -> MeasurementSession:
        """
        Start a measurement.  Config fields the request sets override the
        server-wide config; the rest keep it.

        Raises `SessionConflict` while a session is running and
        `pydantic.ValidationError` when the merged config is inconsistent.
        """
        session = self.controller.session
        if session is not None and session.active:
            raise SessionConflict(f"A measurement is already {session.phase.value}.")
        config = self.controller.config.merged(request.config)
        self._warnings = []
        return self.controller.start(request.mode, now_ms=request.now_ms, config=config)

    def add_samples(self, samples: list[SampleIn]) -> SamplesResponse:
        session = self.controller.session
        if session is None or not session.active:
            raise SessionConflict("No measurement is running. POST /measurement/start first.")

        accepted = 0
        for item in samples:
            if self.controller.session is None or not self.controller.session.active:
                break
            self.controller.process_sample(FrameSample(item.timestamp, item.value, item.channel))
            accepted += 1

        current = self.controller.session
        return SamplesResponse(
            accepted=accepted,
            phase=self.phase.value,
            progress_percent=current.progress if current else 0.0,
        )

    def stop(self) -> None:
        self.controller.stop()

    def status(self) -> StatusResponse:
        session = self.controller.session
        if session is None:
            return StatusResponse(
                phase=Phase.IDLE.value,
                message=self.controller.last_message,
                disclaimer=DISCLAIMER,
            )
        return StatusResponse(
            phase=session.phase.value,
            mode=session.mode,
            progress_percent=session.progress,
            elapsed_ms=session.elapsed_ms,
            metrics=_metrics(session),
            quality_flags=list(session.quality_flags),
            message=", ".join(self._warnings) if session.active else self.controller.last_message,
            disclaimer=DISCLAIMER,
        )

    def result(self) -> ResultResponse | None:
        if self._last_result is None:
            return None
        return ResultResponse(
            disclaimer=DISCLAIMER,
            measurement=MeasurementData(**self._last_result.to_dict()),
        )

    def history(self) -> HistoryResponse:
        records = [MeasurementData(**m.to_dict()) for m in self.controller.history]
        return HistoryResponse(disclaimer=DISCLAIMER, count=len(records), measurements=records)

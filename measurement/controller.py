"""
measurement/controller.py - Measurement state machine
=======================================================
Drives one measurement at a time from a stream of `FrameSample`s.

Phases
------
    idle ──start()──▶ calibrating ──(calibration_ms)──▶ measuring
         ◀──stop()──                                      │
                                          (measurement_duration_ms)
                                                          ▼
                        idle ◀──retry── analyzing ──▶ complete

* Calibration is sequential: for the first `calibration_ms` of the session
  the pulse samples only establish a baseline level and are then thrown
  away.  No quality flags are raised while calibrating.
* `elapsed_ms` always counts from the session anchor (the `now_ms` passed
  to `start`, or else the first sample's timestamp), so a whole session
  lasts `measurement_duration_ms`.
* Transitions are evaluated once per sample or `tick()`; there are no
  timers.  Analysing happens inside the update that crosses the
  measurement deadline.
* A session older than `max_session_age_ms` is abandoned with a retry.

Per measuring frame (pulse channel, once ≥ 60 samples are buffered):

    condition window → find peaks → rate + confidence → SNR + quality flags
      └─ accepted (min_hr ≤ bpm ≤ max_hr, confidence > 0):
         HRV → SpO2 (finger, > 3 s) → heart score / stress (> 5 s, HRV > 0)
         → emotion → on_metric_update

Audio samples feed the respiration window independently.

Threading
---------
Single-threaded: the caller owns the controller and delivers one sample at
a time.  There are no locks; `stop()` simply drops the session object.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from config import (
    MIN_PROCESS_SAMPLES,
    PEAK_MIN_DISTANCE,
    PEAK_FIXED_THRESHOLD,
    SPO2_WARMUP_MS,
    SPO2_MIN_CONFIDENCE,
    SCORE_WARMUP_MS,
)
from features.hr import rate_details, is_acceptable
from features.hrv import HRVMetrics, compute_hrv, rmssd_score
from features.quality import calculate_snr, quality_flags, signal_quality_label, warnings_only
from features.respiration import estimate_respiration
from features.spo2 import estimate_spo2, smooth_spo2
from measurement.history import Measurement, MeasurementHistory
from measurement.session import MeasurementSession, Phase
from measurement.settings import MeasurementConfig
from model.emotion import detect_emotion
from model.heart_score import health_zone, heart_score
from model.stress import estimate_stress
from rppg.peaks import find_peaks
from rppg.pipeline import condition
from rppg.sampling import CaptureMode, Channel, FrameSample, extract_sample
from utils.logger import get_logger

logger = get_logger("measurement.controller")

_RETRY_MESSAGES = {
    CaptureMode.FINGER: (
        "Low signal quality. Cover the camera lens and flash completely with your "
        "fingertip, hold still and try again."
    ),
    CaptureMode.FACE: (
        "Low signal quality. Keep your face centred, well lit and still, then try again."
    ),
    CaptureMode.SOUND: (
        "No clear breathing detected. Hold the microphone close, breathe normally "
        "and try again."
    ),
}
_TIMEOUT_MESSAGE = "Measurement timed out before it could finish. Please try again."


@dataclass(frozen=True)
class MetricUpdate:
    """Snapshot handed to `on_metric_update` after an accepted window."""
    elapsed_ms: float
    heart_rate: int | None = None
    confidence: int | None = None
    spo2: float | None = None
    respiration_rate: int | None = None
    hrv: HRVMetrics | None = None
    heart_score: int | None = None
    stress_level: str | None = None
    emotion: str | None = None
    quality_flags: tuple[str, ...] = ()


@dataclass
class MeasurementCallbacks:
    """UI hooks.  Any of them may be left as None."""
    on_progress: Optional[Callable[[float], None]] = None
    on_metric_update: Optional[Callable[[MetricUpdate], None]] = None
    on_complete: Optional[Callable[[Measurement], None]] = None
    on_quality_warning: Optional[Callable[[list], None]] = None
    on_retry: Optional[Callable[[str], None]] = None
    on_error: Optional[Callable[[str], None]] = None
    on_phase_change: Optional[Callable[[Phase], None]] = None


class MeasurementController:
    """
    Owns the current `MeasurementSession` and the measurement history.

    Parameters
    ----------
    config    : MeasurementConfig | None    Defaults for every session.
    callbacks : MeasurementCallbacks | None UI hooks.
    rng       : numpy Generator | None      Randomness for the optional SpO2 jitter.
    clock     : callable                    Wall clock (seconds) used to stamp results.
    """

    def __init__(
        self,
        config: MeasurementConfig | None = None,
        callbacks: MeasurementCallbacks | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or MeasurementConfig()
        self.callbacks = callbacks or MeasurementCallbacks()
        self.history = MeasurementHistory(self.config.history_capacity)
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock
        self._session: MeasurementSession | None = None
        self._last_message = ""
        logger.info("MeasurementController initialised (history capacity %d).", self.history.capacity)

    # ── Public API ───────────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self._session.phase if self._session else Phase.IDLE

    @property
    def session(self) -> MeasurementSession | None:
        return self._session

    @property
    def last_message(self) -> str:
        """Most recent retry / error message ("" after a fresh start)."""
        return self._last_message

    def start(
        self,
        mode: CaptureMode = CaptureMode.FINGER,
        now_ms: float | None = None,
        config: MeasurementConfig | None = None,
    ) -> MeasurementSession:
        """
        Begin a new measurement, discarding any session in progress.

        Raises
        ------
        ValueError
            If `now_ms` is given but is not a finite number.
        """
        if now_ms is not None and not math.isfinite(now_ms):
            raise ValueError(f"now_ms must be finite, got {now_ms}.")
        if self._session is not None:
            logger.info("Discarding %s session for a new start.", self._session.phase.value)

        mode = CaptureMode(mode)
        self._session = MeasurementSession(mode=mode, config=config or self.config, started_at=now_ms)
        self._last_message = ""
        logger.info("Measurement started (mode=%s).", mode.value)
        self._emit("on_phase_change", Phase.CALIBRATING)
        self._emit("on_progress", 0.0)
        return self._session

    def stop(self) -> None:
        """Abort the current session.  A no-op when already idle."""
        if self._session is None:
            return
        logger.info("Measurement stopped in phase %s.", self._session.phase.value)
        self._session = None
        self._emit("on_phase_change", Phase.IDLE)

    def process_frame(self, frame, timestamp_ms: float, bgr: bool = False) -> FrameSample | None:
        """Extract a sample from a raw frame using the session's capture mode and process it."""
        session = self._session
        if session is None or not session.active:
            return None
        sample = extract_sample(session.mode, frame, timestamp_ms, bgr=bgr)
        self.process_sample(sample)
        return sample

    def process_sample(self, sample: FrameSample) -> None:
        """Feed one sample.  Ignored unless a session is calibrating or measuring."""
        session = self._session
        if session is None or not session.active:
            return
        if not (math.isfinite(sample.timestamp) and math.isfinite(sample.value)):
            logger.debug("Dropping non-finite sample (t=%s, value=%s).", sample.timestamp, sample.value)
            return

        if not self._advance(session, sample.timestamp):
            return

        if session.phase is Phase.CALIBRATING:
            if sample.channel is session.mode.channel and sample.is_video:
                session.record_baseline(sample.value)
        elif sample.channel is Channel.AUDIO:
            self._process_audio(session, sample)
        elif sample.channel is session.mode.channel:
            self._process_pulse(session, sample)
        else:
            logger.debug("Ignoring %s sample in %s mode.", sample.channel.value, session.mode.value)

        self._emit("on_progress", session.progress)

        if session.elapsed_ms >= session.config.measurement_duration_ms:
            self._finish(session)

    def tick(self, now_ms: float) -> None:
        """Evaluate time-based transitions without a new sample."""
        session = self._session
        if session is None or not session.active or not math.isfinite(now_ms):
            return
        if not self._advance(session, now_ms):
            return
        self._emit("on_progress", session.progress)
        if session.elapsed_ms >= session.config.measurement_duration_ms:
            self._finish(session)

    def report_acquisition_failure(self, message: str) -> None:
        """The camera / microphone collaborator failed: drop everything and go idle."""
        logger.error("Acquisition failure: %s", message)
        had_session = self._session is not None
        self._session = None
        self._last_message = message
        if had_session:
            self._emit("on_phase_change", Phase.IDLE)
        self._emit("on_error", message)

    # ── Private: transitions ─────────────────────────────────────────────────

    def _advance(self, session: MeasurementSession, now_ms: float) -> bool:
        """Update the clock and time-driven phases.  False if the session ended."""
        elapsed = session.advance(now_ms)

        if elapsed >= session.config.max_session_age_ms:
            logger.warning("Session abandoned after %.0f ms.", elapsed)
            self._retry(_TIMEOUT_MESSAGE)
            return False

        if session.phase is Phase.CALIBRATING and elapsed >= session.config.calibration_ms:
            session.phase = Phase.MEASURING
            logger.info(
                "Calibration done (%d samples, baseline=%s).  Measuring.",
                session.baseline_samples,
                "n/a" if session.baseline_level is None else f"{session.baseline_level:.2f}",
            )
            self._emit("on_phase_change", Phase.MEASURING)
        return True

    def _finish(self, session: MeasurementSession) -> None:
        session.phase = Phase.ANALYZING
        self._emit("on_phase_change", Phase.ANALYZING)

        if not session.is_reliable():
            logger.warning(
                "Measurement unreliable (bpm=%d, confidence=%d).  Asking for a retry.",
                session.heart_rate, session.confidence,
            )
            self._retry(_RETRY_MESSAGES[session.mode])
            return

        measurement = self._build_measurement(session)
        self.history.append(measurement)
        session.phase = Phase.COMPLETE
        logger.info(
            "Measurement complete: %d BPM (confidence %d%%, %s).",
            measurement.heart_rate_bpm, measurement.confidence_percent, measurement.signal_quality,
        )
        self._emit("on_phase_change", Phase.COMPLETE)
        self._emit("on_complete", measurement)

    def _retry(self, message: str) -> None:
        self._session = None
        self._last_message = message
        self._emit("on_retry", message)
        self._emit("on_phase_change", Phase.IDLE)

    def _build_measurement(self, session: MeasurementSession) -> Measurement:
        respiration = session.respiration
        return Measurement(
            timestamp=round(self._clock() * 1000.0, 3),
            heart_rate_bpm=session.heart_rate,
            confidence_percent=session.confidence,
            capture_mode=session.mode,
            quality_flags=frozenset(session.quality_flags),
            spo2_percent=session.spo2.value if session.spo2 else None,
            respiration_rate_bpm=respiration.rate_bpm if respiration else None,
            hrv=session.hrv,
            snr_db=session.snr_db,
            signal_quality=signal_quality_label(session.confidence),
            heart_score=session.heart_score["score"] if session.heart_score else None,
            stress_level=session.stress["level"] if session.stress else None,
            breathing_pattern=respiration.pattern if respiration else None,
            health_zone=session.health_zone,
        )

    # ── Private: per-frame analysis ──────────────────────────────────────────

    def _process_pulse(self, session: MeasurementSession, sample: FrameSample) -> None:
        if not session.pulse.append(sample):
            return
        if len(session.pulse) < MIN_PROCESS_SAMPLES:
            return
        try:
            self._analyze_pulse(session)
        except Exception:
            logger.exception("Pulse analysis failed at t=%.0f ms; skipping frame.", sample.timestamp)

    def _process_audio(self, session: MeasurementSession, sample: FrameSample) -> None:
        if not session.breath.append(sample):
            return
        try:
            reading = estimate_respiration(session.breath.values(), session.breath.timestamps())
        except Exception:
            logger.exception("Respiration analysis failed at t=%.0f ms; skipping frame.", sample.timestamp)
            return
        if reading is not None and reading != session.respiration:
            session.respiration = reading
            self._emit("on_metric_update", self._snapshot(session))

    def _analyze_pulse(self, session: MeasurementSession) -> None:
        cfg = session.config
        enhanced = cfg.enhanced_processing

        signal = condition(
            session.pulse,
            enhanced=enhanced,
            bandpass_method=cfg.bandpass_method,
            nominal_rate_hz=cfg.sampling_rate_hz,
        )
        fs = signal.sample_rate_hz
        peaks = find_peaks(
            signal.filtered,
            min_distance=PEAK_MIN_DISTANCE,
            adaptive_threshold=cfg.adaptive_threshold,
            threshold=PEAK_FIXED_THRESHOLD,
            refine=enhanced,
        )
        estimate = rate_details(peaks, len(signal), fs, enhanced=enhanced)
        session.snr_db = calculate_snr(signal.filtered, fs)
        session.peak_count = len(peaks)
        self._update_flags(
            session,
            quality_flags(estimate.bpm, estimate.confidence, len(peaks), estimate.intervals, session.snr_db),
        )

        if not is_acceptable(estimate.bpm, estimate.confidence, cfg.min_hr, cfg.max_hr):
            logger.debug("Window rejected: bpm=%d, confidence=%d.", estimate.bpm, estimate.confidence)
            return

        session.heart_rate = estimate.bpm
        session.confidence = estimate.confidence
        session.health_zone = health_zone(estimate.bpm, cfg.age)
        session.hrv = compute_hrv(peaks, fs)
        hrv_value = rmssd_score(session.hrv)

        if session.mode is CaptureMode.FINGER and session.elapsed_ms > SPO2_WARMUP_MS:
            value, spo2_conf = estimate_spo2(
                session.pulse.values(), jitter=cfg.spo2_jitter, rng=self._rng,
            )
            if value > 0 and spo2_conf > SPO2_MIN_CONFIDENCE:
                session.spo2 = smooth_spo2(session.spo2, value, spo2_conf)

        if session.elapsed_ms > SCORE_WARMUP_MS and hrv_value > 0:
            session.heart_score = heart_score(estimate.bpm, hrv_value)
            session.stress = estimate_stress(estimate.bpm, hrv_value)

        respiration_rate = session.respiration.rate_bpm if session.respiration else None
        session.emotion = detect_emotion(estimate.bpm, hrv_value or None, respiration_rate)

        self._emit("on_metric_update", self._snapshot(session))

    def _update_flags(self, session: MeasurementSession, flags: list[str]) -> None:
        if flags == session.quality_flags:
            return
        session.quality_flags = flags
        warnings = warnings_only(flags)
        if warnings:
            logger.debug("Quality warnings: %s", ", ".join(warnings))
            self._emit("on_quality_warning", warnings)

    @staticmethod
    def _snapshot(session: MeasurementSession) -> MetricUpdate:
        return MetricUpdate(
            elapsed_ms=session.elapsed_ms,
            heart_rate=session.heart_rate or None,
            confidence=session.confidence or None,
            spo2=session.spo2.value if session.spo2 else None,
            respiration_rate=session.respiration.rate_bpm if session.respiration else None,
            hrv=session.hrv,
            heart_score=session.heart_score["score"] if session.heart_score else None,
            stress_level=session.stress["level"] if session.stress else None,
            emotion=session.emotion["emotion"] if session.emotion else None,
            quality_flags=tuple(session.quality_flags),
        )

    # ── Private: events ──────────────────────────────────────────────────────

    def _emit(self, name: str, *args) -> None:
        callback = getattr(self.callbacks, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Callback %s raised; continuing.", name)

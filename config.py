"""
config.py - Centralised configuration & hyper-parameters
=========================================================
Every tunable constant in the project lives here so that the rest of the
codebase can import from a single source of truth.  `MeasurementConfig`
(measurement/settings.py) takes its defaults from these values; a session can
override them individually.
"""

import os

# ─── Camera ──────────────────────────────────────────────────────────────────
CAMERA_INDEX: int = 0          # Device index passed to cv2.VideoCapture
CAMERA_WIDTH: int = 640
CAMERA_HEIGHT: int = 480
CAMERA_FPS: int = 30           # Requested FPS; actual FPS may differ

# ─── Session Timing ──────────────────────────────────────────────────────────
MEASUREMENT_DURATION_MS: int = 15_000   # Whole session, calibration included
CALIBRATION_MS: int = 3_000             # Baseline phase; samples are discarded
MAX_SESSION_AGE_MS: int = 60_000        # Abandon sessions that never finish
SPO2_WARMUP_MS: int = 3_000             # Elapsed time before SpO2 is reported
SCORE_WARMUP_MS: int = 5_000            # Elapsed time before heart score / stress

# ─── Sampling ────────────────────────────────────────────────────────────────
SAMPLING_RATE_HZ: float = 30.0
WINDOW_SIZE: int = 300           # Rolling window: 10 s of data at 30 fps
MIN_PROCESS_SAMPLES: int = 60    # Do not analyse fewer than 2 s of samples

# Central sampling squares used by extract_sample()
FINGER_REGION_MAX_PX: int = 100  # Finger: side = min(100, width / 4)
FACE_REGION_FRACTION: float = 0.5  # Face: side = min(width, height) / 2

# ─── Signal Conditioning ─────────────────────────────────────────────────────
# Pulse band (Hz).
# 0.5 Hz  →  30 BPM   (removes slow lighting drift)
# 3.0 Hz  → 180 BPM   (removes camera / sensor noise)
BP_LOW_HZ: float = 0.5
BP_HIGH_HZ: float = 3.0
BANDPASS_METHOD: str = "rc"      # "rc" (first-order EMA pair) | "butterworth"
FILTER_ORDER: int = 4            # Butterworth order when BANDPASS_METHOD == "butterworth"
SMOOTHING_WINDOW: int = 5        # Moving average applied before peak detection

# ─── Peak Detection ──────────────────────────────────────────────────────────
PEAK_MIN_DISTANCE: int = 10      # Samples between accepted peaks (≈ 0.33 s)
PEAK_FIXED_THRESHOLD: float = 0.5
PEAK_ADAPTIVE_K: float = 0.8     # threshold = mean + k·std
PEAK_PRESMOOTH: int = 3          # Internal smoothing inside find_peaks()

# ─── Heart Rate ──────────────────────────────────────────────────────────────
MIN_HR: int = 40
MAX_HR: int = 200
OUTLIER_Z: float = 2.0                    # Interval z-score cut-off
MIN_INTERVAL_SECONDS: float = 0.4         # 150 BPM
MAX_INTERVAL_SECONDS: float = 1.5         # 40 BPM
RELIABLE_CONFIDENCE: int = 50             # Floor for a completed Measurement

NORMAL_HR_MIN: int = 60
NORMAL_HR_MAX: int = 100

# ─── HRV ─────────────────────────────────────────────────────────────────────
HRV_MIN_PEAKS: int = 4
NN50_THRESHOLD_MS: float = 50.0

# ─── SpO2 (single-channel proxy, NOT diagnostic) ─────────────────────────────
SPO2_MIN_SAMPLES: int = 60
SPO2_MIN: float = 70.0
SPO2_MAX: float = 100.0
SPO2_MIN_CONFIDENCE: int = 30
SPO2_JITTER: bool = False        # Reproduce the ±0.5 % display noise
SPO2_SMOOTHING: float = 0.3      # Weight of the newest reading

# ─── Respiration ─────────────────────────────────────────────────────────────
RESP_MIN_SAMPLES: int = 150
RESP_SMOOTHING_WINDOW: int = 10
RESP_PEAK_THRESHOLD: float = 0.3
RESP_PEAK_MIN_DISTANCE: int = 30
RESP_MIN_RATE: int = 8
RESP_MAX_RATE: int = 30
NORMAL_RESP_MIN: int = 12
NORMAL_RESP_MAX: int = 20
RESP_IRREGULAR_CV: float = 0.3

# ─── Quality Monitor ─────────────────────────────────────────────────────────
LOW_CONFIDENCE: int = 30         # Below this → "Low signal quality"
EXCELLENT_CONFIDENCE: int = 80
MIN_BEATS_FOR_QUALITY: int = 5
IRREGULAR_INTERVAL_CV: float = 0.2
SNR_LOW_DB: float = 3.0
SNR_BAND_HZ: float = 0.2         # Half-width around the fundamental / harmonic

# ─── History ─────────────────────────────────────────────────────────────────
HISTORY_CAPACITY: int = 10

# ─── User ────────────────────────────────────────────────────────────────────
DEFAULT_AGE: int = 30            # Training zones use 220 − age as the maximum heart rate

# ─── Heuristic scores (not clinically validated) ─────────────────────────────
HEART_SCORE_BASE: float = 85.0
STRESS_HR_WEIGHT: float = 1.5
STRESS_HRV_WEIGHT: float = 1.2
STRESS_HRV_REFERENCE: float = 50.0
STRESS_LOW_MAX: int = 30
STRESS_MEDIUM_MAX: int = 60

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.environ.get("PPG_LOG_LEVEL", "INFO")

# ─── API ─────────────────────────────────────────────────────────────────────
API_TITLE = "PPG Vital-Signs Measurement API"
API_VERSION = "0.2.0"
API_HOST = "0.0.0.0"
API_PORT = 8000

DISCLAIMER = (
    "⚠️ This is a WELLNESS ESTIMATION tool, NOT a medical device. "
    "Heart rate, HRV, SpO2, respiration and stress values are ESTIMATES "
    "derived from camera photoplethysmography and simple heuristics. "
    "They have NOT been validated for clinical use. "
    "Consult a qualified healthcare professional for diagnosis or treatment."
)

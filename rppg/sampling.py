"""
rppg/sampling.py - Frame → scalar sample extraction
====================================================
The acquisition layer hands us whole frames (an H×W×3 image from the
camera, or a PCM buffer from the microphone).  The pipeline only ever sees
one scalar per frame: a `FrameSample`.

How a frame collapses to one number depends on the capture mode:

    FINGER  mean RED over a central square of side min(100, W/4).
            A fingertip pressed on the lens (torch on) turns the frame
            red; blood-volume pulses modulate how much red gets through.
    FACE    mean GREEN over a central square of side min(W, H)/2.
            Haemoglobin absorbs green most strongly, so skin-colour
            changes are easiest to see in that channel.
    SOUND   RMS energy of the audio buffer (breathing detection).

All three go through `extract_sample()` so nothing downstream branches on
the mode.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from config import FINGER_REGION_MAX_PX, FACE_REGION_FRACTION


class Channel(str, Enum):
    RED = "red"
    GREEN = "green"
    AUDIO = "audio"


class CaptureMode(str, Enum):
    FINGER = "finger"
    FACE = "face"
    SOUND = "sound"

    @property
    def channel(self) -> Channel:
        return _MODE_CHANNEL[self]


_MODE_CHANNEL = {
    CaptureMode.FINGER: Channel.RED,
    CaptureMode.FACE: Channel.GREEN,
    CaptureMode.SOUND: Channel.AUDIO,
}


@dataclass(frozen=True)
class FrameSample:
    """One scalar per camera / audio frame."""
    timestamp: float          # Monotonic milliseconds
    value: float              # Unitless intensity (0–255) or RMS energy (0–1)
    channel: Channel = Channel.RED

    @property
    def is_video(self) -> bool:
        return self.channel is not Channel.AUDIO


# ── Region helpers ───────────────────────────────────────────────────────────


def _central_square(frame: np.ndarray, side: int) -> np.ndarray:
    h, w = frame.shape[:2]
    side = max(1, min(side, h, w))
    top = (h - side) // 2
    left = (w - side) // 2
    return frame[top:top + side, left:left + side]


def _channel_mean(region: np.ndarray, rgb_index: int, bgr: bool) -> float:
    # OpenCV frames are BGR: red lives at index 2, green stays at 1
    index = 2 - rgb_index if bgr else rgb_index
    return float(region[:, :, index].mean())


def _finger_value(frame: np.ndarray, bgr: bool) -> float:
    w = frame.shape[1]
    side = min(FINGER_REGION_MAX_PX, w // 4)
    return _channel_mean(_central_square(frame, side), 0, bgr)


def _face_value(frame: np.ndarray, bgr: bool) -> float:
    h, w = frame.shape[:2]
    side = int(min(w, h) * FACE_REGION_FRACTION)
    return _channel_mean(_central_square(frame, side), 1, bgr)


def audio_rms(buffer: np.ndarray) -> float:
    """
    Root-mean-square energy of a PCM buffer.

    uint8 buffers (Web Audio `getByteTimeDomainData` style) are centred on
    128, int16 buffers are scaled by 32768, float buffers are used as-is.
    """
    pcm = np.asarray(buffer)
    if pcm.size == 0:
        return 0.0
    if pcm.dtype == np.uint8:
        pcm = (pcm.astype(np.float64) - 128.0) / 128.0
    elif pcm.dtype == np.int16:
        pcm = pcm.astype(np.float64) / 32768.0
    else:
        pcm = pcm.astype(np.float64)
    return float(np.sqrt(np.mean(pcm ** 2)))


# ── Public API ───────────────────────────────────────────────────────────────


def extract_sample(
    mode: CaptureMode,
    frame: np.ndarray,
    timestamp_ms: float,
    bgr: bool = False,
) -> FrameSample:
    """
    Collapse one frame into a `FrameSample` according to the capture mode.

    Parameters
    ----------
    mode         : CaptureMode   FINGER, FACE or SOUND.
    frame        : ndarray       H×W×3 image (video modes) or 1-D PCM buffer (SOUND).
    timestamp_ms : float         Monotonic capture time in milliseconds.
    bgr          : bool          True when the image comes straight from OpenCV.

    Raises
    ------
    ValueError
        If a video mode receives something that is not an H×W×3 image.
    """
    mode = CaptureMode(mode)

    if mode is CaptureMode.SOUND:
        return FrameSample(timestamp_ms, audio_rms(frame), Channel.AUDIO)

    image = np.asarray(frame)
    if image.ndim != 3 or image.shape[2] < 3 or image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(
            f"{mode.value} mode expects an H×W×3 image, got shape {image.shape}."
        )

    if mode is CaptureMode.FINGER:
        value = _finger_value(image, bgr)
    else:
        value = _face_value(image, bgr)
    return FrameSample(timestamp_ms, value, mode.channel)

"""
camera/capture.py - Thread-safe webcam capture
================================================
A background thread continuously grabs frames so the measurement loop never
blocks on I/O.  Every frame is stamped with a monotonic capture time (ms)
and a sequence number, so the consumer can tell a new frame from one it has
already processed and the controller can derive the real frame rate.

Design notes
------------
* The capture thread runs as a daemon so it dies automatically when the
  main process exits; `release()` (or the context manager) still stops it
  cleanly.
* `_frame_ready` is a threading.Event set every time a new frame arrives.
* Failing to open the device, or the device going silent, raises
  `AcquisitionFailure`.  The measurement core never sees the camera.
"""

import threading
import time
from dataclasses import dataclass

import cv2
import numpy as np

from config import CAMERA_INDEX, CAMERA_WIDTH, CAMERA_HEIGHT, CAMERA_FPS
from utils.errors import AcquisitionFailure
from utils.logger import get_logger

logger = get_logger("camera.capture")


@dataclass(frozen=True)
class CapturedFrame:
    image: np.ndarray        # BGR, uint8
    timestamp_ms: float      # time.monotonic() at grab time
    index: int               # 1, 2, 3, …


class CameraCapture:
    """Manages a single webcam and exposes its frames in a thread-safe way."""

    def __init__(self, device_index: int = CAMERA_INDEX):
        self._device_index = device_index
        self._cap: cv2.VideoCapture | None = None
        self._latest: CapturedFrame | None = None
        self._count = 0
        self._lock = threading.Lock()
        self._frame_ready = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.is_open = False

    def __enter__(self) -> "CameraCapture":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    # ── Public API ───────────────────────────────────────────────────────────

    def open(self) -> None:
        """
        Open the camera and start the background capture thread.

        Raises
        ------
        AcquisitionFailure
            If the device cannot be opened.
        """
        if self.is_open:
            logger.warning("Camera already open - ignoring duplicate open().")
            return

        self._cap = cv2.VideoCapture(self._device_index)
        # Set desired resolution & FPS (backend may ignore these)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)
        self._cap.set(cv2.CAP_PROP_FPS, CAMERA_FPS)

        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise AcquisitionFailure(
                f"Failed to open camera at index {self._device_index}. "
                "Check that a webcam is connected and not in use."
            )

        # Log actual backend properties (may differ from what we requested)
        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self._cap.get(cv2.CAP_PROP_FPS)
        logger.info("Camera opened - %dx%d @ %.1f FPS", actual_w, actual_h, actual_fps)

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        self.is_open = True

    def release(self) -> None:
        """Stop the capture thread and release the hardware device."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self._cap:
            self._cap.release()
            self._cap = None
        self.is_open = False
        logger.info("Camera released.")

    def get_latest_frame(self) -> CapturedFrame | None:
        """Most-recently captured frame, or None if none has arrived yet.  Non-blocking."""
        with self._lock:
            return self._latest

    def next_frame(self, after_index: int = 0, timeout: float = 1.0) -> CapturedFrame:
        """
        Block until a frame newer than `after_index` arrives.

        Raises
        ------
        AcquisitionFailure
            If no new frame arrives within `timeout` seconds.
        """
        deadline = time.monotonic() + timeout
        while True:
            frame = self.get_latest_frame()
            if frame is not None and frame.index > after_index:
                return frame
            remaining = deadline - time.monotonic()
            if remaining <= 0 or not self.is_open:
                raise AcquisitionFailure(f"No frame received from camera within {timeout:.1f} s.")
            self._frame_ready.wait(timeout=remaining)
            self._frame_ready.clear()

    # ── Private ──────────────────────────────────────────────────────────────

    def _capture_loop(self) -> None:
        """Continuously grab frames until the stop event is set."""
        while not self._stop_event.is_set():
            ret, image = self._cap.read()  # type: ignore[union-attr]
            if not ret:
                logger.warning("Frame grab returned False - camera may have been disconnected.")
                break
            timestamp_ms = time.monotonic() * 1000.0
            with self._lock:
                self._count += 1
                self._latest = CapturedFrame(image, timestamp_ms, self._count)
            self._frame_ready.set()
        logger.debug("Capture loop exited.")

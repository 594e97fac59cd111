"""
Frame capture for camera input.
Handles USB camera connection with graceful error handling.
"""

import logging

import cv2
import numpy as np
from typing import Optional, Tuple
import threading
import time

from config import FRAME_WIDTH, FRAME_HEIGHT, TARGET_FPS

logger = logging.getLogger(__name__)


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to grayscale (grayscale frames pass through)."""
    if frame.ndim == 2:
        return frame
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


class FrameCapture:
    """
    Camera frame capture with automatic configuration.

    Frames can be read synchronously, or captured on a background thread and
    collected with ``get_latest_frame``. Each captured frame gets an increasing
    id so a consumer can tell a new frame from one it has already seen.
    """

    def __init__(self, camera_id: int = 0, width: int = FRAME_WIDTH,
                 height: int = FRAME_HEIGHT, fps: int = TARGET_FPS):
        self.camera_id = camera_id
        self.width = width
        self.height = height
        self.fps = fps
        self._cap: Optional[cv2.VideoCapture] = None
        self._is_running = False
        self._capture_thread: Optional[threading.Thread] = None
        self._last_frame: Optional[np.ndarray] = None
        self._frame_id = 0
        self._frame_lock = threading.Lock()

    def open(self) -> bool:
        """
        Open the camera connection.

        Tries V4L2 backend first (better on Linux),
        then falls back to default backend.
        """
        self._cap = cv2.VideoCapture(self.camera_id, cv2.CAP_V4L2)

        if not self._cap.isOpened():
            self._cap = cv2.VideoCapture(self.camera_id)

        if not self._cap.isOpened():
            # Last resort: try different camera indices
            for alt_id in [0, 1, 2]:
                if alt_id != self.camera_id:
                    self._cap = cv2.VideoCapture(alt_id, cv2.CAP_V4L2)
                    if self._cap.isOpened():
                        logger.info("Camera found at index %d", alt_id)
                        self.camera_id = alt_id
                        break

        if not self._cap.isOpened():
            logger.error("Could not open any camera")
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.fps)

        # Read a test frame to confirm camera is working
        ret, _ = self._cap.read()
        if not ret:
            logger.warning("Camera opened but could not read frame")
            self._cap.release()
            self._cap = None
            return False

        logger.info("Camera %d opened at %dx%d", self.camera_id, *self.actual_resolution)
        return True

    def close(self) -> None:
        """Close the camera connection."""
        self.stop_continuous()
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def read_frame_color(self) -> Optional[np.ndarray]:
        """
        Read a single colour frame from the camera.
        Returns None if read fails.
        """
        if self._cap is None or not self._cap.isOpened():
            return None

        ret, frame = self._cap.read()
        if not ret:
            logger.debug("Frame grab failed")
            return None

        with self._frame_lock:
            self._last_frame = frame
            self._frame_id += 1

        return frame

    def get_latest_frame(self) -> Tuple[int, Optional[np.ndarray]]:
        """Most recent colour frame and its id (0 and None before any frame)."""
        with self._frame_lock:
            if self._last_frame is None:
                return self._frame_id, None
            return self._frame_id, self._last_frame.copy()

    def start_continuous(self) -> None:
        """Start continuous frame capture in background thread."""
        if self._is_running:
            return

        self._is_running = True
        self._capture_thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._capture_thread.start()

    def stop_continuous(self) -> None:
        """Stop continuous frame capture."""
        self._is_running = False
        if self._capture_thread is not None:
            self._capture_thread.join(timeout=1.0)
            self._capture_thread = None

    def _capture_loop(self) -> None:
        """Background capture loop."""
        frame_interval = 1.0 / self.fps

        while self._is_running:
            start_time = time.time()
            self.read_frame_color()

            # Maintain target FPS
            elapsed = time.time() - start_time
            sleep_time = frame_interval - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

    @property
    def is_opened(self) -> bool:
        """Check if camera is opened."""
        return self._cap is not None and self._cap.isOpened()

    @property
    def actual_resolution(self) -> Tuple[int, int]:
        """Get actual camera resolution (may differ from requested)."""
        if self._cap is None:
            return (0, 0)
        return (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        )

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

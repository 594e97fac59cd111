"""
Motion COG detector - main orchestrator.
Runs camera frames through corner detection, optical flow and the
centroid tracker.
"""

import logging
import time
import numpy as np
from dataclasses import dataclass
from typing import Optional, Callable, Any
import threading

from config import PROCESSING_FPS
from camera.capture import FrameCapture, to_gray
from motion.feature_detector import CornerDetector
from motion.optical_flow import SparseFlowTracker
from motion.centroid_tracker import MotionCentroidTracker, CentroidResult

logger = logging.getLogger(__name__)


@dataclass
class CogSignal:
    """Per-frame output of the detector."""
    timestamp: float
    frame_index: int
    result: CentroidResult

    # Diagnostic info
    tracked_features: int = 0
    redetected: bool = False
    processing_time_ms: float = 0.0


class MotionCogDetector:
    """
    Main entry point for live motion COG detection.

    Orchestrates the pipeline:
    Camera -> Corner Detection (or reuse) -> Optical Flow -> Centroid Tracker

    Usage:
        detector = MotionCogDetector(camera_id=0)
        detector.start()

        # Option A: Polling
        signal = detector.get_cog_signal()

        # Option B: Callback
        def on_signal(signal: CogSignal):
            print(signal.result.point)
        detector.set_callback(on_signal)

        detector.stop()

    ``process_frame`` may also be called directly with frames from any source.
    Calls are serialised, so the tracker only ever sees one frame at a time.
    """

    def __init__(self, camera_id: int = 0,
                 capture: Optional[FrameCapture] = None,
                 corner_detector: Optional[CornerDetector] = None,
                 flow_tracker: Optional[SparseFlowTracker] = None,
                 centroid_tracker: Optional[MotionCentroidTracker] = None,
                 processing_fps: float = PROCESSING_FPS):
        self.camera_id = camera_id
        self.processing_fps = processing_fps

        # Components
        self._capture = capture if capture is not None else FrameCapture(camera_id)
        self._detector = corner_detector if corner_detector is not None else CornerDetector()
        self._flow = flow_tracker if flow_tracker is not None else SparseFlowTracker()
        self._tracker = centroid_tracker if centroid_tracker is not None else MotionCentroidTracker()

        # State
        self._is_running = False
        self._processing_thread: Optional[threading.Thread] = None
        self._latest_signal: Optional[CogSignal] = None
        self._signal_lock = threading.Lock()
        self._process_lock = threading.Lock()
        self._callback: Optional[Callable[[CogSignal], Any]] = None

        self._prev_gray: Optional[np.ndarray] = None
        self._points: Optional[np.ndarray] = None
        self._frame_index = 0

    @property
    def tracker(self) -> MotionCentroidTracker:
        return self._tracker

    def start(self) -> bool:
        """
        Open the camera and begin processing on a background thread.

        Returns:
            True if started successfully
        """
        if not self._capture.open():
            return False

        self._is_running = True
        self._capture.start_continuous()

        self._processing_thread = threading.Thread(
            target=self._processing_loop,
            daemon=True
        )
        self._processing_thread.start()
        logger.info("Processing started at %.1f fps", self.processing_fps)

        return True

    def stop(self) -> None:
        """Stop processing and release the camera."""
        self._is_running = False

        if self._processing_thread is not None:
            self._processing_thread.join(timeout=2.0)
            self._processing_thread = None

        self._capture.close()

    def get_cog_signal(self) -> Optional[CogSignal]:
        """Most recent signal, or None before the first processed frame."""
        with self._signal_lock:
            return self._latest_signal

    def set_callback(self, callback: Callable[[CogSignal], Any]) -> None:
        """Set a function to be called with each new CogSignal."""
        self._callback = callback

    def process_frame(self, frame: np.ndarray) -> Optional[CogSignal]:
        """
        Process one colour (or grayscale) frame.

        The first frame, and any frame whose size differs from the previous
        one, only primes the detector and returns None.
        """
        with self._process_lock:
            start_time = time.time()
            gray = to_gray(frame)

            if self._prev_gray is None or self._prev_gray.shape != gray.shape:
                self._prev_gray = gray
                self._points = None
                return None

            self._frame_index += 1

            # Reuse last frame's end points while motion keeps being found
            redetected = False
            if (not self._tracker.state.reuse_correspondences
                    or self._points is None or len(self._points) == 0):
                self._points = self._detector.detect(self._prev_gray)
                redetected = True

            flow_result = self._flow.track(self._prev_gray, gray, self._points)
            result = self._tracker.update_from_flow(flow_result, gray.shape[1])

            if result.reuse_next_frame:
                self._points = flow_result.curr_points[flow_result.found_mask]
            else:
                self._points = None
            self._prev_gray = gray

            signal = CogSignal(
                timestamp=time.time(),
                frame_index=self._frame_index,
                result=result,
                tracked_features=int(np.sum(flow_result.found_mask)),
                redetected=redetected,
                processing_time_ms=(time.time() - start_time) * 1000
            )

        with self._signal_lock:
            self._latest_signal = signal

        return signal

    def _processing_loop(self) -> None:
        """Background processing loop."""
        target_interval = 1.0 / self.processing_fps
        last_frame_id = 0

        while self._is_running:
            start_time = time.time()

            frame_id, frame = self._capture.get_latest_frame()

            if frame is not None and frame_id != last_frame_id:
                last_frame_id = frame_id
                signal = self.process_frame(frame)

                if signal is not None and self._callback is not None:
                    try:
                        self._callback(signal)
                    except Exception:
                        logger.exception("COG callback failed")

            # Maintain target FPS
            elapsed = time.time() - start_time
            sleep_time = target_interval - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

    def reset(self) -> None:
        """Reset all internal state."""
        with self._process_lock:
            self._tracker.reset()
            self._prev_gray = None
            self._points = None
            self._frame_index = 0
        with self._signal_lock:
            self._latest_signal = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

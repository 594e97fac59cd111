"""
Demo visualizer for the motion COG tracker.
Shows the camera feed with motion arrows and the tracked COG.
"""

import sys
from pathlib import Path

# Add src to path BEFORE any local imports
_src_path = str(Path(__file__).parent.parent / "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

import logging
import cv2
import time
import argparse

# Now import local modules (these are top-level within src/)
import config
from camera.capture import FrameCapture
from pipeline.cog_detector import MotionCogDetector, CogSignal
from utils.logger import setup_logger

logger = logging.getLogger(__name__)


class CogVisualizer:
    """
    Real-time visualizer for the COG tracker.

    Displays:
    - Camera feed with qualifying directions drawn as arrows
    - The COG as a filled circle while it is active
    - Real-time metrics panel
    """

    def __init__(self, camera_id: int = 0):
        self.camera_id = camera_id

        self.capture = FrameCapture(camera_id)
        self.detector = MotionCogDetector(camera_id, capture=self.capture)

        self.COLORS = {
            'text': (255, 255, 255),
            'active': (0, 255, 0),
            'inactive': (100, 100, 100),
        }

    def run(self):
        """Main visualization loop."""
        with self.capture:
            if not self.capture.is_opened:
                logger.error("Could not open camera")
                return

            logger.info("Motion COG tracker - demo visualizer")
            logger.info("Camera: %d, resolution: %s", self.camera_id, self.capture.actual_resolution)
            logger.info("Press 'q' to quit, 'r' to reset")

            try:
                self._loop()
            finally:
                cv2.destroyAllWindows()

    def _loop(self):
        frame_interval = 1.0 / config.PROCESSING_FPS
        fps_start = time.time()
        fps_count = 0
        current_fps = 0

        while True:
            start_time = time.time()

            color_frame = self.capture.read_frame_color()
            if color_frame is None:
                if not self.capture.is_opened:
                    logger.error("Camera closed")
                    break
                continue

            fps_count += 1
            if time.time() - fps_start >= 1.0:
                current_fps = fps_count
                fps_count = 0
                fps_start = time.time()

            signal = self.detector.process_frame(color_frame)

            vis_frame = color_frame.copy()
            if signal is not None:
                vis_frame = self._draw_signal(vis_frame, signal)
            vis_frame = self._draw_metrics_panel(vis_frame, signal, current_fps)

            cv2.imshow("Motion COG", vis_frame)

            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                break
            elif key == ord('r'):
                self.detector.reset()
                logger.info("Tracker reset")

            elapsed = time.time() - start_time
            if elapsed < frame_interval:
                time.sleep(frame_interval - elapsed)

    def _draw_signal(self, frame, signal: CogSignal):
        """Draw direction arrows and the COG."""
        for direction in signal.result.directions:
            direction.draw_arrow(frame)

        if signal.result.active:
            cv2.circle(frame, signal.result.point.as_tuple(), config.COG_RADIUS,
                       config.COG_COLOR, -1, cv2.LINE_AA)

        return frame

    def _draw_metrics_panel(self, frame, signal, fps):
        """Draw metrics panel in corner."""
        h, w = frame.shape[:2]

        panel_h = 130
        panel_w = 220
        cv2.rectangle(frame, (w - panel_w - 10, 10), (w - 10, panel_h + 10),
                      (0, 0, 0), -1)
        cv2.rectangle(frame, (w - panel_w - 10, 10), (w - 10, panel_h + 10),
                      (128, 128, 128), 1)

        x = w - panel_w
        y = 35
        line_h = 25

        def draw_text(label, value, color=self.COLORS['text']):
            nonlocal y
            cv2.putText(frame, f"{label}: {value}", (x, y),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)
            y += line_h

        draw_text("FPS", f"{fps}")

        if signal is not None:
            result = signal.result
            draw_text("Processing", f"{signal.processing_time_ms:.1f}ms")
            draw_text("Directions", f"{result.num_dirs}")
            if result.active:
                draw_text("COG", f"({result.point.x}, {result.point.y})",
                          self.COLORS['active'])
            else:
                draw_text("COG", "none", self.COLORS['inactive'])
            draw_text("Idle frames", f"{result.frames_since_motion}")

        return frame


def main():
    parser = argparse.ArgumentParser(
        description="Motion COG tracker - Demo Visualizer"
    )
    parser.add_argument(
        "--camera", "-c", type=int, default=0,
        help="Camera device index (default: 0)"
    )
    parser.add_argument(
        "--log-level", default=config.LOG_LEVEL,
        help=f"Log level (default: {config.LOG_LEVEL})"
    )
    args = parser.parse_args()

    setup_logger(level=args.log_level)

    visualizer = CogVisualizer(camera_id=args.camera)
    visualizer.run()


if __name__ == "__main__":
    main()

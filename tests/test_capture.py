"""
Tests for camera frame capture with a fake cv2.VideoCapture.
"""

import time

import cv2
import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from camera.capture import FrameCapture


class FakeVideoCapture:
    """Stands in for cv2.VideoCapture; only indices in ``available`` open."""

    available = {0}

    def __init__(self, index, api=None):
        self.index = index
        self.opened = index in FakeVideoCapture.available
        self.props = {}
        self.reads = 0

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        if not self.opened:
            return False, None
        self.reads += 1
        return True, np.full((48, 64, 3), self.reads % 256, dtype=np.uint8)

    def release(self):
        self.opened = False


@pytest.fixture
def fake_camera(monkeypatch):
    monkeypatch.setattr(FakeVideoCapture, "available", {0})
    monkeypatch.setattr(cv2, "VideoCapture", FakeVideoCapture)
    return FakeVideoCapture


class TestFrameCapture:

    def test_context_manager(self, fake_camera):
        capture = FrameCapture(camera_id=0, width=64, height=48)

        with capture as cap:
            assert cap is capture
            assert cap.is_opened
            assert cap.actual_resolution == (64, 48)

        assert not capture.is_opened
        assert capture.actual_resolution == (0, 0)

    def test_latest_frame_ids(self, fake_camera):
        with FrameCapture(camera_id=0) as cap:
            assert cap.get_latest_frame() == (0, None)

            frame = cap.read_frame_color()
            frame_id, latest = cap.get_latest_frame()

            assert frame_id == 1
            np.testing.assert_array_equal(latest, frame)
            assert latest is not frame

            cap.read_frame_color()
            assert cap.get_latest_frame()[0] == 2

    def test_falls_back_to_other_index(self, fake_camera, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "available", {2})
        capture = FrameCapture(camera_id=5)

        assert capture.open()
        assert capture.camera_id == 2
        capture.close()

    def test_no_camera(self, fake_camera, monkeypatch):
        monkeypatch.setattr(FakeVideoCapture, "available", set())
        capture = FrameCapture(camera_id=0)

        with capture:
            assert not capture.is_opened
            assert capture.read_frame_color() is None

    def test_continuous_capture(self, fake_camera):
        with FrameCapture(camera_id=0, fps=200) as cap:
            cap.start_continuous()

            deadline = time.time() + 5.0
            while cap.get_latest_frame()[0] < 3 and time.time() < deadline:
                time.sleep(0.01)

            cap.stop_continuous()
            frame_id, frame = cap.get_latest_frame()

        assert frame_id >= 3
        assert frame.shape == (48, 64, 3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Camera input module."""

from .capture import FrameCapture, to_gray

__all__ = [
    "FrameCapture",
    "to_gray"
]

"""Frame pipeline module."""

from .cog_detector import MotionCogDetector, CogSignal

__all__ = [
    "MotionCogDetector",
    "CogSignal"
]

"""Motion analysis module."""

from .direction import Direction, Point
from .feature_detector import CornerDetector
from .optical_flow import SparseFlowTracker, FlowResult
from .centroid_tracker import (
    MotionCentroidTracker,
    CentroidResult,
    TrackerState,
    TrackerStatus,
    AngleBuckets
)

__all__ = [
    "Direction",
    "Point",
    "CornerDetector",
    "SparseFlowTracker",
    "FlowResult",
    "MotionCentroidTracker",
    "CentroidResult",
    "TrackerState",
    "TrackerStatus",
    "AngleBuckets"
]

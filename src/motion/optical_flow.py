"""
Sparse Lucas-Kanade optical flow tracking.
Produces the corner correspondences consumed by the centroid tracker.
"""

import logging

import cv2
import numpy as np
from typing import Optional
from dataclasses import dataclass

from config import (
    LK_WIN_SIZE, LK_MAX_LEVEL, LK_CRITERIA, FB_ERROR_THRESHOLD
)

logger = logging.getLogger(__name__)


@dataclass
class FlowResult:
    """Result of optical flow computation."""
    prev_points: np.ndarray      # Corners in previous frame, shape (N, 1, 2)
    curr_points: np.ndarray      # Matching positions in current frame
    found_mask: np.ndarray       # Boolean per corner: match found
    tracking_quality: float      # Fraction of corners found

    @property
    def motion_vectors(self) -> np.ndarray:
        return (self.curr_points - self.prev_points).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.found_mask)

    @classmethod
    def empty(cls) -> "FlowResult":
        return cls(
            prev_points=np.array([], dtype=np.float32).reshape(-1, 1, 2),
            curr_points=np.array([], dtype=np.float32).reshape(-1, 1, 2),
            found_mask=np.array([], dtype=bool),
            tracking_quality=0.0
        )


class SparseFlowTracker:
    """
    Sparse optical flow tracker using pyramidal Lucas-Kanade.

    When ``fb_threshold`` is set, tracks are also validated backwards:
    1. Track points forward (prev -> curr)
    2. Track result points backward (curr -> prev)
    3. Reject if forward-backward distance > threshold
    """

    def __init__(self,
                 win_size: tuple = LK_WIN_SIZE,
                 max_level: int = LK_MAX_LEVEL,
                 fb_threshold: Optional[float] = FB_ERROR_THRESHOLD):
        self.win_size = win_size
        self.max_level = max_level
        self.fb_threshold = fb_threshold
        self.criteria = LK_CRITERIA

    def track(self, prev_frame: np.ndarray, curr_frame: np.ndarray,
              prev_points: Optional[np.ndarray]) -> FlowResult:
        """
        Track points from prev_frame to curr_frame.

        Args:
            prev_frame: Previous grayscale frame
            curr_frame: Current grayscale frame
            prev_points: Points to track, shape (N, 1, 2)

        Returns:
            FlowResult with one entry per input point
        """
        if prev_points is None or len(prev_points) == 0:
            return FlowResult.empty()

        if prev_frame.shape != curr_frame.shape:
            raise ValueError(
                f"frame shapes differ: {prev_frame.shape} vs {curr_frame.shape}"
            )

        prev_points = prev_points.reshape(-1, 1, 2).astype(np.float32)

        # Forward tracking: prev -> curr
        curr_points, status_fwd, _ = cv2.calcOpticalFlowPyrLK(
            prev_frame, curr_frame, prev_points, None,
            winSize=self.win_size,
            maxLevel=self.max_level,
            criteria=self.criteria
        )

        found_mask = status_fwd.ravel() == 1

        if self.fb_threshold is not None:
            # Backward tracking: curr -> prev (for validation)
            back_points, status_bwd, _ = cv2.calcOpticalFlowPyrLK(
                curr_frame, prev_frame, curr_points, None,
                winSize=self.win_size,
                maxLevel=self.max_level,
                criteria=self.criteria
            )
            fb_error = np.linalg.norm(
                prev_points.reshape(-1, 2) - back_points.reshape(-1, 2),
                axis=1
            )
            found_mask &= (status_bwd.ravel() == 1) & (fb_error < self.fb_threshold)

        tracking_quality = float(np.mean(found_mask)) if len(found_mask) > 0 else 0.0
        logger.debug("Tracked %d/%d corners", int(np.sum(found_mask)), len(found_mask))

        return FlowResult(
            prev_points=prev_points,
            curr_points=curr_points.reshape(-1, 1, 2),
            found_mask=found_mask,
            tracking_quality=tracking_quality
        )

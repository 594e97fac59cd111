"""
Shi-Tomasi corner detection.
Supplies the starting points for sparse optical flow.
"""

import logging

import cv2
import numpy as np
from typing import Optional

from config import (
    MAX_CORNERS, CORNER_QUALITY_LEVEL, CORNER_MIN_DISTANCE,
    CORNER_BLOCK_SIZE, CORNER_USE_HARRIS, CORNER_HARRIS_K
)

logger = logging.getLogger(__name__)


class CornerDetector:
    """
    Finds up to ``max_corners`` strong corners in a grayscale frame
    (blocks whose intensity changes quickly in two orthogonal directions).
    """

    def __init__(self,
                 max_corners: int = MAX_CORNERS,
                 quality_level: float = CORNER_QUALITY_LEVEL,
                 min_distance: float = CORNER_MIN_DISTANCE,
                 block_size: int = CORNER_BLOCK_SIZE,
                 use_harris: bool = CORNER_USE_HARRIS,
                 harris_k: float = CORNER_HARRIS_K):
        if max_corners <= 0:
            raise ValueError(f"max_corners must be positive, got {max_corners}")
        self.max_corners = max_corners
        self.quality_level = quality_level
        self.min_distance = min_distance
        self.block_size = block_size
        self.use_harris = use_harris
        self.harris_k = harris_k

    def detect(self, frame: np.ndarray, mask: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Detect corners.

        Args:
            frame: Grayscale input frame
            mask: Optional 8-bit region of interest

        Returns:
            Array of corner coordinates, shape (N, 1, 2) for optical flow
        """
        if frame is None or frame.size == 0:
            return np.array([], dtype=np.float32).reshape(-1, 1, 2)

        corners = cv2.goodFeaturesToTrack(
            frame,
            maxCorners=self.max_corners,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            mask=mask,
            blockSize=self.block_size,
            useHarrisDetector=self.use_harris,
            k=self.harris_k
        )

        if corners is None:
            logger.debug("No corners found")
            return np.array([], dtype=np.float32).reshape(-1, 1, 2)

        logger.debug("Detected %d corners", len(corners))
        return corners.reshape(-1, 1, 2).astype(np.float32)

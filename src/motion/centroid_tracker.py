"""
Motion centroid (COG) tracking from sparse point correspondences.

Directions between matched corners are filtered by length, grouped into
fixed-width angle buckets, and the most populous bucket is taken as the
dominant motion. The mean midpoint of that bucket becomes the COG, held
through short runs of motionless frames before it is dropped.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import (
    MIN_DIR_LENGTH, MAX_DIR_LENGTH_DIVISOR, ANGLE_RANGE,
    MIN_DIRS_IN_LIST, MAX_WITHOUT_DIRS
)
from motion.direction import Direction, Point, truncating_div
from motion.optical_flow import FlowResult

logger = logging.getLogger(__name__)


class TrackerStatus(Enum):
    """Whether a COG is currently reported."""
    INACTIVE = "inactive"
    ACTIVE = "active"


@dataclass
class FilterResult:
    """Directions that survived filtering, plus why the rest were dropped."""
    directions: List[Direction] = field(default_factory=list)
    not_found: int = 0
    too_short: int = 0
    too_long: int = 0

    @property
    def num_dirs(self) -> int:
        return len(self.directions)


@dataclass
class TrackerState:
    """
    State carried between frames.

    A new state has no centroid, a zero dropout counter, and requires corner
    re-detection on the next frame.
    """
    current_centroid: Optional[Point] = None
    frames_since_motion: int = 0
    reuse_correspondences: bool = False

    @property
    def status(self) -> TrackerStatus:
        if self.current_centroid is None:
            return TrackerStatus.INACTIVE
        return TrackerStatus.ACTIVE


@dataclass
class CentroidResult:
    """Outcome of one tracker update."""
    active: bool
    point: Optional[Point]
    reuse_next_frame: bool
    num_dirs: int = 0
    dominant_bucket: Optional[int] = None
    dominant_size: int = 0
    frames_since_motion: int = 0
    directions: Tuple[Direction, ...] = ()


def filter_correspondences(correspondences: Sequence,
                           frame_width: int,
                           min_length: float = MIN_DIR_LENGTH,
                           max_length_divisor: int = MAX_DIR_LENGTH_DIVISOR
                           ) -> FilterResult:
    """
    Turn correspondence pairs into qualifying directions.

    Args:
        correspondences: Sequence of (start, end, found) triples. Points may
            be ``Point`` instances or (x, y) pairs of floats.
        frame_width: Width of the current frame in pixels
        min_length: Directions shorter than this are jitter
        max_length_divisor: Directions longer than ``frame_width // divisor``
            are mismatches

    Returns:
        FilterResult with the surviving directions in input order
    """
    if frame_width < 0:
        raise ValueError(f"frame_width must be non-negative, got {frame_width}")

    max_length = frame_width // max_length_divisor
    result = FilterResult()

    for i, item in enumerate(correspondences):
        try:
            start, end, found = item
        except (TypeError, ValueError):
            raise ValueError(
                f"correspondence {i} is not a (start, end, found) triple: {item!r}"
            ) from None

        if not found:
            result.not_found += 1
            continue

        direction = Direction.from_corners(start, end)
        length = direction.length
        if length > max_length:
            result.too_long += 1
        elif length < min_length:
            result.too_short += 1
        else:
            result.directions.append(direction)

    return result


class AngleBuckets:
    """
    Fixed-width angular sectors covering -180..180 degrees.

    Bucket ``i`` holds directions whose angle falls in
    ``[-180 + i * range, -180 + (i + 1) * range)``; an angle of exactly 180
    wraps around to bucket 0.
    """

    def __init__(self, angle_range: int = ANGLE_RANGE):
        if angle_range <= 0 or 360 % angle_range != 0:
            raise ValueError(
                f"angle_range must be a positive divisor of 360, got {angle_range}"
            )
        self.angle_range = angle_range
        self.count = 360 // angle_range
        self._buckets: List[List[Direction]] = [[] for _ in range(self.count)]

    def index_for(self, angle: float) -> int:
        """Bucket index for an angle in degrees."""
        index = int(math.floor((angle + 180.0) / self.angle_range))
        if index >= self.count:
            index = 0
        return index

    def add(self, direction: Direction) -> int:
        index = self.index_for(direction.angle)
        self._buckets[index].append(direction)
        return index

    def clear(self) -> None:
        for bucket in self._buckets:
            bucket.clear()

    def sizes(self) -> List[int]:
        return [len(bucket) for bucket in self._buckets]

    def __getitem__(self, index: int) -> List[Direction]:
        return self._buckets[index]

    def __len__(self) -> int:
        return self.count

    def dominant(self) -> Optional[Tuple[int, List[Direction]]]:
        """
        The most populous bucket, scanning in index order.

        Only a strictly larger bucket replaces the current leader, so ties
        go to the lowest index. Returns None when every bucket is empty.
        """
        best_index = -1
        best_size = 0
        for i, bucket in enumerate(self._buckets):
            if len(bucket) > best_size:
                best_size = len(bucket)
                best_index = i

        if best_index == -1:
            return None
        return best_index, self._buckets[best_index]


def mean_midpoint(directions: Sequence[Direction]) -> Point:
    """Mean of the directions' midpoints, truncated toward zero."""
    if len(directions) == 0:
        raise ValueError("mean_midpoint needs at least one direction")

    mids = np.array([d.midpoint.as_tuple() for d in directions], dtype=np.int64)
    x_total, y_total = (int(v) for v in mids.sum(axis=0))
    n = len(directions)
    return Point(truncating_div(x_total, n), truncating_div(y_total, n))


class MotionCentroidTracker:
    """
    Per-frame COG tracker over sparse optical flow correspondences.

    Call ``update`` once per frame, from one thread only. The tracker assumes
    motion in the scene is mostly in a single direction.
    """

    def __init__(self,
                 min_dir_length: float = MIN_DIR_LENGTH,
                 angle_range: int = ANGLE_RANGE,
                 min_dirs_in_list: int = MIN_DIRS_IN_LIST,
                 max_without_dirs: int = MAX_WITHOUT_DIRS,
                 max_length_divisor: int = MAX_DIR_LENGTH_DIVISOR,
                 state: Optional[TrackerState] = None):
        if min_dir_length < 0:
            raise ValueError(f"min_dir_length must be non-negative, got {min_dir_length}")
        if min_dirs_in_list < 0:
            raise ValueError(f"min_dirs_in_list must be non-negative, got {min_dirs_in_list}")
        if max_without_dirs < 0:
            raise ValueError(f"max_without_dirs must be non-negative, got {max_without_dirs}")
        if max_length_divisor <= 0:
            raise ValueError(f"max_length_divisor must be positive, got {max_length_divisor}")

        self.min_dir_length = min_dir_length
        self.min_dirs_in_list = min_dirs_in_list
        self.max_without_dirs = max_without_dirs
        self.max_length_divisor = max_length_divisor

        self.buckets = AngleBuckets(angle_range)
        self.state = state if state is not None else TrackerState()

    def update(self, correspondences: Sequence, frame_width: int) -> CentroidResult:
        """
        Process one frame of correspondences.

        Args:
            correspondences: Sequence of (start, end, found) triples
            frame_width: Width of the frame the end points belong to

        Returns:
            CentroidResult with the COG to show (if any) and the reuse hint
        """
        filtered = filter_correspondences(
            correspondences, frame_width,
            min_length=self.min_dir_length,
            max_length_divisor=self.max_length_divisor
        )
        num_dirs = filtered.num_dirs

        self.buckets.clear()
        for direction in filtered.directions:
            self.buckets.add(direction)

        dominant_index = None
        dominant_size = 0
        candidate = None
        dominant = self.buckets.dominant()
        if dominant is not None:
            dominant_index, members = dominant
            dominant_size = len(members)
            if dominant_size > self.min_dirs_in_list:
                candidate = mean_midpoint(members)

        self._apply_hysteresis(candidate, num_dirs)
        self.state.reuse_correspondences = num_dirs > 0

        logger.debug(
            "dirs=%d not_found=%d short=%d long=%d dominant=%s(%d) cog=%s idle=%d",
            num_dirs, filtered.not_found, filtered.too_short, filtered.too_long,
            dominant_index, dominant_size, self.state.current_centroid,
            self.state.frames_since_motion
        )

        return CentroidResult(
            active=self.state.current_centroid is not None,
            point=self.state.current_centroid,
            reuse_next_frame=self.state.reuse_correspondences,
            num_dirs=num_dirs,
            dominant_bucket=dominant_index,
            dominant_size=dominant_size,
            frames_since_motion=self.state.frames_since_motion,
            directions=tuple(filtered.directions)
        )

    def update_from_flow(self, flow_result: FlowResult, frame_width: int) -> CentroidResult:
        """Run ``update`` on the point pairs of an optical flow result."""
        prev_points = np.asarray(flow_result.prev_points).reshape(-1, 2)
        curr_points = np.asarray(flow_result.curr_points).reshape(-1, 2)
        found = np.asarray(flow_result.found_mask).ravel()

        if not (len(prev_points) == len(curr_points) == len(found)):
            raise ValueError(
                "flow result arrays differ in length: "
                f"prev={len(prev_points)} curr={len(curr_points)} found={len(found)}"
            )

        correspondences = [
            ((float(p[0]), float(p[1])), (float(c[0]), float(c[1])), bool(f))
            for p, c, f in zip(prev_points, curr_points, found)
        ]
        return self.update(correspondences, frame_width)

    def _apply_hysteresis(self, candidate: Optional[Point], num_dirs: int) -> None:
        state = self.state
        was_active = state.current_centroid is not None

        if candidate is not None:
            state.current_centroid = candidate
            state.frames_since_motion = 0
            if not was_active:
                logger.info("Motion acquired at (%d, %d)", candidate.x, candidate.y)
        elif num_dirs == 0:
            state.frames_since_motion += 1
            if state.frames_since_motion > self.max_without_dirs:
                state.current_centroid = None
                state.frames_since_motion = 0
                if was_active:
                    logger.info(
                        "Motion lost after %d frames without directions",
                        self.max_without_dirs + 1
                    )

    @property
    def status(self) -> TrackerStatus:
        return self.state.status

    def reset(self) -> None:
        """Return to the initial state (no COG, re-detect next frame)."""
        self.state = TrackerState()
        self.buckets.clear()

"""
Motion vectors between corresponding corners in consecutive frames.
"""

import math
from dataclasses import dataclass

import cv2
import numpy as np

from config import ARROW_COLOR, ARROW_THICKNESS


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero (``//`` floors negatives)."""
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


@dataclass(frozen=True)
class Point:
    """Integer image coordinate."""
    x: int
    y: int

    @classmethod
    def from_float(cls, x: float, y: float) -> "Point":
        """Round a sub-pixel position half-up to the nearest pixel."""
        return cls(int(math.floor(x + 0.5)), int(math.floor(y + 0.5)))

    def as_tuple(self) -> tuple:
        return (self.x, self.y)


def _as_point(value) -> Point:
    if isinstance(value, Point):
        return value
    return Point.from_float(float(value[0]), float(value[1]))


@dataclass(frozen=True)
class Direction:
    """
    A motion vector from ``start`` to ``end``.

    Length, angle and midpoint are derived from the two points. A zero-length
    direction is valid and has angle 0.
    """
    start: Point
    end: Point

    @classmethod
    def from_corners(cls, corner_a, corner_b) -> "Direction":
        """
        Build a direction from two corner positions.

        Args:
            corner_a: Position in the previous frame, a ``Point`` or an
                (x, y) pair of floats
            corner_b: Matching position in the current frame
        """
        return cls(_as_point(corner_a), _as_point(corner_b))

    @property
    def dx(self) -> int:
        return self.end.x - self.start.x

    @property
    def dy(self) -> int:
        return self.end.y - self.start.y

    @property
    def length(self) -> float:
        return math.hypot(self.dx, self.dy)

    @property
    def angle_radians(self) -> float:
        return math.atan2(self.dy, self.dx)

    @property
    def angle(self) -> float:
        """Angle in degrees, in (-180, 180]."""
        return math.degrees(self.angle_radians)

    @property
    def midpoint(self) -> Point:
        return Point(
            truncating_div(self.start.x + self.end.x, 2),
            truncating_div(self.start.y + self.end.y, 2)
        )

    def draw_arrow(self, image: np.ndarray,
                   color: tuple = ARROW_COLOR,
                   thickness: int = ARROW_THICKNESS) -> np.ndarray:
        """
        Draw the direction as an arrow onto a BGR image (in place).

        The head is two segments a quarter of the shaft long, at 45 degrees
        either side of the shaft.
        """
        tip = self.end.as_tuple()
        cv2.line(image, self.start.as_tuple(), tip, color, thickness, cv2.LINE_AA)

        head_len = int(round(self.length / 4))
        angle = self.angle_radians
        for offset in (math.pi / 4, -math.pi / 4):
            head_end = (
                int(round(self.end.x - head_len * math.cos(angle + offset))),
                int(round(self.end.y - head_len * math.sin(angle + offset)))
            )
            cv2.line(image, head_end, tip, color, thickness, cv2.LINE_AA)

        return image

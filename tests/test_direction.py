"""
Unit tests for the Direction value type.
"""

import math

import numpy as np
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from motion.direction import Direction, Point, truncating_div


class TestPoint:
    """Tests for Point."""

    def test_immutable(self):
        p = Point(1, 2)
        with pytest.raises(Exception):
            p.x = 5

    def test_from_float_rounds_half_up(self):
        assert Point.from_float(1.5, 2.49) == Point(2, 2)
        assert Point.from_float(-0.5, -1.5) == Point(0, -1)
        assert Point.from_float(-1.6, 3.0) == Point(-2, 3)

    def test_as_tuple(self):
        assert Point(3, 4).as_tuple() == (3, 4)


class TestTruncatingDiv:

    @pytest.mark.parametrize("a,b,expected", [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (0, 5, 0),
    ])
    def test_rounds_toward_zero(self, a, b, expected):
        assert truncating_div(a, b) == expected


class TestDirection:
    """Tests for Direction derived fields."""

    def test_length_and_angle(self):
        d = Direction(Point(0, 0), Point(3, 4))

        assert d.length == pytest.approx(5.0)
        assert d.angle == pytest.approx(math.degrees(math.atan2(4, 3)))

    def test_zero_length(self):
        """Coincident points are legal: length 0, angle 0."""
        d = Direction(Point(7, 7), Point(7, 7))

        assert d.length == 0.0
        assert d.angle == 0.0
        assert d.midpoint == Point(7, 7)

    def test_angle_range_endpoints(self):
        assert Direction(Point(0, 0), Point(-5, 0)).angle == pytest.approx(180.0)
        assert Direction(Point(0, 0), Point(0, -5)).angle == pytest.approx(-90.0)
        assert Direction(Point(0, 0), Point(0, 5)).angle == pytest.approx(90.0)

    def test_midpoint_integer_average(self):
        assert Direction(Point(0, 0), Point(3, 4)).midpoint == Point(1, 2)
        assert Direction(Point(2, 2), Point(6, 10)).midpoint == Point(4, 6)

    def test_midpoint_truncates_negative(self):
        """Negative sums truncate toward zero, not down."""
        d = Direction(Point(-3, -1), Point(0, 0))
        assert d.midpoint == Point(-1, 0)

    def test_from_corners_rounds(self):
        d = Direction.from_corners((1.5, 2.49), (3.5, -0.5))

        assert d.start == Point(2, 2)
        assert d.end == Point(4, 0)

    def test_from_corners_accepts_numpy(self):
        corners = np.array([[10.2, 20.7], [30.4, 20.6]], dtype=np.float32)
        d = Direction.from_corners(corners[0], corners[1])

        assert d.start == Point(10, 21)
        assert d.end == Point(30, 21)
        assert d.angle == 0.0

    def test_from_corners_accepts_points(self):
        start = Point(3, 4)
        d = Direction.from_corners(start, (10.6, 4.2))

        assert d.start is start
        assert d.end == Point(11, 4)

    def test_equality(self):
        assert Direction(Point(0, 0), Point(1, 1)) == Direction(Point(0, 0), Point(1, 1))


class TestDrawArrow:

    def test_draws_shaft_and_head(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        d = Direction(Point(10, 50), Point(60, 50))

        out = d.draw_arrow(image, color=(255, 0, 0), thickness=2)

        assert out is image
        # Shaft
        assert image[50, 30, 0] > 0
        # Upper head segment ends near (52, 42)
        assert image[42, 52, 0] > 0
        # Far corner untouched
        assert image[95, 95].sum() == 0

    def test_zero_length_does_not_fail(self):
        image = np.zeros((20, 20, 3), dtype=np.uint8)
        Direction(Point(5, 5), Point(5, 5)).draw_arrow(image)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

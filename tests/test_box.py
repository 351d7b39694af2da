"""Tests for bounding boxes."""

import pytest

from coordkit import Box, InvalidArgumentError, Position, PositionSeries


class TestBox:
    def test_box_basic(self):
        box = Box(0, 1, 4, 3)
        assert box.width == 4
        assert box.height == 2
        assert not box.is_3d
        assert list(box) == [0, 1, 4, 3]

    def test_point_box_is_valid(self):
        box = Box(2, 2, 2, 2)
        assert box.width == 0
        assert box.center == Position(2, 2)

    def test_min_greater_than_max(self):
        with pytest.raises(InvalidArgumentError, match="greater than max"):
            Box(5, 0, 1, 1)

    def test_z_must_be_paired(self):
        with pytest.raises(InvalidArgumentError, match="min_z and max_z"):
            Box(0, 0, 1, 1, min_z=0.0)

    def test_min_max_center(self):
        box = Box(0, 0, 4, 2, min_z=10, max_z=20)
        assert box.is_3d
        assert box.min == Position(0, 0, 10)
        assert box.max == Position(4, 2, 20)
        assert box.center == Position(2, 1, 15)

    def test_corners(self):
        assert Box(0, 0, 1, 2).corners_2d == [
            Position(0, 0),
            Position(1, 0),
            Position(1, 2),
            Position(0, 2),
        ]

    def test_from_positions(self):
        box = Box.from_positions([Position(1, 5, m=2), Position(-1, 3, m=7)])
        assert box == Box(-1, 3, 1, 5, min_m=2, max_m=7)
        assert Box.from_positions([]) is None

    def test_from_series_with_m(self):
        series = PositionSeries.from_coords([(0, 0, 1, 9), (2, 3, 4, 5)])
        box = Box.from_series(series)
        assert (box.min_z, box.max_z) == (1, 4)
        assert (box.min_m, box.max_m) == (5, 9)

    def test_merge(self):
        merged = Box(0, 0, 1, 1).merge(Box(-1, 0.5, 0.5, 3))
        assert merged == Box(-1, 0, 1, 3)

    def test_merge_drops_z_unless_both(self):
        merged = Box(0, 0, 1, 1, 0, 1).merge(Box(0, 0, 2, 2))
        assert merged.min_z is None

    def test_intersects(self):
        box = Box(0, 0, 2, 2)
        assert box.intersects_2d(Box(1, 1, 3, 3))
        assert box.intersects_2d(Box(2, 2, 3, 3))
        assert not box.intersects_2d(Box(2.1, 0, 3, 1))
        assert box.intersects_point_2d(Position(2, 0))
        assert not box.intersects_point_2d(Position(-0.1, 1))

    def test_equals(self):
        box = Box(0, 0, 1, 1, 0, 5)
        assert box.equals_2d(Box(0, 0, 1.05, 1), tolerance=0.1)
        assert not box.equals_2d(Box(0, 0, 1.05, 1))
        assert box.equals_3d(Box(0, 0, 1, 1, 0, 5.5), tolerance_vert=1.0)
        assert not box.equals_3d(Box(0, 0, 1, 1))

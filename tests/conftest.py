"""Shared fixtures."""

from collections.abc import Callable

import pytest

from coordkit import (
    CoordinateKind,
    Geometry,
    GeometryBuilder,
    GeometryCollector,
    GeometryKind,
    Position,
    PositionSeries,
)

LINE = [(30.0, 10.0), (10.0, 30.0), (40.0, 40.5)]
SQUARE = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0), (0.0, 0.0)]
HOLE = [(1.0, 1.0), (2.0, 1.0), (2.0, 2.0), (1.0, 1.0)]
SHIFTED = [(10.0, 0.0), (12.5, 0.0), (12.5, 2.0), (10.0, 0.0)]


def _positions(coord_kind: CoordinateKind, xy: list) -> list[Position]:
    """Positions over xy with z and m values filled in as coord_kind needs"""
    result = []
    for i, (x, y) in enumerate(xy):
        values = [x, y]
        if coord_kind.has_z:
            values.append(100.0 + i)
        if coord_kind.has_m:
            values.append(i / 4)
        result.append(Position.from_values(values, coord_kind))
    return result


def _series(coord_kind: CoordinateKind, xy: list) -> PositionSeries:
    return PositionSeries.from_positions(_positions(coord_kind, xy), coord_kind)


def build_sample(kind: GeometryKind, coord_kind: CoordinateKind) -> Geometry:
    """A non-empty geometry of the given kinds, built through the builder API"""
    collector = GeometryCollector()
    if kind is GeometryKind.POINT:
        collector.point(_positions(coord_kind, LINE)[0])
    elif kind is GeometryKind.LINESTRING:
        collector.line_string(_series(coord_kind, LINE))
    elif kind is GeometryKind.POLYGON:
        collector.polygon([_series(coord_kind, SQUARE), _series(coord_kind, HOLE)])
    elif kind is GeometryKind.MULTIPOINT:
        collector.multi_point(_positions(coord_kind, LINE))
    elif kind is GeometryKind.MULTILINESTRING:
        collector.multi_line_string(
            [_series(coord_kind, LINE), _series(coord_kind, SQUARE)]
        )
    elif kind is GeometryKind.MULTIPOLYGON:
        collector.multi_polygon(
            [
                [_series(coord_kind, SQUARE), _series(coord_kind, HOLE)],
                [_series(coord_kind, SHIFTED)],
            ]
        )
    else:

        def emit(child: GeometryBuilder) -> None:
            child.point(_positions(coord_kind, LINE)[1])
            child.line_string(_series(coord_kind, LINE))
            child.polygon([_series(coord_kind, SHIFTED)])

        collector.geometry_collection(emit)
    return collector.single()


@pytest.fixture
def sample_geometry() -> Callable[[GeometryKind, CoordinateKind], Geometry]:
    return build_sample

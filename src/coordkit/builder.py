"""
The geometry builder interface.

Producers of geometry data (the WKT and WKB decoders, Geometry.build) call the
methods of a GeometryBuilder; consumers (GeometryCollector, the WKT and WKB
encoders, the shapely converter) implement them.
"""

from collections.abc import Callable, Sequence
from typing import Protocol

from .coords import CoordinateKind, GeometryKind
from .errors import FormatError
from .geometry import (
    Geometry,
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    empty_geometry,
)
from .position import Position, PositionSeries


class GeometryBuilder(Protocol):
    """
    Receives geometries as a sequence of callbacks.

    Members of multi geometries may be empty: None in multi_point, an empty
    series in multi_line_string and an empty ring list in multi_polygon.
    """

    def point(self, position: Position) -> None: ...

    def line_string(self, series: PositionSeries) -> None: ...

    def polygon(self, rings: Sequence[PositionSeries]) -> None: ...

    def multi_point(self, positions: Sequence[Position | None]) -> None: ...

    def multi_line_string(self, series_list: Sequence[PositionSeries]) -> None: ...

    def multi_polygon(
        self, ring_lists: Sequence[Sequence[PositionSeries]]
    ) -> None: ...

    def geometry_collection(
        self, emit: Callable[["GeometryBuilder"], None]
    ) -> None:
        """Build a collection; emit is called with a builder for the members"""
        ...

    def empty_geometry(
        self, kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
    ) -> None: ...


class GeometryCollector:
    """
    A GeometryBuilder that collects Geometry objects.

    Example:
        >>> collector = GeometryCollector()
        >>> collector.point(Position(1, 2))
        >>> collector.geometries
        [Point(position=Position(1.0, 2.0))]
    """

    def __init__(self):
        self.geometries: list[Geometry] = []

    def point(self, position: Position) -> None:
        self.geometries.append(Point(position))

    def line_string(self, series: PositionSeries) -> None:
        self.geometries.append(LineString(series))

    def polygon(self, rings: Sequence[PositionSeries]) -> None:
        self.geometries.append(Polygon(tuple(rings)))

    def multi_point(self, positions: Sequence[Position | None]) -> None:
        self.geometries.append(MultiPoint(tuple(Point(p) for p in positions)))

    def multi_line_string(self, series_list: Sequence[PositionSeries]) -> None:
        self.geometries.append(
            MultiLineString(tuple(LineString(s) for s in series_list))
        )

    def multi_polygon(self, ring_lists: Sequence[Sequence[PositionSeries]]) -> None:
        self.geometries.append(
            MultiPolygon(tuple(Polygon(tuple(rings)) for rings in ring_lists))
        )

    def geometry_collection(self, emit: Callable[[GeometryBuilder], None]) -> None:
        members = GeometryCollector()
        emit(members)
        self.geometries.append(GeometryCollection(tuple(members.geometries)))

    def empty_geometry(
        self, kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
    ) -> None:
        self.geometries.append(empty_geometry(kind, coord_kind))

    def single(self) -> Geometry:
        """
        The one geometry collected.

        Raises:
            FormatError: If no geometry or more than one was collected
        """
        if len(self.geometries) != 1:
            raise FormatError(
                f"Expected exactly one geometry, got {len(self.geometries)}"
            )
        return self.geometries[0]


def series_kind(series_list: Sequence[PositionSeries]) -> CoordinateKind:
    """
    Coordinate kind of a multi geometry given as series.

    The kind of the first non-empty series, else of the first series, else XY.
    """
    for series in series_list:
        if not series.is_empty:
            return series.kind
    return series_list[0].kind if series_list else CoordinateKind.XY

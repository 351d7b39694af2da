"""
Conversion between coordkit geometries and Shapely geometries, and
reprojection of geometries with pyproj.

Shapely has no measure (M) support, so m values are dropped when converting
to Shapely.
"""

from collections.abc import Callable, Sequence

from pyproj import CRS
from shapely.geometry import (
    GeometryCollection as ShapelyGeometryCollection,
)
from shapely.geometry import (
    LineString as ShapelyLineString,
)
from shapely.geometry import (
    MultiLineString as ShapelyMultiLineString,
)
from shapely.geometry import (
    MultiPoint as ShapelyMultiPoint,
)
from shapely.geometry import (
    MultiPolygon as ShapelyMultiPolygon,
)
from shapely.geometry import (
    Point as ShapelyPoint,
)
from shapely.geometry import (
    Polygon as ShapelyPolygon,
)
from shapely.geometry.base import BaseGeometry

from .builder import GeometryBuilder
from .coords import CoordinateKind, GeometryKind
from .errors import InvalidArgumentError
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
from .projections import ProjProjection

CoordTuple = tuple[float, float] | tuple[float, float, float]

_SHAPELY_EMPTY: dict[GeometryKind, Callable[[], BaseGeometry]] = {
    GeometryKind.POINT: ShapelyPoint,
    GeometryKind.LINESTRING: ShapelyLineString,
    GeometryKind.POLYGON: ShapelyPolygon,
    GeometryKind.MULTIPOINT: ShapelyMultiPoint,
    GeometryKind.MULTILINESTRING: ShapelyMultiLineString,
    GeometryKind.MULTIPOLYGON: ShapelyMultiPolygon,
    GeometryKind.GEOMETRYCOLLECTION: ShapelyGeometryCollection,
}


def _position_coords(position: Position) -> CoordTuple:
    if position.is_3d:
        return (position.x, position.y, position.z)
    return (position.x, position.y)


def _series_coords(series: PositionSeries) -> list[CoordTuple]:
    return [_position_coords(p) for p in series]


class ShapelyBuilder:
    """
    A GeometryBuilder producing Shapely geometries.

    Example:
        >>> builder = ShapelyBuilder()
        >>> decode_wkt("POINT(1 2)").build(builder)
        >>> builder.geometries[0].wkt
        'POINT (1 2)'
    """

    def __init__(self):
        self.geometries: list[BaseGeometry] = []

    def _polygon(self, rings: Sequence[PositionSeries]) -> ShapelyPolygon:
        shell = _series_coords(rings[0])
        holes = [_series_coords(ring) for ring in rings[1:]]
        return ShapelyPolygon(shell, holes if holes else None)

    def point(self, position: Position) -> None:
        self.geometries.append(ShapelyPoint(_position_coords(position)))

    def line_string(self, series: PositionSeries) -> None:
        self.geometries.append(ShapelyLineString(_series_coords(series)))

    def polygon(self, rings: Sequence[PositionSeries]) -> None:
        self.geometries.append(self._polygon(rings))

    def multi_point(self, positions: Sequence[Position | None]) -> None:
        # shapely multi geometries cannot hold empty members
        self.geometries.append(
            ShapelyMultiPoint([_position_coords(p) for p in positions if p is not None])
        )

    def multi_line_string(self, series_list: Sequence[PositionSeries]) -> None:
        self.geometries.append(
            ShapelyMultiLineString(
                [_series_coords(s) for s in series_list if not s.is_empty]
            )
        )

    def multi_polygon(self, ring_lists: Sequence[Sequence[PositionSeries]]) -> None:
        self.geometries.append(
            ShapelyMultiPolygon(
                [
                    self._polygon(rings)
                    for rings in ring_lists
                    if rings and not rings[0].is_empty
                ]
            )
        )

    def geometry_collection(self, emit: Callable[[GeometryBuilder], None]) -> None:
        members = ShapelyBuilder()
        emit(members)
        self.geometries.append(ShapelyGeometryCollection(members.geometries))

    def empty_geometry(
        self, kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
    ) -> None:
        self.geometries.append(_SHAPELY_EMPTY[kind]())


def to_shapely(geometry: Geometry) -> BaseGeometry:
    """
    Convert a geometry to a Shapely geometry.

    Args:
        geometry: Geometry object from this library

    Returns:
        Corresponding Shapely geometry object (m values dropped)
    """
    builder = ShapelyBuilder()
    geometry.build(builder)
    return builder.geometries[0]


def _polygon_from_shapely(geom: ShapelyPolygon) -> Polygon:
    if geom.is_empty:
        return Polygon()
    rings = [geom.exterior, *geom.interiors]
    return Polygon(tuple(PositionSeries.from_coords(ring.coords) for ring in rings))


def from_shapely(geom: BaseGeometry) -> Geometry:
    """
    Convert a Shapely geometry to a geometry of this library.

    Args:
        geom: Any Shapely geometry

    Returns:
        The equivalent Point, LineString, Polygon, multi geometry or
        GeometryCollection

    Raises:
        InvalidArgumentError: If the Shapely geometry type is not supported
            (e.g. LinearRing)
    """
    geom_type = geom.geom_type
    if geom_type == "Point":
        if geom.is_empty:
            return empty_geometry(GeometryKind.POINT)
        return Point(Position(*geom.coords[0]))
    if geom_type == "LineString":
        return LineString(PositionSeries.from_coords(geom.coords))
    if geom_type == "Polygon":
        return _polygon_from_shapely(geom)
    if geom_type == "MultiPoint":
        return MultiPoint(tuple(Point(Position(*p.coords[0])) for p in geom.geoms))
    if geom_type == "MultiLineString":
        return MultiLineString(
            tuple(
                LineString(PositionSeries.from_coords(ls.coords)) for ls in geom.geoms
            )
        )
    if geom_type == "MultiPolygon":
        return MultiPolygon(tuple(_polygon_from_shapely(p) for p in geom.geoms))
    if geom_type == "GeometryCollection":
        return GeometryCollection(tuple(from_shapely(g) for g in geom.geoms))
    raise InvalidArgumentError(f"Unsupported Shapely geometry type: {geom_type}")


def reproject_geometry(
    geometry: Geometry,
    source_crs: str | int | CRS,
    target_crs: str | int | CRS,
) -> Geometry:
    """
    Reproject a geometry between two CRSs with pyproj.

    Args:
        geometry: Geometry to reproject
        source_crs: Source coordinate reference system (EPSG code, WKT, or CRS)
        target_crs: Target coordinate reference system

    Returns:
        A new geometry of the same type with transformed coordinates

    Example:
        >>> merc = reproject_geometry(decode_wkt("POINT(10 60)"), 4326, 3857)
    """
    return geometry.project(ProjProjection.from_crs(source_crs, target_crs))

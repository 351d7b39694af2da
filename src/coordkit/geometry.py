"""
Geometry classes for the seven simple feature geometry types.

Geometries are immutable dataclasses over Position and PositionSeries values.
Each can describe itself to a GeometryBuilder (build), which is how the WKT
encoder and the shapely converter consume them.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from . import areal
from .box import Box
from .coords import CoordinateKind, GeometryKind
from .position import Position, PositionSeries

if TYPE_CHECKING:
    from .builder import GeometryBuilder
    from .projections import Projection


def _merge_bounds(boxes: Iterator["Box | None"]) -> Box | None:
    result = None
    for box in boxes:
        if box is None:
            continue
        result = box if result is None else result.merge(box)
    return result


def _members_kind(
    members: "tuple[Geometry, ...]", empty_kind: CoordinateKind
) -> CoordinateKind:
    """Kind of the first non-empty member, else of the first member"""
    for member in members:
        if not member.is_empty:
            return member.coord_kind
    return members[0].coord_kind if members else empty_kind


class Geometry(ABC):
    """Base class of all geometries"""

    kind: GeometryKind

    @property
    @abstractmethod
    def coord_kind(self) -> CoordinateKind:
        """Coordinate kind of the positions (empty_kind for empty geometries)"""

    @property
    @abstractmethod
    def is_empty(self) -> bool: ...

    @abstractmethod
    def calculate_bounds(self) -> Box | None:
        """Compute bounds from the positions (None if empty)"""

    @abstractmethod
    def build(self, builder: "GeometryBuilder") -> None:
        """Describe this geometry to a builder"""

    @abstractmethod
    def project(self, projection: "Projection") -> "Geometry":
        """A geometry of the same type with all positions projected"""

    @abstractmethod
    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        """Add the centroid of this geometry, weighted by area or length"""

    @cached_property
    def bounds(self) -> Box | None:
        """Bounds computed on first access and cached"""
        return self.calculate_bounds()

    def centroid(self) -> Position | None:
        """
        Centroid of this geometry, or None if it has no positions.

        Areal parts outweigh linear parts, which outweigh points.
        """
        composite = areal.CompositeCentroid()
        self.add_centroid(composite)
        return composite.centroid()

    def to_wkt(self, decimals: int | None = None) -> str:
        from .wkt import encode_wkt

        return encode_wkt(self, decimals=decimals)

    @property
    def wkt(self) -> str:
        return self.to_wkt()


@dataclass(frozen=True)
class Point(Geometry):
    """
    A single position, or an empty point if position is None.

    empty_kind is the coordinate kind reported (and written as the WKT
    marker, e.g. POINT Z EMPTY) while the point is empty.
    """

    position: Position | None = None
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.POINT

    @property
    def coord_kind(self) -> CoordinateKind:
        return self.position.kind if self.position is not None else self.empty_kind

    @property
    def is_empty(self) -> bool:
        return self.position is None

    def calculate_bounds(self) -> Box | None:
        if self.position is None:
            return None
        return Box.from_positions([self.position])

    def build(self, builder: "GeometryBuilder") -> None:
        if self.position is None:
            builder.empty_geometry(self.kind, self.empty_kind)
        else:
            builder.point(self.position)

    def project(self, projection: "Projection") -> "Point":
        if self.position is None:
            return self
        return Point(projection.project(self.position))

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        composite.add(self.position)


@dataclass(frozen=True)
class LineString(Geometry):
    """A line string over a series of positions"""

    series: PositionSeries = field(default_factory=PositionSeries)

    kind = GeometryKind.LINESTRING

    @property
    def coord_kind(self) -> CoordinateKind:
        return self.series.kind

    @property
    def is_empty(self) -> bool:
        return self.series.is_empty

    @property
    def length(self) -> float:
        """2D length of the line"""
        return areal.line_length(self.series)

    def calculate_bounds(self) -> Box | None:
        return self.series.bounds()

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.series.kind)
        else:
            builder.line_string(self.series)

    def project(self, projection: "Projection") -> "LineString":
        return LineString(self.series.project(projection))

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        composite.add(areal.line_centroid(self.series), length=self.length)

    def __len__(self) -> int:
        return len(self.series)


@dataclass(frozen=True)
class Polygon(Geometry):
    """
    A polygon with an exterior ring and optional holes.

    rings[0] is the exterior ring, rings[1:] are holes. Rings are kept as
    given; a ring whose last position differs from the first is treated as
    closed by the areal operations.
    """

    rings: tuple[PositionSeries, ...] = ()
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.POLYGON

    def __post_init__(self):
        object.__setattr__(self, "rings", tuple(self.rings))

    @property
    def exterior(self) -> PositionSeries | None:
        """The exterior ring (first ring)"""
        return self.rings[0] if self.rings else None

    @property
    def interiors(self) -> tuple[PositionSeries, ...]:
        """Interior rings (holes)"""
        return self.rings[1:]

    @property
    def coord_kind(self) -> CoordinateKind:
        return self.rings[0].kind if self.rings else self.empty_kind

    @property
    def is_empty(self) -> bool:
        return not self.rings or self.rings[0].is_empty

    @property
    def area(self) -> float:
        """2D area with holes subtracted"""
        if self.is_empty:
            return 0.0
        return areal.polygon_centroid(self.rings)[1]

    def calculate_bounds(self) -> Box | None:
        if self.is_empty:
            return None
        return self.rings[0].bounds()

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.coord_kind)
        else:
            builder.polygon(self.rings)

    def project(self, projection: "Projection") -> "Polygon":
        return Polygon(
            tuple(ring.project(projection) for ring in self.rings), self.empty_kind
        )

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        position, area = areal.polygon_centroid(self.rings)
        if area > 0.0:
            composite.add(position, area=area)
        elif not self.is_empty:
            # degenerate exterior, weighted as a closed line
            composite.add(position, length=areal.line_length(self.rings[0], True))

    def contains_point(self, point: Position) -> bool:
        """True if point is inside the exterior ring and outside all holes"""
        if self.is_empty:
            return False
        return areal.is_point_in_polygon(point, self.rings)

    def polylabel(self, precision: float | None = None) -> areal.DistancedPosition:
        """Pole of inaccessibility (see coordkit.areal.polylabel)"""
        return areal.polylabel(self.rings, precision)


@dataclass(frozen=True)
class MultiPoint(Geometry):
    """
    A collection of points.

    Members may be empty points; they are kept in place and written as
    EMPTY by the WKT encoder.
    """

    points: tuple[Point, ...] = ()
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.MULTIPOINT

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(self.points))

    @property
    def positions(self) -> list[Position]:
        """Positions of the non-empty points"""
        return [p.position for p in self.points if p.position is not None]

    @property
    def coord_kind(self) -> CoordinateKind:
        return _members_kind(self.points, self.empty_kind)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def calculate_bounds(self) -> Box | None:
        return Box.from_positions(self.positions)

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.empty_kind)
        else:
            builder.multi_point([p.position for p in self.points])

    def project(self, projection: "Projection") -> "MultiPoint":
        return MultiPoint(
            tuple(p.project(projection) for p in self.points), self.empty_kind
        )

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        for point in self.points:
            point.add_centroid(composite)

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class MultiLineString(Geometry):
    line_strings: tuple[LineString, ...] = ()
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.MULTILINESTRING

    def __post_init__(self):
        object.__setattr__(self, "line_strings", tuple(self.line_strings))

    @property
    def coord_kind(self) -> CoordinateKind:
        return _members_kind(self.line_strings, self.empty_kind)

    @property
    def is_empty(self) -> bool:
        return not self.line_strings

    def calculate_bounds(self) -> Box | None:
        return _merge_bounds(ls.calculate_bounds() for ls in self.line_strings)

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.empty_kind)
        else:
            builder.multi_line_string([ls.series for ls in self.line_strings])

    def project(self, projection: "Projection") -> "MultiLineString":
        return MultiLineString(
            tuple(ls.project(projection) for ls in self.line_strings),
            self.empty_kind,
        )

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        for line_string in self.line_strings:
            line_string.add_centroid(composite)

    def __len__(self) -> int:
        return len(self.line_strings)


@dataclass(frozen=True)
class MultiPolygon(Geometry):
    polygons: tuple[Polygon, ...] = ()
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.MULTIPOLYGON

    def __post_init__(self):
        object.__setattr__(self, "polygons", tuple(self.polygons))

    @property
    def coord_kind(self) -> CoordinateKind:
        return _members_kind(self.polygons, self.empty_kind)

    @property
    def is_empty(self) -> bool:
        return not self.polygons

    @property
    def area(self) -> float:
        return sum(polygon.area for polygon in self.polygons)

    def calculate_bounds(self) -> Box | None:
        return _merge_bounds(p.calculate_bounds() for p in self.polygons)

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.empty_kind)
        else:
            builder.multi_polygon([p.rings for p in self.polygons])

    def project(self, projection: "Projection") -> "MultiPolygon":
        return MultiPolygon(
            tuple(p.project(projection) for p in self.polygons), self.empty_kind
        )

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        for polygon in self.polygons:
            polygon.add_centroid(composite)

    def contains_point(self, point: Position) -> bool:
        return any(polygon.contains_point(point) for polygon in self.polygons)

    def __len__(self) -> int:
        return len(self.polygons)


@dataclass(frozen=True)
class GeometryCollection(Geometry):
    geometries: tuple[Geometry, ...] = ()
    empty_kind: CoordinateKind = field(default=CoordinateKind.XY, repr=False)

    kind = GeometryKind.GEOMETRYCOLLECTION

    def __post_init__(self):
        object.__setattr__(self, "geometries", tuple(self.geometries))

    @property
    def coord_kind(self) -> CoordinateKind:
        return _members_kind(self.geometries, self.empty_kind)

    @property
    def is_empty(self) -> bool:
        return not self.geometries

    def calculate_bounds(self) -> Box | None:
        return _merge_bounds(g.calculate_bounds() for g in self.geometries)

    def build(self, builder: "GeometryBuilder") -> None:
        if self.is_empty:
            builder.empty_geometry(self.kind, self.empty_kind)
            return

        def emit(child: "GeometryBuilder") -> None:
            for geometry in self.geometries:
                geometry.build(child)

        builder.geometry_collection(emit)

    def project(self, projection: "Projection") -> "GeometryCollection":
        return GeometryCollection(
            tuple(g.project(projection) for g in self.geometries), self.empty_kind
        )

    def add_centroid(self, composite: areal.CompositeCentroid) -> None:
        for geometry in self.geometries:
            geometry.add_centroid(composite)

    def __iter__(self) -> Iterator[Geometry]:
        return iter(self.geometries)

    def __len__(self) -> int:
        return len(self.geometries)


def empty_geometry(
    kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
) -> Geometry:
    """An empty geometry of the given kind carrying coord_kind"""
    if kind is GeometryKind.LINESTRING:
        return LineString(PositionSeries((), coord_kind))
    return _EMPTY_TYPES[kind](empty_kind=coord_kind)


_EMPTY_TYPES: dict[GeometryKind, type[Geometry]] = {
    GeometryKind.POINT: Point,
    GeometryKind.POLYGON: Polygon,
    GeometryKind.MULTIPOINT: MultiPoint,
    GeometryKind.MULTILINESTRING: MultiLineString,
    GeometryKind.MULTIPOLYGON: MultiPolygon,
    GeometryKind.GEOMETRYCOLLECTION: GeometryCollection,
}

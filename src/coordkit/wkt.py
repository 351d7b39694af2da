"""
Well-known text (WKT) decoding and encoding.

The decoder reads the seven simple feature types with optional Z, M and ZM
markers and reports them to a GeometryBuilder. The encoder is a
GeometryBuilder that writes canonical WKT:

    POINT(1 2)
    POINT Z(1 2 3)
    MULTIPOINT(1 2,3 4)
    POLYGON((0 0,4 0,4 4,0 0))
    GEOMETRYCOLLECTION(POINT(1 2),LINESTRING(0 0,1 1))
    POINT EMPTY
    LINESTRING ZM EMPTY
    MULTILINESTRING((0 0,1 1),EMPTY)

Coordinates are always written x (longitude) first, whatever the axis order
of the coordinate reference system.
"""

import re
from array import array
from collections.abc import Callable, Sequence

from .builder import GeometryBuilder, GeometryCollector, series_kind
from .config import DEFAULTS
from .coords import CoordinateKind, GeometryKind
from .errors import FormatError
from .geometry import Geometry
from .position import Position, PositionSeries

EMPTY = "EMPTY"

# longest first so that MULTIPOINT is not read as POINT
_KEYWORDS = sorted(
    GeometryKind, key=lambda kind: len(kind.wkt_keyword), reverse=True
)

_TUPLE_DELIMITERS = re.compile(r"[(),]")


def _split_top_level(text: str) -> list[str]:
    """Split text at the commas outside parentheses"""
    parts = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise FormatError("Unmatched parenthesis", text)
        elif ch == "," and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    if depth != 0:
        raise FormatError("Unmatched parenthesis", text)
    parts.append(text[start:].strip())
    return parts


def _unwrap(text: str) -> str:
    """Content of a parenthesized member such as "(1 2,3 4)" """
    if len(text) < 2 or text[0] != "(" or text[-1] != ")":
        raise FormatError("Invalid wkt", text)
    return text[1:-1]


def _matching_paren(text: str, start: int) -> int:
    """Index of the parenthesis closing the one at start"""
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    raise FormatError("Unmatched parenthesis", text)


def _parse_header(text: str) -> tuple[GeometryKind, str | None, str | None]:
    """
    Split WKT into its geometry type, dimensionality marker and body.

    The body is the text inside the outermost parentheses, or None for
    "TYPE EMPTY". Markers may be written joined or apart ("ZM", "Z M").
    """
    for kind in _KEYWORDS:
        if text.startswith(kind.wkt_keyword):
            break
    else:
        raise FormatError("Invalid wkt", text)

    rest = text[len(kind.wkt_keyword) :].lstrip()
    marker = ""
    for letter in ("Z", "M"):
        if rest.startswith(letter):
            marker += letter
            rest = rest[1:].lstrip()

    if rest == "EMPTY":
        return kind, marker or None, None
    if not rest.startswith("("):
        raise FormatError("Invalid wkt", text)
    end = _matching_paren(rest, 0)
    if end != len(rest) - 1:
        raise FormatError("Unexpected trailing text", rest[end + 1 :])
    return kind, marker or None, rest[1:end]


def _first_tuple(body: str) -> str | None:
    """Text of the first coordinate tuple, skipping EMPTY members"""
    for chunk in _TUPLE_DELIMITERS.split(body):
        chunk = chunk.strip()
        if chunk and chunk != EMPTY:
            return chunk
    return None


def _coord_kind(
    kind: GeometryKind, marker: str | None, body: str | None, geographic: bool
) -> CoordinateKind:
    if marker is not None:
        return CoordinateKind.select("Z" in marker, "M" in marker, geographic)
    first = None
    if body is not None and kind is not GeometryKind.GEOMETRYCOLLECTION:
        first = _first_tuple(body)
    if first is None:
        return CoordinateKind.select(geographic=geographic)
    # no marker: 3 values read as XYZ and 4 as XYZM
    size = len(first.split())
    if size not in (2, 3, 4):
        raise FormatError("Invalid coords", first)
    return CoordinateKind.from_dimension(size, geographic=geographic)


def parse_coord_kind(text: str, geographic: bool = False) -> CoordinateKind:
    """
    Coordinate kind of a WKT geometry without decoding its coordinates.

    For a geometry collection the kind of its first member is returned.

    Raises:
        FormatError: If the geometry type or dimensionality cannot be read
    """
    data = _strip_srid(text.strip().upper())
    kind, marker, body = _parse_header(data)
    if kind is GeometryKind.GEOMETRYCOLLECTION and marker is None:
        if body is not None and body.strip():
            return parse_coord_kind(_split_top_level(body)[0], geographic)
    return _coord_kind(kind, marker, body, geographic)


def _strip_srid(data: str) -> str:
    """Drop an EWKT "SRID=4326;" prefix"""
    if data.startswith("SRID="):
        semicolon = data.find(";")
        if semicolon < 0:
            raise FormatError("Invalid wkt", data)
        return data[semicolon + 1 :].lstrip()
    return data


class WktDecoder:
    """
    Decodes WKT text into calls on a GeometryBuilder.

    Keywords are case-insensitive and an EWKT "SRID=n;" prefix is ignored.
    Without a Z/M/ZM marker the dimensionality follows the number of values
    in the first coordinate (3 values read as XYZ, 4 as XYZM).

    Args:
        builder: Receives the decoded geometry
        geographic: Produce geographic coordinate kinds (LONLAT...)

    Example:
        >>> collector = GeometryCollector()
        >>> WktDecoder(collector).decode("POINT Z(10.1 20.2 30.3)")
        >>> collector.single().position
        Position(10.1, 20.2, z=30.3)
    """

    def __init__(self, builder: GeometryBuilder, geographic: bool = False):
        self.builder = builder
        self.geographic = geographic

    def decode(self, text: str) -> None:
        """
        Decode one geometry.

        Raises:
            FormatError: On malformed text (unknown type, unmatched
                parenthesis, wrong number of coordinate values, trailing
                text); the offending text is available as error.text
        """
        data = _strip_srid(text.strip().upper())
        self._decode(data, self.builder)

    def _decode(self, text: str, builder: GeometryBuilder) -> None:
        kind, marker, body = _parse_header(text)
        coord_kind = _coord_kind(kind, marker, body, self.geographic)
        if body is None:
            builder.empty_geometry(kind, coord_kind)
            return

        if kind is GeometryKind.POINT:
            builder.point(self._position(body, coord_kind))
        elif kind is GeometryKind.LINESTRING:
            builder.line_string(self._series(body, coord_kind))
        elif kind is GeometryKind.POLYGON:
            builder.polygon(self._rings(body, coord_kind))
        elif kind is GeometryKind.MULTIPOINT:
            builder.multi_point(
                [
                    self._point_member(part, coord_kind)
                    for part in _split_top_level(body)
                ]
            )
        elif kind is GeometryKind.MULTILINESTRING:
            builder.multi_line_string(self._rings(body, coord_kind))
        elif kind is GeometryKind.MULTIPOLYGON:
            builder.multi_polygon(
                [
                    [] if part == EMPTY else self._rings(_unwrap(part), coord_kind)
                    for part in _split_top_level(body)
                ]
            )
        else:
            members = _split_top_level(body)

            def emit(child: GeometryBuilder) -> None:
                for member in members:
                    self._decode(member, child)

            builder.geometry_collection(emit)

    def _series(self, text: str, kind: CoordinateKind) -> PositionSeries:
        data = array("d")
        for item in text.split(","):
            values = item.split()
            if len(values) != kind.dimension:
                raise FormatError("Invalid coords", item.strip())
            try:
                data.extend(float(v) for v in values)
            except ValueError:
                raise FormatError("Invalid coords", item.strip()) from None
        return PositionSeries(data, kind)

    def _position(self, text: str, kind: CoordinateKind) -> Position:
        series = self._series(text, kind)
        if len(series) != 1:
            raise FormatError("Invalid coords", text.strip())
        return series[0]

    def _point_member(self, part: str, kind: CoordinateKind) -> Position | None:
        # members are written either as "1 2" or "(1 2)"
        if part == EMPTY:
            return None
        return self._position(_unwrap(part) if part.startswith("(") else part, kind)

    def _rings(self, text: str, kind: CoordinateKind) -> list[PositionSeries]:
        return [
            self._linear_member(part, kind) for part in _split_top_level(text)
        ]

    def _linear_member(self, part: str, kind: CoordinateKind) -> PositionSeries:
        if part == EMPTY:
            return PositionSeries((), kind)
        return self._series(_unwrap(part), kind)


class WktEncoder:
    """
    A GeometryBuilder writing canonical WKT text.

    Empty members of multi geometries are written as EMPTY, for example
    MULTIPOINT(1 2,EMPTY).

    Args:
        decimals: Round coordinates to this many decimals (trailing zeros
            are dropped); None writes full precision

    Example:
        >>> encoder = WktEncoder()
        >>> encoder.point(Position(10.123, 20.25))
        >>> encoder.text
        'POINT(10.123 20.25)'
    """

    def __init__(self, decimals: int | None = None):
        self.decimals = decimals
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        """All geometries written so far, comma separated"""
        return ",".join(self._parts)

    def __str__(self) -> str:
        return self.text

    def _keyword(self, kind: GeometryKind, coord_kind: CoordinateKind) -> str:
        suffix = coord_kind.wkt_suffix
        return f"{kind.wkt_keyword} {suffix}" if suffix else kind.wkt_keyword

    def _coords(self, series: PositionSeries) -> str:
        return series.to_text(" ", ",", self.decimals)

    def _rings(self, rings: Sequence[PositionSeries]) -> str:
        return ",".join(
            EMPTY if ring.is_empty else f"({self._coords(ring)})" for ring in rings
        )

    def _polygon_body(self, rings: Sequence[PositionSeries]) -> str:
        if not rings or rings[0].is_empty:
            return EMPTY
        return f"({self._rings(rings)})"

    def _write(
        self, kind: GeometryKind, coord_kind: CoordinateKind, body: str
    ) -> None:
        self._parts.append(f"{self._keyword(kind, coord_kind)}({body})")

    def point(self, position: Position) -> None:
        self._write(
            GeometryKind.POINT, position.kind, position.to_text(" ", self.decimals)
        )

    def line_string(self, series: PositionSeries) -> None:
        if series.is_empty:
            self.empty_geometry(GeometryKind.LINESTRING, series.kind)
        else:
            self._write(GeometryKind.LINESTRING, series.kind, self._coords(series))

    def polygon(self, rings: Sequence[PositionSeries]) -> None:
        coord_kind = series_kind(rings)
        if not rings or rings[0].is_empty:
            self.empty_geometry(GeometryKind.POLYGON, coord_kind)
        else:
            self._write(GeometryKind.POLYGON, coord_kind, self._rings(rings))

    def multi_point(self, positions: Sequence[Position | None]) -> None:
        coord_kind = next(
            (p.kind for p in positions if p is not None), CoordinateKind.XY
        )
        if not positions:
            self.empty_geometry(GeometryKind.MULTIPOINT, coord_kind)
            return
        coords = ",".join(
            EMPTY if p is None else p.to_text(" ", self.decimals) for p in positions
        )
        self._write(GeometryKind.MULTIPOINT, coord_kind, coords)

    def multi_line_string(self, series_list: Sequence[PositionSeries]) -> None:
        coord_kind = series_kind(series_list)
        if not series_list:
            self.empty_geometry(GeometryKind.MULTILINESTRING, coord_kind)
        else:
            self._write(
                GeometryKind.MULTILINESTRING, coord_kind, self._rings(series_list)
            )

    def multi_polygon(self, ring_lists: Sequence[Sequence[PositionSeries]]) -> None:
        coord_kind = series_kind([rings[0] for rings in ring_lists if rings])
        if not ring_lists:
            self.empty_geometry(GeometryKind.MULTIPOLYGON, coord_kind)
            return
        polygons = ",".join(self._polygon_body(rings) for rings in ring_lists)
        self._write(GeometryKind.MULTIPOLYGON, coord_kind, polygons)

    def geometry_collection(self, emit: Callable[[GeometryBuilder], None]) -> None:
        members = WktEncoder(self.decimals)
        emit(members)
        if not members.text:
            self.empty_geometry(GeometryKind.GEOMETRYCOLLECTION)
        else:
            self._parts.append(
                f"{GeometryKind.GEOMETRYCOLLECTION.wkt_keyword}({members})"
            )

    def empty_geometry(
        self, kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
    ) -> None:
        self._parts.append(f"{self._keyword(kind, coord_kind)} {EMPTY}")


def decode_wkt(text: str, geographic: bool = False) -> Geometry:
    """
    Decode WKT text into a Geometry.

    Args:
        text: WKT (or EWKT with an SRID prefix)
        geographic: Produce geographic coordinate kinds

    Returns:
        The decoded geometry

    Raises:
        FormatError: If text is not valid WKT

    Example:
        >>> decode_wkt("LINESTRING(0 0,1 1)").bounds.max
        Position(1.0, 1.0)
    """
    collector = GeometryCollector()
    WktDecoder(collector, geographic=geographic).decode(text)
    return collector.single()


def encode_wkt(geometry: Geometry, decimals: int | None = None) -> str:
    """
    Encode a geometry as canonical WKT.

    Args:
        geometry: Geometry to encode
        decimals: Round coordinates to this many decimals (defaults to
            DEFAULTS.wkt_decimals, full precision when that is None)
    """
    encoder = WktEncoder(DEFAULTS.wkt_decimals if decimals is None else decimals)
    geometry.build(encoder)
    return encoder.text

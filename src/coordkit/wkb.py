"""
Well-known binary (WKB) decoding and encoding.

The encoder writes ISO WKB: a byte order flag, a uint32 geometry type code
(1000 added for Z, 2000 for M, 3000 for ZM) and the coordinates as doubles.
Members of multi geometries and collections are full WKB geometries.

The decoder also reads PostGIS extended WKB: dimensionality flags in the
high bits of the type code and an optional SRID, which is skipped.

Empty points are written as a point with NaN coordinates, all other empty
geometries with a member count of zero.
"""

import math
import struct
from collections.abc import Callable, Sequence

from .builder import GeometryBuilder, GeometryCollector, series_kind
from .coords import EWKB_SRID_FLAG, CoordinateKind, GeometryKind
from .errors import FormatError
from .geometry import Geometry
from .position import Position, PositionSeries

# values of the WKBByteOrder enum
WKB_XDR = 0  # big endian
WKB_NDR = 1  # little endian


class WkbEncoder:
    """
    A GeometryBuilder writing WKB bytes.

    Args:
        big_endian: Use big-endian byte order (default: little-endian)

    Example:
        >>> encoder = WkbEncoder()
        >>> encoder.point(Position(-122.0, 47.0))
        >>> encoder.data.hex()
        '01010000000000000000805ec00000000000804740'
    """

    def __init__(self, big_endian: bool = False):
        self.big_endian = big_endian
        self._byte_order = ">" if big_endian else "<"
        self._bo_flag = WKB_XDR if big_endian else WKB_NDR
        self._geometries: list[bytes] = []

    @property
    def data(self) -> bytes:
        """All geometries written so far, concatenated"""
        return b"".join(self._geometries)

    def __bytes__(self) -> bytes:
        return self.data

    def _header(self, kind: GeometryKind, coord_kind: CoordinateKind) -> bytes:
        return struct.pack(
            f"{self._byte_order}bI", self._bo_flag, kind.wkb_code(coord_kind)
        )

    def _count(self, count: int) -> bytes:
        return struct.pack(f"{self._byte_order}I", count)

    def _coords(self, values: Sequence[float]) -> bytes:
        return struct.pack(f"{self._byte_order}{len(values)}d", *values)

    def _series(self, series: PositionSeries) -> bytes:
        return self._count(len(series)) + self._coords(series.values)

    def _point(self, position: Position | None, coord_kind: CoordinateKind) -> bytes:
        data = self._header(GeometryKind.POINT, coord_kind)
        if position is None:
            return data + self._coords([math.nan] * coord_kind.dimension)
        return data + self._coords(position.values)

    def _polygon(
        self, rings: Sequence[PositionSeries], coord_kind: CoordinateKind
    ) -> bytes:
        data = self._header(GeometryKind.POLYGON, coord_kind)
        if not rings or rings[0].is_empty:
            return data + self._count(0)
        data += self._count(len(rings))
        for ring in rings:
            data += self._series(ring)
        return data

    def point(self, position: Position) -> None:
        self._geometries.append(self._point(position, position.kind))

    def line_string(self, series: PositionSeries) -> None:
        data = self._header(GeometryKind.LINESTRING, series.kind)
        self._geometries.append(data + self._series(series))

    def polygon(self, rings: Sequence[PositionSeries]) -> None:
        self._geometries.append(self._polygon(rings, series_kind(rings)))

    def multi_point(self, positions: Sequence[Position | None]) -> None:
        coord_kind = next(
            (p.kind for p in positions if p is not None), CoordinateKind.XY
        )
        data = self._header(GeometryKind.MULTIPOINT, coord_kind)
        data += self._count(len(positions))
        for position in positions:
            data += self._point(position, coord_kind)
        self._geometries.append(data)

    def multi_line_string(self, series_list: Sequence[PositionSeries]) -> None:
        coord_kind = series_kind(series_list)
        data = self._header(GeometryKind.MULTILINESTRING, coord_kind)
        data += self._count(len(series_list))
        for series in series_list:
            data += self._header(GeometryKind.LINESTRING, coord_kind)
            data += self._series(series)
        self._geometries.append(data)

    def multi_polygon(self, ring_lists: Sequence[Sequence[PositionSeries]]) -> None:
        coord_kind = series_kind([rings[0] for rings in ring_lists if rings])
        data = self._header(GeometryKind.MULTIPOLYGON, coord_kind)
        data += self._count(len(ring_lists))
        for rings in ring_lists:
            data += self._polygon(rings, coord_kind)
        self._geometries.append(data)

    def geometry_collection(self, emit: Callable[[GeometryBuilder], None]) -> None:
        members = WkbEncoder(self.big_endian)
        emit(members)
        data = self._header(GeometryKind.GEOMETRYCOLLECTION, CoordinateKind.XY)
        data += self._count(len(members._geometries))
        self._geometries.append(data + members.data)

    def empty_geometry(
        self, kind: GeometryKind, coord_kind: CoordinateKind = CoordinateKind.XY
    ) -> None:
        if kind is GeometryKind.POINT:
            self._geometries.append(self._point(None, coord_kind))
        else:
            self._geometries.append(self._header(kind, coord_kind) + self._count(0))


class _ByteReader:
    """Reads struct values from a buffer, advancing an offset"""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    @property
    def has_available(self) -> bool:
        return self.offset < len(self.data)

    def read(self, fmt: str) -> tuple:
        try:
            values = struct.unpack_from(fmt, self.data, self.offset)
        except struct.error:
            raise FormatError(f"Truncated WKB at byte {self.offset}") from None
        self.offset += struct.calcsize(fmt)
        return values


class WkbDecoder:
    """
    Decodes WKB bytes into calls on a GeometryBuilder.

    Both byte orders are accepted, also mixed within one geometry. ISO type
    codes and EWKB flags are understood; an EWKB SRID is skipped.

    Args:
        builder: Receives the decoded geometries
        geographic: Produce geographic coordinate kinds (LONLAT...)
    """

    def __init__(self, builder: GeometryBuilder, geographic: bool = False):
        self.builder = builder
        self.geographic = geographic

    def decode(self, data: bytes) -> None:
        """
        Decode all geometries in data.

        Raises:
            FormatError: On an invalid byte order flag or type code, a
                member of the wrong type, or truncated data
        """
        reader = _ByteReader(bytes(data))
        if not reader.has_available:
            raise FormatError("Empty WKB data")
        while reader.has_available:
            self._decode(reader, self.builder)

    def _header(
        self, reader: _ByteReader
    ) -> tuple[str, GeometryKind, CoordinateKind]:
        (flag,) = reader.read("b")
        if flag == WKB_XDR:
            byte_order = ">"
        elif flag == WKB_NDR:
            byte_order = "<"
        else:
            raise FormatError("Invalid byte order", str(flag))
        (type_code,) = reader.read(f"{byte_order}I")
        kind = GeometryKind.from_wkb_type(type_code)
        coord_kind = CoordinateKind.from_wkb_type(type_code)
        if self.geographic:
            coord_kind = coord_kind.to_geographic()
        if type_code & EWKB_SRID_FLAG:
            reader.read(f"{byte_order}I")
        return byte_order, kind, coord_kind

    def _member_header(
        self, reader: _ByteReader, expected: GeometryKind
    ) -> tuple[str, CoordinateKind]:
        byte_order, kind, coord_kind = self._header(reader)
        if kind is not expected:
            raise FormatError(
                f"Expected {expected.wkt_keyword} member, got", kind.wkt_keyword
            )
        return byte_order, coord_kind

    def _count(self, reader: _ByteReader, byte_order: str) -> int:
        return reader.read(f"{byte_order}I")[0]

    def _position(
        self, reader: _ByteReader, byte_order: str, kind: CoordinateKind
    ) -> Position | None:
        values = reader.read(f"{byte_order}{kind.dimension}d")
        # POINT(NaN NaN) is an empty point
        if math.isnan(values[0]) and math.isnan(values[1]):
            return None
        return Position.from_values(values, kind)

    def _series(
        self, reader: _ByteReader, byte_order: str, kind: CoordinateKind
    ) -> PositionSeries:
        count = self._count(reader, byte_order)
        return PositionSeries(
            reader.read(f"{byte_order}{count * kind.dimension}d"), kind
        )

    def _rings(
        self, reader: _ByteReader, byte_order: str, kind: CoordinateKind
    ) -> list[PositionSeries]:
        count = self._count(reader, byte_order)
        return [self._series(reader, byte_order, kind) for _ in range(count)]

    def _decode(self, reader: _ByteReader, builder: GeometryBuilder) -> None:
        byte_order, kind, coord_kind = self._header(reader)

        if kind is GeometryKind.POINT:
            position = self._position(reader, byte_order, coord_kind)
            if position is None:
                builder.empty_geometry(kind, coord_kind)
            else:
                builder.point(position)
            return

        if kind is GeometryKind.LINESTRING:
            series = self._series(reader, byte_order, coord_kind)
            if series.is_empty:
                builder.empty_geometry(kind, coord_kind)
            else:
                builder.line_string(series)
            return

        if kind is GeometryKind.POLYGON:
            rings = self._rings(reader, byte_order, coord_kind)
            if not rings:
                builder.empty_geometry(kind, coord_kind)
            else:
                builder.polygon(rings)
            return

        count = self._count(reader, byte_order)
        if count == 0:
            builder.empty_geometry(kind, coord_kind)
        elif kind is GeometryKind.MULTIPOINT:
            positions = []
            for _ in range(count):
                order, member_kind = self._member_header(reader, GeometryKind.POINT)
                positions.append(self._position(reader, order, member_kind))
            builder.multi_point(positions)
        elif kind is GeometryKind.MULTILINESTRING:
            series_list = []
            for _ in range(count):
                order, member_kind = self._member_header(
                    reader, GeometryKind.LINESTRING
                )
                series_list.append(self._series(reader, order, member_kind))
            builder.multi_line_string(series_list)
        elif kind is GeometryKind.MULTIPOLYGON:
            ring_lists = []
            for _ in range(count):
                order, member_kind = self._member_header(reader, GeometryKind.POLYGON)
                ring_lists.append(self._rings(reader, order, member_kind))
            builder.multi_polygon(ring_lists)
        else:

            def emit(child: GeometryBuilder) -> None:
                for _ in range(count):
                    self._decode(reader, child)

            builder.geometry_collection(emit)


def decode_wkb(data: bytes, geographic: bool = False) -> Geometry:
    """
    Decode WKB (or EWKB) bytes into a Geometry.

    Args:
        data: WKB bytes holding exactly one geometry
        geographic: Produce geographic coordinate kinds

    Raises:
        FormatError: If data is not valid WKB

    Example:
        >>> decode_wkb(bytes.fromhex("01010000000000000000805ec00000000000804740"))
        Point(position=Position(-122.0, 47.0))
    """
    collector = GeometryCollector()
    WkbDecoder(collector, geographic=geographic).decode(data)
    return collector.single()


def encode_wkb(geometry: Geometry, big_endian: bool = False) -> bytes:
    """
    Encode a geometry as ISO WKB.

    Args:
        geometry: Geometry to encode
        big_endian: Use big-endian byte order (default: little-endian)
    """
    encoder = WkbEncoder(big_endian)
    geometry.build(encoder)
    return encoder.data

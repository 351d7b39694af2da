"""Tests for WKT decoding and encoding."""

import pytest

from coordkit import (
    CoordinateKind,
    FormatError,
    GeometryCollection,
    GeometryCollector,
    GeometryKind,
    LineString,
    MultiLineString,
    MultiPoint,
    Point,
    Polygon,
    Position,
    PositionSeries,
    WktDecoder,
    WktEncoder,
    decode_wkt,
    encode_wkt,
    parse_coord_kind,
)


class RecordingBuilder:
    """Records builder callbacks as (name, detail) tuples"""

    def __init__(self):
        self.calls = []

    def point(self, position):
        self.calls.append(("point", position))

    def line_string(self, series):
        self.calls.append(("line_string", len(series)))

    def polygon(self, rings):
        self.calls.append(("polygon", len(rings)))

    def multi_point(self, positions):
        self.calls.append(("multi_point", len(positions)))

    def multi_line_string(self, series_list):
        self.calls.append(("multi_line_string", len(series_list)))

    def multi_polygon(self, ring_lists):
        self.calls.append(("multi_polygon", len(ring_lists)))

    def geometry_collection(self, emit):
        self.calls.append(("geometry_collection", None))
        emit(self)

    def empty_geometry(self, kind, coord_kind=CoordinateKind.XY):
        self.calls.append(("empty_geometry", kind))


class TestDecode:
    def test_point(self):
        geom = decode_wkt("POINT(1 2)")
        assert isinstance(geom, Point)
        assert geom.position == Position(1, 2)
        assert geom.coord_kind is CoordinateKind.XY

    def test_case_and_whitespace(self):
        geom = decode_wkt("  point z ( 1.0 2 3 ) ")
        assert geom.position == Position(1, 2, 3)
        assert encode_wkt(geom) == "POINT Z(1 2 3)"

    def test_linestring(self):
        geom = decode_wkt("LINESTRING(30 10, 10 30, 40 40)")
        assert isinstance(geom, LineString)
        assert len(geom) == 3
        assert geom.series.last == Position(40, 40)

    def test_polygon_with_hole(self):
        geom = decode_wkt(
            "POLYGON((35 10,45 45,15 40,10 20,35 10),(20 30,35 35,30 20,20 30))"
        )
        assert isinstance(geom, Polygon)
        assert len(geom.interiors) == 1
        assert geom.exterior.is_closed

    def test_multipoint_forms(self):
        nested = decode_wkt("MULTIPOINT((1 2),(3 4))")
        flat = decode_wkt("MULTIPOINT(1 2, 3 4)")
        assert isinstance(nested, MultiPoint)
        assert nested.positions == flat.positions == [Position(1, 2), Position(3, 4)]

    def test_multipolygon(self):
        geom = decode_wkt(
            "MULTIPOLYGON(((0 0,2 0,2 2,0 0)),((10 0,12 0,12 2,10 0),(11 0.5,11.5 0.5,"
            "11.5 1,11 0.5)))"
        )
        assert len(geom.polygons) == 2
        assert len(geom.polygons[1].interiors) == 1

    def test_geometry_collection(self):
        geom = decode_wkt("GEOMETRYCOLLECTION(POINT(1 2),LINESTRING(0 0,1 1))")
        assert isinstance(geom, GeometryCollection)
        assert [g.kind for g in geom] == [GeometryKind.POINT, GeometryKind.LINESTRING]

    def test_nested_collection(self):
        geom = decode_wkt(
            "GEOMETRYCOLLECTION(GEOMETRYCOLLECTION(POINT(1 2)),POINT EMPTY)"
        )
        inner, empty = geom.geometries
        assert isinstance(inner, GeometryCollection)
        assert inner.geometries[0].position == Position(1, 2)
        assert empty.is_empty

    @pytest.mark.parametrize("kind", list(GeometryKind))
    def test_empty(self, kind):
        geom = decode_wkt(f"{kind.wkt_keyword} EMPTY")
        assert geom.kind is kind
        assert geom.is_empty

    @pytest.mark.parametrize(
        "text,coord_kind",
        [
            ("POINT Z EMPTY", CoordinateKind.XYZ),
            ("LINESTRING M EMPTY", CoordinateKind.XYM),
            ("POLYGON ZM EMPTY", CoordinateKind.XYZM),
            ("MULTIPOINT Z M EMPTY", CoordinateKind.XYZM),
            ("GEOMETRYCOLLECTION Z EMPTY", CoordinateKind.XYZ),
        ],
    )
    def test_empty_with_marker(self, text, coord_kind):
        geom = decode_wkt(text)
        assert geom.is_empty
        assert geom.coord_kind is coord_kind
        assert encode_wkt(geom) == text.replace("Z M", "ZM")

    def test_empty_marker_geographic(self):
        geom = decode_wkt("POINT Z EMPTY", geographic=True)
        assert geom.coord_kind is CoordinateKind.LONLAT_ELEV

    def test_separated_markers(self):
        geom = decode_wkt("POINT Z M (1 2 3 4)")
        assert geom.coord_kind is CoordinateKind.XYZM
        assert geom.position == Position(1, 2, 3, 4)
        assert encode_wkt(geom) == "POINT ZM(1 2 3 4)"
        assert parse_coord_kind("linestring z m (0 0 1 2,1 1 3 4)") is (
            CoordinateKind.XYZM
        )

    def test_measure_marker(self):
        geom = decode_wkt("POINT M(1 2 3)")
        assert geom.coord_kind is CoordinateKind.XYM
        assert geom.position.m == 3.0
        assert geom.position.opt_z is None

    def test_zm_marker(self):
        geom = decode_wkt("LINESTRING ZM(1 2 3 4,5 6 7 8)")
        assert geom.coord_kind is CoordinateKind.XYZM
        assert geom.series.m(1) == 8.0

    def test_dimension_inferred_from_values(self):
        assert decode_wkt("POINT(1 2 3)").coord_kind is CoordinateKind.XYZ
        geom = decode_wkt("LINESTRING(1 2 3 4,5 6 7 8)")
        assert geom.coord_kind is CoordinateKind.XYZM
        assert encode_wkt(geom) == "LINESTRING ZM(1 2 3 4,5 6 7 8)"

    def test_srid_prefix_ignored(self):
        geom = decode_wkt("SRID=4326;POINT(10 60)")
        assert geom.position == Position(10, 60)

    def test_geographic(self):
        geom = decode_wkt("POINT Z(10 60 5)", geographic=True)
        assert geom.coord_kind is CoordinateKind.LONLAT_ELEV
        assert geom.position.lat == 60.0
        assert decode_wkt("POINT(10 60)", geographic=True).coord_kind is (
            CoordinateKind.LONLAT
        )


class TestDecodeErrors:
    @pytest.mark.parametrize(
        "text,message",
        [
            ("POINT(1 2", "Unmatched parenthesis"),
            ("MULTIPOINT((1 2),(3 4)", "Unmatched parenthesis"),
            ("CIRCLE(1 2)", "Invalid wkt"),
            ("POINT 1 2", "Invalid wkt"),
            ("", "Invalid wkt"),
            ("POINT(1 2) extra", "Unexpected trailing text"),
            ("POINT M Z(1 2 3)", "Invalid wkt"),
            ("POINT Z(1 2)", "Invalid coords"),
            ("POINT(1)", "Invalid coords"),
            ("POINT(1 2,3 4)", "Invalid coords"),
            ("LINESTRING(0 0,1 1 1)", "Invalid coords"),
            ("POLYGON(0 0,1 0,1 1,0 0)", "Invalid wkt"),
        ],
    )
    def test_malformed(self, text, message):
        with pytest.raises(FormatError, match=message):
            decode_wkt(text)

    def test_error_carries_offending_text(self):
        with pytest.raises(FormatError) as exc_info:
            decode_wkt("POINT(a b)")
        assert exc_info.value.text == "A B"

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_wkt("TRIANGLE((0 0,1 0,1 1,0 0))")


class TestParseCoordKind:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("POINT(1 2)", CoordinateKind.XY),
            ("POINT ZM(1 2 3 4)", CoordinateKind.XYZM),
            ("LINESTRING M(0 0 1,1 1 2)", CoordinateKind.XYM),
            ("MULTIPOLYGON(((0 0 1,1 0 1,1 1 1,0 0 1)))", CoordinateKind.XYZ),
            ("GEOMETRYCOLLECTION(POINT Z(1 2 3))", CoordinateKind.XYZ),
            ("LINESTRING EMPTY", CoordinateKind.XY),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_coord_kind(text) is expected

    def test_geographic(self):
        assert parse_coord_kind("POINT(1 2)", geographic=True) is CoordinateKind.LONLAT


class TestEncode:
    @pytest.mark.parametrize(
        "text",
        [
            "POINT(1 2)",
            "POINT Z(-122.5 47 100)",
            "LINESTRING(30 10,10 30,40 40)",
            "POLYGON((35 10,45 45,15 40,10 20,35 10),(20 30,35 35,30 20,20 30))",
            "MULTILINESTRING((10 10,20 20),(40 40,30 30,40 20))",
            "MULTIPOLYGON(((30 20,45 40,10 40,30 20)),((15 5,40 10,10 20,15 5)))",
            "GEOMETRYCOLLECTION(POINT(1 2),LINESTRING(0 0,1 1))",
            "POLYGON EMPTY",
        ],
    )
    def test_canonical_text_is_stable(self, text):
        assert encode_wkt(decode_wkt(text)) == text

    @pytest.mark.parametrize(
        "coord_kind",
        [
            CoordinateKind.XY,
            CoordinateKind.XYZ,
            CoordinateKind.XYM,
            CoordinateKind.XYZM,
        ],
    )
    @pytest.mark.parametrize("kind", list(GeometryKind))
    def test_round_trip(self, sample_geometry, kind, coord_kind):
        geom = sample_geometry(kind, coord_kind)
        decoded = decode_wkt(encode_wkt(geom))
        assert decoded == geom
        assert decoded.coord_kind is coord_kind

    def test_multipoint_written_flat(self):
        geom = decode_wkt("MULTIPOINT((1 2),(3 4))")
        assert encode_wkt(geom) == "MULTIPOINT(1 2,3 4)"

    def test_decimals(self):
        geom = decode_wkt("POINT(1.234 2.0001)")
        assert encode_wkt(geom, decimals=2) == "POINT(1.23 2)"
        assert encode_wkt(geom) == "POINT(1.234 2.0001)"

    def test_geometry_wkt_property(self):
        geom = decode_wkt("linestring m (0 0 1, 1 1 2)")
        assert geom.wkt == "LINESTRING M(0 0 1,1 1 2)"

    def test_encoder_text_joins_geometries(self):
        encoder = WktEncoder()
        encoder.point(Position(1, 2))
        encoder.point(Position(3.5, 4))
        assert encoder.text == "POINT(1 2),POINT(3.5 4)"
        assert str(encoder) == encoder.text


class TestEmptyMembers:
    def test_multipoint_with_empty_point(self):
        geom = MultiPoint((Point(), Point(Position(1, 2))))
        text = encode_wkt(geom)
        assert text == "MULTIPOINT(EMPTY,1 2)"
        assert decode_wkt(text) == geom

    def test_multipoint_of_empty_point(self):
        geom = MultiPoint((Point(),))
        assert encode_wkt(geom) == "MULTIPOINT(EMPTY)"
        assert decode_wkt("MULTIPOINT(EMPTY)") == geom

    def test_nested_multipoint_with_empty_member(self):
        geom = decode_wkt("MULTIPOINT((1 2 3),EMPTY)")
        assert len(geom) == 2
        assert geom.coord_kind is CoordinateKind.XYZ
        assert geom.positions == [Position(1, 2, 3)]
        assert geom.points[1].is_empty

    def test_multilinestring_with_empty_member(self):
        geom = MultiLineString(
            (LineString(PositionSeries.view([0, 0, 1, 1])), LineString())
        )
        text = encode_wkt(geom)
        assert text == "MULTILINESTRING((0 0,1 1),EMPTY)"
        assert decode_wkt(text) == geom

    def test_empty_member_takes_kind_of_others(self):
        geom = decode_wkt("MULTILINESTRING(EMPTY,(0 0 1,1 1 2))")
        assert geom.coord_kind is CoordinateKind.XYZ
        assert geom.line_strings[0].coord_kind is CoordinateKind.XYZ
        assert encode_wkt(geom) == "MULTILINESTRING Z(EMPTY,(0 0 1,1 1 2))"

    def test_collected_multipolygon_with_empty_polygon(self):
        collector = GeometryCollector()
        collector.multi_polygon([[]])
        geom = collector.single()
        assert encode_wkt(geom) == "MULTIPOLYGON(EMPTY)"
        assert decode_wkt("MULTIPOLYGON(EMPTY)") == geom

    def test_multipolygon_with_empty_member(self):
        text = "MULTIPOLYGON(EMPTY,((0 0,1 0,1 1,0 0)))"
        geom = decode_wkt(text)
        assert len(geom) == 2
        assert geom.polygons[0].is_empty
        assert geom.area == 0.5
        assert encode_wkt(geom) == text

    def test_bounds_skip_empty_members(self):
        geom = decode_wkt("MULTIPOINT(EMPTY,1 2,3 -4)")
        assert geom.bounds.min == Position(1, -4)
        assert geom.bounds.max == Position(3, 2)


class TestBuilderInterface:
    def test_decoder_drives_custom_builder(self):
        builder = RecordingBuilder()
        WktDecoder(builder).decode("MULTILINESTRING((0 0,1 1),(2 2,3 3,4 4))")
        assert builder.calls == [("multi_line_string", 2)]

    def test_collection_members_reported_through_emit(self):
        builder = RecordingBuilder()
        WktDecoder(builder).decode(
            "GEOMETRYCOLLECTION(POINT(1 2),POLYGON((0 0,1 0,1 1,0 0)),POINT EMPTY)"
        )
        assert builder.calls == [
            ("geometry_collection", None),
            ("point", Position(1, 2)),
            ("polygon", 1),
            ("empty_geometry", GeometryKind.POINT),
        ]

    def test_geometry_build(self):
        builder = RecordingBuilder()
        decode_wkt("MULTIPOINT(1 2,3 4,5 6)").build(builder)
        assert builder.calls == [("multi_point", 3)]

    def test_collector_single(self):
        collector = GeometryCollector()
        with pytest.raises(FormatError, match="Expected exactly one geometry"):
            collector.single()
        decoder = WktDecoder(collector)
        decoder.decode("POINT(1 2)")
        decoder.decode("POINT(3 4)")
        assert len(collector.geometries) == 2
        with pytest.raises(FormatError, match="got 2"):
            collector.single()

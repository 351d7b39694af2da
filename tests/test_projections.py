"""Tests for the projection engine."""

import math

import pytest

from coordkit import (
    CoordinateKind,
    CoordRefSys,
    Datum,
    EllipsoidalProjectionAdapter,
    FormatError,
    Hemisphere,
    InvalidArgumentError,
    Position,
    PositionSeries,
    ProjProjection,
    ProjProjectionAdapter,
    UtmProjectionAdapter,
    UtmZone,
    WGS84_TO_WEB_MERCATOR,
    utm_zone_for,
)
from coordkit.projections import (
    ComposedProjection,
    GeographicDatumShift,
    LonLatToWebMercator,
)

# lon, lat, x, y
WEB_MERCATOR_DATA = [
    (0.0, 0.0, 0.0, 0.0),
    (8.8472315, 47.3238447, 984869.31, 5995094.90),
    (-47.592335, -69.493853, -5297954.50, -10905942.09),
    (120.39284, 30.239245, 13402069.64, 3534339.78),
    (179.9999999, 85.051129, 20037508.33, 20037508.63),
]

# lon, lat, zone, hemisphere, easting, northing
UTM_DATA = [
    (2.2945, 48.8582, 31, "N", 448251.795, 5411932.678),
    (151.215, -33.857, 56, "S", 334873.199, 6252266.092),
]


class TestGeocentric:
    adapter = EllipsoidalProjectionAdapter.geographic_to_geocentric()

    def test_default_crs(self):
        assert self.adapter.source == CoordRefSys.CRS84
        assert self.adapter.target == CoordRefSys.EPSG_4978

    def test_forward(self):
        gc = self.adapter.forward.project(Position.lonlat(123.0, 15.0, 140.0))
        assert gc.kind is CoordinateKind.XYZ
        assert gc.x == pytest.approx(-3356242.3698167196, abs=1e-6)
        assert gc.y == pytest.approx(5168160.035350793, abs=1e-6)
        assert gc.z == pytest.approx(1640136.37486220, abs=1e-6)

    def test_forward_2d_gains_z(self):
        gc = self.adapter.forward.project(Position.lonlat(0.0, 0.0))
        assert gc == Position(6378137.0, 0.0, 0.0)

    def test_round_trip(self):
        for geo in [
            Position.lonlat(5.398882, 51.749822, 10.2234),
            Position.lonlat(-23.484, 0.0, -2210.3232232),
            Position.lonlat(-179.2, -89.2, -123.552345, m=1.1),
        ]:
            back = self.adapter.inverse.project(self.adapter.forward.project(geo))
            assert back.kind is geo.kind
            assert back.equals_3d(geo, tolerance_horiz=1e-7, tolerance_vert=1e-4)
            assert back.opt_m == geo.opt_m

    def test_project_coords_matches_project(self):
        flat = [123.0, 15.0, 140.0, 5.398882, 51.749822, 10.2234]
        out = self.adapter.forward.project_coords(flat, CoordinateKind.LONLAT_ELEV)
        assert len(out) == 6
        single = self.adapter.forward.project(
            Position.lonlat(5.398882, 51.749822, 10.2234)
        )
        assert list(out[3:]) == list(single.values)

    def test_project_coords_invalid_length(self):
        with pytest.raises(InvalidArgumentError, match="not a multiple"):
            self.adapter.forward.project_coords([1.0, 2.0, 3.0], CoordinateKind.LONLAT)


class TestDatumShift:
    def test_geographic_to_geographic(self):
        adapter = EllipsoidalProjectionAdapter.geographic_to_geographic(
            Datum.WGS84, Datum.OSGB36
        )
        assert adapter.source == CoordRefSys.CRS84
        assert adapter.target is None
        osgb = adapter.forward.project(Position.lonlat(1.0, 53.0, 50.0))
        assert osgb.lat == pytest.approx(52 + 59 / 60 + 58.719 / 3600, abs=1e-6)
        assert osgb.lon == pytest.approx(1 + 6.490 / 3600, abs=1e-6)
        assert osgb.elev == pytest.approx(3.99, abs=0.01)

    def test_matches_datum_conversion(self):
        adapter = EllipsoidalProjectionAdapter.geographic_to_geographic(
            Datum.WGS84, Datum.ED50
        )
        geo = Position.lonlat(24.94, 60.17, 25.0)
        assert adapter.forward.project(geo) == Datum.WGS84.convert_geographic(
            geo, to=Datum.ED50
        )

    def test_same_datum_is_identity(self):
        shift = GeographicDatumShift(Datum.WGS84, Datum.WGS84)
        geo = Position.lonlat(24.94, 60.17)
        assert shift.project(geo) == geo

    def test_geocentric_to_geocentric(self):
        adapter = EllipsoidalProjectionAdapter.geocentric_to_geocentric(
            Datum.WGS84, Datum.OSGB36
        )
        gc = Position(3900000.0, 100000.0, 5000000.0)
        assert adapter.forward.project(gc) == Datum.WGS84.convert_geocentric_cartesian(
            gc, to=Datum.OSGB36
        )

    def test_reversed(self):
        adapter = EllipsoidalProjectionAdapter.geographic_to_geographic(
            Datum.WGS84, Datum.ETRS89
        )
        reversed_adapter = adapter.reversed()
        assert reversed_adapter.source == CoordRefSys.EPSG_4258
        assert reversed_adapter.target == CoordRefSys.CRS84
        assert reversed_adapter.forward is adapter.inverse


class TestWebMercator:
    def test_crs(self):
        assert WGS84_TO_WEB_MERCATOR.source == CoordRefSys.CRS84
        assert WGS84_TO_WEB_MERCATOR.target == CoordRefSys.EPSG_3857

    def test_forward(self):
        for lon, lat, x, y in WEB_MERCATOR_DATA:
            p = WGS84_TO_WEB_MERCATOR.forward.project(Position.lonlat(lon, lat))
            assert p.kind is CoordinateKind.XY
            assert p.x == pytest.approx(x, abs=0.01)
            assert p.y == pytest.approx(y, abs=0.01)

    def test_inverse(self):
        for lon, lat, x, y in WEB_MERCATOR_DATA:
            geo = WGS84_TO_WEB_MERCATOR.inverse.project(Position(x, y, 30.0))
            assert geo.kind is CoordinateKind.LONLAT_ELEV
            assert geo.lon == pytest.approx(lon, abs=1e-6)
            assert geo.lat == pytest.approx(lat, abs=1e-6)
            assert geo.elev == 30.0

    def test_measure_passes_through(self):
        p = LonLatToWebMercator().project(Position.lonlat(10.0, 20.0, m=5.0))
        assert p.kind is CoordinateKind.XYM
        assert p.m == 5.0

    def test_pole_is_not_clamped(self):
        p = WGS84_TO_WEB_MERCATOR.forward.project(Position.lonlat(0.0, 90.0))
        assert math.isinf(p.y)

    def test_series_project(self):
        series = PositionSeries(
            [0.0, 0.0, 8.8472315, 47.3238447], CoordinateKind.LONLAT
        )
        projected = series.project(WGS84_TO_WEB_MERCATOR.forward)
        assert projected.kind is CoordinateKind.XY
        assert len(projected) == 2
        assert projected.x(1) == pytest.approx(984869.31, abs=0.01)
        assert projected.y(1) == pytest.approx(5995094.90, abs=0.01)


class TestUtmZone:
    def test_zone_for(self):
        assert utm_zone_for(2.2945, 48.8582) == UtmZone(31, Hemisphere.NORTH)
        assert utm_zone_for(151.215, -33.857) == UtmZone(56, Hemisphere.SOUTH)
        assert utm_zone_for(180.0, 0.0) == UtmZone(1)

    def test_norway_and_svalbard(self):
        assert utm_zone_for(5.0, 60.0).zone == 32
        assert utm_zone_for(8.0, 78.0).zone == 31
        assert utm_zone_for(10.0, 78.0).zone == 33

    def test_for_position(self):
        zone = UtmZone.for_position(Position.lonlat(24.94, 60.17))
        assert zone == UtmZone(35)

    def test_parse(self):
        assert UtmZone.parse("33s") == UtmZone(33, Hemisphere.SOUTH)
        assert str(UtmZone.parse(" 31N ")) == "31N"

    @pytest.mark.parametrize("text", ["N", "61N", "31X", "abc"])
    def test_parse_invalid(self, text):
        with pytest.raises(FormatError, match="Invalid"):
            UtmZone.parse(text)

    def test_zone_out_of_range(self):
        with pytest.raises(InvalidArgumentError, match="Invalid UTM zone"):
            UtmZone(0)

    def test_central_meridian(self):
        assert UtmZone(31).central_meridian == 3.0
        assert UtmZone(1).central_meridian == -177.0

    def test_wgs84_crs(self):
        assert UtmZone(31).wgs84_crs.epsg_code == 32631
        assert UtmZone(33, Hemisphere.SOUTH).wgs84_crs.epsg_code == 32733


class TestUtm:
    def test_origin_in_zone_31(self):
        adapter = UtmProjectionAdapter.geographic_to_utm(UtmZone(31))
        utm = adapter.forward.project(Position.lonlat(0.0, 0.0))
        assert utm.x == pytest.approx(166021.443, abs=1e-3)
        assert utm.y == pytest.approx(0.0, abs=1e-6)

    def test_default_crs(self):
        adapter = UtmProjectionAdapter.geographic_to_utm(UtmZone(31))
        assert adapter.source == CoordRefSys.CRS84
        assert adapter.target == CoordRefSys.normalized("EPSG:32631")

    def test_forward_and_inverse(self):
        for lon, lat, zone, hemisphere, easting, northing in UTM_DATA:
            utm_zone = UtmZone(zone, Hemisphere.from_symbol(hemisphere))
            adapter = UtmProjectionAdapter.geographic_to_utm(utm_zone)

            utm = adapter.forward.project(Position.lonlat(lon, lat))
            assert utm.x == pytest.approx(easting, abs=1e-3)
            assert utm.y == pytest.approx(northing, abs=1e-3)

            geo = adapter.inverse.project(Position(easting, northing))
            assert geo.lon == pytest.approx(lon, abs=1e-6)
            assert geo.lat == pytest.approx(lat, abs=1e-6)

    def test_round_trip_keeps_elevation(self):
        adapter = UtmProjectionAdapter.geographic_to_utm(UtmZone(31))
        geo = Position.lonlat(5.398882, 51.749822, 10.2234)
        utm = adapter.forward.project(geo)
        assert utm.kind is CoordinateKind.XYZ
        assert utm.z == 10.2234
        back = adapter.inverse.project(utm)
        assert back.equals_3d(geo, tolerance_horiz=1e-8, tolerance_vert=0.0)

    def test_projects_outside_zone(self):
        adapter = UtmProjectionAdapter.geographic_to_utm(UtmZone(32))
        geo = Position.lonlat(2.0, 50.0)
        back = adapter.inverse.project(adapter.forward.project(geo))
        assert back.equals_2d(geo, tolerance=1e-8)

    def test_utm_to_utm(self):
        zone31 = UtmZone(31)
        zone32 = UtmZone(32)
        geo = Position.lonlat(5.9, 51.7)
        in_31 = UtmProjectionAdapter.geographic_to_utm(zone31).forward.project(geo)
        in_32 = UtmProjectionAdapter.geographic_to_utm(zone32).forward.project(geo)

        adapter = UtmProjectionAdapter.utm_to_utm(zone31, zone32)
        assert adapter.target == zone32.wgs84_crs
        converted = adapter.forward.project(in_31)
        assert converted.kind is CoordinateKind.XY
        assert converted.equals_2d(in_32, tolerance=1e-3)
        assert adapter.inverse.project(converted).equals_2d(in_31, tolerance=1e-3)

    def test_project_coords_matches_project(self):
        forward = UtmProjectionAdapter.geographic_to_utm(UtmZone(31)).forward
        flat = [0.0, 0.0, 2.2945, 48.8582]
        out = forward.project_coords(flat, CoordinateKind.LONLAT)
        assert list(out[2:]) == list(forward.project(Position.lonlat(2.2945, 48.8582)))


class TestComposedProjection:
    def test_composition(self):
        adapter = EllipsoidalProjectionAdapter.geographic_to_geocentric()
        composed = ComposedProjection(adapter.forward, adapter.inverse)
        assert composed.target_kind(CoordinateKind.LONLAT) is (
            CoordinateKind.LONLAT_ELEV
        )
        back = composed.project(Position.lonlat(24.94, 60.17))
        assert back.equals_2d(Position.lonlat(24.94, 60.17), tolerance=1e-8)


class TestProjProjection:
    def test_adapter_crs(self):
        adapter = ProjProjectionAdapter.from_crs("EPSG:4326", "EPSG:3857")
        assert adapter.source == CoordRefSys.EPSG_4326
        assert adapter.target == CoordRefSys.EPSG_3857

    def test_matches_web_mercator(self):
        adapter = ProjProjectionAdapter.from_crs(4326, 3857)
        for lon, lat, x, y in WEB_MERCATOR_DATA[:4]:
            p = adapter.forward.project(Position.lonlat(lon, lat))
            assert p.x == pytest.approx(x, abs=0.01)
            assert p.y == pytest.approx(y, abs=0.01)

    def test_matches_builtin_utm(self):
        proj = ProjProjection.from_crs("EPSG:4326", "EPSG:32631")
        builtin = UtmProjectionAdapter.geographic_to_utm(UtmZone(31)).forward
        geo = Position.lonlat(2.2945, 48.8582)
        assert proj.project(geo).equals_2d(builtin.project(geo), tolerance=1e-3)

    def test_target_kind(self):
        to_geographic = ProjProjection.from_crs("EPSG:3857", "EPSG:4326")
        assert to_geographic.target_kind(CoordinateKind.XYZ) is (
            CoordinateKind.LONLAT_ELEV
        )
        to_projected = ProjProjection.from_crs("EPSG:4326", "EPSG:3857")
        assert to_projected.target_kind(CoordinateKind.LONLAT_M) is CoordinateKind.XYM

    def test_project_coords_keeps_z_and_m(self):
        proj = ProjProjection.from_crs("EPSG:4326", "EPSG:3857")
        flat = [8.8472315, 47.3238447, 100.0, 7.0]
        out = proj.project_coords(flat, CoordinateKind.LONLAT_ELEV_M)
        assert out[0] == pytest.approx(984869.31, abs=0.01)
        assert out[1] == pytest.approx(5995094.90, abs=0.01)
        assert list(out[2:]) == [100.0, 7.0]

    def test_project_coords_empty(self):
        proj = ProjProjection.from_crs("EPSG:4326", "EPSG:3857")
        assert len(proj.project_coords([], CoordinateKind.LONLAT)) == 0

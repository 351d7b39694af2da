"""Tests for ellipsoids, datums and coordinate reference systems."""

import logging

import pytest

from coordkit import (
    AxisOrder,
    BasicCoordRefSysResolver,
    CoordRefSys,
    CoordRefSysResolver,
    Datum,
    Ellipsoid,
    HelmertTransform,
    HistoricalEllipsoids,
    Position,
    WGS84_ELLIPSOID,
)


class _EverythingGeographic(CoordRefSysResolver):
    def normalize_id(self, id):
        return id

    def is_geographic(self, id, wgs84=None, order=None):
        return True

    def axis_order(self, id):
        return AxisOrder.XY

    def epsg(self, id):
        return None

    def __repr__(self):
        return "_EverythingGeographic()"


@pytest.fixture
def restore_registry():
    previous = CoordRefSysResolver.registry()
    yield
    CoordRefSysResolver._registry = previous


class TestEllipsoid:
    def test_wgs84_constants(self):
        e = WGS84_ELLIPSOID
        assert e.a == 6378137.0
        assert e.f == pytest.approx((e.a - e.b) / e.a, rel=1e-9)
        assert e.e2 == pytest.approx(0.00669437999014, rel=1e-10)

    def test_from_a_f(self):
        e = Ellipsoid.from_a_f("test", "Test", 6378388.0, 1.0 / 297.0)
        assert e.b == pytest.approx(HistoricalEllipsoids.INTL1924.b, abs=1e-3)


class TestHelmertTransform:
    def test_identity(self):
        assert HelmertTransform().is_identity
        assert not HelmertTransform(tx=1.0).is_identity

    def test_translation_only(self):
        t = HelmertTransform(1.0, -2.0, 3.0)
        assert t.apply(10.0, 20.0, 30.0) == (11.0, 18.0, 33.0)

    def test_inverse_negates(self):
        t = HelmertTransform(1, 2, 3, 4, 5, 6, 7).inverse()
        assert t == HelmertTransform(-1, -2, -3, -4, -5, -6, -7)


class TestDatum:
    def test_geographic_to_geocentric(self):
        gc = Datum.WGS84.geographic_to_geocentric(Position.lonlat(123.0, 15.0, 140.0))
        assert gc.x == pytest.approx(-3356242.3698167196, abs=1e-6)
        assert gc.y == pytest.approx(5168160.035350793, abs=1e-6)
        assert gc.z == pytest.approx(1640136.37486220, abs=1e-6)

    def test_geocentric_to_geographic(self):
        gc = Position(-3356242.3698167196, 5168160.035350793, 1640136.37486220)
        geo = Datum.WGS84.geocentric_to_geographic(gc)
        assert geo.kind.is_geographic
        assert geo.lon == pytest.approx(123.0, abs=1e-8)
        assert geo.lat == pytest.approx(15.0, abs=1e-8)
        assert geo.elev == pytest.approx(140.0, abs=1e-4)

    def test_same_datum_is_identity(self):
        p = Position.lonlat(10.0, 60.0)
        assert Datum.WGS84.convert_geographic(p, to=Datum.WGS84) is p
        assert Datum.WGS84.helmert_to(Datum.WGS84) == []

    def test_wgs84_to_osgb36(self):
        geo = Position.lonlat(1.0, 53.0, 50.0)
        osgb = Datum.WGS84.convert_geographic(geo, to=Datum.OSGB36)
        # 52°59'58.719"N, 1°00'06.490"E, 3.99m
        assert osgb.lat == pytest.approx(52 + 59 / 60 + 58.719 / 3600, abs=1e-6)
        assert osgb.lon == pytest.approx(1 + 6.490 / 3600, abs=1e-6)
        assert osgb.elev == pytest.approx(3.99, abs=0.01)

    def test_wgs84_to_osgb36_greenwich(self):
        geo = Position.lonlat(-0.00147, 51.47788)
        osgb = Datum.WGS84.convert_geographic(geo, to=Datum.OSGB36)
        assert not osgb.is_3d
        assert osgb.lat == pytest.approx(51.4773, abs=1e-4)
        assert osgb.lon == pytest.approx(0.0001, abs=1e-4)

    def test_round_trip_through_ed50(self):
        geo = Position.lonlat(24.94, 60.17, 25.0, m=7.0)
        ed50 = Datum.WGS84.convert_geographic(geo, to=Datum.ED50)
        back = Datum.ED50.convert_geographic(ed50, to=Datum.WGS84)
        assert ed50.m == 7.0
        assert not ed50.equals_2d(geo, tolerance=1e-5)
        assert back.equals_2d(geo, tolerance=1e-7)
        assert back.elev == pytest.approx(25.0, abs=1e-3)

    def test_helmert_steps(self):
        steps = Datum.ED50.helmert_to(Datum.OSGB36)
        assert steps == [Datum.ED50.transform.inverse(), Datum.OSGB36.transform]

    def test_etrs89_has_no_shift(self):
        assert Datum.ETRS89.helmert_to(Datum.WGS84) == []


class TestCoordRefSys:
    def test_normalized_epsg(self):
        crs = CoordRefSys.normalized("EPSG:4326")
        assert crs.id == "http://www.opengis.net/def/crs/EPSG/0/4326"
        assert crs == CoordRefSys.EPSG_4326
        assert crs.epsg == "EPSG:4326"
        assert crs.epsg_code == 4326
        assert str(crs) == crs.id

    def test_axis_order(self):
        assert CoordRefSys.EPSG_4326.swap_xy
        assert CoordRefSys.EPSG_4326.axis_order is AxisOrder.YX
        assert not CoordRefSys.CRS84.swap_xy
        assert CoordRefSys.EPSG_3857.axis_order is AxisOrder.XY

    def test_is_geographic(self):
        assert CoordRefSys.CRS84.is_geographic
        assert CoordRefSys.CRS84H.is_geographic
        assert CoordRefSys.EPSG_4258.is_geographic
        assert not CoordRefSys.EPSG_3857.is_geographic

    def test_is_geographic_with(self):
        assert CoordRefSys.CRS84.is_geographic_with(wgs84=True)
        assert not CoordRefSys.EPSG_4258.is_geographic_with(wgs84=True)
        assert CoordRefSys.EPSG_4258.is_geographic_with(wgs84=False)
        assert CoordRefSys.EPSG_4326.is_geographic_with(order=AxisOrder.YX)
        assert not CoordRefSys.CRS84.is_geographic_with(order=AxisOrder.YX)

    def test_unknown_id(self):
        crs = CoordRefSys("urn:example:crs:local")
        assert not crs.is_geographic
        assert crs.axis_order is None
        assert crs.epsg is None
        assert crs.epsg_code is None

    def test_register_resolver(self, restore_registry, caplog):
        with caplog.at_level(logging.DEBUG, logger="coordkit.reference"):
            CoordRefSysResolver.register(_EverythingGeographic())
            assert CoordRefSys.EPSG_3857.is_geographic

            CoordRefSysResolver.register(BasicCoordRefSysResolver())
            assert not CoordRefSys.EPSG_3857.is_geographic

        levels = [r.levelname for r in caplog.records]
        assert levels == ["DEBUG", "WARNING"]
        assert "Replacing custom CRS resolver" in caplog.records[1].getMessage()

"""
Projection engine.

A Projection maps positions from one coordinate reference system to another,
either one Position at a time or in batch over a flat coordinate buffer
(project_coords). A ProjectionAdapter pairs a forward and an inverse
projection between two CRSs.

Built-in projections cover geographic/geocentric conversion, datum shifts,
UTM and spherical Web Mercator. ProjProjectionAdapter wraps pyproj for any
other pair of CRSs.

Example:
    >>> adapter = UtmProjectionAdapter.geographic_to_utm(UtmZone(31))
    >>> utm = adapter.forward.project(Position.lonlat(0.0, 0.0))
    >>> round(utm.x, 3), utm.y
    (166021.443, 0.0)
"""

import logging
from abc import ABC, abstractmethod
from array import array
from collections.abc import Sequence
from dataclasses import dataclass

from pyproj import CRS, Transformer

from . import geodesy
from .coords import CoordinateKind, Hemisphere
from .errors import FormatError, InvalidArgumentError
from .position import Position
from .reference import CoordRefSys, Datum

logger = logging.getLogger(__name__)


def _check_flat(flat: Sequence[float], kind: CoordinateKind) -> None:
    if len(flat) % kind.dimension != 0:
        raise InvalidArgumentError(
            f"Coordinate array length {len(flat)} is not a multiple of "
            f"dimension {kind.dimension} ({kind.name})"
        )


class Projection(ABC):
    """Transforms positions from a source to a target coordinate system"""

    @abstractmethod
    def project(self, position: Position) -> Position:
        """Project a single position"""

    @abstractmethod
    def project_coords(
        self, flat: Sequence[float], kind: CoordinateKind
    ) -> array:
        """
        Project every position of a flat coordinate buffer.

        Args:
            flat: Coordinate values laid out according to kind
            kind: Coordinate kind of the input values

        Returns:
            A new array('d') laid out according to target_kind(kind)

        Raises:
            InvalidArgumentError: If len(flat) is not a multiple of the
                dimension of kind
        """

    def target_kind(self, kind: CoordinateKind) -> CoordinateKind:
        """Coordinate kind of the output for input of the given kind"""
        return kind


class PointwiseProjection(Projection):
    """
    Base class for projections defined by a function on (x, y, z).

    Subclasses implement transform(). Measures pass through unchanged, and so
    does z unless the subclass produces z (geocentric output).
    """

    # True/False forces the output family, None keeps the input family
    geographic_target: bool | None = None
    # output always carries z
    produces_z: bool = False

    @abstractmethod
    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        """Transform one coordinate triple (z is 0.0 for 2D input)"""

    def target_kind(self, kind: CoordinateKind) -> CoordinateKind:
        geographic = (
            kind.is_geographic
            if self.geographic_target is None
            else self.geographic_target
        )
        return CoordinateKind.select(
            kind.has_z or self.produces_z, kind.has_m, geographic
        )

    def project(self, position: Position) -> Position:
        target = self.target_kind(position.kind)
        x, y, z = self.transform(position.x, position.y, position.z)
        return Position(
            x,
            y,
            z if target.has_z else None,
            position.opt_m,
            geographic=target.is_geographic,
        )

    def project_coords(
        self, flat: Sequence[float], kind: CoordinateKind
    ) -> array:
        _check_flat(flat, kind)
        target = self.target_kind(kind)
        dim = kind.dimension
        has_z = kind.has_z
        out_z = target.has_z
        m_index = kind.index_of_m
        transform = self.transform
        out = array("d")
        for i in range(0, len(flat), dim):
            x, y, z = transform(flat[i], flat[i + 1], flat[i + 2] if has_z else 0.0)
            out.append(x)
            out.append(y)
            if out_z:
                out.append(z)
            if m_index is not None:
                out.append(flat[i + m_index])
        return out


class ComposedProjection(Projection):
    """Applies first, then second"""

    def __init__(self, first: Projection, second: Projection):
        self.first = first
        self.second = second

    def target_kind(self, kind: CoordinateKind) -> CoordinateKind:
        return self.second.target_kind(self.first.target_kind(kind))

    def project(self, position: Position) -> Position:
        return self.second.project(self.first.project(position))

    def project_coords(
        self, flat: Sequence[float], kind: CoordinateKind
    ) -> array:
        middle = self.first.project_coords(flat, kind)
        return self.second.project_coords(middle, self.first.target_kind(kind))


class GeographicToGeocentric(PointwiseProjection):
    """Geographic lon/lat/elev to geocentric x/y/z on one datum"""

    geographic_target = False
    produces_z = True

    def __init__(self, datum: Datum = Datum.WGS84):
        self.datum = datum

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        return geodesy.geographic_to_geocentric(x, y, z, self.datum.ellipsoid)


class GeocentricToGeographic(PointwiseProjection):
    """Geocentric x/y/z to geographic lon/lat/elev on one datum"""

    geographic_target = True

    def __init__(self, datum: Datum = Datum.WGS84):
        self.datum = datum

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        return geodesy.geocentric_to_geographic(x, y, z, self.datum.ellipsoid)


class GeocentricDatumShift(PointwiseProjection):
    """Helmert shift of geocentric x/y/z between two datums"""

    produces_z = True

    def __init__(self, source: Datum, target: Datum):
        self.source = source
        self.target = target
        self._steps = source.helmert_to(target)

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        for step in self._steps:
            x, y, z = step.apply(x, y, z)
        return x, y, z


class GeographicDatumShift(PointwiseProjection):
    """
    Geographic lon/lat/elev on source datum to lon/lat/elev on target datum.

    Composes geographic to geocentric, the Helmert shift and geocentric to
    geographic. When both datums are equal, coordinates are returned as is.
    """

    geographic_target = True

    def __init__(self, source: Datum, target: Datum):
        self.source = source
        self.target = target
        self._steps = source.helmert_to(target)

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        if self.source == self.target:
            return x, y, z
        gx, gy, gz = geodesy.geographic_to_geocentric(
            x, y, z, self.source.ellipsoid
        )
        for step in self._steps:
            gx, gy, gz = step.apply(gx, gy, gz)
        return geodesy.geocentric_to_geographic(gx, gy, gz, self.target.ellipsoid)


@dataclass(frozen=True)
class UtmZone:
    """
    A UTM longitude zone (1-60) and hemisphere.

    Raises:
        InvalidArgumentError: If zone is outside 1-60
    """

    zone: int
    hemisphere: Hemisphere = Hemisphere.NORTH

    def __post_init__(self):
        geodesy.check_utm_zone(self.zone)

    @classmethod
    def parse(cls, text: str) -> "UtmZone":
        """
        Parse a zone such as "31N" or "33S".

        Raises:
            FormatError: If text is not a zone number followed by N or S
        """
        value = text.strip().upper()
        if len(value) < 2 or not value[:-1].isdigit():
            raise FormatError("Invalid UTM zone", text)
        try:
            return cls(int(value[:-1]), Hemisphere.from_symbol(value[-1]))
        except InvalidArgumentError:
            raise FormatError("Invalid UTM zone", text) from None

    @classmethod
    def for_position(cls, position: Position) -> "UtmZone":
        """Standard zone containing a geographic position"""
        zone, hemisphere = geodesy.utm_zone_for(position.lon, position.lat)
        return cls(zone, hemisphere)

    @property
    def central_meridian(self) -> float:
        return geodesy.utm_central_meridian(self.zone)

    @property
    def wgs84_crs(self) -> CoordRefSys:
        """The EPSG CRS of this zone on WGS84 (EPSG:326zz or EPSG:327zz)"""
        base = 32600 if self.hemisphere is Hemisphere.NORTH else 32700
        return CoordRefSys.normalized(f"EPSG:{base + self.zone}")

    def __str__(self) -> str:
        return f"{self.zone}{self.hemisphere.value}"


def utm_zone_for(lon: float, lat: float) -> UtmZone:
    """Standard UTM zone for a longitude and latitude in degrees"""
    zone, hemisphere = geodesy.utm_zone_for(lon, lat)
    return UtmZone(zone, hemisphere)


class GeographicToUtm(PointwiseProjection):
    """
    Geographic lon/lat to UTM easting/northing in a fixed zone.

    Longitudes outside the zone are projected as well, giving increasingly
    distorted values away from the central meridian.
    """

    geographic_target = False

    def __init__(self, zone: UtmZone, datum: Datum = Datum.WGS84):
        self.zone = zone
        self.datum = datum

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        easting, northing, _, _ = geodesy.geographic_to_utm(
            x, y, self.zone.zone, self.zone.hemisphere, self.datum.ellipsoid
        )
        return easting, northing, z


class UtmToGeographic(PointwiseProjection):
    """UTM easting/northing in a fixed zone to geographic lon/lat"""

    geographic_target = True

    def __init__(self, zone: UtmZone, datum: Datum = Datum.WGS84):
        self.zone = zone
        self.datum = datum

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        lon, lat, _, _ = geodesy.utm_to_geographic(
            x, y, self.zone.zone, self.zone.hemisphere, self.datum.ellipsoid
        )
        return lon, lat, z


class LonLatToWebMercator(PointwiseProjection):
    """
    WGS84 lon/lat to spherical Web Mercator (EPSG:3857).

    Latitudes are not clamped: |lat| >= 90 gives an infinite y.
    """

    geographic_target = False

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        mx, my = geodesy.lonlat_to_web_mercator(x, y)
        return mx, my, z


class WebMercatorToLonLat(PointwiseProjection):
    """Spherical Web Mercator (EPSG:3857) to WGS84 lon/lat"""

    geographic_target = True

    def transform(self, x: float, y: float, z: float) -> tuple[float, float, float]:
        lon, lat = geodesy.web_mercator_to_lonlat(x, y)
        return lon, lat, z


class ProjProjection(Projection):
    """
    A projection backed by a pyproj Transformer.

    The transformer must be created with always_xy=True so that x (or
    longitude) always comes first. Only x and y are transformed; z and m pass
    through unchanged.
    """

    def __init__(self, transformer: Transformer):
        self.transformer = transformer
        target_crs = transformer.target_crs
        self._geographic = bool(target_crs is not None and target_crs.is_geographic)

    @classmethod
    def from_crs(
        cls, source: str | int | CRS, target: str | int | CRS
    ) -> "ProjProjection":
        logger.debug("Creating pyproj transformer %s -> %s", source, target)
        return cls(Transformer.from_crs(source, target, always_xy=True))

    def target_kind(self, kind: CoordinateKind) -> CoordinateKind:
        return CoordinateKind.select(kind.has_z, kind.has_m, self._geographic)

    def project(self, position: Position) -> Position:
        x, y = self.transformer.transform(position.x, position.y)
        return Position(
            x, y, position.opt_z, position.opt_m, geographic=self._geographic
        )

    def project_coords(
        self, flat: Sequence[float], kind: CoordinateKind
    ) -> array:
        _check_flat(flat, kind)
        dim = kind.dimension
        out = array("d", flat)
        if len(out) == 0:
            return out
        xs, ys = self.transformer.transform(list(out[0::dim]), list(out[1::dim]))
        out[0::dim] = array("d", xs)
        out[1::dim] = array("d", ys)
        return out


@dataclass(frozen=True)
class ProjectionAdapter:
    """
    A pair of projections between two coordinate reference systems.

    Attributes:
        source: CRS of forward input (None if it has no registered id)
        target: CRS of forward output (None if it has no registered id)
        forward: Projection from source to target
        inverse: Projection from target to source
    """

    source: CoordRefSys | None
    target: CoordRefSys | None
    forward: Projection
    inverse: Projection

    def reversed(self) -> "ProjectionAdapter":
        """The adapter projecting from target to source"""
        return ProjectionAdapter(self.target, self.source, self.inverse, self.forward)


def _geographic_crs(datum: Datum) -> CoordRefSys | None:
    if datum == Datum.WGS84:
        return CoordRefSys.CRS84
    if datum == Datum.ETRS89:
        return CoordRefSys.EPSG_4258
    return None


class EllipsoidalProjectionAdapter(ProjectionAdapter):
    """Adapters between geographic and geocentric coordinates on datums"""

    @classmethod
    def geographic_to_geocentric(
        cls,
        datum: Datum = Datum.WGS84,
        source: CoordRefSys | None = None,
        target: CoordRefSys | None = None,
    ) -> "EllipsoidalProjectionAdapter":
        """
        Geographic lon/lat/elev to geocentric x/y/z on the same datum.

        Without explicit CRSs, WGS84 uses CRS84 and EPSG:4978.
        """
        if datum == Datum.WGS84:
            source = source or CoordRefSys.CRS84
            target = target or CoordRefSys.EPSG_4978
        return cls(
            source or _geographic_crs(datum),
            target,
            GeographicToGeocentric(datum),
            GeocentricToGeographic(datum),
        )

    @classmethod
    def geographic_to_geographic(
        cls,
        source_datum: Datum,
        target_datum: Datum,
        source: CoordRefSys | None = None,
        target: CoordRefSys | None = None,
    ) -> "EllipsoidalProjectionAdapter":
        """
        Datum shift between geographic coordinates.

        Example:
            >>> adapter = EllipsoidalProjectionAdapter.geographic_to_geographic(
            ...     Datum.WGS84, Datum.OSGB36
            ... )
            >>> osgb = adapter.forward.project(Position.lonlat(-0.00147, 51.47788))
        """
        return cls(
            source or _geographic_crs(source_datum),
            target or _geographic_crs(target_datum),
            GeographicDatumShift(source_datum, target_datum),
            GeographicDatumShift(target_datum, source_datum),
        )

    @classmethod
    def geocentric_to_geocentric(
        cls,
        source_datum: Datum,
        target_datum: Datum,
        source: CoordRefSys | None = None,
        target: CoordRefSys | None = None,
    ) -> "EllipsoidalProjectionAdapter":
        """Helmert datum shift between geocentric coordinates"""
        return cls(
            source,
            target,
            GeocentricDatumShift(source_datum, target_datum),
            GeocentricDatumShift(target_datum, source_datum),
        )


class UtmProjectionAdapter(ProjectionAdapter):
    """Adapters between geographic and UTM projected coordinates"""

    @classmethod
    def geographic_to_utm(
        cls,
        zone: UtmZone,
        datum: Datum = Datum.WGS84,
        source: CoordRefSys | None = None,
        target: CoordRefSys | None = None,
    ) -> "UtmProjectionAdapter":
        """
        Geographic lon/lat to UTM easting/northing, both on datum.

        Without explicit CRSs, WGS84 uses CRS84 and EPSG:326zz/327zz.
        """
        if target is None and datum == Datum.WGS84:
            target = zone.wgs84_crs
        return cls(
            source or _geographic_crs(datum),
            target,
            GeographicToUtm(zone, datum),
            UtmToGeographic(zone, datum),
        )

    @classmethod
    def utm_to_utm(
        cls,
        source_zone: UtmZone,
        target_zone: UtmZone,
        source_datum: Datum = Datum.WGS84,
        target_datum: Datum = Datum.WGS84,
    ) -> "UtmProjectionAdapter":
        """UTM coordinates in one zone and datum to another zone and datum"""
        to_geographic = UtmToGeographic(source_zone, source_datum)
        shift = GeographicDatumShift(source_datum, target_datum)
        to_utm = GeographicToUtm(target_zone, target_datum)
        back_geographic = UtmToGeographic(target_zone, target_datum)
        back_shift = GeographicDatumShift(target_datum, source_datum)
        back_utm = GeographicToUtm(source_zone, source_datum)
        return cls(
            source_zone.wgs84_crs if source_datum == Datum.WGS84 else None,
            target_zone.wgs84_crs if target_datum == Datum.WGS84 else None,
            ComposedProjection(ComposedProjection(to_geographic, shift), to_utm),
            ComposedProjection(
                ComposedProjection(back_geographic, back_shift), back_utm
            ),
        )


class WebMercatorProjectionAdapter(ProjectionAdapter):
    """WGS84 lon/lat to and from spherical Web Mercator"""

    @classmethod
    def wgs84(cls) -> "WebMercatorProjectionAdapter":
        return cls(
            CoordRefSys.CRS84,
            CoordRefSys.EPSG_3857,
            LonLatToWebMercator(),
            WebMercatorToLonLat(),
        )


WGS84_TO_WEB_MERCATOR = WebMercatorProjectionAdapter.wgs84()


class ProjProjectionAdapter(ProjectionAdapter):
    """Adapters backed by pyproj for arbitrary CRS pairs"""

    @classmethod
    def from_crs(
        cls, source: str | int | CRS, target: str | int | CRS
    ) -> "ProjProjectionAdapter":
        """
        Create an adapter between two CRSs known to PROJ.

        Args:
            source: Source CRS (EPSG code, "EPSG:n" string, WKT or CRS)
            target: Target CRS

        Example:
            >>> adapter = ProjProjectionAdapter.from_crs("EPSG:4326", "EPSG:3857")
        """
        return cls(
            _crs_ref(source),
            _crs_ref(target),
            ProjProjection.from_crs(source, target),
            ProjProjection.from_crs(target, source),
        )


def _crs_ref(crs: str | int | CRS) -> CoordRefSys | None:
    if isinstance(crs, int):
        return CoordRefSys.normalized(f"EPSG:{crs}")
    if isinstance(crs, str):
        if crs[:5].upper() == "EPSG:":
            return CoordRefSys.normalized(f"EPSG:{crs[5:]}")
        if crs.startswith("http"):
            return CoordRefSys(crs)
    authority = CRS.from_user_input(crs).to_authority()
    if authority is not None and authority[0] == "EPSG":
        return CoordRefSys.normalized(f"EPSG:{authority[1]}")
    return None

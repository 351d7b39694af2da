"""
Reference ellipsoids, geodetic datums and coordinate reference systems.

The CRS registry is the one piece of process-wide mutable state in coordkit.
Install a custom resolver with CoordRefSysResolver.register() once at program
start-up, before any other thread reads it; reads are not synchronized.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from . import geodesy
from .coords import AxisOrder
from .geodesy import HelmertTransform
from .position import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ellipsoid:
    """
    A reference ellipsoid.

    The flattening f is stored alongside a and b; f == (a - b) / a holds up
    to floating point rounding of the published constants.

    Attributes:
        id: Short name (e.g. "WGS84")
        name: Descriptive name
        a: Semi-major axis (equatorial radius) in metres
        b: Semi-minor axis (polar radius) in metres
        f: Flattening
    """

    id: str
    name: str
    a: float
    b: float
    f: float

    @classmethod
    def from_a_f(cls, id: str, name: str, a: float, f: float) -> "Ellipsoid":
        return cls(id=id, name=name, a=a, b=a * (1.0 - f), f=f)

    @property
    def e2(self) -> float:
        """First eccentricity squared"""
        return 2.0 * self.f - self.f * self.f


WGS84_ELLIPSOID = Ellipsoid(
    "WGS84", "WGS 84", 6378137.0, 6356752.314245, 1.0 / 298.257223563
)
GRS80_ELLIPSOID = Ellipsoid(
    "GRS80", "GRS 1980(IUGG, 1980)", 6378137.0, 6356752.314140, 1.0 / 298.257222101
)


class HistoricalEllipsoids:
    """Ellipsoids used by historical datums"""

    AIRY1830 = Ellipsoid(
        "airy", "Airy 1830", 6377563.396, 6356256.909, 1.0 / 299.3249646
    )
    AIRY_MODIFIED = Ellipsoid(
        "mod_airy", "Modified Airy", 6377340.189, 6356034.448, 1.0 / 299.3249646
    )
    BESSEL1841 = Ellipsoid(
        "bessel", "Bessel 1841", 6377397.155, 6356078.962822, 1.0 / 299.15281285
    )
    CLARKE1866 = Ellipsoid(
        "clrk66", "Clarke 1866", 6378206.4, 6356583.8, 1.0 / 294.978698214
    )
    CLARKE1880_IGN = Ellipsoid(
        "clrk80", "Clarke 1880 mod.", 6378249.2, 6356515.0, 1.0 / 293.466021294
    )
    INTL1924 = Ellipsoid(
        "intl", "International 1924 (Hayford)", 6378388.0, 6356911.946128, 1.0 / 297.0
    )
    WGS72 = Ellipsoid("WGS72", "WGS 72", 6378135.0, 6356750.52, 1.0 / 298.26)


@dataclass(frozen=True)
class Datum:
    """
    A geodetic datum: an ellipsoid plus a Helmert transform from WGS84.

    A transform of None means the datum is coincident with WGS84 (no shift,
    though the ellipsoid may differ).

    Example:
        >>> p = Position.lonlat(-0.00147, 51.47788)
        >>> Datum.WGS84.convert_geographic(p, to=Datum.OSGB36)
    """

    ellipsoid: Ellipsoid
    transform: HelmertTransform | None = None
    name: str = field(default="", compare=False)

    def geographic_to_geocentric(self, position: Position) -> Position:
        """Geographic lon/lat/elev on this datum to geocentric x/y/z"""
        x, y, z = geodesy.geographic_to_geocentric(
            position.x, position.y, position.z, self.ellipsoid
        )
        return Position(x, y, z, position.opt_m)

    def geocentric_to_geographic(
        self, position: Position, omit_elev: bool = False
    ) -> Position:
        """Geocentric x/y/z to geographic lon/lat/elev on this datum"""
        lon, lat, elev = geodesy.geocentric_to_geographic(
            position.x, position.y, position.z, self.ellipsoid
        )
        return Position(
            lon, lat, None if omit_elev else elev, position.opt_m, geographic=True
        )

    def helmert_to(self, target: "Datum") -> list[HelmertTransform]:
        """
        Transforms to apply, in order, to go from this datum to target.

        Empty when both datums share the same (or no) shift from WGS84.
        """
        if self == target:
            return []
        steps: list[HelmertTransform] = []
        if self.transform is not None and not self.transform.is_identity:
            steps.append(self.transform.inverse())
        if target.transform is not None and not target.transform.is_identity:
            steps.append(target.transform)
        return steps

    def convert_geocentric_cartesian(
        self, position: Position, to: "Datum"
    ) -> Position:
        """
        Convert a geocentric position from this datum to the target datum.

        Returns position itself (bit-identical) when target == self.
        """
        if to == self:
            return position
        x, y, z = position.x, position.y, position.z
        for step in self.helmert_to(to):
            x, y, z = step.apply(x, y, z)
        return Position(x, y, z, position.opt_m)

    def convert_geographic(self, position: Position, to: "Datum") -> Position:
        """
        Convert a geographic position from this datum to the target datum.

        Elevation is kept only if position is 3D; m passes through.
        """
        if to == self:
            return position
        geocentric = self.geographic_to_geocentric(position)
        shifted = self.convert_geocentric_cartesian(geocentric, to=to)
        return to.geocentric_to_geographic(shifted, omit_elev=not position.is_3d)

    # built-in datums, assigned below the class body
    WGS84: ClassVar["Datum"]
    ETRS89: ClassVar["Datum"]
    ED50: ClassVar["Datum"]
    IRL1975: ClassVar["Datum"]
    NAD27: ClassVar["Datum"]
    NAD83: ClassVar["Datum"]
    NTF: ClassVar["Datum"]
    OSGB36: ClassVar["Datum"]
    POTSDAM: ClassVar["Datum"]
    TOKYO_JAPAN: ClassVar["Datum"]
    WGS72: ClassVar["Datum"]


Datum.WGS84 = Datum(WGS84_ELLIPSOID, name="WGS84")
# ETRS89 coincides with WGS84 at the one metre level
Datum.ETRS89 = Datum(GRS80_ELLIPSOID, name="ETRS89")
Datum.ED50 = Datum(
    HistoricalEllipsoids.INTL1924,
    HelmertTransform(89.5, 93.8, 123.1, -1.2, 0.0, 0.0, 0.156),
    name="ED50",
)
Datum.IRL1975 = Datum(
    HistoricalEllipsoids.AIRY_MODIFIED,
    HelmertTransform(-482.530, 130.596, -564.557, -8.150, 1.042, 0.214, 0.631),
    name="Irl1975",
)
Datum.NAD27 = Datum(
    HistoricalEllipsoids.CLARKE1866,
    HelmertTransform(8.0, -160.0, -176.0),
    name="NAD27",
)
Datum.NAD83 = Datum(
    GRS80_ELLIPSOID,
    HelmertTransform(0.9956, -1.9103, -0.5215, -0.00062, 0.025915, 0.009426, 0.011599),
    name="NAD83",
)
Datum.NTF = Datum(
    HistoricalEllipsoids.CLARKE1880_IGN,
    HelmertTransform(168.0, 60.0, -320.0),
    name="NTF",
)
Datum.OSGB36 = Datum(
    HistoricalEllipsoids.AIRY1830,
    HelmertTransform(-446.448, 125.157, -542.060, 20.4894, -0.1502, -0.2470, -0.8421),
    name="OSGB36",
)
Datum.POTSDAM = Datum(
    HistoricalEllipsoids.BESSEL1841,
    HelmertTransform(-582.0, -105.0, -414.0, -8.3, 1.04, 0.35, -3.08),
    name="Potsdam",
)
Datum.TOKYO_JAPAN = Datum(
    HistoricalEllipsoids.BESSEL1841,
    HelmertTransform(148.0, -507.0, -685.0),
    name="TokyoJapan",
)
Datum.WGS72 = Datum(
    HistoricalEllipsoids.WGS72,
    HelmertTransform(0.0, 0.0, -4.5, -0.22, 0.0, 0.0, 0.554),
    name="WGS72",
)


EPSG_PREFIX = "EPSG:"
OPENGIS_EPSG_PREFIX = "http://www.opengis.net/def/crs/EPSG/0/"
CRS84_ID = "http://www.opengis.net/def/crs/OGC/1.3/CRS84"
CRS84H_ID = "http://www.opengis.net/def/crs/OGC/1.3/CRS84h"


def _parse_code(id: str, prefix: str) -> int | None:
    if id.startswith(prefix) and len(id) > len(prefix):
        try:
            return int(id[len(prefix) :])
        except ValueError:
            return None
    return None


class CoordRefSysResolver(ABC):
    """
    Resolves metadata for coordinate reference system identifiers.

    The active resolver is a process-wide slot read by CoordRefSys. Replace
    it with register() at start-up only.
    """

    _registry: ClassVar["CoordRefSysResolver"]

    @abstractmethod
    def normalize_id(self, id: str) -> str:
        """Normalize an identifier (e.g. "EPSG:4326" to its URI form)"""

    @abstractmethod
    def is_geographic(
        self, id: str, wgs84: bool | None = None, order: AxisOrder | None = None
    ) -> bool:
        """
        True if id is a geographic CRS.

        Args:
            wgs84: If set, also require (True) or exclude (False) WGS84
            order: If set, also require this axis order
        """

    @abstractmethod
    def axis_order(self, id: str) -> AxisOrder | None:
        """Axis order of id, or None if unknown"""

    @abstractmethod
    def epsg(self, id: str) -> str | None:
        """The "EPSG:<code>" form of id, or None if not an EPSG CRS"""

    @classmethod
    def registry(cls) -> "CoordRefSysResolver":
        """The resolver currently installed"""
        return cls._registry

    @classmethod
    def register(cls, resolver: "CoordRefSysResolver") -> None:
        """
        Install resolver as the process-wide registry.

        Must happen before any concurrent reads (e.g. at program start-up).
        """
        previous = cls._registry
        if not isinstance(previous, BasicCoordRefSysResolver):
            logger.warning(
                "Replacing custom CRS resolver %r with %r", previous, resolver
            )
        else:
            logger.debug("Installing CRS resolver %r", resolver)
        cls._registry = resolver


class BasicCoordRefSysResolver(CoordRefSysResolver):
    """Default resolver knowing the common WGS84, ETRS89 and Mercator CRSs"""

    _GEOGRAPHIC = {
        CRS84_ID: True,
        CRS84H_ID: True,
        OPENGIS_EPSG_PREFIX + "4326": True,
        OPENGIS_EPSG_PREFIX + "4258": False,  # ETRS89
    }
    _AXIS_ORDER = {
        CRS84_ID: AxisOrder.XY,
        CRS84H_ID: AxisOrder.XY,
        OPENGIS_EPSG_PREFIX + "4326": AxisOrder.YX,
        OPENGIS_EPSG_PREFIX + "4258": AxisOrder.YX,
        OPENGIS_EPSG_PREFIX + "3857": AxisOrder.XY,
        OPENGIS_EPSG_PREFIX + "3395": AxisOrder.XY,
    }

    def normalize_id(self, id: str) -> str:
        code = _parse_code(id, EPSG_PREFIX)
        if code is not None:
            return f"{OPENGIS_EPSG_PREFIX}{code}"
        return id

    def is_geographic(
        self, id: str, wgs84: bool | None = None, order: AxisOrder | None = None
    ) -> bool:
        is_wgs84 = self._GEOGRAPHIC.get(id)
        if is_wgs84 is None:
            return False
        if wgs84 is not None and wgs84 != is_wgs84:
            return False
        if order is not None:
            return order == self.axis_order(id)
        return True

    def axis_order(self, id: str) -> AxisOrder | None:
        return self._AXIS_ORDER.get(id)

    def epsg(self, id: str) -> str | None:
        if _parse_code(id, EPSG_PREFIX) is not None:
            return id
        code = _parse_code(id, OPENGIS_EPSG_PREFIX)
        if code is not None:
            return f"{EPSG_PREFIX}{code}"
        return None

    def __repr__(self) -> str:
        return "BasicCoordRefSysResolver()"


CoordRefSysResolver._registry = BasicCoordRefSysResolver()


@dataclass(frozen=True)
class CoordRefSys:
    """
    A coordinate reference system identified by a (normalized) string id.

    Metadata is resolved through the active CoordRefSysResolver.

    Example:
        >>> crs = CoordRefSys.normalized("EPSG:4326")
        >>> crs.id
        'http://www.opengis.net/def/crs/EPSG/0/4326'
        >>> crs.swap_xy
        True
    """

    id: str

    @classmethod
    def normalized(cls, id: str) -> "CoordRefSys":
        return cls(CoordRefSysResolver.registry().normalize_id(id))

    @property
    def is_geographic(self) -> bool:
        return CoordRefSysResolver.registry().is_geographic(self.id)

    def is_geographic_with(
        self, wgs84: bool | None = None, order: AxisOrder | None = None
    ) -> bool:
        return CoordRefSysResolver.registry().is_geographic(
            self.id, wgs84=wgs84, order=order
        )

    @property
    def axis_order(self) -> AxisOrder | None:
        return CoordRefSysResolver.registry().axis_order(self.id)

    @property
    def swap_xy(self) -> bool:
        """True if coordinates of this CRS are given y (latitude) first"""
        return self.axis_order is AxisOrder.YX

    @property
    def epsg(self) -> str | None:
        return CoordRefSysResolver.registry().epsg(self.id)

    @property
    def epsg_code(self) -> int | None:
        epsg = self.epsg
        return int(epsg[len(EPSG_PREFIX) :]) if epsg is not None else None

    def __str__(self) -> str:
        return self.id

    CRS84: ClassVar["CoordRefSys"]
    CRS84H: ClassVar["CoordRefSys"]
    EPSG_4326: ClassVar["CoordRefSys"]
    EPSG_4258: ClassVar["CoordRefSys"]
    EPSG_3857: ClassVar["CoordRefSys"]
    EPSG_3395: ClassVar["CoordRefSys"]
    EPSG_4978: ClassVar["CoordRefSys"]


CoordRefSys.CRS84 = CoordRefSys(CRS84_ID)
CoordRefSys.CRS84H = CoordRefSys(CRS84H_ID)
CoordRefSys.EPSG_4326 = CoordRefSys(OPENGIS_EPSG_PREFIX + "4326")
CoordRefSys.EPSG_4258 = CoordRefSys(OPENGIS_EPSG_PREFIX + "4258")
CoordRefSys.EPSG_3857 = CoordRefSys(OPENGIS_EPSG_PREFIX + "3857")
CoordRefSys.EPSG_3395 = CoordRefSys(OPENGIS_EPSG_PREFIX + "3395")
CoordRefSys.EPSG_4978 = CoordRefSys(OPENGIS_EPSG_PREFIX + "4978")

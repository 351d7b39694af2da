"""
coordkit

Coordinates, projections, polygon algorithms, WKT and WKB for Python.

The library keeps coordinates in flat double arrays (PositionSeries), projects
them between geographic, geocentric, UTM and Web Mercator coordinates (or any
CRS pair through pyproj), and reads and writes well-known text and binary.

Example:
    >>> from coordkit import Position, decode_wkt
    >>>
    >>> polygon = decode_wkt("POLYGON((0 0,4 0,4 4,0 4,0 0))")
    >>> polygon.centroid()
    Position(2.0, 2.0)
    >>> polygon.contains_point(Position(1, 1))
    True

CLI Example:
    $ coordkit wkt normalize "point z (1 2 3)"
    $ coordkit polylabel "POLYGON((0 0,4 0,4 4,0 4,0 0))" --precision 0.1
"""

__version__ = "0.1.0"

from .errors import (
    CoordkitError,
    FormatError,
    InvalidArgumentError,
)

from .config import DEFAULTS, Defaults

from .coords import (
    AxisOrder,
    CoordinateKind,
    GeometryKind,
    Hemisphere,
)

from .position import Position, PositionSeries
from .box import Box

from .reference import (
    CoordRefSys,
    CoordRefSysResolver,
    BasicCoordRefSysResolver,
    Datum,
    Ellipsoid,
    HistoricalEllipsoids,
    WGS84_ELLIPSOID,
    GRS80_ELLIPSOID,
)
from .geodesy import HelmertTransform

from .projections import (
    Projection,
    ProjectionAdapter,
    EllipsoidalProjectionAdapter,
    UtmProjectionAdapter,
    WebMercatorProjectionAdapter,
    ProjProjection,
    ProjProjectionAdapter,
    UtmZone,
    WGS84_TO_WEB_MERCATOR,
    utm_zone_for,
)

from .areal import (
    DistancedPosition,
    centroid,
    is_point_in_polygon,
    is_point_in_ring,
    polylabel,
    signed_area,
)

from .geometry import (
    Geometry,
    Point,
    LineString,
    Polygon,
    MultiPoint,
    MultiLineString,
    MultiPolygon,
    GeometryCollection,
)

from .builder import GeometryBuilder, GeometryCollector

from .wkt import (
    WktDecoder,
    WktEncoder,
    decode_wkt,
    encode_wkt,
    parse_coord_kind,
)

from .wkb import (
    WkbDecoder,
    WkbEncoder,
    decode_wkb,
    encode_wkb,
)

from .converters import (
    ShapelyBuilder,
    from_shapely,
    reproject_geometry,
    to_shapely,
)

__all__ = [
    # Version
    "__version__",
    # Errors and defaults
    "CoordkitError",
    "FormatError",
    "InvalidArgumentError",
    "DEFAULTS",
    "Defaults",
    # Coordinate types
    "AxisOrder",
    "CoordinateKind",
    "GeometryKind",
    "Hemisphere",
    "Position",
    "PositionSeries",
    "Box",
    # Reference systems
    "CoordRefSys",
    "CoordRefSysResolver",
    "BasicCoordRefSysResolver",
    "Datum",
    "Ellipsoid",
    "HistoricalEllipsoids",
    "WGS84_ELLIPSOID",
    "GRS80_ELLIPSOID",
    "HelmertTransform",
    # Projections
    "Projection",
    "ProjectionAdapter",
    "EllipsoidalProjectionAdapter",
    "UtmProjectionAdapter",
    "WebMercatorProjectionAdapter",
    "ProjProjection",
    "ProjProjectionAdapter",
    "UtmZone",
    "WGS84_TO_WEB_MERCATOR",
    "utm_zone_for",
    # Areal algorithms
    "DistancedPosition",
    "centroid",
    "is_point_in_polygon",
    "is_point_in_ring",
    "polylabel",
    "signed_area",
    # Geometry types
    "Geometry",
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
    "GeometryBuilder",
    "GeometryCollector",
    # WKT
    "WktDecoder",
    "WktEncoder",
    "decode_wkt",
    "encode_wkt",
    "parse_coord_kind",
    # WKB
    "WkbDecoder",
    "WkbEncoder",
    "decode_wkb",
    "encode_wkb",
    # Converters
    "ShapelyBuilder",
    "from_shapely",
    "reproject_geometry",
    "to_shapely",
]

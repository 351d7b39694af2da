"""
Coordinate and geometry type codes.

CoordinateKind describes the shape of a coordinate tuple (which axes are
present and whether the values are geographic), GeometryKind the seven simple
feature geometry types.
"""

from enum import Enum, IntEnum

from .errors import FormatError

# Extended WKB (PostGIS) dimensionality and SRID flags
EWKB_Z_FLAG = 0x80000000
EWKB_M_FLAG = 0x40000000
EWKB_SRID_FLAG = 0x20000000


class CoordinateKind(Enum):
    """
    The eight supported coordinate shapes.

    Each member carries static metadata:
        dimension: Number of values per position (2-4)
        spatial_dimension: 2 or 3 (3 iff has_z)
        has_z: Whether a z (or elevation) value is present
        has_m: Whether a measure value is present
        is_geographic: Whether x/y are longitude/latitude in degrees
        wkt_suffix: Dimensionality marker written after the WKT keyword
        wkb_offset: Offset added to the WKB geometry type code (ISO WKB)
    """

    # name = (dimension, has_z, has_m, is_geographic)
    XY = (2, False, False, False)
    XYZ = (3, True, False, False)
    XYM = (3, False, True, False)
    XYZM = (4, True, True, False)
    LONLAT = (2, False, False, True)
    LONLAT_ELEV = (3, True, False, True)
    LONLAT_M = (3, False, True, True)
    LONLAT_ELEV_M = (4, True, True, True)

    def __init__(
        self, dimension: int, has_z: bool, has_m: bool, is_geographic: bool
    ):
        self.dimension = dimension
        self.has_z = has_z
        self.has_m = has_m
        self.is_geographic = is_geographic
        self.spatial_dimension = 3 if has_z else 2

    @property
    def wkt_suffix(self) -> str | None:
        if self.has_z and self.has_m:
            return "ZM"
        if self.has_z:
            return "Z"
        if self.has_m:
            return "M"
        return None

    @property
    def wkb_offset(self) -> int:
        return (1000 if self.has_z else 0) + (2000 if self.has_m else 0)

    @property
    def index_of_z(self) -> int | None:
        return 2 if self.has_z else None

    @property
    def index_of_m(self) -> int | None:
        if not self.has_m:
            return None
        return 3 if self.has_z else 2

    @classmethod
    def select(
        cls, has_z: bool = False, has_m: bool = False, geographic: bool = False
    ) -> "CoordinateKind":
        """Select the kind with the given axes"""
        for kind in cls:
            if (
                kind.has_z == has_z
                and kind.has_m == has_m
                and kind.is_geographic == geographic
            ):
                return kind
        raise AssertionError("unreachable")

    @classmethod
    def from_dimension(
        cls, dimension: int, geographic: bool = False, z_for_dim3: bool = True
    ) -> "CoordinateKind":
        """
        Resolve a kind from the number of values per position.

        A dimension of 3 is ambiguous; it is read as XYZ unless z_for_dim3
        is False, in which case it is read as XYM.

        Raises:
            FormatError: If dimension is not 2, 3 or 4
        """
        if dimension == 2:
            return cls.select(geographic=geographic)
        if dimension == 3:
            return cls.select(
                has_z=z_for_dim3, has_m=not z_for_dim3, geographic=geographic
            )
        if dimension == 4:
            return cls.select(has_z=True, has_m=True, geographic=geographic)
        raise FormatError(f"Invalid coordinate dimension {dimension}")

    @classmethod
    def from_wkb_type(cls, type_code: int) -> "CoordinateKind":
        """
        Resolve the coordinate kind from a WKB geometry type code.

        Understands both ISO offsets (1000/2000/3000) and EWKB flag bits.
        """
        code = type_code & 0xFFFFFF
        thousands = (code // 1000) * 1000
        if thousands == 0:
            return cls.select(
                has_z=bool(type_code & EWKB_Z_FLAG),
                has_m=bool(type_code & EWKB_M_FLAG),
            )
        if thousands == 1000:
            return cls.XYZ
        if thousands == 2000:
            return cls.XYM
        if thousands == 3000:
            return cls.XYZM
        raise FormatError(f"Invalid WKB type code {type_code}")

    def to_geographic(self) -> "CoordinateKind":
        return self.select(self.has_z, self.has_m, geographic=True)

    def to_projected(self) -> "CoordinateKind":
        return self.select(self.has_z, self.has_m, geographic=False)


class GeometryKind(IntEnum):
    """Simple feature geometry types with their WKB codes"""

    POINT = 1
    LINESTRING = 2
    POLYGON = 3
    MULTIPOINT = 4
    MULTILINESTRING = 5
    MULTIPOLYGON = 6
    GEOMETRYCOLLECTION = 7

    @property
    def wkt_keyword(self) -> str:
        return self.name

    def wkb_code(self, coord_kind: CoordinateKind) -> int:
        """ISO WKB type code for this geometry with the given coordinates"""
        return int(self) + coord_kind.wkb_offset

    @classmethod
    def from_wkb_type(cls, type_code: int) -> "GeometryKind":
        """
        Resolve the geometry type from an ISO or EWKB geometry type code.

        Raises:
            FormatError: If the code names no simple feature geometry type
        """
        try:
            return cls((type_code & 0xFFFFFF) % 1000)
        except ValueError:
            raise FormatError(f"Invalid WKB type code {type_code}") from None


class AxisOrder(Enum):
    """Order of the first two axes in a coordinate reference system"""

    XY = "xy"  # x (or longitude) before y (or latitude)
    YX = "yx"  # y (or latitude) before x (or longitude)


class Hemisphere(Enum):
    """Hemisphere of a UTM zone"""

    NORTH = "N"
    SOUTH = "S"

    @classmethod
    def from_symbol(cls, symbol: str) -> "Hemisphere":
        try:
            return cls(symbol.strip().upper())
        except ValueError:
            raise FormatError("Invalid hemisphere", symbol) from None

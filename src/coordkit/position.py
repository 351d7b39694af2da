"""
Position and PositionSeries value types.

A Position holds 2-4 coordinate values (x, y and optional z, m). A
PositionSeries packs many positions of the same CoordinateKind into one flat
array of doubles, row-major: x, y, [z], [m] repeated.
"""

from array import array
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from .config import DEFAULTS
from .coords import CoordinateKind
from .errors import InvalidArgumentError, check_tolerance

if TYPE_CHECKING:
    from .box import Box
    from .projections import Projection


def format_number(value: float, decimals: int | None = None) -> str:
    """
    Format a coordinate value for text output.

    Integral values are written without a fraction ("10" not "10.0"). With
    decimals the value is rounded and trailing zeros are trimmed, otherwise
    the shortest round-trip representation is used.
    """
    value = float(value)
    if decimals is not None:
        text = f"{value:.{decimals}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        if text == "-0":
            text = "0"
        return text
    if value.is_integer():
        return str(int(value)) if abs(value) < 1e16 else repr(value)
    return repr(value)


class Position:
    """
    An immutable position with x, y and optional z and m coordinates.

    For geographic positions x is longitude, y latitude and z elevation.

    Example:
        >>> p = Position(10.1, 20.2, z=30.3)
        >>> p.kind
        <CoordinateKind.XYZ: (3, True, False, False)>
        >>> p.m, p.opt_m
        (0.0, None)
    """

    __slots__ = ("_x", "_y", "_z", "_m", "_geographic")

    def __init__(
        self,
        x: float,
        y: float,
        z: float | None = None,
        m: float | None = None,
        *,
        geographic: bool = False,
    ):
        self._x = float(x)
        self._y = float(y)
        self._z = None if z is None else float(z)
        self._m = None if m is None else float(m)
        self._geographic = geographic

    @classmethod
    def lonlat(
        cls,
        lon: float,
        lat: float,
        elev: float | None = None,
        m: float | None = None,
    ) -> "Position":
        """Create a geographic position"""
        return cls(lon, lat, elev, m, geographic=True)

    @classmethod
    def from_values(
        cls, values: Sequence[float], kind: CoordinateKind
    ) -> "Position":
        """
        Create a position from values laid out according to kind.

        Raises:
            InvalidArgumentError: If the number of values does not match kind
        """
        if len(values) != kind.dimension:
            raise InvalidArgumentError(
                f"Expected {kind.dimension} values for {kind.name}, "
                f"got {len(values)}"
            )
        z = values[2] if kind.has_z else None
        m = values[kind.index_of_m] if kind.has_m else None
        return cls(values[0], values[1], z, m, geographic=kind.is_geographic)

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def z(self) -> float:
        """z value, or 0.0 if not available"""
        return 0.0 if self._z is None else self._z

    @property
    def m(self) -> float:
        """m value, or 0.0 if not available"""
        return 0.0 if self._m is None else self._m

    @property
    def opt_z(self) -> float | None:
        return self._z

    @property
    def opt_m(self) -> float | None:
        return self._m

    # geographic aliases
    lon = x
    lat = y
    elev = z
    opt_elev = opt_z

    @property
    def is_3d(self) -> bool:
        return self._z is not None

    @property
    def is_measured(self) -> bool:
        return self._m is not None

    @property
    def kind(self) -> CoordinateKind:
        return CoordinateKind.select(
            self._z is not None, self._m is not None, self._geographic
        )

    @property
    def values(self) -> tuple[float, ...]:
        """All coordinate values in x, y, [z], [m] order"""
        result = (self._x, self._y)
        if self._z is not None:
            result += (self._z,)
        if self._m is not None:
            result += (self._m,)
        return result

    def copy_with(
        self,
        x: float | None = None,
        y: float | None = None,
        z: float | None = None,
        m: float | None = None,
    ) -> "Position":
        return Position(
            self._x if x is None else x,
            self._y if y is None else y,
            self._z if z is None else z,
            self._m if m is None else m,
            geographic=self._geographic,
        )

    def equals_2d(self, other: "Position", tolerance: float | None = None) -> bool:
        """
        True if x and y of both positions differ by at most tolerance.

        Raises:
            InvalidArgumentError: If tolerance is negative
        """
        tol = DEFAULTS.tolerance if tolerance is None else tolerance
        check_tolerance(tol)
        return abs(self._x - other.x) <= tol and abs(self._y - other.y) <= tol

    def equals_3d(
        self,
        other: "Position",
        tolerance_horiz: float | None = None,
        tolerance_vert: float | None = None,
    ) -> bool:
        """
        True if both positions are 3D and x, y, z differ within tolerances.

        Raises:
            InvalidArgumentError: If a tolerance is negative
        """
        tol_v = DEFAULTS.tolerance if tolerance_vert is None else tolerance_vert
        check_tolerance(tol_v)
        if not self.equals_2d(other, tolerance_horiz):
            return False
        if not (self.is_3d and other.is_3d):
            return False
        return abs(self.z - other.z) <= tol_v

    def to_text(self, delimiter: str = ",", decimals: int | None = None) -> str:
        return delimiter.join(format_number(v, decimals) for v in self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.values == other.values and self.kind == other.kind

    def __hash__(self) -> int:
        return hash((self.values, self.kind))

    def __repr__(self) -> str:
        args = [repr(self._x), repr(self._y)]
        if self._z is not None:
            args.append(f"z={self._z!r}")
        if self._m is not None:
            args.append(f"m={self._m!r}")
        if self._geographic:
            args.append("geographic=True")
        return f"Position({', '.join(args)})"

    def __str__(self) -> str:
        return self.to_text()


class PositionSeries:
    """
    A fixed-length series of positions stored in one flat array.

    The backing array has length count * kind.dimension. Series are
    immutable; operations that change coordinates return a new series.

    Example:
        >>> ring = PositionSeries.view([0, 0, 4, 0, 4, 4, 0, 4, 0, 0])
        >>> len(ring), ring.x(1), ring.is_closed
        (5, 4.0, True)
    """

    __slots__ = ("_data", "_kind")

    def __init__(
        self,
        data: Iterable[float] = (),
        kind: CoordinateKind = CoordinateKind.XY,
        single_precision: bool = False,
    ):
        if isinstance(data, array) and data.typecode in ("d", "f"):
            buffer = data
        else:
            buffer = array("f" if single_precision else "d", data)
        if len(buffer) % kind.dimension != 0:
            raise InvalidArgumentError(
                f"Coordinate array length {len(buffer)} is not a multiple of "
                f"dimension {kind.dimension} ({kind.name})"
            )
        self._data = buffer
        self._kind = kind

    @classmethod
    def view(
        cls, data: Iterable[float], kind: CoordinateKind = CoordinateKind.XY
    ) -> "PositionSeries":
        """
        Wrap a flat coordinate array.

        An array('d') or array('f') is used as is (no copy); the caller must
        not modify it afterwards. Any other iterable is copied into an
        array('d').
        """
        return cls(data, kind)

    @classmethod
    def from_positions(
        cls,
        positions: Iterable[Position],
        kind: CoordinateKind | None = None,
    ) -> "PositionSeries":
        """
        Pack positions into a series.

        Without an explicit kind, the kind of the first position is used.
        Missing z/m values are written as 0.0, extra values are dropped.
        """
        items = list(positions)
        if kind is None:
            kind = items[0].kind if items else CoordinateKind.XY
        data = array("d")
        for p in items:
            data.append(p.x)
            data.append(p.y)
            if kind.has_z:
                data.append(p.z)
            if kind.has_m:
                data.append(p.m)
        return cls(data, kind)

    @classmethod
    def from_coords(
        cls,
        coords: Iterable[Sequence[float]],
        kind: CoordinateKind | None = None,
    ) -> "PositionSeries":
        """
        Pack nested coordinate tuples such as [(x, y), (x, y), ...].

        Without an explicit kind, it is derived from the length of the first
        tuple (3 values read as XYZ).
        """
        items = [tuple(c) for c in coords]
        if kind is None:
            if items:
                kind = CoordinateKind.from_dimension(len(items[0]))
            else:
                kind = CoordinateKind.XY
        data = array("d")
        for c in items:
            if len(c) != kind.dimension:
                raise InvalidArgumentError(
                    f"Expected {kind.dimension} values per position, got {c}"
                )
            data.extend(c)
        return cls(data, kind)

    @property
    def kind(self) -> CoordinateKind:
        return self._kind

    @property
    def dimension(self) -> int:
        return self._kind.dimension

    @property
    def is_3d(self) -> bool:
        return self._kind.has_z

    @property
    def is_measured(self) -> bool:
        return self._kind.has_m

    @property
    def is_single_precision(self) -> bool:
        return self._data.typecode == "f"

    @property
    def data(self) -> memoryview:
        """Read-only view of the flat coordinate array"""
        return memoryview(self._data).toreadonly()

    @property
    def values(self) -> list[float]:
        return self._data.tolist()

    def __len__(self) -> int:
        return len(self._data) // self._kind.dimension

    @property
    def is_empty(self) -> bool:
        return len(self._data) == 0

    def _offset(self, index: int) -> int:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError(f"Position index {index} out of range ({count})")
        return index * self._kind.dimension

    def x(self, index: int) -> float:
        return self._data[self._offset(index)]

    def y(self, index: int) -> float:
        return self._data[self._offset(index) + 1]

    def z(self, index: int) -> float:
        """z at index, or 0.0 if the series has no z"""
        offset = self._offset(index)
        return self._data[offset + 2] if self._kind.has_z else 0.0

    def m(self, index: int) -> float:
        """m at index, or 0.0 if the series has no m"""
        offset = self._offset(index)
        i = self._kind.index_of_m
        return self._data[offset + i] if i is not None else 0.0

    def opt_z(self, index: int) -> float | None:
        offset = self._offset(index)
        return self._data[offset + 2] if self._kind.has_z else None

    def opt_m(self, index: int) -> float | None:
        offset = self._offset(index)
        i = self._kind.index_of_m
        return self._data[offset + i] if i is not None else None

    def __getitem__(self, index: int) -> Position:
        offset = self._offset(index)
        dim = self._kind.dimension
        return Position.from_values(self._data[offset : offset + dim], self._kind)

    def __iter__(self) -> Iterator[Position]:
        for i in range(len(self)):
            yield self[i]

    @property
    def first(self) -> Position | None:
        return self[0] if len(self) > 0 else None

    @property
    def last(self) -> Position | None:
        return self[-1] if len(self) > 0 else None

    @property
    def is_closed(self) -> bool:
        """True if the first and last position are equal in 2D"""
        return self.is_closed_by()

    def is_closed_by(self, tolerance: float | None = None) -> bool:
        """
        True if the first and last position are equal in 2D within tolerance.

        Always False for series with fewer than 2 positions.
        """
        tol = DEFAULTS.tolerance if tolerance is None else tolerance
        check_tolerance(tol)
        if len(self) < 2:
            return False
        return self[0].equals_2d(self[-1], tol)

    def closed(self) -> "PositionSeries":
        """This series if closed, otherwise a copy with the first position appended"""
        if len(self) == 0 or self.is_closed:
            return self
        data = array(self._data.typecode, self._data)
        data.extend(self._data[: self._kind.dimension])
        return PositionSeries(data, self._kind)

    def equals_coords(self, other: "PositionSeries") -> bool:
        """True if both series have the same kind and exactly equal values"""
        if self is other:
            return True
        return (
            self._kind == other.kind
            and len(self) == len(other)
            and self._data.tolist() == other.values
        )

    def equals_2d(
        self, other: "PositionSeries", tolerance: float | None = None
    ) -> bool:
        """
        True if all positions are equal in 2D within tolerance.

        False if either series is empty or the lengths differ.
        """
        tol = DEFAULTS.tolerance if tolerance is None else tolerance
        check_tolerance(tol)
        if self.is_empty or other.is_empty or len(self) != len(other):
            return False
        return all(
            abs(self.x(i) - other.x(i)) <= tol and abs(self.y(i) - other.y(i)) <= tol
            for i in range(len(self))
        )

    def equals_3d(
        self,
        other: "PositionSeries",
        tolerance_horiz: float | None = None,
        tolerance_vert: float | None = None,
    ) -> bool:
        """
        True if both series are 3D and all positions are equal within
        tolerances.
        """
        tol_v = DEFAULTS.tolerance if tolerance_vert is None else tolerance_vert
        check_tolerance(tol_v)
        if not self.equals_2d(other, tolerance_horiz):
            return False
        if not (self.is_3d and other.is_3d):
            return False
        return all(
            abs(self.z(i) - other.z(i)) <= tol_v for i in range(len(self))
        )

    def reversed(self) -> "PositionSeries":
        dim = self._kind.dimension
        data = array(self._data.typecode)
        for i in range(len(self) - 1, -1, -1):
            data.extend(self._data[i * dim : (i + 1) * dim])
        return PositionSeries(data, self._kind)

    def subseries(self, start: int, end: int | None = None) -> "PositionSeries":
        dim = self._kind.dimension
        stop = len(self) if end is None else end
        return PositionSeries(self._data[start * dim : stop * dim], self._kind)

    def project(self, projection: "Projection") -> "PositionSeries":
        """Project all positions with one batch call"""
        target_kind = projection.target_kind(self._kind)
        return PositionSeries(
            projection.project_coords(self._data, self._kind), target_kind
        )

    def bounds(self) -> "Box | None":
        from .box import Box

        return Box.from_series(self)

    def to_text(
        self,
        delimiter: str = ",",
        position_delimiter: str = ",",
        decimals: int | None = None,
    ) -> str:
        dim = self._kind.dimension
        return position_delimiter.join(
            delimiter.join(
                format_number(v, decimals)
                for v in self._data[i * dim : (i + 1) * dim]
            )
            for i in range(len(self))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PositionSeries):
            return NotImplemented
        return self.equals_coords(other)

    def __hash__(self) -> int:
        return hash((self._kind, tuple(self._data)))

    def __repr__(self) -> str:
        return f"PositionSeries({self._data.tolist()!r}, {self._kind})"

"""
Axis-aligned bounding boxes.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .config import DEFAULTS
from .errors import InvalidArgumentError, check_tolerance
from .position import Position, PositionSeries


@dataclass(frozen=True)
class Box:
    """
    A bounding box with mandatory x/y extents and optional z and m extents.

    A box with min == max is valid (bounds of a single point).

    Attributes:
        min_x, min_y, max_x, max_y: Horizontal extent
        min_z, max_z: Vertical extent (both None or both set)
        min_m, max_m: Measure extent (both None or both set)
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    min_z: float | None = None
    max_z: float | None = None
    min_m: float | None = None
    max_m: float | None = None

    def __post_init__(self):
        if (self.min_z is None) != (self.max_z is None):
            raise InvalidArgumentError("min_z and max_z must both be set or unset")
        if (self.min_m is None) != (self.max_m is None):
            raise InvalidArgumentError("min_m and max_m must both be set or unset")
        pairs = [(self.min_x, self.max_x), (self.min_y, self.max_y)]
        if self.min_z is not None:
            pairs.append((self.min_z, self.max_z))
        if self.min_m is not None:
            pairs.append((self.min_m, self.max_m))
        for lo, hi in pairs:
            if lo > hi:
                raise InvalidArgumentError(f"Box min {lo} is greater than max {hi}")

    @classmethod
    def from_positions(cls, positions: Iterable[Position]) -> "Box | None":
        """Bounds of positions, or None if there are none"""
        items = list(positions)
        if not items:
            return None
        zs = [p.opt_z for p in items if p.opt_z is not None]
        ms = [p.opt_m for p in items if p.opt_m is not None]
        return cls(
            min(p.x for p in items),
            min(p.y for p in items),
            max(p.x for p in items),
            max(p.y for p in items),
            min(zs) if zs else None,
            max(zs) if zs else None,
            min(ms) if ms else None,
            max(ms) if ms else None,
        )

    @classmethod
    def from_series(cls, series: PositionSeries) -> "Box | None":
        """Bounds of a position series, or None if it is empty"""
        count = len(series)
        if count == 0:
            return None
        data = series.data
        dim = series.dimension
        xs = data[0::dim]
        ys = data[1::dim]
        min_z = max_z = min_m = max_m = None
        if series.is_3d:
            zs = data[2::dim]
            min_z, max_z = min(zs), max(zs)
        m_index = series.kind.index_of_m
        if m_index is not None:
            ms = data[m_index::dim]
            min_m, max_m = min(ms), max(ms)
        return cls(min(xs), min(ys), max(xs), max(ys), min_z, max_z, min_m, max_m)

    @property
    def is_3d(self) -> bool:
        return self.min_z is not None

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def min(self) -> Position:
        return Position(self.min_x, self.min_y, self.min_z, self.min_m)

    @property
    def max(self) -> Position:
        return Position(self.max_x, self.max_y, self.max_z, self.max_m)

    @property
    def center(self) -> Position:
        z = None
        if self.min_z is not None and self.max_z is not None:
            z = (self.min_z + self.max_z) / 2.0
        return Position(
            (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0, z
        )

    @property
    def corners_2d(self) -> list[Position]:
        """Corners counter-clockwise starting from (min_x, min_y)"""
        return [
            Position(self.min_x, self.min_y),
            Position(self.max_x, self.min_y),
            Position(self.max_x, self.max_y),
            Position(self.min_x, self.max_y),
        ]

    def merge(self, other: "Box") -> "Box":
        """Smallest box containing this and other"""

        def _lo(a: float | None, b: float | None) -> float | None:
            if a is None or b is None:
                return None
            return min(a, b)

        def _hi(a: float | None, b: float | None) -> float | None:
            if a is None or b is None:
                return None
            return max(a, b)

        return Box(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
            _lo(self.min_z, other.min_z),
            _hi(self.max_z, other.max_z),
            _lo(self.min_m, other.min_m),
            _hi(self.max_m, other.max_m),
        )

    def intersects_2d(self, other: "Box") -> bool:
        return (
            self.min_x <= other.max_x
            and self.max_x >= other.min_x
            and self.min_y <= other.max_y
            and self.max_y >= other.min_y
        )

    def intersects_point_2d(self, point: Position) -> bool:
        return (
            self.min_x <= point.x <= self.max_x
            and self.min_y <= point.y <= self.max_y
        )

    def equals_2d(self, other: "Box", tolerance: float | None = None) -> bool:
        tol = DEFAULTS.tolerance if tolerance is None else tolerance
        check_tolerance(tol)
        return (
            abs(self.min_x - other.min_x) <= tol
            and abs(self.min_y - other.min_y) <= tol
            and abs(self.max_x - other.max_x) <= tol
            and abs(self.max_y - other.max_y) <= tol
        )

    def equals_3d(
        self,
        other: "Box",
        tolerance_horiz: float | None = None,
        tolerance_vert: float | None = None,
    ) -> bool:
        tol_v = DEFAULTS.tolerance if tolerance_vert is None else tolerance_vert
        check_tolerance(tol_v)
        if not self.equals_2d(other, tolerance_horiz):
            return False
        if self.min_z is None or self.max_z is None:
            return False
        if other.min_z is None or other.max_z is None:
            return False
        return (
            abs(self.min_z - other.min_z) <= tol_v
            and abs(self.max_z - other.max_z) <= tol_v
        )

    def __iter__(self) -> Iterator[float]:
        return iter((self.min_x, self.min_y, self.max_x, self.max_y))

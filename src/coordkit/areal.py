"""
Areal algorithms on polygon rings: point-in-polygon, centroid and polylabel.

A polygon is given as a sequence of rings (PositionSeries), the exterior ring
first and holes after it. Rings are treated as closed whether or not the last
position repeats the first one. All calculations are 2D; z and m are ignored.
"""

import heapq
import itertools
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from .config import DEFAULTS
from .errors import InvalidArgumentError
from .position import Position, PositionSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistancedPosition:
    """
    A position with a distance, as returned by polylabel.

    Attributes:
        position: The position
        distance: Distance to the polygon boundary (negative if outside)
    """

    position: Position
    distance: float


def _check_rings(rings: Sequence[PositionSeries]) -> None:
    if len(rings) == 0:
        raise InvalidArgumentError("Polygon must have at least one ring")


def _crossings(x: float, y: float, ring: PositionSeries) -> bool:
    """Even-odd crossing test of a horizontal ray from (x, y)"""
    data = ring.data
    dim = ring.dimension
    n = len(ring)
    inside = False
    j = (n - 1) * dim
    for i in range(0, n * dim, dim):
        ax, ay = data[i], data[i + 1]
        bx, by = data[j], data[j + 1]
        if (ay > y) != (by > y) and x < (bx - ax) * (y - ay) / (by - ay) + ax:
            inside = not inside
        j = i
    return inside


def is_point_in_ring(point: Position, ring: PositionSeries) -> bool:
    """
    True if point is inside ring by the even-odd rule.

    Points exactly on an edge may be reported either way.
    """
    return _crossings(point.x, point.y, ring)


def is_point_in_polygon(point: Position, rings: Sequence[PositionSeries]) -> bool:
    """
    True if point is inside the exterior ring and outside every hole.

    Raises:
        InvalidArgumentError: If rings is empty
    """
    _check_rings(rings)
    if not _crossings(point.x, point.y, rings[0]):
        return False
    return not any(_crossings(point.x, point.y, hole) for hole in rings[1:])


def signed_area(ring: PositionSeries) -> float:
    """Shoelace area of ring, positive if counter-clockwise"""
    data = ring.data
    dim = ring.dimension
    n = len(ring)
    total = 0.0
    j = (n - 1) * dim
    for i in range(0, n * dim, dim):
        total += data[j] * data[i + 1] - data[i] * data[j + 1]
        j = i
    return total / 2.0


def _ring_area_centroid(ring: PositionSeries) -> tuple[float, float, float]:
    """Signed area and area centroid of a ring (centroid NaN for zero area)"""
    data = ring.data
    dim = ring.dimension
    n = len(ring)
    area = cx = cy = 0.0
    j = (n - 1) * dim
    for i in range(0, n * dim, dim):
        x0, y0 = data[j], data[j + 1]
        x1, y1 = data[i], data[i + 1]
        f = x0 * y1 - x1 * y0
        area += f
        cx += (x0 + x1) * f
        cy += (y0 + y1) * f
        j = i
    area /= 2.0
    if area == 0.0:
        return 0.0, math.nan, math.nan
    return area, cx / (6.0 * area), cy / (6.0 * area)


def _linear_centroid(
    series: PositionSeries, closed: bool = False
) -> tuple[Position | None, float]:
    """Length-weighted centroid of the segments, and the total length"""
    data = series.data
    dim = series.dimension
    n = len(series)
    length = cx = cy = 0.0
    last = n if closed else n - 1
    for k in range(last):
        i = k * dim
        j = ((k + 1) % n) * dim
        seg = math.hypot(data[j] - data[i], data[j + 1] - data[i + 1])
        length += seg
        cx += seg * (data[i] + data[j]) / 2.0
        cy += seg * (data[i + 1] + data[j + 1]) / 2.0
    if length == 0.0:
        return None, 0.0
    return Position(cx / length, cy / length), length


def line_length(series: PositionSeries, closed: bool = False) -> float:
    """2D length of a line, including the closing segment if closed"""
    _, length = _linear_centroid(series, closed=closed)
    return length


def _punctual_centroid(series: PositionSeries) -> Position | None:
    n = len(series)
    if n == 0:
        return None
    data = series.data
    dim = series.dimension
    return Position(sum(data[0::dim]) / n, sum(data[1::dim]) / n)


class CompositeCentroid:
    """
    Accumulates centroids of parts into the centroid of a composite.

    Parts with non-zero area are weighted by area, otherwise parts with a
    positive length by length, otherwise points count equally. The highest
    dimension present wins.
    """

    def __init__(self):
        self._area_sum = self._areal_x = self._areal_y = 0.0
        self._length_sum = self._linear_x = self._linear_y = 0.0
        self._num_points = 0
        self._punctual_x = self._punctual_y = 0.0

    def add(
        self, position: Position | None, area: float = 0.0, length: float = 0.0
    ) -> None:
        if position is None:
            return
        x, y = position.x, position.y
        if area != 0.0:
            self._area_sum += area
            self._areal_x += area * x
            self._areal_y += area * y
        elif length > 0.0:
            self._length_sum += length
            self._linear_x += length * x
            self._linear_y += length * y
        else:
            self._num_points += 1
            self._punctual_x += x
            self._punctual_y += y

    def centroid(self) -> Position | None:
        if self._area_sum > 0.0:
            return Position(
                self._areal_x / self._area_sum, self._areal_y / self._area_sum
            )
        if self._length_sum > 0.0:
            return Position(
                self._linear_x / self._length_sum, self._linear_y / self._length_sum
            )
        if self._num_points > 0:
            return Position(
                self._punctual_x / self._num_points,
                self._punctual_y / self._num_points,
            )
        return None


def polygon_centroid(
    rings: Sequence[PositionSeries],
) -> tuple[Position | None, float]:
    """Centroid of a polygon and its area (holes subtracted)"""
    if len(rings) == 0 or rings[0].is_empty:
        return None, 0.0
    exterior = rings[0]
    area, cx, cy = _ring_area_centroid(exterior)
    if area == 0.0:
        position, _ = _linear_centroid(exterior, closed=True)
        if position is None:
            position = _punctual_centroid(exterior)
        return position, 0.0

    composite = CompositeCentroid()
    composite.add(Position(cx, cy), area=abs(area))
    total = abs(area)
    for hole in rings[1:]:
        if hole.is_empty:
            continue
        hole_area, hx, hy = _ring_area_centroid(hole)
        if hole_area != 0.0:
            composite.add(Position(hx, hy), area=-abs(hole_area))
            total -= abs(hole_area)
    return composite.centroid(), total


def centroid(rings: Sequence[PositionSeries]) -> Position | None:
    """
    Area-weighted centroid of a polygon.

    Holes with non-zero area are subtracted. When the exterior ring has no
    area (collinear or repeated positions), the centroid of its segments (or
    of its vertices) is returned instead.

    Returns:
        The centroid, or None if there are no positions at all
    """
    position, _ = polygon_centroid(rings)
    return position


def line_centroid(series: PositionSeries) -> Position | None:
    """Length-weighted centroid of a line string (vertex average if length 0)"""
    position, _ = _linear_centroid(series)
    return position if position is not None else _punctual_centroid(series)


def _seg_dist_sq(
    px: float, py: float, ax: float, ay: float, bx: float, by: float
) -> float:
    x, y = ax, ay
    dx, dy = bx - x, by - y
    if dx != 0.0 or dy != 0.0:
        t = ((px - x) * dx + (py - y) * dy) / (dx * dx + dy * dy)
        if t > 1.0:
            x, y = bx, by
        elif t > 0.0:
            x += dx * t
            y += dy * t
    dx, dy = px - x, py - y
    return dx * dx + dy * dy


def _point_to_polygon_dist(
    x: float, y: float, rings: Sequence[PositionSeries]
) -> float:
    """Signed distance to the nearest ring edge, negative outside"""
    inside = False
    min_dist_sq = math.inf
    for ring in rings:
        data = ring.data
        dim = ring.dimension
        n = len(ring)
        j = (n - 1) * dim
        for i in range(0, n * dim, dim):
            ax, ay = data[i], data[i + 1]
            bx, by = data[j], data[j + 1]
            if (ay > y) != (by > y) and x < (bx - ax) * (y - ay) / (by - ay) + ax:
                inside = not inside
            min_dist_sq = min(min_dist_sq, _seg_dist_sq(x, y, ax, ay, bx, by))
            j = i
    if min_dist_sq == 0.0:
        return 0.0
    return (1.0 if inside else -1.0) * math.sqrt(min_dist_sq)


class _Cell:
    __slots__ = ("x", "y", "h", "d", "max")

    def __init__(self, x: float, y: float, h: float, rings):
        self.x = x
        self.y = y
        self.h = h
        self.d = _point_to_polygon_dist(x, y, rings)
        # upper bound of the distance anywhere within the cell
        self.max = self.d + h * math.sqrt(2.0)


def _centroid_cell(rings: Sequence[PositionSeries]) -> _Cell:
    exterior = rings[0]
    area, cx, cy = _ring_area_centroid(exterior)
    if area != 0.0:
        cell = _Cell(cx, cy, 0.0, rings)
        if cell.d >= 0.0:
            return cell
    return _Cell(exterior.x(0), exterior.y(0), 0.0, rings)


def polylabel(
    rings: Sequence[PositionSeries], precision: float | None = None
) -> DistancedPosition:
    """
    Find the pole of inaccessibility of a polygon.

    The pole is the interior point farthest from the polygon boundary. It is
    found by quadtree refinement of the exterior ring's bounding box, always
    splitting the cell with the highest potential distance first, until no
    cell can improve the best distance by more than precision.

    Args:
        rings: Exterior ring followed by holes
        precision: Accepted error in input units (defaults to
            DEFAULTS.polylabel_precision, i.e. 1.0)

    Returns:
        The pole and its distance to the boundary

    Raises:
        InvalidArgumentError: If rings is empty, the exterior ring has no
            positions, or precision is not positive

    Example:
        >>> square = PositionSeries.view([0, 0, 4, 0, 4, 4, 0, 4, 0, 0])
        >>> polylabel([square], precision=0.1)
        DistancedPosition(position=Position(2.0, 2.0), distance=2.0)
    """
    precision = DEFAULTS.polylabel_precision if precision is None else precision
    if not precision > 0.0:
        raise InvalidArgumentError(f"Precision must be positive, got {precision}")
    _check_rings(rings)
    exterior = rings[0]
    if exterior.is_empty:
        raise InvalidArgumentError("Exterior ring has no positions")

    data = exterior.data
    dim = exterior.dimension
    xs = data[0::dim]
    ys = data[1::dim]
    min_x, min_y, max_x, max_y = min(xs), min(ys), max(xs), max(ys)

    width = max_x - min_x
    height = max_y - min_y
    cell_size = max(precision, min(width, height))
    if cell_size == precision:
        return DistancedPosition(Position(min_x, min_y), 0.0)

    # max-heap on potential; the counter keeps equal potentials in push order
    queue: list[tuple[float, int, _Cell]] = []
    counter = itertools.count()

    best = _centroid_cell(rings)
    bbox_cell = _Cell(min_x + width / 2.0, min_y + height / 2.0, 0.0, rings)
    if bbox_cell.d > best.d:
        best = bbox_cell
    probes = 2

    def potentially_queue(x: float, y: float, h: float) -> None:
        nonlocal best, probes
        cell = _Cell(x, y, h, rings)
        probes += 1
        if cell.max > best.d + precision:
            heapq.heappush(queue, (-cell.max, next(counter), cell))
        if cell.d > best.d:
            best = cell
            logger.debug("Found best %.4f after %d probes", cell.d, probes)

    h = cell_size / 2.0
    x = min_x
    while x < max_x:
        y = min_y
        while y < max_y:
            potentially_queue(x + h, y + h, h)
            y += cell_size
        x += cell_size

    while queue:
        _, _, cell = heapq.heappop(queue)
        if cell.max - best.d <= precision:
            break
        h = cell.h / 2.0
        potentially_queue(cell.x - h, cell.y - h, h)
        potentially_queue(cell.x + h, cell.y - h, h)
        potentially_queue(cell.x - h, cell.y + h, h)
        potentially_queue(cell.x + h, cell.y + h, h)

    logger.debug("Polylabel: %d probes, best distance %s", probes, best.d)
    return DistancedPosition(Position(best.x, best.y), best.d)

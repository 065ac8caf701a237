"""
Geometry primitives for the piece kernel.

Pure functions over 2D points given as (x, y) tuples. Everything here is
total: degenerate input yields a zero vector, an empty list, or None rather
than an exception. Winding is the sign of the shoelace sum, named with the
Y-up convention: ``polygon_is_clockwise`` means a negative sum, which turns
counter-clockwise on a Y-down screen.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from piece_geometry.contracts import Point

UNIT_EPSILON = 1e-4
DEDUPE_EPSILON = 1e-3


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box."""
    min_x: float = 0.0
    min_y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def max_x(self) -> float:
        return self.min_x + self.width

    @property
    def max_y(self) -> float:
        return self.min_y + self.height

    @property
    def mid_y(self) -> float:
        return self.min_y + self.height / 2


@dataclass(frozen=True)
class QuadCurve:
    start: Point
    control: Point
    end: Point


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def unit_vector(start: Point, end: Point) -> Point:
    """Unit vector from start to end; (0, 0) when the points coincide."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length < UNIT_EPSILON:
        return (0.0, 0.0)
    return (dx / length, dy / length)


def rotate(point: Point, radians: float) -> Point:
    """Rotate about the origin."""
    c = math.cos(radians)
    s = math.sin(radians)
    return (point[0] * c - point[1] * s, point[0] * s + point[1] * c)


def lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def offset(point: Point, direction: Point, amount: float) -> Point:
    return (point[0] + direction[0] * amount, point[1] + direction[1] * amount)


def dedupe_points(points: Sequence[Point], epsilon: float = DEDUPE_EPSILON) -> List[Point]:
    """Drop consecutive near-duplicates and a closing point equal to the first.

    A non-empty input always yields at least one point.
    """
    result: List[Point] = []
    for p in points:
        if result and distance(result[-1], p) < epsilon:
            continue
        result.append((float(p[0]), float(p[1])))
    if len(result) > 1 and distance(result[0], result[-1]) < epsilon:
        result.pop()
    return result


def bounds(points: Sequence[Point]) -> Bounds:
    if not points:
        return Bounds()
    arr = np.asarray(points, dtype=float)
    mins = arr.min(axis=0)
    maxs = arr.max(axis=0)
    return Bounds(float(mins[0]), float(mins[1]), float(maxs[0] - mins[0]), float(maxs[1] - mins[1]))


def shoelace_sum(points: Sequence[Point]) -> float:
    """Sum of x1*y2 - x2*y1 over the closed ring (twice the signed area)."""
    if len(points) < 3:
        return 0.0
    arr = np.asarray(points, dtype=float)
    nxt = np.roll(arr, -1, axis=0)
    return float(np.sum(arr[:, 0] * nxt[:, 1] - nxt[:, 0] * arr[:, 1]))


def polygon_is_clockwise(points: Sequence[Point]) -> bool:
    """True when the shoelace sum is negative; fewer than 3 points count as clockwise."""
    if len(points) < 3:
        return True
    return shoelace_sum(points) < 0


def signed_area(points: Sequence[Point]) -> float:
    return shoelace_sum(points) / 2


def polygon_area(points: Sequence[Point]) -> float:
    return abs(signed_area(points))


def centroid(points: Sequence[Point]) -> Point:
    """Vertex average; (0, 0) for empty input."""
    if not points:
        return (0.0, 0.0)
    arr = np.asarray(points, dtype=float)
    mean = arr.mean(axis=0)
    return (float(mean[0]), float(mean[1]))


def normalized_index(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return index % count


def nearest_point_index(target: Point, points: Sequence[Point]) -> int:
    """Index of the point closest to target; 0 for empty input."""
    if not points:
        return 0
    arr = np.asarray(points, dtype=float)
    d2 = np.sum((arr - np.asarray(target, dtype=float)) ** 2, axis=1)
    return int(np.argmin(d2))


def cross(a: Point, b: Point) -> float:
    return a[0] * b[1] - a[1] * b[0]


def dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def ray_segment_intersection(
    origin: Point,
    direction: Point,
    segment: Tuple[Point, Point],
) -> Optional[Point]:
    """Hit point of a ray with a segment, or None.

    Parallel rays, hits behind the origin, and hits off the segment miss.
    """
    start, end = segment
    s = (end[0] - start[0], end[1] - start[1])
    denom = cross(direction, s)
    if abs(denom) < UNIT_EPSILON:
        return None
    qp = (start[0] - origin[0], start[1] - origin[1])
    t = cross(qp, s) / denom
    u = cross(qp, direction) / denom
    if t < 0 or u < 0 or u > 1:
        return None
    return (origin[0] + direction[0] * t, origin[1] + direction[1] * t)


def point_line_distance(point: Point, start: Point, end: Point) -> float:
    """Perpendicular distance to the infinite line through start and end."""
    length = distance(start, end)
    if length < UNIT_EPSILON:
        return distance(point, start)
    v = (end[0] - start[0], end[1] - start[1])
    w = (point[0] - start[0], point[1] - start[1])
    return abs(cross(v, w)) / length


def point_segment_distance(point: Point, start: Point, end: Point) -> float:
    v = (end[0] - start[0], end[1] - start[1])
    length_sq = dot(v, v)
    if length_sq < UNIT_EPSILON ** 2:
        return distance(point, start)
    w = (point[0] - start[0], point[1] - start[1])
    t = max(0.0, min(1.0, dot(w, v) / length_sq))
    return distance(point, lerp(start, end, t))


def outward_normal(start: Point, end: Point, clockwise: bool) -> Point:
    """Edge normal pointing away from the filled side.

    ``clockwise`` is the ``polygon_is_clockwise`` result of the ring the edge
    belongs to: such rings use the left normal, the others the right one.
    """
    ux, uy = unit_vector(start, end)
    if clockwise:
        return (-uy, ux)
    return (uy, -ux)


# ─── Quadratic bezier ───────────────────────────────────────────────────────


def quad_bezier_point(t: float, start: Point, control: Point, end: Point) -> Point:
    t = max(0.0, min(1.0, t))
    mt = 1 - t
    a = mt * mt
    b = 2 * mt * t
    c = t * t
    return (
        a * start[0] + b * control[0] + c * end[0],
        a * start[1] + b * control[1] + c * end[1],
    )


def quad_split(start: Point, control: Point, end: Point, t: float) -> Tuple[QuadCurve, QuadCurve]:
    """De Casteljau split; the halves share the exact split point."""
    t = max(0.0, min(1.0, t))
    p01 = lerp(start, control, t)
    p12 = lerp(control, end, t)
    mid = lerp(p01, p12, t)
    return QuadCurve(start, p01, mid), QuadCurve(mid, p12, end)


def quad_subsegment(start: Point, control: Point, end: Point, t0: float, t1: float) -> QuadCurve:
    """The part of a curve between parameters t0 and t1."""
    t0 = max(0.0, min(1.0, t0))
    t1 = max(0.0, min(1.0, t1))
    if t1 < t0:
        t0, t1 = t1, t0
    _, right = quad_split(start, control, end, t0)
    if t0 >= 1.0:
        return QuadCurve(end, end, end)
    local = (t1 - t0) / (1 - t0)
    left, _ = quad_split(right.start, right.control, right.end, local)
    return left


def sample_quad_bezier(start: Point, control: Point, end: Point, samples: int) -> List[Point]:
    """Polyline through the curve, both endpoints included."""
    samples = max(1, samples)
    ts = np.linspace(0.0, 1.0, samples + 1)
    s = np.asarray(start, dtype=float)
    c = np.asarray(control, dtype=float)
    e = np.asarray(end, dtype=float)
    mt = 1 - ts
    pts = np.outer(mt * mt, s) + np.outer(2 * mt * ts, c) + np.outer(ts * ts, e)
    return [(float(x), float(y)) for x, y in pts]


# ─── Polygon queries ────────────────────────────────────────────────────────


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd test; boundary points may land either way."""
    inside = False
    n = len(polygon)
    if n < 3:
        return False
    x, y = point
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = xi + (y - yi) * (xj - xi) / (yj - yi)
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def perimeter(points: Sequence[Point]) -> float:
    n = len(points)
    if n < 2:
        return 0.0
    return sum(distance(points[i], points[(i + 1) % n]) for i in range(n))


def segment_indices_between(start: int, end: int, count: int) -> List[int]:
    """Segment indices walked forward from corner ``start`` to corner ``end``.

    Segment i runs from corner i to corner i + 1. Equal corners yield an
    empty walk; the walk wraps past the last corner.
    """
    if count <= 0:
        return []
    start = normalized_index(start, count)
    end = normalized_index(end, count)
    indices = []
    idx = start
    while idx != end:
        indices.append(idx)
        idx = (idx + 1) % count
    return indices


def is_collinear(a: Point, b: Point, c: Point, epsilon: float = DEDUPE_EPSILON) -> bool:
    """True when b lies on the straight run from a to c."""
    if distance(a, c) < epsilon:
        return False
    if point_line_distance(b, a, c) >= epsilon:
        return False
    return dot((b[0] - a[0], b[1] - a[1]), (c[0] - b[0], c[1] - b[1])) > 0


def drop_collinear(points: Sequence[Point], epsilon: float = DEDUPE_EPSILON) -> List[Point]:
    """Remove vertices that lie inside a straight run."""
    ring = list(points)
    changed = True
    while changed and len(ring) > 3:
        changed = False
        n = len(ring)
        for i in range(n):
            if is_collinear(ring[i - 1], ring[i], ring[(i + 1) % n], epsilon):
                del ring[i]
                changed = True
                break
    return ring

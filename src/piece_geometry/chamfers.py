"""
Angle cuts (chamfers).

A chamfer is a straight segment between two points on the perimeter. The
first point sits ``anchor_offset`` along the perimeter from the anchor
corner (positive walks forward, i.e. toward the next corner). The second
point is either another offset walk (two-point mode) or the first boundary
hit of a ray cast from the first point at ``angle_degrees`` (angle mode).
The shorter stretch of perimeter between the two points is replaced by the
chamfer.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from shapely.geometry import Polygon

from piece_geometry.claims import CornerClaim, holds_corner
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    AngleCut,
    AngleSegment,
    GeometryConfig,
    Piece,
    Point,
    SkippedFeature,
)
from piece_geometry import primitives as prim
from piece_geometry.templates import base_corner_points, canonical_order, matching_vertex_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerimeterPoint:
    point: Point
    segment_index: int
    t: float
    arc: float


def _cumulative(points: Sequence[Point]) -> List[float]:
    n = len(points)
    cum = [0.0]
    for i in range(n):
        cum.append(cum[-1] + prim.distance(points[i], points[(i + 1) % n]))
    return cum


def locate_arc(points: Sequence[Point], arc: float) -> Optional[PerimeterPoint]:
    """Point at arc length ``arc`` (wrapped) measured from vertex 0."""
    if len(points) < 2:
        return None
    cum = _cumulative(points)
    total = cum[-1]
    if total <= 0:
        return None
    arc = arc % total
    n = len(points)
    for i in range(n):
        seg_len = cum[i + 1] - cum[i]
        if seg_len <= 0:
            continue
        if arc <= cum[i + 1] or i == n - 1:
            t = max(0.0, min(1.0, (arc - cum[i]) / seg_len))
            return PerimeterPoint(prim.lerp(points[i], points[(i + 1) % n], t), i, t, arc)
    return None


def point_along_perimeter(points: Sequence[Point], start_index: int, offset: float) -> Optional[PerimeterPoint]:
    """Walk ``offset`` along the perimeter from a vertex.

    Positive offsets walk forward, negative ones backward. Walks longer than
    the perimeter return None.
    """
    if len(points) < 2:
        return None
    cum = _cumulative(points)
    total = cum[-1]
    if total <= 0 or abs(offset) > total:
        return None
    start = cum[prim.normalized_index(start_index, len(points))]
    return locate_arc(points, start + offset)


def _hit_to_perimeter(points: Sequence[Point], index: int, hit: Point) -> PerimeterPoint:
    cum = _cumulative(points)
    start = points[index]
    end = points[(index + 1) % len(points)]
    seg_len = prim.distance(start, end)
    t = 0.0 if seg_len == 0 else max(0.0, min(1.0, prim.distance(start, hit) / seg_len))
    return PerimeterPoint(hit, index, t, cum[index] + t * seg_len)


def cast_to_perimeter(
    points: Sequence[Point],
    origin: PerimeterPoint,
    direction: Point,
    epsilon: float = prim.DEDUPE_EPSILON,
) -> Optional[PerimeterPoint]:
    """Nearest perimeter hit of a ray leaving ``origin``, ignoring its own segment."""
    best: Optional[PerimeterPoint] = None
    best_distance = math.inf
    n = len(points)
    for i in range(n):
        if i == origin.segment_index:
            continue
        segment = (points[i], points[(i + 1) % n])
        if prim.distance(*segment) == 0:
            continue
        hit = prim.ray_segment_intersection(origin.point, direction, segment)
        if hit is None:
            continue
        d = prim.distance(origin.point, hit)
        if epsilon < d < best_distance:
            best_distance = d
            best = _hit_to_perimeter(points, i, hit)
    return best


def _interior_direction(points: Sequence[Point], origin: Point, base: Point, radians: float) -> Optional[Point]:
    """``base`` rotated by +/- radians, whichever heads into the polygon."""
    scale = max(prim.bounds(points).width, prim.bounds(points).height, 1.0) * 1e-4
    for candidate in (prim.rotate(base, radians), prim.rotate(base, -radians)):
        probe = prim.offset(origin, candidate, scale)
        if prim.point_in_polygon(probe, points):
            return candidate
    return None


def angle_mode_point(
    points: Sequence[Point],
    anchor_index: int,
    first: PerimeterPoint,
    angle_degrees: float,
) -> Optional[PerimeterPoint]:
    """Second chamfer point for angle mode.

    Positive angles lean back toward the anchor corner, negative ones away
    from it; the magnitude is measured from the edge the first point lies on.
    """
    radians = math.radians(abs(angle_degrees))
    if radians <= 0 or radians >= math.pi:
        return None
    back = prim.unit_vector(first.point, points[anchor_index])
    if back == (0.0, 0.0):
        return None
    base = back if angle_degrees > 0 else (-back[0], -back[1])
    direction = _interior_direction(points, first.point, base, radians)
    if direction is None:
        return None
    return cast_to_perimeter(points, first, direction)


def chamfer_ring(
    points: Sequence[Point],
    first: PerimeterPoint,
    second: PerimeterPoint,
    epsilon: float = prim.DEDUPE_EPSILON,
) -> Optional[Tuple[List[Point], Point, Point]]:
    """Replace the shorter perimeter stretch between two points by a segment.

    Returns (ring, chamfer_start, chamfer_end) in ring order, or None when
    the cut is degenerate or removes no vertex.
    """
    n = len(points)
    cum = _cumulative(points)
    total = cum[-1]
    if n < 3 or total <= 0:
        return None
    forward = (first.arc - second.arc) % total  # second -> first
    backward = total - forward
    if forward < epsilon or backward < epsilon:
        return None

    if forward <= backward:
        keep_from, keep_len, head, tail = first, backward, first.point, second.point
    else:
        keep_from, keep_len, head, tail = second, forward, second.point, first.point

    removed = 0
    kept = []
    for k in range(n):
        rel = (cum[k] - keep_from.arc) % total
        if epsilon < rel < keep_len - epsilon:
            kept.append((k, rel))
        elif keep_len + epsilon < rel < total - epsilon:
            removed += 1
    if removed == 0:
        return None
    kept.sort(key=lambda item: item[1])
    ring = prim.dedupe_points([head] + [points[k] for k, _ in kept] + [tail], epsilon)
    if len(ring) < 3:
        return None
    polygon = Polygon(ring)
    if not polygon.is_valid or polygon.area <= epsilon:
        return None
    return ring, tail, head


def _chamfer_endpoints(
    ring: Sequence[Point],
    base: Sequence[Point],
    anchor_index: int,
    cut: AngleCut,
    cfg: GeometryConfig,
) -> Tuple[Optional[PerimeterPoint], Optional[PerimeterPoint]]:
    first = point_along_perimeter(ring, anchor_index, cut.anchor_offset)
    if first is None:
        return None, None
    if not cut.uses_second_point:
        return first, angle_mode_point(ring, anchor_index, first, cut.angle_degrees)
    secondary = cut.secondary_corner_index
    if secondary < 0 or secondary == cut.anchor_corner_index or secondary >= len(base):
        return first, point_along_perimeter(ring, anchor_index, -abs(cut.secondary_offset))
    start = matching_vertex_index(base[secondary], ring, cfg.vertex_match_epsilon)
    if start is None:
        return first, None
    return first, point_along_perimeter(ring, start, cut.secondary_offset)


def apply_angle_cuts(
    base: Sequence[Point],
    angle_cuts: Sequence[AngleCut],
    winners: Dict[int, CornerClaim],
    config: Optional[GeometryConfig] = None,
) -> Tuple[List[Point], List[AngleSegment], List[SkippedFeature]]:
    """Apply chamfers anchored on base corners, in list order."""
    cfg = config or DEFAULT_CONFIG
    ring = list(base)
    segments: List[AngleSegment] = []
    skipped: List[SkippedFeature] = []

    for cut in angle_cuts:
        index = cut.anchor_corner_index
        if index < 0 or index >= len(base):
            continue
        if not holds_corner(cut.id, index, winners):
            winner = winners.get(index)
            reason = f"corner {index} held by {winner.kind.value}" if winner else "inactive angle cut"
            logger.debug("Skipping angle cut %s: %s", cut.id, reason)
            skipped.append(SkippedFeature(cut.id, reason))
            continue
        anchor = matching_vertex_index(base[index], ring, cfg.vertex_match_epsilon)
        if anchor is None:
            skipped.append(SkippedFeature(cut.id, f"corner {index} already cut away"))
            continue
        first, second = _chamfer_endpoints(ring, base, anchor, cut, cfg)
        result = chamfer_ring(ring, first, second, cfg.dedupe_epsilon) if first and second else None
        if result is None:
            logger.debug("Skipping angle cut %s: degenerate chamfer", cut.id)
            skipped.append(SkippedFeature(cut.id, "degenerate chamfer"))
            continue
        cut_ring, start, end = result
        ring = canonical_order(cut_ring)
        segments.append(AngleSegment(cut.id, start, end))

    return ring, segments, skipped


# ─── Editor helpers ─────────────────────────────────────────────────────────


def chamfer_angle_degrees(
    piece: Piece,
    anchor_corner_index: int,
    anchor_offset: float,
    secondary_corner_index: int,
    secondary_offset: float,
    config: Optional[GeometryConfig] = None,
) -> Optional[float]:
    """Acute angle between the anchor edge and a two-point chamfer."""
    points = base_corner_points(piece, config)
    if len(points) < 3:
        return None
    first = point_along_perimeter(points, anchor_corner_index, anchor_offset)
    second = point_along_perimeter(points, secondary_corner_index, secondary_offset)
    if first is None or second is None:
        return None
    n = len(points)
    tangent = prim.unit_vector(points[first.segment_index], points[(first.segment_index + 1) % n])
    chord = prim.unit_vector(first.point, second.point)
    cosine = max(-1.0, min(1.0, prim.dot(tangent, chord)))
    radians = math.acos(cosine)
    return math.degrees(min(radians, math.pi - radians))


def secondary_point(
    piece: Piece,
    anchor_corner_index: int,
    anchor_offset: float,
    angle_degrees: float,
    config: Optional[GeometryConfig] = None,
) -> Optional[Tuple[int, float]]:
    """Two-point equivalent (corner index, offset) of an angle-mode chamfer."""
    points = base_corner_points(piece, config)
    if len(points) < 3:
        return None
    anchor = prim.normalized_index(anchor_corner_index, len(points))
    first = point_along_perimeter(points, anchor, anchor_offset)
    if first is None:
        return None
    hit = angle_mode_point(points, anchor, first, angle_degrees)
    if hit is None:
        return None
    return hit.segment_index, prim.distance(points[hit.segment_index], hit.point)

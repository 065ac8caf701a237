"""
Corner and segment enumeration.

Index domains offered back to the editor: the drawable corner list, the
sub-segments of each nominal edge, and the corner-index ranges appended for
interior cutouts.
"""
import logging
from typing import List, Optional, Tuple

from shapely.geometry import Polygon

from piece_geometry.chamfers import apply_angle_cuts
from piece_geometry.claims import resolve_corner_claims
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    AngleSegment,
    BoundarySegment,
    Cutout,
    CutoutCornerPosition,
    CutoutCornerRange,
    EdgePosition,
    GeometryConfig,
    Piece,
    Point,
    SkippedFeature,
)
from piece_geometry import primitives as prim
from piece_geometry.templates import (
    base_corner_points,
    interior_cutouts,
    notched_outline,
    on_edge_line,
    template_corners,
    template_edge_geometry,
)

logger = logging.getLogger(__name__)


def straight_outline(
    piece: Piece,
    config: Optional[GeometryConfig] = None,
) -> Tuple[List[Point], List[AngleSegment], List[SkippedFeature]]:
    """Notched and chamfered polygon, before curves and fillets."""
    base, skipped = notched_outline(piece, config)
    if len(base) < 3:
        return base, [], skipped
    winners = resolve_corner_claims(piece, config)
    points, segments, cut_skips = apply_angle_cuts(base, piece.angle_cuts, winners, config)
    return points, segments, skipped + cut_skips


def corner_points(piece: Piece, include_angles: bool = True, config: Optional[GeometryConfig] = None) -> List[Point]:
    """Display-space corners in canonical order.

    Without angles this is the bare shape template, the stable frame for
    corner pickers. With angles it is the drawable list: notches spliced in
    and chamfers applied. Curved shapes have no corners.
    """
    if not include_angles:
        return template_corners(piece, config)
    return straight_outline(piece, config)[0]


def display_polygon_points(piece: Piece, include_angles: bool = True, config: Optional[GeometryConfig] = None) -> List[Point]:
    return corner_points(piece, include_angles, config)


def angle_segments(piece: Piece, config: Optional[GeometryConfig] = None) -> List[AngleSegment]:
    return straight_outline(piece, config)[1]


# ─── Boundary segments ──────────────────────────────────────────────────────


def _recessed_wall(
    a: Point,
    b: Point,
    edge_start: Point,
    edge_end: Point,
    outline: Polygon,
    eps: float,
) -> bool:
    """A notch floor or side wall facing the edge with open space in between."""
    seg_dir = prim.unit_vector(a, b)
    edge_dir = prim.unit_vector(edge_start, edge_end)
    if abs(prim.cross(seg_dir, edge_dir)) > eps:
        return False
    seg_normal = prim.outward_normal(a, b, clockwise=False)
    edge_normal = prim.outward_normal(edge_start, edge_end, clockwise=False)
    if prim.dot(seg_normal, edge_normal) < 1 - eps:
        return False
    depth = prim.point_line_distance(a, edge_start, edge_end)
    if depth < eps:
        return False
    pa = prim.offset(a, edge_normal, depth)
    pb = prim.offset(b, edge_normal, depth)
    gap = Polygon([a, b, pb, pa])
    if not gap.is_valid or gap.area <= eps:
        return False
    return outline.intersection(gap).area <= eps * max(gap.area, 1.0)


def _sort_key(edge: EdgePosition, start: Point, end: Point, edge_start: Point, edge_end: Point) -> float:
    if edge in (EdgePosition.TOP, EdgePosition.BOTTOM, EdgePosition.LEG_A):
        return min(start[0], end[0])
    if edge in (EdgePosition.LEFT, EdgePosition.RIGHT, EdgePosition.LEG_B):
        return min(start[1], end[1])
    mid = prim.lerp(start, end, 0.5)
    direction = prim.unit_vector(edge_start, edge_end)
    return prim.dot((mid[0] - edge_start[0], mid[1] - edge_start[1]), direction)


def boundary_segments(piece: Piece, config: Optional[GeometryConfig] = None) -> List[BoundarySegment]:
    """Split each nominal edge into its straight runs.

    A run belongs to an edge when it lies on the edge line, or when it is a
    notch wall parallel to the edge, facing the same way, with no material
    between it and the edge. Runs are numbered per edge in reading order
    (left to right, top to bottom, and from the leg A end of the hypotenuse).
    """
    cfg = config or DEFAULT_CONFIG
    points = corner_points(piece, True, cfg)
    n = len(points)
    if n < 3:
        return []
    edges = template_edge_geometry(piece, cfg)
    outline = Polygon(points)
    eps = cfg.segment_epsilon

    by_edge = {edge: [] for edge in edges}
    for i in range(n):
        a, b = points[i], points[(i + 1) % n]
        if prim.distance(a, b) < eps:
            continue
        for edge, (start, end) in edges.items():
            if on_edge_line(a, b, (start, end), eps) or _recessed_wall(a, b, start, end, outline, eps):
                by_edge[edge].append((i, a, b))
                break

    segments: List[BoundarySegment] = []
    for edge, (start, end) in edges.items():
        runs = sorted(by_edge[edge], key=lambda r: _sort_key(edge, r[1], r[2], start, end))
        for index, (i, a, b) in enumerate(runs):
            segments.append(BoundarySegment(edge, index, a, b, i, (i + 1) % n))
    return segments


def edge_segment_count(piece: Piece, edge: EdgePosition, config: Optional[GeometryConfig] = None) -> int:
    return sum(1 for s in boundary_segments(piece, config) if s.edge == edge)


# ─── Cutout corner ranges and labels ────────────────────────────────────────


def cutout_corner_ranges(piece: Piece, config: Optional[GeometryConfig] = None) -> List[CutoutCornerRange]:
    """Four corner indices per interior cutout, appended after the base corners."""
    next_index = len(base_corner_points(piece, config))
    ranges = []
    for cutout in interior_cutouts(piece, config):
        ranges.append(CutoutCornerRange(cutout.id, range(next_index, next_index + 4)))
        next_index += 4
    return ranges


def cutout_corner_info(
    piece: Piece,
    index: int,
    config: Optional[GeometryConfig] = None,
) -> Optional[Tuple[Cutout, CutoutCornerPosition, int]]:
    """Resolve a global corner index to (cutout, corner position, local index)."""
    for entry in cutout_corner_ranges(piece, config):
        if index in entry.range:
            local = index - entry.range.start
            cutout = piece.find_cutout(entry.cutout_id)
            if cutout is None:
                return None
            return cutout, CutoutCornerPosition(local), local
    return None


def corner_label_count(piece: Piece, config: Optional[GeometryConfig] = None) -> int:
    return len(base_corner_points(piece, config)) + 4 * len(interior_cutouts(piece, config))


def corner_label(index: int) -> str:
    """Spreadsheet-style label: 0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        return ""
    label = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        label = chr(ord("A") + rem) + label
    return label

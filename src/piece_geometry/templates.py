"""
Shape templates and notch splicing.

Builds the display-space base polygon of a piece: the template corners of its
shape with every notch cut into the boundary. The result is the reference
vertex list that corner indices (radii, angle cuts, curve spans) point into.

Notch membership is derived from the current footprint of each cutout. The
stored ``Cutout.is_notch`` flag never decides whether a cutout merges.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import MultiPolygon, Point as ShapelyPoint, Polygon, box

from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    Cutout,
    CutoutKind,
    EdgePosition,
    GeometryConfig,
    Piece,
    Point,
    ShapeKind,
    Size,
    SkippedFeature,
)
from piece_geometry.coordinates import display_point, display_points, display_size
from piece_geometry import primitives as prim

logger = logging.getLogger(__name__)

RECTANGLE_EDGES = (EdgePosition.TOP, EdgePosition.RIGHT, EdgePosition.BOTTOM, EdgePosition.LEFT)
TRIANGLE_EDGES = (EdgePosition.LEG_A, EdgePosition.HYPOTENUSE, EdgePosition.LEG_B)


# ─── Sizes and edges ────────────────────────────────────────────────────────


def piece_size(piece: Piece, config: Optional[GeometryConfig] = None) -> Size:
    """Raw (width, height), each at least the minimum dimension.

    A quarter circle is always as tall as it is wide.
    """
    cfg = config or DEFAULT_CONFIG
    width = max(piece.width, cfg.min_piece_dimension)
    height = max(piece.height, cfg.min_piece_dimension)
    if piece.shape == ShapeKind.QUARTER_CIRCLE:
        return (width, width)
    return (width, height)


def piece_display_size(piece: Piece, config: Optional[GeometryConfig] = None) -> Size:
    return display_size(piece_size(piece, config))


def piece_corner_count(shape: ShapeKind) -> int:
    if shape == ShapeKind.RECTANGLE:
        return 4
    if shape == ShapeKind.RIGHT_TRIANGLE:
        return 3
    return 0


def edges_for_shape(shape: ShapeKind) -> Tuple[EdgePosition, ...]:
    """Nominal edges in template segment order."""
    if shape == ShapeKind.RECTANGLE:
        return RECTANGLE_EDGES
    if shape == ShapeKind.RIGHT_TRIANGLE:
        return TRIANGLE_EDGES
    return ()


def is_valid_edge(shape: ShapeKind, edge: EdgePosition) -> bool:
    return edge in edges_for_shape(shape)


# ─── Template corners ───────────────────────────────────────────────────────


def canonical_order(points: Sequence[Point]) -> List[Point]:
    """Orient a ring to a positive shoelace sum and start it at the top-left.

    The start is the leftmost vertex in the upper half of the bounds; ties go
    to the higher (smaller y) vertex.
    """
    ordered = list(points)
    if len(ordered) <= 2:
        return ordered
    if prim.polygon_is_clockwise(ordered):
        ordered.reverse()
    mid_y = prim.bounds(ordered).mid_y
    candidates = [(p[0], p[1], i) for i, p in enumerate(ordered) if p[1] <= mid_y]
    if not candidates:
        return ordered
    start = min(candidates)[2]
    return ordered[start:] + ordered[:start]


def template_corners(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Point]:
    """Display-space template corners in canonical order.

    Rectangles give top-left, top-right, bottom-right, bottom-left. Right
    triangles give the right-angle corner, the end of leg A, and the end of
    leg B. Curved shapes have no discrete corners.
    """
    w, h = piece_size(piece, config)
    if piece.shape == ShapeKind.RECTANGLE:
        raw = [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]
    elif piece.shape == ShapeKind.RIGHT_TRIANGLE:
        raw = [(0.0, 0.0), (w, 0.0), (0.0, h)]
    else:
        return []
    return canonical_order(display_points(raw))


def template_edge_geometry(piece: Piece, config: Optional[GeometryConfig] = None):
    """Map each nominal edge to its (start, end) template corners."""
    corners = template_corners(piece, config)
    edges = edges_for_shape(piece.shape)
    n = len(corners)
    return {edge: (corners[i], corners[(i + 1) % n]) for i, edge in enumerate(edges)}


def curved_template_outline(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Point]:
    """Sampled display outline of a circle (ellipse) or quarter circle."""
    cfg = config or DEFAULT_CONFIG
    dw, dh = piece_display_size(piece, cfg)
    n = max(8, cfg.circle_samples)
    if piece.shape == ShapeKind.CIRCLE:
        cx, cy = dw / 2, dh / 2
        pts = [
            (cx + (dw / 2) * math.cos(2 * math.pi * k / n), cy + (dh / 2) * math.sin(2 * math.pi * k / n))
            for k in range(n)
        ]
        return canonical_order(prim.dedupe_points(pts, cfg.dedupe_epsilon))
    if piece.shape == ShapeKind.QUARTER_CIRCLE:
        r = dw
        steps = max(2, n // 4)
        arc = [(r * math.cos(0.5 * math.pi * k / steps), r * math.sin(0.5 * math.pi * k / steps)) for k in range(steps + 1)]
        return canonical_order(prim.dedupe_points([(0.0, 0.0)] + arc, cfg.dedupe_epsilon))
    return []


def template_polygon(piece: Piece, config: Optional[GeometryConfig] = None) -> Polygon:
    """Shapely polygon of the unmodified template in display space."""
    if piece.shape.is_curved:
        return Polygon(curved_template_outline(piece, config))
    return Polygon(template_corners(piece, config))


# ─── Cutout footprints and classification ───────────────────────────────────


def cutout_footprint(cutout: Cutout, config: Optional[GeometryConfig] = None) -> Polygon:
    """Display-space footprint of a cutout (empty for non-positive sizes)."""
    cfg = config or DEFAULT_CONFIG
    w, h = cutout.footprint_size
    if w <= 0 or h <= 0:
        return Polygon()
    cx, cy = display_point(cutout.center)
    if cutout.kind == CutoutKind.CIRCLE:
        return ShapelyPoint(cx, cy).buffer(w / 2, quad_segs=max(4, cfg.circle_samples // 4))
    # raw width runs along display y
    return box(cx - h / 2, cy - w / 2, cx + h / 2, cy + w / 2)


def cutout_corner_points(cutout: Cutout) -> List[Point]:
    """Canonical display corners of a rectangular or square cutout."""
    w, h = cutout.footprint_size
    cx, cy = cutout.center
    raw = [
        (cx - w / 2, cy - h / 2),
        (cx + w / 2, cy - h / 2),
        (cx + w / 2, cy + h / 2),
        (cx - w / 2, cy + h / 2),
    ]
    return canonical_order(display_points(raw))


def cutout_touches_boundary(piece: Piece, cutout: Cutout, config: Optional[GeometryConfig] = None) -> bool:
    """True when the footprint reaches or crosses the template boundary."""
    cfg = config or DEFAULT_CONFIG
    footprint = cutout_footprint(cutout, cfg)
    if footprint.is_empty:
        return False
    inner = template_polygon(piece, cfg).buffer(-cfg.boundary_epsilon)
    return not inner.contains(footprint)


def cutout_center_inside(piece: Piece, cutout: Cutout, config: Optional[GeometryConfig] = None) -> bool:
    cfg = config or DEFAULT_CONFIG
    center = ShapelyPoint(display_point(cutout.center))
    return template_polygon(piece, cfg).buffer(cfg.boundary_epsilon).contains(center)


def is_notch(piece: Piece, cutout: Cutout, config: Optional[GeometryConfig] = None) -> bool:
    """Whether a cutout merges into the outer boundary.

    Only rectangular or square cutouts on rectangles and right triangles
    merge, and only when their centre lies on the piece and their footprint
    reaches the boundary.
    """
    if piece.shape not in (ShapeKind.RECTANGLE, ShapeKind.RIGHT_TRIANGLE):
        return False
    if cutout.kind == CutoutKind.CIRCLE:
        return False
    if cutout_footprint(cutout, config).is_empty:
        return False
    return cutout_center_inside(piece, cutout, config) and cutout_touches_boundary(piece, cutout, config)


def notch_cutouts(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Cutout]:
    return [c for c in piece.cutouts if is_notch(piece, c, config)]


def hole_cutouts(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Cutout]:
    """Cutouts drawn as separate closed loops."""
    return [
        c for c in piece.cutouts
        if not is_notch(piece, c, config) and not cutout_footprint(c, config).is_empty
    ]


def interior_cutouts(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Cutout]:
    """Rectangular or square holes lying fully inside the piece.

    These are the cutouts whose own corners can carry radii and angle cuts.
    """
    return [
        c for c in piece.cutouts
        if c.kind != CutoutKind.CIRCLE
        and not cutout_footprint(c, config).is_empty
        and not cutout_touches_boundary(piece, c, config)
    ]


def cutout_is_within_bounds(piece: Piece, cutout: Cutout, config: Optional[GeometryConfig] = None) -> bool:
    """False when the footprint leaves the piece and cannot merge as a notch.

    A notch the outline has to skip (it would split or remove the piece)
    counts as out of bounds too.
    """
    cfg = config or DEFAULT_CONFIG
    footprint = cutout_footprint(cutout, cfg)
    if footprint.is_empty:
        return True
    if template_polygon(piece, cfg).buffer(cfg.boundary_epsilon).contains(footprint):
        return True
    if not is_notch(piece, cutout, cfg):
        return False
    _, skipped = notched_outline(piece, cfg)
    return all(s.feature_id != cutout.id for s in skipped)


# ─── Notch splicing ─────────────────────────────────────────────────────────


def _snapped_footprint(footprint: Polygon, template: Polygon, snap: float) -> Polygon:
    """Stretch a box footprint past any template side it nearly reaches."""
    minx, miny, maxx, maxy = footprint.bounds
    tminx, tminy, tmaxx, tmaxy = template.bounds
    overshoot = 1.0
    if minx <= tminx + snap:
        minx = tminx - overshoot
    if miny <= tminy + snap:
        miny = tminy - overshoot
    if maxx >= tmaxx - snap:
        maxx = tmaxx + overshoot
    if maxy >= tmaxy - snap:
        maxy = tmaxy + overshoot
    return box(minx, miny, maxx, maxy)


def _corner_notch_region(
    cutout: Cutout,
    corners: Sequence[Point],
    index: int,
    cfg: GeometryConfig,
) -> Polygon:
    """Parallelogram cut at template corner ``index``.

    Each side runs along an adjacent edge for the footprint's extent in that
    direction, capped just short of the edge length.
    """
    n = len(corners)
    corner = corners[index]
    prev = corners[(index - 1) % n]
    nxt = corners[(index + 1) % n]
    to_prev = prim.unit_vector(corner, prev)
    to_next = prim.unit_vector(corner, nxt)
    fminx, fminy, fmaxx, fmaxy = cutout_footprint(cutout, cfg).bounds
    dw, dh = fmaxx - fminx, fmaxy - fminy

    along_prev = min(dw * abs(to_prev[0]) + dh * abs(to_prev[1]), prim.distance(corner, prev) * cfg.corner_notch_cap)
    along_next = min(dw * abs(to_next[0]) + dh * abs(to_next[1]), prim.distance(corner, nxt) * cfg.corner_notch_cap)
    if along_prev <= 0 or along_next <= 0:
        return Polygon()
    p1 = prim.offset(corner, to_prev, along_prev)
    p3 = prim.offset(corner, to_next, along_next)
    p2 = prim.offset(p1, to_next, along_next)
    # extend outward past the corner so the difference leaves no sliver
    out = (-(to_prev[0] + to_next[0]), -(to_prev[1] + to_next[1]))
    return Polygon([prim.offset(corner, out, 1.0), p1, p2, p3]).union(Polygon([corner, p1, p2, p3]))


def notch_region(piece: Piece, cutout: Cutout, config: Optional[GeometryConfig] = None) -> Polygon:
    """Material removed from the template by one notch."""
    cfg = config or DEFAULT_CONFIG
    template = template_polygon(piece, cfg)
    corners = template_corners(piece, cfg)
    hint = cutout.corner_hint
    if hint is not None and 0 <= hint < len(corners):
        return _corner_notch_region(cutout, corners, hint, cfg)
    return _snapped_footprint(cutout_footprint(cutout, cfg), template, cfg.notch_snap_epsilon)


def _largest_part(geometry) -> Optional[Polygon]:
    if geometry.is_empty:
        return None
    if isinstance(geometry, Polygon):
        return geometry
    if isinstance(geometry, MultiPolygon):
        return max(geometry.geoms, key=lambda g: g.area)
    polygons = [g for g in getattr(geometry, "geoms", []) if isinstance(g, Polygon)]
    return max(polygons, key=lambda g: g.area) if polygons else None


def ring_points(polygon: Polygon, config: Optional[GeometryConfig] = None) -> List[Point]:
    """Canonical vertex list of a polygon's exterior, collinear points removed."""
    cfg = config or DEFAULT_CONFIG
    coords = [(float(x), float(y)) for x, y in list(polygon.exterior.coords)[:-1]]
    ring = prim.drop_collinear(prim.dedupe_points(coords, cfg.dedupe_epsilon), cfg.dedupe_epsilon)
    return canonical_order(ring)


def notched_outline(
    piece: Piece,
    config: Optional[GeometryConfig] = None,
) -> Tuple[List[Point], List[SkippedFeature]]:
    """Template corners with every notch spliced in.

    A notch that would split the piece or consume it entirely is skipped.
    """
    cfg = config or DEFAULT_CONFIG
    corners = template_corners(piece, cfg)
    if len(corners) < 3:
        return corners, []
    notches = notch_cutouts(piece, cfg)
    if not notches:
        return corners, []

    outline = Polygon(corners)
    skipped: List[SkippedFeature] = []
    for notch in notches:
        region = notch_region(piece, notch, cfg)
        if region.is_empty:
            skipped.append(SkippedFeature(notch.id, "degenerate notch"))
            continue
        result = outline.difference(region)
        if result.is_empty or isinstance(result, MultiPolygon):
            logger.debug("Skipping notch %s: it would split or remove the piece", notch.id)
            skipped.append(SkippedFeature(notch.id, "notch splits the piece"))
            continue
        part = _largest_part(result)
        if part is None or part.area <= cfg.segment_epsilon:
            skipped.append(SkippedFeature(notch.id, "notch removes the piece"))
            continue
        outline = part
    return ring_points(outline, cfg), skipped


def base_corner_points(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Point]:
    """The vertex list corner indices refer to: template plus notches."""
    return notched_outline(piece, config)[0]


def base_corner_count(piece: Piece, config: Optional[GeometryConfig] = None) -> int:
    return len(base_corner_points(piece, config))


def matching_vertex_index(target: Point, points: Sequence[Point], tolerance: float) -> Optional[int]:
    """Index of a vertex within tolerance of target, else None."""
    if not points:
        return None
    index = prim.nearest_point_index(target, points)
    if prim.distance(points[index], target) <= tolerance:
        return index
    return None


def on_edge_line(a: Point, b: Point, edge: Tuple[Point, Point], eps: float) -> bool:
    """True when both points lie on the infinite line through an edge."""
    start, end = edge
    return prim.point_line_distance(a, start, end) < eps and prim.point_line_distance(b, start, end) < eps

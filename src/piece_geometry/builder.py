"""
Polygon builder.

Composes the template, notches, chamfers, curved edges and fillets of a piece
into one closed display-space outline, plus a separate closed loop for each
cutout that is not merged into the boundary.

Pipeline (straight polygon first, then emission):

  1. template corners, or a sampled arc for circle and quarter circle
  2. notches spliced in (``templates.notched_outline``)
  3. corner claims resolved: curve span > corner radius > angle cut
  4. chamfers applied on the corners they hold
  5. curved edges mapped onto single straight runs of that polygon
  6. the polygon walked once, emitting fillet arcs at filleted corners and
     bezier samples along curved runs
  7. deduplicated

Features that cannot be applied are skipped, logged, and listed in
``PieceGeometry.skipped``; the outline falls back to the straight shape.
"""
import copy
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from piece_geometry.chamfers import apply_angle_cuts
from piece_geometry.claims import (
    CornerClaim,
    feature_claims,
    holds_corner,
    resolve_claims,
    resolve_corner_claims,
)
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    AngleCut,
    CornerRadius,
    Cutout,
    CutoutKind,
    CurvedEdge,
    GeometryConfig,
    Piece,
    PieceGeometry,
    Point,
    SkippedFeature,
)
from piece_geometry.enumerator import cutout_corner_ranges
from piece_geometry import primitives as prim
from piece_geometry.templates import (
    canonical_order,
    curved_template_outline,
    cutout_corner_points,
    cutout_footprint,
    hole_cutouts,
    is_valid_edge,
    matching_vertex_index,
    notched_outline,
    on_edge_line,
    template_edge_geometry,
)

logger = logging.getLogger(__name__)

MIN_CORNER_ANGLE = 1e-3


# ─── Fillets ────────────────────────────────────────────────────────────────


def fillet_arc(
    prev: Point,
    corner: Point,
    nxt: Point,
    radius: float,
    is_inside: bool = False,
    samples: int = 12,
) -> Optional[List[Point]]:
    """Arc tangent to both edges at ``corner``, from the previous edge to the next.

    The tangent distance is limited to half the shorter adjacent edge, which
    shrinks the effective radius. ``is_inside`` mirrors the arc centre across
    the chord so the arc bows away from the corner, cutting a cove. Returns
    None for a non-positive radius or a straight corner.
    """
    if radius <= 0:
        return None
    u1 = prim.unit_vector(corner, prev)
    u2 = prim.unit_vector(corner, nxt)
    if u1 == (0.0, 0.0) or u2 == (0.0, 0.0):
        return None
    angle = math.acos(max(-1.0, min(1.0, prim.dot(u1, u2))))
    if angle < MIN_CORNER_ANGLE or angle > math.pi - MIN_CORNER_ANGLE:
        return None

    half = angle / 2
    tangent = radius / math.tan(half)
    limit = min(prim.distance(corner, prev), prim.distance(corner, nxt)) / 2
    if tangent > limit:
        tangent = limit
    effective = tangent * math.tan(half)

    t1 = prim.offset(corner, u1, tangent)
    t2 = prim.offset(corner, u2, tangent)
    bisector = prim.unit_vector((0.0, 0.0), (u1[0] + u2[0], u1[1] + u2[1]))
    center = prim.offset(corner, bisector, effective / math.sin(half))
    if is_inside:
        mid = prim.lerp(t1, t2, 0.5)
        center = (2 * mid[0] - center[0], 2 * mid[1] - center[1])

    a1 = math.atan2(t1[1] - center[1], t1[0] - center[0])
    a2 = math.atan2(t2[1] - center[1], t2[0] - center[0])
    sweep = (a2 - a1 + math.pi) % (2 * math.pi) - math.pi
    steps = max(2, samples)
    arc = [
        (center[0] + effective * math.cos(a1 + sweep * k / steps), center[1] + effective * math.sin(a1 + sweep * k / steps))
        for k in range(steps + 1)
    ]
    arc[0] = t1
    arc[-1] = t2
    return arc


# ─── Curves ─────────────────────────────────────────────────────────────────


def curve_control_point(start: Point, end: Point, radius: float, is_concave: bool, clockwise: bool = False) -> Point:
    """Control point offset 2 * radius from the chord midpoint along the outward normal."""
    mid = prim.lerp(start, end, 0.5)
    normal = prim.outward_normal(start, end, clockwise)
    depth = radius * 2 * (-1 if is_concave else 1)
    return prim.offset(mid, normal, depth)


def _curve_segment(
    curve: CurvedEdge,
    ring: Sequence[Point],
    base: Sequence[Point],
    edge: Tuple[Point, Point],
    cfg: GeometryConfig,
) -> Tuple[Optional[int], str]:
    """Index of the ring segment a curve replaces, or (None, reason)."""
    n = len(ring)
    eps = cfg.segment_epsilon
    if curve.has_span:
        si, ei = curve.start_corner_index, curve.end_corner_index
        if not (0 <= si < len(base) and 0 <= ei < len(base)) or si == ei:
            return None, "span corners out of range"
        if not on_edge_line(base[si], base[ei], edge, eps):
            return None, "span is not on the edge"
        i = matching_vertex_index(base[si], ring, cfg.vertex_match_epsilon)
        j = matching_vertex_index(base[ei], ring, cfg.vertex_match_epsilon)
        if i is None or j is None:
            return None, "span corner cut away"
        if j == (i + 1) % n:
            return i, ""
        if i == (j + 1) % n:
            return j, ""
        return None, "span is not one straight run"

    runs = [i for i in range(n) if on_edge_line(ring[i], ring[(i + 1) % n], edge, eps)]
    if len(runs) != 1:
        return None, "edge is interrupted"
    return runs[0], ""


def map_curves(
    piece: Piece,
    ring: Sequence[Point],
    base: Sequence[Point],
    cfg: GeometryConfig,
) -> Tuple[Dict[int, CurvedEdge], List[SkippedFeature]]:
    """Assign curved edges to ring segments."""
    edges = template_edge_geometry(piece, cfg)
    mapped: Dict[int, CurvedEdge] = {}
    skipped: List[SkippedFeature] = []
    for curve in piece.curved_edges:
        if curve.radius == 0:
            continue
        if not is_valid_edge(piece.shape, curve.edge):
            logger.debug("Ignoring curve %s: %s is not an edge of a %s", curve.id, curve.edge.value, piece.shape.value)
            skipped.append(SkippedFeature(curve.id, f"{curve.edge.value} is not an edge of this shape"))
            continue
        index, reason = _curve_segment(curve, ring, base, edges[curve.edge], cfg)
        if index is None:
            logger.debug("Curve %s left straight: %s", curve.id, reason)
            skipped.append(SkippedFeature(curve.id, reason))
            continue
        if index in mapped:
            skipped.append(SkippedFeature(curve.id, "segment already curved"))
            continue
        mapped[index] = curve
    return mapped, skipped


# ─── Emission ───────────────────────────────────────────────────────────────


def map_fillets(
    radii: Sequence[CornerRadius],
    ring: Sequence[Point],
    base: Sequence[Point],
    winners: Dict[int, CornerClaim],
    cfg: GeometryConfig,
) -> Tuple[Dict[int, CornerRadius], List[SkippedFeature]]:
    mapped: Dict[int, CornerRadius] = {}
    skipped: List[SkippedFeature] = []
    for radius in radii:
        index = radius.corner_index
        if radius.radius <= 0 or index < 0 or index >= len(base):
            continue
        if not holds_corner(radius.id, index, winners):
            winner = winners.get(index)
            reason = f"corner {index} held by {winner.kind.value}" if winner else "corner unavailable"
            logger.debug("Skipping corner radius %s: %s", radius.id, reason)
            skipped.append(SkippedFeature(radius.id, reason))
            continue
        vertex = matching_vertex_index(base[index], ring, cfg.vertex_match_epsilon)
        if vertex is None:
            skipped.append(SkippedFeature(radius.id, f"corner {index} cut away"))
            continue
        mapped[vertex] = radius
    return mapped, skipped


def emit_outline(
    ring: Sequence[Point],
    fillets: Dict[int, CornerRadius],
    curves: Dict[int, CurvedEdge],
    config: Optional[GeometryConfig] = None,
) -> List[Point]:
    """Walk a straight ring once, expanding fillets and curved runs."""
    cfg = config or DEFAULT_CONFIG
    n = len(ring)
    if n < 3:
        return list(ring)

    corners: List[List[Point]] = []
    for i in range(n):
        arc = None
        if i in fillets:
            r = fillets[i]
            arc = fillet_arc(ring[i - 1], ring[i], ring[(i + 1) % n], r.radius, r.is_inside, cfg.fillet_samples)
        corners.append(arc or [ring[i]])

    points: List[Point] = []
    for i in range(n):
        points.extend(corners[i])
        if i in curves:
            start = corners[i][-1]
            end = corners[(i + 1) % n][0]
            curve = curves[i]
            control = curve_control_point(start, end, curve.radius, curve.is_concave)
            points.extend(prim.sample_quad_bezier(start, control, end, cfg.curve_samples)[1:-1])
    return prim.dedupe_points(points, cfg.dedupe_epsilon)


# ─── Cutouts ────────────────────────────────────────────────────────────────


def cutout_path(
    cutout: Cutout,
    angle_cuts: Sequence[AngleCut] = (),
    corner_radii: Sequence[CornerRadius] = (),
    config: Optional[GeometryConfig] = None,
) -> List[Point]:
    """Closed display-space loop of one hole.

    Feature corner indices are local to the cutout (0-3, canonical order).
    Circles ignore corner features.
    """
    cfg = config or DEFAULT_CONFIG
    if cutout.kind == CutoutKind.CIRCLE:
        footprint = cutout_footprint(cutout, cfg)
        if footprint.is_empty:
            return []
        coords = [(float(x), float(y)) for x, y in list(footprint.exterior.coords)[:-1]]
        return canonical_order(prim.dedupe_points(coords, cfg.dedupe_epsilon))

    w, h = cutout.footprint_size
    if w <= 0 or h <= 0:
        return []
    corners = cutout_corner_points(cutout)
    claims = [c for f in [*corner_radii, *angle_cuts] for c in feature_claims(f) if c.corner_index < 4]
    winners = resolve_claims(claims)
    ring, _, _ = apply_angle_cuts(corners, angle_cuts, winners, cfg)
    fillets, _ = map_fillets(corner_radii, ring, corners, winners, cfg)
    return emit_outline(ring, fillets, {}, cfg)


def _local_cutout_features(
    piece: Piece,
    winners: Dict[int, CornerClaim],
    config: Optional[GeometryConfig] = None,
) -> Dict[str, Tuple[List[AngleCut], List[CornerRadius]]]:
    """Winning corner features of each interior cutout, re-indexed 0-3."""
    features: Dict[str, Tuple[List[AngleCut], List[CornerRadius]]] = {}
    for entry in cutout_corner_ranges(piece, config):
        cuts: List[AngleCut] = []
        radii: List[CornerRadius] = []
        for cut in piece.angle_cuts:
            if cut.anchor_corner_index in entry.range and holds_corner(cut.id, cut.anchor_corner_index, winners):
                local = copy.copy(cut)
                local.anchor_corner_index -= entry.range.start
                if cut.secondary_corner_index in entry.range:
                    local.secondary_corner_index -= entry.range.start
                else:
                    local.secondary_corner_index = local.anchor_corner_index
                cuts.append(local)
        for radius in piece.corner_radii:
            if radius.corner_index in entry.range and holds_corner(radius.id, radius.corner_index, winners):
                local = copy.copy(radius)
                local.corner_index -= entry.range.start
                radii.append(local)
        features[entry.cutout_id] = (cuts, radii)
    return features


# ─── Entry points ───────────────────────────────────────────────────────────


def build_piece_geometry(piece: Piece, config: Optional[GeometryConfig] = None) -> PieceGeometry:
    """Outline, holes and chamfer segments for a piece."""
    cfg = config or DEFAULT_CONFIG
    skipped: List[SkippedFeature] = []
    winners = resolve_corner_claims(piece, cfg)

    if piece.shape.is_curved:
        outline = curved_template_outline(piece, cfg)
        for curve in piece.curved_edges:
            logger.debug("Ignoring curve %s on %s piece %s", curve.id, piece.shape.value, piece.id)
            skipped.append(SkippedFeature(curve.id, f"{piece.shape.value} has no straight edges"))
        segments = []
    else:
        base, notch_skips = notched_outline(piece, cfg)
        skipped.extend(notch_skips)
        ring, segments, cut_skips = apply_angle_cuts(base, piece.angle_cuts, winners, cfg)
        skipped.extend(cut_skips)
        curves, curve_skips = map_curves(piece, ring, base, cfg)
        skipped.extend(curve_skips)
        fillets, fillet_skips = map_fillets(piece.corner_radii, ring, base, winners, cfg)
        skipped.extend(fillet_skips)
        outline = emit_outline(ring, fillets, curves, cfg)

    local = _local_cutout_features(piece, winners, cfg)
    holes = []
    for cutout in hole_cutouts(piece, cfg):
        cuts, radii = local.get(cutout.id, ([], []))
        loop = cutout_path(cutout, cuts, radii, cfg)
        if loop:
            holes.append(loop)

    return PieceGeometry(outline=outline, holes=holes, angle_segments=segments, skipped=skipped)


def path(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Point]:
    """Full drawable outer boundary in display space."""
    return build_piece_geometry(piece, config).outline

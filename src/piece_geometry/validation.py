"""
Validation rules for piece features.

Checks the feature state of a piece for overlapping, out-of-bounds, and
conflicting features. Validation never changes the piece and never blocks
geometry construction: the builder still produces output, and the caller
decides whether errors block saving or export.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import LineString, Polygon

from piece_geometry.builder import curve_control_point, fillet_arc
from piece_geometry.chamfers import apply_angle_cuts
from piece_geometry.claims import ClaimKind, CornerClaim, feature_claims, losing_claims
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    AngleCut,
    CornerRadius,
    CurvedEdge,
    Cutout,
    CutoutKind,
    EdgePosition,
    GeometryConfig,
    Piece,
    Point,
)
from piece_geometry.enumerator import cutout_corner_ranges
from piece_geometry import primitives as prim
from piece_geometry.templates import (
    base_corner_points,
    cutout_footprint,
    cutout_is_within_bounds,
    is_valid_edge,
    notch_cutouts,
    on_edge_line,
    template_edge_geometry,
)

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"


class IssueKind(Enum):
    CUTOUT_OUTSIDE_BOUNDS = "cutoutOutsideBounds"
    CUTOUTS_OVERLAP = "cutoutsOverlap"
    CORNER_RADIUS_CONFLICTS_WITH_ANGLE = "cornerRadiusConflictsWithAngle"
    CUTOUT_ON_CURVED_EDGE = "cutoutOnCurvedEdge"
    CUTOUT_OVERLAPS_CORNER_RADIUS = "cutoutOverlapsCornerRadius"
    CUTOUT_OVERLAPS_ANGLE_CUT = "cutoutOverlapsAngleCut"
    CURVE_ON_NOTCHED_EDGE = "curveOnNotchedEdge"
    CURVE_CONFLICTS_WITH_CORNER_RADIUS = "curveConflictsWithCornerRadius"
    CURVE_CONFLICTS_WITH_ANGLE_CUT = "curveConflictsWithAngleCut"
    CORNER_RADIUS_ON_CURVED_EDGE = "cornerRadiusOnCurvedEdge"
    CORNER_RADIUS_TOO_LARGE = "cornerRadiusTooLarge"
    DUPLICATE_CORNER_FEATURE = "duplicateCornerFeature"


ERROR_KINDS = frozenset({
    IssueKind.CUTOUT_OUTSIDE_BOUNDS,
    IssueKind.CUTOUTS_OVERLAP,
    IssueKind.CORNER_RADIUS_CONFLICTS_WITH_ANGLE,
    IssueKind.CURVE_CONFLICTS_WITH_ANGLE_CUT,
    IssueKind.DUPLICATE_CORNER_FEATURE,
})


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation finding; equal findings compare equal."""

    kind: IssueKind
    entity_ids: Tuple[str, ...]
    corner_index: Optional[int] = None
    edge: Optional[EdgePosition] = None
    value: float = 0.0
    limit: float = 0.0

    @property
    def severity(self) -> str:
        return ERROR if self.kind in ERROR_KINDS else WARNING

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR

    @property
    def message(self) -> str:
        corner = f"corner {self.corner_index}" if self.corner_index is not None else "a corner"
        edge = self.edge.label.lower() if self.edge is not None else "an"
        messages = {
            IssueKind.CUTOUT_OUTSIDE_BOUNDS: "Cutout extends outside the piece",
            IssueKind.CUTOUTS_OVERLAP: "Cutouts overlap",
            IssueKind.CORNER_RADIUS_CONFLICTS_WITH_ANGLE: f"Radius and angle cut both target {corner}",
            IssueKind.CUTOUT_ON_CURVED_EDGE: f"Cutout touches the curved {edge} edge",
            IssueKind.CUTOUT_OVERLAPS_CORNER_RADIUS: f"Cutout overlaps the radius at {corner}",
            IssueKind.CUTOUT_OVERLAPS_ANGLE_CUT: f"Cutout overlaps the angle cut at {corner}",
            IssueKind.CURVE_ON_NOTCHED_EDGE: f"Curve on the {edge} edge is interrupted by a notch",
            IssueKind.CURVE_CONFLICTS_WITH_CORNER_RADIUS: f"Curve span and radius both use {corner}",
            IssueKind.CURVE_CONFLICTS_WITH_ANGLE_CUT: f"Curve and angle cut both use {corner}",
            IssueKind.CORNER_RADIUS_ON_CURVED_EDGE: f"Radius at {corner} touches the curved {edge} edge",
            IssueKind.CORNER_RADIUS_TOO_LARGE: (
                f"Radius {self.value:.3f}in at {corner} exceeds {self.limit:.3f}in"
            ),
            IssueKind.DUPLICATE_CORNER_FEATURE: f"More than one feature of the same kind at {corner}",
        }
        return messages[self.kind]


def has_errors(issues: Sequence[ValidationIssue]) -> bool:
    return any(issue.is_error for issue in issues)


def validate_piece(piece: Piece, config: Optional[GeometryConfig] = None) -> List[ValidationIssue]:
    """Run every check on a piece.

    Args:
        piece: The piece to inspect.
        config: Tolerances; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Issues in check order, without duplicates (empty = valid).
    """
    cfg = config or DEFAULT_CONFIG
    issues: List[ValidationIssue] = []

    issues.extend(_check_cutout_bounds(piece, cfg))
    issues.extend(_check_cutout_overlaps(piece, cfg))
    issues.extend(_check_corner_conflicts(piece, cfg))
    issues.extend(_check_curves(piece, cfg))
    issues.extend(_check_cutouts_vs_corner_features(piece, cfg))
    issues.extend(_check_radius_sizes(piece, cfg))

    unique: List[ValidationIssue] = []
    for issue in issues:
        if issue not in unique:
            unique.append(issue)
    if unique:
        logger.debug("Piece %s: %d validation issue(s)", piece.id, len(unique))
    return unique


# ─── Predicates ─────────────────────────────────────────────────────────────


def cutouts_overlap(a: Cutout, b: Cutout) -> bool:
    """Raw-space overlap test; touching edges do not overlap."""
    aw, ah = a.footprint_size
    bw, bh = b.footprint_size
    a_round = a.kind == CutoutKind.CIRCLE
    b_round = b.kind == CutoutKind.CIRCLE
    if a_round and b_round:
        return prim.distance(a.center, b.center) < aw / 2 + bw / 2
    if not a_round and not b_round:
        return (
            abs(a.center_x - b.center_x) < (aw + bw) / 2
            and abs(a.center_y - b.center_y) < (ah + bh) / 2
        )
    circle, rect = (a, b) if a_round else (b, a)
    rw, rh = rect.footprint_size
    closest = (
        max(rect.center_x - rw / 2, min(circle.center_x, rect.center_x + rw / 2)),
        max(rect.center_y - rh / 2, min(circle.center_y, rect.center_y + rh / 2)),
    )
    return prim.distance(closest, circle.center) < circle.footprint_size[0] / 2


def _curve_chord(piece: Piece, curve: CurvedEdge, cfg: GeometryConfig) -> Optional[Tuple[Point, Point]]:
    """Straight run a curve is requested on (span or whole edge)."""
    if not is_valid_edge(piece.shape, curve.edge) or curve.radius == 0:
        return None
    edge = template_edge_geometry(piece, cfg)[curve.edge]
    if not curve.has_span:
        return edge
    base = base_corner_points(piece, cfg)
    si, ei = curve.start_corner_index, curve.end_corner_index
    if not (0 <= si < len(base) and 0 <= ei < len(base)):
        return None
    if not on_edge_line(base[si], base[ei], edge, cfg.segment_epsilon):
        return None
    return base[si], base[ei]


def _curve_band(chord: Tuple[Point, Point], curve: CurvedEdge, cfg: GeometryConfig) -> Polygon:
    """Area swept between the straight chord and the requested curve."""
    start, end = chord
    control = curve_control_point(start, end, curve.radius, curve.is_concave)
    samples = prim.sample_quad_bezier(start, control, end, cfg.curve_samples)
    band = Polygon(samples)
    return band if band.is_valid else band.buffer(0)


def curve_conflicts_with_notch(piece: Piece, curve: CurvedEdge, config: Optional[GeometryConfig] = None) -> bool:
    """True when a notch reaches the run the curve is requested on."""
    cfg = config or DEFAULT_CONFIG
    chord = _curve_chord(piece, curve, cfg)
    if chord is None:
        return False
    line = LineString(chord)
    return any(
        cutout_footprint(n, cfg).distance(line) <= cfg.boundary_epsilon
        for n in notch_cutouts(piece, cfg)
    )


def cutout_is_on_curved_edge(
    piece: Piece,
    cutout: Cutout,
    config: Optional[GeometryConfig] = None,
) -> Optional[EdgePosition]:
    """Curved edge whose run or swept band the cutout touches, if any."""
    cfg = config or DEFAULT_CONFIG
    footprint = cutout_footprint(cutout, cfg)
    if footprint.is_empty:
        return None
    for curve in piece.curved_edges:
        chord = _curve_chord(piece, curve, cfg)
        if chord is None:
            continue
        if footprint.distance(LineString(chord)) <= cfg.boundary_epsilon:
            return curve.edge
        if footprint.intersection(_curve_band(chord, curve, cfg)).area > cfg.segment_epsilon:
            return curve.edge
    return None


def _base_corner_neighbours(base: Sequence[Point], index: int) -> Tuple[Point, Point, Point]:
    n = len(base)
    return base[(index - 1) % n], base[index], base[(index + 1) % n]


def corner_radius_region(piece: Piece, radius: CornerRadius, config: Optional[GeometryConfig] = None) -> Polygon:
    """Material removed by a fillet at a base corner (empty when inapplicable)."""
    cfg = config or DEFAULT_CONFIG
    base = base_corner_points(piece, cfg)
    if radius.radius <= 0 or not 0 <= radius.corner_index < len(base):
        return Polygon()
    prev, corner, nxt = _base_corner_neighbours(base, radius.corner_index)
    arc = fillet_arc(prev, corner, nxt, radius.radius, radius.is_inside, cfg.fillet_samples)
    if arc is None:
        return Polygon()
    region = Polygon([corner] + arc)
    return region if region.is_valid else region.buffer(0)


def angle_cut_region(piece: Piece, cut: AngleCut, config: Optional[GeometryConfig] = None) -> Polygon:
    """Material removed by an angle cut applied alone to the base outline."""
    cfg = config or DEFAULT_CONFIG
    base = base_corner_points(piece, cfg)
    index = cut.anchor_corner_index
    if not 0 <= index < len(base):
        return Polygon()
    winners = {index: CornerClaim(index, ClaimKind.ANGLE_CUT, cut.id)}
    ring, segments, _ = apply_angle_cuts(base, [cut], winners, cfg)
    if not segments:
        return Polygon()
    return Polygon(base).difference(Polygon(ring))


def cutout_overlaps_corner_radius(
    piece: Piece,
    cutout: Cutout,
    radius: CornerRadius,
    config: Optional[GeometryConfig] = None,
) -> bool:
    cfg = config or DEFAULT_CONFIG
    region = corner_radius_region(piece, radius, cfg)
    if region.is_empty:
        return False
    return cutout_footprint(cutout, cfg).intersection(region).area > cfg.segment_epsilon ** 2


def cutout_overlaps_angle_cut(
    piece: Piece,
    cutout: Cutout,
    cut: AngleCut,
    config: Optional[GeometryConfig] = None,
) -> bool:
    cfg = config or DEFAULT_CONFIG
    region = angle_cut_region(piece, cut, cfg)
    if region.is_empty:
        return False
    return cutout_footprint(cutout, cfg).intersection(region).area > cfg.segment_epsilon ** 2


# ─── Individual checks ──────────────────────────────────────────────────────


def _check_cutout_bounds(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    return [
        ValidationIssue(IssueKind.CUTOUT_OUTSIDE_BOUNDS, (c.id,))
        for c in piece.cutouts
        if not cutout_is_within_bounds(piece, c, cfg)
    ]


def _check_cutout_overlaps(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    issues = []
    cutouts = piece.cutouts
    for i in range(len(cutouts)):
        for j in range(i + 1, len(cutouts)):
            if cutouts_overlap(cutouts[i], cutouts[j]):
                issues.append(ValidationIssue(IssueKind.CUTOUTS_OVERLAP, (cutouts[i].id, cutouts[j].id)))
    return issues


_PAIR_KINDS = {
    frozenset({ClaimKind.CORNER_RADIUS, ClaimKind.ANGLE_CUT}): IssueKind.CORNER_RADIUS_CONFLICTS_WITH_ANGLE,
    frozenset({ClaimKind.CURVE_SPAN, ClaimKind.CORNER_RADIUS}): IssueKind.CURVE_CONFLICTS_WITH_CORNER_RADIUS,
    frozenset({ClaimKind.CURVE_SPAN, ClaimKind.ANGLE_CUT}): IssueKind.CURVE_CONFLICTS_WITH_ANGLE_CUT,
}


def _check_corner_conflicts(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    """Every corner claim that lost to another, reported even though the builder resolves it."""
    issues = []
    for loser, winner in losing_claims(piece, cfg):
        kind = _PAIR_KINDS.get(frozenset({loser.kind, winner.kind}), IssueKind.DUPLICATE_CORNER_FEATURE)
        issues.append(ValidationIssue(kind, (winner.feature_id, loser.feature_id), corner_index=loser.corner_index))
    return issues


def _check_curves(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    issues = []
    base = base_corner_points(piece, cfg)
    for curve in piece.curved_edges:
        chord = _curve_chord(piece, curve, cfg)
        if chord is None:
            continue
        if curve_conflicts_with_notch(piece, curve, cfg):
            issues.append(ValidationIssue(IssueKind.CURVE_ON_NOTCHED_EDGE, (curve.id,), edge=curve.edge))
        for radius in piece.corner_radii:
            if radius.radius <= 0 or not 0 <= radius.corner_index < len(base):
                continue
            if curve.has_span and radius.corner_index in (curve.start_corner_index, curve.end_corner_index):
                continue  # reported as a corner claim conflict
            point = base[radius.corner_index]
            if min(prim.distance(point, chord[0]), prim.distance(point, chord[1])) <= cfg.vertex_match_epsilon:
                issues.append(ValidationIssue(
                    IssueKind.CORNER_RADIUS_ON_CURVED_EDGE,
                    (radius.id, curve.id),
                    corner_index=radius.corner_index,
                    edge=curve.edge,
                ))
        for cut in piece.angle_cuts:
            if not feature_claims(cut) or not 0 <= cut.anchor_corner_index < len(base):
                continue
            if curve.has_span and cut.anchor_corner_index in (curve.start_corner_index, curve.end_corner_index):
                continue  # reported as a corner claim conflict
            point = base[cut.anchor_corner_index]
            if min(prim.distance(point, chord[0]), prim.distance(point, chord[1])) <= cfg.vertex_match_epsilon:
                issues.append(ValidationIssue(
                    IssueKind.CURVE_CONFLICTS_WITH_ANGLE_CUT,
                    (curve.id, cut.id),
                    corner_index=cut.anchor_corner_index,
                    edge=curve.edge,
                ))
    for cutout in piece.cutouts:
        edge = cutout_is_on_curved_edge(piece, cutout, cfg)
        if edge is not None:
            issues.append(ValidationIssue(IssueKind.CUTOUT_ON_CURVED_EDGE, (cutout.id,), edge=edge))
    return issues


def _check_cutouts_vs_corner_features(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    issues = []
    for cutout in piece.cutouts:
        for radius in piece.corner_radii:
            if cutout_overlaps_corner_radius(piece, cutout, radius, cfg):
                issues.append(ValidationIssue(
                    IssueKind.CUTOUT_OVERLAPS_CORNER_RADIUS,
                    (cutout.id, radius.id),
                    corner_index=radius.corner_index,
                ))
        for cut in piece.angle_cuts:
            if cutout_overlaps_angle_cut(piece, cutout, cut, cfg):
                issues.append(ValidationIssue(
                    IssueKind.CUTOUT_OVERLAPS_ANGLE_CUT,
                    (cutout.id, cut.id),
                    corner_index=cut.anchor_corner_index,
                ))
    return issues


def _check_radius_sizes(piece: Piece, cfg: GeometryConfig) -> List[ValidationIssue]:
    """Radius larger than half the shorter edge meeting at its corner."""
    issues = []
    base = base_corner_points(piece, cfg)
    ranges = cutout_corner_ranges(piece, cfg)
    for radius in piece.corner_radii:
        index = radius.corner_index
        if radius.radius <= 0 or index < 0:
            continue
        limit: Optional[float] = None
        if index < len(base) and len(base) >= 3:
            prev, corner, nxt = _base_corner_neighbours(base, index)
            limit = min(prim.distance(prev, corner), prim.distance(corner, nxt)) / 2
        else:
            for entry in ranges:
                if index in entry.range:
                    cutout = piece.find_cutout(entry.cutout_id)
                    if cutout is not None:
                        limit = min(cutout.footprint_size) / 2
        if limit is not None and radius.radius > limit + cfg.dedupe_epsilon:
            issues.append(ValidationIssue(
                IssueKind.CORNER_RADIUS_TOO_LARGE,
                (radius.id,),
                corner_index=index,
                value=radius.radius,
                limit=limit,
            ))
    return issues

"""Public API for the piece drawing geometry kernel."""

from piece_geometry.builder import build_piece_geometry, cutout_path, path
from piece_geometry.claims import ClaimKind, CornerClaim, Eviction, assign_corner_feature, resolve_corner_claims
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    AngleCut,
    AngleSegment,
    BoundarySegment,
    CornerRadius,
    CurvedEdge,
    Cutout,
    CutoutCornerPosition,
    CutoutCornerRange,
    CutoutKind,
    EdgeAssignment,
    EdgePosition,
    GeometryConfig,
    Piece,
    PieceGeometry,
    ShapeKind,
    SkippedFeature,
)
from piece_geometry.coordinates import display_point, display_size, raw_point, raw_size
from piece_geometry.enumerator import (
    angle_segments,
    boundary_segments,
    corner_label,
    corner_label_count,
    corner_points,
    cutout_corner_ranges,
    display_polygon_points,
)
from piece_geometry.migration import migrate_piece, remap_corner_index
from piece_geometry.templates import piece_corner_count, piece_display_size, piece_size
from piece_geometry.validation import IssueKind, ValidationIssue, validate_piece

__all__ = [
    "DEFAULT_CONFIG",
    "AngleCut",
    "AngleSegment",
    "BoundarySegment",
    "ClaimKind",
    "CornerClaim",
    "CornerRadius",
    "CurvedEdge",
    "Cutout",
    "CutoutCornerPosition",
    "CutoutCornerRange",
    "CutoutKind",
    "EdgeAssignment",
    "EdgePosition",
    "Eviction",
    "GeometryConfig",
    "IssueKind",
    "Piece",
    "PieceGeometry",
    "ShapeKind",
    "SkippedFeature",
    "ValidationIssue",
    "angle_segments",
    "assign_corner_feature",
    "boundary_segments",
    "build_piece_geometry",
    "corner_label",
    "corner_label_count",
    "corner_points",
    "cutout_corner_ranges",
    "cutout_path",
    "display_point",
    "display_polygon_points",
    "display_size",
    "migrate_piece",
    "path",
    "piece_corner_count",
    "piece_display_size",
    "piece_size",
    "raw_point",
    "raw_size",
    "remap_corner_index",
    "resolve_corner_claims",
    "validate_piece",
]

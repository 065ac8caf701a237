"""Contracts for the piece geometry kernel.

A Piece owns its feature records by value; features refer to each other only
through string ids. Every length is in inches and every stored coordinate is
in raw space (see ``coordinates``).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from piece_geometry.measurement import parse_inches

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Size = Tuple[float, float]


def new_id() -> str:
    return uuid.uuid4().hex


class ShapeKind(Enum):
    """Nominal template shape of a piece."""

    RECTANGLE = "Rectangle"
    CIRCLE = "Circle"
    RIGHT_TRIANGLE = "Right Triangle"
    QUARTER_CIRCLE = "1/4 Circle"

    @property
    def is_curved(self) -> bool:
        return self in (ShapeKind.CIRCLE, ShapeKind.QUARTER_CIRCLE)


class CutoutKind(Enum):
    CIRCLE = "Circle"
    RECTANGLE = "Rectangle"
    SQUARE = "Square"


class EdgePosition(Enum):
    """Nominal edge of a piece, named in display space.

    Quadrilateral edges and triangle edges share this enum; which members are
    valid depends on the piece shape (see ``templates.is_valid_edge``).
    """

    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"
    HYPOTENUSE = "hypotenuse"
    LEG_A = "legA"
    LEG_B = "legB"

    @property
    def label(self) -> str:
        return _EDGE_LABELS[self]


_EDGE_LABELS = {
    EdgePosition.TOP: "Top",
    EdgePosition.RIGHT: "Right",
    EdgePosition.BOTTOM: "Bottom",
    EdgePosition.LEFT: "Left",
    EdgePosition.HYPOTENUSE: "Hypotenuse",
    EdgePosition.LEG_A: "Leg A",
    EdgePosition.LEG_B: "Leg B",
}


class CutoutCornerPosition(Enum):
    """Local corner of a rectangular cutout, in canonical corner order."""

    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_RIGHT = 2
    BOTTOM_LEFT = 3


@dataclass(frozen=True)
class GeometryConfig:
    """Tolerances and sampling densities used by the kernel."""

    dedupe_epsilon: float = 1e-3
    boundary_epsilon: float = 0.01
    notch_snap_epsilon: float = 0.5
    segment_epsilon: float = 1e-3
    vertex_match_epsilon: float = 0.01
    corner_notch_cap: float = 0.98
    curve_samples: int = 24
    fillet_samples: int = 12
    circle_samples: int = 72
    min_piece_dimension: float = 1.0
    default_width: float = 24.0
    default_height: float = 18.0


DEFAULT_CONFIG = GeometryConfig()


# ─── Feature records ────────────────────────────────────────────────────────


@dataclass
class Cutout:
    """A rectangular, square, or circular opening.

    ``is_notch`` is the editor's hint only: whether a cutout merges into the
    outer boundary is derived from its current footprint on every build.
    ``corner_hint`` optionally names the template corner a corner notch snaps to.
    """

    kind: CutoutKind = CutoutKind.RECTANGLE
    width: float = 2.0
    height: float = 2.0
    center_x: float = 0.0
    center_y: float = 0.0
    is_notch: bool = False
    corner_hint: Optional[int] = None
    id: str = field(default_factory=new_id)

    @property
    def footprint_size(self) -> Size:
        """Raw (width, height) of the footprint; squares use width twice."""
        if self.kind in (CutoutKind.SQUARE, CutoutKind.CIRCLE):
            return (self.width, self.width)
        return (self.width, self.height)

    @property
    def center(self) -> Point:
        return (self.center_x, self.center_y)


@dataclass
class CurvedEdge:
    edge: EdgePosition = EdgePosition.TOP
    radius: float = 1.0
    is_concave: bool = False
    start_corner_index: Optional[int] = None
    end_corner_index: Optional[int] = None
    id: str = field(default_factory=new_id)

    @property
    def has_span(self) -> bool:
        return self.start_corner_index is not None and self.end_corner_index is not None


@dataclass
class AngleCut:
    """Chamfer anchored at a corner.

    Two-point mode (``uses_second_point``) places the second point by an
    offset from ``secondary_corner_index``; angle mode casts a ray from the
    anchor point at ``angle_degrees`` instead.
    """

    anchor_corner_index: int = 0
    anchor_offset: float = 2.0
    secondary_corner_index: int = 0
    secondary_offset: float = 2.0
    uses_second_point: bool = True
    angle_degrees: float = 45.0
    id: str = field(default_factory=new_id)


@dataclass
class CornerRadius:
    corner_index: int = 0
    radius: float = 1.0
    is_inside: bool = False
    id: str = field(default_factory=new_id)


@dataclass
class EdgeAssignment:
    """Edge treatment label; rendered only, never affects geometry."""

    edge_id: str
    treatment_name: str = ""
    treatment_abbreviation: str = ""
    id: str = field(default_factory=new_id)


@dataclass
class Piece:
    shape: ShapeKind = ShapeKind.RECTANGLE
    width: float = 24.0
    height: float = 18.0
    quantity: int = 1
    name: str = "Piece"
    cutouts: List[Cutout] = field(default_factory=list)
    curved_edges: List[CurvedEdge] = field(default_factory=list)
    angle_cuts: List[AngleCut] = field(default_factory=list)
    corner_radii: List[CornerRadius] = field(default_factory=list)
    edge_assignments: List[EdgeAssignment] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def find_cutout(self, cutout_id: str) -> Optional[Cutout]:
        return next((c for c in self.cutouts if c.id == cutout_id), None)

    def find_angle_cut(self, angle_id: str) -> Optional[AngleCut]:
        return next((a for a in self.angle_cuts if a.id == angle_id), None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Piece":
        """Build a Piece from plain (JSON) data.

        Unknown enum values fall back to defaults and sizes may be given as
        fractional-inch text such as ``"24 1/2"``.
        """
        return cls(
            shape=_enum_or_default(ShapeKind, data.get("shape"), ShapeKind.RECTANGLE),
            width=_length(data.get("width"), DEFAULT_CONFIG.default_width),
            height=_length(data.get("height"), DEFAULT_CONFIG.default_height),
            quantity=int(data.get("quantity", 1)),
            name=str(data.get("name", "Piece")),
            cutouts=[_cutout_from_dict(d) for d in data.get("cutouts", [])],
            curved_edges=[_curve_from_dict(d) for d in data.get("curved_edges", [])],
            angle_cuts=[_angle_cut_from_dict(d) for d in data.get("angle_cuts", [])],
            corner_radii=[_radius_from_dict(d) for d in data.get("corner_radii", [])],
            edge_assignments=[
                EdgeAssignment(
                    edge_id=str(d.get("edge_id", "")),
                    treatment_name=str(d.get("treatment_name", "")),
                    treatment_abbreviation=str(d.get("treatment_abbreviation", "")),
                    id=str(d.get("id") or new_id()),
                )
                for d in data.get("edge_assignments", [])
            ],
            id=str(data.get("id") or new_id()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "shape": self.shape.value,
            "width": self.width,
            "height": self.height,
            "quantity": self.quantity,
            "cutouts": [
                {
                    "id": c.id,
                    "kind": c.kind.value,
                    "width": c.width,
                    "height": c.height,
                    "center_x": c.center_x,
                    "center_y": c.center_y,
                    "is_notch": c.is_notch,
                    "corner_hint": c.corner_hint,
                }
                for c in self.cutouts
            ],
            "curved_edges": [
                {
                    "id": e.id,
                    "edge": e.edge.value,
                    "radius": e.radius,
                    "is_concave": e.is_concave,
                    "start_corner_index": e.start_corner_index,
                    "end_corner_index": e.end_corner_index,
                }
                for e in self.curved_edges
            ],
            "angle_cuts": [
                {
                    "id": a.id,
                    "anchor_corner_index": a.anchor_corner_index,
                    "anchor_offset": a.anchor_offset,
                    "secondary_corner_index": a.secondary_corner_index,
                    "secondary_offset": a.secondary_offset,
                    "uses_second_point": a.uses_second_point,
                    "angle_degrees": a.angle_degrees,
                }
                for a in self.angle_cuts
            ],
            "corner_radii": [
                {"id": r.id, "corner_index": r.corner_index, "radius": r.radius, "is_inside": r.is_inside}
                for r in self.corner_radii
            ],
            "edge_assignments": [
                {
                    "id": a.id,
                    "edge_id": a.edge_id,
                    "treatment_name": a.treatment_name,
                    "treatment_abbreviation": a.treatment_abbreviation,
                }
                for a in self.edge_assignments
            ],
        }


# ─── Derived records ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AngleSegment:
    """Display-space chamfer segment produced by one angle cut."""

    id: str
    start: Point
    end: Point


@dataclass(frozen=True)
class BoundarySegment:
    """One straight run of the outer polygon attributed to a nominal edge."""

    edge: EdgePosition
    index: int
    start: Point
    end: Point
    start_index: int
    end_index: int


@dataclass(frozen=True)
class CutoutCornerRange:
    cutout_id: str
    range: range


@dataclass(frozen=True)
class SkippedFeature:
    feature_id: str
    reason: str


@dataclass
class PieceGeometry:
    """Drawable geometry for one piece, all in display space."""

    outline: List[Point]
    holes: List[List[Point]] = field(default_factory=list)
    angle_segments: List[AngleSegment] = field(default_factory=list)
    skipped: List[SkippedFeature] = field(default_factory=list)


# ─── Edge assignment ids ────────────────────────────────────────────────────


@dataclass(frozen=True)
class EdgeRef:
    """Decoded EdgeAssignment target."""

    kind: str  # "edge", "segment", "cutout" or "angle"
    edge: Optional[EdgePosition] = None
    index: Optional[int] = None
    feature_id: Optional[str] = None


def edge_id(edge: EdgePosition) -> str:
    return edge.value


def segment_edge_id(edge: EdgePosition, index: int) -> str:
    return f"segment:{edge.value}:{index}"


def cutout_edge_id(cutout_id: str, edge: EdgePosition) -> str:
    return f"cutout:{cutout_id}:{edge.value}"


def angle_edge_id(angle_id: str) -> str:
    return f"angle:{angle_id}"


def parse_edge_id(raw: str) -> Optional[EdgeRef]:
    """Decode an EdgeAssignment id; unknown formats return None."""
    parts = raw.split(":")
    try:
        if len(parts) == 1:
            return EdgeRef(kind="edge", edge=EdgePosition(parts[0]))
        if parts[0] == "segment" and len(parts) == 3:
            return EdgeRef(kind="segment", edge=EdgePosition(parts[1]), index=int(parts[2]))
        if parts[0] == "cutout" and len(parts) == 3:
            return EdgeRef(kind="cutout", edge=EdgePosition(parts[2]), feature_id=parts[1])
        if parts[0] == "angle" and len(parts) == 2:
            return EdgeRef(kind="angle", feature_id=parts[1])
    except ValueError:
        logger.debug("Unrecognised edge id %r", raw)
        return None
    return None


# ─── from_dict helpers ──────────────────────────────────────────────────────


def _enum_or_default(enum_cls, value, default):
    for member in enum_cls:
        if value == member.value or value == member.name:
            return member
    if value is not None:
        logger.debug("Unknown %s value %r, using %s", enum_cls.__name__, value, default)
    return default


def _length(value, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    parsed = parse_inches(str(value))
    return default if parsed is None else parsed


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _cutout_from_dict(data: Dict[str, Any]) -> Cutout:
    return Cutout(
        kind=_enum_or_default(CutoutKind, data.get("kind"), CutoutKind.RECTANGLE),
        width=_length(data.get("width"), 2.0),
        height=_length(data.get("height"), 2.0),
        center_x=_length(data.get("center_x"), 0.0),
        center_y=_length(data.get("center_y"), 0.0),
        is_notch=bool(data.get("is_notch", False)),
        corner_hint=_optional_int(data.get("corner_hint")),
        id=str(data.get("id") or new_id()),
    )


def _curve_from_dict(data: Dict[str, Any]) -> CurvedEdge:
    return CurvedEdge(
        edge=_enum_or_default(EdgePosition, data.get("edge"), EdgePosition.TOP),
        radius=_length(data.get("radius"), 1.0),
        is_concave=bool(data.get("is_concave", False)),
        start_corner_index=_optional_int(data.get("start_corner_index")),
        end_corner_index=_optional_int(data.get("end_corner_index")),
        id=str(data.get("id") or new_id()),
    )


def _angle_cut_from_dict(data: Dict[str, Any]) -> AngleCut:
    return AngleCut(
        anchor_corner_index=int(data.get("anchor_corner_index", 0)),
        anchor_offset=_length(data.get("anchor_offset"), 2.0),
        secondary_corner_index=int(data.get("secondary_corner_index", 0)),
        secondary_offset=_length(data.get("secondary_offset"), 2.0),
        uses_second_point=bool(data.get("uses_second_point", True)),
        angle_degrees=float(data.get("angle_degrees", 45.0)),
        id=str(data.get("id") or new_id()),
    )


def _radius_from_dict(data: Dict[str, Any]) -> CornerRadius:
    return CornerRadius(
        corner_index=int(data.get("corner_index", 0)),
        radius=_length(data.get("radius"), 1.0),
        is_inside=bool(data.get("is_inside", False)),
        id=str(data.get("id") or new_id()),
    )

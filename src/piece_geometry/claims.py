"""
Corner claims.

Corner radii, angle cuts and explicit curve spans all attach to corner
indices. This module makes the corner → feature map explicit, resolves
competing claims with a fixed precedence, and performs corner assignment as
one atomic, pure operation that reports what it evicted.

Precedence (highest first): curve-span endpoint, corner radius, angle cut.
Curve spans may share endpoints with each other.
"""
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from piece_geometry.contracts import (
    AngleCut,
    CornerRadius,
    CurvedEdge,
    GeometryConfig,
    Piece,
    ShapeKind,
)
from piece_geometry.templates import base_corner_count, interior_cutouts, is_valid_edge

logger = logging.getLogger(__name__)

CornerFeature = Union[CornerRadius, AngleCut, CurvedEdge]


class ClaimKind(Enum):
    CURVE_SPAN = "curve_span"
    CORNER_RADIUS = "corner_radius"
    ANGLE_CUT = "angle_cut"


CLAIM_PRECEDENCE = (ClaimKind.CURVE_SPAN, ClaimKind.CORNER_RADIUS, ClaimKind.ANGLE_CUT)


@dataclass(frozen=True)
class CornerClaim:
    corner_index: int
    kind: ClaimKind
    feature_id: str

    @property
    def rank(self) -> int:
        return CLAIM_PRECEDENCE.index(self.kind)


@dataclass(frozen=True)
class Eviction:
    """A feature removed because another feature took its corner."""

    corner_index: int
    kind: ClaimKind
    feature_id: str
    evicted_by: str


def claim_domain(piece: Piece, config: Optional[GeometryConfig] = None) -> int:
    """Number of claimable corner indices (base corners plus cutout corners)."""
    return base_corner_count(piece, config) + 4 * len(interior_cutouts(piece, config))


def _angle_cut_is_active(cut: AngleCut) -> bool:
    if cut.anchor_corner_index < 0:
        return False
    if cut.uses_second_point:
        return abs(cut.anchor_offset) > 0 or abs(cut.secondary_offset) > 0
    return abs(cut.anchor_offset) > 0


def feature_claims(feature: CornerFeature, shape: Optional[ShapeKind] = None) -> List[CornerClaim]:
    """Corner claims made by a single feature, before range checks."""
    if isinstance(feature, CornerRadius):
        if feature.radius > 0 and feature.corner_index >= 0:
            return [CornerClaim(feature.corner_index, ClaimKind.CORNER_RADIUS, feature.id)]
        return []
    if isinstance(feature, AngleCut):
        if _angle_cut_is_active(feature):
            return [CornerClaim(feature.anchor_corner_index, ClaimKind.ANGLE_CUT, feature.id)]
        return []
    if isinstance(feature, CurvedEdge):
        if not feature.has_span or feature.radius == 0:
            return []
        if shape is not None and not is_valid_edge(shape, feature.edge):
            return []
        indices = {feature.start_corner_index, feature.end_corner_index}
        return [CornerClaim(i, ClaimKind.CURVE_SPAN, feature.id) for i in sorted(indices) if i >= 0]
    return []


def corner_claims(piece: Piece, config: Optional[GeometryConfig] = None) -> List[CornerClaim]:
    """Every in-range claim, in feature order: curves, radii, angle cuts."""
    domain = claim_domain(piece, config)
    claims: List[CornerClaim] = []
    features: List[CornerFeature] = [*piece.curved_edges, *piece.corner_radii, *piece.angle_cuts]
    for feature in features:
        for claim in feature_claims(feature, piece.shape):
            if claim.corner_index < domain:
                claims.append(claim)
            else:
                logger.debug("Ignoring claim on corner %d (only %d corners)", claim.corner_index, domain)
    return claims


def resolve_claims(claims: Iterable[CornerClaim]) -> Dict[int, CornerClaim]:
    """Winning claim per corner index; earlier claims win ties of equal rank."""
    winners: Dict[int, CornerClaim] = {}
    for claim in claims:
        current = winners.get(claim.corner_index)
        if current is None or claim.rank < current.rank:
            winners[claim.corner_index] = claim
    return winners


def resolve_corner_claims(piece: Piece, config: Optional[GeometryConfig] = None) -> Dict[int, CornerClaim]:
    return resolve_claims(corner_claims(piece, config))


def losing_claims(piece: Piece, config: Optional[GeometryConfig] = None) -> List[Tuple[CornerClaim, CornerClaim]]:
    """(loser, winner) pairs for corners with competing claims."""
    winners = resolve_corner_claims(piece, config)
    losers = []
    for claim in corner_claims(piece, config):
        winner = winners[claim.corner_index]
        if claim == winner:
            continue
        if claim.kind == ClaimKind.CURVE_SPAN and winner.kind == ClaimKind.CURVE_SPAN:
            continue
        losers.append((claim, winner))
    return losers


def holds_corner(feature_id: str, corner_index: int, winners: Dict[int, CornerClaim]) -> bool:
    claim = winners.get(corner_index)
    return claim is not None and claim.feature_id == feature_id


def assign_corner_feature(
    piece: Piece,
    feature: CornerFeature,
    config: Optional[GeometryConfig] = None,
) -> Tuple[Piece, List[Eviction]]:
    """Attach ``feature`` to its corner(s), evicting every other holder.

    Returns a new Piece and the eviction records; the input is not modified.
    A feature already present (same id) is replaced in place.
    """
    updated = copy.deepcopy(piece)
    targets = {c.corner_index for c in feature_claims(feature, piece.shape)}
    evictions: List[Eviction] = []

    if targets:
        for claim in corner_claims(updated, config):
            if claim.feature_id == feature.id or claim.corner_index not in targets:
                continue
            if claim.kind == ClaimKind.CURVE_SPAN and isinstance(feature, CurvedEdge):
                continue
            evictions.append(Eviction(claim.corner_index, claim.kind, claim.feature_id, feature.id))

    evicted_ids = {e.feature_id for e in evictions}
    updated.curved_edges = [c for c in updated.curved_edges if c.id not in evicted_ids]
    updated.corner_radii = [r for r in updated.corner_radii if r.id not in evicted_ids]
    updated.angle_cuts = [a for a in updated.angle_cuts if a.id not in evicted_ids]

    if isinstance(feature, CornerRadius):
        updated.corner_radii = _upsert(updated.corner_radii, feature)
    elif isinstance(feature, AngleCut):
        updated.angle_cuts = _upsert(updated.angle_cuts, feature)
    elif isinstance(feature, CurvedEdge):
        updated.curved_edges = _upsert(updated.curved_edges, feature)

    for eviction in evictions:
        logger.info(
            "Corner %d: %s %s evicted by %s",
            eviction.corner_index, eviction.kind.value, eviction.feature_id, eviction.evicted_by,
        )
    return updated, evictions


def _upsert(items: list, feature) -> list:
    copied = copy.deepcopy(feature)
    for i, item in enumerate(items):
        if item.id == feature.id:
            items[i] = copied
            return items
    items.append(copied)
    return items

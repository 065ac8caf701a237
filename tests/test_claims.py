"""Tests for corner claims, precedence and corner assignment."""
from piece_geometry.builder import build_piece_geometry
from piece_geometry.claims import (
    ClaimKind,
    assign_corner_feature,
    claim_domain,
    corner_claims,
    feature_claims,
    losing_claims,
    resolve_corner_claims,
)
from piece_geometry.contracts import AngleCut, CornerRadius, CurvedEdge, EdgePosition, ShapeKind
from piece_geometry.migration import migrate_piece, remap_corner_index


class TestFeatureClaims:

    def test_radius_claims_its_corner(self):
        radius = CornerRadius(corner_index=2, radius=1.0)
        claims = feature_claims(radius)
        assert [(c.corner_index, c.kind) for c in claims] == [(2, ClaimKind.CORNER_RADIUS)]

    def test_zero_radius_and_unset_index_claim_nothing(self):
        assert feature_claims(CornerRadius(corner_index=0, radius=0.0)) == []
        assert feature_claims(CornerRadius(corner_index=-1, radius=1.0)) == []

    def test_inactive_angle_cut_claims_nothing(self):
        assert feature_claims(AngleCut(anchor_offset=0.0, secondary_offset=0.0)) == []

    def test_curve_span_claims_both_ends(self):
        curve = CurvedEdge(edge=EdgePosition.TOP, start_corner_index=0, end_corner_index=1)
        assert [c.corner_index for c in feature_claims(curve, ShapeKind.RECTANGLE)] == [0, 1]
        assert feature_claims(curve, ShapeKind.RIGHT_TRIANGLE) == []

    def test_whole_edge_curve_claims_nothing(self):
        assert feature_claims(CurvedEdge(edge=EdgePosition.TOP)) == []


class TestResolution:
    """Curve span beats corner radius beats angle cut."""

    def test_radius_beats_angle_cut(self, rectangle_piece):
        radius = CornerRadius(corner_index=0, radius=1.0)
        cut = AngleCut(anchor_corner_index=0)
        rectangle_piece.angle_cuts.append(cut)
        rectangle_piece.corner_radii.append(radius)
        winners = resolve_corner_claims(rectangle_piece)
        assert winners[0].feature_id == radius.id
        losers = losing_claims(rectangle_piece)
        assert [(loser.feature_id, winner.feature_id) for loser, winner in losers] == [(cut.id, radius.id)]

    def test_builder_applies_only_the_winner(self, rectangle_piece):
        cut = AngleCut(anchor_corner_index=0)
        rectangle_piece.angle_cuts.append(cut)
        rectangle_piece.corner_radii.append(CornerRadius(corner_index=0, radius=1.0))
        geometry = build_piece_geometry(rectangle_piece)
        assert geometry.angle_segments == []
        assert [s.feature_id for s in geometry.skipped] == [cut.id]
        assert len(geometry.outline) == 16

    def test_curve_span_beats_radius(self, rectangle_piece):
        curve = CurvedEdge(edge=EdgePosition.TOP, start_corner_index=0, end_corner_index=1)
        radius = CornerRadius(corner_index=1, radius=1.0)
        rectangle_piece.corner_radii.append(radius)
        rectangle_piece.curved_edges.append(curve)
        assert resolve_corner_claims(rectangle_piece)[1].kind == ClaimKind.CURVE_SPAN

    def test_curve_spans_may_share_a_corner(self, rectangle_piece):
        rectangle_piece.curved_edges.extend([
            CurvedEdge(edge=EdgePosition.TOP, start_corner_index=0, end_corner_index=1),
            CurvedEdge(edge=EdgePosition.RIGHT, start_corner_index=1, end_corner_index=2),
        ])
        assert losing_claims(rectangle_piece) == []

    def test_out_of_range_claims_are_dropped(self, rectangle_piece, interior_cutout):
        rectangle_piece.corner_radii.append(CornerRadius(corner_index=7, radius=1.0))
        assert corner_claims(rectangle_piece) == []
        rectangle_piece.cutouts.append(interior_cutout)
        assert claim_domain(rectangle_piece) == 8
        assert [c.corner_index for c in corner_claims(rectangle_piece)] == [7]


class TestAssignCornerFeature:

    def test_assignment_evicts_previous_holder(self, rectangle_piece):
        cut = AngleCut(anchor_corner_index=0)
        rectangle_piece.angle_cuts.append(cut)
        radius = CornerRadius(corner_index=0, radius=1.5)

        updated, evictions = assign_corner_feature(rectangle_piece, radius)

        assert updated.angle_cuts == []
        assert updated.corner_radii == [radius]
        assert [(e.corner_index, e.kind, e.feature_id, e.evicted_by) for e in evictions] == [
            (0, ClaimKind.ANGLE_CUT, cut.id, radius.id),
        ]
        # input untouched
        assert rectangle_piece.angle_cuts == [cut]
        assert rectangle_piece.corner_radii == []

    def test_reassigning_same_feature_replaces_it(self, rectangle_piece):
        radius = CornerRadius(corner_index=0, radius=1.0)
        rectangle_piece.corner_radii.append(radius)
        moved = CornerRadius(corner_index=2, radius=1.0, id=radius.id)
        updated, evictions = assign_corner_feature(rectangle_piece, moved)
        assert evictions == []
        assert [r.corner_index for r in updated.corner_radii] == [2]

    def test_curve_does_not_evict_curve(self, rectangle_piece):
        first = CurvedEdge(edge=EdgePosition.TOP, start_corner_index=0, end_corner_index=1)
        rectangle_piece.curved_edges.append(first)
        rectangle_piece.corner_radii.append(CornerRadius(corner_index=1, radius=1.0))
        second = CurvedEdge(edge=EdgePosition.RIGHT, start_corner_index=1, end_corner_index=2)

        updated, evictions = assign_corner_feature(rectangle_piece, second)

        assert [e.kind for e in evictions] == [ClaimKind.CORNER_RADIUS]
        assert [c.id for c in updated.curved_edges] == [first.id, second.id]
        assert updated.corner_radii == []

    def test_inactive_feature_evicts_nothing(self, rectangle_piece):
        rectangle_piece.corner_radii.append(CornerRadius(corner_index=0, radius=1.0))
        updated, evictions = assign_corner_feature(rectangle_piece, AngleCut(anchor_offset=0.0, secondary_offset=0.0))
        assert evictions == []
        assert len(updated.corner_radii) == 1
        assert len(updated.angle_cuts) == 1


class TestMigration:
    """One-time remap of corner indices saved under the reversed winding."""

    def test_remap(self):
        assert [remap_corner_index(i, 4) for i in range(4)] == [0, 3, 2, 1]
        assert [remap_corner_index(i, 3) for i in range(3)] == [0, 2, 1]

    def test_remap_leaves_unset_and_empty_domains(self):
        assert remap_corner_index(-1, 4) == -1
        assert remap_corner_index(2, 0) == 2

    def test_migrate_piece(self, rectangle_piece, interior_cutout):
        rectangle_piece.cutouts.append(interior_cutout)
        rectangle_piece.corner_radii.extend([
            CornerRadius(corner_index=1, radius=1.0),
            CornerRadius(corner_index=5, radius=0.25),
        ])
        rectangle_piece.angle_cuts.append(AngleCut(anchor_corner_index=3, secondary_corner_index=2))

        migrated = migrate_piece(rectangle_piece)

        assert [r.corner_index for r in migrated.corner_radii] == [3, 5]
        assert migrated.angle_cuts[0].anchor_corner_index == 1
        assert migrated.angle_cuts[0].secondary_corner_index == 2
        assert rectangle_piece.corner_radii[0].corner_index == 1

    def test_migrating_twice_restores_indices(self, triangle_piece):
        triangle_piece.corner_radii.append(CornerRadius(corner_index=1, radius=1.0))
        twice = migrate_piece(migrate_piece(triangle_piece))
        assert twice.corner_radii[0].corner_index == 1

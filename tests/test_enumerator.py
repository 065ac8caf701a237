"""Tests for shape templates, notches and corner/segment enumeration."""
import math
import warnings

import pytest

from piece_geometry.contracts import (
    AngleCut,
    Cutout,
    CutoutCornerPosition,
    CutoutKind,
    EdgePosition,
    Piece,
    ShapeKind,
)
from piece_geometry.enumerator import (
    angle_segments,
    boundary_segments,
    corner_label,
    corner_label_count,
    corner_points,
    cutout_corner_info,
    cutout_corner_ranges,
    display_polygon_points,
    edge_segment_count,
)
from piece_geometry.templates import (
    base_corner_points,
    cutout_footprint,
    edges_for_shape,
    hole_cutouts,
    interior_cutouts,
    is_notch,
    is_valid_edge,
    notched_outline,
    piece_corner_count,
    piece_display_size,
    piece_size,
    template_corners,
)


class TestTemplates:
    """Template corners, sizes and edges in display space."""

    def test_rectangle_corners(self, rectangle_piece):
        assert template_corners(rectangle_piece) == [(0.0, 0.0), (18.0, 0.0), (18.0, 24.0), (0.0, 24.0)]

    def test_triangle_corners(self, triangle_piece):
        assert template_corners(triangle_piece) == [(0.0, 0.0), (18.0, 0.0), (0.0, 24.0)]

    def test_curved_shapes_have_no_corners(self):
        assert template_corners(Piece(shape=ShapeKind.CIRCLE)) == []
        assert piece_corner_count(ShapeKind.QUARTER_CIRCLE) == 0

    def test_corner_counts(self):
        assert piece_corner_count(ShapeKind.RECTANGLE) == 4
        assert piece_corner_count(ShapeKind.RIGHT_TRIANGLE) == 3

    def test_sizes(self, rectangle_piece):
        assert piece_size(rectangle_piece) == (24.0, 18.0)
        assert piece_display_size(rectangle_piece) == (18.0, 24.0)

    def test_quarter_circle_is_square(self):
        piece = Piece(shape=ShapeKind.QUARTER_CIRCLE, width=12.0, height=30.0)
        assert piece_size(piece) == (12.0, 12.0)

    def test_minimum_dimension(self):
        piece = Piece(width=0.0, height=-3.0)
        assert piece_size(piece) == (1.0, 1.0)

    def test_edges_per_shape(self):
        assert edges_for_shape(ShapeKind.RECTANGLE) == (
            EdgePosition.TOP, EdgePosition.RIGHT, EdgePosition.BOTTOM, EdgePosition.LEFT,
        )
        assert is_valid_edge(ShapeKind.RIGHT_TRIANGLE, EdgePosition.HYPOTENUSE)
        assert not is_valid_edge(ShapeKind.RIGHT_TRIANGLE, EdgePosition.TOP)
        assert not is_valid_edge(ShapeKind.CIRCLE, EdgePosition.TOP)


class TestNotches:
    """Cutouts touching the boundary merge into the outline."""

    def test_top_notch_is_derived(self, notched_piece, top_notch):
        assert not top_notch.is_notch  # stored flag is only a hint
        assert is_notch(notched_piece, top_notch)
        assert hole_cutouts(notched_piece) == []
        assert interior_cutouts(notched_piece) == []

    def test_notch_spliced_into_outline(self, notched_piece):
        points = base_corner_points(notched_piece)
        assert points == [
            (0.0, 0.0), (7.0, 0.0), (7.0, 2.0), (11.0, 2.0),
            (11.0, 0.0), (18.0, 0.0), (18.0, 24.0), (0.0, 24.0),
        ]

    def test_interior_cutout_is_a_hole(self, rectangle_piece, interior_cutout):
        rectangle_piece.cutouts.append(interior_cutout)
        assert not is_notch(rectangle_piece, interior_cutout)
        assert hole_cutouts(rectangle_piece) == [interior_cutout]
        assert interior_cutouts(rectangle_piece) == [interior_cutout]

    def test_circle_cutout_never_notches(self, rectangle_piece):
        circle = Cutout(kind=CutoutKind.CIRCLE, width=4.0, center_x=1.0, center_y=9.0)
        rectangle_piece.cutouts.append(circle)
        assert not is_notch(rectangle_piece, circle)
        assert interior_cutouts(rectangle_piece) == []

    def test_circle_footprint_is_a_sampled_disc(self):
        circle = Cutout(kind=CutoutKind.CIRCLE, width=4.0, center_x=12.0, center_y=9.0)
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            footprint = cutout_footprint(circle)
        assert footprint.area == pytest.approx(math.pi * 4.0, rel=0.02)
        assert footprint.centroid.coords[0] == (pytest.approx(9.0), pytest.approx(12.0))

    def test_corner_notch_with_hint(self, rectangle_piece):
        notch = Cutout(width=4.0, height=3.0, center_x=1.0, center_y=1.0, corner_hint=0)
        rectangle_piece.cutouts.append(notch)
        points = base_corner_points(rectangle_piece)
        assert len(points) == 6
        assert (0.0, 0.0) not in points

    def test_splitting_notch_is_skipped(self, rectangle_piece):
        slot = Cutout(width=2.0, height=20.0, center_x=12.0, center_y=9.0)
        rectangle_piece.cutouts.append(slot)
        points, skipped = notched_outline(rectangle_piece)
        assert len(points) == 4
        assert [s.feature_id for s in skipped] == [slot.id]


class TestCornerPoints:

    def test_plain_rectangle(self, rectangle_piece):
        assert len(corner_points(rectangle_piece)) == piece_corner_count(ShapeKind.RECTANGLE)
        assert len(corner_points(rectangle_piece, include_angles=False)) == 4

    def test_plain_triangle(self, triangle_piece):
        assert len(corner_points(triangle_piece)) == 3

    def test_without_angles_is_the_template(self, notched_piece):
        assert corner_points(notched_piece, include_angles=False) == template_corners(notched_piece)
        assert len(corner_points(notched_piece)) == 8

    def test_angle_cut_adds_a_vertex(self, rectangle_piece):
        cut = AngleCut(anchor_corner_index=0, anchor_offset=2.0)
        rectangle_piece.angle_cuts.append(cut)
        points = display_polygon_points(rectangle_piece)
        assert len(points) == 5
        assert (0.0, 0.0) not in points
        assert points[0] == (pytest.approx(0.0), pytest.approx(2.0))
        segments = angle_segments(rectangle_piece)
        assert len(segments) == 1
        assert segments[0].id == cut.id
        assert {tuple(round(c, 6) for c in segments[0].start), tuple(round(c, 6) for c in segments[0].end)} == {
            (0.0, 2.0), (2.0, 0.0),
        }


class TestBoundarySegments:

    def test_one_segment_per_edge(self, rectangle_piece):
        segments = boundary_segments(rectangle_piece)
        assert [s.edge for s in segments] == [
            EdgePosition.TOP, EdgePosition.RIGHT, EdgePosition.BOTTOM, EdgePosition.LEFT,
        ]
        assert all(s.index == 0 for s in segments)
        top = segments[0]
        assert (top.start_index, top.end_index) == (0, 1)

    def test_triangle_edges(self, triangle_piece):
        segments = boundary_segments(triangle_piece)
        assert [s.edge for s in segments] == [EdgePosition.LEG_A, EdgePosition.HYPOTENUSE, EdgePosition.LEG_B]

    def test_notch_splits_top_edge(self, notched_piece):
        """Two runs on the edge line plus the recessed notch floor."""
        assert edge_segment_count(notched_piece, EdgePosition.TOP) == 3
        assert edge_segment_count(notched_piece, EdgePosition.RIGHT) == 1
        top = [s for s in boundary_segments(notched_piece) if s.edge == EdgePosition.TOP]
        assert [s.index for s in top] == [0, 1, 2]
        assert top[0].start == (0.0, 0.0)
        assert top[1].start == (7.0, 2.0)
        assert top[2].end == (18.0, 0.0)

    def test_corner_notch_splits_both_touched_edges(self, rectangle_piece):
        rectangle_piece.cutouts.append(Cutout(width=2.0, height=2.0, center_x=1.0, center_y=1.0))
        assert edge_segment_count(rectangle_piece, EdgePosition.TOP) == 2
        assert edge_segment_count(rectangle_piece, EdgePosition.LEFT) == 2
        assert edge_segment_count(rectangle_piece, EdgePosition.RIGHT) == 1
        assert edge_segment_count(rectangle_piece, EdgePosition.BOTTOM) == 1
        top = [s for s in boundary_segments(rectangle_piece) if s.edge == EdgePosition.TOP]
        assert [s.index for s in top] == [0, 1]

    def test_curved_shape_has_no_segments(self):
        assert boundary_segments(Piece(shape=ShapeKind.CIRCLE)) == []


class TestCutoutCornerRanges:

    def test_ranges_follow_base_corners(self, rectangle_piece, interior_cutout):
        second = Cutout(width=2.0, height=2.0, center_x=18.0, center_y=9.0)
        rectangle_piece.cutouts.extend([interior_cutout, second])
        ranges = cutout_corner_ranges(rectangle_piece)
        assert [r.cutout_id for r in ranges] == [interior_cutout.id, second.id]
        assert ranges[0].range == range(4, 8)
        assert ranges[1].range == range(8, 12)
        assert corner_label_count(rectangle_piece) == 12

    def test_notches_and_circles_get_no_range(self, notched_piece):
        notched_piece.cutouts.append(Cutout(kind=CutoutKind.CIRCLE, width=2.0, center_x=12.0, center_y=9.0))
        assert cutout_corner_ranges(notched_piece) == []
        assert corner_label_count(notched_piece) == 8

    def test_corner_info(self, rectangle_piece, interior_cutout):
        rectangle_piece.cutouts.append(interior_cutout)
        cutout, position, local = cutout_corner_info(rectangle_piece, 5)
        assert cutout is interior_cutout
        assert position == CutoutCornerPosition.TOP_RIGHT
        assert local == 1
        assert cutout_corner_info(rectangle_piece, 2) is None

    def test_labels(self):
        assert corner_label(0) == "A"
        assert corner_label(25) == "Z"
        assert corner_label(26) == "AA"
        assert corner_label(-1) == ""

"""Tests for primitives module."""
import math

import pytest

from piece_geometry import primitives as prim


class TestVectors:
    """Distances, unit vectors and rotation."""

    def test_distance(self):
        assert prim.distance((0, 0), (3, 4)) == pytest.approx(5.0)

    def test_unit_vector(self):
        ux, uy = prim.unit_vector((1, 1), (1, 5))
        assert ux == pytest.approx(0.0)
        assert uy == pytest.approx(1.0)

    def test_unit_vector_of_coincident_points_is_zero(self):
        assert prim.unit_vector((2, 2), (2, 2)) == (0.0, 0.0)

    def test_rotate_quarter_turn(self):
        x, y = prim.rotate((1, 0), math.pi / 2)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(1.0)

    def test_outward_normal_follows_winding(self):
        """Top edge of a positive-sum ring faces up (negative y)."""
        nx, ny = prim.outward_normal((0, 0), (10, 0), clockwise=False)
        assert (nx, ny) == (pytest.approx(0.0), pytest.approx(-1.0))
        nx, ny = prim.outward_normal((0, 0), (10, 0), clockwise=True)
        assert (nx, ny) == (pytest.approx(0.0), pytest.approx(1.0))


class TestPointLists:
    """Dedupe, bounds, winding and index helpers."""

    def test_dedupe_drops_near_duplicates_and_closing_point(self):
        pts = [(0, 0), (0.0001, 0), (5, 0), (5, 5), (0, 0)]
        assert prim.dedupe_points(pts) == [(0.0, 0.0), (5.0, 0.0), (5.0, 5.0)]

    def test_dedupe_never_empties_input(self):
        assert prim.dedupe_points([(1, 1), (1, 1), (1, 1)]) == [(1.0, 1.0)]
        assert prim.dedupe_points([]) == []

    def test_bounds(self):
        b = prim.bounds([(1, 2), (4, -1), (3, 6)])
        assert (b.min_x, b.min_y, b.width, b.height) == (1.0, -1.0, 3.0, 7.0)
        assert b.max_x == pytest.approx(4.0)
        assert b.mid_y == pytest.approx(2.5)

    def test_bounds_of_empty_input_is_zero(self):
        assert prim.bounds([]) == prim.Bounds(0.0, 0.0, 0.0, 0.0)

    def test_winding(self):
        screen_clockwise = [(0, 0), (10, 0), (10, 10), (0, 10)]
        assert prim.shoelace_sum(screen_clockwise) > 0
        assert not prim.polygon_is_clockwise(screen_clockwise)
        assert prim.polygon_is_clockwise(list(reversed(screen_clockwise)))
        assert prim.signed_area(screen_clockwise) == pytest.approx(100.0)
        assert prim.signed_area(list(reversed(screen_clockwise))) == pytest.approx(-100.0)
        assert prim.polygon_area(screen_clockwise) == pytest.approx(100.0)

    def test_normalized_index_wraps(self):
        assert prim.normalized_index(5, 4) == 1
        assert prim.normalized_index(-1, 4) == 3
        assert prim.normalized_index(3, 0) == 0

    def test_nearest_point_index(self):
        pts = [(0, 0), (10, 0), (10, 10)]
        assert prim.nearest_point_index((9, 1), pts) == 1
        assert prim.nearest_point_index((9, 1), []) == 0

    def test_drop_collinear(self):
        ring = [(0, 0), (5, 0), (10, 0), (10, 10), (0, 10)]
        assert prim.drop_collinear(ring) == [(0, 0), (10, 0), (10, 10), (0, 10)]

    def test_segment_indices_between_wraps(self):
        assert prim.segment_indices_between(2, 1, 4) == [2, 3, 0]
        assert prim.segment_indices_between(1, 1, 4) == []


class TestDistancesAndIntersections:
    """Ray casts and point-to-line distances."""

    def test_ray_hits_segment(self):
        hit = prim.ray_segment_intersection((0, 5), (1, 0), ((10, 0), (10, 10)))
        assert hit == (pytest.approx(10.0), pytest.approx(5.0))

    def test_ray_behind_origin_misses(self):
        assert prim.ray_segment_intersection((0, 5), (-1, 0), ((10, 0), (10, 10))) is None

    def test_ray_past_segment_end_misses(self):
        assert prim.ray_segment_intersection((0, 15), (1, 0), ((10, 0), (10, 10))) is None

    def test_parallel_ray_misses(self):
        assert prim.ray_segment_intersection((0, 0), (0, 1), ((10, 0), (10, 10))) is None

    def test_point_line_distance_uses_infinite_line(self):
        assert prim.point_line_distance((20, 3), (0, 0), (10, 0)) == pytest.approx(3.0)

    def test_point_segment_distance_clamps(self):
        assert prim.point_segment_distance((13, 4), (0, 0), (10, 0)) == pytest.approx(5.0)


class TestQuadBezier:
    """Quadratic bezier evaluation and splitting."""

    def test_endpoints_and_midpoint(self):
        start, control, end = (0, 0), (5, -4), (10, 0)
        assert prim.quad_bezier_point(0, start, control, end) == (0, 0)
        assert prim.quad_bezier_point(1, start, control, end) == (10, 0)
        mx, my = prim.quad_bezier_point(0.5, start, control, end)
        assert mx == pytest.approx(5.0)
        assert my == pytest.approx(-2.0)

    def test_split_halves_share_midpoint(self):
        start, control, end = (0, 0), (3, 8), (10, 2)
        left, right = prim.quad_split(start, control, end, 0.3)
        assert left.start == start
        assert right.end == end
        assert left.end == right.start
        expected = prim.quad_bezier_point(0.3, start, control, end)
        assert left.end == (pytest.approx(expected[0]), pytest.approx(expected[1]))

    def test_subsegment_matches_the_curve(self):
        start, control, end = (0, 0), (3, 8), (10, 2)
        segment = prim.quad_subsegment(start, control, end, 0.75, 0.25)
        assert isinstance(segment, prim.QuadCurve)
        for t, p in ((0.25, segment.start), (0.75, segment.end)):
            expected = prim.quad_bezier_point(t, start, control, end)
            assert p == (pytest.approx(expected[0]), pytest.approx(expected[1]))
        mid = prim.quad_bezier_point(0.5, segment.start, segment.control, segment.end)
        expected = prim.quad_bezier_point(0.5, start, control, end)
        assert mid == (pytest.approx(expected[0]), pytest.approx(expected[1]))

    def test_subsegment_at_the_end_collapses(self):
        assert prim.quad_subsegment((0, 0), (5, 5), (10, 0), 1.0, 1.0) == prim.QuadCurve((10, 0), (10, 0), (10, 0))

    def test_samples_include_endpoints(self):
        pts = prim.sample_quad_bezier((0, 0), (5, 5), (10, 0), 8)
        assert len(pts) == 9
        assert pts[0] == (pytest.approx(0.0), pytest.approx(0.0))
        assert pts[-1] == (pytest.approx(10.0), pytest.approx(0.0))


class TestPolygonQueries:

    def test_point_in_polygon(self):
        square = [(0, 0), (10, 0), (10, 10), (0, 10)]
        assert prim.point_in_polygon((5, 5), square)
        assert not prim.point_in_polygon((15, 5), square)
        assert not prim.point_in_polygon((1, 1), square[:2])

    def test_centroid(self):
        assert prim.centroid([(0, 0), (10, 0), (10, 4), (0, 4)]) == (pytest.approx(5.0), pytest.approx(2.0))
        assert prim.centroid([]) == (0.0, 0.0)

    def test_perimeter(self):
        assert prim.perimeter([(0, 0), (10, 0), (10, 5), (0, 5)]) == pytest.approx(30.0)

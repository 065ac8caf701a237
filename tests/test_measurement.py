"""Tests for fractional-inch parsing and formatting."""
import pytest

from piece_geometry.coordinates import display_point, display_points, display_size, raw_point, raw_points, raw_size
from piece_geometry.measurement import format_inches, fractional_components, parse_inches


class TestParseInches:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("24", 24.0),
            ("24.5", 24.5),
            ("24 1/2", 24.5),
            ("24-1/2", 24.5),
            ("3/8", 0.375),
            ("-3/8", -0.375),
            ("  18 3/4 ", 18.75),
        ],
    )
    def test_readable_text(self, text, expected):
        assert parse_inches(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "abc", "1/0", "one 1/2", "1 2 3"])
    def test_unreadable_text(self, text):
        assert parse_inches(text) is None


class TestFormatInches:

    def test_components_are_reduced(self):
        assert fractional_components(2.25) == (2, 1, 4, False)
        assert fractional_components(-0.5) == (0, 1, 2, True)

    def test_format(self):
        assert format_inches(1.5) == "1 1/2"
        assert format_inches(0.375) == "3/8"
        assert format_inches(2) == "2"
        assert format_inches(-0.5) == "-1/2"

    def test_rounds_up_to_next_whole(self):
        assert format_inches(2.999) == "3"


class TestCoordinateSwap:
    """Raw and display spaces swap X and Y."""

    def test_point_round_trip(self):
        p = (3.5, -7.25)
        assert display_point(p) == (-7.25, 3.5)
        assert raw_point(display_point(p)) == p
        assert display_point(raw_point(p)) == p

    def test_size_swap(self):
        assert display_size((24.0, 18.0)) == (18.0, 24.0)
        assert raw_size(display_size((24.0, 18.0))) == (24.0, 18.0)

    def test_point_lists(self):
        raw = [(1.0, 2.0), (3.0, 4.0)]
        assert display_points(raw) == [(2.0, 1.0), (4.0, 3.0)]
        assert raw_points(display_points(raw)) == raw

"""Raw and display coordinate spaces.

Measurements are stored in raw space; drawings are laid out in display space,
which is raw space with the X and Y axes swapped. The swap is its own
inverse, so each conversion must be applied exactly once.
"""
from typing import List, Sequence

from piece_geometry.contracts import Point, Size


def display_point(raw: Point) -> Point:
    return (raw[1], raw[0])


def raw_point(display: Point) -> Point:
    return (display[1], display[0])


def display_size(raw: Size) -> Size:
    return (raw[1], raw[0])


def raw_size(display: Size) -> Size:
    return (display[1], display[0])


def display_points(raw: Sequence[Point]) -> List[Point]:
    return [display_point(p) for p in raw]


def raw_points(display: Sequence[Point]) -> List[Point]:
    return [raw_point(p) for p in display]

"""
Shared test fixtures for piece geometry tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from piece_geometry.contracts import Cutout, CutoutKind, GeometryConfig, Piece, ShapeKind


@pytest.fixture
def geometry_config():
    """Default tolerances."""
    return GeometryConfig()


@pytest.fixture
def rectangle_piece():
    """A 24 x 18 rectangle; displays 18 wide and 24 tall."""
    return Piece(shape=ShapeKind.RECTANGLE, width=24.0, height=18.0, name="counter")


@pytest.fixture
def triangle_piece():
    """A right triangle with 24 and 18 legs."""
    return Piece(shape=ShapeKind.RIGHT_TRIANGLE, width=24.0, height=18.0, name="corner")


@pytest.fixture
def top_notch():
    """Notch centred on the top display edge, spanning x 7..11 and y 0..2."""
    return Cutout(kind=CutoutKind.RECTANGLE, width=2.0, height=4.0, center_x=1.0, center_y=9.0)


@pytest.fixture
def interior_cutout():
    """2 x 2 hole in the middle of the rectangle (display box 8..10, 11..13)."""
    return Cutout(kind=CutoutKind.RECTANGLE, width=2.0, height=2.0, center_x=12.0, center_y=9.0)


@pytest.fixture
def notched_piece(rectangle_piece, top_notch):
    rectangle_piece.cutouts.append(top_notch)
    return rectangle_piece

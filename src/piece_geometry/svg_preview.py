"""
SVG preview of a built piece.

Draws the display-space outline, holes, chamfer segments, corner labels,
edge-treatment abbreviations and overall dimensions. Meant for checking
geometry by eye, not as a cut file.
"""

import logging
from typing import Dict, List, Optional, Tuple

import svgwrite

from piece_geometry.builder import build_piece_geometry
from piece_geometry.contracts import (
    DEFAULT_CONFIG,
    GeometryConfig,
    Piece,
    Point,
    parse_edge_id,
)
from piece_geometry.enumerator import boundary_segments, corner_label, cutout_corner_ranges
from piece_geometry.measurement import format_inches
from piece_geometry.templates import (
    RECTANGLE_EDGES,
    base_corner_points,
    cutout_corner_points,
    piece_display_size,
    template_edge_geometry,
)
from piece_geometry import primitives as prim

logger = logging.getLogger(__name__)

STYLE = """
    .cut { stroke: #ff0000; stroke-width: 0.04; fill: none; }
    .angle { stroke: #0000ff; stroke-width: 0.06; fill: none; }
    .corner { font-size: 0.6px; font-family: Arial, sans-serif; fill: #333; }
    .treatment { font-size: 0.5px; font-family: Arial, sans-serif; fill: #0a7d2c; }
    .dim { font-size: 0.6px; font-family: Arial, sans-serif; fill: #666; }
    .dimline { stroke: #999999; stroke-width: 0.02; }
"""


def _shift(points: List[Point], margin: float) -> List[Point]:
    return [(x + margin, y + margin) for x, y in points]


def edge_label_anchors(piece: Piece, config: Optional[GeometryConfig] = None) -> Dict[str, Point]:
    """Midpoint of the run each edge-assignment id refers to.

    Assignments whose id no longer resolves (a segment that vanished, a
    deleted cutout or angle cut) are left out.
    """
    cfg = config or DEFAULT_CONFIG
    edges = template_edge_geometry(piece, cfg)
    segments = boundary_segments(piece, cfg)
    geometry = None
    anchors: Dict[str, Point] = {}

    for assignment in piece.edge_assignments:
        ref = parse_edge_id(assignment.edge_id)
        if ref is None:
            continue
        span: Optional[Tuple[Point, Point]] = None
        if ref.kind == "edge" and ref.edge in edges:
            span = edges[ref.edge]
        elif ref.kind == "segment":
            for seg in segments:
                if seg.edge == ref.edge and seg.index == ref.index:
                    span = (seg.start, seg.end)
        elif ref.kind == "cutout":
            cutout = piece.find_cutout(ref.feature_id)
            if cutout is not None and ref.edge in RECTANGLE_EDGES:
                corners = cutout_corner_points(cutout)
                i = RECTANGLE_EDGES.index(ref.edge)
                span = (corners[i], corners[(i + 1) % 4])
        elif ref.kind == "angle" and piece.find_angle_cut(ref.feature_id) is not None:
            if geometry is None:
                geometry = build_piece_geometry(piece, cfg)
            for seg in geometry.angle_segments:
                if seg.id == ref.feature_id:
                    span = (seg.start, seg.end)
        if span is None:
            logger.debug("Edge assignment %s has no matching edge", assignment.edge_id)
            continue
        anchors[assignment.id] = prim.lerp(span[0], span[1], 0.5)
    return anchors


def piece_to_svg(
    piece: Piece,
    filepath: str,
    add_labels: bool = True,
    add_dimensions: bool = True,
    margin: float = 2.0,  # inches
    config: Optional[GeometryConfig] = None,
) -> str:
    """
    Write a preview SVG for one piece.

    Args:
        piece: Piece to draw
        filepath: Output SVG file path
        add_labels: Corner letters and edge-treatment abbreviations
        add_dimensions: Overall width and height annotations
        margin: Margin around the piece (inches)
        config: Geometry tolerances

    Returns:
        Path to created SVG file
    """
    cfg = config or DEFAULT_CONFIG
    geometry = build_piece_geometry(piece, cfg)
    width, height = piece_display_size(piece, cfg)

    canvas_width = width + 2 * margin
    canvas_height = height + 2 * margin

    dwg = svgwrite.Drawing(
        filepath,
        size=(f"{canvas_width}in", f"{canvas_height}in"),
        viewBox=f"0 0 {canvas_width} {canvas_height}",
    )
    dwg.defs.add(dwg.style(STYLE))

    if len(geometry.outline) >= 3:
        dwg.add(dwg.polygon(_shift(geometry.outline, margin), class_="cut"))
    for hole in geometry.holes:
        dwg.add(dwg.polygon(_shift(hole, margin), class_="cut"))
    for seg in geometry.angle_segments:
        start, end = _shift([seg.start, seg.end], margin)
        dwg.add(dwg.line(start=start, end=end, class_="angle"))

    if add_labels:
        corners = base_corner_points(piece, cfg)
        for index, point in enumerate(corners):
            x, y = _shift([point], margin)[0]
            dwg.add(dwg.text(corner_label(index), insert=(x - 0.4, y - 0.2), class_="corner"))
        for entry in cutout_corner_ranges(piece, cfg):
            cutout = piece.find_cutout(entry.cutout_id)
            if cutout is None:
                continue
            for index, point in zip(entry.range, cutout_corner_points(cutout)):
                x, y = _shift([point], margin)[0]
                dwg.add(dwg.text(corner_label(index), insert=(x + 0.1, y + 0.6), class_="corner"))

        anchors = edge_label_anchors(piece, cfg)
        for assignment in piece.edge_assignments:
            if assignment.id not in anchors:
                continue
            x, y = _shift([anchors[assignment.id]], margin)[0]
            dwg.add(dwg.text(
                assignment.treatment_abbreviation or assignment.treatment_name,
                insert=(x, y),
                class_="treatment",
                text_anchor="middle",
            ))

    if add_dimensions:
        # Width (display x) along the bottom
        dim_y = canvas_height - margin / 2
        dwg.add(dwg.line(start=(margin, dim_y - 0.4), end=(margin + width, dim_y - 0.4), class_="dimline"))
        dwg.add(dwg.text(
            f"{format_inches(width)}\"",
            insert=(margin + width / 2, dim_y),
            class_="dim",
            text_anchor="middle",
        ))

        # Height (display y) along the right
        dim_x = canvas_width - margin / 2
        dwg.add(dwg.line(start=(dim_x - 0.4, margin), end=(dim_x - 0.4, margin + height), class_="dimline"))
        dwg.add(dwg.text(
            f"{format_inches(height)}\"",
            insert=(dim_x, margin + height / 2),
            class_="dim",
            text_anchor="middle",
            transform=f"rotate(-90, {dim_x}, {margin + height / 2})",
        ))

    dwg.save()
    logger.info("Wrote preview for %s to %s", piece.name, filepath)
    return filepath

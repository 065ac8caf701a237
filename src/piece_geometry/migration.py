"""
Corner-index migration for pieces saved under the reversed winding.

Older files numbered corners against the opposite winding. The remap is
applied once when such a file is loaded; it never runs during normal
geometry construction.
"""
import copy
import logging
from typing import Optional

from piece_geometry.contracts import GeometryConfig, Piece
from piece_geometry.templates import base_corner_count

logger = logging.getLogger(__name__)


def remap_corner_index(old: int, corner_count: int) -> int:
    """Map an index from the reversed winding: ``(count - old) % count``.

    Corner 0 stays put and the rest run backwards. Negative indices (unset)
    and empty domains are returned unchanged.
    """
    if corner_count <= 0 or old < 0:
        return old
    return (corner_count - old) % corner_count


def migrate_piece(piece: Piece, config: Optional[GeometryConfig] = None) -> Piece:
    """Return a copy of ``piece`` with base-corner indices remapped.

    Corner radii and angle-cut anchors and secondaries within the base
    corner list are remapped. Indices in the cutout-corner ranges are
    numbered per cutout and are left alone.
    """
    count = base_corner_count(piece, config)
    migrated = copy.deepcopy(piece)
    if count <= 0:
        return migrated

    def remap(index: int) -> int:
        if 0 <= index < count:
            return remap_corner_index(index, count)
        return index

    for radius in migrated.corner_radii:
        radius.corner_index = remap(radius.corner_index)
    for cut in migrated.angle_cuts:
        cut.anchor_corner_index = remap(cut.anchor_corner_index)
        cut.secondary_corner_index = remap(cut.secondary_corner_index)
    for curve in migrated.curved_edges:
        if curve.has_span:
            curve.start_corner_index = remap(curve.start_corner_index)
            curve.end_corner_index = remap(curve.end_corner_index)

    logger.debug("Migrated corner indices of piece %s over %d corners", piece.id, count)
    return migrated

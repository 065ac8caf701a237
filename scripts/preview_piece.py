#!/usr/bin/env python3
"""Render a piece JSON file to an SVG preview and print its validation report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from piece_geometry import Piece, migrate_piece, validate_piece
from piece_geometry.enumerator import corner_label
from piece_geometry.svg_preview import piece_to_svg
from piece_geometry.validation import has_errors


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Preview a piece drawing and report feature conflicts"
    )
    parser.add_argument("--piece", required=True, help="Path to a piece JSON file")
    parser.add_argument(
        "--out", default=None, help="Output SVG path (default: next to the JSON file)"
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Remap corner indices saved under the reversed winding first",
    )
    parser.add_argument(
        "--no-labels", action="store_true", help="Omit corner and edge labels"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def _build_report(piece: Piece, issues) -> str:
    lines = [f"# {piece.name} ({piece.shape.value}, {piece.width} x {piece.height})", ""]
    if not issues:
        lines.append("- No issues")
    for issue in issues:
        corner = f" [{corner_label(issue.corner_index)}]" if issue.corner_index is not None else ""
        lines.append(f"- {issue.severity.upper()}{corner}: {issue.message}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    piece_path = Path(args.piece)
    with open(piece_path) as f:
        piece = Piece.from_dict(json.load(f))
    if args.migrate:
        piece = migrate_piece(piece)

    out_path = Path(args.out) if args.out else piece_path.with_suffix(".svg")
    piece_to_svg(piece, str(out_path), add_labels=not args.no_labels)

    issues = validate_piece(piece)
    print(_build_report(piece, issues))
    return 1 if has_errors(issues) else 0


if __name__ == "__main__":
    raise SystemExit(main())

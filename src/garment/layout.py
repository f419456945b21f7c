"""Greedy row packing of finished pieces onto a fabric width."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from .path_model import PathModel, Placement

logger = logging.getLogger(__name__)

DEFAULT_FABRIC_WIDTH_MM = 1500.0
DEFAULT_MARGIN_MM = 15.0


@dataclass(slots=True)
class NestItem:
    path: PathModel
    quantity: int = 1


@dataclass(slots=True)
class PlacedPiece:
    source_id: str
    copy_index: int
    path: PathModel
    x: float
    y: float
    width: float
    height: float


@dataclass(slots=True)
class LayoutResult:
    fabric_width: float
    pieces: list[PlacedPiece] = field(default_factory=list)
    length: float = 0.0
    utilization: float = 0.0

    def to_mapping(self) -> dict[str, object]:
        return {
            "fabricWidth": self.fabric_width,
            "length": round(self.length, 3),
            "utilization": round(self.utilization, 4),
            "pieces": [
                {
                    "sourceId": piece.source_id,
                    "copy": piece.copy_index,
                    "x": round(piece.x, 3),
                    "y": round(piece.y, 3),
                    "width": round(piece.width, 3),
                    "height": round(piece.height, 3),
                    "placement": {
                        "x": piece.path.placement.x,
                        "y": piece.path.placement.y,
                        "angle": piece.path.placement.angle,
                    },
                }
                for piece in self.pieces
            ],
        }


def _grain_aligned(path: PathModel) -> tuple[PathModel, tuple[float, float, float, float]]:
    """Copy of ``path`` rotated onto its grain line, with its scene bounds."""

    aligned = path.derive(name=path.name)
    aligned.placement = Placement(x=0.0, y=0.0, angle=-path.grain_line.angle)
    return aligned, aligned.bounds(scene=True)


def pack(
    items: Iterable[NestItem | PathModel],
    fabric_width: float = DEFAULT_FABRIC_WIDTH_MM,
    margin: float = DEFAULT_MARGIN_MM,
) -> LayoutResult:
    """Place pieces left to right in rows, tallest first.

    Each piece is rotated onto its grain line, then rows are filled until the
    next piece would run past ``fabric_width``. Row height is the tallest piece
    in the row. There is no rotation search and no irregular nesting.
    """

    expanded: list[tuple[str, int, PathModel, tuple[float, float, float, float]]] = []
    for item in items:
        nest_item = item if isinstance(item, NestItem) else NestItem(item)
        for copy_index in range(max(int(nest_item.quantity), 0)):
            aligned, bounds = _grain_aligned(nest_item.path)
            expanded.append((nest_item.path.path_id, copy_index, aligned, bounds))

    result = LayoutResult(fabric_width=float(fabric_width))
    if not expanded:
        return result

    ordered: Sequence = sorted(expanded, key=lambda entry: -(entry[3][3] - entry[3][1]))

    current_x = margin
    current_y = margin
    row_height = 0.0
    used_area = 0.0
    row_has_pieces = False

    for source_id, copy_index, path, (min_x, min_y, max_x, max_y) in ordered:
        width = max_x - min_x
        height = max_y - min_y
        if row_has_pieces and current_x + width + margin > fabric_width:
            current_x = margin
            current_y += row_height
            row_height = 0.0
            row_has_pieces = False
        if width + 2 * margin > fabric_width:
            logger.warning("Piece %s (%.1fmm) is wider than the fabric", source_id, width)

        path.placement = replace(path.placement, x=current_x - min_x, y=current_y - min_y)
        result.pieces.append(
            PlacedPiece(
                source_id=source_id,
                copy_index=copy_index,
                path=path,
                x=current_x,
                y=current_y,
                width=width,
                height=height,
            )
        )
        used_area += width * height
        current_x += width + margin
        row_height = max(row_height, height + margin)
        row_has_pieces = True

    result.length = current_y + row_height
    total = result.fabric_width * result.length
    result.utilization = used_area / total if total > 0 else 0.0
    return result


__all__ = [
    "DEFAULT_FABRIC_WIDTH_MM",
    "DEFAULT_MARGIN_MM",
    "LayoutResult",
    "NestItem",
    "PlacedPiece",
    "pack",
]

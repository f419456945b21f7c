"""Tiled 1:1 print export of pattern pieces onto overlapping paper pages."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Sequence

from garment.config import ExportSettings
from garment.geometry import bounding_box
from garment.path_model import PathModel
from garment.render import scene_commands

from .pdf import POINTS_PER_MM, escape_pdf_text, path_operations, write_pdf

logger = logging.getLogger(__name__)

CALIBRATION_ORIGIN = (5.0, 5.0)
CALIBRATION_CAPTION_AT = (10.0, 10.0)
CROSSHAIR_SIZE = 10.0
PATH_LINE_WIDTH_MM = 0.5

__all__ = [
    "ExportSettings",
    "TileExporter",
    "TileLayout",
    "TilePage",
    "build_tiles",
    "export_to_pdf",
]


@dataclass(slots=True)
class TilePage:
    """One printable sheet; ``paths`` are serialized commands in page millimetres."""

    number: int
    row: int
    col: int
    origin: tuple[float, float]
    paths: list[list[list[Any]]] = field(default_factory=list)
    calibration: bool = False

    @property
    def caption(self) -> str:
        return f"Page {self.number} (Row {self.row + 1}, Col {self.col + 1})"


@dataclass(slots=True)
class TileLayout:
    bounds: tuple[float, float, float, float]
    rows: int
    cols: int
    pages: list[TilePage]


def _offset_command(command: Sequence[Any], dx: float, dy: float) -> list[Any]:
    values = list(command[1:])
    for index in range(0, len(values), 2):
        values[index] = float(values[index]) - dx
        values[index + 1] = float(values[index + 1]) - dy
    return [command[0], *values]


def build_tiles(pieces: Iterable[PathModel], settings: ExportSettings | None = None) -> TileLayout | None:
    """Split the union bounding box of ``pieces`` into overlapping pages.

    Pages advance by the page size minus the overlap. Every page carries every
    path shifted into its own coordinates; the printer clips to the sheet.
    """

    settings = settings or ExportSettings()
    pieces = list(pieces)
    if not pieces:
        return None

    outline: list[tuple[float, float]] = []
    for piece in pieces:
        outline.extend(piece.scene_outline())
    min_x, min_y, max_x, max_y = bounding_box(outline)

    step_x = settings.page_width - settings.overlap
    step_y = settings.page_height - settings.overlap
    cols = max(1, math.ceil((max_x - min_x) / step_x))
    rows = max(1, math.ceil((max_y - min_y) / step_y))

    commands = [scene_commands(piece) for piece in pieces]
    pages: list[TilePage] = []
    for row in range(rows):
        for col in range(cols):
            origin = (min_x + col * step_x, min_y + row * step_y)
            pages.append(
                TilePage(
                    number=row * cols + col + 1,
                    row=row,
                    col=col,
                    origin=origin,
                    paths=[[_offset_command(cmd, *origin) for cmd in path] for path in commands],
                    calibration=row == 0 and col == 0,
                )
            )
    logger.debug("Tiled %d pieces onto %d x %d pages", len(pieces), rows, cols)
    return TileLayout(bounds=(min_x, min_y, max_x, max_y), rows=rows, cols=cols, pages=pages)


class TileExporter:
    """Render a :class:`TileLayout` as a multi-page PDF at 1:1 scale."""

    def __init__(self, settings: ExportSettings | None = None) -> None:
        self.settings = settings or ExportSettings()

    def _to_pdf(self, point: tuple[float, float]) -> tuple[float, float]:
        # PDF space grows upward from the bottom-left corner.
        return (point[0] * POINTS_PER_MM, (self.settings.page_height - point[1]) * POINTS_PER_MM)

    def page_operations(self, page: TilePage) -> list[str]:
        to_pdf = self._to_pdf
        ops: list[str] = []

        if page.calibration:
            size = self.settings.calibration_size
            x0, y0 = to_pdf(CALIBRATION_ORIGIN)
            x1, y1 = to_pdf((CALIBRATION_ORIGIN[0] + size, CALIBRATION_ORIGIN[1] + size))
            tx, ty = to_pdf(CALIBRATION_CAPTION_AT)
            caption = f"CALIBRATION: {size:g}mm x {size:g}mm"
            ops.extend(
                [
                    "0 0 0 RG",
                    f"{0.2 * POINTS_PER_MM:.3f} w",
                    f"{x0:.2f} {y1:.2f} {x1 - x0:.2f} {y0 - y1:.2f} re",
                    "S",
                    "0 0 0 rg",
                    "BT",
                    "/F1 8 Tf",
                    f"{tx:.2f} {ty:.2f} Td",
                    f"({escape_pdf_text(caption)}) Tj",
                    "ET",
                ]
            )

        ops.extend(["0.784 0.784 0.784 RG", f"{0.2 * POINTS_PER_MM:.3f} w"])
        for start, end in (((0.0, 0.0), (CROSSHAIR_SIZE, CROSSHAIR_SIZE)), ((0.0, CROSSHAIR_SIZE), (CROSSHAIR_SIZE, 0.0))):
            sx, sy = to_pdf(start)
            ex, ey = to_pdf(end)
            ops.extend([f"{sx:.2f} {sy:.2f} m", f"{ex:.2f} {ey:.2f} l", "S"])

        ops.extend(["0 0 0 RG", f"{PATH_LINE_WIDTH_MM * POINTS_PER_MM:.3f} w", "[] 0 d"])
        ops.extend(path_operations(page.paths, to_pdf))

        cx, cy = to_pdf((self.settings.page_width - 30.0, 5.0))
        ops.extend(
            [
                "0 0 0 rg",
                "BT",
                "/F1 6 Tf",
                f"{cx:.2f} {cy:.2f} Td",
                f"({escape_pdf_text(page.caption)}) Tj",
                "ET",
            ]
        )
        return ops

    def render(self, layout: TileLayout) -> bytes:
        width = self.settings.page_width * POINTS_PER_MM
        height = self.settings.page_height * POINTS_PER_MM
        return write_pdf([(width, height, self.page_operations(page)) for page in layout.pages])

    def export(self, pieces: Iterable[PathModel], path: Path | str | None = None) -> bytes | None:
        layout = build_tiles(pieces, self.settings)
        if layout is None:
            logger.info("Nothing to export; no pattern pieces supplied")
            return None
        data = self.render(layout)
        if path is not None:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            logger.info("Wrote %d tiled pages to %s", len(layout.pages), target)
        return data


def export_to_pdf(
    pieces: Iterable[PathModel],
    path: Path | str | None = None,
    *,
    settings: ExportSettings | None = None,
) -> bytes | None:
    """Tile ``pieces`` and render them; writes ``path`` when given."""

    return TileExporter(settings).export(pieces, path)

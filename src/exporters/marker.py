"""Marker output for a nested layout: one fabric-sized PDF page or a DXF file."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import ezdxf

from garment.layout import LayoutResult
from garment.render import scene_commands

from .pdf import POINTS_PER_MM, path_operations, write_pdf

logger = logging.getLogger(__name__)

MARKER_LINE_WIDTH_MM = 0.5
DXF_FLATTEN_STEPS = 10
DXF_VERSION = "R12"

__all__ = ["MarkerExporter", "export_marker_dxf", "export_marker_pdf"]


class MarkerExporter:
    """Write the placed pieces of a :class:`LayoutResult` at 1:1 scale."""

    def __init__(self, layout: LayoutResult) -> None:
        self.layout = layout

    @property
    def is_empty(self) -> bool:
        return not self.layout.pieces

    def _to_pdf(self, point: tuple[float, float]) -> tuple[float, float]:
        return (point[0] * POINTS_PER_MM, (self.layout.length - point[1]) * POINTS_PER_MM)

    def page_operations(self) -> list[str]:
        ops = ["0 0 0 RG", f"{MARKER_LINE_WIDTH_MM * POINTS_PER_MM:.3f} w"]
        ops.extend(path_operations([scene_commands(placed.path) for placed in self.layout.pieces], self._to_pdf))
        return ops

    def render_pdf(self) -> bytes:
        """A single page of ``fabric_width`` by marker ``length`` millimetres."""

        width = self.layout.fabric_width * POINTS_PER_MM
        height = self.layout.length * POINTS_PER_MM
        return write_pdf([(width, height, self.page_operations())])

    def render_dxf(self) -> str:
        """DXF R12 text with one closed POLYLINE per placed piece.

        Curves are flattened and Y is negated so the marker reads the right way
        up in CAD, where Y grows upward.
        """

        doc = ezdxf.new(DXF_VERSION)
        msp = doc.modelspace()
        for placed in self.layout.pieces:
            outline = placed.path.scene_outline(DXF_FLATTEN_STEPS)
            if len(outline) < 2:
                logger.debug("Skipping empty outline for %s", placed.source_id)
                continue
            msp.add_polyline2d([(x, -y) for x, y in outline], close=True)
        stream = io.StringIO()
        doc.write(stream)
        return stream.getvalue()


def _write(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def export_marker_pdf(layout: LayoutResult, path: Path | str | None = None) -> bytes | None:
    exporter = MarkerExporter(layout)
    if exporter.is_empty:
        logger.info("Nothing to export; the layout places no pieces")
        return None
    data = exporter.render_pdf()
    if path is not None:
        _write(Path(path), data)
        logger.info("Wrote %.0fmm x %.0fmm marker to %s", layout.fabric_width, layout.length, path)
    return data


def export_marker_dxf(layout: LayoutResult, path: Path | str | None = None) -> str | None:
    exporter = MarkerExporter(layout)
    if exporter.is_empty:
        logger.info("Nothing to export; the layout places no pieces")
        return None
    text = exporter.render_dxf()
    if path is not None:
        _write(Path(path), text.encode("ascii", errors="replace"))
        logger.info("Wrote DXF marker with %d pieces to %s", len(layout.pieces), path)
    return text

"""Exporter utilities for printable pattern output."""

from .marker import MarkerExporter, export_marker_dxf, export_marker_pdf
from .tiles import (
    ExportSettings,
    TileExporter,
    TileLayout,
    TilePage,
    build_tiles,
    export_to_pdf,
)

__all__ = [
    "ExportSettings",
    "MarkerExporter",
    "TileExporter",
    "TileLayout",
    "TilePage",
    "build_tiles",
    "export_marker_dxf",
    "export_marker_pdf",
    "export_to_pdf",
]

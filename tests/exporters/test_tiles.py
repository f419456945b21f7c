"""Tests for tiled print export."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from exporters.pdf import escape_pdf_text
from exporters.tiles import TileExporter, build_tiles, export_to_pdf
from garment.config import ExportSettings
from garment.path_model import Close, Line, Move, PathModel, Placement


def _rect(width: float, height: float, *, x: float = 0.0, y: float = 0.0) -> PathModel:
    return PathModel(
        segments=[Move((0.0, 0.0)), Line((width, 0.0)), Line((width, height)), Line((0.0, height)), Close()],
        placement=Placement(x=x, y=y),
    )


def test_page_grid_accounts_for_overlap() -> None:
    layout = build_tiles([_rect(400.0, 600.0)])
    assert layout is not None
    assert layout.cols == math.ceil(400.0 / 190.0)
    assert layout.rows == math.ceil(600.0 / 277.0)
    assert len(layout.pages) == layout.rows * layout.cols
    assert [page.number for page in layout.pages] == list(range(1, len(layout.pages) + 1))


def test_small_piece_still_gets_one_page() -> None:
    layout = build_tiles([_rect(50.0, 50.0)])
    assert (layout.rows, layout.cols) == (1, 1)
    assert layout.pages[0].calibration


def test_page_origins_and_local_coordinates() -> None:
    layout = build_tiles([_rect(300.0, 100.0, x=30.0, y=40.0)])
    first, second = layout.pages
    assert first.origin == (30.0, 40.0)
    assert second.origin == (220.0, 40.0)
    assert first.paths[0][0] == ["M", 0.0, 0.0]
    assert second.paths[0][1] == ["L", 110.0, 0.0]
    assert first.calibration and not second.calibration
    assert second.caption == "Page 2 (Row 1, Col 2)"


def test_union_bounds_cover_all_pieces() -> None:
    layout = build_tiles([_rect(100.0, 100.0), _rect(100.0, 100.0, x=500.0, y=300.0)])
    assert layout.bounds == (0.0, 0.0, 600.0, 400.0)


def test_no_pieces_writes_nothing(tmp_path: Path) -> None:
    target = tmp_path / "empty.pdf"
    assert build_tiles([]) is None
    assert export_to_pdf([], target) is None
    assert not target.exists()


def test_pdf_structure(tmp_path: Path) -> None:
    target = tmp_path / "out" / "pattern.pdf"
    data = export_to_pdf([_rect(400.0, 600.0)], target)
    assert data is not None
    assert target.read_bytes() == data
    assert data.startswith(b"%PDF-1.4")
    assert data.rstrip().endswith(b"%%EOF")
    assert b"/Count 9" in data
    assert data.count(b"/Type /Page ") == 9
    assert data.count(b"CALIBRATION: 100mm x 100mm") == 1
    assert b"(Page 9 \\(Row 3, Col 3\\)) Tj" in data
    assert b"/MediaBox [0 0 595.28 841.89]" in data


def test_page_operations_flip_y_axis() -> None:
    exporter = TileExporter(ExportSettings())
    layout = build_tiles([_rect(100.0, 100.0)])
    ops = exporter.page_operations(layout.pages[0])
    height = 297.0 * 72.0 / 25.4
    assert f"0.00 {height:.2f} m" in ops
    assert "h" in ops
    assert ops[-2].startswith("(Page 1")


def test_custom_page_size() -> None:
    settings = ExportSettings(page_width=100.0, page_height=100.0, overlap=10.0, calibration_size=50.0)
    layout = build_tiles([_rect(200.0, 90.0)], settings)
    assert (layout.rows, layout.cols) == (1, 3)
    data = TileExporter(settings).render(layout)
    assert b"CALIBRATION: 50mm x 50mm" in data


@pytest.mark.parametrize("text", ["a(b)c", "back\\slash"])
def test_captions_are_escaped(text: str) -> None:
    escaped = escape_pdf_text(text)
    assert "(" not in escaped.replace("\\(", "")
    assert ")" not in escaped.replace("\\)", "")

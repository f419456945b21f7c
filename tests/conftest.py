from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for path in (ROOT, SRC):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from garment.path_model import Close, Line, Move, PathModel  # noqa: E402
from garment.presets import build_preset  # noqa: E402


@pytest.fixture()
def square() -> PathModel:
    return PathModel(
        segments=[Move((0.0, 0.0)), Line((100.0, 0.0)), Line((100.0, 100.0)), Line((0.0, 100.0)), Close()],
        name="square",
    )


@pytest.fixture()
def tshirt() -> tuple[PathModel, PathModel]:
    front, back = build_preset("t_shirt")
    return front, back

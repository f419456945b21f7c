"""Tests for counterpart seam linking."""

from __future__ import annotations

import logging

import pytest

from garment.path_model import Line, Move, Notch, PathModel
from garment.seams import SeamLinker, SeamTolerance, link_counterparts


def _registry(*paths: PathModel) -> dict[str, PathModel]:
    return {path.path_id: path for path in paths}


def test_identical_counterparts_report_ok(tshirt) -> None:
    front, _ = tshirt
    twin = front.copy()
    twin.path_id = "twin"
    link_counterparts(front, twin)
    statuses = SeamLinker(front, _registry(front, twin)).seam_status()
    assert [status.label for status in statuses] == ["Neck-Shoulder Join", "Shoulder-Armhole Join"]
    assert all(status.status == "ok" for status in statuses)
    assert all(status.diff == 0.0 for status in statuses)


def test_preset_front_and_back_shoulders_are_compared(tshirt) -> None:
    front, back = tshirt
    statuses = {status.label: status for status in SeamLinker(front, _registry(front, back)).seam_status()}
    shoulder = statuses["Shoulder-Armhole Join"]
    assert shoulder.length == pytest.approx(((500 - 230) ** 2 + (150 - 200) ** 2) ** 0.5)
    assert shoulder.counterpart_length == pytest.approx(((500 - 230) ** 2 + (30 - 50) ** 2) ** 0.5)
    # 274.6mm against 270.7mm
    assert shoulder.status == "fail"


@pytest.mark.parametrize(
    ("diff", "expected"),
    [(0.0, "ok"), (1.5, "ok"), (1.6, "warn"), (3.0, "warn"), (3.01, "fail")],
)
def test_tolerance_classification(diff: float, expected: str) -> None:
    assert SeamTolerance().classify(diff) == expected


def test_sync_copies_labelled_anchor(tshirt) -> None:
    front, back = tshirt
    linker = SeamLinker(front, _registry(front, back))
    assert linker.sync("Underarm", 600.0, 840.0)
    assert back.anchor(3) == (600.0, 840.0)


def test_hem_sync_transfers_y_only(tshirt) -> None:
    front, back = tshirt
    linker = SeamLinker(front, _registry(front, back))
    assert linker.sync("Hem-Side", 640.0, 1850.0)
    assert back.anchor(4) == (580.0, 1850.0)


def test_missing_counterpart_is_skipped(square: PathModel, caplog: pytest.LogCaptureFixture) -> None:
    square.counterpart_id = "gone"
    linker = SeamLinker(square, _registry(square))
    with caplog.at_level(logging.DEBUG, logger="garment.seams"):
        assert linker.seam_status() == []
        assert not linker.sync("Center Neck", 1.0, 2.0)
    assert "not loaded" in caplog.text


def test_sync_with_unknown_label_changes_nothing(tshirt) -> None:
    front, back = tshirt
    before = list(back.segments)
    assert not SeamLinker(front, _registry(front, back)).sync("Pocket", 1.0, 1.0)
    assert back.segments == before


def test_propagate_notch_to_counterpart(tshirt) -> None:
    front, back = tshirt
    linker = SeamLinker(front, _registry(front, back))
    assert linker.propagate_notch(3)
    assert back.notches == [Notch(3)]
    assert not linker.propagate_notch(6)


def test_link_counterparts_is_symmetric() -> None:
    first = PathModel(segments=[Move((0.0, 0.0)), Line((1.0, 0.0))])
    second = PathModel(segments=[Move((0.0, 0.0)), Line((2.0, 0.0))])
    link_counterparts(first, second)
    assert first.counterpart_id == second.path_id
    assert second.counterpart_id == first.path_id


def test_status_mapping_is_rounded(tshirt) -> None:
    front, back = tshirt
    status = SeamLinker(front, _registry(front, back)).seam_status()[0]
    mapping = status.to_mapping()
    assert mapping["label"] == "Neck-Shoulder Join"
    assert mapping["segmentIndex"] == 1
    assert mapping["status"] in {"ok", "warn", "fail"}

"""Tests for polygon booleans and closed-region lookup."""

from __future__ import annotations

import pytest

from garment.boolean import (
    BooleanOperation,
    find_closed_region_at,
    intersect,
    offset_polygon,
    perform,
    subtract,
    union,
    union_all,
)
from garment.path_model import Close, Line, Move, PathModel, Placement


def _rect(x: float, y: float, width: float, height: float, name: str = "rect") -> PathModel:
    return PathModel(
        segments=[
            Move((x, y)),
            Line((x + width, y)),
            Line((x + width, y + height)),
            Line((x, y + height)),
            Close(),
        ],
        name=name,
    )


@pytest.fixture()
def overlapping() -> tuple[PathModel, PathModel]:
    return _rect(0.0, 0.0, 100.0, 100.0, "left"), _rect(50.0, 0.0, 100.0, 100.0, "right")


def test_union_merges_overlap(overlapping) -> None:
    (merged,) = union(*overlapping)
    assert merged.area() == pytest.approx(15000.0)
    assert merged.bounds() == pytest.approx((0.0, 0.0, 150.0, 100.0))
    assert merged.name == "left union right"
    assert isinstance(merged.segments[0], Move)
    assert isinstance(merged.segments[-1], Close)


def test_subtract_and_intersect(overlapping) -> None:
    (remainder,) = subtract(*overlapping)
    assert remainder.area() == pytest.approx(5000.0)
    assert remainder.bounds() == pytest.approx((0.0, 0.0, 50.0, 100.0))

    (lens,) = intersect(*overlapping)
    assert lens.bounds() == pytest.approx((50.0, 0.0, 100.0, 100.0))


def test_operations_use_scene_placement(overlapping) -> None:
    left, right = overlapping
    right.placement = Placement(x=200.0)
    assert intersect(left, right) == []
    pieces = union(left, right)
    assert len(pieces) == 2
    assert all(piece.placement == Placement() for piece in pieces)


def test_disjoint_results_become_separate_pieces() -> None:
    wide = _rect(0.0, 0.0, 300.0, 100.0)
    bar = _rect(100.0, -50.0, 100.0, 200.0)
    pieces = perform(wide, bar, "subtract")
    assert sorted(piece.bounds()[0] for piece in pieces) == pytest.approx([0.0, 200.0])


def test_hole_is_dropped() -> None:
    outer = _rect(0.0, 0.0, 300.0, 300.0)
    inner = _rect(100.0, 100.0, 100.0, 100.0)
    (piece,) = subtract(outer, inner)
    assert piece.area() == pytest.approx(90000.0)


def test_unknown_operation_raises(overlapping) -> None:
    with pytest.raises(ValueError):
        perform(*overlapping, "xor")
    assert BooleanOperation("intersect") is BooleanOperation.INTERSECT


def test_degenerate_input_gives_no_pieces(overlapping) -> None:
    empty = PathModel(segments=[Move((0.0, 0.0))])
    assert perform(overlapping[0], empty, BooleanOperation.UNION) == []


def test_union_all_merges_chain() -> None:
    pieces = [_rect(float(x), 0.0, 60.0, 40.0) for x in (0, 50, 100)]
    (merged,) = union_all(pieces)
    assert merged.bounds() == pytest.approx((0.0, 0.0, 160.0, 40.0))
    assert union_all([]) == []


def test_offset_polygon_grows_with_round_corners() -> None:
    (loop,) = offset_polygon([(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)], 10.0)
    xs = [x for x, _ in loop]
    ys = [y for _, y in loop]
    assert (min(xs), min(ys), max(xs), max(ys)) == pytest.approx((-10.0, -10.0, 110.0, 110.0), abs=1e-3)
    assert offset_polygon([(0.0, 0.0), (1.0, 1.0)], 5.0) == []


def test_find_closed_region_returns_lens(overlapping) -> None:
    region = find_closed_region_at(list(overlapping), (75.0, 50.0))
    assert region is not None
    min_x, min_y, max_x, max_y = region.bounds()
    assert min_x == pytest.approx(50.2, abs=0.05)
    assert min_y == pytest.approx(0.2, abs=0.05)
    assert max_x == pytest.approx(99.8, abs=0.05)
    assert max_y == pytest.approx(99.8, abs=0.05)

    left_cell = find_closed_region_at(list(overlapping), (25.0, 50.0))
    assert left_cell is not None
    assert left_cell.bounds()[2] == pytest.approx(49.8, abs=0.05)


def test_find_closed_region_ignores_background(overlapping) -> None:
    assert find_closed_region_at(list(overlapping), (-20.0, -20.0)) is None
    assert find_closed_region_at(list(overlapping), (1000.0, 1000.0)) is None
    assert find_closed_region_at([], (0.0, 0.0)) is None

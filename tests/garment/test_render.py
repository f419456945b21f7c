"""Tests for display-list primitives."""

from __future__ import annotations

import pytest

from garment.path_model import Notch, PathModel, Placement
from garment.render import (
    control_arms,
    grain_line_shapes,
    hud_label,
    measurement_labels,
    notch_ticks,
    scene_commands,
)


def test_scene_commands_apply_placement(square: PathModel) -> None:
    square.placement = Placement(x=10.0, y=5.0)
    commands = scene_commands(square)
    assert commands[0] == ["M", 10.0, 5.0]
    assert commands[-1] == ["Z"]
    assert scene_commands(square, (1, 2)) == [["M", 110.0, 5.0], ["L", 110.0, 105.0]]


def test_notch_tick_is_perpendicular_to_outline(square: PathModel) -> None:
    square.notches = [Notch(1)]
    (tick,) = notch_ticks(square)
    assert tick.start == pytest.approx((100.0, -5.0))
    assert tick.end == pytest.approx((100.0, 5.0))


def test_notch_on_start_point_uses_closing_edge(square: PathModel) -> None:
    square.notches = [Notch(0)]
    (tick,) = notch_ticks(square)
    # closing edge runs (0, 100) -> (0, 0), so the tick lies along X
    assert tick.start == pytest.approx((-5.0, 0.0))
    assert tick.end == pytest.approx((5.0, 0.0))


def test_grain_line_is_vertical_through_centre(square: PathModel) -> None:
    shapes = grain_line_shapes(square)
    line = shapes[0]
    assert line.start == pytest.approx((50.0, 0.0))
    assert line.end == pytest.approx((50.0, 100.0))
    assert [shape.role for shape in shapes[1:]] == ["grain-arrow", "grain-arrow"]


def test_measurement_labels_round_lengths(tshirt) -> None:
    front, _ = tshirt
    texts = [label.text for label in measurement_labels(front)]
    assert texts[0] == "Center Neck"
    assert texts[2] == "Shoulder-Armhole Join: 275mm"


def test_control_arms_only_for_cubics(square: PathModel, tshirt) -> None:
    front, _ = tshirt
    assert control_arms(square) == []
    arms = control_arms(front)
    assert len(arms) == 4
    assert arms[0].start == (0.0, 0.0)
    assert arms[0].end == (100.0, 0.0)


def test_hud_label_offsets_from_pointer() -> None:
    label = hud_label("12.5mm", (100.0, 100.0))
    assert label.position == (120.0, 80.0)
    assert label.text == "12.5mm"

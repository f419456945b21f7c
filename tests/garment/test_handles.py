"""Tests for the edit-mode handle controller."""

from __future__ import annotations

import pytest

from garment.geometry import angle_of, distance
from garment.handles import Handle, HandleController, SegmentClick, build_handles
from garment.path_model import Close, CubicBezier, Line, Move, PathModel
from garment.render import LineShape, Marker, PathShape, TextLabel
from garment.snapping import Modifiers, SnapConfig, SnapResolver

FREE = SnapResolver(SnapConfig(grid=False, points=False, segments=False))


def _controller(path: PathModel, registry=None, **kwargs) -> HandleController:
    controller = HandleController(path, registry, resolver=FREE, **kwargs)
    controller.toggle_edit_mode()
    return controller


def test_build_handles_covers_every_slot(tshirt) -> None:
    front, _ = tshirt
    handles = build_handles(front)
    # two cubics with three handles, four anchor-only commands
    assert len(handles) == 10
    controls = [handle for handle in handles if handle.kind == "control"]
    assert Handle("control", 1, "control1", bound_anchor_index=0) in controls
    assert Handle("control", 1, "control2", bound_anchor_index=1) in controls


def test_toggle_edit_mode_materialises_and_clears(square: PathModel) -> None:
    redraws: list[int] = []
    controller = HandleController(square, resolver=FREE, on_redraw=lambda: redraws.append(1))
    assert controller.handles == []
    assert controller.toggle_edit_mode() is True
    assert len(controller.handles) == 4
    controller.selection = list(controller.handles[:1])
    assert controller.toggle_edit_mode() is False
    assert controller.handles == []
    assert controller.selection == []
    assert len(redraws) == 2


def test_drag_writes_local_coordinates_and_shows_hud(square: PathModel) -> None:
    controller = _controller(square)
    handle = Handle("anchor", 1, "anchor")
    assert controller.begin_drag(handle)
    assert controller.drag_to(handle, (120.0, 0.0))
    assert square.anchor(1) == (120.0, 0.0)
    hud = [item for item in controller.display_list() if isinstance(item, TextLabel) and item.role == "hud"]
    assert hud[0].text == "120.0mm"
    controller.end_drag()
    assert not any(isinstance(item, TextLabel) and item.role == "hud" for item in controller.display_list())


def test_drag_is_ignored_outside_edit_mode(square: PathModel) -> None:
    controller = HandleController(square, resolver=FREE)
    assert not controller.drag_to(Handle("anchor", 1, "anchor"), (5.0, 5.0))
    assert square.anchor(1) == (100.0, 0.0)


def test_stale_handle_is_ignored(square: PathModel) -> None:
    controller = _controller(square)
    assert not controller.drag_to(Handle("anchor", 9, "anchor"), (5.0, 5.0))


def test_perpendicular_join_after_dragging_join_anchor() -> None:
    path = PathModel(
        segments=[
            Move((0.0, 0.0)),
            Line((100.0, 0.0)),
            CubicBezier((150.0, 20.0), (200.0, 80.0), (200.0, 100.0)),
            Close(),
        ],
        join_points={1},
    )
    controller = _controller(path)
    controller.drag_to(Handle("anchor", 1, "anchor"), (100.0, 10.0))

    join = path.anchor(1)
    curve = path.segments[2]
    seam = angle_of((0.0, 0.0), join)
    leaving = angle_of(join, curve.control1)
    assert (seam - leaving) % 360.0 == pytest.approx(90.0)
    assert distance(join, curve.control1) == pytest.approx(distance((100.0, 10.0), (150.0, 20.0)))


def test_perpendicular_join_turns_minus_ninety_degrees() -> None:
    path = PathModel(
        segments=[
            Move((0.0, 0.0)),
            Line((100.0, 0.0)),
            CubicBezier((100.0, 50.0), (200.0, 80.0), (200.0, 100.0)),
            Close(),
        ],
        join_points={1},
    )
    controller = _controller(path)
    assert controller.drag_to(Handle("anchor", 1, "anchor"), (100.0, 0.0))
    assert path.segments[2].control1 == pytest.approx((100.0, -50.0))


def test_anchor_drag_syncs_counterpart(tshirt) -> None:
    front, back = tshirt
    registry = {front.path_id: front, back.path_id: back}
    controller = _controller(front, registry)
    controller.drag_to(Handle("anchor", 3, "anchor"), (600.0, 870.0))
    assert back.anchor(3) == (600.0, 870.0)


def test_control_drag_does_not_sync(tshirt) -> None:
    front, back = tshirt
    registry = {front.path_id: front, back.path_id: back}
    controller = _controller(front, registry)
    before = list(back.segments)
    controller.drag_to(Handle("control", 3, "control2", bound_anchor_index=3), (470.0, 700.0))
    assert front.segments[3].control2 == (470.0, 700.0)
    assert back.segments == before


def test_join_drag_colours_mismatched_seams(tshirt) -> None:
    front, back = tshirt
    registry = {front.path_id: front, back.path_id: back}
    controller = _controller(front, registry)
    controller.drag_to(Handle("anchor", 2, "anchor"), (500.0, 150.0))
    statuses = {status.label: status.status for status in controller.seam_statuses}
    assert statuses["Shoulder-Armhole Join"] == "fail"
    assert 2 in controller.segment_colors


def test_orthogonal_drag_of_control_uses_bound_anchor(tshirt) -> None:
    front, _ = tshirt
    controller = _controller(front)
    handle = Handle("control", 1, "control1", bound_anchor_index=0)
    controller.drag_to(handle, (100.0, 20.0), Modifiers(orthogonal=True))
    assert front.segments[1].control1 == pytest.approx(((100.0**2 + 20.0**2) ** 0.5, 0.0))


def test_center_neck_stays_on_centre_line(tshirt) -> None:
    front, _ = tshirt
    controller = _controller(front)
    controller.drag_to(Handle("anchor", 0, "anchor"), (25.0, 12.0))
    assert front.anchor(0) == (0.0, 12.0)


def test_click_segment_selects_endpoints_and_notifies(square: PathModel) -> None:
    clicks: list[SegmentClick] = []
    controller = _controller(square, on_segment_click=clicks.append)
    click = controller.click_segment(2, (100.0, 40.0))
    assert click is not None
    assert clicks == [click]
    assert click.length == pytest.approx(100.0)
    assert controller.selected_segment == 2
    assert {handle.segment_index for handle in controller.selection} == {1, 2}
    assert controller.click_segment(0, (0.0, 0.0)) is None


def test_context_menu_toggles_node_and_rebuilds_handles(square: PathModel) -> None:
    controller = _controller(square)
    assert controller.context_menu(Handle("anchor", 2, "anchor"))
    assert isinstance(square.segments[2], CubicBezier)
    assert len(controller.handles) == 6
    assert not controller.context_menu(Handle("control", 2, "control1", bound_anchor_index=1))


def test_display_list_contents_depend_on_edit_mode(square: PathModel) -> None:
    square.point_labels = {1: "Corner"}
    controller = HandleController(square, resolver=FREE)
    idle = controller.display_list()
    assert isinstance(idle[0], PathShape) and idle[0].role == "outline"
    assert not any(isinstance(item, Marker) for item in idle)
    assert any(isinstance(item, LineShape) and item.role == "grain" for item in idle)

    controller.toggle_edit_mode()
    editing = controller.display_list()
    markers = [item for item in editing if isinstance(item, Marker)]
    assert len(markers) == 4
    assert {marker.shape for marker in markers} == {"square"}
    segments = [item for item in editing if isinstance(item, PathShape) and item.role == "segment"]
    assert [shape.segment_index for shape in segments] == [1, 2, 3]
    labels = [item.text for item in editing if isinstance(item, TextLabel) and item.role == "measurement"]
    assert "Corner: 100mm" in labels


def test_segment_colour_overrides(square: PathModel) -> None:
    controller = _controller(square)
    controller.set_segment_color(1, "red")
    shapes = [item for item in controller.display_list() if isinstance(item, PathShape) and item.segment_index == 1]
    assert shapes[0].stroke == "red"
    controller.clear_segment_color(1)
    shapes = [item for item in controller.display_list() if isinstance(item, PathShape) and item.segment_index == 1]
    assert shapes[0].stroke != "red"


def test_refresh_rebuilds_after_split(square: PathModel) -> None:
    from garment import edits

    controller = _controller(square)
    edits.split_segment(square, 1)
    controller.refresh(structure_changed=True)
    assert len(controller.handles) == 5

"""Tests for pointer snap resolution."""

from __future__ import annotations

import pytest

from garment.path_model import Close, CubicBezier, Line, Move, PathModel, Placement
from garment.snapping import (
    Modifiers,
    SnapConfig,
    SnapRequest,
    SnapResolver,
    constrain_to_angle,
)


def _request(path: PathModel, position, index: int = 2, **kwargs) -> SnapRequest:
    return SnapRequest(position=position, path=path, segment_index=index, **kwargs)


def test_grid_snap_rounds_both_coordinates(square: PathModel) -> None:
    resolver = SnapResolver(SnapConfig(points=False, segments=False))
    result = resolver.resolve(_request(square, (13.0, 27.0)))
    assert result.kind == "grid"
    assert result.scene == (20.0, 20.0)
    assert result.local == (20.0, 20.0)


def test_disable_snap_returns_raw_position(square: PathModel) -> None:
    resolver = SnapResolver()
    result = resolver.resolve(_request(square, (13.0, 27.0), modifiers=Modifiers(disable_snap=True)))
    assert result.kind == "free"
    assert result.local == (13.0, 27.0)


def test_point_snap_beats_grid(square: PathModel) -> None:
    other = PathModel(segments=[Move((203.0, 57.0)), Line((300.0, 57.0))])
    resolver = SnapResolver()
    result = resolver.resolve(_request(square, (205.0, 60.0), others=[other]))
    assert result.kind == "point"
    assert result.scene == (203.0, 57.0)


def test_point_snap_includes_own_anchors_except_dragged(square: PathModel) -> None:
    resolver = SnapResolver(SnapConfig(grid=False))
    result = resolver.resolve(_request(square, (96.0, 3.0), index=2))
    assert result.kind == "point"
    assert result.local == (100.0, 0.0)

    dragged_self = resolver.resolve(_request(square, (98.0, 99.0), index=2))
    assert dragged_self.kind == "free"
    assert dragged_self.local == (98.0, 99.0)


def test_point_snap_radius_scales_with_zoom(square: PathModel) -> None:
    other = PathModel(segments=[Move((500.0, 500.0)), Line((600.0, 500.0))])
    resolver = SnapResolver(SnapConfig(grid=False, segments=False))
    far = resolver.resolve(_request(square, (508.0, 500.0), others=[other], zoom=2.0))
    assert far.kind == "free"
    near = resolver.resolve(_request(square, (508.0, 500.0), others=[other], zoom=0.5))
    assert near.kind == "point"


def test_segment_snap_projects_onto_other_paths(square: PathModel) -> None:
    other = PathModel(
        segments=[
            Move((300.0, 0.0)),
            Line((300.0, 200.0)),
            CubicBezier((350.0, 250.0), (450.0, 250.0), (500.0, 200.0)),
        ]
    )
    resolver = SnapResolver(SnapConfig(grid=False))
    result = resolver.resolve(_request(square, (304.0, 90.0), others=[other]))
    assert result.kind == "segment"
    assert result.scene == pytest.approx((300.0, 90.0))


def test_segment_snap_ignores_active_path(square: PathModel) -> None:
    resolver = SnapResolver(SnapConfig(grid=False, points=False))
    result = resolver.resolve(_request(square, (50.0, 4.0)))
    assert result.kind == "free"


def test_orthogonal_modifier_constrains_to_45_degrees(square: PathModel) -> None:
    resolver = SnapResolver(SnapConfig(grid=False, points=False, segments=False))
    result = resolver.resolve(
        _request(
            square,
            (150.0, 20.0),
            index=2,
            fixed_anchor_index=1,
            modifiers=Modifiers(orthogonal=True),
        )
    )
    assert result.kind == "angle"
    # 21.8 degrees from (100, 0) rounds down to the horizontal ray
    assert result.local[1] == pytest.approx(0.0, abs=1e-9)
    assert result.local[0] == pytest.approx(100.0 + (50.0**2 + 20.0**2) ** 0.5)


def test_center_label_pins_local_x() -> None:
    path = PathModel(
        segments=[Move((0.0, 0.0)), Line((100.0, 0.0)), Line((0.0, 200.0)), Close()],
        point_labels={2: "Hem-Center"},
    )
    resolver = SnapResolver(SnapConfig(grid=False, points=False, segments=False))
    result = resolver.resolve(_request(path, (37.0, 210.0)))
    assert result.local == (0.0, 210.0)


def test_snapping_happens_in_scene_space_for_placed_paths() -> None:
    path = PathModel(
        segments=[Move((0.0, 0.0)), Line((100.0, 0.0)), Line((100.0, 100.0))],
        placement=Placement(x=1000.0, y=0.0),
    )
    resolver = SnapResolver(SnapConfig(points=False, segments=False))
    result = resolver.resolve(_request(path, (1113.0, 27.0)))
    assert result.scene == (1120.0, 20.0)
    assert result.local == (120.0, 20.0)


def test_constrain_to_angle_keeps_distance() -> None:
    point = constrain_to_angle((0.0, 0.0), (10.0, 9.0))
    assert point[0] == pytest.approx(point[1])
    assert (point[0] ** 2 + point[1] ** 2) ** 0.5 == pytest.approx((10.0**2 + 9.0**2) ** 0.5)
    assert constrain_to_angle((1.0, 1.0), (1.0, 1.0)) == (1.0, 1.0)

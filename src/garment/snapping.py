"""Snap resolution for dragged pattern handles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .geometry import (
    Point,
    angle_of,
    distance,
    nearest_point_on_cubic_bezier,
    nearest_point_on_line,
    point_from_angle,
    snap_to_angle,
    snap_to_grid,
)
from .path_model import CubicBezier, Line, PathModel

logger = logging.getLogger(__name__)

CENTER_LABEL_TOKEN = "center"
ANGLE_STEP = 45.0


@dataclass(slots=True)
class SnapConfig:
    """Per-session snapping switches."""

    grid: bool = True
    points: bool = True
    segments: bool = True
    grid_size: float = 20.0
    radius_px: float = 10.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "SnapConfig":
        return cls(
            grid=bool(payload.get("grid", True)),
            points=bool(payload.get("points", True)),
            segments=bool(payload.get("segments", True)),
            grid_size=float(payload.get("grid_size", payload.get("gridSize", 20.0))),
            radius_px=float(payload.get("radius_px", 10.0)),
        )


@dataclass(frozen=True, slots=True)
class Modifiers:
    """Modifier-key state reported with a pointer event."""

    disable_snap: bool = False
    orthogonal: bool = False


@dataclass(slots=True)
class SnapRequest:
    position: Point
    path: PathModel
    segment_index: int
    others: Sequence[PathModel] = field(default_factory=tuple)
    modifiers: Modifiers = field(default_factory=Modifiers)
    fixed_anchor_index: int | None = None
    zoom: float = 1.0


@dataclass(frozen=True, slots=True)
class SnapResult:
    scene: Point
    local: Point
    kind: str


class SnapResolver:
    """Resolve a pointer position to its snap target.

    Point, segment and grid snaps are tried in that order; the orthogonal
    modifier then constrains the result to a 45 degree ray and labels
    containing "center" pin the local X coordinate to the centre line.
    """

    def __init__(self, config: SnapConfig | None = None) -> None:
        self.config = config or SnapConfig()

    def radius(self, zoom: float) -> float:
        return self.config.radius_px / zoom if zoom > 0 else self.config.radius_px

    def resolve(self, request: SnapRequest) -> SnapResult:
        path = request.path
        scene = (float(request.position[0]), float(request.position[1]))
        kind = "free"

        if not request.modifiers.disable_snap:
            radius = self.radius(request.zoom)
            target = None
            if self.config.points:
                target = self._point_target(request, scene, radius)
                if target is not None:
                    kind = "point"
            if target is None and self.config.segments:
                target = self._segment_target(request, scene, radius)
                if target is not None:
                    kind = "segment"
            if target is None and self.config.grid:
                target = (
                    snap_to_grid(scene[0], self.config.grid_size),
                    snap_to_grid(scene[1], self.config.grid_size),
                )
                kind = "grid"
            if target is not None:
                logger.debug("Resolved %s snap for segment %s at %s", kind, request.segment_index, target)
                scene = target

        local = path.placement.to_local(scene)

        if request.modifiers.orthogonal and request.fixed_anchor_index is not None:
            fixed = path.anchor(request.fixed_anchor_index)
            if fixed is not None:
                local = constrain_to_angle(fixed, local)
                kind = "angle"

        label = path.point_labels.get(request.segment_index, "")
        if CENTER_LABEL_TOKEN in label.lower():
            local = (0.0, local[1])

        return SnapResult(scene=path.placement.to_scene(local), local=local, kind=kind)

    def _point_target(self, request: SnapRequest, scene: Point, radius: float) -> Point | None:
        for candidate in (request.path, *request.others):
            for index in range(len(candidate.segments)):
                point = candidate.anchor(index)
                if point is None:
                    continue
                if candidate is request.path and index == request.segment_index:
                    continue
                scene_point = candidate.placement.to_scene(point)
                if distance(scene, scene_point) < radius:
                    return scene_point
        return None

    def _segment_target(self, request: SnapRequest, scene: Point, radius: float) -> Point | None:
        best: tuple[float, Point] | None = None
        for other in request.others:
            if other is request.path:
                continue
            for index in range(1, len(other.segments)):
                command = other.segments[index]
                start = other.anchor(index - 1)
                if start is None:
                    continue
                to_scene = other.placement.to_scene
                if isinstance(command, Line):
                    point = nearest_point_on_line(scene, to_scene(start), to_scene(command.anchor))
                    gap = distance(scene, point)
                elif isinstance(command, CubicBezier):
                    point, gap = nearest_point_on_cubic_bezier(
                        scene,
                        to_scene(start),
                        to_scene(command.control1),
                        to_scene(command.control2),
                        to_scene(command.anchor),
                    )
                else:
                    continue
                if gap < radius and (best is None or gap < best[0]):
                    best = (gap, point)
        return best[1] if best is not None else None


def constrain_to_angle(fixed: Point, free: Point, step: float = ANGLE_STEP) -> Point:
    """Project ``free`` onto the nearest ``step``-degree ray from ``fixed``."""

    length = distance(fixed, free)
    if length <= 0.0:
        return free
    return point_from_angle(fixed, snap_to_angle(angle_of(fixed, free), step), length)


__all__ = [
    "ANGLE_STEP",
    "Modifiers",
    "SnapConfig",
    "SnapRequest",
    "SnapResolver",
    "SnapResult",
    "constrain_to_angle",
]

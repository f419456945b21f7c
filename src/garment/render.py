"""Drawable primitives handed to the rendering surface.

Every primitive carries scene-space coordinates; the renderer only has to
draw them. Styling mirrors the editor palette: red square anchors, blue round
control points, dashed blue control arms, red notch ticks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .geometry import Point, angle_of, distance, point_from_angle
from .path_model import Close, CubicBezier, Line, Move, PathModel, end_tangent_angle

ANCHOR_COLOR = "red"
CONTROL_COLOR = "#3b82f6"
ARM_COLOR = "#3b82f6"
NOTCH_COLOR = "#ef4444"
GRAIN_COLOR = "#1e293b"
LABEL_COLOR = "#64748b"
OUTLINE_STROKE = "#666666"
OUTLINE_FILL = "#cccccc"
HIT_REGION_STROKE = "rgba(59, 130, 246, 0.01)"
SELECTED_STROKE = "rgba(59, 130, 246, 0.8)"
HIT_REGION_WIDTH = 26.0
NOTCH_HALF_LENGTH = 5.0
GRAIN_ARROW_SIZE = 8.0
MEASUREMENT_OFFSET = (10.0, -10.0)


@dataclass(slots=True)
class PathShape:
    """Stroked/filled path; ``commands`` use the serialized list form."""

    role: str
    commands: list[list[Any]]
    stroke: str = OUTLINE_STROKE
    fill: str | None = None
    stroke_width: float = 2.0
    segment_index: int | None = None
    path_id: str | None = None


@dataclass(slots=True)
class LineShape:
    role: str
    start: Point
    end: Point
    stroke: str = ARM_COLOR
    stroke_width: float = 2.0
    dash: tuple[float, ...] = ()


@dataclass(slots=True)
class TextLabel:
    role: str
    text: str
    position: Point
    font_size: float = 10.0
    fill: str = LABEL_COLOR
    background: str | None = None


@dataclass(slots=True)
class Marker:
    role: str
    position: Point
    shape: str
    color: str
    size: float = 11.0
    handle: Any = field(default=None, repr=False)


Primitive = Union[PathShape, LineShape, TextLabel, Marker]


def scene_commands(path: PathModel, indices: tuple[int, int] | None = None) -> list[list[Any]]:
    """Serialized commands of ``path`` (or one segment of it) in scene space."""

    to_scene = path.placement.to_scene
    if indices is not None:
        start_index, end_index = indices
        start = path.anchor(start_index)
        command = path.segments[end_index]
        if start is None:
            return []
        out: list[list[Any]] = [["M", *to_scene(start)]]
        if isinstance(command, Line):
            out.append(["L", *to_scene(command.anchor)])
        elif isinstance(command, CubicBezier):
            out.append(
                ["C", *to_scene(command.control1), *to_scene(command.control2), *to_scene(command.anchor)]
            )
        return out

    out = []
    for command in path.segments:
        if isinstance(command, Move):
            out.append(["M", *to_scene(command.anchor)])
        elif isinstance(command, Line):
            out.append(["L", *to_scene(command.anchor)])
        elif isinstance(command, CubicBezier):
            out.append(
                ["C", *to_scene(command.control1), *to_scene(command.control2), *to_scene(command.anchor)]
            )
        elif isinstance(command, Close):
            out.append(["Z"])
    return out


def outline_shape(path: PathModel) -> PathShape:
    return PathShape(
        role="outline",
        commands=scene_commands(path),
        stroke=OUTLINE_STROKE,
        fill=OUTLINE_FILL,
        path_id=path.path_id,
    )


def segment_hit_regions(
    path: PathModel,
    *,
    selected: int | None = None,
    colors: dict[int, str] | None = None,
) -> list[PathShape]:
    """Wide, nearly invisible strokes used as click targets for each segment."""

    overrides = colors or {}
    shapes: list[PathShape] = []
    for index in range(1, len(path.segments)):
        if not isinstance(path.segments[index], (Line, CubicBezier)):
            continue
        if index in overrides:
            stroke = overrides[index]
        elif index == selected:
            stroke = SELECTED_STROKE
        else:
            stroke = HIT_REGION_STROKE
        shapes.append(
            PathShape(
                role="segment",
                commands=scene_commands(path, (index - 1, index)),
                stroke=stroke,
                stroke_width=HIT_REGION_WIDTH,
                segment_index=index,
                path_id=path.path_id,
            )
        )
    return shapes


def control_arms(path: PathModel) -> list[LineShape]:
    to_scene = path.placement.to_scene
    arms: list[LineShape] = []
    for index, command in enumerate(path.segments):
        if not isinstance(command, CubicBezier):
            continue
        start = path.anchor(index - 1)
        if start is None:
            continue
        arms.append(LineShape("control-arm", to_scene(start), to_scene(command.control1), dash=(4.0, 3.0)))
        arms.append(LineShape("control-arm", to_scene(command.anchor), to_scene(command.control2), dash=(4.0, 3.0)))
    return arms


def measurement_labels(path: PathModel) -> list[TextLabel]:
    """Point label plus rounded segment length next to every anchor."""

    labels: list[TextLabel] = []
    for index, command in enumerate(path.segments):
        if isinstance(command, Close):
            continue
        label = path.point_labels.get(index, "")
        length = path.segment_length(index)
        if not label and length <= 0:
            continue
        parts = []
        if label:
            parts.append(f"{label}: " if length > 0 else label)
        if length > 0:
            parts.append(f"{round(length)}mm")
        x, y = path.placement.to_scene(command.anchor)
        labels.append(
            TextLabel("measurement", "".join(parts), (x + MEASUREMENT_OFFSET[0], y + MEASUREMENT_OFFSET[1]))
        )
    return labels


def _notch_tangent(path: PathModel, index: int) -> float | None:
    if index > 0:
        return end_tangent_angle(path, index) if path.anchor(index - 1) is not None else None
    # a notch on the Move takes the closing edge that arrives there
    last = max((i for i, command in enumerate(path.segments) if not isinstance(command, Close)), default=0)
    if last == 0:
        return None
    start, end = path.anchor(last), path.anchor(0)
    if distance(start, end) > 1e-9:
        return angle_of(start, end)
    return end_tangent_angle(path, last)


def notch_ticks(path: PathModel) -> list[LineShape]:
    """Short ticks perpendicular to the outline at each notched anchor."""

    ticks: list[LineShape] = []
    for notch in path.notches:
        index = notch.segment_index
        anchor = path.anchor(index)
        tangent = _notch_tangent(path, index) if anchor is not None else None
        if tangent is None:
            continue
        normal = tangent + 90.0 + path.placement.angle
        centre = path.placement.to_scene(anchor)
        ticks.append(
            LineShape(
                "notch",
                point_from_angle(centre, normal, -NOTCH_HALF_LENGTH),
                point_from_angle(centre, normal, NOTCH_HALF_LENGTH),
                stroke=NOTCH_COLOR,
                stroke_width=2.5,
            )
        )
    return ticks


def grain_line_shapes(path: PathModel) -> list[Primitive]:
    """Double-headed grain arrow through the centre of the piece."""

    min_x, min_y, max_x, max_y = path.bounds()
    centre = path.placement.to_scene(((min_x + max_x) / 2.0, (min_y + max_y) / 2.0))
    # angle 0 points down the piece (+Y in scene space)
    direction = 90.0 + path.grain_line.angle + path.placement.angle
    half = path.grain_line.length / 2.0
    top = point_from_angle(centre, direction, -half)
    bottom = point_from_angle(centre, direction, half)
    shapes: list[Primitive] = [LineShape("grain", top, bottom, stroke=GRAIN_COLOR, stroke_width=1.5)]
    for tip, sign in ((top, 1.0), (bottom, -1.0)):
        base = point_from_angle(tip, direction, sign * GRAIN_ARROW_SIZE)
        left = point_from_angle(base, direction + 90.0, GRAIN_ARROW_SIZE / 2.0)
        right = point_from_angle(base, direction - 90.0, GRAIN_ARROW_SIZE / 2.0)
        shapes.append(
            PathShape(
                role="grain-arrow",
                commands=[["M", *tip], ["L", *left], ["L", *right], ["Z"]],
                stroke=GRAIN_COLOR,
                fill=GRAIN_COLOR,
                stroke_width=1.0,
                path_id=path.path_id,
            )
        )
    return shapes


def hud_label(text: str, pointer: Point) -> TextLabel:
    return TextLabel(
        "hud",
        text,
        (pointer[0] + 20.0, pointer[1] - 20.0),
        font_size=14.0,
        fill="white",
        background=CONTROL_COLOR,
    )


__all__ = [
    "LineShape",
    "Marker",
    "PathShape",
    "Primitive",
    "TextLabel",
    "control_arms",
    "grain_line_shapes",
    "hud_label",
    "measurement_labels",
    "notch_ticks",
    "outline_shape",
    "scene_commands",
    "segment_hit_regions",
]

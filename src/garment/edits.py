"""Structural and length edits applied to a single pattern piece.

Every edit works on the live ``segments`` list and returns ``True`` when the
path changed. Out-of-range indices and degenerate segments are ignored.
"""

from __future__ import annotations

import logging

from .geometry import cubic_bezier_length, distance, line_midpoint, split_cubic
from .path_model import Close, Command, CubicBezier, Line, Move, Notch, PathModel

logger = logging.getLogger(__name__)

DEFAULT_HANDLE_OFFSET = 50.0


def _segment_bounds(path: PathModel, index: int) -> tuple[tuple[float, float], Command] | None:
    if index <= 0 or index >= len(path.segments):
        logger.debug("Segment %s is out of range for %s", index, path.path_id)
        return None
    start = path.anchor(index - 1)
    command = path.segments[index]
    if start is None or isinstance(command, (Move, Close)):
        return None
    return start, command


def set_segment_length(path: PathModel, index: int, length_mm: float) -> bool:
    """Rescale the segment ending at ``index`` to ``length_mm``.

    Lines slide their end anchor along the current direction. Cubics scale the
    whole control hull about the start anchor by the same ratio, which only
    approximates the requested arc length.
    """

    bounds = _segment_bounds(path, index)
    if bounds is None:
        return False
    start, command = bounds
    sx, sy = start

    if isinstance(command, Line):
        current = distance(start, command.anchor)
        if current == 0:
            return False
        ratio = length_mm / current
        ex, ey = command.anchor
        path.segments[index] = Line((sx + (ex - sx) * ratio, sy + (ey - sy) * ratio))
        return True

    if isinstance(command, CubicBezier):
        current = cubic_bezier_length(start, command.control1, command.control2, command.anchor)
        if current == 0:
            return False
        ratio = length_mm / current

        def scaled(point: tuple[float, float]) -> tuple[float, float]:
            return (sx + (point[0] - sx) * ratio, sy + (point[1] - sy) * ratio)

        path.segments[index] = CubicBezier(
            control1=scaled(command.control1),
            control2=scaled(command.control2),
            anchor=scaled(command.anchor),
        )
        return True
    return False


def adjust_distance(path: PathModel, first: int, second: int, length_mm: float) -> bool:
    """Move the anchor at ``second`` so it sits ``length_mm`` from ``first``."""

    a = path.anchor(first)
    b = path.anchor(second)
    if a is None or b is None:
        return False
    current = distance(a, b)
    if current == 0:
        return False
    ratio = length_mm / current
    return path.set_slot(second, "anchor", (a[0] + (b[0] - a[0]) * ratio, a[1] + (b[1] - a[1]) * ratio))


def _shift_metadata(path: PathModel, index: int) -> None:
    path.point_labels = {
        (key + 1 if key >= index else key): label for key, label in path.point_labels.items()
    }
    path.join_points = {key + 1 if key >= index else key for key in path.join_points}
    path.notches = [
        Notch(notch.segment_index + 1) if notch.segment_index >= index else notch
        for notch in path.notches
    ]


def split_segment(path: PathModel, index: int) -> bool:
    """Split the segment ending at ``index`` at its midpoint.

    Metadata at or after ``index`` moves up one slot so labels stay on the
    original end anchor.
    """

    bounds = _segment_bounds(path, index)
    if bounds is None:
        return False
    start, command = bounds

    if isinstance(command, Line):
        first: Command = Line(line_midpoint(start, command.anchor))
        second: Command = Line(command.anchor)
    elif isinstance(command, CubicBezier):
        left, right = split_cubic(start, command.control1, command.control2, command.anchor)
        first = CubicBezier(control1=left[1], control2=left[2], anchor=left[3])
        second = CubicBezier(control1=right[1], control2=right[2], anchor=right[3])
    else:
        return False

    path.segments[index : index + 1] = [first, second]
    _shift_metadata(path, index)
    return True


def toggle_node_type(path: PathModel, index: int) -> bool:
    """Convert the segment ending at ``index`` between line and cubic."""

    bounds = _segment_bounds(path, index)
    if bounds is None:
        return False
    start, command = bounds

    if isinstance(command, Line):
        end = command.anchor
        path.segments[index] = CubicBezier(
            control1=(start[0] + DEFAULT_HANDLE_OFFSET, start[1]),
            control2=(end[0] - DEFAULT_HANDLE_OFFSET, end[1]),
            anchor=end,
        )
        return True
    if isinstance(command, CubicBezier):
        path.segments[index] = Line(command.anchor)
        return True
    return False


def _reverse(start: tuple[float, float], command: Command) -> Command:
    """The same segment traversed from its end back to ``start``."""

    if isinstance(command, CubicBezier):
        return CubicBezier(control1=command.control2, control2=command.control1, anchor=start)
    return Line(start)


def mirror(path: PathModel) -> bool:
    """Complete a half piece drafted against the X = 0 centre line.

    The outline is walked back in reverse order with X negated, joining the
    last anchor to its mirror image when it does not sit on the centre line.
    Labels stay on the original half.
    """

    body = [command for command in path.segments if not isinstance(command, Close)]
    if len(body) < 2:
        return False

    def flip(point: tuple[float, float]) -> tuple[float, float]:
        return (-point[0], point[1])

    mirrored: list[Command] = []
    last = body[-1].anchor
    if abs(last[0]) > 1e-9:
        mirrored.append(Line(flip(last)))
    for position in range(len(body) - 1, 0, -1):
        command = body[position]
        start = body[position - 1].anchor
        reversed_command = _reverse(start, command)
        if isinstance(reversed_command, CubicBezier):
            reversed_command = CubicBezier(
                control1=flip(reversed_command.control1),
                control2=flip(reversed_command.control2),
                anchor=flip(reversed_command.anchor),
            )
        else:
            reversed_command = Line(flip(reversed_command.anchor))
        mirrored.append(reversed_command)

    path.segments = [*body, *mirrored, Close()]
    return True


def translate(path: PathModel, dx: float, dy: float) -> None:
    """Shift every coordinate of the live outline."""

    shifted: list[Command] = []
    for command in path.segments:
        if isinstance(command, CubicBezier):
            shifted.append(command.shifted(dx, dy))
        elif isinstance(command, (Move, Line)):
            shifted.append(type(command)((command.anchor[0] + dx, command.anchor[1] + dy)))
        else:
            shifted.append(command)
    path.segments = shifted


__all__ = [
    "DEFAULT_HANDLE_OFFSET",
    "adjust_distance",
    "mirror",
    "set_segment_length",
    "split_segment",
    "toggle_node_type",
    "translate",
]

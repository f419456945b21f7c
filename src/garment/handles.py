"""Draggable handle set binding pointer edits back into a PathModel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Mapping

from . import edits
from .geometry import Point, angle_of, distance, point_from_angle
from .path_model import CubicBezier, Line, Move, PathModel
from .render import (
    ANCHOR_COLOR,
    CONTROL_COLOR,
    Marker,
    Primitive,
    control_arms,
    grain_line_shapes,
    hud_label,
    measurement_labels,
    notch_ticks,
    outline_shape,
    segment_hit_regions,
)
from .seams import SeamLinker, SeamStatus, SeamTolerance
from .snapping import Modifiers, SnapRequest, SnapResolver

logger = logging.getLogger(__name__)

HandleKind = Literal["anchor", "control"]

SEAM_STATUS_COLORS = {"warn": "rgba(245, 158, 11, 0.8)", "fail": "rgba(239, 68, 68, 0.8)"}


@dataclass(frozen=True, slots=True)
class Handle:
    """A draggable point bound to one coordinate slot of a segment."""

    kind: HandleKind
    segment_index: int
    slot: str
    bound_anchor_index: int | None = None


@dataclass(frozen=True, slots=True)
class SegmentClick:
    """Notification payload raised when a segment hit region is clicked."""

    path_id: str
    segment_index: int
    length: float
    position: Point


def build_handles(path: PathModel) -> list[Handle]:
    handles: list[Handle] = []
    for index, command in enumerate(path.segments):
        if isinstance(command, (Move, Line)):
            handles.append(Handle("anchor", index, "anchor"))
        elif isinstance(command, CubicBezier):
            handles.append(Handle("control", index, "control1", bound_anchor_index=index - 1))
            handles.append(Handle("control", index, "control2", bound_anchor_index=index))
            handles.append(Handle("anchor", index, "anchor"))
    return handles


class HandleController:
    """Edit-mode state machine for one pattern piece.

    Handles are rebuilt from scratch whenever edit mode is entered or the path
    structure changes; they are never patched in place.
    """

    def __init__(
        self,
        path: PathModel,
        registry: Mapping[str, PathModel] | None = None,
        *,
        resolver: SnapResolver | None = None,
        tolerance: SeamTolerance | None = None,
        on_segment_click: Callable[[SegmentClick], None] | None = None,
        on_redraw: Callable[[], None] | None = None,
    ) -> None:
        self.path = path
        self.registry: Mapping[str, PathModel] = registry if registry is not None else {path.path_id: path}
        self.resolver = resolver or SnapResolver()
        self.linker = SeamLinker(path, self.registry, tolerance=tolerance)
        self.on_segment_click = on_segment_click
        self.on_redraw = on_redraw
        self.zoom = 1.0
        self.is_editing = False
        self.handles: list[Handle] = []
        self.selection: list[Handle] = []
        self.selected_segment: int | None = None
        self.segment_colors: dict[int, str] = {}
        self.seam_statuses: list[SeamStatus] = []
        self.dragging: Handle | None = None
        self._hud: tuple[str, Point] | None = None

    # edit mode -----------------------------------------------------------

    def toggle_edit_mode(self) -> bool:
        self.is_editing = not self.is_editing
        if self.is_editing:
            if not self.path.is_editable:
                logger.warning("Path %s has too few commands to edit", self.path.path_id)
            self.handles = build_handles(self.path)
        else:
            self.handles = []
            self.selection = []
            self.selected_segment = None
            self.dragging = None
            self._hud = None
        self._redraw()
        return self.is_editing

    def refresh(self, *, structure_changed: bool = False) -> None:
        """Re-derive after an external edit; rebuild handles on structural change."""

        if structure_changed:
            self.selection = []
            if self.selected_segment is not None and self.selected_segment >= len(self.path.segments):
                self.selected_segment = None
            if self.is_editing:
                self.handles = build_handles(self.path)
        self._redraw()

    # dragging ------------------------------------------------------------

    def begin_drag(self, handle: Handle) -> bool:
        if not self.is_editing or handle not in self.handles:
            return False
        self.dragging = handle
        return True

    def drag_to(self, handle: Handle, pointer: Point, modifiers: Modifiers | None = None) -> bool:
        """Apply one pointer-move event to ``handle``."""

        if not self.is_editing:
            return False
        if handle not in self.handles:
            logger.debug("Ignoring drag of stale handle %s on %s", handle, self.path.path_id)
            return False
        path = self.path
        index = handle.segment_index

        if handle.kind == "control":
            fixed = handle.bound_anchor_index
        else:
            fixed = index - 1 if index > 0 else None

        others = [other for other in self.registry.values() if other is not path]
        result = self.resolver.resolve(
            SnapRequest(
                position=pointer,
                path=path,
                segment_index=index,
                others=others,
                modifiers=modifiers or Modifiers(),
                fixed_anchor_index=fixed,
                zoom=self.zoom,
            )
        )
        if not path.set_slot(index, handle.slot, result.local):
            return False

        is_join = handle.kind == "anchor" and index in path.join_points
        if is_join:
            self.ensure_perpendicular_join(index)

        label = path.point_labels.get(index)
        if handle.kind == "anchor" and label and path.counterpart_id:
            self.linker.sync(label, result.local[0], result.local[1])

        if is_join:
            self.check_seams()

        length = path.segment_length(index)
        self._hud = (f"{length:.1f}mm", pointer) if length > 0 else None
        self._redraw()
        return True

    def end_drag(self) -> None:
        self.dragging = None
        self._hud = None
        self._redraw()

    def ensure_perpendicular_join(self, index: int) -> bool:
        """Make the curve leaving a line-to-curve join depart at a right angle.

        The first control point of the following cubic is placed at the seam
        angle minus 90 degrees, keeping its distance from the join.
        """

        path = self.path
        if index + 1 >= len(path.segments):
            return False
        incoming = path.segments[index]
        outgoing = path.segments[index + 1]
        previous = path.anchor(index - 1)
        if not isinstance(incoming, Line) or not isinstance(outgoing, CubicBezier) or previous is None:
            return False
        join = incoming.anchor
        if distance(previous, join) == 0:
            return False
        seam_angle = angle_of(previous, join)
        reach = distance(join, outgoing.control1)
        control = point_from_angle(join, seam_angle - 90.0, reach)
        path.segments[index + 1] = outgoing.with_slot("control1", control)
        return True

    # seams ---------------------------------------------------------------

    def check_seams(self) -> list[SeamStatus]:
        self.seam_statuses = self.linker.seam_status()
        for status in self.seam_statuses:
            color = SEAM_STATUS_COLORS.get(status.status)
            if color is None:
                self.segment_colors.pop(status.segment_index, None)
            else:
                self.segment_colors[status.segment_index] = color
        return self.seam_statuses

    def set_segment_color(self, index: int, color: str) -> None:
        self.segment_colors[index] = color
        self._redraw()

    def clear_segment_color(self, index: int) -> None:
        self.segment_colors.pop(index, None)
        self._redraw()

    # clicks --------------------------------------------------------------

    def click_segment(self, index: int, pointer: Point) -> SegmentClick | None:
        """Select the segment ending at ``index`` and both of its anchors."""

        if not self.is_editing or not 0 < index < len(self.path.segments):
            return None
        self.selected_segment = index
        click = SegmentClick(
            path_id=self.path.path_id,
            segment_index=index,
            length=self.path.segment_length(index),
            position=(float(pointer[0]), float(pointer[1])),
        )
        self.selection = [
            handle
            for handle in self.handles
            if handle.kind == "anchor" and handle.segment_index in (index - 1, index)
        ]
        if self.on_segment_click is not None:
            self.on_segment_click(click)
        self._redraw()
        return click

    def context_menu(self, handle: Handle) -> bool:
        """Right-click on an anchor toggles the node between line and curve."""

        if not self.is_editing or handle.kind != "anchor" or handle not in self.handles:
            return False
        changed = edits.toggle_node_type(self.path, handle.segment_index)
        if changed:
            self.refresh(structure_changed=True)
        return changed

    # display -------------------------------------------------------------

    def display_list(self) -> list[Primitive]:
        path = self.path
        items: list[Primitive] = [outline_shape(path)]
        if self.is_editing:
            items.extend(segment_hit_regions(path, selected=self.selected_segment, colors=self.segment_colors))
            items.extend(control_arms(path))
            for handle in self.handles:
                command = path.segments[handle.segment_index]
                local = getattr(command, handle.slot)
                anchor = handle.kind == "anchor"
                items.append(
                    Marker(
                        role=handle.kind,
                        position=path.placement.to_scene(local),
                        shape="square" if anchor else "circle",
                        color=ANCHOR_COLOR if anchor else CONTROL_COLOR,
                        handle=handle,
                    )
                )
            items.extend(measurement_labels(path))
        items.extend(notch_ticks(path))
        items.extend(grain_line_shapes(path))
        if self._hud is not None:
            items.append(hud_label(*self._hud))
        return items

    def _redraw(self) -> None:
        if self.on_redraw is not None:
            self.on_redraw()


__all__ = [
    "Handle",
    "HandleController",
    "HandleKind",
    "SEAM_STATUS_COLORS",
    "SegmentClick",
    "build_handles",
]

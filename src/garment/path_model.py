"""Serializable vector-path model for garment pattern pieces."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence, Union

from .geometry import (
    BEZIER_LENGTH_SAMPLES,
    Point,
    bounding_box,
    cubic_bezier_length,
    cubic_bezier_points,
    distance,
    polygon_area,
    rotate_point,
)

logger = logging.getLogger(__name__)

MM2_PER_M2 = 1_000_000.0


class PathStructureError(ValueError):
    """Raised when serialized path data violates the command-list invariants."""


@dataclass(frozen=True, slots=True)
class Move:
    anchor: Point

    def with_slot(self, slot: str, point: Point) -> "Move":
        if slot != "anchor":
            raise KeyError(f"Move commands have no {slot!r} slot")
        return replace(self, anchor=point)


@dataclass(frozen=True, slots=True)
class Line:
    anchor: Point

    def with_slot(self, slot: str, point: Point) -> "Line":
        if slot != "anchor":
            raise KeyError(f"Line commands have no {slot!r} slot")
        return replace(self, anchor=point)


@dataclass(frozen=True, slots=True)
class CubicBezier:
    control1: Point
    control2: Point
    anchor: Point

    def with_slot(self, slot: str, point: Point) -> "CubicBezier":
        if slot not in ("control1", "control2", "anchor"):
            raise KeyError(f"CubicBezier commands have no {slot!r} slot")
        return replace(self, **{slot: point})

    def shifted(self, dx: float, dy: float) -> "CubicBezier":
        return CubicBezier(
            control1=(self.control1[0] + dx, self.control1[1] + dy),
            control2=(self.control2[0] + dx, self.control2[1] + dy),
            anchor=(self.anchor[0] + dx, self.anchor[1] + dy),
        )


@dataclass(frozen=True, slots=True)
class Close:
    pass


Command = Union[Move, Line, CubicBezier, Close]


def command_from_list(raw: Sequence[Any]) -> Command:
    """Decode the ``["C", c1x, c1y, c2x, c2y, x, y]`` interchange form."""

    if not raw:
        raise PathStructureError("Empty path command")
    tag = str(raw[0]).upper()
    values = [float(value) for value in raw[1:]]
    if tag == "M" and len(values) == 2:
        return Move((values[0], values[1]))
    if tag == "L" and len(values) == 2:
        return Line((values[0], values[1]))
    if tag == "C" and len(values) == 6:
        return CubicBezier(
            control1=(values[0], values[1]),
            control2=(values[2], values[3]),
            anchor=(values[4], values[5]),
        )
    if tag == "Z" and not values:
        return Close()
    raise PathStructureError(f"Unsupported path command {list(raw)!r}")


def command_to_list(command: Command) -> list[Any]:
    if isinstance(command, Move):
        return ["M", *command.anchor]
    if isinstance(command, Line):
        return ["L", *command.anchor]
    if isinstance(command, CubicBezier):
        return ["C", *command.control1, *command.control2, *command.anchor]
    if isinstance(command, Close):
        return ["Z"]
    raise TypeError(f"Unknown path command {command!r}")


def validate_segments(segments: Sequence[Command]) -> None:
    if not segments:
        raise PathStructureError("A path needs at least one command")
    if not isinstance(segments[0], Move):
        raise PathStructureError("The first command must be a Move")
    for index, command in enumerate(segments[1:], start=1):
        if isinstance(command, Move):
            raise PathStructureError(f"Only the first command may be a Move (found one at {index})")
        if isinstance(command, Close) and index != len(segments) - 1:
            raise PathStructureError(f"Close may only be the last command (found one at {index})")


@dataclass(frozen=True, slots=True)
class Notch:
    """Alignment mark placed at the anchor of ``segment_index``."""

    segment_index: int


@dataclass(frozen=True, slots=True)
class BaseMetadata:
    """Labels, join points and notches indexed against ``base_path``."""

    point_labels: tuple[tuple[int, str], ...] = ()
    join_points: frozenset[int] = frozenset()
    notches: tuple[Notch, ...] = ()

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "BaseMetadata":
        labels = payload.get("pointLabels") or {}
        return cls(
            point_labels=tuple(sorted((int(index), str(label)) for index, label in labels.items())),
            join_points=frozenset(int(index) for index in payload.get("joinPoints") or []),
            notches=tuple(Notch(int(entry["segmentIndex"])) for entry in payload.get("notches") or []),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "pointLabels": {str(index): label for index, label in self.point_labels},
            "joinPoints": sorted(self.join_points),
            "notches": [{"segmentIndex": notch.segment_index} for notch in self.notches],
        }


@dataclass(slots=True)
class GrainLine:
    """Fabric direction indicator; ``angle`` in degrees, 0 is vertical."""

    angle: float = 0.0
    length: float = 100.0


@dataclass(slots=True)
class Placement:
    """Rigid transform from local pattern coordinates into scene space."""

    x: float = 0.0
    y: float = 0.0
    angle: float = 0.0

    def to_scene(self, point: Point) -> Point:
        rx, ry = rotate_point(point, self.angle) if self.angle else point
        return (rx + self.x, ry + self.y)

    def to_local(self, point: Point) -> Point:
        shifted = (point[0] - self.x, point[1] - self.y)
        return rotate_point(shifted, -self.angle) if self.angle else shifted


def _new_path_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(slots=True)
class PathModel:
    """A closed pattern outline plus per-point metadata.

    Metadata is keyed by segment index. ``base_path`` is captured once when the
    model is created and is the reference for every grading operation.
    """

    segments: list[Command]
    point_labels: dict[int, str] = field(default_factory=dict)
    join_points: set[int] = field(default_factory=set)
    notches: list[Notch] = field(default_factory=list)
    grain_line: GrainLine = field(default_factory=GrainLine)
    counterpart_id: str | None = None
    path_id: str = field(default_factory=_new_path_id)
    name: str = "piece"
    placement: Placement = field(default_factory=Placement)
    base_path: tuple[Command, ...] = ()
    base_metadata: BaseMetadata | None = None

    def __post_init__(self) -> None:
        self.segments = list(self.segments)
        validate_segments(self.segments)
        if not self.base_path:
            self.base_path = tuple(self.segments)
        if self.base_metadata is None:
            self.base_metadata = self._metadata_snapshot()
        labels = list(self.point_labels.values())
        if len(labels) != len(set(labels)):
            raise PathStructureError("Point labels must be unique within a path")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PathModel":
        raw_segments = payload.get("segments")
        if not isinstance(raw_segments, Sequence) or isinstance(raw_segments, str):
            raise PathStructureError("Serialized paths require a 'segments' list")
        segments = [command_from_list(raw) for raw in raw_segments]
        labels = {
            int(index): str(label)
            for index, label in (payload.get("pointLabels") or {}).items()
        }
        joins = {int(index) for index in payload.get("joinPoints") or []}
        notches = [Notch(int(entry["segmentIndex"])) for entry in payload.get("notches") or []]
        grain_raw = payload.get("grainLine") or {}
        grain = GrainLine(
            angle=float(grain_raw.get("angle", 0.0)),
            length=float(grain_raw.get("length", 100.0)),
        )
        placement_raw = payload.get("placement") or {}
        placement = Placement(
            x=float(placement_raw.get("x", 0.0)),
            y=float(placement_raw.get("y", 0.0)),
            angle=float(placement_raw.get("angle", 0.0)),
        )
        base_raw = payload.get("basePath")
        base: tuple[Command, ...] = ()
        if base_raw:
            base = tuple(command_from_list(raw) for raw in base_raw)
            validate_segments(base)
        base_meta_raw = payload.get("baseMetadata")
        base_metadata = BaseMetadata.from_mapping(base_meta_raw) if base_meta_raw else None
        counterpart = payload.get("counterpartId")
        kwargs: dict[str, Any] = {}
        if payload.get("id"):
            kwargs["path_id"] = str(payload["id"])
        return cls(
            segments=segments,
            point_labels=labels,
            join_points=joins,
            notches=notches,
            grain_line=grain,
            counterpart_id=str(counterpart) if counterpart else None,
            name=str(payload.get("name", "piece")),
            placement=placement,
            base_path=base,
            base_metadata=base_metadata,
            **kwargs,
        )

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.path_id,
            "name": self.name,
            "segments": [command_to_list(command) for command in self.segments],
            "pointLabels": {str(index): label for index, label in sorted(self.point_labels.items())},
            "joinPoints": sorted(self.join_points),
            "notches": [{"segmentIndex": notch.segment_index} for notch in self.notches],
            "grainLine": {"angle": self.grain_line.angle, "length": self.grain_line.length},
            "placement": {"x": self.placement.x, "y": self.placement.y, "angle": self.placement.angle},
            "basePath": [command_to_list(command) for command in self.base_path],
            "baseMetadata": self.base_metadata.to_mapping(),
        }
        if self.counterpart_id:
            data["counterpartId"] = self.counterpart_id
        return data

    @property
    def is_editable(self) -> bool:
        return len(self.segments) >= 2

    def anchor(self, index: int) -> Point | None:
        """Terminal point of the command at ``index`` or ``None``."""

        if index < 0 or index >= len(self.segments):
            return None
        command = self.segments[index]
        if isinstance(command, Close):
            return None
        return command.anchor

    def anchors(self) -> list[Point]:
        return [command.anchor for command in self.segments if not isinstance(command, Close)]

    def set_slot(self, index: int, slot: str, point: Point) -> bool:
        if index < 0 or index >= len(self.segments):
            logger.debug("Ignoring write to missing segment %s of %s", index, self.path_id)
            return False
        command = self.segments[index]
        if isinstance(command, Close):
            return False
        self.segments[index] = command.with_slot(slot, (float(point[0]), float(point[1])))
        return True

    def label_index(self, label: str) -> int | None:
        for index, candidate in self.point_labels.items():
            if candidate == label:
                return index
        return None

    def segment_length(self, index: int) -> float:
        """Length of the segment that ends at ``index`` (0 for Move/Close)."""

        if index <= 0 or index >= len(self.segments):
            return 0.0
        start = self.anchor(index - 1)
        command = self.segments[index]
        if start is None:
            return 0.0
        if isinstance(command, Line):
            return distance(start, command.anchor)
        if isinstance(command, CubicBezier):
            return cubic_bezier_length(start, command.control1, command.control2, command.anchor)
        return 0.0

    def area(self) -> float:
        return polygon_area(self.anchors())

    def consumption(self) -> float:
        """Fabric consumption in square metres, from the anchor polygon."""

        return self.area() / MM2_PER_M2

    def flatten(self, steps: int = BEZIER_LENGTH_SAMPLES) -> list[Point]:
        """Outline polyline in local coordinates with curves sampled."""

        points: list[Point] = []
        current: Point | None = None
        for command in self.segments:
            if isinstance(command, (Move, Line)):
                points.append(command.anchor)
                current = command.anchor
            elif isinstance(command, CubicBezier):
                start = current if current is not None else command.anchor
                sampled = cubic_bezier_points(start, command.control1, command.control2, command.anchor, steps)
                points.extend((float(x), float(y)) for x, y in sampled[1:])
                current = command.anchor
        return points

    def scene_outline(self, steps: int = BEZIER_LENGTH_SAMPLES) -> list[Point]:
        return [self.placement.to_scene(point) for point in self.flatten(steps)]

    def bounds(self, *, scene: bool = False) -> tuple[float, float, float, float]:
        return bounding_box(self.scene_outline() if scene else self.flatten())

    def copy(self) -> "PathModel":
        """Independent copy sharing the id and base snapshot."""

        return PathModel(
            segments=list(self.segments),
            point_labels=dict(self.point_labels),
            join_points=set(self.join_points),
            notches=list(self.notches),
            grain_line=replace(self.grain_line),
            counterpart_id=self.counterpart_id,
            path_id=self.path_id,
            name=self.name,
            placement=replace(self.placement),
            base_path=self.base_path,
            base_metadata=self.base_metadata,
        )

    def derive(self, segments: Iterable[Command] | None = None, *, name: str | None = None) -> "PathModel":
        """New model with a fresh id whose base snapshot is its own geometry."""

        derived = self.copy()
        derived.segments = list(self.segments if segments is None else segments)
        validate_segments(derived.segments)
        derived.rebase()
        derived.path_id = _new_path_id()
        if name is not None:
            derived.name = name
        return derived

    def _metadata_snapshot(self) -> BaseMetadata:
        return BaseMetadata(
            point_labels=tuple(sorted(self.point_labels.items())),
            join_points=frozenset(self.join_points),
            notches=tuple(self.notches),
        )

    def rebase(self) -> None:
        """Make the current geometry and metadata the grading reference."""

        self.base_path = tuple(self.segments)
        self.base_metadata = self._metadata_snapshot()

    def restore_base(self) -> None:
        """Reset segments and index-keyed metadata to the base snapshot.

        Structural edits shift labels, join points and notches, so they are
        restored together with the segments they index into.
        """

        self.segments = list(self.base_path)
        if self.base_metadata is not None:
            self.point_labels = dict(self.base_metadata.point_labels)
            self.join_points = set(self.base_metadata.join_points)
            self.notches = list(self.base_metadata.notches)


def end_tangent_angle(path: PathModel, index: int) -> float:
    """Direction, in degrees, in which the outline arrives at ``index``."""

    command = path.segments[index] if 0 <= index < len(path.segments) else None
    start = path.anchor(index - 1)
    if command is None or start is None or isinstance(command, (Move, Close)):
        return 0.0
    if isinstance(command, CubicBezier):
        tx = 3.0 * (command.anchor[0] - command.control2[0])
        ty = 3.0 * (command.anchor[1] - command.control2[1])
        if math.hypot(tx, ty) > 1e-12:
            return math.degrees(math.atan2(ty, tx))
    end = command.anchor
    return math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))


__all__ = [
    "BaseMetadata",
    "Close",
    "Command",
    "CubicBezier",
    "GrainLine",
    "Line",
    "MM2_PER_M2",
    "Move",
    "Notch",
    "PathModel",
    "PathStructureError",
    "Placement",
    "command_from_list",
    "command_to_list",
    "end_tangent_angle",
    "validate_segments",
]

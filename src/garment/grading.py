"""Size grading and measurement-driven deformation of pattern pieces."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

from .path_model import Close, Command, CubicBezier, Line, Move, PathModel

logger = logging.getLogger(__name__)

BASE_BUST_MM = 920.0
BASE_LENGTH_MM = 1800.0
WIDTH_LANDMARKS = ("Underarm", "Hem-Side", "Shoulder-Armhole")
LENGTH_LANDMARK = "Hem"


class GradingTableError(ValueError):
    """Raised when a grading table cannot be parsed."""


class Size(str, Enum):
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"

    @classmethod
    def parse(cls, value: "Size | str") -> "Size":
        if isinstance(value, Size):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise GradingTableError(f"Unknown size {value!r}") from exc


BASE_SIZE = Size.M


@dataclass(frozen=True, slots=True)
class Delta:
    dx: float = 0.0
    dy: float = 0.0


@dataclass(frozen=True, slots=True)
class Measurements:
    """Body measurements in millimetres used for parametric deformation."""

    bust: float
    waist: float
    hip: float
    length: float

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Measurements":
        try:
            return cls(
                bust=float(payload["bust"]),
                waist=float(payload.get("waist", 0.0)),
                hip=float(payload.get("hip", 0.0)),
                length=float(payload["length"]),
            )
        except KeyError as exc:
            raise KeyError(f"Measurements require {exc.args[0]!r}") from exc


class GradingTable:
    """Per-label coordinate deltas keyed by size."""

    def __init__(self, rules: Mapping[str, Mapping[Size, Delta]] | None = None) -> None:
        self._rules: dict[str, dict[Size, Delta]] = {
            label: dict(sizes) for label, sizes in (rules or {}).items()
        }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "GradingTable":
        rules: dict[str, dict[Size, Delta]] = {}
        for label, sizes in payload.items():
            if not isinstance(sizes, Mapping):
                raise GradingTableError(f"Grading entry for {label!r} must be a mapping of sizes")
            entry: dict[Size, Delta] = {}
            for size, delta in sizes.items():
                if not isinstance(delta, Mapping):
                    raise GradingTableError(f"Delta for {label!r}/{size!r} must be a mapping")
                entry[Size.parse(size)] = Delta(
                    dx=float(delta.get("dx", 0.0)),
                    dy=float(delta.get("dy", 0.0)),
                )
            rules[str(label)] = entry
        return cls(rules)

    @classmethod
    def load(cls, path: Path | str) -> "GradingTable":
        source = Path(path)
        text = source.read_text(encoding="utf-8")
        if source.suffix.lower() == ".json":
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text)
        if not isinstance(payload, Mapping):
            raise GradingTableError(f"Grading table {source} must decode to a mapping")
        return cls.from_mapping(payload)

    def delta(self, label: str, size: Size) -> Delta | None:
        return self._rules.get(label, {}).get(size)

    def labels(self) -> list[str]:
        return sorted(self._rules)

    def to_mapping(self) -> dict[str, dict[str, dict[str, float]]]:
        return {
            label: {size.value: {"dx": delta.dx, "dy": delta.dy} for size, delta in sizes.items()}
            for label, sizes in self._rules.items()
        }


def _shift(command: Command, dx: float, dy: float) -> Command:
    if isinstance(command, CubicBezier):
        return command.shifted(dx, dy)
    if isinstance(command, (Move, Line)):
        return type(command)((command.anchor[0] + dx, command.anchor[1] + dy))
    return command


def grade(path: PathModel, size: Size | str, table: GradingTable) -> PathModel:
    """Regrade ``path`` in place from its base snapshot.

    Segments and their index-keyed metadata are restored together, so edits
    made since the snapshot are discarded. Cubic segments move both control
    points with the anchor, which keeps the curve shape but is not a true
    arc-preserving regrade.
    """

    target = Size.parse(size)
    path.restore_base()
    segments = list(path.segments)
    if target is not BASE_SIZE:
        for index, label in path.point_labels.items():
            if index >= len(segments):
                logger.debug("Label %r points past the base path of %s", label, path.path_id)
                continue
            delta = table.delta(label, target)
            if delta is None:
                continue
            segments[index] = _shift(segments[index], delta.dx, delta.dy)
    path.segments = segments
    return path


def apply_parametric_measurements(
    path: PathModel,
    measurements: Measurements,
    *,
    base_bust: float = BASE_BUST_MM,
    base_length: float = BASE_LENGTH_MM,
) -> PathModel:
    """Return a new piece deformed from the base snapshot by body measurements.

    A quarter of the bust difference widens the width-bearing landmarks and the
    length difference lowers every hem point.
    """

    bust_delta = (measurements.bust - base_bust) / 4.0
    length_delta = measurements.length - base_length
    base = path.copy()
    base.restore_base()
    segments = list(base.segments)

    for index, command in enumerate(segments):
        if isinstance(command, Close):
            continue
        label = base.point_labels.get(index, "")
        if any(token in label for token in WIDTH_LANDMARKS):
            if isinstance(command, CubicBezier):
                command = CubicBezier(
                    control1=(command.control1[0] + bust_delta, command.control1[1]),
                    control2=(command.control2[0] + bust_delta, command.control2[1]),
                    anchor=(command.anchor[0] + bust_delta, command.anchor[1]),
                )
            else:
                command = _shift(command, bust_delta, 0.0)
        if LENGTH_LANDMARK in label:
            if isinstance(command, CubicBezier):
                command = command.with_slot("anchor", (command.anchor[0], command.anchor[1] + length_delta))
            else:
                command = _shift(command, 0.0, length_delta)
        segments[index] = command

    return base.derive(segments, name=f"{path.name} (parametric)")


__all__ = [
    "BASE_BUST_MM",
    "BASE_LENGTH_MM",
    "BASE_SIZE",
    "Delta",
    "GradingTable",
    "GradingTableError",
    "Measurements",
    "Size",
    "apply_parametric_measurements",
    "grade",
]

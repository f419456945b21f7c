"""Built-in pattern blocks and the default grading table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from .grading import GradingTable
from .path_model import Close, Command, CubicBezier, Line, Move, PathModel
from .seams import link_counterparts

logger = logging.getLogger(__name__)


DEFAULT_GRADING_RULES: dict[str, dict[str, dict[str, float]]] = {
    "Center Neck": {
        "S": {"dx": 0, "dy": 0},
        "L": {"dx": 0, "dy": 0},
        "XL": {"dx": 0, "dy": 0},
    },
    "Neck-Shoulder Join": {
        "S": {"dx": -5, "dy": -5},
        "L": {"dx": 5, "dy": 5},
        "XL": {"dx": 10, "dy": 10},
    },
    "Shoulder-Armhole Join": {
        "S": {"dx": -12.5, "dy": -7.5},
        "L": {"dx": 12.5, "dy": 7.5},
        "XL": {"dx": 25, "dy": 15},
    },
    "Underarm": {
        "S": {"dx": -30, "dy": 25},
        "L": {"dx": 30, "dy": -25},
        "XL": {"dx": 60, "dy": -50},
    },
    "Hem-Side": {
        "S": {"dx": -30, "dy": -50},
        "L": {"dx": 30, "dy": 50},
        "XL": {"dx": 60, "dy": 100},
    },
    "Hem-Center": {
        "S": {"dx": 0, "dy": -50},
        "L": {"dx": 0, "dy": 50},
        "XL": {"dx": 0, "dy": 100},
    },
}


def default_grading_table() -> GradingTable:
    return GradingTable.from_mapping(DEFAULT_GRADING_RULES)


@dataclass(frozen=True, slots=True)
class PresetPoint:
    """One drafted command with optional label and seam-join flag."""

    command: Command
    label: str | None = None
    is_join: bool = False


@dataclass(frozen=True, slots=True)
class Preset:
    name: str
    points: tuple[PresetPoint, ...]
    counterpart: str | None = None

    def build(self) -> PathModel:
        labels = {index: point.label for index, point in enumerate(self.points) if point.label}
        joins = {index for index, point in enumerate(self.points) if point.is_join}
        return PathModel(
            segments=[point.command for point in self.points],
            point_labels=labels,
            join_points=joins,
            name=self.name,
        )


@dataclass(frozen=True, slots=True)
class StyleCategory:
    name: str
    components: Mapping[str, Preset] = field(default_factory=dict)


def _bodice(name: str, counterpart: str, neck: Command, shoulder: Command, underarm: Command) -> Preset:
    return Preset(
        name=name,
        counterpart=counterpart,
        points=(
            PresetPoint(Move((0.0, 0.0)), "Center Neck"),
            PresetPoint(neck, "Neck-Shoulder Join", is_join=True),
            PresetPoint(shoulder, "Shoulder-Armhole Join", is_join=True),
            PresetPoint(underarm, "Underarm"),
            PresetPoint(Line((580.0, 1800.0)), "Hem-Side"),
            PresetPoint(Line((0.0, 1800.0)), "Hem-Center"),
            PresetPoint(Close()),
        ),
    )


STYLE_LIBRARY: dict[str, StyleCategory] = {
    "t_shirt": StyleCategory(
        name="Professional T-Shirt Block",
        components={
            "front": _bodice(
                "Front Bodice",
                "back",
                CubicBezier((100.0, 0.0), (200.0, 100.0), (230.0, 200.0)),
                Line((500.0, 150.0)),
                CubicBezier((500.0, 350.0), (450.0, 750.0), (580.0, 850.0)),
            ),
            "back": _bodice(
                "Back Bodice",
                "front",
                CubicBezier((100.0, 0.0), (200.0, 20.0), (230.0, 50.0)),
                Line((500.0, 30.0)),
                CubicBezier((500.0, 250.0), (450.0, 750.0), (580.0, 850.0)),
            ),
        },
    ),
}


def _block() -> Preset:
    return Preset(
        name="Parametric Block",
        points=(
            PresetPoint(Move((0.0, 0.0)), "Top-Left"),
            PresetPoint(Line((500.0, 0.0)), "Top Seam"),
            PresetPoint(Line((500.0, 250.0)), "Side Seam"),
            PresetPoint(Line((0.0, 250.0)), "Bottom Seam"),
            PresetPoint(Close()),
        ),
    )


GENERATORS: dict[str, Callable[[], Preset]] = {"block": _block}


def available_presets() -> list[str]:
    """Names accepted by :func:`build_preset`."""

    return sorted([*STYLE_LIBRARY, *GENERATORS])


def build_preset(style: str) -> list[PathModel]:
    """Instantiate every component of ``style`` as fresh, linked pieces.

    Components that name each other as counterparts are linked by id so drag
    sync and seam checks work immediately.
    """

    if style in GENERATORS:
        return [GENERATORS[style]().build()]
    category = STYLE_LIBRARY.get(style)
    if category is None:
        raise KeyError(f"Unknown preset {style!r}; expected one of {available_presets()}")

    built = {key: preset.build() for key, preset in category.components.items()}
    for key, preset in category.components.items():
        partner = built.get(preset.counterpart) if preset.counterpart else None
        if partner is None:
            if preset.counterpart:
                logger.debug("Preset %s/%s names missing counterpart %s", style, key, preset.counterpart)
            continue
        if built[key].counterpart_id != partner.path_id:
            link_counterparts(built[key], partner)
    return list(built.values())


def preset_from_mapping(payload: Mapping[str, Any]) -> Preset:
    """Decode a preset drafted in the ``{type, x, y, cp1x, ...}`` point form."""

    raw_points: Sequence[Mapping[str, Any]] = payload.get("path") or []
    points: list[PresetPoint] = []
    for raw in raw_points:
        tag = str(raw.get("type", "")).upper()
        if tag == "M":
            command: Command = Move((float(raw["x"]), float(raw["y"])))
        elif tag == "L":
            command = Line((float(raw["x"]), float(raw["y"])))
        elif tag == "C":
            command = CubicBezier(
                (float(raw["cp1x"]), float(raw["cp1y"])),
                (float(raw["cp2x"]), float(raw["cp2y"])),
                (float(raw["x"]), float(raw["y"])),
            )
        elif tag == "Z":
            command = Close()
        else:
            raise ValueError(f"Unsupported preset point type {tag!r}")
        points.append(PresetPoint(command, raw.get("label"), bool(raw.get("isJoin", False))))
    return Preset(
        name=str(payload.get("name", "piece")),
        points=tuple(points),
        counterpart=payload.get("counterpart"),
    )


__all__ = [
    "DEFAULT_GRADING_RULES",
    "GENERATORS",
    "Preset",
    "PresetPoint",
    "STYLE_LIBRARY",
    "StyleCategory",
    "available_presets",
    "build_preset",
    "default_grading_table",
    "preset_from_mapping",
]

"""Editor configuration loaded from YAML or JSON files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .grading import BASE_BUST_MM, BASE_LENGTH_MM, GradingTable
from .layout import DEFAULT_FABRIC_WIDTH_MM, DEFAULT_MARGIN_MM
from .seams import SeamTolerance
from .snapping import SnapConfig


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key) or {}
    if not isinstance(value, Mapping):
        raise TypeError(f"Configuration section '{key}' must be a mapping, received {type(value)!r}")
    return value


@dataclass(slots=True)
class GradingSettings:
    base_bust: float = BASE_BUST_MM
    base_length: float = BASE_LENGTH_MM
    table_path: Path | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "GradingSettings":
        table = payload.get("table_path")
        return cls(
            base_bust=float(payload.get("base_bust", BASE_BUST_MM)),
            base_length=float(payload.get("base_length", BASE_LENGTH_MM)),
            table_path=Path(table) if table else None,
        )

    def load_table(self) -> GradingTable | None:
        """Grading table from ``table_path``; ``None`` means use the built-in table."""

        if self.table_path is None:
            return None
        return GradingTable.load(self.table_path)


@dataclass(slots=True)
class LayoutSettings:
    fabric_width: float = DEFAULT_FABRIC_WIDTH_MM
    margin: float = DEFAULT_MARGIN_MM

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "LayoutSettings":
        return cls(
            fabric_width=float(payload.get("fabric_width", DEFAULT_FABRIC_WIDTH_MM)),
            margin=float(payload.get("margin", DEFAULT_MARGIN_MM)),
        )


@dataclass(slots=True)
class ExportSettings:
    """Printable page geometry in millimetres (A4 portrait by default)."""

    page_width: float = 210.0
    page_height: float = 297.0
    overlap: float = 20.0
    calibration_size: float = 100.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExportSettings":
        settings = cls(
            page_width=float(payload.get("page_width", 210.0)),
            page_height=float(payload.get("page_height", 297.0)),
            overlap=float(payload.get("overlap", 20.0)),
            calibration_size=float(payload.get("calibration_size", 100.0)),
        )
        if settings.overlap >= min(settings.page_width, settings.page_height):
            raise ValueError("Page overlap must be smaller than the page size")
        return settings


@dataclass(slots=True)
class EditorConfig:
    snap: SnapConfig = field(default_factory=SnapConfig)
    seam: SeamTolerance = field(default_factory=SeamTolerance)
    grading: GradingSettings = field(default_factory=GradingSettings)
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    export: ExportSettings = field(default_factory=ExportSettings)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "EditorConfig":
        return cls(
            snap=SnapConfig.from_mapping(_section(payload, "snap")),
            seam=SeamTolerance.from_mapping(_section(payload, "seam")),
            grading=GradingSettings.from_mapping(_section(payload, "grading")),
            layout=LayoutSettings.from_mapping(_section(payload, "layout")),
            export=ExportSettings.from_mapping(_section(payload, "export")),
        )


def load_config(path: Path | str | None = None) -> EditorConfig:
    """Load an :class:`EditorConfig`; ``None`` returns the defaults."""

    if path is None:
        return EditorConfig()
    source = Path(path)
    suffix = source.suffix.lower()
    if suffix not in {".json", ".yaml", ".yml"}:
        raise ValueError(f"Unsupported configuration format for {source}")
    text = source.read_text(encoding="utf-8")
    payload = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise TypeError(f"Configuration at {source} must decode to a mapping, received {type(payload)!r}")
    return EditorConfig.from_mapping(payload)


__all__ = [
    "EditorConfig",
    "ExportSettings",
    "GradingSettings",
    "LayoutSettings",
    "load_config",
]

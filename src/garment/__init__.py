"""Garment pattern path-editing engine."""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "Close",
    "CubicBezier",
    "EditorConfig",
    "EditorSession",
    "GradingTable",
    "Handle",
    "HandleController",
    "LayoutResult",
    "Line",
    "Measurements",
    "Modifiers",
    "Move",
    "NestItem",
    "PathModel",
    "PathStructureError",
    "SeamLinker",
    "SeamStatus",
    "Size",
    "SnapConfig",
    "SnapResolver",
    "build_preset",
    "load_config",
    "pack",
]

_ATTRIBUTE_MODULES: dict[str, str] = {
    "Close": ".path_model",
    "CubicBezier": ".path_model",
    "Line": ".path_model",
    "Move": ".path_model",
    "PathModel": ".path_model",
    "PathStructureError": ".path_model",
    "EditorConfig": ".config",
    "load_config": ".config",
    "EditorSession": ".session",
    "GradingTable": ".grading",
    "Measurements": ".grading",
    "Size": ".grading",
    "Handle": ".handles",
    "HandleController": ".handles",
    "LayoutResult": ".layout",
    "NestItem": ".layout",
    "pack": ".layout",
    "Modifiers": ".snapping",
    "SnapConfig": ".snapping",
    "SnapResolver": ".snapping",
    "SeamLinker": ".seams",
    "SeamStatus": ".seams",
    "build_preset": ".presets",
}


def __getattr__(name: str):
    try:
        module_name = _ATTRIBUTE_MODULES[name]
    except KeyError as exc:
        raise AttributeError(f"module 'garment' has no attribute {name!r}") from exc

    module = import_module(module_name, __name__)
    value = getattr(module, name)
    globals()[name] = value
    return value

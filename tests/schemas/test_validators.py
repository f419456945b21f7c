"""Tests for pattern payload schema validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from garment.presets import build_preset
from schemas.validators import (
    SchemaValidationError,
    load_schema,
    validate_file,
    validate_path_payload,
    validate_pattern_document,
)


def test_schema_loads() -> None:
    schema = load_schema()
    assert schema["title"] == "Pattern piece"
    assert "segments" in schema["required"]


def test_serialized_presets_validate() -> None:
    for piece in build_preset("t_shirt"):
        validate_path_payload(piece.to_mapping())


def test_minimal_payload_validates() -> None:
    validate_path_payload({"segments": [["M", 0, 0], ["L", 10, 0], ["Z"]]})


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"segments": []},
        {"segments": [["L", 0, 0]]},
        {"segments": [["M", 0, 0], ["Q", 1, 1, 2, 2]]},
        {"segments": [["M", 0, 0], ["C", 1, 1, 2, 2]]},
        {"segments": [["M", 0, 0]], "joinPoints": [-1]},
        {"segments": [["M", 0, 0]], "pointLabels": {"first": "Hem"}},
        {"segments": [["M", 0, 0]], "colour": "red"},
    ],
)
def test_invalid_payloads_are_rejected(payload: dict) -> None:
    with pytest.raises(SchemaValidationError) as excinfo:
        validate_path_payload(payload)
    assert excinfo.value.errors
    assert str(excinfo.value).startswith("Schema validation failed:")


def test_document_validation_checks_each_piece() -> None:
    validate_pattern_document({"paths": []})
    with pytest.raises(SchemaValidationError) as excinfo:
        validate_pattern_document({"paths": [{"segments": [["M", 0, 0]]}, {"segments": "M 0 0"}]})
    assert "[segments]" in str(excinfo.value)
    with pytest.raises(SchemaValidationError):
        validate_pattern_document({"pieces": []})


def test_validate_file_accepts_yaml_and_json(tmp_path: Path) -> None:
    json_path = tmp_path / "piece.json"
    json_path.write_text(json.dumps({"segments": [["M", 0, 0], ["L", 1, 1]]}), encoding="utf-8")
    yaml_path = tmp_path / "doc.yaml"
    yaml_path.write_text("paths:\n  - segments: [[M, 0, 0], [L, 5, 5], [Z]]\n", encoding="utf-8")

    assert validate_file(json_path)["segments"][1] == ["L", 1, 1]
    assert validate_file(yaml_path)["paths"][0]["segments"][2] == ["Z"]

    with pytest.raises(ValueError):
        validate_file(tmp_path / "piece.txt")

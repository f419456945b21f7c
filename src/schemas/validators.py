"""Utilities for validating serialized pattern payloads."""
from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator, ValidationError

PATH_MODEL_SCHEMA_NAME = "path_model.yaml"
PATTERN_DOCUMENT_SCHEMA_NAME = "pattern_document.yaml"

__all__ = [
    "PATH_MODEL_SCHEMA_NAME",
    "PATTERN_DOCUMENT_SCHEMA_NAME",
    "SchemaValidationError",
    "load_schema",
    "load_payload",
    "validate_path_payload",
    "validate_pattern_document",
    "validate_file",
]


class SchemaValidationError(RuntimeError):
    """Raised when an instance fails schema validation."""

    def __init__(self, errors: Iterable[ValidationError]):
        self.errors = tuple(errors)
        message = "Schema validation failed:\n" + "\n".join(_format_error(e) for e in self.errors)
        super().__init__(message)


def _schema_dir() -> Path:
    return Path(__file__).resolve().parent


@lru_cache(maxsize=4)
def load_schema(name: str = PATH_MODEL_SCHEMA_NAME) -> Mapping[str, Any]:
    """Load and cache a schema definition by name."""

    schema_path = _schema_dir() / name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema '{name}' not found at {schema_path}")

    with schema_path.open("r", encoding="utf-8") as handle:
        schema = yaml.safe_load(handle.read())

    if not isinstance(schema, Mapping):
        raise TypeError(f"Schema '{name}' must decode to a mapping, received {type(schema)!r}")

    return schema


def load_payload(path: Path) -> Any:
    """Load a JSON or YAML payload from disk."""

    suffix = path.suffix.lower()
    if suffix not in {".json", ".yaml", ".yml"}:
        raise ValueError(f"Unsupported payload extension '{suffix}' for {path}")
    with path.open("r", encoding="utf-8") as handle:
        if suffix == ".json":
            return json.load(handle)
        return yaml.safe_load(handle.read())


def _errors(instance: Any, schema_name: str) -> list[ValidationError]:
    schema = load_schema(schema_name)
    validator = Draft202012Validator(schema)
    return sorted(validator.iter_errors(instance), key=lambda exc: [str(part) for part in exc.path])


def validate_path_payload(instance: Any, *, schema_name: str = PATH_MODEL_SCHEMA_NAME) -> None:
    """Validate a single serialized pattern piece."""

    errors = _errors(instance, schema_name)
    if errors:
        raise SchemaValidationError(errors)


def validate_pattern_document(instance: Any, *, schema_name: str = PATTERN_DOCUMENT_SCHEMA_NAME) -> None:
    """Validate a ``{"paths": [...]}`` document and every piece inside it."""

    errors = _errors(instance, schema_name)
    if not errors:
        for piece in instance["paths"]:
            errors.extend(_errors(piece, PATH_MODEL_SCHEMA_NAME))
    if errors:
        raise SchemaValidationError(errors)


def validate_file(path: Path) -> Any:
    """Load a payload from *path*, validate it, and return the parsed instance.

    Documents with a top-level ``paths`` list are checked as pattern documents,
    anything else as a single piece.
    """

    instance = load_payload(path)
    if isinstance(instance, Mapping) and "paths" in instance:
        validate_pattern_document(instance)
    else:
        validate_path_payload(instance)
    return instance


def _format_error(error: ValidationError) -> str:
    location = " / ".join(str(component) for component in error.absolute_path)
    prefix = f"[{location}] " if location else ""
    return f"{prefix}{error.message}"

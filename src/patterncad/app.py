"""Batch commands over saved pattern documents."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Sequence

from exporters.marker import export_marker_dxf, export_marker_pdf
from garment.boolean import BooleanOperation
from garment.config import EditorConfig, load_config
from garment.grading import GradingTableError, Measurements, Size
from garment.path_model import PathModel, PathStructureError
from garment.presets import available_presets
from garment.session import EditorSession
from schemas.validators import SchemaValidationError, load_payload, validate_file

__all__ = ["build_cli", "load_document", "write_document"]

logger = logging.getLogger(__name__)

LOAD_ERRORS = (
    FileNotFoundError,
    PathStructureError,
    SchemaValidationError,
    GradingTableError,
    ValueError,
    TypeError,
)


def load_document(path: Path, *, validate: bool = True) -> list[PathModel]:
    """Read pieces from a single-piece or ``{"paths": [...]}`` JSON/YAML file."""

    payload: Any = validate_file(path) if validate else load_payload(path)
    if isinstance(payload, Mapping) and "paths" in payload:
        entries = payload["paths"]
    else:
        entries = [payload]
    if not isinstance(entries, list):
        raise TypeError(f"Pattern document {path} must hold a list of paths")
    return [PathModel.from_mapping(entry) for entry in entries]


def write_document(pieces: Sequence[PathModel], path: Path | None) -> None:
    """Write pieces as a pattern document, or print it when ``path`` is ``None``."""

    text = json.dumps({"paths": [piece.to_mapping() for piece in pieces]}, indent=2)
    if path is None:
        print(text)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {len(pieces)} piece(s) to {path}")


def _session(config: EditorConfig, pieces: Sequence[PathModel]) -> EditorSession:
    session = EditorSession(config)
    for piece in pieces:
        session.add_path(piece)
    return session


def _parse_quantities(values: Sequence[str] | None) -> dict[str, int]:
    quantities: dict[str, int] = {}
    for value in values or []:
        key, sep, count = value.partition("=")
        if not sep or not key:
            raise ValueError(f"Quantities must look like ID=COUNT, received {value!r}")
        quantities[key] = int(count)
    return quantities


def _cmd_preset(args: argparse.Namespace, config: EditorConfig) -> int:
    session = EditorSession(config)
    pieces = session.load_preset(args.style)
    if not pieces:
        print(f"Unknown preset {args.style!r}; choose from {', '.join(available_presets())}", file=sys.stderr)
        return 1
    write_document(pieces, args.output)
    return 0


def _cmd_grade(args: argparse.Namespace, config: EditorConfig) -> int:
    session = _session(config, load_document(args.input))
    size = Size.parse(args.size)
    graded = [session.grade(path_id, size) for path_id in list(session.paths)]
    write_document([piece for piece in graded if piece is not None], args.output)
    return 0


def _cmd_measure(args: argparse.Namespace, config: EditorConfig) -> int:
    session = _session(config, load_document(args.input))
    measurements = Measurements(bust=args.bust, waist=args.waist, hip=args.hip, length=args.length)
    derived = [session.apply_measurements(path_id, measurements) for path_id in list(session.paths)]
    write_document([piece for piece in derived if piece is not None], args.output)
    return 0


def _cmd_allowance(args: argparse.Namespace, config: EditorConfig) -> int:
    pieces = load_document(args.input)
    session = _session(config, pieces)
    allowances = [session.seam_allowance(piece.path_id, args.offset) for piece in pieces]
    write_document([piece for piece in allowances if piece is not None], args.output)
    return 0


def _cmd_seams(args: argparse.Namespace, config: EditorConfig) -> int:
    pieces = load_document(args.input)
    session = _session(config, pieces)
    report = {piece.path_id: [status.to_mapping() for status in session.seam_status(piece.path_id)] for piece in pieces}
    print(json.dumps(report, indent=2))
    failing = any(entry["status"] == "fail" for statuses in report.values() for entry in statuses)
    return 2 if failing and args.strict else 0


def _cmd_area(args: argparse.Namespace, config: EditorConfig) -> int:
    pieces = load_document(args.input)
    for piece in pieces:
        print(f"{piece.name} ({piece.path_id}): {piece.area():.1f} mm^2, {piece.consumption():.4f} m^2")
    total = sum(piece.consumption() for piece in pieces)
    print(f"Total consumption: {total:.4f} m^2")
    return 0


def _cmd_nest(args: argparse.Namespace, config: EditorConfig) -> int:
    session = _session(config, load_document(args.input))
    quantities = _parse_quantities(args.quantity)
    result = session.nest(
        quantities or None,
        fabric_width=args.fabric_width,
        margin=args.margin,
    )
    print(
        f"Placed {len(result.pieces)} piece(s); marker length {result.length:.1f}mm, "
        f"utilization {result.utilization:.1%}"
    )
    if args.output is not None:
        write_document([placed.path for placed in result.pieces], args.output)
    if args.marker_pdf is not None and export_marker_pdf(result, args.marker_pdf) is not None:
        print(f"Wrote marker PDF to {args.marker_pdf}")
    if args.marker_dxf is not None and export_marker_dxf(result, args.marker_dxf) is not None:
        print(f"Wrote marker DXF to {args.marker_dxf}")
    return 0


def _cmd_boolean(args: argparse.Namespace, config: EditorConfig) -> int:
    session = _session(config, load_document(args.input))
    results = session.boolean(args.first, args.second, args.operation)
    if not results:
        print(f"{args.operation} of {args.first} and {args.second} produced no pieces", file=sys.stderr)
        return 1
    write_document(results, args.output)
    return 0


def _cmd_export(args: argparse.Namespace, config: EditorConfig) -> int:
    session = _session(config, load_document(args.input))
    data = session.export_to_pdf(args.output)
    if data is None:
        print("Nothing to export", file=sys.stderr)
        return 1
    print(f"Wrote tiled PDF to {args.output}")
    return 0


def _cmd_validate(args: argparse.Namespace, config: EditorConfig) -> int:
    pieces = load_document(args.input)
    print(f"{args.input}: {len(pieces)} valid piece(s)")
    return 0


def build_cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Garment pattern batch tools")
    parser.add_argument("--config", type=Path, help="YAML or JSON editor configuration")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    preset = subparsers.add_parser("preset", help="Write a built-in pattern block")
    preset.add_argument("style", help=f"One of: {', '.join(available_presets())}")
    preset.add_argument("--output", type=Path, help="Destination document (default: stdout)")
    preset.set_defaults(handler=_cmd_preset)

    grade = subparsers.add_parser("grade", help="Grade every piece to a size")
    grade.add_argument("input", type=Path, help="Pattern document to grade")
    grade.add_argument("--size", required=True, choices=[size.value for size in Size])
    grade.add_argument("--output", type=Path, help="Destination document (default: stdout)")
    grade.set_defaults(handler=_cmd_grade)

    measure = subparsers.add_parser("measure", help="Deform pieces from body measurements (mm)")
    measure.add_argument("input", type=Path)
    measure.add_argument("--bust", type=float, required=True)
    measure.add_argument("--waist", type=float, default=0.0)
    measure.add_argument("--hip", type=float, default=0.0)
    measure.add_argument("--length", type=float, required=True)
    measure.add_argument("--output", type=Path)
    measure.set_defaults(handler=_cmd_measure)

    allowance = subparsers.add_parser("allowance", help="Generate seam allowance outlines")
    allowance.add_argument("input", type=Path)
    allowance.add_argument("--offset", type=float, default=10.0, help="Allowance width in mm")
    allowance.add_argument("--output", type=Path)
    allowance.set_defaults(handler=_cmd_allowance)

    seams = subparsers.add_parser("seams", help="Report seam length matching against counterparts")
    seams.add_argument("input", type=Path)
    seams.add_argument("--strict", action="store_true", help="Exit with status 2 when a seam fails")
    seams.set_defaults(handler=_cmd_seams)

    area = subparsers.add_parser("area", help="Print fabric consumption per piece")
    area.add_argument("input", type=Path)
    area.set_defaults(handler=_cmd_area)

    nest = subparsers.add_parser("nest", help="Row-pack pieces onto a fabric width")
    nest.add_argument("input", type=Path)
    nest.add_argument("--fabric-width", type=float, default=None, help="Fabric width in mm")
    nest.add_argument("--margin", type=float, default=None, help="Spacing between pieces in mm")
    nest.add_argument(
        "--quantity",
        action="append",
        metavar="ID=COUNT",
        help="Number of copies of a piece; repeat for several pieces",
    )
    nest.add_argument("--output", type=Path, help="Write placed pieces to this document")
    nest.add_argument("--marker-pdf", type=Path, help="Write the marker as a single fabric-sized PDF page")
    nest.add_argument("--marker-dxf", type=Path, help="Write the marker as DXF R12 polylines")
    nest.set_defaults(handler=_cmd_nest)

    boolean = subparsers.add_parser("boolean", help="Union, subtract or intersect two pieces")
    boolean.add_argument("input", type=Path)
    boolean.add_argument("--first", required=True, help="Id of the subject piece")
    boolean.add_argument("--second", required=True, help="Id of the clip piece")
    boolean.add_argument("--operation", required=True, choices=[op.value for op in BooleanOperation])
    boolean.add_argument("--output", type=Path)
    boolean.set_defaults(handler=_cmd_boolean)

    export = subparsers.add_parser("export", help="Tile pieces onto printable A4 pages")
    export.add_argument("input", type=Path)
    export.add_argument("--output", type=Path, required=True, help="Destination PDF")
    export.set_defaults(handler=_cmd_export)

    validate = subparsers.add_parser("validate", help="Check a document against the pattern schema")
    validate.add_argument("input", type=Path)
    validate.set_defaults(handler=_cmd_validate)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        return args.handler(args, config)
    except LOAD_ERRORS as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

"""Polygon booleans and offsets on flattened pattern outlines.

Outlines are flattened (curves sampled at ``FLATTEN_STEPS``), scaled onto
Clipper's integer grid and clipped with :mod:`pyclipper`. Results come back
as line-only pieces in scene coordinates with an identity placement.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Sequence

import pyclipper

from .geometry import Point, bounding_box
from .path_model import Close, Line, Move, PathModel

logger = logging.getLogger(__name__)

CLIPPER_SCALE = 1000.0
FLATTEN_STEPS = 10
ARC_TOLERANCE_MM = 0.25
INK_WIDTH_MM = 0.2
REGION_PADDING_MM = 50.0

ClipperPath = list[tuple[int, int]]


class BooleanOperation(str, Enum):
    UNION = "union"
    SUBTRACT = "subtract"
    INTERSECT = "intersect"


_CLIP_TYPES = {
    BooleanOperation.UNION: pyclipper.CT_UNION,
    BooleanOperation.SUBTRACT: pyclipper.CT_DIFFERENCE,
    BooleanOperation.INTERSECT: pyclipper.CT_INTERSECTION,
}


def to_clipper(points: Iterable[Point]) -> ClipperPath:
    return [(int(round(x * CLIPPER_SCALE)), int(round(y * CLIPPER_SCALE))) for x, y in points]


def from_clipper(path: Sequence[Sequence[int]]) -> list[Point]:
    return [(point[0] / CLIPPER_SCALE, point[1] / CLIPPER_SCALE) for point in path]


def _outline(path: PathModel, steps: int) -> ClipperPath:
    return to_clipper(path.scene_outline(steps))


def _as_piece(points: Sequence[Point], name: str) -> PathModel:
    segments = [Move(points[0]), *(Line(point) for point in points[1:]), Close()]
    return PathModel(segments=segments, name=name)


def _pieces(solution: Sequence[Sequence[Sequence[int]]], name: str) -> list[PathModel]:
    pieces: list[PathModel] = []
    for path in solution:
        if len(path) < 3:
            continue
        if not pyclipper.Orientation(path):
            logger.warning("Dropping a hole from %s; pieces hold a single outline", name)
            continue
        pieces.append(_as_piece(from_clipper(path), name))
    return pieces


def perform(
    first: PathModel,
    second: PathModel,
    operation: BooleanOperation | str,
    *,
    steps: int = FLATTEN_STEPS,
) -> list[PathModel]:
    """Combine two pieces with an even-odd union, subtraction or intersection.

    Every outer loop of the result becomes its own piece. Holes cannot be
    represented and are dropped. Empty or degenerate input gives ``[]``.
    """

    op = BooleanOperation(operation)
    subject = _outline(first, steps)
    clip = _outline(second, steps)
    if len(subject) < 3 or len(clip) < 3:
        logger.error("Boolean %s needs two closed outlines (%s, %s)", op.value, first.path_id, second.path_id)
        return []

    clipper = pyclipper.Pyclipper()
    try:
        clipper.AddPath(subject, pyclipper.PT_SUBJECT, True)
        clipper.AddPath(clip, pyclipper.PT_CLIP, True)
    except pyclipper.ClipperException:
        logger.error("Boolean %s received an outline Clipper cannot use", op.value)
        return []
    solution = clipper.Execute(_CLIP_TYPES[op], pyclipper.PFT_EVENODD, pyclipper.PFT_EVENODD)
    return _pieces(solution, f"{first.name} {op.value} {second.name}")


def union(first: PathModel, second: PathModel) -> list[PathModel]:
    return perform(first, second, BooleanOperation.UNION)


def subtract(first: PathModel, second: PathModel) -> list[PathModel]:
    return perform(first, second, BooleanOperation.SUBTRACT)


def intersect(first: PathModel, second: PathModel) -> list[PathModel]:
    return perform(first, second, BooleanOperation.INTERSECT)


def union_all(paths: Iterable[PathModel], *, steps: int = FLATTEN_STEPS) -> list[PathModel]:
    clipper = pyclipper.Pyclipper()
    added = 0
    for path in paths:
        outline = _outline(path, steps)
        if len(outline) < 3:
            continue
        try:
            clipper.AddPath(outline, pyclipper.PT_SUBJECT, True)
        except pyclipper.ClipperException:
            logger.debug("Skipping degenerate outline %s in union", path.path_id)
            continue
        added += 1
    if not added:
        return []
    solution = clipper.Execute(pyclipper.CT_UNION, pyclipper.PFT_EVENODD, pyclipper.PFT_EVENODD)
    return _pieces(solution, "union")


def offset_polygon(
    points: Sequence[Point],
    distance: float,
    *,
    arc_tolerance: float = ARC_TOLERANCE_MM,
) -> list[list[Point]]:
    """Round-joined offset of a closed polygon; positive ``distance`` grows it."""

    if len(points) < 3:
        return []
    offset = pyclipper.PyclipperOffset(2.0, arc_tolerance * CLIPPER_SCALE)
    offset.AddPath(to_clipper(points), pyclipper.JT_ROUND, pyclipper.ET_CLOSEDPOLYGON)
    return [from_clipper(path) for path in offset.Execute(distance * CLIPPER_SCALE) if len(path) >= 3]


def find_closed_region_at(
    paths: Sequence[PathModel],
    point: Point,
    *,
    steps: int = FLATTEN_STEPS,
) -> PathModel | None:
    """Closed cell formed by crossing outlines that contains ``point``.

    The outlines are inked as thin open strokes and subtracted from a padded
    bounding rectangle. The region hit by ``point`` is returned unless it is
    the surrounding background.
    """

    outlines = [path.scene_outline(steps) for path in paths]
    outlines = [outline for outline in outlines if len(outline) >= 2]
    if not outlines:
        return None

    ink = pyclipper.PyclipperOffset()
    for outline in outlines:
        ink.AddPath(to_clipper([*outline, outline[0]]), pyclipper.JT_MITER, pyclipper.ET_OPENSQUARE)
    strokes = ink.Execute(INK_WIDTH_MM * CLIPPER_SCALE)

    min_x, min_y, max_x, max_y = bounding_box([point for outline in outlines for point in outline])
    pad = REGION_PADDING_MM
    frame = to_clipper(
        [(min_x - pad, min_y - pad), (max_x + pad, min_y - pad), (max_x + pad, max_y + pad), (min_x - pad, max_y + pad)]
    )
    clipper = pyclipper.Pyclipper()
    clipper.AddPath(frame, pyclipper.PT_SUBJECT, True)
    if strokes:
        clipper.AddPaths(strokes, pyclipper.PT_CLIP, True)
    regions = clipper.Execute(pyclipper.CT_DIFFERENCE, pyclipper.PFT_NONZERO, pyclipper.PFT_NONZERO)

    target = to_clipper([point])[0]
    frame_width = max_x - min_x + 2 * pad
    frame_height = max_y - min_y + 2 * pad
    for region in regions:
        if not pyclipper.Orientation(region):
            # hole of the background around the inked outlines
            continue
        if pyclipper.PointInPolygon(target, region) == 0:
            continue
        r_min_x, r_min_y, r_max_x, r_max_y = bounding_box(from_clipper(region))
        if r_max_x - r_min_x > frame_width * 0.98 and r_max_y - r_min_y > frame_height * 0.98:
            continue
        return _as_piece(from_clipper(region), "region")
    return None


__all__ = [
    "BooleanOperation",
    "CLIPPER_SCALE",
    "find_closed_region_at",
    "from_clipper",
    "intersect",
    "offset_polygon",
    "perform",
    "subtract",
    "to_clipper",
    "union",
    "union_all",
]

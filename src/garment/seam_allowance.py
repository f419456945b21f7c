"""Seam allowance outlines offset outward from a finished pattern piece."""

from __future__ import annotations

import logging
from typing import Sequence

from .boolean import ARC_TOLERANCE_MM, FLATTEN_STEPS, offset_polygon
from .geometry import Point, signed_area
from .path_model import Close, Line, Move, PathModel

logger = logging.getLogger(__name__)

DEFAULT_ALLOWANCE_MM = 10.0


def offset_outline(
    points: Sequence[Point],
    distance: float,
    *,
    arc_tolerance: float = ARC_TOLERANCE_MM,
) -> list[Point]:
    """Grow a closed polygon by ``distance`` with round corners.

    Winding does not matter. When the offset splits into several loops the
    largest one is kept. Zero-area input gives ``[]``.
    """

    if distance <= 0.0:
        return [(float(x), float(y)) for x, y in points]
    if len(points) < 3 or abs(signed_area(points)) <= 1e-9:
        return []
    loops = offset_polygon(points, distance, arc_tolerance=arc_tolerance)
    if not loops:
        return []
    return max(loops, key=lambda loop: abs(signed_area(loop)))


def seam_allowance(
    path: PathModel,
    offset_mm: float = DEFAULT_ALLOWANCE_MM,
    *,
    steps: int = FLATTEN_STEPS,
) -> PathModel | None:
    """Return a new line-only piece surrounding ``path`` at ``offset_mm``."""

    outline = offset_outline(path.flatten(steps), offset_mm)
    if len(outline) < 3:
        logger.debug("Seam allowance skipped for degenerate outline %s", path.path_id)
        return None
    segments = [Move(outline[0]), *(Line(point) for point in outline[1:]), Close()]
    allowance = path.derive(segments, name=f"{path.name} allowance")
    allowance.point_labels = {}
    allowance.join_points = set()
    allowance.notches = []
    allowance.counterpart_id = None
    allowance.rebase()
    return allowance


__all__ = ["DEFAULT_ALLOWANCE_MM", "offset_outline", "seam_allowance"]

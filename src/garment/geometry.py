"""Planar geometry helpers shared by the pattern editing engine.

All functions are pure and operate on ``(x, y)`` tuples expressed in pattern
millimetres. Degenerate input (zero-length segments, empty polygons) yields
zero-valued results instead of ``nan``/``inf``.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

import numpy as np

logger = logging.getLogger(__name__)

Point = tuple[float, float]

BEZIER_LENGTH_SAMPLES = 20
NEAREST_POINT_SAMPLES = 20
_REFINE_ITERATIONS = 24
_EPSILON = 1e-12


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def angle_of(p1: Point, p2: Point) -> float:
    """Return the direction from ``p1`` to ``p2`` in degrees."""

    return math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))


def snap_to_angle(angle: float, step: float = 45.0) -> float:
    if step <= 0:
        return angle
    return math.floor(angle / step + 0.5) * step


def point_from_angle(anchor: Point, angle: float, length: float) -> Point:
    radians = math.radians(angle)
    return (anchor[0] + math.cos(radians) * length, anchor[1] + math.sin(radians) * length)


def snap_to_grid(value: float, grid_size: float) -> float:
    if grid_size <= 0:
        return value
    return math.floor(value / grid_size + 0.5) * grid_size


def rotate_point(point: Point, angle: float, origin: Point = (0.0, 0.0)) -> Point:
    radians = math.radians(angle)
    cos_a = math.cos(radians)
    sin_a = math.sin(radians)
    dx = point[0] - origin[0]
    dy = point[1] - origin[1]
    return (origin[0] + dx * cos_a - dy * sin_a, origin[1] + dx * sin_a + dy * cos_a)


def bezier_point(t: float, p0: Point, c1: Point, c2: Point, p1: Point) -> Point:
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * c1[0] + c * c2[0] + d * p1[0],
        a * p0[1] + b * c1[1] + c * c2[1] + d * p1[1],
    )


def cubic_bezier_points(
    p0: Point,
    c1: Point,
    c2: Point,
    p1: Point,
    samples: int = BEZIER_LENGTH_SAMPLES,
) -> np.ndarray:
    """Sample ``samples + 1`` evenly spaced parameter values along a cubic."""

    count = max(int(samples), 1)
    t = np.linspace(0.0, 1.0, count + 1)[:, None]
    mt = 1.0 - t
    origin = np.asarray(p0, dtype=float)
    # offsets from p0 keep a collapsed curve exactly on p0
    offsets = np.asarray([c1, c2, p1], dtype=float) - origin
    points = origin + (
        3.0 * (mt**2) * t * offsets[0]
        + 3.0 * mt * (t**2) * offsets[1]
        + (t**3) * offsets[2]
    )
    points[-1] = p1
    return points


def cubic_bezier_length(
    p0: Point,
    c1: Point,
    c2: Point,
    p1: Point,
    samples: int = BEZIER_LENGTH_SAMPLES,
) -> float:
    """Approximate the arc length of a cubic by a ``samples``-segment polyline."""

    points = cubic_bezier_points(p0, c1, c2, p1, samples)
    steps = np.diff(points, axis=0)
    return float(np.hypot(steps[:, 0], steps[:, 1]).sum())


def line_midpoint(p1: Point, p2: Point) -> Point:
    return ((p1[0] + p2[0]) / 2.0, (p1[1] + p2[1]) / 2.0)


def bezier_midpoint(p0: Point, c1: Point, c2: Point, p1: Point) -> Point:
    return bezier_point(0.5, p0, c1, c2, p1)


def split_cubic(
    p0: Point,
    c1: Point,
    c2: Point,
    p1: Point,
    t: float = 0.5,
) -> tuple[tuple[Point, Point, Point, Point], tuple[Point, Point, Point, Point]]:
    """Split a cubic with De Casteljau's construction."""

    def lerp(a: Point, b: Point) -> Point:
        return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)

    p01 = lerp(p0, c1)
    p12 = lerp(c1, c2)
    p23 = lerp(c2, p1)
    p012 = lerp(p01, p12)
    p123 = lerp(p12, p23)
    middle = lerp(p012, p123)
    return (p0, p01, p012, middle), (middle, p123, p23, p1)


def nearest_point_on_line(point: Point, start: Point, end: Point) -> Point:
    vx = end[0] - start[0]
    vy = end[1] - start[1]
    length_sq = vx * vx + vy * vy
    if length_sq <= _EPSILON:
        return start
    t = ((point[0] - start[0]) * vx + (point[1] - start[1]) * vy) / length_sq
    t = max(0.0, min(1.0, t))
    return (start[0] + vx * t, start[1] + vy * t)


def nearest_point_on_cubic_bezier(
    point: Point,
    p0: Point,
    c1: Point,
    c2: Point,
    p1: Point,
    samples: int = NEAREST_POINT_SAMPLES,
) -> tuple[Point, float]:
    """Return the closest curve point and its distance to ``point``.

    A coarse scan over ``samples`` parameter values brackets the minimum, which
    is then refined with a ternary search inside the neighbouring interval.
    """

    count = max(int(samples), 1)
    sampled = cubic_bezier_points(p0, c1, c2, p1, count)
    offsets = sampled - np.asarray(point, dtype=float)
    distances = np.hypot(offsets[:, 0], offsets[:, 1])
    best = int(np.argmin(distances))

    low = max(best - 1, 0) / count
    high = min(best + 1, count) / count

    def gap(t: float) -> float:
        return distance(point, bezier_point(t, p0, c1, c2, p1))

    for _ in range(_REFINE_ITERATIONS):
        third = (high - low) / 3.0
        left = low + third
        right = high - third
        if gap(left) <= gap(right):
            high = right
        else:
            low = left
    refined_t = (low + high) / 2.0
    refined = bezier_point(refined_t, p0, c1, c2, p1)
    refined_distance = distance(point, refined)

    coarse = (float(sampled[best][0]), float(sampled[best][1]))
    coarse_distance = float(distances[best])
    if coarse_distance < refined_distance:
        return coarse, coarse_distance
    return refined, refined_distance


def polygon_area(points: Sequence[Point]) -> float:
    """Absolute shoelace area of the polygon through ``points``."""

    if len(points) < 3:
        return 0.0
    area = 0.0
    for (x0, y0), (x1, y1) in zip(points, list(points[1:]) + [points[0]]):
        area += x0 * y1 - x1 * y0
    return abs(area) / 2.0


def signed_area(points: Sequence[Point]) -> float:
    if len(points) < 3:
        return 0.0
    area = 0.0
    for (x0, y0), (x1, y1) in zip(points, list(points[1:]) + [points[0]]):
        area += x0 * y1 - x1 * y0
    return area / 2.0


def line_normal(p1: Point, p2: Point) -> Point:
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    length = math.hypot(dx, dy)
    if length <= _EPSILON:
        return (0.0, -1.0)
    return (-dy / length, dx / length)


def bounding_box(points: Iterable[Point]) -> tuple[float, float, float, float]:
    xs: list[float] = []
    ys: list[float] = []
    for x, y in points:
        xs.append(float(x))
        ys.append(float(y))
    if not xs:
        return 0.0, 0.0, 0.0, 0.0
    return min(xs), min(ys), max(xs), max(ys)


def verify_scale(p1: Point, p2: Point, expected_mm: float, *, tolerance: float = 0.001) -> bool:
    """Check that the distance between two points equals ``expected_mm`` units."""

    measured = distance(p1, p2)
    accurate = abs(measured - expected_mm) < tolerance
    if not accurate:
        logger.error("Scale error: expected %smm, got %.4f units", expected_mm, measured)
    return accurate


__all__ = [
    "BEZIER_LENGTH_SAMPLES",
    "Point",
    "angle_of",
    "bezier_midpoint",
    "bezier_point",
    "bounding_box",
    "cubic_bezier_length",
    "cubic_bezier_points",
    "distance",
    "line_midpoint",
    "line_normal",
    "nearest_point_on_cubic_bezier",
    "nearest_point_on_line",
    "point_from_angle",
    "polygon_area",
    "rotate_point",
    "signed_area",
    "snap_to_angle",
    "snap_to_grid",
    "split_cubic",
    "verify_scale",
]

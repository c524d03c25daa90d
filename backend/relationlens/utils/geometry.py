"""Leaf-node geometry helpers for normalized canvas space. No engine imports.

All coordinates are fractions of the canvas: (0, 0) is the top-left corner,
(1, 1) the bottom-right. Angles follow screen convention: 0° points east,
90° points south.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

Point = tuple[float, float]
Box = tuple[float, float, float, float]  # (left, top, right, bottom)

CANVAS_CENTER: Point = (0.5, 0.5)


def box_center(b: Box) -> Point:
    return ((b[0] + b[2]) / 2, (b[1] + b[3]) / 2)


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def bearing(start: Point, end: Point) -> float:
    """Angle from start to end in degrees, normalized to [0, 360)."""
    deg = math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))
    return deg % 360.0


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in degrees (0-180)."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


def signed_turn(a: float, b: float) -> float:
    """Signed turn from heading a to heading b, in (-180, 180]."""
    turn = (b - a) % 360.0
    if turn > 180.0:
        turn -= 360.0
    return turn


def boxes_overlap_area(a: Box, b: Box) -> float:
    """Intersection area of two boxes (0 when they only touch)."""
    x_overlap = max(0.0, min(a[2], b[2]) - max(a[0], b[0]))
    y_overlap = max(0.0, min(a[3], b[3]) - max(a[1], b[1]))
    return x_overlap * y_overlap


def box_gap(a: Box, b: Box) -> float:
    """Euclidean gap between two boxes; 0 when they touch or overlap."""
    dx = max(0.0, max(a[0], b[0]) - min(a[2], b[2]))
    dy = max(0.0, max(a[1], b[1]) - min(a[3], b[3]))
    return math.hypot(dx, dy)


def edge_distances(b: Box) -> dict[str, float]:
    """Distance from each side of a box to the matching canvas edge.

    Negative values mean the box extends past that edge.
    """
    return {
        "top": b[1],
        "right": 1.0 - b[2],
        "bottom": 1.0 - b[3],
        "left": b[0],
    }


def size_ratio(area_a: float, area_b: float) -> float:
    """Larger / smaller area. Infinite when one side is degenerate."""
    small = min(area_a, area_b)
    if small <= 1e-12:
        return float("inf")
    return max(area_a, area_b) / small


def union_box(boxes: list[Box]) -> Box:
    arr = np.asarray(boxes, dtype=np.float64)
    return (
        float(arr[:, 0].min()),
        float(arr[:, 1].min()),
        float(arr[:, 2].max()),
        float(arr[:, 3].max()),
    )


def line_fit_residuals(points: NDArray[np.float64]) -> tuple[float, NDArray[np.float64]]:
    """Fit a total-least-squares line through points.

    Returns (direction in degrees [0, 180), perpendicular residuals).
    """
    center = points.mean(axis=0)
    centered = points - center
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    direction = vt[0]
    normal = np.array([-direction[1], direction[0]])
    residuals = np.abs(centered @ normal)
    angle = math.degrees(math.atan2(direction[1], direction[0])) % 180.0
    return angle, residuals


def axis_offset(angle: float) -> float:
    """Degrees between a heading and the nearest horizontal/vertical axis."""
    return min(angle % 90.0, 90.0 - angle % 90.0)

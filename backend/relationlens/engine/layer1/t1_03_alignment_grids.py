"""T1.03: Alignment Grids.

Invisible lines that organize elements:
- horizontal lines: shared top / center / bottom y
- vertical lines: shared left / center / right x
- diagonal lines: three or more centers on one off-axis line

A line needs two members; an axis needs two lines to count as a grid.
"""

from __future__ import annotations

import itertools
import math

import numpy as np

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import AlignmentGrid, AlignmentLine
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import axis_offset, line_fit_residuals

_REFERENCES = ("start", "center", "end")


def _edge_value(e: NormalizedElement, axis: str, reference: str) -> float:
    b = e.bounds
    if axis == "horizontal":
        lo, hi = b.top, b.bottom
    else:
        lo, hi = b.left, b.right
    if reference == "start":
        return lo
    if reference == "end":
        return hi
    return (lo + hi) / 2


def alignment_confidence(lines: list[AlignmentLine]) -> float:
    avg_strength = sum(line.strength for line in lines) / len(lines)
    return 0.7 * avg_strength + 0.3 * min(1.0, len(lines) / 3)


def find_lines(
    elements: list[NormalizedElement], axis: str, tolerance: float
) -> list[AlignmentLine]:
    """Group edge values that agree within tolerance into lines of 2+ members."""
    n = len(elements)
    lines: list[AlignmentLine] = []
    for reference in _REFERENCES:
        values = sorted(
            ((_edge_value(e, axis, reference), e.id) for e in elements),
            key=lambda item: item[0],
        )
        cluster: list[tuple[float, str]] = []
        for value, element_id in values + [(math.inf, "")]:
            if cluster and value - cluster[0][0] <= tolerance:
                cluster.append((value, element_id))
                continue
            if len(cluster) >= 2:
                lines.append(
                    AlignmentLine(
                        position=float(np.mean([v for v, _ in cluster])),
                        reference=reference,
                        strength=len(cluster) / n,
                        element_ids=tuple(eid for _, eid in cluster),
                    )
                )
            cluster = [(value, element_id)]
    return lines


def find_diagonal_lines(
    elements: list[NormalizedElement], tolerance: float, min_axis_offset: float
) -> list[AlignmentLine]:
    """Maximal sets of 3+ centers lying on one off-axis straight line."""
    n = len(elements)
    centers = np.array([e.center for e in elements], dtype=np.float64)
    seen: set[frozenset[int]] = set()
    lines: list[AlignmentLine] = []

    for i, j in itertools.combinations(range(n), 2):
        direction = centers[j] - centers[i]
        length = float(np.hypot(direction[0], direction[1]))
        if length <= tolerance:
            continue
        normal = np.array([-direction[1], direction[0]]) / length
        offsets = np.abs((centers - centers[i]) @ normal)
        members = frozenset(int(k) for k in np.nonzero(offsets <= tolerance)[0])
        if len(members) < 3 or members in seen:
            continue
        seen.add(members)

        idx = sorted(members)
        angle, residuals = line_fit_residuals(centers[idx])
        if float(residuals.max()) > tolerance or axis_offset(angle) <= min_axis_offset:
            continue

        # Signed distance of the fitted line from the origin
        rad = math.radians(angle)
        mean = centers[idx].mean(axis=0)
        rho = float(-math.sin(rad) * mean[0] + math.cos(rad) * mean[1])
        lines.append(
            AlignmentLine(
                position=rho,
                reference="line",
                strength=len(idx) / n,
                element_ids=tuple(elements[k].id for k in idx),
            )
        )

    # Drop lines whose members are a subset of a longer line
    member_sets = [set(line.element_ids) for line in lines]
    return [
        line
        for k, line in enumerate(lines)
        if not any(k != m and member_sets[k] < member_sets[m] for m in range(len(lines)))
    ]


def detect_alignment_grids(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> list[AlignmentGrid]:
    if len(elements) < 2:
        return []

    grids: list[AlignmentGrid] = []
    for axis in ("horizontal", "vertical"):
        lines = find_lines(elements, axis, config.alignment_tolerance)
        if len(lines) < 2:
            continue
        confidence = alignment_confidence(lines)
        if confidence >= config.confidence_threshold:
            grids.append(AlignmentGrid(axis=axis, alignment_lines=tuple(lines), confidence=confidence))

    if len(elements) >= 3:
        diagonal = find_diagonal_lines(
            elements, config.alignment_tolerance, config.flow_angle_threshold
        )
        if diagonal:
            confidence = alignment_confidence(diagonal)
            if confidence >= config.confidence_threshold:
                grids.append(
                    AlignmentGrid(axis="diagonal", alignment_lines=tuple(diagonal), confidence=confidence)
                )

    return grids


@transform(
    id="T1.03",
    layer=Layer.SPATIAL,
    description="Shared edge / center lines and diagonal alignments",
)
def alignment_grids(ctx: AnalysisContext) -> None:
    ctx.spatial.extend(detect_alignment_grids(ctx.elements, ctx.config))

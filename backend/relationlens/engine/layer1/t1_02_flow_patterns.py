"""T1.02: Flow Patterns.

Directional movement through the composition.

Straight flows: pairwise center vectors are grouped by heading; a group of
two or more vectors orders its elements along the group direction.
Straight, axis-parallel sequences are ``linear``, off-axis ones ``diagonal``.

Curved flows: elements ordered by bearing around their centroid that keep
turning the same way. Constant radius is ``circular``; a steadily growing
or shrinking radius is ``spiral``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import FlowPattern, FlowVector
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import (
    angle_difference,
    axis_offset,
    bearing,
    distance,
    signed_turn,
)
from relationlens.utils.math_helpers import (
    circular_mean,
    circular_std,
    coefficient_of_variation,
    is_monotonic,
)

logger = logging.getLogger(__name__)


@dataclass
class _VectorGroup:
    vectors: list[FlowVector] = field(default_factory=list)
    # (from_index, to_index) per vector
    pairs: list[tuple[int, int]] = field(default_factory=list)
    direction: float = 0.0

    def add(self, vector: FlowVector, pair: tuple[int, int]) -> None:
        self.vectors.append(vector)
        self.pairs.append(pair)
        self.direction = circular_mean([v.direction for v in self.vectors])


def make_vector(start: tuple[float, float], end: tuple[float, float]) -> FlowVector:
    return FlowVector(
        direction=bearing(start, end),
        magnitude=min(1.0, distance(start, end) * 2),
        start=start,
        end=end,
    )


def straight_flow_confidence(vectors: list[FlowVector]) -> float:
    avg_magnitude = sum(v.magnitude for v in vectors) / len(vectors)
    return 0.6 * min(1.0, len(vectors) / 3) + 0.4 * min(1.0, avg_magnitude * 1.5)


def group_vectors(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> list[_VectorGroup]:
    """Greedy heading grouping of all pairwise center vectors."""
    groups: list[_VectorGroup] = []
    for i in range(len(elements)):
        for j in range(i + 1, len(elements)):
            start, end = elements[i].center, elements[j].center
            if distance(start, end) < config.minimum_flow_distance:
                continue
            vector = make_vector(start, end)
            for group in groups:
                if angle_difference(vector.direction, group.direction) <= config.flow_angle_threshold:
                    group.add(vector, (i, j))
                    break
            else:
                group = _VectorGroup()
                group.add(vector, (i, j))
                groups.append(group)
    return groups


def _straight_flow(
    group: _VectorGroup,
    elements: list[NormalizedElement],
    config: AnalysisConfig,
) -> FlowPattern | None:
    indices = sorted({idx for pair in group.pairs for idx in pair})
    rad = math.radians(group.direction)
    axis = np.array([math.cos(rad), math.sin(rad)])
    indices.sort(key=lambda idx: float(np.dot(elements[idx].center, axis)))

    steps = [
        make_vector(elements[a].center, elements[b].center)
        for a, b in zip(indices, indices[1:])
    ]
    if circular_std([s.direction for s in steps]) >= config.flow_angle_threshold:
        return None

    mean_direction = circular_mean([s.direction for s in steps])
    flow_type = "linear" if axis_offset(mean_direction) <= config.flow_angle_threshold else "diagonal"

    return FlowPattern(
        flow_type=flow_type,
        vectors=tuple(steps),
        involved_elements=tuple(elements[idx].id for idx in indices),
        confidence=straight_flow_confidence(group.vectors),
    )


def detect_curved_flow(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> FlowPattern | None:
    """Circular / spiral arrangement of all elements around their centroid."""
    if len(elements) < config.curved_flow_min_elements:
        return None

    centers = np.array([e.center for e in elements], dtype=np.float64)
    centroid = tuple(centers.mean(axis=0))
    angles = [bearing(centroid, tuple(c)) for c in centers]
    order = sorted(range(len(elements)), key=lambda i: angles[i])
    # Start right after the widest angular gap so arcs crossing 0° stay contiguous
    gaps = [
        (angles[order[(k + 1) % len(order)]] - angles[order[k]]) % 360.0
        for k in range(len(order))
    ]
    start = (int(np.argmax(gaps)) + 1) % len(order)
    order = order[start:] + order[:start]

    steps = [
        make_vector(elements[a].center, elements[b].center)
        for a, b in zip(order, order[1:])
    ]
    if any(s.magnitude <= 0 for s in steps):
        return None

    turns = [signed_turn(a.direction, b.direction) for a, b in zip(steps, steps[1:])]
    if not turns or any(abs(t) >= 90.0 for t in turns):
        return None
    if not (all(t > 0 for t in turns) or all(t < 0 for t in turns)):
        return None

    radii = [distance(centroid, elements[i].center) for i in order]
    radius_cv = coefficient_of_variation(radii)
    if radius_cv < config.circular_radius_cv:
        flow_type = "circular"
    elif is_monotonic(radii):
        flow_type = "spiral"
    else:
        return None

    step_lengths = [distance(s.start, s.end) for s in steps]
    regularity = max(0.0, 1.0 - coefficient_of_variation(step_lengths))
    # Every accepted turn shares one sign
    confidence = 0.6 * 1.0 + 0.4 * regularity

    return FlowPattern(
        flow_type=flow_type,
        vectors=tuple(steps),
        involved_elements=tuple(elements[i].id for i in order),
        confidence=confidence,
    )


def detect_flow_patterns(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> list[FlowPattern]:
    if len(elements) < 3:
        return []

    patterns: list[FlowPattern] = []
    for group in group_vectors(elements, config):
        if len(group.vectors) < 2:
            continue
        pattern = _straight_flow(group, elements, config)
        if pattern is not None and pattern.confidence >= config.confidence_threshold:
            patterns.append(pattern)

    curved = detect_curved_flow(elements, config)
    if curved is not None and curved.confidence >= config.confidence_threshold:
        patterns.append(curved)

    logger.debug("Flow: %d patterns from %d elements", len(patterns), len(elements))
    return patterns


@transform(
    id="T1.02",
    layer=Layer.SPATIAL,
    description="Straight and curved directional flows between elements",
)
def flow_patterns(ctx: AnalysisContext) -> None:
    ctx.spatial.extend(detect_flow_patterns(ctx.elements, ctx.config))

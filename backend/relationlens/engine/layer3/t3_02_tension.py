"""T3.02: Tension Points.

Two sources of visual tension:
1. Element pairs closer than the detection radius.
2. Elements crowding a canvas edge.

Candidates are ranked by intensity; overlapping areas collapse onto the
strongest one and only the top few survive.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import cKDTree

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import TensionArea, TensionPoints
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import distance, edge_distances, size_ratio

_MIN_PAIR_INTENSITY = 0.3
_MIN_EDGE_INTENSITY = 0.4
_EDGE_STRESS_DISTANCE = 0.02
# Areas closer than this fraction of their combined radius are the same spot
_OVERLAP_FACTOR = 0.7


def classify_pair(a: NormalizedElement, b: NormalizedElement, ratio: float) -> str:
    if ratio > 3:
        return "conflict"
    if a.area > 0.1 and b.area > 0.1 and ratio < 1.5:
        return "stress"
    for cx, cy in (a.center, b.center):
        if abs(cx - 0.5) < 0.2 and abs(cy - 0.5) < 0.2:
            return "focus"
    return "energy"


def pair_intensity(dist: float, ratio: float) -> float:
    return 0.6 * max(0.0, 1.0 - dist * 3) + 0.4 * min(1.0, ratio / 3)


def pair_tensions(elements: list[NormalizedElement], config: AnalysisConfig) -> list[TensionArea]:
    areas: list[TensionArea] = []
    if len(elements) < 2:
        return areas
    tree = cKDTree(np.array([e.center for e in elements], dtype=np.float64))
    for i, j in sorted(tree.query_pairs(config.tension_detection_radius)):
        a, b = elements[i], elements[j]
        dist = distance(a.center, b.center)
        if dist >= config.tension_detection_radius:
            continue
        ratio = size_ratio(a.area, b.area)
        intensity = pair_intensity(dist, ratio)
        if intensity <= _MIN_PAIR_INTENSITY:
            continue
        (ax, ay), (bx, by) = a.center, b.center
        areas.append(
            TensionArea(
                center=((ax + bx) / 2, (ay + by) / 2),
                radius=dist / 2,
                tension_type=classify_pair(a, b, ratio),
                involved_elements=(a.id, b.id),
                intensity=intensity,
            )
        )
    return areas


def edge_tensions(elements: list[NormalizedElement], config: AnalysisConfig) -> list[TensionArea]:
    threshold = config.edge_proximity_threshold
    areas: list[TensionArea] = []
    for e in elements:
        for edge, dist in edge_distances(e.box).items():
            if dist >= threshold:
                continue
            intensity = min(1.0, max(0.0, 1.0 - dist / threshold))
            if intensity <= _MIN_EDGE_INTENSITY:
                continue
            areas.append(
                TensionArea(
                    center=e.center,
                    radius=threshold,
                    tension_type="stress" if dist < _EDGE_STRESS_DISTANCE else "energy",
                    involved_elements=(e.id,),
                    intensity=intensity,
                )
            )
    return areas


def deduplicate_tension_areas(areas: list[TensionArea]) -> list[TensionArea]:
    """Keep the strongest of any areas that sit on top of each other."""
    kept: list[TensionArea] = []
    for area in sorted(areas, key=lambda a: a.intensity, reverse=True):
        if all(
            distance(area.center, other.center) >= _OVERLAP_FACTOR * (area.radius + other.radius)
            for other in kept
        ):
            kept.append(area)
    return kept


def detect_tension(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> TensionPoints | None:
    if len(elements) < 3:
        return None

    candidates = pair_tensions(elements, config) + edge_tensions(elements, config)
    areas = deduplicate_tension_areas(candidates)
    if not areas:
        return None

    # Scored over every distinct area, before the cap
    avg_intensity = sum(a.intensity for a in areas) / len(areas)
    confidence = 0.7 * avg_intensity + 0.3 * min(1.0, len(areas) / 3)
    if confidence < config.confidence_threshold:
        return None
    return TensionPoints(areas=tuple(areas[: config.max_tension_points]), confidence=confidence)


@transform(
    id="T3.02",
    layer=Layer.COMPOSITIONAL,
    description="Close element pairs and edge crowding that create visual tension",
)
def tension(ctx: AnalysisContext) -> None:
    result = detect_tension(ctx.elements, ctx.config)
    if result is not None:
        ctx.compositional.append(result)

"""T2.04: Scale Relationships.

Elements are sorted largest first and split into tiers of similar area.
Tiers with two or more members become scale groups; each group's ratio is
its linear size relative to the next smaller tier.
"""

from __future__ import annotations

import math

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import ScaleGroup, ScaleRelationship
from relationlens.tree.elements import NormalizedElement

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2
_FIBONACCI_RATIOS = (1.5, 5 / 3, 2.0)


def classify_ratio(ratio: float) -> str:
    if abs(ratio - GOLDEN_RATIO) < 0.05:
        return "golden"
    if any(abs(ratio - r) < 0.05 for r in _FIBONACCI_RATIOS):
        return "fibonacci"
    if ratio > 2 and abs(ratio - round(ratio)) < 0.1:
        return "modular"
    return "proportional"


def area_tiers(elements: list[NormalizedElement], similarity: float) -> list[list[NormalizedElement]]:
    tiers: list[list[NormalizedElement]] = []
    for e in sorted(elements, key=lambda el: el.area, reverse=True):
        if tiers:
            lead = tiers[-1][0].area
            if lead > 0 and (lead - e.area) / lead <= similarity:
                tiers[-1].append(e)
                continue
            if lead <= 0 and e.area <= 0:
                tiers[-1].append(e)
                continue
        tiers.append([e])
    return tiers


def detect_scale(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> ScaleRelationship | None:
    if len(elements) < 3:
        return None

    tiers = area_tiers(elements, config.scale_similarity_threshold)
    mean_areas = [sum(e.area for e in tier) / len(tier) for tier in tiers]

    groups: list[ScaleGroup] = []
    for k, tier in enumerate(tiers):
        if len(tier) < 2:
            continue
        ratio = 1.0
        if k + 1 < len(tiers) and mean_areas[k + 1] > 0:
            ratio = math.sqrt(mean_areas[k] / mean_areas[k + 1])
        groups.append(
            ScaleGroup(
                element_ids=tuple(e.id for e in tier),
                scale_ratio=ratio,
                scale_type=classify_ratio(ratio),
            )
        )

    if not groups:
        return None

    coverage = sum(len(g.element_ids) for g in groups) / len(elements)
    confidence = 0.6 * coverage + 0.4 * min(1.0, len(groups) / 3)
    if confidence < config.confidence_threshold:
        return None
    return ScaleRelationship(groups=tuple(groups), confidence=confidence)


@transform(
    id="T2.04",
    layer=Layer.VISUAL,
    description="Tiers of similarly sized elements and their size ratios",
)
def scale(ctx: AnalysisContext) -> None:
    result = detect_scale(ctx.elements, ctx.config)
    if result is not None:
        ctx.visual.append(result)

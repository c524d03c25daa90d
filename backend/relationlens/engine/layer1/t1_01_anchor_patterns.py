"""T1.01: Anchor Patterns.

An anchor is an element that others are consistently positioned around:
several elements sit at a moderate distance from it, roughly in the same
direction. Each candidate anchor is scored independently; the strongest
few patterns are kept.
"""

from __future__ import annotations

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import AnchoredElement, AnchorPattern
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import angle_difference, bearing, distance

# Two elements lie "in the same direction" from the anchor within this cone
_CONSISTENCY_CONE = 45.0


def anchor_strength(anchor_area: float, consistency: float, dist: float) -> float:
    return 0.4 * anchor_area + 0.4 * consistency + 0.2 * max(0.0, 1.0 - 2.0 * dist)


def anchor_confidence(anchor_area: float, strengths: list[float]) -> float:
    count_score = min(1.0, len(strengths) / 4)
    avg_strength = sum(strengths) / len(strengths)
    size_score = min(1.0, anchor_area * 3)
    return 0.4 * count_score + 0.4 * avg_strength + 0.2 * size_score


def _pattern_for(
    anchor: NormalizedElement,
    others: list[NormalizedElement],
    config: AnalysisConfig,
) -> AnchorPattern | None:
    origin = anchor.center
    bearings = [bearing(origin, e.center) for e in others]

    anchored: list[AnchoredElement] = []
    for i, element in enumerate(others):
        dist = distance(origin, element.center)
        if not (config.anchor_min_distance < dist < config.anchor_max_distance):
            continue

        rest = [b for j, b in enumerate(bearings) if j != i]
        consistent = sum(1 for b in rest if angle_difference(b, bearings[i]) <= _CONSISTENCY_CONE)
        consistency = consistent / len(rest) if rest else 0.0

        strength = anchor_strength(anchor.area, consistency, dist)
        if strength > config.anchor_detection_threshold:
            cx, cy = element.center
            anchored.append(
                AnchoredElement(
                    element_id=element.id,
                    relative_position=(cx - origin[0], cy - origin[1]),
                    anchor_strength=strength,
                )
            )

    if len(anchored) < 2:
        return None

    confidence = anchor_confidence(anchor.area, [a.anchor_strength for a in anchored])
    return AnchorPattern(
        anchor_element_id=anchor.id,
        anchored_elements=tuple(anchored),
        confidence=confidence,
    )


def detect_anchor_patterns(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> list[AnchorPattern]:
    if len(elements) < 3:
        return []

    patterns: list[AnchorPattern] = []
    for idx, anchor in enumerate(elements):
        others = elements[:idx] + elements[idx + 1 :]
        pattern = _pattern_for(anchor, others, config)
        if pattern is not None and pattern.confidence >= config.confidence_threshold:
            patterns.append(pattern)

    patterns.sort(key=lambda p: p.confidence, reverse=True)
    return patterns[: config.max_anchor_patterns]


@transform(
    id="T1.01",
    layer=Layer.SPATIAL,
    description="Anchor elements that others are positioned around",
)
def anchor_patterns(ctx: AnalysisContext) -> None:
    ctx.spatial.extend(detect_anchor_patterns(ctx.elements, ctx.config))

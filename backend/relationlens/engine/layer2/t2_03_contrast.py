"""T2.03: Contrast Relationships.

Only adjacent pairs (box gap within adjacency distance) are compared.
Each pair reports its strongest contrast among size, color (lightness)
and font weight.
"""

from __future__ import annotations

import itertools

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import ContrastPair, ContrastRelationship
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import box_gap, size_ratio

_MIN_PAIR_STRENGTH = 0.3
_MIN_LIGHTNESS_DIFF = 0.4
_MIN_WEIGHT_DIFF = 300

_NAMED_WEIGHTS = {
    "thin": 100,
    "extralight": 200,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "extrabold": 800,
    "black": 900,
}


def font_weight_value(weight: str | None) -> int | None:
    """CSS-style weight ("700", "bold", "Semi Bold") -> number."""
    if weight is None:
        return None
    text = weight.strip().lower().replace(" ", "").replace("-", "")
    if text.isdigit():
        return int(text)
    return _NAMED_WEIGHTS.get(text)


def pair_contrasts(a: NormalizedElement, b: NormalizedElement, config: AnalysisConfig) -> dict[str, float]:
    """All contrast kinds present between two elements, with strengths."""
    found: dict[str, float] = {}

    ratio = size_ratio(a.area, b.area)
    if ratio >= config.contrast_threshold:
        found["size"] = min(1.0, (ratio - 1.0) / 4)

    if a.lightness is not None and b.lightness is not None:
        diff = abs(a.lightness - b.lightness)
        if diff >= _MIN_LIGHTNESS_DIFF:
            found["color"] = min(1.0, diff)

    wa, wb = font_weight_value(a.font_weight), font_weight_value(b.font_weight)
    if wa is not None and wb is not None and abs(wa - wb) >= _MIN_WEIGHT_DIFF:
        found["weight"] = min(1.0, abs(wa - wb) / 600)

    return found


def detect_contrast(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> ContrastRelationship | None:
    if len(elements) < 2:
        return None

    pairs: list[ContrastPair] = []
    for a, b in itertools.combinations(elements, 2):
        if box_gap(a.box, b.box) > config.adjacency_distance:
            continue
        found = pair_contrasts(a, b, config)
        if not found:
            continue
        kind = max(found, key=found.get)
        if found[kind] >= _MIN_PAIR_STRENGTH:
            pairs.append(ContrastPair(element_a=a.id, element_b=b.id, contrast_type=kind, strength=found[kind]))

    if not pairs:
        return None

    avg_strength = sum(p.strength for p in pairs) / len(pairs)
    confidence = 0.7 * avg_strength + 0.3 * min(1.0, len(pairs) / 3)
    if confidence < config.confidence_threshold:
        return None
    return ContrastRelationship(pairs=tuple(pairs), confidence=confidence)


@transform(
    id="T2.03",
    layer=Layer.VISUAL,
    description="Size, color and weight contrast between adjacent elements",
)
def contrast(ctx: AnalysisContext) -> None:
    result = detect_contrast(ctx.elements, ctx.config)
    if result is not None:
        ctx.visual.append(result)

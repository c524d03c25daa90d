"""T3.01: Compositional Balance.

Elements act as weights (area, heavier away from the canvas center) around
their common center of mass. Classification:
- center of mass near the canvas center: symmetrical when quadrant weights
  are even, radial otherwise
- off-center: dynamic when one quadrant dominates (> 60%), asymmetrical otherwise
"""

from __future__ import annotations

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import BalanceAnalysis, BalanceContribution
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import CANVAS_CENTER, Point, distance
from relationlens.utils.math_helpers import clamp, normalized_entropy

_EVEN_SPREAD = 0.3
_DOMINANT_QUADRANT = 0.6
_SIGNIFICANT_CONTRIBUTION = 0.1


def balance_weight(e: NormalizedElement) -> float:
    return e.area * (1.0 + 0.5 * distance(e.center, CANVAS_CENTER))


def quadrant_weights(
    elements: list[NormalizedElement], weights: list[float], pivot: Point
) -> list[float]:
    """[top-left, top-right, bottom-left, bottom-right]; left/top are inclusive."""
    quadrants = [0.0, 0.0, 0.0, 0.0]
    for e, w in zip(elements, weights):
        cx, cy = e.center
        col = 0 if cx <= pivot[0] else 1
        row = 0 if cy <= pivot[1] else 2
        quadrants[row + col] += w
    return quadrants


def classify_balance(center_of_mass: Point, quadrants: list[float], threshold: float) -> str:
    total = sum(quadrants)
    if distance(center_of_mass, CANVAS_CENTER) < threshold:
        mean = total / len(quadrants)
        spread = sum(abs(q - mean) for q in quadrants) / len(quadrants)
        return "symmetrical" if spread / mean < _EVEN_SPREAD else "radial"
    if total > 0 and max(quadrants) / total > _DOMINANT_QUADRANT:
        return "dynamic"
    return "asymmetrical"


def balance_contribution(weight: float, center: Point, pivot: Point) -> float:
    lever_x = center[0] - pivot[0]
    lever = distance(center, pivot)
    direction = 1.0 if lever_x >= 0 else -1.0
    return clamp(min(1.0, weight * lever * direction * 2), -1.0, 1.0)


def detect_balance(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> BalanceAnalysis | None:
    if len(elements) < 2:
        return None

    weights = [balance_weight(e) for e in elements]
    total = sum(weights)
    if total <= 0:
        return None

    com = (
        sum(e.center[0] * w for e, w in zip(elements, weights)) / total,
        sum(e.center[1] * w for e, w in zip(elements, weights)) / total,
    )
    quadrants = quadrant_weights(elements, weights, com)
    balance_type = classify_balance(com, quadrants, config.balance_threshold)

    contributions = tuple(
        BalanceContribution(element_id=e.id, contribution=balance_contribution(w, e.center, com))
        for e, w in zip(elements, weights)
    )

    significant = sum(1 for c in contributions if abs(c.contribution) > _SIGNIFICANT_CONTRIBUTION)
    confidence = 0.6 * (significant / len(elements)) + 0.4 * normalized_entropy(quadrants)
    if confidence < config.confidence_threshold:
        return None

    return BalanceAnalysis(
        balance_type=balance_type,
        balance_point=com,
        contributions=contributions,
        confidence=confidence,
    )


@transform(
    id="T3.01",
    layer=Layer.COMPOSITIONAL,
    description="Center of mass, quadrant weights and balance type",
)
def balance(ctx: AnalysisContext) -> None:
    result = detect_balance(ctx.elements, ctx.config)
    if result is not None:
        ctx.compositional.append(result)

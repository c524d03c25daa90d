"""T2.02: Visual Weight Distribution.

weight = area * (1 + 0.5 * distance from canvas center)
         + 0.2 * lightness contrast + 0.2 * saturation   (when a fill is known)
         + 0.2 * min(0.3, font_size / 100)              (text only)

Weights are normalized by the heaviest element.
"""

from __future__ import annotations

import numpy as np

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import ElementWeight, VisualWeightDistribution
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import CANVAS_CENTER, Point, distance
from relationlens.utils.math_helpers import mean_abs_deviation


def raw_weight(e: NormalizedElement) -> float:
    weight = e.area * (1.0 + 0.5 * distance(e.center, CANVAS_CENTER))
    if e.lightness is not None:
        weight += 0.2 * abs(e.lightness - 0.5) * 2
    if e.saturation is not None:
        weight += 0.2 * e.saturation
    if e.is_text:
        weight += 0.2 * min(0.3, e.font_size / 100)
    return weight


def weight_factors(e: NormalizedElement, mean_area: float) -> tuple[str, ...]:
    factors = []
    if e.area > 1.2 * mean_area:
        factors.append("size")
    if e.lightness is not None and abs(e.lightness - 0.5) * 2 > 0.5:
        factors.append("contrast")
    if e.saturation is not None and e.saturation > 0.5:
        factors.append("color")
    cx, cy = e.center
    if abs(cx - 0.5) < 0.2 and abs(cy - 0.5) < 0.2:
        factors.append("position")
    return tuple(factors)


def weighted_center(elements: list[NormalizedElement], weights: list[float]) -> Point:
    total = sum(weights)
    if total <= 0:
        return CANVAS_CENTER
    centers = np.array([e.center for e in elements], dtype=np.float64)
    point = (centers * np.asarray(weights)[:, None]).sum(axis=0) / total
    return (float(point[0]), float(point[1]))


def detect_visual_weight(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> VisualWeightDistribution | None:
    if len(elements) < 2:
        return None

    raw = [raw_weight(e) for e in elements]
    heaviest = max(raw)
    if heaviest <= 0:
        return None
    weights = [w / heaviest for w in raw]

    mean_area = sum(e.area for e in elements) / len(elements)
    weight_map = tuple(
        ElementWeight(element_id=e.id, weight=w, factors=weight_factors(e, mean_area))
        for e, w in zip(elements, weights)
    )
    bx, by = weighted_center(elements, weights)

    variation = min(1.0, mean_abs_deviation(weights) * 3)
    off_center = min(1.0, (abs(bx - 0.5) + abs(by - 0.5)) * 2)
    confidence = 0.7 * variation + 0.3 * off_center
    if confidence < config.confidence_threshold:
        return None

    return VisualWeightDistribution(weight_map=weight_map, balance_point=(bx, by), confidence=confidence)


@transform(
    id="T2.02",
    layer=Layer.VISUAL,
    description="Per-element visual weight and overall balance point",
)
def visual_weight(ctx: AnalysisContext) -> None:
    result = detect_visual_weight(ctx.elements, ctx.config)
    if result is not None:
        ctx.visual.append(result)

"""T2.01: Layering Hierarchy.

Construction:
1. Sort by z-index (draw order).
2. Each element sits one level in front of the deepest earlier element it
   overlaps (positive intersection area); non-overlapping elements stay at 0.
3. Group elements by depth, back to front.
"""

from __future__ import annotations

from shapely import STRtree
from shapely.geometry import box

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import LayerGroup, LayeringHierarchy
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import boxes_overlap_area


def layer_depths(elements: list[NormalizedElement]) -> dict[int, int]:
    """Element index -> stacking depth."""
    order = sorted(range(len(elements)), key=lambda i: elements[i].z_index)
    tree = STRtree([box(*e.box) for e in elements])

    depth: dict[int, int] = {}
    for i in order:
        current = elements[i]
        d = 0
        for j in tree.query(box(*current.box)):
            j = int(j)
            if j == i or j not in depth:
                continue  # self, or drawn later
            if boxes_overlap_area(current.box, elements[j].box) > 0:
                d = max(d, depth[j] + 1)
        depth[i] = d
    return depth


def layer_balance(sizes: list[int]) -> float:
    """1 - mean relative deviation from an even split."""
    expected = sum(sizes) / len(sizes)
    deviation = sum(abs(s - expected) / expected for s in sizes) / len(sizes)
    return max(0.0, 1.0 - deviation)


def detect_layering(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> LayeringHierarchy | None:
    if len(elements) < 2:
        return None

    depth = layer_depths(elements)
    by_depth: dict[int, list[str]] = {}
    for i in sorted(depth, key=lambda idx: elements[idx].z_index):
        by_depth.setdefault(depth[i], []).append(elements[i].id)

    if len(by_depth) < 2:
        return None

    layers = tuple(LayerGroup(depth=d, element_ids=tuple(by_depth[d])) for d in sorted(by_depth))
    sizes = [len(layer.element_ids) for layer in layers]
    confidence = 0.6 * min(1.0, len(layers) / 4) + 0.4 * layer_balance(sizes)
    if confidence < config.confidence_threshold:
        return None
    return LayeringHierarchy(layers=layers, confidence=confidence)


@transform(
    id="T2.01",
    layer=Layer.VISUAL,
    description="Depth hierarchy from draw order and overlap",
)
def layering(ctx: AnalysisContext) -> None:
    result = detect_layering(ctx.elements, ctx.config)
    if result is not None:
        ctx.visual.append(result)

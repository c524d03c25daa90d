"""T3.04: Edge Relationships.

How elements interact with the canvas boundary: bleeding off it, pressed
against it, spanning along it, or sitting just inside it.
"""

from __future__ import annotations

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.registry import Layer, transform
from relationlens.engine.relationships import EdgeInteraction, EdgeRelationships
from relationlens.tree.elements import NormalizedElement
from relationlens.utils.geometry import edge_distances

_TENSION_DISTANCE = 0.02
_ANCHOR_SPAN = 0.5


def _spans_edge(e: NormalizedElement, edge: str) -> bool:
    extent = e.width if edge in ("top", "bottom") else e.height
    return extent >= _ANCHOR_SPAN


def classify_interaction(e: NormalizedElement, near: dict[str, float]) -> str:
    closest = min(near.values())
    if closest <= 0:
        return "bleed"
    if closest < _TENSION_DISTANCE:
        return "tension"
    if any(_spans_edge(e, edge) for edge in near):
        return "anchor"
    return "bounce"


def detect_edge_relationships(
    elements: list[NormalizedElement], config: AnalysisConfig
) -> EdgeRelationships | None:
    threshold = config.edge_proximity_threshold
    interactions: list[EdgeInteraction] = []
    closeness: list[float] = []

    for e in elements:
        near = {edge: d for edge, d in edge_distances(e.box).items() if d < threshold}
        if not near:
            continue
        closest = min(near.values())
        interactions.append(
            EdgeInteraction(
                element_id=e.id,
                edges=tuple(near),
                interaction_type=classify_interaction(e, near),
                distance=closest,
            )
        )
        closeness.append(min(1.0, max(0.0, 1.0 - closest / threshold)))

    if not interactions:
        return None

    confidence = 0.7 * (sum(closeness) / len(closeness)) + 0.3 * min(1.0, len(interactions) / 3)
    if confidence < config.confidence_threshold:
        return None
    return EdgeRelationships(interactions=tuple(interactions), confidence=confidence)


@transform(
    id="T3.04",
    layer=Layer.COMPOSITIONAL,
    description="Element interaction with the canvas edges",
)
def edge_relationships(ctx: AnalysisContext) -> None:
    result = detect_edge_relationships(ctx.elements, ctx.config)
    if result is not None:
        ctx.compositional.append(result)

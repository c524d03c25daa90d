"""Relationship analysis -> prioritized constraint set.

One constraint per detected relationship. Priority comes only from
confidence; anything below the ``low`` threshold is dropped.
"""

from __future__ import annotations

import logging
import math
import time

from relationlens.constraints.rules import HEAVY_WEIGHT, describe, preservation_rule
from relationlens.constraints.types import (
    PRIORITY_WEIGHTS,
    AdaptationGuidance,
    ConstraintGroup,
    GeometricDescriptor,
    RelationshipConstraint,
    RelationshipConstraints,
    RelativePosition,
    ScaleEntry,
)
from relationlens.engine.config import GenerationConfig, PriorityThresholds
from relationlens.engine.relationships import RelationshipAnalysis
from relationlens.errors import ConstraintGenerationError
from relationlens.utils.math_helpers import circular_mean

logger = logging.getLogger(__name__)

_SIGNIFICANT_CONTRIBUTION = 0.2

_SUBTYPES = {
    "anchor": "anchor-pattern",
    "flow": "flow-pattern",
    "alignment": "alignment-grid",
    "proximity": "proximity-cluster",
    "layering": "layering-hierarchy",
    "weight": "visual-weight",
    "contrast": "contrast-pairs",
    "scale": "scale-hierarchy",
    "balance": "balance-analysis",
    "tension": "tension-points",
    "breathing": "breathing-room",
    "edge": "edge-relationships",
}

_FALLBACK_STRATEGY = {"preserve": "graceful", "adapt": "simplified", "simplify": "skip"}


def determine_priority(confidence: float, thresholds: PriorityThresholds) -> str:
    if confidence >= thresholds.critical:
        return "critical"
    if confidence >= thresholds.high:
        return "high"
    if confidence >= thresholds.medium:
        return "medium"
    return "low"


def _unique(ids) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))


def _base_id(rel) -> str:
    kind = rel.type
    if kind == "anchor":
        return f"anchor-{rel.anchor_element_id}"
    if kind == "flow":
        return f"flow-{rel.flow_type}"
    if kind == "alignment":
        return f"alignment-{rel.axis}"
    if kind == "proximity":
        return f"proximity-{rel.cluster_id}"
    if kind == "balance":
        return f"balance-{rel.balance_type}"
    return _SUBTYPES[kind]


def _involved(rel) -> tuple[str, ...]:
    kind = rel.type
    if kind == "anchor":
        return _unique([rel.anchor_element_id, *(a.element_id for a in rel.anchored_elements)])
    if kind == "flow":
        return tuple(rel.involved_elements)
    if kind == "alignment":
        return _unique(eid for line in rel.alignment_lines for eid in line.element_ids)
    if kind == "proximity":
        return tuple(rel.element_ids)
    if kind == "layering":
        return _unique(eid for layer in rel.layers for eid in layer.element_ids)
    if kind == "weight":
        return tuple(w.element_id for w in rel.weight_map if w.weight > HEAVY_WEIGHT)
    if kind == "contrast":
        return _unique(eid for p in rel.pairs for eid in (p.element_a, p.element_b))
    if kind == "scale":
        return _unique(eid for g in rel.groups for eid in g.element_ids)
    if kind == "balance":
        return tuple(
            c.element_id for c in rel.contributions if abs(c.contribution) > _SIGNIFICANT_CONTRIBUTION
        )
    if kind == "tension":
        return _unique(eid for a in rel.areas for eid in a.involved_elements)
    if kind == "breathing":
        return _unique(eid for r in rel.regions for eid in r.adjacent_elements)
    if kind == "edge":
        return tuple(i.element_id for i in rel.interactions)
    raise ValueError(f"Unknown relationship type: {kind}")


def _geometry(rel) -> GeometricDescriptor | None:
    kind = rel.type
    if kind == "anchor":
        return GeometricDescriptor(
            relative_positions=tuple(
                RelativePosition(element_id=a.element_id, position=a.relative_position)
                for a in rel.anchored_elements
            )
        )
    if kind == "flow":
        # Closed and spiralling paths have no single heading
        if rel.flow_type in ("circular", "spiral") or not rel.vectors:
            return GeometricDescriptor()
        direction = circular_mean([v.direction for v in rel.vectors])
        return GeometricDescriptor(flow_direction=direction)
    if kind == "alignment":
        return GeometricDescriptor(alignment_axis=rel.axis, alignment_lines=rel.alignment_lines)
    if kind == "proximity":
        b = rel.cluster_bounds
        return GeometricDescriptor(balance_point=((b.left + b.right) / 2, (b.top + b.bottom) / 2))
    if kind == "scale":
        return GeometricDescriptor(
            scale_ratios=tuple(
                ScaleEntry(element_id=eid, scale=g.scale_ratio) for g in rel.groups for eid in g.element_ids
            )
        )
    if kind in ("weight", "balance"):
        return GeometricDescriptor(balance_point=rel.balance_point)
    return None


def _is_malformed(rel) -> str | None:
    """Reason a relationship can't become a constraint, or None."""
    confidence = getattr(rel, "confidence", None)
    if confidence is None or math.isnan(confidence) or confidence < 0:
        return f"invalid confidence {confidence!r}"
    kind = getattr(rel, "type", None)
    if kind not in _SUBTYPES:
        return f"unknown type {kind!r}"
    if kind == "anchor" and not rel.anchor_element_id:
        return "empty anchor id"
    if kind in ("anchor", "flow", "alignment", "proximity") and not _involved(rel):
        return "no involved elements"
    return None


class _IdAllocator:
    def __init__(self) -> None:
        self._seen: dict[str, int] = {}

    def allocate(self, base: str) -> str:
        count = self._seen.get(base, 0) + 1
        self._seen[base] = count
        return base if count == 1 else f"{base}-{count}"


def _family_constraints(
    family: str,
    relationships,
    config: GenerationConfig,
    ids: _IdAllocator,
) -> list[RelationshipConstraint]:
    constraints: list[RelationshipConstraint] = []
    for rel in list(relationships)[: config.max_constraints_per_type]:
        reason = _is_malformed(rel)
        if reason is not None:
            logger.debug("Skipping %s relationship: %s", family, reason)
            continue
        constraints.append(
            RelationshipConstraint(
                id=ids.allocate(_base_id(rel)),
                type=family,
                subtype=_SUBTYPES[rel.type],
                priority=determine_priority(rel.confidence, config.priority_thresholds),
                involved_elements=_involved(rel),
                confidence=rel.confidence,
                description=describe(rel),
                preservation_rule=preservation_rule(rel, config),
                geometric=_geometry(rel),
            )
        )
    return constraints


def prioritize(
    constraints: list[RelationshipConstraint], thresholds: PriorityThresholds
) -> list[RelationshipConstraint]:
    """Drop sub-threshold constraints; order by priority then confidence, both descending."""
    kept = [c for c in constraints if c.confidence >= thresholds.low]
    return sorted(kept, key=lambda c: (PRIORITY_WEIGHTS[c.priority], c.confidence), reverse=True)


def group_constraints(constraints: list[RelationshipConstraint]) -> tuple[ConstraintGroup, ...]:
    groups = []
    for family in ("spatial", "visual", "compositional"):
        ids = tuple(c.id for c in constraints if c.type == family)
        if ids:
            groups.append(
                ConstraintGroup(group_id=f"{family}-relationships", group_type="dependent", constraint_ids=ids)
            )
    return tuple(groups)


def adaptation_guidance(
    constraints: list[RelationshipConstraint], config: GenerationConfig
) -> AdaptationGuidance:
    critical = sum(1 for c in constraints if c.priority == "critical")
    high = sum(1 for c in constraints if c.priority == "high")
    if critical:
        primary = "preserve"
    elif high:
        primary = "adapt"
    else:
        primary = "simplify"
    return AdaptationGuidance(
        primary_strategy=primary,
        fallback_strategy=_FALLBACK_STRATEGY.get(config.adaptation_mode, "skip"),
        critical_constraint_count=critical,
    )


def build_constraints(
    analysis: RelationshipAnalysis, config: GenerationConfig | None = None
) -> RelationshipConstraints:
    """Generate constraints, raising ConstraintGenerationError on internal failure."""
    config = config or GenerationConfig()
    start = time.perf_counter()
    try:
        ids = _IdAllocator()
        constraints = (
            _family_constraints("spatial", analysis.spatial, config, ids)
            + _family_constraints("visual", analysis.visual, config, ids)
            + _family_constraints("compositional", analysis.compositional, config, ids)
        )
        ordered = prioritize(constraints, config.priority_thresholds)
        result = RelationshipConstraints(
            source_frame_id=analysis.frame_id,
            constraints=tuple(ordered),
            constraint_groups=group_constraints(ordered),
            adaptation_guidance=adaptation_guidance(ordered, config),
        )
    except Exception as e:
        raise ConstraintGenerationError(f"Constraint generation failed: {e}") from e

    logger.debug(
        "Generated %d constraints (%d critical) for %s in %.1fms",
        len(result.constraints),
        result.adaptation_guidance.critical_constraint_count,
        analysis.frame_id,
        (time.perf_counter() - start) * 1000,
    )
    return result


def empty_constraints(frame_id: str) -> RelationshipConstraints:
    """The 'treat this design as unconstrained' result."""
    return RelationshipConstraints(
        source_frame_id=frame_id,
        adaptation_guidance=AdaptationGuidance(
            primary_strategy="simplify", fallback_strategy="skip", critical_constraint_count=0
        ),
    )


def generate_constraints(
    analysis: RelationshipAnalysis, config: GenerationConfig | None = None
) -> RelationshipConstraints:
    """Generate constraints; internal failures yield the empty simplify/skip set."""
    try:
        return build_constraints(analysis, config)
    except ConstraintGenerationError as e:
        logger.warning("%s; falling back to an unconstrained result", e)
        return empty_constraints(getattr(analysis, "frame_id", ""))


def drop_below(
    constraints: RelationshipConstraints, threshold: float, config: GenerationConfig | None = None
) -> RelationshipConstraints:
    """Remove constraints under ``threshold``; groups and guidance follow the survivors."""
    config = config or GenerationConfig()
    kept = [c for c in constraints.constraints if c.confidence >= threshold]
    if len(kept) == len(constraints.constraints):
        return constraints
    return RelationshipConstraints(
        source_frame_id=constraints.source_frame_id,
        constraints=tuple(kept),
        constraint_groups=group_constraints(kept),
        adaptation_guidance=adaptation_guidance(kept, config),
    )

"""Human-readable descriptions and preservation rules for each constraint kind.

The rule text is handed verbatim to a downstream layout planner, so its
register follows the adaptation mode: PRESERVE is directive, ADAPT is
permissive, SIMPLIFY keeps only a reference point.
"""

from __future__ import annotations

from relationlens.engine.config import GenerationConfig
from relationlens.engine.relationships import (
    AlignmentGrid,
    AnchorPattern,
    BalanceAnalysis,
    BreathingRoomPattern,
    ContrastRelationship,
    EdgeRelationships,
    FlowPattern,
    LayeringHierarchy,
    ProximityCluster,
    ScaleRelationship,
    TensionPoints,
    VisualWeightDistribution,
)
from relationlens.utils.math_helpers import circular_mean

HEAVY_WEIGHT = 0.6
HIGH_INTENSITY = 0.7
IMPORTANT_SPACE = 0.5


def _orientation(config: GenerationConfig) -> str:
    w, h = config.target_aspect_ratio
    if h > w:
        return "vertical"
    if w > h:
        return "horizontal"
    return "square"


def _layout(config: GenerationConfig) -> str:
    return f"{_orientation(config)} format"


def flow_direction_phrase(pattern: FlowPattern) -> str:
    if not pattern.vectors:
        return ""
    if pattern.flow_type == "circular":
        return "in a circular motion"
    if pattern.flow_type == "spiral":
        return "in a spiral pattern"
    heading = circular_mean([v.direction for v in pattern.vectors])
    if heading > 315 or heading <= 45:
        return "from left to right"
    if heading <= 135:
        return "from top to bottom"
    if heading <= 225:
        return "from right to left"
    return "from bottom to top"


# --- Descriptions ------------------------------------------------------------


def describe(relationship) -> str:
    kind = relationship.type
    if kind == "anchor":
        return f"Maintain anchor relationship with {relationship.anchor_element_id} as compositional foundation"
    if kind == "flow":
        return (
            f"Preserve {relationship.flow_type} flow pattern across "
            f"{len(relationship.involved_elements)} elements"
        )
    if kind == "alignment":
        return (
            f"Maintain {relationship.axis} alignment grid with "
            f"{len(relationship.alignment_lines)} alignment lines"
        )
    if kind == "proximity":
        return f"Keep {len(relationship.element_ids)} elements grouped as a proximity cluster"
    if kind == "layering":
        return f"Preserve {len(relationship.layers)}-layer depth hierarchy"
    if kind == "weight":
        bx, by = relationship.balance_point
        return f"Preserve visual weight distribution with balance point at ({bx:.2f}, {by:.2f})"
    if kind == "contrast":
        return f"Preserve {len(relationship.pairs)} contrast pairs between adjacent elements"
    if kind == "scale":
        return f"Preserve {len(relationship.groups)} scale tiers and their size ratios"
    if kind == "balance":
        return f"Preserve {relationship.balance_type} compositional balance"
    if kind == "tension":
        return f"Preserve {len(relationship.areas)} areas of visual tension and energy"
    if kind == "breathing":
        important = sum(1 for r in relationship.regions if r.importance > IMPORTANT_SPACE)
        return f"Preserve {important} important negative space regions"
    if kind == "edge":
        return f"Preserve how {len(relationship.interactions)} elements meet the canvas edges"
    raise ValueError(f"Unknown relationship type: {kind}")


# --- Preservation rules ------------------------------------------------------


def _anchor_rule(p: AnchorPattern, mode: str, config: GenerationConfig) -> str:
    name = f'element "{p.anchor_element_id}"'
    count = len(p.anchored_elements)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {name} as the compositional anchor with {count} elements positioned "
            f"relative to it. Maintain relative positioning angles while adapting for "
            f"{config.target_format} aspect ratio."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust relative positions of {count} anchored elements around {name} to work in "
            f"{_layout(config)} while maintaining the anchor relationship."
        )
    return f"SIMPLIFY: Keep {name} as main reference point for {count} related elements."


def _flow_rule(p: FlowPattern, mode: str, config: GenerationConfig) -> str:
    direction = flow_direction_phrase(p)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep the {p.flow_type} flow {direction}. Keep the visual movement pattern intact "
            f"while adapting element positions for {_layout(config)}."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust the {p.flow_type} visual flow for {_orientation(config)} layout while "
            f"maintaining the sense of movement {direction}."
        )
    return f"SIMPLIFY: Keep elements flowing in a {p.flow_type} pattern as reference point for {_layout(config)}."


def _alignment_rule(g: AlignmentGrid, mode: str, config: GenerationConfig) -> str:
    lines = len(g.alignment_lines)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {g.axis} alignment grid with {lines} alignment lines. Keep elements "
            f"aligned along their structural axes while adapting for {_layout(config)}."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust the {g.axis} alignment structure for {config.target_format} while "
            f"maintaining the most important alignments."
        )
    return f"SIMPLIFY: Keep key {g.axis} alignments as reference point between related elements."


def _proximity_rule(c: ProximityCluster, mode: str, config: GenerationConfig) -> str:
    members = ", ".join(c.element_ids)
    if mode == "preserve":
        return f"PRESERVE: Keep {members} grouped together with their current spacing in {_layout(config)}."
    if mode == "adapt":
        return f"ADAPT: Adjust spacing inside the group ({members}) while maintaining it as one visual unit."
    return f"SIMPLIFY: Keep the group ({members}) as reference point and place its members near each other."


def _layering_rule(h: LayeringHierarchy, mode: str, config: GenerationConfig) -> str:
    count = len(h.layers)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {count}-layer depth hierarchy. Ensure foreground elements stay in front "
            f"and background elements stay behind during repositioning."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust positions for {_layout(config)} while maintaining depth relationships "
            f"between key foreground and background elements."
        )
    return "SIMPLIFY: Keep the frontmost layer as reference point for depth order."


def _weight_rule(d: VisualWeightDistribution, mode: str, config: GenerationConfig) -> str:
    heavy = sum(1 for w in d.weight_map if w.weight > HEAVY_WEIGHT)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep visual weight distribution. Keep {heavy} high-weight elements balanced "
            f"while adapting positions for {_layout(config)}."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust layout for {_layout(config)} while maintaining the prominence of the "
            f"{heavy} heaviest elements."
        )
    return "SIMPLIFY: Keep the heaviest element as reference point for visual emphasis."


def _contrast_rule(c: ContrastRelationship, mode: str, config: GenerationConfig) -> str:
    count = len(c.pairs)
    if mode == "preserve":
        return f"PRESERVE: Keep {count} contrasting pairs adjacent so their contrast stays visible in {_layout(config)}."
    if mode == "adapt":
        return f"ADAPT: Adjust placement of {count} contrasting pairs while maintaining them near each other."
    return "SIMPLIFY: Keep the strongest contrast pair as reference point."


def _scale_rule(s: ScaleRelationship, mode: str, config: GenerationConfig) -> str:
    count = len(s.groups)
    if mode == "preserve":
        return f"PRESERVE: Keep {count} scale tiers and their size ratios when resizing for {config.target_format}."
    if mode == "adapt":
        return f"ADAPT: Adjust sizes for {_layout(config)} while maintaining the order of {count} scale tiers."
    return "SIMPLIFY: Keep the largest tier as reference point for relative sizing."


def _balance_rule(b: BalanceAnalysis, mode: str, config: GenerationConfig) -> str:
    kind = b.balance_type
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {kind} balance. Keep compositional weight distribution balanced while "
            f"adapting for {config.target_format} format."
        )
    if mode == "adapt":
        return (
            f"ADAPT: Adjust for {_orientation(config)} layout while maintaining the sense of {kind} "
            f"balance and visual stability."
        )
    return f"SIMPLIFY: Keep the balance point as reference point so the design feels stable in {_layout(config)}."


def _tension_rule(t: TensionPoints, mode: str, config: GenerationConfig) -> str:
    strong = sum(1 for a in t.areas if a.intensity > HIGH_INTENSITY)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {strong} high-intensity tension areas. Keep visual energy and conflict "
            f"relationships while adapting positions."
        )
    if mode == "adapt":
        return f"ADAPT: Adjust for {_layout(config)} while maintaining key areas of visual interest and energy."
    return "SIMPLIFY: Keep the strongest tension area as reference point."


def _breathing_rule(b: BreathingRoomPattern, mode: str, config: GenerationConfig) -> str:
    count = len(b.regions)
    if mode == "preserve":
        return (
            f"PRESERVE: Keep {count} negative space regions. Keep breathing room and visual "
            f"separation while adapting layout for {_layout(config)}."
        )
    if mode == "adapt":
        return f"ADAPT: Adjust for {_layout(config)} while maintaining important negative space for visual comfort."
    return "SIMPLIFY: Keep the largest empty region as reference point for spacing."


def _edge_rule(e: EdgeRelationships, mode: str, config: GenerationConfig) -> str:
    count = len(e.interactions)
    if mode == "preserve":
        return f"PRESERVE: Keep {count} elements bleeding, touching or hugging the same canvas edges in {_layout(config)}."
    if mode == "adapt":
        return f"ADAPT: Adjust edge spacing for {_layout(config)} while maintaining which elements meet the canvas edges."
    return "SIMPLIFY: Keep edge-bound elements as reference point near the canvas boundary."


_RULES = {
    "anchor": _anchor_rule,
    "flow": _flow_rule,
    "alignment": _alignment_rule,
    "proximity": _proximity_rule,
    "layering": _layering_rule,
    "weight": _weight_rule,
    "contrast": _contrast_rule,
    "scale": _scale_rule,
    "balance": _balance_rule,
    "tension": _tension_rule,
    "breathing": _breathing_rule,
    "edge": _edge_rule,
}


def preservation_rule(relationship, config: GenerationConfig) -> str:
    """Rule text for one relationship under ``config.adaptation_mode``."""
    rule = _RULES.get(relationship.type)
    if rule is None:
        raise ValueError(f"Unknown relationship type: {relationship.type}")
    return rule(relationship, config.adaptation_mode, config)

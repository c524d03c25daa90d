"""Tests for constraint generation and preservation rule text."""

import math

import pytest

from relationlens.constraints import generator
from relationlens.constraints.generator import (
    build_constraints,
    determine_priority,
    drop_below,
    generate_constraints,
)
from relationlens.constraints.rules import describe, preservation_rule
from relationlens.constraints.types import PRIORITY_WEIGHTS
from relationlens.detector import analyze_composition
from relationlens.engine.config import GenerationConfig, PriorityThresholds
from relationlens.engine.relationships import (
    AnchoredElement,
    AnchorPattern,
    FlowPattern,
    FlowVector,
    RelationshipAnalysis,
    VisualWeightDistribution,
    ElementWeight,
)
from relationlens.errors import ConstraintGenerationError
from tests.conftest import DIAGONAL_TREE


def _anchor(anchor_id: str, confidence: float) -> AnchorPattern:
    return AnchorPattern(
        anchor_element_id=anchor_id,
        anchored_elements=(
            AnchoredElement(element_id=f"{anchor_id}-a", relative_position=(0.2, 0.1), anchor_strength=0.6),
            AnchoredElement(element_id=f"{anchor_id}-b", relative_position=(0.3, 0.2), anchor_strength=0.5),
        ),
        confidence=confidence,
    )


def _flow(confidence: float, ids=("a", "b", "c")) -> FlowPattern:
    return FlowPattern(
        flow_type="diagonal",
        vectors=(
            FlowVector(direction=30.0, magnitude=0.5, start=(0.1, 0.1), end=(0.3, 0.2)),
            FlowVector(direction=40.0, magnitude=0.5, start=(0.3, 0.2), end=(0.5, 0.35)),
        ),
        involved_elements=ids,
        confidence=confidence,
    )


def test_priority_is_monotonic_in_confidence():
    thresholds = PriorityThresholds()
    ranks = [PRIORITY_WEIGHTS[determine_priority(c / 100, thresholds)] for c in range(101)]
    assert ranks == sorted(ranks)
    assert determine_priority(0.8, thresholds) == "critical"
    assert determine_priority(0.79, thresholds) == "high"
    assert determine_priority(0.4, thresholds) == "medium"
    assert determine_priority(0.1, thresholds) == "low"


def test_diagonal_constraints():
    constraints = build_constraints(analyze_composition(DIAGONAL_TREE))
    assert constraints.source_frame_id == "diagonal-frame"

    ids = [c.id for c in constraints.constraints]
    assert len(ids) == len(set(ids))
    assert "flow-diagonal" in ids
    assert "anchor-anchor" in ids

    keys = [(PRIORITY_WEIGHTS[c.priority], c.confidence) for c in constraints.constraints]
    assert keys == sorted(keys, reverse=True)

    flow = next(c for c in constraints.constraints if c.id == "flow-diagonal")
    assert flow.type == "spatial"
    assert flow.subtype == "flow-pattern"
    assert flow.involved_elements == ("anchor", "flow1", "flow2", "flow3")
    assert 0 < flow.geometric.flow_direction < 90
    assert flow.description == "Preserve diagonal flow pattern across 4 elements"

    anchor = next(c for c in constraints.constraints if c.id == "anchor-anchor")
    assert anchor.involved_elements[0] == "anchor"
    assert anchor.description == "Maintain anchor relationship with anchor as compositional foundation"
    assert {p.element_id for p in anchor.geometric.relative_positions} <= set(anchor.involved_elements)


def test_groups_and_guidance():
    constraints = build_constraints(analyze_composition(DIAGONAL_TREE))
    groups = {g.group_id: g for g in constraints.constraint_groups}
    assert "spatial-relationships" in groups
    assert groups["spatial-relationships"].group_type == "dependent"
    assert "flow-diagonal" in groups["spatial-relationships"].constraint_ids

    guidance = constraints.adaptation_guidance
    assert guidance.primary_strategy == "preserve"
    assert guidance.fallback_strategy == "simplified"
    assert guidance.critical_constraint_count == sum(
        1 for c in constraints.constraints if c.priority == "critical"
    )


def test_repeated_kinds_get_unique_ids():
    analysis = RelationshipAnalysis(frame_id="f", spatial=(_flow(0.9), _flow(0.7, ("d", "e", "f"))))
    ids = [c.id for c in build_constraints(analysis).constraints]
    assert ids == ["flow-diagonal", "flow-diagonal-2"]


def test_per_type_cap():
    analysis = RelationshipAnalysis(frame_id="f", spatial=tuple(_anchor(f"hero{i}", 0.9) for i in range(7)))
    constraints = build_constraints(analysis, GenerationConfig(max_constraints_per_type=5))
    assert len(constraints.constraints) == 5


def test_sub_threshold_relationships_dropped():
    analysis = RelationshipAnalysis(frame_id="f", spatial=(_anchor("hero", 0.1), _anchor("side", 0.5)))
    constraints = build_constraints(analysis)
    assert [c.id for c in constraints.constraints] == ["anchor-side"]
    assert constraints.constraints[0].priority == "medium"
    assert constraints.adaptation_guidance.primary_strategy == "simplify"


def test_malformed_relationships_skipped():
    analysis = RelationshipAnalysis(
        frame_id="f",
        spatial=(
            _anchor("", 0.9),
            _flow(math.nan),
            _flow(-0.5),
            _flow(0.9, ()),
            _anchor("hero", 0.9),
        ),
    )
    constraints = build_constraints(analysis)
    assert [c.id for c in constraints.constraints] == ["anchor-hero"]


def test_drop_below_rebuilds_groups_and_guidance():
    analysis = RelationshipAnalysis(frame_id="f", spatial=(_anchor("hero", 0.9), _flow(0.5)))
    constraints = build_constraints(analysis)
    assert drop_below(constraints, 0.4) is constraints

    filtered = drop_below(constraints, 0.6)
    assert [c.id for c in filtered.constraints] == ["anchor-hero"]
    (group,) = filtered.constraint_groups
    assert group.constraint_ids == ("anchor-hero",)
    assert filtered.adaptation_guidance.critical_constraint_count == 1

    emptied = drop_below(constraints, 0.95)
    assert emptied.constraints == ()
    assert emptied.constraint_groups == ()
    assert emptied.adaptation_guidance.critical_constraint_count == 0


def test_weight_constraint_involves_heavy_elements():
    weight = VisualWeightDistribution(
        weight_map=(
            ElementWeight(element_id="hero", weight=1.0, factors=("size",)),
            ElementWeight(element_id="note", weight=0.2, factors=()),
        ),
        balance_point=(0.3, 0.4),
        confidence=0.7,
    )
    (constraint,) = build_constraints(RelationshipAnalysis(frame_id="f", visual=(weight,))).constraints
    assert constraint.id == "visual-weight"
    assert constraint.type == "visual"
    assert constraint.involved_elements == ("hero",)
    assert constraint.geometric.balance_point == (0.3, 0.4)


@pytest.mark.parametrize(
    "mode, prefix, marker",
    [
        ("preserve", "PRESERVE: Keep", "9:16"),
        ("adapt", "ADAPT: Adjust", "while maintaining"),
        ("simplify", "SIMPLIFY: Keep", "reference point"),
    ],
)
def test_rule_register_per_mode(mode, prefix, marker):
    config = GenerationConfig(adaptation_mode=mode)
    rule = preservation_rule(_anchor("hero", 0.9), config)
    assert rule.startswith(prefix)
    assert marker in rule


def test_every_diagonal_rule_follows_mode():
    analysis = analyze_composition(DIAGONAL_TREE)
    for mode, prefix, marker in [
        ("preserve", "PRESERVE: Keep", None),
        ("adapt", "ADAPT: Adjust", "while maintaining"),
        ("simplify", "SIMPLIFY: Keep", "reference point"),
    ]:
        for c in build_constraints(analysis, GenerationConfig(adaptation_mode=mode)).constraints:
            assert c.preservation_rule.startswith(prefix)
            if marker:
                assert marker in c.preservation_rule


def test_describe_rejects_unknown_type():
    class Odd:
        type = "mystery"

    with pytest.raises(ValueError):
        describe(Odd())


def test_generation_failure_falls_back(monkeypatch):
    def broken(relationship):
        raise RuntimeError("no words")

    monkeypatch.setattr(generator, "describe", broken)
    analysis = RelationshipAnalysis(frame_id="f", spatial=(_anchor("hero", 0.9),))

    with pytest.raises(ConstraintGenerationError):
        build_constraints(analysis)

    fallback = generate_constraints(analysis)
    assert fallback.source_frame_id == "f"
    assert fallback.constraints == ()
    assert fallback.adaptation_guidance.primary_strategy == "simplify"
    assert fallback.adaptation_guidance.fallback_strategy == "skip"

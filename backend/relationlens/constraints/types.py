"""Constraint and validation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from relationlens.engine.relationships import AlignmentLine
from relationlens.utils.geometry import Point

Priority = Literal["critical", "high", "medium", "low"]
ConstraintType = Literal["spatial", "visual", "compositional"]
Severity = Literal["critical", "major", "minor"]

# Sort key and validator weight per priority
PRIORITY_WEIGHTS: dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class RelativePosition:
    element_id: str
    position: Point


@dataclass(frozen=True)
class ScaleEntry:
    element_id: str
    scale: float


@dataclass(frozen=True)
class GeometricDescriptor:
    """Structured geometry a validator (or layout planner) can check against."""

    alignment_axis: Literal["horizontal", "vertical", "diagonal"] | None = None
    alignment_lines: tuple[AlignmentLine, ...] = ()
    relative_positions: tuple[RelativePosition, ...] = ()
    flow_direction: float | None = None  # degrees, 0 = east, 90 = south
    scale_ratios: tuple[ScaleEntry, ...] = ()
    balance_point: Point | None = None


@dataclass(frozen=True)
class RelationshipConstraint:
    id: str
    type: ConstraintType
    subtype: str
    priority: Priority
    involved_elements: tuple[str, ...]
    confidence: float
    description: str
    preservation_rule: str
    geometric: GeometricDescriptor | None = None


@dataclass(frozen=True)
class ConstraintGroup:
    group_id: str
    group_type: Literal["mutually_exclusive", "dependent", "prioritized"]
    constraint_ids: tuple[str, ...]


@dataclass(frozen=True)
class AdaptationGuidance:
    primary_strategy: Literal["preserve", "adapt", "simplify"] = "simplify"
    fallback_strategy: Literal["graceful", "simplified", "skip"] = "skip"
    critical_constraint_count: int = 0


@dataclass(frozen=True)
class RelationshipConstraints:
    source_frame_id: str
    constraints: tuple[RelationshipConstraint, ...] = ()
    constraint_groups: tuple[ConstraintGroup, ...] = ()
    adaptation_guidance: AdaptationGuidance = field(default_factory=AdaptationGuidance)


@dataclass(frozen=True)
class ConstraintViolation:
    constraint_id: str
    constraint_description: str
    violation_type: Literal[
        "missing_elements", "positioning_error", "relationship_broken", "severe_deviation"
    ]
    severity: Severity
    details: str
    affected_elements: tuple[str, ...] = ()


@dataclass(frozen=True)
class AdjustmentRecommendation:
    type: Literal["reposition", "resize", "reorder", "regenerate"]
    description: str
    affected_nodes: tuple[str, ...]
    expected_outcome: str


@dataclass(frozen=True)
class ValidationResult:
    passed: bool
    score: float
    violations: tuple[ConstraintViolation, ...] = ()
    summary: str = ""
    adjustment_recommendations: tuple[AdjustmentRecommendation, ...] = ()

    @property
    def critical_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == "critical")

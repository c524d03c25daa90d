"""Check a candidate re-layout against a constraint set.

Spatial constraints are checked geometrically. Visual and compositional
constraints only need their elements present and pass at a conservative
score. A layout passes when the priority-weighted score reaches
``pass_score`` and nothing is critical.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from relationlens.constraints.types import (
    PRIORITY_WEIGHTS,
    AdjustmentRecommendation,
    ConstraintViolation,
    RelationshipConstraint,
    RelationshipConstraints,
    ValidationResult,
)
from relationlens.engine.config import ValidationConfig
from relationlens.errors import LayoutValidationError
from relationlens.tree.elements import CandidateNode
from relationlens.utils.geometry import Point, angle_difference, bearing, line_fit_residuals
from relationlens.utils.math_helpers import circular_mean

logger = logging.getLogger(__name__)


@dataclass
class ConstraintCheck:
    """Outcome of checking one constraint."""

    score: float
    violations: list[ConstraintViolation] = field(default_factory=list)


def passes(score: float, violations: Iterable[ConstraintViolation], pass_score: float = 0.7) -> bool:
    return score >= pass_score and not any(v.severity == "critical" for v in violations)


def _violation(
    constraint: RelationshipConstraint,
    violation_type: str,
    severity: str,
    details: str,
    affected: Iterable[str],
) -> ConstraintViolation:
    return ConstraintViolation(
        constraint_id=constraint.id,
        constraint_description=constraint.description,
        violation_type=violation_type,
        severity=severity,
        details=details,
        affected_elements=tuple(affected),
    )


def _normalized(p: Point, config: ValidationConfig) -> Point:
    return (p[0] / config.reference_width, p[1] / config.reference_height)


# --- Spatial checks ------------------------------------------------------------


def check_anchor(
    constraint: RelationshipConstraint, nodes: dict[str, CandidateNode], config: ValidationConfig
) -> ConstraintCheck:
    anchor_id = constraint.involved_elements[0]
    anchor = nodes.get(anchor_id)
    if anchor is None:
        return ConstraintCheck(
            score=0.0,
            violations=[
                _violation(
                    constraint,
                    "missing_elements",
                    "critical",
                    f"Anchor element {anchor_id} not found in layout",
                    [anchor_id],
                )
            ],
        )
    if constraint.geometric is None or not constraint.geometric.relative_positions:
        return ConstraintCheck(score=1.0)

    origin = anchor.center
    violations = []
    for expected in constraint.geometric.relative_positions:
        node = nodes.get(expected.element_id)
        center = node.center if node is not None else None
        if center is None or origin is None:
            continue
        ax, ay = _normalized(origin, config)
        ex, ey = _normalized(center, config)
        deviation = math.hypot((ex - ax) - expected.position[0], (ey - ay) - expected.position[1])
        if deviation > config.anchor_tolerance:
            violations.append(
                _violation(
                    constraint,
                    "positioning_error",
                    "critical" if deviation > config.anchor_critical else "major",
                    f"Element {expected.element_id} position deviated by {deviation * 100:.1f}% from anchor",
                    [expected.element_id],
                )
            )

    score = max(0.3, 1.0 - 0.2 * len(violations)) if violations else 1.0
    return ConstraintCheck(score=score, violations=violations)


def layout_flow_direction(
    element_ids: Iterable[str], nodes: dict[str, CandidateNode], config: ValidationConfig
) -> float | None:
    """Mean heading between consecutive placed elements, in reference-normalized space."""
    centers = [nodes[eid].center for eid in element_ids if eid in nodes]
    centers = [_normalized(c, config) for c in centers if c is not None]
    headings = [
        bearing(a, b) for a, b in zip(centers, centers[1:]) if a != b
    ]
    if not headings:
        return None
    return circular_mean(headings)


def check_flow(
    constraint: RelationshipConstraint, nodes: dict[str, CandidateNode], config: ValidationConfig
) -> ConstraintCheck:
    expected = constraint.geometric.flow_direction if constraint.geometric else None
    if expected is None:
        return ConstraintCheck(score=1.0)
    actual = layout_flow_direction(constraint.involved_elements, nodes, config)
    if actual is None:
        return ConstraintCheck(score=1.0)

    deviation = angle_difference(expected, actual)
    if deviation <= config.flow_tolerance_deg:
        return ConstraintCheck(score=1.0)
    violation = _violation(
        constraint,
        "relationship_broken",
        "critical" if deviation > config.flow_critical_deg else "major",
        f"Flow direction changed by {deviation:.1f}° (expected: {expected:.1f}°, actual: {actual:.1f}°)",
        constraint.involved_elements,
    )
    return ConstraintCheck(score=max(0.2, 1.0 - deviation / 180.0), violations=[violation])


def _spread_score(values: list[float], tolerance: float) -> float | None:
    if len(values) < 2:
        return None
    return max(0.0, 1.0 - float(np.std(values)) / tolerance)


def _line_score(axis: str, line, nodes: dict[str, CandidateNode], tolerance: float) -> float | None:
    placed = [nodes[eid] for eid in line.element_ids if eid in nodes]
    if axis == "diagonal":
        centers = [n.center for n in placed if n.center is not None]
        if len(centers) < 3:
            return None
        _, residuals = line_fit_residuals(np.asarray(centers, dtype=np.float64))
        rms = float(np.sqrt(np.mean(residuals**2)))
        return max(0.0, 1.0 - rms / tolerance)
    # Members of a horizontal line share a y coordinate
    coord_axis = "y" if axis == "horizontal" else "x"
    values = [n.edge(coord_axis, line.reference) for n in placed]
    return _spread_score([v for v in values if v is not None], tolerance)


def alignment_score(
    constraint: RelationshipConstraint, nodes: dict[str, CandidateNode], config: ValidationConfig
) -> float:
    geometric = constraint.geometric
    axis = geometric.alignment_axis
    tolerance = config.alignment_tolerance_px

    scores = [
        s
        for s in (_line_score(axis, line, nodes, tolerance) for line in geometric.alignment_lines)
        if s is not None
    ]
    if scores:
        return sum(scores) / len(scores)

    if axis == "diagonal":
        return 1.0
    coord = 1 if axis == "horizontal" else 0
    centers = [nodes[eid].center for eid in constraint.involved_elements if eid in nodes]
    fallback = _spread_score([c[coord] for c in centers if c is not None], tolerance)
    return 1.0 if fallback is None else fallback


def check_alignment(
    constraint: RelationshipConstraint, nodes: dict[str, CandidateNode], config: ValidationConfig
) -> ConstraintCheck:
    if constraint.geometric is None or constraint.geometric.alignment_axis is None:
        return ConstraintCheck(score=1.0)

    score = alignment_score(constraint, nodes, config)
    if score >= config.alignment_min_score:
        return ConstraintCheck(score=1.0)
    violation = _violation(
        constraint,
        "relationship_broken",
        "critical" if score < config.alignment_critical_score else "major",
        f"{constraint.geometric.alignment_axis} alignment significantly degraded (score: {score:.2f})",
        constraint.involved_elements,
    )
    return ConstraintCheck(score=max(0.2, score), violations=[violation])


_SPATIAL_CHECKS = {
    "anchor-pattern": check_anchor,
    "flow-pattern": check_flow,
    "alignment-grid": check_alignment,
}


def check_constraint(
    constraint: RelationshipConstraint, nodes: dict[str, CandidateNode], config: ValidationConfig
) -> ConstraintCheck:
    missing = [eid for eid in constraint.involved_elements if eid not in nodes]
    if missing:
        return ConstraintCheck(
            score=0.0,
            violations=[
                _violation(
                    constraint,
                    "missing_elements",
                    "critical" if constraint.priority == "critical" else "major",
                    f"Missing elements in layout: {', '.join(missing)}",
                    missing,
                )
            ],
        )

    if constraint.type == "spatial":
        check = _SPATIAL_CHECKS.get(constraint.subtype)
        return check(constraint, nodes, config) if check else ConstraintCheck(score=1.0)
    return ConstraintCheck(score=config.conservative_score)


# --- Reporting -----------------------------------------------------------------


def _affected(violations: list[ConstraintViolation]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(eid for v in violations for eid in v.affected_elements))


def recommend_adjustments(violations: list[ConstraintViolation]) -> tuple[AdjustmentRecommendation, ...]:
    critical = [v for v in violations if v.severity == "critical"]
    major = [v for v in violations if v.severity == "major"]
    if critical:
        return (
            AdjustmentRecommendation(
                type="regenerate",
                description=f"{len(critical)} critical relationship violations detected",
                affected_nodes=_affected(critical),
                expected_outcome="Regenerate with stronger relationship preservation constraints",
            ),
        )
    if major:
        return (
            AdjustmentRecommendation(
                type="reposition",
                description=f"{len(major)} major positioning issues detected",
                affected_nodes=_affected(major),
                expected_outcome="Adjust positions to better preserve detected relationships",
            ),
        )
    return ()


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def summarize(passed: bool, score: float, violations: list[ConstraintViolation]) -> str:
    if passed:
        return f"Relationship preservation successful (score: {score * 100:.1f}%)"
    summary = f"Relationship preservation issues detected (score: {score * 100:.1f}%)"
    counts = {s: sum(1 for v in violations if v.severity == s) for s in ("critical", "major", "minor")}
    if counts["critical"]:
        summary += f" - {_plural(counts['critical'], 'critical violation')}"
    if counts["major"]:
        summary += f" - {_plural(counts['major'], 'major issue')}"
    if counts["minor"]:
        summary += f" - {_plural(counts['minor'], 'minor issue')}"
    return summary


# --- Entry points --------------------------------------------------------------


def check_layout(
    constraints: RelationshipConstraints,
    layout: Iterable[CandidateNode],
    config: ValidationConfig | None = None,
) -> ValidationResult:
    """Validate a layout, raising LayoutValidationError on internal failure."""
    config = config or ValidationConfig()
    try:
        nodes = {node.node_id: node for node in layout}
        violations: list[ConstraintViolation] = []
        total = 0.0
        weights = 0
        for constraint in constraints.constraints:
            result = check_constraint(constraint, nodes, config)
            violations.extend(result.violations)
            weight = PRIORITY_WEIGHTS.get(constraint.priority, 1)
            total += result.score * weight
            weights += weight

        score = total / weights if weights else 1.0
        passed = passes(score, violations, config.pass_score)
        result = ValidationResult(
            passed=passed,
            score=score,
            violations=tuple(violations),
            summary=summarize(passed, score, violations),
            adjustment_recommendations=recommend_adjustments(violations),
        )
    except Exception as e:
        raise LayoutValidationError(f"Validation failed: {e}") from e

    logger.debug(
        "Validated %d constraints against %d nodes: score=%.3f passed=%s violations=%d (%d critical)",
        len(constraints.constraints),
        len(nodes),
        result.score,
        result.passed,
        len(result.violations),
        result.critical_count,
    )
    return result


def failed_validation(error: Exception) -> ValidationResult:
    return ValidationResult(
        passed=False,
        score=0.0,
        violations=(
            ConstraintViolation(
                constraint_id="validation-error",
                constraint_description="Validation system error",
                violation_type="severe_deviation",
                severity="critical",
                details=str(error),
            ),
        ),
        summary="Relationship validation failed due to system error",
        adjustment_recommendations=(
            AdjustmentRecommendation(
                type="regenerate",
                description="Regenerate specifications without relationship constraints",
                affected_nodes=(),
                expected_outcome="Fallback to basic layout without relationship preservation",
            ),
        ),
    )


def validate_layout(
    constraints: RelationshipConstraints,
    layout: Iterable[CandidateNode],
    config: ValidationConfig | None = None,
) -> ValidationResult:
    """Validate a layout; internal failures yield a single critical violation."""
    try:
        return check_layout(constraints, layout, config)
    except LayoutValidationError as e:
        logger.warning("Layout validation error: %s", e)
        return failed_validation(e)

"""Analysis, generation and validation thresholds.

Every detector reads its thresholds from the ``AnalysisConfig`` carried by the
context; nothing here is consulted as a module global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

AdaptationMode = Literal["preserve", "adapt", "simplify"]
PreserveMode = Literal["strict", "adaptive", "creative"]

_PRESERVE_TO_ADAPTATION: dict[str, str] = {
    "strict": "preserve",
    "adaptive": "adapt",
    "creative": "simplify",
}


@dataclass(frozen=True)
class PriorityThresholds:
    """Minimum confidence for each constraint priority."""

    critical: float = 0.8
    high: float = 0.6
    medium: float = 0.4
    low: float = 0.2


@dataclass(frozen=True)
class AnalysisConfig:
    """Controls relationship detection and which detector groups run."""

    # Minimum confidence for any detected pattern to be reported
    confidence_threshold: float = 0.4

    # Detector groups
    enable_spatial: bool = True
    enable_visual: bool = True
    enable_compositional: bool = True
    max_element_count: int = 50  # above: spatial only; above 1.5x: nothing
    preserve_mode: PreserveMode = "adaptive"

    # Anchor patterns
    anchor_detection_threshold: float = 0.3
    anchor_min_distance: float = 0.05
    anchor_max_distance: float = 0.8
    max_anchor_patterns: int = 3

    # Flow patterns
    minimum_flow_distance: float = 0.05
    flow_angle_threshold: float = 15.0  # degrees
    curved_flow_min_elements: int = 4
    circular_radius_cv: float = 0.25

    # Alignment
    alignment_tolerance: float = 0.008

    # Proximity (DBSCAN over element centers)
    proximity_eps: float = 0.12
    proximity_min_samples: int = 2

    # Contrast / scale
    adjacency_distance: float = 0.05
    contrast_threshold: float = 1.5
    scale_similarity_threshold: float = 0.15

    # Balance / tension / edges
    balance_threshold: float = 0.15
    tension_detection_radius: float = 0.2
    edge_proximity_threshold: float = 0.1
    max_tension_points: int = 5

    # Negative space: fraction of the grid a region must cover
    breathing_room_min_size: float = 0.08

    @property
    def adaptation_mode(self) -> str:
        return _PRESERVE_TO_ADAPTATION.get(self.preserve_mode, "adapt")


@dataclass(frozen=True)
class GenerationConfig:
    """Controls how relationships become constraints."""

    priority_thresholds: PriorityThresholds = field(default_factory=PriorityThresholds)
    max_constraints_per_type: int = 5
    adaptation_mode: AdaptationMode = "adapt"
    target_aspect_ratio: tuple[int, int] = (9, 16)  # width:height

    @property
    def target_format(self) -> str:
        w, h = self.target_aspect_ratio
        return f"{w}:{h}"


@dataclass(frozen=True)
class ValidationConfig:
    """Tolerances used when scoring a candidate layout.

    Candidate coordinates are in reference-frame units (pixels of the target
    format); offsets are normalized by the reference width/height.
    """

    reference_width: float = 1080.0
    reference_height: float = 1920.0
    pass_score: float = 0.7

    anchor_tolerance: float = 0.2
    anchor_critical: float = 0.4

    flow_tolerance_deg: float = 45.0
    flow_critical_deg: float = 90.0

    alignment_tolerance_px: float = 80.0
    alignment_min_score: float = 0.6
    alignment_critical_score: float = 0.3

    # Score given to visual/compositional constraints whose elements all exist
    conservative_score: float = 0.9

"""Detected relationship records.

Each relationship kind is one frozen dataclass with a ``type`` discriminant;
the three families are joined in Union aliases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from relationlens.tree.elements import NormalizedBounds, NormalizedElement
from relationlens.utils.geometry import Point

# --- Spatial -----------------------------------------------------------------


@dataclass(frozen=True)
class FlowVector:
    direction: float  # degrees, 0 = east, 90 = south
    magnitude: float  # [0, 1]
    start: Point
    end: Point


@dataclass(frozen=True)
class AnchoredElement:
    element_id: str
    relative_position: Point  # element center minus anchor center
    anchor_strength: float


@dataclass(frozen=True)
class AnchorPattern:
    anchor_element_id: str
    anchored_elements: tuple[AnchoredElement, ...]
    confidence: float
    type: Literal["anchor"] = "anchor"


@dataclass(frozen=True)
class FlowPattern:
    flow_type: Literal["linear", "diagonal", "circular", "spiral"]
    vectors: tuple[FlowVector, ...]
    involved_elements: tuple[str, ...]  # ordered along the flow
    confidence: float
    type: Literal["flow"] = "flow"


@dataclass(frozen=True)
class AlignmentLine:
    position: float
    reference: Literal["start", "center", "end", "line"]
    strength: float
    element_ids: tuple[str, ...]


@dataclass(frozen=True)
class AlignmentGrid:
    axis: Literal["horizontal", "vertical", "diagonal"]
    alignment_lines: tuple[AlignmentLine, ...]
    confidence: float
    type: Literal["alignment"] = "alignment"


@dataclass(frozen=True)
class ProximityCluster:
    cluster_id: int
    element_ids: tuple[str, ...]
    cluster_bounds: NormalizedBounds
    cohesion: float
    confidence: float
    type: Literal["proximity"] = "proximity"


SpatialRelationship = Union[AnchorPattern, FlowPattern, AlignmentGrid, ProximityCluster]

# --- Visual ------------------------------------------------------------------


@dataclass(frozen=True)
class LayerGroup:
    depth: int
    element_ids: tuple[str, ...]


@dataclass(frozen=True)
class LayeringHierarchy:
    layers: tuple[LayerGroup, ...]  # back to front
    confidence: float
    type: Literal["layering"] = "layering"


@dataclass(frozen=True)
class ElementWeight:
    element_id: str
    weight: float
    factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class VisualWeightDistribution:
    weight_map: tuple[ElementWeight, ...]
    balance_point: Point
    confidence: float
    type: Literal["weight"] = "weight"


@dataclass(frozen=True)
class ContrastPair:
    element_a: str
    element_b: str
    contrast_type: Literal["color", "size", "weight"]
    strength: float


@dataclass(frozen=True)
class ContrastRelationship:
    pairs: tuple[ContrastPair, ...]
    confidence: float
    type: Literal["contrast"] = "contrast"


@dataclass(frozen=True)
class ScaleGroup:
    element_ids: tuple[str, ...]
    scale_ratio: float
    scale_type: Literal["golden", "fibonacci", "modular", "proportional"]


@dataclass(frozen=True)
class ScaleRelationship:
    groups: tuple[ScaleGroup, ...]
    confidence: float
    type: Literal["scale"] = "scale"


VisualRelationship = Union[
    LayeringHierarchy, VisualWeightDistribution, ContrastRelationship, ScaleRelationship
]

# --- Compositional -----------------------------------------------------------


@dataclass(frozen=True)
class BalanceContribution:
    element_id: str
    contribution: float  # [-1, 1], negative = left of the balance point


@dataclass(frozen=True)
class BalanceAnalysis:
    balance_type: Literal["symmetrical", "asymmetrical", "radial", "dynamic"]
    balance_point: Point
    contributions: tuple[BalanceContribution, ...]
    confidence: float
    type: Literal["balance"] = "balance"


@dataclass(frozen=True)
class TensionArea:
    center: Point
    radius: float
    tension_type: Literal["conflict", "energy", "focus", "stress"]
    involved_elements: tuple[str, ...]
    intensity: float


@dataclass(frozen=True)
class TensionPoints:
    areas: tuple[TensionArea, ...]
    confidence: float
    type: Literal["tension"] = "tension"


@dataclass(frozen=True)
class BreathingRegion:
    region: NormalizedBounds
    space_type: Literal["buffer", "separator", "focus", "flow"]
    importance: float
    adjacent_elements: tuple[str, ...]


@dataclass(frozen=True)
class BreathingRoomPattern:
    regions: tuple[BreathingRegion, ...]
    confidence: float
    type: Literal["breathing"] = "breathing"


@dataclass(frozen=True)
class EdgeInteraction:
    element_id: str
    edges: tuple[Literal["top", "right", "bottom", "left"], ...]
    interaction_type: Literal["bleed", "tension", "anchor", "bounce"]
    distance: float  # closest edge distance; <= 0 means the element bleeds


@dataclass(frozen=True)
class EdgeRelationships:
    interactions: tuple[EdgeInteraction, ...]
    confidence: float
    type: Literal["edge"] = "edge"


CompositionalRelationship = Union[
    BalanceAnalysis, TensionPoints, BreathingRoomPattern, EdgeRelationships
]

# --- Analysis result ---------------------------------------------------------


@dataclass(frozen=True)
class AnalysisMetrics:
    processing_time_ms: float = 0.0
    element_count: int = 0
    relationship_count: int = 0
    average_confidence: float = 0.0


@dataclass(frozen=True)
class RelationshipAnalysis:
    frame_id: str
    spatial: tuple[SpatialRelationship, ...] = ()
    visual: tuple[VisualRelationship, ...] = ()
    compositional: tuple[CompositionalRelationship, ...] = ()
    elements: tuple[NormalizedElement, ...] = ()
    metrics: AnalysisMetrics = field(default_factory=AnalysisMetrics)
    # transform id -> error message for transforms that failed
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def relationship_count(self) -> int:
        return len(self.spatial) + len(self.visual) + len(self.compositional)

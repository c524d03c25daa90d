"""AnalysisContext: the per-analysis state object flowing through all transforms.

Inputs (elements, config) are read-only; each transform appends the
relationships it detects to the matching family list.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from relationlens.engine.config import AnalysisConfig
from relationlens.engine.relationships import (
    CompositionalRelationship,
    SpatialRelationship,
    VisualRelationship,
)
from relationlens.tree.elements import NormalizedElement


@dataclass
class AnalysisContext:
    """Shared state for one relationship analysis."""

    frame_id: str = ""
    elements: list[NormalizedElement] = field(default_factory=list)
    config: AnalysisConfig = field(default_factory=AnalysisConfig)

    # --- Detected relationships ---
    spatial: list[SpatialRelationship] = field(default_factory=list)
    visual: list[VisualRelationship] = field(default_factory=list)
    compositional: list[CompositionalRelationship] = field(default_factory=list)

    # --- Pipeline metadata ---
    completed_transforms: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def num_elements(self) -> int:
        return len(self.elements)


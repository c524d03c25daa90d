"""API request models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from relationlens.constraints.types import RelationshipConstraints
from relationlens.engine.config import AnalysisConfig, ValidationConfig
from relationlens.tree.elements import CandidateNode, ElementNode, Rect


class RectModel(BaseModel):
    x: float
    y: float
    width: float
    height: float


class ElementNodeModel(BaseModel):
    id: str = Field(..., description="Stable element id")
    bounds: RectModel | None = Field(default=None, description="Absolute bounding box")
    visible: bool = True
    children: list[ElementNodeModel] = Field(default_factory=list)
    fill: str | None = Field(default=None, description="#rgb or #rrggbb fill color")
    font_size: float | None = None
    font_weight: str | None = None

    def to_node(self) -> ElementNode:
        return ElementNode(
            id=self.id,
            bounds=Rect(**self.bounds.model_dump()) if self.bounds else None,
            visible=self.visible,
            children=tuple(child.to_node() for child in self.children),
            fill=self.fill,
            font_size=self.font_size,
            font_weight=self.font_weight,
        )


ElementNodeModel.model_rebuild()


class AnalyzeOptions(BaseModel):
    """Overrides for the most commonly tuned analysis settings."""

    confidence_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    enable_spatial: bool | None = None
    enable_visual: bool | None = None
    enable_compositional: bool | None = None
    max_element_count: int | None = Field(default=None, gt=0)
    preserve_mode: Literal["strict", "adaptive", "creative"] | None = None

    def to_config(self) -> AnalysisConfig:
        return AnalysisConfig(**self.model_dump(exclude_none=True))


class AnalyzeRequest(BaseModel):
    tree: ElementNodeModel = Field(..., description="Root frame of the composition")
    config: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class PositionModel(BaseModel):
    x: float
    y: float


class SizeModel(BaseModel):
    width: float
    height: float


class CandidateNodeModel(BaseModel):
    node_id: str
    position: PositionModel | None = None
    size: SizeModel | None = None

    def to_candidate(self) -> CandidateNode:
        return CandidateNode(
            node_id=self.node_id,
            position=(self.position.x, self.position.y) if self.position else None,
            size=(self.size.width, self.size.height) if self.size else None,
        )


class ReferenceFrame(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class ValidateRequest(BaseModel):
    constraints: RelationshipConstraints = Field(..., description="Output of /api/analyze")
    layout: list[CandidateNodeModel] = Field(..., description="Proposed re-layout of the elements")
    reference_frame: ReferenceFrame | None = Field(
        default=None,
        description="Frame the layout is expressed in (defaults to the configured reference)",
    )

    def to_config(self, default_width: float, default_height: float) -> ValidationConfig:
        if self.reference_frame is None:
            return ValidationConfig(reference_width=default_width, reference_height=default_height)
        return ValidationConfig(
            reference_width=self.reference_frame.width,
            reference_height=self.reference_frame.height,
        )

"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from relationlens.constraints.types import RelationshipConstraints
from relationlens.engine.relationships import RelationshipAnalysis


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    transforms_registered: int = 0


class AnalyzeResponse(BaseModel):
    success: bool = True
    analysis: RelationshipAnalysis | None = None
    constraints: RelationshipConstraints | None = None
    fallback_mode: str = "none"
    processing_time_ms: float = 0.0
    error: str | None = None
    errors: dict[str, str] = Field(default_factory=dict)

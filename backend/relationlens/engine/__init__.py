"""RelationLens relationship detection engine."""

from relationlens.engine.registry import transform, Layer, get_registry
from relationlens.engine.context import AnalysisContext
from relationlens.engine.pipeline import Pipeline

__all__ = [
    "transform",
    "Layer",
    "get_registry",
    "AnalysisContext",
    "Pipeline",
]

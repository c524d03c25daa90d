"""End-to-end relationship detection: element tree -> analysis -> constraints.

Owns the complexity gating and degraded modes. Everything below this
module is a pure function of its inputs.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Literal

from relationlens.constraints.generator import drop_below, generate_constraints
from relationlens.constraints.types import RelationshipConstraints
from relationlens.engine.config import AnalysisConfig, GenerationConfig
from relationlens.engine.context import AnalysisContext
from relationlens.engine.pipeline import Pipeline, load_transforms
from relationlens.engine.registry import Layer
from relationlens.engine.relationships import AnalysisMetrics, RelationshipAnalysis
from relationlens.tree.elements import ElementNode
from relationlens.tree.extractor import build_context

logger = logging.getLogger(__name__)

FallbackMode = Literal["none", "spatial_only", "disabled"]

# Beyond this multiple of max_element_count nothing is analyzed
_DISABLE_FACTOR = 1.5


@dataclass(frozen=True)
class DetectionResult:
    success: bool
    analysis: RelationshipAnalysis | None = None
    constraints: RelationshipConstraints | None = None
    fallback_mode: FallbackMode = "none"
    error: str | None = None
    processing_time_ms: float = 0.0


def _enabled_layers(config: AnalysisConfig) -> set[Layer]:
    return {layer for layer in Layer if getattr(config, f"enable_{layer.family}")}


def _to_analysis(ctx: AnalysisContext, elapsed_ms: float) -> RelationshipAnalysis:
    confidences = [r.confidence for r in (*ctx.spatial, *ctx.visual, *ctx.compositional)]
    return RelationshipAnalysis(
        frame_id=ctx.frame_id,
        spatial=tuple(ctx.spatial),
        visual=tuple(ctx.visual),
        compositional=tuple(ctx.compositional),
        elements=tuple(ctx.elements),
        metrics=AnalysisMetrics(
            processing_time_ms=elapsed_ms,
            element_count=ctx.num_elements,
            relationship_count=len(confidences),
            average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
        ),
        errors=dict(ctx.errors),
    )


def run_analysis(
    ctx: AnalysisContext, layers: set[Layer] | None = None, pipeline: Pipeline | None = None
) -> RelationshipAnalysis:
    """Run the detector pipeline over a prepared context."""
    start = time.perf_counter()
    load_transforms()
    pipeline = pipeline or Pipeline()
    if layers is None:
        layers = _enabled_layers(ctx.config)
    if layers:
        pipeline.run(ctx, layers)
    return _to_analysis(ctx, (time.perf_counter() - start) * 1000)


def analyze_composition(root: ElementNode, config: AnalysisConfig | None = None) -> RelationshipAnalysis:
    """Extract elements from the tree and run every enabled detector group."""
    config = config or AnalysisConfig()
    return run_analysis(build_context(root, config))


def _analyze_one_layer(root: ElementNode, config: AnalysisConfig | None, layer: Layer):
    ctx = build_context(root, config or AnalysisConfig())
    run_analysis(ctx, {layer})
    return ctx


def analyze_spatial(root: ElementNode, config: AnalysisConfig | None = None):
    return list(_analyze_one_layer(root, config, Layer.SPATIAL).spatial)


def analyze_visual(root: ElementNode, config: AnalysisConfig | None = None):
    return list(_analyze_one_layer(root, config, Layer.VISUAL).visual)


def analyze_compositional(root: ElementNode, config: AnalysisConfig | None = None):
    return list(_analyze_one_layer(root, config, Layer.COMPOSITIONAL).compositional)


def detect_relationships(root: ElementNode, config: AnalysisConfig | None = None) -> DetectionResult:
    """Full detection with complexity gating, degraded modes and constraint generation.

    Never raises: an unexpected failure is reported as ``success=False`` with
    ``fallback_mode="disabled"``.
    """
    config = config or AnalysisConfig()
    start = time.perf_counter()

    def elapsed() -> float:
        return (time.perf_counter() - start) * 1000

    try:
        ctx = build_context(root, config)
        count = ctx.num_elements
        if count < 2:
            return DetectionResult(
                success=True,
                fallback_mode="disabled",
                error="Insufficient elements for relationship analysis",
                processing_time_ms=elapsed(),
            )

        fallback_mode: FallbackMode = "none"
        layers = _enabled_layers(config)
        if count > config.max_element_count * _DISABLE_FACTOR:
            logger.info("Frame %s has %d elements; relationship analysis disabled", ctx.frame_id, count)
            return DetectionResult(
                success=True,
                fallback_mode="disabled",
                error="Frame too complex for any relationship analysis",
                processing_time_ms=elapsed(),
            )
        if count > config.max_element_count:
            logger.info("Frame %s has %d elements; running spatial analysis only", ctx.frame_id, count)
            fallback_mode = "spatial_only"
            layers &= {Layer.SPATIAL}

        analysis = run_analysis(ctx, layers)
        if analysis.errors:
            logger.warning("Detectors failed for %s: %s", ctx.frame_id, ", ".join(sorted(analysis.errors)))
            fallback_mode = "spatial_only"

        constraints = None
        if analysis.relationship_count:
            generation = GenerationConfig(adaptation_mode=config.adaptation_mode)
            constraints = drop_below(
                generate_constraints(analysis, generation), config.confidence_threshold, generation
            )

        result = DetectionResult(
            success=True,
            analysis=analysis,
            constraints=constraints,
            fallback_mode=fallback_mode,
            processing_time_ms=elapsed(),
        )
    except Exception as e:
        logger.exception("Relationship detection failed")
        return DetectionResult(
            success=False,
            fallback_mode="disabled",
            error=f"Relationship detection failed: {e}",
            processing_time_ms=elapsed(),
        )

    logger.info(
        "Detected %d relationships (%d constraints) for %s in %.0fms [%s]",
        analysis.relationship_count,
        len(constraints.constraints) if constraints else 0,
        analysis.frame_id,
        result.processing_time_ms,
        fallback_mode,
    )
    return result


def detect_basic_relationships(root: ElementNode) -> DetectionResult:
    """Minimal spatial-only detection with a stricter threshold, used as a fallback."""
    start = time.perf_counter()
    config = AnalysisConfig(
        confidence_threshold=0.6,
        anchor_detection_threshold=0.5,
        enable_visual=False,
        enable_compositional=False,
    )
    try:
        analysis = run_analysis(build_context(root, config), {Layer.SPATIAL})
        if not analysis.spatial:
            return DetectionResult(
                success=True,
                fallback_mode="disabled",
                processing_time_ms=(time.perf_counter() - start) * 1000,
            )
        constraints = generate_constraints(analysis, GenerationConfig(adaptation_mode="simplify"))
    except Exception as e:
        logger.exception("Basic relationship detection failed")
        return DetectionResult(
            success=False,
            fallback_mode="disabled",
            error=f"Basic relationship detection failed: {e}",
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )
    return DetectionResult(
        success=True,
        analysis=analysis,
        constraints=constraints,
        fallback_mode="spatial_only",
        processing_time_ms=(time.perf_counter() - start) * 1000,
    )

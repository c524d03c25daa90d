"""POST /api/analyze: relationship detection and constraint generation."""

from __future__ import annotations

from fastapi import APIRouter

from relationlens.detector import detect_relationships
from relationlens.models.requests import AnalyzeRequest
from relationlens.models.responses import AnalyzeResponse

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    result = detect_relationships(req.tree.to_node(), req.config.to_config())

    return AnalyzeResponse(
        success=result.success,
        analysis=result.analysis,
        constraints=result.constraints,
        fallback_mode=result.fallback_mode,
        processing_time_ms=round(result.processing_time_ms, 1),
        error=result.error,
        errors=result.analysis.errors if result.analysis else {},
    )

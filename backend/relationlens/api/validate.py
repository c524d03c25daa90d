"""POST /api/validate: score a candidate re-layout against a constraint set."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from relationlens.config import Settings
from relationlens.constraints.types import ValidationResult
from relationlens.constraints.validator import validate_layout
from relationlens.dependencies import get_settings
from relationlens.models.requests import ValidateRequest

router = APIRouter()


@router.post("/validate", response_model=ValidationResult)
async def validate(req: ValidateRequest, settings: Settings = Depends(get_settings)) -> ValidationResult:
    config = req.to_config(settings.reference_width, settings.reference_height)
    layout = [node.to_candidate() for node in req.layout]
    return validate_layout(req.constraints, layout, config)

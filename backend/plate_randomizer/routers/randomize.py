"""Randomization API."""
from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from typing import List, Optional

from plate_randomizer.config import settings
from plate_randomizer.services import LayoutService
from plate_randomizer.solver.diagnostics import get_diagnostic_explanation, is_fatal
from plate_randomizer.models import (
    Sample, RandomizationConfig, RandomizationResult, RandomizationStatus,
    AssignmentTable
)

router = APIRouter()
layout_service = LayoutService()


class RandomizeRequest(BaseModel):
    """Request for randomization."""
    samples: List[Sample]
    covariates: List[str] = []
    config: RandomizationConfig = RandomizationConfig()


class ExportRequest(BaseModel):
    """Request for assignment export of a finished randomization."""
    result: RandomizationResult
    covariates: List[str] = []
    qc_column: Optional[str] = None
    qc_values: List[str] = []


def _check_size(samples: List[Sample]):
    if len(samples) > settings.max_samples:
        raise HTTPException(
            status_code=422,
            detail=f"Too many samples: {len(samples)} (limit {settings.max_samples})"
        )


@router.post("", response_model=RandomizationResult)
async def randomize(request: RandomizeRequest):
    """
    Randomize samples onto plates.
    
    A run stopped by a configuration, capacity or placement error is returned
    with status "failed" and its diagnostics.
    """
    _check_size(request.samples)
    return layout_service.randomize(
        samples=request.samples,
        covariates=request.covariates,
        config=request.config
    )


@router.post("/export", response_model=AssignmentTable)
async def export_assignment(request: ExportRequest):
    """
    Build the per-well assignment table of a randomization.
    """
    return layout_service.export_assignment(
        request.result, request.covariates, request.qc_column, request.qc_values
    )


@router.post("/csv")
async def randomize_csv(request: RandomizeRequest):
    """
    Randomize samples and return the assignment as CSV.
    """
    _check_size(request.samples)
    result = layout_service.randomize(
        samples=request.samples,
        covariates=request.covariates,
        config=request.config
    )
    if result.status == RandomizationStatus.FAILED:
        raise HTTPException(status_code=422, detail=result.message)
    
    table = layout_service.export_assignment(
        result, request.covariates, request.config.qc_column, request.config.qc_values
    )
    return PlainTextResponse(
        content=table.to_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=plate_assignment.csv"}
    )


@router.get("/explain/{code}")
async def explain_diagnostic(code: str):
    """
    Get explanation for a diagnostic code.
    """
    return {
        "code": code,
        "fatal": is_fatal(code),
        "explanation": get_diagnostic_explanation(code).strip()
    }

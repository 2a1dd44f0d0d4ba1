"""Quality scoring API."""
from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import List, Optional

from plate_randomizer.services import LayoutService
from plate_randomizer.models import (
    Sample, PlateLayout, DisplayConfig, QualityScore, GroupValidationReport
)

router = APIRouter()
layout_service = LayoutService()


class QualityRequest(BaseModel):
    """Request for quality scoring."""
    samples: List[Sample]
    plates: List[PlateLayout]
    covariates: List[str] = []
    display_config: Optional[DisplayConfig] = None
    qc_column: Optional[str] = None
    qc_values: List[str] = []


class RepeatedMeasuresCheckRequest(BaseModel):
    """Request for a repeated-measures attribute check."""
    samples: List[Sample]
    attribute: str
    covariates: List[str] = []
    plate_capacity: int = Field(default=96, ge=1)
    qc_column: Optional[str] = None
    qc_values: List[str] = []


@router.post("", response_model=QualityScore)
async def score_quality(request: QualityRequest):
    """
    Score plate layouts for covariate balance and clustering.
    """
    return layout_service.quality(
        samples=request.samples,
        plates=request.plates,
        covariates=request.covariates,
        display_config=request.display_config,
        qc_column=request.qc_column,
        qc_values=request.qc_values
    )


@router.post("/repeated-measures/validate")
async def validate_repeated_measures(request: RepeatedMeasuresCheckRequest):
    """
    Check repeated-measures groups against the plate capacity.
    """
    report: GroupValidationReport = layout_service.validate_repeated_measures(
        samples=request.samples,
        attribute=request.attribute,
        covariates=request.covariates,
        plate_capacity=request.plate_capacity,
        qc_column=request.qc_column,
        qc_values=request.qc_values
    )
    return {
        "valid": report.is_valid,
        "errors": report.errors,
        "warnings": report.warnings
    }

"""Data models for Plate Randomizer."""
from plate_randomizer.models.sample import Sample, SampleSheet
from plate_randomizer.models.randomization import (
    RandomizationConfig,
    Algorithm,
    PlateType,
    PLATE_DIMENSIONS
)
from plate_randomizer.models.repeated_measures import (
    RepeatedMeasuresGroup,
    RepeatedMeasuresSummary,
    GroupSizeDistribution,
    GroupValidationReport
)
from plate_randomizer.models.plate_layout import (
    PlateLayout,
    LayoutWell,
    ContentType,
    RandomizationResult,
    RandomizationStatus,
    Diagnostic,
    Severity,
    format_position
)
from plate_randomizer.models.quality import (
    QualityScore,
    QualityLevel,
    PlateQuality,
    CovariateGroupBalance,
    SpatialClusters,
    DisplayConfig,
    QUALITY_LEVEL_BANDS
)
from plate_randomizer.models.assignment import AssignmentEntry, AssignmentTable

__all__ = [
    "Sample", "SampleSheet",
    "RandomizationConfig", "Algorithm", "PlateType", "PLATE_DIMENSIONS",
    "RepeatedMeasuresGroup", "RepeatedMeasuresSummary", "GroupSizeDistribution",
    "GroupValidationReport",
    "PlateLayout", "LayoutWell", "ContentType", "RandomizationResult",
    "RandomizationStatus", "Diagnostic", "Severity", "format_position",
    "QualityScore", "QualityLevel", "PlateQuality", "CovariateGroupBalance",
    "SpatialClusters", "DisplayConfig", "QUALITY_LEVEL_BANDS",
    "AssignmentEntry", "AssignmentTable"
]

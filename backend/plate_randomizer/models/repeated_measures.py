"""Repeated-measures data models."""
from pydantic import BaseModel
from typing import Dict, List

from plate_randomizer.models.sample import Sample


class RepeatedMeasuresGroup(BaseModel):
    """Samples that share a repeated-measures identifier and must stay on one plate."""
    group_id: str
    samples: List[Sample]
    treatment_composition: Dict[str, int] = {}
    size: int
    is_singleton: bool = False


class GroupSizeDistribution(BaseModel):
    """Number of groups per size bucket."""
    singletons: int = 0
    small: int = 0  # 2-5
    medium: int = 0  # 6-15
    large: int = 0  # 16+


class GroupValidationReport(BaseModel):
    """Result of checking repeated-measures groups against plate capacity."""
    errors: List[str] = []
    warnings: List[str] = []

    @property
    def is_valid(self) -> bool:
        return not self.errors


class RepeatedMeasuresSummary(BaseModel):
    """Repeated-measures constraint metrics for a finished run."""
    constraints_satisfied: bool
    violations: int = 0
    split_groups: List[str] = []
    plate_group_counts: Dict[int, int] = {}
    group_size_distribution: GroupSizeDistribution = GroupSizeDistribution()

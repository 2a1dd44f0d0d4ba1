"""Quality score data models."""
from pydantic import BaseModel
from typing import Dict, List, Optional
from enum import Enum


class QualityLevel(str, Enum):
    """Discrete quality level."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    BAD = "bad"


# Lower score bound of each level, checked in order
QUALITY_LEVEL_BANDS = [
    (90.0, QualityLevel.EXCELLENT),
    (80.0, QualityLevel.GOOD),
    (70.0, QualityLevel.FAIR),
    (60.0, QualityLevel.POOR),
    (0.0, QualityLevel.BAD),
]


class DisplayConfig(BaseModel):
    """Which optional sub-scores take part in the overall score."""
    show_row_score: bool = True
    show_clustering_score: bool = False


class CovariateGroupBalance(BaseModel):
    """Balance of one covariate group on one plate."""
    group_key: str
    actual_count: int
    expected_count: float
    actual_proportion: float
    expected_proportion: float
    relative_deviation: float
    weighted_deviation: float
    balance_score: float


class SpatialClusters(BaseModel):
    """Same-key adjacencies on a plate."""
    plate_index: int
    horizontal_clusters: int = 0
    vertical_clusters: int = 0
    cross_row_clusters: int = 0

    @property
    def total_clusters(self) -> int:
        return self.horizontal_clusters + self.vertical_clusters + self.cross_row_clusters


class PlateQuality(BaseModel):
    """Quality scores of one plate."""
    plate_index: int
    balance_score: float
    row_clustering_score: Optional[float] = None
    row_scores: Dict[int, float] = {}
    spatial_score: Optional[float] = None
    overall_score: float
    group_balances: List[CovariateGroupBalance] = []


class QualityScore(BaseModel):
    """Quality assessment of a whole randomization."""
    plates: List[PlateQuality] = []
    balance_score: float
    row_clustering_score: Optional[float] = None
    spatial_score: Optional[float] = None
    overall_score: float
    level: QualityLevel
    spatial_clusters: List[SpatialClusters] = []

"""Randomization configuration models."""
from pydantic import BaseModel, Field
from typing import List, Optional, Tuple
from enum import Enum

from plate_randomizer.config import settings


class PlateType(int, Enum):
    """Plate type enumeration."""
    PLATE_96 = 96
    PLATE_384 = 384
    PLATE_1536 = 1536


class Algorithm(str, Enum):
    """Randomization algorithm."""
    BALANCED = "balanced"
    BALANCED_SPATIAL = "balanced_spatial"
    GREEDY = "greedy"


class RandomizationConfig(BaseModel):
    """Plate shape and randomization options."""
    algorithm: Algorithm = Algorithm.BALANCED
    keep_empty_in_last_plate: bool = True
    rows: int = Field(default_factory=lambda: settings.default_rows, ge=1)
    columns: int = Field(default_factory=lambda: settings.default_columns, ge=1)
    repeated_measures_attribute: Optional[str] = None
    qc_column: Optional[str] = None
    qc_values: List[str] = []
    max_plates: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None

    @classmethod
    def for_plate_type(cls, plate_type: PlateType, **kwargs) -> "RandomizationConfig":
        """Create a config sized for a standard plate."""
        rows, columns = PLATE_DIMENSIONS[plate_type.value]
        return cls(rows=rows, columns=columns, **kwargs)

    @property
    def plate_size(self) -> int:
        return self.rows * self.columns

    def get_plate_dimensions(self) -> Tuple[int, int]:
        """Get plate dimensions (rows, cols)."""
        return self.rows, self.columns

    @property
    def uses_repeated_measures(self) -> bool:
        return bool(self.repeated_measures_attribute)


# Plate dimensions constant
PLATE_DIMENSIONS = {
    96: (8, 12),
    384: (16, 24),
    1536: (32, 48),
}

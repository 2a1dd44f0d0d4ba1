"""Plate layout data models."""
from pydantic import BaseModel
from typing import Callable, Dict, List, Optional
from enum import Enum

from plate_randomizer.models.sample import Sample
from plate_randomizer.models.randomization import Algorithm
from plate_randomizer.models.repeated_measures import (
    RepeatedMeasuresGroup,
    RepeatedMeasuresSummary,
)


class ContentType(str, Enum):
    """Well content type."""
    EMPTY = "empty"
    SAMPLE = "sample"


class LayoutWell(BaseModel):
    """Layout well definition."""
    position: str  # e.g., "A01"
    row: int  # 0-based
    col: int  # 0-based
    content_type: ContentType = ContentType.EMPTY
    sample: Optional[Sample] = None
    covariate_key: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.content_type == ContentType.EMPTY


def format_position(row: int, col: int) -> str:
    """Format a 0-based (row, col) as a well position, e.g. (0, 0) -> "A01"."""
    return f"{row_label(row)}{col + 1:02d}"


def row_label(row: int) -> str:
    """Row letter(s): A..Z, then AA, AB, ... for plates taller than 26 rows."""
    if row < 26:
        return chr(ord('A') + row)
    return chr(ord('A') + row // 26 - 1) + chr(ord('A') + row % 26)


class PlateLayout(BaseModel):
    """Plate layout definition.

    Wells are stored row-major and cover every cell of the plate; empty cells
    carry ``ContentType.EMPTY``.
    """
    plate_index: int = 0
    rows: int
    columns: int
    wells: List[LayoutWell]

    @classmethod
    def from_cells(
        cls,
        plate_index: int,
        cells: List[List[Optional[Sample]]],
        columns: int,
        key_of: Optional[Callable[[Sample], str]] = None
    ) -> "PlateLayout":
        """Build a layout from a [row][col] matrix of samples, None for empty wells."""
        wells = []
        for r, row in enumerate(cells):
            for c in range(columns):
                sample = row[c] if c < len(row) else None
                if sample is None:
                    wells.append(LayoutWell(position=format_position(r, c), row=r, col=c))
                else:
                    wells.append(LayoutWell(
                        position=format_position(r, c),
                        row=r,
                        col=c,
                        content_type=ContentType.SAMPLE,
                        sample=sample,
                        covariate_key=key_of(sample) if key_of else None
                    ))
        return cls(plate_index=plate_index, rows=len(cells), columns=columns, wells=wells)

    @property
    def plate_label(self) -> str:
        return f"Plate {self.plate_index + 1}"

    @property
    def occupied_count(self) -> int:
        return sum(1 for w in self.wells if not w.is_empty)

    def get_well(self, position: str) -> Optional[LayoutWell]:
        """Get well by position."""
        for well in self.wells:
            if well.position == position:
                return well
        return None

    def row_wells(self, row: int) -> List[LayoutWell]:
        """Get the wells of one row in column order."""
        return sorted((w for w in self.wells if w.row == row), key=lambda w: w.col)

    def row_keys(self, row: int) -> List[str]:
        """Covariate keys of the occupied wells of a row, in column order."""
        return [w.covariate_key for w in self.row_wells(row) if not w.is_empty]

    def get_samples(self) -> List[Sample]:
        """Get all samples on the plate in row-major order."""
        return [w.sample for w in self.wells if not w.is_empty]

    def to_matrix(self) -> List[List[Optional[str]]]:
        """Convert to 2D matrix of covariate keys for visualization."""
        matrix = [[None for _ in range(self.columns)] for _ in range(self.rows)]
        for well in self.wells:
            if not well.is_empty:
                matrix[well.row][well.col] = well.covariate_key
        return matrix

    def to_grid(self) -> List[List[Optional[Sample]]]:
        """Convert to 2D matrix of samples (None for empty wells)."""
        grid = [[None for _ in range(self.columns)] for _ in range(self.rows)]
        for well in self.wells:
            if not well.is_empty:
                grid[well.row][well.col] = well.sample
        return grid


class RandomizationStatus(str, Enum):
    """Randomization status enumeration."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class Severity(str, Enum):
    """Diagnostic severity."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Diagnostic(BaseModel):
    """A structured diagnostic produced during randomization."""
    code: str
    message: str
    severity: Severity
    plate_index: Optional[int] = None
    row_index: Optional[int] = None
    group_key: Optional[str] = None
    deficit: Optional[int] = None


class RandomizationResult(BaseModel):
    """Randomization result."""
    status: RandomizationStatus
    plates: List[PlateLayout] = []
    assignment: Dict[int, List[Sample]] = {}
    diagnostics: List[Diagnostic] = []
    repeated_measures_groups: List[RepeatedMeasuresGroup] = []
    repeated_measures_summary: Optional[RepeatedMeasuresSummary] = None
    algorithm: Optional[Algorithm] = None
    seed: Optional[int] = None
    solve_time_ms: int = 0
    message: Optional[str] = None

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def grid(self) -> List[List[List[Optional[Sample]]]]:
        """Samples indexed as [plate][row][col], None for empty wells."""
        return [plate.to_grid() for plate in self.plates]

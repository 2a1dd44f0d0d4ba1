"""Spatial placement within rows and same-key adjacency analysis."""
import random
from typing import List, Optional, Sequence

from plate_randomizer.models import PlateLayout, Sample, SpatialClusters

HORIZONTAL_PENALTY = 10
VERTICAL_PENALTY = 10
CROSS_ROW_PENALTY = 8


def cluster_score(
    key: str,
    col: int,
    row_keys: Sequence[Optional[str]],
    above_keys: Optional[Sequence[Optional[str]]],
    columns: int,
) -> int:
    """Penalty for putting ``key`` at ``col`` given the cells placed so far."""
    score = 0
    if col > 0 and row_keys[col - 1] == key:
        score += HORIZONTAL_PENALTY
    if col + 1 < len(row_keys) and row_keys[col + 1] == key:
        score += HORIZONTAL_PENALTY
    if above_keys is not None:
        if above_keys[col] == key:
            score += VERTICAL_PENALTY
        if col == 0 and above_keys[columns - 1] == key:
            score += CROSS_ROW_PENALTY
    return score


def place_row_spatially(
    samples: Sequence[Sample],
    keys: Sequence[str],
    columns: int,
    above_keys: Optional[Sequence[Optional[str]]],
    rng: random.Random,
) -> List[Optional[Sample]]:
    """
    Fill a row cell by cell with the least clustering sample.

    Args:
        samples: Samples assigned to the row
        keys: Covariate key of each sample
        columns: Cells in the row
        above_keys: Keys of the previous row's cells (None for the first row)
        rng: Breaks ties between equally scored samples

    Returns:
        Row cells; samples fill columns 0..len(samples)-1, the rest are None
    """
    pending = list(range(len(samples)))
    cells: List[Optional[Sample]] = [None] * columns
    row_keys: List[Optional[str]] = [None] * columns
    for col in range(len(samples)):
        best: List[int] = []
        best_score = None
        for idx in pending:
            score = cluster_score(keys[idx], col, row_keys, above_keys, columns)
            if best_score is None or score < best_score:
                best, best_score = [idx], score
            elif score == best_score:
                best.append(idx)
        chosen = rng.choice(best)
        pending.remove(chosen)
        cells[col] = samples[chosen]
        row_keys[col] = keys[chosen]
    return cells


def analyze_spatial_clusters(
    plate: PlateLayout,
    matrix: Optional[List[List[Optional[str]]]] = None,
) -> SpatialClusters:
    """Count same-key horizontal, vertical and row-wrap adjacencies on a plate.

    ``matrix`` overrides the covariate keys stored on the wells.
    """
    if matrix is None:
        matrix = plate.to_matrix()
    clusters = SpatialClusters(plate_index=plate.plate_index)
    for row in range(plate.rows):
        for col in range(plate.columns):
            key = matrix[row][col]
            if key is None:
                continue
            if col + 1 < plate.columns and matrix[row][col + 1] == key:
                clusters.horizontal_clusters += 1
            if row + 1 < plate.rows and matrix[row + 1][col] == key:
                clusters.vertical_clusters += 1
            if col == plate.columns - 1 and row + 1 < plate.rows and matrix[row + 1][0] == key:
                clusters.cross_row_clusters += 1
    return clusters

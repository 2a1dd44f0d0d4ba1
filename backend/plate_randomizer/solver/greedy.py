"""Tolerance-based greedy placement.

Samples are taken in random order and each goes into the first row (plates in
order, rows in order) with a free cell that holds at most ``tolerance`` samples
of the same covariate key. Tolerance starts at zero and rises until the
sample fits. Finally every row is shuffled, empty cells included.
"""
import logging
import math
from collections import Counter
from typing import List, Optional, Sequence

from plate_randomizer.models import Sample
from plate_randomizer.solver.capacity import check_capacity
from plate_randomizer.solver.grouping import covariate_key
from plate_randomizer.solver.random_source import RandomSource

logger = logging.getLogger(__name__)


def greedy_place(
    samples: Sequence[Sample],
    covariates: Sequence[str],
    rows: int,
    columns: int,
    random_source: RandomSource,
    num_plates: Optional[int] = None,
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> List[List[List[Optional[Sample]]]]:
    """
    Place samples row by row, spreading covariate keys across rows.

    Returns:
        Cells indexed as [plate][row][col], None for empty wells

    Raises:
        CapacityError: if the plates cannot hold every sample
    """
    if num_plates is None:
        num_plates = math.ceil(len(samples) / (rows * columns))
    check_capacity(len(samples), [rows * columns] * num_plates)
    plates: List[List[List[Optional[Sample]]]] = [
        [[] for _ in range(rows)] for _ in range(num_plates)
    ]
    key_counts = [[Counter() for _ in range(rows)] for _ in range(num_plates)]

    order = list(samples)
    random_source.member.shuffle(order)

    for sample in order:
        key = covariate_key(sample, covariates, qc_column, qc_values)
        tolerance = 0
        placed = False
        while not placed:
            for p in range(num_plates):
                for r in range(rows):
                    if len(plates[p][r]) < columns and key_counts[p][r][key] <= tolerance:
                        plates[p][r].append(sample)
                        key_counts[p][r][key] += 1
                        placed = True
                        break
                if placed:
                    break
            tolerance += 1

    for p in range(num_plates):
        for r in range(rows):
            cells = plates[p][r] + [None] * (columns - len(plates[p][r]))
            random_source.row.shuffle(cells)
            plates[p][r] = cells

    logger.info(f"Greedy placement: {len(samples)} samples on {num_plates} plate(s)")
    return plates

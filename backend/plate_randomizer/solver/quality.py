"""Quality scoring of a finished randomization."""
import logging
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from plate_randomizer.config import settings
from plate_randomizer.models import (
    CovariateGroupBalance,
    DisplayConfig,
    PlateLayout,
    PlateQuality,
    QualityLevel,
    QualityScore,
    Sample,
    QUALITY_LEVEL_BANDS,
)
from plate_randomizer.solver.grouping import covariate_key
from plate_randomizer.solver.run_statistics import count_runs, expected_runs_by_group
from plate_randomizer.solver.spatial import analyze_spatial_clusters

logger = logging.getLogger(__name__)

MIN_ROW_LENGTH_TO_SCORE = 4
RUN_PENALTY_FACTOR = 10
RUN_LENGTH_EXPONENT = 1.5

NEIGHBOR_OFFSETS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)]


def score_to_level(score: float) -> QualityLevel:
    """Map a 0-100 score to its quality level."""
    for lower_bound, level in QUALITY_LEVEL_BANDS:
        if score >= lower_bound:
            return level
    return QualityLevel.BAD


def balance_score(
    plate_samples: Sequence[Sample],
    global_counts: Mapping[str, int],
    covariates: Sequence[str],
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> Tuple[float, List[CovariateGroupBalance]]:
    """
    Proportional balance of one plate against the global covariate mix.

    Each group's relative deviation ``|actual - expected| / expected`` (1 when
    nothing was expected but something is present) is weighted by the group's
    global proportion. The weighted mean, capped at 1, gives
    ``100 * (1 - deviation)``.
    """
    total = sum(global_counts.values())
    plate_size = len(plate_samples)
    plate_counts = Counter(
        covariate_key(s, covariates, qc_column, qc_values) for s in plate_samples
    )

    balances = []
    weighted_sum = 0.0
    weight_total = 0.0
    for key, global_count in global_counts.items():
        expected_proportion = global_count / total if total else 0.0
        expected = global_count * plate_size / total if total else 0.0
        actual = plate_counts.get(key, 0)
        if expected > 0:
            deviation = abs(actual - expected) / expected
        else:
            deviation = 1.0 if actual > 0 else 0.0
        weighted = deviation * expected_proportion
        weighted_sum += weighted
        weight_total += expected_proportion
        balances.append(CovariateGroupBalance(
            group_key=key,
            actual_count=actual,
            expected_count=expected,
            actual_proportion=actual / plate_size if plate_size else 0.0,
            expected_proportion=expected_proportion,
            relative_deviation=deviation,
            weighted_deviation=weighted,
            balance_score=100 * (1 - min(deviation, 1.0)),
        ))

    overall_deviation = weighted_sum / weight_total if weight_total else 0.0
    return 100 * (1 - min(overall_deviation, 1.0)), balances


def row_clustering_score(keys: Sequence[str], exact_threshold: Optional[int] = None) -> float:
    """
    Penalise a row for more same-key runs than random ordering would produce.

    Every (key, length) run count above its expectation costs
    ``excess * length ** 1.5 * 10``. Rows with three or fewer samples score 100.
    """
    if len(keys) < MIN_ROW_LENGTH_TO_SCORE:
        return 100.0
    expectations = expected_runs_by_group(keys, exact_threshold)
    penalty = 0.0
    for key, by_length in count_runs(keys).items():
        for length, observed in by_length.items():
            excess = observed - expectations.get(key, {}).get(length, 0.0)
            if excess > 0:
                penalty += excess * length ** RUN_LENGTH_EXPONENT * RUN_PENALTY_FACTOR
    return max(0.0, 100.0 - penalty)


def spatial_score(matrix: List[List[Optional[str]]]) -> float:
    """Percentage of occupied 8-neighbor pairs whose keys differ; 100 with no pairs."""
    pairs = 0
    different = 0
    rows = len(matrix)
    for r, row in enumerate(matrix):
        for c, key in enumerate(row):
            if key is None:
                continue
            for dr, dc in NEIGHBOR_OFFSETS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < rows and 0 <= nc < len(matrix[nr]):
                    neighbor = matrix[nr][nc]
                    if neighbor is None:
                        continue
                    pairs += 1
                    if neighbor != key:
                        different += 1
    if pairs == 0:
        return 100.0
    return different / pairs * 100


def _key_matrix(
    plate: PlateLayout,
    covariates: Sequence[str],
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> List[List[Optional[str]]]:
    matrix = [[None for _ in range(plate.columns)] for _ in range(plate.rows)]
    for well in plate.wells:
        if not well.is_empty and well.sample is not None:
            matrix[well.row][well.col] = covariate_key(
                well.sample, covariates, qc_column, qc_values
            )
    return matrix


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, 1)


def compute_quality(
    samples: Sequence[Sample],
    assignment: Mapping[int, Sequence[Sample]],
    plates: Sequence[PlateLayout],
    covariates: Sequence[str],
    display_config: Optional[DisplayConfig] = None,
    exact_threshold: Optional[int] = None,
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> QualityScore:
    """
    Grade a randomization from 0 to 100.

    Args:
        samples: All samples that were randomized
        assignment: Plate index to samples on that plate
        plates: Plate layouts (row and spatial scores need them)
        covariates: Covariate attribute names used for grouping
        display_config: Which optional sub-scores count towards the overall score
        exact_threshold: Longest row scored with exact run statistics
        qc_column: Attribute marking QC samples, which are scored as their own groups
        qc_values: Values of ``qc_column`` that mark a sample as QC

    Returns:
        QualityScore with per-plate details, averaged sub-scores and level
    """
    display_config = display_config or DisplayConfig()
    if exact_threshold is None:
        exact_threshold = settings.exact_run_threshold

    global_counts = Counter(covariate_key(s, covariates, qc_column, qc_values) for s in samples)
    layouts: Dict[int, PlateLayout] = {p.plate_index: p for p in plates}
    plate_indexes = sorted(set(assignment) | set(layouts))

    plate_qualities = []
    spatial_clusters = []
    balances: List[float] = []
    row_averages: List[float] = []
    spatial_averages: List[float] = []
    for plate_index in plate_indexes:
        layout = layouts.get(plate_index)
        if plate_index in assignment:
            plate_samples = list(assignment[plate_index])
        else:
            plate_samples = layout.get_samples()

        balance, group_balances = balance_score(
            plate_samples, global_counts, covariates, qc_column, qc_values
        )
        enabled = [balance]
        balances.append(balance)

        row_score = None
        row_scores: Dict[int, float] = {}
        spatial = None
        if layout is not None:
            matrix = _key_matrix(layout, covariates, qc_column, qc_values)
            for row in range(layout.rows):
                keys = [k for k in matrix[row] if k is not None]
                if keys:
                    row_scores[row] = row_clustering_score(keys, exact_threshold)
            row_score = _mean(list(row_scores.values()))
            if row_score is None:
                row_score = 100.0
            row_averages.append(row_score)
            spatial = spatial_score(matrix)
            spatial_averages.append(spatial)
            spatial_clusters.append(analyze_spatial_clusters(layout, matrix))
            if display_config.show_row_score:
                enabled.append(row_score)
            if display_config.show_clustering_score:
                enabled.append(spatial)

        plate_qualities.append(PlateQuality(
            plate_index=plate_index,
            balance_score=round(balance, 1),
            row_clustering_score=_round(row_score),
            row_scores={row: round(s, 1) for row, s in row_scores.items()},
            spatial_score=_round(spatial),
            overall_score=round(_mean(enabled), 1),
            group_balances=group_balances,
        ))

    avg_balance = _mean(balances)
    avg_row = _mean(row_averages)
    avg_spatial = _mean(spatial_averages)
    if avg_balance is None:
        avg_balance = 100.0

    enabled = [avg_balance]
    if display_config.show_row_score and avg_row is not None:
        enabled.append(avg_row)
    if display_config.show_clustering_score and avg_spatial is not None:
        enabled.append(avg_spatial)
    overall = round(_mean(enabled), 1)
    level = score_to_level(overall)

    logger.info(
        f"Quality: overall {overall} ({level.value}), balance {avg_balance:.1f}, "
        f"rows {avg_row if avg_row is None else round(avg_row, 1)}, "
        f"spatial {avg_spatial if avg_spatial is None else round(avg_spatial, 1)}"
    )
    return QualityScore(
        plates=plate_qualities,
        balance_score=round(avg_balance, 1),
        row_clustering_score=_round(avg_row),
        spatial_score=_round(avg_spatial),
        overall_score=overall,
        level=level,
        spatial_clusters=spatial_clusters,
    )

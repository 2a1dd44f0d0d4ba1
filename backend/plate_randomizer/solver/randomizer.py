"""Plate randomization entry point."""
import time
import logging
from typing import List, Optional, Sequence

from plate_randomizer.config import settings
from plate_randomizer.models import (
    Algorithm,
    Diagnostic,
    PlateLayout,
    RandomizationConfig,
    RandomizationResult,
    RandomizationStatus,
    RepeatedMeasuresGroup,
    RepeatedMeasuresSummary,
    Sample,
)
from plate_randomizer.solver.capacity import (
    check_capacity,
    plan_plate_capacities,
    plan_row_capacities,
)
from plate_randomizer.solver.diagnostics import is_fatal, make_diagnostic
from plate_randomizer.solver.distributor import OverflowPriority, distribute_to_containers
from plate_randomizer.solver.errors import ConfigurationError, PlacementError, RandomizationError
from plate_randomizer.solver.greedy import greedy_place
from plate_randomizer.solver.grouping import covariate_key, group_by_covariates
from plate_randomizer.solver.random_source import RandomSource
from plate_randomizer.solver.repeated_measures import (
    BalanceObjective,
    RepeatedMeasuresSolver,
    build_repeated_measures_groups,
    check_repeated_measures_config,
    check_repeated_measures_groups,
    find_split_groups,
    summarize_repeated_measures,
)
from plate_randomizer.solver.spatial import place_row_spatially
from plate_randomizer.solver.validator import validate_distribution

logger = logging.getLogger(__name__)

Cells = List[List[Optional[Sample]]]


class PlateRandomizer:
    """Covariate-balanced randomization of samples onto plates."""

    def __init__(
        self,
        config: RandomizationConfig,
        covariates: Sequence[str],
        random_source: Optional[RandomSource] = None,
        objective: Optional[BalanceObjective] = None,
        row_priority: OverflowPriority = OverflowPriority.NONE,
    ):
        self.config = config
        self.covariates = list(covariates)
        self.qc_column = config.qc_column
        self.qc_values = list(config.qc_values)
        self.rows, self.cols = config.get_plate_dimensions()
        self.plate_size = config.plate_size
        self.seed = config.seed if config.seed is not None else settings.random_seed
        self.random_source = random_source or RandomSource(self.seed)
        self.objective = objective
        self.row_priority = row_priority

        self.diagnostics: List[Diagnostic] = []
        self.repeated_measures_groups: List[RepeatedMeasuresGroup] = []
        self.repeated_measures_summary: Optional[RepeatedMeasuresSummary] = None
        self.unplaced = 0
        self._plate_groups: List[List[RepeatedMeasuresGroup]] = []

    def solve(self, samples: Sequence[Sample]) -> RandomizationResult:
        """
        Randomize samples onto plates.

        Args:
            samples: Samples to place

        Returns:
            RandomizationResult with plate layouts, or FAILED with the
            diagnostics that stopped the run
        """
        start_time = time.time()
        self.diagnostics = []
        self.unplaced = 0
        self.repeated_measures_groups = []
        self.repeated_measures_summary = None
        logger.info(
            f"Randomizing {len(samples)} samples: algorithm={self.config.algorithm.value}, "
            f"plate={self.rows}x{self.cols}, covariates={self.covariates}, "
            f"repeated_measures={self.config.repeated_measures_attribute}, "
            f"qc={self.qc_column}:{self.qc_values}"
        )

        try:
            if self.config.algorithm == Algorithm.GREEDY:
                plate_cells = self._solve_greedy(samples)
            else:
                plate_cells = self._solve_balanced(samples)
        except RandomizationError as e:
            logger.error(f"Randomization failed: {e.message}")
            return RandomizationResult(
                status=RandomizationStatus.FAILED,
                diagnostics=self.diagnostics + e.diagnostics,
                repeated_measures_groups=self.repeated_measures_groups,
                algorithm=self.config.algorithm,
                seed=self.seed,
                solve_time_ms=int((time.time() - start_time) * 1000),
                message=e.message,
            )

        plates = [
            PlateLayout.from_cells(idx, cells, self.cols, self._key)
            for idx, cells in enumerate(plate_cells)
        ]
        assignment = {plate.plate_index: plate.get_samples() for plate in plates}
        solve_time = int((time.time() - start_time) * 1000)

        if self.unplaced:
            status = RandomizationStatus.PARTIAL
            message = f"{self.unplaced} sample(s) could not be placed"
        else:
            status = RandomizationStatus.SUCCESS
            message = f"Placed {len(samples)} samples on {len(plates)} plate(s)"
        logger.info(f"{message} in {solve_time} ms")

        return RandomizationResult(
            status=status,
            plates=plates,
            assignment=assignment,
            diagnostics=self.diagnostics,
            repeated_measures_groups=self.repeated_measures_groups,
            repeated_measures_summary=self.repeated_measures_summary,
            algorithm=self.config.algorithm,
            seed=self.seed,
            solve_time_ms=solve_time,
            message=message,
        )

    def _key(self, sample: Sample) -> str:
        return covariate_key(sample, self.covariates, self.qc_column, self.qc_values)

    def _groups(self, samples: Sequence[Sample]):
        return group_by_covariates(samples, self.covariates, self.qc_column, self.qc_values)

    def _plate_capacities(self, total: int) -> List[int]:
        capacities = plan_plate_capacities(
            total, self.rows, self.cols, self.config.keep_empty_in_last_plate
        )
        max_plates = self.config.max_plates
        if max_plates is not None and len(capacities) > max_plates:
            capacities = capacities[:max_plates]
        check_capacity(total, capacities, "plate")
        return capacities

    def _solve_greedy(self, samples: Sequence[Sample]) -> List[Cells]:
        if self.config.uses_repeated_measures:
            message = "The greedy algorithm does not support a repeated-measures attribute"
            raise ConfigurationError(message, [
                make_diagnostic("unsupported_algorithm_option", message)
            ])
        if not samples:
            return []
        num_plates = len(plan_plate_capacities(len(samples), self.rows, self.cols, False))
        if self.config.max_plates is not None:
            num_plates = min(num_plates, self.config.max_plates)
        return greedy_place(
            samples, self.covariates, self.rows, self.cols, self.random_source, num_plates,
            self.qc_column, self.qc_values,
        )

    def _solve_balanced(self, samples: Sequence[Sample]) -> List[Cells]:
        attribute = self.config.repeated_measures_attribute
        if attribute:
            check_repeated_measures_config(attribute, self.covariates)
        if not samples:
            return []

        capacities = self._plate_capacities(len(samples))
        self.diagnostics.append(make_diagnostic(
            "distribution_summary",
            f"{len(samples)} samples in {len(self._groups(samples))} "
            f"covariate group(s) across {len(capacities)} plate(s) with capacities {capacities}",
        ))

        if attribute:
            plate_samples = self._assign_repeated_measures(samples, attribute, capacities)
        else:
            plate_samples = self._assign_plates(samples, capacities)

        plate_cells = [
            self._fill_plate(idx, plate) for idx, plate in enumerate(plate_samples)
        ]

        if attribute:
            assignment = {
                idx: [s for row in cells for s in row if s is not None]
                for idx, cells in enumerate(plate_cells)
            }
            split = find_split_groups(assignment, attribute)
            self.repeated_measures_summary = summarize_repeated_measures(
                self.repeated_measures_groups, self._plate_groups, split
            )
            if split:
                message = f"Repeated-measures groups split across plates: {', '.join(split)}"
                raise PlacementError(message, [
                    make_diagnostic("repeated_measures_group_split", message, group_key=group_id)
                    for group_id in split
                ])
        return plate_cells

    def _assign_plates(self, samples: Sequence[Sample], capacities: List[int]) -> List[List[Sample]]:
        groups = self._groups(samples)
        outcome = distribute_to_containers(
            groups,
            capacities,
            self.random_source,
            reference_capacity=self.plate_size,
            priority=OverflowPriority.FULL_CAPACITY_FIRST,
            level="plate",
        )
        self.diagnostics.extend(outcome.diagnostics)
        self.unplaced += outcome.unplaced_count
        self.diagnostics.extend(validate_distribution(
            groups,
            outcome.group_counts,
            capacities,
            concentrate_empty_in_last=self.config.keep_empty_in_last_plate,
            reference_capacity=self.plate_size,
            level="plate",
        ))
        logger.info(f"Samples per plate: {[len(c) for c in outcome.containers]}")
        return outcome.containers

    def _assign_repeated_measures(
        self,
        samples: Sequence[Sample],
        attribute: str,
        capacities: List[int],
    ) -> List[List[Sample]]:
        groups = build_repeated_measures_groups(
            samples, attribute, self.covariates, self.qc_column, self.qc_values
        )
        self.repeated_measures_groups = groups

        checks = check_repeated_measures_groups(groups, self.plate_size)
        errors = [d for d in checks if is_fatal(d.code)]
        self.diagnostics.extend(d for d in checks if not is_fatal(d.code))
        if errors:
            message = "; ".join(d.message for d in errors)
            raise ConfigurationError(message, errors)

        solver = RepeatedMeasuresSolver(self.objective)
        self._plate_groups = solver.assign(groups, capacities)

        plate_samples = []
        for plate_groups in self._plate_groups:
            flat = [s for group in plate_groups for s in group.samples]
            self.random_source.member.shuffle(flat)
            plate_samples.append(flat)
        return plate_samples

    def _fill_plate(self, plate_index: int, plate_samples: List[Sample]) -> Cells:
        """Split one plate's samples across rows and order each row."""
        row_capacities = plan_row_capacities(len(plate_samples), self.rows, self.cols)
        groups = self._groups(plate_samples)
        outcome = distribute_to_containers(
            groups,
            row_capacities,
            self.random_source,
            reference_capacity=self.cols,
            priority=self.row_priority,
            level="row",
            plate_index=plate_index,
        )
        self.diagnostics.extend(outcome.diagnostics)
        self.unplaced += outcome.unplaced_count
        self.diagnostics.extend(validate_distribution(
            groups,
            outcome.group_counts,
            row_capacities,
            level="row",
            plate_index=plate_index,
        ))

        cells: Cells = []
        above: Optional[List[Optional[str]]] = None
        for r in range(self.rows):
            row_samples = outcome.containers[r] if r < len(outcome.containers) else []
            if self.config.algorithm == Algorithm.BALANCED_SPATIAL:
                row_cells = place_row_spatially(
                    row_samples,
                    [self._key(s) for s in row_samples],
                    self.cols,
                    above,
                    self.random_source.row,
                )
            else:
                shuffled = list(row_samples)
                self.random_source.row.shuffle(shuffled)
                row_cells = shuffled + [None] * (self.cols - len(shuffled))
            above = [self._key(s) if s is not None else None for s in row_cells]
            cells.append(row_cells)
        return cells


def distribute(
    samples: Sequence[Sample],
    covariates: Sequence[str],
    config: RandomizationConfig,
    random_source: Optional[RandomSource] = None,
) -> RandomizationResult:
    """
    Randomize samples onto plates.

    Args:
        samples: Samples to place
        covariates: Ordered covariate attribute names to balance on
        config: Plate shape, algorithm and options
        random_source: Generators to use; seeded from ``config.seed`` when omitted

    Returns:
        RandomizationResult
    """
    return PlateRandomizer(config, covariates, random_source).solve(samples)

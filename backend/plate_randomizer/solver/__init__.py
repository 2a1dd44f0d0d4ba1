"""Randomization engine."""
from plate_randomizer.solver.grouping import covariate_key, group_by_covariates
from plate_randomizer.solver.capacity import plan_plate_capacities, plan_row_capacities
from plate_randomizer.solver.distributor import (
    OverflowPriority,
    DistributionOutcome,
    distribute_to_containers
)
from plate_randomizer.solver.repeated_measures import (
    RepeatedMeasuresSolver,
    BalanceObjective,
    SumAbsoluteDeviation,
    MaxAbsoluteDeviation,
    build_repeated_measures_groups,
    validate_repeated_measures_groups
)
from plate_randomizer.solver.validator import validate_distribution
from plate_randomizer.solver.run_statistics import expected_runs_by_group
from plate_randomizer.solver.quality import compute_quality, score_to_level
from plate_randomizer.solver.random_source import RandomSource
from plate_randomizer.solver.errors import (
    RandomizationError,
    ConfigurationError,
    CapacityError,
    PlacementError
)
from plate_randomizer.solver.randomizer import PlateRandomizer, distribute

__all__ = [
    "covariate_key", "group_by_covariates",
    "plan_plate_capacities", "plan_row_capacities",
    "OverflowPriority", "DistributionOutcome", "distribute_to_containers",
    "RepeatedMeasuresSolver", "BalanceObjective", "SumAbsoluteDeviation",
    "MaxAbsoluteDeviation", "build_repeated_measures_groups",
    "validate_repeated_measures_groups",
    "validate_distribution", "expected_runs_by_group",
    "compute_quality", "score_to_level", "RandomSource",
    "RandomizationError", "ConfigurationError", "CapacityError", "PlacementError",
    "PlateRandomizer", "distribute"
]

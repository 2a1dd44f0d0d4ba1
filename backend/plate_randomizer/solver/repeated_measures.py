"""Plate assignment that keeps repeated-measures groups together.

Samples sharing a repeated-measures identifier (e.g. the same subject) form an
atomic group that must land on one plate. Groups are placed largest first; each
goes to the plate, among those with enough free wells, whose covariate mix
would end up closest to the global mix. This is a greedy heuristic without
backtracking, so a feasible packing can be missed when plates are nearly full.
"""
import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence

from plate_randomizer.models import (
    Diagnostic,
    GroupSizeDistribution,
    GroupValidationReport,
    RepeatedMeasuresGroup,
    RepeatedMeasuresSummary,
    Sample,
    Severity,
)
from plate_randomizer.solver.diagnostics import make_diagnostic
from plate_randomizer.solver.errors import ConfigurationError, PlacementError
from plate_randomizer.solver.grouping import covariate_key

logger = logging.getLogger(__name__)

SINGLETON_PREFIX = "__singleton_"
LARGE_GROUP_RATIO = 0.5
SINGLETON_WARNING_RATIO = 0.8
SINGLETON_WARNING_MIN_GROUPS = 10


def is_missing_identifier(value: Optional[str]) -> bool:
    """Empty, whitespace-only and "n/a" identifiers count as missing."""
    if value is None:
        return True
    value = value.strip()
    return not value or value.lower() == "n/a"


def check_repeated_measures_config(attribute: Optional[str], covariates: Sequence[str]) -> None:
    """Reject a repeated-measures attribute that is also a covariate."""
    if attribute and attribute in covariates:
        message = (
            f"Repeated-measures attribute '{attribute}' is also selected as a covariate; "
            f"samples cannot be both kept together and balanced on it"
        )
        raise ConfigurationError(message, [
            make_diagnostic("repeated_measures_attribute_is_covariate", message)
        ])


def build_repeated_measures_groups(
    samples: Sequence[Sample],
    attribute: str,
    covariates: Sequence[str],
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> List[RepeatedMeasuresGroup]:
    """
    Group samples by their repeated-measures identifier.

    Samples without an identifier become singleton groups with a generated id.
    Groups are returned in first-seen order. Compositions are keyed like
    covariate groups, QC prefix included.
    """
    members: Dict[str, List[Sample]] = {}
    singletons = set()
    for i, sample in enumerate(samples):
        value = sample.get(attribute)
        if is_missing_identifier(value):
            group_id = f"{SINGLETON_PREFIX}{i}"
            singletons.add(group_id)
        else:
            group_id = value.strip()
        members.setdefault(group_id, []).append(sample)

    groups = []
    for group_id, group_samples in members.items():
        composition = Counter(
            covariate_key(s, covariates, qc_column, qc_values) for s in group_samples
        )
        groups.append(RepeatedMeasuresGroup(
            group_id=group_id,
            samples=group_samples,
            treatment_composition=dict(composition),
            size=len(group_samples),
            is_singleton=group_id in singletons,
        ))
    logger.info(
        f"Built {len(groups)} repeated-measures groups "
        f"({len(singletons)} singletons) from {len(samples)} samples"
    )
    return groups


def check_repeated_measures_groups(
    groups: Sequence[RepeatedMeasuresGroup],
    plate_capacity: int,
) -> List[Diagnostic]:
    """Diagnostics for groups larger than a plate, over half a plate, or mostly singletons."""
    diagnostics = []
    for group in groups:
        if group.size > plate_capacity:
            diagnostics.append(make_diagnostic(
                "repeated_measures_group_oversized",
                f"Group '{group.group_id}' has {group.size} samples, more than "
                f"the plate capacity of {plate_capacity}",
                group_key=group.group_id,
                deficit=group.size - plate_capacity,
            ))
        elif group.size > plate_capacity * LARGE_GROUP_RATIO:
            pct = group.size / plate_capacity * 100
            diagnostics.append(make_diagnostic(
                "repeated_measures_group_large",
                f"Group '{group.group_id}' has {group.size} samples "
                f"({pct:.0f}% of plate capacity), which limits balancing across plates",
                group_key=group.group_id,
            ))

    if len(groups) > SINGLETON_WARNING_MIN_GROUPS:
        singleton_count = sum(1 for g in groups if g.is_singleton)
        ratio = singleton_count / len(groups)
        if ratio > SINGLETON_WARNING_RATIO:
            diagnostics.append(make_diagnostic(
                "repeated_measures_mostly_singletons",
                f"{ratio * 100:.0f}% of groups are singletons; the repeated-measures "
                f"attribute may be wrong or mostly empty",
            ))
    return diagnostics


def validate_repeated_measures_groups(
    groups: Sequence[RepeatedMeasuresGroup],
    plate_capacity: int,
) -> GroupValidationReport:
    """
    Check groups against the plate capacity.

    Args:
        groups: Repeated-measures groups
        plate_capacity: Wells per plate

    Returns:
        GroupValidationReport; groups larger than a plate are errors, groups
        over half a plate and a mostly-singleton grouping are warnings
    """
    diagnostics = check_repeated_measures_groups(groups, plate_capacity)
    return GroupValidationReport(
        errors=[d.message for d in diagnostics if d.severity == Severity.ERROR],
        warnings=[d.message for d in diagnostics if d.severity == Severity.WARNING],
    )


def target_proportions(groups: Sequence[RepeatedMeasuresGroup]) -> Dict[str, float]:
    """Global proportion of every covariate key across all groups."""
    totals: Counter = Counter()
    for group in groups:
        totals.update(group.treatment_composition)
    size = sum(totals.values())
    if size == 0:
        return {}
    return {key: count / size for key, count in totals.items()}


class BalanceObjective(ABC):
    """Scores a plate's covariate mix against the target mix; lower is better."""

    @abstractmethod
    def score(self, composition: Mapping[str, int], size: int, targets: Mapping[str, float]) -> float:
        ...

    def _deviations(self, composition, size, targets) -> List[float]:
        if size == 0:
            return [0.0 for _ in targets]
        return [abs(composition.get(key, 0) / size - target) for key, target in targets.items()]


class SumAbsoluteDeviation(BalanceObjective):
    """Sum over covariate keys of |plate proportion - target proportion|."""

    def score(self, composition, size, targets) -> float:
        return sum(self._deviations(composition, size, targets))


class MaxAbsoluteDeviation(BalanceObjective):
    """Largest |plate proportion - target proportion| over covariate keys."""

    def score(self, composition, size, targets) -> float:
        return max(self._deviations(composition, size, targets), default=0.0)


class RepeatedMeasuresSolver:
    """Best-fit assignment of repeated-measures groups to plates."""

    def __init__(self, objective: Optional[BalanceObjective] = None):
        self.objective = objective or SumAbsoluteDeviation()

    def assign(
        self,
        groups: Sequence[RepeatedMeasuresGroup],
        capacities: List[int],
    ) -> List[List[RepeatedMeasuresGroup]]:
        """
        Assign every group to one plate.

        Args:
            groups: Repeated-measures groups
            capacities: Capacity of each plate

        Returns:
            Groups per plate, in plate order

        Raises:
            PlacementError: if a group does not fit into any plate's free wells
        """
        targets = target_proportions(groups)
        plates: List[List[RepeatedMeasuresGroup]] = [[] for _ in capacities]
        used = [0] * len(capacities)
        compositions = [Counter() for _ in capacities]

        ordered = sorted(groups, key=lambda g: g.size, reverse=True)
        for group in ordered:
            best_idx = None
            best_score = None
            for idx, capacity in enumerate(capacities):
                if capacity - used[idx] < group.size:
                    continue
                hypothetical = compositions[idx] + Counter(group.treatment_composition)
                score = self.objective.score(hypothetical, used[idx] + group.size, targets)
                if best_score is None or score < best_score:
                    best_idx, best_score = idx, score

            if best_idx is None:
                free = ", ".join(
                    f"plate {i + 1}: {capacity - used[i]} free"
                    for i, capacity in enumerate(capacities)
                )
                message = (
                    f"Cannot place repeated-measures group '{group.group_id}' "
                    f"({group.size} samples); {free}"
                )
                logger.error(message)
                raise PlacementError(message, [make_diagnostic(
                    "repeated_measures_placement_failed", message,
                    group_key=group.group_id,
                    deficit=group.size - max((c - u for c, u in zip(capacities, used)), default=0),
                )])

            plates[best_idx].append(group)
            used[best_idx] += group.size
            compositions[best_idx].update(group.treatment_composition)
            logger.debug(
                f"Group '{group.group_id}' ({group.size}) -> plate {best_idx + 1} "
                f"(score {best_score:.4f})"
            )

        logger.info(f"Repeated-measures plate usage: {used} of {capacities}")
        return plates


def find_split_groups(
    assignment: Mapping[int, Sequence[Sample]],
    attribute: str,
) -> List[str]:
    """Identifiers whose samples appear on more than one plate."""
    plates_by_id: Dict[str, set] = {}
    for plate_index, samples in assignment.items():
        for sample in samples:
            value = sample.get(attribute)
            if is_missing_identifier(value):
                continue
            plates_by_id.setdefault(value.strip(), set()).add(plate_index)
    return sorted(group_id for group_id, plates in plates_by_id.items() if len(plates) > 1)


def group_size_distribution(groups: Sequence[RepeatedMeasuresGroup]) -> GroupSizeDistribution:
    distribution = GroupSizeDistribution()
    for group in groups:
        if group.size == 1:
            distribution.singletons += 1
        elif group.size <= 5:
            distribution.small += 1
        elif group.size <= 15:
            distribution.medium += 1
        else:
            distribution.large += 1
    return distribution


def summarize_repeated_measures(
    groups: Sequence[RepeatedMeasuresGroup],
    plate_groups: List[List[RepeatedMeasuresGroup]],
    split_groups: Sequence[str],
) -> RepeatedMeasuresSummary:
    """Constraint metrics reported with a repeated-measures run."""
    return RepeatedMeasuresSummary(
        constraints_satisfied=not split_groups,
        violations=len(split_groups),
        split_groups=list(split_groups),
        plate_group_counts={idx: len(plate) for idx, plate in enumerate(plate_groups)},
        group_size_distribution=group_size_distribution(groups),
    )

"""Two-phase proportional distribution of covariate groups across containers.

The same routine splits samples across plates and, per plate, across rows.

Phase 1 gives every container its proportional share of each group:
``floor(base * capacity / reference_capacity)`` with
``base = floor(group_size / container_count)``, clamped to the container's
free space. Phase 2 spreads what is left, one sample at a time, round-robin
over the containers that still have room. Groups that got nothing in phase 1
go first, then partially placed groups; within each bucket larger remainders
go first.
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from plate_randomizer.models import Diagnostic, Sample
from plate_randomizer.solver.capacity import check_capacity
from plate_randomizer.solver.diagnostics import make_diagnostic
from plate_randomizer.solver.random_source import RandomSource

logger = logging.getLogger(__name__)


class OverflowPriority(str, Enum):
    """Container order used during overflow placement."""
    NONE = "none"
    FULL_CAPACITY_FIRST = "full_capacity_first"
    FEWEST_OF_GROUP = "fewest_of_group"


@dataclass
class DistributionOutcome:
    """Samples per container plus what could not be placed."""
    containers: List[List[Sample]]
    capacities: List[int]
    group_counts: List[Counter]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    shortfall: Dict[str, int] = field(default_factory=dict)

    @property
    def placed_count(self) -> int:
        return sum(len(c) for c in self.containers)

    @property
    def unplaced_count(self) -> int:
        return sum(self.shortfall.values())


def distribute_to_containers(
    groups: Mapping[str, Sequence[Sample]],
    capacities: List[int],
    random_source: RandomSource,
    reference_capacity: Optional[int] = None,
    priority: OverflowPriority = OverflowPriority.NONE,
    level: str = "plate",
    plate_index: Optional[int] = None,
) -> DistributionOutcome:
    """
    Distribute covariate groups across capacity-bounded containers.

    Args:
        groups: Covariate key to group members
        capacities: Capacity of each container, in container order
        random_source: Generators for member and container shuffles
        reference_capacity: Full container size; defaults to the largest capacity
        priority: Container order for overflow placement
        level: "plate" or "row", used in diagnostics
        plate_index: Plate being split into rows, used in diagnostics

    Returns:
        DistributionOutcome with one sample list per container

    Raises:
        CapacityError: if the groups hold more samples than the containers
    """
    total = sum(len(members) for members in groups.values())
    check_capacity(total, capacities, level, plate_index)

    containers: List[List[Sample]] = [[] for _ in capacities]
    counts: List[Counter] = [Counter() for _ in capacities]
    outcome = DistributionOutcome(containers, list(capacities), counts)
    if not capacities or total == 0:
        return outcome

    reference = reference_capacity or max(capacities)
    num_containers = len(capacities)

    # Phase 1: proportional minimum per container
    remaining: Dict[str, List[Sample]] = {}
    placed_first: Dict[str, int] = {}
    for key, members in groups.items():
        shuffled = list(members)
        random_source.member.shuffle(shuffled)
        base = len(shuffled) // num_containers
        cursor = 0
        if base > 0:
            for idx, capacity in enumerate(capacities):
                quota = (base * capacity) // reference
                quota = min(quota, capacity - len(containers[idx]), len(shuffled) - cursor)
                if quota <= 0:
                    continue
                containers[idx].extend(shuffled[cursor:cursor + quota])
                counts[idx][key] += quota
                cursor += quota
        placed_first[key] = cursor
        if cursor < len(shuffled):
            remaining[key] = shuffled[cursor:]

    logger.debug(
        f"[{level}] phase 1 placed {sum(placed_first.values())}/{total}, "
        f"{len(remaining)} group(s) deferred"
    )

    # Phase 2: unplaced groups first, then partially placed ones
    unplaced = [k for k in remaining if placed_first[k] == 0]
    overflow = [k for k in remaining if placed_first[k] > 0]
    unplaced.sort(key=lambda k: len(remaining[k]), reverse=True)
    overflow.sort(key=lambda k: len(remaining[k]), reverse=True)

    for key in unplaced + overflow:
        members = remaining[key]
        order = _overflow_order(
            key, placed_first[key] > 0, outcome, reference, priority, random_source
        )
        placed = _place_round_robin(key, members, order, outcome)
        missing = len(members) - placed
        if missing > 0:
            outcome.shortfall[key] = missing
            message = (
                f"Could not place {missing} of {len(members)} remaining samples "
                f"of group '{key}': every {level} is full"
            )
            if plate_index is not None:
                message += f" on plate {plate_index + 1}"
            logger.warning(message)
            outcome.diagnostics.append(make_diagnostic(
                "distribution_shortfall", message,
                plate_index=plate_index, group_key=key, deficit=missing
            ))

    logger.debug(f"[{level}] container sizes: {[len(c) for c in containers]}")
    return outcome


def _overflow_order(
    key: str,
    is_overflow: bool,
    outcome: DistributionOutcome,
    reference: int,
    priority: OverflowPriority,
    random_source: RandomSource,
) -> List[int]:
    available = [
        idx for idx, capacity in enumerate(outcome.capacities)
        if len(outcome.containers[idx]) < capacity
    ]
    if priority == OverflowPriority.FULL_CAPACITY_FIRST and is_overflow:
        full = [idx for idx in available if outcome.capacities[idx] >= reference]
        partial = [idx for idx in available if outcome.capacities[idx] < reference]
        random_source.container.shuffle(full)
        random_source.container.shuffle(partial)
        return full + partial

    random_source.container.shuffle(available)
    if priority == OverflowPriority.FEWEST_OF_GROUP:
        available.sort(key=lambda idx: outcome.group_counts[idx][key])
    return available


def _place_round_robin(
    key: str,
    members: List[Sample],
    order: List[int],
    outcome: DistributionOutcome,
) -> int:
    placed = 0
    position = 0
    for sample in members:
        if not order:
            break
        position %= len(order)
        idx = order[position]
        outcome.containers[idx].append(sample)
        outcome.group_counts[idx][key] += 1
        placed += 1
        if len(outcome.containers[idx]) >= outcome.capacities[idx]:
            order.pop(position)
        else:
            position += 1
    return placed

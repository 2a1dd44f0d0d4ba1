"""Post-distribution minimum-count checks."""
import logging
from collections import Counter
from typing import List, Mapping, Optional, Sequence

from plate_randomizer.models import Diagnostic, Sample
from plate_randomizer.solver.diagnostics import make_diagnostic

logger = logging.getLogger(__name__)


def validate_distribution(
    groups: Mapping[str, Sequence[Sample]],
    group_counts: List[Counter],
    capacities: List[int],
    concentrate_empty_in_last: bool = False,
    reference_capacity: Optional[int] = None,
    level: str = "plate",
    plate_index: Optional[int] = None,
) -> List[Diagnostic]:
    """
    Flag containers holding fewer members of a group than an even split gives.

    The expected minimum is ``floor(group_size / effective_count)``. When empty
    wells are concentrated in the last container, only full-capacity
    containers count (and only they are checked); otherwise every container
    does. The assignment is never modified.
    """
    if not capacities:
        return []
    reference = reference_capacity or max(capacities)
    checked = list(range(len(capacities)))
    if concentrate_empty_in_last:
        full = [idx for idx in checked if capacities[idx] >= reference]
        if full:
            checked = full

    diagnostics = []
    for key, members in groups.items():
        minimum = len(members) // len(checked)
        if minimum == 0:
            continue
        for idx in checked:
            actual = group_counts[idx].get(key, 0)
            if actual >= minimum:
                continue
            deficit = minimum - actual
            if level == "row":
                where = f"Row {idx + 1} of plate {plate_index + 1 if plate_index is not None else '?'}"
            else:
                where = f"Plate {idx + 1}"
            message = (
                f"{where} holds {actual} of group '{key}', "
                f"expected at least {minimum} ({deficit} short)"
            )
            logger.warning(message)
            diagnostics.append(make_diagnostic(
                "below_minimum_per_container", message,
                plate_index=idx if level == "plate" else plate_index,
                row_index=idx if level == "row" else None,
                group_key=key,
                deficit=deficit,
            ))
    return diagnostics

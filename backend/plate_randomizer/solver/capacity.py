"""Plate and row capacity planning."""
import math
import logging
from typing import List

from plate_randomizer.solver.diagnostics import make_diagnostic
from plate_randomizer.solver.errors import CapacityError

logger = logging.getLogger(__name__)


def plan_plate_capacities(
    total: int,
    rows: int,
    columns: int,
    concentrate_empty_in_last: bool = True
) -> List[int]:
    """
    Compute per-plate capacities for a number of samples.

    With ``concentrate_empty_in_last`` the plates are filled one after the other
    and the last plate is shrunk to the remainder, so every empty well ends up
    on the last plate. Otherwise ``ceil(total / plate_size)`` full plates are
    returned and the distributor leaves the unused wells empty.
    """
    plate_size = rows * columns
    if total <= 0:
        return []
    if concentrate_empty_in_last:
        full, remainder = divmod(total, plate_size)
        capacities = [plate_size] * full
        if remainder > 0:
            capacities.append(remainder)
    else:
        capacities = [plate_size] * math.ceil(total / plate_size)
    logger.info(f"Plate capacities for {total} samples: {capacities}")
    return capacities


def plan_row_capacities(count: int, rows: int, columns: int) -> List[int]:
    """Uniform row capacities for one plate: ``min(ceil(count / columns), rows)`` rows."""
    if count <= 0:
        return []
    rows_needed = math.ceil(count / columns)
    return [columns] * min(rows_needed, rows)


def check_capacity(
    total: int,
    capacities: List[int],
    level: str = "plate",
    plate_index: int = None
) -> None:
    """Raise CapacityError when the samples do not fit the containers."""
    available = sum(capacities)
    if total <= available:
        return
    deficit = total - available
    if level == "row":
        code = "row_capacity_exceeded"
        message = (
            f"Plate {plate_index + 1 if plate_index is not None else '?'} received {total} samples "
            f"but its {len(capacities)} rows hold {available}: {deficit} too many"
        )
    else:
        code = "capacity_exceeded"
        message = (
            f"{total} samples exceed the total capacity of {available} wells "
            f"across {len(capacities)} plate(s) by {deficit}"
        )
    logger.error(message)
    raise CapacityError(message, [
        make_diagnostic(code, message, plate_index=plate_index, deficit=deficit)
    ])

"""Diagnostic code definitions."""
from typing import Optional

from plate_randomizer.models import Diagnostic, Severity

# Severity of every diagnostic the engine emits.
# ERROR codes are fatal and stop the run before a grid is produced.
DIAGNOSTIC_SEVERITY = {
    "repeated_measures_attribute_is_covariate": Severity.ERROR,
    "repeated_measures_group_oversized": Severity.ERROR,
    "capacity_exceeded": Severity.ERROR,
    "row_capacity_exceeded": Severity.ERROR,
    "repeated_measures_placement_failed": Severity.ERROR,
    "repeated_measures_group_split": Severity.ERROR,
    "unsupported_algorithm_option": Severity.ERROR,
    "distribution_shortfall": Severity.WARNING,
    "below_minimum_per_container": Severity.WARNING,
    "repeated_measures_group_large": Severity.WARNING,
    "repeated_measures_mostly_singletons": Severity.WARNING,
    "distribution_summary": Severity.INFO,
}

DIAGNOSTIC_EXPLANATIONS = {
    "repeated_measures_attribute_is_covariate": """
**Repeated-measures attribute selected as covariate**
The attribute that keeps samples together on one plate cannot also be balanced
across plates. Remove it from the covariate list or choose another attribute.
""",

    "repeated_measures_group_oversized": """
**Repeated-measures group larger than a plate**
A group of samples that must share a plate does not fit on any plate.
Use larger plates or pick a different repeated-measures attribute.
""",

    "repeated_measures_group_large": """
**Large repeated-measures group**
A group occupies more than half of a plate, which limits how well covariates
can be balanced across plates.
""",

    "repeated_measures_mostly_singletons": """
**Mostly singleton groups**
More than 80% of repeated-measures groups contain a single sample.
The selected attribute may not identify repeated measurements.
""",

    "capacity_exceeded": """
**Not enough plate capacity**
There are more samples than wells across all plates.
""",

    "row_capacity_exceeded": """
**Not enough row capacity**
A plate received more samples than its rows can hold.
""",

    "repeated_measures_placement_failed": """
**Repeated-measures group could not be placed**
No plate had enough remaining wells for the group.
""",

    "repeated_measures_group_split": """
**Repeated-measures group split across plates**
Samples sharing a repeated-measures identifier ended up on different plates.
""",

    "unsupported_algorithm_option": """
**Unsupported option**
The selected algorithm does not support the requested option.
""",

    "distribution_shortfall": """
**Samples left unplaced**
Overflow placement ran out of free wells before every sample was placed.
""",

    "below_minimum_per_container": """
**Below expected minimum**
A plate or row holds fewer samples of a covariate group than an even split
would give it.
""",

    "distribution_summary": """
**Distribution summary**
Informational summary of the plate-level distribution.
""",
}


def get_diagnostic_explanation(code: str) -> str:
    """Get explanation for a diagnostic code."""
    return DIAGNOSTIC_EXPLANATIONS.get(
        code,
        f"Unknown diagnostic: {code}"
    )


def is_fatal(code: str) -> bool:
    """Check if a diagnostic code stops the run."""
    return DIAGNOSTIC_SEVERITY.get(code, Severity.ERROR) == Severity.ERROR


def make_diagnostic(
    code: str,
    message: str,
    plate_index: Optional[int] = None,
    row_index: Optional[int] = None,
    group_key: Optional[str] = None,
    deficit: Optional[int] = None,
) -> Diagnostic:
    """Build a diagnostic with the severity registered for its code."""
    return Diagnostic(
        code=code,
        message=message,
        severity=DIAGNOSTIC_SEVERITY.get(code, Severity.ERROR),
        plate_index=plate_index,
        row_index=row_index,
        group_key=group_key,
        deficit=deficit,
    )

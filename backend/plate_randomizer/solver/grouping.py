"""Covariate grouping."""
from typing import Dict, List, Optional, Sequence

from plate_randomizer.models import Sample

MISSING_VALUE = "N/A"
KEY_SEPARATOR = "|"


def covariate_key(
    sample: Sample,
    covariates: Sequence[str],
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> str:
    """
    Join the sample's covariate values in order; missing values become "N/A".

    When ``qc_column`` is set and not itself a covariate, a sample whose
    value in that column is one of ``qc_values`` gets the value prepended,
    so QC samples form groups of their own ("QC|Drug|F").
    """
    key = KEY_SEPARATOR.join(sample.get(name) or MISSING_VALUE for name in covariates)
    if qc_column and qc_values and qc_column not in covariates:
        qc_value = sample.get(qc_column)
        if qc_value and qc_value in qc_values:
            return f"{qc_value}{KEY_SEPARATOR}{key}"
    return key


def group_by_covariates(
    samples: Sequence[Sample],
    covariates: Sequence[str],
    qc_column: Optional[str] = None,
    qc_values: Sequence[str] = (),
) -> Dict[str, List[Sample]]:
    """
    Partition samples by covariate key.

    Args:
        samples: Samples to group
        covariates: Ordered covariate attribute names
        qc_column: Attribute marking QC/reference samples
        qc_values: Values of ``qc_column`` that mark a sample as QC

    Returns:
        Mapping of covariate key to samples, in first-seen key order.
        An empty covariate list yields one group holding every sample.
    """
    groups: Dict[str, List[Sample]] = {}
    for sample in samples:
        key = covariate_key(sample, covariates, qc_column, qc_values)
        groups.setdefault(key, []).append(sample)
    return groups

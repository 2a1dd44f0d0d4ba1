"""Expected run counts under random ordering.

A run is a maximal stretch of identical covariate keys. For a row's key
sequence, ``expected_runs_by_group`` gives, per key and run length L >= 2, the
expected number of runs of exactly that length if the same multiset of keys
were randomly permuted.

Short sequences use a gap-counting method: the non-target keys leave
``m + 1`` gaps for the target keys; choosing ``r`` gaps that hold exactly L
targets and spreading the other targets over the remaining gaps with stars
and bars counts arrangements containing those runs. Weighted by ``r`` and
divided by the total number of arrangements this gives the expectation.
The stars-and-bars step also counts arrangements where a remaining gap happens
to hold exactly L targets too, so the result slightly over-estimates the exact
expectation. It is not corrected here.

Long sequences use the independent-draw approximation
``(n - L + 1) * (group_size / n) ** L``.
"""
import math
from collections import Counter
from typing import Dict, List, Mapping, Sequence, Tuple

from plate_randomizer.config import settings


def extract_runs(sequence: Sequence[str]) -> List[Tuple[str, int]]:
    """Maximal runs as (key, length) pairs, in order."""
    runs = []
    for key in sequence:
        if runs and runs[-1][0] == key:
            runs[-1] = (key, runs[-1][1] + 1)
        else:
            runs.append((key, 1))
    return runs


def count_runs(sequence: Sequence[str], min_length: int = 2) -> Dict[str, Counter]:
    """Observed run counts per key and length, ignoring runs shorter than ``min_length``."""
    observed: Dict[str, Counter] = {}
    for key, length in extract_runs(sequence):
        if length >= min_length:
            observed.setdefault(key, Counter())[length] += 1
    return observed


def multinomial(counts: Sequence[int]) -> int:
    """Number of distinct arrangements of a multiset with the given counts."""
    result = math.factorial(sum(counts))
    for count in counts:
        result //= math.factorial(count)
    return result


def stars_and_bars(items: int, bins: int) -> int:
    """Ways to put ``items`` identical items into ``bins`` bins, empty bins allowed."""
    if items < 0:
        return 0
    if bins <= 0:
        return 1 if items == 0 else 0
    return math.comb(items + bins - 1, bins - 1)


def expected_runs_exact(composition: Mapping[str, int], target: str, run_length: int) -> float:
    """
    Expected number of runs of exactly ``run_length`` for ``target``.

    Args:
        composition: Count of every key in the sequence
        target: Key whose runs are counted
        run_length: Run length, at least 2

    Returns:
        Expectation under a uniformly random arrangement (gap method)
    """
    target_size = composition.get(target, 0)
    if run_length < 2 or run_length > target_size:
        return 0.0

    others = [count for key, count in composition.items() if key != target and count > 0]
    non_target_count = sum(others)
    non_target_arrangements = multinomial(others)
    total_gaps = non_target_count + 1

    weighted = 0
    for r in range(1, target_size // run_length + 1):
        if r > total_gaps:
            break
        ways = (
            math.comb(total_gaps, r)
            * stars_and_bars(target_size - r * run_length, total_gaps - r)
            * non_target_arrangements
        )
        weighted += r * ways

    total_arrangements = multinomial([target_size] + others)
    return weighted / total_arrangements


def expected_runs_approximate(sequence_length: int, group_size: int, run_length: int) -> float:
    """Independent-draw approximation for long sequences."""
    if run_length < 2 or run_length > group_size or sequence_length <= 0:
        return 0.0
    probability = (group_size / sequence_length) ** run_length
    return (sequence_length - run_length + 1) * probability


def expected_runs_by_group(
    sequence: Sequence[str],
    exact_threshold: int = None,
) -> Dict[str, Dict[int, float]]:
    """
    Expected run counts for every key of a sequence.

    Every key gets an entry; keys with fewer than two members map to an empty
    dict. For the others, every length from 2 up to the group size is
    covered, which includes every run length that can be observed. Sequences
    of length <= 1 return an empty mapping.
    """
    if exact_threshold is None:
        exact_threshold = settings.exact_run_threshold
    n = len(sequence)
    if n <= 1:
        return {}

    composition = Counter(sequence)
    use_exact = n <= exact_threshold
    expectations: Dict[str, Dict[int, float]] = {}
    for key, size in composition.items():
        by_length: Dict[int, float] = {}
        for length in range(2, size + 1):
            if use_exact:
                by_length[length] = expected_runs_exact(composition, key, length)
            else:
                by_length[length] = expected_runs_approximate(n, size, length)
        expectations[key] = by_length
    return expectations

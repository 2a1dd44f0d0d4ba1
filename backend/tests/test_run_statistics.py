"""Tests for expected run statistics."""
from itertools import permutations

import pytest
from plate_randomizer.solver.run_statistics import (
    count_runs,
    expected_runs_approximate,
    expected_runs_by_group,
    expected_runs_exact,
    extract_runs,
    multinomial,
    stars_and_bars,
)


def brute_force_expectation(sequence, target, length):
    """Average count of maximal target runs of exactly ``length`` over all distinct orders."""
    arrangements = set(permutations(sequence))
    total = 0
    for arrangement in arrangements:
        total += sum(1 for key, run in extract_runs(arrangement) if key == target and run == length)
    return total / len(arrangements)


class TestRunExtraction:
    """Test cases for run extraction."""

    def test_extract_runs(self):
        """Test maximal runs in order."""
        assert extract_runs(["A", "A", "B", "A"]) == [("A", 2), ("B", 1), ("A", 1)]
        assert extract_runs([]) == []

    def test_count_runs_ignores_singles(self):
        """Test length-1 runs are not counted."""
        observed = count_runs(["A", "A", "B", "A", "A", "A", "C"])

        assert observed == {"A": {2: 1, 3: 1}}


class TestCombinatorics:
    """Test cases for counting helpers."""

    def test_multinomial(self):
        """Test arrangement counts of multisets."""
        assert multinomial([3, 3]) == 20
        assert multinomial([3, 1, 1]) == 20
        assert multinomial([]) == 1

    def test_stars_and_bars(self):
        """Test distributions of identical items into bins."""
        assert stars_and_bars(1, 3) == 3
        assert stars_and_bars(2, 2) == 3
        assert stars_and_bars(0, 0) == 1
        assert stars_and_bars(2, 0) == 0


class TestExpectedRuns:
    """Test cases for expected run counts."""

    def test_single_member_group_has_no_runs(self):
        """Test a group of one yields no expectations."""
        result = expected_runs_by_group(["R", "B", "B", "B"])

        assert result["R"] == {}

    def test_three_of_four(self):
        """Test B in RBBB has a positive expectation below one for pairs."""
        result = expected_runs_by_group(["R", "B", "B", "B"])

        assert 0 < result["B"][2] < 1
        assert result["B"][2] == pytest.approx(0.5)
        assert result["B"][3] == pytest.approx(0.5)

    def test_balanced_composition_is_symmetric(self):
        """Test RRRBBB gives the same expectations for both keys."""
        result = expected_runs_by_group(["R", "R", "R", "B", "B", "B"])

        assert result["R"][2] == pytest.approx(result["B"][2])
        assert result["R"][3] == pytest.approx(result["B"][3])
        assert result["R"][2] == pytest.approx(0.6)
        assert result["R"][3] == pytest.approx(0.2)

    @pytest.mark.parametrize("sequence,target,length", [
        (["A", "A", "B", "B"], "A", 2),
        (["A", "A", "B", "B", "C"], "A", 2),
        (["A", "A", "A", "B", "C"], "A", 2),
        (["A", "A", "A", "B", "C"], "A", 3),
        (["A", "A", "A", "B", "B", "C", "C"], "A", 3),
    ])
    def test_matches_brute_force_without_coincident_runs(self, sequence, target, length):
        """Test the gap method is exact when a second run cannot form."""
        composition = {key: sequence.count(key) for key in set(sequence)}

        assert expected_runs_exact(composition, target, length) == pytest.approx(
            brute_force_expectation(sequence, target, length)
        )

    def test_gap_method_over_counts_coincident_runs(self):
        """Test the known over-estimate when leftover targets form another run."""
        sequence = ["A", "A", "B", "A", "A"]
        composition = {"A": 4, "B": 1}

        estimate = expected_runs_exact(composition, "A", 2)

        assert estimate == pytest.approx(0.8)
        assert brute_force_expectation(sequence, "A", 2) == pytest.approx(0.4)

    def test_single_key_sequence(self):
        """Test a row of one key has exactly one full-length run."""
        result = expected_runs_by_group(["A"] * 5)

        assert result["A"][5] == pytest.approx(1.0)
        assert result["A"][2] == 0.0

    def test_short_sequences(self):
        """Test sequences of length <= 1 give no expectations."""
        assert expected_runs_by_group([]) == {}
        assert expected_runs_by_group(["A"]) == {}

    def test_out_of_range_length(self):
        """Test lengths below 2 or above the group size are zero."""
        assert expected_runs_exact({"A": 3, "B": 2}, "A", 1) == 0.0
        assert expected_runs_exact({"A": 3, "B": 2}, "A", 4) == 0.0

    def test_long_sequences_use_approximation(self):
        """Test sequences above the threshold use the independent-draw formula."""
        sequence = ["A", "B"] * 15

        result = expected_runs_by_group(sequence, exact_threshold=24)

        assert result["A"][2] == pytest.approx(29 * 0.25)
        assert result["A"][3] == pytest.approx(28 * 0.125)
        assert expected_runs_approximate(30, 15, 2) == pytest.approx(7.25)

    def test_threshold_switches_method(self):
        """Test the same sequence scored exactly when under the threshold."""
        sequence = ["A", "B"] * 15

        exact = expected_runs_by_group(sequence, exact_threshold=30)

        assert exact["A"][2] == pytest.approx(expected_runs_exact({"A": 15, "B": 15}, "A", 2))
        assert exact["A"][2] != pytest.approx(7.25)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Tests for the distribution validator."""
from collections import Counter

import pytest
from plate_randomizer.models import Sample, Severity
from plate_randomizer.solver import validate_distribution


def make_group(prefix, size):
    return [Sample(name=f"{prefix}{i}", metadata={"Treatment": prefix}) for i in range(size)]


class TestDistributionValidator:
    """Test cases for validate_distribution."""

    def test_even_split_has_no_findings(self):
        """Test containers at or above the minimum are not flagged."""
        groups = {"A": make_group("A", 8)}
        counts = [Counter(A=4), Counter(A=2), Counter(A=2)]

        assert validate_distribution(groups, counts, [4, 4, 4]) == []

    def test_container_below_minimum_is_flagged(self):
        """Test a container short of floor(size / count) is reported."""
        groups = {"A": make_group("A", 8)}
        counts = [Counter(A=5), Counter(A=3), Counter()]

        findings = validate_distribution(groups, counts, [8, 8, 8])

        assert len(findings) == 1
        finding = findings[0]
        assert finding.code == "below_minimum_per_container"
        assert finding.severity == Severity.WARNING
        assert finding.plate_index == 2
        assert finding.group_key == "A"
        assert finding.deficit == 2

    def test_partial_last_plate_is_exempt(self):
        """Test only full plates count when empties are concentrated."""
        groups = {"A": make_group("A", 12)}
        counts = [Counter(A=6), Counter(A=6), Counter()]

        findings = validate_distribution(
            groups, counts, [10, 10, 2],
            concentrate_empty_in_last=True, reference_capacity=10
        )

        assert findings == []

    def test_full_plates_checked_against_reduced_count(self):
        """Test the minimum uses the number of full plates."""
        groups = {"A": make_group("A", 12)}
        counts = [Counter(A=7), Counter(A=5), Counter()]

        findings = validate_distribution(
            groups, counts, [10, 10, 2],
            concentrate_empty_in_last=True, reference_capacity=10
        )

        assert [(f.plate_index, f.deficit) for f in findings] == [(1, 1)]

    def test_row_level_findings(self):
        """Test row findings carry the plate and row index."""
        groups = {"A": make_group("A", 6)}
        counts = [Counter(A=4), Counter(A=2), Counter()]

        findings = validate_distribution(
            groups, counts, [12, 12, 12], level="row", plate_index=1
        )

        assert len(findings) == 1
        assert findings[0].plate_index == 1
        assert findings[0].row_index == 2

    def test_small_groups_have_no_minimum(self):
        """Test groups smaller than the container count are never flagged."""
        groups = {"A": make_group("A", 2)}
        counts = [Counter(A=2), Counter(), Counter()]

        assert validate_distribution(groups, counts, [4, 4, 4]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Tests for covariate grouping and capacity planning."""
import pytest
from plate_randomizer.models import Sample
from plate_randomizer.solver import (
    covariate_key, group_by_covariates,
    plan_plate_capacities, plan_row_capacities, CapacityError
)
from plate_randomizer.solver.capacity import check_capacity


@pytest.fixture
def samples():
    """Create samples with two covariates, one value missing."""
    return [
        Sample(name="S1", metadata={"Treatment": "Drug", "Sex": "F"}),
        Sample(name="S2", metadata={"Treatment": "Drug", "Sex": "M"}),
        Sample(name="S3", metadata={"Treatment": "Placebo", "Sex": "F"}),
        Sample(name="S4", metadata={"Treatment": "Drug", "Sex": "F"}),
        Sample(name="S5", metadata={"Treatment": "Placebo"}),
        Sample(name="S6", metadata={"Treatment": "Placebo", "Sex": ""}),
    ]


class TestCovariateGrouper:
    """Test cases for covariate grouping."""

    def test_key_joins_values_in_order(self, samples):
        """Test key is the covariate values joined in the given order."""
        assert covariate_key(samples[0], ["Treatment", "Sex"]) == "Drug|F"
        assert covariate_key(samples[0], ["Sex", "Treatment"]) == "F|Drug"

    def test_missing_and_empty_values_map_to_na(self, samples):
        """Test absent and empty values use the N/A sentinel."""
        assert covariate_key(samples[4], ["Treatment", "Sex"]) == "Placebo|N/A"
        assert covariate_key(samples[5], ["Treatment", "Sex"]) == "Placebo|N/A"

    def test_groups_partition_samples(self, samples):
        """Test every sample lands in exactly one group."""
        groups = group_by_covariates(samples, ["Treatment", "Sex"])

        assert set(groups) == {"Drug|F", "Drug|M", "Placebo|F", "Placebo|N/A"}
        assert [s.name for s in groups["Drug|F"]] == ["S1", "S4"]
        assert sum(len(members) for members in groups.values()) == len(samples)

    def test_no_covariates_gives_single_group(self, samples):
        """Test an empty covariate list yields one group with every sample."""
        groups = group_by_covariates(samples, [])

        assert len(groups) == 1
        assert len(next(iter(groups.values()))) == len(samples)

    def test_empty_input(self):
        """Test grouping no samples."""
        assert group_by_covariates([], ["Treatment"]) == {}


@pytest.fixture
def qc_samples():
    """Create study samples and pooled QC samples sharing covariate values."""
    return [
        Sample(name="S1", metadata={"Type": "Study", "Treatment": "Drug", "Sex": "F"}),
        Sample(name="QC1", metadata={"Type": "QC", "Treatment": "Drug", "Sex": "F"}),
        Sample(name="S2", metadata={"Type": "Study", "Treatment": "Drug", "Sex": "F"}),
        Sample(name="REF1", metadata={"Type": "Reference", "Treatment": "Drug", "Sex": "F"}),
        Sample(name="QC2", metadata={"Type": "QC", "Treatment": "Drug", "Sex": "F"}),
    ]


class TestQcGrouping:
    """Test cases for QC sample keys."""

    def test_qc_value_is_prefixed(self, qc_samples):
        """Test a selected QC value is prepended to the covariate key."""
        assert covariate_key(qc_samples[1], ["Treatment", "Sex"], "Type", ["QC"]) == "QC|Drug|F"
        assert covariate_key(qc_samples[0], ["Treatment", "Sex"], "Type", ["QC"]) == "Drug|F"

    def test_qc_samples_form_own_group(self, qc_samples):
        """Test QC samples are grouped apart from study samples with the same values."""
        groups = group_by_covariates(qc_samples, ["Treatment", "Sex"], "Type", ["QC", "Reference"])

        assert list(groups) == ["Drug|F", "QC|Drug|F", "Reference|Drug|F"]
        assert [s.name for s in groups["QC|Drug|F"]] == ["QC1", "QC2"]
        assert [s.name for s in groups["Drug|F"]] == ["S1", "S2"]

    def test_prefix_ignored_when_qc_column_is_covariate(self, qc_samples):
        """Test no prefix is added when the QC column is balanced on directly."""
        key = covariate_key(qc_samples[1], ["Type", "Treatment"], "Type", ["QC"])

        assert key == "QC|Drug"
        groups = group_by_covariates(qc_samples, ["Type", "Treatment"], "Type", ["QC"])
        assert set(groups) == {"Study|Drug", "QC|Drug", "Reference|Drug"}

    def test_no_qc_values_selected(self, qc_samples):
        """Test a QC column without selected values changes nothing."""
        assert covariate_key(qc_samples[1], ["Treatment"], "Type", []) == "Drug"
        assert covariate_key(qc_samples[1], ["Treatment"], None, ["QC"]) == "Drug"


class TestCapacityPlanner:
    """Test cases for plate and row capacity planning."""

    def test_exact_multiple_fills_full_plates(self):
        """Test samples that divide evenly give only full plates."""
        assert plan_plate_capacities(96, 6, 8, True) == [48, 48]

    def test_remainder_goes_to_last_plate(self):
        """Test the last plate is shrunk to the remainder."""
        assert plan_plate_capacities(100, 6, 8, True) == [48, 48, 4]

    def test_single_partial_plate(self):
        """Test fewer samples than one plate."""
        assert plan_plate_capacities(30, 8, 12, True) == [30]

    def test_spread_policy_keeps_full_capacity(self):
        """Test the last plate is not shrunk when empties are not concentrated."""
        assert plan_plate_capacities(100, 6, 8, False) == [48, 48, 48]
        assert plan_plate_capacities(96, 8, 12, False) == [96]

    def test_no_samples(self):
        """Test zero samples need no plates."""
        assert plan_plate_capacities(0, 8, 12, True) == []

    def test_row_capacities(self):
        """Test rows needed for a plate's samples."""
        assert plan_row_capacities(24, 8, 12) == [12, 12]
        assert plan_row_capacities(25, 8, 12) == [12, 12, 12]
        assert plan_row_capacities(96, 8, 12) == [12] * 8

    def test_row_capacities_capped_at_plate_rows(self):
        """Test the row count never exceeds the plate's rows."""
        assert plan_row_capacities(200, 8, 12) == [12] * 8

    def test_capacity_check_reports_deficit(self):
        """Test the capacity error carries the deficit."""
        with pytest.raises(CapacityError) as exc_info:
            check_capacity(200, [96])

        diagnostic = exc_info.value.diagnostics[0]
        assert diagnostic.code == "capacity_exceeded"
        assert diagnostic.deficit == 104
        assert "104" in exc_info.value.message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Tests for repeated-measures grouping and plate assignment."""
import pytest
from plate_randomizer.models import Sample
from plate_randomizer.solver import (
    RepeatedMeasuresSolver, MaxAbsoluteDeviation, SumAbsoluteDeviation,
    PlacementError, ConfigurationError,
    build_repeated_measures_groups, validate_repeated_measures_groups
)
from plate_randomizer.solver.repeated_measures import (
    check_repeated_measures_config,
    find_split_groups,
    group_size_distribution,
    is_missing_identifier,
    target_proportions,
)


def subject_samples(subject, treatments):
    return [
        Sample(name=f"{subject}_{i}", metadata={"Subject": subject, "Treatment": t})
        for i, t in enumerate(treatments)
    ]


@pytest.fixture
def samples():
    """Create samples for three subjects plus unlabelled samples."""
    return (
        subject_samples("P1", ["Drug", "Placebo", "Drug"])
        + subject_samples("P2", ["Drug", "Placebo"])
        + [
            Sample(name="X1", metadata={"Treatment": "Drug"}),
            Sample(name="X2", metadata={"Subject": "  ", "Treatment": "Placebo"}),
            Sample(name="X3", metadata={"Subject": "N/A", "Treatment": "Drug"}),
        ]
        + subject_samples("P3", ["Placebo"])
    )


class TestGroupBuilding:
    """Test cases for building repeated-measures groups."""

    def test_missing_identifiers(self):
        """Test which identifiers count as missing."""
        assert is_missing_identifier(None)
        assert is_missing_identifier("")
        assert is_missing_identifier("   ")
        assert is_missing_identifier("n/a")
        assert is_missing_identifier("N/A")
        assert not is_missing_identifier("P1")

    def test_groups_by_subject(self, samples):
        """Test samples sharing a subject form one group."""
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])
        by_id = {g.group_id: g for g in groups}

        assert by_id["P1"].size == 3
        assert by_id["P1"].treatment_composition == {"Drug": 2, "Placebo": 1}
        assert not by_id["P1"].is_singleton
        assert by_id["P3"].size == 1
        assert not by_id["P3"].is_singleton

    def test_missing_subjects_become_singletons(self, samples):
        """Test each unlabelled sample gets its own singleton group."""
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])
        singletons = [g for g in groups if g.is_singleton]

        assert len(singletons) == 3
        assert all(g.size == 1 for g in singletons)
        assert all(g.group_id.startswith("__singleton_") for g in singletons)
        assert len({g.group_id for g in singletons}) == 3

    def test_composition_keys_include_qc_prefix(self):
        """Test QC samples are counted under their own key in a group's composition."""
        samples = subject_samples("P1", ["Drug", "Drug"]) + [
            Sample(name="P1_qc", metadata={"Subject": "P1", "Treatment": "Drug", "Type": "QC"})
        ]

        groups = build_repeated_measures_groups(
            samples, "Subject", ["Treatment"], qc_column="Type", qc_values=["QC"]
        )

        assert groups[0].treatment_composition == {"Drug": 2, "QC|Drug": 1}

    def test_attribute_selected_as_covariate(self):
        """Test the repeated-measures attribute cannot also be a covariate."""
        with pytest.raises(ConfigurationError) as exc_info:
            check_repeated_measures_config("Subject", ["Treatment", "Subject"])

        assert exc_info.value.diagnostics[0].code == "repeated_measures_attribute_is_covariate"

    def test_group_size_distribution(self, samples):
        """Test group size buckets."""
        groups = build_repeated_measures_groups(
            samples + subject_samples("P4", ["Drug"] * 7) + subject_samples("P5", ["Drug"] * 16),
            "Subject", ["Treatment"]
        )

        distribution = group_size_distribution(groups)

        assert distribution.singletons == 4
        assert distribution.small == 2
        assert distribution.medium == 1
        assert distribution.large == 1


class TestGroupValidation:
    """Test cases for validate_repeated_measures_groups."""

    def test_oversized_group_is_error(self):
        """Test a group larger than a plate is rejected."""
        groups = build_repeated_measures_groups(
            subject_samples("P1", ["Drug"] * 10), "Subject", ["Treatment"]
        )

        report = validate_repeated_measures_groups(groups, plate_capacity=8)

        assert not report.is_valid
        assert "P1" in report.errors[0]

    def test_large_group_is_warning(self):
        """Test a group over half a plate only warns."""
        groups = build_repeated_measures_groups(
            subject_samples("P1", ["Drug"] * 5), "Subject", ["Treatment"]
        )

        report = validate_repeated_measures_groups(groups, plate_capacity=8)

        assert report.is_valid
        assert len(report.warnings) == 1

    def test_mostly_singletons_warning(self):
        """Test more than 80% singletons over more than 10 groups warns."""
        samples = [Sample(name=f"S{i}", metadata={"Treatment": "Drug"}) for i in range(11)]
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])

        report = validate_repeated_measures_groups(groups, plate_capacity=96)

        assert report.is_valid
        assert any("singletons" in w for w in report.warnings)

    def test_few_groups_do_not_warn(self):
        """Test the singleton warning needs more than ten groups."""
        samples = [Sample(name=f"S{i}", metadata={"Treatment": "Drug"}) for i in range(10)]
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])

        report = validate_repeated_measures_groups(groups, plate_capacity=96)

        assert report.warnings == []


class TestRepeatedMeasuresSolver:
    """Test cases for best-fit plate assignment."""

    def test_groups_are_never_split(self, samples):
        """Test every group lands on exactly one plate."""
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])

        plates = RepeatedMeasuresSolver().assign(groups, [5, 5])

        placed = [g.group_id for plate in plates for g in plate]
        assert sorted(placed) == sorted(g.group_id for g in groups)
        for idx, plate in enumerate(plates):
            assert sum(g.size for g in plate) <= 5

    def test_balance_guides_choice(self):
        """Test a group goes where it brings the plate closest to the target mix."""
        groups = build_repeated_measures_groups(
            subject_samples("P1", ["Drug", "Drug"])
            + subject_samples("P2", ["Placebo", "Placebo"])
            + subject_samples("P3", ["Drug"])
            + subject_samples("P4", ["Placebo"]),
            "Subject", ["Treatment"]
        )

        plates = RepeatedMeasuresSolver().assign(groups, [3, 3])

        # P1 ties on both plates and takes the first; P2 only fits on plate 2
        assert [g.group_id for g in plates[0]][0] == "P1"
        assert [g.group_id for g in plates[1]][0] == "P2"
        assert {g.group_id for g in plates[0]} == {"P1", "P4"}
        assert {g.group_id for g in plates[1]} == {"P2", "P3"}

    def test_placement_failure(self):
        """Test a group that fits no plate's free wells is fatal."""
        groups = build_repeated_measures_groups(
            subject_samples("P1", ["Drug"] * 3) + subject_samples("P2", ["Drug"] * 3),
            "Subject", ["Treatment"]
        )

        with pytest.raises(PlacementError) as exc_info:
            RepeatedMeasuresSolver().assign(groups, [4, 2])

        diagnostic = exc_info.value.diagnostics[0]
        assert diagnostic.code == "repeated_measures_placement_failed"
        assert diagnostic.group_key == "P2"

    def test_objectives(self):
        """Test the sum and max deviation objectives."""
        targets = {"Drug": 0.5, "Placebo": 0.5}
        composition = {"Drug": 3, "Placebo": 1}

        assert SumAbsoluteDeviation().score(composition, 4, targets) == pytest.approx(0.5)
        assert MaxAbsoluteDeviation().score(composition, 4, targets) == pytest.approx(0.25)

    def test_custom_objective_is_used(self, samples):
        """Test a substituted objective drives the assignment."""
        class PreferFullerPlate(SumAbsoluteDeviation):
            def __init__(self):
                self.calls = 0

            def score(self, composition, size, targets):
                self.calls += 1
                return -size

        objective = PreferFullerPlate()
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])

        RepeatedMeasuresSolver(objective).assign(groups, [9, 9])

        assert objective.calls > 0

    def test_target_proportions(self, samples):
        """Test global proportions across all groups."""
        groups = build_repeated_measures_groups(samples, "Subject", ["Treatment"])

        targets = target_proportions(groups)

        assert targets["Drug"] == pytest.approx(5 / 9)
        assert targets["Placebo"] == pytest.approx(4 / 9)

    def test_find_split_groups(self):
        """Test detection of identifiers spread over plates."""
        p1 = subject_samples("P1", ["Drug", "Drug"])
        assignment = {0: [p1[0]], 1: [p1[1], Sample(name="X", metadata={})]}

        assert find_split_groups(assignment, "Subject") == ["P1"]
        assert find_split_groups({0: p1}, "Subject") == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

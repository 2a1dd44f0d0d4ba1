"""Randomization service."""
import logging
from typing import List, Optional, Sequence

from plate_randomizer.models import (
    AssignmentEntry,
    AssignmentTable,
    DisplayConfig,
    GroupValidationReport,
    PlateLayout,
    QualityScore,
    RandomizationConfig,
    RandomizationResult,
    RandomizationStatus,
    Sample,
)
from plate_randomizer.solver import (
    build_repeated_measures_groups,
    compute_quality,
    covariate_key,
    distribute,
    validate_repeated_measures_groups,
)
from plate_randomizer.solver.repeated_measures import check_repeated_measures_config
from plate_randomizer.solver.errors import ConfigurationError

logger = logging.getLogger(__name__)


class LayoutService:
    """Service for randomizing samples and grading the resulting layouts."""

    def randomize(
        self,
        samples: Sequence[Sample],
        covariates: Sequence[str],
        config: RandomizationConfig
    ) -> RandomizationResult:
        """
        Randomize samples onto plates.

        Args:
            samples: Samples to place
            covariates: Covariate attributes to balance on
            config: Plate shape and algorithm options

        Returns:
            RandomizationResult with layouts, or FAILED with diagnostics
        """
        if not samples:
            return RandomizationResult(
                status=RandomizationStatus.FAILED,
                message="No samples to randomize"
            )
        return distribute(samples, covariates, config)

    def quality(
        self,
        samples: Sequence[Sample],
        plates: List[PlateLayout],
        covariates: Sequence[str],
        display_config: Optional[DisplayConfig] = None,
        qc_column: Optional[str] = None,
        qc_values: Sequence[str] = ()
    ) -> QualityScore:
        """
        Score plate layouts.

        Args:
            samples: All randomized samples
            plates: Plate layouts to grade
            covariates: Covariate attributes used for grouping
            display_config: Enabled optional sub-scores
            qc_column: Attribute marking QC samples
            qc_values: Values of ``qc_column`` that mark a sample as QC

        Returns:
            QualityScore
        """
        assignment = {plate.plate_index: plate.get_samples() for plate in plates}
        return compute_quality(
            samples, assignment, plates, covariates, display_config,
            qc_column=qc_column, qc_values=qc_values
        )

    def validate_repeated_measures(
        self,
        samples: Sequence[Sample],
        attribute: str,
        covariates: Sequence[str],
        plate_capacity: int,
        qc_column: Optional[str] = None,
        qc_values: Sequence[str] = ()
    ) -> GroupValidationReport:
        """Check a repeated-measures attribute before randomizing."""
        try:
            check_repeated_measures_config(attribute, covariates)
        except ConfigurationError as e:
            return GroupValidationReport(errors=[e.message])
        groups = build_repeated_measures_groups(
            samples, attribute, covariates, qc_column, qc_values
        )
        return validate_repeated_measures_groups(groups, plate_capacity)

    def export_assignment(
        self,
        result: RandomizationResult,
        covariates: Sequence[str],
        qc_column: Optional[str] = None,
        qc_values: Sequence[str] = ()
    ) -> AssignmentTable:
        """
        Build the assignment table of a randomization.

        Args:
            result: Finished randomization
            covariates: Covariate attributes, used to label each sample's group
            qc_column: Attribute marking QC samples, prefixed to their group label
            qc_values: Values of ``qc_column`` that mark a sample as QC

        Returns:
            AssignmentTable with one entry per occupied well
        """
        entries = []
        for plate in result.plates:
            for well in plate.wells:
                if well.is_empty:
                    continue
                entries.append(AssignmentEntry(
                    plate_index=plate.plate_index,
                    plate_label=plate.plate_label,
                    well=well.position,
                    row=well.row,
                    col=well.col,
                    sample_name=well.sample.name,
                    covariate_key=covariate_key(
                        well.sample, covariates, qc_column, qc_values
                    ),
                    metadata=dict(well.sample.metadata)
                ))
        logger.info(f"Exported {len(entries)} well assignments")
        return AssignmentTable(entries=entries)

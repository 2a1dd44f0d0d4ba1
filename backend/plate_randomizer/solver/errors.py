"""Fatal randomization errors."""
from typing import List

from plate_randomizer.models import Diagnostic


class RandomizationError(Exception):
    """Base class for conditions that stop a run before a grid is produced."""

    def __init__(self, message: str, diagnostics: List[Diagnostic] = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = list(diagnostics or [])


class ConfigurationError(RandomizationError):
    """Invalid combination of options or unassignable repeated-measures groups."""


class CapacityError(RandomizationError):
    """More samples than wells at the plate or row level."""


class PlacementError(RandomizationError):
    """A repeated-measures group found no plate with enough room."""

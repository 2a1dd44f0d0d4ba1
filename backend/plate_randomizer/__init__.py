"""Covariate-balanced plate randomization."""

__version__ = "1.0.0"

"""Data quality checks."""

from meterpulse.quality.checks import QualityChecker

__all__ = ["QualityChecker"]

"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    RecordValidationError,
    InputLoadError,
    ConfigurationError,
    ReportGenerationError,
)
from .logging_config import resolve_level, setup_logging

__all__ = [
    "ReconciliationError",
    "RecordValidationError",
    "InputLoadError",
    "ConfigurationError",
    "ReportGenerationError",
    "resolve_level",
    "setup_logging",
]

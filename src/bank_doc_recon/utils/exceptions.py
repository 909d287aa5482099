"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class RecordValidationError(ReconciliationError):
    """A transaction or document record is missing required fields."""

    pass


class InputLoadError(ReconciliationError):
    """Error reading or validating an input file."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass

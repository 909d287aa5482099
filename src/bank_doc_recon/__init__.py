"""Bank transaction to document reconciliation."""

__version__ = "0.1.0"

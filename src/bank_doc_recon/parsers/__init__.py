"""Loaders for reconciliation input files."""

from .input_loader import load_documents, load_envelope, load_transactions

__all__ = ["load_envelope", "load_transactions", "load_documents"]

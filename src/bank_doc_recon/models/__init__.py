"""Data models for reconciliation."""

from .records import Document, Transaction
from .results import (
    AmbiguousMatch,
    Candidate,
    CandidateDocument,
    Diagnostics,
    MatchedPair,
    MatchSets,
    ReconciliationOutput,
    RuleOutcome,
)

__all__ = [
    "Transaction",
    "Document",
    "RuleOutcome",
    "Candidate",
    "MatchedPair",
    "CandidateDocument",
    "AmbiguousMatch",
    "MatchSets",
    "Diagnostics",
    "ReconciliationOutput",
]

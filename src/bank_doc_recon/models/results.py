"""Data models for rule outcomes, candidates and reconciliation results."""

from dataclasses import dataclass, field
from typing import Any

from .records import Document, Transaction

REASON_MULTIPLE_CANDIDATES = "multiple strong candidates"
REASON_BELOW_AUTO_MATCH = "confidence below auto-match threshold"


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating one rule against a transaction/document pair."""

    # Whether the pair survives this rule
    accept: bool

    # Signed contribution to the pair's confidence
    confidence_delta: float

    # Rule tokens for the audit trail
    trace: list[str] = field(default_factory=list)


@dataclass
class Candidate:
    """
    A transaction/document pair that survived every hard filter.

    Confidence is the raw sum of hard-rule deltas after generation and is
    clamped to [0, 1] once scored.
    """

    transaction: Transaction
    document: Document
    confidence: float
    rule_trace: list[str] = field(default_factory=list)


@dataclass
class MatchedPair:
    """An unambiguous transaction to document match."""

    transaction_ids: list[str]
    document_ids: list[str]
    confidence: float
    rule_trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_ids": list(self.transaction_ids),
            "document_ids": list(self.document_ids),
            "confidence": self.confidence,
            "rule_trace": list(self.rule_trace),
        }


@dataclass
class CandidateDocument:
    """One viable document listed under an ambiguous match."""

    document_id: str
    confidence: float
    rule_trace: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "confidence": self.confidence,
            "rule_trace": list(self.rule_trace),
        }


@dataclass
class AmbiguousMatch:
    """A transaction with several viable documents, or one weak candidate."""

    transaction_ids: list[str]
    candidate_documents: list[CandidateDocument]
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_ids": list(self.transaction_ids),
            "candidate_documents": [c.to_dict() for c in self.candidate_documents],
            "reason": self.reason,
        }


@dataclass
class MatchSets:
    """Matched, ambiguous and unmatched results of a reconciliation."""

    matched_pairs: list[MatchedPair] = field(default_factory=list)
    ambiguous_matches: list[AmbiguousMatch] = field(default_factory=list)
    unmatched_transactions: list[str] = field(default_factory=list)
    unmatched_documents: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched_pairs": [m.to_dict() for m in self.matched_pairs],
            "ambiguous_matches": [a.to_dict() for a in self.ambiguous_matches],
            "unmatched_transactions": list(self.unmatched_transactions),
            "unmatched_documents": list(self.unmatched_documents),
        }


@dataclass
class Diagnostics:
    """Rules seen, counters and free-form notes for a reconciliation run."""

    rules_applied: list[str] = field(default_factory=list)
    metrics: dict[str, int] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rules_applied": list(self.rules_applied),
            "metrics": dict(self.metrics),
            "notes": list(self.notes),
        }


@dataclass
class ReconciliationOutput:
    """Complete output of one reconciliation run."""

    summary: dict[str, Any] = field(default_factory=dict)
    matches: MatchSets = field(default_factory=MatchSets)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation."""
        return {
            "summary": dict(self.summary),
            "matches": self.matches.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
        }

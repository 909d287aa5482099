"""
Reconciliation engine that wires the matching pipeline together.
Runs candidate generation, scoring and classification, then attaches a summary.
"""

from datetime import datetime
from typing import Optional, Sequence
import logging

from ..config import MatchingPreferences, ReconConfig
from ..models.envelope import ReconciliationInput
from ..models.records import Document, Transaction
from ..models.results import ReconciliationOutput
from .pipeline import classify_results, generate_candidates, score_candidates

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Main reconciliation engine that orchestrates the matching process.

    The engine holds no state between runs; every call to ``reconcile`` is
    independent.
    """

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration (defaults when omitted)
        """
        self.config = config or ReconConfig()

    def reconcile(
        self,
        transactions: Sequence[Transaction],
        documents: Sequence[Document],
        preferences: Optional[MatchingPreferences] = None,
    ) -> ReconciliationOutput:
        """
        Reconcile transactions against documents.

        Args:
            transactions: Normalized bank transactions
            documents: Normalized documents
            preferences: Matching preferences, falls back to ``config.matching``

        Returns:
            Full reconciliation output with summary, matches and diagnostics
        """
        prefs = preferences if preferences is not None else self.config.matching

        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(transactions)} transactions, "
            f"{len(documents)} documents"
        )

        raw_candidates = generate_candidates(transactions, documents, prefs)
        scored_candidates = score_candidates(raw_candidates, prefs)

        output = classify_results(
            scored_candidates,
            prefs,
            [t.id for t in transactions],
            [d.id for d in documents],
        )

        elapsed = (datetime.now() - start_time).total_seconds()
        matches = output.matches
        output.summary = {
            "total_transactions": len(transactions),
            "total_documents": len(documents),
            "matched_pairs": len(matches.matched_pairs),
            "ambiguous_matches": len(matches.ambiguous_matches),
            "unmatched_transactions": len(matches.unmatched_transactions),
            "unmatched_documents": len(matches.unmatched_documents),
            "processing_time_seconds": round(elapsed, 4),
        }

        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: "
            f"{len(matches.matched_pairs)} matched, "
            f"{len(matches.ambiguous_matches)} ambiguous, "
            f"{len(matches.unmatched_transactions)} unmatched transactions, "
            f"{len(matches.unmatched_documents)} unmatched documents"
        )

        return output

    def run(self, envelope: ReconciliationInput) -> ReconciliationOutput:
        """
        Reconcile a validated input envelope using its own preferences.

        Args:
            envelope: Validated reconciliation input

        Returns:
            Full reconciliation output
        """
        return self.reconcile(
            envelope.to_transactions(),
            envelope.to_documents(),
            envelope.matching_prefs,
        )

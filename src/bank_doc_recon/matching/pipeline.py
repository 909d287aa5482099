"""
Three-stage matching pipeline.

generate_candidates applies the hard filters over every transaction/document
pair, score_candidates runs the soft rules on the survivors, and
classify_results turns scored candidates into matched, ambiguous and
unmatched sets.
"""

from typing import Iterable, Optional, Sequence, Union
import logging

from ..config import MatchingPreferences
from ..models.records import Document, Transaction
from ..models.results import (
    REASON_BELOW_AUTO_MATCH,
    REASON_MULTIPLE_CANDIDATES,
    AmbiguousMatch,
    Candidate,
    CandidateDocument,
    Diagnostics,
    MatchedPair,
    MatchSets,
    ReconciliationOutput,
)
from .confidence import apply_delta
from .rules import HARD_RULES, SOFT_RULES, MatchingRule

logger = logging.getLogger(__name__)


def generate_candidates(
    transactions: Sequence[Transaction],
    documents: Sequence[Document],
    preferences: MatchingPreferences,
    rules: Sequence[MatchingRule] = HARD_RULES,
) -> list[Candidate]:
    """
    Apply the hard filters to the full transaction x document cross-product.

    Rules run in order and the first rejection discards the pair. Surviving
    pairs become candidates whose confidence is the sum of the hard-rule
    deltas.

    Args:
        transactions: Bank transactions
        documents: Documents to match against
        preferences: Matching preferences
        rules: Hard rules in evaluation order

    Returns:
        Candidates in transaction-major, document-minor order
    """
    candidates: list[Candidate] = []

    for transaction in transactions:
        for document in documents:
            trace: list[str] = []
            confidence = 0.0
            rejected_by: Optional[str] = None

            for rule in rules:
                outcome = rule.evaluate(transaction, document, preferences)
                trace.extend(outcome.trace)
                confidence += outcome.confidence_delta
                if not outcome.accept:
                    rejected_by = rule.name
                    break

            if rejected_by is not None:
                logger.debug(
                    f"Pair {transaction.id}/{document.id} rejected by {rejected_by} "
                    f"(trace={trace}, confidence={confidence:+.2f})"
                )
                continue

            candidates.append(
                Candidate(
                    transaction=transaction,
                    document=document,
                    confidence=confidence,
                    rule_trace=trace,
                )
            )

    logger.debug(
        f"Generated {len(candidates)} candidates from "
        f"{len(transactions) * len(documents)} pairs"
    )
    return candidates


def score_candidates(
    candidates: Iterable[Candidate],
    preferences: MatchingPreferences,
    rules: Sequence[MatchingRule] = SOFT_RULES,
) -> list[Candidate]:
    """
    Run the soft rules on each candidate.

    Each rule's delta is added with clamping, so confidence stays in [0, 1].
    A rule's accept flag never removes a candidate here.

    Returns:
        New candidates, one per input candidate, in the same order
    """
    scored: list[Candidate] = []

    for candidate in candidates:
        trace = list(candidate.rule_trace)
        confidence = candidate.confidence

        for rule in rules:
            outcome = rule.evaluate(candidate.transaction, candidate.document, preferences)
            trace.extend(outcome.trace)
            confidence = apply_delta(confidence, outcome.confidence_delta)

        scored.append(
            Candidate(
                transaction=candidate.transaction,
                document=candidate.document,
                confidence=confidence,
                rule_trace=trace,
            )
        )

    return scored


def classify_results(
    candidates: Sequence[Candidate],
    preferences: MatchingPreferences,
    all_transaction_ids: Sequence[str],
    all_document_ids: Sequence[str],
) -> ReconciliationOutput:
    """
    Classify scored candidates into matched, ambiguous and unmatched sets.

    Args:
        candidates: Scored candidates
        preferences: Matching preferences carrying the thresholds
        all_transaction_ids: Every transaction id in the run
        all_document_ids: Every document id in the run

    Returns:
        ReconciliationOutput with matches and diagnostics (summary left empty)
    """
    by_transaction: dict[str, list[Candidate]] = {}
    for candidate in candidates:
        by_transaction.setdefault(candidate.transaction.id, []).append(candidate)

    matches = MatchSets()
    used_transactions: set[str] = set()
    used_documents: set[str] = set()
    below_threshold = 0

    for txn_id, txn_candidates in by_transaction.items():
        decision, discarded = _classify_transaction(txn_id, txn_candidates, preferences)
        below_threshold += discarded

        if decision is None:
            logger.debug(f"Transaction {txn_id}: no candidate above threshold")
            continue

        used_transactions.add(txn_id)
        if isinstance(decision, MatchedPair):
            matches.matched_pairs.append(decision)
            used_documents.update(decision.document_ids)
            logger.debug(
                f"Transaction {txn_id}: matched {decision.document_ids[0]} "
                f"({decision.confidence:.2f})"
            )
        else:
            matches.ambiguous_matches.append(decision)
            used_documents.update(c.document_id for c in decision.candidate_documents)
            logger.debug(
                f"Transaction {txn_id}: ambiguous, {decision.reason} "
                f"({len(decision.candidate_documents)} documents)"
            )

    matches.unmatched_transactions = [
        i for i in all_transaction_ids if i not in used_transactions
    ]
    matches.unmatched_documents = [i for i in all_document_ids if i not in used_documents]

    diagnostics = Diagnostics(
        rules_applied=_collect_rules(candidates),
        metrics={
            "total_transactions": len(all_transaction_ids),
            "total_documents": len(all_document_ids),
            "definitive_matches": len(matches.matched_pairs),
            "ambiguous_matches": len(matches.ambiguous_matches),
            "unmatched_transactions": len(matches.unmatched_transactions),
            "unmatched_documents": len(matches.unmatched_documents),
            "candidates_generated": len(candidates),
            "candidates_below_threshold": below_threshold,
            # Reserved until the rules report their own counters
            "cross_currency_attempts": 0,
            "partial_payment_patterns": 0,
        },
        notes=_build_notes(all_transaction_ids, all_document_ids, below_threshold),
    )

    return ReconciliationOutput(matches=matches, diagnostics=diagnostics)


def _classify_transaction(
    txn_id: str,
    candidates: list[Candidate],
    preferences: MatchingPreferences,
) -> tuple[Union[MatchedPair, AmbiguousMatch, None], int]:
    """
    Decide the outcome for one transaction's candidates.

    Returns:
        Tuple of (decision, discarded): the MatchedPair, AmbiguousMatch or
        None, and the number of candidates below the candidate threshold
    """
    viable = [
        c for c in candidates if c.confidence >= preferences.min_confidence_candidate
    ]
    discarded = len(candidates) - len(viable)
    if not viable:
        return None, discarded

    # sorted() is stable, so ties keep enumeration order
    viable = sorted(viable, key=lambda c: c.confidence, reverse=True)
    top = viable[0]

    if top.confidence >= preferences.min_confidence_auto_match and len(viable) == 1:
        pair = MatchedPair(
            transaction_ids=[txn_id],
            document_ids=[top.document.id],
            confidence=top.confidence,
            rule_trace=list(top.rule_trace),
        )
        return pair, discarded

    ambiguous = AmbiguousMatch(
        transaction_ids=[txn_id],
        candidate_documents=[
            CandidateDocument(
                document_id=c.document.id,
                confidence=c.confidence,
                rule_trace=list(c.rule_trace),
            )
            for c in viable
        ],
        reason=REASON_MULTIPLE_CANDIDATES if len(viable) > 1 else REASON_BELOW_AUTO_MATCH,
    )
    return ambiguous, discarded


def _collect_rules(candidates: Iterable[Candidate]) -> list[str]:
    """Distinct trace tokens in order of first appearance."""
    seen: dict[str, None] = {}
    for candidate in candidates:
        for token in candidate.rule_trace:
            seen.setdefault(token, None)
    return list(seen)


def _build_notes(
    all_transaction_ids: Sequence[str],
    all_document_ids: Sequence[str],
    below_threshold: int,
) -> list[str]:
    notes: list[str] = []
    if not all_transaction_ids:
        notes.append("No transactions supplied")
    if not all_document_ids:
        notes.append("No documents supplied")
    if below_threshold:
        notes.append(
            f"{below_threshold} candidate(s) discarded below min_confidence_candidate"
        )
    return notes

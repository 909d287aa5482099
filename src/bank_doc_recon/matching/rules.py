"""
Matching rules for transaction to document reconciliation.
Each rule evaluates one transaction/document pair against the preferences.
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Optional
import math

from ..config import MatchingPreferences
from ..models.records import Document, Transaction
from ..models.results import RuleOutcome


class MatchingRule(ABC):
    """
    Abstract base class for matching rules.

    Rules are pure: they never mutate their inputs and never raise on
    missing fields. A field a rule needs but cannot find means the rule
    does not apply.
    """

    name: str = ""
    # "hard" rules filter pairs out, "soft" rules only move confidence
    kind: str = "hard"

    @abstractmethod
    def evaluate(
        self,
        transaction: Transaction,
        document: Document,
        preferences: MatchingPreferences,
    ) -> RuleOutcome:
        """
        Evaluate a transaction/document pair.

        Args:
            transaction: Bank transaction
            document: Candidate document
            preferences: Matching preferences for this run

        Returns:
            RuleOutcome with accept flag, confidence delta and trace
        """
        pass

    def _outcome(self, accept: bool, confidence_delta: float) -> RuleOutcome:
        return RuleOutcome(
            accept=accept, confidence_delta=confidence_delta, trace=[self.name]
        )


class AmountStrictRule(MatchingRule):
    """Hard filter: transaction amount must equal the document total exactly."""

    name = "AMOUNT_STRICT"

    def evaluate(self, transaction, document, preferences):
        accept = (
            transaction.amount is not None
            and document.total_amount is not None
            and transaction.amount == document.total_amount
        )
        return self._outcome(accept, 0.5 if accept else 0.0)


class CurrencyMatchRule(MatchingRule):
    """
    Hard filter on currency.

    Differing currencies are penalised, and rejected outright unless cross
    currency matching is allowed. A missing currency on either side is not
    a conflict.
    """

    name = "CURRENCY_MATCH"

    def evaluate(self, transaction, document, preferences):
        if (
            transaction.currency
            and document.currency
            and transaction.currency != document.currency
        ):
            # The penalty is recorded even when the pair is discarded
            return self._outcome(preferences.allow_cross_currency, -0.5)
        return self._outcome(True, 0.0)


class DateWindowRule(MatchingRule):
    """
    Hard filter: transaction date must fall inside the document's window.

    The window opens ``pre_issue_grace_days`` before the issue date and
    closes ``post_due_grace_days`` after the due date, or
    ``date_tolerance_days`` after the issue date when there is no due date.
    Missing dates leave that side of the window open. Fractional day counts
    round down to whole days.
    """

    name = "DATE_WINDOW"

    def evaluate(self, transaction, document, preferences):
        txn_date = transaction.date
        if txn_date is None:
            return self._outcome(False, -0.5)

        if document.issue_date is not None:
            window_start = _shift(
                document.issue_date, -math.floor(preferences.pre_issue_grace_days)
            )
            if window_start is not None and txn_date < window_start:
                return self._outcome(False, -0.5)

        if document.due_date is not None:
            window_end = _shift(document.due_date, math.floor(preferences.post_due_grace_days))
        elif document.issue_date is not None:
            window_end = _shift(document.issue_date, math.floor(preferences.date_tolerance_days))
        else:
            window_end = None

        if window_end is not None and txn_date > window_end:
            return self._outcome(False, -0.5)

        return self._outcome(True, 0.3)


class NameSimilarityRule(MatchingRule):
    """Soft rule: weak boost when counterparty and issuer share a token."""

    name = "NAME_SIMILARITY"
    kind = "soft"

    def evaluate(self, transaction, document, preferences):
        txn_tokens = _tokenize(transaction.counterparty)
        doc_tokens = set(_tokenize(document.issuer_name))

        common = [t for t in txn_tokens if t in doc_tokens]
        overlap = len(common) / max(1, len(txn_tokens))

        return self._outcome(True, 0.1 if overlap > 0 else 0.0)


class ReferenceMatchRule(MatchingRule):
    """Soft rule: strong boost when the payment reference appears in the text."""

    name = "REF_MATCH"
    kind = "soft"

    def evaluate(self, transaction, document, preferences):
        if not document.payment_reference:
            return self._outcome(True, 0.0)

        reference = document.payment_reference.lower()
        description = (transaction.description or "").lower()
        counterparty = (transaction.counterparty or "").lower()

        found = reference in description or reference in counterparty
        return self._outcome(True, 0.5 if found else 0.0)


class PartialPaymentRule(MatchingRule):
    """
    Soft rule for payments smaller than the document total.

    When partial payments are disallowed the outcome is a rejection with a
    -0.5 delta. It runs in the scoring stage, which applies the delta but
    never drops the candidate.
    """

    name = "PARTIAL_PAYMENTS"
    kind = "soft"

    def evaluate(self, transaction, document, preferences):
        if (
            transaction.amount is not None
            and document.total_amount is not None
            and transaction.amount < document.total_amount
        ):
            if preferences.allow_partial_payments:
                return self._outcome(True, 0.0)
            return self._outcome(False, -0.5)
        return self._outcome(True, 0.0)


def _shift(day: date, days: int) -> Optional[date]:
    """Offset a date by whole days; None when it leaves the calendar range."""
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return None


def _tokenize(text) -> list[str]:
    """Lowercase and split on whitespace."""
    return text.lower().split() if text else []


# Evaluation order matters: generation short-circuits on the first rejection
HARD_RULES: tuple[MatchingRule, ...] = (
    AmountStrictRule(),
    CurrencyMatchRule(),
    DateWindowRule(),
)

SOFT_RULES: tuple[MatchingRule, ...] = (
    NameSimilarityRule(),
    ReferenceMatchRule(),
    PartialPaymentRule(),
)

RULE_REGISTRY: dict[str, MatchingRule] = {
    rule.name: rule for rule in HARD_RULES + SOFT_RULES
}

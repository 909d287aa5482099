"""
Tests for the individual matching rules.
"""

from datetime import date

import pytest

from bank_doc_recon.config import MatchingPreferences
from bank_doc_recon.matching.rules import (
    HARD_RULES,
    RULE_REGISTRY,
    SOFT_RULES,
    AmountStrictRule,
    CurrencyMatchRule,
    DateWindowRule,
    NameSimilarityRule,
    PartialPaymentRule,
    ReferenceMatchRule,
)

from conftest import make_doc, make_txn


# ============================================
# Hard rules
# ============================================

class TestAmountStrict:
    """AMOUNT_STRICT accepts only exact amount equality."""

    def test_equal_amounts_accepted(self, prefs):
        outcome = AmountStrictRule().evaluate(make_txn("t1", 100), make_doc("d1", 100), prefs)

        assert outcome.accept is True
        assert outcome.confidence_delta == 0.5
        assert outcome.trace == ["AMOUNT_STRICT"]

    def test_different_amounts_rejected(self, prefs):
        outcome = AmountStrictRule().evaluate(make_txn("t1", 90), make_doc("d1", 100), prefs)

        assert outcome.accept is False
        assert outcome.confidence_delta == 0

    def test_no_rounding_tolerance(self, prefs):
        outcome = AmountStrictRule().evaluate(
            make_txn("t1", 100.01), make_doc("d1", 100), prefs
        )
        assert outcome.accept is False

    def test_trailing_zeros_are_equal(self, prefs):
        outcome = AmountStrictRule().evaluate(
            make_txn("t1", "100.00"), make_doc("d1", 100), prefs
        )
        assert outcome.accept is True

    def test_missing_amount_rejected(self, prefs):
        outcome = AmountStrictRule().evaluate(make_txn("t1", None), make_doc("d1", 100), prefs)
        assert outcome.accept is False


class TestCurrencyMatch:
    """CURRENCY_MATCH rejects differing currencies unless allowed."""

    def test_same_currency_accepted(self, prefs):
        outcome = CurrencyMatchRule().evaluate(make_txn("t1"), make_doc("d1"), prefs)

        assert outcome.accept is True
        assert outcome.confidence_delta == 0

    def test_different_currency_rejected(self, prefs):
        outcome = CurrencyMatchRule().evaluate(
            make_txn("t1", currency="USD"), make_doc("d1", currency="EUR"), prefs
        )

        assert outcome.accept is False
        assert outcome.confidence_delta == -0.5
        assert outcome.trace == ["CURRENCY_MATCH"]

    def test_different_currency_allowed_with_penalty(self, prefs):
        allowed = prefs.model_copy(update={"allow_cross_currency": True})
        outcome = CurrencyMatchRule().evaluate(
            make_txn("t1", currency="USD"), make_doc("d1", currency="EUR"), allowed
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == -0.5

    @pytest.mark.parametrize("txn_ccy,doc_ccy", [(None, "EUR"), ("USD", None), (None, None)])
    def test_missing_currency_is_not_a_conflict(self, prefs, txn_ccy, doc_ccy):
        outcome = CurrencyMatchRule().evaluate(
            make_txn("t1", currency=txn_ccy), make_doc("d1", currency=doc_ccy), prefs
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0


class TestDateWindow:
    """DATE_WINDOW checks the transaction date against the document window."""

    def test_within_tolerance_after_issue(self, prefs):
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=date(2025, 1, 12)),
            make_doc("d1", issue_date=date(2025, 1, 10)),
            prefs,
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0.3

    def test_after_tolerance_rejected(self, prefs):
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=date(2025, 2, 1)),
            make_doc("d1", issue_date=date(2025, 1, 10)),
            prefs,
        )

        assert outcome.accept is False
        assert outcome.confidence_delta == -0.5

    def test_window_bounds_are_inclusive(self, prefs):
        doc = make_doc("d1", issue_date=date(2025, 1, 10))

        on_issue = DateWindowRule().evaluate(make_txn("t1", txn_date=date(2025, 1, 10)), doc, prefs)
        on_end = DateWindowRule().evaluate(make_txn("t2", txn_date=date(2025, 1, 13)), doc, prefs)
        past_end = DateWindowRule().evaluate(make_txn("t3", txn_date=date(2025, 1, 14)), doc, prefs)

        assert on_issue.accept is True
        assert on_end.accept is True
        assert past_end.accept is False

    def test_before_issue_needs_pre_issue_grace(self, prefs):
        txn = make_txn("t1", txn_date=date(2025, 1, 8))
        doc = make_doc("d1", issue_date=date(2025, 1, 10))

        assert DateWindowRule().evaluate(txn, doc, prefs).accept is False

        graced = prefs.model_copy(update={"pre_issue_grace_days": 2})
        assert DateWindowRule().evaluate(txn, doc, graced).accept is True

    def test_due_date_takes_precedence_over_tolerance(self, prefs):
        doc = make_doc("d1", issue_date=date(2025, 1, 10), due_date=date(2025, 2, 10))

        # Due date + 7 days of post-due grace
        inside = DateWindowRule().evaluate(make_txn("t1", txn_date=date(2025, 2, 17)), doc, prefs)
        outside = DateWindowRule().evaluate(make_txn("t2", txn_date=date(2025, 2, 18)), doc, prefs)

        assert inside.accept is True
        assert outside.accept is False

    def test_no_document_dates_means_open_window(self, prefs):
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=date(1999, 1, 1)),
            make_doc("d1", issue_date=None),
            prefs,
        )
        assert outcome.accept is True

    def test_due_date_only_leaves_start_open(self, prefs):
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=date(2020, 1, 1)),
            make_doc("d1", issue_date=None, due_date=date(2025, 1, 31)),
            prefs,
        )
        assert outcome.accept is True

    def test_fractional_tolerance_rounds_down(self, prefs):
        fractional = prefs.model_copy(update={"date_tolerance_days": 2.5})
        doc = make_doc("d1", issue_date=date(2025, 1, 10))

        inside = DateWindowRule().evaluate(make_txn("t1", txn_date=date(2025, 1, 12)), doc, fractional)
        outside = DateWindowRule().evaluate(make_txn("t2", txn_date=date(2025, 1, 13)), doc, fractional)

        assert inside.accept is True
        assert outside.accept is False

    def test_fractional_pre_issue_grace_rounds_down(self, prefs):
        fractional = prefs.model_copy(update={"pre_issue_grace_days": 1.5})
        doc = make_doc("d1", issue_date=date(2025, 1, 10))

        inside = DateWindowRule().evaluate(make_txn("t1", txn_date=date(2025, 1, 9)), doc, fractional)
        outside = DateWindowRule().evaluate(make_txn("t2", txn_date=date(2025, 1, 8)), doc, fractional)

        assert inside.accept is True
        assert outside.accept is False

    def test_missing_transaction_date_rejected(self, prefs):
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=None), make_doc("d1"), prefs
        )

        assert outcome.accept is False
        assert outcome.confidence_delta == -0.5

    def test_huge_grace_does_not_raise(self):
        wide = MatchingPreferences(pre_issue_grace_days=10**7, post_due_grace_days=10**7)
        outcome = DateWindowRule().evaluate(
            make_txn("t1", txn_date=date(2025, 1, 1)),
            make_doc("d1", issue_date=date(2025, 1, 10), due_date=date(2025, 1, 20)),
            wide,
        )
        assert outcome.accept is True


# ============================================
# Soft rules
# ============================================

class TestNameSimilarity:
    """NAME_SIMILARITY gives a weak boost for shared name tokens."""

    def test_shared_token_boosts(self, prefs):
        outcome = NameSimilarityRule().evaluate(
            make_txn("t1", counterparty="Acme Corp"),
            make_doc("d1", issuer_name="Acme Corporation"),
            prefs,
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0.1
        assert outcome.trace == ["NAME_SIMILARITY"]

    def test_matching_is_case_insensitive(self, prefs):
        outcome = NameSimilarityRule().evaluate(
            make_txn("t1", counterparty="BETA ltd"),
            make_doc("d1", issuer_name="Beta Holdings"),
            prefs,
        )
        assert outcome.confidence_delta == 0.1

    def test_unrelated_names_no_boost(self, prefs):
        outcome = NameSimilarityRule().evaluate(
            make_txn("t1", counterparty="Foo Bar"),
            make_doc("d1", issuer_name="Acme Corp"),
            prefs,
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0

    def test_missing_names_no_boost(self, prefs):
        outcome = NameSimilarityRule().evaluate(
            make_txn("t1", counterparty=""), make_doc("d1", issuer_name=None), prefs
        )
        assert outcome.confidence_delta == 0


class TestReferenceMatch:
    """REF_MATCH boosts when the payment reference shows up in the transaction."""

    def test_reference_in_description(self, prefs):
        outcome = ReferenceMatchRule().evaluate(
            make_txn("t1", description="Payment REF12345"),
            make_doc("d1", payment_reference="REF12345"),
            prefs,
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0.5

    def test_reference_in_counterparty_case_insensitive(self, prefs):
        outcome = ReferenceMatchRule().evaluate(
            make_txn("t1", description="", counterparty="acme inv-77"),
            make_doc("d1", payment_reference="INV-77"),
            prefs,
        )
        assert outcome.confidence_delta == 0.5

    def test_reference_not_found(self, prefs):
        outcome = ReferenceMatchRule().evaluate(
            make_txn("t1", description="Payment"),
            make_doc("d1", payment_reference="REF99999"),
            prefs,
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0

    def test_no_reference_on_document(self, prefs):
        outcome = ReferenceMatchRule().evaluate(
            make_txn("t1", description="REF1"), make_doc("d1", payment_reference=None), prefs
        )
        assert outcome.confidence_delta == 0


class TestPartialPayments:
    """PARTIAL_PAYMENTS penalises under-payments unless they are allowed."""

    def test_partial_payment_penalised_when_not_allowed(self, prefs):
        outcome = PartialPaymentRule().evaluate(make_txn("t1", 50), make_doc("d1", 100), prefs)

        assert outcome.accept is False
        assert outcome.confidence_delta == -0.5
        assert outcome.trace == ["PARTIAL_PAYMENTS"]

    def test_partial_payment_allowed(self, prefs):
        allowed = prefs.model_copy(update={"allow_partial_payments": True})
        outcome = PartialPaymentRule().evaluate(make_txn("t1", 50), make_doc("d1", 100), allowed)

        assert outcome.accept is True
        assert outcome.confidence_delta == 0

    @pytest.mark.parametrize("amount", [100, 150, None])
    def test_full_over_or_unknown_payment_not_partial(self, prefs, amount):
        outcome = PartialPaymentRule().evaluate(
            make_txn("t1", amount), make_doc("d1", 100), prefs
        )

        assert outcome.accept is True
        assert outcome.confidence_delta == 0


# ============================================
# Rule sets
# ============================================

class TestRuleSets:
    """Rule ordering and registry."""

    def test_hard_rule_order(self):
        assert [r.name for r in HARD_RULES] == ["AMOUNT_STRICT", "CURRENCY_MATCH", "DATE_WINDOW"]
        assert all(r.kind == "hard" for r in HARD_RULES)

    def test_soft_rule_order(self):
        assert [r.name for r in SOFT_RULES] == ["NAME_SIMILARITY", "REF_MATCH", "PARTIAL_PAYMENTS"]
        assert all(r.kind == "soft" for r in SOFT_RULES)

    def test_registry_covers_all_rules(self):
        assert set(RULE_REGISTRY) == {r.name for r in HARD_RULES + SOFT_RULES}

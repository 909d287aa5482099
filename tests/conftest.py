"""
Pytest configuration and shared fixtures.
"""

from datetime import date
import logging
from decimal import Decimal
from typing import Optional

import pytest

from bank_doc_recon.config import MatchingPreferences
from bank_doc_recon.models.records import Document, Transaction


def make_txn(
    id: str,
    amount: Optional[float] = 100,
    txn_date: Optional[date] = date(2025, 1, 12),
    currency: Optional[str] = "EUR",
    description: str = "Payment",
    counterparty: str = "",
) -> Transaction:
    return Transaction(
        id=id,
        date=txn_date,
        amount=Decimal(str(amount)) if amount is not None else None,
        currency=currency,
        description=description,
        counterparty=counterparty,
    )


def make_doc(
    id: str,
    total_amount: float = 100,
    issue_date: Optional[date] = date(2025, 1, 10),
    due_date: Optional[date] = None,
    currency: Optional[str] = "EUR",
    issuer_name: Optional[str] = None,
    payment_reference: Optional[str] = None,
) -> Document:
    return Document(
        id=id,
        total_amount=Decimal(str(total_amount)),
        issue_date=issue_date,
        due_date=due_date,
        currency=currency,
        issuer_name=issuer_name,
        payment_reference=payment_reference,
    )


@pytest.fixture
def prefs() -> MatchingPreferences:
    """Preferences used throughout the scenario tests."""
    return MatchingPreferences(
        date_tolerance_days=3,
        pre_issue_grace_days=0,
        post_due_grace_days=7,
        min_confidence_auto_match=0.9,
        min_confidence_candidate=0.5,
        allow_cross_currency=False,
        allow_partial_payments=False,
    )


@pytest.fixture
def envelope_dict() -> dict:
    """Input envelope with a perfect match, an ambiguous match and two orphans."""
    return {
        "bank_side": {
            "transactions": [
                {
                    "transaction_id": "perfect",
                    "date": "2025-01-12",
                    "amount": 100,
                    "currency": "EUR",
                    "description": "Invoice REF001",
                    "counterparty": "Acme Corp",
                    "raw_line_number": 4,
                },
                {
                    "transaction_id": "ambig",
                    "date": "2025-01-20",
                    "amount": 200,
                    "currency": "EUR",
                    "description": "Payment",
                    "counterparty": "Beta Ltd",
                },
                {
                    "transaction_id": "nodoc",
                    "date": "2025-01-25",
                    "amount": 300,
                    "currency": "EUR",
                    "description": "Unmatched",
                    "counterparty": "Gamma LLC",
                },
            ],
            "diagnostics": {},
            "context": {"default_currency": "EUR"},
        },
        "document_side": {
            "documents": [
                {
                    "document_id": "docPerfect",
                    "document_type": "invoice",
                    "total_amount": 100,
                    "issue_date": "2025-01-10",
                    "issuer_name": "Acme Corporation",
                    "payment_reference": "REF001",
                },
                {
                    "document_id": "docAmbigA",
                    "document_type": "invoice",
                    "total_amount": 200,
                    "issue_date": "2025-01-18",
                    "issuer_name": "Beta Ltd",
                },
                {
                    "document_id": "docAmbigB",
                    "document_type": "invoice",
                    "total_amount": 200,
                    "issue_date": "2025-01-19",
                    "issuer_name": "Beta Ltd",
                },
                {
                    "document_id": "orphan",
                    "document_type": "invoice",
                    "total_amount": 400,
                    "issue_date": "2025-01-30",
                    "issuer_name": "Delta Inc",
                },
            ],
            "context": {"default_currency": "EUR"},
        },
        "matching_prefs": {
            "date_tolerance_days": 3,
            "pre_issue_grace_days": 0,
            "post_due_grace_days": 7,
            "min_confidence_auto_match": 0.9,
            "min_confidence_candidate": 0.5,
            "allow_cross_currency": False,
            "allow_partial_payments": False,
        },
    }


@pytest.fixture(autouse=True)
def reset_app_logging():
    """Drop handlers that the CLI attaches to the application logger."""
    yield
    logger = logging.getLogger("bank_doc_recon")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.setLevel(logging.NOTSET)

"""Validation schema for the reconciliation input envelope."""

import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import MatchingPreferences
from .records import Document, Transaction


class TransactionRecord(BaseModel):
    """Normalized transaction as delivered by the normalizer."""

    model_config = ConfigDict(extra="allow")

    transaction_id: str
    date: Optional[Union[datetime.date, str]] = None
    amount: Optional[Decimal] = None
    direction: Optional[str] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    counterparty: Optional[str] = None
    normalisation_notes: Optional[list[str]] = None
    raw_source_file: Optional[str] = None
    raw_line_number: Optional[int] = None


class DocumentRecord(BaseModel):
    """Normalized document (invoice or commission line)."""

    model_config = ConfigDict(extra="allow")

    document_id: str
    document_type: str
    issuer_name: Optional[str] = None
    issuer_tax_id: Optional[str] = None
    issue_date: Optional[Union[datetime.date, str]] = None
    due_date: Optional[Union[datetime.date, str]] = None
    total_amount: Decimal
    currency: Optional[str] = None
    status: Optional[str] = None
    payment_reference: Optional[str] = None
    raw_source_id: Optional[str] = None


class StatementPeriod(BaseModel):
    start: Union[datetime.date, str]
    end: Union[datetime.date, str]


class BankContext(BaseModel):
    default_currency: Optional[str] = None
    statement_period: Optional[StatementPeriod] = None


class DocumentContext(BaseModel):
    default_currency: Optional[str] = None


class BankSide(BaseModel):
    transactions: list[TransactionRecord]
    # Upstream flags are passed through untouched
    diagnostics: Optional[Any] = None
    context: BankContext = Field(default_factory=BankContext)


class DocumentSide(BaseModel):
    documents: list[DocumentRecord]
    context: DocumentContext = Field(default_factory=DocumentContext)


class ReconciliationInput(BaseModel):
    """
    Input envelope for a reconciliation run.

    Mirrors the structure produced by the upstream normalizer and bank
    diagnostics: a bank side, a document side and the matching preferences.
    """

    bank_side: BankSide
    document_side: DocumentSide
    matching_prefs: MatchingPreferences = Field(default_factory=MatchingPreferences)

    @field_validator("matching_prefs", mode="before")
    @classmethod
    def _default_prefs(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_transactions(self) -> list[Transaction]:
        """Convert the bank side into pipeline transactions."""
        return [
            Transaction.from_dict(record.model_dump())
            for record in self.bank_side.transactions
        ]

    def to_documents(self) -> list[Document]:
        """Convert the document side into pipeline documents."""
        return [
            Document.from_dict(record.model_dump())
            for record in self.document_side.documents
        ]

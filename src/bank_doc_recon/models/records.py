"""Transaction and document records consumed by the matching pipeline."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..utils.exceptions import RecordValidationError

TRANSACTION_FIELDS = {
    "id",
    "transaction_id",
    "date",
    "amount",
    "currency",
    "description",
    "counterparty",
}

# Alias so the annotation is not shadowed by the Transaction.date field
CalendarDate = date

DOCUMENT_FIELDS = {
    "id",
    "document_id",
    "type",
    "document_type",
    "issuer_name",
    "issue_date",
    "due_date",
    "total_amount",
    "currency",
    "payment_reference",
    "status",
}


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date value into a ``date``.

    Accepts ``date``/``datetime`` objects and ISO-8601 strings (a trailing
    time component is allowed). Anything else yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Only a full timestamp may carry text past the date part
    if len(text) <= 10 or text[10] not in ("T", " "):
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse an amount into a Decimal, or None if it is absent or invalid."""
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True)
class Transaction:
    """
    A normalized bank transaction.

    Produced upstream by the normalizer and only read by the matching
    pipeline. Fields outside the core schema are kept in ``metadata``.
    """

    id: str
    date: Optional[CalendarDate] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    description: str = ""
    counterparty: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """
        Build a transaction from a loosely-shaped record.

        Args:
            data: Record with ``id`` or ``transaction_id`` and optional fields

        Returns:
            Transaction instance

        Raises:
            RecordValidationError: If the record has no id
        """
        txn_id = data.get("transaction_id")
        if txn_id is None:
            txn_id = data.get("id")
        if txn_id is None or str(txn_id) == "":
            raise RecordValidationError("Transaction record has no id")

        metadata = {k: v for k, v in data.items() if k not in TRANSACTION_FIELDS}

        txn_date = parse_date(data.get("date"))
        if txn_date is None and data.get("date") is not None:
            # Keep the unparseable value for audit
            metadata["raw_date"] = data.get("date")

        return cls(
            id=str(txn_id),
            date=txn_date,
            amount=parse_amount(data.get("amount")),
            currency=_optional_text(data.get("currency")),
            description=_optional_text(data.get("description")) or "",
            counterparty=_optional_text(data.get("counterparty")) or "",
            metadata=metadata,
        )


@dataclass(frozen=True)
class Document:
    """A financial document (invoice, commission line) to be paid."""

    id: str
    total_amount: Decimal
    type: str = "invoice"
    issuer_name: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Optional[str] = None
    payment_reference: Optional[str] = None
    status: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """
        Build a document from a loosely-shaped record.

        Raises:
            RecordValidationError: If the id or total amount is missing
        """
        doc_id = data.get("document_id")
        if doc_id is None:
            doc_id = data.get("id")
        if doc_id is None or str(doc_id) == "":
            raise RecordValidationError("Document record has no id")

        total_amount = parse_amount(data.get("total_amount"))
        if total_amount is None:
            raise RecordValidationError(
                f"Document {doc_id} has no valid total_amount: "
                f"{data.get('total_amount')!r}"
            )

        return cls(
            id=str(doc_id),
            total_amount=total_amount,
            type=_optional_text(data.get("document_type") or data.get("type")) or "invoice",
            issuer_name=_optional_text(data.get("issuer_name")),
            issue_date=parse_date(data.get("issue_date")),
            due_date=parse_date(data.get("due_date")),
            currency=_optional_text(data.get("currency")),
            payment_reference=_optional_text(data.get("payment_reference")),
            status=_optional_text(data.get("status")),
            metadata={k: v for k, v in data.items() if k not in DOCUMENT_FIELDS},
        )

"""
Input loaders for reconciliation runs.
Reads the input envelope from JSON/YAML and normalized record lists from
CSV or JSON files.
"""

from pathlib import Path
from typing import Any, Callable, TypeVar
import json
import logging

import pandas as pd
import yaml
from pydantic import ValidationError

from ..models.envelope import ReconciliationInput
from ..models.records import Document, Transaction
from ..utils.exceptions import InputLoadError, RecordValidationError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Transaction, Document)


def load_envelope(file_path: Path) -> ReconciliationInput:
    """
    Load and validate a reconciliation input envelope.

    Args:
        file_path: Path to a ``.json``, ``.yaml`` or ``.yml`` file

    Returns:
        Validated ReconciliationInput

    Raises:
        InputLoadError: If the file cannot be read or fails validation
    """
    logger.info(f"Loading reconciliation input: {file_path}")
    data = _read_structured(file_path)

    try:
        envelope = ReconciliationInput.model_validate(data)
    except ValidationError as e:
        raise InputLoadError(f"Invalid reconciliation input in {file_path}: {e}") from e

    logger.info(
        f"Loaded {len(envelope.bank_side.transactions)} transactions and "
        f"{len(envelope.document_side.documents)} documents"
    )
    return envelope


def load_transactions(file_path: Path) -> list[Transaction]:
    """Load normalized transactions from a CSV or JSON file."""
    return _load_records(file_path, "transactions", Transaction.from_dict)


def load_documents(file_path: Path) -> list[Document]:
    """Load normalized documents from a CSV or JSON file."""
    return _load_records(file_path, "documents", Document.from_dict)


def _load_records(
    file_path: Path,
    key: str,
    build: Callable[[dict[str, Any]], RecordT],
) -> list[RecordT]:
    """
    Load records and convert each one with ``build``.

    JSON files may hold a bare list or an object with the list under ``key``.
    """
    logger.info(f"Loading {key} from: {file_path}")

    if file_path.suffix.lower() == ".csv":
        rows = _read_csv_rows(file_path)
    else:
        data = _read_structured(file_path)
        rows = data.get(key) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise InputLoadError(f"Expected a list of {key} in {file_path}")

    records: list[RecordT] = []
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise InputLoadError(f"{file_path}: record {idx} is not an object")
        try:
            records.append(build(row))
        except RecordValidationError as e:
            raise InputLoadError(f"{file_path}: record {idx}: {e}") from e

    logger.info(f"Loaded {len(records)} {key} from {file_path.name}")
    return records


def _read_csv_rows(file_path: Path) -> list[dict[str, Any]]:
    """Read a CSV of canonical columns; empty cells become None."""
    try:
        # Read as text so ids keep leading zeros and amounts stay exact.
        # Only empty cells are missing; "NA" or "null" are real values.
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False, na_values=[""])
    except Exception as e:
        logger.error(f"Failed to read CSV file: {e}")
        raise InputLoadError(f"Failed to read CSV file {file_path}: {e}") from e

    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def _read_structured(file_path: Path) -> Any:
    """Read a JSON or YAML document."""
    suffix = file_path.suffix.lower()
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                return json.load(f)
            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise InputLoadError(f"Failed to read {file_path}: {e}") from e

    raise InputLoadError(
        f"Unsupported input format '{suffix}' for {file_path} "
        "(expected .json, .yaml, .yml or .csv)"
    )

"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence
import logging

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..matching.rules import RULE_REGISTRY
from ..models.records import Document, Transaction
from ..models.results import ReconciliationOutput
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
AMBIGUOUS_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_config = config.output.sheets

    def generate_report(
        self,
        output: ReconciliationOutput,
        output_path: Path,
        transactions: Sequence[Transaction] = (),
        documents: Sequence[Document] = (),
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            output: Reconciliation output to report on
            output_path: Path for output file
            transactions: Source transactions, used to detail unmatched rows
            documents: Source documents, used to detail unmatched rows

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        txn_by_id = {t.id: t for t in transactions}
        doc_by_id = {d.id: d for d in documents}

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, sheets.summary, output)
        if sheets.matched.enabled:
            self._create_matched_sheet(wb, sheets.matched, output)
        if sheets.ambiguous.enabled:
            self._create_ambiguous_sheet(wb, sheets.ambiguous, output)
        if sheets.unmatched_transactions.enabled:
            self._create_unmatched_transactions_sheet(
                wb, sheets.unmatched_transactions, output, txn_by_id
            )
        if sheets.unmatched_documents.enabled:
            self._create_unmatched_documents_sheet(
                wb, sheets.unmatched_documents, output, doc_by_id
            )
        if sheets.rule_audit.enabled:
            self._create_rule_audit_sheet(wb, sheets.rule_audit, output)

        # An openpyxl workbook needs at least one sheet to save
        if not wb.worksheets:
            wb.create_sheet("Report")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self, wb: Workbook, sheet: SheetConfig, output: ReconciliationOutput
    ) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Run Information"
        ws["A3"].font = Font(bold=True)
        ws["A4"] = "Generated At:"
        ws["B4"] = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        ws["A5"] = "Config File:"
        ws["B5"] = self.config.config_file_path or "Default"

        row = 7
        ws[f"A{row}"] = "Counts"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1
        for label, value in output.summary.items():
            ws[f"A{row}"] = _label(label)
            ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "Metrics"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1
        for label, value in output.diagnostics.metrics.items():
            ws[f"A{row}"] = _label(label)
            ws[f"B{row}"] = value
            row += 1

        if output.diagnostics.notes:
            row += 1
            ws[f"A{row}"] = "Notes"
            ws[f"A{row}"].font = Font(bold=True)
            row += 1
            for note in output.diagnostics.notes:
                ws[f"A{row}"] = note
                row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matched_sheet(
        self, wb: Workbook, sheet: SheetConfig, output: ReconciliationOutput
    ) -> None:
        """Create the matched pairs sheet."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(
            ws, ["Transaction ID", "Document ID", "Confidence", "Rule Trace"]
        )

        for row_num, pair in enumerate(output.matches.matched_pairs, start=2):
            row_data = [
                ", ".join(pair.transaction_ids),
                ", ".join(pair.document_ids),
                round(pair.confidence, 4),
                " > ".join(pair.rule_trace),
            ]
            self._write_row(ws, row_num, row_data, MATCH_FILL)

        self._auto_fit_columns(ws)

    def _create_ambiguous_sheet(
        self, wb: Workbook, sheet: SheetConfig, output: ReconciliationOutput
    ) -> None:
        """Create the ambiguous matches sheet, one row per candidate document."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(
            ws,
            ["Transaction ID", "Reason", "Document ID", "Confidence", "Rule Trace"],
        )

        row_num = 2
        for ambiguous in output.matches.ambiguous_matches:
            for candidate in ambiguous.candidate_documents:
                row_data = [
                    ", ".join(ambiguous.transaction_ids),
                    ambiguous.reason,
                    candidate.document_id,
                    round(candidate.confidence, 4),
                    " > ".join(candidate.rule_trace),
                ]
                self._write_row(ws, row_num, row_data, AMBIGUOUS_FILL)
                row_num += 1

        self._auto_fit_columns(ws)

    def _create_unmatched_transactions_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        output: ReconciliationOutput,
        txn_by_id: dict[str, Transaction],
    ) -> None:
        """Create the unmatched transactions sheet."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(
            ws,
            ["Transaction ID", "Date", "Amount", "Currency", "Counterparty", "Description"],
        )

        for row_num, txn_id in enumerate(output.matches.unmatched_transactions, start=2):
            txn = txn_by_id.get(txn_id)
            row_data = [
                txn_id,
                txn.date if txn and txn.date else "",
                _amount(txn.amount) if txn else "",
                (txn.currency or "") if txn else "",
                txn.counterparty if txn else "",
                txn.description if txn else "",
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_unmatched_documents_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        output: ReconciliationOutput,
        doc_by_id: dict[str, Document],
    ) -> None:
        """Create the unmatched documents sheet."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(
            ws,
            [
                "Document ID",
                "Type",
                "Issuer",
                "Issue Date",
                "Due Date",
                "Total Amount",
                "Currency",
                "Payment Reference",
            ],
        )

        for row_num, doc_id in enumerate(output.matches.unmatched_documents, start=2):
            doc = doc_by_id.get(doc_id)
            row_data = [
                doc_id,
                doc.type if doc else "",
                (doc.issuer_name or "") if doc else "",
                (doc.issue_date or "") if doc else "",
                (doc.due_date or "") if doc else "",
                _amount(doc.total_amount) if doc else "",
                (doc.currency or "") if doc else "",
                (doc.payment_reference or "") if doc else "",
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_rule_audit_sheet(
        self, wb: Workbook, sheet: SheetConfig, output: ReconciliationOutput
    ) -> None:
        """Create the rule audit sheet listing every rule seen in this run."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Rule Audit"
        ws["A1"].font = Font(size=14, bold=True)

        header_row = 3
        headers = ["Rule", "Kind"]
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=header_row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT

        row = header_row + 1
        for token in output.diagnostics.rules_applied:
            rule = RULE_REGISTRY.get(token)
            ws.cell(row=row, column=1, value=token)
            ws.cell(row=row, column=2, value=rule.kind if rule else "unknown")
            row += 1

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(
        self,
        ws: Worksheet,
        row_num: int,
        row_data: list[Any],
        fill: Optional[PatternFill] = None,
    ) -> None:
        for col, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            if fill is not None:
                cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = 0
            column = column_cells[0].column_letter

            for cell in column_cells:
                if cell.value is not None:
                    max_length = max(max_length, len(str(cell.value)))

            ws.column_dimensions[column].width = min(max_length + 2, 50)


def _label(key: str) -> str:
    """Turn a snake_case key into a sheet label."""
    return key.replace("_", " ").capitalize() + ":"


def _amount(value) -> Any:
    return float(value) if value is not None else ""

"""
Command-line interface for the bank transaction to document reconciliation tool.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import json
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ReconConfig, generate_default_config, load_config
from .matching.engine import ReconciliationEngine
from .models.results import ReconciliationOutput
from .parsers.input_loader import load_documents, load_envelope, load_transactions
from .reports.excel_generator import ExcelReportGenerator
from .utils.logging_config import resolve_level, setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank Transaction to Document Reconciliation Tool."""
    pass


@main.command()
@click.argument("transactions_file", type=click.Path(exists=True, path_type=Path))
@click.argument("documents_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option(
    "--json-output", type=click.Path(path_type=Path), help="Also write the result as JSON"
)
@click.option(
    "--auto-match", type=float, default=None, help="Override auto-match confidence threshold"
)
@click.option(
    "--candidate-threshold",
    type=float,
    default=None,
    help="Override minimum candidate confidence",
)
@click.option(
    "--date-tolerance", type=int, default=None, help="Override date tolerance in days"
)
@click.option(
    "--allow-cross-currency", is_flag=True, help="Accept differing currencies"
)
@click.option(
    "--allow-partial-payments",
    is_flag=True,
    help="Do not penalise payments below the document total",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Run reconciliation and show summary without a report"
)
def reconcile(
    transactions_file: Path,
    documents_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    json_output: Optional[Path],
    auto_match: Optional[float],
    candidate_threshold: Optional[float],
    date_tolerance: Optional[int],
    allow_cross_currency: bool,
    allow_partial_payments: bool,
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile normalized bank transactions with documents.

    TRANSACTIONS_FILE: CSV or JSON file of normalized transactions
    DOCUMENTS_FILE: CSV or JSON file of normalized documents
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO)

    try:
        recon_config = load_config(config)
        _configure_logging(recon_config, verbose)
        _apply_overrides(
            recon_config,
            date_tolerance_days=date_tolerance,
            min_confidence_auto_match=auto_match,
            min_confidence_candidate=candidate_threshold,
            # Flags only switch an option on; config decides otherwise
            allow_cross_currency=allow_cross_currency or None,
            allow_partial_payments=allow_partial_payments or None,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Loading transactions...", total=None)
            transactions = load_transactions(transactions_file)
            progress.update(task, completed=True)

            task = progress.add_task("Loading documents...", total=None)
            documents = load_documents(documents_file)
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            engine = ReconciliationEngine(recon_config)
            result = engine.reconcile(transactions, documents)
            progress.update(task, completed=True)

        _display_summary(result)

        if json_output is not None:
            _write_json(result, json_output)
            console.print(f"[green]JSON written: {json_output}[/green]")

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        if output is None:
            output = _default_report_path(recon_config)

        report_generator = ExcelReportGenerator(recon_config)
        report_path = report_generator.generate_report(
            result, output, transactions=transactions, documents=documents
        )

        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Write JSON here")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def run(input_file: Path, config: Optional[Path], output: Optional[Path], verbose: bool):
    """
    Run reconciliation on an input envelope and emit the result as JSON.

    INPUT_FILE: JSON or YAML file with bank_side, document_side and matching_prefs
    """
    # Keep stdout clean for the JSON result unless verbose
    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        recon_config = load_config(config)
        _configure_logging(recon_config, verbose, quiet=True)
        envelope = load_envelope(input_file)
        result = ReconciliationEngine(recon_config).run(envelope)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if output is None:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _write_json(result, output)
        console.print(f"[green]JSON written: {output}[/green]")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_summary(result: ReconciliationOutput) -> None:
    """Display reconciliation summary in console."""
    summary = result.summary
    metrics = result.diagnostics.metrics

    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Transactions", str(summary["total_transactions"]))
    table.add_row("Total Documents", str(summary["total_documents"]))
    table.add_row("Candidates Generated", str(metrics["candidates_generated"]))
    table.add_row("Matched Pairs", str(summary["matched_pairs"]))
    table.add_row("Ambiguous Matches", str(summary["ambiguous_matches"]))
    table.add_row("Unmatched Transactions", str(summary["unmatched_transactions"]))
    table.add_row("Unmatched Documents", str(summary["unmatched_documents"]))
    table.add_row("Processing Time", f"{summary['processing_time_seconds']:.2f}s")

    console.print(table)

    for note in result.diagnostics.notes:
        console.print(f"[yellow]Note: {note}[/yellow]")


def _configure_logging(config: ReconConfig, verbose: bool, quiet: bool = False) -> None:
    """Apply the configured log level and format; --verbose wins."""
    if verbose:
        level = logging.DEBUG
    else:
        level = resolve_level(config.logging.level)
        if quiet:
            level = max(level, logging.WARNING)
    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(level, log_file=log_file, log_format=config.logging.format)


def _apply_overrides(config: ReconConfig, **overrides) -> None:
    """Apply command-line preference overrides that were given."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        config.matching = config.matching.model_copy(update=updates)


def _default_report_path(config: ReconConfig) -> Path:
    """Build the report filename from the configured template."""
    now = datetime.now()
    return Path(
        config.output.excel.filename_template.format(
            date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")
        )
    )


def _write_json(result: ReconciliationOutput, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


if __name__ == "__main__":
    main()

"""Report rendering for scan and redaction results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sealcommit.redaction.redactor import RedactionReport
from sealcommit.scanner.base import FindingType, ScanResult

console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")


def format_json(result: ScanResult, include_secrets: bool = False) -> str:
    """Serialize a scan result as JSON.

    Full matches are dropped unless ``include_secrets`` is set; the
    ``truncatedMatch`` display form is always kept.
    """
    data: dict[str, Any] = result.to_dict()
    if not include_secrets:
        for finding in data["findings"]:
            finding.pop("match", None)
    return json.dumps(data, indent=2)


def write_json_report(result: ScanResult, path: Path, include_secrets: bool = False) -> Path:
    """Write the JSON report to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_json(result, include_secrets=include_secrets) + "\n", encoding="utf-8")
    return path


def _confidence_style(confidence: float | None) -> str:
    if confidence is None:
        return "dim"
    if confidence >= 0.8:
        return "red"
    if confidence >= 0.5:
        return "yellow"
    return "cyan"


def format_rich(result: ScanResult, output: Console | None = None) -> None:
    """Print findings grouped by file, followed by a summary panel."""
    out = output or console

    for file_path, findings in sorted(result.group_by_file().items()):
        table = Table(title=f"[bold]{file_path}[/bold]", title_justify="left", show_lines=False)
        table.add_column("Line", justify="right", style="bold")
        table.add_column("Col", justify="right")
        table.add_column("Type")
        table.add_column("Category", style="magenta")
        table.add_column("Match")
        table.add_column("Confidence", justify="right")

        for finding in sorted(findings, key=lambda f: (f.line_number, f.column_start)):
            confidence = "-" if finding.confidence is None else f"{finding.confidence * 100:.0f}%"
            style = _confidence_style(finding.confidence)
            type_label = "pattern" if finding.type is FindingType.PATTERN else "entropy"
            table.add_row(
                str(finding.line_number),
                str(finding.column_start),
                type_label,
                finding.category,
                finding.truncated_match,
                f"[{style}]{confidence}[/{style}]",
            )
        out.print(table)
        out.print()

    for error in result.errors:
        out.print(f"[yellow]Warning:[/yellow] {error.file_path}: {error.message}")

    summary = result.get_summary()
    lines = [
        f"Files scanned: {summary['filesScanned']}",
        f"Files skipped: {result.files_skipped}",
        f"Lines scanned: {summary['totalLines']}",
        f"Duration: {summary['scanDuration']} ms",
    ]
    if result.has_secrets:
        by_type = summary["findingsByType"]
        lines.insert(
            0,
            f"[bold red]{summary['totalFindings']} secret(s) found[/bold red] "
            f"in {summary['filesWithSecrets']} file(s) "
            f"({by_type['pattern']} pattern, {by_type['entropy']} entropy)",
        )
        border = "red"
    else:
        lines.insert(0, "[bold green]No secrets found[/bold green]")
        border = "green"
    out.print(Panel("\n".join(lines), title="seal-commit scan", border_style=border))


def format_redaction_report(report: RedactionReport, output: Console | None = None) -> None:
    """Print the outcome of a redaction run."""
    out = output or console

    if report.processed_files:
        table = Table(title="Redaction", title_justify="left")
        table.add_column("File")
        table.add_column("Redacted", justify="right")
        table.add_column("Backup")
        table.add_column("Warnings", justify="right")
        for detail in report.processed_files:
            table.add_row(
                detail.file_path,
                str(detail.secrets_redacted),
                detail.backup_path or "-",
                str(len(detail.warnings)),
            )
        out.print(table)

    for warning in report.warnings:
        out.print(
            f"[yellow]Warning:[/yellow] {warning.file_path}:{warning.line_number} "
            f"{warning.preview}: {warning.reason}"
        )
    for error in report.errors:
        out.print(f"[red]Error:[/red] {error.file_path}: {error.message}")

    verb = "Would redact" if report.dry_run else "Redacted"
    out.print(
        f"{verb} [bold]{report.secrets_redacted}[/bold] secret(s) in "
        f"{report.files_processed} file(s); {report.backups_created} backup(s) created"
    )

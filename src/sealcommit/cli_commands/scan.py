"""Scan and fix commands.

``scan`` is what the pre-commit hook runs (``seal-commit scan --staged``);
it exits 1 when any secret is found. ``fix`` scans the same way and then
redacts every finding in place.

Configuration is read from .sealcommitrc (or pyproject.toml):
    [tool.sealcommit]
    allowlist = ["/^sk_test_/"]
    maxConcurrency = 8

    [tool.sealcommit.entropy]
    threshold = 4.5
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from sealcommit.cli_commands.helpers import collect_files, configure_logging, load_config_or_exit
from sealcommit.config import SealConfig
from sealcommit.errors import ConfigurationError
from sealcommit.output import (
    console,
    format_json,
    format_redaction_report,
    format_rich,
    print_error,
    print_success,
    write_json_report,
)
from sealcommit.redaction import SecretRedactor
from sealcommit.scanner import ScanResult, SecretScanner

PathsArg = Annotated[
    list[Path] | None,
    typer.Argument(help="Files or directories to scan (default: current directory)"),
]
StagedOpt = Annotated[
    bool,
    typer.Option("--staged", "-s", help="Only scan staged files (for pre-commit hooks)"),
]
ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to a seal-commit config file"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")]


def _run_scan(config: SealConfig, files: list[Path]) -> ScanResult:
    try:
        scanner = SecretScanner(config)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    return scanner.scan_files(files)


def scan(
    paths: PathsArg = None,
    staged: StagedOpt = False,
    tracked: Annotated[
        bool,
        typer.Option("--tracked", help="Scan every file tracked by git"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
    show_secrets: Annotated[
        bool,
        typer.Option("--show-secrets", help="Include full matches in JSON output"),
    ] = False,
    report: Annotated[
        Path | None,
        typer.Option("--report", "-r", help="Also write the JSON report to this file"),
    ] = None,
    config_file: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Scan files for secrets.

    Exit codes:
      0 - No secrets found
      1 - Secrets found (or the scan could not run)

    Examples:
      seal-commit scan                    # Scan current directory
      seal-commit scan --staged           # Pre-commit hook mode
      seal-commit scan src/ .env --json   # JSON output for automation
      seal-commit scan --report out.json  # Keep a JSON report for CI artifacts
    """
    configure_logging(verbose)
    config = load_config_or_exit(config_file)
    files = collect_files(paths, config, staged=staged, tracked=tracked)

    if not files and not json_output and report is None:
        print_success("No files to scan.")
        return

    if not json_output:
        console.print(f"[dim]Scanning {len(files)} file(s)...[/dim]")

    result = _run_scan(config, files)

    if json_output:
        print(format_json(result, include_secrets=show_secrets))
    else:
        format_rich(result, console)

    if report is not None:
        try:
            write_json_report(result, report, include_secrets=show_secrets)
        except OSError as e:
            print_error(f"Failed to write report to {report}: {e}")
            raise typer.Exit(code=1) from e
        if not json_output:
            print_success(f"Report written to {report}")

    if result.has_secrets:
        raise typer.Exit(code=1)


def fix(
    paths: PathsArg = None,
    staged: StagedOpt = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would be redacted without changing files"),
    ] = False,
    no_backup: Annotated[
        bool,
        typer.Option("--no-backup", help="Do not keep a backup of each redacted file"),
    ] = False,
    mask: Annotated[
        str | None,
        typer.Option("--mask", "-m", help="Replacement text for each secret"),
    ] = None,
    config_file: ConfigOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Scan files and redact every secret found, in place.

    Each redacted file is backed up as <file>.seal-backup unless --no-backup
    is given; use `seal-commit restore` to undo.
    """
    configure_logging(verbose)
    config = load_config_or_exit(config_file)
    files = collect_files(paths, config, staged=staged)

    result = _run_scan(config, files)
    if not result.has_secrets:
        print_success("No secrets found.")
        return

    if mask is not None and not mask:
        print_error("--mask must not be empty")
        raise typer.Exit(code=1)

    redactor = SecretRedactor(config.redaction, max_concurrency=config.max_concurrency)
    report = redactor.redact_secrets(
        result,
        create_backups=False if no_backup else None,
        redaction_mask=mask,
        dry_run=True if dry_run else None,
    )
    format_redaction_report(report, console)

    if report.errors:
        raise typer.Exit(code=1)

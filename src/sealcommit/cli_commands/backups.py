"""Backup commands: restore redacted files, or discard their backups."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from sealcommit.cli_commands.helpers import configure_logging, load_config_or_exit
from sealcommit.output import console, print_error, print_success, print_warning
from sealcommit.redaction import SecretRedactor

BackupPathsArg = Annotated[
    list[Path],
    typer.Argument(help="Redacted files, or directories to search for backups"),
]
ConfigOpt = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to a seal-commit config file"),
]


def _resolve_targets(redactor: SecretRedactor, paths: list[Path]) -> list[Path]:
    """Map arguments to the live files whose backups should be handled."""
    suffix = redactor.config.backup_suffix
    targets: list[Path] = []
    for path in paths:
        if path.is_dir():
            targets.extend(Path(str(b)[: -len(suffix)]) for b in redactor.find_backups(path))
        elif str(path).endswith(suffix):
            targets.append(Path(str(path)[: -len(suffix)]))
        else:
            targets.append(path)
    return targets


def restore(
    paths: BackupPathsArg,
    config_file: ConfigOpt = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Restore redacted files from their backups and delete the backups."""
    configure_logging(verbose)
    config = load_config_or_exit(config_file)
    redactor = SecretRedactor(config.redaction)

    targets = _resolve_targets(redactor, paths)
    if not targets:
        print_warning("No backups found.")
        return

    report = redactor.restore_from_backups(targets)
    for error in report.errors:
        print_error(f"{error.file_path}: {error.message}")
    if report.files_restored:
        print_success(f"Restored {report.files_restored} file(s).")
    if report.errors:
        raise typer.Exit(code=1)


def clean_backups(
    paths: BackupPathsArg,
    config_file: ConfigOpt = None,
) -> None:
    """Delete backups without restoring the original files."""
    config = load_config_or_exit(config_file)
    redactor = SecretRedactor(config.redaction)

    report = redactor.cleanup_backups(_resolve_targets(redactor, paths))
    for error in report.errors:
        print_error(f"{error.file_path}: {error.message}")
    console.print(f"Removed [bold]{report.backups_removed}[/bold] backup(s).")
    if report.errors:
        raise typer.Exit(code=1)

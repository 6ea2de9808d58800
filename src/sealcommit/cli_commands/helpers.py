"""Shared helpers for CLI commands."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from sealcommit.config import SealConfig, load_config
from sealcommit.errors import ConfigurationError
from sealcommit.output import print_error
from sealcommit.utils.git import GitError, get_staged_files, get_tracked_files

err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send library logs to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_config_or_exit(config_file: Path | None) -> SealConfig:
    try:
        return load_config(config_file)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def expand_paths(paths: list[Path], ignored_directories: list[str]) -> list[Path]:
    """Expand directories into the files beneath them.

    Directories named in ``ignored_directories`` are pruned while walking.
    Explicit file arguments are kept as given.

    Raises:
        typer.Exit: If a path does not exist.
    """
    pruned = set(ignored_directories)
    files: list[Path] = []
    for path in paths:
        if not path.exists():
            print_error(f"Path not found: {path}")
            raise typer.Exit(code=1)
        if path.is_file():
            files.append(path)
            continue
        for root, dirs, names in os.walk(path):
            dirs[:] = sorted(d for d in dirs if d not in pruned)
            files.extend(Path(root) / name for name in sorted(names))
    return files


def collect_files(
    paths: list[Path] | None,
    config: SealConfig,
    staged: bool = False,
    tracked: bool = False,
) -> list[Path]:
    """Resolve the files a command should work on.

    ``staged`` and ``tracked`` ask git for the file list; otherwise the given
    paths (default: current directory) are expanded.
    """
    if staged or tracked:
        try:
            return get_staged_files() if staged else get_tracked_files()
        except GitError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
    return expand_paths(paths or [Path.cwd()], config.ignore.directories)

"""Allowlist command: mark a known-safe string so scans stop reporting it."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from sealcommit.config import add_allowlist_entry
from sealcommit.errors import ConfigurationError
from sealcommit.output import print_error, print_success, print_warning


def allow(
    value: Annotated[
        str,
        typer.Argument(help="Literal string, or /regex/, to stop reporting"),
    ],
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to update (default: discovered config)"),
    ] = None,
) -> None:
    """Add an entry to the config file's allowlist.

    Updates the discovered .sealcommitrc (YAML or JSON), creating one in the
    current directory when none exists.

    Examples:
      seal-commit allow internal-build-token-0000
      seal-commit allow "/^AKIA[0-9A-Z]{12}EXAMPLE$/"
    """
    try:
        path, added = add_allowlist_entry(value, config_path=config_file, search_dir=Path.cwd())
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    except OSError as e:
        print_error(f"Failed to update config: {e}")
        raise typer.Exit(code=1) from e

    if added:
        print_success(f"Added {value} to the allowlist in {path}")
    else:
        print_warning(f"{value} is already allowlisted in {path}")

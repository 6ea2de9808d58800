"""Command-line interface for seal-commit."""

from pathlib import Path
from typing import Annotated

import typer

from sealcommit.cli_commands.allowlist import allow
from sealcommit.cli_commands.backups import clean_backups, restore
from sealcommit.cli_commands.scan import fix, scan
from sealcommit.config import CONFIG_FILENAMES, create_default_config_template
from sealcommit.output import console, print_error, print_success

app = typer.Typer(
    name="seal-commit",
    help="Detect and redact secrets before they are committed.",
    no_args_is_help=True,
)

app.command()(scan)
app.command()(fix)
app.command()(restore)
app.command("clean-backups")(clean_backups)
app.command()(allow)


@app.command()
def init(
    directory: Annotated[
        Path, typer.Argument(help="Directory to write the config file to")
    ] = Path("."),
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing config file")
    ] = False,
) -> None:
    """Write a starter .sealcommitrc with the default settings."""
    target = directory / CONFIG_FILENAMES[0]
    if target.exists() and not force:
        print_error(f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)

    target.write_text(create_default_config_template(), encoding="utf-8")
    print_success(f"Created {target}")


@app.command()
def version() -> None:
    """Show seal-commit version."""
    from sealcommit import __version__

    console.print(f"seal-commit [bold green]{__version__}[/bold green]")


if __name__ == "__main__":
    app()

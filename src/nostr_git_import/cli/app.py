"""Main CLI application for nostr-git-import."""

from pathlib import Path
from typing import Annotated

import typer

from nostr_git_import import __version__
from nostr_git_import.cli import importer as import_cmd
from nostr_git_import.cli import keys as keys_cmd
from nostr_git_import.cli import provider as provider_cmd
from nostr_git_import.cli.common import console
from nostr_git_import.config import get_settings
from nostr_git_import.logging import setup_logging

app = typer.Typer(
    name="nostr-git-import",
    help="Import Git hosting provider history into a signed Nostr event log.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"nostr-git-import version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """nostr-git-import - Migrate issues, pull requests and comments to Nostr."""
    settings = get_settings()
    log_config = settings.logging

    # Setup logging with CLI overrides
    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.command("import")(import_cmd.import_repository)

# Register subcommands
app.add_typer(provider_cmd.app, name="provider")
app.add_typer(keys_cmd.app, name="keys")


if __name__ == "__main__":
    app()

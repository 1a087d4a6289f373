"""Key inspection commands."""

import typer
from rich.table import Table

from nostr_git_import.cli.common import console
from nostr_git_import.config import get_settings
from nostr_git_import.events import derive_platform_keypair, parse_secret_key

app = typer.Typer(help="Inspect signing keys")


@app.command("derive")
def derive(
    usernames: list[str] = typer.Argument(..., help="Platform usernames"),  # noqa: B008
    platform: str = typer.Option("github", "--platform", "-p", help="Provider name"),
) -> None:
    """Show the synthetic keys imported authors are published under.

    Examples:
        nostr-git-import keys derive octocat
        nostr-git-import keys derive alice bob --platform gitlab
    """
    table = Table(title=f"Synthetic {platform} identities")
    table.add_column("Username", style="cyan")
    table.add_column("Public key")
    table.add_column("npub")
    for username in usernames:
        keypair = derive_platform_keypair(platform, username)
        table.add_row(username, keypair.public_key, keypair.npub)
    console.print(table)


@app.command("show")
def show() -> None:
    """Show the public key of the configured NOSTR_SECRET_KEY."""
    secret = get_settings().nostr_secret_key
    if not secret:
        console.print("[red]Error:[/red] NOSTR_SECRET_KEY not set in environment")
        raise typer.Exit(1)
    try:
        keypair = parse_secret_key(secret)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    console.print(f"Public key: {keypair.public_key}")
    console.print(f"npub:       {keypair.npub}")

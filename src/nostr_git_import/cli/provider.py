"""Provider access verification commands."""

import typer
from rich.table import Table

from nostr_git_import.cli.common import (
    RepoUrlArgument,
    TokenOption,
    console,
    run_async_command,
)
from nostr_git_import.config import get_settings
from nostr_git_import.providers import get_git_service_api
from nostr_git_import.schemas import OwnershipCheck, TokenValidation, parse_repo_url

app = typer.Typer(help="Provider API commands")


@app.command("check")
def check_access(repo_url: RepoUrlArgument, token: TokenOption = None) -> None:
    """Check token permissions and ownership of a repository.

    Examples:
        nostr-git-import provider check https://github.com/owner/repo
    """
    provider_token = token or get_settings().github_token
    if not provider_token:
        console.print("[red]Error:[/red] No token. Set GITHUB_TOKEN or pass --token")
        raise typer.Exit(1)
    try:
        parsed = parse_repo_url(repo_url)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    async def _check() -> tuple[TokenValidation, OwnershipCheck | None]:
        api = get_git_service_api(parsed, provider_token)
        owner, repo = parsed.owner, parsed.repo
        try:
            validation = await api.validate_token_permissions(owner, repo)
            if not validation.valid or not validation.has_read:
                return validation, None
            return validation, await api.check_repo_ownership(owner, repo)
        finally:
            close = getattr(api, "close", None)
            if close is not None:
                await close()

    validation, ownership = run_async_command(_check(), error_prefix="Check failed")

    table = Table(title="Repository Access")
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_row("Token valid", _yes_no(validation.valid))
    table.add_row("Read access", _yes_no(validation.has_read))
    table.add_row("Write access", _yes_no(validation.has_write))
    if ownership is not None:
        table.add_row("Authenticated as", ownership.login or "-")
        table.add_row("Owner", _yes_no(ownership.is_owner))
        table.add_row("Default branch", ownership.repo.default_branch)
    console.print(table)

    if validation.error:
        console.print(f"[red]Error:[/red] {validation.error}")
        raise typer.Exit(1)
    if ownership is not None and not ownership.is_owner:
        console.print("[yellow]Not the owner:[/yellow] import with --fork to use a fork")


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"

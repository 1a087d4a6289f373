"""Import command for nostr-git-import."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer

from nostr_git_import.cli.common import (
    OutputFormatOption,
    RepoUrlArgument,
    TokenOption,
    console,
    parse_date,
    run_async_command,
)
from nostr_git_import.config import ImportConfig, get_settings
from nostr_git_import.events import JsonlEventWriter, KeyPair, KeySigner, parse_secret_key
from nostr_git_import.pacing import ImportProgress
from nostr_git_import.sync import ImportResult, OutputFormat, RepoImporter

CLI_PROGRESS_EVERY = 25


def _load_keypair(secret_key: str | None) -> KeyPair:
    secret = secret_key or get_settings().nostr_secret_key
    if not secret:
        console.print(
            "[red]Error:[/red] No secret key. Set NOSTR_SECRET_KEY or pass --secret-key"
        )
        raise typer.Exit(1)
    try:
        return parse_secret_key(secret)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


def _print_progress(progress: ImportProgress) -> None:
    if progress.error:
        return
    suffix = f" [{progress.current}/{progress.total}]" if progress.total else ""
    console.print(f"[dim]{progress.step}{suffix}[/dim]")


def _print_result(result: ImportResult, output: Path) -> None:
    console.print()
    console.print(f"[bold]Import Complete[/bold]: {result.repo.full_name}")
    console.print()
    console.print(f"  [green]Issues:[/green]          {result.issues_imported}")
    console.print(f"  [green]Pull requests:[/green]   {result.prs_imported}")
    console.print(f"  [green]Comments:[/green]        {result.comments_imported}")
    console.print(f"  [blue]Profiles:[/blue]        {result.profiles_created}")
    console.print(f"  [blue]Status events:[/blue]   {result.status_events_published}")
    if result.events_failed:
        console.print(f"  [red]Failed events:[/red]   {result.events_failed}")
    console.print()
    console.print(f"  Events written: {result.events_published} -> {output}")
    console.print(f"  Duration: {result.duration_seconds:.1f}s")


def import_repository(
    repo_url: RepoUrlArgument,
    token: TokenOption = None,
    relays: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--relay",
        "-r",
        help="Relay advertised in the repository announcement (repeatable)",
    ),
    since: str | None = typer.Option(
        None,
        "--since",
        help="Only import items created on or after this date (YYYY-MM-DD)",
    ),
    fork: bool = typer.Option(
        False,
        "--fork/--no-fork",
        help="Fork the repository when you are not its owner",
    ),
    fork_name: str | None = typer.Option(
        None,
        "--fork-name",
        help="Name for the fork (default: <repo>-imported)",
    ),
    no_issues: bool = typer.Option(False, "--no-issues", help="Skip issues"),
    no_prs: bool = typer.Option(False, "--no-prs", help="Skip pull requests"),
    no_comments: bool = typer.Option(False, "--no-comments", help="Skip comments"),
    batch_size: int | None = typer.Option(
        None,
        "--batch-size",
        min=1,
        help="Events per publish batch",
    ),
    output: Path = typer.Option(  # noqa: B008
        Path("events.jsonl"),
        "--output",
        "-o",
        help="File receiving signed events as JSON lines",
    ),
    secret_key: str | None = typer.Option(
        None,
        "--secret-key",
        help="Your secret key, hex or nsec (defaults to NOSTR_SECRET_KEY)",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Import a repository's issues, pull requests and comments as signed events.

    Examples:
        nostr-git-import import https://github.com/owner/repo -r wss://relay.example
        nostr-git-import import https://github.com/owner/repo --since 2024-01-01
        nostr-git-import import https://github.com/other/repo --fork -o other.jsonl
        nostr-git-import -v import https://github.com/owner/repo --format json
    """
    settings = get_settings()
    provider_token = token or settings.github_token
    if not provider_token:
        console.print("[red]Error:[/red] No token. Set GITHUB_TOKEN or pass --token")
        raise typer.Exit(1)

    keypair = _load_keypair(secret_key)
    relay_list = relays or settings.default_relays
    if not relay_list:
        console.print("[red]Error:[/red] At least one --relay is required")
        raise typer.Exit(1)

    config = ImportConfig(
        mirror_issues=not no_issues,
        mirror_pull_requests=not no_prs,
        mirror_comments=not no_comments,
        since_date=parse_date(since),
        relays=relay_list,
        relay_batch_size=batch_size,
        fork_repo=fork,
        fork_name=fork_name,
        progress_every=CLI_PROGRESS_EVERY,
    )
    text_output = output_format == OutputFormat.TEXT

    async def _import() -> ImportResult:
        signer = KeySigner(keypair)
        with output.open("w", encoding="utf-8") as stream:
            writer = JsonlEventWriter(stream)
            importer = RepoImporter(
                keypair.public_key,
                sign_event=signer.sign,
                publish_event=writer.publish,
                on_progress=_print_progress if text_output else None,
            )
            return await importer.import_repository(repo_url, provider_token, config)

    if text_output:
        console.print(f"[dim]Importing {repo_url} as {keypair.npub}...[/dim]")
        console.print()

    result = run_async_command(_import(), error_prefix="Import failed")

    if not text_output:
        data: dict[str, Any] = {**result.to_dict(), "output": str(output)}
        console.print_json(json.dumps(data))
        return

    _print_result(result, output)

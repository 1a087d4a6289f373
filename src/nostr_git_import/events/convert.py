"""Pure converters from provider models to unsigned event templates.

Kinds follow NIP-34 (git collaboration), NIP-22 (comments) and NIP-01
(profile metadata). Converters never touch the network or the clock:
``created_at`` is always supplied by the caller.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from enum import IntEnum

from nostr_git_import.schemas import (
    EventTemplate,
    GitComment,
    GitIssue,
    GitPullRequest,
    RepoMetadata,
)


class EventKind(IntEnum):
    """Event kinds produced by an import."""

    PROFILE = 0
    COMMENT = 1111
    PULL_REQUEST = 1618
    ISSUE = 1621
    STATUS_OPEN = 1630
    STATUS_APPLIED = 1631
    STATUS_CLOSED = 1632
    STATUS_DRAFT = 1633
    REPO_ANNOUNCEMENT = 30617
    REPO_STATE = 30618


def repo_address(pubkey: str, repo_name: str) -> str:
    """Addressable coordinate of a repository announcement."""
    return f"{int(EventKind.REPO_ANNOUNCEMENT)}:{pubkey}:{repo_name}"


def profile_key(platform: str, username: str) -> str:
    """Key identifying a platform account across an import run."""
    return f"{platform}:{username}"


# -----------------------------------------------------------------------------
# Repository
# -----------------------------------------------------------------------------
def repo_to_announcement(
    repo: RepoMetadata,
    relays: Iterable[str],
    created_at: int,
    *,
    maintainers: Iterable[str] = (),
) -> EventTemplate:
    """Build the repository announcement (kind 30617).

    Raises:
        ValueError: If no relay is given
    """
    relay_list = [r for r in relays if r]
    if not relay_list:
        raise ValueError("At least one relay is required to announce a repository")

    template = EventTemplate(kind=EventKind.REPO_ANNOUNCEMENT, created_at=created_at)
    template.add_tag("d", repo.short_name)
    template.add_tag("name", repo.name)
    if repo.description:
        template.add_tag("description", repo.description)
    if repo.html_url:
        template.add_tag("web", repo.html_url)
    clone_urls = [url for url in (repo.clone_url, repo.ssh_url) if url]
    if clone_urls:
        template.add_tag("clone", *clone_urls)
    template.add_tag("relays", *relay_list)
    if repo.euc:
        template.add_tag("r", repo.euc, "euc")
    maintainer_list = list(maintainers)
    if maintainer_list:
        template.add_tag("maintainers", *maintainer_list)
    for topic in repo.topics:
        template.add_tag("t", topic)
    return template


def repo_to_state(repo: RepoMetadata, created_at: int) -> EventTemplate:
    """Build the repository state event (kind 30618) pointing HEAD at the default branch."""
    template = EventTemplate(kind=EventKind.REPO_STATE, created_at=created_at)
    template.add_tag("d", repo.short_name)
    template.add_tag("HEAD", f"ref: refs/heads/{repo.default_branch}")
    return template


# -----------------------------------------------------------------------------
# Issues & pull requests
# -----------------------------------------------------------------------------
def _add_repo_refs(template: EventTemplate, repo_addr: str) -> None:
    template.add_tag("a", repo_addr)
    owner_pubkey = repo_addr.split(":")[1]
    template.add_tag("p", owner_pubkey)


def issue_to_event(
    issue: GitIssue,
    repo_addr: str,
    platform: str,
    created_at: int,
) -> EventTemplate:
    """Build an issue event (kind 1621)."""
    template = EventTemplate(
        kind=EventKind.ISSUE,
        content=issue.body or "",
        created_at=created_at,
    )
    _add_repo_refs(template, repo_addr)
    template.add_tag("subject", issue.title)
    for label in issue.labels:
        template.add_tag("t", label)
    if issue.url:
        template.add_tag("proxy", issue.url, "web")
    template.add_tag("alt", f"Issue #{issue.number} imported from {platform}")
    return template


def issue_status_events(
    issue_event_id: str,
    issue: GitIssue,
    repo_addr: str,
    next_timestamp: Callable[[], int],
) -> list[EventTemplate]:
    """Build the status events of an issue.

    Open issues need no status event. Closed issues get one kind 1632
    event. ``next_timestamp`` is called once per produced event.
    """
    if issue.state != "closed":
        return []

    template = EventTemplate(kind=EventKind.STATUS_CLOSED, created_at=next_timestamp())
    template.add_tag("e", issue_event_id, "", "root")
    _add_repo_refs(template, repo_addr)
    return [template]


def pull_request_to_event(
    pr: GitPullRequest,
    repo_addr: str,
    platform: str,
    created_at: int,
    *,
    clone_url: str | None = None,
    commits: Iterable[str] = (),
) -> EventTemplate:
    """Build a pull request event (kind 1618).

    The ``c`` tag carries the head commit; every listed commit is kept
    as a ``commit`` tag for provenance.
    """
    template = EventTemplate(
        kind=EventKind.PULL_REQUEST,
        content=pr.body or "",
        created_at=created_at,
    )
    _add_repo_refs(template, repo_addr)
    template.add_tag("subject", pr.title)
    for label in pr.labels:
        template.add_tag("t", label)

    commit_list = list(commits)
    head_sha = pr.head_sha or (commit_list[-1] if commit_list else None)
    if head_sha:
        template.add_tag("c", head_sha)
    if clone_url:
        template.add_tag("clone", clone_url)
    if pr.head_branch:
        template.add_tag("branch-name", pr.head_branch)
    if pr.base_branch:
        template.add_tag("base-branch", pr.base_branch)
    for sha in commit_list:
        template.add_tag("commit", sha)
    if pr.url:
        template.add_tag("proxy", pr.url, "web")
    template.add_tag("alt", f"Pull request #{pr.number} imported from {platform}")
    return template


# -----------------------------------------------------------------------------
# Comments (NIP-22)
# -----------------------------------------------------------------------------
def comment_to_event(
    comment: GitComment,
    root_event_id: str,
    root_kind: int,
    created_at: int,
    thread: Mapping[str, str] | None = None,
) -> EventTemplate:
    """Build a comment event (kind 1111).

    The root is the issue or pull request event. When the comment replies
    to a comment already published in ``thread`` (provider comment id ->
    event id) that comment becomes the parent, otherwise the root does.
    """
    template = EventTemplate(
        kind=EventKind.COMMENT,
        content=comment.body,
        created_at=created_at,
    )
    template.add_tag("E", root_event_id)
    template.add_tag("K", str(int(root_kind)))

    parent_id = None
    if comment.in_reply_to and thread:
        parent_id = thread.get(comment.in_reply_to)
    if parent_id:
        template.add_tag("e", parent_id)
        template.add_tag("k", str(int(EventKind.COMMENT)))
    else:
        template.add_tag("e", root_event_id)
        template.add_tag("k", str(int(root_kind)))

    if comment.url:
        template.add_tag("proxy", comment.url, "web")
    return template


# -----------------------------------------------------------------------------
# Profiles
# -----------------------------------------------------------------------------
def profile_to_event(
    platform: str,
    username: str,
    created_at: int,
    *,
    avatar_url: str | None = None,
    profile_url: str | None = None,
) -> EventTemplate:
    """Build the kind 0 metadata of a synthetic author profile."""
    metadata: dict[str, str] = {
        "name": username,
        "display_name": f"{username} ({platform})",
        "about": f"Imported {platform} user {username}. Not controlled by {username}.",
    }
    if avatar_url:
        metadata["picture"] = avatar_url

    template = EventTemplate(
        kind=EventKind.PROFILE,
        content=json.dumps(metadata, separators=(",", ":"), ensure_ascii=False),
        created_at=created_at,
    )
    if profile_url:
        template.add_tag("proxy", profile_url, "web")
    return template

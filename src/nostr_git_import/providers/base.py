"""Provider API contract shared by every Git hosting adapter.

Pipelines only depend on this protocol. Optional endpoints are detected
with the ``supports_*`` capability helpers instead of ``hasattr`` checks
scattered through the import code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from nostr_git_import.schemas import (
    GistProof,
    GitComment,
    GitCommit,
    GitIssue,
    GitPullRequest,
    OwnershipCheck,
    RepoMetadata,
    TokenValidation,
)


@runtime_checkable
class GitServiceApi(Protocol):
    """Minimal API every provider adapter implements.

    All list methods are page based (1-indexed) and return provider-neutral
    models. ``since`` is a hint only: callers still filter client-side.
    """

    async def validate_token_permissions(self, owner: str, repo: str) -> TokenValidation: ...

    async def check_repo_ownership(self, owner: str, repo: str) -> OwnershipCheck: ...

    async def get_repo(self, owner: str, repo: str) -> RepoMetadata: ...

    async def fork_repo(self, owner: str, repo: str, *, name: str) -> RepoMetadata: ...

    async def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitIssue]: ...

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
    ) -> list[GitPullRequest]: ...

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]: ...

    async def list_pull_request_comments(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]: ...


class BulkCommentsApi(Protocol):
    """Providers that can list every issue/PR comment of a repository at once."""

    async def list_all_issue_comments(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]: ...


class PullRequestCommitsApi(Protocol):
    """Providers that expose the commit list of a pull request."""

    async def list_pull_request_commits(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
    ) -> list[GitCommit]: ...


class GistApi(Protocol):
    """Providers hosting identity proof documents (GitHub gists)."""

    async def get_gist(self, gist_id: str) -> GistProof: ...


def supports_bulk_comments(api: object) -> bool:
    """Whether ``api`` implements :class:`BulkCommentsApi`."""
    return callable(getattr(api, "list_all_issue_comments", None))


def supports_pull_request_commits(api: object) -> bool:
    """Whether ``api`` implements :class:`PullRequestCommitsApi`."""
    return callable(getattr(api, "list_pull_request_commits", None))


def supports_gists(api: object) -> bool:
    """Whether ``api`` implements :class:`GistApi`."""
    return callable(getattr(api, "get_gist", None))

"""GitHub provider adapter using githubkit.

This module provides a typed async interface to the GitHub REST API
for the endpoints the importer needs. It performs no pacing or retries
itself: every call is wrapped by the importer's rate-limited caller, so
githubkit's own automatic retry is disabled.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed, RequestTimeout
from pydantic import BaseModel, ValidationError

from nostr_git_import.config import get_settings
from nostr_git_import.logging import get_logger
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
from nostr_git_import.schemas.github_api import (
    GitHubGist,
    GitHubIssue,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepository,
    GitHubUser,
)

from .exceptions import (
    ProviderAuthenticationError,
    ProviderClientError,
    ProviderForbiddenError,
    ProviderNetworkError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderServerError,
    ProviderValidationError,
)

logger = get_logger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


def _dump(data: Any) -> Any:
    """Convert githubkit parsed data into plain JSON-shaped dicts."""
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_unset=True)
    return data


def _parse_retry_after(value: str) -> float | None:
    """Seconds from a Retry-After header; HTTP-date values give no hint."""
    try:
        return float(value)
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After header: {}", value)
        return None


def _repo_key(owner: str, repo: str) -> tuple[str, str]:
    return owner.lower(), repo.lower()


def _since_kwargs(since: datetime | None) -> dict[str, Any]:
    return {"since": since} if since is not None else {}


class GitHubProvider:
    """Async GitHub API adapter implementing ``GitServiceApi``.

    Usage:
        async with GitHubProvider(token) as api:
            issues = await api.list_issues("owner", "repo", page=1)
            for issue in issues:
                print(issue.title)
    """

    platform = "github"

    def __init__(self, token: str | None = None) -> None:
        """Initialize the GitHub provider.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.

        Raises:
            ProviderAuthenticationError: If no token is available.
        """
        self._token = token or get_settings().github_token
        if not self._token:
            raise ProviderAuthenticationError(
                "GitHub token required. Set GITHUB_TOKEN environment variable."
            )
        self._client: GitHub[Any] | None = None
        # Cached results reused by check_repo_ownership
        self._repositories: dict[tuple[str, str], GitHubRepository] = {}
        self._login: str | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            self._client = GitHub(self._token, auto_retry=False)
        return self._client

    async def close(self) -> None:
        """Drop the underlying HTTP client."""
        self._client = None

    async def __aenter__(self) -> GitHubProvider:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------
    async def _request(self, call: Callable[[], Awaitable[T]], what: str) -> T:
        """Run a githubkit call, translating its exceptions."""
        try:
            return await call()
        except RequestFailed as e:
            raise self._handle_error(e, what) from e
        except (RequestTimeout, RequestError) as e:
            raise ProviderNetworkError(f"Network error while fetching {what}: {e}") from e

    @staticmethod
    def _parse_page(items: Any, model: type[ModelT]) -> list[ModelT]:
        parsed: list[ModelT] = []
        for item in items or []:
            try:
                parsed.append(model.model_validate(_dump(item)))
            except ValidationError as e:
                # Skip entries that don't validate (shouldn't happen normally)
                logger.debug("Skipping unparseable {}: {}", model.__name__, e)
        return parsed

    # -------------------------------------------------------------------------
    # Repository & ownership
    # -------------------------------------------------------------------------
    async def _get_repository(self, owner: str, repo: str) -> GitHubRepository:
        resp = await self._request(
            lambda: self._github.rest.repos.async_get(owner, repo),
            f"repository {owner}/{repo}",
        )
        return GitHubRepository.model_validate(_dump(resp.parsed_data))

    async def get_repo(self, owner: str, repo: str) -> RepoMetadata:
        """Get full repository metadata.

        Raises:
            ProviderNotFoundError: If the repository doesn't exist
        """
        return (await self._get_repository(owner, repo)).to_repo_metadata()

    async def validate_token_permissions(self, owner: str, repo: str) -> TokenValidation:
        """Check that the token can at least read the repository.

        Authentication and not-found failures are reported in the result
        instead of raised; other errors propagate.
        """
        try:
            repository = await self._get_repository(owner, repo)
        except ProviderAuthenticationError:
            return TokenValidation(valid=False, error="Invalid GitHub token")
        except ProviderNotFoundError:
            return TokenValidation(
                valid=True,
                has_read=False,
                error=f"Repository {owner}/{repo} not found or not accessible",
            )
        self._repositories[_repo_key(owner, repo)] = repository

        permissions = repository.permissions
        if permissions is None:
            # Public repository read without permission details
            return TokenValidation(valid=True, has_read=True, has_write=False)

        return TokenValidation(
            valid=True,
            has_read=permissions.pull or permissions.push or permissions.admin,
            has_write=permissions.push or permissions.admin,
        )

    async def check_repo_ownership(self, owner: str, repo: str) -> OwnershipCheck:
        """Compare the authenticated user against the repository owner.

        Repository admins are treated as owners. The repository loaded by
        ``validate_token_permissions`` is reused, so a run normally makes a
        single request here.
        """
        if self._login is None:
            resp = await self._request(
                lambda: self._github.rest.users.async_get_authenticated(),
                "authenticated user",
            )
            self._login = GitHubUser.model_validate(_dump(resp.parsed_data)).login
        login = self._login

        key = _repo_key(owner, repo)
        repository = self._repositories.get(key)
        if repository is None:
            repository = await self._get_repository(owner, repo)
            self._repositories[key] = repository

        is_admin = bool(repository.permissions and repository.permissions.admin)
        is_owner = repository.owner.login.lower() == login.lower() or is_admin

        return OwnershipCheck(
            is_owner=is_owner,
            repo=repository.to_repo_metadata(),
            login=login,
        )

    async def fork_repo(self, owner: str, repo: str, *, name: str) -> RepoMetadata:
        """Fork a repository into the authenticated account."""
        resp = await self._request(
            lambda: self._github.rest.repos.async_create_fork(owner, repo, name=name),
            f"fork of {owner}/{repo}",
        )
        fork = GitHubRepository.model_validate(_dump(resp.parsed_data))
        logger.info("Forked {}/{} to {}", owner, repo, fork.full_name)
        return fork.to_repo_metadata()

    # -------------------------------------------------------------------------
    # Issues, pull requests & comments
    # -------------------------------------------------------------------------
    async def list_issues(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitIssue]:
        """List one page of issues, oldest first.

        Pull requests are included and flagged with ``is_pull_request``.
        """
        resp = await self._request(
            lambda: self._github.rest.issues.async_list_for_repo(
                owner,
                repo,
                state="all",
                sort="created",
                direction="asc",
                per_page=per_page,
                page=page,
                **_since_kwargs(since),
            ),
            f"issues page {page} of {owner}/{repo}",
        )
        return [i.to_git_issue() for i in self._parse_page(resp.parsed_data, GitHubIssue)]

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
    ) -> list[GitPullRequest]:
        """List one page of pull requests, oldest first."""
        resp = await self._request(
            lambda: self._github.rest.pulls.async_list(
                owner,
                repo,
                state="all",
                sort="created",
                direction="asc",
                per_page=per_page,
                page=page,
            ),
            f"pull requests page {page} of {owner}/{repo}",
        )
        return [
            pr.to_git_pull_request()
            for pr in self._parse_page(resp.parsed_data, GitHubPullRequest)
        ]

    async def list_pull_request_commits(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
    ) -> list[GitCommit]:
        """List one page of commits in a pull request."""
        resp = await self._request(
            lambda: self._github.rest.pulls.async_list_commits(
                owner, repo, number, per_page=per_page, page=page
            ),
            f"commits of PR #{number}",
        )
        return [GitCommit(sha=_dump(c)["sha"]) for c in resp.parsed_data or []]

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]:
        """List one page of comments on a single issue."""
        resp = await self._request(
            lambda: self._github.rest.issues.async_list_comments(
                owner, repo, number, per_page=per_page, page=page, **_since_kwargs(since)
            ),
            f"comments of #{number}",
        )
        return [
            c.to_git_comment() for c in self._parse_page(resp.parsed_data, GitHubIssueComment)
        ]

    async def list_pull_request_comments(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]:
        """List one page of conversation comments on a pull request.

        GitHub stores PR conversation comments as issue comments.
        """
        return await self.list_issue_comments(
            owner, repo, number, page=page, per_page=per_page, since=since
        )

    async def list_all_issue_comments(
        self,
        owner: str,
        repo: str,
        *,
        page: int = 1,
        per_page: int = 100,
        since: datetime | None = None,
    ) -> list[GitComment]:
        """List one page of every issue and PR comment in the repository."""
        resp = await self._request(
            lambda: self._github.rest.issues.async_list_comments_for_repo(
                owner,
                repo,
                sort="created",
                direction="asc",
                per_page=per_page,
                page=page,
                **_since_kwargs(since),
            ),
            f"comments page {page} of {owner}/{repo}",
        )
        return [
            c.to_git_comment() for c in self._parse_page(resp.parsed_data, GitHubIssueComment)
        ]

    # -------------------------------------------------------------------------
    # Identity proofs
    # -------------------------------------------------------------------------
    async def get_gist(self, gist_id: str) -> GistProof:
        """Fetch a gist used as a NIP-39 identity proof."""
        resp = await self._request(
            lambda: self._github.rest.gists.async_get(gist_id),
            f"gist {gist_id}",
        )
        return GitHubGist.model_validate(_dump(resp.parsed_data)).to_gist_proof()

    # -------------------------------------------------------------------------
    # Error Handling
    # -------------------------------------------------------------------------
    def _handle_error(self, error: RequestFailed, what: str) -> ProviderClientError:
        """Convert githubkit exceptions to provider exceptions."""
        status = error.response.status_code
        headers = error.response.headers

        if status == 401:
            return ProviderAuthenticationError("Invalid GitHub token")

        if status in (403, 429):
            retry_after = headers.get("retry-after")
            if retry_after is not None:
                return ProviderRateLimitError(
                    "GitHub secondary rate limit exceeded",
                    retry_after=_parse_retry_after(retry_after),
                    secondary=True,
                )
            if headers.get("x-ratelimit-remaining") == "0":
                reset_ts = int(headers.get("x-ratelimit-reset", "0"))
                reset_at = datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts else None
                return ProviderRateLimitError("GitHub rate limit exceeded", reset_at=reset_at)
            if status == 429 or "secondary rate limit" in str(error).lower():
                return ProviderRateLimitError(
                    "GitHub secondary rate limit exceeded", secondary=True
                )
            return ProviderForbiddenError(f"Access forbidden to {what}: {error}")

        if status == 404:
            return ProviderNotFoundError(f"Not found: {what}")
        if status in (400, 409, 422):
            return ProviderValidationError(f"GitHub rejected request for {what}: {error}")
        if status >= 500:
            return ProviderServerError(
                f"GitHub server error ({status}) for {what}", status_code=status
            )
        return ProviderClientError(f"GitHub API error ({status}) for {what}: {error}")

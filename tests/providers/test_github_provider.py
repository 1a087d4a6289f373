"""Tests for GitHubProvider.

Tests cover:
- Initialization and token handling
- Response parsing into provider-neutral models
- Token validation and ownership checks
- Error translation (_handle_error)
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from githubkit.exception import RequestFailed, RequestTimeout

from nostr_git_import.providers import (
    GitHubProvider,
    ProviderAuthenticationError,
    ProviderClientError,
    ProviderForbiddenError,
    ProviderNetworkError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderServerError,
    ProviderValidationError,
)
from tests.fixtures.github_responses import (
    GITHUB_GIST,
    GITHUB_ISSUE_COMMENT,
    GITHUB_ISSUE_OPEN,
    GITHUB_ISSUE_THAT_IS_PR,
    GITHUB_PULL_REQUEST,
    GITHUB_REPOSITORY,
    GITHUB_REPOSITORY_READ_ONLY,
    GITHUB_USER_ALICE,
    GITHUB_USER_OCTOCAT,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def make_response(parsed_data):
    response = MagicMock()
    response.parsed_data = parsed_data
    return response


def make_request_failed(status_code: int, headers: dict[str, str] | None = None):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.headers = headers or {}
    return RequestFailed(mock_response)


# -----------------------------------------------------------------------------
# Test Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_github():
    """Create a mock githubkit GitHub client."""
    with patch("nostr_git_import.providers.github.GitHub") as mock_class:
        mock_instance = MagicMock()
        mock_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def provider(mock_github):
    return GitHubProvider(token="test-token")


# -----------------------------------------------------------------------------
# Test: Initialization
# -----------------------------------------------------------------------------
class TestGitHubProviderInit:
    """Tests for GitHubProvider initialization."""

    def test_init_with_token(self):
        provider = GitHubProvider(token="test-token")
        assert provider._token == "test-token"
        assert provider.platform == "github"

    def test_init_uses_settings_token(self):
        with patch("nostr_git_import.providers.github.get_settings") as mock_settings:
            mock_settings.return_value.github_token = "env-token"
            assert GitHubProvider()._token == "env-token"

    def test_init_without_token_raises(self):
        with patch("nostr_git_import.providers.github.get_settings") as mock_settings:
            mock_settings.return_value.github_token = ""
            with pytest.raises(ProviderAuthenticationError):
                GitHubProvider(token=None)

    def test_client_created_lazily_without_auto_retry(self):
        with patch("nostr_git_import.providers.github.GitHub") as mock_class:
            provider = GitHubProvider(token="test-token")
            mock_class.assert_not_called()

            _ = provider._github
            _ = provider._github

            mock_class.assert_called_once_with("test-token", auto_retry=False)

    async def test_async_context_manager_closes(self, mock_github):
        async with GitHubProvider(token="test-token") as provider:
            _ = provider._github
        assert provider._client is None


# -----------------------------------------------------------------------------
# Test: Repository & ownership
# -----------------------------------------------------------------------------
class TestRepository:
    """Tests for repository, permission and ownership methods."""

    async def test_get_repo(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(return_value=make_response(GITHUB_REPOSITORY))

        repo = await provider.get_repo("octocat", "hello-world")

        assert repo.full_name == "octocat/hello-world"
        mock_github.rest.repos.async_get.assert_awaited_once_with("octocat", "hello-world")

    async def test_validate_token_with_push(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(return_value=make_response(GITHUB_REPOSITORY))

        validation = await provider.validate_token_permissions("octocat", "hello-world")

        assert validation.valid is True
        assert validation.has_read is True
        assert validation.has_write is True

    async def test_validate_token_read_only(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(
            return_value=make_response(GITHUB_REPOSITORY_READ_ONLY)
        )

        validation = await provider.validate_token_permissions("octocat", "hello-world")

        assert validation.has_read is True
        assert validation.has_write is False

    async def test_validate_token_without_permissions_block(self, provider, mock_github):
        data = {**GITHUB_REPOSITORY, "permissions": None}
        mock_github.rest.repos.async_get = AsyncMock(return_value=make_response(data))

        validation = await provider.validate_token_permissions("octocat", "hello-world")

        assert validation.has_read is True
        assert validation.has_write is False

    async def test_validate_token_invalid(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(side_effect=make_request_failed(401))

        validation = await provider.validate_token_permissions("octocat", "hello-world")

        assert validation.valid is False
        assert validation.error == "Invalid GitHub token"

    async def test_validate_token_repo_not_found(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(side_effect=make_request_failed(404))

        validation = await provider.validate_token_permissions("octocat", "missing")

        assert validation.valid is True
        assert validation.has_read is False
        assert "octocat/missing" in (validation.error or "")

    async def test_ownership_by_login(self, provider, mock_github):
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            return_value=make_response(GITHUB_USER_OCTOCAT)
        )
        mock_github.rest.repos.async_get = AsyncMock(
            return_value=make_response(GITHUB_REPOSITORY_READ_ONLY)
        )

        check = await provider.check_repo_ownership("octocat", "hello-world")

        assert check.is_owner is True
        assert check.login == "octocat"

    async def test_ownership_by_admin_permission(self, provider, mock_github):
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            return_value=make_response(GITHUB_USER_ALICE)
        )
        mock_github.rest.repos.async_get = AsyncMock(return_value=make_response(GITHUB_REPOSITORY))

        check = await provider.check_repo_ownership("octocat", "hello-world")

        assert check.is_owner is True

    async def test_not_owner(self, provider, mock_github):
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            return_value=make_response(GITHUB_USER_ALICE)
        )
        mock_github.rest.repos.async_get = AsyncMock(
            return_value=make_response(GITHUB_REPOSITORY_READ_ONLY)
        )

        check = await provider.check_repo_ownership("octocat", "hello-world")

        assert check.is_owner is False
        assert check.repo.full_name == "octocat/hello-world"

    async def test_ownership_reuses_validated_repository(self, provider, mock_github):
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            return_value=make_response(GITHUB_USER_OCTOCAT)
        )
        mock_github.rest.repos.async_get = AsyncMock(return_value=make_response(GITHUB_REPOSITORY))

        await provider.validate_token_permissions("octocat", "hello-world")
        check = await provider.check_repo_ownership("octocat", "hello-world")

        assert check.is_owner is True
        assert mock_github.rest.repos.async_get.await_count == 1
        assert mock_github.rest.users.async_get_authenticated.await_count == 1

    async def test_ownership_retry_skips_finished_request(self, provider, mock_github):
        """A retried check only repeats the request that failed."""
        mock_github.rest.users.async_get_authenticated = AsyncMock(
            return_value=make_response(GITHUB_USER_ALICE)
        )
        mock_github.rest.repos.async_get = AsyncMock(
            side_effect=[
                make_request_failed(502),
                make_response(GITHUB_REPOSITORY_READ_ONLY),
            ]
        )

        with pytest.raises(ProviderServerError):
            await provider.check_repo_ownership("octocat", "hello-world")
        check = await provider.check_repo_ownership("octocat", "hello-world")

        assert check.is_owner is False
        assert check.login == "alice"
        assert mock_github.rest.users.async_get_authenticated.await_count == 1
        assert mock_github.rest.repos.async_get.await_count == 2

    async def test_fork_repo(self, provider, mock_github):
        fork = {
            **GITHUB_REPOSITORY,
            "name": "hello-world-imported",
            "full_name": "alice/hello-world-imported",
            "owner": GITHUB_USER_ALICE,
            "fork": True,
        }
        mock_github.rest.repos.async_create_fork = AsyncMock(return_value=make_response(fork))

        repo = await provider.fork_repo("octocat", "hello-world", name="hello-world-imported")

        assert repo.full_name == "alice/hello-world-imported"
        assert repo.is_fork is True
        mock_github.rest.repos.async_create_fork.assert_awaited_once_with(
            "octocat", "hello-world", name="hello-world-imported"
        )


# -----------------------------------------------------------------------------
# Test: Listings
# -----------------------------------------------------------------------------
class TestListings:
    """Tests for paged listing methods."""

    async def test_list_issues(self, provider, mock_github):
        mock_github.rest.issues.async_list_for_repo = AsyncMock(
            return_value=make_response([GITHUB_ISSUE_OPEN, GITHUB_ISSUE_THAT_IS_PR])
        )

        issues = await provider.list_issues("octocat", "hello-world", page=2, per_page=50)

        assert [i.number for i in issues] == [7, 8]
        assert issues[1].is_pull_request is True
        kwargs = mock_github.rest.issues.async_list_for_repo.call_args.kwargs
        assert kwargs["page"] == 2
        assert kwargs["per_page"] == 50
        assert kwargs["state"] == "all"
        assert "since" not in kwargs

    async def test_list_issues_skips_invalid_items(self, provider, mock_github):
        mock_github.rest.issues.async_list_for_repo = AsyncMock(
            return_value=make_response([{"number": "bogus"}, GITHUB_ISSUE_OPEN])
        )

        issues = await provider.list_issues("octocat", "hello-world")

        assert [i.number for i in issues] == [7]

    async def test_list_pull_requests(self, provider, mock_github):
        mock_github.rest.pulls.async_list = AsyncMock(
            return_value=make_response([GITHUB_PULL_REQUEST])
        )

        prs = await provider.list_pull_requests("octocat", "hello-world")

        assert prs[0].number == 8
        assert prs[0].merged is True

    async def test_list_pull_request_commits(self, provider, mock_github):
        mock_github.rest.pulls.async_list_commits = AsyncMock(
            return_value=make_response([{"sha": "a" * 40}, {"sha": "b" * 40}])
        )

        commits = await provider.list_pull_request_commits("octocat", "hello-world", 8)

        assert [c.sha for c in commits] == ["a" * 40, "b" * 40]

    async def test_list_all_issue_comments(self, provider, mock_github):
        mock_github.rest.issues.async_list_comments_for_repo = AsyncMock(
            return_value=make_response([GITHUB_ISSUE_COMMENT])
        )

        comments = await provider.list_all_issue_comments("octocat", "hello-world")

        assert comments[0].issue_number == 7

    async def test_pull_request_comments_use_issue_comments(self, provider, mock_github):
        mock_github.rest.issues.async_list_comments = AsyncMock(
            return_value=make_response([GITHUB_ISSUE_COMMENT])
        )

        comments = await provider.list_pull_request_comments("octocat", "hello-world", 8)

        assert len(comments) == 1
        assert mock_github.rest.issues.async_list_comments.call_args.args[2] == 8

    async def test_get_gist(self, provider, mock_github):
        mock_github.rest.gists.async_get = AsyncMock(return_value=make_response(GITHUB_GIST))

        gist = await provider.get_gist("aa5a315d61ae9438b18d")

        assert gist.owner_login == "alice"


# -----------------------------------------------------------------------------
# Test: Error Handling
# -----------------------------------------------------------------------------
class TestHandleError:
    """Tests for githubkit exception translation."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, ProviderAuthenticationError),
            (403, ProviderForbiddenError),
            (404, ProviderNotFoundError),
            (409, ProviderValidationError),
            (422, ProviderValidationError),
            (500, ProviderServerError),
            (503, ProviderServerError),
            (418, ProviderClientError),
        ],
    )
    def test_status_mapping(self, provider, status, expected):
        error = provider._handle_error(make_request_failed(status), "thing")

        assert type(error) is expected

    def test_retry_after_is_secondary_limit(self, provider):
        error = provider._handle_error(make_request_failed(403, {"retry-after": "30"}), "thing")

        assert isinstance(error, ProviderRateLimitError)
        assert error.retry_after == 30.0
        assert error.secondary is True

    def test_retry_after_http_date_is_secondary_limit(self, provider):
        headers = {"retry-after": "Wed, 21 Oct 2026 07:28:00 GMT"}

        error = provider._handle_error(make_request_failed(429, headers), "thing")

        assert isinstance(error, ProviderRateLimitError)
        assert error.secondary is True
        assert error.retry_after is None

    def test_exhausted_quota_is_primary_limit(self, provider):
        headers = {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"}

        error = provider._handle_error(make_request_failed(403, headers), "thing")

        assert isinstance(error, ProviderRateLimitError)
        assert error.secondary is False
        assert error.reset_at is not None
        assert int(error.reset_at.timestamp()) == 1700000000

    def test_429_without_hints_is_secondary_limit(self, provider):
        error = provider._handle_error(make_request_failed(429), "thing")

        assert isinstance(error, ProviderRateLimitError)
        assert error.secondary is True
        assert error.retry_after is None

    def test_server_error_keeps_status(self, provider):
        error = provider._handle_error(make_request_failed(502), "thing")

        assert isinstance(error, ProviderServerError)
        assert error.status_code == 502

    async def test_request_translates_and_chains(self, provider, mock_github):
        failure = make_request_failed(404)
        mock_github.rest.repos.async_get = AsyncMock(side_effect=failure)

        with pytest.raises(ProviderNotFoundError) as exc_info:
            await provider.get_repo("octocat", "missing")

        assert exc_info.value.__cause__ is failure

    async def test_timeout_is_network_error(self, provider, mock_github):
        mock_github.rest.repos.async_get = AsyncMock(side_effect=RequestTimeout(MagicMock()))

        with pytest.raises(ProviderNetworkError):
            await provider.get_repo("octocat", "hello-world")

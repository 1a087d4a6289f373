"""Git hosting provider adapters."""

from .base import (
    BulkCommentsApi,
    GistApi,
    GitServiceApi,
    PullRequestCommitsApi,
    supports_bulk_comments,
    supports_gists,
    supports_pull_request_commits,
)
from .exceptions import (
    ProviderAuthenticationError,
    ProviderClientError,
    ProviderForbiddenError,
    ProviderNetworkError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    ProviderRetryableError,
    ProviderServerError,
    ProviderValidationError,
)
from .github import GitHubProvider
from .registry import get_git_service_api, get_git_service_api_from_url

__all__ = [
    # Protocols
    "BulkCommentsApi",
    "GistApi",
    "GitServiceApi",
    "PullRequestCommitsApi",
    "supports_bulk_comments",
    "supports_gists",
    "supports_pull_request_commits",
    # Exceptions
    "ProviderAuthenticationError",
    "ProviderClientError",
    "ProviderForbiddenError",
    "ProviderNetworkError",
    "ProviderNotFoundError",
    "ProviderRateLimitError",
    "ProviderRetryableError",
    "ProviderServerError",
    "ProviderValidationError",
    # Adapters
    "GitHubProvider",
    "get_git_service_api",
    "get_git_service_api_from_url",
]

"""Provider adapter lookup by repository URL."""

from __future__ import annotations

from nostr_git_import.schemas import ParsedRepoUrl, parse_repo_url

from .base import GitServiceApi
from .exceptions import ProviderValidationError
from .github import GitHubProvider


def get_git_service_api(parsed: ParsedRepoUrl, token: str) -> GitServiceApi:
    """Create the adapter for an already parsed repository URL.

    Raises:
        ProviderValidationError: If the provider has no adapter
    """
    if parsed.provider == "github":
        return GitHubProvider(token)
    raise ProviderValidationError(f"Unsupported provider: {parsed.provider} ({parsed.host})")


def get_git_service_api_from_url(url: str, token: str) -> GitServiceApi:
    """Parse ``url`` and create the matching provider adapter.

    Raises:
        ProviderValidationError: If the URL is invalid or the provider unsupported
    """
    try:
        parsed = parse_repo_url(url)
    except ValueError as e:
        raise ProviderValidationError(str(e)) from e
    return get_git_service_api(parsed, token)

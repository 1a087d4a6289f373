"""Schemas for repository metadata and repository URL parsing."""

import re
from typing import Literal

from pydantic import Field

from .base import SchemaBase

Provider = Literal["github", "gitlab", "gitea", "bitbucket"]

_KNOWN_HOSTS: dict[str, Provider] = {
    "github.com": "github",
    "www.github.com": "github",
    "gitlab.com": "gitlab",
    "www.gitlab.com": "gitlab",
    "codeberg.org": "gitea",
    "gitea.com": "gitea",
    "bitbucket.org": "bitbucket",
    "www.bitbucket.org": "bitbucket",
}

_URL_RE = re.compile(
    r"^(?:https?://|git@)(?P<host>[^/:]+)[/:]"
    r"(?P<owner>[^/]+)/(?P<repo>[^/#?]+?)(?:\.git)?(?:[/#?].*)?$"
)


class RepoMetadata(SchemaBase):
    """Provider-neutral repository metadata.

    ``partial`` is set by providers whose ownership check only returns
    a summary record; the resolver fetches the full record once in that case.
    """

    name: str = Field(description="Repository name")
    full_name: str = Field(description="owner/name")
    owner: str = Field(description="Owner login")
    description: str | None = Field(default=None, description="Repository description")
    html_url: str = Field(default="", description="Web URL")
    clone_url: str = Field(default="", description="HTTPS clone URL")
    ssh_url: str | None = Field(default=None, description="SSH clone URL")
    default_branch: str = Field(default="main", description="Default branch name")
    is_fork: bool = Field(default=False, description="Whether the repository is a fork")
    is_private: bool = Field(default=False, description="Whether the repository is private")
    topics: list[str] = Field(default_factory=list, description="Repository topics")
    euc: str | None = Field(
        default=None,
        description="Earliest unique commit, when the provider reports it",
    )
    partial: bool = Field(default=False, description="Only summary fields are populated")

    @property
    def short_name(self) -> str:
        """Repository name taken from ``full_name`` (falls back to ``name``)."""
        return self.full_name.rsplit("/", 1)[-1] or self.name


class ParsedRepoUrl(SchemaBase):
    """Result of parsing a repository URL."""

    provider: Provider
    host: str
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repo_url(url: str) -> ParsedRepoUrl:
    """Parse a provider repository URL into provider/owner/repo.

    Accepts https and scp-style ssh URLs, with or without a ``.git`` suffix.
    Hosts not in the known list are treated as self-hosted Gitea instances,
    except hosts containing "gitlab".

    Args:
        url: Repository URL (e.g., "https://github.com/owner/repo")

    Returns:
        ParsedRepoUrl

    Raises:
        ValueError: If the URL does not name an owner and repository
    """
    match = _URL_RE.match(url.strip())
    if not match:
        raise ValueError(f"Invalid repository URL: {url}")

    host = match.group("host").lower()
    provider = _KNOWN_HOSTS.get(host)
    if provider is None:
        provider = "gitlab" if "gitlab" in host else "gitea"

    return ParsedRepoUrl(
        provider=provider,
        host=host,
        owner=match.group("owner"),
        repo=match.group("repo"),
    )

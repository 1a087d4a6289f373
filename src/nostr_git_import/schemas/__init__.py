"""Pydantic schemas for nostr-git-import.

This module provides provider payload parsing, provider-neutral
collaboration models, and Nostr event models.
"""

from .base import SchemaBase
from .events import EventFilter, EventTemplate, PublishResult, SignedEvent
from .git import (
    GistProof,
    GitComment,
    GitCommit,
    GitIssue,
    GitPullRequest,
    GitUser,
    OwnershipCheck,
    TokenValidation,
)
from .github_api import (
    GitHubGist,
    GitHubIssue,
    GitHubIssueComment,
    GitHubPullRequest,
    GitHubRepository,
    GitHubUser,
)
from .repository import ParsedRepoUrl, Provider, RepoMetadata, parse_repo_url

__all__ = [
    # Base
    "SchemaBase",
    # Events
    "EventFilter",
    "EventTemplate",
    "PublishResult",
    "SignedEvent",
    # Provider-neutral
    "GistProof",
    "GitComment",
    "GitCommit",
    "GitIssue",
    "GitPullRequest",
    "GitUser",
    "OwnershipCheck",
    "TokenValidation",
    # GitHub API
    "GitHubGist",
    "GitHubIssue",
    "GitHubIssueComment",
    "GitHubPullRequest",
    "GitHubRepository",
    "GitHubUser",
    # Repository
    "ParsedRepoUrl",
    "Provider",
    "RepoMetadata",
    "parse_repo_url",
]

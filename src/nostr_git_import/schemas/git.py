"""Provider-neutral schemas for collaboration history.

Every provider adapter converts its native payloads into these models,
so the import pipelines never see provider-specific shapes.
"""

from datetime import datetime

from pydantic import Field

from .base import SchemaBase
from .repository import RepoMetadata


class GitUser(SchemaBase):
    """Author of an issue, pull request or comment."""

    login: str = Field(description="Platform username")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")


class GitIssue(SchemaBase):
    """An issue as listed by the provider.

    ``is_pull_request`` marks entries that some providers return from the
    issues listing but which are really pull requests.
    """

    number: int
    title: str
    body: str | None = None
    state: str = Field(description="open or closed")
    author: GitUser
    labels: list[str] = Field(default_factory=list)
    url: str = ""
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    is_pull_request: bool = False


class GitPullRequest(SchemaBase):
    """A pull request as listed by the provider."""

    number: int
    title: str
    body: str | None = None
    state: str = Field(description="open or closed")
    merged: bool = False
    draft: bool = False
    author: GitUser
    labels: list[str] = Field(default_factory=list)
    url: str = ""
    head_branch: str | None = None
    head_sha: str | None = None
    base_branch: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None


class GitComment(SchemaBase):
    """A comment on an issue or pull request.

    ``issue_number`` is only populated by bulk (repository-wide) listings,
    where the parent has to be recovered from the payload.
    """

    id: str = Field(description="Provider-native comment ID")
    body: str = ""
    author: GitUser
    url: str = ""
    created_at: datetime
    issue_number: int | None = None
    in_reply_to: str | None = Field(
        default=None,
        description="Provider ID of the comment this one replies to",
    )


class GitCommit(SchemaBase):
    """A commit reference inside a pull request."""

    sha: str


class TokenValidation(SchemaBase):
    """Outcome of checking what a token may do on a repository."""

    valid: bool
    has_read: bool = False
    has_write: bool = False
    error: str | None = None


class OwnershipCheck(SchemaBase):
    """Whether the authenticated identity owns the repository."""

    is_owner: bool
    repo: RepoMetadata
    login: str | None = Field(default=None, description="Authenticated username")


class GistProof(SchemaBase):
    """A hosted identity proof document (e.g., a GitHub gist)."""

    id: str
    owner_login: str | None = None
    files: dict[str, str] = Field(
        default_factory=dict,
        description="File name -> file content",
    )

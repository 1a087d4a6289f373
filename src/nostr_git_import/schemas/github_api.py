"""Pydantic schemas for parsing GitHub API responses.

These schemas map directly to the GitHub REST API response structure and
convert into the provider-neutral models in ``schemas.git``.
See: https://docs.github.com/en/rest/issues
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .git import GistProof, GitComment, GitIssue, GitPullRequest, GitUser
from .repository import RepoMetadata


class GitHubUser(BaseModel):
    """GitHub user object from API responses."""

    login: str = Field(description="GitHub username")
    id: int = Field(default=0, description="GitHub user ID")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    type: str = Field(default="User", description="User type")

    def to_git_user(self) -> GitUser:
        return GitUser(login=self.login, avatar_url=self.avatar_url)


class GitHubLabel(BaseModel):
    """GitHub label object from API responses."""

    name: str = Field(description="Label name")
    color: str | None = Field(default=None, description="Label color (hex without #)")


class GitHubRepoPermissions(BaseModel):
    """Permissions of the authenticated user on a repository."""

    admin: bool = False
    maintain: bool = False
    push: bool = False
    triage: bool = False
    pull: bool = False


class GitHubRepository(BaseModel):
    """GitHub repository object.

    Maps to: GET /repos/{owner}/{repo}
    """

    id: int
    name: str
    full_name: str
    owner: GitHubUser
    description: str | None = None
    html_url: str
    clone_url: str | None = None
    ssh_url: str | None = None
    default_branch: str | None = None
    fork: bool = False
    private: bool = False
    topics: list[str] = Field(default_factory=list)
    permissions: GitHubRepoPermissions | None = None

    def to_repo_metadata(self) -> RepoMetadata:
        """
        Factory method to convert to provider-neutral metadata.

        Returns:
            RepoMetadata with full fields populated
        """
        return RepoMetadata(
            name=self.name,
            full_name=self.full_name,
            owner=self.owner.login,
            description=self.description,
            html_url=self.html_url,
            clone_url=self.clone_url or f"{self.html_url}.git",
            ssh_url=self.ssh_url,
            default_branch=self.default_branch or "main",
            is_fork=self.fork,
            is_private=self.private,
            topics=self.topics,
        )


class GitHubIssue(BaseModel):
    """GitHub issue object from API.

    Maps to: GET /repos/{owner}/{repo}/issues
    Pull requests also appear in this listing with ``pull_request`` set.
    """

    number: int
    title: str
    body: str | None = None
    state: str
    html_url: str
    user: GitHubUser
    labels: list[GitHubLabel] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    pull_request: dict[str, Any] | None = None

    def to_git_issue(self) -> GitIssue:
        return GitIssue(
            number=self.number,
            title=self.title,
            body=self.body,
            state=self.state,
            author=self.user.to_git_user(),
            labels=[label.name for label in self.labels],
            url=self.html_url,
            created_at=self.created_at,
            updated_at=self.updated_at,
            closed_at=self.closed_at,
            is_pull_request=self.pull_request is not None,
        )


class GitHubBranchRef(BaseModel):
    """Head/base reference of a pull request."""

    ref: str
    sha: str


class GitHubPullRequest(BaseModel):
    """GitHub Pull Request object from the list endpoint.

    Maps to: GET /repos/{owner}/{repo}/pulls
    """

    number: int
    title: str
    body: str | None = None
    state: str
    html_url: str
    user: GitHubUser
    labels: list[GitHubLabel] = Field(default_factory=list)
    draft: bool | None = False
    head: GitHubBranchRef | None = None
    base: GitHubBranchRef | None = None
    created_at: datetime
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None

    def to_git_pull_request(self) -> GitPullRequest:
        return GitPullRequest(
            number=self.number,
            title=self.title,
            body=self.body,
            state=self.state,
            merged=self.merged_at is not None,
            draft=bool(self.draft),
            author=self.user.to_git_user(),
            labels=[label.name for label in self.labels],
            url=self.html_url,
            head_branch=self.head.ref if self.head else None,
            head_sha=self.head.sha if self.head else None,
            base_branch=self.base.ref if self.base else None,
            created_at=self.created_at,
            updated_at=self.updated_at,
            closed_at=self.closed_at,
            merged_at=self.merged_at,
        )


class GitHubIssueComment(BaseModel):
    """GitHub issue comment object.

    Maps to: GET /repos/{owner}/{repo}/issues/comments and
    GET /repos/{owner}/{repo}/issues/{number}/comments
    """

    id: int
    body: str | None = None
    html_url: str = ""
    issue_url: str = ""
    user: GitHubUser | None = None
    created_at: datetime

    @property
    def issue_number(self) -> int | None:
        """Parent issue/PR number parsed from ``issue_url``."""
        tail = self.issue_url.rstrip("/").rsplit("/", 1)[-1]
        return int(tail) if tail.isdigit() else None

    def to_git_comment(self) -> GitComment:
        author = self.user or GitHubUser(login="ghost")
        return GitComment(
            id=str(self.id),
            body=self.body or "",
            author=author.to_git_user(),
            url=self.html_url,
            created_at=self.created_at,
            issue_number=self.issue_number,
        )


class GitHubGistFile(BaseModel):
    """A single file of a gist."""

    filename: str | None = None
    content: str | None = None


class GitHubGist(BaseModel):
    """GitHub gist object.

    Maps to: GET /gists/{gist_id}
    """

    id: str
    owner: GitHubUser | None = None
    files: dict[str, GitHubGistFile | None] = Field(default_factory=dict)

    def to_gist_proof(self) -> GistProof:
        return GistProof(
            id=self.id,
            owner_login=self.owner.login if self.owner else None,
            files={
                name: (file.content or "") if file else ""
                for name, file in self.files.items()
            },
        )

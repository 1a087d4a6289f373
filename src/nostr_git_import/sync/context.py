"""Per-run import session state.

One ``ImportContext`` is created for every ``import_repository`` call and
dropped when the call returns. Pipelines receive it explicitly; nothing
in it survives across runs.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TypeVar

from nostr_git_import.config import ImportConfig
from nostr_git_import.events import EventGateway, KeyPair, repo_address
from nostr_git_import.pacing import (
    AbortToken,
    BatchedPublisher,
    ProgressReporter,
    RateLimitedCaller,
)
from nostr_git_import.providers import GitServiceApi
from nostr_git_import.schemas import ParsedRepoUrl, RepoMetadata, SignedEvent

from .exceptions import RepoImportError

K = TypeVar("K")
V = TypeVar("V")

TIMESTAMP_OFFSET = 3600


def _record(mapping: dict[K, V], key: K, value: V, what: str) -> None:
    if key in mapping:
        raise RepoImportError(f"{what} {key!r} is already recorded")
    mapping[key] = value


@dataclass
class ImportContext:
    """Mutable state of a single import run.

    Invariants:
        - ``final_repo`` is set exactly once, by ``resolve_repo``
        - id maps and profile maps are append-only
        - every produced event takes its ``created_at`` from ``next_timestamp``
    """

    api: GitServiceApi
    parsed: ParsedRepoUrl
    config: ImportConfig
    user_pubkey: str
    gateway: EventGateway
    abort: AbortToken
    call: RateLimitedCaller
    progress: ProgressReporter
    publisher: BatchedPublisher
    import_timestamp: int = field(default_factory=lambda: int(time.time()))

    current_timestamp: int = field(init=False)

    # Provider id -> event id
    issue_event_ids: dict[int, str] = field(default_factory=dict)
    pr_event_ids: dict[int, str] = field(default_factory=dict)
    comment_event_ids: dict[str, str] = field(default_factory=dict)

    # "platform:username" -> synthetic identity
    user_profiles: dict[str, KeyPair] = field(default_factory=dict)
    profile_events: dict[str, SignedEvent] = field(default_factory=dict)

    # NIP-39 bridge caches
    bridged_pubkeys: dict[str, str] = field(default_factory=dict)
    bridge_checked: set[str] = field(default_factory=set)

    issues_published: int = 0
    prs_published: int = 0
    comments_published: int = 0
    status_events_published: int = 0

    _final_repo: RepoMetadata | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.current_timestamp = self.import_timestamp - TIMESTAMP_OFFSET

    # -------------------------------------------------------------------------
    # Source & target repository
    # -------------------------------------------------------------------------
    @property
    def platform(self) -> str:
        return self.parsed.provider

    @property
    def owner(self) -> str:
        return self.parsed.owner

    @property
    def repo(self) -> str:
        return self.parsed.repo

    @property
    def final_repo(self) -> RepoMetadata:
        """Repository events are anchored to (the fork when one was created)."""
        if self._final_repo is None:
            raise RepoImportError("Target repository has not been resolved yet")
        return self._final_repo

    @property
    def is_resolved(self) -> bool:
        return self._final_repo is not None

    def resolve_repo(self, repo: RepoMetadata) -> None:
        """Set the target repository. Allowed once per run."""
        if self._final_repo is not None:
            raise RepoImportError("Target repository is already resolved")
        self._final_repo = repo

    @property
    def repo_addr(self) -> str:
        """``30617:<user pubkey>:<repo name>`` of the target repository."""
        return repo_address(self.user_pubkey, self.final_repo.short_name)

    # -------------------------------------------------------------------------
    # Logical clock
    # -------------------------------------------------------------------------
    def next_timestamp(self) -> int:
        """Return the next unique ``created_at`` and advance the counter."""
        value = self.current_timestamp
        self.current_timestamp += 1
        return value

    # -------------------------------------------------------------------------
    # Append-only maps
    # -------------------------------------------------------------------------
    def record_issue(self, number: int, event_id: str) -> None:
        _record(self.issue_event_ids, number, event_id, "Issue")

    def record_pull_request(self, number: int, event_id: str) -> None:
        _record(self.pr_event_ids, number, event_id, "Pull request")

    def record_comment(self, comment_id: str, event_id: str) -> None:
        _record(self.comment_event_ids, comment_id, event_id, "Comment")

    def record_profile(self, key: str, keypair: KeyPair, event: SignedEvent) -> None:
        _record(self.user_profiles, key, keypair, "Profile")
        self.profile_events[key] = event

    def record_bridge(self, key: str, pubkey: str | None) -> None:
        """Cache a bridge lookup outcome (``None`` for not found)."""
        if pubkey is not None:
            _record(self.bridged_pubkeys, key, pubkey, "Bridged identity")
        self.bridge_checked.add(key)

    @property
    def profiles_created(self) -> int:
        return len(self.user_profiles)

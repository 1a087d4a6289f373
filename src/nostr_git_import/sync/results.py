"""Result objects for import runs.

Structured results provide consistent interfaces for host applications
and CLI output.
"""

from dataclasses import dataclass
from typing import Any

from nostr_git_import.schemas import RepoMetadata, SignedEvent


@dataclass
class ImportResult:
    """Result of a completed import run."""

    announcement_event: SignedEvent
    """Repository announcement (kind 30617)."""

    state_event: SignedEvent
    """Repository state (kind 30618)."""

    repo: RepoMetadata
    """Target repository the events are anchored to."""

    issues_imported: int = 0
    """Issue events published."""

    comments_imported: int = 0
    """Comment events published."""

    prs_imported: int = 0
    """Pull request events published."""

    profiles_created: int = 0
    """Distinct synthetic author profiles created."""

    status_events_published: int = 0
    """Issue status events published."""

    events_published: int = 0
    """Events the transport accepted."""

    events_failed: int = 0
    """Events whose publish failed (best-effort, never retried)."""

    duration_seconds: float = 0.0
    """Wall-clock duration of the run."""

    @property
    def all_published(self) -> bool:
        """Whether every event reached the transport."""
        return self.events_failed == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "repository": self.repo.full_name,
            "announcement_event_id": self.announcement_event.id,
            "state_event_id": self.state_event.id,
            "issues_imported": self.issues_imported,
            "prs_imported": self.prs_imported,
            "comments_imported": self.comments_imported,
            "profiles_created": self.profiles_created,
            "status_events_published": self.status_events_published,
            "events_published": self.events_published,
            "events_failed": self.events_failed,
            "duration_seconds": round(self.duration_seconds, 2),
        }

"""Progress reporting for import runs.

The orchestrator moves through a linear series of stages; every stage
transition and every N streamed items is pushed to registered callbacks
as an ``ImportProgress`` snapshot.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from nostr_git_import.logging import get_logger

logger = get_logger(__name__)


class ImportStage(StrEnum):
    """Stage of an import run."""

    IDLE = "idle"
    VALIDATING = "validating"
    PUBLISHING_REPO_EVENTS = "publishing_repo_events"
    STREAMING_ISSUES = "streaming_issues"
    STREAMING_PULL_REQUESTS = "streaming_pull_requests"
    STREAMING_COMMENTS = "streaming_comments"
    PUBLISHING_PROFILES = "publishing_profiles"
    FINAL_FLUSH = "final_flush"
    COMPLETE = "complete"
    ERRORED = "errored"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ImportProgress:
    """A progress snapshot delivered to callbacks."""

    step: str
    stage: ImportStage = ImportStage.IDLE
    current: int | None = None
    total: int | None = None
    is_complete: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "step": self.step,
            "stage": self.stage.value,
            "is_complete": self.is_complete,
        }
        if self.current is not None:
            data["current"] = self.current
        if self.total is not None:
            data["total"] = self.total
        if self.error is not None:
            data["error"] = self.error
        return data


ProgressCallback = Callable[[ImportProgress], None]


class ProgressReporter:
    """Observable progress for a single import run.

    Usage:
        reporter = ProgressReporter()
        reporter.on_progress(lambda p: print(p.step, p.current))

        reporter.set_stage(ImportStage.STREAMING_ISSUES, "Importing issues...")
        reporter.update("Imported 10 issues", current=10)
        reporter.complete("Import completed successfully!")
    """

    def __init__(self, callbacks: list[ProgressCallback] | None = None) -> None:
        self._callbacks: list[ProgressCallback] = list(callbacks or [])
        self._stage = ImportStage.IDLE
        self._latest = ImportProgress(step="Idle")
        self._start_time: float | None = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def stage(self) -> ImportStage:
        """Current stage of the run."""
        return self._stage

    @property
    def latest(self) -> ImportProgress:
        """Most recent progress snapshot."""
        return self._latest

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time since the run started in seconds."""
        if self._start_time is None:
            return 0.0
        return time.monotonic() - self._start_time

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------
    def on_progress(self, callback: ProgressCallback) -> None:
        """Register a progress callback."""
        self._callbacks.append(callback)

    def _notify(self, progress: ImportProgress) -> None:
        self._latest = progress
        for callback in self._callbacks:
            try:
                callback(progress)
            except Exception as e:
                logger.warning("Progress callback error: {}", e)

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------
    def start(self, step: str) -> None:
        """Mark the run as started."""
        self._start_time = time.monotonic()
        self.set_stage(ImportStage.VALIDATING, step)

    def set_stage(self, stage: ImportStage, step: str) -> None:
        """Move to ``stage`` and report ``step``."""
        self._stage = stage
        logger.debug("Stage {}: {}", stage.value, step)
        self._notify(ImportProgress(step=step, stage=stage))

    def update(self, step: str, current: int | None = None, total: int | None = None) -> None:
        """Report progress within the current stage."""
        self._notify(ImportProgress(step=step, stage=self._stage, current=current, total=total))

    def message(self, step: str) -> None:
        """Report a free-form message, keeping the last counters."""
        self._notify(
            ImportProgress(
                step=step,
                stage=self._stage,
                current=self._latest.current,
                total=self._latest.total,
            )
        )

    def complete(self, step: str) -> None:
        """Mark the run as successfully completed."""
        self._stage = ImportStage.COMPLETE
        logger.info("{} ({:.1f}s)", step, self.elapsed_seconds)
        self._notify(ImportProgress(step=step, stage=self._stage, is_complete=True))

    def fail(self, error: str, *, aborted: bool = False) -> None:
        """Mark the run as failed or aborted; only success sets ``is_complete``."""
        self._stage = ImportStage.ABORTED if aborted else ImportStage.ERRORED
        step = "Import aborted" if aborted else "Import failed"
        self._notify(
            ImportProgress(step=step, stage=self._stage, is_complete=False, error=error)
        )

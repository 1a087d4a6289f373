"""Cooperative cancellation for import runs.

An ``AbortToken`` is a flag that can be set from outside the running
import. It never interrupts a request already in flight; the import
checks it before every throttled call, every retry wait, every batch
delay and at the top of every page loop iteration.
"""

from __future__ import annotations

import asyncio

from nostr_git_import.logging import get_logger

logger = get_logger(__name__)


class ImportAbortedError(Exception):
    """Raised at the next checkpoint after an import was aborted.

    Always propagated as-is so callers can tell a cancelled run from a
    failed one.
    """

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "Import aborted")
        self.reason = reason


class AbortToken:
    """Mutable cancellation flag with an optional reason.

    Usage:
        token = AbortToken()
        ...
        token.throw_if_aborted()
        await token.sleep(2.0)  # wakes early and raises if aborted
    """

    def __init__(self) -> None:
        self._reason: str | None = None
        self._event = asyncio.Event()

    @property
    def aborted(self) -> bool:
        """Whether abort has been requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Human-readable abort reason, if one was given."""
        return self._reason

    def abort(self, reason: str | None = None) -> None:
        """Request cancellation. Later calls keep the first reason."""
        if self.aborted:
            return
        self._reason = reason
        self._event.set()
        logger.info("Abort requested: {}", reason or "no reason given")

    def throw_if_aborted(self) -> None:
        """Raise ``ImportAbortedError`` if abort was requested."""
        if self.aborted:
            raise ImportAbortedError(self._reason)

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless aborted first.

        Raises:
            ImportAbortedError: If abort is requested before or during the sleep
        """
        self.throw_if_aborted()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return
        self.throw_if_aborted()

"""Batched, best-effort event publishing.

Signed events are queued and published in bounded batches. All events
of a batch are published concurrently; individual failures are counted
and logged but never retried and never fail the run. Events that must
land, such as repository announcements, go through ``publish_now``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from nostr_git_import.logging import get_logger
from nostr_git_import.schemas import SignedEvent

from .abort import AbortToken

logger = get_logger(__name__)

PublishFn = Callable[[SignedEvent], Awaitable[None]]


@dataclass
class FlushResult:
    """Result of flushing one batch."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        """Number of events published."""
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        """Number of events whose publish raised."""
        return len(self.failed)


class BatchedPublisher:
    """Queue of signed events flushed in bounded concurrent batches.

    Usage:
        publisher = BatchedPublisher(gateway.publish, abort, batch_size=30)
        await publisher.enqueue(event)  # flushes when the batch is full
        ...
        await publisher.flush()         # publish the remainder
    """

    def __init__(
        self,
        publish: PublishFn,
        abort: AbortToken,
        batch_size: int = 30,
        batch_delay: float = 0.25,
    ) -> None:
        """Initialize the publisher.

        Args:
            publish: Async function publishing one signed event
            abort: Abort token checked before each flush and during the delay
            batch_size: Events per batch
            batch_delay: Seconds to pause after each non-empty flush
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._publish = publish
        self._abort = abort
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._queue: list[SignedEvent] = []
        self._published = 0
        self._failed = 0
        self._flushes = 0

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def pending(self) -> int:
        """Number of queued events not yet flushed."""
        return len(self._queue)

    @property
    def published(self) -> int:
        """Events published successfully so far."""
        return self._published

    @property
    def failed(self) -> int:
        """Events whose publish failed so far."""
        return self._failed

    @property
    def flushes(self) -> int:
        """Number of non-empty flushes performed."""
        return self._flushes

    async def publish_now(self, event: SignedEvent) -> None:
        """Publish ``event`` outside any batch; failures propagate.

        Raises:
            ImportAbortedError: If aborted before publishing
        """
        self._abort.throw_if_aborted()
        await self._publish(event)
        self._published += 1

    async def enqueue(self, event: SignedEvent) -> None:
        """Queue ``event``, flushing once the batch is full."""
        self._queue.append(event)
        if len(self._queue) >= self._batch_size:
            await self.flush()

    async def flush(self) -> FlushResult:
        """Publish every queued event concurrently, then pause.

        Raises:
            ImportAbortedError: If aborted before publishing or during the pause
        """
        result = FlushResult()
        if not self._queue:
            return result

        self._abort.throw_if_aborted()
        batch, self._queue = self._queue, []
        self._flushes += 1

        outcomes = await asyncio.gather(
            *(self._publish(event) for event in batch),
            return_exceptions=True,
        )
        for event, outcome in zip(batch, outcomes, strict=True):
            if isinstance(outcome, Exception):
                result.failed.append((event.id, outcome))
                logger.warning("Failed to publish event {}: {}", event.id[:12], outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(event.id)

        self._published += result.success_count
        self._failed += result.failure_count
        logger.debug(
            "Flushed batch of {}: {} published, {} failed",
            len(batch),
            result.success_count,
            result.failure_count,
        )

        await self._abort.sleep(self._batch_delay)
        return result

"""Request pacing and retry classification for provider calls.

Requests are spaced per (provider, method) key. Failed requests are
classified into retryable-with-delay or fatal:

    ProviderRateLimitError   -> retry-after hint, else reset time, else secondary wait
    ProviderServerError      -> exponential backoff
    ProviderNetworkError     -> exponential backoff
    anything else            -> fatal
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from nostr_git_import.config import RateLimitConfig, get_settings
from nostr_git_import.logging import get_logger
from nostr_git_import.providers.exceptions import (
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderServerError,
)

from .abort import AbortToken, ImportAbortedError

logger = get_logger(__name__)

ProgressMessageCallback = Callable[[str], None]


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of classifying a failed attempt."""

    retry: bool
    delay: float = 0.0
    reason: str = ""

    @classmethod
    def fatal(cls, reason: str = "") -> RetryDecision:
        return cls(retry=False, reason=reason)


class RateLimiter:
    """Per-(provider, method) pacing plus retry decisions.

    Usage:
        limiter = RateLimiter()
        await limiter.throttle("github", "GET")
        ...
        decision = limiter.should_retry(error, attempt=1)
        if decision.retry:
            await limiter.wait_with_progress("github", decision.delay, abort)
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        on_progress: ProgressMessageCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            config: Pacing/retry configuration (uses settings if not provided)
            on_progress: Called with a human-readable message while waiting
            clock: Monotonic clock in seconds
        """
        self._config = config or get_settings().rate_limit
        self._on_progress = on_progress
        self._clock = clock
        self._last_request: dict[tuple[str, str], float] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    @property
    def config(self) -> RateLimitConfig:
        """Get the rate limit configuration."""
        return self._config

    # -------------------------------------------------------------------------
    # Pacing
    # -------------------------------------------------------------------------
    def _lock_for(self, key: tuple[str, str]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def throttle(
        self,
        provider: str,
        method: str,
        abort: AbortToken | None = None,
    ) -> None:
        """Wait until the minimum spacing for ``(provider, method)`` has passed.

        The request slot is claimed before returning, so concurrent callers
        for the same key are serialized.
        """
        key = (provider, method.upper())
        spacing = self._config.seconds_between_requests

        async with self._lock_for(key):
            last = self._last_request.get(key)
            if last is not None:
                wait = last + spacing - self._clock()
                if wait > 0:
                    if abort is not None:
                        await abort.sleep(wait)
                    else:
                        await asyncio.sleep(wait)
            self._last_request[key] = self._clock()

    # -------------------------------------------------------------------------
    # Retry Classification
    # -------------------------------------------------------------------------
    def should_retry(self, error: BaseException, attempt: int) -> RetryDecision:
        """Decide whether a failed attempt should be retried.

        Args:
            error: The exception raised by the attempt
            attempt: 1-based number of the attempt that failed

        Returns:
            RetryDecision with the delay to wait before the next attempt
        """
        if isinstance(error, ImportAbortedError):
            return RetryDecision.fatal("aborted")
        if attempt > self._config.max_retries:
            return RetryDecision.fatal("retries exhausted")

        if isinstance(error, ProviderRateLimitError):
            return RetryDecision(
                retry=True,
                delay=self._rate_limit_delay(error),
                reason="secondary rate limit" if error.secondary else "rate limit",
            )
        if isinstance(error, ProviderServerError | ProviderNetworkError):
            return RetryDecision(
                retry=True,
                delay=self._backoff_delay(attempt),
                reason="transient error",
            )
        return RetryDecision.fatal(type(error).__name__)

    def _rate_limit_delay(self, error: ProviderRateLimitError) -> float:
        if error.retry_after is not None:
            wait = error.retry_after
        elif error.reset_at is not None:
            wait = (error.reset_at - datetime.now(UTC)).total_seconds()
        else:
            return self._config.secondary_rate_wait
        return min(max(0.0, wait), self._config.max_rate_limit_wait)

    def _backoff_delay(self, attempt: int) -> float:
        delay = self._config.backoff_base * (2 ** (attempt - 1))
        return min(delay, self._config.max_backoff)

    # -------------------------------------------------------------------------
    # Waiting
    # -------------------------------------------------------------------------
    async def wait_with_progress(
        self,
        provider: str,
        delay: float,
        abort: AbortToken,
    ) -> None:
        """Sleep ``delay`` seconds in one-second slices, reporting the countdown.

        Raises:
            ImportAbortedError: If aborted before or during the wait
        """
        abort.throw_if_aborted()
        remaining = delay
        while remaining > 0:
            message = f"Rate limited by {provider}, resuming in {math.ceil(remaining)}s..."
            if self._on_progress is not None:
                try:
                    self._on_progress(message)
                except Exception as e:
                    logger.warning("Progress callback error: {}", e)
            step = min(1.0, remaining)
            await abort.sleep(step)
            remaining -= step

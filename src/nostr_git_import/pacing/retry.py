"""Rate-limited, abort-aware wrapper around single provider operations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from nostr_git_import.logging import get_logger

from .abort import AbortToken, ImportAbortedError
from .limiter import RateLimiter

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimitedCaller:
    """Runs provider operations under pacing and retry rules.

    Every attempt checks the abort token, then throttles, then invokes
    the operation. Failures are classified by the ``RateLimiter``; fatal
    errors and exhausted retries re-raise the last error unchanged.

    Usage:
        call = RateLimitedCaller(abort, limiter)
        issues = await call("github", "GET", lambda: api.list_issues(owner, repo))
    """

    def __init__(self, abort: AbortToken, limiter: RateLimiter) -> None:
        self._abort = abort
        self._limiter = limiter

    @property
    def abort(self) -> AbortToken:
        return self._abort

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def with_rate_limit(
        self,
        provider: str,
        method: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        attempt = 0
        while True:
            self._abort.throw_if_aborted()
            await self._limiter.throttle(provider, method, self._abort)
            attempt += 1
            try:
                return await operation()
            except ImportAbortedError:
                raise
            except Exception as e:
                decision = self._limiter.should_retry(e, attempt)
                if not decision.retry:
                    raise
                logger.warning(
                    "{} {} failed ({}), retry {}/{} in {:.1f}s",
                    provider,
                    method,
                    decision.reason,
                    attempt,
                    self._limiter.config.max_retries,
                    decision.delay,
                )
                await self._limiter.wait_with_progress(provider, decision.delay, self._abort)

    async def __call__(
        self,
        provider: str,
        method: str,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        return await self.with_rate_limit(provider, method, operation)

"""Pacing, cancellation, progress and batching for import runs."""

from .abort import AbortToken, ImportAbortedError
from .batch import BatchedPublisher, FlushResult
from .limiter import RateLimiter, RetryDecision
from .progress import ImportProgress, ImportStage, ProgressCallback, ProgressReporter
from .retry import RateLimitedCaller

__all__ = [
    # Cancellation
    "AbortToken",
    "ImportAbortedError",
    # Pacing
    "RateLimitedCaller",
    "RateLimiter",
    "RetryDecision",
    # Progress
    "ImportProgress",
    "ImportStage",
    "ProgressCallback",
    "ProgressReporter",
    # Publishing
    "BatchedPublisher",
    "FlushResult",
]

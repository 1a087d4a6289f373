"""Provider client exceptions."""

from datetime import datetime


class ProviderClientError(Exception):
    """Base exception for provider API errors."""

    pass


class ProviderAuthenticationError(ProviderClientError):
    """Raised when authentication fails (401) or no token is available."""

    pass


class ProviderForbiddenError(ProviderClientError):
    """Raised when the token lacks access to a resource (403 without rate limit)."""

    pass


class ProviderNotFoundError(ProviderClientError):
    """Raised when a resource is not found (404)."""

    pass


class ProviderValidationError(ProviderClientError):
    """Raised when the provider rejects a request as invalid (400/409/422)."""

    pass


class ProviderRetryableError(ProviderClientError):
    """Base class for errors the rate limiter may retry.

    Subclasses propagate out of provider calls to the retry wrapper,
    which decides how long to back off.
    """

    pass


class ProviderRateLimitError(ProviderRetryableError):
    """Raised when a primary or secondary rate limit is hit (403/429)."""

    def __init__(
        self,
        message: str,
        reset_at: datetime | None = None,
        retry_after: float | None = None,
        secondary: bool = False,
    ) -> None:
        super().__init__(message)
        self.reset_at = reset_at
        self.retry_after = retry_after
        self.secondary = secondary


class ProviderServerError(ProviderRetryableError):
    """Raised for 5xx responses."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderNetworkError(ProviderRetryableError):
    """Raised when the request never produced a response (timeout, DNS, reset)."""

    pass

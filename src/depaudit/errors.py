"""Exception hierarchy for depaudit.

All exceptions inherit from AuditError. Only ParseError raised during graph
resolution and ConfigError abort a run; everything raised while processing a
single dependency is turned into a warning on that dependency.
"""

from __future__ import annotations


class AuditError(Exception):
    """Base exception for all depaudit errors."""


class ParseError(AuditError):
    """Project metadata, a URL, or a fetched payload could not be parsed."""


class ConfigError(AuditError):
    """Invalid configuration (weights, thresholds, policy)."""


class NetworkError(AuditError):
    """Transport failure that persisted after all retries."""


class ApiError(AuditError):
    """Non-success response not covered by a more specific error."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        self.message = message
        super().__init__(f"API error from {service}: {message}")


class NotFoundError(ApiError):
    """The requested package or repository does not exist (HTTP 404)."""

    def __init__(self, service: str, name: str) -> None:
        self.name = name
        super().__init__(service, f"'{name}' not found")


class RateLimitExceeded(AuditError):
    """The service kept rate-limiting us after all retries."""

    def __init__(self, service: str, retry_after: float | None = None) -> None:
        self.service = service
        self.retry_after = retry_after
        hint = f"{retry_after:.0f}s" if retry_after is not None else "unknown"
        super().__init__(f"Rate limit exceeded for {service}. Retry after: {hint}")

"""Exception hierarchy for Paper-Network."""

from __future__ import annotations


class PaperNetworkError(Exception):
    """Base class for all Paper-Network errors."""

    def __init__(self, message: str, identifier: str | None = None):
        super().__init__(message)
        self.message = message
        self.identifier = identifier


class NotFound(PaperNetworkError):
    """The provider has no paper for the identifier. Never retried."""


class RateLimited(PaperNetworkError):
    """The provider throttled the request (HTTP 429)."""

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message, identifier)
        self.retry_after = retry_after


class UpstreamUnavailable(PaperNetworkError):
    """Server error, network failure or timeout talking to a provider."""

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, identifier)
        self.status_code = status_code


class InvalidIdentifier(PaperNetworkError):
    """The identifier cannot be classified or was rejected by the provider."""


class CacheUnavailable(PaperNetworkError):
    """The cache backend failed. Always recovered locally."""


class CacheConfigMissing(CacheUnavailable):
    """The configured cache backend is missing required settings."""


__all__ = [
    "CacheConfigMissing",
    "CacheUnavailable",
    "InvalidIdentifier",
    "NotFound",
    "PaperNetworkError",
    "RateLimited",
    "UpstreamUnavailable",
]

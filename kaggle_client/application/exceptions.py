"""
Core exceptions for the Kaggle client.

This module defines a hierarchy of custom exceptions so that callers can
branch on the kind of failure (e.g. back off on RateLimitError) instead of
catching a generic error.
"""

from typing import Optional


class KaggleClientError(Exception):
    """Base exception for all library errors."""
    pass


# --- Configuration / Input Errors ---

class ConfigurationError(KaggleClientError):
    """Raised when credentials or settings are missing or unreadable."""
    pass


ConfigError = ConfigurationError


class ValidationError(KaggleClientError):
    """Raised for malformed caller input, e.g. an empty or invalid slug."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


# --- Infrastructure Errors ---

class InfrastructureError(KaggleClientError):
    """Base class for errors related to external systems (network, API, etc.)."""
    pass


class ApiError(InfrastructureError):
    """Raised for a non-2xx response. Keeps the status code and raw body."""

    def __init__(self, status_code: int, body: str = "", url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = f"Kaggle API reported error code {self.status_code}"
        if self.url:
            message += f" for {self.url}"
        if self.body:
            message += f": {self.body[:500]}"
        return message


class AuthError(ApiError):
    """Raised on 401/403 responses."""
    pass


class NotFoundError(ApiError):
    """Raised on 404 responses."""
    pass


class RateLimitError(ApiError):
    """Raised on 429 responses."""

    def __init__(
        self,
        status_code: int = 429,
        body: str = "",
        url: str = "",
        retry_after: Optional[int] = None,
    ):
        self.retry_after = retry_after
        super().__init__(status_code, body, url)

    def _describe(self) -> str:
        if self.retry_after is not None:
            return (
                "Exceeded API request limit - please wait "
                f"{self.retry_after} seconds"
            )
        return "Exceeded API request limit"


class TransportError(InfrastructureError):
    """Raised for connection, DNS and timeout failures."""
    pass


class DecodeError(InfrastructureError):
    """Raised when a response body does not match the expected schema."""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body


class DownloadError(InfrastructureError):
    """Raised when a file download fails."""
    pass


# --- Domain Errors ---

class DomainError(KaggleClientError):
    """Base class for errors raised by local processing steps."""
    pass


class ArchiveError(DomainError):
    """Raised for corrupt archives, unknown formats or extraction I/O failures."""
    pass


class UnsafePathError(ArchiveError):
    """Raised when an archive entry would be written outside the destination."""

    def __init__(self, entry: str, destination):
        self.entry = entry
        self.destination = destination
        super().__init__(
            f"Archive entry {entry!r} escapes destination {destination}"
        )

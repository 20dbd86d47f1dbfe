"""Exception types for pybaseguard."""

from __future__ import annotations


class BaseguardError(Exception):
    """Base exception for expected application errors."""


class NetworkError(BaseguardError):
    """Raised when a network operation fails."""

    def __init__(self, url: str, *, cause: str | None = None) -> None:
        detail = f"Unable to reach the availability service for {url}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(detail)


class RequestTimeoutError(BaseguardError):
    """Raised when a request times out."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request timed out for {url}")


class HttpStatusError(BaseguardError):
    """Raised when a non-2xx HTTP response is returned."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Request failed with HTTP {status_code} for {url}")


class ContentError(BaseguardError):
    """Raised when a response body is empty or not the expected JSON shape."""

    def __init__(self, url: str, *, detail: str | None = None) -> None:
        message = f"Received malformed content from {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CatalogError(BaseguardError):
    """Raised when a pattern table is inconsistent."""


class ConfigError(BaseguardError):
    """Raised when configuration values are invalid."""

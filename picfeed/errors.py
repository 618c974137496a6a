"""Error types shared across the fetch, cache and feed modules.

Kept in one place so the fetch layer and the API layer can import them
without circular imports.
"""

from typing import Optional


class PicfeedError(Exception):
    """Base class for every error raised by picfeed."""


class FetchError(PicfeedError):
    """A single fetch attempt failed.

    Attributes:
        url: The URL that was being fetched.
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchTimeoutError(FetchError, TimeoutError):
    """The page did not settle within the allotted time."""


class BlockedError(FetchError):
    """Upstream explicitly refused the request (HTTP 403)."""

    def __init__(self, message: str, url: Optional[str] = None, status: int = 403):
        super().__init__(message, url)
        self.status = status


class AllAttemptsExhaustedError(PicfeedError):
    """Every attempt allowed by the retry policy failed.

    Attributes:
        url: The URL that was being fetched.
        attempts: Number of fetch attempts made.
        last_error: The most recently observed attempt failure.
    """

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException]):
        super().__init__(f"All {attempts} attempts failed for {url}: {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class ParseError(PicfeedError):
    """An expected field is missing from a fetched document."""


__all__ = [
    "PicfeedError",
    "FetchError",
    "FetchTimeoutError",
    "BlockedError",
    "AllAttemptsExhaustedError",
    "ParseError",
]

"""Custom exception hierarchy for leakyloop."""

from __future__ import annotations


class LeakyLoopError(Exception):
    """Base exception for all leakyloop errors.

    Every custom exception in the package inherits from this class, so a
    caller can catch any leakyloop-specific failure with a single except
    clause.
    """


class ConfigError(LeakyLoopError):
    """Raised when configuration is invalid.

    Examples:
        - ``LEAKYLOOP_DELAY`` is not a number.
        - ``LEAKYLOOP_PORT`` is outside 1-65535.
    """


class NoResponseError(LeakyLoopError):
    """Raised when a request never produced a response object.

    Connection refused, DNS failure and similar transport faults leave no
    server-originated body to print. The poller does not recover from
    this; it propagates out of the loop.

    Attributes:
        url: The URL that was being requested.
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"No response from {url}: {message}")
        self.url = url

"""Instrumented GET client with auto-timing and metric emission."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp

from leakyloop._internal.errors import NoResponseError
from leakyloop._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("poller.http_client")


def _noop_callback(metric: PollMetric) -> None:
    """Default no-op metric callback."""


@dataclass
class PollMetric:
    """Raw metric emitted for every request.

    Attributes:
        timestamp: Monotonic timestamp when the request started.
        method: HTTP method.
        url: Full request URL.
        status_code: HTTP response status code (0 if no response arrived).
        latency_ms: Time until the body was fully read, in milliseconds.
        content_length: Response body size in bytes.
        error: Error message if the request failed, None otherwise.
    """

    timestamp: float
    method: str
    url: str
    status_code: int
    latency_ms: float
    content_length: int
    error: str | None = None


@dataclass(frozen=True)
class PollResponse:
    """A fully read response, whatever its status code.

    Attributes:
        status: HTTP status code.
        content_type: Media type from the Content-Type header.
        charset: Declared charset, or None.
        body: Raw response body.
    """

    status: int
    content_type: str
    charset: str | None
    body: bytes

    @property
    def ok(self) -> bool:
        """Return True for 2xx statuses."""
        return 200 <= self.status < 300


class HttpClient:
    """Async GET client wrapping ``aiohttp.ClientSession``.

    Sends requests with no extra headers and no body. Non-2xx statuses are
    not raised: the body of every response is read and returned. Only a
    request that never produced a response raises ``NoResponseError``.
    Every request emits a ``PollMetric`` through ``metric_callback``.
    """

    def __init__(
        self,
        metric_callback: Callable[[PollMetric], None] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            metric_callback: Invoked with a ``PollMetric`` after each request.
                Defaults to a no-op.
            timeout: Total request timeout in seconds. None disables every
                aiohttp timeout, so a hung server blocks indefinitely.
        """
        self._metric_callback = metric_callback or _noop_callback
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(self, url: str) -> PollResponse:
        """Send a bare GET request and read the whole body.

        Args:
            url: Absolute URL to request.

        Returns:
            The read response, for any status code.

        Raises:
            NoResponseError: If no response object was produced.
            RuntimeError: If the client is used outside of an async context
                manager.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        start = time.monotonic()
        status_code = 0
        content_length = 0
        error: str | None = None

        try:
            async with self._session.get(url) as resp:
                status_code = resp.status
                body = await resp.read()
                content_length = len(body)
                result = PollResponse(
                    status=resp.status,
                    content_type=resp.content_type,
                    charset=resp.charset,
                    body=body,
                )
        except (aiohttp.ClientError, TimeoutError) as exc:
            error = f"{type(exc).__name__}: {exc}"
            raise NoResponseError(url, error) from exc
        finally:
            latency_ms = (time.monotonic() - start) * 1000
            self._metric_callback(
                PollMetric(
                    timestamp=start,
                    method="GET",
                    url=url,
                    status_code=status_code,
                    latency_ms=latency_ms,
                    content_length=content_length,
                    error=error,
                )
            )

        logger.debug("GET %s -> %d (%.1fms)", url, result.status, latency_ms)
        return result

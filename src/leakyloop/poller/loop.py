"""The poll loop: sleep, GET, print the counter, print the payload, repeat."""

from __future__ import annotations

import asyncio
import itertools
from typing import TYPE_CHECKING

from leakyloop._internal.config import DEFAULT_DELAY, DEFAULT_URL
from leakyloop._internal.errors import NoResponseError
from leakyloop._internal.logging import get_logger
from leakyloop.metrics.stats import PollStats
from leakyloop.poller.http_client import HttpClient
from leakyloop.poller.payload import decode_payload, render_payload

if TYPE_CHECKING:
    from leakyloop._internal.types import LineWriter

logger = get_logger("poller.loop")


def _print_line(line: str) -> None:
    print(line, flush=True)


class Poller:
    """Fixed-interval GET-and-print loop.

    Each iteration sleeps ``delay`` seconds, issues one GET to ``url``,
    writes the iteration counter and then the rendered response body as
    two lines. Error statuses are printed like any other body. A request
    that produces no response raises ``NoResponseError`` out of ``run``.

    Iterations are strictly sequential: one request in flight at most, and
    the next sleep starts only after both lines were written.

    Attributes:
        url: Target URL.
        delay: Seconds slept before every request, including the first.
        stats: Latency and status statistics for all requests so far.
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        *,
        delay: float = DEFAULT_DELAY,
        timeout: float | None = None,
        write_line: LineWriter | None = None,
    ) -> None:
        """Initialize the poller.

        Args:
            url: URL requested on every iteration.
            delay: Seconds to sleep before each request. Must be >= 0.
            timeout: Request timeout in seconds, or None for no timeout.
            write_line: Sink for output lines. Defaults to ``print`` (stdout).

        Raises:
            ValueError: If delay is negative.
        """
        if delay < 0:
            msg = f"delay must be >= 0, got {delay}"
            raise ValueError(msg)

        self.url = url
        self.delay = delay
        self.stats = PollStats()
        self._timeout = timeout
        self._write_line: LineWriter = write_line or _print_line

    async def run(self, max_iterations: int | None = None) -> PollStats:
        """Run the loop.

        Args:
            max_iterations: Stop after this many iterations. None loops
                forever.

        Returns:
            The accumulated statistics, once ``max_iterations`` is reached.

        Raises:
            NoResponseError: If a request produced no response object.
        """
        logger.info("Polling %s every %.3fs", self.url, self.delay)

        async with HttpClient(metric_callback=self.stats.record, timeout=self._timeout) as client:
            for counter in itertools.count():
                if max_iterations is not None and counter >= max_iterations:
                    break
                await self._iterate(client, counter)

        return self.stats

    async def _iterate(self, client: HttpClient, counter: int) -> None:
        await asyncio.sleep(self.delay)

        try:
            response = await client.get(self.url)
        except NoResponseError as exc:
            logger.error("Iteration %d failed without a response: %s", counter, exc)
            raise

        if not response.ok:
            logger.debug("Iteration %d got status %d, printing its body", counter, response.status)

        self._write_line(str(counter))
        self._write_line(render_payload(decode_payload(response)))

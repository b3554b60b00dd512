"""Poll the rate-limited server in-process and watch it start rejecting.

Starts the ``/hello`` server on a spare local port, then polls it twenty
times. The first ten requests fit in the client's bucket; the rest print
the 429 body. Run it with:

    python examples/poll_rate_limited.py
"""

from __future__ import annotations

import asyncio

from aiohttp import web
from rich import print as rprint

from leakyloop import Poller, create_app


async def main() -> None:
    runner = web.AppRunner(create_app())
    await runner.setup()
    # Port 0 lets the OS pick a free port
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]

    try:
        poller = Poller(f"http://{host}:{port}/hello")
        stats = await poller.run(max_iterations=20)
        rprint(stats.summary())
    finally:
        await runner.cleanup()


if __name__ == "__main__":
    asyncio.run(main())

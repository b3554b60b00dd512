"""Shared test fixtures for the leakyloop test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


@pytest.fixture
def unreachable_url() -> str:
    """A URL on a local port nothing is listening on."""
    return f"http://127.0.0.1:{_get_free_port()}/hello"


# =============================================================================
# Target HTTP server
# =============================================================================


@dataclass
class RecordedRequest:
    """What the target server saw for one request."""

    received_at: float
    method: str
    path: str
    query_string: str
    body: bytes


@dataclass
class TargetServer:
    """Handle on a running target server."""

    url: str
    requests: list[RecordedRequest] = field(default_factory=list)


REQUESTS_KEY = web.AppKey("requests", list)


@web.middleware
async def _record_middleware(request: web.Request, handler):  # type: ignore[no-untyped-def]
    request.app[REQUESTS_KEY].append(
        RecordedRequest(
            received_at=time.monotonic(),
            method=request.method,
            path=request.path,
            query_string=request.query_string,
            body=await request.read(),
        )
    )
    return await handler(request)


async def _hello_handler(request: web.Request) -> web.Response:
    return web.json_response({"title": "X"})


async def _error_handler(request: web.Request) -> web.Response:
    return web.json_response({"error": "boom"}, status=500)


async def _flaky_handler(request: web.Request) -> web.Response:
    """Alternate 200 and 500, starting with 200."""
    if len(request.app[REQUESTS_KEY]) % 2 == 1:
        return web.json_response({"ok": True})
    return web.json_response({"ok": False}, status=500)


async def _text_handler(request: web.Request) -> web.Response:
    return web.Response(text="plain hello")


async def _bogus_charset_handler(request: web.Request) -> web.Response:
    return web.Response(body=b"hello", headers={"Content-Type": "text/plain; charset=bogus"})


async def _slow_handler(request: web.Request) -> web.Response:
    await asyncio.sleep(float(request.query.get("delay", "1.0")))
    return web.json_response({"slow": True})


def _create_target_app(requests: list[RecordedRequest]) -> web.Application:
    app = web.Application(middlewares=[_record_middleware])
    app[REQUESTS_KEY] = requests
    app.router.add_get("/hello", _hello_handler)
    app.router.add_get("/error", _error_handler)
    app.router.add_get("/flaky", _flaky_handler)
    app.router.add_get("/text", _text_handler)
    app.router.add_get("/slow", _slow_handler)
    app.router.add_get("/bogus-charset", _bogus_charset_handler)
    return app


@pytest.fixture
async def target_server() -> AsyncIterator[TargetServer]:
    """Target server on a free port, recording every request it receives."""
    server = TargetServer(url="")
    port = _get_free_port()
    runner = web.AppRunner(_create_target_app(server.requests))
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    server.url = f"http://127.0.0.1:{port}"
    yield server
    await runner.cleanup()


@pytest.fixture
def sync_target_server() -> Iterator[TargetServer]:
    """Target server running in a background thread for sync (CLI) tests."""
    server = TargetServer(url="")
    port = _get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_target_app(server.requests))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)
    server.url = f"http://127.0.0.1:{port}"

    yield server

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


# =============================================================================
# App runner
# =============================================================================


@pytest.fixture
async def start_app() -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start aiohttp apps on free ports; returns their base URLs.

    Every app started through the fixture is cleaned up afterwards, which
    also runs its cleanup contexts.
    """
    runners: list[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        port = _get_free_port()
        runner = web.AppRunner(app)
        await runner.setup()
        runners.append(runner)
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        return f"http://127.0.0.1:{port}"

    yield _start

    for runner in runners:
        await runner.cleanup()


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Manually advanced nanosecond clock."""

    def __init__(self, start_ns: int = 1_000_000_000) -> None:
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, seconds: float) -> None:
        self.now_ns += int(seconds * 1_000_000_000)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()

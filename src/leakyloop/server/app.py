"""aiohttp application serving ``/hello`` behind a leaky-bucket rate limiter."""

from __future__ import annotations

import hashlib
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aiohttp import web

from leakyloop._internal.config import DEFAULT_HOST, DEFAULT_PORT
from leakyloop._internal.logging import get_logger
from leakyloop.server.collector import Collector
from leakyloop.server.rules import DEFAULT_USER_TYPE, get_rule

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from aiohttp.typedefs import Handler

logger = get_logger("server.app")

_BASE62_DIGITS = string.digits + string.ascii_lowercase + string.ascii_uppercase

TOO_MANY_REQUESTS_MESSAGE = "Try again after sometime!"


@dataclass(frozen=True)
class LimiterSettings:
    """Bucket parameters applied to every client.

    Attributes:
        capacity: Bucket capacity for a new client bucket.
        rate: Units drained per second.
        prune_interval: Seconds between sweeps for empty buckets.
    """

    capacity: int = (1 << 20) * 10
    rate: float = 10.0
    prune_interval: float = 1.0


COLLECTOR_KEY = web.AppKey("collector", Collector)
SETTINGS_KEY = web.AppKey("limiter_settings", LimiterSettings)


def _to_base62(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 62)
        digits.append(_BASE62_DIGITS[rem])
    return "".join(reversed(digits))


def client_identifier(remote: str | None, path: str) -> str:
    """Return the bucket key for a client address and request path.

    The key is the base62 form of the MD5 digest of ``"<ip>-<path>"``, so
    each client gets one bucket per path.
    """
    digest = hashlib.md5(f"{remote or ''}-{path}".encode(), usedforsecurity=False).digest()
    return _to_base62(int.from_bytes(digest, "big"))


@web.middleware
async def rate_limit_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Charge the client's bucket and reject the request when it is full."""
    user_type = request.headers.get("user-type") or DEFAULT_USER_TYPE
    rule = get_rule(user_type)
    if rule is None:
        return web.json_response({"message": f"Unknown user type: {user_type}"}, status=400)

    settings = request.app[SETTINGS_KEY]
    key = client_identifier(request.remote, request.path)
    added = request.app[COLLECTOR_KEY].add(key, rule.amount, settings.capacity, settings.rate)

    if added == 0:
        logger.debug("Rate limited %s on %s", request.remote, request.path)
        return web.json_response({"message": TOO_MANY_REQUESTS_MESSAGE}, status=429)

    return await handler(request)


async def hello_handler(request: web.Request) -> web.Response:
    """Greet the caller."""
    return web.json_response({"message": "Hello world!"})


async def _collector_ctx(app: web.Application) -> AsyncIterator[None]:
    """Run bucket pruning for the lifetime of the app."""
    collector = app[COLLECTOR_KEY]
    collector.start_pruning(app[SETTINGS_KEY].prune_interval)
    yield
    await collector.close()


def create_app(
    collector: Collector | None = None,
    settings: LimiterSettings | None = None,
) -> web.Application:
    """Build the rate-limited application.

    Args:
        collector: Bucket collector to charge. A new one is created if None.
        settings: Bucket parameters. Defaults to ``LimiterSettings()``.

    Returns:
        The configured aiohttp application.
    """
    app = web.Application(middlewares=[rate_limit_middleware])
    app[COLLECTOR_KEY] = collector if collector is not None else Collector()
    app[SETTINGS_KEY] = settings or LimiterSettings()
    app.router.add_get("/hello", hello_handler)
    app.cleanup_ctx.append(_collector_ctx)
    return app


def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Serve the application until interrupted."""
    logger.info("Serving on http://%s:%d", host, port)
    web.run_app(create_app(), host=host, port=port, print=None)

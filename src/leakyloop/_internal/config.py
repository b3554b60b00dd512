"""Configuration loading for leakyloop."""

from __future__ import annotations

import os
from dataclasses import dataclass

from leakyloop._internal.errors import ConfigError

DEFAULT_URL = "http://localhost:8080/hello"
DEFAULT_DELAY = 0.1
DEFAULT_HOST = "0.0.0.0"  # noqa: S104
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class LeakyLoopConfig:
    """Global leakyloop configuration.

    Attributes:
        url: URL the poller requests on every iteration.
        delay: Seconds slept before each request.
        timeout: Request timeout in seconds. None means wait forever.
        host: Interface the demo server binds to.
        port: Port the demo server listens on.
    """

    url: str = DEFAULT_URL
    delay: float = DEFAULT_DELAY
    timeout: float | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None


def load_config() -> LeakyLoopConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        LEAKYLOOP_URL: Poll target (default: http://localhost:8080/hello).
        LEAKYLOOP_DELAY: Delay before each request in seconds (default: 0.1).
        LEAKYLOOP_TIMEOUT: Request timeout in seconds (default: none).
        LEAKYLOOP_HOST: Server bind address (default: 0.0.0.0).
        LEAKYLOOP_PORT: Server port (default: 8080).

    Returns:
        Populated LeakyLoopConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    delay = _parse_float("LEAKYLOOP_DELAY", os.environ.get("LEAKYLOOP_DELAY", str(DEFAULT_DELAY)))
    if delay < 0:
        msg = f"LEAKYLOOP_DELAY must be >= 0, got: {delay}"
        raise ConfigError(msg)

    timeout: float | None = None
    timeout_str = os.environ.get("LEAKYLOOP_TIMEOUT", "")
    if timeout_str:
        timeout = _parse_float("LEAKYLOOP_TIMEOUT", timeout_str)
        if timeout <= 0:
            msg = f"LEAKYLOOP_TIMEOUT must be positive, got: {timeout}"
            raise ConfigError(msg)

    port_str = os.environ.get("LEAKYLOOP_PORT", str(DEFAULT_PORT))
    try:
        port = int(port_str)
    except ValueError:
        msg = f"LEAKYLOOP_PORT must be an integer, got: {port_str!r}"
        raise ConfigError(msg) from None

    if not 1 <= port <= 65535:
        msg = f"LEAKYLOOP_PORT must be between 1 and 65535, got: {port}"
        raise ConfigError(msg)

    return LeakyLoopConfig(
        url=os.environ.get("LEAKYLOOP_URL", DEFAULT_URL),
        delay=delay,
        timeout=timeout,
        host=os.environ.get("LEAKYLOOP_HOST", DEFAULT_HOST),
        port=port,
    )

"""leakyloop — fixed-interval HTTP poller and the rate-limited server it polls."""

from __future__ import annotations

from leakyloop._internal.config import LeakyLoopConfig, load_config
from leakyloop._internal.errors import ConfigError, LeakyLoopError, NoResponseError
from leakyloop.metrics.stats import PollStats, StatsSummary
from leakyloop.poller.http_client import HttpClient, PollMetric, PollResponse
from leakyloop.poller.loop import Poller
from leakyloop.server.app import create_app, run_server
from leakyloop.server.collector import Collector

__version__ = "0.1.0"

__all__ = [
    "Collector",
    "ConfigError",
    "HttpClient",
    "LeakyLoopConfig",
    "LeakyLoopError",
    "NoResponseError",
    "PollMetric",
    "PollResponse",
    "PollStats",
    "Poller",
    "StatsSummary",
    "create_app",
    "load_config",
    "run_server",
]

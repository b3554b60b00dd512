"""Leaky-bucket rate-limited HTTP server that the poller targets."""

from __future__ import annotations

from leakyloop.server.app import create_app, run_server
from leakyloop.server.bucket import LeakyBucket
from leakyloop.server.collector import Collector
from leakyloop.server.rules import Rule, get_rule

__all__ = ["Collector", "LeakyBucket", "Rule", "create_app", "get_rule", "run_server"]

"""Fixed-interval GET-and-print poller."""

from __future__ import annotations

from leakyloop.poller.http_client import HttpClient, PollMetric, PollResponse
from leakyloop.poller.loop import Poller

__all__ = ["HttpClient", "PollMetric", "PollResponse", "Poller"]

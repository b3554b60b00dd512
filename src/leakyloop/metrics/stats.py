"""Running latency and status statistics for a poll session.

Latencies go into an HDR histogram as integer microseconds; the public
API works in milliseconds.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from leakyloop.poller.http_client import PollMetric

# 1 microsecond to 1 hour; there is no request timeout by default
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 3_600_000_000
_SIGNIFICANT_DIGITS = 3


@dataclass(frozen=True)
class StatsSummary:
    """Point-in-time view of a PollStats.

    Attributes:
        total_requests: Requests that were attempted.
        responses: Requests that produced a response of any status.
        non_2xx: Responses whose status was outside 200-299.
        no_response: Requests that failed before any response arrived.
        status_counts: Response count keyed by status code.
        latency_min: Fastest response in milliseconds.
        latency_mean: Mean response time in milliseconds.
        latency_p50: Median response time in milliseconds.
        latency_p95: 95th percentile response time in milliseconds.
        latency_p99: 99th percentile response time in milliseconds.
        latency_max: Slowest response in milliseconds.
    """

    total_requests: int
    responses: int
    non_2xx: int
    no_response: int
    status_counts: dict[int, int] = field(default_factory=dict)
    latency_min: float = 0.0
    latency_mean: float = 0.0
    latency_p50: float = 0.0
    latency_p95: float = 0.0
    latency_p99: float = 0.0
    latency_max: float = 0.0


class PollStats:
    """Accumulates PollMetric records for the lifetime of a poller.

    Only requests that produced a response contribute to the latency
    histogram.
    """

    def __init__(self) -> None:
        self._histogram = HdrHistogram(
            _LOWEST_TRACKABLE_US, _HIGHEST_TRACKABLE_US, _SIGNIFICANT_DIGITS
        )
        self._status_counts: Counter[int] = Counter()
        self._total = 0
        self._no_response = 0

    @property
    def total_requests(self) -> int:
        return self._total

    def record(self, metric: PollMetric) -> None:
        """Record one request metric.

        Args:
            metric: Metric emitted by the HTTP client.
        """
        self._total += 1
        if metric.status_code == 0:
            self._no_response += 1
            return

        self._status_counts[metric.status_code] += 1
        value_us = int(metric.latency_ms * 1000)
        value_us = max(_LOWEST_TRACKABLE_US, min(value_us, _HIGHEST_TRACKABLE_US))
        self._histogram.record_value(value_us)

    def summary(self) -> StatsSummary:
        """Return a snapshot of the statistics gathered so far."""
        responses = sum(self._status_counts.values())
        non_2xx = sum(n for status, n in self._status_counts.items() if not 200 <= status < 300)

        if self._histogram.total_count == 0:
            return StatsSummary(
                total_requests=self._total,
                responses=responses,
                non_2xx=non_2xx,
                no_response=self._no_response,
                status_counts=dict(self._status_counts),
            )

        return StatsSummary(
            total_requests=self._total,
            responses=responses,
            non_2xx=non_2xx,
            no_response=self._no_response,
            status_counts=dict(sorted(self._status_counts.items())),
            latency_min=self._histogram.get_min_value() / 1000.0,
            latency_mean=self._histogram.get_mean_value() / 1000.0,
            latency_p50=self._histogram.get_value_at_percentile(50.0) / 1000.0,
            latency_p95=self._histogram.get_value_at_percentile(95.0) / 1000.0,
            latency_p99=self._histogram.get_value_at_percentile(99.0) / 1000.0,
            latency_max=self._histogram.get_max_value() / 1000.0,
        )

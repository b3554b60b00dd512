"""Shared type aliases for leakyloop."""

from __future__ import annotations

from collections.abc import Callable

# Sink for the poller's stdout lines.
LineWriter = Callable[[str], None]

# Monotonic clock returning integer nanoseconds.
Clock = Callable[[], int]

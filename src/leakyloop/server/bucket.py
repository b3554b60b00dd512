"""A single leaky bucket."""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leakyloop._internal.types import Clock

_NS_PER_SECOND = 1_000_000_000


class LeakyBucket:
    """Leaky bucket that drains ``rate`` units per second.

    The bucket does not store a fill level. It stores the instant at which
    it will be empty (``empty_at``, monotonic nanoseconds) and derives the
    count from the time left until then. Adding ``n`` units pushes
    ``empty_at`` forward by ``n / rate`` seconds.

    Attributes:
        key: Identifier the bucket is tracked under.
        capacity: Maximum count the bucket can hold.
        rate: Units drained per second.
        empty_at: Monotonic time in nanoseconds at which the bucket is empty.
    """

    def __init__(
        self,
        key: str,
        capacity: int,
        rate: float,
        *,
        clock: Clock = time.monotonic_ns,
    ) -> None:
        """Create an empty bucket.

        Raises:
            ValueError: If capacity or rate is not positive.
        """
        if capacity <= 0:
            msg = f"capacity must be positive, got {capacity}"
            raise ValueError(msg)
        if rate <= 0:
            msg = f"rate must be positive, got {rate}"
            raise ValueError(msg)

        self.key = key
        self.capacity = capacity
        self.rate = rate
        self._clock = clock
        self.empty_at = clock()

    def count(self) -> int:
        """Return how full the bucket is right now, capped at capacity."""
        remaining_ns = self.empty_at - self._clock()
        if remaining_ns <= 0:
            return 0
        ns_per_drip = _NS_PER_SECOND / self.rate
        return min(self.capacity, math.ceil(remaining_ns / ns_per_drip))

    def till_empty(self) -> float:
        """Return the seconds left until the bucket is empty."""
        return max(0, self.empty_at - self._clock()) / _NS_PER_SECOND

    def add(self, amount: int) -> int:
        """Add up to ``amount`` units without exceeding capacity.

        Args:
            amount: Units to add.

        Returns:
            Units actually added. Less than ``amount`` means the bucket is
            now full; 0 means it was already full.
        """
        count = self.count()
        if count >= self.capacity:
            return 0

        now = self._clock()
        if self.empty_at < now:
            self.empty_at = now

        added = min(amount, self.capacity - count)
        self.empty_at += int(_NS_PER_SECOND * (added / self.rate))
        return added

    def __repr__(self) -> str:
        return f"LeakyBucket(key={self.key!r}, capacity={self.capacity}, rate={self.rate})"

"""Keyed collection of leaky buckets with expiry pruning."""

from __future__ import annotations

import asyncio
import contextlib
import heapq
import itertools
import threading
import time
from typing import TYPE_CHECKING

from leakyloop._internal.logging import get_logger
from leakyloop.server.bucket import LeakyBucket

if TYPE_CHECKING:
    from leakyloop._internal.types import Clock

logger = get_logger("server.collector")

# Heap may hold this many entries per live bucket before it is rebuilt
_COMPACT_FACTOR = 2
_MIN_COMPACT_SIZE = 32


class Collector:
    """Tracks many LeakyBucket instances addressed by a string key.

    Callers never touch the buckets directly; they pass a key such as a
    hashed client address. A bucket is created on the first ``add`` for its
    key, with the capacity and rate given to that call, and keeps them for
    its lifetime.

    Buckets are also kept in a min-heap ordered by the time they will be
    empty, so ``prune`` can drop expired ones without scanning every key.
    Heap entries are never updated in place: each ``add`` pushes a fresh
    entry and older entries for the same bucket are discarded lazily. Once
    stale entries outnumber live buckets the heap is rebuilt, so its size
    stays proportional to the number of buckets, not the number of adds.

    All methods are safe to call from multiple threads or coroutines.
    """

    def __init__(self, *, clock: Clock = time.monotonic_ns) -> None:
        """Initialize an empty collector.

        Args:
            clock: Monotonic nanosecond clock shared with every bucket.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, LeakyBucket] = {}
        # (empty_at, seq, key); valid only while seq matches _entry_seq[key]
        self._heap: list[tuple[int, int, str]] = []
        self._entry_seq: dict[str, int] = {}
        self._seq = itertools.count()
        self._prune_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._buckets

    def count(self, key: str) -> int:
        """Return the count of the bucket for ``key`` (0 if untracked)."""
        with self._lock:
            bucket = self._buckets.get(key)
            return 0 if bucket is None else bucket.count()

    def till_empty(self, key: str) -> float:
        """Return seconds until the bucket for ``key`` is empty (0 if untracked)."""
        with self._lock:
            bucket = self._buckets.get(key)
            return 0.0 if bucket is None else bucket.till_empty()

    def add(self, key: str, amount: int, capacity: int, rate: float) -> int:
        """Add ``amount`` to the bucket for ``key``, up to its capacity.

        Args:
            key: Bucket identifier.
            amount: Units to add.
            capacity: Capacity for a newly created bucket.
            rate: Drain rate (units per second) for a newly created bucket.

        Returns:
            Units actually added. 0 means the bucket was full.
        """
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = LeakyBucket(key, capacity, rate, clock=self._clock)
                self._buckets[key] = bucket
                self._push(bucket)

            added = bucket.add(amount)
            if added > 0:
                self._push(bucket)
            return added

    def remove(self, key: str) -> None:
        """Stop tracking the bucket for ``key``. Unknown keys are ignored."""
        with self._lock:
            self._buckets.pop(key, None)
            self._entry_seq.pop(key, None)

    def reset(self) -> None:
        """Drop every bucket, as if the collector had just been created."""
        with self._lock:
            self._buckets.clear()
            self._entry_seq.clear()
            self._heap.clear()

    def prune(self) -> int:
        """Remove every bucket that is empty now.

        Returns:
            Number of buckets removed.
        """
        removed = 0
        with self._lock:
            now = self._clock()
            while self._heap:
                empty_at, seq, key = self._heap[0]
                if self._entry_seq.get(key) != seq:
                    heapq.heappop(self._heap)
                    continue
                if now < empty_at:
                    break
                heapq.heappop(self._heap)
                del self._buckets[key]
                del self._entry_seq[key]
                removed += 1
        return removed

    def start_pruning(self, interval: float = 1.0) -> None:
        """Call ``prune`` every ``interval`` seconds in a background task.

        Must be called from a running event loop.

        Raises:
            ValueError: If interval is not positive.
            RuntimeError: If pruning is already running.
        """
        if interval <= 0:
            msg = f"interval must be positive, got {interval}"
            raise ValueError(msg)
        if self._prune_task is not None:
            msg = "Collector is already pruning"
            raise RuntimeError(msg)
        self._prune_task = asyncio.create_task(self._prune_periodically(interval))

    async def close(self) -> None:
        """Stop background pruning, if any, and drop all buckets."""
        if self._prune_task is not None:
            self._prune_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._prune_task
            self._prune_task = None
        self.reset()

    async def _prune_periodically(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            removed = self.prune()
            if removed:
                logger.debug("Pruned %d empty buckets", removed)

    def _push(self, bucket: LeakyBucket) -> None:
        seq = next(self._seq)
        self._entry_seq[bucket.key] = seq
        heapq.heappush(self._heap, (bucket.empty_at, seq, bucket.key))
        if len(self._heap) > _COMPACT_FACTOR * max(len(self._buckets), _MIN_COMPACT_SIZE):
            self._compact()

    def _compact(self) -> None:
        """Rebuild the heap with one entry per live bucket."""
        self._heap = [
            (bucket.empty_at, self._entry_seq[key], key) for key, bucket in self._buckets.items()
        ]
        heapq.heapify(self._heap)

"""Per-gamertag sliding-window rate limiter"""

import math
from collections import defaultdict, deque
from typing import Callable, Deque, Dict


class SlidingWindowRateLimiter:
    """
    Counts hits per key over a trailing window.

    Old timestamps are pruned lazily whenever a key is checked; there is no
    background sweep. `reserve` checks and appends in one step with no
    suspension point, so it is race-free on a single event loop. A reservation
    is handed back with `release` when the payout it guarded does not commit.
    """

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float]):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _prune(self, key: str, now: float) -> Deque[float]:
        q = self._hits[key]
        window_start = now - self.window_seconds
        while q and q[0] <= window_start:
            q.popleft()
        return q

    def count(self, key: str) -> int:
        return len(self._prune(key, self._clock()))

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest in-window hit frees a slot"""
        now = self._clock()
        q = self._prune(key, now)
        if len(q) < self.limit:
            return 0
        if not q:
            # limit of zero: no hit will ever age out
            return max(1, math.ceil(self.window_seconds))
        return max(1, math.ceil(q[0] + self.window_seconds - now))

    def is_full(self, key: str) -> bool:
        return self.count(key) >= self.limit

    def reserve(self, key: str) -> float | None:
        """Take a slot; returns its timestamp, or None when the window is full"""
        now = self._clock()
        q = self._prune(key, now)
        if len(q) >= self.limit:
            return None
        q.append(now)
        return now

    def release(self, key: str, timestamp: float) -> None:
        q = self._hits.get(key)
        if q is None:
            return
        if timestamp in q:
            q.remove(timestamp)

    def clear(self) -> None:
        self._hits.clear()

"""Sliding-window request limiter keyed by caller identity."""
from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict

from .errors import RateLimitExceeded


class SlidingWindowLimiter:
    """Allow at most ``max_requests`` per caller in any ``window_seconds`` span.

    Each key keeps the timestamps of its recent hits. Keys whose hits have all
    aged out are dropped during ``sweep``, which ``hit`` runs at most once per
    window, so the map only holds callers seen in the last window.
    """

    def __init__(
        self,
        max_requests: int = 20,
        window_seconds: float = 60.0,
        *,
        message: str = "Too many requests",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window = float(window_seconds)
        self.message = message
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    def _trim(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def sweep(self) -> int:
        """Evict idle keys; return how many were dropped."""
        now = self._clock()
        stale = []
        for key, hits in self._hits.items():
            self._trim(hits, now)
            if not hits:
                stale.append(key)
        for key in stale:
            del self._hits[key]
        self._last_sweep = now
        return len(stale)

    def remaining(self, key: str) -> int:
        hits = self._hits.get(key)
        if not hits:
            return self.max_requests
        self._trim(hits, self._clock())
        return max(0, self.max_requests - len(hits))

    def hit(self, key: str) -> int:
        """Record one request for ``key``.

        Returns the remaining allowance, or raises :class:`RateLimitExceeded`
        with the seconds until the oldest hit leaves the window.
        """
        now = self._clock()
        if now - self._last_sweep >= self.window:
            self.sweep()

        hits = self._hits.setdefault(key, deque())
        self._trim(hits, now)
        if len(hits) >= self.max_requests:
            retry_after = max(0.0, hits[0] + self.window - now)
            raise RateLimitExceeded(self.message, retry_after=retry_after)
        hits.append(now)
        return self.max_requests - len(hits)

    def __len__(self) -> int:
        return len(self._hits)

"""
Per-client request budgets.

Every call to the remote API costs money, so the HTTP layer admits at most
N requests per client per window before anything reaches the speech
service (10/min for synthesis, 30/min for the voice catalog by default).

Algorithm:
    Fixed window per (scope, client) key. The first hit opens a window of
    ``window_seconds``; hits inside it are counted, and once the count
    reaches ``max_requests`` further hits are rejected until the window
    ends. Expired windows are dropped lazily on the next hit for any key.

Usage:
    limiter = RateLimiter(max_requests=10, window_seconds=60)

    decision = limiter.hit("203.0.113.7")
    if not decision.allowed:
        return 429 with Retry-After: decision.retry_after

    stats = limiter.stats()
"""
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from tts_relay.core.logging import get_logger, warn

_LOG = get_logger("tts-relay.rate_limit")


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single hit."""
    allowed: bool
    limit: int
    remaining: int
    retry_after: int    # seconds until the window resets; 0 when allowed


@dataclass
class RateLimitStats:
    """Statistics for a rate limiter."""
    max_requests: int
    window_seconds: int
    tracked_clients: int
    total_allowed: int
    total_rejected: int


class RateLimiter:
    """
    Thread-safe fixed-window rate limiter.

    Args:
        max_requests: Hits admitted per key per window.
        window_seconds: Window length.
        clock: Monotonic time source (overridable in tests).
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._total_allowed = 0
        self._total_rejected = 0

    @property
    def max_requests(self) -> int:
        return self._max

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether to admit it."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)

            start, count = self._windows.get(key, (now, 0))
            if count >= self._max:
                self._total_rejected += 1
                retry_after = max(1, math.ceil(start + self._window - now))
                decision = RateLimitDecision(False, self._max, 0, retry_after)
            else:
                count += 1
                self._windows[key] = (start, count)
                self._total_allowed += 1
                decision = RateLimitDecision(True, self._max, self._max - count, 0)

        if not decision.allowed:
            warn(_LOG, "rate_limited", key=key, limit=self._max, retry_after=decision.retry_after)
        return decision

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self._window]
        for k in expired:
            del self._windows[k]

    def reset(self) -> None:
        """Forget every window."""
        with self._lock:
            self._windows.clear()

    def stats(self) -> RateLimitStats:
        with self._lock:
            return RateLimitStats(
                max_requests=self._max,
                window_seconds=self._window,
                tracked_clients=len(self._windows),
                total_allowed=self._total_allowed,
                total_rejected=self._total_rejected,
            )

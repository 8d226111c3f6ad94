"""Sliding-window rate limiter for SEC EDGAR API compliance.

SEC fair-access guidelines:
  - at most 10 requests per second
  - 100ms between consecutive requests (our own margin)
  - exponential backoff on failure: 2^attempt * 1000ms, capped at 30s

One RateLimiter instance represents one upstream budget. Construct it once
and hand the same instance to every client that must respect the budget.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable

log = logging.getLogger(__name__)

_NS_PER_MS = 1_000_000
_WINDOW_NS = 1000 * _NS_PER_MS

MAX_BACKOFF_MS = 30_000


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retry number *attempt* (0-based)."""
    if attempt < 0:
        raise ValueError("Attempt number must be non-negative")
    # 2**15 s already exceeds the cap
    return min(2 ** min(attempt, 15) * 1000, MAX_BACKOFF_MS) / 1000


class RateLimiter:
    """Thread-safe limiter enforcing a per-second cap and minimum spacing.

    Timestamps are integer nanoseconds from a monotonic clock, so repeated
    waits always make progress. ``clock`` and ``sleep`` are injectable for
    tests (``clock`` returns ns, ``sleep`` takes seconds).

    acquire() sleeps while holding the lock, so callers are served one at a
    time and stats()/reset() wait behind a sleeping acquirer (up to about
    one window plus the spacing).
    """

    def __init__(
        self,
        max_requests_per_second: int = 10,
        min_interval_ms: int = 100,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_requests_per_second < 1:
            raise ValueError("max_requests_per_second must be at least 1")
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must be non-negative")
        self.max_requests_per_second = max_requests_per_second
        self.min_interval_ms = min_interval_ms
        self._min_interval_ns = min_interval_ms * _NS_PER_MS
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._window: deque[int] = deque()
        self._last_request_ns: int | None = None

    # ── Slot acquisition ──────────────────────────────────────────────

    def acquire(self) -> None:
        """Block until one more request may be issued, then record it."""
        with self._lock:
            while True:
                now = self._clock()
                self._expire(now)

                if len(self._window) >= self.max_requests_per_second:
                    wait_ns = _WINDOW_NS - (now - self._window[0]) + self._min_interval_ns
                    log.debug("Rate window full, waiting %.1fms", wait_ns / _NS_PER_MS)
                    self._sleep(wait_ns / 1e9)
                    continue

                if self._last_request_ns is not None:
                    since_last = now - self._last_request_ns
                    if since_last < self._min_interval_ns:
                        self._sleep((self._min_interval_ns - since_last) / 1e9)
                        continue

                self._window.append(now)
                self._last_request_ns = now
                return

    def _expire(self, now: int) -> None:
        while self._window and now - self._window[0] >= _WINDOW_NS:
            self._window.popleft()

    # ── Backoff ───────────────────────────────────────────────────────

    def handle_error(self, attempt: int) -> float:
        """Sleep the exponential backoff for *attempt* and return the delay."""
        delay = backoff_delay(attempt)
        log.warning(
            "Rate limiter: backing off for %dms (attempt %d)",
            int(delay * 1000), attempt + 1,
        )
        self._sleep(delay)
        return delay

    # ── Introspection ─────────────────────────────────────────────────

    def stats(self) -> dict:
        with self._lock:
            now = self._clock()
            self._expire(now)
            since_last = None
            if self._last_request_ns is not None:
                since_last = (now - self._last_request_ns) / _NS_PER_MS
            return {
                "requests_in_last_second": len(self._window),
                "max_requests_per_second": self.max_requests_per_second,
                "time_since_last_request_ms": since_last,
                "min_interval_ms": self.min_interval_ms,
            }

    def reset(self) -> None:
        with self._lock:
            self._window.clear()
            self._last_request_ns = None

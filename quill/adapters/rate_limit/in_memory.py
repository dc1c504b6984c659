"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Bounded: idle identities are swept and the map is capped with LRU eviction.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict, deque
from typing import Callable

from quill.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admitted requests over a trailing time window.

    Each key keeps a deque of admission timestamps. On every check the
    timestamps that are ``window_seconds`` old or older are dropped; the
    request is admitted while fewer than ``limit`` remain. Denied requests
    are not recorded.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        max_keys: int | None = 10000,
        sweep_interval_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Size of the sliding window in seconds.
            max_keys: Maximum number of tracked keys (None for unlimited).
            sweep_interval_seconds: Minimum time between idle-key sweeps
                (defaults to the window size).
            clock: Time source for window arithmetic (monotonic seconds).
            wall_clock: Time source used to report reset_at as a Unix timestamp.

        Raises:
            ValueError: If limit, window_seconds or max_keys are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_keys = max_keys
        self._sweep_interval = (
            sweep_interval_seconds if sweep_interval_seconds is not None else float(window_seconds)
        )
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self._windows: OrderedDict[str, deque[float]] = OrderedDict()
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._windows

    def _purge(self, timestamps: deque[float], cutoff: float) -> None:
        # A timestamp exactly window_seconds old is expired.
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _touch(self, key: str) -> deque[float]:
        """Return the window for ``key``, marking it most recently used."""
        timestamps = self._windows.get(key)
        if timestamps is None:
            timestamps = deque()
            self._windows[key] = timestamps
            self._evict_if_over_capacity_locked()
        else:
            self._windows.move_to_end(key)
        return timestamps

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_keys is None:
            return

        while len(self._windows) > self._max_keys:
            # popitem(last=False) removes the least recently seen key
            self._windows.popitem(last=False)

    def _sweep_locked(self, now: float) -> int:
        cutoff = now - self._window_seconds
        idle = [key for key, timestamps in self._windows.items() if not timestamps or timestamps[-1] <= cutoff]
        for key in idle:
            del self._windows[key]
        self._last_sweep = now
        if idle:
            logger.debug(
                "rate_limit.swept",
                extra={"evicted": len(idle), "tracked": len(self._windows)},
            )
        return len(idle)

    def sweep(self) -> int:
        """Drop keys whose window holds no live timestamps.

        Returns:
            Number of keys removed.
        """
        with self._lock:
            return self._sweep_locked(self._clock())

    def _reset_at(self, oldest: float, now: float) -> float:
        """Convert the expiry of ``oldest`` into wall-clock (epoch) seconds."""
        return self._wall_clock() + (oldest + self._window_seconds - now)

    def _build_allowed_result(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        """Build a RateLimitResult for an allowed request."""
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, reset_at: float) -> RateLimitResult:
        """Build a RateLimitResult for a blocked request.

        The retry hint is the full window, which is always long enough for
        the oldest counted request to expire.
        """
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=self._window_seconds,
        )

    def consume(self, key: str) -> RateLimitResult:
        """Admit or reject one request for the provided key.

        Purging, the decision and recording the admission happen in a single
        critical section, so concurrent requests for the same key never
        over-admit.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)

            timestamps = self._touch(key)
            self._purge(timestamps, now - self._window_seconds)

            if len(timestamps) < self._limit:
                timestamps.append(now)
                return self._build_allowed_result(
                    remaining=self._limit - len(timestamps),
                    reset_at=self._reset_at(timestamps[0], now),
                )

            return self._build_blocked_result(reset_at=self._reset_at(timestamps[0], now))

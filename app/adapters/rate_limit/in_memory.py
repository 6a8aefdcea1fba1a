"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state, so increments are never lost
  even if consume() is called from a threadpool.
- Each key's window opens on its first request and closes window_seconds later.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A key may consume up to ``limit`` units between its first request and
    ``window_seconds`` later. The first request after that opens a fresh
    window. Expired windows are dropped by a periodic sweep so idle clients do
    not accumulate.

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
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _is_expired(self, state: _WindowState, now: float) -> bool:
        return now >= state.window_start + self._window_seconds

    def _sweep(self, now: float) -> None:
        """Drop expired windows, at most once per window length."""
        if now - self._last_sweep < self._window_seconds:
            return
        expired = [k for k, s in self._state_by_key.items() if self._is_expired(s, now)]
        for key in expired:
            del self._state_by_key[key]
        self._last_sweep = now

    def _get_or_reset_state(self, key: str, now: float) -> _WindowState:
        """Get the current state for key, opening a new window when needed."""
        state = self._state_by_key.get(key)
        if state is None or self._is_expired(state, now):
            state = _WindowState(window_start=now, count=0)
            self._state_by_key[key] = state
        return state

    def _build_result(self, *, allowed: bool, state: _WindowState, now: float) -> RateLimitResult:
        reset_at = state.window_start + self._window_seconds
        retry_after = None
        if not allowed:
            retry_after = max(1, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=retry_after,
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        This method both checks the current window usage and mutates the state
        if the request is allowed. Rejected requests do not count against the
        budget.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._sweep(now)
            state = self._get_or_reset_state(key, now)

            if state.count + cost <= self._limit:
                state.count += cost
                return self._build_result(allowed=True, state=state, now=now)

            return self._build_result(allowed=False, state=state, now=now)

    def reset(self) -> None:
        """Forget every tracked window."""
        with self._lock:
            self._state_by_key.clear()

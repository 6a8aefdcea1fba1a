"""Rate limiter interfaces.

The request gate talks to this abstraction only; each limiter class (global,
strict, like) owns one instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of consuming one request from a client's budget.

    Attributes:
        allowed: Whether the request may reach the handler.
        limit: Ceiling for the window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds at which the client's window closes.
        retry_after_seconds: Seconds to wait before retrying; None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Per-key request counter with a ceiling per time window."""

    @property
    @abstractmethod
    def window_seconds(self) -> int:
        """Length of one window in seconds."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Client identifier (e.g., ``ip:203.0.113.7``).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Drop all tracked state."""
        raise NotImplementedError

"""Rate limiting adapters.

The request gate depends on ``AbstractRateLimiter`` only, so the in-memory
limiter can later be replaced by a shared store (e.g., Redis) without
changing the API layer.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]

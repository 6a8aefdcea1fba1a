"""Request gate: per-client rate limiting by limiter class.

Every route declares the limiter class it belongs to:

- ``global``: reads; generous ceiling, long window
- ``strict``: add/delete; low ceiling, medium window
- ``like``: value/like updates; moderate ceiling, short window

Each class owns an independent limiter keyed by client IP. Over-quota requests
are rejected with RateLimitedAppError (HTTP 429) before the handler runs;
nothing is queued or delayed.
"""

from __future__ import annotations

import hashlib
import logging
from enum import Enum
from typing import Awaitable, Callable

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitedAppError

logger = logging.getLogger(__name__)


class LimiterClass(str, Enum):
    GLOBAL = "global"
    STRICT = "strict"
    LIKE = "like"


REJECTION_MESSAGES: dict[LimiterClass, str] = {
    LimiterClass.GLOBAL: "too many requests, please try again later.",
    LimiterClass.STRICT: "Too many attempts, slow down!",
    LimiterClass.LIKE: "Too many like updates, slow down!",
}

_limiters: dict[LimiterClass, AbstractRateLimiter] = {}
_limiter_configs: dict[LimiterClass, tuple[int, int]] = {}


def _limit_config(limiter_class: LimiterClass) -> tuple[int, int]:
    """Return (requests, window_seconds) configured for a limiter class."""
    prefix = limiter_class.value
    return (
        getattr(settings.app, f"{prefix}_rate_limit_requests"),
        getattr(settings.app, f"{prefix}_rate_limit_window_seconds"),
    )


def get_rate_limiter(limiter_class: LimiterClass) -> AbstractRateLimiter:
    """Return the process-wide limiter for a class.

    Instances are cached in-module to preserve counters across requests. If
    the configured ceiling or window changes (primarily in tests), the
    limiter for that class is rebuilt.
    """

    config = _limit_config(limiter_class)
    limiter = _limiters.get(limiter_class)

    if limiter is None or _limiter_configs.get(limiter_class) != config:
        limit, window_seconds = config
        limiter = InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window_seconds)
        _limiters[limiter_class] = limiter
        _limiter_configs[limiter_class] = config

    return limiter


def reset_rate_limiters() -> None:
    """Discard all limiter state (counters and cached instances)."""
    _limiters.clear()
    _limiter_configs.clear()


def client_identifier(request: Request) -> str:
    """Identify the client for rate limiting purposes.

    Uses the socket peer address, or the first X-Forwarded-For hop when the
    service is configured to trust its reverse proxy.
    """

    if settings.app.rate_limit_trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _hash_limiter_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def enforce_rate_limit(limiter_class: LimiterClass, request: Request) -> None:
    """Consume one request from the client's budget for a class.

    Raises:
        RateLimitedAppError: When the client exceeded the class ceiling
            within its current window.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(limiter_class)
    key = client_identifier(request)
    result = limiter.consume(key)

    log_extra = {
        "limiter_class": limiter_class.value,
        "key_hash": _hash_limiter_key(key),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": limiter.window_seconds,
    }

    if result.allowed:
        logger.debug("rate_limit.allowed", extra=log_extra)
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": retry_after})

    raise RateLimitedAppError(
        code=f"rate_limited_{limiter_class.value}",
        message=REJECTION_MESSAGES[limiter_class],
        details={
            "limiter_class": limiter_class.value,
            "limit": result.limit,
            "retry_after": retry_after,
        },
        headers=_rate_limit_headers(result) if settings.app.rate_limit_include_headers else {},
    )


def rate_limit(limiter_class: LimiterClass) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing the given limiter class.

    Usage:
        @router.post("/addfriend", dependencies=[Depends(rate_limit(LimiterClass.STRICT))])
    """

    async def dependency(request: Request) -> None:
        enforce_rate_limit(limiter_class, request)

    dependency.__name__ = f"enforce_{limiter_class.value}_rate_limit"
    return dependency

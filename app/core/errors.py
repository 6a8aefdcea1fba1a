"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    name: str
    max_value: int
    actual_value: int
    http_status: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    limiter_class: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class ConflictAppError(AppError):
    """Raised when a friend name is already taken."""


class NotFoundAppError(AppError):
    """Raised when the document or a named friend does not exist."""


@dataclass
class RateLimitedAppError(AppError):
    """Raised when a client exceeds its quota for a limiter class.

    Attributes:
        headers: Response headers describing the quota (Retry-After, X-RateLimit-*).
    """

    headers: dict[str, str] = field(default_factory=dict)


class InfrastructureAppError(AppError):
    """Raised when the document store is unreachable or misbehaves."""

"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, framework and unexpected) and return the same JSON envelope:

    {"success": false, "error": "<message>", "code": "...", "request_id": "..."}

Design:
- AppError subclasses → their HTTP status (400, 404, 429, 500)
- Request validation / malformed JSON → 400
- Framework HTTP errors (unknown route, wrong method) → their own status
- Unexpected Exception → generic 500 (safety net)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import (
    AppError,
    InfrastructureAppError,
    NotFoundAppError,
    RateLimitedAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


def _error_body(message: str, code: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "code": code,
        "request_id": get_request_id(),
    }


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    - ValidationAppError → 400 Bad Request
    - ConflictAppError → 400 Bad Request (name already taken)
    - NotFoundAppError → 404 Not Found
    - RateLimitedAppError → 429 Too Many Requests
    - InfrastructureAppError → 500 Internal Server Error

    Args:
        exc: AppError instance (or subclass).

    Returns:
        HTTP status code.
    """
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, RateLimitedAppError):
        return 429
    if isinstance(exc, InfrastructureAppError):
        return 500
    # ValidationAppError, ConflictAppError and any other client fault
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the standard error envelope.

    Infrastructure errors are logged with full detail but surfaced to the
    client as an opaque message; every other domain error message is safe to
    return as-is.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error message.
    """
    status_code = status_code_for(exc)

    log_extra = {
        "error_code": exc.code,
        "error_message": exc.message,
        "status_code": status_code,
        "has_details": bool(exc.details),
        "request_path": request.url.path,
        "request_method": request.method,
        "request_id": get_request_id(),
    }
    if status_code >= 500:
        logger.error("app_error_handled", extra=log_extra)
        message = GENERIC_SERVER_ERROR
    else:
        logger.warning("app_error_handled", extra=log_extra)
        message = exc.message

    headers = exc.headers if isinstance(exc, RateLimitedAppError) else None

    return JSONResponse(
        status_code=status_code,
        content=_error_body(message, exc.code),
        headers=headers or None,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Turn FastAPI body validation failures into 400 responses.

    Malformed JSON is reported as such; type errors name the offending field.
    """
    errors = exc.errors()

    if any(err.get("type") == "json_invalid" for err in errors):
        code, message = "invalid_json", "Invalid JSON format"
    else:
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        code = "invalid_request"
        message = f"Invalid value for '{field}': {first.get('msg', 'invalid input')}"

    logger.warning(
        "request_validation_failed",
        extra={
            "error_code": code,
            "error_count": len(errors),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(status_code=400, content=_error_body(message, code))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (404 route, 405 method) in the error envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, f"http_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Catches any exception not handled by specific handlers.
    Logs detailed information for debugging while returning generic message.
    Prevents information leakage (no stack traces to client).

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(GENERIC_SERVER_ERROR, "internal_server_error"),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)

"""HTTP middleware: request correlation and CORS.

The request id middleware:
- Accepts the incoming X-Request-ID header (configurable) or generates a UUID
- Stores request_id in contextvars for log correlation
- Echoes request_id and the total duration in response headers
- Emits one ``request.completed`` log line per request
- Renders unexpected errors itself so 500s keep the request id

Usage:
    app.middleware("http")(request_id_middleware)
    setup_cors(app)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.exception_handlers import general_exception_handler
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

CORS_ALLOWED_METHODS = ["GET", "POST", "PATCH", "DELETE"]
CORS_ALLOWED_HEADERS = ["Content-Type", "Authorization"]


def parse_origins(origins: str | None) -> list[str]:
    """Parse a comma-separated origin allow-list.

    Examples:
        >>> parse_origins("http://localhost:3000, https://example.com")
        ['http://localhost:3000', 'https://example.com']
        >>> parse_origins(None)
        []
    """
    if not origins:
        return []

    seen: list[str] = []
    for origin in origins.split(","):
        origin = origin.strip().rstrip("/")
        if origin and origin not in seen:
            seen.append(origin)
    return seen


def setup_cors(app: FastAPI) -> None:
    """Restrict cross-origin calls to the configured front end origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_origins(settings.app.cors_origins),
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the request id header, that value is used.
    Otherwise a new UUID is generated. The id is stored in contextvars so
    every log line emitted while serving the request carries it.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            # Rendered here so the envelope and header still carry the request id
            response = await general_exception_handler(request, exc)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request.completed",
            extra={
                "request_method": request.method,
                "request_path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the uvicorn entrypoint build the exact same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import friends_router, health_router, site_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, setup_cors
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Friends API",
        description=(
            "CRUD API over a single shared document of friend records "
            "(name → {value, likeCount}) with per-client rate limiting."
        ),
        version="1.0.0",
    )

    # Middleware (last added runs outermost: CORS wraps request ids)
    app.middleware("http")(request_id_middleware)
    setup_cors(app)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(friends_router)
    app.include_router(health_router)
    app.include_router(site_router)

    # OpenAPI customizations (tags, error envelope)
    apply_openapi_customizations(app)

    return app

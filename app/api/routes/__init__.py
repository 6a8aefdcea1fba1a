from __future__ import annotations

from app.api.routes.friends import router as friends_router
from app.api.routes.health import router as health_router
from app.api.routes.site import router as site_router

__all__ = ["friends_router", "health_router", "site_router"]

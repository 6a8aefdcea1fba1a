from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.errors import NotFoundAppError
from app.core.rate_limit import LimiterClass, rate_limit

router = APIRouter()


@router.get(
    "/",
    include_in_schema=False,
    dependencies=[Depends(rate_limit(LimiterClass.GLOBAL))],
)
async def index() -> FileResponse:
    """Serve the front end's index page when APP_INDEX_FILE is configured."""

    index_file = settings.app.index_file
    if not index_file or not Path(index_file).is_file():
        raise NotFoundAppError(code="index_not_found", message="Page not found")
    return FileResponse(index_file, media_type="text/html")

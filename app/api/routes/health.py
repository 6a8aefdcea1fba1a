from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Not rate limited and does not touch the document store, so it stays green
    while the store is unreachable.
    """

    return {"status": "ok"}

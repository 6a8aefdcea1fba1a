"""FastAPI dependencies wiring the service layer to its document store."""

from __future__ import annotations

from fastapi import Depends

from app.adapters.document_store.base import AbstractDocumentStore
from app.adapters.document_store.factory import create_document_store
from app.services.friends_service import FriendsService

_store: AbstractDocumentStore | None = None


def get_document_store() -> AbstractDocumentStore:
    """Return the process-wide document store, created on first use.

    Creation is deferred to the first request so the app can start (and
    serve /health) before the store's credentials are validated.
    """
    global _store

    if _store is None:
        _store = create_document_store()
    return _store


def get_friends_service(
    store: AbstractDocumentStore = Depends(get_document_store),
) -> FriendsService:
    return FriendsService(store=store)

"""Factory for the configured document store backend."""

from app.adapters.document_store.base import AbstractDocumentStore
from app.adapters.document_store.in_memory import InMemoryDocumentStore
from app.core.config import settings
from app.core.errors import ValidationAppError


def create_document_store() -> AbstractDocumentStore:
    """Instantiate the document store selected by STORE_BACKEND.

    Returns:
        AbstractDocumentStore: Firestore-backed store, or the in-memory one.

    Raises:
        ValidationAppError: If the backend name is unknown.
        InfrastructureAppError: If the Firestore client cannot be created.
    """
    backend = settings.store.backend.lower()

    if backend == "memory":
        return InMemoryDocumentStore()

    if backend == "firestore":
        # Imported lazily so the memory backend works without GCP credentials
        from app.adapters.document_store.firestore_client import (
            FirestoreDocumentStore,
            build_firestore_client,
        )

        return FirestoreDocumentStore(
            build_firestore_client(settings.store),
            collection=settings.store.collection,
            document=settings.store.document,
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=(
            f"Unknown document store backend: '{backend}'. Supported backends: firestore, memory"
        ),
    )

"""Document store adapter layer - abstracts over the backing document store."""

from app.adapters.document_store.base import (
    DELETE_FIELD,
    AbstractDocumentStore,
    DocumentSnapshot,
    FieldWrite,
)
from app.adapters.document_store.factory import create_document_store
from app.adapters.document_store.in_memory import InMemoryDocumentStore

__all__ = [
    "DELETE_FIELD",
    "AbstractDocumentStore",
    "DocumentSnapshot",
    "FieldWrite",
    "InMemoryDocumentStore",
    "create_document_store",
]

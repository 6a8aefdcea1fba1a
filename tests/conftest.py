"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any app import so Settings picks them up:
the in-memory document store replaces Firestore and rate limiting is off
unless a test turns it on.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_CORS_ORIGINS", "http://localhost:3000,https://friends.example.com")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.adapters.document_store.in_memory import InMemoryDocumentStore
from app.api.dependencies import get_document_store
from app.core.rate_limit import reset_rate_limiters
from app.main import app


@pytest.fixture(autouse=True)
def _fresh_rate_limiters() -> Iterator[None]:
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty document store (the friends document does not exist yet)."""
    return InMemoryDocumentStore()


@pytest.fixture
def client(store: InMemoryDocumentStore) -> Iterator[TestClient]:
    """Test client whose routes read and write the `store` fixture."""
    app.dependency_overrides[get_document_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

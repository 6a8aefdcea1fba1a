"""Tests for the friends API routes.

The `client` fixture (conftest.py) wires the routes to an empty in-memory
document store; tests that need pre-existing data build their own store.
"""

import asyncio
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.adapters.document_store.base import DocumentSnapshot, FieldPlanner
from app.adapters.document_store.in_memory import InMemoryDocumentStore
from app.api.dependencies import get_document_store
from app.core.errors import InfrastructureAppError
from app.main import app


def _delete(client: TestClient, body: object) -> object:
    return client.request("DELETE", "/friends", json=body)


@pytest.fixture
def seeded_client() -> Iterator[tuple[TestClient, InMemoryDocumentStore]]:
    """Client over a document that already holds a legacy and a current record."""
    store = InMemoryDocumentStore(
        {
            "old": "legacy value",
            "carol": {"value": "colleague", "likeCount": 4},
        }
    )
    app.dependency_overrides[get_document_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client, store
    app.dependency_overrides.clear()


# ======================== End-to-end scenario ========================


class TestFriendLifecycle:

    def test_add_conflict_like_delete_scenario(self, client: TestClient) -> None:
        created = client.post("/addfriend", json={"name": "alice", "value": "friend"})
        assert created.status_code == 201
        assert created.json()["success"] is True
        assert created.json()["data"] == {"alice": {"value": "friend", "likeCount": 0}}

        listed = client.get("/friends")
        assert listed.status_code == 200
        assert listed.json()["data"] == {"alice": {"value": "friend", "likeCount": 0}}

        duplicate = client.post("/addfriend", json={"name": "alice", "value": "other"})
        assert duplicate.status_code == 400
        assert duplicate.json()["success"] is False
        assert duplicate.json()["error"] == 'The name "alice" already exists'

        liked = client.patch("/changevalue", json={"name": "alice", "newLikeCount": 5})
        assert liked.status_code == 200
        assert liked.json()["data"] == {"name": "alice", "value": "friend", "likeCount": 5}
        assert client.get("/friends").json()["data"] == {"alice": {"value": "friend", "likeCount": 5}}

        client.post("/addfriend", json={"name": "bob", "value": "neighbour"})
        deleted = _delete(client, {"name": "alice"})
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "message": 'Person "alice" successfully deleted'}

        remaining = client.get("/friends").json()["data"]
        assert "alice" not in remaining
        assert "bob" in remaining

        again = _delete(client, {"name": "alice"})
        assert again.status_code == 404
        assert again.json()["error"] == 'Person "alice" not found'


# ======================== GET /friends ========================


class TestListFriends:

    def test_absent_document_returns_404(self, client: TestClient) -> None:
        response = client.get("/friends")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "No friends found"

    def test_empty_document_returns_404(self, client: TestClient, store: InMemoryDocumentStore) -> None:
        client.post("/addfriend", json={"name": "alice", "value": "friend"})
        _delete(client, {"name": "alice"})

        assert client.get("/friends").status_code == 404

    def test_legacy_records_read_with_zero_likes(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, _ = seeded_client

        data = client.get("/friends").json()["data"]

        assert data["old"] == {"value": "legacy value", "likeCount": 0}
        assert data["carol"] == {"value": "colleague", "likeCount": 4}


# ======================== POST /addfriend ========================


class TestAddFriend:

    def test_like_count_is_stored_when_given(self, client: TestClient) -> None:
        response = client.post("/addfriend", json={"name": "bob", "value": "neighbour", "likeCount": 3})

        assert response.status_code == 201
        assert response.json()["data"]["bob"] == {"value": "neighbour", "likeCount": 3}
        assert response.json()["message"] == 'Added "bob"'

    def test_long_names_are_accepted(self, client: TestClient) -> None:
        response = client.post("/addfriend", json={"name": "n" * 201, "value": "v"})

        assert response.status_code == 201

    @pytest.mark.parametrize("value", [0, "", False])
    def test_falsy_values_are_accepted(self, client: TestClient, value: object) -> None:
        response = client.post("/addfriend", json={"name": "zero", "value": value})

        assert response.status_code == 201
        assert response.json()["data"]["zero"]["value"] == value

    @pytest.mark.parametrize("body", [{}, None])
    def test_empty_body_is_rejected(self, client: TestClient, body: object) -> None:
        response = client.post("/addfriend", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request: No data received"

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "alice"},
            {"value": "friend"},
            {"name": "alice", "value": None},
            {"name": "", "value": "friend"},
        ],
    )
    def test_missing_fields_are_rejected(self, client: TestClient, body: dict) -> None:
        response = client.post("/addfriend", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Both name and value are required"

    def test_negative_like_count_is_rejected(self, client: TestClient) -> None:
        response = client.post("/addfriend", json={"name": "a", "value": "b", "likeCount": -2})

        assert response.status_code == 400
        assert "likeCount" in response.json()["error"]

    def test_wrongly_typed_like_count_is_rejected(self, client: TestClient) -> None:
        response = client.post("/addfriend", json={"name": "a", "value": "b", "likeCount": "many"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"

    def test_malformed_json_is_rejected(self, client: TestClient, store: InMemoryDocumentStore) -> None:
        response = client.post(
            "/addfriend",
            content=b'{"name": "alice", ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Invalid JSON format",
            "code": "invalid_json",
            "request_id": response.headers["X-Request-ID"],
        }


# ======================== PATCH /changevalue ========================


class TestChangeValue:

    def test_value_only_keeps_like_count(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, _ = seeded_client

        response = client.patch("/changevalue", json={"name": "carol", "newValue": "manager"})

        assert response.status_code == 200
        assert response.json()["data"] == {"name": "carol", "value": "manager", "likeCount": 4}

    def test_legacy_record_is_upgraded_on_update(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, store = seeded_client

        response = client.patch("/changevalue", json={"name": "old", "newLikeCount": 1})

        assert response.json()["data"] == {"name": "old", "value": "legacy value", "likeCount": 1}
        assert asyncio.run(store.fetch()).data["old"] == {"value": "legacy value", "likeCount": 1}

    def test_missing_both_fields_is_rejected(self, client: TestClient) -> None:
        response = client.patch("/changevalue", json={"name": "alice"})

        assert response.status_code == 400
        assert "newValue" in response.json()["error"]

    def test_unknown_name_returns_404(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, _ = seeded_client

        response = client.patch("/changevalue", json={"name": "ghost", "newValue": "x"})

        assert response.status_code == 404
        assert response.json()["error"] == 'Person "ghost" not found'

    def test_absent_document_returns_404(self, client: TestClient) -> None:
        response = client.patch("/changevalue", json={"name": "ghost", "newLikeCount": 1})
        assert response.status_code == 404


# ======================== DELETE /friends ========================


class TestDeleteFriend:

    def test_missing_name_is_rejected(self, client: TestClient) -> None:
        response = _delete(client, {})

        assert response.status_code == 400
        assert response.json()["error"] == "Name is required"

    def test_unknown_name_returns_404(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, _ = seeded_client
        assert _delete(client, {"name": "ghost"}).status_code == 404

    def test_delete_removes_key_not_value(
        self, seeded_client: tuple[TestClient, InMemoryDocumentStore]
    ) -> None:
        client, store = seeded_client

        assert _delete(client, {"name": "old"}).status_code == 200

        assert "old" not in asyncio.run(store.fetch()).data


# ======================== Infrastructure & framework errors ========================


class _UnavailableStore(InMemoryDocumentStore):
    async def fetch(self) -> DocumentSnapshot:
        raise InfrastructureAppError(code="store_unavailable", message="Document store read failed")

    async def mutate_field(self, name: str, planner: FieldPlanner) -> DocumentSnapshot:
        raise InfrastructureAppError(code="store_unavailable", message="Document store transaction failed")


class TestInfrastructureErrors:

    @pytest.fixture
    def broken_client(self) -> Iterator[TestClient]:
        app.dependency_overrides[get_document_store] = lambda: _UnavailableStore()
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()

    def test_read_failure_is_opaque_500(self, broken_client: TestClient) -> None:
        response = broken_client.get("/friends")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert "Document store" not in body["error"]

    def test_write_failure_is_opaque_500(self, broken_client: TestClient) -> None:
        response = broken_client.post("/addfriend", json={"name": "a", "value": "b"})

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"


class TestSiteAndFramework:

    def test_unknown_route_uses_error_envelope(self, client: TestClient) -> None:
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_wrong_method_uses_error_envelope(self, client: TestClient) -> None:
        response = client.put("/friends", json={"name": "a"})

        assert response.status_code == 405
        assert response.json()["success"] is False

    def test_index_not_configured_returns_404(self, client: TestClient) -> None:
        assert client.get("/").status_code == 404

    def test_index_page_is_served(
        self, client: TestClient, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from app.api.routes import site

        index = tmp_path / "index.html"
        index.write_text("<html><body>friends</body></html>", encoding="utf-8")
        monkeypatch.setattr(site.settings.app, "index_file", str(index))

        response = client.get("/")

        assert response.status_code == 200
        assert "friends" in response.text
        assert response.headers["content-type"].startswith("text/html")

    def test_health_check_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_cors_preflight_allows_configured_origin(self, client: TestClient) -> None:
        response = client.options(
            "/addfriend",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_cors_rejects_unknown_origin(self, client: TestClient) -> None:
        response = client.options(
            "/addfriend",
            headers={
                "Origin": "https://evil.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert "access-control-allow-origin" not in response.headers

    def test_openapi_documents_error_envelope(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        assert "429" in schema["paths"]["/addfriend"]["post"]["responses"]
        assert {t["name"] for t in schema["tags"]} >= {"Friends", "Health"}

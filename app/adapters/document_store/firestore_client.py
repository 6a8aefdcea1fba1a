"""Cloud Firestore adapter for the shared friends document."""

from __future__ import annotations

import json
import logging
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath
from google.oauth2 import service_account

from app.adapters.document_store.base import (
    DELETE_FIELD,
    AbstractDocumentStore,
    DocumentSnapshot,
    FieldPlanner,
    FieldWrite,
    check_write_target,
)
from app.core.config import StoreSettings
from app.core.errors import InfrastructureAppError, ValidationAppError

logger = logging.getLogger(__name__)


def load_service_account_info(raw: str) -> dict[str, Any]:
    """Parse a service account JSON blob taken from the environment.

    Private keys pasted into .env files usually carry literal ``\\n``
    sequences instead of newlines; those are restored here.

    Raises:
        ValidationAppError: If the blob is not a JSON object.
    """
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationAppError(
            code="store_invalid_credentials",
            message="Store credentials are not valid JSON",
        ) from exc

    if not isinstance(info, dict):
        raise ValidationAppError(
            code="store_invalid_credentials",
            message="Store credentials must be a JSON object",
        )

    private_key = info.get("private_key")
    if isinstance(private_key, str):
        info["private_key"] = private_key.replace("\\n", "\n")
    return info


def build_firestore_client(store_settings: StoreSettings) -> firestore.AsyncClient:
    """Create an authenticated async Firestore client.

    Uses the service account from settings when present; otherwise
    Application Default Credentials (or FIRESTORE_EMULATOR_HOST) apply.
    """
    kwargs: dict[str, Any] = {}
    project = store_settings.project_id

    if store_settings.credentials_json:
        info = load_service_account_info(store_settings.credentials_json)
        kwargs["credentials"] = service_account.Credentials.from_service_account_info(info)
        project = project or info.get("project_id")

    if project:
        kwargs["project"] = project
    if store_settings.database:
        kwargs["database"] = store_settings.database

    try:
        return firestore.AsyncClient(**kwargs)
    except (GoogleAuthError, ValueError) as exc:
        logger.error(
            "document_store.client_init_failed",
            extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
        )
        raise InfrastructureAppError(
            code="store_unavailable",
            message="Document store client could not be initialized",
        ) from exc


def _to_snapshot(snapshot: Any) -> DocumentSnapshot:
    if not snapshot.exists:
        return DocumentSnapshot(exists=False)
    return DocumentSnapshot(exists=True, data=dict(snapshot.to_dict() or {}))


def _store_error(operation: str, exc: Exception) -> InfrastructureAppError:
    logger.error(
        "document_store.error",
        extra={
            "operation": operation,
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
        },
    )
    return InfrastructureAppError(
        code="store_unavailable",
        message=f"Document store {operation} failed",
    )


class FirestoreDocumentStore(AbstractDocumentStore):
    """Friends document stored at ``<collection>/<document>`` in Firestore.

    Field names are addressed through FieldPath so names containing dots,
    spaces or other special characters map to a single top-level field.
    """

    def __init__(
        self,
        client: firestore.AsyncClient,
        *,
        collection: str = "people",
        document: str = "associates",
    ) -> None:
        self.client = client
        self.ref = client.collection(collection).document(document)

    async def fetch(self) -> DocumentSnapshot:
        try:
            snapshot = await self.ref.get()
        except GoogleAPIError as exc:
            raise _store_error("read", exc) from exc
        return _to_snapshot(snapshot)

    async def initialize_empty(self) -> None:
        try:
            # merge=True turns this into a no-op for an existing document
            await self.ref.set({}, merge=True)
        except GoogleAPIError as exc:
            raise _store_error("initialize", exc) from exc

    async def apply_field_patch(self, name: str, value: Any) -> None:
        path = FieldPath(name)
        try:
            if value is DELETE_FIELD:
                await self.ref.update({path.to_api_repr(): firestore.DELETE_FIELD})
            else:
                await self.ref.set({name: value}, merge=[path])
        except GoogleAPIError as exc:
            raise _store_error("write", exc) from exc

    def _stage(self, transaction: firestore.AsyncTransaction, write: FieldWrite) -> None:
        path = FieldPath(write.name)
        if write.is_delete:
            transaction.update(self.ref, {path.to_api_repr(): firestore.DELETE_FIELD})
        else:
            transaction.set(self.ref, {write.name: write.value}, merge=[path])

    async def mutate_field(self, name: str, planner: FieldPlanner) -> DocumentSnapshot:
        @firestore.async_transactional
        async def _run(transaction: firestore.AsyncTransaction) -> None:
            snapshot = await self.ref.get(transaction=transaction)
            write = planner(_to_snapshot(snapshot))
            check_write_target(name, write)
            self._stage(transaction, write)

        try:
            await _run(self.client.transaction())
        except GoogleAPIError as exc:
            raise _store_error("transaction", exc) from exc

        return await self.fetch()

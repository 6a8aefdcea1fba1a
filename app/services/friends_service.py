"""Friends service: add, update and delete named fields of the shared document.

Each mutation is expressed as a planner over the current document snapshot.
The planner enforces the existence rules for its operation and returns the
single field write to apply; the document store runs planner and write as one
atomic step, so two requests racing on the same name cannot both pass their
precondition against a stale snapshot.

Record shapes:
- current: ``{"value": <any>, "likeCount": <int >= 0>}``
- legacy:  a bare value, or ``{"value": <any>}`` without ``likeCount``

Legacy records read as ``likeCount == 0`` and are only rewritten in the
current shape when that record itself is updated.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from app.adapters.document_store.base import (
    DELETE_FIELD,
    AbstractDocumentStore,
    DocumentSnapshot,
    FieldWrite,
)
from app.core.config import settings
from app.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from app.schemas.friends import FriendRecord, UpdatedFriend

logger = logging.getLogger(__name__)

# Firestore reserves field names of the form __name__
_RESERVED_NAME = re.compile(r"^__.*__$")


def normalize_record(raw: Any) -> FriendRecord:
    """Read a stored record of either shape as a FriendRecord.

    Args:
        raw: Value stored under a friend's name.

    Returns:
        FriendRecord with likeCount defaulting to 0 when missing or invalid.
    """
    if isinstance(raw, Mapping) and "value" in raw:
        like_count = raw.get("likeCount", 0)
        if not _is_like_count(like_count):
            like_count = 0
        return FriendRecord(value=raw["value"], like_count=like_count)
    return FriendRecord(value=raw, like_count=0)


def normalize_document(data: Mapping[str, Any]) -> dict[str, FriendRecord]:
    return {name: normalize_record(raw) for name, raw in data.items()}


def _is_like_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_defined(value: Any) -> bool:
    # Falsy values such as 0, "" and False are valid friend values
    return value is not None


def _validate_name(name: Any, *, message: str, code: str) -> str:
    """Ensure a friend name is a usable, non-empty field name.

    Raises:
        ValidationAppError: If the name is missing, blank, too long or reserved.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationAppError(code=code, message=message, details={"field": "name"})

    name_bytes = len(name.encode("utf-8"))
    if name_bytes > settings.app.max_name_bytes:
        raise ValidationAppError(
            code="name_too_long",
            message=f"Name must be at most {settings.app.max_name_bytes} bytes",
            details={
                "field": "name",
                "max_value": settings.app.max_name_bytes,
                "actual_value": name_bytes,
            },
        )

    if _RESERVED_NAME.match(name):
        raise ValidationAppError(
            code="name_reserved",
            message=f'The name "{name}" is reserved',
            details={"field": "name"},
        )

    return name


def _validate_like_count(value: Any, field: str) -> int:
    if not _is_like_count(value):
        raise ValidationAppError(
            code="invalid_like_count",
            message=f"'{field}' must be a non-negative integer",
            details={"field": field},
        )
    return value


def _not_found(name: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="friend_not_found",
        message=f'Person "{name}" not found',
        details={"name": name},
    )


class FriendsService:
    """Field mutator over the shared friends document.

    Attributes:
        store: Document accessor holding the friends mapping.
    """

    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    async def list_friends(self) -> dict[str, FriendRecord]:
        """Return every friend, normalized to the current record shape.

        Raises:
            NotFoundAppError: If the document is absent or has no friends.
        """
        snapshot = await self.store.fetch()
        if not snapshot.exists or not snapshot.data:
            raise NotFoundAppError(code="no_friends", message="No friends found")
        return normalize_document(snapshot.data)

    async def add_friend(
        self,
        name: Any,
        value: Any,
        like_count: Any = None,
    ) -> dict[str, FriendRecord]:
        """Add a new friend under a name that is not taken yet.

        Args:
            name: Unique friend name.
            value: Any defined value (falsy values included).
            like_count: Initial likes; defaults to 0.

        Returns:
            The full document after the write.

        Raises:
            ValidationAppError: If name or value is missing, or likeCount is invalid.
            ConflictAppError: If the name already exists.
        """
        name = _validate_name(name, message="Both name and value are required", code="missing_fields")
        if not _is_defined(value):
            raise ValidationAppError(
                code="missing_fields",
                message="Both name and value are required",
                details={"field": "value"},
            )
        if like_count is None:
            like_count = 0
        like_count = _validate_like_count(like_count, "likeCount")

        record = FriendRecord(value=value, like_count=like_count)

        def plan(snapshot: DocumentSnapshot) -> FieldWrite:
            if snapshot.has(name):
                raise ConflictAppError(
                    code="name_exists",
                    message=f'The name "{name}" already exists',
                    details={"name": name},
                )
            if not snapshot.exists:
                logger.info("friends.document_created")
            return FieldWrite(name=name, value=record.to_document())

        snapshot = await self.store.mutate_field(name, plan)
        logger.info("friends.added", extra={"friend_name": name, "like_count": like_count})
        return normalize_document(snapshot.data)

    async def update_friend(
        self,
        name: Any,
        new_value: Any = None,
        new_like_count: Any = None,
    ) -> UpdatedFriend:
        """Merge a new value and/or like count into an existing friend.

        Omitted fields keep their stored values; the merge happens against the
        snapshot read inside the same atomic step as the write.

        Raises:
            ValidationAppError: If name is missing or neither field is provided.
            NotFoundAppError: If the document or the name does not exist.
        """
        if not _is_defined(new_value) and new_like_count is None:
            raise ValidationAppError(
                code="missing_fields",
                message="'name' and at least one of 'newValue' or 'newLikeCount' are required",
            )
        name = _validate_name(
            name,
            message="'name' and at least one of 'newValue' or 'newLikeCount' are required",
            code="missing_fields",
        )
        if new_like_count is not None:
            new_like_count = _validate_like_count(new_like_count, "newLikeCount")

        merged: dict[str, FriendRecord] = {}

        def plan(snapshot: DocumentSnapshot) -> FieldWrite:
            if not snapshot.has(name):
                raise _not_found(name)

            current = normalize_record(snapshot.data[name])
            updated = FriendRecord(
                value=new_value if _is_defined(new_value) else current.value,
                like_count=new_like_count if new_like_count is not None else current.like_count,
            )
            merged[name] = updated
            return FieldWrite(name=name, value=updated.to_document())

        snapshot = await self.store.mutate_field(name, plan)

        # Prefer the committed state; fall back to the merge if a delete raced in
        record = normalize_record(snapshot.data[name]) if snapshot.has(name) else merged[name]
        logger.info(
            "friends.updated",
            extra={
                "friend_name": name,
                "value_changed": _is_defined(new_value),
                "like_count_changed": new_like_count is not None,
            },
        )
        return UpdatedFriend(name=name, value=record.value, like_count=record.like_count)

    async def delete_friend(self, name: Any) -> None:
        """Remove a friend's field from the document entirely.

        Raises:
            ValidationAppError: If name is missing.
            NotFoundAppError: If the document or the name does not exist.
        """
        name = _validate_name(name, message="Name is required", code="missing_name")

        def plan(snapshot: DocumentSnapshot) -> FieldWrite:
            if not snapshot.has(name):
                raise _not_found(name)
            return FieldWrite(name=name, value=DELETE_FIELD)

        await self.store.mutate_field(name, plan)
        logger.info("friends.deleted", extra={"friend_name": name})

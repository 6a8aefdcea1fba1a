"""Pydantic schemas for the friends API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FriendRecord(BaseModel):
    """A stored friend entry in its current shape."""

    model_config = ConfigDict(populate_by_name=True)

    value: Any = Field(..., description="Value associated with the friend.")
    like_count: int = Field(
        0,
        alias="likeCount",
        ge=0,
        description="Number of likes; 0 for entries stored before likes existed.",
    )

    def to_document(self) -> dict[str, Any]:
        """Shape persisted in the document store."""
        return self.model_dump(by_alias=True)


class AddFriendRequest(BaseModel):
    """Body of POST /addfriend. ``value`` may be any JSON value except null."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = Field(None, description="Unique friend name.")
    value: Any = Field(None, description="Value to store under the name.")
    like_count: int | None = Field(
        None,
        alias="likeCount",
        strict=True,
        description="Initial like count (defaults to 0).",
    )


class ChangeValueRequest(BaseModel):
    """Body of PATCH /changevalue; at least one of the new* fields is required."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = Field(None, description="Name of the friend to update.")
    new_value: Any = Field(None, alias="newValue", description="Replacement value.")
    new_like_count: int | None = Field(
        None,
        alias="newLikeCount",
        strict=True,
        description="Replacement like count.",
    )


class DeleteFriendRequest(BaseModel):
    """Body of DELETE /friends."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, description="Name of the friend to remove.")


class UpdatedFriend(BaseModel):
    """Merged record returned by PATCH /changevalue."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: Any
    like_count: int = Field(..., alias="likeCount")


class FriendsResponse(BaseModel):
    success: bool = True
    message: str
    data: dict[str, FriendRecord] = Field(
        default_factory=dict,
        description="Full friends document, keyed by name.",
    )


class FriendUpdateResponse(BaseModel):
    success: bool = True
    message: str
    data: UpdatedFriend


class MessageResponse(BaseModel):
    success: bool = True
    message: str

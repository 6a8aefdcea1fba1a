from fastapi import APIRouter, Body, Depends

from app.api.dependencies import get_friends_service
from app.core.errors import ValidationAppError
from app.core.rate_limit import LimiterClass, rate_limit
from app.schemas.friends import (
    AddFriendRequest,
    ChangeValueRequest,
    DeleteFriendRequest,
    FriendsResponse,
    FriendUpdateResponse,
    MessageResponse,
)
from app.services.friends_service import FriendsService

router = APIRouter(tags=["Friends"])


@router.get(
    "/friends",
    response_model=FriendsResponse,
    dependencies=[Depends(rate_limit(LimiterClass.GLOBAL))],
)
async def list_friends(
    service: FriendsService = Depends(get_friends_service),
) -> FriendsResponse:
    """Return the whole friends document.

    Raises:
        NotFoundAppError: 404 when the document is absent or empty.
    """
    friends = await service.list_friends()
    return FriendsResponse(message="Friends retrieved successfully", data=friends)


@router.post(
    "/addfriend",
    status_code=201,
    response_model=FriendsResponse,
    dependencies=[Depends(rate_limit(LimiterClass.STRICT))],
)
async def add_friend(
    payload: AddFriendRequest | None = Body(None),
    service: FriendsService = Depends(get_friends_service),
) -> FriendsResponse:
    """Add a friend and echo the updated document.

    Raises:
        ValidationAppError: 400 for an empty body or missing name/value.
        ConflictAppError: 400 when the name already exists.
    """
    if payload is None or not payload.model_fields_set:
        raise ValidationAppError(
            code="empty_body",
            message="Invalid request: No data received",
        )

    friends = await service.add_friend(payload.name, payload.value, payload.like_count)
    return FriendsResponse(message=f'Added "{payload.name}"', data=friends)


@router.patch(
    "/changevalue",
    response_model=FriendUpdateResponse,
    dependencies=[Depends(rate_limit(LimiterClass.LIKE))],
)
async def change_value(
    payload: ChangeValueRequest | None = Body(None),
    service: FriendsService = Depends(get_friends_service),
) -> FriendUpdateResponse:
    """Update a friend's value and/or like count, keeping omitted fields.

    Raises:
        ValidationAppError: 400 when name or both new* fields are missing.
        NotFoundAppError: 404 when the friend does not exist.
    """
    payload = payload or ChangeValueRequest()
    updated = await service.update_friend(
        payload.name,
        new_value=payload.new_value,
        new_like_count=payload.new_like_count,
    )
    return FriendUpdateResponse(message=f'Updated "{updated.name}"', data=updated)


@router.delete(
    "/friends",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(LimiterClass.STRICT))],
)
async def delete_friend(
    payload: DeleteFriendRequest | None = Body(None),
    service: FriendsService = Depends(get_friends_service),
) -> MessageResponse:
    """Remove a friend from the document.

    Raises:
        ValidationAppError: 400 when name is missing.
        NotFoundAppError: 404 when the friend does not exist.
    """
    payload = payload or DeleteFriendRequest()
    await service.delete_friend(payload.name)
    return MessageResponse(message=f'Person "{payload.name}" successfully deleted')

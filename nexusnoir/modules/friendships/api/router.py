from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from nexusnoir.core.cache import get_cache
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import UserSummary
from nexusnoir.modules.user_management.services.user import get_user
from nexusnoir.modules.friendships.models.friendship import Friendship
from nexusnoir.modules.friendships.schemas.friendship import (
    Friend,
    FriendRequestAction,
    FriendRequests,
    Friendship as FriendshipSchema,
    FriendshipRequest as FriendshipRequestSchema,
    FriendshipRequestCreate,
    FriendshipRequestUpdate,
    FriendshipStatus,
)
from nexusnoir.modules.friendships.services.friendship import (
    get_friendship_between,
    get_friendship_by_id,
    get_friend_requests,
    create_friend_request,
    respond_to_friend_request,
    delete_friendship,
    get_friends,
)
from nexusnoir.modules.home_feed.services.feed import invalidate_user_feeds
from nexusnoir.modules.notifications.services.notification_events import (
    create_friend_request_notification,
    create_friend_request_accepted_notification
)

router = APIRouter()
logger = logging.getLogger(__name__)

def _check_user_exists(db: Session, user_id: str) -> User:
    """Validate user exists, raise HTTP 404 if not"""
    user = get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user

def _get_pending_request(db: Session, request_id: str, current_user_id: str, check_requester: bool = False) -> Friendship:
    """Pending request the current user is party to, on the side being checked"""
    friend_request = get_friendship_by_id(db, request_id)
    if not friend_request or friend_request.status != FriendshipStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Friend request not found"
        )

    field_to_check = "requester_id" if check_requester else "addressee_id"
    if getattr(friend_request, field_to_check) != current_user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Friend request not found"
        )

    return friend_request

def _with_user(friendship: Friendship, user: User) -> FriendshipRequestSchema:
    result = FriendshipRequestSchema.model_validate(friendship)
    result.user = UserSummary.model_validate(user)
    return result

@router.get("", response_model=List[Friend])
def get_my_friends(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return [
        Friend(
            id=friend.id,
            username=friend.username,
            display_name=friend.display_name,
            avatar=friend.avatar,
            profession=friend.profession,
            friendship_id=friendship.id,
            friend_since=friendship.updated_at,
        )
        for friendship, friend in get_friends(db, current_user.id)
    ]

@router.post("", response_model=FriendshipSchema, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    *,
    db: Session = Depends(get_db),
    request_in: FriendshipRequestCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    addressee_id = request_in.addressee_id

    if current_user.id == addressee_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot send friend request to yourself"
        )

    _check_user_exists(db, addressee_id)

    # Any row for the pair blocks a new request, whatever its state
    if get_friendship_between(db, current_user.id, addressee_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Friend request already exists"
        )

    friend_request = create_friend_request(db, current_user.id, addressee_id)
    create_friend_request_notification(db, current_user, addressee_id, friend_request.id)

    return friend_request

@router.get("/requests", response_model=FriendRequests)
def get_my_friend_requests(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return FriendRequests(
        received=[_with_user(f, u) for f, u in get_friend_requests(db, current_user.id, "received")],
        sent=[_with_user(f, u) for f, u in get_friend_requests(db, current_user.id, "sent")],
    )

@router.patch("/requests/{request_id}", response_model=FriendshipSchema)
def answer_friend_request(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    request_id: str,
    request_in: FriendshipRequestUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    friend_request = _get_pending_request(db, request_id, current_user.id)

    updated_request = respond_to_friend_request(db, friend_request, request_in.action)

    if request_in.action == FriendRequestAction.ACCEPT:
        invalidate_user_feeds(cache, updated_request.requester_id, updated_request.addressee_id)
        create_friend_request_accepted_notification(db, current_user, updated_request.requester_id)

    return updated_request

@router.delete("/requests/{request_id}", response_model=Dict[str, str])
def cancel_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    friend_request = _get_pending_request(db, request_id, current_user.id, check_requester=True)
    delete_friendship(db, friend_request)
    return {"message": "Friend request cancelled"}

@router.delete("/{friend_id}", response_model=Dict[str, str])
def remove_friend(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    friend_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    _check_user_exists(db, friend_id)

    friendship = get_friendship_between(db, current_user.id, friend_id)
    if not friendship or friendship.status != FriendshipStatus.ACCEPTED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Not friends with this user"
        )

    delete_friendship(db, friendship)
    invalidate_user_feeds(cache, current_user.id, friend_id)
    return {"message": "Friend removed successfully"}

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from nexusnoir.core.cache import get_cache
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import UserSummary
from nexusnoir.modules.user_management.services.user import get_user
from nexusnoir.modules.follows.schemas.follow import Follow as FollowSchema, FollowCreate
from nexusnoir.modules.follows.services.follow import (
    get_follow, get_followers, get_following, create_follow, delete_follow
)
from nexusnoir.modules.home_feed.services.feed import invalidate_user_feeds
from nexusnoir.modules.notifications.services.notification_events import create_follow_notification

router = APIRouter()

@router.post("", response_model=FollowSchema, status_code=status.HTTP_201_CREATED)
def follow_user(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    follow_in: FollowCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    following_id = follow_in.following_id

    if following_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot follow yourself"
        )

    if not get_user(db, user_id=following_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if get_follow(db, current_user.id, following_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already following this user"
        )

    follow = create_follow(db, current_user.id, following_id)
    invalidate_user_feeds(cache, current_user.id, following_id)
    create_follow_notification(db, current_user, following_id)
    return follow

@router.delete("/{user_id}", response_model=Dict[str, str])
def unfollow_user(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    user_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    follow = get_follow(db, current_user.id, user_id)
    if not follow:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not following this user"
        )

    delete_follow(db, follow)
    invalidate_user_feeds(cache, current_user.id, user_id)
    return {"message": "Unfollowed successfully"}

@router.get("/followers", response_model=List[UserSummary])
def read_my_followers(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_followers(db, current_user.id)

@router.get("/following", response_model=List[UserSummary])
def read_my_following(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_following(db, current_user.id)

from typing import Any, List
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import (
    User as UserSchema, UserUpdate, UserProfile, UserStats, UserSummary, FriendSuggestion
)
from nexusnoir.modules.user_management.services.user import get_user, search_users, update_user
from nexusnoir.modules.friendships.services.friendship import (
    get_friend_ids, get_friendship_between, get_friend_suggestions
)
from nexusnoir.modules.follows.services.follow import count_followers, count_following, get_follow
from nexusnoir.modules.posts.services.post import count_user_posts

router = APIRouter()
logger = logging.getLogger(__name__)

def _validate_user(db: Session, user_id: str) -> User:
    """Validate user exists and return user object or raise HTTPException"""
    user = get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user

@router.get("/me", response_model=UserSchema)
def read_user_me(
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get current user"""
    return current_user

@router.put("/me", response_model=UserSchema)
def update_user_me(
    *,
    db: Session = Depends(get_db),
    user_in: UserUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Update current user"""
    return update_user(db, current_user, user_in)

@router.get("/me/stats", response_model=UserStats)
def read_user_me_stats(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Post, friend and follower totals for the current user"""
    return UserStats(
        posts=count_user_posts(db, current_user.id),
        friends=len(get_friend_ids(db, current_user.id)),
        followers=count_followers(db, current_user.id),
        following=count_following(db, current_user.id),
    )

@router.get("/search", response_model=List[UserSummary])
def search_for_users(
    *,
    db: Session = Depends(get_db),
    q: str = Query(..., min_length=2, description="Search query for name or username"),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Search users by username or display name"""
    return search_users(db, q, exclude_user_id=current_user.id)

@router.get("/suggestions", response_model=List[FriendSuggestion])
def read_friend_suggestions(
    *,
    db: Session = Depends(get_db),
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    People the current user may know, friends of friends first.
    """
    return get_friend_suggestions(db, current_user.id, limit=limit)

@router.get("/{user_id}", response_model=UserProfile)
def read_user_by_id(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get a specific user by id, with how the viewer relates to them"""
    user = _validate_user(db, user_id)

    profile = UserProfile.model_validate(user)
    if user.id == current_user.id:
        return profile

    friendship = get_friendship_between(db, current_user.id, user.id)
    if friendship:
        profile.friendship_status = friendship.status
        profile.is_friend = friendship.status == "accepted"
    profile.is_following = get_follow(db, current_user.id, user.id) is not None
    return profile

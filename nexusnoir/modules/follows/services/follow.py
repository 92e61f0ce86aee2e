from typing import List, Optional, Set
from sqlalchemy import func
from sqlalchemy.orm import Session

from nexusnoir.modules.follows.models.follow import Follow
from nexusnoir.modules.user_management.models.user import User

def get_follow(db: Session, follower_id: str, following_id: str) -> Optional[Follow]:
    """Get the follow edge follower -> following"""
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    ).first()

def get_following_ids(db: Session, user_id: str) -> Set[str]:
    """IDs of users that user_id follows"""
    rows = db.query(Follow.following_id).filter(Follow.follower_id == user_id).all()
    return {following_id for (following_id,) in rows}

def get_followers(db: Session, user_id: str) -> List[User]:
    return (
        db.query(User)
        .join(Follow, Follow.follower_id == User.id)
        .filter(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc())
        .all()
    )

def get_following(db: Session, user_id: str) -> List[User]:
    return (
        db.query(User)
        .join(Follow, Follow.following_id == User.id)
        .filter(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc())
        .all()
    )

def count_followers(db: Session, user_id: str) -> int:
    return db.query(func.count()).select_from(Follow).filter(Follow.following_id == user_id).scalar() or 0

def count_following(db: Session, user_id: str) -> int:
    return db.query(func.count()).select_from(Follow).filter(Follow.follower_id == user_id).scalar() or 0

def create_follow(db: Session, follower_id: str, following_id: str) -> Follow:
    follow = Follow(follower_id=follower_id, following_id=following_id)
    db.add(follow)
    db.commit()
    db.refresh(follow)
    return follow

def delete_follow(db: Session, follow: Follow) -> Follow:
    db.delete(follow)
    db.commit()
    return follow

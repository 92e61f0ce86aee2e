from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple
import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_

from nexusnoir.modules.friendships.models.friendship import Friendship
from nexusnoir.modules.friendships.schemas.friendship import FriendshipStatus, FriendRequestAction
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import FriendSuggestion
from nexusnoir.modules.user_management.services.user import count_users, get_users_by_ids

logger = logging.getLogger(__name__)

# Below this many members suggestions favour newcomers over recently active users
EARLY_STAGE_USER_COUNT = 1000

def other_user_id(friendship: Friendship, user_id: str) -> str:
    """The user on the other side of a friendship, whichever side requested it"""
    return friendship.addressee_id if friendship.requester_id == user_id else friendship.requester_id

def _involving(user_id: str):
    return or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id)

def _user_ids_with_status(db: Session, user_id: str, status: FriendshipStatus) -> Set[str]:
    rows = (
        db.query(Friendship.requester_id, Friendship.addressee_id)
        .filter(Friendship.status == status.value, _involving(user_id))
        .all()
    )
    return {
        addressee_id if requester_id == user_id else requester_id
        for requester_id, addressee_id in rows
    }

def get_friend_ids(db: Session, user_id: str) -> Set[str]:
    """IDs of users with an accepted friendship with user_id"""
    return _user_ids_with_status(db, user_id, FriendshipStatus.ACCEPTED)

def get_pending_user_ids(db: Session, user_id: str) -> Set[str]:
    """IDs of users with a pending request to or from user_id"""
    return _user_ids_with_status(db, user_id, FriendshipStatus.PENDING)

def get_friendship_between(db: Session, user_id: str, other_id: str) -> Optional[Friendship]:
    """Get the friendship row between two users in either direction"""
    return db.query(Friendship).filter(
        or_(
            and_(Friendship.requester_id == user_id, Friendship.addressee_id == other_id),
            and_(Friendship.requester_id == other_id, Friendship.addressee_id == user_id),
        )
    ).first()

def check_friendship(db: Session, user_id: str, other_id: str) -> bool:
    """Check if two users are friends"""
    friendship = get_friendship_between(db, user_id, other_id)
    return friendship is not None and friendship.status == FriendshipStatus.ACCEPTED.value

def get_friendship_by_id(db: Session, friendship_id: str) -> Optional[Friendship]:
    return db.query(Friendship).filter(Friendship.id == friendship_id).first()

def get_friend_requests(db: Session, user_id: str, direction: str = "received") -> List[Tuple[Friendship, User]]:
    """Pending requests for a user, each paired with the user on the other side"""
    if direction not in ["sent", "received"]:
        logger.warning(f"Invalid direction '{direction}' specified in get_friend_requests")
        return []

    if direction == "received":
        own_field, other_field = Friendship.addressee_id, Friendship.requester_id
    else:
        own_field, other_field = Friendship.requester_id, Friendship.addressee_id

    return (
        db.query(Friendship, User)
        .join(User, User.id == other_field)
        .filter(own_field == user_id, Friendship.status == FriendshipStatus.PENDING.value)
        .order_by(Friendship.created_at.desc())
        .all()
    )

def create_friend_request(db: Session, requester_id: str, addressee_id: str) -> Friendship:
    """Create a pending friend request"""
    friendship = Friendship(
        id=str(uuid.uuid4()),
        requester_id=requester_id,
        addressee_id=addressee_id,
        status=FriendshipStatus.PENDING.value,
    )
    db.add(friendship)
    db.commit()
    db.refresh(friendship)
    logger.info(f"Friend request sent: {requester_id} -> {addressee_id}")
    return friendship

def respond_to_friend_request(db: Session, friendship: Friendship, action: FriendRequestAction) -> Friendship:
    """Accept or reject a pending request"""
    if action == FriendRequestAction.ACCEPT:
        friendship.status = FriendshipStatus.ACCEPTED.value
    else:
        friendship.status = FriendshipStatus.REJECTED.value

    db.add(friendship)
    db.commit()
    db.refresh(friendship)
    logger.info(f"Friend request {friendship.id} {friendship.status}")
    return friendship

def delete_friendship(db: Session, friendship: Friendship) -> Friendship:
    """Delete a friendship or request row"""
    db.delete(friendship)
    db.commit()
    return friendship

def get_friends(db: Session, user_id: str) -> List[Tuple[Friendship, User]]:
    """Accepted friendships of a user, each paired with the friend"""
    rows = (
        db.query(Friendship)
        .filter(Friendship.status == FriendshipStatus.ACCEPTED.value, _involving(user_id))
        .order_by(Friendship.updated_at.desc())
        .all()
    )
    users = {user.id: user for user in get_users_by_ids(db, {other_user_id(f, user_id) for f in rows})}

    friends = []
    for friendship in rows:
        friend = users.get(other_user_id(friendship, user_id))
        if friend:
            friends.append((friendship, friend))
        else:
            logger.warning(f"Friend relationship exists but user not found: {other_user_id(friendship, user_id)}")
    return friends

def _to_suggestion(user: User, mutual_friends: int) -> FriendSuggestion:
    return FriendSuggestion(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        avatar=user.avatar,
        profession=user.profession,
        mutual_friends=mutual_friends,
    )

def get_friend_suggestions(db: Session, user_id: str, limit: int = 5) -> List[FriendSuggestion]:
    """
    Suggest people the user may know.

    Friends of friends come first, ranked by how many of the user's friends
    they are connected to. Remaining slots are filled with other members:
    the newest ones while the platform is small, the most recently active
    ones afterwards.
    """
    friend_ids = get_friend_ids(db, user_id)
    exclude_ids = friend_ids | get_pending_user_ids(db, user_id) | {user_id}

    mutual: Dict[str, Set[str]] = defaultdict(set)
    if friend_ids:
        rows = (
            db.query(Friendship.requester_id, Friendship.addressee_id)
            .filter(
                Friendship.status == FriendshipStatus.ACCEPTED.value,
                or_(
                    Friendship.requester_id.in_(friend_ids),
                    Friendship.addressee_id.in_(friend_ids),
                ),
            )
            .all()
        )
        for requester_id, addressee_id in rows:
            if requester_id in friend_ids and addressee_id not in exclude_ids:
                mutual[addressee_id].add(requester_id)
            if addressee_id in friend_ids and requester_id not in exclude_ids:
                mutual[requester_id].add(addressee_id)

    candidates = [user for user in get_users_by_ids(db, mutual.keys()) if user.is_active]
    suggestions = sorted(
        (_to_suggestion(user, len(mutual[user.id])) for user in candidates),
        key=lambda s: (-s.mutual_friends, s.username),
    )[:limit]

    if len(suggestions) < limit:
        taken_ids = exclude_ids | {s.id for s in suggestions}
        query = db.query(User).filter(User.id.notin_(taken_ids), User.is_active.is_(True))
        if count_users(db) < EARLY_STAGE_USER_COUNT:
            query = query.order_by(User.created_at.desc(), User.username)
        else:
            query = query.order_by(User.updated_at.desc(), User.created_at.desc())
        suggestions.extend(
            _to_suggestion(user, 0) for user in query.limit(limit - len(suggestions)).all()
        )

    return suggestions

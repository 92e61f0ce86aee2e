from enum import Enum
from typing import Optional, List
from datetime import datetime

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.user_management.schemas.user import UserSummary

class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class FriendRequestAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"

class FriendshipRequestCreate(APIModel):
    addressee_id: str

class FriendshipRequestUpdate(APIModel):
    action: FriendRequestAction

class Friendship(APIModel):
    """Friendship row returned to client"""
    id: str
    requester_id: str
    addressee_id: str
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime

class FriendshipRequest(Friendship):
    """Pending request together with the user on the other side"""
    user: Optional[UserSummary] = None

class FriendRequests(APIModel):
    received: List[FriendshipRequest]
    sent: List[FriendshipRequest]

class Friend(UserSummary):
    profession: Optional[str] = None
    friendship_id: str
    friend_since: datetime

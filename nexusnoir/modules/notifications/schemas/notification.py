from enum import Enum
from typing import Optional
from datetime import datetime

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.user_management.schemas.user import UserSummary

class NotificationType(str, Enum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPT = "friend_accept"
    FOLLOW = "follow"
    POST_REACTION = "post_reaction"
    POST_COMMENT = "post_comment"
    NEW_POST = "new_post"
    MESSAGE = "message"

class NotificationCreate(APIModel):
    user_id: str
    actor_id: Optional[str] = None  # ID of the user who triggered the notification
    type: NotificationType
    content: str
    related_id: Optional[str] = None

class NotificationUpdate(APIModel):
    is_read: bool = True

class Notification(APIModel):
    """Notification model returned to client"""
    id: str
    user_id: str
    actor_id: Optional[str] = None
    type: NotificationType
    content: str
    related_id: Optional[str] = None
    is_read: bool
    created_at: datetime
    actor: Optional[UserSummary] = None

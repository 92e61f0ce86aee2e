from typing import Optional, List
from datetime import datetime
from pydantic import Field

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.user_management.schemas.user import UserSummary

class CommentCreate(APIModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[str] = None

class Comment(APIModel):
    """Comment model returned to client"""
    id: str
    content: str
    author_id: str
    post_id: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    author: Optional[UserSummary] = None

class CommentWithReplies(Comment):
    """Comment model with replies"""
    replies: List[Comment] = []

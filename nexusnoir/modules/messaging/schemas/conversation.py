from typing import List, Optional
from datetime import datetime
from pydantic import Field, field_validator

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.user_management.schemas.user import UserSummary

class ConversationCreate(APIModel):
    participant_id: str

class MessageCreate(APIModel):
    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v

class Message(APIModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    read: bool
    created_at: datetime

class Conversation(APIModel):
    """Conversation as seen by one participant"""
    id: str
    participant: Optional[UserSummary] = None  # the other side
    last_message: Optional[Message] = None
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    created_at: datetime

class MessagePage(APIModel):
    messages: List[Message]  # oldest first
    next_cursor: Optional[str] = None

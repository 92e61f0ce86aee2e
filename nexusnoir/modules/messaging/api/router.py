from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
import logging

from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.services.user import get_user
from nexusnoir.modules.messaging.models.conversation import Conversation
from nexusnoir.modules.messaging.schemas.conversation import (
    Conversation as ConversationSchema,
    ConversationCreate,
    Message as MessageSchema,
    MessageCreate,
    MessagePage,
)
from nexusnoir.modules.messaging.services.conversation import (
    get_conversation,
    get_or_create_conversation,
    get_user_conversations,
    get_messages,
    mark_conversation_read,
    send_message,
    to_conversation_schema,
)
from nexusnoir.modules.notifications.services.notification_events import create_message_notification

router = APIRouter()
logger = logging.getLogger(__name__)

def _get_own_conversation(db: Session, conversation_id: str, user_id: str) -> Conversation:
    """Conversation the user takes part in, anything else looks missing"""
    conversation = get_conversation(db, conversation_id)
    if not conversation or not conversation.has_participant(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    return conversation

@router.get("", response_model=List[ConversationSchema])
def list_conversations(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_user_conversations(db, current_user.id)

@router.post("", response_model=ConversationSchema, status_code=status.HTTP_201_CREATED)
def start_conversation(
    *,
    db: Session = Depends(get_db),
    response: Response,
    conversation_in: ConversationCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Open a conversation with another user.

    Returns the existing conversation with 200 when the pair already has one.
    """
    participant_id = conversation_in.participant_id
    if participant_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot start a conversation with yourself"
        )

    if not get_user(db, user_id=participant_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    conversation, created = get_or_create_conversation(db, current_user.id, participant_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return to_conversation_schema(db, conversation, current_user.id)

@router.get("/{conversation_id}/messages", response_model=MessagePage)
def read_messages(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    limit: int = Query(50, ge=1, le=100),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Page through a conversation, oldest message first within the page.

    Pass nextCursor back as cursor for older messages. Reading marks the
    other participant's messages as read.
    """
    conversation = _get_own_conversation(db, conversation_id, current_user.id)
    mark_conversation_read(db, conversation, current_user.id)

    messages = get_messages(db, conversation, limit=limit, cursor=cursor)
    next_cursor = messages[0].id if len(messages) == limit else None
    return MessagePage(
        messages=[MessageSchema.model_validate(m) for m in messages],
        next_cursor=next_cursor,
    )

@router.post("/{conversation_id}/messages", response_model=MessageSchema, status_code=status.HTTP_201_CREATED)
def post_message(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    message_in: MessageCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    conversation = _get_own_conversation(db, conversation_id, current_user.id)
    message = send_message(db, conversation, current_user.id, message_in.content)
    create_message_notification(
        db, current_user, conversation.other_participant(current_user.id), conversation.id, message.content
    )
    return message

@router.put("/{conversation_id}/read", response_model=Dict[str, int])
def read_conversation(
    *,
    db: Session = Depends(get_db),
    conversation_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    conversation = _get_own_conversation(db, conversation_id, current_user.id)
    return {"count": mark_conversation_read(db, conversation, current_user.id)}

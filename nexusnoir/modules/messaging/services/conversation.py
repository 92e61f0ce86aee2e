"""
Direct messages between two users.

A conversation is created once per pair and reused afterwards. Message
pages are read newest first with a keyset cursor and handed back in
chronological order.
"""
from datetime import datetime
from typing import List, Optional, Tuple
import logging
import uuid
from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nexusnoir.modules.messaging.models.conversation import Conversation, Message
from nexusnoir.modules.messaging.schemas.conversation import (
    Conversation as ConversationSchema, Message as MessageSchema
)
from nexusnoir.modules.user_management.schemas.user import UserSummary
from nexusnoir.modules.user_management.services.user import get_users_by_ids

logger = logging.getLogger(__name__)

def _ordered(user_a: str, user_b: str) -> Tuple[str, str]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)

def get_conversation(db: Session, conversation_id: str) -> Optional[Conversation]:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()

def get_conversation_between(db: Session, user_a: str, user_b: str) -> Optional[Conversation]:
    first, second = _ordered(user_a, user_b)
    return db.query(Conversation).filter(
        Conversation.participant1_id == first,
        Conversation.participant2_id == second,
    ).first()

def get_or_create_conversation(db: Session, user_a: str, user_b: str) -> Tuple[Conversation, bool]:
    """Existing conversation for the pair, or a new one. The flag says whether it was created."""
    existing = get_conversation_between(db, user_a, user_b)
    if existing:
        return existing, False

    first, second = _ordered(user_a, user_b)
    conversation = Conversation(id=str(uuid.uuid4()), participant1_id=first, participant2_id=second)
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        # Created concurrently by the other participant
        db.rollback()
        return get_conversation_between(db, user_a, user_b), False

    db.refresh(conversation)
    logger.info(f"Conversation {conversation.id} started between {first} and {second}")
    return conversation, True

def to_conversation_schema(db: Session, conversation: Conversation, viewer_id: str) -> ConversationSchema:
    return get_user_conversations(db, viewer_id, only=[conversation])[0]

def get_user_conversations(db: Session, user_id: str,
                           only: Optional[List[Conversation]] = None) -> List[ConversationSchema]:
    """
    Conversations of a user, most recently active first.

    Each entry carries the other participant, the last message and how many
    messages from the other side are still unread.
    """
    if only is None:
        conversations = (
            db.query(Conversation)
            .filter(or_(Conversation.participant1_id == user_id, Conversation.participant2_id == user_id))
            .order_by(
                func.coalesce(Conversation.last_message_at, Conversation.created_at).desc(),
                Conversation.id.desc(),
            )
            .all()
        )
    else:
        conversations = only
    if not conversations:
        return []

    ids = [c.id for c in conversations]
    others = {
        user.id: user
        for user in get_users_by_ids(db, {c.other_participant(user_id) for c in conversations})
    }
    unread = dict(
        db.query(Message.conversation_id, func.count(Message.id))
        .filter(
            Message.conversation_id.in_(ids),
            Message.sender_id != user_id,
            Message.read.is_(False),
        )
        .group_by(Message.conversation_id)
        .all()
    )

    result = []
    for conversation in conversations:
        last = (
            db.query(Message)
            .filter(Message.conversation_id == conversation.id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first()
        )
        other = others.get(conversation.other_participant(user_id))
        result.append(ConversationSchema(
            id=conversation.id,
            participant=UserSummary.model_validate(other) if other else None,
            last_message=MessageSchema.model_validate(last) if last else None,
            last_message_at=conversation.last_message_at,
            unread_count=unread.get(conversation.id, 0),
            created_at=conversation.created_at,
        ))
    return result

def get_messages(db: Session, conversation: Conversation, limit: int,
                 cursor: Optional[str] = None) -> List[Message]:
    """
    One page of messages, oldest first.

    The page holds the newest messages strictly before the cursor message.
    An unknown cursor starts from the newest message.
    """
    query = db.query(Message).filter(Message.conversation_id == conversation.id)
    if cursor:
        anchor = (
            db.query(Message.created_at, Message.id)
            .filter(Message.id == cursor, Message.conversation_id == conversation.id)
            .first()
        )
        if anchor is None:
            logger.debug(f"Ignoring unknown message cursor {cursor!r}")
        else:
            anchor_created_at, anchor_id = anchor
            query = query.filter(
                or_(
                    Message.created_at < anchor_created_at,
                    and_(Message.created_at == anchor_created_at, Message.id < anchor_id),
                )
            )

    newest_first = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
    return list(reversed(newest_first))

def mark_conversation_read(db: Session, conversation: Conversation, reader_id: str) -> int:
    """Mark every message from the other participant as read, returns how many changed"""
    count = (
        db.query(Message)
        .filter(
            Message.conversation_id == conversation.id,
            Message.sender_id != reader_id,
            Message.read.is_(False),
        )
        .update({Message.read: True}, synchronize_session=False)
    )
    db.commit()
    return count

def send_message(db: Session, conversation: Conversation, sender_id: str, content: str) -> Message:
    now = datetime.utcnow()
    message = Message(
        id=str(uuid.uuid4()),
        conversation_id=conversation.id,
        sender_id=sender_id,
        content=content,
        created_at=now,
    )
    db.add(message)
    conversation.last_message_at = now
    db.commit()
    db.refresh(message)
    logger.info(f"Message {message.id} sent in conversation {conversation.id}")
    return message

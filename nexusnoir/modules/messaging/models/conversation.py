from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Index, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

# One row per user pair, participant1_id is always the smaller id
class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True, index=True)
    participant1_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    participant2_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    last_message_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('participant1_id', 'participant2_id', name='unique_conversation'),
        CheckConstraint('participant1_id < participant2_id', name='ordered_participants'),
    )

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.participant1_id, self.participant2_id)

    def other_participant(self, user_id: str) -> str:
        return self.participant2_id if user_id == self.participant1_id else self.participant1_id

class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, index=True)
    conversation_id = Column(String, ForeignKey("conversations.id"), nullable=False)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_messages_conversation_created_at", "conversation_id", "created_at"),
    )

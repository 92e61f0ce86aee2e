from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

# A single row per user pair carries the request and, once accepted, the friendship
class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(String, primary_key=True, index=True)
    requester_id = Column(String, ForeignKey("users.id"), index=True)
    addressee_id = Column(String, ForeignKey("users.id"), index=True)
    status = Column(String, default="pending")  # pending, accepted, rejected
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('requester_id', 'addressee_id', name='unique_friendship'),
        CheckConstraint('requester_id != addressee_id', name='no_self_friendship'),
    )

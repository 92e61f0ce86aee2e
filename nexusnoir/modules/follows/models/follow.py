from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class Follow(Base):
    __tablename__ = "follows"

    follower_id = Column(String, ForeignKey("users.id"), primary_key=True)
    following_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        CheckConstraint('follower_id != following_id', name='no_self_follow'),
    )

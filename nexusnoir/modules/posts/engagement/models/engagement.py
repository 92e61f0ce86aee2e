from sqlalchemy import Column, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class SavedPost(Base):
    __tablename__ = "saved_posts"

    post_id = Column(String, ForeignKey("posts.id"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), primary_key=True)
    created_at = Column(DateTime, default=func.now())

class Repost(Base):
    __tablename__ = "reposts"

    id = Column(String, primary_key=True, index=True)
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="unique_post_user_repost"),
    )

from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, JSON, Index

from nexusnoir.db.session import Base

class Post(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True, index=True)
    content = Column(Text, default="")
    media_urls = Column(JSON, default=list)
    media_type = Column(String, default="none")  # none, image, video
    privacy_level = Column(String, default="public", index=True)  # public, friends, private
    author_id = Column(String, ForeignKey("users.id"), index=True)

    # Denormalized counters, kept in step with child rows by the write paths
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)
    repost_count = Column(Integer, default=0, nullable=False)
    save_count = Column(Integer, default=0, nullable=False)

    # Sub-second resolution keeps feed ordering stable between quick posts
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_posts_author_created", "author_id", "created_at"),
    )

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, index=True)
    content = Column(Text)
    author_id = Column(String, ForeignKey("users.id"))
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    actor_id = Column(String, ForeignKey("users.id"), nullable=True)  # The user who triggered the notification
    type = Column(String)  # friend_request, friend_accept, follow, post_reaction, post_comment, new_post, message
    content = Column(Text)
    related_id = Column(String, nullable=True)  # ID of the related entity (post, comment, friendship, conversation)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=func.now())

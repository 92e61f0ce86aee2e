from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class Reaction(Base):
    __tablename__ = "reactions"

    id = Column(String, primary_key=True, index=True)
    type = Column(String, nullable=False)  # love, applaud, salute, shine
    variant = Column(String, default="default")
    user_id = Column(String, ForeignKey("users.id"), index=True)
    post_id = Column(String, ForeignKey("posts.id"), index=True)
    created_at = Column(DateTime, default=func.now())

    # One reaction of each kind per user per post, several kinds may coexist
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "type", name="unique_post_user_reaction"),
    )

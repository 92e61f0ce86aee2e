from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from nexusnoir.db.session import Base

class LoginAttempt(Base):
    __tablename__ = "login_attempts"

    id = Column(String, primary_key=True, index=True)
    identifier = Column(String, nullable=False)  # lower-cased login name, or "ip:<address>"
    successful = Column(Boolean, default=False, nullable=False)
    attempted_at = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_login_attempts_identifier_attempted_at", "identifier", "attempted_at"),
    )

class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    token = Column(String, unique=True, index=True, nullable=False)
    type = Column(String, nullable=False)  # email_verification, password_reset
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=func.now())

"""
One-time tokens for email verification and password reset.

Tokens are random hex strings stored with their owner, kind and expiry.
Redeeming a token deletes it. An expired token is deleted when it is
looked up.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
import logging
import secrets
import uuid
from sqlalchemy.orm import Session

from nexusnoir.core.config import settings
from nexusnoir.modules.auth.models.auth import VerificationToken

logger = logging.getLogger(__name__)

class TokenType(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

def generate_token() -> str:
    return secrets.token_hex(32)

def _issue(db: Session, user_id: str, token_type: TokenType, lifetime: timedelta,
           now: Optional[datetime] = None) -> VerificationToken:
    token = VerificationToken(
        id=str(uuid.uuid4()),
        user_id=user_id,
        token=generate_token(),
        type=token_type.value,
        expires_at=(now or datetime.utcnow()) + lifetime,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    logger.info(f"Issued {token_type.value} token for user {user_id}")
    return token

def create_email_verification_token(db: Session, user_id: str, now: Optional[datetime] = None) -> VerificationToken:
    return _issue(db, user_id, TokenType.EMAIL_VERIFICATION,
                  timedelta(hours=settings.EMAIL_VERIFICATION_TOKEN_HOURS), now)

def create_password_reset_token(db: Session, user_id: str, now: Optional[datetime] = None) -> VerificationToken:
    """Issue a reset token, replacing any reset token the user already holds"""
    db.query(VerificationToken).filter(
        VerificationToken.user_id == user_id,
        VerificationToken.type == TokenType.PASSWORD_RESET.value,
    ).delete(synchronize_session=False)
    return _issue(db, user_id, TokenType.PASSWORD_RESET,
                  timedelta(minutes=settings.PASSWORD_RESET_TOKEN_MINUTES), now)

def get_valid_token(db: Session, token: str, token_type: TokenType,
                    now: Optional[datetime] = None) -> Optional[VerificationToken]:
    """
    Look a token up without consuming it.

    Returns None for unknown tokens and tokens of another kind. Expired
    tokens are deleted and also give None.
    """
    record = db.query(VerificationToken).filter(VerificationToken.token == token).first()
    if record is None or record.type != token_type.value:
        return None

    if record.expires_at < (now or datetime.utcnow()):
        logger.info(f"Discarding expired {record.type} token for user {record.user_id}")
        db.delete(record)
        db.commit()
        return None

    return record

def consume_token(db: Session, record: VerificationToken) -> None:
    db.delete(record)
    db.commit()

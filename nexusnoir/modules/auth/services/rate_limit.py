"""
Failed login tracking.

Attempts are recorded per identifier. Once LOGIN_MAX_ATTEMPTS failures
fall inside the lockout window the identifier is locked until the oldest
of those failures leaves the window.
"""
from datetime import datetime, timedelta
from typing import Optional
import logging
import math
import uuid
from sqlalchemy import func
from sqlalchemy.orm import Session

from nexusnoir.core.config import settings
from nexusnoir.modules.auth.models.auth import LoginAttempt
from nexusnoir.modules.auth.schemas.auth import RateLimitStatus

logger = logging.getLogger(__name__)

def check_rate_limit(db: Session, identifier: str, now: Optional[datetime] = None) -> RateLimitStatus:
    now = now or datetime.utcnow()
    window_start = now - timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)

    failed, oldest = (
        db.query(func.count(LoginAttempt.id), func.min(LoginAttempt.attempted_at))
        .filter(
            LoginAttempt.identifier == identifier,
            LoginAttempt.successful.is_(False),
            LoginAttempt.attempted_at >= window_start,
        )
        .one()
    )

    if failed >= settings.LOGIN_MAX_ATTEMPTS:
        unlock_at = oldest + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
        retry_after = max(0, math.ceil((unlock_at - now).total_seconds()))
        logger.warning(f"Login locked for {identifier}, retry in {retry_after}s")
        return RateLimitStatus(allowed=False, remaining_attempts=0, retry_after=retry_after)

    return RateLimitStatus(allowed=True, remaining_attempts=settings.LOGIN_MAX_ATTEMPTS - failed)

def record_login_attempt(db: Session, identifier: str, successful: bool,
                         now: Optional[datetime] = None) -> LoginAttempt:
    attempt = LoginAttempt(
        id=str(uuid.uuid4()),
        identifier=identifier,
        successful=successful,
        attempted_at=now or datetime.utcnow(),
    )
    db.add(attempt)
    db.commit()
    return attempt

def clear_login_attempts(db: Session, identifier: str) -> int:
    """Forget every attempt for the identifier, used after a successful login"""
    deleted = db.query(LoginAttempt).filter(LoginAttempt.identifier == identifier).delete(synchronize_session=False)
    db.commit()
    return deleted

def purge_old_login_attempts(db: Session, now: Optional[datetime] = None) -> int:
    cutoff = (now or datetime.utcnow()) - timedelta(hours=settings.LOGIN_ATTEMPT_RETENTION_HOURS)
    deleted = db.query(LoginAttempt).filter(LoginAttempt.attempted_at < cutoff).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info(f"Purged {deleted} login attempts older than {cutoff}")
    return deleted

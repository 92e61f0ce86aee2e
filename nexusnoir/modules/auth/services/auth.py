import logging
from typing import Optional, Tuple, Union
from sqlalchemy.orm import Session

from nexusnoir.core.config import settings
from nexusnoir.core.security import create_access_token, get_password_hash, verify_password
from nexusnoir.modules.auth.models.auth import VerificationToken
from nexusnoir.modules.auth.schemas.auth import RateLimitStatus, SignupRequest, Token
from nexusnoir.modules.auth.services.rate_limit import (
    check_rate_limit, clear_login_attempts, record_login_attempt
)
from nexusnoir.modules.auth.services.tokens import (
    TokenType, consume_token, create_email_verification_token, create_password_reset_token, get_valid_token
)
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.services.user import (
    create_user, get_user, get_user_by_email, get_user_by_username
)

logger = logging.getLogger(__name__)

def register_user(db: Session, signup: SignupRequest) -> Tuple[bool, Union[User, str]]:
    """
    Create an account for a new member.

    Returns (True, user) on success or (False, reason) when the email or
    username is already taken. A verification token is issued for the new
    account; delivering it is left to the mail integration.
    """
    if get_user_by_email(db, signup.email):
        logger.info(f"Signup rejected, email already registered: {signup.email}")
        return False, "Email already registered"

    if get_user_by_username(db, signup.username):
        logger.info(f"Signup rejected, username taken: {signup.username}")
        return False, "Username already taken"

    user = create_user(
        db,
        email=signup.email,
        username=signup.username,
        display_name=signup.display_name,
        password=signup.password,
        profession=signup.profession,
    )
    logger.info(f"Created user {user.id} ({user.username})")

    token = create_email_verification_token(db, user.id)
    logger.debug(f"Verification link for {user.email}: "
                 f"{settings.BASE_URL}{settings.API_V1_STR}/auth/verify-email?token={token.token}")
    return True, user

def authenticate_user(db: Session, identifier: str, password: str) -> Optional[User]:
    """Look the user up by email or username and check the password"""
    if "@" in identifier:
        user = get_user_by_email(db, identifier)
    else:
        user = get_user_by_username(db, identifier)

    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login for {identifier}")
        return None
    return user

def login_with_lockout(db: Session, identifier: str, password: str) -> Tuple[Optional[User], RateLimitStatus]:
    """
    Authenticate while counting failures against the identifier.

    A locked identifier is rejected before the password is checked. A wrong
    password records a failure; a success clears the identifier's history.
    """
    identifier = identifier.strip().lower()
    limit = check_rate_limit(db, identifier)
    if not limit.allowed:
        return None, limit

    user = authenticate_user(db, identifier, password)
    if not user:
        record_login_attempt(db, identifier, successful=False)
        return None, check_rate_limit(db, identifier)

    clear_login_attempts(db, identifier)
    record_login_attempt(db, identifier, successful=True)
    return user, RateLimitStatus(allowed=True, remaining_attempts=settings.LOGIN_MAX_ATTEMPTS)

def verify_email(db: Session, token: str) -> Optional[User]:
    """Mark the token owner's email as verified, the token can be used once"""
    record = get_valid_token(db, token, TokenType.EMAIL_VERIFICATION)
    if record is None:
        return None

    user = get_user(db, user_id=record.user_id)
    consume_token(db, record)
    if user is None:
        return None

    user.is_verified = True
    db.commit()
    db.refresh(user)
    logger.info(f"Email verified for user {user.id}")
    return user

def request_password_reset(db: Session, email: str) -> Optional[VerificationToken]:
    """Issue a reset token when the email belongs to an account with a password"""
    user = get_user_by_email(db, email)
    if not user or not user.hashed_password:
        logger.info(f"Password reset requested for unknown account {email}")
        return None

    token = create_password_reset_token(db, user.id)
    logger.debug(f"Password reset link for {user.email}: "
                 f"{settings.BASE_URL}{settings.API_V1_STR}/auth/reset-password?token={token.token}")
    return token

def reset_password(db: Session, token: str, new_password: str) -> Optional[User]:
    record = get_valid_token(db, token, TokenType.PASSWORD_RESET)
    if record is None:
        return None

    user = get_user(db, user_id=record.user_id)
    if user is None:
        consume_token(db, record)
        return None

    user.hashed_password = get_password_hash(new_password)
    db.commit()
    consume_token(db, record)

    # A fresh password lifts any lockout on the account's login names
    clear_login_attempts(db, user.username)
    clear_login_attempts(db, user.email)
    db.refresh(user)
    logger.info(f"Password reset for user {user.id}")
    return user

def issue_token(user: User) -> Token:
    return Token(access_token=create_access_token(user.id), token_type="bearer")

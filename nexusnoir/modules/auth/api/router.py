"""Authentication router for password sign-up, login and account tokens"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Dict, Any

from nexusnoir.core.config import settings
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_user
from nexusnoir.modules.auth.schemas.auth import (
    Token, SignupRequest, VerifyEmailRequest, VerifyEmailResponse,
    ForgotPasswordRequest, ResetPasswordRequest, MessageResponse
)
from nexusnoir.modules.auth.services.auth import (
    issue_token, login_with_lockout, register_user, request_password_reset, reset_password, verify_email
)
from nexusnoir.modules.auth.services.rate_limit import check_rate_limit, record_login_attempt
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import User as UserSchema

router = APIRouter()

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent"

def _too_many_attempts(retry_after: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={"message": "Too many attempts, try again later", "retryAfter": retry_after},
        headers={"Retry-After": str(retry_after)},
    )

@router.post("/signup", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def signup(
    *,
    db: Session = Depends(get_db),
    signup_in: SignupRequest,
) -> Any:
    """Register a new account"""
    success, result = register_user(db, signup_in)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result,
        )

    return result

@router.post("/login", response_model=Token)
def login(
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Token:
    """
    OAuth2 password login, the username field accepts a username or an email.

    Repeated failures lock the identifier for a while; locked logins get 429
    with a Retry-After header.
    """
    user, limit = login_with_lockout(db, form_data.username, form_data.password)

    if not limit.allowed:
        raise _too_many_attempts(limit.retry_after)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if settings.REQUIRE_EMAIL_VERIFICATION and not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified",
        )

    return issue_token(user)

def _verify(db: Session, token: str) -> VerifyEmailResponse:
    user = verify_email(db, token)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token",
        )
    return VerifyEmailResponse(message="Email verified successfully", email=user.email)

@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email_from_body(
    *,
    db: Session = Depends(get_db),
    verify_in: VerifyEmailRequest,
) -> Any:
    return _verify(db, verify_in.token)

@router.get("/verify-email", response_model=VerifyEmailResponse)
def verify_email_from_link(
    *,
    db: Session = Depends(get_db),
    token: str,
) -> Any:
    """Target of the emailed verification link"""
    return _verify(db, token)

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    *,
    db: Session = Depends(get_db),
    request: Request,
    forgot_in: ForgotPasswordRequest,
) -> Any:
    """
    Start a password reset.

    The answer is the same whether or not the email is registered. Requests
    are limited per client address.
    """
    client_key = f"ip:{request.client.host if request.client else 'unknown'}"
    limit = check_rate_limit(db, client_key)
    if not limit.allowed:
        raise _too_many_attempts(limit.retry_after)

    token = request_password_reset(db, forgot_in.email)
    record_login_attempt(db, client_key, successful=token is not None)

    return MessageResponse(message=RESET_REQUESTED_MESSAGE)

@router.post("/reset-password", response_model=MessageResponse)
def reset_password_with_token(
    *,
    db: Session = Depends(get_db),
    reset_in: ResetPasswordRequest,
) -> Any:
    if not reset_password(db, reset_in.token, reset_in.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )
    return MessageResponse(message="Password has been reset successfully")

@router.get("/validate-token", response_model=Dict[str, Any])
def validate_token(current_user: User = Depends(get_current_user)) -> Dict[str, Any]:
    """Validate the current user's token and return user information"""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "valid": True,
        "user_id": current_user.id,
        "username": current_user.username,
        "email": current_user.email,
        "is_active": current_user.is_active,
        "is_verified": current_user.is_verified,
    }

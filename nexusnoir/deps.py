from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from nexusnoir.core import security
from nexusnoir.core.config import settings
from nexusnoir.db.session import get_db
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.services.user import get_user

# OAuth2 token URL
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

def _credentials_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> User:
    """
    Dependency for getting current authenticated user
    """
    user_id = security.verify_access_token(token)
    if not user_id:
        raise _credentials_exception("Could not validate credentials")

    user = get_user(db, user_id=user_id)
    if not user:
        raise _credentials_exception("User not found")

    return user

def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency for getting current active user
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    return current_user

# Implements security-related functionality:
# JWT token generation and verification
# Password hashing and verification using bcrypt
# Provides core security functions used by the authentication module

from datetime import datetime, timedelta
from typing import Any, Optional, Union
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext

from nexusnoir.core.config import settings

logger = logging.getLogger("nexusnoir")

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_access_token(token: str) -> Optional[str]:
    """Return the user id carried by a valid token, None otherwise"""
    try:
        # jose validates the exp claim while decoding
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError as e:
        logger.warning(f"JWT verification error: {e}")
        return None

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        logger.warning("Token payload missing 'sub' field")
        return None
    return user_id

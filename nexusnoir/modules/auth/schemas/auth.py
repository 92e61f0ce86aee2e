from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from nexusnoir.core.schemas import APIModel

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class SignupRequest(APIModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[A-Za-z0-9_]+$")
    display_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=72)
    profession: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.lower()

class RateLimitStatus(APIModel):
    allowed: bool
    remaining_attempts: int
    retry_after: Optional[int] = None  # seconds until the lockout ends

class VerifyEmailRequest(APIModel):
    token: str = Field(..., min_length=1)

class VerifyEmailResponse(APIModel):
    message: str
    email: EmailStr

class ForgotPasswordRequest(APIModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

class ResetPasswordRequest(APIModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)

class MessageResponse(APIModel):
    message: str

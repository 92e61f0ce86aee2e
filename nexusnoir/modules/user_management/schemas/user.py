from typing import Optional
from datetime import datetime
from pydantic import EmailStr, Field

from nexusnoir.core.schemas import APIModel

class UserBase(APIModel):
    username: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    profession: Optional[str] = None
    location: Optional[str] = None

class UserUpdate(APIModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = None
    profession: Optional[str] = None
    location: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8)

class UserInDBBase(UserBase):
    id: str
    email: EmailStr
    is_active: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime

class User(UserInDBBase):
    """User model returned to client"""
    pass

class UserSummary(APIModel):
    """Public author fields embedded in posts and lists"""
    id: str
    username: str
    display_name: str
    avatar: Optional[str] = None

class UserProfile(UserBase):
    """Another user's profile as seen by the viewer"""
    id: str
    created_at: datetime
    is_friend: bool = False
    is_following: bool = False
    friendship_status: Optional[str] = None

class UserStats(APIModel):
    posts: int
    friends: int
    followers: int
    following: int

class FriendSuggestion(UserSummary):
    profession: Optional[str] = None
    mutual_friends: int = 0

from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import Field, model_validator

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.user_management.schemas.user import UserSummary

class PrivacyLevel(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"

class MediaType(str, Enum):
    NONE = "none"
    IMAGE = "image"
    VIDEO = "video"

class ReactionType(str, Enum):
    # Declaration order is the order userReactions are reported in
    LOVE = "love"
    APPLAUD = "applaud"
    SALUTE = "salute"
    SHINE = "shine"

REACTION_ORDER = [reaction.value for reaction in ReactionType]

class PostCreate(APIModel):
    content: str = Field("", max_length=5000)
    media_urls: List[str] = Field(default_factory=list, max_length=10)
    media_type: MediaType = MediaType.NONE
    privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC

    @model_validator(mode="after")
    def require_content_or_media(self):
        if not self.content.strip() and not self.media_urls:
            raise ValueError("Post must have either content or media")
        for url in self.media_urls:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Invalid media URL: {url}")
        return self

class PostUpdate(APIModel):
    content: Optional[str] = Field(None, max_length=5000)
    privacy_level: Optional[PrivacyLevel] = None

class Post(APIModel):
    """Stored post returned to its author after a write"""
    id: str
    author_id: str
    content: str
    media_urls: List[str] = []
    media_type: MediaType
    privacy_level: PrivacyLevel
    like_count: int
    comment_count: int
    repost_count: int
    save_count: int
    created_at: datetime
    updated_at: datetime

class ReactionCounts(APIModel):
    love: int = 0
    applaud: int = 0
    salute: int = 0
    shine: int = 0

class EnrichedPost(APIModel):
    """A post decorated with its author and the viewer's engagement state"""
    id: str
    content: str
    media_urls: List[str] = []
    media_type: MediaType
    privacy_level: PrivacyLevel
    author: UserSummary
    reactions: ReactionCounts
    user_reactions: List[ReactionType] = []
    has_liked: bool
    like_count: int
    comment_count: int
    repost_count: int
    save_count: int
    has_reposted: bool
    has_saved: bool
    created_at: datetime

class PostPage(APIModel):
    posts: List[EnrichedPost]
    next_cursor: Optional[str] = None

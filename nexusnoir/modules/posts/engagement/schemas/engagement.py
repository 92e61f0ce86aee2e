from typing import Optional
from datetime import datetime
from pydantic import Field

from nexusnoir.core.schemas import APIModel

class SavedPost(APIModel):
    post_id: str
    user_id: str
    created_at: datetime

class RepostCreate(APIModel):
    comment: Optional[str] = Field(None, max_length=1000)

class Repost(APIModel):
    id: str
    post_id: str
    user_id: str
    comment: Optional[str] = None
    created_at: datetime

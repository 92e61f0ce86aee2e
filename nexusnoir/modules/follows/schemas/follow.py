from datetime import datetime

from nexusnoir.core.schemas import APIModel

class FollowCreate(APIModel):
    following_id: str

class Follow(APIModel):
    follower_id: str
    following_id: str
    created_at: datetime

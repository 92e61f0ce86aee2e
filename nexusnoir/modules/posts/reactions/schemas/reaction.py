from datetime import datetime

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.posts.schemas.post import ReactionType

class ReactionBase(APIModel):
    type: ReactionType

class ReactionCreate(ReactionBase):
    variant: str = "default"

class ReactionDelete(ReactionBase):
    pass

class Reaction(ReactionBase):
    """Reaction model returned to client"""
    id: str
    variant: str
    user_id: str
    post_id: str
    created_at: datetime

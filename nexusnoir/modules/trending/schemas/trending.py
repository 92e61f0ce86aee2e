from typing import List

from nexusnoir.core.schemas import APIModel
from nexusnoir.modules.posts.schemas.post import EnrichedPost

class TrendingHashtag(APIModel):
    tag: str
    count: int  # distinct posts using the tag
    mentions: int  # total occurrences across those posts

class TrendingPost(EnrichedPost):
    engagement_score: int

class TrendingResponse(APIModel):
    hashtags: List[TrendingHashtag]
    posts: List[TrendingPost]

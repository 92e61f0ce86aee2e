"""
Trending hashtags and posts.

Both views are global: they only look at public posts and do not depend
on who is asking, apart from the viewer flags on each returned post.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import logging
import re
from sqlalchemy.orm import Session

from nexusnoir.core.config import settings
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import PrivacyLevel
from nexusnoir.modules.home_feed.services.feed import enrich_posts
from nexusnoir.modules.trending.schemas.trending import TrendingHashtag, TrendingPost, TrendingResponse
from nexusnoir.modules.user_management.models.user import User

logger = logging.getLogger(__name__)

HASHTAG_PATTERN = re.compile(r"#(\w+)", re.ASCII)

def extract_hashtags(content: Optional[str]) -> List[str]:
    """Every hashtag occurrence in the text, lower-cased, in order of appearance"""
    if not content:
        return []
    return [tag.lower() for tag in HASHTAG_PATTERN.findall(content)]

def rank_hashtags(contents: Iterable[Optional[str]], limit: int) -> List[TrendingHashtag]:
    """
    Rank tags by how many posts use them.

    Ties go to the tag mentioned more often overall, then alphabetical order.
    """
    post_counts: Counter = Counter()
    mentions: Counter = Counter()
    for content in contents:
        tags = extract_hashtags(content)
        mentions.update(tags)
        post_counts.update(set(tags))

    ranked = sorted(post_counts, key=lambda tag: (-post_counts[tag], -mentions[tag], tag))
    return [
        TrendingHashtag(tag=tag, count=post_counts[tag], mentions=mentions[tag])
        for tag in ranked[:limit]
    ]

def engagement_score(post: Post) -> int:
    return post.like_count * 1 + post.comment_count * 2 + post.repost_count * 3

# Same weights as engagement_score, evaluated by the database
ENGAGEMENT_SCORE_SQL = Post.like_count * 1 + Post.comment_count * 2 + Post.repost_count * 3

def get_trending_hashtags(db: Session, now: datetime) -> List[TrendingHashtag]:
    since = now - timedelta(days=settings.TRENDING_HASHTAG_WINDOW_DAYS)
    rows = (
        db.query(Post.content)
        .filter(Post.privacy_level == PrivacyLevel.PUBLIC.value, Post.created_at >= since)
        .all()
    )
    return rank_hashtags((content for (content,) in rows), settings.TRENDING_HASHTAG_LIMIT)

def get_trending_posts(db: Session, viewer_id: str, now: datetime) -> List[TrendingPost]:
    since = now - timedelta(hours=settings.TRENDING_POST_WINDOW_HOURS)
    rows = (
        db.query(Post, User)
        .join(User, User.id == Post.author_id)
        .filter(Post.privacy_level == PrivacyLevel.PUBLIC.value, Post.created_at >= since)
        .order_by(
            ENGAGEMENT_SCORE_SQL.desc(),
            Post.like_count.desc(),
            Post.comment_count.desc(),
            Post.repost_count.desc(),
            Post.created_at.desc(),
        )
        .limit(settings.TRENDING_POST_LIMIT)
        .all()
    )

    return [
        TrendingPost(**post.model_dump(), engagement_score=engagement_score(row[0]))
        for post, row in zip(enrich_posts(db, viewer_id, rows), rows)
    ]

def get_trending(db: Session, viewer_id: str, now: Optional[datetime] = None) -> TrendingResponse:
    """Top hashtags of the last week and most engaging public posts of the last day"""
    now = now or datetime.utcnow()
    hashtags = get_trending_hashtags(db, now)
    posts = get_trending_posts(db, viewer_id, now)
    logger.debug(f"Trending computed: {len(hashtags)} hashtags, {len(posts)} posts")
    return TrendingResponse(hashtags=hashtags, posts=posts)

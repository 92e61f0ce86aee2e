from typing import List, Optional, Sequence, Tuple
import logging
from sqlalchemy.orm import Session

from nexusnoir.core.config import settings
from nexusnoir.core.cache import NullCache
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import EnrichedPost, ReactionCounts
from nexusnoir.modules.posts.services.post import get_post_page
from nexusnoir.modules.posts.reactions.services.reaction import (
    get_reaction_counts_for_posts, get_user_reaction_types
)
from nexusnoir.modules.posts.engagement.services.engagement import (
    get_reposted_post_ids, get_saved_post_ids
)
from nexusnoir.modules.friendships.services.friendship import get_friend_ids
from nexusnoir.modules.follows.services.follow import get_following_ids
from nexusnoir.modules.home_feed.schemas.feed import FeedResponse
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import UserSummary

logger = logging.getLogger(__name__)

def feed_cache_key(viewer_id: str, cursor: Optional[str], limit: int) -> str:
    return f"feed:{viewer_id}:{cursor or 'initial'}:{limit}"

def invalidate_all_feeds(cache) -> int:
    """Drop every cached feed page, used when any post changes"""
    return cache.invalidate_pattern("feed:*")

def invalidate_user_feeds(cache, *user_ids: str) -> int:
    """Drop cached feed pages belonging to the given viewers"""
    return sum(cache.invalidate_pattern(f"feed:{user_id}:*") for user_id in user_ids)

def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.FEED_DEFAULT_LIMIT
    return max(1, min(limit, settings.FEED_MAX_LIMIT))

def enrich_posts(db: Session, viewer_id: str, rows: Sequence[Tuple[Post, User]]) -> List[EnrichedPost]:
    """
    Decorate posts with their author and the viewer's engagement state.

    Reaction kinds, per-kind totals, saves and reposts are each fetched with
    one batched query for the whole page, in turn on the request's session.
    Counts come from the post's own counters.
    """
    post_ids = [post.id for post, _ in rows]
    user_reactions = get_user_reaction_types(db, viewer_id, post_ids)
    reaction_counts = get_reaction_counts_for_posts(db, post_ids)
    saved_ids = get_saved_post_ids(db, viewer_id, post_ids)
    reposted_ids = get_reposted_post_ids(db, viewer_id, post_ids)

    enriched = []
    for post, author in rows:
        kinds = user_reactions.get(post.id, [])
        enriched.append(EnrichedPost(
            id=post.id,
            content=post.content or "",
            media_urls=post.media_urls or [],
            media_type=post.media_type,
            privacy_level=post.privacy_level,
            author=UserSummary.model_validate(author),
            reactions=reaction_counts.get(post.id, ReactionCounts()),
            user_reactions=kinds,
            has_liked=len(kinds) > 0,
            like_count=post.like_count,
            comment_count=post.comment_count,
            repost_count=post.repost_count,
            save_count=post.save_count,
            has_reposted=post.id in reposted_ids,
            has_saved=post.id in saved_ids,
            created_at=post.created_at,
        ))
    return enriched

def next_cursor_for(posts: Sequence[EnrichedPost], limit: int) -> Optional[str]:
    """Id of the last post when the page is full, None otherwise"""
    return posts[-1].id if posts and len(posts) == limit else None

def get_home_feed(db: Session, viewer_id: str, limit: Optional[int] = None,
                  cursor: Optional[str] = None, cache=None) -> FeedResponse:
    """
    Build one page of the viewer's home feed.

    Authors are the viewer, their accepted friends and everyone they follow.
    Friends-only posts show up only for accepted friends. Pages are cached
    per viewer, cursor and page size for FEED_CACHE_TTL seconds.
    """
    cache = cache or NullCache()
    limit = clamp_limit(limit)
    cache_key = feed_cache_key(viewer_id, cursor, limit)

    cached = cache.get(cache_key)
    if cached is not None:
        logger.debug(f"Feed cache hit for {cache_key}")
        return FeedResponse.model_validate(cached)

    friend_ids = get_friend_ids(db, viewer_id)
    author_ids = {viewer_id} | friend_ids | get_following_ids(db, viewer_id)

    rows = get_post_page(
        db,
        author_ids=author_ids,
        viewer_id=viewer_id,
        friend_ids=friend_ids,
        limit=limit,
        cursor=cursor,
    )
    posts = enrich_posts(db, viewer_id, rows)
    response = FeedResponse(posts=posts, next_cursor=next_cursor_for(posts, limit))

    cache.set(cache_key, response.model_dump(mode="json", by_alias=True), ttl=settings.FEED_CACHE_TTL)
    return response

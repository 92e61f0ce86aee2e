from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from nexusnoir.core.cache import get_cache
from nexusnoir.core.config import settings
from nexusnoir.core.storage import R2Storage, get_storage
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.services.user import get_user
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import (
    Post as PostSchema, PostCreate, PostUpdate, EnrichedPost, PostPage
)
from nexusnoir.modules.posts.services.post import (
    get_post, get_post_page, get_visible_post, create_post, update_post, delete_post
)
from nexusnoir.modules.friendships.services.friendship import get_friend_ids
from nexusnoir.modules.home_feed.services.feed import (
    clamp_limit, enrich_posts, invalidate_all_feeds, next_cursor_for
)
from nexusnoir.modules.notifications.services.notification_events import create_new_post_notifications

logger = logging.getLogger(__name__)

router = APIRouter(prefix="")

def _get_visible_post(db: Session, post_id: str, viewer_id: str) -> Post:
    """Fetch a post the viewer may see, hidden posts look missing"""
    post = get_visible_post(db, post_id=post_id, viewer_id=viewer_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post

def _get_own_post(db: Session, post_id: str, user_id: str) -> Post:
    post = get_post(db, post_id=post_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )

    # Check if user is the author
    if post.author_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return post

@router.post("", response_model=PostSchema, status_code=status.HTTP_201_CREATED)
def create_new_post(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_in: PostCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Create new post. Media is uploaded beforehand through a presigned URL.
    """
    post = create_post(db, post_in, current_user.id)
    invalidate_all_feeds(cache)
    create_new_post_notifications(db, post, current_user, get_friend_ids(db, current_user.id))
    return post

@router.get("/user/{user_id}", response_model=PostPage)
def read_user_posts_by_id(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    limit: int = Query(settings.FEED_DEFAULT_LIMIT, ge=1),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get posts by user ID, newest first, limited to what the viewer may see.
    """
    if not get_user(db, user_id=user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    limit = clamp_limit(limit)
    rows = get_post_page(
        db,
        author_ids=[user_id],
        viewer_id=current_user.id,
        friend_ids=get_friend_ids(db, current_user.id),
        limit=limit,
        cursor=cursor,
    )
    posts = enrich_posts(db, current_user.id, rows)
    return PostPage(posts=posts, next_cursor=next_cursor_for(posts, limit))

@router.get("/{post_id}", response_model=EnrichedPost)
def read_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Get post by ID.
    """
    post = _get_visible_post(db, post_id, current_user.id)
    author = get_user(db, user_id=post.author_id)
    return enrich_posts(db, current_user.id, [(post, author)])[0]

@router.put("/{post_id}", response_model=PostSchema)
def update_post_by_id(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str,
    post_in: PostUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Update a post.
    """
    post = _get_own_post(db, post_id, current_user.id)
    post = update_post(db, post, post_in)
    invalidate_all_feeds(cache)
    return post

@router.delete("/{post_id}", response_model=PostSchema)
def delete_post_by_id(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    storage: R2Storage = Depends(get_storage),
    post_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Delete a post and all associated data.
    This is a cascading delete operation that will remove:
    1. All reactions, saves and reposts of this post
    2. All comments on this post
    3. The post itself
    Stored media files are removed afterwards on a best-effort basis.
    """
    post = _get_own_post(db, post_id, current_user.id)
    deleted = PostSchema.model_validate(post)
    media_urls = list(post.media_urls or [])

    delete_post(db, post)
    invalidate_all_feeds(cache)

    for url in media_urls:
        if not storage.delete_file(url):
            logger.warning(f"Media file {url} of deleted post {post_id} was not removed")

    return deleted

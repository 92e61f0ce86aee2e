from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status, Path
from sqlalchemy.orm import Session

from nexusnoir.core.cache import get_cache
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.services.post import get_visible_post
from nexusnoir.modules.posts.engagement.schemas.engagement import (
    SavedPost as SavedPostSchema, Repost as RepostSchema, RepostCreate
)
from nexusnoir.modules.posts.engagement.services.engagement import (
    get_saved_post, save_post, unsave_post, get_repost, create_repost, delete_repost
)
from nexusnoir.modules.home_feed.services.feed import invalidate_user_feeds

router = APIRouter()

def _validate_post(db: Session, post_id: str, viewer_id: str) -> Post:
    post = get_visible_post(db, post_id=post_id, viewer_id=viewer_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

@router.post("/save", response_model=SavedPostSchema, status_code=status.HTTP_201_CREATED)
def save_post_for_later(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post to save"),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    post = _validate_post(db, post_id, current_user.id)
    if get_saved_post(db, current_user.id, post_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Post already saved"
        )

    saved = save_post(db, post, current_user.id)
    invalidate_user_feeds(cache, current_user.id)
    return saved

@router.delete("/save", response_model=SavedPostSchema)
def unsave_saved_post(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post"),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    post = _validate_post(db, post_id, current_user.id)
    saved = get_saved_post(db, current_user.id, post_id)
    if not saved:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not saved"
        )

    result = SavedPostSchema.model_validate(saved)
    unsave_post(db, post, saved)
    invalidate_user_feeds(cache, current_user.id)
    return result

@router.post("/repost", response_model=RepostSchema, status_code=status.HTTP_201_CREATED)
def repost_post(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post to repost"),
    repost_in: Optional[RepostCreate] = Body(None),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    post = _validate_post(db, post_id, current_user.id)
    if get_repost(db, current_user.id, post_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Post already reposted"
        )

    repost = create_repost(db, post, current_user.id, repost_in or RepostCreate())
    invalidate_user_feeds(cache, current_user.id)
    return repost

@router.delete("/repost", response_model=RepostSchema)
def undo_repost(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post"),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    post = _validate_post(db, post_id, current_user.id)
    repost = get_repost(db, current_user.id, post_id)
    if not repost:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not reposted"
        )

    result = RepostSchema.model_validate(repost)
    delete_repost(db, post, repost)
    invalidate_user_feeds(cache, current_user.id)
    return result

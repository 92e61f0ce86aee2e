from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.orm import Session

from nexusnoir.core.cache import get_cache
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import ReactionCounts
from nexusnoir.modules.posts.services.post import get_visible_post
from nexusnoir.modules.posts.reactions.schemas.reaction import (
    Reaction as ReactionSchema, ReactionCreate, ReactionDelete
)
from nexusnoir.modules.posts.reactions.services.reaction import (
    get_reaction, get_reaction_counts_by_post, create_or_update_reaction, delete_reaction
)
from nexusnoir.modules.home_feed.services.feed import invalidate_user_feeds

router = APIRouter()

def _validate_post(db: Session, post_id: str, viewer_id: str) -> Post:
    """Return the post or raise HTTPException"""
    post = get_visible_post(db, post_id=post_id, viewer_id=viewer_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

@router.post("", response_model=ReactionSchema)
def create_or_update_post_reaction(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post to react to"),
    reaction_in: ReactionCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Add a reaction of one kind to a post, or change its variant"""
    post = _validate_post(db, post_id, current_user.id)

    reaction, _ = create_or_update_reaction(db, post, reaction_in, current_user)
    invalidate_user_feeds(cache, current_user.id)
    return reaction

@router.delete("", response_model=ReactionSchema)
def delete_post_reaction(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    post_id: str = Path(..., description="The ID of the post"),
    reaction_in: ReactionDelete,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Remove the current user's reaction of the given kind"""
    post = _validate_post(db, post_id, current_user.id)

    reaction = get_reaction(db, current_user.id, post_id, reaction_in.type.value)
    if not reaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reaction not found"
        )

    deleted = ReactionSchema.model_validate(reaction)
    delete_reaction(db, post, reaction)
    invalidate_user_feeds(cache, current_user.id)
    return deleted

@router.get("/counts", response_model=ReactionCounts)
def read_reaction_counts(
    *,
    db: Session = Depends(get_db),
    post_id: str = Path(..., description="The ID of the post"),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get reaction counts by kind for a post"""
    _validate_post(db, post_id, current_user.id)
    return get_reaction_counts_by_post(db, post_id)

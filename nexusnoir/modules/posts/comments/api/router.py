from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.services.post import get_visible_post
from nexusnoir.modules.posts.comments.models.comment import Comment
from nexusnoir.modules.posts.comments.schemas.comment import (
    Comment as CommentSchema, CommentCreate, CommentWithReplies
)
from nexusnoir.modules.posts.comments.services.comment import (
    get_comment, get_comments_with_replies, create_comment, delete_comment
)

router = APIRouter()
logger = logging.getLogger(__name__)

def _validate_post(db: Session, post_id: str, viewer_id: str) -> Post:
    """Return the post or raise HTTPException"""
    post = get_visible_post(db, post_id=post_id, viewer_id=viewer_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

def _validate_comment(db: Session, comment_id: str, post_id: str) -> Comment:
    """Validate comment exists and belongs to the post, return it or raise HTTPException"""
    comment = get_comment(db, comment_id=comment_id)
    if not comment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    if comment.post_id != post_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment does not belong to the specified post"
        )

    return comment

@router.post("", response_model=CommentSchema, status_code=status.HTTP_201_CREATED)
def create_new_comment(
    *,
    db: Session = Depends(get_db),
    post_id: str = Path(..., description="The ID of the post to comment on"),
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Create new comment on a post"""
    post = _validate_post(db, post_id, current_user.id)

    if comment_in.parent_id:
        parent = _validate_comment(db, comment_in.parent_id, post_id)
        if parent.parent_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Replies cannot be nested"
            )

    try:
        return create_comment(db, post, comment_in, current_user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating comment: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create comment"
        )

@router.get("", response_model=List[CommentWithReplies])
def read_comments_by_post_id(
    *,
    db: Session = Depends(get_db),
    post_id: str = Path(..., description="The ID of the post to get comments for"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get comments by post ID with replies"""
    _validate_post(db, post_id, current_user.id)
    return get_comments_with_replies(db, post_id=post_id, skip=skip, limit=limit)

@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str = Path(..., description="The ID of the post"),
    comment_id: str,
    current_user: User = Depends(get_current_active_user),
) -> None:
    """Delete a comment and its replies"""
    post = _validate_post(db, post_id, current_user.id)
    comment = _validate_comment(db, comment_id, post_id)

    if comment.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

    removed = delete_comment(db, post, comment)
    logger.info(f"Deleted comment {comment_id} and {removed - 1} replies")

from typing import Iterable, List, Optional, Tuple
import uuid
from sqlalchemy.orm import Session, Query
from sqlalchemy import and_, or_
import logging

from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import PostCreate, PostUpdate, PrivacyLevel
from nexusnoir.modules.posts.comments.models.comment import Comment
from nexusnoir.modules.posts.reactions.models.reaction import Reaction
from nexusnoir.modules.posts.engagement.models.engagement import Repost, SavedPost
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.friendships.services.friendship import get_friend_ids

logger = logging.getLogger(__name__)

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get post by ID"""
    return db.query(Post).filter(Post.id == post_id).first()

def visible_to(viewer_id: str, friend_ids: Iterable[str]):
    """
    Filter clause for posts a viewer may see.

    Public posts, friends-only posts by accepted friends and anything the
    viewer wrote. Following someone never unlocks their friends-only posts.
    """
    return or_(
        Post.privacy_level == PrivacyLevel.PUBLIC.value,
        and_(
            Post.privacy_level == PrivacyLevel.FRIENDS.value,
            Post.author_id.in_(list(friend_ids)),
        ),
        Post.author_id == viewer_id,
    )

def can_view_post(post: Post, viewer_id: str, friend_ids: Iterable[str]) -> bool:
    if post.author_id == viewer_id or post.privacy_level == PrivacyLevel.PUBLIC.value:
        return True
    return post.privacy_level == PrivacyLevel.FRIENDS.value and post.author_id in set(friend_ids)

def get_visible_post(db: Session, post_id: str, viewer_id: str) -> Optional[Post]:
    """The post if the viewer may see it, None when it is missing or hidden"""
    post = get_post(db, post_id=post_id)
    if post is None:
        return None
    if post.author_id != viewer_id and not can_view_post(post, viewer_id, get_friend_ids(db, viewer_id)):
        return None
    return post

def after_cursor(db: Session, query: Query, cursor: Optional[str]) -> Query:
    """
    Restrict a newest-first post query to rows strictly after the cursor post.

    The cursor is a post id. An id that matches no post leaves the query
    untouched so the page starts from the top.
    """
    if not cursor:
        return query
    anchor = db.query(Post.created_at, Post.id).filter(Post.id == cursor).first()
    if anchor is None:
        logger.debug(f"Ignoring unknown cursor {cursor!r}")
        return query
    anchor_created_at, anchor_id = anchor
    return query.filter(
        or_(
            Post.created_at < anchor_created_at,
            and_(Post.created_at == anchor_created_at, Post.id < anchor_id),
        )
    )

def get_post_page(db: Session, *, author_ids: Iterable[str], viewer_id: str, friend_ids: Iterable[str],
                  limit: int, cursor: Optional[str] = None) -> List[Tuple[Post, User]]:
    """Newest-first page of visible posts by the given authors, each paired with its author"""
    query = (
        db.query(Post, User)
        .join(User, User.id == Post.author_id)
        .filter(Post.author_id.in_(list(author_ids)), visible_to(viewer_id, friend_ids))
    )
    query = after_cursor(db, query, cursor)
    return query.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()

def create_post(db: Session, post_in: PostCreate, author_id: str) -> Post:
    """Create new post"""
    post = Post(
        id=str(uuid.uuid4()),
        author_id=author_id,
        **post_in.model_dump(mode="json"),
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Post {post.id} created by {author_id}")
    return post

def update_post(db: Session, post: Post, post_in: PostUpdate) -> Post:
    """Update post"""
    update_data = post_in.model_dump(mode="json", exclude_unset=True, exclude_none=True)

    for field, value in update_data.items():
        setattr(post, field, value)

    db.commit()
    db.refresh(post)

    return post

def delete_post(db: Session, post: Post) -> Post:
    """
    Delete post and everything hanging off it
    """
    logger.info(f"Deleting post with ID: {post.id}")
    db.query(Reaction).filter(Reaction.post_id == post.id).delete(synchronize_session=False)
    db.query(SavedPost).filter(SavedPost.post_id == post.id).delete(synchronize_session=False)
    db.query(Repost).filter(Repost.post_id == post.id).delete(synchronize_session=False)
    # Replies first so no row is left pointing at a deleted parent
    db.query(Comment).filter(Comment.post_id == post.id, Comment.parent_id.isnot(None)).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.post_id == post.id).delete(synchronize_session=False)

    db.delete(post)
    db.commit()
    return post

def count_user_posts(db: Session, user_id: str) -> int:
    return db.query(Post).filter(Post.author_id == user_id).count()

from typing import Dict, List, Optional
import uuid
from sqlalchemy.orm import Session

from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.comments.models.comment import Comment
from nexusnoir.modules.posts.comments.schemas.comment import CommentCreate, CommentWithReplies, Comment as CommentSchema
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import UserSummary
from nexusnoir.modules.user_management.services.user import get_users_by_ids
from nexusnoir.modules.notifications.services.notification_events import create_post_comment_notification

def get_comment(db: Session, comment_id: str) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def get_comments_by_post(db: Session, post_id: str, skip: int = 0, limit: int = 100) -> List[Comment]:
    """Get top-level comments by post ID"""
    return (
        db.query(Comment)
        .filter(Comment.post_id == post_id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def _with_author(comment: Comment, authors: Dict[str, User]) -> CommentSchema:
    result = CommentSchema.model_validate(comment)
    author = authors.get(comment.author_id)
    if author is not None:
        result.author = UserSummary.model_validate(author)
    return result

def get_comments_with_replies(db: Session, post_id: str, skip: int = 0, limit: int = 100) -> List[CommentWithReplies]:
    """Get top-level comments, newest first, each with its replies oldest first"""
    comments = get_comments_by_post(db, post_id, skip, limit)
    if not comments:
        return []

    replies = (
        db.query(Comment)
        .filter(Comment.parent_id.in_([c.id for c in comments]))
        .order_by(Comment.created_at.asc())
        .all()
    )
    authors = {
        user.id: user
        for user in get_users_by_ids(db, {c.author_id for c in comments} | {r.author_id for r in replies})
    }

    replies_by_parent: Dict[str, List[CommentSchema]] = {}
    for reply in replies:
        replies_by_parent.setdefault(reply.parent_id, []).append(_with_author(reply, authors))

    return [
        CommentWithReplies(
            **_with_author(comment, authors).model_dump(),
            replies=replies_by_parent.get(comment.id, []),
        )
        for comment in comments
    ]

def create_comment(db: Session, post: Post, comment_in: CommentCreate, author: User) -> CommentSchema:
    """Create a new comment and bump the post's comment_count"""
    comment = Comment(
        id=str(uuid.uuid4()),
        post_id=post.id,
        author_id=author.id,
        content=comment_in.content,
        parent_id=comment_in.parent_id,
    )

    db.add(comment)
    db.query(Post).filter(Post.id == post.id).update(
        {Post.comment_count: Post.comment_count + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(comment)

    create_post_comment_notification(db, post, author, comment.id)

    return _with_author(comment, {author.id: author})

def delete_comment(db: Session, post: Post, comment: Comment) -> int:
    """Delete a comment together with its replies, returns how many rows went"""
    removed = db.query(Comment).filter(Comment.parent_id == comment.id).delete(synchronize_session=False)
    db.delete(comment)
    removed += 1
    db.query(Post).filter(Post.id == post.id, Post.comment_count >= removed).update(
        {Post.comment_count: Post.comment_count - removed}, synchronize_session=False
    )
    db.commit()
    return removed

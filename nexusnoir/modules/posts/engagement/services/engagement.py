from typing import Iterable, Optional, Set
import uuid
from sqlalchemy.orm import Session

from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.engagement.models.engagement import Repost, SavedPost
from nexusnoir.modules.posts.engagement.schemas.engagement import RepostCreate

def _adjust_counter(db: Session, post_id: str, column, delta: int) -> None:
    query = db.query(Post).filter(Post.id == post_id)
    if delta < 0:
        query = query.filter(column > 0)
    query.update({column: column + delta}, synchronize_session=False)

def get_saved_post(db: Session, user_id: str, post_id: str) -> Optional[SavedPost]:
    return db.query(SavedPost).filter(SavedPost.user_id == user_id, SavedPost.post_id == post_id).first()

def get_saved_post_ids(db: Session, user_id: str, post_ids: Iterable[str]) -> Set[str]:
    """Which of the given posts the user has saved"""
    post_ids = list(post_ids)
    if not post_ids:
        return set()
    rows = (
        db.query(SavedPost.post_id)
        .filter(SavedPost.user_id == user_id, SavedPost.post_id.in_(post_ids))
        .all()
    )
    return {post_id for (post_id,) in rows}

def save_post(db: Session, post: Post, user_id: str) -> SavedPost:
    saved = SavedPost(post_id=post.id, user_id=user_id)
    db.add(saved)
    _adjust_counter(db, post.id, Post.save_count, 1)
    db.commit()
    db.refresh(saved)
    db.refresh(post)
    return saved

def unsave_post(db: Session, post: Post, saved: SavedPost) -> SavedPost:
    db.delete(saved)
    _adjust_counter(db, post.id, Post.save_count, -1)
    db.commit()
    db.refresh(post)
    return saved

def get_repost(db: Session, user_id: str, post_id: str) -> Optional[Repost]:
    return db.query(Repost).filter(Repost.user_id == user_id, Repost.post_id == post_id).first()

def get_reposted_post_ids(db: Session, user_id: str, post_ids: Iterable[str]) -> Set[str]:
    """Which of the given posts the user has reposted"""
    post_ids = list(post_ids)
    if not post_ids:
        return set()
    rows = (
        db.query(Repost.post_id)
        .filter(Repost.user_id == user_id, Repost.post_id.in_(post_ids))
        .all()
    )
    return {post_id for (post_id,) in rows}

def create_repost(db: Session, post: Post, user_id: str, repost_in: RepostCreate) -> Repost:
    repost = Repost(
        id=str(uuid.uuid4()),
        post_id=post.id,
        user_id=user_id,
        comment=repost_in.comment,
    )
    db.add(repost)
    _adjust_counter(db, post.id, Post.repost_count, 1)
    db.commit()
    db.refresh(repost)
    db.refresh(post)
    return repost

def delete_repost(db: Session, post: Post, repost: Repost) -> Repost:
    db.delete(repost)
    _adjust_counter(db, post.id, Post.repost_count, -1)
    db.commit()
    db.refresh(post)
    return repost

from typing import Dict, Iterable, List, Optional, Tuple
from collections import defaultdict
import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func

from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import REACTION_ORDER, ReactionCounts
from nexusnoir.modules.posts.reactions.models.reaction import Reaction
from nexusnoir.modules.posts.reactions.schemas.reaction import ReactionCreate
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.notifications.services.notification_events import create_post_reaction_notification

logger = logging.getLogger(__name__)

def get_reaction(db: Session, user_id: str, post_id: str, reaction_type: str) -> Optional[Reaction]:
    """Get one kind of reaction by a user on a post"""
    return (
        db.query(Reaction)
        .filter(Reaction.user_id == user_id, Reaction.post_id == post_id, Reaction.type == reaction_type)
        .first()
    )

def get_user_reaction_types(db: Session, user_id: str, post_ids: Iterable[str]) -> Dict[str, List[str]]:
    """
    Reaction kinds a user holds on each of the given posts.

    Kinds are listed in the fixed love, applaud, salute, shine order.
    Posts without any reaction from the user are absent from the result.
    """
    post_ids = list(post_ids)
    if not post_ids:
        return {}
    rows = (
        db.query(Reaction.post_id, Reaction.type)
        .filter(Reaction.user_id == user_id, Reaction.post_id.in_(post_ids))
        .all()
    )
    kinds: Dict[str, set] = defaultdict(set)
    for post_id, reaction_type in rows:
        kinds[post_id].add(reaction_type)
    return {
        post_id: [kind for kind in REACTION_ORDER if kind in held]
        for post_id, held in kinds.items()
    }

def get_reaction_counts_for_posts(db: Session, post_ids: Iterable[str]) -> Dict[str, ReactionCounts]:
    """Per-kind reaction counts across all users for each post, zero-filled"""
    post_ids = list(post_ids)
    if not post_ids:
        return {}
    counts: Dict[str, Dict[str, int]] = {post_id: {} for post_id in post_ids}
    rows = (
        db.query(Reaction.post_id, Reaction.type, func.count(Reaction.id))
        .filter(Reaction.post_id.in_(post_ids))
        .group_by(Reaction.post_id, Reaction.type)
        .all()
    )
    for post_id, reaction_type, count in rows:
        if reaction_type in REACTION_ORDER:
            counts[post_id][reaction_type] = count
    return {post_id: ReactionCounts(**by_kind) for post_id, by_kind in counts.items()}

def get_reaction_counts_by_post(db: Session, post_id: str) -> ReactionCounts:
    """Get reaction counts by type for a post"""
    return get_reaction_counts_for_posts(db, [post_id])[post_id]

def _adjust_like_count(db: Session, post_id: str, delta: int) -> None:
    query = db.query(Post).filter(Post.id == post_id)
    if delta < 0:
        query = query.filter(Post.like_count > 0)
    query.update({Post.like_count: Post.like_count + delta}, synchronize_session=False)

def create_or_update_reaction(db: Session, post: Post, reaction_in: ReactionCreate, user: User) -> Tuple[Reaction, bool]:
    """
    Add a reaction of the given kind, or refresh its variant if the user already has one.

    Returns the reaction and whether a new row was created. The post's
    like_count only moves when a row is inserted.
    """
    existing_reaction = get_reaction(db, user.id, post.id, reaction_in.type.value)

    if existing_reaction:
        existing_reaction.variant = reaction_in.variant
        db.add(existing_reaction)
        db.commit()
        db.refresh(existing_reaction)
        return existing_reaction, False

    reaction = Reaction(
        id=str(uuid.uuid4()),
        user_id=user.id,
        post_id=post.id,
        type=reaction_in.type.value,
        variant=reaction_in.variant,
    )
    try:
        db.add(reaction)
        _adjust_like_count(db, post.id, 1)
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same (post, user, kind) first
        db.rollback()
        logger.info(f"Reaction {reaction_in.type.value} by {user.id} on {post.id} already exists")
        return get_reaction(db, user.id, post.id, reaction_in.type.value), False
    db.refresh(reaction)
    db.refresh(post)

    create_post_reaction_notification(db, post, user, reaction_in.type.value)

    return reaction, True

def delete_reaction(db: Session, post: Post, reaction: Reaction) -> Reaction:
    """Delete reaction and release its share of like_count"""
    db.delete(reaction)
    _adjust_like_count(db, post.id, -1)
    db.commit()
    db.refresh(post)
    return reaction

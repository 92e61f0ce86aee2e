"""
Notification events service.
This module handles the creation of notifications for various events in the application.
Every helper swallows and logs its own failures so that a notification
problem never fails the write that triggered it.
"""
from typing import Iterable
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from nexusnoir.modules.notifications.services.notification import create_notification, create_notifications
from nexusnoir.modules.notifications.schemas.notification import NotificationCreate, NotificationType
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.user_management.models.user import User

logger = logging.getLogger(__name__)

def _notify(db: Session, notification_in: NotificationCreate) -> bool:
    try:
        create_notification(db, notification_in)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating {notification_in.type.value} notification: {e}")
        return False
    logger.info(f"Created {notification_in.type.value} notification for user {notification_in.user_id}")
    return True

def create_post_reaction_notification(db: Session, post: Post, actor: User, reaction_type: str) -> bool:
    """
    Create a notification when someone reacts to a post.

    Args:
        db: Database session
        post: The post that received the reaction
        actor: The user who reacted
        reaction_type: Kind of reaction

    Returns:
        True if notification was created, False otherwise
    """
    # Don't notify if the reactor is the post author
    if post.author_id == actor.id:
        logger.debug(f"User {actor.id} reacted to their own post, no notification created")
        return False

    return _notify(db, NotificationCreate(
        user_id=post.author_id,
        actor_id=actor.id,
        type=NotificationType.POST_REACTION,
        content=f"{actor.username} reacted {reaction_type} to your post",
        related_id=post.id,
    ))

def create_post_comment_notification(db: Session, post: Post, actor: User, comment_id: str) -> bool:
    """
    Create a notification when a post is commented on.

    Args:
        db: Database session
        post: The post that was commented on
        actor: The user who commented
        comment_id: ID of the comment

    Returns:
        True if notification was created, False otherwise
    """
    if post.author_id == actor.id:
        logger.debug(f"User {actor.id} commented on their own post, no notification created")
        return False

    return _notify(db, NotificationCreate(
        user_id=post.author_id,
        actor_id=actor.id,
        type=NotificationType.POST_COMMENT,
        content=f"{actor.username} commented on your post",
        related_id=comment_id,
    ))

def create_new_post_notifications(db: Session, post: Post, actor: User, friend_ids: Iterable[str]) -> int:
    """Tell every accepted friend about a new post, returns how many were created"""
    notifications = [
        NotificationCreate(
            user_id=friend_id,
            actor_id=actor.id,
            type=NotificationType.NEW_POST,
            content=f"{actor.username} shared a new post",
            related_id=post.id,
        )
        for friend_id in sorted(friend_ids)
    ]
    if not notifications:
        return 0
    try:
        return create_notifications(db, notifications)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating new post notifications: {e}")
        return 0

def create_friend_request_notification(db: Session, sender: User, receiver_id: str, request_id: str) -> bool:
    """Create a notification when a friend request is sent"""
    return _notify(db, NotificationCreate(
        user_id=receiver_id,
        actor_id=sender.id,
        type=NotificationType.FRIEND_REQUEST,
        content=f"{sender.username} sent you a friend request",
        related_id=request_id,
    ))

def create_friend_request_accepted_notification(db: Session, accepter: User, requester_id: str) -> bool:
    """Create a notification when a friend request is accepted"""
    return _notify(db, NotificationCreate(
        user_id=requester_id,
        actor_id=accepter.id,
        type=NotificationType.FRIEND_ACCEPT,
        content=f"{accepter.username} accepted your friend request",
    ))

def create_follow_notification(db: Session, follower: User, following_id: str) -> bool:
    """Create a notification when someone starts following a user"""
    return _notify(db, NotificationCreate(
        user_id=following_id,
        actor_id=follower.id,
        type=NotificationType.FOLLOW,
        content=f"{follower.username} started following you",
    ))

def create_message_notification(db: Session, sender: User, recipient_id: str,
                                conversation_id: str, content: str) -> bool:
    """Create a notification for a new direct message, with a short preview"""
    preview = content if len(content) <= 100 else f"{content[:100]}..."
    return _notify(db, NotificationCreate(
        user_id=recipient_id,
        actor_id=sender.id,
        type=NotificationType.MESSAGE,
        content=f"{sender.username}: {preview}",
        related_id=conversation_id,
    ))

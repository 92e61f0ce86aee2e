from typing import Iterable, List, Optional
import uuid
from sqlalchemy.orm import Session

from nexusnoir.modules.notifications.models.notification import Notification
from nexusnoir.modules.notifications.schemas.notification import (
    NotificationCreate, NotificationUpdate, Notification as NotificationSchema
)
from nexusnoir.modules.user_management.schemas.user import UserSummary
from nexusnoir.modules.user_management.services.user import get_users_by_ids

def get_notification(db: Session, notification_id: str) -> Optional[Notification]:
    """Get notification by ID"""
    return db.query(Notification).filter(Notification.id == notification_id).first()

def to_notification_schema(notification: Notification, actor=None) -> NotificationSchema:
    result = NotificationSchema.model_validate(notification)
    if actor is not None:
        result.actor = UserSummary.model_validate(actor)
    return result

def get_user_notifications(db: Session, user_id: str, skip: int = 0, limit: int = 50, unread_only: bool = False) -> List[NotificationSchema]:
    """Get notifications for a user, newest first, with the acting user attached"""
    query = db.query(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    notifications = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit).all()

    actors = {
        actor.id: actor
        for actor in get_users_by_ids(db, {n.actor_id for n in notifications if n.actor_id})
    }
    return [to_notification_schema(n, actors.get(n.actor_id)) for n in notifications]

def create_notification(db: Session, notification_in: NotificationCreate) -> Notification:
    """Create a new notification"""
    notification = Notification(
        id=str(uuid.uuid4()),
        **notification_in.model_dump(mode="json"),
    )

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification

def create_notifications(db: Session, notifications_in: Iterable[NotificationCreate]) -> int:
    """Create several notifications in one commit"""
    notifications = [
        Notification(id=str(uuid.uuid4()), **n.model_dump(mode="json"))
        for n in notifications_in
    ]
    db.add_all(notifications)
    db.commit()
    return len(notifications)

def update_notification(db: Session, notification: Notification, notification_in: NotificationUpdate) -> Notification:
    """Update a notification"""
    notification.is_read = notification_in.is_read

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification

def mark_all_as_read(db: Session, user_id: str) -> int:
    """Mark all notifications as read for a user"""
    result = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).update({"is_read": True}, synchronize_session=False)

    db.commit()

    return result

def delete_notification(db: Session, notification: Notification) -> Notification:
    """Delete a notification"""
    db.delete(notification)
    db.commit()

    return notification

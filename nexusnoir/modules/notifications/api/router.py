from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.notifications.models.notification import Notification
from nexusnoir.modules.notifications.schemas.notification import (
    Notification as NotificationSchema,
    NotificationUpdate
)
from nexusnoir.modules.notifications.services.notification import (
    get_notification,
    get_user_notifications,
    update_notification,
    mark_all_as_read,
    delete_notification,
    to_notification_schema,
)

router = APIRouter()

def _get_own_notification(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = get_notification(db, notification_id=notification_id)
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )

    if notification.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return notification

@router.get("", response_model=List[NotificationSchema])
def read_notifications(
    db: Session = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get user's notifications with pagination and filter options"""
    return get_user_notifications(db, current_user.id, skip, limit, unread_only)

# Registered before /{notification_id} so the literal path wins
@router.put("/mark-all-read", response_model=dict)
def mark_all_notifications_as_read(
    *,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Mark all of the user's notifications as read"""
    count = mark_all_as_read(db, current_user.id)

    return {
        "message": f"Marked {count} notifications as read",
        "count": count
    }

@router.put("/{notification_id}", response_model=NotificationSchema)
def mark_notification_as_read(
    *,
    db: Session = Depends(get_db),
    notification_id: str,
    notification_in: Optional[NotificationUpdate] = Body(None),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Mark a specific notification as read"""
    notification = _get_own_notification(db, notification_id, current_user.id)
    return to_notification_schema(update_notification(db, notification, notification_in or NotificationUpdate()))

@router.delete("/{notification_id}", response_model=NotificationSchema)
def delete_notification_by_id(
    *,
    db: Session = Depends(get_db),
    notification_id: str,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Delete a notification"""
    notification = _get_own_notification(db, notification_id, current_user.id)
    deleted = to_notification_schema(notification)
    delete_notification(db, notification)
    return deleted

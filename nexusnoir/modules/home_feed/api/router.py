from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from nexusnoir.core.cache import get_cache
from nexusnoir.core.config import settings
from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.home_feed.schemas.feed import FeedResponse
from nexusnoir.modules.home_feed.services.feed import get_home_feed

router = APIRouter()

@router.get("", response_model=FeedResponse)
def read_home_feed(
    *,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
    limit: int = Query(settings.FEED_DEFAULT_LIMIT, ge=1),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Get personalized home feed for the current user, newest first, cursor paginated"""
    return get_home_feed(db, current_user.id, limit=limit, cursor=cursor, cache=cache)

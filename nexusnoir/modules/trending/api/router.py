from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nexusnoir.db.session import get_db
from nexusnoir.deps import get_current_active_user
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.trending.schemas.trending import TrendingResponse
from nexusnoir.modules.trending.services.trending import get_trending

router = APIRouter()

@router.get("", response_model=TrendingResponse)
def read_trending(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Trending hashtags of the past week and top public posts of the past day"""
    return get_trending(db, current_user.id)

from typing import List, Optional
import uuid
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from nexusnoir.core.security import get_password_hash
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.user_management.schemas.user import UserUpdate

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username"""
    return db.query(User).filter(User.username == username.lower()).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email"""
    return db.query(User).filter(User.email == email.lower()).first()

def get_users_by_ids(db: Session, user_ids) -> List[User]:
    """Get users for a set of IDs in a single query"""
    if not user_ids:
        return []
    return db.query(User).filter(User.id.in_(list(user_ids))).all()

def count_users(db: Session) -> int:
    return db.query(func.count(User.id)).scalar() or 0

def search_users(db: Session, q: str, exclude_user_id: str, limit: int = 20) -> List[User]:
    """Search users by username or display name"""
    query = db.query(User)
    for term in q.lower().split():
        search_pattern = f"%{term}%"
        query = query.filter(
            or_(
                User.display_name.ilike(search_pattern),
                User.username.ilike(search_pattern),
            )
        )
    return (
        query.filter(User.id != exclude_user_id, User.is_active.is_(True))
        .order_by(User.username)
        .limit(limit)
        .all()
    )

def create_user(db: Session, *, email: str, username: str, display_name: str,
                password: str, profession: Optional[str] = None) -> User:
    """Create a new user with a hashed password"""
    user = User(
        id=str(uuid.uuid4()),
        email=email.lower(),
        username=username.lower(),
        display_name=display_name,
        hashed_password=get_password_hash(password),
        profession=profession,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def update_user(db: Session, user: User, user_in: UserUpdate) -> User:
    """Update user"""
    update_data = user_in.model_dump(exclude_unset=True)

    # Handle password update separately to ensure proper hashing
    if update_data.get("password"):
        update_data["hashed_password"] = get_password_hash(update_data.pop("password"))
    update_data.pop("password", None)

    for field, value in update_data.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    return user

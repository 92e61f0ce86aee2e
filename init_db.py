"""
Database initialization script.
This script creates all database tables and can load a small demo network.
Run this as: python init_db.py [--seed]
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("db-init")

# Add current directory to path to ensure imports work
sys.path.append(str(Path(__file__).parent))

from nexusnoir.core.config import settings
from nexusnoir.db.init_db import create_all_tables
from nexusnoir.db.session import SessionLocal
from nexusnoir.modules.auth.schemas.auth import SignupRequest
from nexusnoir.modules.auth.services.auth import register_user
from nexusnoir.modules.user_management.services.user import get_user_by_username
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.schemas.post import PostCreate, PrivacyLevel
from nexusnoir.modules.posts.services.post import create_post
from nexusnoir.modules.friendships.schemas.friendship import FriendRequestAction
from nexusnoir.modules.friendships.services.friendship import (
    create_friend_request, get_friendship_between, respond_to_friend_request
)
from nexusnoir.modules.follows.services.follow import create_follow, get_follow

DEMO_PASSWORD = "nexusnoir-demo"

DEMO_USERS = [
    ("ava", "Ava Stone", "Photographer"),
    ("ben", "Ben Ortiz", "Backend Engineer"),
    ("cleo", "Cleo Park", "Product Designer"),
    ("dev", "Dev Malik", "Data Scientist"),
]

DEMO_POSTS = [
    ("ava", "Golden hour over the harbour #photography #sunset", PrivacyLevel.PUBLIC),
    ("ben", "Shipped the new cursor pagination today #python #backend", PrivacyLevel.PUBLIC),
    ("cleo", "Moodboard for the dark theme refresh #design", PrivacyLevel.FRIENDS),
    ("dev", "Notebook cleanup day #python #data", PrivacyLevel.PUBLIC),
    ("ava", "Only for close friends: film scans coming soon", PrivacyLevel.FRIENDS),
]

def seed_demo_data() -> None:
    """Create demo users, a friend graph and a handful of posts, skipping what already exists"""
    db = SessionLocal()
    try:
        users = {}
        for username, display_name, profession in DEMO_USERS:
            user = get_user_by_username(db, username)
            if not user:
                _, user = register_user(db, SignupRequest(
                    email=f"{username}@example.com",
                    username=username,
                    display_name=display_name,
                    password=DEMO_PASSWORD,
                    profession=profession,
                ))
                logger.info(f"Created demo user {username}")
            users[username] = user

        for requester, addressee in [("ava", "ben"), ("ben", "cleo")]:
            if not get_friendship_between(db, users[requester].id, users[addressee].id):
                request = create_friend_request(db, users[requester].id, users[addressee].id)
                respond_to_friend_request(db, request, FriendRequestAction.ACCEPT)

        if not get_follow(db, users["dev"].id, users["ava"].id):
            create_follow(db, users["dev"].id, users["ava"].id)

        if db.query(Post).count() == 0:
            now = datetime.utcnow()
            for offset, (username, content, privacy) in enumerate(DEMO_POSTS):
                post = create_post(db, PostCreate(content=content, privacy_level=privacy), users[username].id)
                post.created_at = now - timedelta(hours=offset)
                db.commit()
            logger.info(f"Created {len(DEMO_POSTS)} demo posts")
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the Nexus Noir database schema")
    parser.add_argument("--seed", action="store_true", help="Load demo users, friendships and posts")
    args = parser.parse_args()

    logger.info(f"Initializing database at: {settings.DATABASE_URL}")
    if not create_all_tables():
        logger.error("Database initialization failed")
        sys.exit(1)
    logger.info("Database initialization completed successfully")

    if args.seed:
        seed_demo_data()
        logger.info(f"Demo data ready, every demo account uses the password '{DEMO_PASSWORD}'")

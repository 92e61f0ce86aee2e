"""Shared pytest fixtures and configuration

The application runs against an in-memory SQLite database and a fakeredis
backed cache. Environment variables are set before any nexusnoir import so
the settings object picks them up.
"""

import os
import uuid
from datetime import datetime

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["R2_ENDPOINT"] = ""
os.environ["R2_ACCESS_KEY_ID"] = ""
os.environ["R2_SECRET_ACCESS_KEY"] = ""

import fakeredis
import pytest
from fastapi.testclient import TestClient

from nexusnoir.main import app
from nexusnoir.core.cache import RedisCache, get_cache
from nexusnoir.core.security import create_access_token
from nexusnoir.db.session import Base, SessionLocal, engine, get_db
from nexusnoir.modules.user_management.models.user import User
from nexusnoir.modules.posts.models.post import Post
from nexusnoir.modules.posts.reactions.schemas.reaction import ReactionCreate
from nexusnoir.modules.posts.reactions.services.reaction import create_or_update_reaction
from nexusnoir.modules.friendships.models.friendship import Friendship
from nexusnoir.modules.follows.models.follow import Follow


# ==================== Infrastructure ====================


@pytest.fixture
def db():
    """Fresh schema and session for every test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    """Cache backed by an isolated fake Redis server"""
    return RedisCache(fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True))


@pytest.fixture
def client(db, cache):
    """TestClient wired to the test session and cache"""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


# ==================== Factories ====================


@pytest.fixture
def make_user(db):
    """Insert a user directly, skipping password hashing"""

    def _make_user(username, **fields):
        fields.setdefault("display_name", username.title())
        user = User(
            id=str(uuid.uuid4()),
            email=f"{username}@example.com",
            username=username,
            hashed_password="not-a-real-hash",
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_post(db):
    def _make_post(author, content="", privacy="public", created_at=None, **counters):
        post = Post(
            id=str(uuid.uuid4()),
            author_id=author.id,
            content=content,
            media_urls=[],
            media_type="none",
            privacy_level=privacy,
            created_at=created_at or datetime.utcnow(),
            **counters,
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post


@pytest.fixture
def make_friendship(db):
    def _make_friendship(requester, addressee, status="accepted"):
        friendship = Friendship(
            id=str(uuid.uuid4()),
            requester_id=requester.id,
            addressee_id=addressee.id,
            status=status,
        )
        db.add(friendship)
        db.commit()
        db.refresh(friendship)
        return friendship

    return _make_friendship


@pytest.fixture
def make_follow(db):
    def _make_follow(follower, following):
        follow = Follow(follower_id=follower.id, following_id=following.id)
        db.add(follow)
        db.commit()
        return follow

    return _make_follow


@pytest.fixture
def react(db):
    """Add a reaction through the service so like_count stays in step"""

    def _react(user, post, kind):
        reaction, _ = create_or_update_reaction(db, post, ReactionCreate(type=kind), user)
        return reaction

    return _react

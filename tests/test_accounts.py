"""
Tests for sign-up and login, login lockout, account tokens, notifications
and media upload URLs.

Run with: pytest tests/test_accounts.py -v
"""

import re
from datetime import datetime, timedelta

import boto3
import pytest

from nexusnoir.core.config import settings
from nexusnoir.core.storage import R2Storage, get_storage
from nexusnoir.main import app
from nexusnoir.modules.auth.models.auth import LoginAttempt, VerificationToken
from nexusnoir.modules.auth.services.rate_limit import (
    check_rate_limit, purge_old_login_attempts, record_login_attempt
)
from nexusnoir.modules.auth.services.tokens import create_email_verification_token, create_password_reset_token
from nexusnoir.modules.media.service import build_object_key, sanitize_file_name
from nexusnoir.modules.notifications.schemas.notification import NotificationCreate, NotificationType
from nexusnoir.modules.notifications.services.notification import create_notification
from tests.conftest import auth_headers

SIGNUP = {
    "email": "Nova@Example.com",
    "username": "Nova_1",
    "displayName": "Nova",
    "password": "correct-horse",
}


class TestAuth:

    @pytest.fixture
    def registered(self, client):
        response = client.post("/api/v1/auth/signup", json=SIGNUP)
        assert response.status_code == 201
        return response.json()

    def test_signup_normalizes_identity(self, registered):
        assert registered["email"] == "nova@example.com"
        assert registered["username"] == "nova_1"
        assert "hashedPassword" not in registered

    def test_duplicate_signup(self, client, registered):
        same_email = client.post("/api/v1/auth/signup", json={**SIGNUP, "username": "other"})
        same_name = client.post("/api/v1/auth/signup", json={**SIGNUP, "email": "other@example.com"})

        assert same_email.status_code == 400
        assert same_email.json()["detail"] == "Email already registered"
        assert same_name.json()["detail"] == "Username already taken"

    def test_signup_validation(self, client):
        short_password = client.post("/api/v1/auth/signup", json={**SIGNUP, "password": "short"})
        long_name = client.post("/api/v1/auth/signup", json={**SIGNUP, "username": "x" * 21})

        assert short_password.status_code == 422
        assert long_name.status_code == 422

    def test_login_by_username_or_email(self, client, registered):
        by_name = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "correct-horse"})
        by_email = client.post("/api/v1/auth/login", data={"username": "nova@example.com", "password": "correct-horse"})
        wrong = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "wrong-horse"})

        assert by_name.status_code == 200
        assert by_email.json()["token_type"] == "bearer"
        assert wrong.status_code == 401

        token = by_name.json()["access_token"]
        validated = client.get("/api/v1/auth/validate-token", headers={"Authorization": f"Bearer {token}"})
        assert validated.json()["valid"] is True
        assert validated.json()["user_id"] == registered["id"]

    def test_bad_token(self, client):
        response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401



class TestLoginLockout:

    def test_locks_after_repeated_failures(self, client):
        form = {"username": "ghost", "password": "whatever-pass"}

        failures = [client.post("/api/v1/auth/login", data=form).status_code for _ in range(5)]
        locked = client.post("/api/v1/auth/login", data=form)

        assert failures == [401] * 5
        assert locked.status_code == 429
        assert 0 < int(locked.headers["Retry-After"]) <= 15 * 60
        assert locked.json()["detail"]["retryAfter"] == int(locked.headers["Retry-After"])

    def test_identifier_is_case_insensitive(self, client):
        for name in ["Ghost", "GHOST", "ghost", " ghost", "gHoSt"]:
            client.post("/api/v1/auth/login", data={"username": name, "password": "whatever-pass"})

        locked = client.post("/api/v1/auth/login", data={"username": "ghost", "password": "whatever-pass"})

        assert locked.status_code == 429

    def test_success_clears_failures(self, client, db):
        client.post("/api/v1/auth/signup", json=SIGNUP)
        wrong = {"username": "nova_1", "password": "wrong-horse"}
        for _ in range(4):
            client.post("/api/v1/auth/login", data=wrong)

        ok = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "correct-horse"})
        after = client.post("/api/v1/auth/login", data=wrong)

        assert ok.status_code == 200
        assert after.status_code == 401
        assert check_rate_limit(db, "nova_1").remaining_attempts == 4

    def test_lockout_ends_when_oldest_failure_expires(self, db):
        now = datetime(2026, 3, 10, 12, 0, 0)
        record_login_attempt(db, "nova", False, now=now - timedelta(minutes=16))
        for minutes in (10, 8, 6, 4):
            record_login_attempt(db, "nova", False, now=now - timedelta(minutes=minutes))

        assert check_rate_limit(db, "nova", now=now).allowed is True
        assert check_rate_limit(db, "nova", now=now).remaining_attempts == 1

        record_login_attempt(db, "nova", False, now=now - timedelta(minutes=2))
        status = check_rate_limit(db, "nova", now=now)

        assert status.allowed is False
        assert status.retry_after == 5 * 60
        assert check_rate_limit(db, "nova", now=now + timedelta(minutes=6)).allowed is True

    def test_successful_attempts_do_not_count(self, db):
        now = datetime(2026, 3, 10, 12, 0, 0)
        for _ in range(6):
            record_login_attempt(db, "nova", True, now=now)

        assert check_rate_limit(db, "nova", now=now).remaining_attempts == 5

    def test_purge_drops_day_old_attempts(self, db):
        now = datetime(2026, 3, 10, 12, 0, 0)
        record_login_attempt(db, "nova", False, now=now - timedelta(hours=25))
        record_login_attempt(db, "nova", False, now=now - timedelta(hours=1))

        assert purge_old_login_attempts(db, now=now) == 1
        assert db.query(LoginAttempt).count() == 1


class TestAccountTokens:

    @pytest.fixture
    def account(self, client):
        user_id = client.post("/api/v1/auth/signup", json=SIGNUP).json()["id"]
        return user_id

    def _token(self, db, user_id, kind):
        return db.query(VerificationToken).filter(
            VerificationToken.user_id == user_id, VerificationToken.type == kind
        ).one()

    def test_signup_issues_verification_token(self, client, db, account):
        token = self._token(db, account, "email_verification")

        assert len(token.token) == 64
        assert token.expires_at > datetime.utcnow() + timedelta(hours=23)

    def test_verify_email_once(self, client, db, account):
        token = self._token(db, account, "email_verification").token

        verified = client.get(f"/api/v1/auth/verify-email?token={token}")
        again = client.post("/api/v1/auth/verify-email", json={"token": token})
        me = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "correct-horse"})
        profile = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {me.json()['access_token']}"})

        assert verified.status_code == 200
        assert verified.json() == {"message": "Email verified successfully", "email": "nova@example.com"}
        assert again.status_code == 400
        assert profile.json()["isVerified"] is True

    def test_expired_and_wrong_kind_tokens_are_rejected(self, client, db, account):
        expired = create_email_verification_token(db, account, now=datetime.utcnow() - timedelta(hours=25)).token
        reset = create_password_reset_token(db, account).token

        assert client.post("/api/v1/auth/verify-email", json={"token": expired}).status_code == 400
        assert client.post("/api/v1/auth/verify-email", json={"token": reset}).status_code == 400
        assert db.query(VerificationToken).filter(VerificationToken.token == expired).count() == 0

    def test_login_requires_verification_when_enabled(self, client, db, account, monkeypatch):
        monkeypatch.setattr(settings, "REQUIRE_EMAIL_VERIFICATION", True)
        form = {"username": "nova_1", "password": "correct-horse"}

        blocked = client.post("/api/v1/auth/login", data=form)
        client.post("/api/v1/auth/verify-email", json={"token": self._token(db, account, "email_verification").token})
        allowed = client.post("/api/v1/auth/login", data=form)

        assert blocked.status_code == 403
        assert allowed.status_code == 200

    def test_forgot_password_answers_the_same_for_unknown_email(self, client, db, account):
        unknown = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
        known = client.post("/api/v1/auth/forgot-password", json={"email": "Nova@Example.com"})
        client.post("/api/v1/auth/forgot-password", json={"email": "nova@example.com"})

        assert unknown.status_code == known.status_code == 200
        assert unknown.json() == known.json()
        # a second request replaces the first token
        assert self._token(db, account, "password_reset").expires_at <= datetime.utcnow() + timedelta(hours=1)

    def test_forgot_password_is_rate_limited_per_client(self, client):
        for _ in range(5):
            client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})

        limited = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})

        assert limited.status_code == 429
        assert "Retry-After" in limited.headers

    def test_reset_password(self, client, db, account):
        client.post("/api/v1/auth/forgot-password", json={"email": "nova@example.com"})
        token = self._token(db, account, "password_reset").token

        reset = client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "battery-staple"})
        reused = client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "another-one"})
        old = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "correct-horse"})
        new = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "battery-staple"})

        assert reset.status_code == 200
        assert reused.status_code == 400
        assert old.status_code == 401
        assert new.status_code == 200

    def test_reset_lifts_lockout(self, client, db, account):
        for _ in range(5):
            client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "wrong-horse"})
        token = create_password_reset_token(db, account).token

        client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "battery-staple"})
        login = client.post("/api/v1/auth/login", data={"username": "nova_1", "password": "battery-staple"})

        assert login.status_code == 200

    def test_reset_rejects_bad_token_and_short_password(self, client):
        assert client.post("/api/v1/auth/reset-password", json={"token": "nope", "newPassword": "battery-staple"}).status_code == 400
        assert client.post("/api/v1/auth/reset-password", json={"token": "nope", "newPassword": "short"}).status_code == 422

class TestNotifications:

    @pytest.fixture
    def notify(self, db):
        def _notify(user, actor, kind=NotificationType.FOLLOW):
            return create_notification(db, NotificationCreate(
                user_id=user.id, actor_id=actor.id, type=kind, content=f"{actor.username} did a thing"
            ))
        return _notify

    def test_list_with_actor(self, client, make_user, notify):
        me = make_user("me")
        fan = make_user("fan")
        notify(me, fan)

        notifications = client.get("/api/v1/notifications", headers=auth_headers(me)).json()

        assert len(notifications) == 1
        assert notifications[0]["actor"]["username"] == "fan"
        assert notifications[0]["isRead"] is False

    def test_mark_read(self, client, make_user, notify):
        me = make_user("me")
        fan = make_user("fan")
        first = notify(me, fan)
        notify(me, fan, NotificationType.POST_REACTION)
        headers = auth_headers(me)

        single = client.put(f"/api/v1/notifications/{first.id}", headers=headers)
        unread = client.get("/api/v1/notifications?unread_only=true", headers=headers).json()
        everything = client.put("/api/v1/notifications/mark-all-read", headers=headers)

        assert single.json()["isRead"] is True
        assert len(unread) == 1
        assert everything.json()["count"] == 1

    def test_owner_only(self, client, make_user, notify):
        me = make_user("me")
        fan = make_user("fan")
        notification = notify(me, fan)
        url = f"/api/v1/notifications/{notification.id}"

        assert client.put(url, headers=auth_headers(fan)).status_code == 403
        assert client.delete(url, headers=auth_headers(fan)).status_code == 403
        assert client.delete(url, headers=auth_headers(me)).status_code == 200
        assert client.delete(url, headers=auth_headers(me)).status_code == 404


class TestMediaUploads:

    @pytest.fixture
    def storage(self):
        s3 = boto3.client(
            "s3",
            endpoint_url="https://account.r2.cloudflarestorage.com",
            aws_access_key_id="test-key",
            aws_secret_access_key="test-secret",
            region_name="auto",
        )
        return R2Storage(
            client=s3,
            bucket="media",
            public_url="https://media.example.com",
            endpoint="https://account.r2.cloudflarestorage.com",
        )

    def test_object_key_layout(self):
        key = build_object_key("user-1", "my photo (1).png", "post")

        assert re.fullmatch(r"posts/user-1/\d+-[0-9a-f]{8}-my_photo__1_.png", key)
        assert sanitize_file_name("../../etc/passwd") == ".._.._etc_passwd"

    def test_presigned_url(self, client, make_user, storage):
        me = make_user("me")
        app.dependency_overrides[get_storage] = lambda: storage

        response = client.post(
            "/api/v1/upload/presigned",
            json={"fileName": "avatar.png", "fileType": "image/png", "uploadType": "avatar"},
            headers=auth_headers(me),
        )
        body = response.json()

        assert response.status_code == 200
        assert body["key"].startswith(f"avatars/{me.id}/")
        assert body["fileUrl"] == f"https://media.example.com/{body['key']}"
        assert body["uploadUrl"].startswith("https://")
        assert "avatar.png" in body["uploadUrl"]

    def test_rejects_unknown_file_type(self, client, make_user, storage):
        me = make_user("me")
        app.dependency_overrides[get_storage] = lambda: storage

        response = client.post(
            "/api/v1/upload/presigned",
            json={"fileName": "notes.pdf", "fileType": "application/pdf", "uploadType": "post"},
            headers=auth_headers(me),
        )

        assert response.status_code == 400

    def test_unconfigured_storage(self, client, make_user):
        me = make_user("me")
        app.dependency_overrides[get_storage] = lambda: R2Storage(client=None, endpoint="")

        response = client.post(
            "/api/v1/upload/presigned",
            json={"fileName": "clip.mp4", "fileType": "video/mp4", "uploadType": "post"},
            headers=auth_headers(me),
        )

        assert response.status_code == 503

    def test_public_url_maps_back_to_key(self, storage):
        assert storage.extract_key("https://media.example.com/posts/u/1-a-b.png") == "posts/u/1-a-b.png"
        assert storage.extract_key("https://account.r2.cloudflarestorage.com/media/x.png") == "x.png"
        assert storage.extract_key("https://elsewhere.com/x.png") is None

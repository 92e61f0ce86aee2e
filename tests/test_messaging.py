"""
Tests for direct messages: conversations, message paging, read state and
message notifications.

Run with: pytest tests/test_messaging.py -v
"""

import pytest

from nexusnoir.modules.messaging.models.conversation import Conversation
from nexusnoir.modules.notifications.models.notification import Notification
from tests.conftest import auth_headers

URL = "/api/v1/conversations"


@pytest.fixture
def start(client):
    def _start(user, other):
        return client.post(URL, json={"participantId": other.id}, headers=auth_headers(user))
    return _start


@pytest.fixture
def send(client):
    def _send(user, conversation_id, content):
        return client.post(f"{URL}/{conversation_id}/messages", json={"content": content}, headers=auth_headers(user))
    return _send


class TestConversations:

    def test_create_then_reuse(self, db, make_user, start):
        alice = make_user("alice")
        bob = make_user("bob")

        created = start(alice, bob)
        reused = start(bob, alice)

        assert created.status_code == 201
        assert reused.status_code == 200
        assert created.json()["id"] == reused.json()["id"]
        assert created.json()["participant"]["username"] == "bob"
        assert reused.json()["participant"]["username"] == "alice"
        assert db.query(Conversation).count() == 1

    def test_rejects_self_and_unknown_user(self, client, make_user, start):
        alice = make_user("alice")

        with_self = start(alice, alice)
        unknown = client.post(URL, json={"participantId": "ghost"}, headers=auth_headers(alice))

        assert with_self.status_code == 400
        assert unknown.status_code == 404

    def test_list_orders_by_latest_message(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        carol = make_user("carol")
        with_bob = start(alice, bob).json()["id"]
        with_carol = start(alice, carol).json()["id"]

        send(carol, with_carol, "hey")
        send(bob, with_bob, "first")
        send(bob, with_bob, "second")

        conversations = client.get(URL, headers=auth_headers(alice)).json()

        assert [c["id"] for c in conversations] == [with_bob, with_carol]
        assert conversations[0]["lastMessage"]["content"] == "second"
        assert [c["unreadCount"] for c in conversations] == [2, 1]

    def test_list_only_shows_own_conversations(self, client, make_user, start):
        alice = make_user("alice")
        bob = make_user("bob")
        eve = make_user("eve")
        start(alice, bob)

        assert client.get(URL, headers=auth_headers(eve)).json() == []


class TestMessages:

    def test_send_and_read_back_in_order(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]

        sent = send(alice, conversation_id, "hello")
        send(bob, conversation_id, "hi there")
        page = client.get(f"{URL}/{conversation_id}/messages", headers=auth_headers(alice)).json()

        assert sent.status_code == 201
        assert sent.json()["senderId"] == alice.id
        assert [m["content"] for m in page["messages"]] == ["hello", "hi there"]
        assert page["nextCursor"] is None

    def test_paging_walks_back_in_time(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]
        for i in range(5):
            send(alice, conversation_id, f"m{i}")
        url = f"{URL}/{conversation_id}/messages"

        newest = client.get(f"{url}?limit=2", headers=auth_headers(bob)).json()
        older = client.get(f"{url}?limit=2&cursor={newest['nextCursor']}", headers=auth_headers(bob)).json()
        oldest = client.get(f"{url}?limit=2&cursor={older['nextCursor']}", headers=auth_headers(bob)).json()

        assert [m["content"] for m in newest["messages"]] == ["m3", "m4"]
        assert [m["content"] for m in older["messages"]] == ["m1", "m2"]
        assert [m["content"] for m in oldest["messages"]] == ["m0"]
        assert oldest["nextCursor"] is None

    def test_reading_marks_other_side_read(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]
        send(alice, conversation_id, "ping")
        send(bob, conversation_id, "pong")

        client.get(f"{URL}/{conversation_id}/messages", headers=auth_headers(bob))

        bob_view = client.get(URL, headers=auth_headers(bob)).json()[0]
        alice_view = client.get(URL, headers=auth_headers(alice)).json()[0]
        assert bob_view["unreadCount"] == 0
        assert alice_view["unreadCount"] == 1

    def test_mark_read_endpoint(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]
        send(alice, conversation_id, "one")
        send(alice, conversation_id, "two")

        marked = client.put(f"{URL}/{conversation_id}/read", headers=auth_headers(bob))
        again = client.put(f"{URL}/{conversation_id}/read", headers=auth_headers(bob))

        assert marked.json() == {"count": 2}
        assert again.json() == {"count": 0}

    def test_outsiders_cannot_read_or_write(self, client, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        eve = make_user("eve")
        conversation_id = start(alice, bob).json()["id"]
        send(alice, conversation_id, "secret")

        assert client.get(f"{URL}/{conversation_id}/messages", headers=auth_headers(eve)).status_code == 404
        assert send(eve, conversation_id, "let me in").status_code == 404
        assert client.put(f"{URL}/{conversation_id}/read", headers=auth_headers(eve)).status_code == 404

    def test_content_limits(self, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]

        assert send(alice, conversation_id, "").status_code == 422
        assert send(alice, conversation_id, "   ").status_code == 422
        assert send(alice, conversation_id, "x" * 5001).status_code == 422
        assert send(alice, conversation_id, "x" * 5000).status_code == 201

    def test_recipient_is_notified_with_preview(self, db, make_user, start, send):
        alice = make_user("alice")
        bob = make_user("bob")
        conversation_id = start(alice, bob).json()["id"]

        send(alice, conversation_id, "y" * 150)

        notification = db.query(Notification).filter(Notification.type == "message").one()
        assert notification.user_id == bob.id
        assert notification.actor_id == alice.id
        assert notification.related_id == conversation_id
        assert notification.content == f"alice: {'y' * 100}..."

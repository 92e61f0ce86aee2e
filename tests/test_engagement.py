"""
Tests for reactions, saves, reposts and comments, and the post counters
they maintain.

Run with: pytest tests/test_engagement.py -v
"""

from nexusnoir.modules.notifications.models.notification import Notification
from nexusnoir.modules.posts.reactions.services.reaction import (
    get_reaction_counts_for_posts, get_user_reaction_types
)
from nexusnoir.modules.posts.comments.api import router as comments_router
from tests.conftest import auth_headers


class TestReactions:

    def test_each_kind_counts_once(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "react")
        url = f"/api/v1/posts/{post.id}/reactions"
        headers = auth_headers(fan)

        client.post(url, json={"type": "love"}, headers=headers)
        client.post(url, json={"type": "love", "variant": "sparkle"}, headers=headers)
        client.post(url, json={"type": "shine"}, headers=headers)

        db.refresh(post)
        counts = client.get(f"{url}/counts", headers=headers).json()
        assert post.like_count == 2
        assert counts == {"love": 1, "applaud": 0, "salute": 0, "shine": 1}

    def test_variant_is_updated_in_place(self, client, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "react")
        url = f"/api/v1/posts/{post.id}/reactions"

        first = client.post(url, json={"type": "applaud"}, headers=auth_headers(fan)).json()
        second = client.post(url, json={"type": "applaud", "variant": "gold"}, headers=auth_headers(fan)).json()

        assert first["id"] == second["id"]
        assert second["variant"] == "gold"

    def test_delete_reaction_decrements(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "react")
        url = f"/api/v1/posts/{post.id}/reactions"
        client.post(url, json={"type": "salute"}, headers=auth_headers(fan))

        response = client.request("DELETE", url, json={"type": "salute"}, headers=auth_headers(fan))
        missing = client.request("DELETE", url, json={"type": "salute"}, headers=auth_headers(fan))

        db.refresh(post)
        assert response.status_code == 200
        assert missing.status_code == 404
        assert post.like_count == 0

    def test_unknown_kind_and_missing_post(self, client, make_user, make_post):
        fan = make_user("fan")
        post = make_post(fan, "react")

        bad_kind = client.post(f"/api/v1/posts/{post.id}/reactions", json={"type": "like"}, headers=auth_headers(fan))
        no_post = client.post("/api/v1/posts/ghost/reactions", json={"type": "love"}, headers=auth_headers(fan))

        assert bad_kind.status_code == 422
        assert no_post.status_code == 404

    def test_author_is_notified_but_not_for_own_reaction(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "react")
        url = f"/api/v1/posts/{post.id}/reactions"

        client.post(url, json={"type": "love"}, headers=auth_headers(fan))
        client.post(url, json={"type": "love"}, headers=auth_headers(author))

        notifications = db.query(Notification).filter(Notification.type == "post_reaction").all()
        assert [(n.user_id, n.actor_id) for n in notifications] == [(author.id, fan.id)]

    def test_batch_lookups(self, db, make_user, make_post, react):
        viewer = make_user("viewer")
        other = make_user("other")
        first = make_post(other, "one")
        second = make_post(other, "two")
        react(viewer, first, "shine")
        react(viewer, first, "applaud")
        react(other, second, "love")

        kinds = get_user_reaction_types(db, viewer.id, [first.id, second.id])
        counts = get_reaction_counts_for_posts(db, [first.id, second.id])

        assert kinds == {first.id: ["applaud", "shine"]}
        assert counts[second.id].love == 1
        assert counts[first.id].love == 0
        assert get_user_reaction_types(db, viewer.id, []) == {}


class TestSavesAndReposts:

    def test_save_and_unsave(self, client, db, make_user, make_post):
        author = make_user("author")
        reader = make_user("reader")
        post = make_post(author, "keep")
        url = f"/api/v1/posts/{post.id}/save"
        headers = auth_headers(reader)

        assert client.post(url, headers=headers).status_code == 201
        assert client.post(url, headers=headers).status_code == 400
        db.refresh(post)
        assert post.save_count == 1

        assert client.delete(url, headers=headers).status_code == 200
        assert client.delete(url, headers=headers).status_code == 404
        db.refresh(post)
        assert post.save_count == 0

    def test_repost_with_comment(self, client, db, make_user, make_post):
        author = make_user("author")
        sharer = make_user("sharer")
        post = make_post(author, "share me")
        url = f"/api/v1/posts/{post.id}/repost"
        headers = auth_headers(sharer)

        created = client.post(url, json={"comment": "worth a read"}, headers=headers)
        duplicate = client.post(url, headers=headers)
        db.refresh(post)

        assert created.status_code == 201
        assert created.json()["comment"] == "worth a read"
        assert duplicate.status_code == 400
        assert post.repost_count == 1

        assert client.delete(url, headers=headers).status_code == 200
        db.refresh(post)
        assert post.repost_count == 0


class TestComments:

    def test_comment_thread(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "discuss")
        url = f"/api/v1/posts/{post.id}/comments"

        top = client.post(url, json={"content": "first!"}, headers=auth_headers(fan)).json()
        reply = client.post(url, json={"content": "thanks", "parentId": top["id"]}, headers=auth_headers(author))
        nested = client.post(url, json={"content": "deeper", "parentId": reply.json()["id"]}, headers=auth_headers(fan))

        thread = client.get(url, headers=auth_headers(fan)).json()
        db.refresh(post)

        assert reply.status_code == 201
        assert nested.status_code == 400
        assert len(thread) == 1
        assert thread[0]["author"]["username"] == "fan"
        assert [r["content"] for r in thread[0]["replies"]] == ["thanks"]
        assert post.comment_count == 2

    def test_comment_notifies_post_author(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "discuss")

        client.post(f"/api/v1/posts/{post.id}/comments", json={"content": "nice"}, headers=auth_headers(fan))

        notification = db.query(Notification).filter(Notification.type == "post_comment").one()
        assert notification.user_id == author.id

    def test_deleting_comment_removes_replies(self, client, db, make_user, make_post):
        author = make_user("author")
        fan = make_user("fan")
        post = make_post(author, "discuss")
        url = f"/api/v1/posts/{post.id}/comments"
        top = client.post(url, json={"content": "first"}, headers=auth_headers(fan)).json()
        client.post(url, json={"content": "reply", "parentId": top["id"]}, headers=auth_headers(author))

        forbidden = client.delete(f"{url}/{top['id']}", headers=auth_headers(author))
        deleted = client.delete(f"{url}/{top['id']}", headers=auth_headers(fan))
        db.refresh(post)

        assert forbidden.status_code == 403
        assert deleted.status_code == 204
        assert client.get(url, headers=auth_headers(fan)).json() == []
        assert post.comment_count == 0

    def test_router_logs_under_its_module_name(self):
        assert comments_router.logger.name == "nexusnoir.modules.posts.comments.api.router"


class TestHiddenPosts:
    """Posts the viewer may not see behave as missing for every interaction"""

    def _statuses(self, client, post, user):
        headers = auth_headers(user)
        base = f"/api/v1/posts/{post.id}"
        return [
            client.get(f"{base}/comments", headers=headers).status_code,
            client.post(f"{base}/comments", json={"content": "hi"}, headers=headers).status_code,
            client.post(f"{base}/reactions", json={"type": "love"}, headers=headers).status_code,
            client.get(f"{base}/reactions/counts", headers=headers).status_code,
            client.post(f"{base}/save", headers=headers).status_code,
            client.post(f"{base}/repost", headers=headers).status_code,
        ]

    def test_private_post_is_closed_to_others(self, client, db, make_user, make_post, make_friendship):
        author = make_user("author")
        friend = make_user("friend")
        make_friendship(author, friend)
        post = make_post(author, "diary", "private")

        assert self._statuses(client, post, friend) == [404] * 6

        db.refresh(post)
        assert (post.like_count, post.comment_count, post.save_count, post.repost_count) == (0, 0, 0, 0)
        assert db.query(Notification).count() == 0

    def test_friends_only_post_is_closed_to_followers(self, client, make_user, make_post, make_follow):
        author = make_user("author")
        follower = make_user("follower")
        make_follow(follower, author)
        post = make_post(author, "inner circle", "friends")

        assert self._statuses(client, post, follower) == [404] * 6

    def test_friends_and_author_can_interact(self, client, make_user, make_post, make_friendship):
        author = make_user("author")
        friend = make_user("friend")
        make_friendship(friend, author)
        friends_post = make_post(author, "inner circle", "friends")
        private_post = make_post(author, "diary", "private")

        assert self._statuses(client, friends_post, friend) == [200, 201, 200, 200, 201, 201]
        assert self._statuses(client, private_post, author) == [200, 201, 200, 200, 201, 201]

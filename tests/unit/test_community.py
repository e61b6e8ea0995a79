"""
Unit tests for the community feed.
"""

import pytest

from src.errors import PermissionDenied, RecordNotFound
from src.models.records import User
from src.services.community import CommunityService
from src.utils.persistence import POSTS, REPORTS, USERS


@pytest.fixture
def community(store, learner, admin):
    store.add(USERS, User(id="user-2", email="other@example.com", password="x", name="Other").to_dict())
    return CommunityService(store)


class TestPosts:
    def test_create_post_trims(self, community):
        post = community.create_post("user-1", "  Ciao a tutti  ")
        assert post["content"] == "Ciao a tutti"
        assert post["user_name"] == "Learner"
        assert post["likes_count"] == 0

    def test_empty_post_rejected(self, community):
        with pytest.raises(ValueError):
            community.create_post("user-1", "   ")

    def test_unknown_author(self, community):
        with pytest.raises(RecordNotFound):
            community.create_post("ghost", "ciao")

    def test_list_newest_first_with_comments(self, community, store):
        first = community.create_post("user-1", "primo")
        second = community.create_post("user-2", "secondo")
        store.update(POSTS, first["id"], {"created_at": "2024-01-01T00:00:00+00:00"})
        community.add_comment("user-2", first["id"], "bravo")

        posts = community.list_posts()
        assert [p["id"] for p in posts] == [second["id"], first["id"]]
        assert [c["content"] for c in posts[1]["comments"]] == ["bravo"]

    def test_author_can_delete(self, community):
        post = community.create_post("user-1", "ciao")
        community.delete_post("user-1", post["id"])
        assert community.list_posts() == []

    def test_admin_can_delete(self, community):
        post = community.create_post("user-1", "ciao")
        community.delete_post("admin-1", post["id"])
        assert community.list_posts() == []

    def test_other_user_cannot_delete(self, community):
        post = community.create_post("user-1", "ciao")
        with pytest.raises(PermissionDenied):
            community.delete_post("user-2", post["id"])

    def test_deleted_post_cannot_be_commented(self, community):
        post = community.create_post("user-1", "ciao")
        community.delete_post("user-1", post["id"])
        with pytest.raises(RecordNotFound):
            community.add_comment("user-2", post["id"], "ehi")


class TestCommentsAndLikes:
    def test_comment_bumps_count_and_notifies(self, community, store):
        post = community.create_post("user-1", "ciao")
        community.add_comment("user-2", post["id"], "ciao a te")
        assert store.get(POSTS, post["id"])["comments_count"] == 1

        notes = community.notifications("user-1")
        assert len(notes) == 1
        assert notes[0]["type"] == "comment"
        assert notes[0]["related_id"] == post["id"]

    def test_own_comment_does_not_notify(self, community):
        post = community.create_post("user-1", "ciao")
        community.add_comment("user-1", post["id"], "aggiungo")
        assert community.notifications("user-1") == []

    def test_empty_comment_rejected(self, community):
        post = community.create_post("user-1", "ciao")
        with pytest.raises(ValueError):
            community.add_comment("user-2", post["id"], "")

    def test_toggle_like(self, community, store):
        post = community.create_post("user-1", "ciao")
        assert community.toggle_like("user-2", post["id"]) is True
        assert store.get(POSTS, post["id"])["likes_count"] == 1
        assert community.toggle_like("user-2", post["id"]) is False
        assert store.get(POSTS, post["id"])["likes_count"] == 0

    def test_like_notifies_once(self, community):
        post = community.create_post("user-1", "ciao")
        community.toggle_like("user-2", post["id"])
        community.toggle_like("user-2", post["id"])
        likes = [n for n in community.notifications("user-1") if n["type"] == "like"]
        assert len(likes) == 1


class TestReportsAndNotifications:
    def test_report(self, community, store):
        post = community.create_post("user-1", "spam")
        report = community.report("user-2", "post", post["id"], " spam ")
        assert report["status"] == "pending"
        assert report["reason"] == "spam"
        assert store.count(REPORTS) == 1

    def test_report_unknown_target(self, community):
        with pytest.raises(ValueError):
            community.report("user-2", "lesson", "x", "why")

    def test_report_needs_reason(self, community):
        with pytest.raises(ValueError):
            community.report("user-2", "user", "user-1", "")

    def test_mark_read(self, community):
        post = community.create_post("user-1", "ciao")
        community.add_comment("user-2", post["id"], "uno")
        community.add_comment("user-2", post["id"], "due")
        assert len(community.notifications("user-1", unread_only=True)) == 2

        first = community.notifications("user-1")[0]
        assert community.mark_read("user-1", first["id"]) == 1
        assert len(community.notifications("user-1", unread_only=True)) == 1
        assert community.mark_read("user-1") == 1
        assert community.notifications("user-1", unread_only=True) == []

    def test_mark_read_ignores_other_users(self, community):
        post = community.create_post("user-1", "ciao")
        community.add_comment("user-2", post["id"], "uno")
        note = community.notifications("user-1")[0]
        assert community.mark_read("user-2", note["id"]) == 0

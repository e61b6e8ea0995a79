"""
Community feed: posts, comments, likes, reports and notifications.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

try:
    from ..errors import PermissionDenied, RecordNotFound
    from ..models.content import utc_now
    from ..models.records import (
        REPORT_TARGETS,
        Like,
        Notification,
        Post,
        PostComment,
        Report,
    )
    from ..utils.persistence import (
        COMMENTS,
        LIKES,
        NOTIFICATIONS,
        POSTS,
        REPORTS,
        USERS,
        RecordStore,
    )
except ImportError:
    from src.errors import PermissionDenied, RecordNotFound
    from src.models.content import utc_now
    from src.models.records import (
        REPORT_TARGETS,
        Like,
        Notification,
        Post,
        PostComment,
        Report,
    )
    from src.utils.persistence import (
        COMMENTS,
        LIKES,
        NOTIFICATIONS,
        POSTS,
        REPORTS,
        USERS,
        RecordStore,
    )


logger = logging.getLogger(__name__)


class CommunityService:
    """Feed operations acting on behalf of one user at a time."""

    def __init__(self, store: RecordStore):
        self.store = store

    # ---------- posts ----------

    def create_post(self, user_id: str, content: str) -> Dict[str, Any]:
        content = (content or "").strip()
        if not content:
            raise ValueError("Post content cannot be empty")
        user = self._user(user_id)
        post = Post(user_id=user_id, user_name=user["name"], content=content)
        return self.store.add(POSTS, post.to_dict())

    def list_posts(self) -> List[Dict[str, Any]]:
        """Visible posts, newest first, each with its visible comments."""
        posts = self.store.find(POSTS, is_deleted=False)
        posts.sort(key=lambda p: p["created_at"], reverse=True)
        for post in posts:
            post["comments"] = self.list_comments(post["id"])
        return posts

    def delete_post(self, user_id: str, post_id: str) -> Dict[str, Any]:
        """
        Soft-delete a post. Allowed for the author and for admins.

        Raises:
            PermissionDenied: Someone else's post
        """
        post = self._post(post_id)
        user = self._user(user_id)
        if post["user_id"] != user_id and user.get("role") != "admin":
            raise PermissionDenied("Only the author or an admin can delete this post")
        return self.store.update(POSTS, post_id, {"is_deleted": True, "updated_at": utc_now()})

    # ---------- comments ----------

    def add_comment(self, user_id: str, post_id: str, content: str) -> Dict[str, Any]:
        """Comment on a post, bump its counter and notify the author."""
        content = (content or "").strip()
        if not content:
            raise ValueError("Comment cannot be empty")
        post = self._post(post_id)
        user = self._user(user_id)

        comment = self.store.add(
            COMMENTS,
            PostComment(post_id=post_id, user_id=user_id, user_name=user["name"], content=content).to_dict(),
        )
        self.store.update(POSTS, post_id, {"comments_count": post.get("comments_count", 0) + 1})
        if post["user_id"] != user_id:
            self._notify(post["user_id"], "comment", "New comment", f"{user['name']} commented on your post", post_id)
        return comment

    def list_comments(self, post_id: str) -> List[Dict[str, Any]]:
        comments = self.store.find(COMMENTS, post_id=post_id, is_deleted=False)
        return sorted(comments, key=lambda c: c["created_at"])

    # ---------- likes ----------

    def toggle_like(self, user_id: str, post_id: str) -> bool:
        """
        Like or unlike a post.

        Returns:
            True if the post is now liked by the user
        """
        post = self._post(post_id)
        existing = self.store.first(LIKES, post_id=post_id, user_id=user_id)
        if existing:
            self.store.delete(LIKES, existing["id"])
            self.store.update(POSTS, post_id, {"likes_count": max(0, post.get("likes_count", 0) - 1)})
            return False

        self.store.add(LIKES, Like(post_id=post_id, user_id=user_id).to_dict())
        self.store.update(POSTS, post_id, {"likes_count": post.get("likes_count", 0) + 1})
        if post["user_id"] != user_id:
            user = self._user(user_id)
            self._notify(post["user_id"], "like", "New like", f"{user['name']} liked your post", post_id)
        return True

    # ---------- reports ----------

    def report(self, reporter_id: str, target_type: str, target_id: str, reason: str) -> Dict[str, Any]:
        if target_type not in REPORT_TARGETS:
            raise ValueError(f"Unknown report target: {target_type}")
        if not (reason or "").strip():
            raise ValueError("Report reason cannot be empty")
        report = Report(
            reporter_id=reporter_id,
            target_type=target_type,
            target_id=target_id,
            reason=reason.strip(),
        )
        logger.info("Report filed by %s on %s %s", reporter_id, target_type, target_id)
        return self.store.add(REPORTS, report.to_dict())

    # ---------- notifications ----------

    def notifications(self, user_id: str, unread_only: bool = False) -> List[Dict[str, Any]]:
        criteria = {"user_id": user_id}
        if unread_only:
            criteria["read"] = False
        items = self.store.find(NOTIFICATIONS, **criteria)
        return sorted(items, key=lambda n: n["created_at"], reverse=True)

    def mark_read(self, user_id: str, notification_id: Optional[str] = None) -> int:
        """Mark one (or, without an id, every) notification of the user as read."""
        if notification_id:
            targets = [n for n in self.notifications(user_id) if n["id"] == notification_id]
        else:
            targets = self.notifications(user_id, unread_only=True)
        for item in targets:
            self.store.update(NOTIFICATIONS, item["id"], {"read": True})
        return len(targets)

    # ---------- internals ----------

    def _notify(self, user_id: str, kind: str, title: str, message: str, related_id: str) -> None:
        note = Notification(user_id=user_id, type=kind, title=title, message=message, related_id=related_id)
        self.store.add(NOTIFICATIONS, note.to_dict())

    def _post(self, post_id: str) -> Dict[str, Any]:
        post = self.store.get(POSTS, post_id)
        if post is None or post.get("is_deleted"):
            raise RecordNotFound(POSTS, post_id)
        return post

    def _user(self, user_id: str) -> Dict[str, Any]:
        user = self.store.get(USERS, user_id)
        if user is None:
            raise RecordNotFound(USERS, user_id)
        return user

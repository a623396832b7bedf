"""Comments and one level of replies on posts."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from scooterbooter.core.errors import Forbidden, NotFound, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.db.time import now_ms
from scooterbooter.models.content import TEXT_MAX, Comment
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.moderation import ModerationGate
from scooterbooter.services.notifications import NotificationLedger
from scooterbooter.services.posts import PostService, forget_mentions, notify_mentions
from scooterbooter.services.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

COMMENT_PAGE = 50


class CommentService:
    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        notifications: NotificationLedger,
        moderation: ModerationGate,
        visibility: VisibilityPolicy,
        posts: PostService,
    ) -> None:
        self.store = store
        self.identity = identity
        self.notifications = notifications
        self.moderation = moderation
        self.visibility = visibility
        self.posts = posts

    async def all_for_post(self, post_id: str, *, limit: int | None = None) -> list[Comment]:
        """Comments on a post, oldest first."""
        items = await self.store.query(keys.comments_partition(post_id), sort_prefix="C#", limit=limit)
        return [Comment.from_item(item) for item in items]

    async def find(self, post_id: str, comment_id: str) -> Comment | None:
        for comment in await self.all_for_post(post_id):
            if comment.id == comment_id:
                return comment
        return None

    async def find_by_id(self, comment_id: str) -> Comment | None:
        items = await self.store.query(keys.comment_id_index(comment_id), index="gsi2", limit=1)
        return Comment.from_item(items[0]) if items else None

    async def list_for_post(self, post_id: str) -> list[dict[str, Any]]:
        """Oldest-first page of comments with the authors' current avatars."""
        comments = await self.all_for_post(post_id, limit=COMMENT_PAGE)
        try:
            authors = await self.identity.resolve_summaries(c.user_id for c in comments)
        except Exception as exc:  # noqa: BLE001 - avatars are optional
            logger.error("Failed to fetch comment avatars for %s: %s", post_id, exc)
            authors = {}
        items = []
        for comment in comments:
            body = comment.public(userHandle=comment.user_handle or "unknown")
            author = authors.get(comment.user_id)
            if author is not None and author.avatar_key:
                body["avatarKey"] = author.avatar_key
            items.append(body)
        return items

    async def create(
        self,
        user_id: str,
        post_id: str,
        text: str | None,
        *,
        parent_comment_id: str | None = None,
    ) -> Comment:
        """Add a comment or a reply and notify the affected users.

        A reply notifies the parent comment's author; a top-level comment
        notifies the post owner. Mentioned users are notified either way.
        """
        body = (text or "").strip()[:TEXT_MAX]
        if not body:
            raise ValidationError("text required")

        post = await self.posts.require(post_id)
        await self.visibility.require_comment(user_id, post)

        parent = None
        if parent_comment_id:
            parent = await self.find(post_id, parent_comment_id)
            if parent is None:
                raise NotFound("Parent comment not found")
            if parent.parent_comment_id:
                # Replies nest one level; answering a reply threads under its root.
                root = await self.find(post_id, parent.parent_comment_id)
                if root is not None:
                    parent = root
                parent_comment_id = parent.parent_comment_id or parent.id

        await self.moderation.enforce(body)

        handle = await self.identity.handle_for(user_id)
        comment = Comment(
            id=str(uuid.uuid4()),
            post_id=post_id,
            user_id=user_id,
            user_handle=handle or "unknown",
            text=body,
            parent_comment_id=parent_comment_id,
        )
        await self.store.put(comment.to_item(), if_not_exists=True)

        if parent is not None:
            if parent.user_id != user_id:
                await attempt(
                    "reply-notify",
                    self.notifications.create(
                        parent.user_id, "reply", user_id, post_id, "replied to your comment", comment_id=comment.id
                    ),
                )
        elif post.user_id != user_id:
            await attempt(
                "comment-notify",
                self.notifications.create(
                    post.user_id, "comment", user_id, post_id, "commented on your post", comment_id=comment.id
                ),
            )
        await attempt(
            "comment-mentions",
            notify_mentions(
                self.identity,
                self.notifications,
                body,
                user_id,
                post_id,
                "mentioned you in a comment",
                comment_id=comment.id,
            ),
        )
        return comment

    async def update(self, user_id: str, post_id: str, comment_id: str, text: str | None) -> Comment:
        body = (text or "").strip()[:TEXT_MAX]
        if not comment_id or not body:
            raise ValidationError("id and text required")
        comment = await self.find(post_id, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.user_id != user_id:
            raise Forbidden()
        await self.moderation.enforce(body)
        item = await self.store.update(comment.key(), {"text": body, "updatedAt": now_ms()})
        return Comment.from_item(item)

    async def delete(self, user_id: str, post_id: str, comment_id: str, *, moderator: bool = False) -> int:
        """Delete a comment, its direct replies and the notifications they created.

        Returns the number of comments removed.
        """
        if not comment_id:
            raise ValidationError("id required")
        comments = await self.all_for_post(post_id)
        comment = next((c for c in comments if c.id == comment_id), None)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.user_id != user_id and not moderator:
            raise Forbidden()

        removed = 0
        for reply in (c for c in comments if c.parent_comment_id == comment_id):
            outcome = await attempt("reply-delete", self.store.delete(reply.key()))
            if outcome.ok and outcome.value:
                removed += 1
            await attempt(
                "reply-mentions-cleanup",
                forget_mentions(
                    self.identity, self.notifications, reply.text, reply.user_id, post_id, comment_id=reply.id
                ),
            )
            await attempt("reply-notify-cleanup", self._forget_origin(reply, comments, post_id))

        if await self.store.delete(comment.key(), if_exists=True):
            removed += 1

        await attempt("comment-notify-cleanup", self._forget_origin(comment, comments, post_id))
        await attempt(
            "comment-mentions-cleanup",
            forget_mentions(
                self.identity, self.notifications, comment.text, comment.user_id, post_id, comment_id=comment.id
            ),
        )
        return removed

    async def _forget_origin(self, comment: Comment, siblings: list[Comment], post_id: str) -> None:
        """Remove the reply/comment notification ``comment`` produced."""
        if comment.parent_comment_id:
            parent = next((c for c in siblings if c.id == comment.parent_comment_id), None)
            if parent is not None and parent.user_id != comment.user_id:
                await self.notifications.delete_matching(
                    parent.user_id, "reply", comment.user_id, post_id, comment.id
                )
            return
        post = await self.posts.find(post_id)
        if post is not None and post.user_id != comment.user_id:
            await self.notifications.delete_matching(post.user_id, "comment", comment.user_id, post_id, comment.id)

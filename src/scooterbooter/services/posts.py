"""Post lifecycle: create, read, edit and cascading delete."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from scooterbooter.core.errors import Forbidden, NotFound, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.db.time import now_ms
from scooterbooter.models.content import TEXT_MAX, Comment, Post, PostImage, extract_mentions
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.media import MediaService
from scooterbooter.services.moderation import ModerationGate
from scooterbooter.services.notifications import NotificationLedger
from scooterbooter.services.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)


async def notify_mentions(
    identity: IdentityResolver,
    notifications: NotificationLedger,
    text: str,
    author_id: str,
    post_id: str,
    message: str,
    *,
    comment_id: str | None = None,
) -> int:
    """Send a ``mention`` notification to every other user mentioned in ``text``.

    Mentions made in a comment carry ``comment_id`` so that removing the
    comment only drops its own notifications.
    """
    sent = 0
    for handle in extract_mentions(text):
        target_id = await identity.find_user_id(handle)
        if target_id and target_id != author_id:
            if await notifications.create(
                target_id, "mention", author_id, post_id, message, comment_id=comment_id
            ):
                sent += 1
    return sent


async def forget_mentions(
    identity: IdentityResolver,
    notifications: NotificationLedger,
    text: str,
    author_id: str,
    post_id: str,
    *,
    comment_id: str | None = None,
) -> None:
    for handle in extract_mentions(text):
        target_id = await identity.find_user_id(handle)
        if target_id and target_id != author_id:
            await notifications.delete_matching(target_id, "mention", author_id, post_id, comment_id)


class PostService:
    """Author-owned posts with moderation on every write."""

    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        notifications: NotificationLedger,
        moderation: ModerationGate,
        visibility: VisibilityPolicy,
        media: MediaService,
    ) -> None:
        self.store = store
        self.identity = identity
        self.notifications = notifications
        self.moderation = moderation
        self.visibility = visibility
        self.media = media

    async def find(self, post_id: str) -> Post | None:
        if not post_id:
            return None
        items = await self.store.query(keys.post_id_index(post_id), index="gsi2", limit=1)
        return Post.from_item(items[0]) if items else None

    async def require(self, post_id: str) -> Post:
        post = await self.find(post_id)
        if post is None:
            raise NotFound("Not found")
        return post

    async def list_by_user(self, user_id: str, *, limit: int | None = None) -> list[Post]:
        items = await self.store.query(
            keys.posts_partition(user_id), sort_prefix="POST#", descending=True, limit=limit
        )
        return [Post.from_item(item) for item in items]

    async def create(
        self,
        user_id: str,
        *,
        text: str | None = None,
        image_key: str | None = None,
        image_aspect_ratio: float | None = None,
        images: list[PostImage] | None = None,
        fallback_name: str | None = None,
    ) -> Post:
        """Moderate and store a post, then notify mentioned users.

        ``images`` takes precedence over the legacy single ``image_key``.
        """
        body = (text or "")[:TEXT_MAX]
        gallery = [
            image.model_copy(update={"order": index if image.order is None else image.order})
            for index, image in enumerate(images or [])
        ]
        if not body.strip() and not image_key and not gallery:
            raise ValidationError("Post needs text or an image")

        await self.moderation.enforce(body, image_key or (gallery[0].key if gallery else None))

        user = await self.identity.get_user(user_id)
        post = Post(
            id=str(uuid.uuid4()),
            user_id=user_id,
            handle=user.handle if user else None,
            full_name=(user.full_name if user else None) or fallback_name,
            avatar_key=user.avatar_key if user else None,
            text=body,
            images=gallery or None,
            image_key=None if gallery else image_key,
            image_aspect_ratio=None if gallery else image_aspect_ratio,
        )
        await self.store.put(post.to_item(), if_not_exists=True)
        logger.info("User %s created post %s", user_id, post.id)

        await attempt(
            "post-mentions",
            notify_mentions(self.identity, self.notifications, body, user_id, post.id, "mentioned you in a post"),
        )
        return post

    async def get_for_viewer(self, viewer_id: str, post_id: str) -> dict[str, Any]:
        """Return one post with the author's current handle and avatar."""
        post = await self.require(post_id)
        if not await self.visibility.can_view_post(viewer_id, post):
            raise Forbidden("This account is private")
        try:
            summary = (await self.identity.resolve_summaries([post.user_id])).get(post.user_id)
        except Exception as exc:  # noqa: BLE001 - keep the snapshot
            logger.warning("Author hydration failed for post %s: %s", post_id, exc)
            summary = None
        if summary is not None:
            post.handle = summary.handle or post.handle
            post.avatar_key = summary.avatar_key or post.avatar_key
        return post.public()

    async def update(
        self,
        user_id: str,
        post_id: str,
        *,
        text: str | None = None,
        image_key: str | None = None,
        delete_image: bool = False,
    ) -> Post:
        post = await self.require(post_id)
        if post.user_id != user_id:
            raise Forbidden()

        changes: dict[str, Any] = {}
        remove: list[str] = []
        if text is not None:
            changes["text"] = text[:TEXT_MAX]
        if image_key is not None:
            changes["imageKey"] = image_key
        elif delete_image:
            remove.extend(["imageKey", "imageAspectRatio"])
        if not changes and not remove:
            return post

        await self.moderation.enforce(changes.get("text"), changes.get("imageKey"))
        previous_image = post.image_key if ("imageKey" in changes or remove) else None
        changes["updatedAt"] = now_ms()
        item = await self.store.update(
            post.key(),
            changes,
            remove=remove,
            condition=lambda current: current.get("userId") == user_id,
        )
        if previous_image and previous_image != changes.get("imageKey"):
            await attempt("post-image-cleanup", self.media.discard(previous_image))
        return Post.from_item(item)

    async def delete(self, user_id: str, post_id: str, *, moderator: bool = False) -> Post:
        """Delete a post and everything derived from it.

        Only the author may delete, unless ``moderator`` is set. Everything
        after the post row itself is best effort.
        """
        post = await self.require(post_id)
        if post.user_id != user_id and not moderator:
            raise Forbidden()
        await self.store.delete(post.key())
        logger.info("Post %s deleted by %s", post_id, user_id)
        await self.purge_derived(post)
        return post

    async def purge_derived(self, post: Post) -> None:
        comment_items = await self._best_effort_query(keys.comments_partition(post.id))
        commenters = {Comment.from_item(item).user_id for item in comment_items}
        for item in comment_items:
            await attempt("post-comment-delete", self.store.delete(keys.Key(item["pk"], item["sk"])))
        for item in await self._best_effort_query(keys.reactions_partition(post.id)):
            await attempt("post-reaction-delete", self.store.delete(keys.Key(item["pk"], item["sk"])))
        await attempt("post-notifications", self.notifications.delete_for_content(post.user_id, post.id))
        for source_id in {post.user_id, *commenters}:
            await attempt("post-sent-notifications", self.notifications.delete_sent(source_id, post.id))
        for media_key in post.media_keys():
            await attempt("post-media", self.media.discard(media_key))

    async def _best_effort_query(self, partition: str) -> list[dict]:
        outcome = await attempt("post-cascade-query", self.store.query(partition))
        return outcome.value if outcome.ok else []

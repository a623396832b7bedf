"""Feed aggregation across the viewer's social graph.

Per request the aggregator:

1. resolves the viewer's follow set, always including the viewer;
2. fans out one bounded, newest-first query per followed id and merges the
   results by recency (falling back to the global recency index when the
   follow set cannot be read);
3. paginates with offset/limit;
4. drops items from users in a block relationship with the viewer;
5. hydrates items with the authors' current handle and avatar;
6. attaches a comment preview (count plus the oldest few) to each item.

Every step after the page is cut degrades instead of failing: a sub-query
that times out yields no rows, a failed block lookup leaves the page
unfiltered, and a failed hydration keeps the stored snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from scooterbooter.core.settings import Settings
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.content import Comment, Post
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.relationships import RelationshipGraph

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FeedConfig:
    """Immutable limits for feed assembly."""

    default_limit: int = 20
    max_limit: int = 100
    per_user_limit: int = 50
    follow_limit: int = 500
    concurrency: int = 8
    preview_size: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> FeedConfig:
        return cls(
            default_limit=settings.feed_default_limit,
            max_limit=settings.feed_max_limit,
            per_user_limit=settings.feed_per_user_limit,
            follow_limit=settings.feed_follow_limit,
            concurrency=settings.feed_fanout_concurrency,
            preview_size=settings.comment_preview_size,
        )

    def page(self, limit: int | None, offset: int | None) -> tuple[int, int]:
        """Clamp raw pagination input to ``(limit, offset)``."""
        size = limit if limit and limit > 0 else self.default_limit
        return min(size, self.max_limit), max(offset or 0, 0)


def by_recency(posts: Iterable[Post]) -> list[Post]:
    """Newest first; equal timestamps fall back to id so order is stable."""
    unique = {post.id: post for post in posts}
    return sorted(unique.values(), key=lambda post: (post.created_at, post.id), reverse=True)


class FeedAggregator:
    """Stateless feed assembly over the graph store."""

    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        relationships: RelationshipGraph,
        config: FeedConfig | None = None,
    ) -> None:
        self.store = store
        self.identity = identity
        self.relationships = relationships
        self.config = config or FeedConfig()

    async def _bounded(self, semaphore: asyncio.Semaphore, awaitable: Awaitable[T]) -> T:
        async with semaphore:
            return await awaitable

    async def follow_set(self, viewer_id: str) -> list[str]:
        """Followed ids plus the viewer, viewer first."""
        following = await self.relationships.list_following(viewer_id, limit=self.config.follow_limit)
        return list(dict.fromkeys([viewer_id, *following]))

    async def _posts_of(self, user_id: str) -> list[Post]:
        try:
            items = await self.store.query(
                keys.posts_partition(user_id),
                sort_prefix="POST#",
                descending=True,
                limit=self.config.per_user_limit,
            )
        except Exception as exc:  # noqa: BLE001 - one partition never fails the feed
            logger.warning("Feed fan-out query for %s failed: %s", user_id, exc)
            return []
        return [Post.from_item(item) for item in items]

    async def fan_out(self, user_ids: list[str]) -> list[Post]:
        """Query every partition concurrently and merge by recency."""
        semaphore = asyncio.Semaphore(max(1, self.config.concurrency))
        batches = await asyncio.gather(
            *(self._bounded(semaphore, self._posts_of(uid)) for uid in user_ids)
        )
        return by_recency(post for batch in batches for post in batch)

    async def global_recent(self, count: int) -> list[Post]:
        try:
            items = await self.store.query(keys.FEED_INDEX, index="gsi1", descending=True, limit=count)
        except Exception as exc:  # noqa: BLE001 - empty rather than an error
            logger.warning("Global feed query failed: %s", exc)
            return []
        return by_recency(Post.from_item(item) for item in items)

    async def feed(self, viewer_id: str, *, limit: int | None = None, offset: int | None = None) -> list[dict[str, Any]]:
        """Assemble one page of the viewer's feed."""
        limit, offset = self.config.page(limit, offset)
        try:
            follow_ids = await self.follow_set(viewer_id)
        except Exception as exc:  # noqa: BLE001 - degrade to the global index
            logger.warning("Follow set for %s unavailable, using global feed: %s", viewer_id, exc)
            follow_ids = None

        if follow_ids:
            merged = await self.fan_out(follow_ids)
        else:
            merged = await self.global_recent(offset + limit)

        page = merged[offset : offset + limit]
        page = await self.drop_blocked(viewer_id, page)
        return await self.decorate(page)

    async def drop_blocked(self, viewer_id: str, posts: list[Post]) -> list[Post]:
        if not posts:
            return posts
        try:
            hidden = await self.relationships.block_set(viewer_id)
        except Exception as exc:  # noqa: BLE001 - unfiltered beats an error
            logger.error("Failed to filter blocked users for %s: %s", viewer_id, exc)
            return posts
        return [post for post in posts if post.user_id not in hidden]

    async def decorate(self, posts: list[Post]) -> list[dict[str, Any]]:
        """Hydrate authors and attach comment previews, preserving order."""
        await self.hydrate(posts)
        semaphore = asyncio.Semaphore(max(1, self.config.concurrency))
        previews = await asyncio.gather(
            *(self._bounded(semaphore, self.comment_preview(post.id)) for post in posts)
        )
        return [
            post.public(comments=comments, commentCount=count)
            for post, (comments, count) in zip(posts, previews)
        ]

    async def hydrate(self, posts: list[Post]) -> None:
        """Overwrite snapshot handle and avatar with the authors' current ones."""
        if not posts:
            return
        try:
            summaries = await self.identity.resolve_summaries(post.user_id for post in posts)
        except Exception as exc:  # noqa: BLE001 - keep snapshot values
            logger.error("Feed author hydration failed: %s", exc)
            return
        for post in posts:
            summary = summaries.get(post.user_id)
            if summary is None:
                continue
            if summary.avatar_key:
                post.avatar_key = summary.avatar_key
            if summary.handle:
                post.handle = summary.handle

    async def comment_preview(self, post_id: str) -> tuple[list[dict[str, Any]], int]:
        """Total comment count and the oldest ``preview_size`` comments."""
        partition = keys.comments_partition(post_id)
        try:
            total = await self.store.count(partition, sort_prefix="C#")
            items = await self.store.query(partition, sort_prefix="C#", limit=self.config.preview_size)
        except Exception as exc:  # noqa: BLE001 - one preview never blocks the others
            logger.warning("Comment preview for %s failed: %s", post_id, exc)
            return [], 0

        comments = [Comment.from_item(item) for item in items]
        try:
            authors = await self.identity.resolve_summaries(c.user_id for c in comments)
        except Exception as exc:  # noqa: BLE001 - previews without avatars
            logger.warning("Comment avatars for %s failed: %s", post_id, exc)
            authors = {}

        preview = []
        for comment in comments:
            entry: dict[str, Any] = {
                "id": comment.id,
                "userId": comment.user_id,
                "handle": comment.user_handle,
                "text": comment.text,
                "createdAt": comment.created_at,
            }
            author = authors.get(comment.user_id)
            if author is not None and author.avatar_key:
                entry["avatarKey"] = author.avatar_key
            preview.append(entry)
        return preview, total

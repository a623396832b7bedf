"""Profile surfaces under ``/u/{handle}``.

Listing a profile is always allowed; the posts on it follow the
visibility policy and are replaced by ``isPrivate`` when hidden.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from scooterbooter.services.feed import FeedAggregator
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.posts import PostService
from scooterbooter.services.relationships import RelationshipGraph
from scooterbooter.services.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

PROFILE_POST_SCAN = 1000


class ProfileService:
    def __init__(
        self,
        identity: IdentityResolver,
        relationships: RelationshipGraph,
        visibility: VisibilityPolicy,
        posts: PostService,
        feed: FeedAggregator,
    ) -> None:
        self.identity = identity
        self.relationships = relationships
        self.visibility = visibility
        self.posts = posts
        self.feed = feed

    async def _visible_posts(self, viewer_id: str, owner_id: str, limit: int | None, offset: int | None) -> tuple[list[dict[str, Any]], bool]:
        if not await self.visibility.can_view_content(viewer_id, owner_id):
            return [], True
        limit, offset = self.feed.config.page(limit, offset)
        posts = await self.posts.list_by_user(owner_id, limit=PROFILE_POST_SCAN)
        return await self.feed.decorate(posts[offset : offset + limit]), False

    async def profile(self, viewer_id: str, handle: str, *, limit: int | None = None, offset: int | None = None) -> dict[str, Any]:
        target_id = await self.identity.resolve_handle(handle)
        user = await self.identity.get_user(target_id)
        follower_count, following_count, status = await asyncio.gather(
            self.relationships.count_followers(target_id),
            self.relationships.count_following(target_id),
            self.relationships.follow_status(viewer_id, target_id),
        )
        items, is_private = await self._visible_posts(viewer_id, target_id, limit, offset)
        return {
            "handle": (user.handle if user and user.handle else handle.lower()),
            "userId": target_id,
            "exists": user is not None,
            "avatarKey": user.avatar_key if user else None,
            "fullName": user.full_name if user else None,
            "followerCount": follower_count,
            "followingCount": following_count,
            "isFollowing": status == "following",
            "isFollowPending": status == "pending",
            "followStatus": status,
            "isPrivate": is_private,
            "items": items,
            "posts": items,
        }

    async def posts_of(self, viewer_id: str, handle: str, *, limit: int | None = None, offset: int | None = None) -> dict[str, Any]:
        target_id = await self.identity.resolve_handle(handle)
        items, is_private = await self._visible_posts(viewer_id, target_id, limit, offset)
        return {"items": items, "isPrivate": is_private}

    async def followers(self, viewer_id: str, handle: str) -> list[dict[str, Any]]:
        target_id = await self.identity.resolve_handle(handle)
        return await self._summaries_for(viewer_id, await self.relationships.list_followers(target_id))

    async def following(self, viewer_id: str, handle: str) -> list[dict[str, Any]]:
        target_id = await self.identity.resolve_handle(handle)
        return await self._summaries_for(viewer_id, await self.relationships.list_following(target_id))

    async def _summaries_for(self, viewer_id: str, user_ids: list[str]) -> list[dict[str, Any]]:
        """User summaries with the viewer's ``isFollowing``; enrichment degrades."""
        try:
            summaries = await self.identity.resolve_summaries(user_ids)
        except Exception as exc:  # noqa: BLE001 - list without profiles
            logger.warning("Summary enrichment failed: %s", exc)
            return []
        items = []
        for user_id in user_ids:
            summary = summaries.get(user_id)
            if summary is None:
                continue
            try:
                following = await self.relationships.is_following(viewer_id, user_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("isFollowing lookup failed for %s: %s", user_id, exc)
                following = False
            items.append({**summary.public(), "isFollowing": following})
        return items

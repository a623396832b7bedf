"""Follow, follow-request and block relationships between users.

Edges are the single source of truth: a ``Follow`` item means "A follows B",
a ``Block`` item means "A blocked B". Pending follow requests are not stored
separately; they are ``follow_request`` entries in the target's notification
ledger.
"""

from __future__ import annotations

import logging
from typing import Literal

from scooterbooter.core.errors import Forbidden, NotEnabled, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.relationship import Block, Follow
from scooterbooter.services.notifications import NotificationLedger

logger = logging.getLogger(__name__)

FollowStatus = Literal["following", "pending", "none"]


def _check_pair(actor_id: str | None, target_id: str | None, verb: str) -> None:
    if not actor_id or not target_id:
        raise ValidationError("Missing userId")
    if actor_id == target_id:
        raise ValidationError(f"Cannot {verb} yourself")


class RelationshipGraph:
    """Mutations and queries over follow and block edges."""

    def __init__(
        self,
        store: GraphStore,
        notifications: NotificationLedger,
        *,
        blocking_enabled: bool = True,
        follow_limit: int = 500,
    ) -> None:
        self.store = store
        self.notifications = notifications
        self.blocking_enabled = blocking_enabled
        self.follow_limit = follow_limit

    # Follows

    async def follow(self, follower_id: str, followee_id: str) -> Follow:
        _check_pair(follower_id, followee_id, "follow")
        await self._refuse_blocked(follower_id, followee_id)
        edge = Follow(follower_id=follower_id, followee_id=followee_id)
        await self.store.put(edge.to_item())
        await attempt(
            "follow-notify",
            self.notifications.create(followee_id, "follow", follower_id, None, "started following you"),
        )
        return edge

    async def unfollow(self, follower_id: str, followee_id: str) -> bool:
        _check_pair(follower_id, followee_id, "unfollow")
        removed = await self.store.delete(keys.follow_key(follower_id, followee_id))
        await attempt(
            "unfollow-cleanup",
            self.notifications.delete_matching(followee_id, "follow", follower_id),
        )
        return removed

    async def request_follow(self, requester_id: str, target_id: str) -> bool:
        """Leave a single pending ``follow_request`` in the target's ledger."""
        _check_pair(requester_id, target_id, "follow")
        self.notifications.require_enabled()
        await self._refuse_blocked(requester_id, target_id)
        if await self.has_pending_request(requester_id, target_id):
            return True
        await self.notifications.create(
            target_id, "follow_request", requester_id, None, "wants to follow you"
        )
        return True

    async def cancel_request(self, requester_id: str, target_id: str) -> bool:
        _check_pair(requester_id, target_id, "follow")
        self.notifications.require_enabled()
        await attempt(
            "follow-cancel",
            self.notifications.delete_matching(target_id, "follow_request", requester_id),
        )
        return True

    async def accept_request(self, target_id: str, requester_id: str) -> Follow:
        """Create the requester's edge, then clear the request and notify.

        The edge write is authoritative; the cleanup and notification are
        best effort.
        """
        _check_pair(target_id, requester_id, "follow")
        edge = Follow(follower_id=requester_id, followee_id=target_id)
        await self.store.put(edge.to_item())
        await attempt(
            "follow-accept-cleanup",
            self.notifications.delete_matching(target_id, "follow_request", requester_id),
        )
        await attempt(
            "follow-accept-notify",
            self.notifications.create(
                requester_id, "follow_accept", target_id, None, "accepted your follow request"
            ),
        )
        return edge

    async def decline_request(self, target_id: str, requester_id: str) -> bool:
        _check_pair(target_id, requester_id, "follow")
        self.notifications.require_enabled()
        await self.notifications.delete_matching(target_id, "follow_request", requester_id)
        await attempt(
            "follow-decline-notify",
            self.notifications.create(
                requester_id, "follow_declined", target_id, None, "declined your follow request"
            ),
        )
        return True

    async def is_following(self, follower_id: str, followee_id: str) -> bool:
        if not follower_id or not followee_id:
            return False
        return await self.store.get(keys.follow_key(follower_id, followee_id)) is not None

    async def has_pending_request(self, requester_id: str, target_id: str) -> bool:
        return await self.notifications.has_matching(target_id, "follow_request", requester_id)

    async def follow_status(self, viewer_id: str, target_id: str) -> FollowStatus:
        if await self.is_following(viewer_id, target_id):
            return "following"
        if await self.has_pending_request(viewer_id, target_id):
            return "pending"
        return "none"

    async def list_following(self, user_id: str, *, limit: int | None = None) -> list[str]:
        items = await self.store.query(keys.following_partition(user_id), limit=limit)
        return [item["followeeId"] for item in items if item.get("followeeId")]

    async def list_followers(self, user_id: str, *, limit: int | None = None) -> list[str]:
        items = await self.store.query(keys.followers_index(user_id), index="gsi1", limit=limit)
        return [item["followerId"] for item in items if item.get("followerId")]

    async def count_following(self, user_id: str) -> int:
        return await self.store.count(keys.following_partition(user_id))

    async def count_followers(self, user_id: str) -> int:
        return await self.store.count(keys.followers_index(user_id), index="gsi1")

    # Blocks

    def require_blocking(self) -> None:
        if not self.blocking_enabled:
            raise NotEnabled("Blocking not enabled")

    async def block(self, blocker_id: str, blocked_id: str) -> Block:
        """Record the block and drop follow edges in both directions.

        Edge removal is best effort and never fails the block.
        """
        self.require_blocking()
        _check_pair(blocker_id, blocked_id, "block")
        edge = Block(blocker_id=blocker_id, blocked_id=blocked_id)
        await self.store.put(edge.to_item())
        await attempt("block-unfollow", self.store.delete(keys.follow_key(blocker_id, blocked_id)))
        await attempt("block-unfollowed", self.store.delete(keys.follow_key(blocked_id, blocker_id)))
        await attempt(
            "block-request-cleanup",
            self.notifications.delete_matching(blocker_id, "follow_request", blocked_id),
        )
        logger.info("User %s blocked %s", blocker_id, blocked_id)
        return edge

    async def unblock(self, blocker_id: str, blocked_id: str) -> bool:
        self.require_blocking()
        _check_pair(blocker_id, blocked_id, "unblock")
        return await self.store.delete(keys.block_key(blocker_id, blocked_id))

    async def is_blocked(self, blocker_id: str, blocked_id: str) -> bool:
        """Whether ``blocker_id`` has blocked ``blocked_id``."""
        if not self.blocking_enabled or not blocker_id or not blocked_id:
            return False
        return await self.store.get(keys.block_key(blocker_id, blocked_id)) is not None

    async def has_block_between(self, a: str, b: str) -> bool:
        return await self.is_blocked(a, b) or await self.is_blocked(b, a)

    async def blocked_ids(self, user_id: str) -> set[str]:
        """Ids ``user_id`` has blocked."""
        if not self.blocking_enabled:
            return set()
        items = await self.store.query(keys.blocks_partition(user_id))
        return {item["blockedId"] for item in items if item.get("blockedId")}

    async def blocked_by_ids(self, user_id: str) -> set[str]:
        """Ids that have blocked ``user_id``."""
        if not self.blocking_enabled:
            return set()
        items = await self.store.query(keys.blocked_by_index(user_id), index="gsi1")
        return {item["blockerId"] for item in items if item.get("blockerId")}

    async def block_set(self, user_id: str) -> set[str]:
        """Ids in a block relationship with ``user_id`` in either direction."""
        return await self.blocked_ids(user_id) | await self.blocked_by_ids(user_id)

    async def _refuse_blocked(self, actor_id: str, target_id: str) -> None:
        if await self.has_block_between(actor_id, target_id):
            raise Forbidden("Cannot follow this user")

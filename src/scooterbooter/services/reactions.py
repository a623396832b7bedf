"""Emoji reactions with per-emoji counters.

Counters are adjusted before the per-user row is written or deleted. Two
concurrent toggles by the same user can leave a counter off by one; reads
clamp at zero and a counter that reaches zero is removed.
"""

from __future__ import annotations

import logging
from typing import Any

from scooterbooter.core.errors import NotFound, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.content import EMOJI_MAX, Reaction
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.notifications import NotificationLedger
from scooterbooter.services.posts import PostService

logger = logging.getLogger(__name__)

COUNT_PREFIX = "COUNT#"
USER_PREFIX = "USER#"


class ReactionService:
    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        notifications: NotificationLedger,
        posts: PostService,
    ) -> None:
        self.store = store
        self.identity = identity
        self.notifications = notifications
        self.posts = posts

    async def adjust_counter(self, post_id: str, emoji: str, delta: int) -> int:
        key = keys.reaction_count_key(post_id, emoji)
        value = await self.store.add(key, "count", delta, defaults={"postId": post_id, "emoji": emoji})
        if value <= 0:
            await self.store.delete(key)
        return max(0, value)

    async def current(self, post_id: str, user_id: str) -> str | None:
        item = await self.store.get(keys.reaction_user_key(post_id, user_id))
        return item.get("emoji") if item else None

    async def toggle(self, user_id: str, post_id: str, emoji: str | None) -> list[str]:
        """Add, switch or remove the caller's reaction; returns their reaction list.

        Reacting with the current emoji again removes it. Any earlier
        ``reaction`` notification to the owner is dropped first; a new one
        is sent only when a reaction is added or switched.
        """
        choice = (emoji or "").strip()[:EMOJI_MAX]
        if not choice:
            raise ValidationError("Invalid emoji")

        lookup = await attempt("reaction-post", self.posts.find(post_id))
        if lookup.ok and lookup.value is None:
            raise NotFound("Post not found")
        owner_id = lookup.value.user_id if lookup.ok else None
        if owner_id and owner_id != user_id:
            await attempt(
                "reaction-notify-cleanup",
                self.notifications.delete_matching(owner_id, "reaction", user_id, post_id),
            )

        previous = await self.current(post_id, user_id)
        if previous == choice:
            await self.adjust_counter(post_id, choice, -1)
            await self.store.delete(keys.reaction_user_key(post_id, user_id))
            return []

        await self.adjust_counter(post_id, choice, 1)
        if previous:
            await self.adjust_counter(post_id, previous, -1)
        await self.store.put(Reaction(post_id=post_id, user_id=user_id, emoji=choice).to_item())

        if owner_id and owner_id != user_id:
            await attempt(
                "reaction-notify",
                self.notifications.create(owner_id, "reaction", user_id, post_id, "reacted to your post"),
            )
        return [choice]

    async def summary(self, post_id: str, viewer_id: str | None, *, who: bool = False) -> dict[str, Any]:
        """Counts per emoji, the viewer's reaction, and optionally who reacted."""
        try:
            items = await self.store.query(keys.reactions_partition(post_id))
        except Exception as exc:  # noqa: BLE001 - aggregate read degrades to empty
            logger.error("Reaction query failed for %s: %s", post_id, exc)
            return {"counts": {}, "my": [], "message": "Failed to fetch reactions"}

        counts: dict[str, int] = {}
        by_emoji: dict[str, list[str]] = {}
        mine = None
        for item in items:
            sk = item["sk"]
            if sk.startswith(COUNT_PREFIX):
                count = max(0, int(item.get("count", 0) or 0))
                if count:
                    counts[sk[len(COUNT_PREFIX):]] = count
            elif sk.startswith(USER_PREFIX) and item.get("emoji"):
                uid = sk[len(USER_PREFIX):]
                by_emoji.setdefault(item["emoji"], []).append(uid)
                if uid == viewer_id:
                    mine = item["emoji"]

        body: dict[str, Any] = {"counts": counts, "my": [mine] if mine else []}
        if who:
            try:
                profiles = await self.identity.resolve_summaries(
                    uid for uids in by_emoji.values() for uid in uids
                )
            except Exception as exc:  # noqa: BLE001 - reactors without profiles
                logger.error("Reactor summaries failed for %s: %s", post_id, exc)
                profiles = {}
            body["who"] = {
                emoji_: [
                    {
                        "userId": uid,
                        "handle": profiles[uid].handle if uid in profiles else None,
                        "avatarKey": profiles[uid].avatar_key if uid in profiles else None,
                    }
                    for uid in uids
                ]
                for emoji_, uids in by_emoji.items()
            }
        return body

    async def remove_all_by(self, user_id: str) -> int:
        """Remove every reaction ``user_id`` made, decrementing counters."""
        removed = 0
        for item in await self.store.query(keys.reactor_index(user_id), index="gsi1"):
            reaction = Reaction.from_item(item)
            await attempt("reaction-uncount", self.adjust_counter(reaction.post_id, reaction.emoji, -1))
            if await self.store.delete(reaction.key()):
                removed += 1
        return removed

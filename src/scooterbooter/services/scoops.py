"""Ephemeral scoops (stories) that disappear a day after posting."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from scooterbooter.core.errors import ConditionFailed, Forbidden, NotEnabled, NotFound, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.db.time import now_ms
from scooterbooter.models.scoop import SCOOP_TTL_MS, Scoop, TextOverlay
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.media import MediaService
from scooterbooter.services.relationships import RelationshipGraph
from scooterbooter.services.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)

VIEW_RETRIES = 3


class ScoopService:
    """Scoops are read only while live; expired ones are treated as absent."""

    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        relationships: RelationshipGraph,
        visibility: VisibilityPolicy,
        media: MediaService,
        *,
        enabled: bool = True,
    ) -> None:
        self.store = store
        self.identity = identity
        self.relationships = relationships
        self.visibility = visibility
        self.media = media
        self.enabled = enabled

    def require_enabled(self) -> None:
        if not self.enabled:
            raise NotEnabled("Scoops not enabled")

    async def live_for(self, user_id: str) -> list[Scoop]:
        """Live scoops of one user, newest first."""
        now = now_ms()
        items = await self.store.query(
            keys.scoops_partition(user_id),
            sort_gt=keys.scoop_sort(now - SCOOP_TTL_MS),
            descending=True,
        )
        scoops = (Scoop.from_item(item) for item in items)
        return [scoop for scoop in scoops if scoop.is_live(now)]

    async def find(self, scoop_id: str) -> Scoop | None:
        items = await self.store.query(keys.scoop_id_index(scoop_id), index="gsi2", limit=1)
        if not items:
            return None
        scoop = Scoop.from_item(items[0])
        return scoop if scoop.is_live() else None

    async def require(self, scoop_id: str) -> Scoop:
        scoop = await self.find(scoop_id)
        if scoop is None:
            raise NotFound("Scoop not found")
        return scoop

    @staticmethod
    def present(scoop: Scoop, viewer_id: str | None = None) -> dict[str, Any]:
        body = scoop.public()
        if viewer_id is not None and viewer_id != scoop.user_id:
            body["viewed"] = viewer_id in scoop.viewers
        return body

    async def create(
        self,
        user_id: str,
        *,
        media_key: str | None,
        media_type: str | None,
        media_aspect_ratio: float | None = None,
        text_overlays: list[TextOverlay] | None = None,
    ) -> Scoop:
        self.require_enabled()
        if not media_key:
            raise ValidationError("Missing mediaKey")
        if media_type not in ("image", "video"):
            raise ValidationError("Invalid mediaType")
        user = await self.identity.get_user(user_id)
        scoop = Scoop(
            id=str(uuid.uuid4()),
            user_id=user_id,
            handle=user.handle if user else None,
            avatar_key=user.avatar_key if user else None,
            media_key=media_key,
            media_type=media_type,
            media_aspect_ratio=media_aspect_ratio,
            text_overlays=text_overlays or [],
        )
        await self.store.put(scoop.to_item(), if_not_exists=True)
        logger.info("User %s posted scoop %s", user_id, scoop.id)
        return scoop

    async def mine(self, user_id: str) -> list[dict[str, Any]]:
        self.require_enabled()
        return [self.present(scoop) for scoop in await self.live_for(user_id)]

    async def of_user(self, viewer_id: str, target_id: str) -> list[dict[str, Any]]:
        self.require_enabled()
        if not target_id:
            raise ValidationError("Missing userId")
        if not await self.visibility.can_view_content(viewer_id, target_id):
            return []
        return [self.present(scoop, viewer_id) for scoop in await self.live_for(target_id)]

    async def feed(self, viewer_id: str) -> list[dict[str, Any]]:
        """Followed users' live scoops grouped per user.

        Groups with unviewed scoops come first, then the most recent.
        """
        self.require_enabled()
        following = await self.relationships.list_following(viewer_id)
        try:
            hidden = await self.relationships.block_set(viewer_id)
        except Exception as exc:  # noqa: BLE001 - unfiltered rather than failing
            logger.error("Block lookup for scoop feed failed: %s", exc)
            hidden = set()

        groups = []
        for user_id in following:
            if user_id in hidden:
                continue
            try:
                scoops = await self.live_for(user_id)
            except Exception as exc:  # noqa: BLE001 - one user never fails the feed
                logger.warning("Scoop query for %s failed: %s", user_id, exc)
                continue
            if not scoops:
                continue
            items = [self.present(scoop, viewer_id) for scoop in scoops]
            groups.append(
                {
                    "userId": user_id,
                    "handle": scoops[0].handle,
                    "avatarKey": scoops[0].avatar_key,
                    "scoops": items,
                    "hasUnviewed": any(not item["viewed"] for item in items),
                    "latestScoopAt": scoops[0].created_at,
                }
            )
        groups.sort(key=lambda group: (not group["hasUnviewed"], -group["latestScoopAt"]))
        return groups

    async def get(self, viewer_id: str, scoop_id: str) -> dict[str, Any]:
        self.require_enabled()
        scoop = await self.require(scoop_id)
        if not await self.visibility.can_view_content(viewer_id, scoop.user_id):
            raise Forbidden()
        return self.present(scoop, viewer_id)

    async def mark_viewed(self, viewer_id: str, scoop_id: str) -> bool:
        """Record a first view by someone other than the owner."""
        self.require_enabled()
        for _ in range(VIEW_RETRIES):
            scoop = await self.require(scoop_id)
            if scoop.user_id == viewer_id or viewer_id in scoop.viewers:
                return False
            expected = scoop.view_count
            try:
                await self.store.update(
                    scoop.key(),
                    {"viewers": [*scoop.viewers, viewer_id], "viewCount": expected + 1},
                    condition=lambda item, expected=expected: int(item.get("viewCount", 0) or 0) == expected,
                )
            except ConditionFailed:
                continue
            return True
        logger.warning("Gave up recording view of %s by %s", scoop_id, viewer_id)
        return False

    async def viewers(self, owner_id: str, scoop_id: str) -> list[dict[str, Any]]:
        self.require_enabled()
        scoop = await self.require(scoop_id)
        if scoop.user_id != owner_id:
            raise Forbidden()
        summaries = await self.identity.resolve_summaries(scoop.viewers)
        return [
            {"userId": uid, "handle": summaries[uid].handle, "avatarKey": summaries[uid].avatar_key}
            for uid in scoop.viewers
            if uid in summaries
        ]

    async def delete(self, owner_id: str, scoop_id: str) -> None:
        self.require_enabled()
        scoop = await self.require(scoop_id)
        if scoop.user_id != owner_id:
            raise Forbidden()
        await attempt("scoop-media", self.media.discard(scoop.media_key))
        await self.store.delete(scoop.key())

    async def remove_all_by(self, user_id: str) -> int:
        removed = 0
        for item in await self.store.query(keys.scoops_partition(user_id)):
            scoop = Scoop.from_item(item)
            await attempt("scoop-media", self.media.discard(scoop.media_key))
            if await self.store.delete(scoop.key()):
                removed += 1
        return removed

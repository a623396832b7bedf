"""User search by handle prefix and handle/name substring."""

from __future__ import annotations

import logging
from typing import Any

from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.services.relationships import RelationshipGraph

logger = logging.getLogger(__name__)

MAX_RESULTS = 25


class SearchService:
    def __init__(self, store: GraphStore, relationships: RelationshipGraph) -> None:
        self.store = store
        self.relationships = relationships

    async def search(self, viewer_id: str, query: str | None) -> list[dict[str, Any]]:
        """Return up to 25 users matching ``query``.

        Users in a block relationship with the viewer are left out. Every
        lookup past the first degrades to fewer results.
        """
        needle = (query or "").strip().lstrip("@").strip().lower()
        if not needle:
            return []

        candidates: list[dict[str, Any]] = []
        try:
            candidates.extend(
                await self.store.query(keys.HANDLE_INDEX, index="gsi2", sort_prefix=needle, limit=MAX_RESULTS)
            )
        except Exception as exc:  # noqa: BLE001 - the scan still runs
            logger.error("Handle prefix query failed: %s", exc)

        def matches(item: dict[str, Any]) -> bool:
            handle = (item.get("handle") or "").lower()
            name = (item.get("fullName") or "").lower()
            return needle in handle or needle in name

        try:
            candidates.extend(
                await self.store.scan(matches, partition_prefix="USER#", limit=MAX_RESULTS * 4)
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("User scan failed: %s", exc)

        try:
            hidden = await self.relationships.block_set(viewer_id)
        except Exception as exc:  # noqa: BLE001 - unfiltered rather than empty
            logger.warning("Block lookup for search failed: %s", exc)
            hidden = set()

        by_id: dict[str, dict[str, Any]] = {}
        for item in candidates:
            user_id = item.get("userId")
            if user_id and item.get("handle") and user_id not in hidden and user_id not in by_id:
                by_id[user_id] = item

        results = []
        for user_id, item in list(by_id.items())[:MAX_RESULTS]:
            try:
                following = await self.relationships.is_following(viewer_id, user_id)
            except Exception as exc:  # noqa: BLE001
                logger.warning("isFollowing lookup failed for %s: %s", user_id, exc)
                following = False
            results.append(
                {
                    "userId": user_id,
                    "handle": item["handle"],
                    "fullName": item.get("fullName"),
                    "avatarKey": item.get("avatarKey"),
                    "isFollowing": following,
                }
            )
        return results

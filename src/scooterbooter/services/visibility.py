"""Who may see or comment on whose content."""

from __future__ import annotations

from scooterbooter.core.errors import Forbidden
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.content import Post, extract_mentions
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.relationships import RelationshipGraph

COMMENT_FORBIDDEN = "You must follow this user to comment on their posts"


class VisibilityPolicy:
    """Single source of truth for content visibility.

    Profiles are private by default: only the owner and the owner's
    followers see content, and a block in either direction hides it.
    """

    def __init__(self, store: GraphStore, relationships: RelationshipGraph, identity: IdentityResolver) -> None:
        self.store = store
        self.relationships = relationships
        self.identity = identity

    async def can_view_content(self, viewer_id: str, owner_id: str) -> bool:
        if viewer_id == owner_id:
            return True
        if await self.relationships.has_block_between(viewer_id, owner_id):
            return False
        return await self.relationships.is_following(viewer_id, owner_id)

    def can_search_or_list_profile(self, viewer_id: str, owner_id: str) -> bool:
        return True

    async def can_comment(self, viewer_id: str, post: Post) -> bool:
        """Owner, follower, mentioned user, or someone already in the thread."""
        if viewer_id == post.user_id:
            return True
        if await self.relationships.has_block_between(viewer_id, post.user_id):
            return False
        if await self.relationships.is_following(viewer_id, post.user_id):
            return True
        handle = await self.identity.handle_for(viewer_id)
        if handle and handle.lower() in extract_mentions(post.text):
            return True
        return await self.is_participating(viewer_id, post.id)

    async def is_participating(self, viewer_id: str, post_id: str) -> bool:
        items = await self.store.query(keys.comments_partition(post_id), sort_prefix="C#")
        return any(item.get("userId") == viewer_id for item in items)

    async def require_comment(self, viewer_id: str, post: Post) -> None:
        if not await self.can_comment(viewer_id, post):
            raise Forbidden(COMMENT_FORBIDDEN)

    async def can_view_post(self, viewer_id: str, post: Post) -> bool:
        """Posts are visible with their owner's content, or to users they mention."""
        if await self.can_view_content(viewer_id, post.user_id):
            return True
        if await self.relationships.has_block_between(viewer_id, post.user_id):
            return False
        handle = await self.identity.handle_for(viewer_id)
        return bool(handle) and handle.lower() in extract_mentions(post.text)

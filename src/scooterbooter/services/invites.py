"""Invite codes: one personal code per user plus admin-issued codes."""

from __future__ import annotations

import logging
import uuid

from scooterbooter.core.errors import ConditionFailed, NotEnabled, Unavailable
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.invite import INVITE_USES, Invite

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 5
ADMIN_MAX_USES = 100


def new_code() -> str:
    return uuid.uuid4().hex[:8].upper()


class InviteService:
    def __init__(self, store: GraphStore, *, enabled: bool = True) -> None:
        self.store = store
        self.enabled = enabled

    def require_enabled(self) -> None:
        if not self.enabled:
            raise NotEnabled("Invites not enabled")

    async def _issue(self, user_id: str | None, uses: int) -> Invite:
        for _ in range(CODE_ATTEMPTS):
            invite = Invite(code=new_code(), user_id=user_id, uses_remaining=uses)
            try:
                await self.store.put(invite.to_item(), if_not_exists=True)
            except ConditionFailed:
                continue
            return invite
        raise Unavailable("Failed to generate invite code")

    async def list_mine(self, user_id: str) -> list[Invite]:
        self.require_enabled()
        items = await self.store.query(keys.inviter_index(user_id), index="gsi1")
        return [Invite.from_item(item) for item in items]

    async def personal_code(self, user_id: str) -> Invite:
        """Return the user's oldest code, issuing one on first use."""
        existing = await self.list_mine(user_id)
        if existing:
            return existing[0]
        invite = await self._issue(user_id, INVITE_USES)
        await self.store.update(
            keys.user_key(user_id), {"userId": user_id, "inviteCode": invite.code}, create=True
        )
        logger.info("Generated invite code %s for user %s", invite.code, user_id)
        return invite

    async def issue_admin(self, uses: int | None) -> Invite:
        self.require_enabled()
        count = max(1, min(ADMIN_MAX_USES, int(uses or 1)))
        return await self._issue(None, count)

    async def remove_all_by(self, user_id: str) -> int:
        removed = 0
        for item in await self.store.query(keys.inviter_index(user_id), index="gsi1"):
            if await self.store.delete(keys.Key(item["pk"], item["sk"])):
                removed += 1
        return removed

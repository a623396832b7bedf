"""Invite codes."""

from __future__ import annotations

from pydantic import Field

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity

INVITE_USES = 10


class Invite(Entity):
    code: str
    user_id: str | None = None
    uses_remaining: int = INVITE_USES
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.invite_key(self.code)

    def index_fields(self) -> dict[str, str]:
        if not self.user_id:
            return {}
        return {"gsi1pk": keys.inviter_index(self.user_id), "gsi1sk": keys.ts(self.created_at)}

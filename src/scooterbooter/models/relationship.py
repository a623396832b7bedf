"""Directed follow and block edges."""

from __future__ import annotations

from pydantic import Field

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity


class Follow(Entity):
    """``follower_id`` follows ``followee_id``. Existence is the whole fact."""

    follower_id: str
    followee_id: str
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.follow_key(self.follower_id, self.followee_id)

    def index_fields(self) -> dict[str, str]:
        return {"gsi1pk": keys.followers_index(self.followee_id), "gsi1sk": f"USER#{self.follower_id}"}


class Block(Entity):
    blocker_id: str
    blocked_id: str
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.block_key(self.blocker_id, self.blocked_id)

    def index_fields(self) -> dict[str, str]:
        return {"gsi1pk": keys.blocked_by_index(self.blocked_id), "gsi1sk": f"USER#{self.blocker_id}"}

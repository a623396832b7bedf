"""Notification ledger entries and device push tokens."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity

NotificationType = Literal[
    "mention",
    "comment",
    "reply",
    "reaction",
    "follow",
    "follow_request",
    "follow_accept",
    "follow_declined",
]

# Types gated by the target's preferences, mapped to the preference switch.
PREFERENCE_FOR_TYPE: dict[str, str] = {
    "mention": "mentions",
    "comment": "comments",
    "reply": "comments",
    "reaction": "reactions",
}


class Notification(Entity):
    id: str
    user_id: str
    type: NotificationType
    from_user_id: str
    post_id: str | None = None
    comment_id: str | None = None
    message: str = ""
    read: bool = False
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.notification_key(self.user_id, self.created_at, self.id)

    def index_fields(self) -> dict[str, str]:
        return {
            "gsi1pk": keys.notifications_from_index(self.from_user_id),
            "gsi1sk": f"{keys.ts(self.created_at)}#{self.id}",
        }

    def matches(
        self,
        type_: str,
        source_id: str | None = None,
        content_id: str | None = None,
        comment_id: str | None = None,
    ) -> bool:
        """Whether this entry matches a (type, source?, content?, comment?) selector."""
        if self.type != type_:
            return False
        if source_id is not None and self.from_user_id != source_id:
            return False
        if content_id is not None and self.post_id != content_id:
            return False
        if comment_id is not None and self.comment_id != comment_id:
            return False
        return True


class PushToken(Entity):
    user_id: str
    token: str
    platform: str = "expo"
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.push_token_key(self.user_id, self.platform, self.token)

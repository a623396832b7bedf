"""User profile and handle mapping entities."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity

HANDLE_PATTERN = re.compile(r"^[a-z0-9_]{3,20}$")
FULL_NAME_MAX = 80


def normalize_handle(value: str | None) -> str:
    """Lowercase a handle candidate and drop a leading ``@``."""
    return (value or "").strip().lstrip("@").lower()


def is_valid_handle(value: str) -> bool:
    return bool(HANDLE_PATTERN.match(value))


class NotificationPreferences(BaseModel):
    """Per-user switches for preference-gated notification types."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mentions: bool = True
    comments: bool = True
    reactions: bool = True


class User(Entity):
    """Profile record keyed by the immutable user id."""

    user_id: str
    handle: str | None = None
    full_name: str | None = None
    avatar_key: str | None = None
    email: str | None = None
    notification_preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)
    terms_accepted: bool = False
    terms_accepted_at: int | None = None
    invite_code: str | None = None
    banned: bool = False
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.user_key(self.user_id)


class HandleMapping(Entity):
    """Unique handle pointing at its owning user id."""

    handle: str
    user_id: str
    avatar_key: str | None = None
    full_name: str | None = None
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.handle_key(self.handle)

    def index_fields(self) -> dict[str, str]:
        return {"gsi2pk": keys.HANDLE_INDEX, "gsi2sk": self.handle}


class UserSummary(BaseModel):
    """Live author data used to hydrate feed items, comments and lists."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    handle: str | None = None
    avatar_key: str | None = None
    full_name: str | None = None

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(
            user_id=user.user_id,
            handle=user.handle,
            avatar_key=user.avatar_key,
            full_name=user.full_name,
        )

    def public(self) -> dict:
        return self.model_dump(by_alias=True)

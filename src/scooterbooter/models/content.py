"""Posts, comments and reactions."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity

TEXT_MAX = 500
EMOJI_MAX = 8
MENTION_PATTERN = re.compile(r"@([a-z0-9_]+)", re.IGNORECASE)


def extract_mentions(text: str | None) -> list[str]:
    """Return lowercased mentioned handles in order of first appearance."""
    seen: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(text or ""):
        seen.setdefault(match.group(1).lower(), None)
    return list(seen)


class PostImage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    aspect_ratio: float | None = None
    width: int | None = None
    height: int | None = None
    order: int | None = None


class Post(Entity):
    """A post with the author snapshot captured at creation time."""

    id: str
    user_id: str
    handle: str | None = None
    full_name: str | None = None
    avatar_key: str | None = None
    text: str = ""
    image_key: str | None = None
    image_aspect_ratio: float | None = None
    images: list[PostImage] | None = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int | None = None

    def key(self) -> Key:
        return keys.post_key(self.user_id, self.created_at, self.id)

    def index_fields(self) -> dict[str, str]:
        return {
            "gsi1pk": keys.FEED_INDEX,
            "gsi1sk": f"{keys.ts(self.created_at)}#{self.id}",
            "gsi2pk": keys.post_id_index(self.id),
            "gsi2sk": "POST",
        }

    def media_keys(self) -> list[str]:
        found = [self.image_key] if self.image_key else []
        found.extend(image.key for image in self.images or [] if image.key not in found)
        return found


class Comment(Entity):
    id: str
    post_id: str
    user_id: str
    user_handle: str | None = None
    text: str
    parent_comment_id: str | None = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int | None = None

    def key(self) -> Key:
        return keys.comment_key(self.post_id, self.created_at, self.id)

    def index_fields(self) -> dict[str, str]:
        return {
            "gsi1pk": keys.commenter_index(self.user_id),
            "gsi1sk": f"{keys.ts(self.created_at)}#{self.id}",
            "gsi2pk": keys.comment_id_index(self.id),
            "gsi2sk": self.post_id,
        }


class Reaction(Entity):
    """One user's emoji on one post."""

    post_id: str
    user_id: str
    emoji: str
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.reaction_user_key(self.post_id, self.user_id)

    def index_fields(self) -> dict[str, str]:
        return {"gsi1pk": keys.reactor_index(self.user_id), "gsi1sk": self.post_id}

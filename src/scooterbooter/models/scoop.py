"""Ephemeral scoops that expire a fixed day after creation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import DAY_MS, now_ms
from scooterbooter.models.base import Entity

SCOOP_TTL_MS = DAY_MS


class TextOverlay(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    text: str
    x: float | None = None
    y: float | None = None
    color: str | None = None
    font_size: float | None = None


class Scoop(Entity):
    id: str
    user_id: str
    handle: str | None = None
    avatar_key: str | None = None
    media_key: str
    media_type: Literal["image", "video"] = "image"
    media_aspect_ratio: float | None = None
    text_overlays: list[TextOverlay] | None = None
    created_at: int = Field(default_factory=now_ms)
    expires_at: int | None = None
    view_count: int = 0
    viewers: list[str] = Field(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        if self.expires_at is None:
            self.expires_at = self.created_at + SCOOP_TTL_MS

    def key(self) -> Key:
        return keys.scoop_key(self.user_id, self.created_at, self.id)

    def index_fields(self) -> dict[str, str]:
        return {"gsi2pk": keys.scoop_id_index(self.id), "gsi2sk": self.user_id}

    def is_live(self, at: int | None = None) -> bool:
        """A scoop is absent from every read once ``now >= createdAt + 24h``."""
        moment = now_ms() if at is None else at
        return moment < self.created_at + SCOOP_TTL_MS

    def public(self, **extra: Any) -> dict[str, Any]:
        body = super().public(**extra)
        body.pop("viewers", None)
        return body

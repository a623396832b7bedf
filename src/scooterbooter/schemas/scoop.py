"""Scoop request schemas."""

from typing import Any

from scooterbooter.schemas.common import CamelModel


class ScoopCreate(CamelModel):
    media_key: str | None = None
    media_type: str | None = None
    media_aspect_ratio: float | None = None
    text_overlays: list[dict[str, Any]] | None = None

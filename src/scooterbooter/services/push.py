"""Push delivery through an Expo-compatible HTTP endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from scooterbooter.core.errors import Unavailable

logger = logging.getLogger(__name__)

HTTP_OK = 200

# (title template, body template) per notification type; {sender} is the handle.
PUSH_TEMPLATES: dict[str, tuple[str, str]] = {
    "comment": ("{sender} commented", "commented on your post"),
    "reaction": ("{sender} reacted", "reacted to your post"),
    "mention": ("{sender} mentioned you", "mentioned you"),
    "follow": ("{sender} followed you", "started following you"),
    "follow_request": ("{sender} wants to follow you", "sent you a follow request"),
    "follow_accept": ("{sender} accepted", "accepted your follow request"),
    "follow_declined": ("Follow request declined", "{sender} declined your follow request"),
    "reply": ("{sender} replied", "replied to your comment"),
}


def render_push(type_: str, sender: str | None, message: str = "") -> tuple[str, str]:
    """Return the (title, body) shown on device for a notification."""
    name = sender or "Someone"
    template = PUSH_TEMPLATES.get(type_)
    if template is None:
        return "New Notification", message or "You have a new notification"
    title, body = template
    return title.format(sender=name), body.format(sender=name)


def build_messages(tokens: list[str], title: str, body: str, data: dict[str, Any]) -> list[dict[str, Any]]:
    """Build one push message per device token."""
    return [
        {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data,
            "priority": "high",
            "channelId": "default",
        }
        for token in tokens
    ]


class PushSender(Protocol):
    """Delivers a batch of push messages."""

    async def send(self, messages: list[dict[str, Any]]) -> None: ...


@dataclass(frozen=True)
class PushConfig:
    """Immutable configuration for the push endpoint."""

    endpoint: str
    timeout_seconds: float


class ExpoPushSender:
    """HTTP client wrapper posting message batches to the push service."""

    def __init__(self, config: PushConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout_seconds))
        return self._client

    async def send(self, messages: list[dict[str, Any]]) -> None:
        if not messages:
            return
        client = self._ensure_client()
        try:
            response = await client.post(
                self.config.endpoint,
                json=messages,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise Unavailable(f"Push delivery failed: {exc}") from exc
        if response.status_code != HTTP_OK:
            raise Unavailable(f"Push endpoint returned {response.status_code}")
        logger.info("Delivered %d push messages", len(messages))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

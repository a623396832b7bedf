"""Content moderation gate in front of every write path.

The gate asks a classifier whether text and/or an image is acceptable and
turns a negative verdict into a 403 for the caller. Any failure to reach a
verdict (classifier down, bad reply, image fetch error) allows the content.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import boto3

from scooterbooter.core.errors import Forbidden
from scooterbooter.services.media import MediaService

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_REASON = "Content violates our community guidelines"
ANTHROPIC_VERSION = "bedrock-2023-05-31"
ALLOWED_MEDIA_TYPES = ("png", "gif", "webp")

TEXT_PROMPT = """You are a content moderation system. Analyze the following text and flag ONLY if it contains:

BLOCK if it contains:
- Graphic descriptions of violence or gore
- Hate speech targeting protected groups
- Direct threats or harassment targeting specific individuals
- Content promoting illegal activities

ALLOW casual profanity, political opinions, edgy humor that does not target protected groups, and general complaints.

Text to analyze: "{text}"

Respond ONLY with a JSON object in this exact format:
{{"safe": true/false, "reason": "brief explanation if unsafe, null if safe"}}"""

IMAGE_PROMPT = """You are a content moderation system for a social media app. Block the attached image and/or text only if it is clearly pornographic, graphically violent, hateful towards protected groups, threatening, promotes illegal drug use, or depicts self-harm. Allow everyday content, swimwear, fashion, art and political opinions. When in doubt, allow the content.

{text_line}

Respond ONLY with a JSON object:
{{"safe": true/false, "reason": "brief explanation if unsafe, null if safe"}}"""


@dataclass(frozen=True)
class ModerationResult:
    safe: bool
    reason: str | None = None


ALLOW = ModerationResult(safe=True)


class Classifier(Protocol):
    """External content classifier."""

    async def classify(self, text: str | None, image_key: str | None) -> ModerationResult: ...


def normalize_media_type(content_type: str | None, key: str) -> str:
    """Map a stored object's content type onto jpeg/png/gif/webp."""
    lowered = (content_type or "").lower()
    for kind in ALLOWED_MEDIA_TYPES:
        if kind in lowered:
            return f"image/{kind}"
    if "jpeg" in lowered or "jpg" in lowered:
        return "image/jpeg"
    key_lower = key.lower()
    for kind in ALLOWED_MEDIA_TYPES:
        if f".{kind}" in key_lower:
            return f"image/{kind}"
    return "image/jpeg"


def parse_verdict(reply: str) -> ModerationResult:
    """Parse the classifier's JSON reply.

    Raises:
        ValueError: If the reply is not a JSON object.
    """
    result = json.loads(reply)
    if not isinstance(result, dict):
        raise ValueError("classifier reply is not an object")
    return ModerationResult(safe=result.get("safe") is True, reason=result.get("reason") or None)


class BedrockClassifier:
    """Claude-on-Bedrock classifier; the image is read from object storage."""

    def __init__(
        self,
        model_id: str,
        *,
        region: str,
        media: MediaService | None = None,
        client: Any | None = None,
    ) -> None:
        self.model_id = model_id
        self.media = media
        self.client = client or boto3.client("bedrock-runtime", region_name=region)

    async def _image_part(self, image_key: str) -> dict[str, Any] | None:
        if self.media is None:
            return None
        try:
            stored = await self.media.fetch(image_key)
        except Exception as exc:  # noqa: BLE001 - fall back to text-only moderation
            logger.error("Failed to fetch %s for moderation: %s", image_key, exc)
            return None
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": normalize_media_type(stored.content_type, image_key),
                "data": base64.b64encode(stored.body).decode("ascii"),
            },
        }

    async def classify(self, text: str | None, image_key: str | None) -> ModerationResult:
        if image_key:
            text_line = f'Text: "{text}"' if text else "No text provided."
            parts: list[dict[str, Any]] = [{"type": "text", "text": IMAGE_PROMPT.format(text_line=text_line)}]
            image = await self._image_part(image_key)
            if image is not None:
                parts.append(image)
        else:
            parts = [{"type": "text", "text": TEXT_PROMPT.format(text=text)}]

        payload = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": 200,
            "messages": [{"role": "user", "content": parts}],
        }
        response = await asyncio.to_thread(
            self.client.invoke_model,
            modelId=self.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(payload),
        )
        body = json.loads(response["body"].read())
        return parse_verdict(body["content"][0]["text"])


class ModerationGate:
    """Fail-open wrapper around a :class:`Classifier`."""

    def __init__(self, classifier: Classifier | None, *, enabled: bool = True) -> None:
        self.classifier = classifier
        self.enabled = enabled

    async def moderate(self, text: str | None = None, image_key: str | None = None) -> ModerationResult:
        if not self.enabled or self.classifier is None:
            return ALLOW
        if not (isinstance(text, str) and text) and not image_key:
            return ALLOW
        try:
            result = await self.classifier.classify(text or None, image_key)
        except Exception as exc:  # noqa: BLE001 - moderation fails open
            logger.error("Moderation failed, allowing content: %s", exc)
            return ALLOW
        if not result.safe:
            logger.info("Moderation blocked content: %s", result.reason or "no reason")
        return result

    async def enforce(self, text: str | None = None, image_key: str | None = None) -> None:
        """Raise :class:`Forbidden` with the classifier's reason when blocked."""
        result = await self.moderate(text, image_key)
        if not result.safe:
            raise Forbidden(f"Content blocked: {result.reason or DEFAULT_BLOCK_REASON}")

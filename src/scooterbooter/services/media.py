"""Object storage for post images, avatars and scoop media."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from scooterbooter.core.errors import Forbidden, NotEnabled, Unavailable, ValidationError
from scooterbooter.db.time import now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    body: bytes
    content_type: str | None


class MediaStore(Protocol):
    """Object storage operations the service depends on."""

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str: ...

    async def delete(self, key: str) -> None: ...

    async def fetch(self, key: str) -> StoredObject: ...


class S3MediaStore:
    """S3 bucket access; blocking boto3 calls run in a worker thread."""

    def __init__(self, bucket: str, *, region: str, client: Any | None = None) -> None:
        self.bucket = bucket
        self.client = client or boto3.client("s3", region_name=region)

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                ClientMethod="put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise Unavailable(f"S3 error: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise Unavailable(f"S3 error: {exc}") from exc

    async def fetch(self, key: str) -> StoredObject:
        def _read() -> StoredObject:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return StoredObject(body=response["Body"].read(), content_type=response.get("ContentType"))

        try:
            return await asyncio.to_thread(_read)
        except (BotoCoreError, ClientError) as exc:
            raise Unavailable(f"S3 error: {exc}") from exc


class MediaService:
    """Key layout and ownership rules on top of a :class:`MediaStore`.

    Post media lives under ``u/<userId>/`` and avatars under ``a/<userId>/``;
    a user may only delete objects under their own prefixes.
    """

    def __init__(self, store: MediaStore | None, *, upload_ttl: int = 60) -> None:
        self.store = store
        self.upload_ttl = upload_ttl

    def _require(self) -> MediaStore:
        if self.store is None:
            raise NotEnabled("Media storage not configured")
        return self.store

    @staticmethod
    def owns(user_id: str, key: str) -> bool:
        return key.startswith(f"u/{user_id}/") or key.startswith(f"a/{user_id}/")

    async def upload_url(self, user_id: str, content_type: str | None, *, avatar: bool = False) -> dict[str, str]:
        store = self._require()
        prefix = "a" if avatar else "u"
        key = f"{prefix}/{user_id}/{now_ms()}-{uuid.uuid4()}"
        default_type = "image/jpeg" if avatar else "application/octet-stream"
        url = await store.presign_put(key, content_type or default_type, self.upload_ttl)
        return {"url": url, "key": key}

    async def delete_owned(self, user_id: str, key: str) -> str:
        if not key:
            raise ValidationError("Missing media key")
        if not self.owns(user_id, key):
            logger.warning("User %s attempted to delete unauthorized key %s", user_id, key)
            raise Forbidden("Forbidden: You can only delete your own media")
        await self._require().delete(key)
        logger.info("Deleted media %s for user %s", key, user_id)
        return key

    async def discard(self, key: str | None) -> None:
        """Delete an object as part of a larger cleanup."""
        if key and self.store is not None:
            await self.store.delete(key)

    async def fetch(self, key: str) -> StoredObject:
        return await self._require().fetch(key)

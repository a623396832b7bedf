"""Per-user notification ledger.

Entries are append-created by content and relationship events and deleted
when the originating action is undone. Creation is preference gated for
content types and triggers best-effort push delivery; neither a disabled
preference nor a failed push is ever an error for the caller.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any
from urllib.parse import quote

from scooterbooter.core.errors import NotEnabled
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.notification import PREFERENCE_FOR_TYPE, Notification, PushToken
from scooterbooter.models.user import NotificationPreferences
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.push import PushSender, build_messages, render_push

logger = logging.getLogger(__name__)


class NotificationLedger:
    """Create, match, delete and list notifications for a target user."""

    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        *,
        push: PushSender | None = None,
        enabled: bool = True,
        scan_limit: int = 200,
        page_size: int = 50,
    ) -> None:
        self.store = store
        self.identity = identity
        self.push = push
        self.enabled = enabled
        self.scan_limit = scan_limit
        self.page_size = page_size

    def require_enabled(self) -> None:
        if not self.enabled:
            raise NotEnabled("Notifications not enabled")

    async def preferences(self, user_id: str) -> NotificationPreferences:
        """Return the target's preferences, defaulting to allow-all."""
        try:
            user = await self.identity.get_user(user_id)
        except Exception as exc:  # noqa: BLE001 - preferences default to allow
            logger.error("Failed to load notification preferences for %s: %s", user_id, exc)
            return NotificationPreferences()
        return user.notification_preferences if user else NotificationPreferences()

    async def create(
        self,
        target_id: str,
        type_: str,
        source_id: str,
        content_id: str | None = None,
        message: str = "",
        *,
        comment_id: str | None = None,
    ) -> Notification | None:
        """Append a notification, or return ``None`` when it is not delivered.

        Self-notifications are dropped, as are preference-gated types the
        target switched off. Push delivery after the write is best effort.
        """
        if not self.enabled or not target_id or target_id == source_id:
            return None

        preference = PREFERENCE_FOR_TYPE.get(type_)
        if preference is not None:
            prefs = await self.preferences(target_id)
            if getattr(prefs, preference) is False:
                logger.info("Skipping %s notification for %s (preference disabled)", type_, target_id)
                return None

        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=target_id,
            type=type_,
            from_user_id=source_id,
            post_id=content_id,
            comment_id=comment_id,
            message=message,
        )
        await self.store.put(notification.to_item())
        if self.push is not None:
            await attempt("push", self._deliver(notification))
        return notification

    async def _deliver(self, notification: Notification) -> int:
        tokens = await self.store.query(keys.push_tokens_partition(notification.user_id))
        device_tokens = [item["token"] for item in tokens if item.get("token")]
        if not device_tokens:
            return 0
        sender = await self.identity.handle_for(notification.from_user_id)
        title, body = render_push(notification.type, sender, notification.message)
        data: dict[str, Any] = {"notificationId": notification.id, "type": notification.type}
        if notification.post_id:
            data["postId"] = notification.post_id
        await self.push.send(build_messages(device_tokens, title, body, data))
        return len(device_tokens)

    async def _recent(self, target_id: str, limit: int | None = None) -> list[Notification]:
        items = await self.store.query(
            keys.notifications_partition(target_id),
            sort_prefix="N#",
            descending=True,
            limit=limit or self.scan_limit,
        )
        return [Notification.from_item(item) for item in items]

    async def has_matching(
        self,
        target_id: str,
        type_: str,
        source_id: str | None = None,
        content_id: str | None = None,
    ) -> bool:
        if not self.enabled or not target_id:
            return False
        return any(n.matches(type_, source_id, content_id) for n in await self._recent(target_id))

    async def delete_matching(
        self,
        target_id: str,
        type_: str,
        source_id: str | None = None,
        content_id: str | None = None,
        comment_id: str | None = None,
    ) -> int:
        """Delete the target's entries matching the selector; zero matches is fine."""
        if not self.enabled or not target_id:
            return 0
        removed = 0
        for notification in await self._recent(target_id):
            if notification.matches(type_, source_id, content_id, comment_id):
                if await self.store.delete(notification.key()):
                    removed += 1
        if removed:
            logger.info("Deleted %d %s notifications for %s", removed, type_, target_id)
        return removed

    async def delete_for_content(self, target_id: str, content_id: str) -> int:
        """Delete every entry of the target that references ``content_id``."""
        removed = 0
        for notification in await self._recent(target_id):
            if notification.post_id == content_id and await self.store.delete(notification.key()):
                removed += 1
        return removed

    async def delete_sent(self, source_id: str, content_id: str | None = None) -> int:
        """Delete entries sent by ``source_id``, optionally only those about ``content_id``."""
        items = await self.store.query(keys.notifications_from_index(source_id), index="gsi1")
        removed = 0
        for notification in (Notification.from_item(item) for item in items):
            if content_id is not None and notification.post_id != content_id:
                continue
            if await self.store.delete(notification.key()):
                removed += 1
        return removed

    async def delete_received(self, target_id: str) -> int:
        """Delete the whole ledger of ``target_id``."""
        items = await self.store.query(keys.notifications_partition(target_id))
        removed = 0
        for item in items:
            if await self.store.delete(keys.Key(item["pk"], item["sk"])):
                removed += 1
        return removed

    async def list_recent(self, target_id: str, *, mark_read: bool = False) -> list[dict[str, Any]]:
        """Return the newest entries enriched with the sender's handle and avatar."""
        self.require_enabled()
        notifications = await self._recent(target_id, self.page_size)
        if mark_read:
            for notification in notifications:
                if not notification.read:
                    await self.store.update(notification.key(), {"read": True})
                    notification.read = True

        try:
            senders = await self.identity.resolve_summaries(n.from_user_id for n in notifications)
        except Exception as exc:  # noqa: BLE001 - enrichment is optional
            logger.warning("Sender enrichment failed for %s: %s", target_id, exc)
            senders = {}

        enriched = []
        for notification in notifications:
            sender = senders.get(notification.from_user_id)
            handle = sender.handle if sender else None
            body = notification.public(
                fromHandle=handle,
                avatarKey=sender.avatar_key if sender else None,
            )
            if handle:
                body["userUrl"] = f"/u/{handle}"
            if notification.post_id:
                body["postUrl"] = f"/p/{quote(notification.post_id, safe='')}"
            enriched.append(body)
        return enriched

    async def register_push_token(self, user_id: str, token: str, platform: str = "expo") -> PushToken:
        record = PushToken(user_id=user_id, token=token, platform=platform or "expo")
        await self.store.put(record.to_item())
        logger.info("Registered %s push token for %s", record.platform, user_id)
        return record

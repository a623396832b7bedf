"""Identity resolution between opaque user ids and handles.

The handle mapping (``HANDLE#<handle>``) and the user record
(``USER#<id>``) are always written together: a claim that cannot update the
user record releases the mapping it just created.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from scooterbooter.core.errors import AlreadyTaken, ConditionFailed, NotFound, ValidationError
from scooterbooter.core.security import Identity
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.db.time import now_ms
from scooterbooter.models.user import (
    FULL_NAME_MAX,
    HandleMapping,
    NotificationPreferences,
    User,
    UserSummary,
    is_valid_handle,
    normalize_handle,
)

logger = logging.getLogger(__name__)

HANDLE_FORMAT_MESSAGE = "Handle must be 3-20 chars, letters/numbers/underscore"


class IdentityResolver:
    """Resolve handles, hydrate user summaries and own the id/handle invariant."""

    def __init__(self, store: GraphStore, *, batch_size: int = 100, fallback_limit: int = 5) -> None:
        self.store = store
        self.batch_size = batch_size
        self.fallback_limit = fallback_limit

    # Lookups

    async def find_user_id(self, handle: str | None) -> str | None:
        """Return the user id owning ``handle`` or ``None``."""
        candidate = normalize_handle(handle)
        if not candidate:
            return None
        item = await self.store.get(keys.handle_key(candidate))
        if item is None:
            return None
        return item.get("userId") or None

    async def resolve_handle(self, handle: str | None) -> str:
        """Return the user id owning ``handle``.

        Raises:
            NotFound: If no user owns the handle.
        """
        user_id = await self.find_user_id(handle)
        if user_id is None:
            raise NotFound("User not found")
        return user_id

    async def get_user(self, user_id: str) -> User | None:
        item = await self.store.get(keys.user_key(user_id))
        return User.from_item(item) if item else None

    async def require_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def handle_for(self, user_id: str) -> str | None:
        user = await self.get_user(user_id)
        return user.handle if user else None

    async def ensure_user(self, identity: Identity) -> User:
        """Return the caller's profile, creating it on first authentication."""
        user = await self.get_user(identity.user_id)
        if user is not None:
            return user
        user = User(user_id=identity.user_id, email=identity.email or None)
        try:
            await self.store.put(user.to_item(), if_not_exists=True)
        except ConditionFailed:
            return await self.require_user(identity.user_id)
        logger.info("Created profile for user %s", identity.user_id)
        return user

    async def resolve_summaries(self, user_ids: Iterable[str]) -> dict[str, UserSummary]:
        """Return current summaries keyed by user id.

        Ids are deduplicated and fetched in batches. When the batch path yields
        nothing for a non-empty input, at most ``fallback_limit`` individual
        lookups are attempted before giving up.
        """
        unique = [uid for uid in dict.fromkeys(user_ids) if uid]
        if not unique:
            return {}

        summaries: dict[str, UserSummary] = {}
        for start in range(0, len(unique), self.batch_size):
            chunk = unique[start : start + self.batch_size]
            for item in await self.store.batch_get([keys.user_key(uid) for uid in chunk]):
                summary = self._summary_from_item(item)
                if summary is not None:
                    summaries[summary.user_id] = summary

        if not summaries:
            limit = min(len(unique), self.fallback_limit)
            logger.warning(
                "Batch summary lookup returned nothing for %d users, falling back to %d gets",
                len(unique),
                limit,
            )
            for uid in unique[:limit]:
                try:
                    item = await self.store.get(keys.user_key(uid))
                except Exception as exc:  # noqa: BLE001 - fallback is best effort
                    logger.error("Summary fallback lookup failed for %s: %s", uid, exc)
                    continue
                summary = self._summary_from_item(item) if item else None
                if summary is not None:
                    summaries[summary.user_id] = summary
        return summaries

    @staticmethod
    def _summary_from_item(item: dict) -> UserSummary | None:
        user_id = item.get("userId") or keys.user_id_from_pk(item.get("pk", ""))
        if not user_id:
            return None
        return UserSummary(
            user_id=user_id,
            handle=item.get("handle"),
            avatar_key=item.get("avatarKey"),
            full_name=item.get("fullName"),
        )

    # Mutations

    async def claim_handle(self, user_id: str, candidate: str | None) -> str:
        """Give ``user_id`` the handle ``candidate`` and release any previous one.

        Raises:
            ValidationError: If the candidate is not a well-formed handle.
            AlreadyTaken: If another user already owns the candidate.
        """
        handle = normalize_handle(candidate)
        if not is_valid_handle(handle):
            raise ValidationError(HANDLE_FORMAT_MESSAGE)

        existing = await self.store.get(keys.handle_key(handle))
        if existing is not None:
            if existing.get("userId") != user_id:
                raise AlreadyTaken()
            return handle

        user = await self.get_user(user_id)
        mapping = HandleMapping(
            handle=handle,
            user_id=user_id,
            avatar_key=user.avatar_key if user else None,
            full_name=user.full_name if user else None,
        )
        try:
            await self.store.put(mapping.to_item(), if_not_exists=True)
        except ConditionFailed as exc:
            winner = await self.store.get(keys.handle_key(handle))
            if winner is None or winner.get("userId") != user_id:
                raise AlreadyTaken() from exc
            return handle

        try:
            await self.store.update(
                keys.user_key(user_id),
                {"userId": user_id, "handle": handle},
                create=True,
            )
        except Exception:
            logger.error("Releasing handle %s after failed profile update for %s", handle, user_id)
            await self.store.delete(keys.handle_key(handle))
            raise

        previous = user.handle if user else None
        if previous and previous != handle:
            await self._release(previous, user_id)
        logger.info("User %s claimed handle %s", user_id, handle)
        return handle

    async def _release(self, handle: str, user_id: str) -> None:
        item = await self.store.get(keys.handle_key(handle))
        if item is not None and item.get("userId") == user_id:
            await self.store.delete(keys.handle_key(handle))

    async def update_profile(self, user_id: str, *, full_name: str | None) -> User:
        """Set the display name on the profile and its handle mapping."""
        name = (full_name or "").strip()[:FULL_NAME_MAX] or None
        item = await self.store.update(
            keys.user_key(user_id), {"userId": user_id, "fullName": name}, create=True
        )
        user = User.from_item(item)
        if user.handle:
            await self._touch_mapping(user.handle, user_id, {"fullName": name})
        return user

    async def set_avatar(self, user_id: str, avatar_key: str) -> User:
        """Point the profile and its handle mapping at a new avatar object."""
        item = await self.store.update(
            keys.user_key(user_id), {"userId": user_id, "avatarKey": avatar_key}, create=True
        )
        user = User.from_item(item)
        if user.handle:
            await self._touch_mapping(user.handle, user_id, {"avatarKey": avatar_key})
        return user

    async def _touch_mapping(self, handle: str, user_id: str, changes: dict) -> None:
        try:
            await self.store.update(
                keys.handle_key(handle),
                changes,
                condition=lambda item: item.get("userId") == user_id,
            )
        except ConditionFailed:
            logger.warning("Handle mapping %s missing or not owned by %s", handle, user_id)

    async def update_preferences(self, user_id: str, changes: dict) -> NotificationPreferences:
        """Merge boolean preference flags into the stored preferences."""
        valid = {
            name: value
            for name, value in changes.items()
            if name in NotificationPreferences.model_fields and isinstance(value, bool)
        }
        if not valid:
            raise ValidationError("No valid preferences provided")
        user = await self.get_user(user_id)
        current = user.notification_preferences if user else NotificationPreferences()
        merged = current.model_copy(update=valid)
        await self.store.update(
            keys.user_key(user_id),
            {"userId": user_id, "notificationPreferences": merged.model_dump()},
            create=True,
        )
        return merged

    async def accept_terms(self, user_id: str) -> User:
        item = await self.store.update(
            keys.user_key(user_id),
            {"userId": user_id, "termsAccepted": True, "termsAcceptedAt": now_ms()},
            create=True,
        )
        logger.info("User %s accepted terms", user_id)
        return User.from_item(item)

"""Account removal across every partition a user touches."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from scooterbooter.core.errors import NotFound
from scooterbooter.core.outcome import Outcome, attempt, failed
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.models.content import Comment
from scooterbooter.services.comments import CommentService
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.identity_provider import IdentityProvider
from scooterbooter.services.invites import InviteService
from scooterbooter.services.notifications import NotificationLedger
from scooterbooter.services.posts import PostService
from scooterbooter.services.reactions import ReactionService
from scooterbooter.services.scoops import ScoopService

logger = logging.getLogger(__name__)


class AccountService:
    """Delete a user and the data derived from them.

    Each step runs on its own and a failing step never stops the ones after
    it. The caller gets one :class:`Outcome` per step.
    """

    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        notifications: NotificationLedger,
        posts: PostService,
        comments: CommentService,
        reactions: ReactionService,
        scoops: ScoopService,
        invites: InviteService,
        identity_provider: IdentityProvider | None = None,
    ) -> None:
        self.store = store
        self.identity = identity
        self.notifications = notifications
        self.posts = posts
        self.comments = comments
        self.reactions = reactions
        self.scoops = scoops
        self.invites = invites
        self.identity_provider = identity_provider

    async def delete_account(self, user_id: str, username: str | None = None) -> list[Outcome]:
        lookup = await attempt("delete-account:lookup", self.identity.get_user(user_id))
        user = lookup.value if lookup.ok else None
        steps: list[tuple[str, Callable[[], Awaitable[Any]]]] = [
            ("posts", lambda: self._delete_posts(user_id)),
            ("comments", lambda: self._delete_comments(user_id)),
            ("reactions", lambda: self.reactions.remove_all_by(user_id)),
            ("following", lambda: self._delete_partition(keys.following_partition(user_id))),
            ("followers", lambda: self._delete_index(keys.followers_index(user_id))),
            ("blocks", lambda: self._delete_partition(keys.blocks_partition(user_id))),
            ("blocked-by", lambda: self._delete_index(keys.blocked_by_index(user_id))),
            ("notifications-sent", lambda: self.notifications.delete_sent(user_id)),
            ("notifications-received", lambda: self.notifications.delete_received(user_id)),
            ("invites", lambda: self.invites.remove_all_by(user_id)),
            ("push-tokens", lambda: self._delete_partition(keys.push_tokens_partition(user_id))),
            ("scoops", lambda: self.scoops.remove_all_by(user_id)),
        ]
        if user is not None and user.handle:
            steps.append(("handle", lambda: self.store.delete(keys.handle_key(user.handle))))
        steps.append(("profile", lambda: self.store.delete(keys.user_key(user_id))))
        if self.identity_provider is not None:
            steps.append(("credential", lambda: self.identity_provider.delete_user(username or user_id)))

        outcomes = [lookup] + [await attempt(f"delete-account:{label}", step()) for label, step in steps]
        errors = failed(outcomes)
        if errors:
            logger.warning(
                "Account %s deleted with %d failed steps: %s",
                user_id,
                len(errors),
                ", ".join(outcome.label for outcome in errors),
            )
        else:
            logger.info("Account %s deleted", user_id)
        return outcomes

    async def _delete_posts(self, user_id: str) -> int:
        removed = 0
        for post in await self.posts.list_by_user(user_id):
            if (await attempt("delete-account:post", self.posts.delete(user_id, post.id))).ok:
                removed += 1
        return removed

    async def _delete_comments(self, user_id: str) -> int:
        removed = 0
        for item in await self.store.query(keys.commenter_index(user_id), index="gsi1"):
            comment = Comment.from_item(item)
            outcome = await attempt("delete-account:comment", self._delete_comment(user_id, comment))
            if outcome.ok:
                removed += outcome.value
        return removed

    async def _delete_comment(self, user_id: str, comment: Comment) -> int:
        try:
            return await self.comments.delete(user_id, comment.post_id, comment.id)
        except NotFound:
            # already removed along with its parent
            return 0

    async def _delete_partition(self, partition: str, *, index: str | None = None) -> int:
        removed = 0
        for item in await self.store.query(partition, index=index):
            key = keys.Key(item["pk"], item["sk"])
            outcome = await attempt("delete-account:item", self.store.delete(key))
            if outcome.ok and outcome.value:
                removed += 1
        return removed

    async def _delete_index(self, partition: str) -> int:
        return await self._delete_partition(partition, index="gsi1")

"""User reports and the admin review queue."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from scooterbooter.core.errors import NotEnabled, NotFound, ValidationError
from scooterbooter.core.outcome import attempt
from scooterbooter.db import keys
from scooterbooter.db.store import GraphStore
from scooterbooter.db.time import now_ms
from scooterbooter.models.report import REASON_MAX, Report
from scooterbooter.services.comments import CommentService
from scooterbooter.services.identity import IdentityResolver
from scooterbooter.services.identity_provider import IdentityProvider
from scooterbooter.services.posts import PostService

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("post", "comment")
ACTIONS = ("delete_content", "ban_user", "dismiss")


class ReportService:
    def __init__(
        self,
        store: GraphStore,
        identity: IdentityResolver,
        posts: PostService,
        comments: CommentService,
        identity_provider: IdentityProvider | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self.store = store
        self.identity = identity
        self.posts = posts
        self.comments = comments
        self.identity_provider = identity_provider
        self.enabled = enabled

    def require_enabled(self) -> None:
        if not self.enabled:
            raise NotEnabled("Reporting not enabled")

    async def file(self, reporter_id: str, content_type: str, content_id: str, reason: str | None) -> Report:
        self.require_enabled()
        if content_type not in CONTENT_TYPES:
            raise ValidationError("Invalid contentType")
        if not content_id:
            raise ValidationError("Missing contentId")
        text = (reason or "").strip()
        if not text:
            raise ValidationError("Missing reason")
        if len(text) > REASON_MAX:
            raise ValidationError(f"Reason must be {REASON_MAX} characters or less")

        reported_user_id = None
        content_text = None
        if content_type == "post":
            post = await self.posts.find(content_id)
            if post is not None:
                reported_user_id, content_text = post.user_id, post.text
        else:
            comment = await self.comments.find_by_id(content_id)
            if comment is not None:
                reported_user_id, content_text = comment.user_id, comment.text

        report = Report(
            report_id=str(uuid.uuid4()),
            reporter_id=reporter_id,
            reported_user_id=reported_user_id,
            content_type=content_type,
            content_id=content_id,
            content_text=content_text,
            reason=text,
        )
        await self.store.put(report.to_item(), if_not_exists=True)
        logger.info("User %s reported %s %s", reporter_id, content_type, content_id)
        return report

    async def queue(self, status: str | None) -> list[dict[str, Any]]:
        """Reports with the given status, newest first, with both users attached."""
        self.require_enabled()
        items = await self.store.query(
            keys.reports_status_index(status or "pending"), index="gsi1", descending=True
        )
        reports = [Report.from_item(item) for item in items]
        users = await self.identity.resolve_summaries(
            uid for report in reports for uid in (report.reporter_id, report.reported_user_id) if uid
        )
        out = []
        for report in reports:
            reporter = users.get(report.reporter_id)
            reported = users.get(report.reported_user_id) if report.reported_user_id else None
            out.append(
                report.public(
                    reporter=reporter.public() if reporter else None,
                    reportedUser=reported.public() if reported else None,
                )
            )
        return out

    async def act(self, reviewer_id: str, report_id: str, action: str | None) -> Report:
        """Apply an admin decision and resolve the report."""
        self.require_enabled()
        if not action:
            raise ValidationError("Missing action")
        if action not in ACTIONS:
            raise ValidationError("Invalid action type")
        item = await self.store.get(keys.report_key(report_id))
        if item is None:
            raise NotFound("Report not found")
        report = Report.from_item(item)

        if action == "delete_content":
            await self._delete_content(reviewer_id, report)
        elif action == "ban_user" and report.reported_user_id:
            await self.ban(report.reported_user_id)

        resolved = await self.store.update(
            report.key(),
            {
                "status": "resolved",
                "gsi1pk": keys.reports_status_index("resolved"),
                "reviewedBy": reviewer_id,
                "reviewedAt": now_ms(),
                "action": action,
            },
        )
        return Report.from_item(resolved)

    async def _delete_content(self, reviewer_id: str, report: Report) -> None:
        if report.content_type == "post":
            post = await self.posts.find(report.content_id)
            if post is not None:
                await self.posts.delete(reviewer_id, post.id, moderator=True)
            return
        comment = await self.comments.find_by_id(report.content_id)
        if comment is not None:
            await self.comments.delete(reviewer_id, comment.post_id, comment.id, moderator=True)

    async def ban(self, user_id: str) -> None:
        """Suspend the account and remove its credential."""
        await self.store.update(keys.user_key(user_id), {"userId": user_id, "banned": True}, create=True)
        if self.identity_provider is not None:
            await attempt("ban-credential", self.identity_provider.delete_user(user_id))
        logger.info("User %s banned", user_id)

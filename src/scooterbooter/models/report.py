"""User reports on posts and comments."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from scooterbooter.db import keys
from scooterbooter.db.keys import Key
from scooterbooter.db.time import now_ms
from scooterbooter.models.base import Entity

ReportStatus = Literal["pending", "resolved"]
ReportAction = Literal["delete_content", "ban_user", "dismiss"]
REASON_MAX = 500


class Report(Entity):
    report_id: str
    reporter_id: str
    reported_user_id: str | None = None
    content_type: Literal["post", "comment"]
    content_id: str
    content_text: str | None = None
    reason: str
    status: ReportStatus = "pending"
    action: ReportAction | None = None
    reviewed_by: str | None = None
    reviewed_at: int | None = None
    created_at: int = Field(default_factory=now_ms)

    def key(self) -> Key:
        return keys.report_key(self.report_id)

    def index_fields(self) -> dict[str, str]:
        return {
            "gsi1pk": keys.reports_status_index(self.status),
            "gsi1sk": f"{keys.ts(self.created_at)}#{self.report_id}",
        }

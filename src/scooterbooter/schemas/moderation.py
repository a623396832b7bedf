"""Report request schemas."""

from pydantic import Field

from scooterbooter.schemas.common import CamelModel


class ReportCreate(CamelModel):
    content_type: str | None = Field(None, description="post or comment")
    content_id: str | None = None
    reason: str | None = None


class ReportDecision(CamelModel):
    action: str | None = Field(None, description="delete_content, ban_user or dismiss")

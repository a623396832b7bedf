"""Reporting and the admin review queue."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import AdminIdentityDep, ContainerDep, CurrentIdentityDep
from scooterbooter.schemas import InviteRequest, ReportCreate, ReportDecision

router = APIRouter(tags=["reports"])


@router.post("/report")
async def file_report(body: ReportCreate, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    report = await container.reports.file(
        identity.user_id, body.content_type or "", body.content_id or "", body.reason
    )
    return {"success": True, "reportId": report.report_id}


@router.get("/reports")
async def list_reports(
    admin: AdminIdentityDep,
    container: ContainerDep,
    status: str = Query("pending"),
) -> dict[str, Any]:
    return {"items": await container.reports.queue(status)}


@router.post("/reports/{report_id}/action")
async def act_on_report(
    report_id: str,
    body: ReportDecision,
    admin: AdminIdentityDep,
    container: ContainerDep,
) -> dict[str, Any]:
    report = await container.reports.act(admin.user_id, report_id, body.action)
    return {"success": True, "action": report.action}


@router.post("/invites")
async def issue_invite(
    admin: AdminIdentityDep,
    container: ContainerDep,
    body: InviteRequest | None = None,
) -> dict[str, Any]:
    """Issue an unowned invite code with 1 to 100 uses."""
    invite = await container.invites.issue_admin(body.uses if body else None)
    return {"code": invite.code, "uses": invite.uses_remaining}

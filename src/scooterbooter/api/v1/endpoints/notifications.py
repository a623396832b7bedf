"""Notification ledger and push registration endpoints."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.core.errors import ValidationError
from scooterbooter.schemas import PushRegistration

router = APIRouter(tags=["notifications"])


@router.get("/notifications")
async def list_notifications(
    identity: CurrentIdentityDep,
    container: ContainerDep,
    mark_read: int = Query(0, alias="markRead"),
) -> dict[str, Any]:
    items = await container.notifications.list_recent(identity.user_id, mark_read=bool(mark_read))
    return {"items": items}


@router.post("/push/register")
async def register_push(
    body: PushRegistration, identity: CurrentIdentityDep, container: ContainerDep
) -> dict[str, bool]:
    if not body.token:
        raise ValidationError("Missing token")
    await container.notifications.register_push_token(identity.user_id, body.token, body.platform)
    return {"success": True, "registered": True}

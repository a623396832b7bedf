"""Follow, follow-request and block endpoints."""

from typing import Any

from fastapi import APIRouter, Query

from scooterbooter.api.v1.dependencies import ContainerDep, CurrentIdentityDep
from scooterbooter.core.errors import ValidationError
from scooterbooter.schemas import HandleTarget, RequesterTarget, UserTarget

router = APIRouter(tags=["social"])


def _requester(body: RequesterTarget) -> str:
    if not body.from_user_id:
        raise ValidationError("Missing requesterId")
    return body.from_user_id


@router.post("/follow")
async def follow(body: HandleTarget, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    target_id = await container.identity.resolve_handle(body.handle)
    await container.relationships.follow(identity.user_id, target_id)
    return {"ok": True}


@router.post("/unfollow")
async def unfollow(body: HandleTarget, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    target_id = await container.identity.resolve_handle(body.handle)
    await container.relationships.unfollow(identity.user_id, target_id)
    return {"ok": True}


@router.post("/follow-request")
async def request_follow(
    body: HandleTarget, identity: CurrentIdentityDep, container: ContainerDep
) -> dict[str, bool]:
    target_id = await container.identity.resolve_handle(body.handle)
    await container.relationships.request_follow(identity.user_id, target_id)
    return {"requested": True}


@router.post("/follow-cancel")
async def cancel_request(
    body: HandleTarget, identity: CurrentIdentityDep, container: ContainerDep
) -> dict[str, bool]:
    target_id = await container.identity.resolve_handle(body.handle)
    await container.relationships.cancel_request(identity.user_id, target_id)
    return {"cancelled": True}


@router.post("/follow-accept")
async def accept_request(
    body: RequesterTarget, identity: CurrentIdentityDep, container: ContainerDep
) -> dict[str, bool]:
    await container.relationships.accept_request(identity.user_id, _requester(body))
    return {"accepted": True}


@router.post("/follow-decline")
async def decline_request(
    body: RequesterTarget, identity: CurrentIdentityDep, container: ContainerDep
) -> dict[str, bool]:
    await container.relationships.decline_request(identity.user_id, _requester(body))
    return {"declined": True}


@router.post("/block")
async def block(body: UserTarget, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    """Block a user; follow edges in both directions are removed."""
    await container.relationships.block(identity.user_id, (body.user_id or "").strip())
    return {"success": True, "blocked": True}


@router.post("/unblock")
async def unblock(body: UserTarget, identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, bool]:
    await container.relationships.unblock(identity.user_id, (body.user_id or "").strip())
    return {"success": True, "blocked": False}


@router.get("/blocked")
async def list_blocked(identity: CurrentIdentityDep, container: ContainerDep) -> dict[str, Any]:
    container.relationships.require_blocking()
    blocked = await container.relationships.blocked_ids(identity.user_id)
    summaries = await container.identity.resolve_summaries(blocked)
    items = [summaries[uid].public() for uid in sorted(blocked) if uid in summaries]
    return {"items": items}


@router.get("/is-blocked")
async def is_blocked(
    identity: CurrentIdentityDep,
    container: ContainerDep,
    user_id: str = Query("", alias="userId"),
) -> dict[str, bool]:
    """Whether a block exists between the caller and ``userId`` in either direction."""
    container.relationships.require_blocking()
    if not user_id:
        raise ValidationError("Missing userId")
    return {"blocked": await container.relationships.has_block_between(identity.user_id, user_id)}
